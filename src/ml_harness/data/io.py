"""
Local data reading.

The harness never fetches remote files; this only materialises a local CSV
(or an already-loaded frame) as a raw frame for ``prepare``.
"""

import logging
from pathlib import Path

import pandas as pd

logger = logging.getLogger(__name__)

MISSING_TOKENS = ["", "NA", "N/A", "NaN", "nan", "null", "?"]


def read_csv_dataset(
    path: str | Path,
    label_col: str | None = None,
    sep: str = ",",
    na_values: list[str] | None = None,
) -> pd.DataFrame:
    """
    Read a local CSV file into a raw frame.

    Args:
        path: Path to the CSV file
        label_col: If given, the column is read as strings so labels such as
            "1"/"01" are not coerced into numbers
        sep: Field separator
        na_values: Tokens treated as missing (default: MISSING_TOKENS)

    Returns:
        Raw frame, unvalidated

    Raises:
        FileNotFoundError: If the file does not exist
        ValueError: If ``label_col`` is not a column of the file
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Data file not found: {path}")

    dtype = {label_col: str} if label_col else None
    df = pd.read_csv(
        path,
        sep=sep,
        na_values=MISSING_TOKENS if na_values is None else na_values,
        dtype=dtype,
    )
    if label_col and label_col not in df.columns:
        raise ValueError(f"Label column '{label_col}' not found in {path.name}")

    logger.info(f"Read {len(df):,} rows x {df.shape[1]} columns from {path.name}")
    return df
