"""
Serialization utilities for fitted handles and evaluation results.
"""

import json
import logging
import warnings
from pathlib import Path
from typing import Any

import joblib
import numpy as np

logger = logging.getLogger(__name__)


def to_builtin(obj: Any) -> Any:
    """Convert numpy scalars/arrays and nested containers to JSON-friendly types."""
    if isinstance(obj, dict):
        return {str(k): to_builtin(v) for k, v in obj.items()}
    elif isinstance(obj, list | tuple):
        return [to_builtin(v) for v in obj]
    elif isinstance(obj, np.integer):
        return int(obj)
    elif isinstance(obj, np.floating):
        return float(obj)
    elif isinstance(obj, np.ndarray):
        return obj.tolist()
    return obj


def save_joblib(obj: Any, path: str | Path, compress: int = 3):
    """Save object using joblib, stamped with the library versions in use."""
    import pandas as pd
    import sklearn

    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    bundle = {
        "object": obj,
        "versions": {
            "sklearn": sklearn.__version__,
            "pandas": pd.__version__,
            "numpy": np.__version__,
        },
    }
    joblib.dump(bundle, path, compress=compress)


def load_joblib(path: str | Path, check_versions: bool = True) -> Any:
    """
    Load object saved by ``save_joblib``.

    Args:
        path: Path to joblib file
        check_versions: Warn if sklearn/pandas/numpy versions differ from
            the ones the object was saved with

    Returns:
        The stored object
    """
    import pandas as pd
    import sklearn

    bundle = joblib.load(path)
    if not (isinstance(bundle, dict) and "object" in bundle):
        return bundle

    if check_versions and "versions" in bundle:
        current_versions = {
            "sklearn": sklearn.__version__,
            "pandas": pd.__version__,
            "numpy": np.__version__,
        }
        mismatches = [
            f"{lib}: saved={saved}, current={current_versions[lib]}"
            for lib, saved in bundle["versions"].items()
            if lib in current_versions and saved != current_versions[lib]
        ]
        if mismatches:
            warnings.warn(
                f"Version mismatch in {Path(path).name}:\n"
                + "\n".join(f"  - {m}" for m in mismatches)
                + "\nPredictions may be inconsistent.",
                UserWarning,
                stacklevel=2,
            )

    return bundle["object"]


def save_json(obj: Any, path: str | Path, indent: int = 2):
    """Save object as JSON."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    with open(path, "w") as f:
        json.dump(to_builtin(obj), f, indent=indent, default=str)


def load_json(path: str | Path) -> Any:
    """Load JSON file."""
    with open(path) as f:
        return json.load(f)
