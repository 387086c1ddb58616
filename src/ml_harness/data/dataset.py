"""
Prepared dataset container.

A ``Dataset`` pairs a numeric feature frame with an aligned label series.
It is validated once at construction (no missing values, unique and fixed
feature ordering, equal lengths) and treated as read-only afterwards: the
harness only ever takes ``.iloc`` views of it.
"""

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field

import numpy as np
import pandas as pd

from ml_harness.errors import ShapeMismatchError

logger = logging.getLogger(__name__)


def require_features(records: pd.DataFrame, feature_names: Sequence[str]) -> pd.DataFrame:
    """
    Select ``feature_names`` from ``records`` in that exact order.

    Args:
        records: Frame holding at least the required features
        feature_names: Required feature columns, in model order

    Returns:
        Frame restricted and reordered to ``feature_names``

    Raises:
        ShapeMismatchError: If any required feature is missing
    """
    missing = [c for c in feature_names if c not in records.columns]
    if missing:
        raise ShapeMismatchError(
            f"Records are missing {len(missing)} required feature(s): {missing[:10]}"
        )
    return records.loc[:, list(feature_names)]


@dataclass(frozen=True, eq=False)
class Dataset:
    """
    Immutable prepared dataset.

    Attributes:
        features: Numeric feature frame (n_records x n_features), RangeIndex
        labels: Label series aligned with ``features``
        feature_names: Fixed feature ordering
    """

    features: pd.DataFrame
    labels: pd.Series
    feature_names: tuple[str, ...] = field(init=False)

    def __post_init__(self):
        features = self.features
        labels = self.labels
        if not isinstance(features, pd.DataFrame):
            raise ShapeMismatchError(
                f"features must be a pandas DataFrame, got {type(features).__name__}"
            )
        if not isinstance(labels, pd.Series):
            labels = pd.Series(labels, name="label")
        if len(features) != len(labels):
            raise ShapeMismatchError(
                f"features has {len(features)} records but labels has {len(labels)}"
            )
        if features.columns.duplicated().any():
            dupes = features.columns[features.columns.duplicated()].tolist()
            raise ShapeMismatchError(f"Duplicate feature names: {dupes}")

        non_numeric = [
            c for c in features.columns if not pd.api.types.is_numeric_dtype(features[c])
        ]
        if non_numeric:
            raise ShapeMismatchError(f"Non-numeric feature column(s): {non_numeric}")

        n_missing = int(features.isna().to_numpy().sum())
        if n_missing:
            raise ShapeMismatchError(
                f"Dataset features contain {n_missing} missing value(s); "
                "prepare the data before evaluation"
            )
        if labels.isna().any():
            raise ShapeMismatchError("Dataset labels contain missing values")

        features = features.reset_index(drop=True)
        labels = labels.reset_index(drop=True)
        object.__setattr__(self, "features", features)
        object.__setattr__(self, "labels", labels)
        object.__setattr__(self, "feature_names", tuple(str(c) for c in features.columns))

    @classmethod
    def from_frame(
        cls,
        df: pd.DataFrame,
        label_col: str,
        feature_cols: Sequence[str] | None = None,
    ) -> "Dataset":
        """
        Build a Dataset from a frame holding features and a label column.

        Args:
            df: Source frame
            label_col: Name of the label column
            feature_cols: Feature columns in order (default: all other columns)

        Raises:
            ShapeMismatchError: If the label or a feature column is missing
        """
        if label_col not in df.columns:
            raise ShapeMismatchError(f"Label column '{label_col}' not found")
        if feature_cols is None:
            feature_cols = [c for c in df.columns if c != label_col]
        features = require_features(df, list(feature_cols))
        return cls(features=features, labels=df[label_col])

    def __len__(self) -> int:
        return len(self.labels)

    @property
    def n_features(self) -> int:
        return len(self.feature_names)

    @property
    def classes(self) -> list:
        """Distinct labels in sorted order."""
        return sort_labels(self.labels.unique().tolist())

    def subset(self, indices: Sequence[int] | np.ndarray) -> tuple[pd.DataFrame, pd.Series]:
        """Return (features, labels) for ``indices`` without re-validating."""
        idx = np.asarray(indices, dtype=int)
        return self.features.iloc[idx], self.labels.iloc[idx]

    def class_counts(self) -> pd.Series:
        return self.labels.value_counts().sort_index()


def sort_labels(labels: Sequence) -> list:
    """
    Sort labels naturally, falling back to string order for mixed types.

    Numeric labels sort numerically (2 before 10); labels that cannot be
    compared with each other sort by their string form.
    """
    unique = list(dict.fromkeys(labels))
    try:
        return sorted(unique)
    except TypeError:
        return sorted(unique, key=str)
