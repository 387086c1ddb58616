"""
Data preparation pipeline: raw frame -> validated Dataset.

Steps, in order:
1. Select the label column and drop rows with a missing label
2. Select feature columns (explicit list, or every numeric non-label column)
3. Impute missing feature values with a pluggable strategy
4. Scale features
5. Screen features with a per-feature significance test

The output always has zero missing values and a fixed feature ordering
(source column order). Imputation strategies live in a registry so callers
can plug in their own without touching the harness.
"""

import logging
from collections.abc import Callable
from typing import TYPE_CHECKING

import numpy as np
import pandas as pd
from scipy import stats
from sklearn.preprocessing import MinMaxScaler, StandardScaler

from ml_harness.data.dataset import Dataset
from ml_harness.errors import ShapeMismatchError

if TYPE_CHECKING:
    from ml_harness.config.schema import DataConfig, PrepareConfig

logger = logging.getLogger(__name__)

# An imputer takes (features, labels) and returns (features, labels) with no
# missing feature values. Row-dropping strategies may shorten both.
Imputer = Callable[[pd.DataFrame, pd.Series], tuple[pd.DataFrame, pd.Series]]


# ============================================================================
# Imputation strategies
# ============================================================================


def impute_zero(X: pd.DataFrame, y: pd.Series) -> tuple[pd.DataFrame, pd.Series]:
    """Replace missing values with 0."""
    return X.fillna(0.0), y


def impute_mean(X: pd.DataFrame, y: pd.Series) -> tuple[pd.DataFrame, pd.Series]:
    """Replace missing values with the column mean (0 for all-missing columns)."""
    return X.fillna(X.mean()).fillna(0.0), y


def impute_median(X: pd.DataFrame, y: pd.Series) -> tuple[pd.DataFrame, pd.Series]:
    """Replace missing values with the column median (0 for all-missing columns)."""
    return X.fillna(X.median()).fillna(0.0), y


def drop_incomplete(X: pd.DataFrame, y: pd.Series) -> tuple[pd.DataFrame, pd.Series]:
    """Keep complete cases only."""
    keep = X.notna().all(axis=1)
    return X.loc[keep], y.loc[keep]


_IMPUTERS: dict[str, Imputer] = {
    "zero": impute_zero,
    "mean": impute_mean,
    "median": impute_median,
    "drop": drop_incomplete,
}


def register_imputer(name: str, imputer: Imputer, overwrite: bool = False) -> None:
    """
    Register a custom imputation strategy.

    Raises:
        ValueError: If ``name`` is taken and ``overwrite`` is False
    """
    if name in _IMPUTERS and not overwrite:
        raise ValueError(f"Imputer '{name}' already registered")
    _IMPUTERS[name] = imputer


def get_imputer(name: str) -> Imputer:
    try:
        return _IMPUTERS[name]
    except KeyError:
        raise ValueError(
            f"Unknown imputation strategy: {name!r} (available: {sorted(_IMPUTERS)})"
        ) from None


def available_imputers() -> list[str]:
    return sorted(_IMPUTERS)


# ============================================================================
# Scaling
# ============================================================================


def scale_features(X: pd.DataFrame, method: str) -> pd.DataFrame:
    """
    Scale feature columns.

    Args:
        X: Missing-free numeric features
        method: "none", "standard" (zero mean, unit variance) or "minmax" ([0, 1])

    Returns:
        Scaled frame with the same index and columns
    """
    if method == "none" or X.shape[1] == 0:
        return X
    if method == "standard":
        scaler = StandardScaler()
    elif method == "minmax":
        scaler = MinMaxScaler()
    else:
        raise ValueError(f"Unknown scaling method: {method}")
    scaled = scaler.fit_transform(X.to_numpy(dtype=float))
    return pd.DataFrame(scaled, index=X.index, columns=X.columns)


# ============================================================================
# Feature screening
# ============================================================================


def significance_screen(
    X: pd.DataFrame,
    y: pd.Series,
    method: str = "ttest",
    alpha: float = 0.05,
    top_n: int = 0,
) -> tuple[list[str], pd.DataFrame]:
    """
    Screen features with a per-feature significance test.

    Args:
        X: Missing-free numeric features
        y: Labels aligned with X
        method: "ttest" (two classes, Welch's t-test) or "anova" (one-way F-test)
        alpha: Keep features with p < alpha
        top_n: If > 0, keep at most this many of the passing features (smallest p)

    Returns:
        selected: Passing feature names, in the original column order
        screening_stats: One row per feature with columns feature, statistic, p_value

    Raises:
        ShapeMismatchError: If the class count does not suit ``method``
    """
    groups_labels = y.unique().tolist()
    n_classes = len(groups_labels)
    if method == "ttest" and n_classes != 2:
        raise ShapeMismatchError(f"ttest screening needs exactly 2 classes, got {n_classes}")
    if method == "anova" and n_classes < 2:
        raise ShapeMismatchError(f"anova screening needs >= 2 classes, got {n_classes}")
    if method not in ("ttest", "anova"):
        raise ValueError(f"Unknown screening method: {method}")

    y_arr = y.to_numpy()
    rows = []
    for col in X.columns:
        x = X[col].to_numpy(dtype=float)
        groups = [x[y_arr == g] for g in groups_labels]
        if np.allclose(x, x[0]):
            # Constant feature carries no signal
            rows.append((col, np.nan, 1.0))
            continue
        if method == "ttest":
            stat, p = stats.ttest_ind(groups[0], groups[1], equal_var=False)
        else:
            stat, p = stats.f_oneway(*groups)
        p = float(p) if np.isfinite(p) else 1.0
        rows.append((col, float(stat), p))

    df_stats = pd.DataFrame(rows, columns=["feature", "statistic", "p_value"])
    passing = df_stats[df_stats["p_value"] < alpha]
    if top_n > 0:
        passing = passing.nsmallest(top_n, "p_value")
    keep = set(passing["feature"])
    selected = [c for c in X.columns if c in keep]

    logger.info(
        f"Screening ({method}, alpha={alpha}): kept {len(selected)}/{X.shape[1]} features"
    )
    return selected, df_stats


# ============================================================================
# Pipeline
# ============================================================================


def select_feature_columns(
    df: pd.DataFrame, label_col: str, feature_cols: list[str] | None = None
) -> list[str]:
    """Explicit feature columns, or every numeric column except the label."""
    if feature_cols:
        missing = [c for c in feature_cols if c not in df.columns]
        if missing:
            raise ShapeMismatchError(f"Feature column(s) not found: {missing}")
        return list(feature_cols)
    cols = [
        c for c in df.columns if c != label_col and pd.api.types.is_numeric_dtype(df[c])
    ]
    dropped = [c for c in df.columns if c != label_col and c not in cols]
    if dropped:
        logger.info(f"Ignoring {len(dropped)} non-numeric column(s): {dropped[:10]}")
    return cols


def prepare(
    raw: pd.DataFrame,
    config: "PrepareConfig",
    data_config: "DataConfig",
) -> Dataset:
    """
    Turn a raw frame into a missing-free Dataset.

    Args:
        raw: Raw frame holding features and the label column
        config: Preparation settings (imputation, scaling, screening)
        data_config: Label and feature column selection

    Returns:
        Dataset with zero missing values and fixed feature ordering

    Raises:
        ShapeMismatchError: If columns are missing or nothing survives preparation
    """
    label_col = data_config.label_col
    if label_col not in raw.columns:
        raise ShapeMismatchError(f"Label column '{label_col}' not found")

    df = raw.loc[raw[label_col].notna()]
    n_dropped = len(raw) - len(df)
    if n_dropped:
        logger.info(f"Dropped {n_dropped} row(s) with missing label")

    cols = select_feature_columns(df, label_col, data_config.feature_cols)
    X = df.loc[:, cols].apply(pd.to_numeric, errors="coerce").astype(float)
    y = df[label_col]

    n_missing = int(X.isna().to_numpy().sum())
    X, y = get_imputer(config.imputation)(X, y)
    if n_missing:
        logger.info(
            f"Imputed {n_missing} missing value(s) with strategy '{config.imputation}' "
            f"({len(X)} records remain)"
        )
    if X.isna().to_numpy().any():
        raise ShapeMismatchError(
            f"Imputation strategy '{config.imputation}' left missing values"
        )
    if len(X) == 0:
        raise ShapeMismatchError("No records left after preparation")

    X = scale_features(X, config.scaling)

    if config.feature_selection != "none":
        selected, _ = significance_screen(
            X, y, method=config.feature_selection, alpha=config.alpha, top_n=config.top_n
        )
        if not selected:
            raise ShapeMismatchError(
                f"Feature screening ({config.feature_selection}, alpha={config.alpha}) "
                "kept no features"
            )
        X = X.loc[:, selected]

    return Dataset(features=X, labels=y)
