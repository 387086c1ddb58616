"""Dataset container, partitioning and preparation."""

from ml_harness.data.dataset import Dataset, require_features, sort_labels
from ml_harness.data.io import read_csv_dataset
from ml_harness.data.prepare import (
    available_imputers,
    get_imputer,
    prepare,
    register_imputer,
    scale_features,
    significance_screen,
)
from ml_harness.data.splits import (
    SPLIT_STRATEGIES,
    FoldAssignment,
    Split,
    make_folds,
    make_stratified_folds,
    split,
)

__all__ = [
    # Dataset
    "Dataset",
    "require_features",
    "sort_labels",
    "read_csv_dataset",
    # Preparation
    "prepare",
    "register_imputer",
    "get_imputer",
    "available_imputers",
    "scale_features",
    "significance_screen",
    # Partitioning
    "SPLIT_STRATEGIES",
    "Split",
    "FoldAssignment",
    "split",
    "make_folds",
    "make_stratified_folds",
]
