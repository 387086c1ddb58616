"""
ml-harness: train/validate and cross-validation evaluation harness.

Partitions a prepared dataset, fits any classifier capability through a
narrow fit/predict contract, and reports confusion-matrix metrics and ROC/AUC.
"""

# Enable pandas Copy-on-Write so subset views never write back into a Dataset
import pandas as pd

pd.options.mode.copy_on_write = True

__version__ = "1.0.0"
__license__ = "MIT"

from ml_harness import (  # noqa: E402
    config,
    data,
    errors,
    evaluation,
    metrics,
    models,
    utils,
)
from ml_harness.data import Dataset, make_folds, split  # noqa: E402
from ml_harness.evaluation import cross_validate  # noqa: E402
from ml_harness.metrics import auc, confusion_matrix, roc_curve  # noqa: E402

__all__ = [
    "__version__",
    "config",
    "data",
    "errors",
    "evaluation",
    "metrics",
    "models",
    "utils",
    "Dataset",
    "split",
    "make_folds",
    "cross_validate",
    "confusion_matrix",
    "auc",
    "roc_curve",
]
