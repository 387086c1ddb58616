"""Metrics module for model evaluation."""

from ml_harness.errors import UndefinedMetricError, UndefinedMetricWarning, is_undefined
from ml_harness.metrics.confusion import (
    ConfusionMatrix,
    MetricBundle,
    average_bundles,
    confusion_matrix,
    mean_defined,
    merge_confusion_matrices,
    metrics,
)
from ml_harness.metrics.roc import RocCurve, auc, roc_curve

__all__ = [
    # Confusion-matrix metrics
    "ConfusionMatrix",
    "MetricBundle",
    "confusion_matrix",
    "metrics",
    "merge_confusion_matrices",
    "average_bundles",
    "mean_defined",
    # Undefined values
    "UndefinedMetricError",
    "UndefinedMetricWarning",
    "is_undefined",
    # ROC
    "RocCurve",
    "roc_curve",
    "auc",
]
