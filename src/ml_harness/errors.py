"""
Error taxonomy for the evaluation harness.

Partition and shape errors are raised immediately and abort the call that
triggered them. Fitting errors carry the fold (or split) they came from so a
best-effort cross-validation run can record them and keep going.
Undefined metrics are never raised by the metric functions; an
``UndefinedMetricError`` instance is stored in place of the value and an
``UndefinedMetricWarning`` is emitted.
"""

from typing import Any


class HarnessError(Exception):
    """Base class for all harness errors."""

    pass


class InvalidPartitionError(HarnessError, ValueError):
    """Raised when split/fold parameters are inconsistent with the dataset size."""

    pass


class ShapeMismatchError(HarnessError, ValueError):
    """Raised on misaligned sequences or records missing a required feature."""

    pass


class BinaryLabelError(ShapeMismatchError):
    """Raised when a binary-only operation receives other than two label values."""

    pass


class ModelFittingError(HarnessError, RuntimeError):
    """
    Raised when a classifier capability's fit or predict call fails or times out.

    Args:
        fold: Fold index (int) or split identifier (str) the failure belongs to
        message: Human-readable description
        cause: Original exception, if any
    """

    def __init__(self, fold: int | str, message: str, cause: BaseException | None = None):
        self.fold = fold
        self.message = message
        self.cause = cause
        super().__init__(f"fold {fold}: {message}")

    def __reduce__(self):
        return (type(self), (self.fold, self.message, self.cause))


class UndefinedMetricError(HarnessError):
    """
    Sentinel for a metric whose denominator is zero.

    Instances stand in for the metric value (e.g. the sensitivity of a class
    that never occurs in ``observed``). Use ``is_undefined`` to test values.
    """

    def __init__(self, metric: str, label: Any = None, reason: str = "zero denominator"):
        self.metric = metric
        self.label = label
        self.reason = reason
        where = f" for class {label!r}" if label is not None else ""
        super().__init__(f"{metric}{where} is undefined ({reason})")

    def __reduce__(self):
        return (type(self), (self.metric, self.label, self.reason))

    def __eq__(self, other):
        if not isinstance(other, UndefinedMetricError):
            return NotImplemented
        return (self.metric, self.label) == (other.metric, other.label)

    def __hash__(self):
        return hash((self.metric, repr(self.label)))

    def __repr__(self):
        return f"UndefinedMetricError(metric={self.metric!r}, label={self.label!r})"


class UndefinedMetricWarning(UserWarning):
    """Warning emitted whenever an undefined metric sentinel is produced."""

    pass


def is_undefined(value: Any) -> bool:
    """Return True if ``value`` is an undefined-metric sentinel."""
    return isinstance(value, UndefinedMetricError)
