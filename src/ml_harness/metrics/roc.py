"""
ROC curve and AUC for binary score-valued predictions.

Points are ordered by descending score threshold, start at (0, 0) and end at
(1, 1); tied scores collapse into a single point. AUC is the trapezoidal
area over exactly those points.

References:
    - Hanley & McNeil (1982). The meaning and use of the area under a ROC curve.
    - Fawcett (2006). An introduction to ROC analysis.
"""

from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

import numpy as np
from sklearn.metrics import auc as _sk_auc
from sklearn.metrics import roc_curve as _sk_roc_curve

from ml_harness.errors import BinaryLabelError, ShapeMismatchError


@dataclass(frozen=True, eq=False)
class RocCurve:
    """
    ROC points ordered by descending threshold.

    Attributes:
        fpr: False positive rates
        tpr: True positive rates
        thresholds: Score thresholds; the first is +inf (nothing predicted positive)
        positive_label: Label treated as positive
    """

    fpr: np.ndarray
    tpr: np.ndarray
    thresholds: np.ndarray
    positive_label: Any = 1

    def points(self) -> list[tuple[float, float]]:
        """(false positive rate, true positive rate) pairs."""
        return [(float(f), float(t)) for f, t in zip(self.fpr, self.tpr)]

    def __len__(self) -> int:
        return int(self.fpr.size)


def _binary_targets(observed: Sequence, positive_label: Any) -> np.ndarray:
    y = np.asarray(observed, dtype=object).ravel()
    distinct = set(y.tolist())
    if len(distinct) != 2:
        raise BinaryLabelError(
            f"ROC analysis needs exactly two distinct observed labels, got {len(distinct)}: "
            f"{sorted(map(str, distinct))}"
        )
    if positive_label not in distinct:
        raise BinaryLabelError(
            f"positive_label {positive_label!r} not among observed labels "
            f"{sorted(map(str, distinct))}"
        )
    return (y == positive_label).astype(int)


def roc_curve(
    scores: Sequence[float],
    observed: Sequence,
    positive_label: Any = 1,
) -> RocCurve:
    """
    Compute the ROC curve of a binary scorer.

    Args:
        scores: Continuous scores, higher means more likely positive
        observed: Observed labels, exactly two distinct values
        positive_label: Label treated as positive (default 1)

    Returns:
        RocCurve ordered by descending threshold

    Raises:
        ShapeMismatchError: If lengths differ
        BinaryLabelError: If observed does not hold exactly two labels

    Examples:
        >>> curve = roc_curve([0.1, 0.4, 0.6, 0.9], [0, 0, 1, 1])
        >>> curve.points()[0], curve.points()[-1]
        ((0.0, 0.0), (1.0, 1.0))
    """
    s = np.asarray(scores, dtype=float).ravel()
    if s.size != len(np.asarray(observed, dtype=object).ravel()):
        raise ShapeMismatchError(
            f"scores has {s.size} values but observed has {len(observed)}"
        )
    if not np.all(np.isfinite(s)):
        raise ShapeMismatchError("scores contain NaN or infinite values")
    y = _binary_targets(observed, positive_label)

    fpr, tpr, thresholds = _sk_roc_curve(y, s, pos_label=1, drop_intermediate=False)
    return RocCurve(fpr=fpr, tpr=tpr, thresholds=thresholds, positive_label=positive_label)


def auc(
    curve_or_scores: RocCurve | Sequence[float],
    observed: Sequence | None = None,
    positive_label: Any = 1,
) -> float:
    """
    Trapezoidal area under a ROC curve.

    Accepts either a ``RocCurve`` or ``(scores, observed)``.

    Examples:
        >>> auc([0.1, 0.4, 0.6, 0.9], [0, 0, 1, 1])
        1.0
    """
    if isinstance(curve_or_scores, RocCurve):
        curve = curve_or_scores
    else:
        if observed is None:
            raise ShapeMismatchError("auc(scores, observed) requires observed labels")
        curve = roc_curve(curve_or_scores, observed, positive_label=positive_label)
    return float(_sk_auc(curve.fpr, curve.tpr))
