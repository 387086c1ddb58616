"""
Confusion matrix and the metrics derived from it.

Per-class sensitivity and specificity are one-vs-rest: class c is the
positive class and every other class is pooled as negative. This reduces to
the usual 2x2 definitions for binary problems.

A metric whose denominator is zero (e.g. sensitivity of a class that never
occurs in ``observed``) is reported as an ``UndefinedMetricError`` sentinel
together with an ``UndefinedMetricWarning``; NaN never appears.
"""

import warnings
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any

import numpy as np
import pandas as pd
from sklearn.metrics import confusion_matrix as _sk_confusion_matrix

from ml_harness.data.dataset import sort_labels
from ml_harness.errors import (
    ShapeMismatchError,
    UndefinedMetricError,
    UndefinedMetricWarning,
    is_undefined,
)

MetricValue = float | UndefinedMetricError


# ============================================================================
# Confusion matrix
# ============================================================================


@dataclass(frozen=True, eq=False)
class ConfusionMatrix:
    """
    Square count matrix over an ordered label set.

    Rows are observed labels, columns are predicted labels. Label order only
    affects display; metric values do not depend on it.
    """

    labels: tuple
    counts: np.ndarray

    def __post_init__(self):
        counts = np.asarray(self.counts, dtype=np.int64)
        k = len(self.labels)
        if counts.shape != (k, k):
            raise ShapeMismatchError(
                f"counts shape {counts.shape} does not match {k} labels"
            )
        object.__setattr__(self, "labels", tuple(self.labels))
        object.__setattr__(self, "counts", counts)

    @property
    def total(self) -> int:
        return int(self.counts.sum())

    @property
    def n_correct(self) -> int:
        return int(np.trace(self.counts))

    def __getitem__(self, key: tuple[Any, Any]) -> int:
        observed, predicted = key
        try:
            i = self.labels.index(observed)
            j = self.labels.index(predicted)
        except ValueError:
            return 0
        return int(self.counts[i, j])

    def __eq__(self, other):
        if not isinstance(other, ConfusionMatrix):
            return NotImplemented
        return self.to_dict() == other.to_dict()

    __hash__ = None

    def to_dict(self) -> dict[tuple[Any, Any], int]:
        """Non-zero cells as {(observed, predicted): count}."""
        out = {}
        for i, obs in enumerate(self.labels):
            for j, pred in enumerate(self.labels):
                if self.counts[i, j]:
                    out[(obs, pred)] = int(self.counts[i, j])
        return out

    def to_frame(self) -> pd.DataFrame:
        """Counts as a frame with observed labels as rows and predicted as columns."""
        return pd.DataFrame(
            self.counts,
            index=pd.Index(self.labels, name="observed"),
            columns=pd.Index(self.labels, name="predicted"),
        )

    def reindex(self, labels: Sequence) -> "ConfusionMatrix":
        """Return the same counts laid out over ``labels`` (a superset)."""
        labels = tuple(labels)
        missing = [lab for lab in self.labels if lab not in labels]
        if missing:
            raise ShapeMismatchError(f"Label order is missing label(s) {missing}")
        pos = [labels.index(lab) for lab in self.labels]
        counts = np.zeros((len(labels), len(labels)), dtype=np.int64)
        counts[np.ix_(pos, pos)] = self.counts
        return ConfusionMatrix(labels=labels, counts=counts)

    def __add__(self, other: "ConfusionMatrix") -> "ConfusionMatrix":
        if not isinstance(other, ConfusionMatrix):
            return NotImplemented
        labels = tuple(sort_labels(list(self.labels) + list(other.labels)))
        return ConfusionMatrix(
            labels=labels,
            counts=self.reindex(labels).counts + other.reindex(labels).counts,
        )

    def one_vs_rest(self, label: Any) -> dict[str, int]:
        """TP/FN/FP/TN counts treating ``label`` as positive."""
        i = self.labels.index(label)
        tp = int(self.counts[i, i])
        fn = int(self.counts[i, :].sum()) - tp
        fp = int(self.counts[:, i].sum()) - tp
        tn = self.total - tp - fn - fp
        return {"tp": tp, "fn": fn, "fp": fp, "tn": tn}


def merge_confusion_matrices(
    matrices: Sequence[ConfusionMatrix], labels: Sequence | None = None
) -> ConfusionMatrix:
    """Sum confusion matrices over the union of their labels."""
    if labels is None:
        labels = sort_labels([lab for cm in matrices for lab in cm.labels])
    labels = tuple(labels)
    counts = np.zeros((len(labels), len(labels)), dtype=np.int64)
    for cm in matrices:
        counts += cm.reindex(labels).counts
    return ConfusionMatrix(labels=labels, counts=counts)


def confusion_matrix(
    observed: Sequence,
    predicted: Sequence,
    labels: Sequence | None = None,
) -> ConfusionMatrix:
    """
    Cross-tabulate observed against predicted labels.

    Args:
        observed: Observed labels
        predicted: Predicted labels aligned with ``observed``
        labels: Optional display order; must cover every label seen

    Returns:
        ConfusionMatrix whose cells sum to len(observed)

    Raises:
        ShapeMismatchError: On length mismatch, or if ``labels`` omits a seen label

    Examples:
        >>> cm = confusion_matrix(["A", "A", "B", "B"], ["A", "B", "B", "B"])
        >>> cm.to_dict()
        {('A', 'A'): 1, ('A', 'B'): 1, ('B', 'B'): 2}
    """
    obs = list(np.asarray(observed, dtype=object).ravel())
    pred = list(np.asarray(predicted, dtype=object).ravel())
    if len(obs) != len(pred):
        raise ShapeMismatchError(
            f"observed has {len(obs)} labels but predicted has {len(pred)}"
        )

    seen = sort_labels(obs + pred)
    if labels is None:
        order = seen
    else:
        order = list(dict.fromkeys(labels))
        missing = [lab for lab in seen if lab not in order]
        if missing:
            raise ShapeMismatchError(f"labels is missing observed/predicted label(s) {missing}")

    if not obs:
        counts = np.zeros((len(order), len(order)), dtype=np.int64)
    else:
        # Map onto integer codes so sklearn never has to compare mixed types
        code = {lab: i for i, lab in enumerate(order)}
        counts = _sk_confusion_matrix(
            [code[v] for v in obs],
            [code[v] for v in pred],
            labels=list(range(len(order))),
        )
    return ConfusionMatrix(labels=tuple(order), counts=counts)


# ============================================================================
# Metric bundle
# ============================================================================


@dataclass(frozen=True)
class MetricBundle:
    """
    Scalars derived from one confusion matrix (and optionally a score ranking).

    Attributes:
        accuracy: Fraction of correctly classified records
        sensitivity: Per-class true positive rate (one-vs-rest)
        specificity: Per-class true negative rate (one-vs-rest)
        n: Number of evaluated records
        auc: Area under the ROC curve, for binary score-valued predictions
    """

    accuracy: MetricValue
    sensitivity: dict[Any, MetricValue] = field(default_factory=dict)
    specificity: dict[Any, MetricValue] = field(default_factory=dict)
    n: int = 0
    auc: MetricValue | None = None

    @property
    def labels(self) -> list:
        return list(self.sensitivity)

    def undefined(self) -> list[UndefinedMetricError]:
        """All undefined-metric sentinels in this bundle."""
        values = [self.accuracy, self.auc]
        values += list(self.sensitivity.values()) + list(self.specificity.values())
        return [v for v in values if is_undefined(v)]

    def to_dict(self, undefined_as: Any = None) -> dict[str, Any]:
        """
        Flatten into a plain dict (e.g. for JSON or a DataFrame row).

        Args:
            undefined_as: Value substituted for undefined sentinels
        """

        def _v(x):
            return undefined_as if is_undefined(x) else x

        out: dict[str, Any] = {"n": self.n, "accuracy": _v(self.accuracy)}
        for lab, val in self.sensitivity.items():
            out[f"sensitivity[{lab}]"] = _v(val)
        for lab, val in self.specificity.items():
            out[f"specificity[{lab}]"] = _v(val)
        if self.auc is not None:
            out["auc"] = _v(self.auc)
        return out


def _ratio(num: int, denom: int, metric: str, label: Any = None) -> MetricValue:
    if denom == 0:
        sentinel = UndefinedMetricError(metric, label)
        warnings.warn(str(sentinel), UndefinedMetricWarning, stacklevel=3)
        return sentinel
    return num / denom


def metrics(cm: ConfusionMatrix, auc: MetricValue | None = None) -> MetricBundle:
    """
    Accuracy and one-vs-rest sensitivity/specificity from a confusion matrix.

    For each class c:
        sensitivity(c) = TP(c) / (TP(c) + FN(c))
        specificity(c) = TN(c) / (TN(c) + FP(c))

    Args:
        cm: Confusion matrix
        auc: Optional AUC value to carry in the bundle

    Returns:
        MetricBundle; zero denominators give UndefinedMetricError sentinels

    Warns:
        UndefinedMetricWarning for every undefined value

    Examples:
        >>> cm = confusion_matrix(["A", "A", "B", "B"], ["A", "B", "B", "B"])
        >>> metrics(cm).accuracy
        0.75
    """
    accuracy = _ratio(cm.n_correct, cm.total, "accuracy")
    sensitivity: dict[Any, MetricValue] = {}
    specificity: dict[Any, MetricValue] = {}
    for label in cm.labels:
        c = cm.one_vs_rest(label)
        sensitivity[label] = _ratio(c["tp"], c["tp"] + c["fn"], "sensitivity", label)
        specificity[label] = _ratio(c["tn"], c["tn"] + c["fp"], "specificity", label)
    return MetricBundle(
        accuracy=accuracy,
        sensitivity=sensitivity,
        specificity=specificity,
        n=cm.total,
        auc=auc,
    )


def mean_defined(values: Sequence[MetricValue], metric: str, label: Any = None) -> MetricValue:
    """Mean of the defined values; undefined if none are defined."""
    defined = [float(v) for v in values if v is not None and not is_undefined(v)]
    if not defined:
        sentinel = UndefinedMetricError(metric, label, reason="undefined in every fold")
        warnings.warn(str(sentinel), UndefinedMetricWarning, stacklevel=2)
        return sentinel
    return float(np.mean(defined))


def average_bundles(bundles: Sequence[MetricBundle]) -> MetricBundle:
    """
    Average metric bundles value by value ("macro" aggregation).

    Undefined values are skipped; a class metric undefined in every bundle
    stays undefined. ``n`` is the total number of records.
    """
    if not bundles:
        raise ShapeMismatchError("Cannot average an empty sequence of metric bundles")

    labels = sort_labels([lab for b in bundles for lab in b.labels])
    sensitivity = {
        lab: mean_defined(
            [b.sensitivity.get(lab) for b in bundles], "sensitivity", lab
        )
        for lab in labels
    }
    specificity = {
        lab: mean_defined(
            [b.specificity.get(lab) for b in bundles], "specificity", lab
        )
        for lab in labels
    }
    aucs = [b.auc for b in bundles if b.auc is not None]
    return MetricBundle(
        accuracy=mean_defined([b.accuracy for b in bundles], "accuracy"),
        sensitivity=sensitivity,
        specificity=specificity,
        n=int(sum(b.n for b in bundles)),
        auc=mean_defined(aucs, "auc") if aucs else None,
    )
