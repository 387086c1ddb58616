"""
K-fold cross-validation over any classifier capability.

Provides:
- Per-fold fit/predict/metrics through the fit/predict contract
- Strict (fail-fast) and best-effort (record failures, keep going) modes
- Optional per-call timeout and between-fold cancellation
- Parallel fold evaluation with joblib (folds share only the read-only dataset)
- "micro" (pooled confusion matrix) and "macro" (mean of fold metrics) aggregation
"""

import logging
import threading
import time
import warnings
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Literal

import numpy as np
import pandas as pd
from joblib import Parallel, delayed

from ml_harness.data.dataset import Dataset, sort_labels
from ml_harness.data.splits import FoldAssignment
from ml_harness.errors import (
    BinaryLabelError,
    ModelFittingError,
    ShapeMismatchError,
    UndefinedMetricError,
    UndefinedMetricWarning,
)
from ml_harness.evaluation.fold import (
    FitFn,
    FoldResult,
    OutputKind,
    PredictFn,
    ScoreSettings,
    check_partition,
    evaluate_fold,
    resolve_score_settings,
)
from ml_harness.metrics.confusion import (
    ConfusionMatrix,
    MetricBundle,
    average_bundles,
    merge_confusion_matrices,
    metrics,
)
from ml_harness.metrics.roc import auc as roc_auc
from ml_harness.models.registry import SEED_KEY
from ml_harness.utils.random import get_cv_seed

logger = logging.getLogger(__name__)

AGGREGATION_MODES = ("micro", "macro")
FAILURE_MODES = ("best_effort", "strict")

Aggregation = Literal["micro", "macro"]
FailureMode = Literal["best_effort", "strict"]


@dataclass(eq=False)
class CrossValidationResult:
    """
    Per-fold outcomes of one cross-validation run.

    Attributes:
        k: Number of folds
        folds: Successful fold results, ordered by fold index
        failures: Recorded fitting errors (best-effort mode), ordered by fold index
        skipped: Folds never started because the run was cancelled
        labels: Label order shared by all fold confusion matrices
        output: "label" or "score"
        score_settings: Positive/negative labels and threshold (score output)
        elapsed_sec: Wall time of the whole run
    """

    k: int
    folds: list[FoldResult] = field(default_factory=list)
    failures: list[ModelFittingError] = field(default_factory=list)
    skipped: list[int] = field(default_factory=list)
    labels: tuple = ()
    output: OutputKind = "label"
    score_settings: ScoreSettings | None = None
    elapsed_sec: float = 0.0

    @property
    def cancelled(self) -> bool:
        return bool(self.skipped)

    @property
    def n_succeeded(self) -> int:
        return len(self.folds)

    @property
    def n_failed(self) -> int:
        return len(self.failures)

    @property
    def failed_folds(self) -> list[int]:
        return [e.fold for e in self.failures]

    def fold_metrics(self) -> list[MetricBundle]:
        return [f.metrics for f in self.folds]

    def pooled_confusion(self) -> ConfusionMatrix:
        """Sum of every successful fold's confusion matrix."""
        self._require_folds()
        return merge_confusion_matrices([f.confusion for f in self.folds], labels=self.labels)

    def aggregate(self, mode: Aggregation = "micro") -> MetricBundle:
        """
        Combine fold results into one metric bundle.

        Args:
            mode: "micro" pools all fold predictions into one confusion matrix
                (and one score ranking for AUC); "macro" averages the per-fold
                metrics, skipping undefined values

        Raises:
            ValueError: If mode is unknown
            ModelFittingError: If no fold completed
        """
        if mode not in AGGREGATION_MODES:
            raise ValueError(f"Unknown aggregation mode: {mode!r} (expected {AGGREGATION_MODES})")
        self._require_folds()

        if mode == "macro":
            return average_bundles(self.fold_metrics())

        pooled_auc = None
        if self.output == "score":
            observed = np.concatenate([f.observed for f in self.folds])
            scores = np.concatenate([f.scores for f in self.folds])
            try:
                pooled_auc = roc_auc(
                    scores, observed, positive_label=self.score_settings.positive_label
                )
            except BinaryLabelError:
                pooled_auc = UndefinedMetricError(
                    "auc", reason="pooled records hold a single class"
                )
                warnings.warn(str(pooled_auc), UndefinedMetricWarning, stacklevel=2)
        return metrics(self.pooled_confusion(), auc=pooled_auc)

    def to_frame(self) -> pd.DataFrame:
        """One row per fold with sizes, status and flattened metrics."""
        rows = []
        for f in self.folds:
            row = {
                "fold": f.fold,
                "status": "ok",
                "n_train": f.n_train,
                "n_validation": f.n_validation,
                "elapsed_sec": f.elapsed_sec,
            }
            row.update(f.metrics.to_dict(undefined_as=np.nan))
            rows.append(row)
        for e in self.failures:
            rows.append({"fold": e.fold, "status": "failed", "error": str(e)})
        for fold in self.skipped:
            rows.append({"fold": fold, "status": "skipped"})
        if not rows:
            return pd.DataFrame(columns=["fold", "status"])
        return pd.DataFrame(rows).sort_values("fold").reset_index(drop=True)

    def predictions(self) -> pd.DataFrame:
        """Out-of-fold predictions, one row per validated record."""
        frames = []
        for f in self.folds:
            frame = pd.DataFrame(
                {
                    "index": f.validation_indices,
                    "fold": f.fold,
                    "observed": f.observed,
                    "predicted": f.predicted,
                }
            )
            if f.scores is not None:
                frame["score"] = f.scores
            frames.append(frame)
        if not frames:
            return pd.DataFrame(columns=["index", "fold", "observed", "predicted"])
        return pd.concat(frames, ignore_index=True).sort_values("index").reset_index(drop=True)

    def summary(self) -> str:
        text = f"{self.n_failed} of {self.k} folds failed"
        if self.skipped:
            text += f", {len(self.skipped)} skipped (cancelled)"
        return text

    def _require_folds(self):
        if not self.folds:
            raise ModelFittingError(
                "all", f"no fold completed successfully ({self.summary()})"
            )


def _run_fold(
    dataset: Dataset,
    fold: int,
    train_idx: np.ndarray,
    val_idx: np.ndarray,
    fit_fn: FitFn,
    predict_fn: PredictFn,
    hyperparameters: dict[str, Any],
    output: OutputKind,
    score_settings: ScoreSettings | None,
    timeout: float | None,
    mode: FailureMode,
    k: int,
) -> FoldResult | ModelFittingError:
    logger.info(
        f"Fold {fold + 1}/{k} start (train={train_idx.size}, validation={val_idx.size})"
    )
    try:
        result = evaluate_fold(
            dataset,
            fold,
            train_idx,
            val_idx,
            fit_fn,
            predict_fn,
            hyperparameters=hyperparameters,
            output=output,
            score_settings=score_settings,
            timeout=timeout,
        )
    except ModelFittingError as e:
        if mode == "strict":
            raise
        logger.warning(f"Fold {fold + 1}/{k} failed, continuing: {e}")
        return e
    logger.info(f"Fold {fold + 1}/{k} done in {result.elapsed_sec:.2f}s")
    return result


def cross_validate(
    dataset: Dataset,
    folds: FoldAssignment,
    fit_fn: FitFn,
    predict_fn: PredictFn,
    *,
    hyperparameters: Mapping[str, Any] | None = None,
    output: OutputKind = "label",
    threshold: float = 0.5,
    positive_label: Any = None,
    mode: FailureMode = "best_effort",
    seed: int | None = None,
    n_jobs: int = 1,
    backend: str = "threading",
    timeout: float | None = None,
    cancel_event: threading.Event | None = None,
) -> CrossValidationResult:
    """
    Run k-fold cross-validation of a classifier capability.

    For each fold f the model is trained on every record not in f and
    predicts the records in f. Folds are independent, so they may run in
    parallel; results are reduced afterwards.

    Args:
        dataset: Prepared dataset (read-only)
        folds: Fold assignment covering exactly ``len(dataset)`` records
        fit_fn: ``fit(records, labels, hyperparameters) -> handle``
        predict_fn: ``predict(handle, records) -> labels or scores``
        hyperparameters: Passed to every fit call
        output: "label" (hard labels) or "score" (binary positive-class scores)
        threshold: Score threshold; score >= threshold predicts the positive label
        positive_label: Positive class for score output (default: largest label)
        mode: "best_effort" records failing folds; "strict" raises the first failure
        seed: If given, fold f fits with ``random_state = seed + f``
        n_jobs: Parallel fold workers (1 = sequential)
        backend: joblib backend for n_jobs != 1 ("threading" or "loky")
        timeout: Optional seconds allowed for each fit and predict call
        cancel_event: Checked before each fold starts; once set, remaining
            folds are skipped

    Returns:
        CrossValidationResult

    Raises:
        ShapeMismatchError: If folds do not match the dataset size
        InvalidPartitionError: If any fold has an empty training or validation side
        BinaryLabelError: If score output is requested for a non-binary dataset
        ModelFittingError: In strict mode, on the first failing fold
    """
    if mode not in FAILURE_MODES:
        raise ValueError(f"Unknown mode: {mode!r} (expected {FAILURE_MODES})")
    if output not in ("label", "score"):
        raise ValueError(f"output must be 'label' or 'score', got {output!r}")
    if folds.n_records != len(dataset):
        raise ShapeMismatchError(
            f"fold assignment covers {folds.n_records} records but dataset has {len(dataset)}"
        )

    # Fail fast on degenerate folds before any model is fitted
    partitions = list(folds)
    for fold, train_idx, val_idx in partitions:
        check_partition(fold, train_idx, val_idx)

    score_settings = None
    if output == "score":
        score_settings = resolve_score_settings(dataset, positive_label, threshold)

    base_params = dict(hyperparameters or {})
    skipped: list[int] = []

    def _params(fold: int) -> dict[str, Any]:
        params = dict(base_params)
        if seed is not None:
            params[SEED_KEY] = get_cv_seed(seed, fold)
        return params

    def _tasks():
        for fold, train_idx, val_idx in partitions:
            if cancel_event is not None and cancel_event.is_set():
                skipped.append(fold)
                continue
            yield fold, (
                dataset,
                fold,
                train_idx,
                val_idx,
                fit_fn,
                predict_fn,
                _params(fold),
                output,
                score_settings,
                timeout,
                mode,
                folds.k,
            )

    t0 = time.perf_counter()
    if n_jobs == 1:
        outcomes = [_run_fold(*args) for _, args in _tasks()]
    else:
        outcomes = Parallel(n_jobs=n_jobs, backend=backend)(
            delayed(_run_fold)(*args) for _, args in _tasks()
        )
    elapsed = time.perf_counter() - t0

    if skipped:
        logger.warning(f"Cross-validation cancelled; skipped folds {skipped}")

    result = CrossValidationResult(
        k=folds.k,
        folds=[o for o in outcomes if isinstance(o, FoldResult)],
        failures=[o for o in outcomes if isinstance(o, ModelFittingError)],
        skipped=skipped,
        labels=tuple(dataset.classes),
        output=output,
        score_settings=score_settings,
        elapsed_sec=elapsed,
    )
    # Predicted labels outside the dataset's classes widen the shared label order
    extra = [lab for f in result.folds for lab in f.confusion.labels]
    result.labels = tuple(sort_labels(list(result.labels) + extra))

    logger.info(f"Cross-validation finished in {elapsed:.2f}s: {result.summary()}")
    return result
