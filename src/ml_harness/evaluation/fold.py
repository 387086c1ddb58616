"""
Single train/validate evaluation unit shared by cross-validation and holdout.

One call fits at most one model on the training indices, predicts the
validation indices and derives a confusion matrix and metric bundle. Any
failure inside the external fit/predict calls (including a timeout) is
re-raised as ``ModelFittingError`` tagged with the fold identifier.
"""

import logging
import time
import warnings
from collections.abc import Callable, Mapping, Sequence
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FuturesTimeoutError
from dataclasses import dataclass
from typing import Any, Literal

import numpy as np
import pandas as pd

from ml_harness.data.dataset import Dataset, sort_labels
from ml_harness.errors import (
    BinaryLabelError,
    InvalidPartitionError,
    ModelFittingError,
    UndefinedMetricError,
    UndefinedMetricWarning,
)
from ml_harness.metrics.confusion import ConfusionMatrix, MetricBundle, confusion_matrix, metrics
from ml_harness.metrics.roc import auc as roc_auc

logger = logging.getLogger(__name__)

FitFn = Callable[[pd.DataFrame, pd.Series, Mapping[str, Any]], Any]
PredictFn = Callable[[Any, pd.DataFrame], Sequence]
OutputKind = Literal["label", "score"]


@dataclass(frozen=True, eq=False)
class FoldResult:
    """
    Outcome of one successful fold (or train/validate split).

    Attributes:
        fold: Fold index, or a split identifier such as "validation"
        train_indices: Record indices the model was fitted on
        validation_indices: Record indices that were predicted
        observed: Observed labels of the validation records
        predicted: Hard predicted labels
        scores: Continuous scores (score output only)
        confusion: Confusion matrix over the dataset's label set
        metrics: Metric bundle derived from ``confusion`` (plus AUC for scores)
        elapsed_sec: Wall time of fit + predict
    """

    fold: int | str
    train_indices: np.ndarray
    validation_indices: np.ndarray
    observed: np.ndarray
    predicted: np.ndarray
    scores: np.ndarray | None
    confusion: ConfusionMatrix
    metrics: MetricBundle
    elapsed_sec: float

    @property
    def n_train(self) -> int:
        return int(self.train_indices.size)

    @property
    def n_validation(self) -> int:
        return int(self.validation_indices.size)


@dataclass(frozen=True)
class ScoreSettings:
    """How continuous scores are turned into labels for one evaluation."""

    positive_label: Any
    negative_label: Any
    threshold: float = 0.5


def resolve_score_settings(
    dataset: Dataset, positive_label: Any = None, threshold: float = 0.5
) -> ScoreSettings:
    """
    Pick positive/negative labels for score output.

    Raises:
        BinaryLabelError: If the dataset is not binary or positive_label is unknown
    """
    classes = dataset.classes
    if len(classes) != 2:
        raise BinaryLabelError(
            f"score output needs a binary dataset, got {len(classes)} classes: {classes}"
        )
    positive = classes[-1] if positive_label is None else positive_label
    if positive not in classes:
        raise BinaryLabelError(f"positive_label {positive!r} not among classes {classes}")
    negative = classes[0] if positive == classes[1] else classes[1]
    return ScoreSettings(positive_label=positive, negative_label=negative, threshold=threshold)


def check_partition(fold: int | str, train_idx: np.ndarray, val_idx: np.ndarray) -> None:
    """Reject a fold with an empty side before any model is fitted."""
    if train_idx.size == 0 or val_idx.size == 0:
        raise InvalidPartitionError(
            f"fold {fold} has {train_idx.size} training and {val_idx.size} validation "
            "records; both must be non-empty"
        )


def call_with_timeout(fn: Callable, args: tuple, timeout: float | None, fold, what: str):
    """
    Run ``fn(*args)``, giving up after ``timeout`` seconds.

    The abandoned call keeps running in its worker thread; only the result
    is discarded.

    Raises:
        ModelFittingError: On timeout
    """
    if timeout is None:
        return fn(*args)
    executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix=f"ml_harness-{what}")
    future = executor.submit(fn, *args)
    try:
        return future.result(timeout=timeout)
    except FuturesTimeoutError as e:
        raise ModelFittingError(fold, f"{what} timed out after {timeout}s", cause=e) from e
    finally:
        executor.shutdown(wait=False, cancel_futures=True)


def _guarded(fn: Callable, args: tuple, timeout: float | None, fold, what: str):
    try:
        return call_with_timeout(fn, args, timeout, fold, what)
    except ModelFittingError:
        raise
    except Exception as e:
        raise ModelFittingError(fold, f"{what} failed: {type(e).__name__}: {e}", cause=e) from e


def _fold_auc(observed: np.ndarray, scores: np.ndarray, settings: ScoreSettings, fold):
    try:
        return roc_auc(scores, observed, positive_label=settings.positive_label)
    except BinaryLabelError:
        sentinel = UndefinedMetricError(
            "auc", reason=f"fold {fold} validation records hold a single class"
        )
        warnings.warn(str(sentinel), UndefinedMetricWarning, stacklevel=2)
        return sentinel


def evaluate_fold(
    dataset: Dataset,
    fold: int | str,
    train_idx: np.ndarray,
    val_idx: np.ndarray,
    fit_fn: FitFn,
    predict_fn: PredictFn,
    hyperparameters: Mapping[str, Any] | None = None,
    output: OutputKind = "label",
    score_settings: ScoreSettings | None = None,
    timeout: float | None = None,
) -> FoldResult:
    """
    Fit on ``train_idx``, predict ``val_idx`` and compute metrics.

    Args:
        dataset: Prepared dataset (read-only)
        fold: Fold identifier used in logs and errors
        train_idx: Training record indices
        val_idx: Validation record indices
        fit_fn: ``fit(records, labels, hyperparameters) -> handle``
        predict_fn: ``predict(handle, records) -> predictions``
        hyperparameters: Passed unchanged to ``fit_fn``
        output: "label" or "score"
        score_settings: Positive/negative labels and threshold (score output)
        timeout: Optional seconds allowed for each of fit and predict

    Returns:
        FoldResult

    Raises:
        InvalidPartitionError: If either side of the fold is empty
        ModelFittingError: If fit/predict fails, times out, or returns
            predictions of the wrong length
    """
    train_idx = np.asarray(train_idx, dtype=int)
    val_idx = np.asarray(val_idx, dtype=int)
    check_partition(fold, train_idx, val_idx)
    if output == "score" and score_settings is None:
        score_settings = resolve_score_settings(dataset)

    X_train, y_train = dataset.subset(train_idx)
    X_val, y_val = dataset.subset(val_idx)
    params = dict(hyperparameters or {})

    t0 = time.perf_counter()
    model = _guarded(fit_fn, (X_train, y_train, params), timeout, fold, "fit")
    raw = _guarded(predict_fn, (model, X_val), timeout, fold, "predict")
    elapsed = time.perf_counter() - t0

    raw = np.asarray(raw).ravel()
    if raw.size != val_idx.size:
        raise ModelFittingError(
            fold, f"predict returned {raw.size} predictions for {val_idx.size} records"
        )

    observed = y_val.to_numpy()
    scores = None
    fold_auc = None
    if output == "score":
        try:
            scores = raw.astype(float)
        except (TypeError, ValueError) as e:
            raise ModelFittingError(fold, "predict returned non-numeric scores", cause=e) from e
        if not np.all(np.isfinite(scores)):
            raise ModelFittingError(fold, "predict returned NaN or infinite scores")
        predicted = np.where(
            scores >= score_settings.threshold,
            score_settings.positive_label,
            score_settings.negative_label,
        )
        predicted = np.asarray(predicted, dtype=object)
        fold_auc = _fold_auc(observed, scores, score_settings, fold)
    else:
        predicted = raw

    labels = sort_labels(dataset.classes + list(pd.unique(predicted)))
    cm = confusion_matrix(observed, predicted, labels=labels)
    bundle = metrics(cm, auc=fold_auc)

    return FoldResult(
        fold=fold,
        train_indices=train_idx,
        validation_indices=val_idx,
        observed=observed,
        predicted=predicted,
        scores=scores,
        confusion=cm,
        metrics=bundle,
        elapsed_sec=elapsed,
    )
