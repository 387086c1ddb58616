"""
Single train/validate evaluation.

The most common evaluation: fit on one partition (e.g. the even
records), predict the other, and report the confusion-matrix metrics.
"""

import logging
from collections.abc import Mapping
from typing import Any

from ml_harness.data.dataset import Dataset
from ml_harness.data.splits import Split
from ml_harness.errors import ShapeMismatchError
from ml_harness.evaluation.fold import (
    FitFn,
    FoldResult,
    OutputKind,
    PredictFn,
    evaluate_fold,
    resolve_score_settings,
)
from ml_harness.models.registry import SEED_KEY

logger = logging.getLogger(__name__)

SPLIT_ID = "validation"


def evaluate_split(
    dataset: Dataset,
    split: Split,
    fit_fn: FitFn,
    predict_fn: PredictFn,
    *,
    hyperparameters: Mapping[str, Any] | None = None,
    output: OutputKind = "label",
    threshold: float = 0.5,
    positive_label: Any = None,
    seed: int | None = None,
    timeout: float | None = None,
) -> FoldResult:
    """
    Fit on ``split.train`` and evaluate on ``split.validation``.

    Args:
        dataset: Prepared dataset
        split: Training/validation partition of ``dataset``
        fit_fn: ``fit(records, labels, hyperparameters) -> handle``
        predict_fn: ``predict(handle, records) -> labels or scores``
        hyperparameters: Passed to the fit call
        output: "label" or "score"
        threshold: Score threshold for score output
        positive_label: Positive class for score output
        seed: If given, passed to the fit as ``random_state``
        timeout: Optional seconds allowed for each of fit and predict

    Returns:
        FoldResult with ``fold == "validation"``

    Raises:
        ShapeMismatchError: If the split does not match the dataset size
        InvalidPartitionError: If either side of the split is empty
        ModelFittingError: If fit/predict fails (never swallowed here)
    """
    if split.n_records != len(dataset):
        raise ShapeMismatchError(
            f"split covers {split.n_records} records but dataset has {len(dataset)}"
        )
    if output not in ("label", "score"):
        raise ValueError(f"output must be 'label' or 'score', got {output!r}")

    score_settings = None
    if output == "score":
        score_settings = resolve_score_settings(dataset, positive_label, threshold)

    params = dict(hyperparameters or {})
    if seed is not None:
        params[SEED_KEY] = int(seed)

    result = evaluate_fold(
        dataset,
        SPLIT_ID,
        split.train,
        split.validation,
        fit_fn,
        predict_fn,
        hyperparameters=params,
        output=output,
        score_settings=score_settings,
        timeout=timeout,
    )
    logger.info(
        f"Holdout evaluation: train={result.n_train}, validation={result.n_validation}, "
        f"accuracy={result.metrics.accuracy}"
    )
    return result
