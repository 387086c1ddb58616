"""
Config-driven evaluation: prepare -> partition -> fit/predict -> metrics.

This is the glue an application (or notebook) calls with a raw frame and a
HarnessConfig. It wires the registered sklearn capability into the harness
but accepts any ``ClassifierCapability`` in its place.
"""

import logging
import threading
from dataclasses import dataclass

import pandas as pd

from ml_harness.config.schema import CVConfig, HarnessConfig, SplitConfig
from ml_harness.config.validation import validate_harness_config
from ml_harness.data.dataset import Dataset
from ml_harness.data.prepare import prepare
from ml_harness.data.splits import (
    FoldAssignment,
    Split,
    make_folds,
    make_stratified_folds,
    split,
)
from ml_harness.evaluation.cross_validation import CrossValidationResult, cross_validate
from ml_harness.evaluation.fold import FoldResult
from ml_harness.evaluation.holdout import evaluate_split
from ml_harness.metrics.confusion import MetricBundle
from ml_harness.models.capability import ClassifierCapability, SklearnClassifier
from ml_harness.utils.logging import log_section, setup_logger

logger = logging.getLogger(__name__)


@dataclass(eq=False)
class EvaluationRun:
    """
    Everything produced by one config-driven evaluation.

    Attributes:
        config: Configuration used
        dataset: Prepared dataset
        metrics: Headline metric bundle (aggregated for cross-validation)
        cv: Cross-validation result (evaluation="cross_validation")
        holdout: Holdout result (evaluation="holdout")
    """

    config: HarnessConfig
    dataset: Dataset
    metrics: MetricBundle
    cv: CrossValidationResult | None = None
    holdout: FoldResult | None = None


def build_split(n: int, config: SplitConfig) -> Split:
    """Train/validation split from a SplitConfig."""
    return split(
        n,
        config.strategy,
        k=config.k,
        seed=config.seed,
        parity=config.parity,
        remainder=config.remainder,
        validation_fraction=config.validation_fraction,
    )


def build_folds(dataset: Dataset, config: CVConfig) -> FoldAssignment:
    """Fold assignment from a CVConfig (leave-one-out uses k = n)."""
    n = len(dataset)
    if config.leave_one_out:
        return make_folds(n, n, config.seed)
    if config.stratified:
        return make_stratified_folds(dataset.labels, config.folds, config.seed)
    return make_folds(n, config.folds, config.seed)


def configure_logging(config: HarnessConfig) -> logging.Logger:
    """Attach console (and optional file) handlers to the ``ml_harness`` logger."""
    return setup_logger(
        "ml_harness", level=config.logging.level, log_file=config.logging.log_file
    )


def build_capability(config: HarnessConfig) -> SklearnClassifier:
    return SklearnClassifier(
        config.model.name,
        output=config.model.output,
        positive_label=config.data.positive_label,
    )


def run_evaluation(
    data: pd.DataFrame | Dataset,
    config: HarnessConfig,
    capability: ClassifierCapability | None = None,
    cancel_event: threading.Event | None = None,
) -> EvaluationRun:
    """
    Run the evaluation described by ``config``.

    Args:
        data: Raw frame (prepared with ``config.prepare``) or an already prepared Dataset
        config: Harness configuration
        capability: Classifier capability (default: registry model ``config.model.name``)
        cancel_event: Optional cancellation signal for cross-validation

    Returns:
        EvaluationRun

    Raises:
        ConfigValidationError: On unknown model/imputation names or strict-mode issues
        HarnessError: Partition, shape and (strict mode) fitting errors
    """
    validate_harness_config(config, check_model=capability is None)
    if capability is None:
        capability = build_capability(config)

    if isinstance(data, Dataset):
        dataset = data
    else:
        dataset = prepare(data, config.prepare, config.data)

    log_section(logger, f"Evaluating {config.model.name} ({config.evaluation})")
    logger.info(
        f"Dataset: {len(dataset)} records, {dataset.n_features} features, "
        f"classes={dataset.class_counts().to_dict()}"
    )

    if config.evaluation == "holdout":
        the_split = build_split(len(dataset), config.split)
        result = evaluate_split(
            dataset,
            the_split,
            capability.fit,
            capability.predict,
            hyperparameters=config.model.hyperparameters,
            output=config.model.output,
            threshold=config.model.threshold,
            positive_label=config.data.positive_label,
            seed=config.cv.fit_seed,
            timeout=config.cv.timeout,
        )
        return EvaluationRun(
            config=config, dataset=dataset, metrics=result.metrics, holdout=result
        )

    folds = build_folds(dataset, config.cv)
    cv_result = cross_validate(
        dataset,
        folds,
        capability.fit,
        capability.predict,
        hyperparameters=config.model.hyperparameters,
        output=config.model.output,
        threshold=config.model.threshold,
        positive_label=config.data.positive_label,
        mode=config.cv.mode,
        seed=config.cv.fit_seed,
        n_jobs=config.cv.n_jobs,
        backend=config.cv.backend,
        timeout=config.cv.timeout,
        cancel_event=cancel_event,
    )
    if cv_result.n_failed:
        logger.warning(cv_result.summary())
    return EvaluationRun(
        config=config,
        dataset=dataset,
        metrics=cv_result.aggregate(config.cv.aggregation),
        cv=cv_result,
    )
