"""Train/validate and cross-validation evaluation of classifier capabilities."""

from ml_harness.evaluation.cross_validation import (
    AGGREGATION_MODES,
    FAILURE_MODES,
    CrossValidationResult,
    cross_validate,
)
from ml_harness.evaluation.fold import FoldResult, ScoreSettings, evaluate_fold
from ml_harness.evaluation.holdout import evaluate_split
from ml_harness.evaluation.runner import (
    EvaluationRun,
    build_folds,
    build_split,
    configure_logging,
    run_evaluation,
)

__all__ = [
    "AGGREGATION_MODES",
    "FAILURE_MODES",
    "CrossValidationResult",
    "FoldResult",
    "ScoreSettings",
    "cross_validate",
    "evaluate_fold",
    "evaluate_split",
    "EvaluationRun",
    "build_folds",
    "configure_logging",
    "build_split",
    "run_evaluation",
]
