"""
Configuration validation and consistency checks.

Schema-level constraints live in ``config.schema``; this module checks
combinations that are legal individually but almost certainly unintended.
"""

import logging
import warnings

from ml_harness.config.schema import HarnessConfig
from ml_harness.data.prepare import available_imputers
from ml_harness.models.registry import available_models

logger = logging.getLogger(__name__)


class ConfigValidationError(Exception):
    """Raised when configuration validation fails in strict mode."""

    pass


class ConfigValidationWarning(UserWarning):
    """Warning for potential configuration issues."""

    pass


def validate_harness_config(config: HarnessConfig, check_model: bool = True) -> list[str]:
    """
    Check a harness configuration for inconsistent settings.

    Unknown model or imputation names are always errors; everything else is
    reported according to ``config.strictness.level``.

    Args:
        config: HarnessConfig instance
        check_model: Require ``model.name`` to be registered. Pass False when
            a custom capability replaces the registry model.

    Returns:
        List of issue messages (empty if none)

    Raises:
        ConfigValidationError: For unknown names, or any issue when strictness is "error"
    """
    if check_model and config.model.name not in available_models():
        raise ConfigValidationError(
            f"Unknown model '{config.model.name}' (available: {available_models()})"
        )
    if config.prepare.imputation not in available_imputers():
        raise ConfigValidationError(
            f"Unknown imputation strategy '{config.prepare.imputation}' "
            f"(available: {available_imputers()})"
        )

    issues = []

    if config.cv.leave_one_out and config.cv.stratified:
        issues.append("cv.leave_one_out=True ignores cv.stratified (every fold holds one record).")

    if config.cv.leave_one_out and config.cv.aggregation == "macro":
        issues.append(
            "cv.aggregation='macro' with leave-one-out averages single-record folds; "
            "most per-class metrics will be undefined. Use 'micro'."
        )

    is_svm = config.model.name.startswith("svm_")
    if (
        config.model.output == "score"
        and is_svm
        and not config.model.hyperparameters.get("probability", False)
        and config.model.threshold != 0.0
    ):
        issues.append(
            f"{config.model.name} without probability=True scores with the decision "
            f"function (centred on 0); threshold={config.model.threshold} may be unintended."
        )

    if config.evaluation == "holdout" and config.cv.n_jobs != 1:
        issues.append("cv.n_jobs has no effect for evaluation='holdout'.")

    _handle_issues(issues, config.strictness.level, "Harness configuration")
    return issues


def _handle_issues(issues: list[str], strictness: str, context: str):
    """
    Handle validation issues based on strictness level.

    Args:
        issues: List of issue messages
        strictness: "off", "warn", or "error"
        context: Context string for error messages
    """
    if not issues:
        return

    message = f"{context} issues:\n" + "\n".join(f"  - {i}" for i in issues)

    if strictness == "error":
        raise ConfigValidationError(message)
    elif strictness == "warn":
        warnings.warn(message, ConfigValidationWarning, stacklevel=3)
        logger.warning(message)
