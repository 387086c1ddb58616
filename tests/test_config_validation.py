"""
Tests for cross-field configuration checks.
"""

import pytest

from ml_harness.config.schema import HarnessConfig
from ml_harness.config.validation import (
    ConfigValidationError,
    ConfigValidationWarning,
    validate_harness_config,
)


def _config(**sections) -> HarnessConfig:
    return HarnessConfig(**sections)


class TestNames:
    def test_unknown_model_always_raises(self):
        cfg = _config(model={"name": "xgboost"}, strictness={"level": "off"})
        with pytest.raises(ConfigValidationError, match="Unknown model"):
            validate_harness_config(cfg)

    def test_unknown_imputation_always_raises(self):
        cfg = _config(prepare={"imputation": "knn"}, strictness={"level": "off"})
        with pytest.raises(ConfigValidationError, match="imputation"):
            validate_harness_config(cfg)


class TestIssues:
    def test_clean_config(self):
        assert validate_harness_config(HarnessConfig()) == []

    def test_loo_with_macro_warns(self):
        cfg = _config(cv={"leave_one_out": True, "aggregation": "macro"})
        with pytest.warns(ConfigValidationWarning, match="leave-one-out"):
            issues = validate_harness_config(cfg)
        assert len(issues) == 1

    def test_loo_with_stratified(self):
        cfg = _config(cv={"leave_one_out": True, "stratified": True}, strictness={"level": "off"})
        issues = validate_harness_config(cfg)
        assert any("stratified" in i for i in issues)

    def test_svm_decision_threshold(self):
        cfg = _config(
            model={"name": "svm_rbf", "output": "score"}, strictness={"level": "off"}
        )
        issues = validate_harness_config(cfg)
        assert any("decision" in i for i in issues)

    def test_svm_with_probability_is_fine(self):
        cfg = _config(
            model={
                "name": "svm_rbf",
                "output": "score",
                "hyperparameters": {"probability": True},
            }
        )
        assert validate_harness_config(cfg) == []

    def test_holdout_with_parallel_jobs(self):
        cfg = _config(evaluation="holdout", cv={"n_jobs": 2}, strictness={"level": "off"})
        assert validate_harness_config(cfg) == ["cv.n_jobs has no effect for evaluation='holdout'."]

    def test_error_strictness_raises(self):
        cfg = _config(
            cv={"leave_one_out": True, "aggregation": "macro"}, strictness={"level": "error"}
        )
        with pytest.raises(ConfigValidationError, match="Harness configuration issues"):
            validate_harness_config(cfg)
