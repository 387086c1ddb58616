"""
Tests for the estimator registry.
"""

import pytest
from sklearn.discriminant_analysis import (
    LinearDiscriminantAnalysis,
    QuadraticDiscriminantAnalysis,
)
from sklearn.ensemble import RandomForestClassifier
from sklearn.pipeline import Pipeline
from sklearn.svm import SVC
from sklearn.tree import DecisionTreeClassifier

from ml_harness.config.defaults import VALID_MODELS as CONFIG_VALID_MODELS
from ml_harness.models.registry import (
    VALID_MODELS,
    available_models,
    build_estimator,
    register_model,
)


class TestBuildEstimator:
    def test_lda(self):
        assert isinstance(build_estimator("lda"), LinearDiscriminantAnalysis)

    def test_lda_shrinkage_switches_solver(self):
        clf = build_estimator("lda", {"shrinkage": "auto"})
        assert clf.solver == "lsqr"

    def test_rda_is_regularized_qda(self):
        clf = build_estimator("rda")
        assert isinstance(clf, QuadraticDiscriminantAnalysis)
        assert clf.reg_param == 0.5
        assert build_estimator("rda", {"reg_param": 0.1}).reg_param == 0.1

    @pytest.mark.parametrize(
        "name,kernel", [("svm_linear", "linear"), ("svm_rbf", "rbf"), ("svm_poly", "poly")]
    )
    def test_svm_kernels(self, name, kernel):
        clf = build_estimator(name, {"C": 2.0})
        assert isinstance(clf, SVC)
        assert clf.kernel == kernel
        assert clf.C == 2.0

    def test_cart(self):
        clf = build_estimator("cart", {"max_depth": 3})
        assert isinstance(clf, DecisionTreeClassifier)
        assert clf.max_depth == 3

    def test_random_forest_defaults(self):
        clf = build_estimator("random_forest")
        assert isinstance(clf, RandomForestClassifier)
        assert clf.n_estimators == 500

    def test_random_state_applied(self):
        clf = build_estimator("random_forest", {"random_state": 7, "n_estimators": 10})
        assert clf.random_state == 7

    def test_random_state_ignored_when_unsupported(self):
        clf = build_estimator("lda", {"random_state": 7})
        assert "random_state" not in clf.get_params()

    def test_pca_pipeline(self):
        est = build_estimator("qda", {"pca_components": 2, "random_state": 1})
        assert isinstance(est, Pipeline)
        assert est.named_steps["pca"].n_components == 2
        assert isinstance(est.named_steps["clf"], QuadraticDiscriminantAnalysis)

    def test_unknown_model(self):
        with pytest.raises(ValueError, match="Unknown model"):
            build_estimator("xgboost")

    def test_bad_hyperparameter(self):
        with pytest.raises(ValueError, match="Invalid hyperparameters"):
            build_estimator("cart", {"not_a_param": 1})

    def test_hyperparameters_not_mutated(self):
        params = {"pca_components": 2, "random_state": 3}
        build_estimator("lda", params)
        assert params == {"pca_components": 2, "random_state": 3}


class TestRegistry:
    def test_config_defaults_match_registry(self):
        assert sorted(CONFIG_VALID_MODELS) == VALID_MODELS

    def test_register_custom(self):
        register_model("stump_test", lambda **p: DecisionTreeClassifier(max_depth=1, **p))
        assert "stump_test" in available_models()
        assert build_estimator("stump_test").max_depth == 1
        with pytest.raises(ValueError, match="already registered"):
            register_model("stump_test", DecisionTreeClassifier)
