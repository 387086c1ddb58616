"""Estimator registry for sklearn-backed classifier capabilities.

This module provides:
- Builders for the standard classifiers (discriminant analysis, SVM,
  trees and tree ensembles, logistic regression)
- An explicit, namespaced name -> builder registry (no lookup by whichever
  library happens to be imported last)
- Optional PCA pre-step for any classifier via ``pca_components``

RDA (regularized discriminant analysis) is expressed as QDA with covariance
shrinkage ``reg_param``; ``reg_param=0`` is plain QDA and larger values pull
each class covariance towards the identity.
"""

import logging
from collections.abc import Callable, Mapping
from typing import Any

from sklearn.base import BaseEstimator
from sklearn.decomposition import PCA
from sklearn.discriminant_analysis import (
    LinearDiscriminantAnalysis,
    QuadraticDiscriminantAnalysis,
)
from sklearn.ensemble import (
    AdaBoostClassifier,
    GradientBoostingClassifier,
    RandomForestClassifier,
)
from sklearn.linear_model import LogisticRegression
from sklearn.pipeline import Pipeline
from sklearn.svm import SVC
from sklearn.tree import DecisionTreeClassifier

logger = logging.getLogger(__name__)

# Hyperparameter keys consumed by the registry itself, not by the estimator
PCA_KEY = "pca_components"
SEED_KEY = "random_state"


# ----------------------------
# Builders
# ----------------------------
def build_lda(**params) -> BaseEstimator:
    """Linear discriminant analysis (shared covariance)."""
    if params.get("shrinkage") is not None and "solver" not in params:
        params["solver"] = "lsqr"
    return LinearDiscriminantAnalysis(**params)


def build_qda(**params) -> BaseEstimator:
    """Quadratic discriminant analysis (per-class covariance)."""
    return QuadraticDiscriminantAnalysis(**params)


def build_rda(**params) -> BaseEstimator:
    """Regularized discriminant analysis: QDA with covariance shrinkage."""
    params.setdefault("reg_param", 0.5)
    return QuadraticDiscriminantAnalysis(**params)


def build_svm_linear(**params) -> BaseEstimator:
    """Support vector classifier, linear kernel."""
    return SVC(kernel="linear", **params)


def build_svm_rbf(**params) -> BaseEstimator:
    """Support vector classifier, radial basis kernel."""
    return SVC(kernel="rbf", **params)


def build_svm_poly(**params) -> BaseEstimator:
    """Support vector classifier, polynomial kernel."""
    params.setdefault("degree", 3)
    return SVC(kernel="poly", **params)


def build_cart(**params) -> BaseEstimator:
    """Single classification tree (CART)."""
    return DecisionTreeClassifier(**params)


def build_random_forest(**params) -> BaseEstimator:
    params.setdefault("n_estimators", 500)
    return RandomForestClassifier(**params)


def build_adaboost(**params) -> BaseEstimator:
    return AdaBoostClassifier(**params)


def build_gradient_boosting(**params) -> BaseEstimator:
    return GradientBoostingClassifier(**params)


def build_logistic(**params) -> BaseEstimator:
    params.setdefault("max_iter", 1000)
    return LogisticRegression(**params)


_BUILDERS: dict[str, Callable[..., BaseEstimator]] = {
    "lda": build_lda,
    "qda": build_qda,
    "rda": build_rda,
    "svm_linear": build_svm_linear,
    "svm_rbf": build_svm_rbf,
    "svm_poly": build_svm_poly,
    "cart": build_cart,
    "random_forest": build_random_forest,
    "adaboost": build_adaboost,
    "gradient_boosting": build_gradient_boosting,
    "logistic": build_logistic,
}

VALID_MODELS = sorted(_BUILDERS)


def register_model(
    name: str, builder: Callable[..., BaseEstimator], overwrite: bool = False
) -> None:
    """
    Register an additional estimator builder.

    Raises:
        ValueError: If ``name`` is taken and ``overwrite`` is False
    """
    if name in _BUILDERS and not overwrite:
        raise ValueError(f"Model '{name}' already registered")
    _BUILDERS[name] = builder


def available_models() -> list[str]:
    return sorted(_BUILDERS)


def _accepts_random_state(estimator: BaseEstimator) -> bool:
    return SEED_KEY in estimator.get_params(deep=False)


def build_estimator(
    model_name: str,
    hyperparameters: Mapping[str, Any] | None = None,
) -> BaseEstimator:
    """Build an unfitted estimator (a Pipeline when a PCA step is requested).

    Args:
        model_name: Registered model identifier (see ``available_models``)
        hyperparameters: Estimator keyword arguments, plus the optional
            registry keys ``pca_components`` and ``random_state``

    Returns:
        sklearn-compatible estimator

    Raises:
        ValueError: If model_name is unknown or a hyperparameter is not
            accepted by the estimator
    """
    try:
        builder = _BUILDERS[model_name]
    except KeyError:
        raise ValueError(
            f"Unknown model: {model_name} (available: {available_models()})"
        ) from None

    params = dict(hyperparameters or {})
    n_components = params.pop(PCA_KEY, None)
    random_state = params.pop(SEED_KEY, None)

    try:
        clf = builder(**params)
    except TypeError as e:
        raise ValueError(f"Invalid hyperparameters for {model_name}: {e}") from e

    if random_state is not None:
        if _accepts_random_state(clf):
            clf.set_params(random_state=int(random_state))
        else:
            logger.debug(f"{model_name} is deterministic; ignoring random_state")

    if n_components is None:
        return clf

    pca = PCA(n_components=n_components)
    if random_state is not None:
        pca.set_params(random_state=int(random_state))
    return Pipeline([("pca", pca), ("clf", clf)])
