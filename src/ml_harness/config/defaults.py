"""
Default configuration values.

Single source of truth for the loader; the Pydantic schema declares the
same defaults.
"""

from typing import Any

# Valid model names (see models.registry)
VALID_MODELS = [
    "adaboost",
    "cart",
    "gradient_boosting",
    "lda",
    "logistic",
    "qda",
    "random_forest",
    "rda",
    "svm_linear",
    "svm_poly",
    "svm_rbf",
]

DEFAULT_DATA_CONFIG: dict[str, Any] = {
    "label_col": "label",
    "feature_cols": None,
    "positive_label": None,
}

DEFAULT_PREPARE_CONFIG: dict[str, Any] = {
    "imputation": "mean",
    "scaling": "none",
    "feature_selection": "none",
    "alpha": 0.05,
    "top_n": 0,
}

DEFAULT_SPLIT_CONFIG: dict[str, Any] = {
    "strategy": "alternating",
    "k": None,
    "seed": None,
    "parity": 0,
    "remainder": 0,
    "validation_fraction": 0.5,
}

DEFAULT_CV_CONFIG: dict[str, Any] = {
    "folds": 5,
    "seed": 0,
    "stratified": False,
    "leave_one_out": False,
    "aggregation": "micro",
    "mode": "best_effort",
    "n_jobs": 1,
    "backend": "threading",
    "timeout": None,
    "fit_seed": None,
}

DEFAULT_MODEL_CONFIG: dict[str, Any] = {
    "name": "lda",
    "output": "label",
    "threshold": 0.5,
    "hyperparameters": {},
}

DEFAULT_LOGGING_CONFIG: dict[str, Any] = {
    "level": "INFO",
    "log_file": None,
}

DEFAULT_STRICTNESS_CONFIG: dict[str, Any] = {
    "level": "warn",
}
