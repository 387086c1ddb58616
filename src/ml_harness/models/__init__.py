"""Classifier capabilities consumed by the evaluation harness."""

from ml_harness.models.capability import ClassifierCapability, ModelHandle, SklearnClassifier
from ml_harness.models.registry import (
    VALID_MODELS,
    available_models,
    build_estimator,
    register_model,
)

__all__ = [
    "ClassifierCapability",
    "ModelHandle",
    "SklearnClassifier",
    "VALID_MODELS",
    "available_models",
    "build_estimator",
    "register_model",
]
