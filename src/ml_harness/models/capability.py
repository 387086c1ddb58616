"""
Classifier capability contract and its scikit-learn implementation.

The harness talks to a classifier only through two calls:

    fit(training_records, labels, hyperparameters) -> model handle
    predict(model handle, records) -> predictions

Predictions are hard class labels (``output="label"``) or, for binary
problems, continuous positive-class scores (``output="score"``). Any object
providing these two methods is interchangeable, which lets the same
evaluation code run CART, a random forest or an SVM unchanged.
"""

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Literal, Protocol, runtime_checkable

import numpy as np
import pandas as pd
from sklearn.base import BaseEstimator

from ml_harness.data.dataset import require_features, sort_labels
from ml_harness.errors import BinaryLabelError, ShapeMismatchError
from ml_harness.models.registry import build_estimator

logger = logging.getLogger(__name__)

OutputKind = Literal["label", "score"]


@runtime_checkable
class ClassifierCapability(Protocol):
    """Protocol for anything the harness can fit and predict with."""

    def fit(
        self,
        records: pd.DataFrame,
        labels: pd.Series,
        hyperparameters: Mapping[str, Any],
    ) -> Any:
        """Fit on training records and return an opaque model handle."""
        ...

    def predict(self, model: Any, records: pd.DataFrame) -> np.ndarray:
        """Predict labels or scores for ``records`` with a fitted handle."""
        ...


@dataclass(frozen=True)
class ModelHandle:
    """
    Result of one fit call; consumed only by ``predict``.

    Attributes:
        name: Registered model identifier
        estimator: Fitted sklearn estimator or pipeline
        feature_names: Feature order the estimator was fitted on
        classes: Class labels seen during fit
        hyperparameters: Hyperparameters used for the fit
    """

    name: str
    estimator: BaseEstimator
    feature_names: tuple[str, ...]
    classes: tuple
    hyperparameters: dict[str, Any] = field(default_factory=dict)


class SklearnClassifier:
    """
    Classifier capability backed by a registered scikit-learn estimator.

    Args:
        name: Registered model identifier (e.g. "lda", "svm_rbf", "random_forest")
        output: "label" for hard labels, "score" for positive-class scores
        positive_label: Positive class for score output (default: the
            largest label in sorted order, i.e. 1 for {0, 1})

    Examples:
        >>> clf = SklearnClassifier("lda")
        >>> handle = clf.fit(X_train, y_train, {})  # doctest: +SKIP
        >>> clf.predict(handle, X_val)  # doctest: +SKIP
    """

    def __init__(
        self,
        name: str,
        output: OutputKind = "label",
        positive_label: Any = None,
    ):
        if output not in ("label", "score"):
            raise ValueError(f"output must be 'label' or 'score', got {output!r}")
        self.name = name
        self.output = output
        self.positive_label = positive_label

    def __repr__(self) -> str:
        return f"SklearnClassifier(name={self.name!r}, output={self.output!r})"

    def fit(
        self,
        records: pd.DataFrame,
        labels: pd.Series,
        hyperparameters: Mapping[str, Any] | None = None,
    ) -> ModelHandle:
        """
        Fit a fresh estimator on ``records``/``labels``.

        Raises:
            ShapeMismatchError: If records and labels are misaligned
            BinaryLabelError: If score output is requested for non-binary labels
            ValueError: If the model name or a hyperparameter is invalid
        """
        if len(records) != len(labels):
            raise ShapeMismatchError(
                f"records has {len(records)} rows but labels has {len(labels)}"
            )
        classes = tuple(sort_labels(pd.Series(labels).unique().tolist()))
        if self.output == "score" and len(classes) != 2:
            raise BinaryLabelError(
                f"score output needs exactly two training classes, got {len(classes)}"
            )

        params = dict(hyperparameters or {})
        estimator = build_estimator(self.name, params)
        estimator.fit(records.to_numpy(dtype=float), np.asarray(labels))

        logger.debug(f"Fitted {self.name} on {len(records)} records, classes={classes}")
        return ModelHandle(
            name=self.name,
            estimator=estimator,
            feature_names=tuple(str(c) for c in records.columns),
            classes=classes,
            hyperparameters=params,
        )

    def predict(self, model: ModelHandle, records: pd.DataFrame) -> np.ndarray:
        """
        Predict hard labels or positive-class scores.

        Raises:
            ShapeMismatchError: If ``records`` lacks a fitted feature
        """
        X = require_features(records, model.feature_names).to_numpy(dtype=float)
        if self.output == "label":
            return np.asarray(model.estimator.predict(X))
        return self._scores(model, X)

    def _scores(self, model: ModelHandle, X: np.ndarray) -> np.ndarray:
        estimator = model.estimator
        est_classes = list(estimator.classes_)
        positive = self.positive_label if self.positive_label is not None else model.classes[-1]
        if positive not in est_classes:
            raise BinaryLabelError(
                f"positive_label {positive!r} not among fitted classes {est_classes}"
            )

        if hasattr(estimator, "predict_proba"):
            proba = estimator.predict_proba(X)
            return np.asarray(proba[:, est_classes.index(positive)], dtype=float)

        # decision_function is oriented towards classes_[1]
        decision = np.asarray(estimator.decision_function(X), dtype=float)
        return decision if est_classes.index(positive) == 1 else -decision
