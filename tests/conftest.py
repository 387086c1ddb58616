"""
Shared pytest fixtures for ml-harness tests.
"""

import numpy as np
import pandas as pd
import pytest

from ml_harness.data.dataset import Dataset


class MajorityClassifier:
    """
    Minimal capability: always predicts the most frequent training label.

    Records every fit call so tests can inspect what the harness passed in.
    """

    def __init__(self):
        self.fit_calls = []

    def fit(self, records, labels, hyperparameters):
        self.fit_calls.append(
            {
                "index": records.index.tolist(),
                "n": len(records),
                "hyperparameters": dict(hyperparameters),
            }
        )
        return labels.value_counts().sort_index().idxmax()

    def predict(self, model, records):
        return np.full(len(records), model, dtype=object)


class ThresholdScorer:
    """Scores each record by its first feature (higher = more positive)."""

    def fit(self, records, labels, hyperparameters):
        return records.columns[0]

    def predict(self, model, records):
        return records[model].to_numpy(dtype=float)


@pytest.fixture
def majority():
    return MajorityClassifier()


@pytest.fixture
def scorer():
    return ThresholdScorer()


@pytest.fixture
def binary_dataset():
    """40 records, two informative features, balanced 0/1 labels."""
    rng = np.random.default_rng(42)
    y = np.array([0, 1] * 20)
    X = pd.DataFrame(
        {
            "x1": rng.normal(loc=y * 3.0, scale=1.0),
            "x2": rng.normal(loc=-y * 2.0, scale=1.0),
        }
    )
    return Dataset(features=X, labels=pd.Series(y, name="label"))


@pytest.fixture
def ten_record_dataset():
    """10 records, labels A/B alternating."""
    X = pd.DataFrame({"x1": np.arange(10, dtype=float), "x2": np.arange(10, dtype=float) ** 2})
    y = pd.Series(["A", "B"] * 5, name="label")
    return Dataset(features=X, labels=y)


@pytest.fixture
def three_class_dataset():
    """60 records, three well-separated classes."""
    rng = np.random.default_rng(7)
    y = np.repeat(["setosa", "versicolor", "virginica"], 20)
    centres = {"setosa": 0.0, "versicolor": 4.0, "virginica": 8.0}
    loc = np.array([centres[c] for c in y])
    X = pd.DataFrame(
        {
            "f1": rng.normal(loc=loc, scale=0.5),
            "f2": rng.normal(loc=-loc, scale=0.5),
            "f3": rng.normal(size=60),
        }
    )
    return Dataset(features=X, labels=pd.Series(y, name="species"))


@pytest.fixture
def raw_frame():
    """Raw frame with missing values, a missing label and a text column."""
    return pd.DataFrame(
        {
            "id": ["r1", "r2", "r3", "r4", "r5", "r6"],
            "a": [1.0, np.nan, 3.0, 4.0, 5.0, 6.0],
            "b": [10.0, 20.0, np.nan, 40.0, 50.0, 60.0],
            "label": [0, 1, 0, 1, None, 1],
        }
    )
