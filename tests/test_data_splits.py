"""
Tests for train/validation splitting and fold assignment.
"""

import numpy as np
import pandas as pd
import pytest

from ml_harness.data.splits import (
    FoldAssignment,
    Split,
    make_folds,
    make_stratified_folds,
    split,
)
from ml_harness.errors import InvalidPartitionError

# ============================================================================
# Train/validation split
# ============================================================================


def _assert_partition(s: Split, n: int):
    train, val = set(s.train.tolist()), set(s.validation.tolist())
    assert train.isdisjoint(val)
    assert train | val == set(range(n))
    assert train and val


class TestAlternatingSplit:
    """Default parity 0 puts even indices in training."""

    def test_ten_records(self):
        s = split(10, "alternating")
        assert s.train.tolist() == [0, 2, 4, 6, 8]
        assert s.validation.tolist() == [1, 3, 5, 7, 9]

    def test_parity_one(self):
        s = split(10, "alternating", parity=1)
        assert s.train.tolist() == [1, 3, 5, 7, 9]
        assert s.validation.tolist() == [0, 2, 4, 6, 8]

    def test_odd_size(self):
        s = split(7, "alternating")
        assert s.train.size == 4
        assert s.validation.size == 3
        _assert_partition(s, 7)

    def test_invalid_parity(self):
        with pytest.raises(InvalidPartitionError, match="parity"):
            split(10, "alternating", parity=2)

    @pytest.mark.parametrize("n", [0, 1])
    def test_too_small(self, n):
        with pytest.raises(InvalidPartitionError):
            split(n, "alternating")


class TestModuloSplit:
    def test_every_third_record_validates(self):
        s = split(10, "modulo", k=3)
        assert s.validation.tolist() == [0, 3, 6, 9]
        _assert_partition(s, 10)

    def test_remainder(self):
        s = split(10, "modulo", k=4, remainder=1)
        assert s.validation.tolist() == [1, 5, 9]

    def test_requires_k(self):
        with pytest.raises(InvalidPartitionError, match="requires k"):
            split(10, "modulo")

    def test_k_larger_than_n(self):
        with pytest.raises(InvalidPartitionError, match="exceeds"):
            split(5, "modulo", k=6)

    def test_k_below_two(self):
        with pytest.raises(InvalidPartitionError):
            split(5, "modulo", k=1)

    @pytest.mark.parametrize("k", [2.5, "3", True])
    def test_non_integer_k(self, k):
        with pytest.raises(InvalidPartitionError):
            split(10, "modulo", k=k)

    def test_remainder_out_of_range(self):
        with pytest.raises(InvalidPartitionError, match="remainder"):
            split(10, "modulo", k=3, remainder=3)


class TestRandomSplit:
    def test_deterministic_for_seed(self):
        a = split(50, "random", seed=123)
        b = split(50, "random", seed=123)
        np.testing.assert_array_equal(a.train, b.train)
        np.testing.assert_array_equal(a.validation, b.validation)

    def test_different_seeds_differ(self):
        a = split(50, "random", seed=1)
        b = split(50, "random", seed=2)
        assert a.validation.tolist() != b.validation.tolist()

    def test_fraction(self):
        s = split(20, "random", seed=0, validation_fraction=0.25)
        assert s.validation.size == 5
        _assert_partition(s, 20)

    def test_fraction_clamped_to_non_empty(self):
        s = split(3, "random", seed=0, validation_fraction=0.01)
        assert s.validation.size == 1
        assert s.train.size == 2

    def test_requires_seed(self):
        with pytest.raises(InvalidPartitionError, match="explicitly"):
            split(10, "random")

    @pytest.mark.parametrize("bad", [-1, 1.5, "7", True])
    def test_rejects_bad_seed(self, bad):
        with pytest.raises(InvalidPartitionError):
            split(10, "random", seed=bad)

    def test_rejects_bad_fraction(self):
        with pytest.raises(InvalidPartitionError, match="validation_fraction"):
            split(10, "random", seed=0, validation_fraction=1.0)


def test_unknown_strategy():
    with pytest.raises(InvalidPartitionError, match="Unknown split strategy"):
        split(10, "blocked")


def test_split_summary():
    assert split(10).summary() == {"n_records": 10, "n_train": 5, "n_validation": 5}


# ============================================================================
# K-fold assignment
# ============================================================================


class TestMakeFolds:
    @pytest.mark.parametrize("n,k", [(10, 5), (11, 3), (7, 2), (100, 10)])
    def test_every_record_in_exactly_one_fold(self, n, k):
        folds = make_folds(n, k, seed=0)
        assert folds.assignment.shape == (n,)
        assert set(folds.assignment.tolist()) == set(range(k))
        seen = np.concatenate([folds.validation_indices(f) for f in range(k)])
        assert sorted(seen.tolist()) == list(range(n))

    @pytest.mark.parametrize("n,k", [(10, 5), (11, 3), (13, 4)])
    def test_balanced_sizes(self, n, k):
        sizes = make_folds(n, k, seed=3).sizes()
        assert sum(sizes) == n
        assert max(sizes) - min(sizes) <= 1
        assert set(sizes) <= {n // k, -(-n // k)}

    def test_deterministic_for_seed(self):
        a = make_folds(30, 5, seed=11)
        b = make_folds(30, 5, seed=11)
        np.testing.assert_array_equal(a.assignment, b.assignment)

    def test_seed_changes_assignment(self):
        a = make_folds(30, 5, seed=11)
        b = make_folds(30, 5, seed=12)
        assert not np.array_equal(a.assignment, b.assignment)

    def test_leave_one_out(self):
        folds = make_folds(6, 6, seed=0)
        assert folds.sizes() == [1] * 6
        for _, train, val in folds:
            assert val.size == 1
            assert train.size == 5

    def test_train_is_complement(self):
        folds = make_folds(12, 4, seed=5)
        for fold, train, val in folds:
            assert set(train.tolist()) | set(val.tolist()) == set(range(12))
            assert set(train.tolist()).isdisjoint(val.tolist())
            assert fold in range(4)

    @pytest.mark.parametrize("k", [0, 1, 11])
    def test_invalid_k(self, k):
        with pytest.raises(InvalidPartitionError):
            make_folds(10, k, seed=0)

    def test_requires_seed(self):
        with pytest.raises(InvalidPartitionError):
            make_folds(10, 2, seed=None)

    def test_fold_out_of_range(self):
        folds = make_folds(10, 5, seed=0)
        with pytest.raises(InvalidPartitionError, match="out of range"):
            folds.validation_indices(5)

    def test_as_split(self):
        folds = make_folds(10, 5, seed=0)
        s = folds.as_split(0)
        assert s.n_records == 10
        assert s.validation.tolist() == folds.validation_indices(0).tolist()
        assert len(folds) == 5


class TestStratifiedFolds:
    def test_classes_spread_evenly(self):
        labels = pd.Series(["a"] * 10 + ["b"] * 5 + ["c"] * 3)
        folds = make_stratified_folds(labels, 3, seed=1)
        assert isinstance(folds, FoldAssignment)
        for cls in ["a", "b", "c"]:
            members = np.flatnonzero(labels.to_numpy() == cls)
            per_fold = np.bincount(folds.assignment[members], minlength=3)
            assert per_fold.max() - per_fold.min() <= 1

    def test_overall_sizes_balanced(self):
        labels = [0] * 13 + [1] * 8
        sizes = make_stratified_folds(labels, 4, seed=2).sizes()
        assert sum(sizes) == 21
        assert max(sizes) - min(sizes) <= 1

    def test_deterministic(self):
        labels = [0, 1] * 15
        a = make_stratified_folds(labels, 5, seed=9)
        b = make_stratified_folds(labels, 5, seed=9)
        np.testing.assert_array_equal(a.assignment, b.assignment)

    def test_warns_on_small_class(self, caplog):
        labels = [0] * 10 + [1] * 2
        with caplog.at_level("WARNING", logger="ml_harness.data.splits"):
            make_stratified_folds(labels, 3, seed=0)
        assert "fewer than k=3" in caplog.text
