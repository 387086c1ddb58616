"""
Deterministic train/validation splitting and k-fold assignment.

Split strategies:
- "alternating": training = indices with i % 2 == parity (default parity 0,
  i.e. training {0, 2, 4, ...}); validation = the complement
- "modulo": validation = indices with i % k == remainder (default 0);
  training = the complement
- "random": seeded shuffle, validation size round(n * validation_fraction)
  clamped to [1, n - 1]

Fold assignment permutes indices with an explicit seed and deals them
round-robin into k folds, so fold sizes are floor(n/k) or ceil(n/k).
Leave-one-out is k == n.
"""

import logging
from collections.abc import Iterator, Sequence
from dataclasses import dataclass

import numpy as np
import pandas as pd

from ml_harness.data.dataset import sort_labels
from ml_harness.errors import InvalidPartitionError
from ml_harness.utils.random import check_seed

logger = logging.getLogger(__name__)

SPLIT_STRATEGIES = ("alternating", "modulo", "random")


# ============================================================================
# Containers
# ============================================================================


@dataclass(frozen=True, eq=False)
class Split:
    """Disjoint training/validation partition of record indices."""

    train: np.ndarray
    validation: np.ndarray

    @property
    def n_records(self) -> int:
        return int(self.train.size + self.validation.size)

    def summary(self) -> dict[str, int]:
        return {
            "n_records": self.n_records,
            "n_train": int(self.train.size),
            "n_validation": int(self.validation.size),
        }


@dataclass(frozen=True, eq=False)
class FoldAssignment:
    """
    Mapping from record index to fold id in [0, k).

    Attributes:
        assignment: Integer array, ``assignment[i]`` is the fold of record i
        k: Number of folds
        seed: Seed the assignment was derived from
    """

    assignment: np.ndarray
    k: int
    seed: int | None = None

    @property
    def n_records(self) -> int:
        return int(self.assignment.size)

    def validation_indices(self, fold: int) -> np.ndarray:
        self._check_fold(fold)
        return np.flatnonzero(self.assignment == fold)

    def train_indices(self, fold: int) -> np.ndarray:
        self._check_fold(fold)
        return np.flatnonzero(self.assignment != fold)

    def sizes(self) -> list[int]:
        return np.bincount(self.assignment, minlength=self.k).astype(int).tolist()

    def as_split(self, fold: int) -> Split:
        return Split(train=self.train_indices(fold), validation=self.validation_indices(fold))

    def __iter__(self) -> Iterator[tuple[int, np.ndarray, np.ndarray]]:
        for fold in range(self.k):
            yield fold, self.train_indices(fold), self.validation_indices(fold)

    def __len__(self) -> int:
        return self.k

    def _check_fold(self, fold: int):
        if not 0 <= fold < self.k:
            raise InvalidPartitionError(f"fold {fold} out of range [0, {self.k})")


# ============================================================================
# Train/validation split
# ============================================================================


def _check_size(n: int, minimum: int = 2) -> int:
    if isinstance(n, bool) or not isinstance(n, int | np.integer):
        raise InvalidPartitionError(f"dataset size must be an integer, got {type(n).__name__}")
    n = int(n)
    if n < minimum:
        raise InvalidPartitionError(f"dataset size must be >= {minimum}, got {n}")
    return n


def split(
    n: int,
    strategy: str = "alternating",
    *,
    k: int | None = None,
    seed: int | None = None,
    parity: int = 0,
    remainder: int = 0,
    validation_fraction: float = 0.5,
) -> Split:
    """
    Partition ``range(n)`` into training and validation indices.

    Args:
        n: Dataset size
        strategy: "alternating", "modulo" or "random"
        k: Modulus for "modulo" (2 <= k <= n)
        seed: Explicit seed, required for "random"
        parity: Training parity for "alternating" (0 or 1)
        remainder: Validation remainder for "modulo" (0 <= remainder < k)
        validation_fraction: Validation share for "random", in (0, 1)

    Returns:
        Split with sorted, disjoint, non-empty index arrays

    Raises:
        InvalidPartitionError: If parameters are inconsistent with n

    Examples:
        >>> s = split(10, "alternating")
        >>> s.train.tolist(), s.validation.tolist()
        ([0, 2, 4, 6, 8], [1, 3, 5, 7, 9])
    """
    n = _check_size(n)
    idx = np.arange(n)

    if strategy == "alternating":
        if parity not in (0, 1):
            raise InvalidPartitionError(f"parity must be 0 or 1, got {parity}")
        mask_train = (idx % 2) == parity
        result = Split(train=idx[mask_train], validation=idx[~mask_train])

    elif strategy == "modulo":
        if k is None:
            raise InvalidPartitionError("modulo strategy requires k")
        _check_k(n, k)
        if not 0 <= remainder < k:
            raise InvalidPartitionError(f"remainder must be in [0, {k}), got {remainder}")
        mask_val = (idx % k) == remainder
        result = Split(train=idx[~mask_val], validation=idx[mask_val])

    elif strategy == "random":
        seed = check_seed(seed)
        if not 0.0 < validation_fraction < 1.0:
            raise InvalidPartitionError(
                f"validation_fraction must be in (0, 1), got {validation_fraction}"
            )
        n_val = int(round(n * validation_fraction))
        n_val = min(max(n_val, 1), n - 1)
        perm = np.random.default_rng(seed).permutation(n)
        result = Split(train=np.sort(perm[n_val:]), validation=np.sort(perm[:n_val]))

    else:
        raise InvalidPartitionError(
            f"Unknown split strategy: {strategy!r} (expected one of {SPLIT_STRATEGIES})"
        )

    if result.train.size == 0 or result.validation.size == 0:
        raise InvalidPartitionError(
            f"{strategy} split of {n} records leaves an empty partition "
            f"(train={result.train.size}, validation={result.validation.size})"
        )

    logger.debug(f"split strategy={strategy} n={n}: {result.summary()}")
    return result


# ============================================================================
# K-fold assignment
# ============================================================================


def _check_k(n: int, k: int) -> None:
    if isinstance(k, bool) or not isinstance(k, int | np.integer):
        raise InvalidPartitionError(f"k must be an integer, got {type(k).__name__}")
    if k < 2:
        raise InvalidPartitionError(f"k must be >= 2, got {k}")
    if k > n:
        raise InvalidPartitionError(f"k={k} exceeds dataset size {n}")


def make_folds(n: int, k: int, seed: int) -> FoldAssignment:
    """
    Assign each of ``n`` records to one of ``k`` balanced folds.

    Args:
        n: Dataset size
        k: Number of folds (2 <= k <= n); k == n gives leave-one-out
        seed: Explicit shuffling seed

    Returns:
        FoldAssignment with fold sizes floor(n/k) or ceil(n/k)

    Raises:
        InvalidPartitionError: If k is out of range or seed is invalid
    """
    n = _check_size(n)
    _check_k(n, k)
    seed = check_seed(seed)

    perm = np.random.default_rng(seed).permutation(n)
    assignment = np.empty(n, dtype=int)
    assignment[perm] = np.arange(n) % k
    return FoldAssignment(assignment=assignment, k=int(k), seed=seed)


def make_stratified_folds(labels: Sequence | pd.Series, k: int, seed: int) -> FoldAssignment:
    """
    Assign records to k balanced folds, spreading each class across folds.

    Records are shuffled within each class, classes are laid out one after
    another, and the resulting sequence is dealt round-robin. Overall fold
    sizes stay within one of each other, and each class's count per fold
    differs by at most one.

    Args:
        labels: Label per record
        k: Number of folds (2 <= k <= n)
        seed: Explicit shuffling seed

    Returns:
        FoldAssignment
    """
    y = np.asarray(labels, dtype=object)
    n = _check_size(int(y.size))
    _check_k(n, k)
    seed = check_seed(seed)
    rng = np.random.default_rng(seed)

    order = []
    for cls in sort_labels(y.tolist()):
        members = np.flatnonzero(y == cls)
        order.append(rng.permutation(members))
    order = np.concatenate(order)

    assignment = np.empty(n, dtype=int)
    assignment[order] = np.arange(n) % k

    counts = pd.Series(y).value_counts()
    small = counts[counts < k]
    if len(small):
        logger.warning(
            f"{len(small)} class(es) have fewer than k={k} records; "
            f"some folds will not contain them: {small.to_dict()}"
        )
    return FoldAssignment(assignment=assignment, k=int(k), seed=seed)
