"""
Explicit seed handling for reproducible partitioning and fitting.

No function here touches a global random state: every generator is built
from a seed the caller passes in.
"""

import numbers

import numpy as np

from ml_harness.errors import InvalidPartitionError

MAX_SEED = 2**32 - 1


def check_seed(seed, name: str = "seed") -> int:
    """
    Validate an explicit integer seed.

    Args:
        seed: Candidate seed value
        name: Parameter name used in error messages

    Returns:
        The seed as a plain int

    Raises:
        InvalidPartitionError: If seed is missing, not an integer, or out of range
    """
    if seed is None:
        raise InvalidPartitionError(f"{name} must be given explicitly (got None)")
    if isinstance(seed, bool) or not isinstance(seed, numbers.Integral):
        raise InvalidPartitionError(f"{name} must be an integer, got {type(seed).__name__}")
    seed = int(seed)
    if seed < 0 or seed > MAX_SEED:
        raise InvalidPartitionError(f"{name}={seed} out of valid range [0, 2^32-1]")
    return seed


def make_rng(seed: int) -> np.random.Generator:
    """Build a numpy Generator from an explicit seed."""
    return np.random.default_rng(check_seed(seed))


def get_cv_seed(base_seed: int, fold_idx: int, repeat_idx: int = 0) -> int:
    """
    Generate deterministic seed for CV fold.

    Args:
        base_seed: Base random seed
        fold_idx: Fold index (0-based)
        repeat_idx: Repeat index (0-based)

    Returns:
        Deterministic seed for this fold/repeat combination
    """
    return base_seed + (repeat_idx * 1000) + fold_idx
