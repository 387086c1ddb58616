"""Utility functions for logging, seeding and serialization."""

from ml_harness.utils.logging import log_section, setup_logger
from ml_harness.utils.random import check_seed, get_cv_seed, make_rng
from ml_harness.utils.serialization import (
    load_joblib,
    load_json,
    save_joblib,
    save_json,
    to_builtin,
)

__all__ = [
    "setup_logger",
    "log_section",
    "check_seed",
    "make_rng",
    "get_cv_seed",
    "save_joblib",
    "load_joblib",
    "save_json",
    "load_json",
    "to_builtin",
]
