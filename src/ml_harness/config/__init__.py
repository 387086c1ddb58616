"""Configuration management for the evaluation harness."""

from ml_harness.config.defaults import (
    DEFAULT_CV_CONFIG,
    DEFAULT_MODEL_CONFIG,
    DEFAULT_PREPARE_CONFIG,
    DEFAULT_SPLIT_CONFIG,
    VALID_MODELS,
)
from ml_harness.config.loader import (
    apply_overrides,
    load_harness_config,
    load_yaml,
    save_config,
)
from ml_harness.config.schema import (
    CVConfig,
    DataConfig,
    HarnessConfig,
    LoggingConfig,
    ModelConfig,
    PrepareConfig,
    SplitConfig,
    StrictnessConfig,
)
from ml_harness.config.validation import (
    ConfigValidationError,
    ConfigValidationWarning,
    validate_harness_config,
)

__all__ = [
    "VALID_MODELS",
    "DEFAULT_CV_CONFIG",
    "DEFAULT_MODEL_CONFIG",
    "DEFAULT_PREPARE_CONFIG",
    "DEFAULT_SPLIT_CONFIG",
    "load_harness_config",
    "load_yaml",
    "apply_overrides",
    "save_config",
    "HarnessConfig",
    "DataConfig",
    "PrepareConfig",
    "SplitConfig",
    "CVConfig",
    "ModelConfig",
    "LoggingConfig",
    "StrictnessConfig",
    "ConfigValidationError",
    "ConfigValidationWarning",
    "validate_harness_config",
]
