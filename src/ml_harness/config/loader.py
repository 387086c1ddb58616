"""
Configuration loading and merging logic.

Supports:
1. Loading from YAML files (with ``_base`` inheritance)
2. Dot-notation overrides (e.g. cv.folds=10)
3. Validation into a HarnessConfig
"""

import copy
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from ml_harness.config.defaults import (
    DEFAULT_CV_CONFIG,
    DEFAULT_DATA_CONFIG,
    DEFAULT_LOGGING_CONFIG,
    DEFAULT_MODEL_CONFIG,
    DEFAULT_PREPARE_CONFIG,
    DEFAULT_SPLIT_CONFIG,
    DEFAULT_STRICTNESS_CONFIG,
)
from ml_harness.config.schema import HarnessConfig


def _deep_merge(base: dict[str, Any], overlay: dict[str, Any]) -> dict[str, Any]:
    """Recursively merge *overlay* into *base* (overlay wins on leaf conflicts).

    Returns a new dict; neither input is mutated.
    """
    merged = base.copy()
    for key, value in overlay.items():
        if key in merged and isinstance(merged[key], dict) and isinstance(value, dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def load_yaml(file_path: str | Path) -> dict[str, Any]:
    """Load configuration from YAML file.

    Supports a ``_base`` key: if present, the referenced YAML file is loaded
    first and the current file's values are deep-merged on top. The ``_base``
    path is resolved relative to the directory containing *file_path*.
    """
    file_path = Path(file_path).resolve()
    if not file_path.exists():
        raise FileNotFoundError(f"Config file not found: {file_path}")

    with open(file_path) as f:
        config_dict = yaml.safe_load(f) or {}

    if not isinstance(config_dict, dict):
        raise ValueError(f"Config file {file_path} must contain a mapping at top level")

    base_ref = config_dict.pop("_base", None)
    if base_ref is not None:
        base_path = (file_path.parent / base_ref).resolve()
        config_dict = _deep_merge(load_yaml(base_path), config_dict)

    return config_dict


def apply_overrides(config_dict: dict[str, Any], overrides: list[str]) -> dict[str, Any]:
    """
    Apply "key=value" overrides to a config dictionary.

    Supports dot-notation for nested keys:
        cv.folds=10 -> config_dict['cv']['folds'] = 10
        model.hyperparameters.C=0.5 -> config_dict['model']['hyperparameters']['C'] = 0.5

    Args:
        config_dict: Base configuration dictionary (updated in place)
        overrides: List of "key=value" or "nested.key=value" strings

    Returns:
        Updated config dictionary
    """
    # Keys that should always be lists
    LIST_KEYS = {"feature_cols"}

    # Keys that should always be strings (not parsed as int/float)
    STRING_KEYS = {"label_col", "log_file", "imputation", "name"}

    for override in overrides:
        if "=" not in override:
            raise ValueError(f"Invalid override format: {override}. Expected 'key=value'")

        key_path, value_str = override.split("=", 1)
        keys = key_path.strip().split(".")

        target = config_dict
        for key in keys[:-1]:
            if key not in target or not isinstance(target[key], dict):
                target[key] = {}
            target = target[key]

        final_key = keys[-1]
        value = _parse_value(
            value_str.strip(),
            force_list=final_key in LIST_KEYS,
            force_string=final_key in STRING_KEYS,
        )
        target[final_key] = value

    return config_dict


def _parse_scalar(v: str) -> Any:
    try:
        return int(v)
    except ValueError:
        pass
    try:
        return float(v)
    except ValueError:
        pass
    return v


def _parse_value(value_str: str, force_list: bool = False, force_string: bool = False) -> Any:
    """
    Parse string value to appropriate Python type.

    Args:
        value_str: String to parse
        force_list: If True, always return a list (for comma-separated or single values)
        force_string: If True, always return a string (skip int/float parsing)
    """
    if force_string:
        return value_str

    lowered = value_str.lower()
    if lowered in ("true", "yes"):
        return [True] if force_list else True
    if lowered in ("false", "no"):
        return [False] if force_list else False
    if lowered in ("none", "null"):
        return [None] if force_list else None

    if "," in value_str or force_list:
        return [_parse_scalar(v.strip()) for v in value_str.split(",") if v.strip()]

    return _parse_scalar(value_str)


def default_config_dict() -> dict[str, Any]:
    """Fresh nested dict of all defaults."""
    return copy.deepcopy(
        {
            "data": DEFAULT_DATA_CONFIG,
            "prepare": DEFAULT_PREPARE_CONFIG,
            "split": DEFAULT_SPLIT_CONFIG,
            "cv": DEFAULT_CV_CONFIG,
            "model": DEFAULT_MODEL_CONFIG,
            "logging": DEFAULT_LOGGING_CONFIG,
            "strictness": DEFAULT_STRICTNESS_CONFIG,
        }
    )


def load_harness_config(
    config_file: str | Path | None = None,
    overrides: list[str] | None = None,
) -> HarnessConfig:
    """
    Load harness configuration from defaults, a YAML file and overrides.

    Args:
        config_file: Path to YAML config file (optional)
        overrides: List of "key=value" overrides (optional)

    Returns:
        Validated HarnessConfig instance

    Raises:
        ValueError: If the merged configuration is invalid
    """
    config_dict = default_config_dict()

    if config_file is not None:
        config_dict = _deep_merge(config_dict, load_yaml(config_file))

    if overrides:
        config_dict = apply_overrides(config_dict, overrides)

    try:
        return HarnessConfig(**config_dict)
    except ValidationError as e:
        raise ValueError(f"Invalid harness configuration:\n{e}") from e


def save_config(config: HarnessConfig, output_path: str | Path) -> None:
    """Save configuration to YAML file."""
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    with open(output_path, "w") as f:
        yaml.safe_dump(config.model_dump(mode="json"), f, default_flow_style=False, sort_keys=False)
