"""
Configuration schema for the evaluation harness.

Defines Pydantic models for every harness parameter. Defaults mirror
``config.defaults`` exactly.
"""

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator

# ============================================================================
# Data and Preparation Configuration
# ============================================================================


class DataConfig(BaseModel):
    """Label and feature column selection."""

    label_col: str = "label"
    feature_cols: list[str] | None = None
    positive_label: Any = None


class PrepareConfig(BaseModel):
    """Configuration for the preparation pipeline."""

    imputation: str = "mean"
    scaling: Literal["none", "standard", "minmax"] = "none"
    feature_selection: Literal["none", "ttest", "anova"] = "none"
    alpha: float = Field(default=0.05, gt=0.0, le=1.0)
    top_n: int = Field(default=0, ge=0)


# ============================================================================
# Partitioning Configuration
# ============================================================================


class SplitConfig(BaseModel):
    """Configuration for a single train/validation split."""

    strategy: Literal["alternating", "modulo", "random"] = "alternating"
    k: int | None = Field(default=None, ge=2)
    seed: int | None = Field(default=None, ge=0)
    parity: Literal[0, 1] = 0
    remainder: int = Field(default=0, ge=0)
    validation_fraction: float = Field(default=0.5, gt=0.0, lt=1.0)

    @model_validator(mode="after")
    def validate_strategy_params(self):
        """Require the parameters each strategy depends on."""
        if self.strategy == "modulo":
            if self.k is None:
                raise ValueError("split.strategy='modulo' requires split.k")
            if self.remainder >= self.k:
                raise ValueError(
                    f"split.remainder ({self.remainder}) must be < split.k ({self.k})"
                )
        if self.strategy == "random" and self.seed is None:
            raise ValueError("split.strategy='random' requires an explicit split.seed")
        return self


class CVConfig(BaseModel):
    """Configuration for cross-validation."""

    folds: int = Field(default=5, ge=2)
    seed: int = Field(default=0, ge=0)
    stratified: bool = False
    leave_one_out: bool = False
    aggregation: Literal["micro", "macro"] = "micro"
    mode: Literal["best_effort", "strict"] = "best_effort"
    n_jobs: int = 1
    backend: Literal["threading", "loky"] = "threading"
    timeout: float | None = Field(default=None, gt=0.0)
    fit_seed: int | None = Field(default=None, ge=0)

    @model_validator(mode="after")
    def validate_n_jobs(self):
        if self.n_jobs == 0 or self.n_jobs < -1:
            raise ValueError(f"cv.n_jobs must be >= 1 or -1, got {self.n_jobs}")
        return self


# ============================================================================
# Model Configuration
# ============================================================================


class ModelConfig(BaseModel):
    """Classifier capability selection."""

    model_config = ConfigDict(protected_namespaces=())

    name: str = "lda"
    output: Literal["label", "score"] = "label"
    threshold: float = 0.5
    hyperparameters: dict[str, Any] = Field(default_factory=dict)


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    log_file: str | None = None


class StrictnessConfig(BaseModel):
    """How configuration issues are reported."""

    level: Literal["off", "warn", "error"] = "warn"


# ============================================================================
# Top-level Configuration
# ============================================================================


class HarnessConfig(BaseModel):
    """Complete harness configuration."""

    model_config = ConfigDict(extra="forbid", protected_namespaces=())

    evaluation: Literal["cross_validation", "holdout"] = "cross_validation"
    data: DataConfig = Field(default_factory=DataConfig)
    prepare: PrepareConfig = Field(default_factory=PrepareConfig)
    split: SplitConfig = Field(default_factory=SplitConfig)
    cv: CVConfig = Field(default_factory=CVConfig)
    model: ModelConfig = Field(default_factory=ModelConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    strictness: StrictnessConfig = Field(default_factory=StrictnessConfig)
