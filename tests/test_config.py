"""
Tests for configuration schema, loading and overrides.
"""

import pytest
import yaml
from pydantic import ValidationError

from ml_harness.config.defaults import DEFAULT_CV_CONFIG, DEFAULT_SPLIT_CONFIG
from ml_harness.config.loader import (
    _deep_merge,
    _parse_value,
    apply_overrides,
    load_harness_config,
    load_yaml,
    save_config,
)
from ml_harness.config.schema import CVConfig, HarnessConfig, ModelConfig, SplitConfig


class TestSchemaDefaults:
    def test_defaults_match_default_dicts(self):
        cfg = HarnessConfig()
        assert cfg.cv.model_dump() == DEFAULT_CV_CONFIG
        assert cfg.split.model_dump() == DEFAULT_SPLIT_CONFIG

    def test_default_evaluation(self):
        cfg = HarnessConfig()
        assert cfg.evaluation == "cross_validation"
        assert cfg.model.name == "lda"
        assert cfg.split.strategy == "alternating"

    def test_extra_keys_forbidden(self):
        with pytest.raises(ValidationError):
            HarnessConfig(unknown_section={})


class TestSplitConfig:
    def test_modulo_requires_k(self):
        with pytest.raises(ValidationError, match="requires split.k"):
            SplitConfig(strategy="modulo")

    def test_modulo_remainder_below_k(self):
        with pytest.raises(ValidationError, match="remainder"):
            SplitConfig(strategy="modulo", k=3, remainder=3)

    def test_random_requires_seed(self):
        with pytest.raises(ValidationError, match="explicit split.seed"):
            SplitConfig(strategy="random")

    def test_valid_random(self):
        cfg = SplitConfig(strategy="random", seed=4, validation_fraction=0.3)
        assert cfg.seed == 4

    def test_bad_parity(self):
        with pytest.raises(ValidationError):
            SplitConfig(parity=2)


class TestCVConfig:
    @pytest.mark.parametrize("n_jobs", [0, -2])
    def test_invalid_n_jobs(self, n_jobs):
        with pytest.raises(ValidationError, match="n_jobs"):
            CVConfig(n_jobs=n_jobs)

    def test_folds_at_least_two(self):
        with pytest.raises(ValidationError):
            CVConfig(folds=1)

    def test_timeout_positive(self):
        with pytest.raises(ValidationError):
            CVConfig(timeout=0)

    def test_unknown_aggregation(self):
        with pytest.raises(ValidationError):
            CVConfig(aggregation="weighted")


def test_model_config_hyperparameters():
    cfg = ModelConfig(name="svm_rbf", hyperparameters={"C": 10, "gamma": "scale"})
    assert cfg.hyperparameters["C"] == 10


class TestOverrides:
    def test_nested_override(self):
        out = apply_overrides({"cv": {"folds": 5}}, ["cv.folds=10", "cv.stratified=true"])
        assert out["cv"] == {"folds": 10, "stratified": True}

    def test_creates_missing_sections(self):
        out = apply_overrides({}, ["model.hyperparameters.C=0.5"])
        assert out["model"]["hyperparameters"]["C"] == 0.5

    def test_feature_cols_always_list(self):
        assert apply_overrides({}, ["data.feature_cols=a"])["data"]["feature_cols"] == ["a"]
        cols = apply_overrides({}, ["data.feature_cols=a,b"])["data"]["feature_cols"]
        assert cols == ["a", "b"]

    def test_string_keys_not_parsed(self):
        out = apply_overrides({}, ["data.label_col=1"])
        assert out["data"]["label_col"] == "1"

    def test_invalid_format(self):
        with pytest.raises(ValueError, match="Invalid override"):
            apply_overrides({}, ["cv.folds"])

    @pytest.mark.parametrize(
        "text,expected",
        [("3", 3), ("0.25", 0.25), ("none", None), ("no", False), ("abc", "abc")],
    )
    def test_parse_value(self, text, expected):
        assert _parse_value(text) == expected


class TestYamlLoading:
    def test_base_inheritance(self, tmp_path):
        (tmp_path / "base.yaml").write_text(
            yaml.safe_dump({"cv": {"folds": 3, "seed": 1}, "model": {"name": "qda"}})
        )
        (tmp_path / "child.yaml").write_text(
            yaml.safe_dump({"_base": "base.yaml", "cv": {"folds": 7}})
        )
        loaded = load_yaml(tmp_path / "child.yaml")
        assert loaded == {"cv": {"folds": 7, "seed": 1}, "model": {"name": "qda"}}

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_yaml(tmp_path / "absent.yaml")

    def test_non_mapping(self, tmp_path):
        path = tmp_path / "list.yaml"
        path.write_text("- a\n- b\n")
        with pytest.raises(ValueError, match="mapping"):
            load_yaml(path)

    def test_deep_merge_does_not_mutate(self):
        base = {"cv": {"folds": 5}}
        merged = _deep_merge(base, {"cv": {"seed": 3}})
        assert base == {"cv": {"folds": 5}}
        assert merged == {"cv": {"folds": 5, "seed": 3}}


class TestLoadHarnessConfig:
    def test_defaults_only(self):
        cfg = load_harness_config()
        assert isinstance(cfg, HarnessConfig)
        assert cfg.cv.folds == 5

    def test_file_and_overrides(self, tmp_path):
        path = tmp_path / "run.yaml"
        path.write_text(
            yaml.safe_dump(
                {
                    "evaluation": "holdout",
                    "split": {"strategy": "modulo", "k": 3},
                    "model": {"name": "cart", "hyperparameters": {"max_depth": 2}},
                }
            )
        )
        cfg = load_harness_config(path, overrides=["split.remainder=1", "model.output=score"])
        assert cfg.evaluation == "holdout"
        assert cfg.split.k == 3 and cfg.split.remainder == 1
        assert cfg.model.hyperparameters == {"max_depth": 2}
        assert cfg.model.output == "score"

    def test_invalid_values_raise_value_error(self):
        with pytest.raises(ValueError, match="Invalid harness configuration"):
            load_harness_config(overrides=["cv.folds=1"])

    def test_save_roundtrip(self, tmp_path):
        cfg = load_harness_config(overrides=["cv.folds=4", "model.name=rda"])
        out = tmp_path / "saved" / "config.yaml"
        save_config(cfg, out)
        assert load_harness_config(out) == cfg
