"""Tests for ExperimentConfig and load_config."""

from __future__ import annotations

from pathlib import Path

import pytest

from bankruptcy.config import VARIANTS, ExperimentConfig, load_config


def test_defaults_cover_all_variants() -> None:
    config = ExperimentConfig(data_dir="data", output_dir="out")
    assert config.variants == VARIANTS
    assert set(config.train_files) == set(VARIANTS)
    assert config.scoring == "roc_auc"
    assert config.threshold_method == "youden"


def test_test_path_follows_feature_set() -> None:
    config = ExperimentConfig(data_dir="data", output_dir="out")
    assert config.test_path("original") == config.test_path("balanced")
    assert config.test_path("selected") == config.test_path("balanced_selected")
    assert config.test_path("original").name == "test_original.xlsx"
    assert config.test_path("selected").name == "test_selected.xlsx"
    assert config.train_path("balanced_selected").name == "train_balanced_selected.xlsx"


def test_unknown_variant_rejected() -> None:
    config = ExperimentConfig(data_dir="data", output_dir="out")
    with pytest.raises(ValueError):
        config.train_path("oversampled")
    with pytest.raises(ValueError):
        config.test_path("oversampled")
    with pytest.raises(ValueError):
        ExperimentConfig(variants=["oversampled"])


def test_env_overrides(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setenv("BANKRUPTCY_DATA_DIR", str(tmp_path / "d"))
    monkeypatch.setenv("BANKRUPTCY_N_JOBS", "3")
    config = ExperimentConfig()
    assert config.data_dir == (tmp_path / "d").resolve()
    assert config.n_jobs == 3


def test_load_config_from_yaml(tmp_path: Path) -> None:
    path = tmp_path / "config.yaml"
    path.write_text(
        "cv_folds: 3\n"
        "models: [random_forest]\n"
        "param_grids:\n"
        "  random_forest:\n"
        "    n_estimators: [10]\n"
    )
    config = load_config(path, data_dir=str(tmp_path), models=None)
    assert config.cv_folds == 3
    assert config.models == ["random_forest"]
    assert config.param_grids["random_forest"] == {"n_estimators": [10]}
    assert config.data_dir == tmp_path


def test_load_config_rejects_unknown_keys(tmp_path: Path) -> None:
    path = tmp_path / "config.yaml"
    path.write_text("learning_rate: 0.1\n")
    with pytest.raises(ValueError, match="learning_rate"):
        load_config(path)


def test_load_config_missing_file(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        load_config(tmp_path / "nope.yaml")
