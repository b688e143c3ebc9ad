"""Shared fixtures for the bankruptcy benchmark tests."""

from __future__ import annotations

from pathlib import Path

import matplotlib

matplotlib.use("Agg")

import pandas as pd  # noqa: E402
import pytest  # noqa: E402
from sklearn.model_selection import train_test_split  # noqa: E402

from bankruptcy.data_processing import DataProcessor, create_sample_data  # noqa: E402

TINY_GRIDS = {
    "random_forest": {"n_estimators": [20], "min_samples_leaf": [1, 5]},
    "adaboost": {"n_estimators": [20], "learning_rate": [0.5]},
    "xgboost": {"n_estimators": [20], "max_depth": [2]},
    "lightgbm": {"n_estimators": [20], "num_leaves": [7], "min_child_samples": [5]},
    "gradient_boosting": {"n_estimators": [20], "max_depth": [2]},
    "rotation_forest": {"n_estimators": [5], "max_depth": [3, None]},
}


@pytest.fixture
def tiny_grids() -> dict:
    return {name: dict(grid) for name, grid in TINY_GRIDS.items()}


@pytest.fixture
def sample_df() -> pd.DataFrame:
    return create_sample_data(n_samples=300, n_features=8, bankrupt_rate=0.2, random_state=0)


@pytest.fixture
def variant_dir(tmp_path: Path, sample_df: pd.DataFrame) -> Path:
    """Directory holding the six spreadsheets under their default names."""
    train_df, test_df = train_test_split(
        sample_df, test_size=0.25, random_state=0, stratify=sample_df["class"]
    )
    tables = DataProcessor(random_state=0).build_variants(train_df, test_df, k_features=4)
    data_dir = tmp_path / "data"
    data_dir.mkdir()
    for name, table in tables.items():
        table.to_excel(data_dir / f"{name}.xlsx", index=False)
    return data_dir
