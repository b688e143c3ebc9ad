"""
Experiment Configuration

Paths, label conventions, cross-validation and grid-search settings for the
bankruptcy model benchmark. Defaults can be overridden through environment
variables or a YAML file.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import yaml

VARIANTS = ["original", "balanced", "selected", "balanced_selected"]
DEFAULT_MODELS = ["random_forest", "xgboost", "adaboost", "rotation_forest"]


def _resolve_project_path() -> Path:
    """Project root: two levels up from this file."""
    return Path(__file__).resolve().parent.parent


def _resolve_data_dir() -> Path:
    """Resolve data directory with env override, fallback to <project>/data."""
    default = str(_resolve_project_path() / "data")
    return Path(os.getenv("BANKRUPTCY_DATA_DIR", default)).expanduser().resolve()


def _resolve_output_dir() -> Path:
    """Resolve output directory with env override, fallback to <project>/results."""
    default = str(_resolve_project_path() / "results")
    return Path(os.getenv("BANKRUPTCY_OUTPUT_DIR", default)).expanduser().resolve()


def _resolve_n_jobs() -> int:
    return int(os.getenv("BANKRUPTCY_N_JOBS", "-1"))


@dataclass
class ExperimentConfig:
    """Configuration for one benchmark run"""

    # Data paths (env-overridable)
    data_dir: Path = field(default_factory=_resolve_data_dir)
    output_dir: Path = field(default_factory=_resolve_output_dir)

    # One training table per variant, two test tables
    train_files: Dict[str, str] = field(default_factory=lambda: {
        "original": "train_original.xlsx",
        "balanced": "train_balanced.xlsx",
        "selected": "train_selected.xlsx",
        "balanced_selected": "train_balanced_selected.xlsx",
    })
    test_files: Dict[str, str] = field(default_factory=lambda: {
        "full": "test_original.xlsx",
        "selected": "test_selected.xlsx",
    })

    # Label conventions
    label_column: str = "class"
    positive_labels: List[str] = field(default_factory=list)
    negative_labels: List[str] = field(default_factory=list)

    # Training
    random_state: int = 42
    cv_folds: int = 5
    scoring: str = "roc_auc"
    n_jobs: int = field(default_factory=_resolve_n_jobs)
    parallel_backend: str = "loky"
    weighting: str = "balanced"  # 'balanced', 'ratio', 'none'
    impute_strategy: str = "median"
    param_grids: Dict[str, Dict[str, List[Any]]] = field(default_factory=dict)

    # Evaluation
    threshold_method: str = "youden"

    # What to run
    models: List[str] = field(default_factory=lambda: list(DEFAULT_MODELS))
    variants: List[str] = field(default_factory=lambda: list(VARIANTS))

    # Artifacts
    save_models: bool = False
    save_plots: bool = True

    def __post_init__(self):
        self.data_dir = Path(self.data_dir).expanduser()
        self.output_dir = Path(self.output_dir).expanduser()
        unknown = [v for v in self.variants if v not in VARIANTS]
        if unknown:
            raise ValueError(f"Unknown variants: {unknown}. Expected a subset of {VARIANTS}")
        if self.cv_folds < 2:
            raise ValueError(f"cv_folds must be at least 2, got {self.cv_folds}")

    def train_path(self, variant: str) -> Path:
        """Path of the training table for a variant."""
        if variant not in self.train_files:
            raise ValueError(f"Unknown variant: {variant}")
        return self.data_dir / self.train_files[variant]

    def test_path(self, variant: str) -> Path:
        """Path of the test table matching a variant's feature set."""
        if variant not in VARIANTS:
            raise ValueError(f"Unknown variant: {variant}")
        key = "selected" if variant.endswith("selected") else "full"
        return self.data_dir / self.test_files[key]

    def to_dict(self) -> Dict[str, Any]:
        out = {}
        for f in fields(self):
            value = getattr(self, f.name)
            out[f.name] = str(value) if isinstance(value, Path) else value
        return out


def load_config(path: Optional[Union[str, Path]] = None, **overrides: Any) -> ExperimentConfig:
    """
    Build an ExperimentConfig from defaults, an optional YAML file and keyword overrides.

    Args:
        path: Optional YAML file with a mapping of config fields
        **overrides: Field values that take precedence over the file (None values are ignored)

    Returns:
        ExperimentConfig instance
    """
    values: Dict[str, Any] = {}
    if path is not None:
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Config file not found: {path}")
        with open(path, encoding="utf-8") as f:
            loaded = yaml.safe_load(f) or {}
        if not isinstance(loaded, dict):
            raise ValueError(f"Config file {path} must contain a mapping")
        values.update(loaded)

    values.update({k: v for k, v in overrides.items() if v is not None})

    known = {f.name for f in fields(ExperimentConfig)}
    unknown = sorted(set(values) - known)
    if unknown:
        raise ValueError(f"Unknown config keys: {unknown}")

    return ExperimentConfig(**values)
