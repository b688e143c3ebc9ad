"""
Bankruptcy Prediction Benchmark

This package contains modules for loading the bankruptcy dataset variants,
class-imbalance weighting, grid-search training and ROC-based evaluation of
off-the-shelf tree ensembles.
"""

from .parallel import limit_native_threads

limit_native_threads()

from .config import ExperimentConfig, load_config  # noqa: E402
from .data_processing import DataProcessor, DatasetSplit, create_sample_data  # noqa: E402
from .evaluation import (ModelEvaluator, compute_roc, confusion_at_threshold,  # noqa: E402
                         find_optimal_threshold)
from .experiment import ExperimentRunner  # noqa: E402
from .model import ModelTrainer, TrainingResult  # noqa: E402
from .rotation_forest import RotationForestClassifier  # noqa: E402
from .weights import class_weights, sample_weights  # noqa: E402

__version__ = "0.1.0"
__all__ = [
    "ExperimentConfig",
    "load_config",
    "DataProcessor",
    "DatasetSplit",
    "create_sample_data",
    "ModelTrainer",
    "TrainingResult",
    "RotationForestClassifier",
    "ModelEvaluator",
    "compute_roc",
    "confusion_at_threshold",
    "find_optimal_threshold",
    "ExperimentRunner",
    "class_weights",
    "sample_weights",
]
