"""
Model Training Module

Registry of the benchmarked classifiers, their hyperparameter grids and a
generic cross-validated grid-search wrapper that passes class-imbalance
sample weights through to every fit.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import joblib
import lightgbm as lgb
import numpy as np
import pandas as pd
import xgboost as xgb
from sklearn.ensemble import (AdaBoostClassifier, GradientBoostingClassifier,
                              RandomForestClassifier)
from sklearn.metrics import make_scorer, recall_score
from sklearn.model_selection import GridSearchCV, StratifiedKFold, cross_val_score
from sklearn.tree import DecisionTreeClassifier

from .rotation_forest import RotationForestClassifier

logger = logging.getLogger(__name__)

MODEL_NAMES = ["random_forest", "gradient_boosting", "xgboost", "lightgbm",
               "adaboost", "rotation_forest"]


def sensitivity_specificity_score(y_true, y_pred, sensitivity_weight: float = 0.5) -> float:
    """
    Weighted mix of sensitivity and specificity.

    Args:
        y_true: True labels
        y_pred: Predicted labels
        sensitivity_weight: Weight for sensitivity (1 - weight for specificity)

    Returns:
        Weighted score
    """
    sensitivity = recall_score(y_true, y_pred, pos_label=1, zero_division=0)
    specificity = recall_score(y_true, y_pred, pos_label=0, zero_division=0)
    return sensitivity_weight * sensitivity + (1 - sensitivity_weight) * specificity


@dataclass
class TrainingResult:
    """Outcome of one grid search."""

    model_name: str
    model: Any
    best_params: Dict[str, Any]
    cv_score: float
    scoring: str
    cv_results: pd.DataFrame = field(default_factory=pd.DataFrame)


class ModelTrainer:
    """Main class for model training and selection."""

    def __init__(self, random_state: int = 42, cv_folds: int = 5,
                 scoring: str = "roc_auc", n_jobs: Optional[int] = -1,
                 param_grids: Optional[Dict[str, Dict[str, List]]] = None):
        """
        Initialize ModelTrainer.

        Args:
            random_state: Random seed for reproducibility
            cv_folds: Number of stratified cross-validation folds
            scoring: scikit-learn scorer name, or 'sensitivity_specificity'
            n_jobs: Parallel workers for grid search
            param_grids: Per-model grids replacing the defaults
        """
        self.random_state = random_state
        self.cv_folds = cv_folds
        self.scoring = scoring
        self.n_jobs = n_jobs
        self.param_grid_overrides = param_grids or {}

        unknown = [name for name in self.param_grid_overrides if name not in MODEL_NAMES]
        if unknown:
            raise ValueError(f"Parameter grids given for unknown models: {unknown}")

    def build_model(self, model_name: str) -> Any:
        """
        Create an unfitted estimator for a registered model name.

        Args:
            model_name: One of MODEL_NAMES

        Returns:
            Estimator instance
        """
        # estimators stay single-threaded; grid search owns the parallelism
        if model_name == "random_forest":
            return RandomForestClassifier(
                random_state=self.random_state,
                n_estimators=500,
                n_jobs=1
            )
        if model_name == "gradient_boosting":
            return GradientBoostingClassifier(
                random_state=self.random_state,
                n_estimators=100
            )
        if model_name == "xgboost":
            return xgb.XGBClassifier(
                random_state=self.random_state,
                n_estimators=300,
                eval_metric="logloss",
                tree_method="hist",
                n_jobs=1
            )
        if model_name == "lightgbm":
            return lgb.LGBMClassifier(
                random_state=self.random_state,
                n_estimators=300,
                n_jobs=1,
                verbose=-1
            )
        if model_name == "adaboost":
            return AdaBoostClassifier(
                estimator=DecisionTreeClassifier(max_depth=1),
                random_state=self.random_state,
                n_estimators=100
            )
        if model_name == "rotation_forest":
            return RotationForestClassifier(
                random_state=self.random_state,
                n_estimators=20,
                n_jobs=1
            )
        raise ValueError(f"Unknown model: {model_name}. Expected one of {MODEL_NAMES}")

    def get_param_grids(self) -> Dict[str, Dict[str, List]]:
        """
        Get parameter grids for hyperparameter tuning.

        Returns:
            Dictionary of model names and their parameter grids
        """
        param_grids = {
            'random_forest': {
                'n_estimators': [250, 500],
                'max_features': ['sqrt', 0.3],
                'min_samples_leaf': [1, 5]
            },
            'gradient_boosting': {
                'n_estimators': [100, 300],
                'learning_rate': [0.05, 0.1],
                'max_depth': [2, 3],
                'subsample': [0.8, 1.0]
            },
            'xgboost': {
                'n_estimators': [200, 500],
                'learning_rate': [0.05, 0.1],
                'max_depth': [3, 6],
                'subsample': [0.8, 1.0],
                'colsample_bytree': [0.8, 1.0]
            },
            'lightgbm': {
                'n_estimators': [200, 500],
                'learning_rate': [0.05, 0.1],
                'num_leaves': [15, 31],
                'min_child_samples': [10, 20]
            },
            'adaboost': {
                'n_estimators': [100, 300],
                'learning_rate': [0.1, 0.5, 1.0],
                'estimator__max_depth': [1, 2]
            },
            'rotation_forest': {
                'n_estimators': [10, 30],
                'max_depth': [None, 8],
                'min_samples_leaf': [1, 5]
            }
        }

        for name, grid in self.param_grid_overrides.items():
            if not grid:
                raise ValueError(f"Parameter grid for {name} is empty")
            empty = [param for param, values in grid.items() if len(values) == 0]
            if empty:
                raise ValueError(f"Parameter grid for {name} has no values for {empty}")
            param_grids[name] = grid

        return param_grids

    def _scorer(self):
        if self.scoring == "sensitivity_specificity":
            return make_scorer(sensitivity_specificity_score)
        return self.scoring

    def _cv(self) -> StratifiedKFold:
        return StratifiedKFold(n_splits=self.cv_folds, shuffle=True,
                               random_state=self.random_state)

    def train_model(self, model_name: str, X_train: pd.DataFrame, y_train: pd.Series,
                    sample_weight: Optional[np.ndarray] = None,
                    tune_hyperparameters: bool = True) -> TrainingResult:
        """
        Train a single model with optional hyperparameter tuning.

        Args:
            model_name: Name of the model to train
            X_train: Training features
            y_train: Training labels
            sample_weight: Optional per-row weights for class imbalance
            tune_hyperparameters: Whether to perform grid search

        Returns:
            TrainingResult holding the refitted best estimator
        """
        logger.info(f"Training {model_name}...")

        model = self.build_model(model_name)
        fit_params = {} if sample_weight is None else {"sample_weight": np.asarray(sample_weight)}

        if tune_hyperparameters:
            param_grid = self.get_param_grids()[model_name]
            grid_search = GridSearchCV(
                model,
                param_grid,
                scoring=self._scorer(),
                cv=self._cv(),
                n_jobs=self.n_jobs,
                refit=True,
                verbose=0
            )
            grid_search.fit(X_train, y_train, **fit_params)

            best_model = grid_search.best_estimator_
            best_params = grid_search.best_params_
            best_score = float(grid_search.best_score_)
            cv_results = pd.DataFrame(grid_search.cv_results_)

            logger.info(f"{model_name} - Best params: {best_params}")
            logger.info(f"{model_name} - Best CV {self.scoring}: {best_score:.4f}")

        else:
            cv_scores = cross_val_score(
                model, X_train, y_train,
                scoring=self._scorer(),
                cv=self._cv(),
                n_jobs=self.n_jobs,
                params=fit_params
            )
            best_model = model.fit(X_train, y_train, **fit_params)
            best_score = float(cv_scores.mean())
            best_params = {}
            cv_results = pd.DataFrame({"fold": range(len(cv_scores)), "score": cv_scores})

            logger.info(f"{model_name} - CV {self.scoring}: {best_score:.4f}")

        return TrainingResult(
            model_name=model_name,
            model=best_model,
            best_params=best_params,
            cv_score=best_score,
            scoring=self.scoring,
            cv_results=cv_results
        )

    def train_all_models(self, X_train: pd.DataFrame, y_train: pd.Series,
                         model_names: Optional[List[str]] = None,
                         sample_weight: Optional[np.ndarray] = None,
                         tune_hyperparameters: bool = True) -> Dict[str, TrainingResult]:
        """
        Train all specified models and compare their CV scores.

        Args:
            X_train: Training features
            y_train: Training labels
            model_names: List of model names to train (None for all)
            sample_weight: Optional per-row weights
            tune_hyperparameters: Whether to perform grid search

        Returns:
            Dictionary of TrainingResult per model
        """
        if model_names is None:
            model_names = list(MODEL_NAMES)

        results = {}
        for model_name in model_names:
            results[model_name] = self.train_model(
                model_name, X_train, y_train,
                sample_weight=sample_weight,
                tune_hyperparameters=tune_hyperparameters
            )

        if results:
            best_name = max(results, key=lambda k: results[k].cv_score)
            logger.info(f"Best model by CV: {best_name} ({results[best_name].cv_score:.4f})")

        return results

    @staticmethod
    def predict_proba(model: Any, X: pd.DataFrame) -> np.ndarray:
        """Probability of the bankrupt class (label 1)."""
        proba = model.predict_proba(X)
        classes = list(getattr(model, "classes_", [0, 1]))
        return proba[:, classes.index(1)]

    def save_model(self, result: TrainingResult, file_path: Union[str, Path],
                   threshold: float = 0.5,
                   feature_columns: Optional[List[str]] = None,
                   variant: Optional[str] = None,
                   imputer: Optional[Any] = None) -> Path:
        """
        Save a trained model bundle to disk.

        Args:
            result: Training result to persist
            file_path: Destination .joblib path
            threshold: Decision threshold chosen on the ROC curve
            feature_columns: Column order the model was trained on
            variant: Dataset variant the model was trained on
            imputer: Imputer fitted on the training table, applied to new data

        Returns:
            Path written
        """
        path = Path(file_path)
        path.parent.mkdir(parents=True, exist_ok=True)
        logger.info(f"Saving model to {path}")

        bundle = {
            "model": result.model,
            "model_name": result.model_name,
            "params": result.best_params,
            "cv_score": result.cv_score,
            "scoring": result.scoring,
            "threshold": float(threshold),
            "feature_columns": list(feature_columns) if feature_columns is not None else None,
            "variant": variant,
            "imputer": imputer,
        }
        joblib.dump(bundle, path)
        return path

    @staticmethod
    def load_model(file_path: Union[str, Path]) -> Dict[str, Any]:
        """
        Load a model bundle written by save_model.

        Args:
            file_path: Path to the saved bundle

        Returns:
            Bundle dictionary with at least 'model' and 'threshold'
        """
        path = Path(file_path)
        if not path.exists():
            raise FileNotFoundError(f"Model bundle not found: {path}")
        logger.info(f"Loading model from {path}")
        bundle = joblib.load(path)
        if not isinstance(bundle, dict) or "model" not in bundle:
            raise ValueError(f"{path} is not a model bundle")
        return bundle
