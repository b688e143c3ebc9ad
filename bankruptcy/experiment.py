"""
Experiment runner: every model on every dataset variant.

For each variant the training table is loaded with its matching test table,
class-imbalance weights are computed from the training labels, each model is
grid-searched and then scored on the test table.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Dict, List, Optional, Tuple

import matplotlib.pyplot as plt
import pandas as pd

from .config import ExperimentConfig
from .data_processing import DataProcessor
from .evaluation import EvaluationResult, ModelEvaluator, summary_frame
from .model import ModelTrainer, TrainingResult
from .parallel import parallel_backend
from .weights import sample_weights

logger = logging.getLogger(__name__)

METRICS_CSV = "metrics_summary.csv"
RESULTS_JSON = "results.json"


class ExperimentRunner:
    """Runs the variant x model benchmark described by an ExperimentConfig."""

    def __init__(self, config: ExperimentConfig,
                 processor: Optional[DataProcessor] = None,
                 trainer: Optional[ModelTrainer] = None,
                 evaluator: Optional[ModelEvaluator] = None):
        self.config = config
        self.processor = processor or DataProcessor(
            label_column=config.label_column,
            positive_labels=config.positive_labels,
            negative_labels=config.negative_labels,
            impute_strategy=config.impute_strategy,
            random_state=config.random_state
        )
        self.trainer = trainer or ModelTrainer(
            random_state=config.random_state,
            cv_folds=config.cv_folds,
            scoring=config.scoring,
            n_jobs=config.n_jobs,
            param_grids=config.param_grids
        )
        self.evaluator = evaluator or ModelEvaluator(threshold_method=config.threshold_method)
        self.training_results: Dict[Tuple[str, str], TrainingResult] = {}

    def _save_figure(self, fig, path: Path) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        fig.savefig(path, dpi=150)
        plt.close(fig)

    def run_variant(self, variant: str, models: Optional[List[str]] = None) -> List[EvaluationResult]:
        """
        Train and evaluate every model on one dataset variant.

        Args:
            variant: Dataset variant name
            models: Model names (defaults to the configured list)

        Returns:
            One EvaluationResult per model
        """
        models = models or self.config.models
        variant_dir = self.config.output_dir / variant

        logger.info(f"=== Variant: {variant} ===")
        split = self.processor.load_split(self.config, variant)
        self.processor.print_summary(split.X_train, split.y_train, name=f"{variant} train")
        self.processor.print_summary(split.X_test, split.y_test, name=f"{variant} test")

        weights = sample_weights(split.y_train, scheme=self.config.weighting)

        results = []
        for model_name in models:
            with parallel_backend(self.config.n_jobs, self.config.parallel_backend):
                training = self.trainer.train_model(
                    model_name, split.X_train, split.y_train,
                    sample_weight=weights
                )
            self.training_results[(variant, model_name)] = training

            y_score = self.trainer.predict_proba(training.model, split.X_test)
            evaluation = self.evaluator.evaluate(model_name, variant, split.y_test, y_score)
            self.evaluator.print_evaluation_report(evaluation)
            results.append(evaluation)

            if self.config.save_plots:
                self._save_figure(self.evaluator.plot_roc_curve(evaluation),
                                  variant_dir / f"{model_name}_roc_curve.png")
                self._save_figure(self.evaluator.plot_confusion_matrix(evaluation),
                                  variant_dir / f"{model_name}_confusion_matrix.png")

            if self.config.save_models:
                self.trainer.save_model(
                    training,
                    variant_dir / f"{model_name}.joblib",
                    threshold=evaluation.threshold,
                    feature_columns=split.X_train.columns.tolist(),
                    variant=variant,
                    imputer=self.processor.imputer
                )

        if self.config.save_plots and results:
            fig = self.evaluator.plot_roc_curves(results, title=f"ROC Curves - {variant}")
            self._save_figure(fig, variant_dir / "roc_curves.png")

        return results

    def run(self, variants: Optional[List[str]] = None,
            models: Optional[List[str]] = None) -> pd.DataFrame:
        """
        Run the whole benchmark and write the summary table.

        Args:
            variants: Variants to run (defaults to the configured list)
            models: Models to run (defaults to the configured list)

        Returns:
            Summary DataFrame, one row per (variant, model), best AUC first
        """
        variants = variants or self.config.variants
        all_results: List[EvaluationResult] = []
        for variant in variants:
            all_results.extend(self.run_variant(variant, models))

        summary = summary_frame(all_results)
        if not summary.empty:
            summary["cv_score"] = [
                self.training_results[(row.variant, row.model)].cv_score
                for row in summary.itertuples()
            ]
            summary["best_params"] = [
                json.dumps(self.training_results[(row.variant, row.model)].best_params, default=str)
                for row in summary.itertuples()
            ]

        out_dir = self.config.output_dir
        out_dir.mkdir(parents=True, exist_ok=True)
        summary.to_csv(out_dir / METRICS_CSV, index=False)

        payload = {
            "config": self.config.to_dict(),
            "results": summary.to_dict(orient="records"),
        }
        with open(out_dir / RESULTS_JSON, "w", encoding="utf-8") as f:
            json.dump(payload, f, indent=2, default=str)

        logger.info(f"Summary written to {out_dir / METRICS_CSV}")
        return summary
