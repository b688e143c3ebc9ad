"""
Evaluation Module

ROC/AUC, ROC-optimal thresholds and confusion matrices for the bankruptcy
classifiers, plus the plots used to compare them on the held-out test table.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Tuple

import matplotlib.pyplot as plt
import numpy as np
import pandas as pd
import seaborn as sns
from sklearn.metrics import (accuracy_score, average_precision_score,
                             balanced_accuracy_score, confusion_matrix,
                             f1_score, matthews_corrcoef, precision_score,
                             recall_score, roc_auc_score, roc_curve)

logger = logging.getLogger(__name__)

CLASS_NAMES = ["Not bankrupt", "Bankrupt"]
THRESHOLD_METHODS = ("youden", "closest_topleft", "balanced", "f1", "custom")


@dataclass
class RocCurve:
    """ROC curve points and the area under them."""

    fpr: np.ndarray
    tpr: np.ndarray
    thresholds: np.ndarray
    auc: float


@dataclass
class EvaluationResult:
    """Test-set evaluation of one model on one dataset variant."""

    model_name: str
    variant: str
    roc: RocCurve
    threshold: float
    confusion_matrix: np.ndarray
    metrics: Dict[str, float] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        tn, fp, fn, tp = self.confusion_matrix.ravel()
        return {
            "model": self.model_name,
            "variant": self.variant,
            "auc": float(self.roc.auc),
            "threshold": float(self.threshold),
            "tn": int(tn), "fp": int(fp), "fn": int(fn), "tp": int(tp),
            **{k: float(v) for k, v in self.metrics.items()},
        }


def _check_binary(y_true) -> np.ndarray:
    y_true = np.asarray(y_true)
    if len(np.unique(y_true)) != 2:
        raise ValueError("ROC analysis needs both classes in y_true")
    return y_true


def compute_roc(y_true, y_score) -> RocCurve:
    """
    ROC curve and AUC for positive-class scores.

    Args:
        y_true: True labels (0/1)
        y_score: Predicted probability of class 1

    Returns:
        RocCurve
    """
    y_true = _check_binary(y_true)
    fpr, tpr, thresholds = roc_curve(y_true, y_score)
    auc = float(roc_auc_score(y_true, y_score))
    return RocCurve(fpr=fpr, tpr=tpr, thresholds=thresholds, auc=auc)


def find_optimal_threshold(y_true, y_score,
                           method: str = 'youden',
                           sensitivity_weight: float = 0.5) -> Tuple[float, float]:
    """
    Find optimal probability threshold for binary classification.

    Args:
        y_true: True labels
        y_score: Predicted probabilities
        method: 'youden' (max TPR - FPR), 'closest_topleft' (min distance to
            the (0, 1) corner), or a grid metric 'balanced', 'f1', 'custom'
        sensitivity_weight: Weight for sensitivity when method='custom'

    Returns:
        Optimal threshold and the criterion value there (J statistic,
        corner distance, or metric score)
    """
    if method not in THRESHOLD_METHODS:
        raise ValueError(f"Unknown metric: {method}")

    y_true = _check_binary(y_true)
    y_score = np.asarray(y_score)

    if method in ('youden', 'closest_topleft'):
        roc = compute_roc(y_true, y_score)
        # roc_curve starts at an infinite threshold that predicts nothing positive;
        # the smallest float above 1.0 keeps that meaning for scores of exactly 1.0
        thresholds = np.where(np.isinf(roc.thresholds), np.nextafter(1.0, 2.0), roc.thresholds)
        if method == 'youden':
            j = roc.tpr - roc.fpr
            best_idx = int(np.argmax(j))
            return float(thresholds[best_idx]), float(j[best_idx])
        distance = np.sqrt(roc.fpr ** 2 + (1 - roc.tpr) ** 2)
        best_idx = int(np.argmin(distance))
        return float(thresholds[best_idx]), float(distance[best_idx])

    thresholds = np.arange(0.01, 1.0, 0.01)
    scores = []

    for threshold in thresholds:
        y_pred = (y_score >= threshold).astype(int)

        if method == 'balanced':
            score = balanced_accuracy_score(y_true, y_pred)
        elif method == 'f1':
            score = f1_score(y_true, y_pred, zero_division=0)
        else:
            sensitivity = recall_score(y_true, y_pred, pos_label=1, zero_division=0)
            specificity = recall_score(y_true, y_pred, pos_label=0, zero_division=0)
            score = sensitivity_weight * sensitivity + (1 - sensitivity_weight) * specificity

        scores.append(score)

    best_idx = int(np.argmax(scores))
    return float(thresholds[best_idx]), float(scores[best_idx])


def confusion_at_threshold(y_true, y_score, threshold: float) -> np.ndarray:
    """
    2x2 confusion matrix, rows = truth [0, 1], columns = prediction [0, 1].

    A row is predicted bankrupt when its score is at least the threshold.
    """
    y_pred = (np.asarray(y_score) >= threshold).astype(int)
    return confusion_matrix(np.asarray(y_true), y_pred, labels=[0, 1])


class ModelEvaluator:
    """Main class for model evaluation and visualization."""

    def __init__(self, threshold_method: str = "youden"):
        """
        Initialize ModelEvaluator.

        Args:
            threshold_method: Criterion used to pick the decision threshold
        """
        if threshold_method not in THRESHOLD_METHODS:
            raise ValueError(f"Unknown threshold method: {threshold_method}")
        self.threshold_method = threshold_method
        self.evaluation_results: List[EvaluationResult] = []

    def calculate_metrics(self, y_true, y_pred,
                          y_score: Optional[np.ndarray] = None) -> Dict[str, float]:
        """
        Calculate evaluation metrics.

        Args:
            y_true: True labels
            y_pred: Predicted labels
            y_score: Predicted probabilities (optional)

        Returns:
            Dictionary of evaluation metrics
        """
        metrics = {}

        metrics['accuracy'] = accuracy_score(y_true, y_pred)
        metrics['precision'] = precision_score(y_true, y_pred, pos_label=1, zero_division=0)
        metrics['sensitivity'] = recall_score(y_true, y_pred, pos_label=1, zero_division=0)
        metrics['specificity'] = recall_score(y_true, y_pred, pos_label=0, zero_division=0)
        metrics['f1_score'] = f1_score(y_true, y_pred, pos_label=1, zero_division=0)
        metrics['balanced_accuracy'] = balanced_accuracy_score(y_true, y_pred)
        metrics['mcc'] = matthews_corrcoef(y_true, y_pred)

        if y_score is not None:
            metrics['auc_roc'] = roc_auc_score(y_true, y_score)
            metrics['average_precision'] = average_precision_score(y_true, y_score)

        return {k: float(v) for k, v in metrics.items()}

    def evaluate(self, model_name: str, variant: str, y_true, y_score) -> EvaluationResult:
        """
        ROC, optimal threshold and confusion matrix for one model's test scores.

        Args:
            model_name: Name of the model
            variant: Dataset variant the model was trained on
            y_true: True test labels
            y_score: Predicted probability of bankruptcy

        Returns:
            EvaluationResult
        """
        y_true = np.asarray(y_true)
        y_score = np.asarray(y_score)

        roc = compute_roc(y_true, y_score)
        threshold, _ = find_optimal_threshold(y_true, y_score, method=self.threshold_method)
        cm = confusion_at_threshold(y_true, y_score, threshold)
        y_pred = (y_score >= threshold).astype(int)
        metrics = self.calculate_metrics(y_true, y_pred, y_score)

        result = EvaluationResult(
            model_name=model_name,
            variant=variant,
            roc=roc,
            threshold=threshold,
            confusion_matrix=cm,
            metrics=metrics
        )
        self.evaluation_results.append(result)

        logger.info(f"{model_name} on {variant}: AUC={roc.auc:.4f} threshold={threshold:.4f}")
        return result

    def print_evaluation_report(self, result: EvaluationResult) -> None:
        """Print AUC, threshold, confusion matrix and key metrics."""
        title = f"{result.model_name} [{result.variant}]"
        print(f"\n{'='*50}")
        print(f"Evaluation Report for {title}")
        print(f"{'='*50}\n")

        m = result.metrics
        print(f"AUC-ROC:              {result.roc.auc:.4f}")
        print(f"Threshold ({self.threshold_method}): {result.threshold:.4f}")
        print(f"Accuracy:             {m['accuracy']:.4f}")
        print(f"Sensitivity:          {m['sensitivity']:.4f}")
        print(f"Specificity:          {m['specificity']:.4f}")
        print(f"Precision:            {m['precision']:.4f}")
        print(f"F1 Score:             {m['f1_score']:.4f}")
        print(f"Balanced Accuracy:    {m['balanced_accuracy']:.4f}")

        cm_df = pd.DataFrame(
            result.confusion_matrix,
            index=[f"true {c}" for c in CLASS_NAMES],
            columns=[f"pred {c}" for c in CLASS_NAMES]
        )
        print("\nConfusion Matrix:")
        print(cm_df.to_string())
        print(f"{'='*50}\n")

    def plot_roc_curve(self, result: EvaluationResult,
                       figsize: Tuple[int, int] = (8, 6)) -> plt.Figure:
        """
        Plot ROC curve with the AUC and the chosen threshold marked.

        Args:
            result: Evaluation result
            figsize: Figure size

        Returns:
            Matplotlib figure
        """
        roc = result.roc
        fig, ax = plt.subplots(figsize=figsize)
        ax.plot(roc.fpr, roc.tpr, color='darkorange', lw=2,
                label=f'ROC curve (AUC = {roc.auc:.3f})')
        ax.plot([0, 1], [0, 1], color='navy', lw=2, linestyle='--',
                label='Random Classifier')

        tn, fp, fn, tp = result.confusion_matrix.ravel()
        fpr_at = fp / (fp + tn) if (fp + tn) > 0 else 0.0
        tpr_at = tp / (tp + fn) if (tp + fn) > 0 else 0.0
        ax.scatter([fpr_at], [tpr_at], color='black', zorder=3,
                   label=f'Threshold = {result.threshold:.3f}')

        ax.set_xlim([0.0, 1.0])
        ax.set_ylim([0.0, 1.05])
        ax.set_xlabel('False Positive Rate (1 - Specificity)')
        ax.set_ylabel('True Positive Rate (Sensitivity)')
        ax.set_title(f'ROC Curve - {result.model_name} [{result.variant}]')
        ax.legend(loc="lower right")
        ax.grid(alpha=0.3)

        plt.tight_layout()
        return fig

    def plot_roc_curves(self, results: Sequence[EvaluationResult], title: str = "ROC Curves",
                        figsize: Tuple[int, int] = (8, 6)) -> plt.Figure:
        """
        Overlay the ROC curves of several results.

        Args:
            results: Evaluation results to compare
            title: Plot title
            figsize: Figure size

        Returns:
            Matplotlib figure
        """
        fig, ax = plt.subplots(figsize=figsize)
        for result in results:
            ax.plot(result.roc.fpr, result.roc.tpr, lw=2,
                    label=f'{result.model_name} (AUC = {result.roc.auc:.3f})')
        ax.plot([0, 1], [0, 1], 'k--', label='Random Classifier')
        ax.set_xlim([0.0, 1.0])
        ax.set_ylim([0.0, 1.05])
        ax.set_xlabel('False Positive Rate')
        ax.set_ylabel('True Positive Rate')
        ax.set_title(title)
        ax.legend(loc="lower right")
        ax.grid(alpha=0.3)

        plt.tight_layout()
        return fig

    def plot_confusion_matrix(self, result: EvaluationResult,
                              normalize: bool = False,
                              figsize: Tuple[int, int] = (8, 6)) -> plt.Figure:
        """
        Plot confusion matrix at the chosen threshold.

        Args:
            result: Evaluation result
            normalize: Whether to normalize rows to rates
            figsize: Figure size

        Returns:
            Matplotlib figure
        """
        cm = result.confusion_matrix

        if normalize:
            row_sums = cm.sum(axis=1)[:, np.newaxis]
            cm = np.divide(cm.astype('float'), row_sums,
                           out=np.zeros(cm.shape), where=row_sums > 0)
            fmt = '.2f'
            title_suffix = " (Normalized)"
        else:
            fmt = 'd'
            title_suffix = ""

        fig, ax = plt.subplots(figsize=figsize)
        sns.heatmap(cm, annot=True, fmt=fmt, cmap='Blues',
                    xticklabels=CLASS_NAMES,
                    yticklabels=CLASS_NAMES,
                    ax=ax)
        ax.set_title(f'Confusion Matrix - {result.model_name} [{result.variant}]{title_suffix}')
        ax.set_ylabel('True Label')
        ax.set_xlabel('Predicted Label')

        plt.tight_layout()
        return fig

    def plot_feature_importance(self, feature_names: List[str],
                                feature_importance: np.ndarray,
                                model_name: str = "Model",
                                top_n: int = 20,
                                figsize: Tuple[int, int] = (10, 8)) -> plt.Figure:
        """
        Plot feature importance.

        Args:
            feature_names: Names of features
            feature_importance: Importance values
            model_name: Name of the model for display
            top_n: Number of top features to show
            figsize: Figure size

        Returns:
            Matplotlib figure
        """
        feature_importance = np.asarray(feature_importance)
        if len(feature_names) != len(feature_importance):
            raise ValueError("feature_names and feature_importance differ in length")

        indices = np.argsort(feature_importance)[::-1][:top_n]
        top_features = [feature_names[i] for i in indices]
        top_importance = feature_importance[indices]

        fig, ax = plt.subplots(figsize=figsize)
        y_pos = np.arange(len(top_features))

        ax.barh(y_pos, top_importance)
        ax.set_yticks(y_pos)
        ax.set_yticklabels(top_features)
        ax.invert_yaxis()
        ax.set_xlabel('Importance')
        ax.set_title(f'Top {len(top_features)} Feature Importance - {model_name}')
        ax.grid(alpha=0.3, axis='x')

        plt.tight_layout()
        return fig


def summary_frame(results: Sequence[EvaluationResult]) -> pd.DataFrame:
    """One row per evaluation, best AUC first."""
    if not results:
        return pd.DataFrame(columns=["model", "variant", "auc", "threshold"])
    df = pd.DataFrame([r.to_dict() for r in results])
    return df.sort_values("auc", ascending=False, kind="stable").reset_index(drop=True)
