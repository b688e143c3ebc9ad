"""Tests for ROC, threshold selection and evaluation reports."""

from __future__ import annotations

import matplotlib.pyplot as plt
import numpy as np
import pytest

from bankruptcy.evaluation import (ModelEvaluator, compute_roc,
                                   confusion_at_threshold,
                                   find_optimal_threshold, summary_frame)


def make_scores():
    y_true = np.array([0, 0, 0, 0, 0, 0, 1, 1, 1, 1])
    y_score = np.array([0.05, 0.1, 0.2, 0.3, 0.45, 0.6, 0.4, 0.7, 0.8, 0.9])
    return y_true, y_score


def test_compute_roc_perfect_separation() -> None:
    roc = compute_roc([0, 0, 1, 1], [0.1, 0.2, 0.8, 0.9])
    assert roc.auc == pytest.approx(1.0)
    assert roc.fpr[0] == 0.0 and roc.tpr[-1] == 1.0


def test_compute_roc_requires_both_classes() -> None:
    with pytest.raises(ValueError):
        compute_roc([1, 1, 1], [0.2, 0.5, 0.9])


def test_youden_threshold() -> None:
    threshold, j = find_optimal_threshold([0, 0, 1, 1], [0.1, 0.2, 0.8, 0.9], method="youden")
    assert threshold == pytest.approx(0.8)
    assert j == pytest.approx(1.0)


def test_youden_threshold_imperfect() -> None:
    y_true, y_score = make_scores()
    threshold, j = find_optimal_threshold(y_true, y_score, method="youden")
    # 0.7 flags three of four bankrupt companies with no false alarms
    assert threshold == pytest.approx(0.7)
    assert j == pytest.approx(0.75)


def test_closest_topleft_threshold() -> None:
    threshold, distance = find_optimal_threshold([0, 0, 1, 1], [0.1, 0.2, 0.8, 0.9],
                                                 method="closest_topleft")
    assert threshold == pytest.approx(0.8)
    assert distance == pytest.approx(0.0)


def test_threshold_is_finite_for_uninformative_scores() -> None:
    threshold, _ = find_optimal_threshold([0, 1, 0, 1], [0.5, 0.5, 0.5, 0.5], method="youden")
    assert np.isfinite(threshold)
    assert threshold <= np.nextafter(1.0, 2.0)


def test_no_positive_roc_point_flags_nobody() -> None:
    # only the infinite ROC threshold reaches J = 0 when every ranking is inverted
    y_true = [1, 1, 0, 0]
    y_score = [0.0, 0.1, 0.9, 1.0]
    threshold, j = find_optimal_threshold(y_true, y_score, method="youden")
    assert threshold > 1.0
    assert j == pytest.approx(0.0)
    cm = confusion_at_threshold(y_true, y_score, threshold)
    np.testing.assert_array_equal(cm, [[2, 0], [2, 0]])


def test_grid_threshold_metrics() -> None:
    y_true, y_score = make_scores()
    for method in ("balanced", "f1", "custom"):
        threshold, score = find_optimal_threshold(y_true, y_score, method=method)
        assert 0.0 < threshold < 1.0
        assert 0.0 <= score <= 1.0
    with pytest.raises(ValueError):
        find_optimal_threshold(y_true, y_score, method="accuracy")


def test_confusion_at_threshold_uses_greater_equal() -> None:
    y_true, y_score = make_scores()
    cm = confusion_at_threshold(y_true, y_score, 0.4)
    np.testing.assert_array_equal(cm, [[4, 2], [0, 4]])

    cm_high = confusion_at_threshold(y_true, y_score, 0.95)
    np.testing.assert_array_equal(cm_high, [[6, 0], [4, 0]])


def test_evaluate_builds_result() -> None:
    y_true, y_score = make_scores()
    evaluator = ModelEvaluator()
    result = evaluator.evaluate("random_forest", "original", y_true, y_score)

    assert result.threshold == pytest.approx(0.7)
    assert result.confusion_matrix.sum() == len(y_true)
    assert result.metrics["sensitivity"] == pytest.approx(0.75)
    assert result.metrics["specificity"] == pytest.approx(1.0)
    assert result.metrics["auc_roc"] == pytest.approx(result.roc.auc)
    assert evaluator.evaluation_results == [result]

    row = result.to_dict()
    assert (row["tn"], row["fp"], row["fn"], row["tp"]) == (6, 0, 1, 3)


def test_unknown_threshold_method() -> None:
    with pytest.raises(ValueError):
        ModelEvaluator(threshold_method="median")


def test_print_evaluation_report(capsys: pytest.CaptureFixture) -> None:
    y_true, y_score = make_scores()
    evaluator = ModelEvaluator()
    evaluator.print_evaluation_report(evaluator.evaluate("adaboost", "balanced", y_true, y_score))
    out = capsys.readouterr().out
    assert "adaboost [balanced]" in out
    assert "AUC-ROC" in out
    assert "Confusion Matrix" in out


def test_plots_return_figures() -> None:
    y_true, y_score = make_scores()
    evaluator = ModelEvaluator()
    a = evaluator.evaluate("random_forest", "original", y_true, y_score)
    b = evaluator.evaluate("adaboost", "original", y_true, 1 - y_score)

    figures = [
        evaluator.plot_roc_curve(a),
        evaluator.plot_roc_curves([a, b]),
        evaluator.plot_confusion_matrix(a),
        evaluator.plot_confusion_matrix(a, normalize=True),
        evaluator.plot_feature_importance(["x", "y", "z"], np.array([0.2, 0.5, 0.3]), top_n=2),
    ]
    for fig in figures:
        assert isinstance(fig, plt.Figure)
        plt.close(fig)

    legend = figures[1].axes[0].get_legend()
    labels = [t.get_text() for t in legend.get_texts()]
    assert any("AUC" in label for label in labels)

    with pytest.raises(ValueError):
        evaluator.plot_feature_importance(["x"], np.array([0.2, 0.8]))


def test_summary_frame_sorted_by_auc() -> None:
    y_true, y_score = make_scores()
    evaluator = ModelEvaluator()
    weak = evaluator.evaluate("weak", "original", y_true, 1 - y_score)
    strong = evaluator.evaluate("strong", "original", y_true, y_score)

    summary = summary_frame([weak, strong])
    assert summary["model"].tolist() == ["strong", "weak"]
    assert {"auc", "threshold", "tp", "sensitivity"} <= set(summary.columns)
    assert summary_frame([]).empty
