"""Tests for class-imbalance weighting."""

from __future__ import annotations

import numpy as np
import pandas as pd
import pytest

from bankruptcy.weights import class_weights, sample_weights, scale_pos_weight


def make_labels() -> pd.Series:
    return pd.Series([0] * 8 + [1] * 2)


def test_balanced_weights_equalize_class_totals() -> None:
    y = make_labels()
    weights = class_weights(y, "balanced")
    assert weights[0] == pytest.approx(0.625)
    assert weights[1] == pytest.approx(2.5)

    w = sample_weights(y, "balanced")
    assert w[y.values == 0].sum() == pytest.approx(w[y.values == 1].sum())


def test_ratio_weights_leave_majority_at_one() -> None:
    weights = class_weights(make_labels(), "ratio")
    assert weights == {0: 1.0, 1: 4.0}


def test_none_weights_are_uniform() -> None:
    w = sample_weights(make_labels(), "none")
    np.testing.assert_array_equal(w, np.ones(10))


def test_sample_weights_align_with_rows() -> None:
    y = pd.Series([1, 0, 0, 0])
    w = sample_weights(y, "ratio")
    assert w.tolist() == [3.0, 1.0, 1.0, 1.0]


def test_invalid_inputs() -> None:
    with pytest.raises(ValueError):
        class_weights(make_labels(), "inverse")
    with pytest.raises(ValueError):
        class_weights(pd.Series([0, 0, 0]), "balanced")


def test_scale_pos_weight() -> None:
    assert scale_pos_weight(make_labels()) == pytest.approx(4.0)
    with pytest.raises(ValueError):
        scale_pos_weight(pd.Series([0, 0]))
