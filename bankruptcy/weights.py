"""
Class-imbalance weighting.

Bankrupt companies are a small minority of the original table, so their rows
get a larger loss weight during training.
"""

import logging
from typing import Dict

import numpy as np
import pandas as pd
from sklearn.utils.class_weight import compute_class_weight

logger = logging.getLogger(__name__)

WEIGHTING_SCHEMES = ("balanced", "ratio", "none")


def class_weights(y: pd.Series, scheme: str = "balanced") -> Dict[int, float]:
    """
    Per-class loss weights.

    Args:
        y: Binary target (0 = not bankrupt, 1 = bankrupt)
        scheme: 'balanced' gives every class the same total weight,
            'ratio' weights the minority by n_majority / n_minority and
            leaves the majority at 1, 'none' weights everything 1

    Returns:
        Mapping class -> weight
    """
    if scheme not in WEIGHTING_SCHEMES:
        raise ValueError(f"Unknown weighting scheme: {scheme}. Expected one of {WEIGHTING_SCHEMES}")

    classes = np.unique(np.asarray(y))
    if len(classes) != 2:
        raise ValueError(f"Class weighting needs both classes present, got {classes.tolist()}")

    if scheme == "none":
        return {int(c): 1.0 for c in classes}

    if scheme == "balanced":
        weights = compute_class_weight(class_weight="balanced", classes=classes, y=np.asarray(y))
        return {int(c): float(w) for c, w in zip(classes, weights)}

    counts = pd.Series(np.asarray(y)).value_counts()
    majority = counts.idxmax()
    ratio = float(counts.max() / counts.min())
    return {int(c): (1.0 if c == majority else ratio) for c in classes}


def sample_weights(y: pd.Series, scheme: str = "balanced") -> np.ndarray:
    """Row-level weights aligned with y."""
    weights = class_weights(y, scheme)
    w = np.asarray([weights[int(label)] for label in np.asarray(y)], dtype=float)
    logger.info(f"Sample weights ({scheme}): {weights}")
    return w


def scale_pos_weight(y: pd.Series) -> float:
    """Negative-to-positive count ratio, as XGBoost and LightGBM expect it."""
    y = np.asarray(y)
    n_pos = int((y == 1).sum())
    if n_pos == 0:
        raise ValueError("scale_pos_weight needs at least one positive sample")
    return float((y == 0).sum() / n_pos)
