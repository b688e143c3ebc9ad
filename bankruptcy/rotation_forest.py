"""
Rotation Forest

Ensemble of decision trees, each trained on its own rotated feature space:
features are split at random into disjoint groups, a PCA is fitted on a
random class/row sample of every group, and the PCA loadings form a block
rotation matrix. Follows Rodriguez, Kuncheva & Alonso (2006), built from
scikit-learn's PCA and DecisionTreeClassifier so it plugs into GridSearchCV.
"""

from __future__ import annotations

import logging
from typing import Optional, Tuple

import numpy as np
from joblib import Parallel, delayed
from sklearn.base import BaseEstimator, ClassifierMixin
from sklearn.decomposition import PCA
from sklearn.preprocessing import StandardScaler
from sklearn.tree import DecisionTreeClassifier
from sklearn.utils import check_random_state
from sklearn.utils.multiclass import check_classification_targets
from sklearn.utils.validation import (
    _check_sample_weight,
    check_array,
    check_is_fitted,
    check_X_y,
)

logger = logging.getLogger(__name__)


def _group_rotation(X: np.ndarray, y: np.ndarray, group: np.ndarray,
                    sample_fraction: float, rng: np.random.RandomState) -> np.ndarray:
    """PCA loadings (as columns) for one feature group."""
    classes = np.unique(y)
    keep = classes[rng.rand(len(classes)) < 0.5]
    if len(keep) == 0:
        keep = classes[[rng.randint(len(classes))]]

    rows = np.flatnonzero(np.isin(y, keep))
    n_draw = int(np.ceil(sample_fraction * len(rows)))
    rows = rng.choice(rows, size=n_draw, replace=False)

    # a PCA on fewer rows than features cannot give a full rotation
    if len(rows) <= len(group):
        rows = np.arange(X.shape[0])
    if len(rows) <= len(group):
        return np.eye(len(group))

    pca = PCA().fit(X[np.ix_(rows, group)])
    return pca.components_.T


def _fit_rotation_tree(X: np.ndarray, y: np.ndarray, sample_weight: Optional[np.ndarray],
                       n_subsets: int, sample_fraction: float,
                       max_depth: Optional[int], min_samples_leaf: int,
                       seed: int) -> Tuple[np.ndarray, DecisionTreeClassifier]:
    rng = np.random.RandomState(seed)
    n_features = X.shape[1]

    rotation = np.zeros((n_features, n_features))
    for group in np.array_split(rng.permutation(n_features), n_subsets):
        rotation[np.ix_(group, group)] = _group_rotation(X, y, group, sample_fraction, rng)

    tree = DecisionTreeClassifier(
        max_depth=max_depth,
        min_samples_leaf=min_samples_leaf,
        random_state=seed
    )
    tree.fit(X @ rotation, y, sample_weight=sample_weight)
    return rotation, tree


class RotationForestClassifier(ClassifierMixin, BaseEstimator):
    """
    Rotation forest classifier.

    Args:
        n_estimators: Number of trees
        n_subsets: Number of disjoint feature groups per tree
            (default: one group per three features)
        sample_fraction: Share of the selected rows used to fit each group's PCA
        max_depth: Maximum depth of each tree
        min_samples_leaf: Minimum samples per leaf of each tree
        n_jobs: Number of joblib workers used to build trees
        random_state: Random seed
    """

    def __init__(self, n_estimators: int = 10, n_subsets: Optional[int] = None,
                 sample_fraction: float = 0.75, max_depth: Optional[int] = None,
                 min_samples_leaf: int = 1, n_jobs: Optional[int] = None,
                 random_state=None):
        self.n_estimators = n_estimators
        self.n_subsets = n_subsets
        self.sample_fraction = sample_fraction
        self.max_depth = max_depth
        self.min_samples_leaf = min_samples_leaf
        self.n_jobs = n_jobs
        self.random_state = random_state

    def fit(self, X, y, sample_weight=None):
        """
        Build the forest.

        Args:
            X: Feature matrix
            y: Class labels
            sample_weight: Optional per-row weights passed to every tree

        Returns:
            self
        """
        X, y = check_X_y(X, y)
        check_classification_targets(y)

        if self.n_estimators < 1:
            raise ValueError(f"n_estimators must be positive, got {self.n_estimators}")
        if not 0 < self.sample_fraction <= 1:
            raise ValueError(f"sample_fraction must be in (0, 1], got {self.sample_fraction}")

        self.classes_, y_encoded = np.unique(y, return_inverse=True)
        if len(self.classes_) < 2:
            raise ValueError("RotationForestClassifier needs at least two classes")

        if sample_weight is not None:
            sample_weight = _check_sample_weight(sample_weight, X)

        n_features = X.shape[1]
        self.n_features_in_ = n_features
        n_subsets = self.n_subsets or max(1, int(round(n_features / 3)))
        self.n_subsets_ = int(min(n_subsets, n_features))

        self.scaler_ = StandardScaler().fit(X)
        X_scaled = self.scaler_.transform(X)

        rng = check_random_state(self.random_state)
        seeds = rng.randint(np.iinfo(np.int32).max, size=self.n_estimators)

        fitted = Parallel(n_jobs=self.n_jobs)(
            delayed(_fit_rotation_tree)(
                X_scaled, y_encoded, sample_weight, self.n_subsets_,
                self.sample_fraction, self.max_depth, self.min_samples_leaf, seed
            )
            for seed in seeds
        )
        self.rotations_ = [rotation for rotation, _ in fitted]
        self.estimators_ = [tree for _, tree in fitted]
        logger.debug(f"Built {len(self.estimators_)} rotation trees over {self.n_subsets_} feature groups")
        return self

    def _rotated(self, X) -> np.ndarray:
        check_is_fitted(self, "estimators_")
        X = check_array(X)
        if X.shape[1] != self.n_features_in_:
            raise ValueError(
                f"X has {X.shape[1]} features, but RotationForestClassifier "
                f"was fitted with {self.n_features_in_}"
            )
        return self.scaler_.transform(X)

    def predict_proba(self, X) -> np.ndarray:
        X_scaled = self._rotated(X)
        probas = [
            tree.predict_proba(X_scaled @ rotation)
            for rotation, tree in zip(self.rotations_, self.estimators_)
        ]
        return np.mean(probas, axis=0)

    def predict(self, X) -> np.ndarray:
        proba = self.predict_proba(X)
        return self.classes_[np.argmax(proba, axis=1)]

    @property
    def feature_importances_(self) -> np.ndarray:
        """Tree importances mapped back to the input features through |rotation|."""
        check_is_fitted(self, "estimators_")
        total = np.zeros(self.n_features_in_)
        for rotation, tree in zip(self.rotations_, self.estimators_):
            mapped = np.abs(rotation) @ tree.feature_importances_
            if mapped.sum() > 0:
                total += mapped / mapped.sum()
        if total.sum() == 0:
            return total
        return total / total.sum()
