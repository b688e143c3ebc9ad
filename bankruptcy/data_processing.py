"""
Data Processing Module

Handles loading of the bankruptcy tables, class label standardization,
missing value imputation and derivation of the balanced / feature-selected
dataset variants.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Tuple, Union

import numpy as np
import pandas as pd
from imblearn.over_sampling import SMOTE, RandomOverSampler
from imblearn.under_sampling import RandomUnderSampler
from sklearn.feature_selection import SelectKBest, f_classif, mutual_info_classif
from sklearn.impute import SimpleImputer

logger = logging.getLogger(__name__)

POSITIVE_LABELS = {"1", "1.0", "true", "yes", "y", "b", "bankrupt", "bankruptcy", "failed"}
NEGATIVE_LABELS = {"0", "0.0", "false", "no", "n", "nb", "not bankrupt", "non-bankrupt",
                   "non bankrupt", "healthy", "alive"}


@dataclass
class DatasetSplit:
    """Training and test tables for one dataset variant."""

    variant: str
    X_train: pd.DataFrame
    y_train: pd.Series
    X_test: pd.DataFrame
    y_test: pd.Series


class DataProcessor:
    """Main class for data processing operations."""

    def __init__(self, label_column: str = "class",
                 positive_labels: Optional[Iterable[str]] = None,
                 negative_labels: Optional[Iterable[str]] = None,
                 impute_strategy: str = "median",
                 random_state: int = 42):
        """
        Initialize DataProcessor.

        Args:
            label_column: Name of the bankrupt / not bankrupt column
            positive_labels: Extra raw label values meaning "bankrupt"
            negative_labels: Extra raw label values meaning "not bankrupt"
            impute_strategy: Strategy for numeric imputation ('mean', 'median', 'most_frequent')
            random_state: Random seed for resampling
        """
        self.label_column = label_column
        self.positive_labels = POSITIVE_LABELS | {self._normalize(v) for v in positive_labels or []}
        self.negative_labels = NEGATIVE_LABELS | {self._normalize(v) for v in negative_labels or []}
        overlap = self.positive_labels & self.negative_labels
        if overlap:
            raise ValueError(f"Labels configured as both positive and negative: {sorted(overlap)}")
        self.impute_strategy = impute_strategy
        self.random_state = random_state

        self.imputer = None

    @staticmethod
    def _normalize(value) -> str:
        return " ".join(str(value).strip().lower().split())

    def load_table(self, file_path: Union[str, Path]) -> pd.DataFrame:
        """
        Load a table from a spreadsheet or CSV file.

        Args:
            file_path: Path to an .xlsx/.xls/.csv file

        Returns:
            Loaded DataFrame
        """
        path = Path(file_path)
        logger.info(f"Loading data from {path}")

        if not path.exists():
            raise FileNotFoundError(f"Data file not found: {path}")

        suffix = path.suffix.lower()
        if suffix in {".xlsx", ".xls"}:
            df = pd.read_excel(path)
        elif suffix == ".csv":
            df = pd.read_csv(path)
        else:
            raise ValueError(f"Unsupported file type '{suffix}' for {path}")

        logger.info(f"Data loaded successfully: {df.shape[0]} rows, {df.shape[1]} columns")
        return df

    def standardize_labels(self, labels: pd.Series) -> pd.Series:
        """
        Map raw class labels onto 1 (bankrupt) / 0 (not bankrupt).

        Args:
            labels: Raw label column

        Returns:
            Integer Series with the same index
        """
        if labels.isnull().any():
            raise ValueError(f"{int(labels.isnull().sum())} rows have a missing label")

        normalized = labels.map(self._normalize)
        mapped = pd.Series(np.nan, index=labels.index)
        mapped[normalized.isin(self.positive_labels)] = 1
        mapped[normalized.isin(self.negative_labels)] = 0

        unmapped = labels[mapped.isnull()]
        if len(unmapped) > 0:
            raise ValueError(
                f"Unrecognized class labels: {sorted(unmapped.astype(str).unique().tolist())}"
            )

        return mapped.astype(int).rename(labels.name)

    def prepare_features_target(self, df: pd.DataFrame) -> Tuple[pd.DataFrame, pd.Series]:
        """
        Separate features and standardized target.

        Args:
            df: Input DataFrame

        Returns:
            Features DataFrame and target Series
        """
        if self.label_column not in df.columns:
            raise ValueError(f"Target column '{self.label_column}' not found in data")

        X = df.drop(columns=[self.label_column])
        y = self.standardize_labels(df[self.label_column])

        non_numeric = X.select_dtypes(exclude=[np.number, np.bool_]).columns.tolist()
        if non_numeric:
            logger.warning(f"Dropping non-numeric columns: {non_numeric}")
            X = X.drop(columns=non_numeric)

        return X, y

    def summarize(self, X: pd.DataFrame, y: pd.Series, name: str = "data") -> Dict[str, object]:
        """
        Dimensions and class balance of a table.

        Returns:
            Dictionary with rows, columns, per-class counts and minority share
        """
        counts = y.value_counts().reindex([0, 1], fill_value=0)
        return {
            "name": name,
            "rows": int(X.shape[0]),
            "columns": int(X.shape[1]),
            "not_bankrupt": int(counts[0]),
            "bankrupt": int(counts[1]),
            "minority_share": float(counts.min() / counts.sum()) if counts.sum() > 0 else 0.0,
        }

    def print_summary(self, X: pd.DataFrame, y: pd.Series, name: str = "data") -> Dict[str, object]:
        """Print dimensions and class balance."""
        summary = self.summarize(X, y, name)
        print(f"{name}: {summary['rows']} rows x {summary['columns']} features")
        print(f"  not bankrupt: {summary['not_bankrupt']}  bankrupt: {summary['bankrupt']}  "
              f"(minority share {summary['minority_share']:.2%})")
        return summary

    def impute(self, X_train: pd.DataFrame, X_test: pd.DataFrame) -> Tuple[pd.DataFrame, pd.DataFrame]:
        """
        Impute missing values, fitting on the training table only.

        The fitted imputer is kept on ``self.imputer`` even when nothing is
        missing, so saved models can fill gaps in new data with training
        statistics.

        Args:
            X_train: Training features
            X_test: Test features (same columns)

        Returns:
            Imputed (X_train, X_test)
        """
        # keep_empty_features so all-NaN training columns survive as constants
        self.imputer = SimpleImputer(strategy=self.impute_strategy, keep_empty_features=True)
        self.imputer.fit(X_train)

        missing = int(X_train.isnull().sum().sum() + X_test.isnull().sum().sum())
        if missing == 0:
            logger.info("No missing values found")
            return X_train, X_test

        logger.info(f"Imputing {missing} missing values using {self.impute_strategy} strategy")
        X_train_imp = pd.DataFrame(
            self.imputer.transform(X_train),
            columns=X_train.columns,
            index=X_train.index
        )
        X_test_imp = pd.DataFrame(
            self.imputer.transform(X_test),
            columns=X_test.columns,
            index=X_test.index
        )
        return X_train_imp, X_test_imp

    def align_columns(self, X_train: pd.DataFrame, X_test: pd.DataFrame) -> pd.DataFrame:
        """
        Restrict and reorder test columns to match the training table.

        Returns:
            Test features with exactly the training columns
        """
        missing = [c for c in X_train.columns if c not in X_test.columns]
        if missing:
            raise ValueError(f"Test table is missing training columns: {missing}")

        extra = [c for c in X_test.columns if c not in X_train.columns]
        if extra:
            logger.info(f"Ignoring {len(extra)} test-only columns")

        return X_test[X_train.columns]

    def load_split(self, config, variant: str) -> DatasetSplit:
        """
        Load the training table of a variant together with its matching test table.

        Args:
            config: ExperimentConfig
            variant: Dataset variant name

        Returns:
            DatasetSplit ready for training
        """
        train_df = self.load_table(config.train_path(variant))
        test_df = self.load_table(config.test_path(variant))

        X_train, y_train = self.prepare_features_target(train_df)
        X_test, y_test = self.prepare_features_target(test_df)
        X_test = self.align_columns(X_train, X_test)
        X_train, X_test = self.impute(X_train, X_test)

        return DatasetSplit(variant=variant, X_train=X_train, y_train=y_train,
                            X_test=X_test, y_test=y_test)

    def balance_classes(self, X: pd.DataFrame, y: pd.Series,
                        method: str = "undersample") -> Tuple[pd.DataFrame, pd.Series]:
        """
        Resample a table to equal class counts.

        Args:
            X: Features DataFrame
            y: Target Series
            method: 'undersample', 'oversample' or 'smote'

        Returns:
            Resampled (X, y)
        """
        logger.info(f"Balancing classes using {method}")

        if method == "undersample":
            sampler = RandomUnderSampler(random_state=self.random_state)
        elif method == "oversample":
            sampler = RandomOverSampler(random_state=self.random_state)
        elif method == "smote":
            minority = int(y.value_counts().min())
            sampler = SMOTE(random_state=self.random_state, k_neighbors=max(1, min(5, minority - 1)))
        else:
            raise ValueError(f"Unknown balancing method: {method}")

        X_res, y_res = sampler.fit_resample(X, y)
        X_res = pd.DataFrame(X_res, columns=X.columns)
        y_res = pd.Series(y_res, name=y.name)

        logger.info(f"Class counts after balancing: {y_res.value_counts().to_dict()}")
        return X_res, y_res

    def select_features(self, X: pd.DataFrame, y: pd.Series,
                        k: int = 20, method: str = "f_classif") -> List[str]:
        """
        Select top k features based on specified method.

        Args:
            X: Features DataFrame
            y: Target Series
            k: Number of features to select
            method: Selection method ('f_classif', 'mutual_info')

        Returns:
            Names of the selected features, in table order
        """
        logger.info(f"Selecting top {k} features using {method}")

        if method == "f_classif":
            score_func = f_classif
        elif method == "mutual_info":
            score_func = mutual_info_classif
        else:
            raise ValueError(f"Unknown feature selection method: {method}")

        if k < 1:
            raise ValueError(f"k must be positive, got {k}")

        X_filled = X.fillna(X.median())
        selector = SelectKBest(score_func=score_func, k=min(k, X.shape[1]))
        selector.fit(X_filled, y)

        selected = X.columns[selector.get_support()].tolist()
        logger.info(f"Selected features: {selected}")
        return selected

    def build_variants(self, train_df: pd.DataFrame, test_df: pd.DataFrame,
                       k_features: int = 20,
                       balance_method: str = "undersample",
                       selection_method: str = "f_classif") -> Dict[str, pd.DataFrame]:
        """
        Derive the four training tables and two test tables from one split.

        Feature selection and balancing only look at the training rows.

        Returns:
            Dictionary with keys train_original, train_balanced, train_selected,
            train_balanced_selected, test_original, test_selected
        """
        X_train, y_train = self.prepare_features_target(train_df)
        X_test, y_test = self.prepare_features_target(test_df)
        X_test = self.align_columns(X_train, X_test)

        selected = self.select_features(X_train, y_train, k=k_features, method=selection_method)

        # samplers reject NaN, so balance an imputed copy
        X_bal, y_bal = self.balance_classes(
            X_train.fillna(X_train.median()), y_train, method=balance_method
        )

        def _table(X: pd.DataFrame, y: pd.Series) -> pd.DataFrame:
            out = X.reset_index(drop=True).copy()
            out[self.label_column] = y.reset_index(drop=True).values
            return out

        return {
            "train_original": _table(X_train, y_train),
            "train_balanced": _table(X_bal, y_bal),
            "train_selected": _table(X_train[selected], y_train),
            "train_balanced_selected": _table(X_bal[selected], y_bal),
            "test_original": _table(X_test, y_test),
            "test_selected": _table(X_test[selected], y_test),
        }


def create_sample_data(n_samples: int = 1000, n_features: int = 10,
                       bankrupt_rate: float = 0.1,
                       random_state: int = 42,
                       label_column: str = "class") -> pd.DataFrame:
    """
    Create a synthetic bankruptcy table for testing.

    The first three ratios shift with the label so models have signal to find.

    Args:
        n_samples: Number of companies
        n_features: Number of financial ratio columns
        bankrupt_rate: Proportion of bankrupt companies
        random_state: Random seed
        label_column: Name of the label column

    Returns:
        Sample DataFrame with columns Attr1..AttrN and the label
    """
    rng = np.random.default_rng(random_state)

    y = (rng.random(n_samples) < bankrupt_rate).astype(int)
    X = rng.normal(size=(n_samples, n_features))
    informative = min(3, n_features)
    X[:, :informative] += 1.5 * y[:, None]

    feature_names = [f"Attr{i + 1}" for i in range(n_features)]
    df = pd.DataFrame(X, columns=feature_names)
    df[label_column] = y
    return df
