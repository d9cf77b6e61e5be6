"""
preprocessing.py — Feature Selection
=====================================

Responsibilities in the report pipeline:
1. Remove every column that has a missing value anywhere in the
   labelled pool.
2. Remove identifier, timestamp and windowing bookkeeping columns.
3. Separate the label (`classe`) from the numeric feature matrix.
4. Apply the exact same feature columns to the quiz pool.

Why each step matters:
- **Missing-value columns**: roughly a hundred window-summary columns
  (kurtosis, skewness, max/min/amplitude, var/avg/stddev) are filled
  only on the rare `new_window == "yes"` rows.  Dropping whole columns
  keeps every record; the forests cannot handle NaN.
- **Bookkeeping columns**: row index, user, timestamps and window
  numbers identify the recording session, which leaks the label
  without describing the movement.
- **Fixed columns for the quiz**: the fold forests were fitted on a
  fixed feature order; the quiz rows must present the same vector.
"""

import logging
from dataclasses import dataclass
from typing import Optional

import pandas as pd

from . import config
from .errors import DataError

logger = logging.getLogger("wle.preprocessing")


@dataclass(frozen=True)
class FeatureSet:
    """
    Clean feature matrix plus labels.

    Attributes:
        X: Numeric features, one row per record, no missing values.
        y: Labels aligned with X (None for the unlabelled quiz pool).
        feature_names: Column order of X.
        ids: Quiz problem ids aligned with X, when present.
    """

    X: pd.DataFrame
    y: Optional[pd.Series]
    feature_names: tuple
    ids: Optional[pd.Series] = None

    def __len__(self) -> int:
        return len(self.X)


class FeatureSelector:
    """
    Learns which columns survive cleaning from the labelled pool and
    applies that choice to any later table.

    Attributes:
        label_column (str): Name of the label column.
        bookkeeping_columns (list[str]): Columns always excluded.
        feature_names (tuple[str]): Selected features once fitted.
    """

    def __init__(self, label_column: str = None,
                 bookkeeping_columns: list = None):
        self.label_column = label_column or config.LABEL_COLUMN
        if bookkeeping_columns is None:
            bookkeeping_columns = config.BOOKKEEPING_COLUMNS
        self.bookkeeping_columns = list(bookkeeping_columns)
        self.feature_names: tuple = ()
        self._is_fitted = False

    # ── Column filters ─────────────────────────────────────────────

    @staticmethod
    def complete_columns(df: pd.DataFrame) -> list:
        """
        Columns with zero missing values across the whole table.

        Returns:
            Column names in their original order.
        """
        has_missing = df.isna().any()
        dropped = int(has_missing.sum())
        if dropped > 0:
            logger.info(f"Dropping {dropped} of {df.shape[1]} columns "
                        f"with missing values")
        return [col for col in df.columns if not has_missing[col]]

    # ── Fit / transform ────────────────────────────────────────────

    def fit(self, df: pd.DataFrame) -> "FeatureSelector":
        """
        Choose the feature columns from the labelled pool.

        Raises:
            DataError: If the label column is absent, has missing
                values, or no numeric feature column survives.
        """
        if self.label_column not in df.columns:
            raise DataError(f"Label column '{self.label_column}' not found")
        if df[self.label_column].isna().any():
            raise DataError(f"Label column '{self.label_column}' has missing values")
        unknown = sorted(set(df[self.label_column].astype(str)) - set(config.CLASS_LABELS))
        if unknown:
            raise DataError(f"Unknown labels in '{self.label_column}': {unknown}")

        excluded = set(self.bookkeeping_columns) | {self.label_column}
        candidates = [c for c in self.complete_columns(df) if c not in excluded]

        non_numeric = [c for c in candidates
                       if not pd.api.types.is_numeric_dtype(df[c])]
        if non_numeric:
            raise DataError(f"Non-numeric feature columns: {non_numeric}")

        if not candidates:
            raise DataError("No feature columns left after dropping "
                            "incomplete and bookkeeping columns")

        self.feature_names = tuple(candidates)
        self._is_fitted = True
        logger.info(f"Selected {len(self.feature_names)} feature columns")
        return self

    def transform(self, df: pd.DataFrame, id_column: str = None) -> FeatureSet:
        """
        Restrict a table to the fitted feature columns.

        The label is carried along when present; otherwise `y` is None
        (quiz pool).  An `id_column`, when given, is kept aside in `ids`.

        Raises:
            RuntimeError: If called before fit().
            DataError: If a feature column is absent or holds missing
                values in this table.
        """
        if not self._is_fitted:
            raise RuntimeError(
                "Feature selector has not been fitted yet. Call fit() first."
            )

        missing = [c for c in self.feature_names if c not in df.columns]
        if missing:
            raise DataError(f"Table lacks selected feature columns: {missing}")

        X = df.loc[:, list(self.feature_names)].astype(float).reset_index(drop=True)
        incomplete = int(X.isna().any(axis=1).sum())
        if incomplete > 0:
            raise DataError(f"{incomplete} rows have missing feature values")

        y = None
        if self.label_column in df.columns:
            y = df[self.label_column].astype(str).reset_index(drop=True)
            y.name = self.label_column

        ids = None
        if id_column is not None:
            if id_column not in df.columns:
                raise DataError(f"Id column '{id_column}' not found")
            ids = df[id_column].reset_index(drop=True)

        return FeatureSet(X=X, y=y, feature_names=self.feature_names, ids=ids)

    def fit_transform(self, df: pd.DataFrame) -> FeatureSet:
        """Fit on the labelled pool and return its clean FeatureSet."""
        self.fit(df)
        return self.transform(df)


def select_features(training_pool: pd.DataFrame,
                    quiz_pool: pd.DataFrame = None):
    """
    Convenience wrapper used by the pipeline.

    Returns:
        (training FeatureSet, quiz FeatureSet or None)
    """
    selector = FeatureSelector()
    training = selector.fit_transform(training_pool)
    quiz = None
    if quiz_pool is not None:
        id_column = config.QUIZ_ID_COLUMN if config.QUIZ_ID_COLUMN in quiz_pool.columns else None
        quiz = selector.transform(quiz_pool, id_column=id_column)
    return training, quiz
