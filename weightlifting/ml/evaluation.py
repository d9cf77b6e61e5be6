"""
evaluation.py — Out-of-Sample Evaluation
=========================================

Runs the fold classifiers and the stacker on the Evaluation subset,
which took no part in any fit or selection step.  Its stacked accuracy
is the only figure in the report presented as an unbiased estimate.

Produces:
    - each fold classifier's standalone accuracy
    - the stacked prediction for every record
    - aggregate and per-class accuracy
    - a label × label confusion matrix (rows = actual, columns = predicted)
"""

import logging
from dataclasses import dataclass

import numpy as np
import pandas as pd
from sklearn.metrics import confusion_matrix

from . import config
from .stacking import base_predictions
from .utils import accuracy

logger = logging.getLogger("wle.evaluation")


@dataclass(frozen=True)
class EvaluationResult:
    """
    Attributes:
        base_accuracies: ((classifier name, accuracy), …) in fold order.
        base_predictions: Fold predictions per record (one column per fold).
        y_true: Actual labels.
        y_pred: Stacked predictions.
        accuracy: Stacked accuracy.
        per_class_accuracy: Share of each actual label predicted correctly.
        confusion: Count table, index = actual, columns = predicted.
    """

    base_accuracies: tuple
    base_predictions: pd.DataFrame
    y_true: np.ndarray
    y_pred: np.ndarray
    accuracy: float
    per_class_accuracy: pd.Series
    confusion: pd.DataFrame

    @property
    def accuracy_from_confusion(self) -> float:
        """Trace over total of the confusion matrix."""
        counts = self.confusion.values
        return float(np.trace(counts) / counts.sum())


def build_confusion_matrix(y_true, y_pred, labels=None) -> pd.DataFrame:
    """
    Count table of actual vs. predicted labels over a fixed alphabet.

    Rows sum to the actual per-class counts, columns to the predicted ones.
    """
    labels = list(labels or config.CLASS_LABELS)
    counts = confusion_matrix(np.asarray(y_true), np.asarray(y_pred), labels=labels)
    return pd.DataFrame(
        counts,
        index=pd.Index(labels, name="actual"),
        columns=pd.Index(labels, name="predicted"),
    )


def per_class_accuracy(confusion: pd.DataFrame) -> pd.Series:
    """Diagonal over row totals; NaN for a label absent from the subset."""
    totals = confusion.sum(axis=1).astype(float)
    correct = pd.Series(np.diag(confusion.values), index=confusion.index, dtype=float)
    return (correct / totals.replace(0.0, np.nan)).rename("accuracy")


def evaluate(classifiers, stacker, X_eval, y_eval, labels=None) -> EvaluationResult:
    """
    Score fold classifiers and the stacker on the Evaluation subset.

    Args:
        classifiers: Fold classifiers, in fold order.
        stacker: Fitted StackedClassifier.
        X_eval: Evaluation features.
        y_eval: Evaluation labels.

    Returns:
        EvaluationResult.
    """
    labels = list(labels or config.CLASS_LABELS)
    y_true = np.asarray(y_eval)

    predictions = base_predictions(classifiers, X_eval)
    base_acc = []
    for name in predictions.columns:
        acc = accuracy(y_true, predictions[name].values)
        base_acc.append((name, acc))
        logger.info(f"{name} accuracy on evaluation: {acc:.4f}")

    y_pred = stacker.predict_from_base(predictions)
    stacked_acc = accuracy(y_true, y_pred)
    confusion = build_confusion_matrix(y_true, y_pred, labels)

    logger.info(f"Stacked accuracy on evaluation: {stacked_acc:.4f} "
                f"({len(y_true)} records)")

    return EvaluationResult(
        base_accuracies=tuple(base_acc),
        base_predictions=predictions,
        y_true=y_true,
        y_pred=np.asarray(y_pred),
        accuracy=stacked_acc,
        per_class_accuracy=per_class_accuracy(confusion),
        confusion=confusion,
    )
