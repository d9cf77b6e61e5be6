"""
stacking.py — Second-Stage (Stacked) Classifier
================================================

Maps the k fold classifiers' predicted labels for a record to one final
label.

Training data:
    For every Validation record, the k fold predictions form a k-column
    categorical vector (columns fold_1 … fold_k).  Each column is
    one-hot encoded over the fixed label alphabet, so every fold
    contributes five indicator features and an unseen combination never
    breaks the encoder.  The vector is paired with the record's true
    label and a random forest of config.STACKER_N_ESTIMATORS trees is
    fitted on the pairs.

The accuracy on Validation is measured on the stacker's own training
data.  It is kept for the report but is not an out-of-sample estimate;
only the Evaluator's figure is.
"""

import logging
from dataclasses import dataclass

import numpy as np
import pandas as pd
from sklearn.preprocessing import OneHotEncoder

from . import config
from .model import RandomForestModel
from .utils import accuracy

logger = logging.getLogger("wle.stacking")


def base_predictions(classifiers, X) -> pd.DataFrame:
    """
    Predicted label of every fold classifier for every row of X.

    Returns:
        DataFrame with one column per classifier (fold_1 … fold_k),
        rows aligned with X.
    """
    if not classifiers:
        raise ValueError("Need at least one fold classifier")
    return pd.DataFrame(
        {clf.name: clf.predict(X) for clf in classifiers}
    )


@dataclass(frozen=True)
class StackedClassifier:
    """
    Fitted second-stage forest plus the encoding it expects.

    Attributes:
        model: Forest over the one-hot encoded fold predictions.
        encoder: One-hot encoder fitted on the fold-prediction columns.
        base_names: Fold-prediction column order the encoder expects.
        labels: Label alphabet used for every column.
        validation_accuracy: In-sample accuracy on Validation.
        base_validation_accuracies: ((fold name, accuracy), …) of the
            fold classifiers on the same Validation records.
    """

    model: RandomForestModel
    encoder: OneHotEncoder
    base_names: tuple
    labels: tuple
    validation_accuracy: float
    base_validation_accuracies: tuple = ()

    def encode(self, predictions: pd.DataFrame) -> np.ndarray:
        """One-hot encode a fold-prediction frame in the fitted column order."""
        missing = [c for c in self.base_names if c not in predictions.columns]
        if missing:
            raise ValueError(f"Missing fold-prediction columns: {missing}")
        return self.encoder.transform(predictions.loc[:, list(self.base_names)])

    def predict_from_base(self, predictions: pd.DataFrame) -> np.ndarray:
        """Final labels from an already computed fold-prediction frame."""
        return self.model.predict(self.encode(predictions))

    def predict(self, classifiers, X) -> np.ndarray:
        """Final labels for raw feature rows."""
        return self.predict_from_base(base_predictions(classifiers, X))


def train_stacker(classifiers, X_val, y_val, n_estimators: int = None,
                  random_state: int = None, labels=None) -> StackedClassifier:
    """
    Fit the stacker on Validation.

    Args:
        classifiers: Fold classifiers, in fold order.
        X_val: Validation features.
        y_val: Validation labels.
        n_estimators: Stacker ensemble size.  Defaults to
            config.STACKER_N_ESTIMATORS.
        random_state: Seed.  Defaults to config.RANDOM_STATE.
        labels: Label alphabet.  Defaults to config.CLASS_LABELS.

    Returns:
        StackedClassifier.

    Raises:
        TrainingError: If the forest fails to fit.
    """
    n_estimators = n_estimators or config.STACKER_N_ESTIMATORS
    random_state = config.RANDOM_STATE if random_state is None else random_state
    labels = tuple(labels or config.CLASS_LABELS)

    predictions = base_predictions(classifiers, X_val)
    base_names = tuple(predictions.columns)
    y_val = np.asarray(y_val)

    base_acc = []
    for name in base_names:
        acc = accuracy(y_val, predictions[name].values)
        base_acc.append((name, acc))
        logger.info(f"{name} accuracy on validation: {acc:.4f}")

    encoder = OneHotEncoder(
        categories=[list(labels)] * len(base_names),
        handle_unknown="error",
        sparse_output=False,
    )
    features = encoder.fit_transform(predictions)

    logger.info(f"Training stacker ({n_estimators} trees) on "
                f"{features.shape[0]} validation records, "
                f"{features.shape[1]} indicator features")
    model = RandomForestModel(n_estimators=n_estimators, random_state=random_state)
    model.train(features, y_val)

    val_acc = accuracy(y_val, model.predict(features))
    logger.info(f"Stacker accuracy on validation (in-sample): {val_acc:.4f}")

    return StackedClassifier(
        model=model,
        encoder=encoder,
        base_names=base_names,
        labels=labels,
        validation_accuracy=val_acc,
        base_validation_accuracies=tuple(base_acc),
    )
