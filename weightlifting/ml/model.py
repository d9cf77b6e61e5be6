"""
model.py — Random Forest Classifier Wrapper
============================================

Wraps scikit-learn's RandomForestClassifier to provide:
- Construction from an ensemble size and seed
- Training and prediction interfaces returning label arrays
- Accuracy against a labelled set
- Fit failures surfaced as TrainingError

Both stages use the same family: the fold classifiers on the 52 sensor
features, the stacker on the one-hot encoded fold predictions.
"""

import logging

import numpy as np
from sklearn.ensemble import RandomForestClassifier

from . import config
from .errors import TrainingError
from .utils import accuracy

logger = logging.getLogger("wle.model")


class RandomForestModel:
    """
    Thin wrapper around one fitted random forest.

    Attributes:
        n_estimators (int): Ensemble size (number of trees).
        random_state (int): Seed used for bootstrap and feature sampling.
        model (RandomForestClassifier): Underlying sklearn model.
        is_trained (bool): Whether the model has been fitted.
    """

    def __init__(self, n_estimators: int = None, random_state: int = None):
        """
        Args:
            n_estimators: Number of trees.  Defaults to
                config.STACKER_N_ESTIMATORS.
            random_state: Seed.  Defaults to config.RANDOM_STATE.
        """
        self.n_estimators = n_estimators or config.STACKER_N_ESTIMATORS
        self.random_state = config.RANDOM_STATE if random_state is None else random_state
        self.model = RandomForestClassifier(
            n_estimators=self.n_estimators,
            random_state=self.random_state,
            n_jobs=1,
        )
        self.is_trained = False

    def train(self, X, y) -> "RandomForestModel":
        """
        Fit the forest.

        Args:
            X: 2-D array-like of shape (n_samples, n_features).
            y: 1-D array-like of labels.

        Returns:
            self (for method chaining).

        Raises:
            TrainingError: If sklearn rejects the data or the fit fails.
        """
        logger.debug(f"Fitting forest of {self.n_estimators} trees on "
                     f"{len(X)} samples")
        try:
            self.model.fit(X, np.asarray(y))
        except (ValueError, MemoryError) as e:
            raise TrainingError(
                f"Random forest ({self.n_estimators} trees) failed to fit: {e}"
            ) from e
        self.is_trained = True
        return self

    def predict(self, X) -> np.ndarray:
        """
        Predict labels.

        Raises:
            RuntimeError: If the model has not been trained.
        """
        self._check_trained()
        return self.model.predict(X)

    def score(self, X, y) -> float:
        """Accuracy of the forest on (X, y)."""
        return accuracy(y, self.predict(X))

    @property
    def classes_(self) -> np.ndarray:
        self._check_trained()
        return self.model.classes_

    def _check_trained(self) -> None:
        """Raise if the model hasn't been trained."""
        if not self.is_trained:
            raise RuntimeError(
                "Model has not been trained yet. Call train() first."
            )
