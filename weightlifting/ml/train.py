"""
train.py — Fold Classifier Training
====================================

Trains one random forest per fold of the Training subset, choosing each
fold's ensemble size by accuracy on the rest of Training.

Per fold i:
    1. tr = fold i's members, ts = every other fold's members.
    2. For each candidate size in config.CANDIDATE_N_ESTIMATORS (in order)
       fit a forest on tr and score it on ts.
    3. Keep the best-scoring candidate; ties go to the earliest size.

ts is a selection set, not held-out data: every record in it is also a
fit record of some other fold.  The check accuracy is therefore an
optimistic in-sample figure and is reported as such.

Folds are independent, so they can be trained by joblib workers.  Each
worker reads the shared inputs and returns its own BaseClassifier; the
results come back in fold order.
"""

import logging
from dataclasses import dataclass

import numpy as np
from joblib import Parallel, delayed

from . import config
from .model import RandomForestModel
from .splitting import Fold
from .utils import accuracy

logger = logging.getLogger("wle.train")


@dataclass(frozen=True)
class BaseClassifier:
    """
    The forest retained for one fold.

    Attributes:
        fold: Fold index it was trained on.
        n_estimators: Selected ensemble size.
        check_accuracy: Accuracy on the fold's complement within Training.
        candidate_accuracies: ((size, accuracy), …) in candidate order.
        model: The fitted forest.
    """

    fold: int
    n_estimators: int
    check_accuracy: float
    candidate_accuracies: tuple
    model: RandomForestModel

    @property
    def name(self) -> str:
        return f"fold_{self.fold + 1}"

    def predict(self, X) -> np.ndarray:
        return self.model.predict(np.asarray(X, dtype=float))


def select_best_candidate(candidate_accuracies) -> int:
    """
    Position of the highest accuracy; the first one wins a tie.

    Args:
        candidate_accuracies: Sequence of (size, accuracy) pairs.

    Raises:
        ValueError: If the sequence is empty.
    """
    best_pos = None
    best_acc = -np.inf
    for pos, (_, acc) in enumerate(candidate_accuracies):
        if acc > best_acc:
            best_pos, best_acc = pos, acc
    if best_pos is None:
        raise ValueError("No candidates to select from")
    return best_pos


def train_fold(X, y, fold: Fold, candidate_sizes=None,
               random_state: int = None) -> BaseClassifier:
    """
    Run the ensemble-size search for a single fold.

    Args:
        X: Training features (DataFrame or 2-D array), positional rows.
        y: Training labels aligned with X.
        fold: Which rows to fit on and which to score on.
        candidate_sizes: Ordered ensemble sizes to try.
        random_state: Seed shared by every candidate forest.

    Returns:
        BaseClassifier holding the winning forest.

    Raises:
        TrainingError: If any candidate fails to fit.
    """
    candidate_sizes = tuple(candidate_sizes or config.CANDIDATE_N_ESTIMATORS)
    random_state = config.RANDOM_STATE if random_state is None else random_state

    X = np.asarray(X, dtype=float)
    y = np.asarray(y)
    X_tr, y_tr = X[fold.members], y[fold.members]
    X_ts, y_ts = X[fold.complement], y[fold.complement]

    candidates = []
    scores = []
    for size in candidate_sizes:
        model = RandomForestModel(n_estimators=size, random_state=random_state)
        model.train(X_tr, y_tr)
        acc = accuracy(y_ts, model.predict(X_ts))
        logger.debug(f"Fold {fold.index + 1}: {size} trees → check accuracy {acc:.4f}")
        candidates.append(model)
        scores.append((size, acc))

    best = select_best_candidate(scores)
    size, acc = scores[best]
    logger.info(f"Fold {fold.index + 1}: selected {size} trees "
                f"(check accuracy {acc:.4f}, fit on {len(fold.members)} records)")

    return BaseClassifier(
        fold=fold.index,
        n_estimators=size,
        check_accuracy=acc,
        candidate_accuracies=tuple(scores),
        model=candidates[best],
    )


def train_fold_classifiers(X, y, folds, candidate_sizes=None,
                           random_state: int = None,
                           n_jobs: int = None) -> tuple:
    """
    Train one BaseClassifier per fold.

    Args:
        X: Training features.
        y: Training labels.
        folds: Fold records from splitting.make_folds().
        candidate_sizes: Ordered ensemble sizes to try per fold.
        random_state: Seed shared by all fold / candidate forests.
        n_jobs: joblib workers.  Defaults to config.N_JOBS.

    Returns:
        Tuple of BaseClassifier, one per fold, in fold order.
    """
    n_jobs = config.N_JOBS if n_jobs is None else n_jobs
    logger.info(f"Training {len(folds)} fold classifiers "
                f"(candidates={list(candidate_sizes or config.CANDIDATE_N_ESTIMATORS)}, "
                f"n_jobs={n_jobs})")

    X = np.asarray(X, dtype=float)
    y = np.asarray(y)
    classifiers = Parallel(n_jobs=n_jobs, verbose=0)(
        delayed(train_fold)(X, y, fold, candidate_sizes, random_state)
        for fold in folds
    )
    return tuple(classifiers)
