"""
splitting.py — Stratified Splits and Fold Assignment
=====================================================

Carves the labelled pool into Training, Validation and Evaluation
subsets, and Training into k folds, keeping each label's share roughly
constant everywhere.

Split rule (per label):
    n_in  = ceil(p × n_label)   → "in" subset
    n_out = n_label − n_in      → "out" subset
Rounding up per label is what makes the documented dataset land on
15,699 / 3,923 and then 11,776 / 3,923 exactly.

Degenerate classes:
    A label with fewer than two records cannot sit on both sides of a
    split, and a label with fewer than k Training records cannot appear
    in every fold.  Both raise DegenerateSplitError; records are never
    duplicated to make up the count.
"""

import logging
from dataclasses import dataclass

import numpy as np
import pandas as pd
from sklearn.model_selection import StratifiedKFold

from . import config
from .errors import DegenerateSplitError

logger = logging.getLogger("wle.splitting")


@dataclass(frozen=True)
class Split:
    """
    Positional indices of the three disjoint subsets.

    Attributes:
        train: Rows used to train the fold classifiers.
        validation: Rows used to train the stacker.
        evaluation: Rows held out from every training / selection step.
    """

    train: np.ndarray
    validation: np.ndarray
    evaluation: np.ndarray


@dataclass(frozen=True)
class Fold:
    """
    One of k disjoint partitions of Training.

    Attributes:
        index: Fold number, 0-based.
        members: Training rows of this fold (fit set for its candidates).
        complement: All other Training rows (selection set).
    """

    index: int
    members: np.ndarray
    complement: np.ndarray


def _check_min_support(y: pd.Series, minimum: int, what: str) -> None:
    counts = y.value_counts()
    too_small = counts[counts < minimum]
    if not too_small.empty:
        raise DegenerateSplitError(
            f"{what} needs at least {minimum} records per label; "
            f"got {too_small.to_dict()}"
        )


def stratified_partition(y, fraction: float, random_state: int):
    """
    Split positions 0..n-1 into two disjoint stratified subsets.

    Args:
        y: Labels, one per record.
        fraction: Share of each label sent to the first subset (0 < p < 1).
        random_state: Seed for the per-label shuffles.

    Returns:
        (in_idx, out_idx): sorted integer position arrays.

    Raises:
        ValueError: If fraction is not strictly between 0 and 1.
        DegenerateSplitError: If a label has fewer than two records.
    """
    if not 0.0 < fraction < 1.0:
        raise ValueError(f"fraction must be in (0, 1), got {fraction}")

    y = pd.Series(np.asarray(y))
    _check_min_support(y, 2, "A stratified split")

    rng = np.random.RandomState(random_state)
    in_parts, out_parts = [], []
    for label in sorted(y.unique()):
        positions = np.flatnonzero(y.values == label)
        shuffled = rng.permutation(positions)
        n_in = int(np.ceil(fraction * len(positions)))
        # Keep at least one record on the "out" side
        n_in = min(n_in, len(positions) - 1)
        in_parts.append(shuffled[:n_in])
        out_parts.append(shuffled[n_in:])

    in_idx = np.sort(np.concatenate(in_parts))
    out_idx = np.sort(np.concatenate(out_parts))
    return in_idx, out_idx


def split_dataset(y, random_state: int = None,
                  pool_fraction: float = None,
                  training_fraction: float = None) -> Split:
    """
    Produce the Training / Validation / Evaluation subsets.

    First the Evaluation subset (1 − pool_fraction) is carved out, then
    the remaining pool is split into Training (training_fraction) and
    Validation.  The second split uses its own seed derived from
    random_state so the two shuffles are independent.

    Returns:
        Split with positional indices into y.
    """
    random_state = config.RANDOM_STATE if random_state is None else random_state
    if pool_fraction is None:
        pool_fraction = config.MODEL_POOL_FRACTION
    if training_fraction is None:
        training_fraction = config.TRAINING_FRACTION

    y = pd.Series(np.asarray(y))
    pool_idx, evaluation_idx = stratified_partition(y, pool_fraction, random_state)

    train_pos, validation_pos = stratified_partition(
        y.iloc[pool_idx], training_fraction, random_state + 1
    )
    split = Split(
        train=pool_idx[train_pos],
        validation=pool_idx[validation_pos],
        evaluation=evaluation_idx,
    )

    logger.info(f"Split {len(y)} records → training={len(split.train)} "
                f"validation={len(split.validation)} "
                f"evaluation={len(split.evaluation)}")
    return split


def make_folds(y, n_folds: int = None, random_state: int = None) -> tuple:
    """
    Partition positions 0..n-1 of y into k stratified folds.

    Args:
        y: Training labels.
        n_folds: k.  Defaults to config.N_FOLDS.
        random_state: Seed for fold assignment.

    Returns:
        Tuple of k Fold records, ordered by fold index.

    Raises:
        ValueError: If n_folds < 2.
        DegenerateSplitError: If a label has fewer than k records.
    """
    n_folds = config.N_FOLDS if n_folds is None else n_folds
    random_state = config.RANDOM_STATE if random_state is None else random_state
    if n_folds < 2:
        raise ValueError(f"n_folds must be at least 2, got {n_folds}")

    y = pd.Series(np.asarray(y))
    _check_min_support(y, n_folds, f"{n_folds}-fold assignment")

    skf = StratifiedKFold(n_splits=n_folds, shuffle=True,
                          random_state=random_state)
    folds = []
    # StratifiedKFold yields (rest, held) pairs; the held part is the fold
    for i, (rest, held) in enumerate(skf.split(np.zeros(len(y)), y)):
        folds.append(Fold(index=i, members=np.sort(held), complement=np.sort(rest)))

    logger.info(f"Assigned {len(y)} training records to {n_folds} folds "
                f"of sizes {[len(f.members) for f in folds]}")
    return tuple(folds)
