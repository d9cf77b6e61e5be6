"""
pipeline.py — End-to-End Report Pipeline
=========================================

Runs every stage in order and writes the report:

    1. Load the raw training and quiz pools (remote CSV or local copy)
    2. Select complete, non-bookkeeping feature columns
    3. Split into Training / Validation / Evaluation (stratified)
    4. Assign Training to k stratified folds
    5. Train one random forest per fold (ensemble-size search)
    6. Fit the stacker on Validation fold predictions
    7. Evaluate fold classifiers and stacker on Evaluation
    8. Predict the quiz problems
    9. Render the HTML report

This script can be run standalone:
    python -m weightlifting.ml.pipeline

Or called programmatically:
    from weightlifting.ml.pipeline import run_pipeline
    result = run_pipeline(training_df, quiz_df)

Every stage is a pure function of its inputs and the seed; trained
models are returned in immutable records and live only for the run.
"""

import sys
import logging
from dataclasses import dataclass
from typing import Optional

import numpy as np
import pandas as pd

from . import config
from .errors import PipelineError
from .evaluation import EvaluationResult, evaluate
from .loader import load_quiz_pool, load_training_pool
from .preprocessing import select_features
from .report import write_report
from .splitting import Split, make_folds, split_dataset
from .stacking import StackedClassifier, train_stacker
from .train import train_fold_classifiers
from .utils import setup_logging

logger = logging.getLogger("wle.pipeline")


@dataclass(frozen=True)
class PipelineResult:
    """
    Everything a run produced.

    Attributes:
        random_state: Seed the run was made with.
        feature_names: Selected feature columns, in model order.
        split: Positional indices of the three subsets.
        folds: Fold records over the Training subset.
        classifiers: Fold classifiers, in fold order.
        validation_accuracies: Fold classifier name → accuracy on Validation.
        stacker: Second-stage classifier.
        evaluation: Out-of-sample results.
        quiz_predictions: Stacked labels for the quiz rows, if supplied.
        quiz_ids: Quiz problem ids aligned with quiz_predictions.
    """

    random_state: int
    feature_names: tuple
    split: Split
    folds: tuple
    classifiers: tuple
    validation_accuracies: dict
    stacker: StackedClassifier
    evaluation: EvaluationResult
    quiz_predictions: Optional[np.ndarray] = None
    quiz_ids: Optional[pd.Series] = None

    @property
    def n_features(self) -> int:
        return len(self.feature_names)

    @property
    def n_train(self) -> int:
        return len(self.split.train)

    @property
    def n_validation(self) -> int:
        return len(self.split.validation)

    @property
    def n_evaluation(self) -> int:
        return len(self.split.evaluation)

    @property
    def n_records(self) -> int:
        return self.n_train + self.n_validation + self.n_evaluation


def run_pipeline(training_pool: pd.DataFrame,
                 quiz_pool: pd.DataFrame = None,
                 random_state: int = None,
                 n_folds: int = None,
                 candidate_sizes=None,
                 stacker_size: int = None,
                 n_jobs: int = None) -> PipelineResult:
    """
    Train and evaluate the stacked classifier on already loaded tables.

    Args:
        training_pool: Raw labelled table.
        quiz_pool: Raw quiz table, optional.
        random_state: Seed for every stage.  Defaults to config.RANDOM_STATE.
        n_folds: Fold count k.  Defaults to config.N_FOLDS.
        candidate_sizes: Ensemble sizes searched per fold.
        stacker_size: Stacker ensemble size.
        n_jobs: joblib workers for fold training.

    Returns:
        PipelineResult.

    Raises:
        DataError: Bad columns or degenerate class support.
        TrainingError: A forest failed to fit.
    """
    random_state = config.RANDOM_STATE if random_state is None else random_state

    # ── Feature selection ────────────────────────────────────────
    features, quiz = select_features(training_pool, quiz_pool)
    X, y = features.X, features.y

    # ── Splits and folds ─────────────────────────────────────────
    split = split_dataset(y, random_state=random_state)
    X_train, y_train = X.iloc[split.train], y.iloc[split.train]
    X_val, y_val = X.iloc[split.validation], y.iloc[split.validation]
    X_eval, y_eval = X.iloc[split.evaluation], y.iloc[split.evaluation]

    folds = make_folds(y_train, n_folds=n_folds, random_state=random_state)

    # ── Fold classifiers ─────────────────────────────────────────
    classifiers = train_fold_classifiers(
        X_train, y_train, folds,
        candidate_sizes=candidate_sizes,
        random_state=random_state,
        n_jobs=n_jobs,
    )

    # ── Stacker ──────────────────────────────────────────────────
    stacker = train_stacker(classifiers, X_val, y_val,
                            n_estimators=stacker_size,
                            random_state=random_state)
    validation_accuracies = dict(stacker.base_validation_accuracies)

    # ── Evaluation ───────────────────────────────────────────────
    evaluation = evaluate(classifiers, stacker, X_eval, y_eval)

    # ── Quiz ─────────────────────────────────────────────────────
    quiz_predictions, quiz_ids = None, None
    if quiz is not None:
        quiz_predictions = stacker.predict(classifiers, quiz.X)
        quiz_ids = quiz.ids
        logger.info(f"Predicted {len(quiz_predictions)} quiz problems")

    return PipelineResult(
        random_state=random_state,
        feature_names=features.feature_names,
        split=split,
        folds=folds,
        classifiers=classifiers,
        validation_accuracies=validation_accuracies,
        stacker=stacker,
        evaluation=evaluation,
        quiz_predictions=quiz_predictions,
        quiz_ids=quiz_ids,
    )


def generate_report(data_dir: str = None, report_dir: str = None) -> str:
    """
    Complete run: load → train → evaluate → write report.

    Returns:
        Path of the written report.
    """
    logger.info("=" * 60)
    logger.info("STARTING STACKED CLASSIFIER REPORT")
    logger.info("=" * 60)

    training_pool = load_training_pool(data_dir)
    quiz_pool = load_quiz_pool(data_dir)

    result = run_pipeline(training_pool, quiz_pool)
    path = write_report(result, report_dir)

    logger.info("=" * 60)
    logger.info("REPORT COMPLETE")
    logger.info(f"  Evaluation accuracy: {result.evaluation.accuracy:.4f}")
    logger.info(f"  Report written to:   {path}")
    logger.info("=" * 60)
    return path


def main() -> int:
    setup_logging()
    try:
        generate_report()
    except PipelineError as e:
        logger.error(f"Report generation failed: {e}", exc_info=True)
        return 1
    return 0


# ── CLI entry point ──────────────────────────────────────────────
if __name__ == "__main__":
    sys.exit(main())
