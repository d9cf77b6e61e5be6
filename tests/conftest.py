# tests/conftest.py
from __future__ import annotations

import logging

import numpy as np
import pandas as pd
import pytest
from sklearn.datasets import make_classification

from weightlifting.ml import config

N_FEATURES = 52


@pytest.fixture(autouse=True)
def quiet_logging():
    logging.getLogger("wle").setLevel(logging.WARNING)
    yield


def _raw_table(n_samples: int, seed: int, flip_y: float = 0.01) -> pd.DataFrame:
    """
    Synthetic stand-in for pml-training.csv:
    bookkeeping columns, 52 complete sensor columns,
    window-summary columns that are mostly empty, and `classe`.
    """
    X, y = make_classification(
        n_samples=n_samples,
        n_features=N_FEATURES,
        n_informative=20,
        n_redundant=5,
        n_classes=5,
        n_clusters_per_class=1,
        class_sep=2.5,
        flip_y=flip_y,
        random_state=seed,
    )
    rng = np.random.RandomState(seed)

    df = pd.DataFrame(X, columns=[f"sensor_{i:02d}" for i in range(N_FEATURES)])
    new_window = rng.rand(n_samples) < 0.02

    bookkeeping = pd.DataFrame({
        "Unnamed: 0": np.arange(1, n_samples + 1),
        "user_name": rng.choice(["adelmo", "carlitos", "pedro"], n_samples),
        "raw_timestamp_part_1": 1322489600 + np.arange(n_samples),
        "raw_timestamp_part_2": rng.randint(0, 999999, n_samples),
        "cvtd_timestamp": "28/11/2011 14:13",
        "new_window": np.where(new_window, "yes", "no"),
        "num_window": rng.randint(1, 860, n_samples),
    })

    kurtosis = np.where(new_window, rng.randn(n_samples), np.nan)
    summaries = pd.DataFrame({
        "kurtosis_roll_belt": kurtosis,
        "max_roll_belt": np.where(new_window, rng.randn(n_samples), np.nan),
    })

    labels = pd.Series(np.array(config.CLASS_LABELS)[y], name=config.LABEL_COLUMN)
    return pd.concat([bookkeeping, df, summaries, labels], axis=1)


@pytest.fixture(scope="session")
def raw_training_pool() -> pd.DataFrame:
    return _raw_table(1000, seed=7)


@pytest.fixture(scope="session")
def raw_quiz_pool(raw_training_pool) -> pd.DataFrame:
    quiz = _raw_table(20, seed=11).drop(columns=[config.LABEL_COLUMN])
    # Quiz rows carry the summary columns completely empty
    quiz["kurtosis_roll_belt"] = np.nan
    quiz["max_roll_belt"] = np.nan
    quiz[config.QUIZ_ID_COLUMN] = np.arange(1, 21)
    return quiz


@pytest.fixture(scope="session")
def labelled_frame(raw_training_pool):
    """Clean (X, y) as the feature selector would return them."""
    features = [c for c in raw_training_pool.columns if c.startswith("sensor_")]
    X = raw_training_pool[features].reset_index(drop=True)
    y = raw_training_pool[config.LABEL_COLUMN].reset_index(drop=True)
    return X, y


@pytest.fixture
def small_candidates():
    return (5, 10, 20)


@pytest.fixture
def raw_csv_text() -> str:
    return (
        ",user_name,roll_belt,kurtosis_roll_belt,max_yaw_belt,pitch_belt,classe\n"
        "1,carlitos,1.41,,NA,8.07,A\n"
        "2,carlitos,1.42,#DIV/0!,,8.07,A\n"
        "3,pedro,1.48,0.5,#DIV/0!,8.05,B\n"
    )
