"""
utils.py — Shared Utility Functions and Logging Setup
======================================================

Common helpers used across the pipeline modules.
"""

import os
import logging

import numpy as np

from . import config


def setup_logging(level: str = None) -> None:
    """
    Attach one console handler to the "wle" logger.

    Every stage logs under its own child (wle.loader, wle.train,
    wle.stacking, …), so fold selection, stacker accuracy and report
    paths all reach this handler with the stage name in brackets.
    Only the entry point calls this; library use of run_pipeline()
    leaves handler setup to the caller.

    Args:
        level: Level name for the "wle" logger.  Defaults to
            config.LOG_LEVEL (env WLE_LOG_LEVEL).
    """
    level = level or config.LOG_LEVEL
    numeric_level = getattr(logging, level.upper(), logging.INFO)

    formatter = logging.Formatter(
        fmt="%(asctime)s [%(name)s] %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    handler = logging.StreamHandler()
    handler.setFormatter(formatter)

    wle_logger = logging.getLogger("wle")
    wle_logger.setLevel(numeric_level)

    # Avoid duplicate handlers on repeated calls
    if not wle_logger.handlers:
        wle_logger.addHandler(handler)


def ensure_dir(path: str) -> str:
    """
    Create a directory (and parents) if it does not exist yet.

    Returns:
        The same path, for chaining.
    """
    os.makedirs(path, exist_ok=True)
    return path


def accuracy(y_true, y_pred) -> float:
    """Share of positions where prediction and truth agree."""
    y_true = np.asarray(y_true)
    y_pred = np.asarray(y_pred)
    if y_true.shape != y_pred.shape:
        raise ValueError(
            f"Shape mismatch: {y_true.shape} truths vs {y_pred.shape} predictions"
        )
    if y_true.size == 0:
        raise ValueError("Cannot compute accuracy of an empty prediction set")
    return float(np.mean(y_true == y_pred))
