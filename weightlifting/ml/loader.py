"""
loader.py — Raw Dataset Loading
================================

Fetches the two raw CSV tables (labelled training pool and 20-row quiz
pool), normalizes the missing-value markers and parses measurement
columns as numbers.

Sources are read straight from their URLs with pandas.  When a data
directory is configured, the first successful download is kept there as
a CSV copy and later runs read the copy instead of the network.

Missing markers:
    ""        — empty cell
    "NA"      — literal NA written by the exporter
    "#DIV/0!" — spreadsheet division error in the window-summary columns
All three become NaN; no other token is treated as missing.
"""

import os
import logging
import tempfile

import numpy as np
import pandas as pd

from . import config
from .errors import DataError
from .utils import ensure_dir

logger = logging.getLogger("wle.loader")

# Text columns that stay as strings; everything else is a measurement.
_TEXT_COLUMNS = {
    config.LABEL_COLUMN,
    "user_name",
    "cvtd_timestamp",
    "new_window",
}


def read_raw_csv(source: str) -> pd.DataFrame:
    """
    Read one raw table from a URL or local path.

    Args:
        source: HTTP(S) URL or filesystem path of the CSV.

    Returns:
        DataFrame with missing markers mapped to NaN and measurement
        columns parsed as floats.

    Raises:
        DataError: If the source cannot be read or holds no rows.
    """
    logger.info(f"Reading {source} …")
    try:
        df = pd.read_csv(
            source,
            na_values=config.NA_VALUES,
            keep_default_na=False,
            low_memory=False,
        )
    except (OSError, ValueError, pd.errors.ParserError) as e:
        raise DataError(f"Could not read dataset from {source}: {e}") from e

    if df.empty:
        raise DataError(f"Dataset at {source} has no rows")

    df = parse_numeric_columns(df)
    logger.info(f"Loaded {df.shape[0]} rows × {df.shape[1]} columns")
    return df


def parse_numeric_columns(df: pd.DataFrame) -> pd.DataFrame:
    """
    Convert every non-text column to float.

    Tokens that are not numbers and not one of the known missing markers
    also become NaN; the count is logged so a malformed source is visible.
    Columns that end up with gaps are removed later by the feature
    selector, so none of these values reach a classifier.
    """
    df = df.copy()
    coerced = 0
    for col in df.columns:
        if col in _TEXT_COLUMNS or df[col].dtype.kind in "fiub":
            continue
        before = df[col].isna().sum()
        df[col] = pd.to_numeric(df[col], errors="coerce")
        coerced += int(df[col].isna().sum() - before)

    if coerced > 0:
        logger.warning(f"{coerced} unparseable values replaced by NaN")

    numeric = df.select_dtypes(include=[np.number]).columns
    df[numeric] = df[numeric].astype(float)
    return df


def load_dataset(url: str, cache_name: str, data_dir: str = None) -> pd.DataFrame:
    """
    Load a raw table, going through the local CSV copy when available.

    Args:
        url: Remote location of the CSV.
        cache_name: File name of the local copy inside data_dir.
        data_dir: Directory holding local copies.  Defaults to
            config.DATA_DIR; an empty string disables the copy.

    Returns:
        Parsed raw DataFrame.
    """
    data_dir = config.DATA_DIR if data_dir is None else data_dir
    if not data_dir:
        return read_raw_csv(url)

    cache_path = os.path.join(data_dir, cache_name)
    if os.path.exists(cache_path):
        logger.info(f"Using local copy {cache_path}")
        return read_raw_csv(cache_path)

    df = read_raw_csv(url)
    try:
        save_local_copy(df, cache_path)
    except OSError as e:
        # The download itself succeeded; run on without a copy
        logger.warning(f"Could not save local copy to {cache_path}: {e}")
    return df


def save_local_copy(df: pd.DataFrame, path: str) -> None:
    """
    Write a CSV copy through a temp file in the same directory that is
    moved into place only once complete, so an interrupted run never
    leaves a truncated copy for later runs to read.

    Raises:
        OSError: If the directory cannot be created or written.
    """
    directory = os.path.dirname(path) or "."
    ensure_dir(directory)
    fd, tmp_path = tempfile.mkstemp(prefix=".partial-", suffix=".csv", dir=directory)
    try:
        with os.fdopen(fd, "w", encoding="utf-8", newline="") as f:
            df.to_csv(f, index=False)
        os.replace(tmp_path, path)
    except BaseException:
        if os.path.exists(tmp_path):
            os.remove(tmp_path)
        raise
    logger.info(f"Saved local copy to {path}")


def load_training_pool(data_dir: str = None) -> pd.DataFrame:
    """Labelled pool every split is carved from."""
    return load_dataset(config.TRAINING_URL, config.TRAINING_CACHE_NAME, data_dir)


def load_quiz_pool(data_dir: str = None) -> pd.DataFrame:
    """The 20 unlabelled quiz problems."""
    return load_dataset(config.QUIZ_URL, config.QUIZ_CACHE_NAME, data_dir)
