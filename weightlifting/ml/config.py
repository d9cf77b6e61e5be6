"""
config.py — Pipeline Configuration Constants
=============================================

Centralizes data sources, column rules, split fractions, forest
hyperparameters and output paths used by the stacked classifier report.
Tuning these values changes which features survive cleaning, how the
training pool is carved up and how much work the fold search does.

The dataset is the public Weight Lifting Exercises set:
- 52 accelerometer / gyroscope / magnetometer / Euler-angle measurements
  from belt, arm, dumbbell and forearm sensors
- label `classe` in {A, B, C, D, E} (A = correct execution, B–E = common
  mistakes)
- a separate 20-row quiz table with `problem_id` instead of `classe`
"""

import os

# ═══════════════════════════════════════════════════════════════════
# DATA SOURCES
# ═══════════════════════════════════════════════════════════════════

TRAINING_URL = os.environ.get(
    "WLE_TRAINING_URL",
    "https://d396qusza40orc.cloudfront.net/predmachlearn/pml-training.csv",
)
QUIZ_URL = os.environ.get(
    "WLE_QUIZ_URL",
    "https://d396qusza40orc.cloudfront.net/predmachlearn/pml-testing.csv",
)

# Tokens the raw CSVs use for "no value".  The spreadsheet export left
# "#DIV/0!" in the window-summary columns (kurtosis, skewness, …).
NA_VALUES = ["", "NA", "#DIV/0!"]

# ═══════════════════════════════════════════════════════════════════
# COLUMNS
# ═══════════════════════════════════════════════════════════════════

LABEL_COLUMN = "classe"
QUIZ_ID_COLUMN = "problem_id"

# Fixed label alphabet, in report order.
CLASS_LABELS = ["A", "B", "C", "D", "E"]

# Identifier, timestamp and windowing bookkeeping.  These separate the
# recording sessions perfectly but say nothing about the movement itself.
# The leading unnamed column is the row index written by the exporter.
BOOKKEEPING_COLUMNS = [
    "Unnamed: 0",
    "X",
    "user_name",
    "raw_timestamp_part_1",
    "raw_timestamp_part_2",
    "cvtd_timestamp",
    "new_window",
    "num_window",
]

# ═══════════════════════════════════════════════════════════════════
# SPLITS
# ═══════════════════════════════════════════════════════════════════

# Share of the labelled pool kept for model building; the rest is the
# untouched Evaluation subset.
MODEL_POOL_FRACTION = 0.8

# Share of the model pool used as Training; the rest is Validation
# (the stacker's training data).
TRAINING_FRACTION = 0.75

# Number of folds the Training subset is partitioned into.
N_FOLDS = 5

# ═══════════════════════════════════════════════════════════════════
# RANDOM FOREST HYPERPARAMETERS
# ═══════════════════════════════════════════════════════════════════

# Candidate ensemble sizes searched per fold.  Order matters: ties on
# check-set accuracy go to the earliest size.
CANDIDATE_N_ESTIMATORS = (50, 75, 100, 150, 200)

# Ensemble size of the second-stage (stacking) forest.
STACKER_N_ESTIMATORS = 100

# Random seed for reproducibility across runs.  Each stage derives its
# own seed from it (see splitting / train / stacking).
RANDOM_STATE = int(os.environ.get("WLE_RANDOM_STATE", "42"))

# Worker processes for fold training (1 = sequential, -1 = all cores).
N_JOBS = int(os.environ.get("WLE_N_JOBS", "1"))

# ═══════════════════════════════════════════════════════════════════
# PATHS
# ═══════════════════════════════════════════════════════════════════

_ML_DIR = os.path.dirname(os.path.abspath(__file__))

# Local copies of the downloaded CSVs.  Set WLE_DATA_DIR to "" to always
# read straight from the URLs.
DATA_DIR = os.environ.get("WLE_DATA_DIR", os.path.join(_ML_DIR, "data"))

TRAINING_CACHE_NAME = "pml-training.csv"
QUIZ_CACHE_NAME = "pml-testing.csv"

# Directory the rendered report is written to
REPORT_DIR = os.environ.get("WLE_REPORT_DIR", os.path.join(_ML_DIR, "reports"))

REPORT_FILENAME = "report.html"

# ═══════════════════════════════════════════════════════════════════
# LOGGING
# ═══════════════════════════════════════════════════════════════════

# Log level for the pipeline (DEBUG, INFO, WARNING, ERROR, CRITICAL)
LOG_LEVEL = os.environ.get("WLE_LOG_LEVEL", "INFO")
