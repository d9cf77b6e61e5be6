"""
report.py — HTML Report Rendering
==================================

Turns a finished pipeline run into one self-contained HTML document:

    1. Data summary (records per subset, feature count)
    2. Fold table: selected ensemble size, internal check accuracy
       (optimistic), accuracy on Validation, every candidate's score
    3. Evaluation table: each fold classifier and the stacker
    4. Confusion matrix table + heatmap
    5. Predicted vs. actual scatter (jittered) per Evaluation record
    6. Quiz predictions, when the quiz pool was supplied

Tables are rendered with pandas, figures with matplotlib / seaborn and
embedded as base64 PNG so the file has no side assets.
"""

import io
import os
import base64
import logging
from datetime import datetime

import numpy as np
import pandas as pd
import seaborn as sns
from matplotlib.figure import Figure

from . import config
from .errors import PipelineError
from .utils import ensure_dir

logger = logging.getLogger("wle.report")

_STYLE = """
body { font-family: sans-serif; margin: 2em auto; max-width: 60em; color: #222; }
table { border-collapse: collapse; margin: 1em 0; }
th, td { border: 1px solid #bbb; padding: 0.3em 0.8em; text-align: right; }
th { background: #eee; }
.note { color: #555; font-size: 0.9em; }
"""


# ── Tables ────────────────────────────────────────────────────────

def fold_table(result) -> pd.DataFrame:
    """One row per fold classifier."""
    rows = []
    for clf in result.classifiers:
        row = {
            "classifier": clf.name,
            "ensemble size": clf.n_estimators,
            "check accuracy": clf.check_accuracy,
            "validation accuracy": result.validation_accuracies[clf.name],
        }
        for size, acc in clf.candidate_accuracies:
            row[f"{size} trees"] = acc
        rows.append(row)
    return pd.DataFrame(rows).set_index("classifier")


def evaluation_table(result) -> pd.DataFrame:
    """Accuracy on Evaluation for every fold classifier plus the stacker."""
    rows = [{"classifier": name, "accuracy": acc}
            for name, acc in result.evaluation.base_accuracies]
    rows.append({"classifier": "stacked", "accuracy": result.evaluation.accuracy})
    return pd.DataFrame(rows).set_index("classifier")


def confusion_table(result) -> pd.DataFrame:
    """Confusion counts with per-class accuracy appended as a column."""
    table = result.evaluation.confusion.copy()
    table["class accuracy"] = result.evaluation.per_class_accuracy.round(4)
    return table


def quiz_table(result) -> pd.DataFrame:
    """Stacked prediction per quiz problem."""
    ids = result.quiz_ids
    if ids is None:
        ids = pd.Series(np.arange(1, len(result.quiz_predictions) + 1))
    return pd.DataFrame({
        config.QUIZ_ID_COLUMN: np.asarray(ids),
        "prediction": result.quiz_predictions,
    }).set_index(config.QUIZ_ID_COLUMN)


# ── Figures ───────────────────────────────────────────────────────

def _figure_to_base64(fig) -> str:
    # Figures are built without pyplot, so the caller's backend is untouched
    buf = io.BytesIO()
    fig.savefig(buf, format="png", dpi=100, bbox_inches="tight")
    return base64.b64encode(buf.getvalue()).decode("ascii")


def plot_predictions(evaluation, labels=None, random_state: int = None) -> str:
    """
    Jittered scatter of predicted vs. actual label, one dot per record.

    Off-diagonal clusters are the misclassifications.

    Returns:
        Base64-encoded PNG.
    """
    labels = list(labels or config.CLASS_LABELS)
    random_state = config.RANDOM_STATE if random_state is None else random_state
    position = {label: i for i, label in enumerate(labels)}

    actual = np.array([position[v] for v in evaluation.y_true], dtype=float)
    predicted = np.array([position[v] for v in evaluation.y_pred], dtype=float)
    rng = np.random.RandomState(random_state)
    jitter = 0.35

    correct = actual == predicted
    fig = Figure(figsize=(7, 6))
    ax = fig.subplots()
    for mask, colour, name in ((correct, "tab:blue", "correct"),
                               (~correct, "tab:red", "wrong")):
        n = int(mask.sum())
        ax.scatter(
            actual[mask] + rng.uniform(-jitter, jitter, n),
            predicted[mask] + rng.uniform(-jitter, jitter, n),
            s=4, alpha=0.4, c=colour, label=f"{name} ({n})",
        )
    ax.set_xticks(range(len(labels)))
    ax.set_xticklabels(labels)
    ax.set_yticks(range(len(labels)))
    ax.set_yticklabels(labels)
    ax.set_xlabel("Actual class")
    ax.set_ylabel("Predicted class")
    ax.set_title("Stacked prediction vs. actual (evaluation subset)")
    ax.legend(loc="upper left", markerscale=4)
    return _figure_to_base64(fig)


def plot_confusion(evaluation) -> str:
    """Heatmap of the confusion counts.  Returns base64-encoded PNG."""
    fig = Figure(figsize=(6, 5))
    ax = fig.subplots()
    sns.heatmap(evaluation.confusion, annot=True, fmt="d", cmap="Blues",
                cbar=True, ax=ax)
    ax.set_xlabel("Predicted class")
    ax.set_ylabel("Actual class")
    ax.set_title("Confusion matrix (evaluation subset)")
    return _figure_to_base64(fig)


# ── Document ──────────────────────────────────────────────────────

def _table_html(df: pd.DataFrame) -> str:
    return df.to_html(float_format=lambda v: f"{v:.4f}", border=0)


def _img_html(png_b64: str, alt: str) -> str:
    return f'<img alt="{alt}" src="data:image/png;base64,{png_b64}"/>'


def render_report(result) -> str:
    """
    Build the HTML document for a finished pipeline run.

    Args:
        result: PipelineResult from pipeline.run_pipeline().

    Returns:
        The complete HTML text.
    """
    evaluation = result.evaluation
    sections = [
        "<h1>Weight Lifting Exercise classification</h1>",
        f'<p class="note">Generated {datetime.now():%Y-%m-%d %H:%M:%S}, '
        f"seed {result.random_state}.</p>",

        "<h2>Data</h2>",
        f"<p>{result.n_records} complete records, {result.n_features} sensor "
        f"features, {len(config.CLASS_LABELS)} classes.  Training "
        f"{result.n_train}, validation {result.n_validation}, evaluation "
        f"{result.n_evaluation}.</p>",

        "<h2>Fold classifiers</h2>",
        f"<p>Training is split into {len(result.classifiers)} stratified folds. "
        "Each fold fits one random forest per candidate ensemble size and "
        "keeps the one scoring best on the other folds.</p>",
        _table_html(fold_table(result)),
        '<p class="note">Check accuracy is measured on records that other '
        "folds were fitted on, so it is optimistic.</p>",

        "<h2>Stacked classifier</h2>",
        f"<p>Accuracy on validation: {result.stacker.validation_accuracy:.4f}.</p>",
        '<p class="note">The stacker was fitted on the validation subset; this '
        "figure is in-sample and not an estimate of out-of-sample error.</p>",

        "<h2>Evaluation</h2>",
        f"<p>Out-of-sample stacked accuracy: <b>{evaluation.accuracy:.4f}</b> "
        f"(expected error {1.0 - evaluation.accuracy:.4f}).</p>",
        _table_html(evaluation_table(result)),
        "<h3>Confusion matrix</h3>",
        _table_html(confusion_table(result)),
        _img_html(plot_confusion(evaluation), "confusion matrix"),
        "<h3>Predicted vs. actual</h3>",
        _img_html(plot_predictions(evaluation, random_state=result.random_state),
                  "predicted vs actual"),
    ]

    if result.quiz_predictions is not None:
        sections += [
            "<h2>Quiz predictions</h2>",
            _table_html(quiz_table(result)),
        ]

    body = "\n".join(sections)
    return (
        "<!DOCTYPE html>\n<html><head><meta charset=\"utf-8\">"
        "<title>Weight Lifting Exercise classification</title>"
        f"<style>{_STYLE}</style></head>\n<body>\n{body}\n</body></html>\n"
    )


def write_report(result, report_dir: str = None) -> str:
    """
    Render and write the report.

    Returns:
        Path of the written HTML file.

    Raises:
        PipelineError: If the report directory or file cannot be written.
    """
    report_dir = report_dir or config.REPORT_DIR
    path = os.path.join(report_dir, config.REPORT_FILENAME)
    html = render_report(result)
    try:
        ensure_dir(report_dir)
        with open(path, "w", encoding="utf-8") as f:
            f.write(html)
    except OSError as e:
        raise PipelineError(f"Could not write report to {path}: {e}") from e
    logger.info(f"Report written to {path}")
    return path
