from __future__ import annotations

import os

import numpy as np
import pytest

from weightlifting.ml import config, pipeline
from weightlifting.ml.errors import DataError, PipelineError
from weightlifting.ml.loader import load_quiz_pool, load_training_pool
from weightlifting.ml.pipeline import PipelineResult, run_pipeline
from weightlifting.ml.report import (
    evaluation_table,
    fold_table,
    quiz_table,
    render_report,
    write_report,
)


@pytest.fixture(scope="module")
def result(raw_training_pool, raw_quiz_pool) -> PipelineResult:
    return run_pipeline(
        raw_training_pool,
        raw_quiz_pool,
        random_state=42,
        n_folds=5,
        candidate_sizes=(10, 20),
        stacker_size=30,
        n_jobs=1,
    )


def test_subsets_cover_every_complete_record(result, raw_training_pool):
    assert result.n_records == len(raw_training_pool)
    assert result.n_features == 52
    assert result.n_train + result.n_validation + result.n_evaluation == result.n_records
    assert len(result.classifiers) == 5
    assert len(result.folds) == 5


def test_evaluation_rows_never_seen_in_training(result):
    held_out = set(result.split.evaluation)

    assert not held_out & set(result.split.train)
    assert not held_out & set(result.split.validation)


def test_quiz_predictions(result):
    assert len(result.quiz_predictions) == 20
    assert set(result.quiz_predictions) <= set(config.CLASS_LABELS)
    assert result.quiz_ids.tolist() == list(range(1, 21))


def test_runs_are_reproducible(result, raw_training_pool):
    again = run_pipeline(raw_training_pool, random_state=42, n_folds=5,
                         candidate_sizes=(10, 20), stacker_size=30, n_jobs=1)

    assert [c.n_estimators for c in again.classifiers] == \
        [c.n_estimators for c in result.classifiers]
    np.testing.assert_array_equal(again.evaluation.y_pred, result.evaluation.y_pred)
    assert again.quiz_predictions is None


def test_pipeline_rejects_table_without_label(raw_training_pool):
    raw = raw_training_pool.drop(columns=[config.LABEL_COLUMN])

    with pytest.raises(DataError):
        run_pipeline(raw, candidate_sizes=(5,), n_jobs=1)


def test_report_tables(result):
    folds = fold_table(result)
    assert list(folds.index) == [f"fold_{i}" for i in range(1, 6)]
    assert {"ensemble size", "check accuracy", "validation accuracy",
            "10 trees", "20 trees"} <= set(folds.columns)

    evaluation = evaluation_table(result)
    assert evaluation.index[-1] == "stacked"
    assert evaluation.loc["stacked", "accuracy"] == result.evaluation.accuracy

    assert len(quiz_table(result)) == 20


def test_report_document(result):
    html = render_report(result)

    assert html.startswith("<!DOCTYPE html>")
    assert "Fold classifiers" in html
    assert "Confusion matrix" in html
    assert "Quiz predictions" in html
    assert html.count("data:image/png;base64,") == 2


def test_write_report(result, tmp_path):
    path = write_report(result, str(tmp_path / "reports"))

    assert path.endswith(config.REPORT_FILENAME)
    with open(path, encoding="utf-8") as f:
        assert "Out-of-sample stacked accuracy" in f.read()


def test_main_returns_nonzero_on_pipeline_error(monkeypatch):
    def fail(*args, **kwargs):
        raise DataError("source unreachable")

    monkeypatch.setattr(pipeline, "generate_report", fail)

    assert pipeline.main() == 1


@pytest.mark.skipif(not os.environ.get("WLE_NETWORK_TESTS"),
                    reason="downloads the public dataset; set WLE_NETWORK_TESTS=1")
def test_documented_dataset_end_to_end(tmp_path):
    training_pool = load_training_pool(str(tmp_path))
    quiz_pool = load_quiz_pool(str(tmp_path))

    result = run_pipeline(training_pool, quiz_pool, n_jobs=-1)

    assert result.n_records == 19622
    assert result.n_features == 52
    assert (result.n_train, result.n_validation, result.n_evaluation) == (11776, 3923, 3923)
    assert all(c.check_accuracy > 0.85 for c in result.classifiers)
    assert result.evaluation.accuracy == pytest.approx(0.96, abs=0.02)
    assert len(result.quiz_predictions) == 20


def test_fold_validation_accuracies_come_from_stacker(result):
    assert result.validation_accuracies == dict(result.stacker.base_validation_accuracies)
    assert list(result.validation_accuracies) == [c.name for c in result.classifiers]


def test_importing_report_leaves_matplotlib_backend_alone(monkeypatch, result):
    import importlib

    import matplotlib

    from weightlifting.ml import report

    def refuse(*args, **kwargs):
        raise AssertionError("report must not select a matplotlib backend")

    monkeypatch.setattr(matplotlib, "use", refuse)
    reloaded = importlib.reload(report)

    assert "data:image/png;base64," in reloaded.render_report(result)


def test_unwritable_report_dir_is_a_pipeline_error(result, tmp_path):
    blocked = tmp_path / "not-a-dir"
    blocked.write_text("occupied")

    with pytest.raises(PipelineError, match="Could not write report"):
        write_report(result, str(blocked))


@pytest.fixture
def local_sources(tmp_path, monkeypatch, raw_training_pool, raw_quiz_pool, result):
    training_csv = tmp_path / "pml-training.csv"
    quiz_csv = tmp_path / "pml-testing.csv"
    raw_training_pool.to_csv(training_csv, index=False)
    raw_quiz_pool.to_csv(quiz_csv, index=False)
    blocked = tmp_path / "not-a-dir"
    blocked.write_text("occupied")

    monkeypatch.setattr(config, "TRAINING_URL", str(training_csv))
    monkeypatch.setattr(config, "QUIZ_URL", str(quiz_csv))
    monkeypatch.setattr(config, "DATA_DIR", str(blocked))
    monkeypatch.setattr(pipeline, "run_pipeline", lambda *args, **kwargs: result)
    return blocked


def test_main_survives_unwritable_data_dir(local_sources, tmp_path, monkeypatch):
    monkeypatch.setattr(config, "REPORT_DIR", str(tmp_path / "reports"))

    assert pipeline.main() == 0
    assert (tmp_path / "reports" / config.REPORT_FILENAME).exists()


def test_main_returns_nonzero_on_unwritable_report_dir(local_sources, monkeypatch):
    monkeypatch.setattr(config, "REPORT_DIR", str(local_sources))

    assert pipeline.main() == 1
