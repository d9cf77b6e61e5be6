from __future__ import annotations

import numpy as np
import pandas as pd
import pytest

from weightlifting.ml import config
from weightlifting.ml.evaluation import build_confusion_matrix, evaluate, per_class_accuracy
from weightlifting.ml.splitting import make_folds, split_dataset
from weightlifting.ml.stacking import StackedClassifier, base_predictions, train_stacker
from weightlifting.ml.train import train_fold_classifiers
from weightlifting.ml.utils import accuracy


@pytest.fixture(scope="module")
def trained(labelled_frame):
    X, y = labelled_frame
    split = split_dataset(y, random_state=42)
    X_train, y_train = X.iloc[split.train], y.iloc[split.train]
    folds = make_folds(y_train, n_folds=5, random_state=42)
    classifiers = train_fold_classifiers(X_train, y_train, folds,
                                         candidate_sizes=(10, 20),
                                         random_state=42, n_jobs=1)
    X_val, y_val = X.iloc[split.validation], y.iloc[split.validation]
    X_eval, y_eval = X.iloc[split.evaluation], y.iloc[split.evaluation]
    stacker = train_stacker(classifiers, X_val, y_val, n_estimators=50, random_state=42)
    return classifiers, stacker, (X_val, y_val), (X_eval, y_eval)


def test_base_predictions_one_column_per_fold(trained):
    classifiers, _, (X_val, _), _ = trained

    predictions = base_predictions(classifiers, X_val)

    assert list(predictions.columns) == [f"fold_{i}" for i in range(1, 6)]
    assert len(predictions) == len(X_val)
    assert set(np.unique(predictions.values)) <= set(config.CLASS_LABELS)


def test_base_predictions_requires_classifiers(labelled_frame):
    X, _ = labelled_frame

    with pytest.raises(ValueError):
        base_predictions((), X)


def test_stacker_encodes_every_label_per_fold(trained):
    _, stacker, (X_val, _), _ = trained

    assert isinstance(stacker, StackedClassifier)
    assert stacker.base_names == tuple(f"fold_{i}" for i in range(1, 6))
    assert stacker.labels == tuple(config.CLASS_LABELS)
    assert stacker.model.n_estimators == 50
    encoded = stacker.encode(pd.DataFrame({n: ["A"] * 3 for n in stacker.base_names}))
    assert encoded.shape == (3, 5 * len(config.CLASS_LABELS))


def test_stacker_beats_best_fold_in_sample(trained):
    classifiers, stacker, (X_val, y_val), _ = trained

    predictions = base_predictions(classifiers, X_val)
    best = max(accuracy(y_val.values, predictions[c].values) for c in predictions.columns)

    assert stacker.validation_accuracy > best


def test_stacker_keeps_fold_validation_accuracies(trained):
    classifiers, stacker, (X_val, y_val), _ = trained

    predictions = base_predictions(classifiers, X_val)
    expected = tuple(
        (c, accuracy(y_val.values, predictions[c].values)) for c in predictions.columns
    )

    assert stacker.base_validation_accuracies == expected


def test_stacker_predicts_raw_rows(trained):
    classifiers, stacker, _, (X_eval, _) = trained

    direct = stacker.predict(classifiers, X_eval)
    via_base = stacker.predict_from_base(base_predictions(classifiers, X_eval))

    np.testing.assert_array_equal(direct, via_base)


def test_encode_rejects_missing_fold_column(trained):
    _, stacker, _, _ = trained

    with pytest.raises(ValueError, match="fold_5"):
        stacker.encode(pd.DataFrame({f"fold_{i}": ["A"] for i in range(1, 5)}))


def test_confusion_sums_match_class_counts(trained):
    classifiers, stacker, _, (X_eval, y_eval) = trained

    result = evaluate(classifiers, stacker, X_eval, y_eval)

    actual_counts = y_eval.value_counts().reindex(config.CLASS_LABELS, fill_value=0)
    predicted_counts = pd.Series(result.y_pred).value_counts() \
        .reindex(config.CLASS_LABELS, fill_value=0)
    assert result.confusion.sum(axis=1).tolist() == actual_counts.tolist()
    assert result.confusion.sum(axis=0).tolist() == predicted_counts.tolist()
    assert int(result.confusion.values.sum()) == len(y_eval)


def test_accuracy_from_confusion_equals_match_rate(trained):
    classifiers, stacker, _, (X_eval, y_eval) = trained

    result = evaluate(classifiers, stacker, X_eval, y_eval)

    assert result.accuracy == pytest.approx(np.mean(result.y_pred == y_eval.values))
    assert result.accuracy_from_confusion == pytest.approx(result.accuracy)
    assert [name for name, _ in result.base_accuracies] == list(stacker.base_names)
    assert result.accuracy > 0.85


def test_confusion_matrix_fixed_alphabet():
    confusion = build_confusion_matrix(["A", "A", "B"], ["A", "B", "B"])

    assert list(confusion.index) == config.CLASS_LABELS
    assert list(confusion.columns) == config.CLASS_LABELS
    assert confusion.loc["A", "A"] == 1
    assert confusion.loc["A", "B"] == 1
    assert confusion.loc["B", "B"] == 1
    assert confusion.loc["E"].sum() == 0


def test_per_class_accuracy_absent_label_is_nan():
    confusion = build_confusion_matrix(["A", "A", "B"], ["A", "B", "B"])

    per_class = per_class_accuracy(confusion)

    assert per_class["A"] == pytest.approx(0.5)
    assert per_class["B"] == pytest.approx(1.0)
    assert np.isnan(per_class["C"])
