"""
Tests for the k-fold cross-validation engine.

These tests validate that:

- the factory is called once per fold and every fold gets its own model
- losses are computed on the fold's own training and validation rows
- the out-of-fold predictions cover every row exactly once
- results are identical across runs and across n_jobs settings
- a failure in any fold aborts the run with FoldFitFailure
"""

from __future__ import annotations

import numpy as np
import pytest

from spam_filtering.evaluation.metrics import compute_classification_metrics, confusion_matrix
from spam_filtering.exceptions import ConfigurationError, EmptyVocabularyError, FoldFitFailure
from spam_filtering.features.vocabulary import VocabularyBuilder
from spam_filtering.models.classifiers import (
    LogisticRegressionIRLS,
    NaiveBayesBernoulli,
    build_classifier_factory,
)
from spam_filtering.training.cross_validation import CrossValidationEngine, cross_validate


# ---------------------------------------------------------------------------
# Helper classifiers
# ---------------------------------------------------------------------------


class ConstantClassifier:
    """Always predicts the same class."""

    def __init__(self, value: int = 1):
        self.value = value

    def fit(self, X, y):
        return {"value": self.value, "n_train": len(y)}

    def predict(self, model, X):
        return np.full(X.shape[0], model["value"], dtype=int)


class FirstColumnClassifier:
    """Predicts whatever the first feature column says."""

    def fit(self, X, y):
        return object()

    def predict(self, model, X):
        return np.asarray(X[:, 0], dtype=int)


class ExplodingClassifier:
    def fit(self, X, y):
        raise RuntimeError("boom")

    def predict(self, model, X):
        raise AssertionError("predict must not be reached")


class CountingFactory:
    def __init__(self, make):
        self.make = make
        self.calls = 0

    def __call__(self):
        self.calls += 1
        return self.make()


@pytest.fixture
def small_table(small_corpus):
    table, _ = VocabularyBuilder().build(small_corpus)
    return table, small_corpus.label_vector()


# ---------------------------------------------------------------------------
# Tests
# ---------------------------------------------------------------------------


def test_factory_called_once_per_fold(small_table):
    table, labels = small_table
    factory = CountingFactory(ConstantClassifier)

    result = cross_validate(table, labels, 2, factory)

    assert factory.calls == 2
    assert result.k == 2
    assert len(result.models) == 2
    assert result.models[0] is not result.models[1]


def test_constant_spam_classifier_losses(small_table):
    table, labels = small_table  # [1, 0, 1, 0]
    result = cross_validate(table, labels, 2, lambda: ConstantClassifier(1))

    assert result.training_losses.tolist() == [0.5, 0.5]
    assert result.validation_losses.tolist() == [0.5, 0.5]
    assert result.mean_training_loss == pytest.approx(0.5)
    assert result.mean_validation_loss == pytest.approx(0.5)
    assert result.std_validation_loss == pytest.approx(0.0)

    cm = confusion_matrix(labels, result.predictions)
    assert cm.tp == 2
    assert cm.fp == 2
    assert cm.tn == 0
    assert cm.fn == 0


def test_constant_ham_classifier_has_undefined_precision(small_table):
    table, labels = small_table
    result = cross_validate(table, labels, 2, lambda: ConstantClassifier(0))

    metrics = compute_classification_metrics(labels, result.predictions)
    assert metrics["precision"] is None
    assert metrics["recall"] == pytest.approx(0.0)
    assert metrics["accuracy"] == pytest.approx(0.5)


def test_perfect_feature_gives_zero_loss(small_table):
    table, labels = small_table
    money = table.select(["money"])  # present exactly in the spam subjects

    result = cross_validate(money, labels, 2, FirstColumnClassifier)

    assert result.mean_training_loss == 0.0
    assert result.mean_validation_loss == 0.0
    assert result.predictions.tolist() == labels.tolist()
    assert confusion_matrix(labels, result.predictions).to_list() == [[2, 0], [0, 2]]


def test_fold_bookkeeping(larger_corpus):
    table, _ = VocabularyBuilder().build(larger_corpus)
    labels = larger_corpus.label_vector()

    result = cross_validate(table, labels, 5, NaiveBayesBernoulli)

    n = len(labels)
    validated = np.concatenate([fold.validation_indices for fold in result.folds])
    assert sorted(validated.tolist()) == list(range(n))
    for fold in result.folds:
        assert fold.n_training + fold.n_validation == n
        assert set(fold.training_indices.tolist()).isdisjoint(fold.validation_indices.tolist())
    assert result.n_samples == n
    assert result.n_inputs == table.n_columns
    assert set(result.predictions.tolist()) <= {0, 1}
    assert [fold.fold_index for fold in result.folds] == list(range(5))


def test_runs_are_reproducible(larger_corpus):
    table, _ = VocabularyBuilder().build(larger_corpus)
    labels = larger_corpus.label_vector()

    first = cross_validate(table, labels, 4, NaiveBayesBernoulli)
    second = cross_validate(table, labels, 4, NaiveBayesBernoulli)

    np.testing.assert_array_equal(first.predictions, second.predictions)
    assert first.validation_losses.tolist() == second.validation_losses.tolist()


def test_threads_match_sequential(larger_corpus):
    table, _ = VocabularyBuilder().build(larger_corpus)
    labels = larger_corpus.label_vector()

    sequential = CrossValidationEngine(n_jobs=1).run(table, labels, 4, NaiveBayesBernoulli)
    threaded = CrossValidationEngine(n_jobs=2).run(table, labels, 4, NaiveBayesBernoulli)

    np.testing.assert_array_equal(sequential.predictions, threaded.predictions)
    assert sequential.training_losses.tolist() == threaded.training_losses.tolist()
    assert sequential.validation_losses.tolist() == threaded.validation_losses.tolist()


def test_custom_loss_function(small_table):
    table, labels = small_table

    def error_count(y_true, y_pred):
        return float(np.sum(np.asarray(y_true) != np.asarray(y_pred)))

    result = cross_validate(table, labels, 2, lambda: ConstantClassifier(1), loss_function=error_count)
    assert result.validation_losses.tolist() == [1.0, 1.0]


def test_accepts_plain_arrays():
    X = np.array([[1, 0], [0, 1], [1, 0], [0, 1]])
    y = np.array([1, 0, 1, 0])

    result = cross_validate(X, y, 2, FirstColumnClassifier)
    assert result.mean_validation_loss == 0.0


def test_fold_failure_aborts_run(small_table):
    table, labels = small_table
    with pytest.raises(FoldFitFailure) as exc_info:
        cross_validate(table, labels, 2, ExplodingClassifier)

    assert exc_info.value.fold_index == 0
    assert isinstance(exc_info.value.__cause__, RuntimeError)


def test_single_class_training_fold_fails_for_logistic_regression():
    X = np.array([[1, 0], [1, 1], [0, 1], [0, 0]])
    y = np.array([1, 1, 0, 0])  # fold 0 trains on two ham rows only

    with pytest.raises(FoldFitFailure) as exc_info:
        cross_validate(X, y, 2, LogisticRegressionIRLS)
    assert exc_info.value.fold_index == 0


def test_stratified_folds_avoid_single_class_training():
    X = np.array([[1, 0], [1, 1], [1, 0], [0, 1], [0, 0], [0, 1]])
    y = np.array([1, 1, 1, 0, 0, 0])

    result = cross_validate(X, y, 3, LogisticRegressionIRLS, stratify=True)
    for fold in result.folds:
        assert set(y[fold.training_indices].tolist()) == {0, 1}


def test_both_families_run_on_larger_corpus(larger_corpus):
    table, _ = VocabularyBuilder().build(larger_corpus)
    labels = larger_corpus.label_vector()

    for family in ("naive_bayes_bernoulli", "logistic_regression_irls"):
        result = cross_validate(table, labels, 4, build_classifier_factory(family), stratify=True)
        assert 0.0 <= result.mean_validation_loss <= 1.0
        assert 0.0 <= result.mean_training_loss <= 1.0


def test_rejects_empty_table_and_bad_inputs(small_table):
    table, labels = small_table

    with pytest.raises(EmptyVocabularyError):
        cross_validate(table.select([]), labels, 2, NaiveBayesBernoulli)
    with pytest.raises(ValueError):
        cross_validate(table, labels[:3], 2, NaiveBayesBernoulli)
    with pytest.raises(ConfigurationError):
        cross_validate(table, labels, 1, NaiveBayesBernoulli)
    with pytest.raises(ConfigurationError):
        cross_validate(table, labels, 5, NaiveBayesBernoulli)


def test_summary_contains_losses(small_table):
    table, labels = small_table
    summary = cross_validate(table, labels, 2, lambda: ConstantClassifier(1)).summary()

    assert summary["k"] == 2
    assert summary["n_samples"] == 4
    assert summary["n_inputs"] == 6
    assert summary["validation_losses"] == [0.5, 0.5]
    assert summary["mean_training_loss"] == pytest.approx(0.5)
