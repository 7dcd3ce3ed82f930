"""
k-fold cross-validation engine.

For every fold i the engine:

- creates a fresh classifier through the injected factory
- fits it once on every row outside fold i
- scores it with the loss function on its own training rows (training
  loss) and on the rows of fold i (validation loss)
- keeps its predictions for fold i

Each row is validated in exactly one fold and used for training in the
other k - 1, so the per-fold validation predictions assemble into one
out-of-fold prediction vector covering the whole dataset. That vector is
what the confusion matrix is built from.

Folds are independent given the shared read-only feature matrix, so they
may run on joblib worker threads (n_jobs > 1). Results are collected
first and reduced afterwards by the calling thread.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, List, Sequence, Union

import numpy as np
from joblib import Parallel, delayed
from sklearn.metrics import zero_one_loss

from spam_filtering.data.folds import FoldAssignment, partition
from spam_filtering.exceptions import EmptyVocabularyError, FoldFitFailure
from spam_filtering.features.vocabulary import FeatureTable
from spam_filtering.models.classifiers import ClassifierFactory


logger = logging.getLogger(__name__)

ArrayLike = Union[Sequence[int], np.ndarray]
LossFunction = Callable[[np.ndarray, np.ndarray], float]


# ---------------------------------------------------------------------------
# Result containers
# ---------------------------------------------------------------------------


@dataclass
class FoldResult:
    """Outcome of one fold."""

    fold_index: int
    model: Any
    training_loss: float
    validation_loss: float
    training_indices: np.ndarray
    validation_indices: np.ndarray
    validation_predictions: np.ndarray

    @property
    def n_training(self) -> int:
        return int(len(self.training_indices))

    @property
    def n_validation(self) -> int:
        return int(len(self.validation_indices))


@dataclass
class CrossValidationResult:
    """Aggregate over all folds of one cross-validation run."""

    folds: List[FoldResult]
    n_samples: int
    n_inputs: int
    predictions: np.ndarray = field(repr=False)

    @property
    def k(self) -> int:
        return len(self.folds)

    @property
    def training_losses(self) -> np.ndarray:
        return np.array([fold.training_loss for fold in self.folds], dtype=float)

    @property
    def validation_losses(self) -> np.ndarray:
        return np.array([fold.validation_loss for fold in self.folds], dtype=float)

    @property
    def mean_training_loss(self) -> float:
        return float(self.training_losses.mean())

    @property
    def mean_validation_loss(self) -> float:
        return float(self.validation_losses.mean())

    @property
    def std_training_loss(self) -> float:
        return float(self.training_losses.std())

    @property
    def std_validation_loss(self) -> float:
        return float(self.validation_losses.std())

    @property
    def models(self) -> List[Any]:
        return [fold.model for fold in self.folds]

    def summary(self) -> dict:
        return {
            "k": self.k,
            "n_samples": self.n_samples,
            "n_inputs": self.n_inputs,
            "mean_training_loss": self.mean_training_loss,
            "mean_validation_loss": self.mean_validation_loss,
            "std_training_loss": self.std_training_loss,
            "std_validation_loss": self.std_validation_loss,
            "training_losses": self.training_losses.tolist(),
            "validation_losses": self.validation_losses.tolist(),
        }


# ---------------------------------------------------------------------------
# Engine
# ---------------------------------------------------------------------------


def _run_fold(
    fold_index: int,
    X: np.ndarray,
    y: np.ndarray,
    folds: FoldAssignment,
    classifier_factory: ClassifierFactory,
    loss_function: LossFunction,
) -> FoldResult:
    training_idx = folds.training_indices(fold_index)
    validation_idx = folds.validation_indices(fold_index)

    try:
        classifier = classifier_factory()
        model = classifier.fit(X[training_idx], y[training_idx])
        training_pred = np.asarray(classifier.predict(model, X[training_idx]), dtype=int)
        validation_pred = np.asarray(classifier.predict(model, X[validation_idx]), dtype=int)
        training_loss = float(loss_function(y[training_idx], training_pred))
        validation_loss = float(loss_function(y[validation_idx], validation_pred))
    except Exception as exc:
        raise FoldFitFailure(
            fold_index,
            f"Cross-validation failed in fold {fold_index}: {exc.__class__.__name__}: {exc}",
        ) from exc

    logger.debug(
        "Fold %d: train=%d, validation=%d, training loss=%.4f, validation loss=%.4f",
        fold_index,
        len(training_idx),
        len(validation_idx),
        training_loss,
        validation_loss,
    )

    return FoldResult(
        fold_index=fold_index,
        model=model,
        training_loss=training_loss,
        validation_loss=validation_loss,
        training_indices=training_idx,
        validation_indices=validation_idx,
        validation_predictions=validation_pred,
    )


class CrossValidationEngine:
    """
    Run k-fold cross-validation of a classifier family over a feature table.

    Parameters
    ----------
    n_jobs : int
        Number of folds evaluated concurrently on joblib threads. 1 runs
        folds sequentially in the calling thread; -1 uses all cores.
    """

    def __init__(self, n_jobs: int = 1):
        self.n_jobs = n_jobs

    def run(
        self,
        feature_table: Union[FeatureTable, np.ndarray],
        labels: ArrayLike,
        k: int,
        classifier_factory: ClassifierFactory,
        loss_function: LossFunction = zero_one_loss,
        stratify: bool = False,
    ) -> CrossValidationResult:
        """
        Cross-validate a classifier family.

        Parameters
        ----------
        feature_table : Union[FeatureTable, np.ndarray]
            Selected binary features, one row per sample.
        labels : ArrayLike
            Targets (1 = spam, 0 = ham), same order as the rows.
        k : int
            Number of folds, 2 <= k <= number of rows.
        classifier_factory : ClassifierFactory
            Zero-argument callable returning a fresh classifier; called
            exactly once per fold.
        loss_function : LossFunction
            loss(y_true, y_pred) -> float. Defaults to zero-one loss.
        stratify : bool
            Balance classes across folds instead of contiguous blocks.

        Returns
        -------
        CrossValidationResult
            Per-fold results, aggregated losses and the out-of-fold
            prediction vector.

        Raises
        ------
        EmptyVocabularyError
            If the feature table has no columns.
        ConfigurationError
            If k is out of range.
        FoldFitFailure
            If fitting or predicting fails in any fold; the whole run is
            aborted.
        """
        X = feature_table.matrix if isinstance(feature_table, FeatureTable) else np.asarray(feature_table)
        y = np.asarray(labels, dtype=int)

        if X.ndim != 2:
            raise ValueError(f"Feature matrix must be 2-dimensional, got shape {X.shape}")
        if X.shape[1] == 0:
            raise EmptyVocabularyError(
                "Feature table has no columns; lower min_occurrences or provide more data."
            )
        if len(y) != X.shape[0]:
            raise ValueError(
                f"Label vector length ({len(y)}) does not match feature rows ({X.shape[0]})"
            )

        n_samples, n_inputs = X.shape
        folds = partition(n_samples, k, labels=y, stratify=stratify)

        logger.info(
            "Running %d-fold cross-validation on %d samples x %d features (fold sizes %s)",
            k,
            n_samples,
            n_inputs,
            folds.fold_sizes(),
        )

        if self.n_jobs == 1:
            fold_results = [
                _run_fold(i, X, y, folds, classifier_factory, loss_function) for i in range(k)
            ]
        else:
            fold_results = Parallel(n_jobs=self.n_jobs, prefer="threads")(
                delayed(_run_fold)(i, X, y, folds, classifier_factory, loss_function)
                for i in range(k)
            )

        fold_results = sorted(fold_results, key=lambda result: result.fold_index)

        predictions = np.full(n_samples, -1, dtype=int)
        for result in fold_results:
            predictions[result.validation_indices] = result.validation_predictions

        cv_result = CrossValidationResult(
            folds=fold_results,
            n_samples=n_samples,
            n_inputs=n_inputs,
            predictions=predictions,
        )

        logger.info(
            "Cross-validation finished: training error %.4f, validation error %.4f",
            cv_result.mean_training_loss,
            cv_result.mean_validation_loss,
        )
        return cv_result


def cross_validate(
    feature_table: Union[FeatureTable, np.ndarray],
    labels: ArrayLike,
    k: int,
    classifier_factory: ClassifierFactory,
    loss_function: LossFunction = zero_one_loss,
    stratify: bool = False,
    n_jobs: int = 1,
) -> CrossValidationResult:
    """Functional shortcut for CrossValidationEngine(n_jobs).run(...)."""
    return CrossValidationEngine(n_jobs=n_jobs).run(
        feature_table,
        labels,
        k,
        classifier_factory,
        loss_function=loss_function,
        stratify=stratify,
    )
