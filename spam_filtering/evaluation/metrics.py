"""
Evaluation metrics for spam detection experiments.

This module centralizes the computation of the classification report of
a cross-validation run:

- confusion matrix over the full dataset
- accuracy
- precision
- recall
- F1-score

Positive class = spam = label 1. The confusion matrix is stored and
printed as [predicted class][actual class].

A precision or recall whose denominator is zero is undefined. The metric
methods raise UndefinedMetricError in that case, and
compute_classification_metrics() reports the metric as None so callers
can tell it apart from a genuine 0.0.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional, Sequence, Union

import numpy as np
import pandas as pd
from sklearn.metrics import confusion_matrix as sk_confusion_matrix

from spam_filtering.exceptions import UndefinedMetricError


ArrayLike = Union[Sequence[int], np.ndarray]

CLASS_IDS = (0, 1)


@dataclass(frozen=True, eq=False)
class ConfusionMatrix:
    """
    2x2 tally of predicted vs. actual classes.

    matrix[p][a] is the number of samples predicted as class p whose
    actual class is a.
    """

    matrix: np.ndarray

    def __post_init__(self) -> None:
        if self.matrix.shape != (2, 2):
            raise ValueError(f"Confusion matrix must be 2x2, got shape {self.matrix.shape}")

    @property
    def tp(self) -> int:
        return int(self.matrix[1, 1])

    @property
    def tn(self) -> int:
        return int(self.matrix[0, 0])

    @property
    def fp(self) -> int:
        return int(self.matrix[1, 0])

    @property
    def fn(self) -> int:
        return int(self.matrix[0, 1])

    @property
    def total(self) -> int:
        return int(self.matrix.sum())

    def accuracy(self) -> float:
        """(tp + tn) / total."""
        if self.total == 0:
            raise UndefinedMetricError("accuracy", "Accuracy is undefined for zero samples.")
        return (self.tp + self.tn) / float(self.total)

    def precision(self) -> float:
        """tp / (tp + fp); undefined when nothing was predicted as spam."""
        denominator = self.tp + self.fp
        if denominator == 0:
            raise UndefinedMetricError(
                "precision", "Precision is undefined: no sample was predicted as spam."
            )
        return self.tp / float(denominator)

    def recall(self) -> float:
        """tp / (tp + fn); undefined when no sample is actually spam."""
        denominator = self.tp + self.fn
        if denominator == 0:
            raise UndefinedMetricError(
                "recall", "Recall is undefined: no sample is actually spam."
            )
        return self.tp / float(denominator)

    def f1(self) -> float:
        precision = self.precision()
        recall = self.recall()
        if precision + recall == 0:
            raise UndefinedMetricError("f1", "F1 is undefined: precision and recall are both 0.")
        return 2.0 * precision * recall / (precision + recall)

    def to_list(self):
        return self.matrix.tolist()

    def to_frame(self) -> pd.DataFrame:
        """Labelled copy of the matrix for logging and reports."""
        return pd.DataFrame(
            self.matrix,
            index=[f"Pred. Class - {c}" for c in CLASS_IDS],
            columns=[f"Actual Class - {c}" for c in CLASS_IDS],
        )


def confusion_matrix(y_true: ArrayLike, y_pred: ArrayLike) -> ConfusionMatrix:
    """
    Count every (predicted, actual) combination over the full dataset.

    Arguments follow the scikit-learn order (y_true, y_pred); the result is
    still indexed [predicted][actual].

    Parameters
    ----------
    y_true : ArrayLike
        Ground-truth labels (0 = ham, 1 = spam).
    y_pred : ArrayLike
        Predicted labels, same length as y_true.

    Returns
    -------
    ConfusionMatrix
        Indexed [predicted][actual]; its cells sum to the number of samples.
    """
    y_true = np.asarray(y_true, dtype=int)
    y_pred = np.asarray(y_pred, dtype=int)

    if y_pred.shape != y_true.shape:
        raise ValueError(
            f"y_true and y_pred differ in shape: {y_true.shape} vs {y_pred.shape}"
        )
    unknown = set(np.unique(np.concatenate([y_pred, y_true]))) - set(CLASS_IDS)
    if unknown:
        raise ValueError(f"Unexpected class ids {sorted(unknown)}; expected 0 (ham) or 1 (spam)")

    if len(y_true) == 0:
        return ConfusionMatrix(matrix=np.zeros((2, 2), dtype=int))

    # sklearn lays the matrix out as [actual][predicted].
    cm = sk_confusion_matrix(y_true, y_pred, labels=list(CLASS_IDS))
    return ConfusionMatrix(matrix=np.asarray(cm, dtype=int).T)


def _metric_or_none(compute) -> Optional[float]:
    try:
        return float(compute())
    except UndefinedMetricError:
        return None


def compute_classification_metrics(
    y_true: ArrayLike,
    y_pred: ArrayLike,
) -> Dict[str, Any]:
    """
    Compute standard classification metrics for a predicted label set.

    Parameters
    ----------
    y_true : ArrayLike
        Ground-truth labels (0 for ham, 1 for spam).
    y_pred : ArrayLike
        Predicted labels, same shape as y_true.

    Returns
    -------
    Dict[str, Any]
        Dictionary with the keys:
            - "accuracy"
            - "precision"
            - "recall"
            - "f1"
            - "confusion_matrix": 2D list, [predicted][actual]
            - "n_samples"

        Undefined metrics are reported as None.
    """
    cm = confusion_matrix(y_true, y_pred)

    return {
        "accuracy": _metric_or_none(cm.accuracy),
        "precision": _metric_or_none(cm.precision),
        "recall": _metric_or_none(cm.recall),
        "f1": _metric_or_none(cm.f1),
        "confusion_matrix": cm.to_list(),
        "n_samples": cm.total,
    }


def format_metric(value: Optional[float]) -> str:
    """Render a metric for logs; undefined metrics print as 'undefined'."""
    return "undefined" if value is None else f"{value:.4f}"
