"""
Exception types raised by the spam filtering pipeline.

Every error is raised synchronously where the problem is detected and is
fatal to the operation that raised it. Nothing in the pipeline retries:
a failure always points at a data or configuration problem upstream.
"""

from __future__ import annotations

from typing import Optional


class SpamFilteringError(Exception):
    """Base class for all errors raised by this package."""


class ConfigurationError(SpamFilteringError, ValueError):
    """
    Invalid run configuration.

    Raised for an out-of-range fold count, a min_occurrences threshold
    below 1, or an unsupported classifier family.
    """


class EmptyVocabularyError(SpamFilteringError):
    """Feature selection left no columns to train on."""


class UndefinedMetricError(SpamFilteringError):
    """A precision/recall style metric has a zero denominator."""

    def __init__(self, metric: str, message: Optional[str] = None):
        self.metric = metric
        super().__init__(message or f"Metric '{metric}' is undefined (zero denominator).")


class FoldFitFailure(SpamFilteringError):
    """Fitting or evaluating the classifier failed inside one fold."""

    def __init__(self, fold_index: int, message: Optional[str] = None):
        self.fold_index = fold_index
        super().__init__(message or f"Cross-validation failed in fold {fold_index}.")


class ZeroClassCountError(SpamFilteringError):
    """A term proportion was requested for a class with no documents."""

    def __init__(self, label: str):
        self.label = label
        super().__init__(
            f"Cannot compute {label} term proportions: the corpus has no {label} documents."
        )
