"""
Document-frequency feature selection.

Terms seen in only a handful of subjects let a classifier memorize
individual emails. Dropping every term whose document count is below a
threshold reduces that overfitting and shrinks the feature table at the
same time.

By default the count combines both classes (ham + spam documents
containing the term). count_by="spam" counts spam documents only, which
keeps just the vocabulary that recurs in spam subjects.
"""

from __future__ import annotations

import logging
from typing import Tuple

import numpy as np

from spam_filtering.exceptions import ConfigurationError
from spam_filtering.features.vocabulary import FeatureTable, TermStats


logger = logging.getLogger(__name__)

COUNT_BY_CHOICES = ("combined", "spam")


def validate_min_occurrences(min_occurrences: int) -> None:
    """Raise ConfigurationError unless min_occurrences is an integer >= 1."""
    if isinstance(min_occurrences, bool) or not isinstance(min_occurrences, (int, np.integer)):
        raise ConfigurationError(
            f"min_occurrences must be an integer, got {min_occurrences!r}"
        )
    if min_occurrences < 1:
        raise ConfigurationError(f"min_occurrences must be at least 1, got {min_occurrences}")


def validate_count_by(count_by: str) -> None:
    if count_by not in COUNT_BY_CHOICES:
        raise ConfigurationError(
            f"count_by must be one of {COUNT_BY_CHOICES}, got {count_by!r}"
        )


def select_features(
    stats: TermStats,
    min_occurrences: int = 1,
    count_by: str = "combined",
) -> Tuple[str, ...]:
    """
    Select the terms present in at least min_occurrences documents.

    Parameters
    ----------
    stats : TermStats
        Per-class document counts of every term.
    min_occurrences : int
        Minimum document frequency. 1 keeps the whole vocabulary when
        counting both classes.
    count_by : str
        "combined" counts ham + spam documents, "spam" counts spam
        documents only.

    Returns
    -------
    Tuple[str, ...]
        Selected terms in feature-table column order (descending combined
        frequency, ties by term). May be empty.

    Raises
    ------
    ConfigurationError
        If min_occurrences is not an integer >= 1 or count_by is unknown.
    """
    validate_min_occurrences(min_occurrences)
    validate_count_by(count_by)

    count = stats.document_frequency if count_by == "combined" else stats.spam_count
    selected = tuple(
        term for term in stats.ordered_terms()
        if count(term) >= min_occurrences
    )

    logger.debug(
        "Selected %d of %d terms with min_occurrences=%d (count_by=%s)",
        len(selected),
        len(stats),
        min_occurrences,
        count_by,
    )
    return selected


def reduce_feature_table(
    table: FeatureTable,
    stats: TermStats,
    min_occurrences: int = 1,
    count_by: str = "combined",
) -> FeatureTable:
    """Convenience wrapper: select features and narrow the table to them."""
    return table.select(select_features(stats, min_occurrences, count_by=count_by))
