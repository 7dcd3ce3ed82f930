"""
Corpus analysis utilities.

This module provides helpers to:
- summarize the class balance of a corpus
- pick the top-N terms of one class by document proportion and line
  them up with the other class's proportion for the same terms

The resulting tables feed the comparative bar charts in
spam_filtering.evaluation.plots and the analysis section of the run
report.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, Iterable, Optional

import pandas as pd

from spam_filtering.data.documents import Label
from spam_filtering.exceptions import ZeroClassCountError
from spam_filtering.features.vocabulary import TermStats


logger = logging.getLogger(__name__)

COMPARISON_COLUMNS = ["term", "ham_proportion", "spam_proportion"]


@dataclass
class CorpusAnalysis:
    """Everything the reporting side needs from the vocabulary stage."""

    ham_count: int
    spam_count: int
    vocabulary_size: int
    ham_term_frequencies: Dict[str, int]
    spam_term_frequencies: Dict[str, int]
    top_ham_terms: pd.DataFrame
    top_spam_terms: pd.DataFrame


def top_term_comparison(
    stats: TermStats,
    label: Label,
    top_n: int = 10,
    stop_words: Optional[Iterable[str]] = None,
) -> pd.DataFrame:
    """
    Top-N terms of one class by proportion, with the counterpart proportion.

    Parameters
    ----------
    stats : TermStats
        Per-class term statistics.
    label : Label
        Class whose most common terms are selected.
    top_n : int
        Number of terms to keep.
    stop_words : Optional[Iterable[str]]
        Terms excluded from the ranking.

    Returns
    -------
    pd.DataFrame
        Columns ["term", "ham_proportion", "spam_proportion"], ordered as
        in the selected class's ranking.

    Raises
    ------
    ZeroClassCountError
        If either class has no documents.
    """
    stop_words = set(stop_words or ())
    ham_proportions = stats.ham_term_proportions(stop_words)
    spam_proportions = stats.spam_term_proportions(stop_words)

    ranking = ham_proportions if label is Label.HAM else spam_proportions
    top_terms = list(ranking)[: max(int(top_n), 0)]

    return pd.DataFrame(
        {
            "term": top_terms,
            "ham_proportion": [ham_proportions[term] for term in top_terms],
            "spam_proportion": [spam_proportions[term] for term in top_terms],
        },
        columns=COMPARISON_COLUMNS,
    )


def analyze_term_stats(
    stats: TermStats,
    top_n: int = 10,
    stop_words: Optional[Iterable[str]] = None,
) -> CorpusAnalysis:
    """
    Build the reporting view of the vocabulary stage.

    The stop words only shape these reporting tables; they never reach the
    feature table used for classification.

    When a class has no documents, proportions are undefined and both
    top-term comparisons are left empty; the counts are still reported.
    """
    stop_words = set(stop_words or ())
    try:
        top_ham_terms = top_term_comparison(stats, Label.HAM, top_n, stop_words)
        top_spam_terms = top_term_comparison(stats, Label.SPAM, top_n, stop_words)
    except ZeroClassCountError as exc:
        logger.warning("Skipping top-term comparison: %s", exc)
        top_ham_terms = pd.DataFrame(columns=COMPARISON_COLUMNS)
        top_spam_terms = pd.DataFrame(columns=COMPARISON_COLUMNS)

    return CorpusAnalysis(
        ham_count=stats.ham_document_count,
        spam_count=stats.spam_document_count,
        vocabulary_size=len(stats),
        ham_term_frequencies=stats.ham_term_frequencies(stop_words),
        spam_term_frequencies=stats.spam_term_frequencies(stop_words),
        top_ham_terms=top_ham_terms,
        top_spam_terms=top_spam_terms,
    )
