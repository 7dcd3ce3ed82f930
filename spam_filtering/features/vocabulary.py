"""
Vocabulary construction and per-class term statistics.

This module turns a Corpus into:

- a FeatureTable: a dense binary document-term matrix with one row per
  document (corpus order) and one column per term, where a cell is 1 if
  the term occurs in the document's subject and 0 otherwise
- a TermStats object: for every term, the number of ham and spam
  documents containing it, plus the reporting queries built on top of
  those counts (frequencies, proportions, stop-word filtered views).

Columns are ordered by descending combined document frequency with ties
broken by the term itself, so the table layout is identical across runs.
"""

from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass
from typing import Callable, Dict, FrozenSet, Iterable, List, Optional, Sequence, Tuple

import numpy as np
import pandas as pd

from spam_filtering.data.documents import Corpus, Label
from spam_filtering.exceptions import ZeroClassCountError
from spam_filtering.features.tokenizer import tokenize


logger = logging.getLogger(__name__)

IS_HAM_COLUMN = "is_ham"


# ---------------------------------------------------------------------------
# Feature table
# ---------------------------------------------------------------------------


@dataclass(frozen=True, eq=False)
class FeatureTable:
    """Binary presence matrix aligned with a corpus."""

    matrix: np.ndarray
    terms: Tuple[str, ...]
    doc_ids: Tuple[int, ...]

    def __post_init__(self) -> None:
        if self.matrix.shape != (len(self.doc_ids), len(self.terms)):
            raise ValueError(
                f"Matrix shape {self.matrix.shape} does not match "
                f"{len(self.doc_ids)} documents x {len(self.terms)} terms"
            )
        # Consumers share one table across folds, so it must not change.
        self.matrix.setflags(write=False)

    @property
    def n_rows(self) -> int:
        return len(self.doc_ids)

    @property
    def n_columns(self) -> int:
        return len(self.terms)

    @property
    def shape(self) -> Tuple[int, int]:
        return self.n_rows, self.n_columns

    def column(self, term: str) -> np.ndarray:
        return self.matrix[:, self.terms.index(term)]

    def select(self, terms: Sequence[str]) -> "FeatureTable":
        """
        Return a table restricted to the given terms, in the given order.

        Raises
        ------
        KeyError
            If a term is not a column of this table.
        """
        positions = {term: i for i, term in enumerate(self.terms)}
        missing = [term for term in terms if term not in positions]
        if missing:
            raise KeyError(f"Terms not present in feature table: {missing[:10]}")

        columns = [positions[term] for term in terms]
        return FeatureTable(
            matrix=np.array(self.matrix[:, columns], dtype=np.uint8),
            terms=tuple(terms),
            doc_ids=self.doc_ids,
        )

    def to_frame(self, labels: Optional[np.ndarray] = None) -> pd.DataFrame:
        """
        Return the table as a DataFrame indexed by document id.

        If labels (1 = spam) are given, an "is_ham" column is appended,
        matching the layout of the persisted subject-word frame.
        """
        df = pd.DataFrame(
            np.array(self.matrix),
            columns=list(self.terms),
            index=pd.Index(self.doc_ids, name="id"),
        )
        if labels is not None:
            df[IS_HAM_COLUMN] = 1 - np.asarray(labels, dtype=int)
        return df


# ---------------------------------------------------------------------------
# Term statistics
# ---------------------------------------------------------------------------


def _sort_descending(counts: Dict[str, float]) -> Dict[str, float]:
    return dict(sorted(counts.items(), key=lambda item: (-item[1], item[0])))


def _filter_stop_words(
    mapping: Dict[str, float],
    stop_words: Optional[Iterable[str]],
) -> Dict[str, float]:
    if not stop_words:
        return mapping
    stop_set = set(stop_words)
    return {term: value for term, value in mapping.items() if term not in stop_set}


class TermStats:
    """
    Per-term document counts for each class.

    Counts are presence counts: a term used twice in one subject counts
    once for that document. Stop words passed to the query methods only
    filter the returned view; the underlying counts never change.
    """

    def __init__(
        self,
        ham_counts: Dict[str, int],
        spam_counts: Dict[str, int],
        ham_document_count: int,
        spam_document_count: int,
    ):
        vocabulary = set(ham_counts) | set(spam_counts)
        self._ham_counts = {term: int(ham_counts.get(term, 0)) for term in vocabulary}
        self._spam_counts = {term: int(spam_counts.get(term, 0)) for term in vocabulary}
        self.ham_document_count = int(ham_document_count)
        self.spam_document_count = int(spam_document_count)

    def __len__(self) -> int:
        return len(self._ham_counts)

    def __contains__(self, term: object) -> bool:
        return term in self._ham_counts

    @property
    def vocabulary(self) -> FrozenSet[str]:
        return frozenset(self._ham_counts)

    def ham_count(self, term: str) -> int:
        return self._ham_counts.get(term, 0)

    def spam_count(self, term: str) -> int:
        return self._spam_counts.get(term, 0)

    def document_frequency(self, term: str) -> int:
        """Number of documents (either class) containing the term."""
        return self.ham_count(term) + self.spam_count(term)

    def ordered_terms(self) -> List[str]:
        """Terms by descending combined document frequency, ties by term."""
        return sorted(self._ham_counts, key=lambda term: (-self.document_frequency(term), term))

    # -- frequencies ------------------------------------------------------

    def ham_term_frequencies(self, stop_words: Optional[Iterable[str]] = None) -> Dict[str, int]:
        """Ham document count per term, most frequent first."""
        return _filter_stop_words(_sort_descending(self._ham_counts), stop_words)

    def spam_term_frequencies(self, stop_words: Optional[Iterable[str]] = None) -> Dict[str, int]:
        """Spam document count per term, most frequent first."""
        return _filter_stop_words(_sort_descending(self._spam_counts), stop_words)

    # -- proportions ------------------------------------------------------

    def ham_term_proportions(self, stop_words: Optional[Iterable[str]] = None) -> Dict[str, float]:
        """
        Fraction of ham documents containing each term.

        Raises
        ------
        ZeroClassCountError
            If the corpus has no ham documents.
        """
        if self.ham_document_count == 0:
            raise ZeroClassCountError(Label.HAM.value)
        return {
            term: count / float(self.ham_document_count)
            for term, count in self.ham_term_frequencies(stop_words).items()
        }

    def spam_term_proportions(self, stop_words: Optional[Iterable[str]] = None) -> Dict[str, float]:
        """
        Fraction of spam documents containing each term.

        Raises
        ------
        ZeroClassCountError
            If the corpus has no spam documents.
        """
        if self.spam_document_count == 0:
            raise ZeroClassCountError(Label.SPAM.value)
        return {
            term: count / float(self.spam_document_count)
            for term, count in self.spam_term_frequencies(stop_words).items()
        }


# ---------------------------------------------------------------------------
# Builder
# ---------------------------------------------------------------------------


class VocabularyBuilder:
    """
    Build the full feature table and term statistics of a corpus.

    Usage:
        >>> table, stats = VocabularyBuilder().build(corpus)
        >>> table.shape
        (4, 6)
    """

    def __init__(self, tokenizer: Callable[[str], FrozenSet[str]] = tokenize):
        self.tokenizer = tokenizer

    def build(self, corpus: Corpus) -> Tuple[FeatureTable, TermStats]:
        """
        Tokenize every document and encode term presence.

        Parameters
        ----------
        corpus : Corpus
            Labeled documents.

        Returns
        -------
        Tuple[FeatureTable, TermStats]
            The dense binary table over the whole vocabulary and the
            per-class document counts of every term.
        """
        token_sets = [self.tokenizer(doc.text) for doc in corpus]

        ham_counts: Counter = Counter()
        spam_counts: Counter = Counter()
        for doc, terms in zip(corpus, token_sets):
            if doc.label is Label.SPAM:
                spam_counts.update(terms)
            else:
                ham_counts.update(terms)

        stats = TermStats(
            ham_counts=dict(ham_counts),
            spam_counts=dict(spam_counts),
            ham_document_count=corpus.ham_count,
            spam_document_count=corpus.spam_count,
        )

        terms = stats.ordered_terms()
        positions = {term: i for i, term in enumerate(terms)}

        # Absent terms stay materialized as 0.
        matrix = np.zeros((len(corpus), len(terms)), dtype=np.uint8)
        for row, doc_terms in enumerate(token_sets):
            for term in doc_terms:
                matrix[row, positions[term]] = 1

        table = FeatureTable(matrix=matrix, terms=tuple(terms), doc_ids=tuple(corpus.ids))

        logger.debug(
            "Built vocabulary: %d documents x %d terms (%d ham, %d spam)",
            table.n_rows,
            table.n_columns,
            stats.ham_document_count,
            stats.spam_document_count,
        )
        return table, stats
