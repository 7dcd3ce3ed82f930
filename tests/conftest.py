"""Shared test fixtures for the spam filtering tests."""

from __future__ import annotations

import pytest

from spam_filtering.data.documents import Corpus, Document, Label


@pytest.fixture
def small_corpus() -> Corpus:
    """The four-subject corpus used throughout the tests."""
    return Corpus(
        [
            Document(id=0, text="free money now", label=Label.SPAM),
            Document(id=1, text="free lunch today", label=Label.HAM),
            Document(id=2, text="win money now", label=Label.SPAM),
            Document(id=3, text="lunch today free", label=Label.HAM),
        ]
    )


@pytest.fixture
def larger_corpus() -> Corpus:
    """A separable corpus large enough for real classifiers and 3+ folds."""
    spam_subjects = [
        "win free money now",
        "cheap pills free offer",
        "you won the lottery claim now",
        "free money offer inside",
        "claim your free prize now",
        "cheap loans win money",
        "limited offer win now",
        "free prize claim inside",
    ]
    ham_subjects = [
        "meeting notes for monday",
        "lunch today with the team",
        "project status update",
        "notes from the team meeting",
        "monday project review",
        "status of the release",
        "team lunch on friday",
        "review the meeting agenda",
    ]
    records = []
    # Interleave classes so contiguous folds contain both.
    for spam, ham in zip(spam_subjects, ham_subjects):
        records.append({"text": spam, "label": "spam"})
        records.append({"text": ham, "label": "ham"})
    return Corpus.from_records(records)
