"""
Tests for the corpus analysis views and charts.

These tests validate that:

- top-term comparisons rank by the chosen class and carry both proportions
- stop words are excluded from the reporting view
- the charts render to files without opening a window
"""

from __future__ import annotations

import matplotlib

matplotlib.use("Agg")

import pandas as pd  # noqa: E402
import pytest  # noqa: E402

from spam_filtering.data.documents import Corpus, Label  # noqa: E402
from spam_filtering.evaluation.analysis import (  # noqa: E402
    COMPARISON_COLUMNS,
    analyze_term_stats,
    top_term_comparison,
)
from spam_filtering.evaluation.plots import plot_class_counts, plot_top_terms  # noqa: E402
from spam_filtering.features.vocabulary import VocabularyBuilder  # noqa: E402


@pytest.fixture
def small_stats(small_corpus):
    _, stats = VocabularyBuilder().build(small_corpus)
    return stats


def test_top_spam_terms(small_stats):
    df = top_term_comparison(small_stats, Label.SPAM, top_n=3)

    assert list(df.columns) == COMPARISON_COLUMNS
    assert df["term"].tolist() == ["money", "now", "free"]
    assert df["spam_proportion"].tolist() == pytest.approx([1.0, 1.0, 0.5])
    assert df["ham_proportion"].tolist() == pytest.approx([0.0, 0.0, 1.0])


def test_top_terms_exclude_stop_words(small_stats):
    df = top_term_comparison(small_stats, Label.HAM, top_n=10, stop_words={"free"})
    assert "free" not in df["term"].tolist()
    assert df["term"].tolist()[:2] == ["lunch", "today"]


def test_analyze_term_stats(small_stats):
    analysis = analyze_term_stats(small_stats, top_n=2)

    assert analysis.ham_count == 2
    assert analysis.spam_count == 2
    assert analysis.vocabulary_size == 6
    assert len(analysis.top_ham_terms) == 2
    assert analysis.spam_term_frequencies["money"] == 2


def test_plot_class_counts_saves_figure(tmp_path):
    out = tmp_path / "figures" / "ham_vs_spam.png"
    fig, ax = plot_class_counts(2, 3, out_path=str(out), show=False)

    assert out.exists()
    assert [p.get_height() for p in ax.patches] == [2, 3]


def test_plot_top_terms_saves_figure(tmp_path, small_stats):
    out = tmp_path / "top_spam_terms.png"
    comparison = top_term_comparison(small_stats, Label.SPAM, top_n=4)
    fig, ax = plot_top_terms(comparison, title="Top spam terms", out_path=str(out), show=False)

    assert out.exists()
    assert len(ax.patches) == 8


def test_plot_top_terms_rejects_bad_input():
    with pytest.raises(ValueError):
        plot_top_terms(pd.DataFrame({"term": ["a"]}), title="x", show=False)
    with pytest.raises(ValueError):
        plot_top_terms(pd.DataFrame(columns=COMPARISON_COLUMNS), title="x", show=False)


def test_single_class_corpus_keeps_counts_and_skips_comparisons():
    corpus = Corpus.from_records(
        [{"text": "free money", "label": "spam"}, {"text": "win money", "label": "spam"}]
    )
    _, stats = VocabularyBuilder().build(corpus)

    analysis = analyze_term_stats(stats, top_n=3)

    assert analysis.ham_count == 0
    assert analysis.spam_term_frequencies["money"] == 2
    assert analysis.ham_term_frequencies["money"] == 0
    assert analysis.top_ham_terms.empty
    assert analysis.top_spam_terms.empty
    assert list(analysis.top_spam_terms.columns) == COMPARISON_COLUMNS
