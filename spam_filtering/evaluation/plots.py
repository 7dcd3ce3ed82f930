"""
Plotting utilities for spam detection experiments.

This module provides convenient helpers to visualize:

- the ham vs. spam balance of the sample set
- the top terms of one class, with the proportion of documents containing
  them in each class (blue: ham, red: spam)

Every function returns the matplotlib (fig, ax) pair, optionally saves the
figure, and only calls plt.show() when asked to.
"""

from __future__ import annotations

from typing import Optional, Tuple

import matplotlib.pyplot as plt
import numpy as np
import pandas as pd

from spam_filtering.evaluation.analysis import COMPARISON_COLUMNS
from spam_filtering.utils.training_utils import ensure_parent_dir_exists


HAM_COLOR = "tab:blue"
SPAM_COLOR = "tab:red"


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _finish(fig, out_path: Optional[str], show: bool) -> None:
    fig.tight_layout()

    if out_path is not None:
        ensure_parent_dir_exists(out_path)
        fig.savefig(out_path, dpi=150, bbox_inches="tight")

    if show:
        plt.show()
    else:
        plt.close(fig)


# ---------------------------------------------------------------------------
# Class balance
# ---------------------------------------------------------------------------


def plot_class_counts(
    ham_count: int,
    spam_count: int,
    figsize: Tuple[float, float] = (6.0, 4.5),
    title: str = "Ham vs. Spam in sample set",
    out_path: Optional[str] = None,
    show: bool = True,
):
    """
    Bar chart of the number of ham and spam documents.

    Parameters
    ----------
    ham_count : int
        Number of ham documents.
    spam_count : int
        Number of spam documents.
    figsize : Tuple[float, float]
        Figure size in inches.
    title : str
        Plot title.
    out_path : Optional[str]
        If provided, save the figure to this path (e.g., PNG).
    show : bool
        If True, call plt.show(). If False, close the figure after saving.

    Returns
    -------
    (fig, ax)
        Matplotlib Figure and Axes objects.
    """
    fig, ax = plt.subplots(figsize=figsize)
    counts = [int(ham_count), int(spam_count)]
    ax.bar(["Ham", "Spam"], counts, color=[HAM_COLOR, SPAM_COLOR])

    ax.set_ylabel("Documents")
    ax.set_title(title)

    for i, v in enumerate(counts):
        ax.text(i, v, str(v), ha="center", va="bottom", fontsize=9)

    _finish(fig, out_path, show)
    return fig, ax


# ---------------------------------------------------------------------------
# Term comparison
# ---------------------------------------------------------------------------


def plot_top_terms(
    comparison: pd.DataFrame,
    title: str,
    figsize: Tuple[float, float] = (12.0, 5.0),
    rotate_xticks: int = 45,
    out_path: Optional[str] = None,
    show: bool = True,
):
    """
    Grouped bar chart of term proportions in ham (blue) and spam (red).

    Parameters
    ----------
    comparison : pd.DataFrame
        Table as produced by analysis.top_term_comparison, with columns
        ["term", "ham_proportion", "spam_proportion"].
    title : str
        Plot title, e.g. "Top 10 Terms in Spam Emails".
    figsize : Tuple[float, float]
        Figure size in inches.
    rotate_xticks : int
        Rotation angle for x-axis tick labels.
    out_path : Optional[str]
        If provided, save the figure to this path.
    show : bool
        If True, call plt.show().

    Returns
    -------
    (fig, ax)
        Matplotlib Figure and Axes objects.
    """
    missing = [col for col in COMPARISON_COLUMNS if col not in comparison.columns]
    if missing:
        raise ValueError(
            f"Missing column(s) {missing} in term comparison. "
            f"Available columns: {list(comparison.columns)}"
        )
    if comparison.empty:
        raise ValueError("Term comparison is empty; nothing to plot.")

    terms = comparison["term"].astype(str).tolist()
    positions = np.arange(len(terms))
    width = 0.4

    fig, ax = plt.subplots(figsize=figsize)
    ax.bar(positions - width / 2, comparison["ham_proportion"], width, label="Ham", color=HAM_COLOR)
    ax.bar(positions + width / 2, comparison["spam_proportion"], width, label="Spam", color=SPAM_COLOR)

    ax.set_xticks(positions)
    ax.set_xticklabels(terms, rotation=rotate_xticks, ha="right")
    ax.set_ylabel("Proportion of documents")
    ax.set_ylim(0.0, 1.0)
    ax.set_title(title)
    ax.legend()

    _finish(fig, out_path, show)
    return fig, ax
