"""
CSV persistence of intermediate results.

Files written here:

- the prepared corpus (id, subject, body, label), so parsing the raw
  .eml files can be skipped on the next run
- the full per-document binary feature table, with a trailing is_ham column
- the ham and spam term frequencies as header-less "term,count" lines
"""

from __future__ import annotations

import os
from typing import Dict, Optional, Set

import numpy as np
import pandas as pd

from spam_filtering.data.documents import Corpus
from spam_filtering.features.vocabulary import FeatureTable
from spam_filtering.utils.training_utils import ensure_parent_dir_exists


def save_corpus(corpus: Corpus, path: str) -> None:
    ensure_parent_dir_exists(path)
    corpus.to_frame().to_csv(path, index=False)


def load_corpus(path: str) -> Corpus:
    """
    Load a corpus previously written by save_corpus.

    Raises
    ------
    FileNotFoundError
        If the CSV does not exist.
    """
    if not os.path.exists(path):
        raise FileNotFoundError(f"Prepared corpus not found at: {path}")

    # keep_default_na=False keeps subjects such as "NA" or "null" as text.
    df = pd.read_csv(path, dtype={"subject": str, "body": str}, keep_default_na=False)
    df = df.sort_values("id", kind="stable").reset_index(drop=True)
    return Corpus.from_frame(df, text_column="subject")


def save_feature_table(
    table: FeatureTable,
    path: str,
    labels: Optional[np.ndarray] = None,
) -> None:
    ensure_parent_dir_exists(path)
    table.to_frame(labels=labels).to_csv(path)


def save_term_frequencies(frequencies: Dict[str, int], path: str) -> None:
    """Write one "term,count" line per entry, keeping the mapping's order."""
    ensure_parent_dir_exists(path)
    series = pd.Series(frequencies, dtype="int64")
    series.to_csv(path, header=False)


def load_term_frequencies(path: str) -> Dict[str, int]:
    if not os.path.exists(path):
        raise FileNotFoundError(f"Term frequency file not found at: {path}")
    df = pd.read_csv(
        path,
        header=None,
        names=["term", "count"],
        dtype={"term": str, "count": "int64"},
        keep_default_na=False,
    )
    return dict(zip(df["term"], df["count"].astype(int)))


def load_stop_words(path: str) -> Set[str]:
    """Read a stop-word list with one word per line; blank lines are ignored."""
    if not os.path.exists(path):
        raise FileNotFoundError(f"Stop-word file not found at: {path}")
    with open(path, "r", encoding="utf-8") as f:
        return {line.strip().lower() for line in f if line.strip()}
