"""
Subject tokenization.

A term is a maximal run of ASCII letters, optionally followed by an
apostrophe and one of the English contraction suffixes s, d, t, ve, m
("it's", "don't", "we've", "i'm"). Matches are lowercased and returned
as a set: the classifier only cares whether a term is present in a
document, not how often.
"""

from __future__ import annotations

import re
from typing import FrozenSet, Optional


TOKEN_PATTERN = re.compile(r"[a-zA-Z]+(?:'(?:s|d|t|ve|m))?")


def tokenize(text: Optional[str]) -> FrozenSet[str]:
    """
    Extract the set of lowercased terms in a text.

    Parameters
    ----------
    text : Optional[str]
        Raw text (typically an email subject). None and blank strings
        are treated as empty.

    Returns
    -------
    FrozenSet[str]
        Distinct lowercased terms.
    """
    if not text:
        return frozenset()
    return frozenset(match.group(0).lower() for match in TOKEN_PATTERN.finditer(text))
