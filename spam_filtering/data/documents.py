"""
Corpus containers shared by every stage of the pipeline.

A Document is one labeled email: its subject is the text the classifier
learns from, the plain-text body is carried along only so the prepared
corpus can be persisted and reloaded without loss. The spam label is the
stored fact; the ham flag is always derived from it.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Iterable, Iterator, List, Sequence, Tuple

import numpy as np
import pandas as pd


class Label(str, Enum):
    """The two classes of the task."""

    HAM = "ham"
    SPAM = "spam"

    @property
    def label_id(self) -> int:
        """Numeric target: 1 for spam, 0 for ham."""
        return 1 if self is Label.SPAM else 0

    @property
    def is_ham(self) -> bool:
        return self is Label.HAM

    @classmethod
    def from_is_ham(cls, is_ham: bool) -> "Label":
        return cls.HAM if is_ham else cls.SPAM


@dataclass(frozen=True)
class Document:
    """A single labeled email subject."""

    id: int
    text: str
    label: Label
    body: str = ""

    @property
    def label_id(self) -> int:
        return self.label.label_id


class Corpus:
    """
    Ordered, read-only sequence of Documents with unique ids.

    Row order is insertion order and is what every derived structure
    (feature table rows, label vector, folds) is aligned to.
    """

    def __init__(self, documents: Iterable[Document]):
        docs: Tuple[Document, ...] = tuple(documents)

        seen = set()
        for doc in docs:
            if doc.id in seen:
                raise ValueError(f"Duplicate document id in corpus: {doc.id}")
            seen.add(doc.id)

        self._documents = docs

    def __len__(self) -> int:
        return len(self._documents)

    def __iter__(self) -> Iterator[Document]:
        return iter(self._documents)

    def __getitem__(self, index: int) -> Document:
        return self._documents[index]

    def __repr__(self) -> str:
        return f"Corpus(n={len(self)}, ham={self.ham_count}, spam={self.spam_count})"

    @property
    def documents(self) -> Tuple[Document, ...]:
        return self._documents

    @property
    def ids(self) -> List[int]:
        return [doc.id for doc in self._documents]

    @property
    def texts(self) -> List[str]:
        return [doc.text for doc in self._documents]

    @property
    def ham_count(self) -> int:
        return sum(1 for doc in self._documents if doc.label is Label.HAM)

    @property
    def spam_count(self) -> int:
        return sum(1 for doc in self._documents if doc.label is Label.SPAM)

    def label_vector(self) -> np.ndarray:
        """Return the targets (1 = spam, 0 = ham) in corpus order."""
        return np.array([doc.label_id for doc in self._documents], dtype=int)

    # ------------------------------------------------------------------
    # Conversions
    # ------------------------------------------------------------------

    @classmethod
    def from_records(cls, records: Sequence[Dict[str, Any]]) -> "Corpus":
        """
        Build a corpus from dictionaries with "text" and "label" keys.

        "id" defaults to the record position; "label" may be a Label or
        one of the strings "ham" / "spam".
        """
        documents = []
        for position, record in enumerate(records):
            documents.append(
                Document(
                    id=int(record.get("id", position)),
                    text=str(record["text"]),
                    label=Label(record["label"]),
                    body=str(record.get("body", "") or ""),
                )
            )
        return cls(documents)

    @classmethod
    def from_frame(cls, df: pd.DataFrame, text_column: str = "subject") -> "Corpus":
        """
        Build a corpus from a prepared DataFrame.

        Expected columns: "id", text_column, "label" and optionally "body".
        Missing subjects and bodies become empty strings.
        """
        missing = [col for col in ("id", text_column, "label") if col not in df.columns]
        if missing:
            raise ValueError(
                f"Missing required column(s) in prepared frame: {missing}. "
                f"Available columns: {list(df.columns)}"
            )

        has_body = "body" in df.columns
        documents = []
        for row in df.itertuples(index=False):
            row_dict = row._asdict()
            text = row_dict[text_column]
            body = row_dict["body"] if has_body else ""
            documents.append(
                Document(
                    id=int(row_dict["id"]),
                    text="" if pd.isna(text) else str(text),
                    label=Label(str(row_dict["label"]).strip().lower()),
                    body="" if pd.isna(body) else str(body),
                )
            )
        return cls(documents)

    def to_frame(self) -> pd.DataFrame:
        """Return the corpus as a DataFrame with columns id, subject, body, label."""
        return pd.DataFrame(
            {
                "id": [doc.id for doc in self._documents],
                "subject": [doc.text for doc in self._documents],
                "body": [doc.body for doc in self._documents],
                "label": [doc.label.value for doc in self._documents],
            }
        )
