"""
Raw .eml ingestion.

The raw data directory holds one .eml file per email plus a label file
whose lines read "<flag> <file name>". With the CSDMC2010 convention a
flag of 1 marks ham and 0 marks spam; the flag meaning ham is
configurable through ham_label_value.

Emails are read in file-name order and receive ids 0..n-1 in that order.
The decoded subject becomes the document text; the plain-text body is
kept alongside for the prepared CSV.
"""

from __future__ import annotations

import email
import logging
import os
from email import policy
from email.message import EmailMessage
from typing import Dict, List

from spam_filtering.data.documents import Corpus, Document, Label


logger = logging.getLogger(__name__)

DEFAULT_LABEL_FILE = "SPAMTrain.label"


def read_label_file(path: str, ham_label_value: int = 1) -> Dict[str, Label]:
    """
    Parse a label file into a mapping from .eml file name to Label.

    Parameters
    ----------
    path : str
        Path to the label file.
    ham_label_value : int
        Flag value that marks a ham email; any other value marks spam.

    Returns
    -------
    Dict[str, Label]
        File name -> label.

    Raises
    ------
    FileNotFoundError
        If the label file does not exist.
    ValueError
        If a line is malformed.
    """
    if not os.path.exists(path):
        raise FileNotFoundError(f"Label file not found: {path}")

    labels: Dict[str, Label] = {}
    with open(path, "r", encoding="utf-8") as f:
        for line_no, line in enumerate(f, start=1):
            line = line.strip()
            if not line:
                continue
            parts = line.split()
            if len(parts) != 2:
                raise ValueError(f"Malformed line {line_no} in {path}: {line!r}")
            flag, file_name = parts
            try:
                is_ham = int(flag) == int(ham_label_value)
            except ValueError as exc:
                raise ValueError(f"Non-integer label on line {line_no} in {path}: {flag!r}") from exc
            labels[file_name] = Label.from_is_ham(is_ham)

    return labels


def _body_text(message: EmailMessage) -> str:
    part = message.get_body(preferencelist=("plain",))
    if part is None:
        return ""
    try:
        return part.get_content()
    except (LookupError, UnicodeDecodeError):
        # Unknown or lying charset declarations are common in spam.
        payload = part.get_payload(decode=True) or b""
        return payload.decode("utf-8", errors="replace")


def parse_eml(path: str) -> Dict[str, str]:
    """
    Extract the subject and plain-text body of one .eml file.

    Returns
    -------
    Dict[str, str]
        {"subject": ..., "body": ...}; missing parts are empty strings.
    """
    with open(path, "rb") as f:
        message = email.message_from_binary_file(f, policy=policy.default)

    subject = message.get("subject")
    return {
        "subject": str(subject).strip() if subject is not None else "",
        "body": _body_text(message),
    }


def list_eml_files(raw_data_dir: str) -> List[str]:
    """Return the .eml file names of a directory in sorted order."""
    if not os.path.isdir(raw_data_dir):
        raise FileNotFoundError(f"Raw data directory not found: {raw_data_dir}")
    return sorted(
        name for name in os.listdir(raw_data_dir)
        if name.lower().endswith(".eml")
    )


def load_eml_corpus(
    raw_data_dir: str,
    label_file: str = DEFAULT_LABEL_FILE,
    ham_label_value: int = 1,
) -> Corpus:
    """
    Parse every .eml file of a directory and join it with its label.

    Parameters
    ----------
    raw_data_dir : str
        Directory holding the .eml files and the label file.
    label_file : str
        Label file name (relative to raw_data_dir) or absolute path.
    ham_label_value : int
        Flag value that marks a ham email.

    Returns
    -------
    Corpus
        One Document per .eml file, ids assigned in file-name order.

    Raises
    ------
    FileNotFoundError
        If the directory or label file is missing.
    ValueError
        If no .eml files exist or an email has no label.
    """
    label_path = label_file if os.path.isabs(label_file) else os.path.join(raw_data_dir, label_file)
    labels = read_label_file(label_path, ham_label_value=ham_label_value)

    file_names = list_eml_files(raw_data_dir)
    if not file_names:
        raise ValueError(f"No .eml files found in: {raw_data_dir}")

    unlabeled = [name for name in file_names if name not in labels]
    if unlabeled:
        raise ValueError(
            f"{len(unlabeled)} email(s) have no entry in {label_path}, e.g. {unlabeled[:5]}"
        )

    documents = []
    for doc_id, name in enumerate(file_names):
        parsed = parse_eml(os.path.join(raw_data_dir, name))
        documents.append(
            Document(id=doc_id, text=parsed["subject"], label=labels[name], body=parsed["body"])
        )

    corpus = Corpus(documents)
    logger.info(
        "Parsed %d emails from %s (%d ham, %d spam)",
        len(corpus),
        raw_data_dir,
        corpus.ham_count,
        corpus.spam_count,
    )
    return corpus
