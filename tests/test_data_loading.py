"""
Tests for data loading utilities.

These tests validate that:

- the data configuration can be loaded and has the dataset section
- label files and .eml files are parsed into a labeled Corpus
- the prepared corpus, feature table and term frequencies survive a
  CSV round trip
- load_dataset reuses the prepared CSV only when asked to

Raw emails are written to pytest's tmp_path, so the suite runs in a
fresh clone without the real dataset.
"""

from __future__ import annotations

from pathlib import Path

import pandas as pd
import pytest
import yaml

from spam_filtering.data.datasets import load_configured_stop_words, load_data_config, load_dataset
from spam_filtering.data.documents import Corpus, Document, Label
from spam_filtering.data.ingestion import list_eml_files, load_eml_corpus, parse_eml, read_label_file
from spam_filtering.data.persistence import (
    load_corpus,
    load_stop_words,
    load_term_frequencies,
    save_corpus,
    save_feature_table,
    save_term_frequencies,
)
from spam_filtering.features.vocabulary import VocabularyBuilder


CONFIG_DIR = Path(__file__).resolve().parents[1] / "config"

EMAILS = {
    "TRAIN_00000.eml": ("0", "Free money now"),
    "TRAIN_00001.eml": ("1", "Lunch today"),
    "TRAIN_00002.eml": ("0", "Win a free prize"),
    "TRAIN_00003.eml": ("1", "Meeting notes"),
}


def _write_eml(path: Path, subject: str, body: str = "Hello there.") -> None:
    path.write_text(
        f"From: sender@example.com\nTo: you@example.com\nSubject: {subject}\n\n{body}\n",
        encoding="utf-8",
    )


@pytest.fixture
def raw_dir(tmp_path):
    raw = tmp_path / "raw-data"
    raw.mkdir()
    lines = []
    for name, (flag, subject) in EMAILS.items():
        _write_eml(raw / name, subject, body=f"Body of {name}")
        lines.append(f"{flag} {name}")
    (raw / "SPAMTrain.label").write_text("\n".join(lines) + "\n", encoding="utf-8")
    return raw


def _write_data_config(tmp_path, raw_dir, reuse_prepared=False, stopwords_path=None) -> str:
    cfg = {
        "dataset": {
            "raw_data_dir": str(raw_dir),
            "label_file": "SPAMTrain.label",
            "ham_label_value": 1,
            "prepared_path": str(tmp_path / "prep" / "transformedMails.csv"),
            "reuse_prepared": reuse_prepared,
            "stopwords_path": stopwords_path,
        }
    }
    path = tmp_path / "data.yaml"
    path.write_text(yaml.safe_dump(cfg), encoding="utf-8")
    return str(path)


# ---------------------------------------------------------------------------
# Config
# ---------------------------------------------------------------------------


def test_load_data_config_has_required_keys():
    cfg = load_data_config(str(CONFIG_DIR / "data.yaml"))

    assert "dataset" in cfg
    dataset = cfg["dataset"]
    for key in ("raw_data_dir", "label_file", "ham_label_value", "prepared_path"):
        assert key in dataset


def test_missing_config_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_data_config(str(tmp_path / "nope.yaml"))


def test_config_without_dataset_section(tmp_path):
    path = tmp_path / "data.yaml"
    path.write_text("paths: {}\n", encoding="utf-8")
    with pytest.raises(KeyError):
        load_data_config(str(path))


# ---------------------------------------------------------------------------
# Raw ingestion
# ---------------------------------------------------------------------------


def test_read_label_file(raw_dir):
    labels = read_label_file(str(raw_dir / "SPAMTrain.label"))

    assert labels["TRAIN_00000.eml"] is Label.SPAM
    assert labels["TRAIN_00001.eml"] is Label.HAM
    assert len(labels) == 4


def test_read_label_file_rejects_malformed_lines(tmp_path):
    path = tmp_path / "bad.label"
    path.write_text("1 a.eml extra\n", encoding="utf-8")
    with pytest.raises(ValueError):
        read_label_file(str(path))


def test_parse_eml_decodes_encoded_subject(tmp_path):
    path = tmp_path / "encoded.eml"
    _write_eml(path, "=?utf-8?b?UmU6IENhZsOp?=", body="plain body")

    parsed = parse_eml(str(path))
    assert parsed["subject"] == "Re: Café"
    assert parsed["body"].strip() == "plain body"


def test_parse_eml_without_subject(tmp_path):
    path = tmp_path / "nosubject.eml"
    path.write_text("From: a@example.com\n\nbody only\n", encoding="utf-8")
    assert parse_eml(str(path))["subject"] == ""


def test_load_eml_corpus_assigns_ids_in_file_order(raw_dir):
    corpus = load_eml_corpus(str(raw_dir))

    assert list_eml_files(str(raw_dir)) == sorted(EMAILS)
    assert corpus.ids == [0, 1, 2, 3]
    assert corpus.texts == [subject for _, subject in EMAILS.values()]
    assert corpus.label_vector().tolist() == [1, 0, 1, 0]
    assert corpus[0].body.strip() == "Body of TRAIN_00000.eml"


def test_load_eml_corpus_rejects_unlabeled_email(raw_dir):
    _write_eml(raw_dir / "TRAIN_99999.eml", "stray")
    with pytest.raises(ValueError):
        load_eml_corpus(str(raw_dir))


def test_load_eml_corpus_requires_label_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_eml_corpus(str(tmp_path))


# ---------------------------------------------------------------------------
# Persistence
# ---------------------------------------------------------------------------


def test_corpus_csv_round_trip(tmp_path):
    corpus = Corpus(
        [
            Document(id=0, text="NA", label=Label.SPAM, body="first, with comma"),
            Document(id=1, text="", label=Label.HAM, body="second\nline"),
        ]
    )
    path = str(tmp_path / "prep" / "corpus.csv")
    save_corpus(corpus, path)
    loaded = load_corpus(path)

    assert loaded.texts == ["NA", ""]
    assert [doc.body for doc in loaded] == ["first, with comma", "second\nline"]
    assert loaded.label_vector().tolist() == [1, 0]


def test_feature_table_csv_has_is_ham_column(tmp_path, small_corpus):
    table, _ = VocabularyBuilder().build(small_corpus)
    path = tmp_path / "subjectWordFrame-alphaonly.csv"
    save_feature_table(table, str(path), labels=small_corpus.label_vector())

    df = pd.read_csv(path, index_col="id")
    assert list(df.columns)[-1] == "is_ham"
    assert df["is_ham"].tolist() == [0, 1, 0, 1]
    assert df.shape == (4, 7)


def test_term_frequencies_round_trip_keeps_order(tmp_path, small_corpus):
    _, stats = VocabularyBuilder().build(small_corpus)
    frequencies = stats.spam_term_frequencies()
    path = str(tmp_path / "spam-frequencies.csv")

    save_term_frequencies(frequencies, path)
    assert load_term_frequencies(path) == frequencies
    assert list(load_term_frequencies(path)) == list(frequencies)


def test_load_stop_words(tmp_path):
    path = tmp_path / "stopwords.txt"
    path.write_text("The\n\n  and \nof\n", encoding="utf-8")
    assert load_stop_words(str(path)) == {"the", "and", "of"}


# ---------------------------------------------------------------------------
# Configured dataset
# ---------------------------------------------------------------------------


def test_load_dataset_parses_and_saves_prepared_csv(tmp_path, raw_dir):
    config_path = _write_data_config(tmp_path, raw_dir)

    corpus = load_dataset(config_path)
    assert len(corpus) == 4
    assert (tmp_path / "prep" / "transformedMails.csv").exists()


def test_load_dataset_reuses_prepared_csv(tmp_path, raw_dir):
    config_path = _write_data_config(tmp_path, raw_dir)
    first = load_dataset(config_path)

    # Once the prepared CSV exists the raw emails are no longer needed.
    for name in EMAILS:
        (raw_dir / name).unlink()

    reused = load_dataset(config_path, reuse_prepared=True)
    assert reused.texts == first.texts
    assert reused.label_vector().tolist() == first.label_vector().tolist()

    with pytest.raises(ValueError):
        load_dataset(config_path, reuse_prepared=False)


def test_configured_stop_words(tmp_path, raw_dir):
    missing = _write_data_config(tmp_path, raw_dir, stopwords_path=str(tmp_path / "none.txt"))
    assert load_configured_stop_words(missing) == set()

    stop_path = tmp_path / "stopwords.txt"
    stop_path.write_text("free\n", encoding="utf-8")
    present = _write_data_config(tmp_path, raw_dir, stopwords_path=str(stop_path))
    assert load_configured_stop_words(present) == {"free"}
