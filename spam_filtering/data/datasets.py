"""
Dataset loading for the email spam corpus.

This module is responsible for:
- reading the dataset configuration from config/data.yaml
- loading the prepared corpus CSV when it exists and reuse is requested
- otherwise parsing the raw .eml files, joining them with the label file
  and writing the prepared CSV for the next run
- loading the optional stop-word list used by the reporting views

The resulting Corpus is ready to be used by the vocabulary builder.
"""

from __future__ import annotations

import logging
import os
from typing import Any, Dict, Optional, Set

from spam_filtering.data.documents import Corpus
from spam_filtering.data.ingestion import DEFAULT_LABEL_FILE, load_eml_corpus
from spam_filtering.data.persistence import load_corpus, load_stop_words, save_corpus
from spam_filtering.utils.training_utils import load_yaml_config


logger = logging.getLogger(__name__)

DEFAULT_DATA_CONFIG_PATH = "config/data.yaml"


def load_data_config(config_path: str = DEFAULT_DATA_CONFIG_PATH) -> Dict[str, Any]:
    """
    Load and return the full data configuration dictionary.

    Parameters
    ----------
    config_path : str, optional
        Path to the data YAML configuration file.

    Returns
    -------
    Dict[str, Any]
        Dictionary containing the "dataset" section.
    """
    return load_yaml_config(config_path, required_sections=("dataset",))


def load_dataset(
    config_path: str = DEFAULT_DATA_CONFIG_PATH,
    reuse_prepared: Optional[bool] = None,
) -> Corpus:
    """
    Load the labeled corpus according to the configuration.

    Parameters
    ----------
    config_path : str, optional
        Path to the data YAML configuration file.
    reuse_prepared : Optional[bool]
        If True and the prepared CSV exists, load it instead of parsing the
        raw emails. None falls back to dataset.reuse_prepared in the config.

    Returns
    -------
    Corpus
        The labeled documents.

    Raises
    ------
    FileNotFoundError
        If neither a reusable prepared CSV nor the raw data can be found.
    """
    cfg = load_data_config(config_path)
    dataset_cfg = cfg["dataset"]

    prepared_path = dataset_cfg.get("prepared_path", "data/data-preparation/transformedMails.csv")
    if reuse_prepared is None:
        reuse_prepared = bool(dataset_cfg.get("reuse_prepared", False))

    if reuse_prepared and os.path.exists(prepared_path):
        logger.info("Loading prepared corpus from %s", prepared_path)
        return load_corpus(prepared_path)

    corpus = load_eml_corpus(
        raw_data_dir=dataset_cfg.get("raw_data_dir", "data/raw-data"),
        label_file=dataset_cfg.get("label_file", DEFAULT_LABEL_FILE),
        ham_label_value=int(dataset_cfg.get("ham_label_value", 1)),
    )

    save_corpus(corpus, prepared_path)
    logger.info("Saved prepared corpus to %s", prepared_path)
    return corpus


def load_configured_stop_words(config_path: str = DEFAULT_DATA_CONFIG_PATH) -> Set[str]:
    """
    Load the stop-word list named by dataset.stopwords_path.

    Returns an empty set when no path is configured or the file is absent;
    stop words only affect reporting, never classification.
    """
    cfg = load_data_config(config_path)
    path = cfg["dataset"].get("stopwords_path")
    if not path:
        return set()
    if not os.path.exists(path):
        logger.warning("Stop-word file %s not found; reporting without stop words.", path)
        return set()
    return load_stop_words(path)
