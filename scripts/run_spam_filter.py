"""
Run the email-subject spam filter with k-fold cross-validation.

This script is a convenience wrapper around
`spam_filtering.training.classify.run_spam_filtering`, which:

- loads the prepared corpus, or parses the raw .eml files and labels
- builds the binary subject-word table and the term frequencies
- saves them (and the charts) under data/data-preparation/ and experiments/
- cross-validates the configured classifier family
- logs the confusion matrix, errors, accuracy, precision and recall
- writes metrics under experiments/results/

Usage (from project root):

    python -m scripts.run_spam_filter --reuse-prepared
    # or
    python scripts/run_spam_filter.py --classifier logistic_regression_irls --folds 5
"""

from __future__ import annotations

import argparse

from spam_filtering.models.classifiers import ClassifierFamily
from spam_filtering.training.classify import run_spam_filtering
from spam_filtering.utils.training_utils import load_train_config, get_logger


def parse_args() -> argparse.Namespace:
    """
    Parse command-line arguments.

    Every option left unset falls back to the YAML configuration.
    """
    parser = argparse.ArgumentParser(
        description="Cross-validate a spam filter on email subjects."
    )
    parser.add_argument(
        "--data-config",
        type=str,
        default="config/data.yaml",
        help="Path to data config YAML (default: config/data.yaml).",
    )
    parser.add_argument(
        "--train-config",
        type=str,
        default="config/train.yaml",
        help="Path to global train config YAML (default: config/train.yaml).",
    )
    parser.add_argument(
        "--classifier-config",
        type=str,
        default="config/classifiers.yaml",
        help="Path to classifier config YAML (default: config/classifiers.yaml).",
    )
    parser.add_argument(
        "--classifier",
        type=str,
        choices=[family.value for family in ClassifierFamily],
        default=None,
        help="Classifier family (default: general.family in the classifier config).",
    )
    parser.add_argument(
        "--folds",
        type=int,
        default=None,
        help="Number of cross-validation folds, at least 2.",
    )
    parser.add_argument(
        "--min-occurrences",
        type=int,
        default=None,
        help="Minimum number of documents a term must appear in to be a feature.",
    )
    parser.add_argument(
        "--reuse-prepared",
        action="store_true",
        default=None,
        help="Load the prepared corpus CSV instead of re-parsing the raw emails.",
    )
    return parser.parse_args()


def main() -> None:
    args = parse_args()

    # Load training config for logging / paths
    train_cfg = load_train_config(args.train_config)
    logger = get_logger(
        name="run_spam_filter",
        config=train_cfg,
        log_file_suffix="cli",
    )

    logger.info("=" * 80)
    logger.info("Starting spam filter cross-validation.")
    logger.info(
        "Configs: data=%s, train=%s, classifiers=%s",
        args.data_config,
        args.train_config,
        args.classifier_config,
    )

    report = run_spam_filtering(
        data_config_path=args.data_config,
        train_config_path=args.train_config,
        classifier_config_path=args.classifier_config,
        reuse_prepared=args.reuse_prepared,
        family=args.classifier,
        num_folds=args.folds,
        min_occurrences=args.min_occurrences,
    )

    logger.info(
        "Completed %s with %d features: validation error %.4f",
        report.family,
        len(report.selected_terms),
        report.cv_result.mean_validation_loss,
    )


if __name__ == "__main__":
    main()
