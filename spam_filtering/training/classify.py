"""
Analysis and cross-validated classification pipeline.

This module reproduces the full spam filtering run by:

- loading the labeled corpus (prepared CSV or raw .eml files)
- building the binary subject-word table and per-class term statistics
- saving the feature table and the ham/spam term frequencies
- rendering class-balance and top-term charts
- selecting features by document frequency (min_occurrences)
- cross-validating the configured classifier family:
    * Bernoulli Naive Bayes
    * Logistic regression (Newton / IRLS)
- computing the confusion matrix, accuracy, precision, recall and F1
- saving metrics to JSON under experiments/results/ and, optionally,
  the per-fold models under experiments/models/

This module is designed to be callable both as a library function and
as a standalone script (via `python -m spam_filtering.training.classify`).
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass
from typing import Any, Dict, Iterable, Optional, Tuple, Union

import joblib
import numpy as np

from spam_filtering.data.datasets import (
    DEFAULT_DATA_CONFIG_PATH,
    load_configured_stop_words,
    load_dataset,
)
from spam_filtering.data.documents import Corpus
from spam_filtering.data.folds import validate_fold_count
from spam_filtering.data.persistence import save_feature_table, save_term_frequencies
from spam_filtering.evaluation.analysis import CorpusAnalysis, analyze_term_stats
from spam_filtering.evaluation.metrics import (
    ConfusionMatrix,
    compute_classification_metrics,
    confusion_matrix,
    format_metric,
)
from spam_filtering.evaluation.plots import plot_class_counts, plot_top_terms
from spam_filtering.features.selection import (
    select_features,
    validate_count_by,
    validate_min_occurrences,
)
from spam_filtering.features.vocabulary import FeatureTable, TermStats, VocabularyBuilder
from spam_filtering.models.classifiers import (
    DEFAULT_CLASSIFIER_CONFIG_PATH,
    ClassifierFactory,
    ClassifierFamily,
    build_classifier_factory,
    configured_family,
    load_classifier_config,
)
from spam_filtering.training.cross_validation import (
    CrossValidationEngine,
    CrossValidationResult,
)
from spam_filtering.utils.training_utils import (
    DEFAULT_TRAIN_CONFIG_PATH,
    ensure_dir_exists,
    get_logger,
    load_train_config,
    seed_everything,
)


module_logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Report container
# ---------------------------------------------------------------------------


@dataclass
class ClassificationReport:
    """Outcome of one cross-validated classification run."""

    family: str
    min_occurrences: int
    selected_terms: Tuple[str, ...]
    cv_result: CrossValidationResult
    confusion: ConfusionMatrix
    metrics: Dict[str, Any]
    spam_count: int
    ham_count: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "model": self.family,
            "min_occurrences": self.min_occurrences,
            "n_features": len(self.selected_terms),
            "spam_count": self.spam_count,
            "ham_count": self.ham_count,
            **self.cv_result.summary(),
            **self.metrics,
        }


# ---------------------------------------------------------------------------
# Core steps
# ---------------------------------------------------------------------------


def analyze_corpus(
    corpus: Corpus,
    stop_words: Optional[Iterable[str]] = None,
    top_n: int = 10,
) -> Tuple[FeatureTable, TermStats, CorpusAnalysis]:
    """
    Build the full feature table, term statistics and reporting view.

    Parameters
    ----------
    corpus : Corpus
        Labeled documents.
    stop_words : Optional[Iterable[str]]
        Terms hidden from the reporting view only.
    top_n : int
        Number of top terms per class kept for charts.

    Returns
    -------
    Tuple[FeatureTable, TermStats, CorpusAnalysis]
        (full feature table, term statistics, analysis)
    """
    table, stats = VocabularyBuilder().build(corpus)
    analysis = analyze_term_stats(stats, top_n=top_n, stop_words=stop_words)
    return table, stats, analysis


def _resolve_factory(
    classifier: Union[str, ClassifierFamily, ClassifierFactory],
    classifier_cfg: Optional[Dict[str, Any]],
) -> Tuple[str, ClassifierFactory]:
    if isinstance(classifier, (str, ClassifierFamily)):
        family = ClassifierFamily.parse(classifier)
        return family.value, build_classifier_factory(family, classifier_cfg)
    return getattr(classifier, "__name__", type(classifier).__name__), classifier


def classify_data(
    feature_table: FeatureTable,
    stats: TermStats,
    labels: np.ndarray,
    classifier: Union[str, ClassifierFamily, ClassifierFactory] = ClassifierFamily.NAIVE_BAYES_BERNOULLI,
    num_folds: int = 3,
    min_occurrences: int = 1,
    count_by: str = "combined",
    stratify: bool = False,
    n_jobs: int = 1,
    classifier_cfg: Optional[Dict[str, Any]] = None,
) -> ClassificationReport:
    """
    Select features, cross-validate a classifier and compute the metrics.

    Parameters
    ----------
    feature_table : FeatureTable
        Full binary table over the whole vocabulary.
    stats : TermStats
        Term statistics of the same corpus.
    labels : np.ndarray
        Targets (1 = spam, 0 = ham), aligned with the table rows.
    classifier : Union[str, ClassifierFamily, ClassifierFactory]
        Family name, or a zero-argument factory of classifiers.
    num_folds : int
        Number of cross-validation folds (>= 2).
    min_occurrences : int
        Minimum document frequency of a selected term (>= 1).
    count_by : str
        "combined" (ham + spam documents) or "spam" (spam documents only).
    stratify : bool
        Balance classes across folds.
    n_jobs : int
        Folds evaluated concurrently.
    classifier_cfg : Optional[Dict[str, Any]]
        Hyperparameters, as loaded from config/classifiers.yaml.

    Returns
    -------
    ClassificationReport
        Cross-validation result, confusion matrix and metrics.

    Raises
    ------
    ConfigurationError
        For an invalid fold count, threshold or classifier family.
    EmptyVocabularyError
        If no term survives feature selection.
    FoldFitFailure
        If a fold fails to fit.
    """
    family_name, factory = _resolve_factory(classifier, classifier_cfg)
    validate_fold_count(feature_table.n_rows, num_folds)

    selected = select_features(stats, min_occurrences, count_by=count_by)
    reduced = feature_table.select(selected)
    module_logger.info(
        "Selected %d of %d terms (min_occurrences=%d, count_by=%s)",
        reduced.n_columns,
        feature_table.n_columns,
        min_occurrences,
        count_by,
    )

    labels = np.asarray(labels, dtype=int)
    cv_result = CrossValidationEngine(n_jobs=n_jobs).run(
        reduced,
        labels,
        num_folds,
        factory,
        stratify=stratify,
    )

    cm = confusion_matrix(labels, cv_result.predictions)
    metrics = compute_classification_metrics(y_true=labels, y_pred=cv_result.predictions)

    spam_count = int(labels.sum())
    return ClassificationReport(
        family=family_name,
        min_occurrences=min_occurrences,
        selected_terms=selected,
        cv_result=cv_result,
        confusion=cm,
        metrics=metrics,
        spam_count=spam_count,
        ham_count=int(len(labels) - spam_count),
    )


def log_classification_report(logger: logging.Logger, report: ClassificationReport) -> None:
    """Write the confusion matrix, sample sizes, errors and metrics to a logger."""
    cv = report.cv_result
    logger.info("%d spams vs. %d hams", report.spam_count, report.ham_count)
    logger.info("---- Confusion Matrix ----\n%s", report.confusion.to_frame())
    logger.info(
        "---- Sample Size ---- # samples: %d, # inputs: %d, # folds: %d",
        cv.n_samples,
        cv.n_inputs,
        cv.k,
    )
    logger.info("Training error: %.4f (std %.4f)", cv.mean_training_loss, cv.std_training_loss)
    logger.info("Validation error: %.4f (std %.4f)", cv.mean_validation_loss, cv.std_validation_loss)
    logger.info(
        "Accuracy: %s, Precision: %s, Recall: %s, F1: %s",
        format_metric(report.metrics["accuracy"]),
        format_metric(report.metrics["precision"]),
        format_metric(report.metrics["recall"]),
        format_metric(report.metrics["f1"]),
    )
    for metric in ("precision", "recall"):
        if report.metrics[metric] is None:
            logger.warning("%s is undefined for this run (zero denominator).", metric.capitalize())


# ---------------------------------------------------------------------------
# End-to-end run
# ---------------------------------------------------------------------------


def _save_analysis_outputs(
    table: FeatureTable,
    labels: np.ndarray,
    analysis: CorpusAnalysis,
    train_cfg: Dict[str, Any],
    logger: logging.Logger,
) -> None:
    paths_cfg = train_cfg.get("paths", {}) or {}
    save_cfg = train_cfg.get("save", {}) or {}
    plots_cfg = train_cfg.get("plots", {}) or {}
    preparation_dir = paths_cfg.get("preparation_dir", "data/data-preparation")

    if bool(save_cfg.get("save_feature_table", True)):
        path = os.path.join(preparation_dir, "subjectWordFrame-alphaonly.csv")
        save_feature_table(table, path, labels=labels)
        logger.info("Saved subject word table (%d x %d) to %s", table.n_rows, table.n_columns, path)

    if bool(save_cfg.get("save_term_frequencies", True)):
        ham_path = os.path.join(preparation_dir, "ham-frequencies.csv")
        spam_path = os.path.join(preparation_dir, "spam-frequencies.csv")
        save_term_frequencies(analysis.ham_term_frequencies, ham_path)
        save_term_frequencies(analysis.spam_term_frequencies, spam_path)
        logger.info("Saved term frequencies to %s and %s", ham_path, spam_path)

    if bool(plots_cfg.get("enabled", False)):
        figures_dir = paths_cfg.get("figures_dir", "experiments/figures")
        show = bool(plots_cfg.get("show", False))
        plot_class_counts(
            analysis.ham_count,
            analysis.spam_count,
            out_path=os.path.join(figures_dir, "ham_vs_spam.png"),
            show=show,
        )
        if not analysis.top_ham_terms.empty:
            plot_top_terms(
                analysis.top_ham_terms,
                title=f"Top {len(analysis.top_ham_terms)} Terms in Ham Emails (blue: HAM, red: SPAM)",
                out_path=os.path.join(figures_dir, "top_ham_terms.png"),
                show=show,
            )
        if not analysis.top_spam_terms.empty:
            plot_top_terms(
                analysis.top_spam_terms,
                title=f"Top {len(analysis.top_spam_terms)} Terms in Spam Emails (blue: HAM, red: SPAM)",
                out_path=os.path.join(figures_dir, "top_spam_terms.png"),
                show=show,
            )
        logger.info("Saved charts under %s", figures_dir)


def run_pipeline(
    corpus: Corpus,
    train_cfg: Dict[str, Any],
    classifier_cfg: Dict[str, Any],
    stop_words: Optional[Iterable[str]] = None,
    family: Optional[Union[str, ClassifierFamily]] = None,
    num_folds: Optional[int] = None,
    min_occurrences: Optional[int] = None,
    logger: Optional[logging.Logger] = None,
) -> ClassificationReport:
    """
    Analyze a corpus and cross-validate the configured classifier on it.

    Explicit arguments override the corresponding configuration values.
    Configuration errors are raised before any work is done.
    """
    logger = logger or module_logger
    cv_cfg = train_cfg.get("cross_validation", {}) or {}
    analysis_cfg = train_cfg.get("analysis", {}) or {}

    resolved_family = ClassifierFamily.parse(family) if family is not None else configured_family(classifier_cfg)
    num_folds = int(num_folds if num_folds is not None else cv_cfg.get("num_folds", 3))
    min_occurrences = int(
        min_occurrences if min_occurrences is not None else cv_cfg.get("min_occurrences", 1)
    )
    validate_fold_count(len(corpus), num_folds)
    validate_min_occurrences(min_occurrences)
    count_by = str(cv_cfg.get("count_by", "combined"))
    validate_count_by(count_by)
    build_classifier_factory(resolved_family, classifier_cfg)

    logger.info("Analyzing %d documents (%d ham, %d spam)", len(corpus), corpus.ham_count, corpus.spam_count)
    table, stats, analysis = analyze_corpus(
        corpus,
        stop_words=stop_words,
        top_n=int(analysis_cfg.get("top_n", 10)),
    )
    logger.info("Subject word transformation: %d rows x %d columns", table.n_rows, table.n_columns)

    labels = corpus.label_vector()
    _save_analysis_outputs(table, labels, analysis, train_cfg, logger)

    logger.info("Classifying with %s (%d folds)", resolved_family.value, num_folds)
    report = classify_data(
        table,
        stats,
        labels,
        classifier=resolved_family,
        num_folds=num_folds,
        min_occurrences=min_occurrences,
        count_by=count_by,
        stratify=bool(cv_cfg.get("stratify", False)),
        n_jobs=int(cv_cfg.get("n_jobs", 1)),
        classifier_cfg=classifier_cfg,
    )
    log_classification_report(logger, report)
    return report


def _save_run_outputs(
    report: ClassificationReport,
    train_cfg: Dict[str, Any],
    logger: logging.Logger,
) -> None:
    paths_cfg = train_cfg.get("paths", {}) or {}
    save_cfg = train_cfg.get("save", {}) or {}

    results_dir = paths_cfg.get("results_dir", "experiments/results")
    ensure_dir_exists(results_dir)
    metrics_json_path = os.path.join(results_dir, f"metrics_{report.family}.json")
    with open(metrics_json_path, "w", encoding="utf-8") as f:
        json.dump(report.to_dict(), f, indent=2)
    logger.info("Saved metrics JSON to %s", metrics_json_path)

    if not bool(save_cfg.get("save_models", False)):
        return

    models_dir = paths_cfg.get("models_dir", "experiments/models")
    ensure_dir_exists(models_dir)
    overwrite = bool(save_cfg.get("overwrite_existing", False))
    for fold in report.cv_result.folds:
        model_path = os.path.join(models_dir, f"model_{report.family}_fold{fold.fold_index}.joblib")
        if os.path.exists(model_path) and not overwrite:
            logger.info("Model file already exists and overwrite_existing is False: %s", model_path)
            continue
        joblib.dump(
            {"model": fold.model, "terms": report.selected_terms},
            model_path,
        )
        logger.info("Saved fold %d model to %s", fold.fold_index, model_path)


def run_spam_filtering(
    data_config_path: str = DEFAULT_DATA_CONFIG_PATH,
    train_config_path: str = DEFAULT_TRAIN_CONFIG_PATH,
    classifier_config_path: str = DEFAULT_CLASSIFIER_CONFIG_PATH,
    reuse_prepared: Optional[bool] = None,
    family: Optional[Union[str, ClassifierFamily]] = None,
    num_folds: Optional[int] = None,
    min_occurrences: Optional[int] = None,
) -> ClassificationReport:
    """
    End-to-end pipeline: load data, analyze, cross-validate and save results.

    Parameters
    ----------
    data_config_path : str
        Path to config/data.yaml.
    train_config_path : str
        Path to config/train.yaml.
    classifier_config_path : str
        Path to config/classifiers.yaml.
    reuse_prepared : Optional[bool]
        Load the prepared corpus CSV instead of parsing the raw emails.
    family, num_folds, min_occurrences
        Optional overrides of the configured values.

    Returns
    -------
    ClassificationReport
        Report of the cross-validated classifier.
    """
    train_cfg = load_train_config(train_config_path)
    classifier_cfg = load_classifier_config(classifier_config_path)

    seed_everything(int((train_cfg.get("general", {}) or {}).get("random_state", 42)))

    logger = get_logger(name="spam_filter", config=train_cfg, log_file_suffix="cv")

    logger.info("Data preparation ...")
    corpus = load_dataset(config_path=data_config_path, reuse_prepared=reuse_prepared)
    stop_words = load_configured_stop_words(data_config_path)
    logger.info("Data preparation finished: %d documents, %d stop words", len(corpus), len(stop_words))

    report = run_pipeline(
        corpus,
        train_cfg,
        classifier_cfg,
        stop_words=stop_words,
        family=family,
        num_folds=num_folds,
        min_occurrences=min_occurrences,
        logger=logger,
    )

    _save_run_outputs(report, train_cfg, logger)
    return report


# ---------------------------------------------------------------------------
# CLI entry point
# ---------------------------------------------------------------------------


def main() -> None:
    """
    Main entry point when running this module as a script.
    """
    _ = run_spam_filtering()


if __name__ == "__main__":
    main()
