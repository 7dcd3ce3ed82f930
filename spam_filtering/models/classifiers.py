"""
Classifier capability and the supported model families.

Cross-validation only needs two operations from a classifier:

- fit(X, y) -> model     train a fresh model and return it
- predict(model, X) -> y predict class ids (1 = spam, 0 = ham)

Two families implement this capability on top of scikit-learn:

- NaiveBayesBernoulli     BernoulliNB over the binary term-presence table
- LogisticRegressionIRLS  logistic regression fitted with a Newton solver
                          (the iteratively reweighted least squares scheme)
                          and a tiny ridge term

The family is chosen explicitly in config/classifiers.yaml; hyperparameters
are read from the same file so they can be tuned without modifying code.
"""

from __future__ import annotations

import functools
from enum import Enum
from typing import Any, Callable, Dict, Optional, Protocol, Union

import numpy as np
from sklearn.linear_model import LogisticRegression
from sklearn.naive_bayes import BernoulliNB

from spam_filtering.exceptions import ConfigurationError
from spam_filtering.utils.training_utils import load_yaml_config


DEFAULT_CLASSIFIER_CONFIG_PATH = "config/classifiers.yaml"


# ---------------------------------------------------------------------------
# Capability
# ---------------------------------------------------------------------------


class Classifier(Protocol):
    """Anything cross-validation can fit and predict with."""

    def fit(self, X: np.ndarray, y: np.ndarray) -> Any:
        ...

    def predict(self, model: Any, X: np.ndarray) -> np.ndarray:
        ...


ClassifierFactory = Callable[[], Classifier]


class ClassifierFamily(str, Enum):
    """Supported classifier families."""

    NAIVE_BAYES_BERNOULLI = "naive_bayes_bernoulli"
    LOGISTIC_REGRESSION_IRLS = "logistic_regression_irls"

    @classmethod
    def parse(cls, value: Union[str, "ClassifierFamily"]) -> "ClassifierFamily":
        """
        Resolve a family name from configuration.

        Raises
        ------
        ConfigurationError
            If the name is not one of the supported families.
        """
        if isinstance(value, cls):
            return value
        normalized = str(value).strip().lower()
        for family in cls:
            if family.value == normalized:
                return family
        supported = ", ".join(family.value for family in cls)
        raise ConfigurationError(
            f"Unsupported classifier family: {value!r}. Supported: {supported}"
        )


# ---------------------------------------------------------------------------
# scikit-learn backed implementations
# ---------------------------------------------------------------------------


class SklearnClassifier:
    """
    Base class adapting a scikit-learn estimator to the capability.

    Every call to fit builds a brand-new estimator, so a classifier
    object never carries a fitted model from one fold into the next.
    """

    family: Optional[ClassifierFamily] = None

    def build_estimator(self):
        raise NotImplementedError

    def fit(self, X: np.ndarray, y: np.ndarray):
        estimator = self.build_estimator()
        estimator.fit(X, y)
        return estimator

    def predict(self, model, X: np.ndarray) -> np.ndarray:
        return np.asarray(model.predict(X), dtype=int)


class NaiveBayesBernoulli(SklearnClassifier):
    """Bernoulli Naive Bayes with Laplace smoothing."""

    family = ClassifierFamily.NAIVE_BAYES_BERNOULLI

    def __init__(self, alpha: float = 1.0, fit_prior: bool = True):
        self.alpha = alpha
        self.fit_prior = fit_prior

    def __repr__(self) -> str:
        return f"NaiveBayesBernoulli(alpha={self.alpha}, fit_prior={self.fit_prior})"

    def build_estimator(self) -> BernoulliNB:
        # Features are already 0/1, binarize=None skips re-thresholding.
        return BernoulliNB(alpha=self.alpha, fit_prior=self.fit_prior, binarize=None)


def validate_regularization(regularization: float) -> None:
    """Raise ConfigurationError unless the ridge weight is positive."""
    if regularization <= 0:
        raise ConfigurationError(
            f"regularization must be positive, got {regularization}"
        )


class LogisticRegressionIRLS(SklearnClassifier):
    """
    Logistic regression solved with Newton iterations.

    regularization is the ridge weight added to the objective; it maps to
    scikit-learn's inverse regularization strength as C = 1 / regularization.
    """

    family = ClassifierFamily.LOGISTIC_REGRESSION_IRLS

    def __init__(
        self,
        max_iter: int = 100,
        regularization: float = 1e-6,
        fit_intercept: bool = True,
    ):
        validate_regularization(regularization)
        self.max_iter = max_iter
        self.regularization = regularization
        self.fit_intercept = fit_intercept

    def __repr__(self) -> str:
        return (
            f"LogisticRegressionIRLS(max_iter={self.max_iter}, "
            f"regularization={self.regularization}, fit_intercept={self.fit_intercept})"
        )

    def build_estimator(self) -> LogisticRegression:
        return LogisticRegression(
            solver="newton-cholesky",
            C=1.0 / self.regularization,
            max_iter=self.max_iter,
            fit_intercept=self.fit_intercept,
        )


# ---------------------------------------------------------------------------
# Config loading
# ---------------------------------------------------------------------------


def load_classifier_config(
    config_path: str = DEFAULT_CLASSIFIER_CONFIG_PATH,
) -> Dict[str, Any]:
    """
    Load and return the classifier configuration dictionary.

    Parameters
    ----------
    config_path : str
        Path to the classifier YAML configuration file.

    Returns
    -------
    Dict[str, Any]
        Parsed configuration with "general" and "classifiers" sections.
    """
    return load_yaml_config(config_path, required_sections=("general", "classifiers"))


# ---------------------------------------------------------------------------
# Public factory
# ---------------------------------------------------------------------------


def build_classifier_factory(
    family: Union[str, ClassifierFamily],
    cfg: Optional[Dict[str, Any]] = None,
) -> ClassifierFactory:
    """
    Return a zero-argument callable producing fresh classifiers.

    Parameters
    ----------
    family : Union[str, ClassifierFamily]
        Classifier family name, e.g. "naive_bayes_bernoulli".
    cfg : Optional[Dict[str, Any]]
        Classifier configuration (as loaded by load_classifier_config).
        Missing sections fall back to the defaults of each family.

    Returns
    -------
    ClassifierFactory
        Callable creating one independent classifier per call.

    Raises
    ------
    ConfigurationError
        If the family is not supported or a hyperparameter is invalid.
    """
    resolved = ClassifierFamily.parse(family)
    params = ((cfg or {}).get("classifiers", {}) or {}).get(resolved.value, {}) or {}

    if resolved is ClassifierFamily.NAIVE_BAYES_BERNOULLI:
        return functools.partial(
            NaiveBayesBernoulli,
            alpha=float(params.get("alpha", 1.0)),
            fit_prior=bool(params.get("fit_prior", True)),
        )

    regularization = float(params.get("regularization", 1e-6))
    validate_regularization(regularization)
    return functools.partial(
        LogisticRegressionIRLS,
        max_iter=int(params.get("max_iter", 100)),
        regularization=regularization,
        fit_intercept=bool(params.get("fit_intercept", True)),
    )


def configured_family(cfg: Dict[str, Any]) -> ClassifierFamily:
    """Return the family selected under general.family (default: Naive Bayes)."""
    general_cfg = cfg.get("general", {}) or {}
    return ClassifierFamily.parse(
        general_cfg.get("family", ClassifierFamily.NAIVE_BAYES_BERNOULLI.value)
    )
