"""
Top-level package for the email-subject spam filtering project.

This package contains modules for:
- email ingestion, corpus containers and cross-validation folds
- subject tokenization, vocabulary construction and feature selection
- classifier definitions (Bernoulli Naive Bayes, logistic regression)
- the cross-validated training pipeline
- evaluation utilities (confusion matrix, metrics, term analysis, plots)
- shared helper functions

The pipeline reads labeled .eml files, turns their subjects into a binary
document-term table and reports classifier accuracy via k-fold
cross-validation.
"""

__version__ = "0.1.0"
