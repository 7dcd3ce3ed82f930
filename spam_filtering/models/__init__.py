"""
Classifier definitions for spam detection.

This subpackage contains the classifier capability used by
cross-validation and its two supported families:
- Bernoulli Naive Bayes
- logistic regression fitted with a Newton (IRLS-style) solver.
"""
