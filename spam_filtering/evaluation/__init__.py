"""
Evaluation and analysis utilities.

This subpackage offers:
- confusion matrix construction and accuracy / precision / recall / F1
- per-class term proportion comparisons
- plotting functions for class counts and top terms.
"""
