"""
Training pipelines.

This subpackage provides:
- the k-fold cross-validation engine
- the end-to-end analyze / classify pipeline used by scripts/run_spam_filter.py.
"""
