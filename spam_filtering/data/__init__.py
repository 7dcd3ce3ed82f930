"""
Data containers and dataset utilities.

This subpackage provides:
- the Label / Document / Corpus types shared by the whole pipeline
- parsing of raw .eml files joined with their label file
- CSV persistence of prepared corpora, feature tables and term frequencies
- deterministic k-fold partitioning for cross-validation.
"""
