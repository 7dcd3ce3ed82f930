"""
Text feature extraction utilities.

This subpackage includes:
- subject tokenization into lowercased word terms
- construction of the binary document-term presence table and the
  per-class term statistics
- document-frequency based feature selection.
"""
