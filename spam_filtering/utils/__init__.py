"""
Shared utility functions.

This subpackage includes:
- YAML configuration loading
- seeding and reproducibility helpers
- directory management
- lightweight logging helpers used across the project.
"""
