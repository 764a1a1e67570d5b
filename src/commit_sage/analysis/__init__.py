"""
Diff analysis for commit_sage.

This package turns a raw unified diff into a :class:`DiffClassification`
carrying a change category and a suggested commit type. See
:mod:`commit_sage.analysis.diff_classifier` for details.
"""

from .diff_classifier import ChangeCategory, DiffClassification, classify_diff  # noqa: F401
