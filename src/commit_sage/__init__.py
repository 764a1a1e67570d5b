"""
Top-level package for commit_sage.

Exposes :func:`generate` for producing Conventional Commits messages
from a diff and :func:`is_conventional` for re-verifying a message.
The ``git-commit-sage`` command lives in :mod:`commit_sage.cli`.
"""

__all__ = ["__version__", "generate", "is_conventional"]

__version__ = "0.2.7"

from commit_sage.api import generate  # noqa: E402
from commit_sage.conventional.grammar import is_conventional  # noqa: E402
