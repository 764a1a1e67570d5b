"""
Conventional Commits grammar.

See :mod:`commit_sage.conventional.grammar` for the validator shared by
the generator, the CLI and the public API.
"""

from .grammar import COMMIT_TYPES, is_conventional, leading_type  # noqa: F401
