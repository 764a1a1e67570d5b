"""
Structural check for Conventional Commits messages.

Only the header shape ``type[(scope)]: description`` and the type
vocabulary are verified here. Scope syntax, description casing and
length are left to the prompt as guidance for the model; callers that
need those guarantees must check them separately.
"""

from __future__ import annotations

from typing import Tuple


COMMIT_TYPES: Tuple[str, ...] = (
    "feat",
    "fix",
    "docs",
    "style",
    "refactor",
    "perf",
    "test",
    "build",
    "ci",
    "chore",
    "revert",
)

SEPARATOR = ": "


def is_conventional(message: str) -> bool:
    """Return True if ``message`` follows the Conventional Commits header grammar.

    Parameters
    ----------
    message : str
        Candidate commit message.

    Returns
    -------
    bool
        ``True`` when the text before the first ``": "`` is a known commit
        type, optionally followed by a parenthesised scope.

    Examples
    --------
    >>> is_conventional("feat: add x")
    True
    >>> is_conventional("fix(core): y")
    True
    >>> is_conventional("feat add x")
    False
    """
    parts = message.split(SEPARATOR, 1)
    if len(parts) != 2:
        return False
    type_part = parts[0]
    if "(" in type_part:
        type_part = type_part.split("(", 1)[0]
    return type_part in COMMIT_TYPES


def leading_type(message: str) -> str:
    """Return the type token of a message: text before ``:``, then before ``(``."""
    return message.split(":", 1)[0].split("(", 1)[0]
