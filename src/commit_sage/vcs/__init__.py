"""
Version control integration.

The :class:`GitClient` supplies the diff for message generation and
creates the commit once a message has been accepted.
"""

from .git_client import GitClient, GitError, NoChangesError  # noqa: F401
