"""
Git client implementation for commit_sage.

This module supplies the diff that is sent to the model and performs
the final commit. It shells out to the ``git`` executable; every call
goes through :meth:`GitClient._run` so that unit tests can mock it.
"""

from __future__ import annotations

import logging
import subprocess
from pathlib import Path
from typing import List, Optional


logger = logging.getLogger(__name__)
if not logger.handlers:
    logger.addHandler(logging.NullHandler())


class GitError(Exception):
    """Raised when a Git command fails."""

    pass


class NoChangesError(GitError):
    """Raised when there is nothing to describe or commit."""

    def __init__(self) -> None:
        super().__init__(
            "No changes to commit. Make sure you have staged your changes with 'git add'"
        )


class GitClient:
    """Client for reading diffs from and committing to a Git repository."""

    def __init__(self, repo_root: Path) -> None:
        self.repo_root = repo_root

    # ------------------------------------------------------------------
    # Static helpers
    # ------------------------------------------------------------------
    @staticmethod
    def find_repo_root(start: Path) -> Optional[Path]:
        """Find the root of the Git repository starting from ``start``.

        Walk upwards until a ``.git`` entry is found or the filesystem
        root is reached.
        """
        current = start.resolve()
        while True:
            if (current / ".git").exists():
                return current
            if current.parent == current:
                return None
            current = current.parent

    # ------------------------------------------------------------------
    # Command execution
    # ------------------------------------------------------------------
    def _run(self, args: List[str], check: bool = True) -> subprocess.CompletedProcess:
        """Run a Git command in the repository root.

        Raises
        ------
        GitError
            If the command cannot be started, or exits with a non-zero
            status when ``check`` is True.
        """
        full_cmd = ["git"] + args
        logger.debug("Executing Git command: %s", " ".join(full_cmd))
        try:
            result = subprocess.run(
                full_cmd,
                cwd=self.repo_root,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                text=True,
                encoding="utf-8",
                errors="replace",
            )
        except OSError as exc:
            logger.error("Failed to execute git: %s", exc)
            raise GitError(f"Failed to execute git: {exc}") from exc

        if check and result.returncode != 0:
            logger.error(
                "Git command failed: %s\nSTDOUT: %s\nSTDERR: %s",
                " ".join(full_cmd),
                result.stdout,
                result.stderr,
            )
            raise GitError(result.stderr.strip() or result.stdout.strip())
        return result

    # ------------------------------------------------------------------
    # Status and diff
    # ------------------------------------------------------------------
    def has_changes(self, include_untracked: bool = True) -> bool:
        """Return True if the working tree has anything to commit."""
        result = self._run(["status", "--porcelain"], check=True)
        for line in result.stdout.splitlines():
            if not line.strip():
                continue
            if line.startswith("??") and not include_untracked:
                continue
            return True
        return False

    def is_initial_commit(self) -> bool:
        """Return True if the repository has no commits yet."""
        result = self._run(["rev-parse", "--verify", "--quiet", "HEAD"], check=False)
        return result.returncode != 0

    def untracked_files(self) -> List[str]:
        result = self._run(["ls-files", "--others", "--exclude-standard"], check=True)
        return [line for line in result.stdout.splitlines() if line.strip()]

    def _untracked_diff(self, path: str) -> str:
        # --no-index exits with 1 when the files differ, which is always the case here.
        result = self._run(["diff", "--no-index", "--", "/dev/null", path], check=False)
        if result.returncode not in (0, 1):
            logger.error("Failed to diff untracked file %s: %s", path, result.stderr)
            raise GitError(result.stderr.strip() or f"Cannot diff untracked file {path}")
        return result.stdout

    def get_diff(self, include_untracked: bool = True) -> str:
        """Return the unified diff describing the pending changes.

        In a repository without commits every file is staged and the
        staged diff is returned. Otherwise the working tree, staged and
        unstaged edits alike, is compared against ``HEAD``; untracked
        files are appended as new-file diffs when ``include_untracked``
        is True.

        Raises
        ------
        NoChangesError
            If the resulting diff is empty.
        GitError
            If a Git command fails.
        """
        if self.is_initial_commit():
            self.stage_all()
            diff = self._run(["diff", "--cached"], check=True).stdout
        else:
            parts = [self._run(["diff", "HEAD"], check=True).stdout]
            if include_untracked:
                parts.extend(self._untracked_diff(path) for path in self.untracked_files())
            diff = "".join(parts)

        if not diff.strip():
            raise NoChangesError()
        return diff

    # ------------------------------------------------------------------
    # Staging and committing
    # ------------------------------------------------------------------
    def stage_all(self) -> None:
        """Stage every change in the working tree, including deletions."""
        self._run(["add", "--all"], check=True)

    def commit(self, message: str) -> None:
        """Stage all changes and create a commit with ``message``."""
        self.stage_all()
        self._run(["commit", "-m", message], check=True)
