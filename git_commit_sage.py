#!/usr/bin/env python
"""
Thin wrapper script to invoke the commit_sage CLI.

Running ``python git_commit_sage.py`` is equivalent to running the
``git-commit-sage`` console script installed via ``pyproject.toml``.
"""

from commit_sage.cli import main


if __name__ == "__main__":
    main(prog_name="git-commit-sage")
