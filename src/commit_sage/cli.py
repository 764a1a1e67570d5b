"""
Command line interface for commit_sage.

This module defines the ``main`` function used as the entry point of
the ``git-commit-sage`` command. It loads configuration, reads the
pending diff from Git, asks the model for a Conventional Commits
message and optionally commits with it. Exit codes are defined below.
"""

from __future__ import annotations

import logging
import os
import time
from dataclasses import replace
from pathlib import Path
from typing import Optional

import click
from dotenv import find_dotenv, load_dotenv

from commit_sage import __version__
from commit_sage.api import build_generator
from commit_sage.config.loader import ConfigError, load_config
from commit_sage.config.settings import AVAILABLE_MODELS, Config
from commit_sage.conventional.grammar import is_conventional
from commit_sage.llm.errors import LLMError
from commit_sage.vcs.git_client import GitClient, GitError, NoChangesError

logger = logging.getLogger(__name__)
if not logger.handlers:
    logger.addHandler(logging.NullHandler())


# ---------------------------------------------------------------------------
# Exit codes
# ---------------------------------------------------------------------------
EXIT_SUCCESS = 0
EXIT_GENERIC_ERROR = 1
EXIT_NO_REPO = 3
EXIT_NO_CHANGES = 4
EXIT_CONFIG_ERROR = 5
EXIT_VCS_FAILURE = 6
EXIT_LLM_FAILURE = 7
EXIT_DECLINED = 8

TOTAL_STEPS = 5

API_KEY_ENV = "TOGETHER_API_KEY"


# ---------------------------------------------------------------------------
# Progress and status display utilities
# ---------------------------------------------------------------------------

class ProgressIndicator:
    """Print a message when a step starts and its duration when it ends."""

    def __init__(self, message: str) -> None:
        self.message = message
        self.start_time = 0.0

    def __enter__(self) -> "ProgressIndicator":
        self.start_time = time.time()
        click.echo(f"→ {self.message}...")
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> bool:
        if exc_type is None:
            elapsed = time.time() - self.start_time
            click.echo(f"  ✓ Done ({elapsed:.1f}s)")
        return False


def print_step(step_num: int, message: str) -> None:
    click.echo(f"\n{'=' * 60}")
    click.echo(f"Step {step_num}/{TOTAL_STEPS}: {message}")
    click.echo(f"{'=' * 60}")


def print_info(message: str, indent: int = 0) -> None:
    click.echo(f"{'  ' * indent}ℹ {message}")


def print_success(message: str, indent: int = 0) -> None:
    click.echo(f"{'  ' * indent}✓ {message}")


def print_warning(message: str, indent: int = 0) -> None:
    click.echo(f"{'  ' * indent}⚠ {message}")


def print_error(message: str, indent: int = 0) -> None:
    click.echo(f"{'  ' * indent}✗ {message}", err=True)


def print_message_box(message: str) -> None:
    """Show the proposed commit message in a frame."""
    width = max(56, max((len(line) for line in message.splitlines()), default=0) + 2)
    click.echo("   ┌" + "─" * width + "┐")
    for line in message.splitlines():
        click.echo(f"   │ {line.ljust(width - 2)} │")
    click.echo("   └" + "─" * width + "┘")


def print_models() -> None:
    click.echo("Available models:")
    for model, description in AVAILABLE_MODELS:
        click.echo(f"  {model} - {description}")


# ---------------------------------------------------------------------------
# Core functionality
# ---------------------------------------------------------------------------

def apply_overrides(
    config: Config,
    path: Optional[Path],
    model: Optional[str],
    temperature: Optional[float],
    max_tokens: Optional[int],
    untracked: bool,
    show_diff: bool,
    auto_commit: bool,
    no_verify: bool,
    yes: bool,
) -> Config:
    """Return a copy of ``config`` with command line options applied.

    Options left at their defaults keep the configured values; flags can
    only switch behaviour on (or, for ``--no-verify`` and ``--yes``, off).
    """
    ai = replace(
        config.ai,
        model=model or config.ai.model,
        temperature=config.ai.temperature if temperature is None else temperature,
        max_tokens=config.ai.max_tokens if max_tokens is None else max_tokens,
    )
    git = replace(
        config.git,
        repo_path=str(path) if path is not None else config.git.repo_path,
        include_untracked=config.git.include_untracked or untracked,
        show_diff=config.git.show_diff or show_diff,
    )
    commit = replace(
        config.commit,
        auto_commit=config.commit.auto_commit or auto_commit,
        verify_format=config.commit.verify_format and not no_verify,
        require_confirmation=config.commit.require_confirmation and not yes,
    )
    return replace(config, ai=ai, git=git, commit=commit)


def load_environment() -> None:
    """Load the nearest ``.env`` file above the working directory.

    Variables already set in the environment win over the file.
    """
    dotenv_path = find_dotenv(usecwd=True)
    if dotenv_path:
        load_dotenv(dotenv_path, override=False)
        logger.debug("Loaded environment from %s", dotenv_path)


def subject_too_long(message: str, max_length: int) -> bool:
    lines = message.splitlines()
    return bool(lines) and len(lines[0]) > max_length


@click.command()
@click.option("--path", "-p", type=click.Path(exists=True, file_okay=False, path_type=Path), help="Path to the git repository (defaults to current directory).")
@click.option("--api-key", "-k", envvar=API_KEY_ENV, help="Together.ai API key (or set TOGETHER_API_KEY, also read from .env).")
@click.option("--model", "-m", help="AI model to use.")
@click.option("--temperature", "-t", type=click.FloatRange(0.0, 1.0), default=None, help="Temperature for model output (0.0 to 1.0).")
@click.option("--max-tokens", type=click.IntRange(min=1), default=None, help="Maximum tokens in response.")
@click.option("--untracked", "-u", is_flag=True, help="Include untracked files in the diff.")
@click.option("--show-diff", "-s", is_flag=True, help="Show the diff before generating the commit message.")
@click.option("--auto-commit", "-a", is_flag=True, help="Commit with the generated message.")
@click.option("--no-verify", is_flag=True, help="Skip commit message format verification.")
@click.option("--yes", "-y", is_flag=True, help="Skip user confirmation.")
@click.option("--config", "-f", "config_path", type=click.Path(dir_okay=False, path_type=Path), help="Path to a custom configuration file.")
@click.option("--list-models", "-l", is_flag=True, help="List available models and exit.")
@click.option("--debug", "-d", is_flag=True, help="Enable debug logging.")
@click.version_option(version=__version__, prog_name="git-commit-sage")
def main(
    path: Optional[Path],
    api_key: Optional[str],
    model: Optional[str],
    temperature: Optional[float],
    max_tokens: Optional[int],
    untracked: bool,
    show_diff: bool,
    auto_commit: bool,
    no_verify: bool,
    yes: bool,
    config_path: Optional[Path],
    list_models: bool,
    debug: bool,
) -> None:
    """Generate a Conventional Commits message for your changes using AI."""
    if list_models:
        print_models()
        raise click.exceptions.Exit(EXIT_SUCCESS)

    # force=True so repeated invocations (tests) reconfigure handlers.
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.INFO,
        format="%(levelname)s: %(message)s",
        force=True,
    )
    load_environment()
    api_key = api_key or os.environ.get(API_KEY_ENV)

    ctx = click.get_current_context(silent=True)

    try:
        # Step 1: Load configuration
        print_step(1, "Loading Configuration")
        try:
            config = load_config(config_path)
        except ConfigError as exc:
            print_error(f"Configuration error: {exc}")
            raise click.exceptions.Exit(EXIT_CONFIG_ERROR)
        config = apply_overrides(
            config, path, model, temperature, max_tokens, untracked,
            show_diff, auto_commit, no_verify, yes,
        )
        print_success("Configuration loaded")
        print_info(f"Model: {config.ai.model}", indent=1)

        # Step 2: Detect repository
        print_step(2, "Detecting Repository")
        repo_root = GitClient.find_repo_root(Path(config.git.repo_path))
        if repo_root is None:
            print_error(f"No Git repository found at {config.git.repo_path} or its parents.")
            raise click.exceptions.Exit(EXIT_NO_REPO)
        logger.info("Opening git repository at %s", repo_root)
        client = GitClient(repo_root)
        print_success(f"Found Git repository at: {repo_root}")

        # Step 3: Read changes
        print_step(3, "Analyzing Changes")
        try:
            if not client.has_changes(config.git.include_untracked):
                print_warning("No changes to commit!")
                raise click.exceptions.Exit(EXIT_NO_CHANGES)
            if not api_key:
                print_error(
                    "API key not provided. Set TOGETHER_API_KEY environment variable or use --api-key"
                )
                raise click.exceptions.Exit(EXIT_CONFIG_ERROR)
            with ProgressIndicator("Reading diff"):
                diff = client.get_diff(config.git.include_untracked)
        except NoChangesError as exc:
            print_warning(str(exc))
            raise click.exceptions.Exit(EXIT_NO_CHANGES)
        except GitError as exc:
            print_error(f"Git error: {exc}")
            raise click.exceptions.Exit(EXIT_VCS_FAILURE)
        print_success(f"Read diff (~{len(diff.splitlines())} lines)")
        if config.git.show_diff:
            click.echo(f"\nChanges to be committed:\n{diff}")

        # Step 4: Generate commit message
        print_step(4, "Generating Commit Message")
        try:
            with ProgressIndicator(f"Asking {config.ai.model}"):
                generator = build_generator(config, api_key)
                message = generator.generate(diff)
        except LLMError as exc:
            print_error(f"Failed to generate commit message: {exc}")
            raise click.exceptions.Exit(EXIT_LLM_FAILURE)

        if config.commit.verify_format and not is_conventional(message):
            print_error("Generated message does not follow conventional commit format")
            print_info(message, indent=1)
            raise click.exceptions.Exit(EXIT_LLM_FAILURE)
        if subject_too_long(message, config.commit.max_length):
            print_warning(f"Subject line is longer than {config.commit.max_length} characters")

        click.echo("\nSuggested commit message:")
        print_message_box(message)

        # Step 5: Commit
        print_step(5, "Review and Commit")
        if not config.commit.auto_commit:
            print_info("Auto-commit disabled; copy the message above to commit manually.")
            raise click.exceptions.Exit(EXIT_SUCCESS)
        if config.commit.require_confirmation:
            if not click.confirm("Do you want to commit with this message?", default=False):
                print_warning("Commit aborted.")
                raise click.exceptions.Exit(EXIT_DECLINED)
        try:
            with ProgressIndicator("Committing changes"):
                client.commit(message)
        except GitError as exc:
            print_error(f"Failed to commit changes: {exc}")
            raise click.exceptions.Exit(EXIT_VCS_FAILURE)
        print_success("Changes committed successfully!")
        raise click.exceptions.Exit(EXIT_SUCCESS)

    except click.exceptions.Exit:
        raise
    except Exception as exc:
        logging.exception("Unhandled error: %s", exc)
        print_error(f"Unexpected error: {exc}")
        ctx.exit(EXIT_GENERIC_ERROR)
