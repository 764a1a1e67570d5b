"""
Configuration for commit_sage.

Provides the configuration dataclasses and a loader for the optional
JSON configuration file. See :mod:`commit_sage.config.loader` for
implementation details.
"""

from .loader import ConfigError, load_config  # noqa: F401
from .settings import AVAILABLE_MODELS, AIConfig, APIConfig, CommitConfig, Config, GitConfig  # noqa: F401
