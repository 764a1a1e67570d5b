"""
Configuration loader for commit_sage.

The tool reads an optional JSON configuration file. By default it is
``~/.commit_sage/config.json``; a different file can be passed with
``--config``. The file is organised in sections matching
:class:`commit_sage.config.settings.Config`::

    {
      "ai": {"model": "...", "temperature": 0.3, "max_tokens": 100},
      "api": {"max_retries": 3, "initial_retry_delay_ms": 1000},
      "git": {"include_untracked": true},
      "commit": {"auto_commit": false}
    }

Missing sections and keys keep their defaults. A file that is
malformed, names an unknown key, or holds a value of the wrong type
raises :class:`ConfigError`.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

from commit_sage.config.settings import AIConfig, APIConfig, CommitConfig, Config, GitConfig


logger = logging.getLogger(__name__)
if not logger.handlers:
    logger.addHandler(logging.NullHandler())


CONFIG_FILENAME = "config.json"

_NUMBER = (int, float)

# section -> (dataclass, {key: accepted types})
_SCHEMA: Dict[str, Tuple[type, Dict[str, Any]]] = {
    "ai": (
        AIConfig,
        {
            "model": str,
            "temperature": _NUMBER,
            "max_tokens": int,
            "stop_sequences": list,
            "request_timeout": _NUMBER,
            "system_prompt": str,
            "user_prompt_template": str,
        },
    ),
    "api": (
        APIConfig,
        {
            "url": str,
            "max_retries": int,
            "initial_retry_delay_ms": int,
        },
    ),
    "git": (
        GitConfig,
        {
            "repo_path": str,
            "include_untracked": bool,
            "show_diff": bool,
        },
    ),
    "commit": (
        CommitConfig,
        {
            "max_length": int,
            "auto_commit": bool,
            "verify_format": bool,
            "require_confirmation": bool,
        },
    ),
}


class ConfigError(Exception):
    """Raised when the configuration file is missing or invalid."""

    pass


def _get_config_directory() -> Path:
    """Return the per-user configuration directory, ``~/.commit_sage``."""
    return Path.home() / ".commit_sage"


def _check_type(section: str, key: str, value: Any, expected: Any) -> None:
    # bool is a subclass of int; numeric fields must not accept true/false.
    if isinstance(value, bool) and expected is not bool:
        raise ConfigError(f"'{section}.{key}' must not be a boolean")
    if not isinstance(value, expected):
        names = (
            " or ".join(t.__name__ for t in expected)
            if isinstance(expected, tuple)
            else expected.__name__
        )
        raise ConfigError(f"'{section}.{key}' must be of type {names}")


def _build_section(section: str, values: Any) -> Any:
    cls, schema = _SCHEMA[section]
    if not isinstance(values, dict):
        raise ConfigError(f"Section '{section}' must be an object")
    unknown = sorted(set(values) - set(schema))
    if unknown:
        raise ConfigError(f"Unknown keys in section '{section}': {', '.join(unknown)}")
    for key, value in values.items():
        _check_type(section, key, value, schema[key])
    return cls(**values)


def _validate(config: Config) -> None:
    if not 0.0 <= config.ai.temperature <= 1.0:
        raise ConfigError("'ai.temperature' must be between 0.0 and 1.0")
    if config.ai.max_tokens <= 0:
        raise ConfigError("'ai.max_tokens' must be positive")
    if not all(isinstance(stop, str) for stop in config.ai.stop_sequences):
        raise ConfigError("'ai.stop_sequences' must be a list of strings")
    if config.ai.request_timeout <= 0:
        raise ConfigError("'ai.request_timeout' must be positive")
    if not config.ai.system_prompt.strip():
        raise ConfigError("'ai.system_prompt' must not be empty")
    if not config.ai.user_prompt_template.strip():
        raise ConfigError("'ai.user_prompt_template' must not be empty")
    if config.api.max_retries <= 0:
        raise ConfigError("'api.max_retries' must be positive")
    if config.api.initial_retry_delay_ms < 0:
        raise ConfigError("'api.initial_retry_delay_ms' must not be negative")


def parse_config(data: Any) -> Config:
    """Build a :class:`Config` from decoded JSON data.

    Raises
    ------
    ConfigError
        If the data has the wrong shape, unknown keys, or invalid values.
    """
    if not isinstance(data, dict):
        raise ConfigError("Configuration root must be an object")
    unknown = sorted(set(data) - set(_SCHEMA))
    if unknown:
        raise ConfigError(f"Unknown configuration sections: {', '.join(unknown)}")
    sections = {name: _build_section(name, values) for name, values in data.items()}
    config = Config(**sections)
    _validate(config)
    return config


def load_config(path: Optional[Path] = None) -> Config:
    """Load the configuration and return it.

    Args:
        path: Explicit configuration file. When omitted the per-user file
              ``~/.commit_sage/config.json`` is used if it exists, and the
              defaults are returned otherwise.

    Returns:
        The validated :class:`Config`.

    Raises:
        ConfigError: If an explicit file is missing, or any file is
                     malformed or invalid.
    """
    if path is None:
        config_path = _get_config_directory() / CONFIG_FILENAME
        if not config_path.exists():
            logger.debug("No configuration file at %s; using defaults", config_path)
            return Config()
    else:
        config_path = Path(path)
        if not config_path.exists():
            logger.error("Configuration file '%s' does not exist", config_path)
            raise ConfigError(f"Missing configuration file: {config_path}")

    try:
        content = config_path.read_text(encoding="utf-8")
        data = json.loads(content)
    except (OSError, UnicodeDecodeError, json.JSONDecodeError) as exc:
        logger.error("Failed to read or parse configuration file: %s", exc)
        raise ConfigError(f"Invalid JSON in {config_path.name}: {exc}") from exc

    config = parse_config(data)
    logger.debug("Loaded configuration from: %s", config_path)
    logger.debug("Configuration data: %s", data)
    return config
