"""
Configuration loading.

Reads ``.themesafe/config.json`` and applies environment overrides:

    config.json < THEMESAFE_* env vars

The result is validated into a frozen ProjectConfig. Nothing is cached
globally; callers hold on to the value they loaded and pass it along.
"""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Any

import pydantic

from themesafe.core.config.models import ProjectConfig

logger = logging.getLogger(__name__)

ENV_OVERRIDES = {
    "THEMESAFE_ACCESS_TOKEN": "access_token",
    "THEMESAFE_STORE": "store",
    "THEMESAFE_API_VERSION": "api_version",
}


class ConfigError(Exception):
    """Configuration exists but cannot be read or is invalid."""


class ConfigNotFoundError(ConfigError):
    """No configuration file at the expected path."""

    def __init__(self, path: Path) -> None:
        self.path = path
        super().__init__(f"No config found at {path}")


def apply_env_overrides(config_dict: dict[str, Any]) -> dict[str, Any]:
    """
    Apply environment variable overrides to a raw config dictionary.

    Supported env vars:
        THEMESAFE_ACCESS_TOKEN - overrides access_token
        THEMESAFE_STORE - overrides store
        THEMESAFE_API_VERSION - overrides api_version
    """
    result = config_dict.copy()
    for env_name, field in ENV_OVERRIDES.items():
        if value := os.environ.get(env_name):
            logger.debug("Config field %s overridden by %s", field, env_name)
            result[field] = value
    return result


def load_config(config_path: Path) -> ProjectConfig:
    """
    Load and validate the project configuration.

    Args:
        config_path: Path to config.json

    Returns:
        Validated ProjectConfig

    Raises:
        ConfigNotFoundError: If the file does not exist
        ConfigError: If the file is unreadable, not a JSON object, or fails validation
    """
    if not config_path.exists():
        raise ConfigNotFoundError(config_path)

    try:
        data = json.loads(config_path.read_text())
    except (json.JSONDecodeError, OSError) as e:
        raise ConfigError(f"Failed to parse config at {config_path}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigError(f"Config at {config_path} is not a JSON object")

    merged = apply_env_overrides(data)

    try:
        return ProjectConfig(**merged)
    except pydantic.ValidationError as e:
        raise ConfigError(f"Invalid config at {config_path}: {e}") from e


def save_config(config: ProjectConfig, config_path: Path) -> None:
    """
    Persist a configuration atomically.

    Used by the setup flow; the core never rewrites an existing config.
    """
    config_path.parent.mkdir(parents=True, exist_ok=True)

    temp_path = config_path.with_suffix(".tmp")
    try:
        temp_path.write_text(json.dumps(config.to_json_dict(), indent=2) + "\n")
        temp_path.chmod(0o600)
        temp_path.replace(config_path)
    except OSError:
        if temp_path.exists():
            temp_path.unlink()
        raise
