"""
Configuration model and loading.

This module provides the frozen ProjectConfig record and the functions
that read it from ``.themesafe/config.json`` with env overrides.
"""

from .env import load_layered_env
from .loader import (
    ConfigError,
    ConfigNotFoundError,
    apply_env_overrides,
    load_config,
    save_config,
)
from .models import ProjectConfig

__all__ = [
    # Models
    "ProjectConfig",
    # Errors
    "ConfigError",
    "ConfigNotFoundError",
    # Loader functions
    "apply_env_overrides",
    "load_config",
    "load_layered_env",
    "save_config",
]
