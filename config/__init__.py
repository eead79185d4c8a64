"""
Configuration module for memorystore.

This module provides configuration management including
loading settings from YAML files and environment variables.

Example:
    >>> from config import Settings, load_config
    >>>
    >>> # Load default config
    >>> settings = load_config()
    >>>
    >>> # Access settings
    >>> print(settings.vector_dimension)
    >>> print(settings.engine)
"""

from .settings import (
    Settings,
    SQLiteConfig,
    PostgresConfig,
    load_config,
    get_default_config_path,
)

__all__ = [
    "Settings",
    "SQLiteConfig",
    "PostgresConfig",
    "load_config",
    "get_default_config_path",
]
