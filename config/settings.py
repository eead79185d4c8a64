"""
Configuration management for memorystore.

Provides dataclasses for configuration and utilities
for loading settings from YAML files and environment variables.
"""

import os
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Literal, Optional

import yaml


@dataclass
class SQLiteConfig:
    """SQLite engine configuration."""
    database: str = ":memory:"
    timeout: float = 5.0


@dataclass
class PostgresConfig:
    """PostgreSQL (pgvector) engine configuration."""
    dsn: Optional[str] = None
    command_timeout: float = 60
    create_extension: bool = True


@dataclass
class Settings:
    """
    Main settings container for memorystore.

    Attributes:
        vector_dimension: Embedding length shared by every collection
        engine: Backing engine (sqlite, postgres)
        sqlite: SQLite engine settings
        postgres: PostgreSQL engine settings
        log_level: Logging level
        log_file: Optional log file path
    """
    vector_dimension: int = 1536
    engine: Literal["sqlite", "postgres"] = "sqlite"

    sqlite: SQLiteConfig = field(default_factory=SQLiteConfig)
    postgres: PostgresConfig = field(default_factory=PostgresConfig)

    log_level: str = "INFO"
    log_file: Optional[str] = None

    @classmethod
    def from_dict(cls, data: dict) -> "Settings":
        """Create Settings from dictionary."""
        data = dict(data)
        sqlite_data = data.pop("sqlite", None) or {}
        postgres_data = data.pop("postgres", None) or {}

        return cls(
            sqlite=SQLiteConfig(**sqlite_data),
            postgres=PostgresConfig(**postgres_data),
            **data
        )

    def to_dict(self) -> dict:
        """Convert Settings to dictionary."""
        return asdict(self)

    def apply_env(self, environ: Optional[dict] = None) -> "Settings":
        """
        Override fields from ``MEMORYSTORE_*`` environment variables.

        Returns:
            self, for chaining
        """
        env = os.environ if environ is None else environ

        if "MEMORYSTORE_VECTOR_DIMENSION" in env:
            self.vector_dimension = int(env["MEMORYSTORE_VECTOR_DIMENSION"])
        if "MEMORYSTORE_ENGINE" in env:
            self.engine = env["MEMORYSTORE_ENGINE"]
        if "MEMORYSTORE_SQLITE_DATABASE" in env:
            self.sqlite.database = env["MEMORYSTORE_SQLITE_DATABASE"]
        if "MEMORYSTORE_POSTGRES_DSN" in env:
            self.postgres.dsn = env["MEMORYSTORE_POSTGRES_DSN"]
        if "MEMORYSTORE_LOG_LEVEL" in env:
            self.log_level = env["MEMORYSTORE_LOG_LEVEL"]

        return self


def get_default_config_path() -> Path:
    """Get path to default configuration file."""
    env_config = os.environ.get("MEMORYSTORE_CONFIG")
    if env_config:
        return Path(env_config)

    local_config = Path("./config/default_config.yaml")
    if local_config.exists():
        return local_config

    return Path(__file__).parent / "default_config.yaml"


def load_config(config_path: Optional[str] = None, use_env: bool = True) -> Settings:
    """
    Load configuration from YAML file.

    Args:
        config_path: Path to config file. If None, uses default.
        use_env: Apply ``MEMORYSTORE_*`` environment overrides

    Returns:
        Settings object with loaded configuration

    Example:
        >>> settings = load_config()
        >>> settings = load_config("./my_config.yaml")
    """
    if config_path is None:
        path = get_default_config_path()
    else:
        path = Path(config_path)

    settings = Settings()

    if path.exists():
        with open(path, "r") as f:
            data = yaml.safe_load(f)

        if data:
            settings = Settings.from_dict(data)

    if use_env:
        settings.apply_env()

    return settings
