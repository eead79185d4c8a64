"""Memory store factory.

Centralizes creation of engine-backed stores from settings so callers
don't depend on engine constructors.
"""

from typing import Optional

from config import Settings, load_config

from .core.store import VectorMemoryStore
from .engine.base import BaseEngine
from .engine.postgres import PgVectorEngine
from .engine.sqlite import SQLiteEngine
from .utils.logging import get_logger, setup_logger


logger = get_logger(__name__)


def create_engine(settings: Settings) -> BaseEngine:
    """Create the backing engine named by ``settings.engine``."""
    if settings.engine == "sqlite":
        return SQLiteEngine(
            settings.vector_dimension,
            database=settings.sqlite.database,
            timeout=settings.sqlite.timeout,
        )

    if settings.engine == "postgres":
        if not settings.postgres.dsn:
            raise ValueError("postgres engine requires 'postgres.dsn' in config")

        return PgVectorEngine(
            settings.vector_dimension,
            dsn=settings.postgres.dsn,
            command_timeout=settings.postgres.command_timeout,
            create_extension=settings.postgres.create_extension,
        )

    raise ValueError(f"Unsupported engine: {settings.engine!r}")


def create_memory_store(
    settings: Optional[Settings] = None,
    config_path: Optional[str] = None,
) -> VectorMemoryStore:
    """
    Create a memory store that owns its engine connection.

    Args:
        settings: Settings to use; loaded from ``config_path`` (or the
            default config location) when omitted
        config_path: YAML config file path

    Returns:
        A ready VectorMemoryStore
    """
    if settings is None:
        settings = load_config(config_path)

    setup_logger(level=settings.log_level, log_file=settings.log_file)

    store = VectorMemoryStore(create_engine(settings))
    logger.info(
        f"Created memory store (engine={settings.engine}, "
        f"dim={settings.vector_dimension})"
    )
    return store
