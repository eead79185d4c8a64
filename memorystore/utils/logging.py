"""
Logging utilities for memorystore.

Module loggers are children of the ``memorystore`` package logger; only the
package logger carries handlers, configured once by ``setup_logger``.
"""

import logging
import sys
from typing import Optional


PACKAGE_LOGGER = "memorystore"

DEFAULT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DEFAULT_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

_configured: set = set()


def setup_logger(
    name: str = PACKAGE_LOGGER,
    level: str = "INFO",
    format_string: Optional[str] = None,
    log_file: Optional[str] = None,
) -> logging.Logger:
    """
    Set up and configure a logger.

    Calling it again replaces the handlers, so settings loaded after
    import can reconfigure the package logger.

    Args:
        name: Logger name
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        format_string: Custom format string
        log_file: Optional file path for logging

    Returns:
        Configured logger
    """
    logger = logging.getLogger(name)
    logger.setLevel(getattr(logging, level.upper()))

    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    formatter = logging.Formatter(
        format_string or DEFAULT_FORMAT,
        datefmt=DEFAULT_DATE_FORMAT,
    )

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    _configured.add(name)

    return logger


def get_logger(name: str = PACKAGE_LOGGER) -> logging.Logger:
    """
    Get a logger by name.

    The package logger is configured with defaults on first use;
    module loggers propagate to it.
    """
    if PACKAGE_LOGGER not in _configured:
        setup_logger(PACKAGE_LOGGER)
    return logging.getLogger(name)

