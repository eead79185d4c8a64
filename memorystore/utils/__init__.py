"""
Utility functions for memorystore.
"""

from .validation import (
    validate_collection_name,
    validate_dimension,
    as_embedding,
    ValidationError,
)
from .logging import setup_logger, get_logger

__all__ = [
    "validate_collection_name",
    "validate_dimension",
    "as_embedding",
    "ValidationError",
    "setup_logger",
    "get_logger",
]
