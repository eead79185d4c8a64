"""
Custom exceptions for memorystore.

Absence of a collection or key is never an exception: reads return
``None``/``False``/empty iterators and deletes are no-ops.
"""

from typing import Optional


class MemoryStoreError(Exception):
    """Base exception for memorystore."""
    pass


class ValidationError(MemoryStoreError, ValueError):
    """Input validation error, raised before any engine call."""
    pass


class DimensionMismatchError(MemoryStoreError):
    """The backing engine rejected an embedding of the wrong length."""

    def __init__(
        self,
        message: str,
        expected: Optional[int] = None,
        actual: Optional[int] = None,
    ):
        super().__init__(message)
        self.expected = expected
        self.actual = actual


class StorageError(MemoryStoreError):
    """Any other failure reported by the backing engine."""
    pass


class SerializationError(StorageError):
    """Error during serialization/deserialization."""
    pass
