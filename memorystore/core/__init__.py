"""
Core components for memorystore.
"""

from .exceptions import (
    MemoryStoreError,
    ValidationError,
    DimensionMismatchError,
    StorageError,
    SerializationError,
)
from .record import MemoryRecordMetadata, MemoryRecord, MemoryEntry
from .collections import CollectionManager
from .records import RecordStore
from .search import SimilaritySearch
from .store import MemoryStore, VectorMemoryStore

__all__ = [
    # Records
    "MemoryRecordMetadata",
    "MemoryRecord",
    "MemoryEntry",
    # Components
    "CollectionManager",
    "RecordStore",
    "SimilaritySearch",
    # Store
    "MemoryStore",
    "VectorMemoryStore",
    # Exceptions
    "MemoryStoreError",
    "ValidationError",
    "DimensionMismatchError",
    "StorageError",
    "SerializationError",
]
