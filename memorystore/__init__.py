"""
memorystore - collection-scoped records with embeddings and
cosine-similarity retrieval.

Example:
    >>> import asyncio
    >>> from memorystore import VectorMemoryStore, MemoryRecord
    >>>
    >>> async def main():
    ...     async with VectorMemoryStore.sqlite(vector_dimension=3) as store:
    ...         await store.create_collection("docs")
    ...         await store.upsert("docs", MemoryRecord.local_record(
    ...             id="doc1", text="hello", description="greeting",
    ...             embedding=[1.0, 2.0, 3.0]))
    ...         async for record, score in store.get_nearest_matches(
    ...                 "docs", [1.0, 1.0, 1.0], limit=5):
    ...             print(record.key, score)
    >>>
    >>> asyncio.run(main())
"""

from .core import (
    # Store
    MemoryStore,
    VectorMemoryStore,
    # Records
    MemoryRecord,
    MemoryRecordMetadata,
    MemoryEntry,
    # Exceptions
    MemoryStoreError,
    ValidationError,
    DimensionMismatchError,
    StorageError,
    SerializationError,
)

from .engine import (
    BaseEngine,
    SQLiteEngine,
    PgVectorEngine,
)

from .distance import cosine_similarity

from .factory import create_memory_store

__version__ = "0.1.0"
__author__ = "memorystore Team"

__all__ = [
    # Store
    "MemoryStore",
    "VectorMemoryStore",
    "create_memory_store",
    # Records
    "MemoryRecord",
    "MemoryRecordMetadata",
    "MemoryEntry",
    # Engines
    "BaseEngine",
    "SQLiteEngine",
    "PgVectorEngine",
    # Exceptions
    "MemoryStoreError",
    "ValidationError",
    "DimensionMismatchError",
    "StorageError",
    "SerializationError",
    # Distance
    "cosine_similarity",
]
