"""
MemoryStore - the public interface of the record store, and its
engine-backed implementation.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from contextlib import aclosing
from typing import Any, AsyncIterator, Iterable, Optional, Tuple

from .collections import CollectionManager
from .record import MemoryRecord
from .records import RecordStore
from .search import SimilaritySearch
from ..engine.base import BaseEngine
from ..engine.postgres import PgVectorEngine
from ..engine.sqlite import SQLiteEngine
from ..utils.logging import get_logger
from ..utils.validation import as_embedding, validate_collection_name


logger = get_logger(__name__)


class MemoryStore(ABC):
    """
    Abstract memory store.

    Collection-scoped records carrying an embedding, with cosine-similarity
    retrieval. Every method is a coroutine or an async iterator; cancelling
    the awaiting task cancels the operation.
    """

    # =========================================================================
    # COLLECTIONS
    # =========================================================================

    @abstractmethod
    async def create_collection(self, collection_name: str) -> None:
        pass

    @abstractmethod
    def get_collections(self) -> AsyncIterator[str]:
        pass

    @abstractmethod
    async def does_collection_exist(self, collection_name: str) -> bool:
        pass

    @abstractmethod
    async def delete_collection(self, collection_name: str) -> None:
        pass

    # =========================================================================
    # RECORDS
    # =========================================================================

    @abstractmethod
    async def upsert(self, collection_name: str, record: MemoryRecord) -> str:
        pass

    @abstractmethod
    def upsert_batch(
        self, collection_name: str, records: Iterable[MemoryRecord]
    ) -> AsyncIterator[str]:
        pass

    @abstractmethod
    async def get(
        self, collection_name: str, key: str, with_embedding: bool = False
    ) -> Optional[MemoryRecord]:
        pass

    @abstractmethod
    def get_batch(
        self, collection_name: str, keys: Iterable[str], with_embeddings: bool = False
    ) -> AsyncIterator[MemoryRecord]:
        pass

    @abstractmethod
    async def remove(self, collection_name: str, key: str) -> None:
        pass

    @abstractmethod
    async def remove_batch(self, collection_name: str, keys: Iterable[str]) -> None:
        pass

    # =========================================================================
    # SEARCH
    # =========================================================================

    @abstractmethod
    def get_nearest_matches(
        self,
        collection_name: str,
        embedding: Any,
        limit: int,
        min_relevance_score: float = 0.0,
        with_embeddings: bool = False,
    ) -> AsyncIterator[Tuple[MemoryRecord, float]]:
        pass

    @abstractmethod
    async def get_nearest_match(
        self,
        collection_name: str,
        embedding: Any,
        min_relevance_score: float = 0.0,
        with_embedding: bool = False,
    ) -> Optional[Tuple[MemoryRecord, float]]:
        pass

    # =========================================================================
    # LIFECYCLE
    # =========================================================================

    @abstractmethod
    async def close(self) -> None:
        pass

    async def __aenter__(self) -> MemoryStore:
        return self

    async def __aexit__(self, *args) -> None:
        await self.close()


class VectorMemoryStore(MemoryStore):
    """
    Memory store on top of a backing engine.

    Example:
        >>> async with VectorMemoryStore.sqlite(vector_dimension=3) as store:
        ...     await store.create_collection("facts")
        ...     key = await store.upsert("facts", MemoryRecord.local_record(
        ...         id="sky", text="The sky is blue", description=None,
        ...         embedding=[0.1, 0.9, 0.3]))
        ...     match = await store.get_nearest_match("facts", [0.1, 0.8, 0.3])

    Collection names are checked for emptiness here, before any engine call.
    Embedding lengths are not checked here; the engine rejects mismatches
    with DimensionMismatchError.
    """

    def __init__(self, engine: BaseEngine):
        self._engine = engine
        self._collections = CollectionManager(engine)
        self._records = RecordStore(engine)
        self._search = SimilaritySearch(engine)

    @classmethod
    def sqlite(
        cls,
        vector_dimension: int,
        database: str = ":memory:",
        **kwargs,
    ) -> VectorMemoryStore:
        """Create a store that owns a SQLite connection."""
        return cls(SQLiteEngine(vector_dimension, database=database, **kwargs))

    @classmethod
    def postgres(
        cls,
        dsn: str,
        vector_dimension: int,
        **kwargs,
    ) -> VectorMemoryStore:
        """Create a store that owns a PostgreSQL connection."""
        return cls(PgVectorEngine(vector_dimension, dsn=dsn, **kwargs))

    @property
    def engine(self) -> BaseEngine:
        return self._engine

    @property
    def vector_dimension(self) -> int:
        return self._engine.vector_dimension

    # =========================================================================
    # COLLECTIONS
    # =========================================================================

    async def create_collection(self, collection_name: str) -> None:
        await self._collections.create_collection(validate_collection_name(collection_name))

    async def get_collections(self) -> AsyncIterator[str]:
        """
        Iterate over collection names.

        The SQLite engine reports names as created; the PostgreSQL engine
        reports them folded to lower case.
        """
        async with aclosing(self._collections.get_collections()) as names:
            async for name in names:
                yield name

    async def does_collection_exist(self, collection_name: str) -> bool:
        return await self._collections.does_collection_exist(
            validate_collection_name(collection_name)
        )

    async def delete_collection(self, collection_name: str) -> None:
        await self._collections.delete_collection(validate_collection_name(collection_name))

    # =========================================================================
    # RECORDS
    # =========================================================================

    async def upsert(self, collection_name: str, record: MemoryRecord) -> str:
        return await self._records.upsert(validate_collection_name(collection_name), record)

    async def upsert_batch(
        self, collection_name: str, records: Iterable[MemoryRecord]
    ) -> AsyncIterator[str]:
        collection_name = validate_collection_name(collection_name)
        async with aclosing(self._records.upsert_batch(collection_name, records)) as keys:
            async for key in keys:
                yield key

    async def get(
        self, collection_name: str, key: str, with_embedding: bool = False
    ) -> Optional[MemoryRecord]:
        return await self._records.get(
            validate_collection_name(collection_name), key, with_embedding
        )

    async def get_batch(
        self, collection_name: str, keys: Iterable[str], with_embeddings: bool = False
    ) -> AsyncIterator[MemoryRecord]:
        collection_name = validate_collection_name(collection_name)
        async with aclosing(
            self._records.get_batch(collection_name, keys, with_embeddings)
        ) as records:
            async for record in records:
                yield record

    async def remove(self, collection_name: str, key: str) -> None:
        await self._records.remove(validate_collection_name(collection_name), key)

    async def remove_batch(self, collection_name: str, keys: Iterable[str]) -> None:
        await self._records.remove_batch(validate_collection_name(collection_name), keys)

    # =========================================================================
    # SEARCH
    # =========================================================================

    async def get_nearest_matches(
        self,
        collection_name: str,
        embedding: Any,
        limit: int,
        min_relevance_score: float = 0.0,
        with_embeddings: bool = False,
    ) -> AsyncIterator[Tuple[MemoryRecord, float]]:
        collection_name = validate_collection_name(collection_name)
        if limit <= 0:
            return

        async with aclosing(
            self._search.get_nearest_matches(
                collection_name,
                as_embedding(embedding),
                limit=limit,
                min_relevance_score=min_relevance_score,
                with_embeddings=with_embeddings,
            )
        ) as matches:
            async for match in matches:
                yield match

    async def get_nearest_match(
        self,
        collection_name: str,
        embedding: Any,
        min_relevance_score: float = 0.0,
        with_embedding: bool = False,
    ) -> Optional[Tuple[MemoryRecord, float]]:
        return await self._search.get_nearest_match(
            validate_collection_name(collection_name),
            as_embedding(embedding),
            min_relevance_score=min_relevance_score,
            with_embedding=with_embedding,
        )

    # =========================================================================
    # LIFECYCLE
    # =========================================================================

    async def close(self) -> None:
        """Close the engine; a borrowed connection stays open."""
        await self._engine.close()
        logger.info("VectorMemoryStore closed")

    def __repr__(self) -> str:
        return f"VectorMemoryStore(engine={self._engine!r})"
