"""
Record CRUD scoped to a collection.

Batch operations are loops of single-record engine calls. They are not
atomic: a failure or cancellation part-way leaves earlier items committed
and issues no further calls.
"""

from __future__ import annotations

from typing import AsyncIterator, Iterable, Optional

from .record import MemoryEntry, MemoryRecord
from ..engine.base import BaseEngine
from ..utils.logging import get_logger


logger = get_logger(__name__)


class RecordStore:
    """Insert-or-replace, read and delete records of one engine."""

    def __init__(self, engine: BaseEngine):
        self._engine = engine

    async def upsert(self, collection: str, record: MemoryRecord) -> str:
        """
        Insert or fully replace a record.

        The storage key is the record's ``metadata.id``; ``record.key``
        is updated to match.

        Returns:
            The key written

        Raises:
            DimensionMismatchError: If the engine rejects the embedding length
            StorageError: On any other engine failure
        """
        entry = MemoryEntry.from_record(record)
        record.key = entry.key

        await self._engine.upsert_row(
            collection,
            key=entry.key,
            metadata=entry.metadata,
            embedding=entry.embedding,
            timestamp=entry.timestamp,
        )
        return entry.key

    async def upsert_batch(
        self,
        collection: str,
        records: Iterable[MemoryRecord],
    ) -> AsyncIterator[str]:
        """Upsert records one at a time, yielding each key as it is written."""
        count = 0
        for record in records:
            yield await self.upsert(collection, record)
            count += 1
        logger.debug(f"Upserted batch of {count} into '{collection}'")

    async def get(
        self,
        collection: str,
        key: str,
        with_embedding: bool = False,
    ) -> Optional[MemoryRecord]:
        """Read a record, or None if the key or collection is absent."""
        entry = await self._engine.read_row(collection, key, with_embedding)
        return entry.to_record() if entry is not None else None

    async def get_batch(
        self,
        collection: str,
        keys: Iterable[str],
        with_embeddings: bool = False,
    ) -> AsyncIterator[MemoryRecord]:
        """
        Read records key by key.

        Absent keys are skipped, so the output can be shorter than ``keys``
        and positions do not correspond.
        """
        for key in keys:
            record = await self.get(collection, key, with_embeddings)
            if record is None:
                continue
            yield record

    async def remove(self, collection: str, key: str) -> None:
        await self._engine.delete_row(collection, key)

    async def remove_batch(self, collection: str, keys: Iterable[str]) -> None:
        keys = list(keys)
        if not keys:
            return
        await self._engine.delete_rows(collection, keys)
