"""
PostgreSQL + pgvector backing engine.

Each collection is a table with a native ``vector(d)`` column; pgvector
enforces the dimension on write and computes cosine similarity as
``1 - (embedding <=> query)``.

Connection management
- One asyncpg connection per engine, opened lazily from a DSN or borrowed
- The pgvector codec is registered on the connection so NumPy arrays
  bind directly to ``vector`` parameters
- Result sets are read with ``fetch``, so no cursor or transaction stays
  open while an iterator is suspended
"""

from __future__ import annotations

import re
from datetime import datetime
from typing import AsyncIterator, Iterable, Optional, Tuple

import asyncpg
import numpy as np
from numpy.typing import NDArray
from pgvector.asyncpg import register_vector

from .base import BaseEngine
from ..core.exceptions import DimensionMismatchError, StorageError
from ..core.record import MemoryEntry
from ..distance import EMBEDDING_DTYPE
from ..utils.logging import get_logger


logger = get_logger(__name__)


COLUMNS_WITHOUT_EMBEDDING = "key, metadata, timestamp"
COLUMNS_WITH_EMBEDDING = COLUMNS_WITHOUT_EMBEDDING + ", embedding"

# pgvector: "expected 3 dimensions, not 2", "different vector dimensions 3 and 2",
# "vector must have at least 1 dimension"
_DIMENSION_ERROR = re.compile(r"dimension", re.IGNORECASE)


def quote_identifier(name: str) -> str:
    """
    Quote a collection name for use as a PostgreSQL identifier.

    Names are folded to lower case first so collection identity stays
    case-insensitive, as it is for unquoted identifiers.
    """
    return '"' + name.lower().replace('"', '""') + '"'


class PgVectorEngine(BaseEngine):
    """PostgreSQL backing engine using asyncpg and the pgvector extension."""

    def __init__(
        self,
        vector_dimension: int,
        dsn: Optional[str] = None,
        connection: Optional[asyncpg.Connection] = None,
        command_timeout: float = 60,
        create_extension: bool = True,
    ):
        """
        Configure a pgvector-backed engine.

        Parameters
        - vector_dimension: Embedding length for every collection
        - dsn: PostgreSQL DSN; the engine opens and owns a connection
        - connection: Existing asyncpg connection to borrow instead; the
          caller must have registered the pgvector codec on it
        - command_timeout: Seconds to allow per command on owned connections
        - create_extension: Run ``CREATE EXTENSION IF NOT EXISTS vector``
          when opening an owned connection
        """
        super().__init__(vector_dimension)

        if dsn is None and connection is None:
            raise ValueError("PgVectorEngine requires a dsn or a connection")

        self.dsn = dsn
        self.command_timeout = command_timeout
        self.create_extension = create_extension

        self._conn: Optional[asyncpg.Connection] = connection
        self._owns_connection = connection is None

    @property
    def owns_connection(self) -> bool:
        return self._owns_connection

    async def _get_connection(self) -> asyncpg.Connection:
        """Get or open the connection."""
        if self._conn is None:
            try:
                conn = await asyncpg.connect(self.dsn, command_timeout=self.command_timeout)
                if self.create_extension:
                    await conn.execute("CREATE EXTENSION IF NOT EXISTS vector")
                await register_vector(conn)
            except (OSError, asyncpg.PostgresError) as e:
                logger.error(f"Failed to connect to PostgreSQL: {e}")
                raise StorageError(f"Failed to connect to PostgreSQL: {e}") from e

            self._conn = conn
            logger.info("PgVectorEngine opened connection")

        return self._conn

    def _storage_error(self, action: str, name: str, error: Exception) -> StorageError:
        logger.error(f"Failed to {action} '{name}': {error}")
        return StorageError(f"Failed to {action} '{name}': {error}")

    # =========================================================================
    # NAMESPACES
    # =========================================================================

    async def define_namespace(self, name: str) -> None:
        conn = await self._get_connection()
        sql = (
            f"CREATE TABLE IF NOT EXISTS {quote_identifier(name)} ("
            "key TEXT NOT NULL PRIMARY KEY, "
            "metadata TEXT, "
            f"embedding vector({self.vector_dimension}), "
            "timestamp TIMESTAMPTZ)"
        )

        try:
            await conn.execute(sql)
        except asyncpg.PostgresError as e:
            raise self._storage_error("create collection", name, e) from e

        logger.info(f"Created collection '{name}' (dim={self.vector_dimension})")

    async def namespace_exists(self, name: str) -> bool:
        conn = await self._get_connection()
        sql = (
            "SELECT 1 FROM information_schema.tables "
            "WHERE table_schema = current_schema() AND table_name = $1"
        )

        try:
            row = await conn.fetchrow(sql, name.lower())
        except asyncpg.PostgresError as e:
            raise self._storage_error("check collection", name, e) from e

        return row is not None

    async def list_namespaces(self) -> AsyncIterator[str]:
        conn = await self._get_connection()
        sql = (
            "SELECT table_name FROM information_schema.tables "
            "WHERE table_schema = current_schema() AND table_type = 'BASE TABLE'"
        )

        try:
            rows = await conn.fetch(sql)
        except asyncpg.PostgresError as e:
            raise self._storage_error("list collections", "*", e) from e

        for row in rows:
            yield row["table_name"]

    async def drop_namespace(self, name: str) -> None:
        conn = await self._get_connection()

        try:
            await conn.execute(f"DROP TABLE IF EXISTS {quote_identifier(name)}")
        except asyncpg.PostgresError as e:
            raise self._storage_error("delete collection", name, e) from e

        logger.info(f"Deleted collection '{name}'")

    # =========================================================================
    # ROWS
    # =========================================================================

    async def upsert_row(
        self,
        name: str,
        key: str,
        metadata: str,
        embedding: NDArray[np.float32],
        timestamp: Optional[datetime],
    ) -> None:
        conn = await self._get_connection()
        sql = (
            f"INSERT INTO {quote_identifier(name)} (key, metadata, embedding, timestamp) "
            "VALUES ($1, $2, $3, $4) "
            "ON CONFLICT (key) DO UPDATE SET "
            "metadata = EXCLUDED.metadata, "
            "embedding = EXCLUDED.embedding, "
            "timestamp = EXCLUDED.timestamp"
        )

        try:
            await conn.execute(sql, key, metadata, np.asarray(embedding, dtype=EMBEDDING_DTYPE), timestamp)
        except asyncpg.DataError as e:
            if _DIMENSION_ERROR.search(str(e)):
                raise DimensionMismatchError(
                    f"Embedding for '{key}' has {len(embedding)} dimensions, "
                    f"collection '{name}' expects {self.vector_dimension}",
                    expected=self.vector_dimension,
                    actual=len(embedding),
                ) from e
            raise self._storage_error("upsert into", name, e) from e
        except asyncpg.PostgresError as e:
            raise self._storage_error("upsert into", name, e) from e

        logger.debug(f"Upserted '{key}' into '{name}'")

    async def read_row(
        self,
        name: str,
        key: str,
        with_embedding: bool = False,
    ) -> Optional[MemoryEntry]:
        conn = await self._get_connection()
        columns = COLUMNS_WITH_EMBEDDING if with_embedding else COLUMNS_WITHOUT_EMBEDDING
        sql = f"SELECT {columns} FROM {quote_identifier(name)} WHERE key = $1"

        try:
            row = await conn.fetchrow(sql, key)
        except asyncpg.UndefinedTableError:
            return None
        except asyncpg.PostgresError as e:
            raise self._storage_error("read from", name, e) from e

        if row is None:
            return None
        return self._read_entry(row, with_embedding)

    async def delete_row(self, name: str, key: str) -> None:
        conn = await self._get_connection()

        try:
            await conn.execute(f"DELETE FROM {quote_identifier(name)} WHERE key = $1", key)
        except asyncpg.UndefinedTableError:
            return
        except asyncpg.PostgresError as e:
            raise self._storage_error("delete from", name, e) from e

    async def delete_rows(self, name: str, keys: Iterable[str]) -> None:
        keys = list(keys)
        if not keys:
            return

        conn = await self._get_connection()

        try:
            await conn.execute(
                f"DELETE FROM {quote_identifier(name)} WHERE key = ANY($1::text[])", keys
            )
        except asyncpg.UndefinedTableError:
            return
        except asyncpg.PostgresError as e:
            raise self._storage_error("delete from", name, e) from e

        logger.debug(f"Deleted {len(keys)} key(s) from '{name}'")

    # =========================================================================
    # SEARCH
    # =========================================================================

    async def ranked_scan(
        self,
        name: str,
        query: NDArray[np.float32],
        min_score: float,
        limit: int,
        with_embeddings: bool = False,
    ) -> AsyncIterator[Tuple[MemoryEntry, float]]:
        conn = await self._get_connection()
        columns = COLUMNS_WITH_EMBEDDING if with_embeddings else COLUMNS_WITHOUT_EMBEDDING
        sql = (
            f"SELECT * FROM ("
            f"SELECT {columns}, "
            # a zero-norm operand gives a NaN distance; it scores 0
            "CASE WHEN (embedding <=> $1) = 'NaN' THEN 0 "
            "ELSE 1 - (embedding <=> $1) END AS score "
            f"FROM {quote_identifier(name)}"
            f") AS scored WHERE score >= $2 ORDER BY score DESC, key LIMIT $3"
        )

        try:
            rows = await conn.fetch(
                sql, np.asarray(query, dtype=EMBEDDING_DTYPE), float(min_score), int(limit)
            )
        except asyncpg.UndefinedTableError:
            return
        except asyncpg.DataError as e:
            if _DIMENSION_ERROR.search(str(e)):
                raise DimensionMismatchError(
                    f"Query embedding has {len(query)} dimensions, "
                    f"collection '{name}' expects {self.vector_dimension}",
                    expected=self.vector_dimension,
                    actual=len(query),
                ) from e
            raise self._storage_error("search", name, e) from e
        except asyncpg.PostgresError as e:
            raise self._storage_error("search", name, e) from e

        for row in rows:
            yield self._read_entry(row, with_embeddings), float(row["score"])

    @staticmethod
    def _read_entry(row: asyncpg.Record, with_embedding: bool) -> MemoryEntry:
        embedding = None
        if with_embedding and row["embedding"] is not None:
            embedding = np.asarray(row["embedding"], dtype=EMBEDDING_DTYPE)

        return MemoryEntry(
            key=row["key"],
            metadata=row["metadata"],
            embedding=embedding,
            timestamp=row["timestamp"],
        )

    # =========================================================================
    # LIFECYCLE
    # =========================================================================

    async def close(self) -> None:
        if self._owns_connection and self._conn is not None:
            await self._conn.close()
            self._conn = None
            logger.info("PgVectorEngine closed its connection")

    def __repr__(self) -> str:
        return (
            f"PgVectorEngine(dim={self.vector_dimension}, "
            f"owns_connection={self._owns_connection})"
        )
