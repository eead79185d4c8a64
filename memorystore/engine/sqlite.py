"""
SQLite backing engine.

Each collection is a table::

    key        TEXT PRIMARY KEY
    metadata   TEXT             -- JSON document
    embedding  BLOB             -- float32 bytes, CHECK(length = dimension * 4)
    timestamp  TEXT             -- ISO-8601 UTC

Cosine similarity is a deterministic SQL function registered on the
connection, so ranking, thresholding and limiting all run inside SQLite.
"""

from __future__ import annotations

import asyncio
import sqlite3
from concurrent.futures import ThreadPoolExecutor
from contextlib import contextmanager
from datetime import datetime
from functools import partial
from typing import Any, AsyncIterator, Callable, Iterable, Iterator, Optional, Tuple

import numpy as np
from numpy.typing import NDArray

from .base import BaseEngine
from .serialization import (
    ITEM_SIZE,
    serialize_vector,
    deserialize_vector,
    serialize_timestamp,
    deserialize_timestamp,
)
from ..core.exceptions import DimensionMismatchError, StorageError
from ..core.record import MemoryEntry
from ..distance import sql_cosine_similarity
from ..utils.logging import get_logger


logger = get_logger(__name__)


COLUMNS_WITHOUT_EMBEDDING = "key, metadata, timestamp"
COLUMNS_WITH_EMBEDDING = COLUMNS_WITHOUT_EMBEDDING + ", embedding"

KEY_INDEX = 0
METADATA_INDEX = KEY_INDEX + 1
TIMESTAMP_INDEX = METADATA_INDEX + 1
EMBEDDING_INDEX = TIMESTAMP_INDEX + 1

DIMENSION_CONSTRAINT = "embedding_dimension"


def quote_identifier(name: str) -> str:
    """Quote a collection name for use as a SQLite identifier."""
    return '"' + name.replace('"', '""') + '"'


def _is_missing_table(error: sqlite3.Error) -> bool:
    return isinstance(error, sqlite3.OperationalError) and "no such table" in str(error)


class SQLiteEngine(BaseEngine):
    """
    Backing engine on the standard library ``sqlite3`` module.

    All statements run on one dedicated worker thread; the event loop only
    awaits them. Cancelling an awaiting task interrupts the running
    statement. Result sets are read in full on the worker thread before
    the first row is yielded, so an iterator abandoned partway holds no
    cursor.

    Example:
        >>> engine = SQLiteEngine(vector_dimension=3)            # owns ":memory:"
        >>> engine = SQLiteEngine(3, database="./memories.db")   # owns a file
        >>> conn = sqlite3.connect("shared.db", check_same_thread=False)
        >>> engine = SQLiteEngine(3, connection=conn)            # borrowed
    """

    def __init__(
        self,
        vector_dimension: int,
        database: str = ":memory:",
        connection: Optional[sqlite3.Connection] = None,
        timeout: float = 5.0,
    ):
        """
        Initialize the SQLite engine.

        Args:
            vector_dimension: Embedding length for every collection
            database: Database path, used when no connection is given
            connection: Existing connection to borrow; it must allow use
                from other threads (``check_same_thread=False``) and is
                never closed by this engine
            timeout: Seconds to wait on a locked database
        """
        super().__init__(vector_dimension)

        self._executor = ThreadPoolExecutor(
            max_workers=1,
            thread_name_prefix="memorystore-sqlite",
        )

        if connection is not None:
            self._conn = connection
            self._owns_connection = False
            logger.info("SQLiteEngine using borrowed connection")
        else:
            try:
                self._conn = sqlite3.connect(
                    database,
                    timeout=timeout,
                    check_same_thread=False,
                    isolation_level=None,
                )
            except sqlite3.Error as e:
                raise StorageError(f"Failed to open SQLite database '{database}': {e}") from e
            self._owns_connection = True
            logger.info(f"SQLiteEngine opened database '{database}'")

        self._conn.create_function(
            "cosine_similarity", 2, sql_cosine_similarity, deterministic=True
        )
        self._closed = False

    @property
    def owns_connection(self) -> bool:
        return self._owns_connection

    # =========================================================================
    # EXECUTION
    # =========================================================================

    async def _run(self, fn: Callable[..., Any], *args: Any) -> Any:
        """Run a blocking call on the worker thread."""
        if self._closed:
            raise StorageError("SQLiteEngine is closed")

        loop = asyncio.get_running_loop()
        try:
            return await loop.run_in_executor(self._executor, partial(fn, *args))
        except asyncio.CancelledError:
            self._conn.interrupt()
            raise

    @contextmanager
    def _translate_errors(self, action: str, name: str) -> Iterator[None]:
        try:
            yield
        except sqlite3.Error as e:
            logger.error(f"Failed to {action} '{name}': {e}")
            raise StorageError(f"Failed to {action} '{name}': {e}") from e

    def _execute_write(self, sql: str, params: Tuple = ()) -> None:
        with self._conn:
            self._conn.execute(sql, params)

    def _execute_many(self, sql: str, params: list) -> None:
        with self._conn:
            self._conn.executemany(sql, params)

    def _fetch_one(self, sql: str, params: Tuple = ()) -> Optional[tuple]:
        cursor = self._conn.execute(sql, params)
        try:
            return cursor.fetchone()
        finally:
            cursor.close()

    def _fetch_all(self, sql: str, params: Tuple = ()) -> list:
        """Read every row; the cursor is closed on the worker thread before returning."""
        cursor = self._conn.execute(sql, params)
        try:
            return cursor.fetchall()
        finally:
            cursor.close()

    # =========================================================================
    # NAMESPACES
    # =========================================================================

    async def define_namespace(self, name: str) -> None:
        sql = (
            f"CREATE TABLE IF NOT EXISTS {quote_identifier(name)} ("
            "key TEXT NOT NULL PRIMARY KEY, "
            "metadata TEXT, "
            f"embedding BLOB CONSTRAINT {DIMENSION_CONSTRAINT} "
            f"CHECK (length(embedding) = {self.vector_dimension * ITEM_SIZE}), "
            "timestamp TEXT)"
        )

        with self._translate_errors("create collection", name):
            await self._run(self._execute_write, sql)

        logger.info(f"Created collection '{name}' (dim={self.vector_dimension})")

    async def namespace_exists(self, name: str) -> bool:
        sql = (
            "SELECT 1 FROM sqlite_master "
            "WHERE type = 'table' AND name = ? COLLATE NOCASE LIMIT 1"
        )

        with self._translate_errors("check collection", name):
            row = await self._run(self._fetch_one, sql, (name,))

        return row is not None

    async def list_namespaces(self) -> AsyncIterator[str]:
        sql = (
            "SELECT name FROM sqlite_master "
            "WHERE type = 'table' AND name NOT LIKE 'sqlite\\_%' ESCAPE '\\'"
        )

        with self._translate_errors("list collections", "*"):
            rows = await self._run(self._fetch_all, sql)

        for row in rows:
            yield row[0]

    async def drop_namespace(self, name: str) -> None:
        with self._translate_errors("delete collection", name):
            await self._run(
                self._execute_write, f"DROP TABLE IF EXISTS {quote_identifier(name)}"
            )

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
        sql = (
            f"INSERT INTO {quote_identifier(name)} (key, metadata, embedding, timestamp) "
            "VALUES (?, ?, ?, ?) "
            "ON CONFLICT (key) DO UPDATE SET "
            "metadata = excluded.metadata, "
            "embedding = excluded.embedding, "
            "timestamp = excluded.timestamp"
        )
        params = (
            key,
            metadata,
            serialize_vector(embedding),
            serialize_timestamp(timestamp),
        )

        try:
            await self._run(self._execute_write, sql, params)
        except sqlite3.IntegrityError as e:
            if DIMENSION_CONSTRAINT in str(e):
                raise DimensionMismatchError(
                    f"Embedding for '{key}' has {len(embedding)} dimensions, "
                    f"collection '{name}' expects {self.vector_dimension}",
                    expected=self.vector_dimension,
                    actual=len(embedding),
                ) from e
            logger.error(f"Failed to upsert '{key}' into '{name}': {e}")
            raise StorageError(f"Failed to upsert '{key}' into '{name}': {e}") from e
        except sqlite3.Error as e:
            logger.error(f"Failed to upsert '{key}' into '{name}': {e}")
            raise StorageError(f"Failed to upsert '{key}' into '{name}': {e}") from e

        logger.debug(f"Upserted '{key}' into '{name}'")

    async def read_row(
        self,
        name: str,
        key: str,
        with_embedding: bool = False,
    ) -> Optional[MemoryEntry]:
        columns = COLUMNS_WITH_EMBEDDING if with_embedding else COLUMNS_WITHOUT_EMBEDDING
        sql = f"SELECT {columns} FROM {quote_identifier(name)} WHERE key = ?"

        try:
            row = await self._run(self._fetch_one, sql, (key,))
        except sqlite3.Error as e:
            if _is_missing_table(e):
                return None
            logger.error(f"Failed to read '{key}' from '{name}': {e}")
            raise StorageError(f"Failed to read '{key}' from '{name}': {e}") from e

        if row is None:
            return None
        return self._read_entry(row, with_embedding)

    async def delete_row(self, name: str, key: str) -> None:
        await self.delete_rows(name, [key])

    async def delete_rows(self, name: str, keys: Iterable[str]) -> None:
        params = [(key,) for key in keys]
        if not params:
            return

        sql = f"DELETE FROM {quote_identifier(name)} WHERE key = ?"

        try:
            await self._run(self._execute_many, sql, params)
        except sqlite3.Error as e:
            if _is_missing_table(e):
                return
            logger.error(f"Failed to delete from '{name}': {e}")
            raise StorageError(f"Failed to delete from '{name}': {e}") from e

        logger.debug(f"Deleted {len(params)} key(s) from '{name}'")

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
        if len(query) != self.vector_dimension:
            raise DimensionMismatchError(
                f"Query embedding has {len(query)} dimensions, "
                f"collection '{name}' expects {self.vector_dimension}",
                expected=self.vector_dimension,
                actual=len(query),
            )

        columns = COLUMNS_WITH_EMBEDDING if with_embeddings else COLUMNS_WITHOUT_EMBEDDING
        sql = (
            f"SELECT * FROM ("
            f"SELECT {columns}, cosine_similarity(embedding, ?) AS score "
            f"FROM {quote_identifier(name)}"
            f") WHERE score >= ? ORDER BY score DESC, key LIMIT ?"
        )
        params = (serialize_vector(query), float(min_score), int(limit))

        try:
            rows = await self._run(self._fetch_all, sql, params)
        except sqlite3.Error as e:
            if _is_missing_table(e):
                return
            logger.error(f"Failed to search '{name}': {e}")
            raise StorageError(f"Failed to search '{name}': {e}") from e

        for row in rows:
            yield self._read_entry(row, with_embeddings), float(row[-1])

    @staticmethod
    def _read_entry(row: tuple, with_embedding: bool) -> MemoryEntry:
        return MemoryEntry(
            key=row[KEY_INDEX],
            metadata=row[METADATA_INDEX],
            timestamp=deserialize_timestamp(row[TIMESTAMP_INDEX]),
            embedding=deserialize_vector(row[EMBEDDING_INDEX]) if with_embedding else None,
        )

    # =========================================================================
    # LIFECYCLE
    # =========================================================================

    async def close(self) -> None:
        if self._closed:
            return

        self._closed = True
        loop = asyncio.get_running_loop()
        await loop.run_in_executor(None, partial(self._executor.shutdown, wait=True))

        if self._owns_connection:
            self._conn.close()
            logger.info("SQLiteEngine closed its connection")
        else:
            logger.info("SQLiteEngine released borrowed connection")

    def __repr__(self) -> str:
        return (
            f"SQLiteEngine(dim={self.vector_dimension}, "
            f"owns_connection={self._owns_connection})"
        )
