"""
Abstract base class for backing engines.

An engine owns one session with a persistent store that offers a vector
column and a cosine operator. It performs exactly one logical operation
per call and maps raw rows to ``MemoryEntry``.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime
from typing import AsyncIterator, Iterable, Optional, Tuple

import numpy as np
from numpy.typing import NDArray

from ..core.record import MemoryEntry
from ..utils.validation import validate_dimension


class BaseEngine(ABC):
    """
    Abstract base class for backing engines.

    All engine implementations must provide:
    - Namespace (collection) definition, lookup, listing and drop
    - Row upsert, read and delete
    - A ranked cosine-similarity scan

    Error contract: a vector whose length differs from ``vector_dimension``
    raises ``DimensionMismatchError``; every other engine failure raises
    ``StorageError`` with the native exception chained.
    """

    def __init__(self, vector_dimension: int):
        self._vector_dimension = validate_dimension(vector_dimension)

    @property
    def vector_dimension(self) -> int:
        """Embedding length every namespace accepts."""
        return self._vector_dimension

    # =========================================================================
    # NAMESPACES
    # =========================================================================

    @abstractmethod
    async def define_namespace(self, name: str) -> None:
        """Create a namespace; a no-op if it already exists."""
        pass

    @abstractmethod
    async def namespace_exists(self, name: str) -> bool:
        """Case-insensitive existence check."""
        pass

    @abstractmethod
    def list_namespaces(self) -> AsyncIterator[str]:
        """
        Iterate over namespace names.

        Names come back in the form the engine stores them: as created on
        SQLite, folded to lower case on PostgreSQL. The iterator must not
        hold a cursor or transaction open between yields.
        """
        pass

    @abstractmethod
    async def drop_namespace(self, name: str) -> None:
        """Drop a namespace and its rows; a no-op if it does not exist."""
        pass

    # =========================================================================
    # ROWS
    # =========================================================================

    @abstractmethod
    async def upsert_row(
        self,
        name: str,
        key: str,
        metadata: str,
        embedding: NDArray[np.float32],
        timestamp: Optional[datetime],
    ) -> None:
        """Insert or fully replace the row stored under ``key``."""
        pass

    @abstractmethod
    async def read_row(
        self,
        name: str,
        key: str,
        with_embedding: bool = False,
    ) -> Optional[MemoryEntry]:
        """Read one row, or None if absent."""
        pass

    @abstractmethod
    async def delete_row(self, name: str, key: str) -> None:
        """Delete one row; missing keys are ignored."""
        pass

    @abstractmethod
    async def delete_rows(self, name: str, keys: Iterable[str]) -> None:
        """Delete many rows; missing keys are ignored."""
        pass

    # =========================================================================
    # SEARCH
    # =========================================================================

    @abstractmethod
    def ranked_scan(
        self,
        name: str,
        query: NDArray[np.float32],
        min_score: float,
        limit: int,
        with_embeddings: bool = False,
    ) -> AsyncIterator[Tuple[MemoryEntry, float]]:
        """
        Lazily iterate over rows scoring at least ``min_score``.

        Rows come in descending score order, at most ``limit`` of them.
        A zero-norm vector scores 0.0. The iterator must not hold a cursor
        or transaction open between yields.
        """
        pass

    # =========================================================================
    # LIFECYCLE
    # =========================================================================

    @property
    @abstractmethod
    def owns_connection(self) -> bool:
        """Whether ``close`` releases the underlying connection."""
        pass

    @abstractmethod
    async def close(self) -> None:
        """Release resources; an injected connection is left open."""
        pass

    async def __aenter__(self) -> BaseEngine:
        return self

    async def __aexit__(self, *args) -> None:
        await self.close()
