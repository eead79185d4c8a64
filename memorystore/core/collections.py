"""
Collection lifecycle: create, check, list and delete namespaces.
"""

from __future__ import annotations

from contextlib import aclosing
from typing import AsyncIterator

from ..engine.base import BaseEngine


class CollectionManager:
    """
    Manages the collections of one engine.

    Create and delete are idempotent. Names are passed through unchanged;
    the engine decides what it accepts.
    """

    def __init__(self, engine: BaseEngine):
        self._engine = engine

    async def create_collection(self, name: str) -> None:
        """
        Create a collection sized to the engine's vector dimension.

        Raises:
            StorageError: If the engine rejects the definition
        """
        await self._engine.define_namespace(name)

    async def does_collection_exist(self, name: str) -> bool:
        """Case-insensitive existence check."""
        return await self._engine.namespace_exists(name)

    async def get_collections(self) -> AsyncIterator[str]:
        """
        Iterate over collection names in engine order.

        SQLite reports names as created; PostgreSQL reports them folded
        to lower case.
        """
        async with aclosing(self._engine.list_namespaces()) as names:
            async for name in names:
                yield name

    async def delete_collection(self, name: str) -> None:
        """Delete a collection and all its records; missing ones are ignored."""
        await self._engine.drop_namespace(name)
