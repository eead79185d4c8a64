"""
Pytest fixtures for memorystore tests.
"""

import itertools
from typing import List

import numpy as np
import pytest
import pytest_asyncio

from memorystore import MemoryRecord, VectorMemoryStore


_collection_counter = itertools.count()


@pytest.fixture
def dimension() -> int:
    """Default dimension for test vectors."""
    return 3


@pytest.fixture
def collection_name() -> str:
    """A collection name not used by any other test."""
    return f"test_collection_{next(_collection_counter)}"


@pytest_asyncio.fixture
async def store(dimension: int):
    """In-memory SQLite-backed store."""
    memory_store = VectorMemoryStore.sqlite(vector_dimension=dimension)
    yield memory_store
    await memory_store.close()


@pytest.fixture
def sample_record() -> MemoryRecord:
    """Create a sample local record."""
    return MemoryRecord.local_record(
        id="test",
        text="text",
        description="description",
        embedding=np.array([1, 2, 3], dtype=np.float32),
    )


@pytest.fixture
def search_records() -> List[MemoryRecord]:
    """Records with known cosine scores against the query [1, 1, 1]."""
    embeddings = [
        [1, 1, 1],
        [-1, -1, -1],
        [1, 2, 3],
        [-1, -2, -3],
        [1, -1, -2],
    ]
    return [
        MemoryRecord.local_record(
            id=f"test{i}",
            text=f"text{i}",
            description=f"description{i}",
            embedding=np.array(embedding, dtype=np.float32),
        )
        for i, embedding in enumerate(embeddings)
    ]
