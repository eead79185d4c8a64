"""
End-to-end tests of VectorMemoryStore on PostgreSQL with pgvector.

Set MEMORYSTORE_TEST_DSN to a scratch database to run them.
"""

import numpy as np
import pytest
import pytest_asyncio
from numpy.testing import assert_array_almost_equal

from memorystore import DimensionMismatchError, MemoryRecord, VectorMemoryStore

from . import get_test_dsn, integration, requires_postgres


pytestmark = [integration, requires_postgres]


@pytest_asyncio.fixture
async def pg_store(dimension):
    store = VectorMemoryStore.postgres(get_test_dsn(), vector_dimension=dimension)
    yield store
    await store.close()


@pytest_asyncio.fixture
async def pg_collection(pg_store, collection_name):
    await pg_store.delete_collection(collection_name)
    await pg_store.create_collection(collection_name)
    yield collection_name
    await pg_store.delete_collection(collection_name)


class TestPostgresStore:

    @pytest.mark.asyncio
    async def test_exists_ignores_case(self, pg_store, pg_collection):
        assert await pg_store.does_collection_exist(pg_collection.upper())

        names = [name async for name in pg_store.get_collections()]
        assert pg_collection in names

    @pytest.mark.asyncio
    async def test_upsert_get_remove(self, pg_store, pg_collection, sample_record):
        key = await pg_store.upsert(pg_collection, sample_record)

        record = await pg_store.get(pg_collection, key, with_embedding=True)
        assert record.metadata.text == "text"
        assert_array_almost_equal(record.embedding, [1, 2, 3])

        await pg_store.remove(pg_collection, key)
        assert await pg_store.get(pg_collection, key) is None

    @pytest.mark.asyncio
    async def test_wrong_dimension(self, pg_store, pg_collection):
        record = MemoryRecord.local_record(
            id="bad", text="t", description=None, embedding=[1, 2, 3, 4]
        )

        with pytest.raises(DimensionMismatchError):
            await pg_store.upsert(pg_collection, record)

    @pytest.mark.asyncio
    async def test_ranking(self, pg_store, pg_collection, search_records):
        async for _ in pg_store.upsert_batch(pg_collection, search_records):
            pass

        matches = [
            record.key
            async for record, _ in pg_store.get_nearest_matches(
                pg_collection, np.array([1, 1, 1]), limit=4, min_relevance_score=-1.0
            )
        ]

        assert matches == ["test0", "test2", "test4", "test3"]

    @pytest.mark.asyncio
    async def test_missing_collection_reads_as_absent(self, pg_store):
        assert await pg_store.get("never_created_here", "k") is None
        assert await pg_store.get_nearest_match("never_created_here", [1, 1, 1]) is None
        await pg_store.remove_batch("never_created_here", ["k"])

    @pytest.mark.asyncio
    async def test_zero_vector_scores_zero(self, pg_store, pg_collection):
        for key, vector in [("zero", [0, 0, 0]), ("ones", [1, 1, 1])]:
            await pg_store.upsert(
                pg_collection,
                MemoryRecord.local_record(id=key, text="t", description=None, embedding=vector),
            )

        matches = [
            (record.key, score)
            async for record, score in pg_store.get_nearest_matches(
                pg_collection, [1, 1, 1], limit=5, min_relevance_score=0.0
            )
        ]

        assert [key for key, _ in matches] == ["ones", "zero"]
        assert matches[1][1] == 0.0

    @pytest.mark.asyncio
    async def test_list_folds_case(self, pg_store):
        await pg_store.create_collection("MixedCaseDocs")
        try:
            names = [name async for name in pg_store.get_collections()]
            assert "mixedcasedocs" in names
            assert "MixedCaseDocs" not in names
        finally:
            await pg_store.delete_collection("MixedCaseDocs")

    @pytest.mark.asyncio
    async def test_break_out_of_search_then_write(self, pg_store, pg_collection, search_records):
        async for _ in pg_store.upsert_batch(pg_collection, search_records):
            pass

        async for _ in pg_store.get_nearest_matches(pg_collection, [1, 1, 1], limit=5):
            break
        async for _ in pg_store.get_collections():
            break

        await pg_store.upsert(pg_collection, MemoryRecord.local_record(
            id="after", text="t", description=None, embedding=[1, 2, 2]))

        assert await pg_store.get(pg_collection, "after") is not None
