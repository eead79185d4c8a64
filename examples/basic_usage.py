"""
Basic usage example for memorystore.
"""

import asyncio

import numpy as np
from memorystore import MemoryRecord, VectorMemoryStore


DIMENSION = 128


async def main():
    print("=" * 60)
    print("memorystore Basic Usage Example")
    print("=" * 60)

    rng = np.random.default_rng(42)

    # 1. Open a store
    print("\n1. Opening in-memory SQLite store...")
    async with VectorMemoryStore.sqlite(vector_dimension=DIMENSION) as store:
        print(f"   {store}")

        # 2. Create collection
        print("2. Creating collection...")
        await store.create_collection("documents")
        print(f"   Exists: {await store.does_collection_exist('DOCUMENTS')}")

        # 3. Upsert records
        print("\n3. Upserting records...")
        key = await store.upsert(
            "documents",
            MemoryRecord.local_record(
                id="doc_001",
                text="Introduction to memorystore",
                description="tutorial",
                embedding=rng.standard_normal(DIMENSION),
            ),
        )
        print(f"   Upserted: {key}")

        records = [
            MemoryRecord.local_record(
                id=f"doc_{i:03d}",
                text=f"Document {i}",
                description=["tutorial", "guide", "reference"][i % 3],
                embedding=rng.standard_normal(DIMENSION),
            )
            for i in range(2, 102)
        ]
        keys = [k async for k in store.upsert_batch("documents", records)]
        print(f"   Upserted {len(keys)} more records")

        # 4. Search
        print("\n4. Searching...")
        query = records[10].embedding + 0.1 * rng.standard_normal(DIMENSION)

        async for record, score in store.get_nearest_matches(
            "documents", query, limit=5, min_relevance_score=0.0
        ):
            print(f"   {record.key}: {score:.4f} ({record.metadata.text})")

        best = await store.get_nearest_match("documents", query)
        if best is not None:
            print(f"   Best match: {best[0].key}")

        # 5. Read and remove
        print("\n5. Reading and removing...")
        record = await store.get("documents", "doc_001", with_embedding=True)
        print(f"   {record}")

        await store.remove_batch("documents", ["doc_001", "doc_002"])
        print(f"   After remove: {await store.get('documents', 'doc_001')}")

        # 6. Collections
        print("\n6. Collections...")
        async for name in store.get_collections():
            print(f"   - {name}")
        await store.delete_collection("documents")

    print("\nDone!")


if __name__ == "__main__":
    asyncio.run(main())
