"""
Unit tests for the record model.
"""

import json
from datetime import datetime, timedelta, timezone

import numpy as np
import pytest
from numpy.testing import assert_array_equal

from memorystore.core.exceptions import SerializationError, ValidationError
from memorystore.core.record import (
    MemoryEntry,
    MemoryRecord,
    MemoryRecordMetadata,
)


class TestMemoryRecordCreation:
    """Test record constructors."""

    def test_local_record(self):
        """Local records keep their text and have no source."""
        record = MemoryRecord.local_record(
            id="doc1",
            text="hello",
            description="greeting",
            embedding=[1, 2, 3],
        )

        assert record.metadata.id == "doc1"
        assert record.metadata.text == "hello"
        assert record.metadata.is_reference is False
        assert record.metadata.external_source_name == ""
        assert record.embedding.dtype == np.float32
        assert_array_equal(record.embedding, [1, 2, 3])
        assert record.key == ""
        assert record.timestamp is None

    def test_reference_record(self):
        """Reference records point at an external source and carry no text."""
        record = MemoryRecord.reference_record(
            external_id="https://example.com/a",
            source_name="example",
            description="a page",
            embedding=[0.5, 0.5],
        )

        assert record.metadata.is_reference is True
        assert record.metadata.external_source_name == "example"
        assert record.metadata.text == ""
        assert record.metadata.id == "https://example.com/a"

    def test_none_description_becomes_empty(self):
        record = MemoryRecord.local_record(
            id="x", text="t", description=None, embedding=[1.0]
        )
        assert record.metadata.description == ""

    def test_missing_embedding_is_empty(self):
        """No embedding reads as an empty vector."""
        metadata = MemoryRecordMetadata(
            is_reference=False,
            external_source_name="",
            id="x",
            description="",
            text="",
        )
        record = MemoryRecord.from_metadata(metadata)

        assert record.embedding.shape == (0,)
        assert not record.has_embedding

    def test_two_dimensional_embedding_rejected(self):
        with pytest.raises(ValidationError):
            MemoryRecord.local_record(
                id="x", text="t", description="d", embedding=[[1, 2], [3, 4]]
            )

    def test_naive_timestamp_taken_as_utc(self):
        naive = datetime(2024, 5, 1, 12, 30)
        record = MemoryRecord.local_record(
            id="x", text="t", description="d", embedding=[1.0], timestamp=naive
        )

        assert record.timestamp.tzinfo is not None
        assert record.timestamp == naive.replace(tzinfo=timezone.utc)


class TestMetadataSerialization:
    """Test the stored JSON document."""

    def test_json_keys(self):
        """Stored documents use camelCase keys."""
        record = MemoryRecord.local_record(
            id="doc1",
            text="hello",
            description="greeting",
            embedding=[1.0],
            additional_metadata="extra",
        )

        document = json.loads(record.serialize_metadata())

        assert document == {
            "isReference": False,
            "externalSourceName": "",
            "id": "doc1",
            "description": "greeting",
            "text": "hello",
            "additionalMetadata": "extra",
        }

    def test_from_json_metadata(self):
        text = json.dumps({
            "isReference": True,
            "externalSourceName": "wiki",
            "id": "page-1",
            "description": "desc",
            "text": "",
        })

        record = MemoryRecord.from_json_metadata(text, key="page-1")

        assert record.key == "page-1"
        assert record.metadata.is_reference is True
        assert record.metadata.external_source_name == "wiki"
        assert record.metadata.additional_metadata == ""

    def test_invalid_json(self):
        with pytest.raises(SerializationError):
            MemoryRecord.from_json_metadata("{not json")

    def test_json_without_id(self):
        with pytest.raises(SerializationError):
            MemoryRecord.from_json_metadata('{"text": "orphan"}')

    def test_json_not_an_object(self):
        with pytest.raises(SerializationError):
            MemoryRecord.from_json_metadata("[1, 2, 3]")


class TestEntryMapping:
    """Test Record <-> Entry mapping."""

    def test_entry_key_is_metadata_id(self):
        """The storage key comes from the metadata id, not record.key."""
        record = MemoryRecord.local_record(
            id="real-id", text="t", description="d", embedding=[1.0], key="ignored"
        )

        entry = MemoryEntry.from_record(record)

        assert entry.key == "real-id"

    def test_entry_timestamp_is_utc(self):
        local = datetime(2024, 1, 1, 10, 0, tzinfo=timezone(timedelta(hours=2)))
        record = MemoryRecord.local_record(
            id="x", text="t", description="d", embedding=[1.0], timestamp=local
        )

        entry = MemoryEntry.from_record(record)

        assert entry.timestamp.utcoffset() == timedelta(0)
        assert entry.timestamp == local

    def test_round_trip(self):
        record = MemoryRecord.local_record(
            id="x",
            text="t",
            description="d",
            embedding=[1.0, 2.0],
            timestamp=datetime(2024, 1, 1, tzinfo=timezone.utc),
        )

        restored = MemoryEntry.from_record(record).to_record()

        assert restored.metadata == record.metadata
        assert restored.key == "x"
        assert restored.timestamp == record.timestamp
        assert_array_equal(restored.embedding, record.embedding)

    def test_elided_embedding_maps_to_empty(self):
        """An entry read without its embedding yields an empty vector, never None."""
        entry = MemoryEntry(
            key="x",
            metadata=json.dumps({"id": "x", "text": "t"}),
            embedding=None,
        )

        record = entry.to_record()

        assert record.embedding is not None
        assert record.embedding.size == 0
