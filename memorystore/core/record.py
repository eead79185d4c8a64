"""
Memory record and entry definitions.

``MemoryRecord`` is the shape callers work with; ``MemoryEntry`` is the
row shape engines read and write. Metadata travels between them as an
opaque JSON document.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Optional

import numpy as np

from .exceptions import SerializationError
from ..distance import EMBEDDING_DTYPE
from ..utils.validation import as_embedding


# JSON keys of the stored metadata document
_METADATA_FIELDS = {
    "is_reference": "isReference",
    "external_source_name": "externalSourceName",
    "id": "id",
    "description": "description",
    "text": "text",
    "additional_metadata": "additionalMetadata",
}


def _empty_embedding() -> np.ndarray:
    return np.empty(0, dtype=EMBEDDING_DTYPE)


@dataclass
class MemoryRecordMetadata:
    """
    Descriptive fields of a memory record.

    Attributes:
        is_reference: True when the text lives in an external source
        external_source_name: Name of that source ("" for local records)
        id: Record identity; becomes the storage key on upsert
        description: Free-form description
        text: Record text ("" for reference records)
        additional_metadata: Caller-defined opaque string
    """

    is_reference: bool
    external_source_name: str
    id: str
    description: str
    text: str
    additional_metadata: str = ""

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the stored JSON document layout."""
        return {
            json_key: getattr(self, attr)
            for attr, json_key in _METADATA_FIELDS.items()
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> MemoryRecordMetadata:
        """Create metadata from the stored JSON document layout."""
        if "id" not in data:
            raise SerializationError("Metadata document has no 'id' field")

        return cls(
            is_reference=bool(data.get("isReference", False)),
            external_source_name=data.get("externalSourceName") or "",
            id=data["id"],
            description=data.get("description") or "",
            text=data.get("text") or "",
            additional_metadata=data.get("additionalMetadata") or "",
        )

    def to_json(self) -> str:
        return json.dumps(self.to_dict())

    @classmethod
    def from_json(cls, text: str) -> MemoryRecordMetadata:
        try:
            data = json.loads(text)
        except (TypeError, ValueError) as e:
            raise SerializationError(f"Invalid metadata JSON: {e}") from e

        if not isinstance(data, dict):
            raise SerializationError(
                f"Metadata JSON must be an object, got {type(data).__name__}"
            )

        return cls.from_dict(data)


@dataclass
class MemoryRecord:
    """
    A record as seen by callers of the memory store.

    Attributes:
        metadata: Descriptive fields, including the identity ``id``
        embedding: 1-D float32 array; empty when not loaded
        key: Storage key (set to ``metadata.id`` on upsert)
        timestamp: Optional timezone-aware point in time

    Example:
        >>> record = MemoryRecord.local_record(
        ...     id="doc_001",
        ...     text="The sky is blue",
        ...     description="colour facts",
        ...     embedding=[0.1, 0.2, 0.3],
        ... )
    """

    metadata: MemoryRecordMetadata
    embedding: np.ndarray = field(default_factory=_empty_embedding)
    key: str = ""
    timestamp: Optional[datetime] = None

    def __post_init__(self):
        self.embedding = as_embedding(self.embedding)

        if self.timestamp is not None and self.timestamp.tzinfo is None:
            self.timestamp = self.timestamp.replace(tzinfo=timezone.utc)

    @property
    def has_embedding(self) -> bool:
        return self.embedding.size > 0

    # =========================================================================
    # CONSTRUCTORS
    # =========================================================================

    @classmethod
    def local_record(
        cls,
        id: str,
        text: str,
        description: Optional[str],
        embedding: Any,
        additional_metadata: Optional[str] = None,
        key: Optional[str] = None,
        timestamp: Optional[datetime] = None,
    ) -> MemoryRecord:
        """Create a record whose text is stored locally."""
        return cls(
            metadata=MemoryRecordMetadata(
                is_reference=False,
                external_source_name="",
                id=id,
                description=description or "",
                text=text,
                additional_metadata=additional_metadata or "",
            ),
            embedding=embedding,
            key=key or "",
            timestamp=timestamp,
        )

    @classmethod
    def reference_record(
        cls,
        external_id: str,
        source_name: str,
        description: Optional[str],
        embedding: Any,
        additional_metadata: Optional[str] = None,
        key: Optional[str] = None,
        timestamp: Optional[datetime] = None,
    ) -> MemoryRecord:
        """Create a record pointing at text held by an external source."""
        return cls(
            metadata=MemoryRecordMetadata(
                is_reference=True,
                external_source_name=source_name,
                id=external_id,
                description=description or "",
                text="",
                additional_metadata=additional_metadata or "",
            ),
            embedding=embedding,
            key=key or "",
            timestamp=timestamp,
        )

    @classmethod
    def from_metadata(
        cls,
        metadata: MemoryRecordMetadata,
        embedding: Any = None,
        key: Optional[str] = None,
        timestamp: Optional[datetime] = None,
    ) -> MemoryRecord:
        return cls(
            metadata=metadata,
            embedding=embedding,
            key=key or "",
            timestamp=timestamp,
        )

    @classmethod
    def from_json_metadata(
        cls,
        json_metadata: str,
        embedding: Any = None,
        key: Optional[str] = None,
        timestamp: Optional[datetime] = None,
    ) -> MemoryRecord:
        """
        Create a record from a serialized metadata document.

        Raises:
            SerializationError: If the document cannot be decoded
        """
        return cls.from_metadata(
            MemoryRecordMetadata.from_json(json_metadata),
            embedding=embedding,
            key=key,
            timestamp=timestamp,
        )

    def serialize_metadata(self) -> str:
        """Serialize the metadata to its stored JSON form."""
        return self.metadata.to_json()

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, MemoryRecord):
            return NotImplemented
        return (
            self.key == other.key and
            self.metadata == other.metadata and
            self.timestamp == other.timestamp and
            np.array_equal(self.embedding, other.embedding)
        )

    def __repr__(self) -> str:
        return (
            f"MemoryRecord(key='{self.key}', id='{self.metadata.id}', "
            f"dim={self.embedding.size}, timestamp={self.timestamp})"
        )


@dataclass
class MemoryEntry:
    """
    A row as stored by a backing engine.

    ``embedding`` is None when the read did not request it.
    ``timestamp`` is always UTC when present.
    """

    key: str
    metadata: str
    embedding: Optional[np.ndarray] = None
    timestamp: Optional[datetime] = None

    @classmethod
    def from_record(cls, record: MemoryRecord) -> MemoryEntry:
        """Build the row for a record; the key is the record's metadata id."""
        timestamp = record.timestamp
        if timestamp is not None:
            timestamp = timestamp.astimezone(timezone.utc)

        return cls(
            key=record.metadata.id,
            metadata=record.serialize_metadata(),
            embedding=record.embedding,
            timestamp=timestamp,
        )

    def to_record(self) -> MemoryRecord:
        """Rebuild the caller-facing record; a missing embedding reads as empty."""
        return MemoryRecord.from_json_metadata(
            self.metadata,
            embedding=self.embedding if self.embedding is not None else _empty_embedding(),
            key=self.key,
            timestamp=self.timestamp,
        )
