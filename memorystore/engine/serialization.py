"""
Column encodings for engines without native vector or timestamp types.

Vectors are raw little-endian float32 bytes with no header, so a vector's
byte length is ``dimension * 4`` and a column constraint on ``length()``
enforces dimensionality.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

import numpy as np
from numpy.typing import NDArray

from ..core.exceptions import SerializationError
from ..distance import EMBEDDING_DTYPE


_DTYPE = np.dtype(EMBEDDING_DTYPE).newbyteorder("<")

ITEM_SIZE = _DTYPE.itemsize


def serialize_vector(vector: NDArray) -> bytes:
    """Serialize a vector to raw float32 bytes."""
    return np.asarray(vector, dtype=_DTYPE).tobytes()


def deserialize_vector(data: Optional[bytes]) -> Optional[NDArray[np.float32]]:
    """Deserialize raw float32 bytes; NULL stays None."""
    if data is None:
        return None

    if len(data) % ITEM_SIZE:
        raise SerializationError(
            f"Vector blob length {len(data)} is not a multiple of {ITEM_SIZE}"
        )

    return np.frombuffer(data, dtype=_DTYPE).astype(EMBEDDING_DTYPE)


def serialize_timestamp(timestamp: Optional[datetime]) -> Optional[str]:
    """Serialize to an ISO-8601 UTC string; naive values are taken as UTC."""
    if timestamp is None:
        return None

    if timestamp.tzinfo is None:
        timestamp = timestamp.replace(tzinfo=timezone.utc)

    return timestamp.astimezone(timezone.utc).isoformat()


def deserialize_timestamp(value: Optional[str]) -> Optional[datetime]:
    if value is None:
        return None

    try:
        timestamp = datetime.fromisoformat(value)
    except ValueError as e:
        raise SerializationError(f"Invalid timestamp {value!r}: {e}") from e

    if timestamp.tzinfo is None:
        timestamp = timestamp.replace(tzinfo=timezone.utc)

    return timestamp
