"""
Cosine similarity, the relevance score used by every engine.

Larger values mean more similar vectors. The SQLite engine registers
``sql_cosine_similarity`` as a SQL function; pgvector computes the same
quantity natively as ``1 - (a <=> b)``.
"""

from __future__ import annotations

from typing import Optional

import numpy as np
from numpy.typing import NDArray


Vector = NDArray[np.floating]

EMBEDDING_DTYPE = np.float32


def cosine_similarity(a: Vector, b: Vector, eps: float = 1e-12) -> float:
    """
    Compute cosine similarity between two vectors.

    Formula: (a · b) / (||a|| * ||b||)

    Args:
        a: First vector
        b: Second vector
        eps: Denominators below this are treated as zero

    Returns:
        Cosine similarity in range [-1, 1] (larger = more similar),
        0.0 when either vector has zero norm

    Raises:
        ValueError: If the vectors differ in length

    Example:
        >>> cosine_similarity(np.array([1.0, 0.0]), np.array([1.0, 0.0]))
        1.0
    """
    if a.shape != b.shape:
        raise ValueError(f"Vector shapes differ: {a.shape} != {b.shape}")

    # float64 accumulation keeps [1,1,1]·[1,1,1] at exactly 1.0
    a = a.astype(np.float64, copy=False)
    b = b.astype(np.float64, copy=False)

    denominator = np.linalg.norm(a) * np.linalg.norm(b)
    if denominator < eps:
        return 0.0

    similarity = float(np.dot(a, b) / denominator)
    return max(-1.0, min(1.0, similarity))


def sql_cosine_similarity(
    stored: Optional[bytes],
    query: Optional[bytes],
) -> Optional[float]:
    """
    SQL-callable cosine similarity over float32 BLOBs.

    Returns NULL (``None``) when either operand is NULL or the lengths
    differ, so such rows drop out of ``score >= ?`` comparisons.
    """
    if stored is None or query is None or len(stored) != len(query):
        return None

    a = np.frombuffer(stored, dtype=EMBEDDING_DTYPE)
    b = np.frombuffer(query, dtype=EMBEDDING_DTYPE)
    return cosine_similarity(a, b)
