"""
Similarity metric for memorystore.

Example:
    >>> from memorystore.distance import cosine_similarity
    >>> import numpy as np
    >>>
    >>> cosine_similarity(np.array([1.0, 2.0, 3.0]), np.array([1.0, 1.0, 1.0]))
    0.9258200997725514
"""

from .metrics import (
    EMBEDDING_DTYPE,
    cosine_similarity,
    sql_cosine_similarity,
)

__all__ = [
    "EMBEDDING_DTYPE",
    "cosine_similarity",
    "sql_cosine_similarity",
]
