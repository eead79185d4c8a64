"""
Similarity search: threshold, order and limit around the engine's
cosine scores.
"""

from __future__ import annotations

from contextlib import aclosing
from typing import AsyncIterator, Optional, Tuple

import numpy as np
from numpy.typing import NDArray

from .record import MemoryRecord
from ..engine.base import BaseEngine


class SimilaritySearch:
    """
    Nearest-neighbour lookups by cosine similarity.

    Results are ``(record, score)`` pairs with ``score >= min_relevance_score``,
    in descending score order, at most ``limit`` of them. Equal scores come
    in an engine-defined order that is stable for unchanged data.
    """

    def __init__(self, engine: BaseEngine):
        self._engine = engine

    async def get_nearest_matches(
        self,
        collection: str,
        embedding: NDArray[np.float32],
        limit: int,
        min_relevance_score: float = 0.0,
        with_embeddings: bool = False,
    ) -> AsyncIterator[Tuple[MemoryRecord, float]]:
        """Iterate over the best matches; ``limit <= 0`` yields nothing."""
        if limit <= 0:
            return

        async with aclosing(
            self._engine.ranked_scan(
                collection,
                embedding,
                min_score=min_relevance_score,
                limit=limit,
                with_embeddings=with_embeddings,
            )
        ) as rows:
            async for entry, score in rows:
                yield entry.to_record(), score

    async def get_nearest_match(
        self,
        collection: str,
        embedding: NDArray[np.float32],
        min_relevance_score: float = 0.0,
        with_embedding: bool = False,
    ) -> Optional[Tuple[MemoryRecord, float]]:
        """The single best match, or None if nothing clears the threshold."""
        async with aclosing(
            self.get_nearest_matches(
                collection,
                embedding,
                limit=1,
                min_relevance_score=min_relevance_score,
                with_embeddings=with_embedding,
            )
        ) as matches:
            async for match in matches:
                return match
        return None
