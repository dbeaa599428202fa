from __future__ import annotations

import asyncio
import math

from workify.ai.types import EmbeddingClient
from workify.core.cache import TTLCache, get_or_compute, openai_response_key
from workify.core.pipeline_config import get_ttl


def cosine_similarity(left: list[float], right: list[float]) -> float:
    if len(left) != len(right):
        return 0.0
    dot = sum(a * b for a, b in zip(left, right))
    left_norm = math.sqrt(sum(a * a for a in left))
    right_norm = math.sqrt(sum(b * b for b in right))
    if left_norm <= 0 or right_norm <= 0:
        return 0.0
    return dot / (left_norm * right_norm)


class SimilarityScorer:
    """Embedding cosine similarity between two texts.

    Embedding failures are not caught here; the caller owns the fallback.
    """

    def __init__(self, embedder: EmbeddingClient, cache: TTLCache) -> None:
        self._embedder = embedder
        self._cache = cache

    async def score(self, text1: str, text2: str) -> float:
        key = openai_response_key(text1=text1, text2=text2, type="similarity")

        async def _compute() -> float:
            left, right = await asyncio.gather(
                self._embedder.embed(text1),
                self._embedder.embed(text2),
            )
            return cosine_similarity(left, right)

        return await get_or_compute(self._cache, key, _compute, get_ttl("similarity", 30 * 60))
