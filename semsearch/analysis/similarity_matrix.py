"""Batch pairwise similarity with a bounded, id-keyed score cache."""
from __future__ import annotations

import logging
from collections import OrderedDict
from typing import Dict, Optional, Sequence, Tuple, Union

import numpy as np

from ..utils.vector_utils import Metric, VectorLike, as_vector, score

logger = logging.getLogger(__name__)

PairKey = Tuple[str, str]


class PairwiseSimilarity:
    """
    Compute N x N score matrices over (entity_id, embedding) entries.

    Off-diagonal cells hold the raw metric value (cosine similarity or a distance).
    Scores are memoized per unordered id pair in an LRU cache, so repeated matrices
    over overlapping entity sets only compute the new pairs. The cache is keyed by id
    alone: after changing the embedding behind an id, call ``invalidate``.
    """

    def __init__(self, metric: Union[str, Metric] = Metric.COSINE, cache_size: int = 10000):
        """
        Args:
            metric: Scoring policy for off-diagonal cells
            cache_size: Maximum number of cached pairs; 0 disables caching
        """
        if cache_size < 0:
            raise ValueError("cache_size must be non-negative")
        self.metric = Metric.parse(metric)
        self.cache_size = int(cache_size)
        self._cache: "OrderedDict[PairKey, float]" = OrderedDict()
        self.hits = 0
        self.misses = 0

    @staticmethod
    def _key(first: str, second: str) -> PairKey:
        return (first, second) if first <= second else (second, first)

    def _lookup(self, key: PairKey) -> Optional[float]:
        value = self._cache.get(key)
        if value is None:
            self.misses += 1
            return None
        self._cache.move_to_end(key)
        self.hits += 1
        return value

    def _store(self, key: PairKey, value: float) -> None:
        if self.cache_size == 0:
            return
        self._cache[key] = value
        self._cache.move_to_end(key)
        while len(self._cache) > self.cache_size:
            self._cache.popitem(last=False)

    def pair(self, first_id: str, first: VectorLike, second_id: str, second: VectorLike) -> float:
        """Score of one pair, served from the cache when possible."""
        key = self._key(first_id, second_id)
        cached = self._lookup(key)
        if cached is not None:
            return cached
        value = score(first, second, self.metric)
        self._store(key, value)
        return value

    def matrix(self, entries: Sequence[Tuple[str, VectorLike]], diagonal: float = 1.0) -> np.ndarray:
        """
        Build the symmetric score matrix for the given entries.

        Args:
            entries: (entity_id, embedding) pairs; the row/column order follows this sequence
            diagonal: Value placed on the diagonal

        Returns:
            float64 array of shape (N, N)
        """
        vectors = [as_vector(embedding) for _, embedding in entries]
        ids = [entity_id for entity_id, _ in entries]
        n = len(entries)
        result = np.empty((n, n), dtype=np.float64)

        for i in range(n):
            result[i, i] = diagonal
            for j in range(i + 1, n):
                value = self.pair(ids[i], vectors[i], ids[j], vectors[j])
                result[i, j] = value
                result[j, i] = value

        logger.debug(f"similarity matrix {n}x{n} (cache hits={self.hits}, misses={self.misses})")
        return result

    def invalidate(self, entity_id: str) -> int:
        """Drop every cached pair involving an id. Returns the number removed."""
        stale = [key for key in self._cache if entity_id in key]
        for key in stale:
            del self._cache[key]
        return len(stale)

    def clear_cache(self) -> None:
        self._cache.clear()
        self.hits = 0
        self.misses = 0

    def cache_stats(self) -> Dict[str, int]:
        return {"hits": self.hits, "misses": self.misses, "size": len(self._cache)}

    def __len__(self) -> int:
        return len(self._cache)
