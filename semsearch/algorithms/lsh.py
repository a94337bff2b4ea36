from __future__ import annotations

import logging
from collections import defaultdict
from typing import Any, Dict, List, Optional, Set, Union

import numpy as np

from .base_algorithm import BaseAlgorithm, SearchResult, rank_top_k
from ..utils.vector_utils import Metric, VectorLike, ranking_scores

logger = logging.getLogger(__name__)


class LSH(BaseAlgorithm):
    """
    Random-hyperplane locality sensitive hashing (LSH) index.

    Guarantee: two vectors at angle θ share a signature in one table with probability
    `(1 - θ/π) ** hash_size`, and are candidates for each other with probability
    `1 - (1 - (1 - θ/π) ** hash_size) ** num_tables`. Recall therefore grows with
    `num_tables` and shrinks as `hash_size` grows. Candidates are re-scored exactly, so
    every returned score is the true metric score.

    Hyperplanes are sampled once, uniformly in [-1, 1), from the injected generator
    (or from `seed`) and never change afterwards.
    """

    def __init__(
        self,
        name: str = "lsh",
        dimension: int = 0,
        num_tables: int = 4,
        hash_size: int = 8,
        metric: Union[str, Metric] = Metric.COSINE,
        rng: Optional[np.random.Generator] = None,
        seed: Optional[int] = None,
        projections: Optional[np.ndarray] = None,
        **kwargs: Any,
    ) -> None:
        """
        Initialize the LSH index.

        Args:
            name: Name of the index instance
            dimension: Dimensionality d of the vectors (required)
            num_tables: Number of independent hash tables L
            hash_size: Hyperplanes (signature bits) per table H
            metric: Default metric for re-scoring; ``query`` may override it
            rng: Random generator used to sample hyperplanes
            seed: Seed for a fresh generator when ``rng`` is not given
            projections: Explicit hyperplanes of shape (num_tables, hash_size, dimension)
        """
        if hash_size <= 0:
            raise ValueError("hash_size must be positive")
        if hash_size > 63:
            raise ValueError("hash_size must be at most 63")
        if num_tables <= 0:
            raise ValueError("num_tables must be positive")
        if dimension is None or int(dimension) <= 0:
            raise ValueError("dimension must be positive")

        super().__init__(name, int(dimension), metric, num_tables=num_tables, hash_size=hash_size, seed=seed, **kwargs)
        self.num_tables = int(num_tables)
        self.hash_size = int(hash_size)

        if projections is not None:
            projections = np.asarray(projections, dtype=np.float32)
            expected = (self.num_tables, self.hash_size, self.dimension)
            if projections.shape != expected:
                raise ValueError(f"projections must have shape {expected}, received {projections.shape}")
            self.projections = projections.copy()
        else:
            if rng is None:
                rng = np.random.default_rng(seed)
            self.projections = self._sample_projections(rng)
        self.projections.setflags(write=False)

        self.bit_weights = (1 << np.arange(self.hash_size, dtype=np.int64))
        self.tables: List[Dict[int, Set[int]]] = [defaultdict(set) for _ in range(self.num_tables)]
        self._signatures: Dict[int, List[int]] = {}

    def _sample_projections(self, rng: np.random.Generator) -> np.ndarray:
        # One draw per table so a larger num_tables extends, rather than reshuffles, the tables.
        tables = [rng.uniform(-1.0, 1.0, size=(self.hash_size, self.dimension)) for _ in range(self.num_tables)]
        return np.stack(tables).astype(np.float32)

    def _hash(self, vector: np.ndarray) -> List[int]:
        signs = (self.projections @ vector >= 0).astype(np.int64)
        return (signs * self.bit_weights[None, :]).sum(axis=1).tolist()

    def signature(self, embedding: VectorLike) -> Optional[List[int]]:
        """Per-table bucket keys for an embedding, or None on a dimension mismatch."""
        vector = self._prepare(embedding)
        if vector is None:
            return None
        return self._hash(vector)

    def add(self, entity_id: str, embedding: VectorLike) -> bool:
        vector = self._prepare(embedding)
        if vector is None:
            return False

        if entity_id in self.arena:
            self.remove(entity_id)

        slot = self.arena.put(entity_id, vector)
        keys = self._hash(vector)
        for table_idx, key in enumerate(keys):
            self.tables[table_idx][key].add(slot)
        self._signatures[slot] = keys
        return True

    def remove(self, entity_id: str) -> Optional[np.ndarray]:
        """
        Remove an entity and its bucket memberships. Emptied buckets are deleted.

        Returns:
            The removed embedding, or None if the id was not indexed
        """
        slot = self.arena.slot_of(entity_id)
        if slot is None:
            return None
        for table_idx, key in enumerate(self._signatures.pop(slot)):
            bucket = self.tables[table_idx].get(key)
            if bucket is None:
                continue
            bucket.discard(slot)
            if not bucket:
                del self.tables[table_idx][key]
        return self.arena.pop(entity_id)

    def _gather_candidates(self, keys: List[int]) -> np.ndarray:
        candidates: Set[int] = set()
        for table_idx, key in enumerate(keys):
            bucket = self.tables[table_idx].get(key)
            if bucket:
                candidates.update(bucket)
        return np.fromiter(sorted(candidates), dtype=np.int64, count=len(candidates))

    def candidates(self, embedding: VectorLike) -> List[str]:
        """Identifiers sharing at least one bucket with the embedding."""
        vector = self._prepare(embedding)
        if vector is None or len(self) == 0:
            return []
        slots = self._gather_candidates(self._hash(vector))
        return sorted(self.arena.id_of(slot) for slot in slots)

    def query(self, embedding: VectorLike, k: int = 10,
              metric: Optional[Union[str, Metric]] = None) -> List[SearchResult]:
        """
        Probe the matching bucket of every table and re-rank the union exactly.

        Args:
            embedding: Query vector
            k: Number of results to return
            metric: Scoring policy for re-ranking (defaults to the index metric)

        Returns:
            Up to k (entity_id, score) pairs sorted by descending score
        """
        if k <= 0 or len(self) == 0:
            return []
        vector = self._prepare(embedding)
        if vector is None:
            return []

        slots = self._gather_candidates(self._hash(vector))
        if slots.size == 0:
            return []

        scoring_metric = self.metric if metric is None else Metric.parse(metric)
        scores = ranking_scores(vector, self.arena.rows(slots), scoring_metric)
        self.record_operation("search_ops", float(slots.size), source="python.lsh")

        ids = [self.arena.id_of(slot) for slot in slots]
        return rank_top_k(ids, scores, k)

    def bucket_stats(self) -> List[Dict[str, float]]:
        """Bucket count and size statistics for each table."""
        stats = []
        for table in self.tables:
            sizes = [len(bucket) for bucket in table.values()]
            stats.append({
                "buckets": float(len(sizes)),
                "max_bucket": float(max(sizes)) if sizes else 0.0,
                "mean_bucket": float(np.mean(sizes)) if sizes else 0.0,
            })
        return stats


__all__ = ["LSH"]
