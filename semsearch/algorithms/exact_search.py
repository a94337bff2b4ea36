import logging
import numpy as np
from typing import List, Optional, Union

from .base_algorithm import BaseAlgorithm, SearchResult, rank_top_k
from ..utils.vector_utils import Metric, VectorLike, ranking_scores

logger = logging.getLogger(__name__)


class ExactSearch(BaseAlgorithm):
    """
    Exact (brute force) nearest neighbor search.
    This provides the ground truth for recall comparisons.
    """

    def __init__(self, name: str = "exact", dimension: Optional[int] = None,
                 metric: Union[str, Metric] = Metric.COSINE, **kwargs):
        """
        Initialize the ExactSearch index.

        Args:
            name: Name of the index instance
            dimension: Dimensionality of the vectors (None: set by the first insertion)
            metric: Scoring policy ('cosine', 'euclidean', 'manhattan')
            **kwargs: Additional parameters (ignored for exact search)
        """
        super().__init__(name, dimension, metric, **kwargs)

    def add(self, entity_id: str, embedding: VectorLike) -> bool:
        """
        Insert or overwrite an embedding.

        Args:
            entity_id: Entity identifier
            embedding: Embedding vector

        Returns:
            True if stored, False on a dimension mismatch
        """
        vector = self._prepare(embedding)
        if vector is None:
            return False
        self.arena.put(entity_id, vector)
        return True

    def remove(self, entity_id: str) -> Optional[np.ndarray]:
        """
        Remove an entity.

        Returns:
            The removed embedding, or None if the id was not indexed
        """
        return self.arena.pop(entity_id)

    def clear(self) -> None:
        """Drop every entry; the next insertion sets a new dimension."""
        self.arena.clear()

    def query(self, embedding: VectorLike, k: int = 10) -> List[SearchResult]:
        """
        Score every stored embedding against the query.

        Args:
            embedding: Query vector
            k: Number of nearest neighbors to retrieve

        Returns:
            min(k, size) (entity_id, score) pairs sorted by descending score
        """
        if k <= 0 or len(self) == 0:
            return []
        vector = self._prepare(embedding)
        if vector is None:
            return []

        slots = self.arena.active_slots()
        scores = ranking_scores(vector, self.arena.rows(slots), self.metric)
        self.record_operation("search_ops", float(slots.size), source="python.bruteforce")

        ids = [self.arena.id_of(slot) for slot in slots]
        return rank_top_k(ids, scores, k)
