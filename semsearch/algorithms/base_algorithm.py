from abc import ABC, abstractmethod
import logging
from typing import List, Dict, Any, Optional, Sequence, Tuple, Union

import numpy as np

from .arena import VectorArena
from ..utils.vector_utils import Metric, VectorLike, as_vector

logger = logging.getLogger(__name__)

SearchResult = Tuple[str, float]


def rank_top_k(ids: Sequence[str], scores: np.ndarray, k: int) -> List[SearchResult]:
    """
    Order (id, score) pairs by descending score and keep the first k.

    Equal scores are ordered lexicographically by id so results do not depend on
    storage order.

    Args:
        ids: Entity identifiers
        scores: Higher-is-better scores, parallel to ids
        k: Number of results to keep

    Returns:
        Up to k (id, score) tuples
    """
    if k <= 0 or len(ids) == 0:
        return []
    scores = np.asarray(scores, dtype=np.float64)
    order = np.lexsort((np.asarray(ids, dtype=str), -scores))
    return [(ids[i], float(scores[i])) for i in order[:k]]


class BaseAlgorithm(ABC):
    """
    Base class for all embedding indices.
    All new indices should inherit from this class and implement ``add`` and ``query``.

    Embeddings are held in a ``VectorArena``; the first accepted embedding fixes the
    dimension unless one is given at construction.
    """

    def __init__(self, name: str, dimension: Optional[int] = None,
                 metric: Union[str, Metric] = Metric.COSINE, **kwargs):
        """
        Initialize the index.

        Args:
            name: Name of the index
            dimension: Dimensionality of the vectors (None: set by the first insertion)
            metric: Scoring policy used for ranking
            **kwargs: Additional index-specific parameters
        """
        if dimension is not None and int(dimension) <= 0:
            raise ValueError("dimension must be positive")
        self.name = name
        self.metric = Metric.parse(metric)
        self.config = dict(kwargs)
        self.config["metric"] = self.metric.value
        self.arena = VectorArena(dimension=None if dimension is None else int(dimension))
        self._operation_counts: Dict[str, Any] = {}
        self.reset_operation_counts()

    @property
    def dimension(self) -> Optional[int]:
        return self.arena.dimension

    @abstractmethod
    def add(self, entity_id: str, embedding: VectorLike) -> bool:
        """
        Insert an embedding under an identifier.

        Args:
            entity_id: Opaque entity identifier
            embedding: Embedding vector

        Returns:
            True if stored, False if rejected (dimension mismatch)
        """
        pass

    @abstractmethod
    def query(self, embedding: VectorLike, k: int = 10) -> List[SearchResult]:
        """
        Find the k entities most similar to the query embedding.

        Args:
            embedding: Query embedding
            k: Number of results to return

        Returns:
            Up to k (entity_id, score) pairs sorted by descending score. An empty
            list is returned for an empty index, k <= 0 or a dimension mismatch.
        """
        pass

    def _prepare(self, embedding: VectorLike) -> Optional[np.ndarray]:
        """Coerce an embedding and check it against the index dimension."""
        vector = as_vector(embedding)
        if not self.arena.accepts(vector):
            logger.debug(
                f"{self.name}: dimension mismatch (expected {self.dimension}, got {vector.shape[0]})"
            )
            return None
        return vector

    def build_index(self, vectors: Union[np.ndarray, Sequence[VectorLike]],
                    ids: Optional[Sequence[str]] = None) -> int:
        """
        Add many embeddings at once.

        Args:
            vectors: Embeddings to index (n_vectors, dimension)
            ids: Optional identifiers; defaults to "0", "1", ...

        Returns:
            Number of embeddings accepted
        """
        if ids is None:
            ids = [str(i) for i in range(len(vectors))]
        elif len(ids) != len(vectors):
            raise ValueError(f"Number of ids ({len(ids)}) doesn't match number of vectors ({len(vectors)})")

        accepted = 0
        for entity_id, vector in zip(ids, vectors):
            if self.add(entity_id, vector):
                accepted += 1
        logger.info(f"{self.name}: indexed {accepted}/{len(ids)} embeddings")
        return accepted

    def batch_query(self, queries: Union[np.ndarray, Sequence[VectorLike]], k: int = 10) -> List[List[SearchResult]]:
        """Run ``query`` for each query embedding."""
        return [self.query(query, k) for query in queries]

    def get(self, entity_id: str) -> Optional[np.ndarray]:
        return self.arena.get(entity_id)

    def ids(self) -> List[str]:
        return self.arena.ids()

    def get_name(self) -> str:
        return self.name

    def get_parameters(self) -> Dict[str, Any]:
        """
        Get the parameters of the index.

        Returns:
            Dictionary of parameters
        """
        return self.config

    def get_memory_usage(self) -> float:
        """Memory held by stored vectors, in MB."""
        return self.arena.nbytes() / (1024 * 1024)

    def reset_operation_counts(self) -> None:
        """Reset accumulated vector comparison counters."""
        self._operation_counts = {"search_ops": 0.0}

    def record_operation(self, key: str, value: float, source: Optional[str] = None) -> None:
        """Accumulate numeric counters and optionally note their provenance."""
        current = float(self._operation_counts.get(key, 0.0))
        self._operation_counts[key] = current + float(value)
        if source:
            source_key = f"{key}_source"
            existing = self._operation_counts.get(source_key)
            if existing is None:
                self._operation_counts[source_key] = source
            elif existing != source:
                self._operation_counts[source_key] = "mixed"

    def get_operation_counts(self) -> Dict[str, Any]:
        """Return a shallow copy of the accumulated counters."""
        return dict(self._operation_counts)

    def __len__(self) -> int:
        return len(self.arena)

    def __contains__(self, entity_id: object) -> bool:
        return entity_id in self.arena

    def __str__(self) -> str:
        return f"{self.name} (dimension={self.dimension}, size={len(self)}, parameters={self.config})"
