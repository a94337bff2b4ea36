"""Blend caller-supplied keyword scores with vector similarity."""
import logging
from dataclasses import dataclass
from typing import Dict, List, Mapping, Optional

from ..algorithms.base_algorithm import BaseAlgorithm
from ..algorithms.exact_search import ExactSearch
from ..utils.vector_utils import Metric, VectorLike

logger = logging.getLogger(__name__)


@dataclass
class HybridSearchConfig:
    keyword_weight: float = 0.5
    vector_weight: float = 0.5
    top_k: int = 10

    @classmethod
    def balanced(cls, top_k: int = 10) -> "HybridSearchConfig":
        return cls(keyword_weight=0.5, vector_weight=0.5, top_k=top_k)

    @classmethod
    def keyword_focused(cls, top_k: int = 10) -> "HybridSearchConfig":
        return cls(keyword_weight=0.7, vector_weight=0.3, top_k=top_k)

    @classmethod
    def vector_focused(cls, top_k: int = 10) -> "HybridSearchConfig":
        return cls(keyword_weight=0.3, vector_weight=0.7, top_k=top_k)


@dataclass
class HybridSearchResult:
    entity_id: str
    combined_score: float
    keyword_score: float
    vector_score: float


class HybridSearch:
    """
    Weighted sum of a keyword score and a vector similarity per entity.

    Vector candidates are fetched at twice ``top_k`` so that entities ranked lower by
    vector similarity can still surface through a strong keyword score. Entities that
    only appear in the keyword scores are included with a vector score of 0.
    """

    def __init__(self, config: Optional[HybridSearchConfig] = None, index: Optional[BaseAlgorithm] = None):
        self.config = config or HybridSearchConfig()
        self.index = index if index is not None else ExactSearch(name="hybrid", metric=Metric.COSINE)
        # Keyword-only entities score 0.0 on the vector side, so vector scores must be similarities.
        if self.index.metric is not Metric.COSINE:
            raise ValueError(f"Hybrid search needs a cosine index, got {self.index.metric.value}")

    def add(self, entity_id: str, embedding: VectorLike) -> bool:
        return self.index.add(entity_id, embedding)

    def search(self, query_embedding: VectorLike, keyword_scores: Mapping[str, float]) -> List[HybridSearchResult]:
        """
        Args:
            query_embedding: Query vector
            keyword_scores: entity_id -> keyword relevance, typically in [0, 1]

        Returns:
            Up to ``top_k`` results sorted by descending combined score
        """
        keyword_weight = self.config.keyword_weight
        vector_weight = self.config.vector_weight
        combined: Dict[str, HybridSearchResult] = {}

        for entity_id, vector_score in self.index.query(query_embedding, self.config.top_k * 2):
            keyword_score = float(keyword_scores.get(entity_id, 0.0))
            combined[entity_id] = HybridSearchResult(
                entity_id=entity_id,
                combined_score=keyword_weight * keyword_score + vector_weight * vector_score,
                keyword_score=keyword_score,
                vector_score=vector_score,
            )

        for entity_id, keyword_score in keyword_scores.items():
            if entity_id not in combined:
                combined[entity_id] = HybridSearchResult(
                    entity_id=entity_id,
                    combined_score=keyword_weight * float(keyword_score),
                    keyword_score=float(keyword_score),
                    vector_score=0.0,
                )

        results = sorted(combined.values(), key=lambda result: (-result.combined_score, result.entity_id))
        logger.debug(f"hybrid search merged {len(combined)} candidates")
        return results[: self.config.top_k]
