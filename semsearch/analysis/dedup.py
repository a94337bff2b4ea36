import logging
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Set, Tuple

from ..algorithms.base_algorithm import BaseAlgorithm
from ..algorithms.exact_search import ExactSearch
from ..utils.vector_utils import Metric, VectorLike

logger = logging.getLogger(__name__)


class DuplicateConfidence(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"

    @classmethod
    def from_similarity(cls, similarity: float) -> Optional["DuplicateConfidence"]:
        if similarity >= 0.95:
            return cls.HIGH
        if similarity >= 0.85:
            return cls.MEDIUM
        if similarity >= 0.75:
            return cls.LOW
        return None


@dataclass
class DuplicateCandidate:
    """A canonical (first_id < second_id) pair of near-identical entities."""

    first_id: str
    second_id: str
    similarity: float
    confidence: DuplicateConfidence


class DeduplicationEngine:
    """
    Find near-duplicate entities by cosine similarity.

    Every stored entity is used as a query against the backing index; neighbours at or
    above ``threshold`` become candidate pairs. Pairs below 0.75 similarity carry no
    confidence level and are never reported, whatever the threshold.
    """

    def __init__(self, threshold: float = 0.85, index: Optional[BaseAlgorithm] = None):
        """
        Args:
            threshold: Minimum cosine similarity for a pair to be reported
            index: Cosine index to search (default: an empty ExactSearch)
        """
        self.threshold = float(threshold)
        self.index = index if index is not None else ExactSearch(name="dedup", metric=Metric.COSINE)
        if self.index.metric is not Metric.COSINE:
            raise ValueError(f"Deduplication needs a cosine index, got {self.index.metric.value}")

    def add(self, entity_id: str, embedding: VectorLike) -> bool:
        return self.index.add(entity_id, embedding)

    def __len__(self) -> int:
        return len(self.index)

    def find_duplicates(self, k: int = 10) -> List[DuplicateCandidate]:
        """
        Args:
            k: Neighbours inspected per entity

        Returns:
            Unique candidate pairs, sorted by descending similarity
        """
        seen: Set[Tuple[str, str]] = set()
        duplicates: List[DuplicateCandidate] = []

        for entity_id in sorted(self.index.ids()):
            for other_id, similarity in self.index.query(self.index.get(entity_id), k):
                if other_id == entity_id or similarity < self.threshold:
                    continue
                pair = (entity_id, other_id) if entity_id < other_id else (other_id, entity_id)
                if pair in seen:
                    continue
                seen.add(pair)

                confidence = DuplicateConfidence.from_similarity(similarity)
                if confidence is not None:
                    duplicates.append(DuplicateCandidate(pair[0], pair[1], similarity, confidence))

        duplicates.sort(key=lambda candidate: (-candidate.similarity, candidate.first_id, candidate.second_id))
        logger.info(f"Found {len(duplicates)} duplicate candidates among {len(self.index)} entities")
        return duplicates
