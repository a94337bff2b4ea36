"""
Semantic clustering of stored embeddings.

All three algorithms work on cosine similarity:

* KMEANS: centroids start at the first k embeddings (insertion order) and are moved
  to the mean of their members for at most ``max_iterations`` rounds.
* HIERARCHICAL: average-linkage agglomerative merging until ``num_clusters`` remain.
* DBSCAN: clusters grow through neighbourhoods of similarity >= ``min_similarity``;
  an entity needs at least two such neighbours to seed or extend a cluster. Entities
  that never join a cluster are left out of the result.
"""
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import List

import numpy as np

from ..algorithms.arena import VectorArena
from ..utils.vector_utils import VectorLike, as_vector, normalize_vectors

logger = logging.getLogger(__name__)

DBSCAN_MIN_POINTS = 2


class ClusteringAlgorithm(str, Enum):
    KMEANS = "kmeans"
    HIERARCHICAL = "hierarchical"
    DBSCAN = "dbscan"


@dataclass
class ClusteringConfig:
    algorithm: ClusteringAlgorithm = ClusteringAlgorithm.KMEANS
    num_clusters: int = 8
    min_similarity: float = 0.7
    max_iterations: int = 100

    def __post_init__(self):
        self.algorithm = ClusteringAlgorithm(self.algorithm)
        if self.algorithm is not ClusteringAlgorithm.DBSCAN and self.num_clusters <= 0:
            raise ValueError("num_clusters must be positive")
        if self.max_iterations < 0:
            raise ValueError("max_iterations must be non-negative")

    @classmethod
    def kmeans(cls, num_clusters: int, max_iterations: int = 100) -> "ClusteringConfig":
        return cls(ClusteringAlgorithm.KMEANS, num_clusters=num_clusters, max_iterations=max_iterations)

    @classmethod
    def hierarchical(cls, num_clusters: int) -> "ClusteringConfig":
        return cls(ClusteringAlgorithm.HIERARCHICAL, num_clusters=num_clusters)

    @classmethod
    def dbscan(cls, min_similarity: float) -> "ClusteringConfig":
        return cls(ClusteringAlgorithm.DBSCAN, num_clusters=0, min_similarity=min_similarity, max_iterations=1)


@dataclass
class Cluster:
    cluster_id: int
    entity_ids: List[str]
    centroid: np.ndarray = field(repr=False)
    cohesion: float


class ClusteringEngine:
    """Collects (entity_id, embedding) pairs and partitions them on demand."""

    def __init__(self, config: ClusteringConfig = None):
        self.config = config or ClusteringConfig()
        self.arena = VectorArena()

    def add(self, entity_id: str, embedding: VectorLike) -> bool:
        """Store an embedding; re-adding an id replaces its vector. False on a dimension mismatch."""
        vector = as_vector(embedding)
        if not self.arena.accepts(vector):
            logger.debug(f"clustering: dimension mismatch for '{entity_id}'")
            return False
        self.arena.put(entity_id, vector)
        return True

    def __len__(self) -> int:
        return len(self.arena)

    def cluster(self) -> List[Cluster]:
        if len(self.arena) == 0:
            return []

        slots = self.arena.active_slots()
        ids = [self.arena.id_of(slot) for slot in slots]
        vectors = self.arena.rows(slots).astype(np.float64)
        unit = normalize_vectors(vectors)
        similarity = unit @ unit.T

        if self.config.algorithm is ClusteringAlgorithm.KMEANS:
            groups = self._kmeans(vectors, unit)
        elif self.config.algorithm is ClusteringAlgorithm.HIERARCHICAL:
            groups = self._hierarchical(similarity)
        else:
            groups = self._dbscan(similarity)

        clusters = [
            Cluster(
                cluster_id=cluster_id,
                entity_ids=[ids[i] for i in members],
                centroid=vectors[members].mean(axis=0),
                cohesion=self._cohesion(similarity, members),
            )
            for cluster_id, members in groups
        ]
        logger.info(f"{self.config.algorithm.value}: {len(ids)} entities -> {len(clusters)} clusters")
        return clusters

    def _kmeans(self, vectors: np.ndarray, unit: np.ndarray) -> List[tuple]:
        k = min(self.config.num_clusters, len(vectors))
        centroids = vectors[:k].copy()
        assignments = self._assign(unit, centroids)

        for _ in range(self.config.max_iterations):
            for cluster_id in range(k):
                members = np.flatnonzero(assignments == cluster_id)
                if members.size:
                    centroids[cluster_id] = vectors[members].mean(axis=0)
            updated = self._assign(unit, centroids)
            if np.array_equal(updated, assignments):
                break
            assignments = updated

        groups = []
        for cluster_id in range(k):
            members = np.flatnonzero(assignments == cluster_id)
            if members.size:
                groups.append((cluster_id, members.tolist()))
        return groups

    @staticmethod
    def _assign(unit: np.ndarray, centroids: np.ndarray) -> np.ndarray:
        # argmax keeps the lowest cluster index on ties
        return np.argmax(unit @ normalize_vectors(centroids).T, axis=1)

    def _hierarchical(self, similarity: np.ndarray) -> List[tuple]:
        groups: List[List[int]] = [[i] for i in range(len(similarity))]
        target = max(self.config.num_clusters, 1)

        while len(groups) > target:
            best_pair = (0, 1)
            best_similarity = -np.inf
            for i in range(len(groups)):
                for j in range(i + 1, len(groups)):
                    linkage = float(similarity[np.ix_(groups[i], groups[j])].mean())
                    if linkage > best_similarity:
                        best_similarity = linkage
                        best_pair = (i, j)

            i, j = best_pair
            merged = groups[i] + groups[j]
            del groups[j]
            del groups[i]
            groups.append(merged)

        return list(enumerate(groups))

    def _dbscan(self, similarity: np.ndarray) -> List[tuple]:
        n = len(similarity)
        min_similarity = self.config.min_similarity
        visited = np.zeros(n, dtype=bool)
        groups = []

        def neighbours(index: int) -> List[int]:
            return [j for j in np.flatnonzero(similarity[index] >= min_similarity).tolist() if j != index]

        for i in range(n):
            if visited[i]:
                continue
            visited[i] = True
            seeds = neighbours(i)
            if len(seeds) < DBSCAN_MIN_POINTS:
                continue

            members = [i]
            stack = seeds
            while stack:
                current = stack.pop()
                if visited[current]:
                    continue
                visited[current] = True
                members.append(current)
                reach = neighbours(current)
                if len(reach) >= DBSCAN_MIN_POINTS:
                    stack.extend(reach)

            groups.append((len(groups), members))
        return groups

    @staticmethod
    def _cohesion(similarity: np.ndarray, members: List[int]) -> float:
        if len(members) < 2:
            return 1.0
        block = similarity[np.ix_(members, members)]
        upper = block[np.triu_indices(len(members), k=1)]
        return float(upper.mean())
