"""
Single-layer navigable proximity graph (HNSW-inspired).

Insertion connects a new node to its M nearest existing nodes, found by an exhaustive
scan of the stored vectors, then prunes any neighbour whose degree exceeds M back to
its M closest connections. Search is a bounded best-first traversal of the graph from
one entry point, so it can miss true neighbours in poorly connected regions.
"""
import heapq
import logging
from typing import Dict, List, Optional, Set, Tuple, Union

import numpy as np

from .base_algorithm import BaseAlgorithm, SearchResult, rank_top_k
from ..utils.vector_utils import Metric, VectorLike, ranking_scores

logger = logging.getLogger(__name__)


class HNSW(BaseAlgorithm):
    """
    Proximity-graph index with a fixed maximum degree.

    The adjacency is undirected: every edge is stored on both endpoints, and pruning
    drops an edge from both sides, so no node ever has more than M neighbours.

    Queries start from the lexicographically smallest indexed id unless an explicit
    entry point is given. Results depend on that choice.

    Linking is purely nearest-neighbour with no long-range edges, so well-separated
    clusters usually end up as disconnected components. A query then only sees the
    component holding the entry point, and recall on clustered data can be very low.
    """

    def __init__(self, name: str = "graph", dimension: Optional[int] = None, M: int = 16,
                 metric: Union[str, Metric] = Metric.COSINE, ef_search: Optional[int] = None, **kwargs):
        """
        Initialize the graph index.

        Args:
            name: Name of the index instance
            dimension: Dimensionality of the vectors (None: set by the first insertion)
            M: Maximum number of connections per node (default: 16)
            metric: Scoring policy ('cosine', 'euclidean', 'manhattan')
            ef_search: Result-set bound during traversal; defaults to k per query
            **kwargs: Additional parameters
        """
        if M <= 0:
            raise ValueError("M must be positive")
        if ef_search is not None and ef_search <= 0:
            raise ValueError("ef_search must be positive")
        super().__init__(name, dimension, metric, **kwargs)
        self.M = int(M)
        self.ef_search = ef_search

        # Manually add graph specific parameters to the config
        self.config.update({
            'M': self.M,
            'ef_search': self.ef_search,
        })

        self._adjacency: Dict[int, Set[int]] = {}

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------
    def add(self, entity_id: str, embedding: VectorLike) -> bool:
        """
        Insert a node and connect it to its M nearest existing nodes.

        Args:
            entity_id: Entity identifier
            embedding: Embedding vector

        Returns:
            True if stored, False on a dimension mismatch
        """
        vector = self._prepare(embedding)
        if vector is None:
            return False

        if entity_id in self.arena:
            self.remove(entity_id)

        neighbors = self._nearest_slots(vector, self.M)
        slot = self.arena.put(entity_id, vector)
        self._adjacency[slot] = set()

        for neighbor in neighbors:
            self._connect(slot, neighbor)

        for neighbor in neighbors:
            self._prune(neighbor)
        return True

    def _nearest_slots(self, vector: np.ndarray, count: int) -> List[int]:
        """Exhaustive scan for the closest stored slots."""
        slots = self.arena.active_slots()
        if slots.size == 0 or count <= 0:
            return []
        scores = ranking_scores(vector, self.arena.rows(slots), self.metric)
        order = np.lexsort((slots, -scores))
        return [int(slot) for slot in slots[order[:count]]]

    def _connect(self, first: int, second: int) -> None:
        self._adjacency[first].add(second)
        self._adjacency[second].add(first)

    def _disconnect(self, first: int, second: int) -> None:
        self._adjacency[first].discard(second)
        self._adjacency[second].discard(first)

    def _prune(self, slot: int) -> None:
        """Keep only the M closest connections of a node that exceeds the degree bound."""
        neighbors = self._adjacency[slot]
        if len(neighbors) <= self.M:
            return

        candidates = np.array(sorted(neighbors), dtype=np.int64)
        scores = ranking_scores(self.arena.vector(slot), self.arena.rows(candidates), self.metric)
        order = np.lexsort((candidates, -scores))
        dropped = candidates[order[self.M:]]
        for pruned in dropped:
            self._disconnect(slot, int(pruned))
        logger.debug(f"{self.name}: pruned {len(dropped)} edges from '{self.arena.id_of(slot)}'")

    def remove(self, entity_id: str) -> Optional[np.ndarray]:
        """
        Remove a node and its edges, then reconnect its former neighbours.

        Each former neighbour with spare degree is linked to the closest other former
        neighbours that also have spare degree.

        Returns:
            The removed embedding, or None if the id was not indexed
        """
        slot = self.arena.slot_of(entity_id)
        if slot is None:
            return None

        orphans = sorted(self._adjacency.pop(slot))
        for neighbor in orphans:
            self._adjacency[neighbor].discard(slot)
        vector = self.arena.pop(entity_id)

        for neighbor in orphans:
            spare = self.M - len(self._adjacency[neighbor])
            if spare <= 0:
                continue
            others = np.array(
                [other for other in orphans
                 if other != neighbor and other not in self._adjacency[neighbor]
                 and len(self._adjacency[other]) < self.M],
                dtype=np.int64,
            )
            if others.size == 0:
                continue
            scores = ranking_scores(self.arena.vector(neighbor), self.arena.rows(others), self.metric)
            order = np.lexsort((others, -scores))
            for other in others[order]:
                if len(self._adjacency[neighbor]) >= self.M:
                    break
                if len(self._adjacency[int(other)]) < self.M:
                    self._connect(neighbor, int(other))
        return vector

    # ------------------------------------------------------------------
    # Search
    # ------------------------------------------------------------------
    def entry_point(self) -> Optional[str]:
        """The id traversal starts from when no entry point is supplied."""
        ids = self.arena.ids()
        return min(ids) if ids else None

    def _distance(self, query: np.ndarray, slot: int) -> float:
        return -float(ranking_scores(query, self.arena.rows(np.array([slot])), self.metric)[0])

    def query(self, embedding: VectorLike, k: int = 10, entry_point: Optional[str] = None) -> List[SearchResult]:
        """
        Best-first traversal from an entry point.

        Args:
            embedding: Query vector
            k: Number of nearest neighbors to return
            entry_point: Id to start from (default: smallest indexed id)

        Returns:
            Up to k (entity_id, score) pairs sorted by descending score; every id is
            reachable from the entry point
        """
        if k <= 0 or len(self) == 0:
            return []
        query = self._prepare(embedding)
        if query is None:
            return []

        start_id = entry_point if entry_point in self.arena else self.entry_point()
        start = self.arena.slot_of(start_id)
        bound = max(k, self.ef_search or k)

        start_distance = self._distance(query, start)
        visited: Set[int] = {start}
        # candidates: min-heap on distance; results: max-heap via negated distance
        candidates: List[Tuple[float, int]] = [(start_distance, start)]
        results: List[Tuple[float, int]] = [(-start_distance, start)]
        evaluations = 1

        while candidates:
            current_distance, current = heapq.heappop(candidates)
            if len(results) >= bound and current_distance > -results[0][0]:
                break

            fresh = [neighbor for neighbor in self._adjacency[current] if neighbor not in visited]
            if not fresh:
                continue
            visited.update(fresh)
            fresh_slots = np.array(fresh, dtype=np.int64)
            distances = -ranking_scores(query, self.arena.rows(fresh_slots), self.metric)
            evaluations += len(fresh)

            for neighbor, distance in zip(fresh, distances):
                distance = float(distance)
                if len(results) < bound or distance < -results[0][0]:
                    heapq.heappush(candidates, (distance, neighbor))
                    heapq.heappush(results, (-distance, neighbor))
                    if len(results) > bound:
                        heapq.heappop(results)

        self.record_operation("search_ops", float(evaluations), source="python.graph")

        ids = [self.arena.id_of(slot) for _, slot in results]
        scores = np.array([neg_distance for neg_distance, _ in results], dtype=np.float64)
        return rank_top_k(ids, scores, k)

    # ------------------------------------------------------------------
    # Graph inspection
    # ------------------------------------------------------------------
    def neighbors(self, entity_id: str) -> List[str]:
        slot = self.arena.slot_of(entity_id)
        if slot is None:
            return []
        return sorted(self.arena.id_of(neighbor) for neighbor in self._adjacency[slot])

    def degree(self, entity_id: str) -> int:
        slot = self.arena.slot_of(entity_id)
        return 0 if slot is None else len(self._adjacency[slot])

    def reachable_from(self, entity_id: str) -> Set[str]:
        """Ids in the connected component containing entity_id."""
        start = self.arena.slot_of(entity_id)
        if start is None:
            return set()
        seen = {start}
        stack = [start]
        while stack:
            for neighbor in self._adjacency[stack.pop()]:
                if neighbor not in seen:
                    seen.add(neighbor)
                    stack.append(neighbor)
        return {self.arena.id_of(slot) for slot in seen}

    def __repr__(self) -> str:
        edges = sum(len(neighbors) for neighbors in self._adjacency.values()) // 2
        return f"HNSW(nodes={len(self)}, edges={edges}, M={self.M}, metric={self.metric.value})"
