from typing import Any, Dict, Type

from .arena import VectorArena
from .base_algorithm import BaseAlgorithm, SearchResult, rank_top_k
from .exact_search import ExactSearch
from .hnsw import HNSW
from .lsh import LSH


# Map algorithm types to their classes
ALGORITHM_REGISTRY: Dict[str, Type[BaseAlgorithm]] = {
    "ExactSearch": ExactSearch,
    "LSH": LSH,
    "HNSW": HNSW,
    "exact": ExactSearch,
    "lsh": LSH,
    "graph": HNSW,
}


def get_algorithm_instance(algorithm_type: str, dimension: int, **params: Any) -> BaseAlgorithm:
    """Factory function to create an algorithm instance based on type and parameters."""

    if algorithm_type not in ALGORITHM_REGISTRY:
        raise ValueError(
            f"Unknown algorithm type: {algorithm_type}. Available types: {list(ALGORITHM_REGISTRY.keys())}"
        )

    algorithm_class = ALGORITHM_REGISTRY[algorithm_type]
    name = params.pop("name", algorithm_type)
    return algorithm_class(name=name, dimension=dimension, **params)


__all__ = [
    "ALGORITHM_REGISTRY",
    "BaseAlgorithm",
    "ExactSearch",
    "HNSW",
    "LSH",
    "SearchResult",
    "VectorArena",
    "get_algorithm_instance",
    "rank_top_k",
]
