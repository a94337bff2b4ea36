from .timing import Timer, time_function
from .vector_utils import (
    Metric,
    cosine_similarity,
    euclidean_distance,
    manhattan_distance,
    normalize_vectors,
    ranking_score,
    ranking_scores,
    score,
)

__all__ = [
    "Metric",
    "Timer",
    "cosine_similarity",
    "euclidean_distance",
    "manhattan_distance",
    "normalize_vectors",
    "ranking_score",
    "ranking_scores",
    "score",
    "time_function",
]
