import math
from enum import Enum
from typing import Sequence, Union

import numpy as np

VectorLike = Union[Sequence[float], np.ndarray]


class Metric(str, Enum):
    """
    Scoring policy used to compare two embeddings.

    Cosine is a similarity (higher is better); Euclidean and Manhattan are
    distances (lower is better). Rankings always use the "higher is better"
    form returned by ``ranking_score``.
    """

    COSINE = "cosine"
    EUCLIDEAN = "euclidean"
    MANHATTAN = "manhattan"

    @classmethod
    def parse(cls, value: Union[str, "Metric"]) -> "Metric":
        """
        Resolve a metric from an enum member or a name.

        Args:
            value: Metric member or one of 'cosine', 'euclidean', 'l2', 'manhattan', 'l1'

        Returns:
            The matching Metric
        """
        if isinstance(value, Metric):
            return value
        key = str(value).strip().lower()
        if key in _METRIC_ALIASES:
            return _METRIC_ALIASES[key]
        raise ValueError(f"Unsupported metric: {value}. Available: {sorted(_METRIC_ALIASES)}")

    @property
    def is_distance(self) -> bool:
        return self is not Metric.COSINE


_METRIC_ALIASES = {
    "cosine": Metric.COSINE,
    "euclidean": Metric.EUCLIDEAN,
    "l2": Metric.EUCLIDEAN,
    "manhattan": Metric.MANHATTAN,
    "l1": Metric.MANHATTAN,
}


def as_vector(vector: VectorLike) -> np.ndarray:
    """Return the input as a flat float32 array."""
    array = np.asarray(vector, dtype=np.float32)
    if array.ndim != 1:
        array = array.reshape(-1)
    return array


def normalize_vectors(vectors: np.ndarray, axis: int = 1) -> np.ndarray:
    """
    Normalize vectors to unit length.

    Args:
        vectors: Array of vectors to normalize
        axis: Axis along which to normalize

    Returns:
        Normalized vectors (zero rows stay zero)
    """
    norms = np.linalg.norm(vectors, axis=axis, keepdims=True)
    return np.divide(vectors, norms, out=np.zeros_like(vectors, dtype=np.float32), where=norms > 0)


def cosine_similarity(a: VectorLike, b: VectorLike) -> float:
    """
    Cosine of the angle between two vectors, in [-1, 1].

    Zero-norm inputs score 0.0. Mismatched dimensions score -inf.
    """
    a = as_vector(a)
    b = as_vector(b)
    if a.shape[0] != b.shape[0]:
        return -math.inf

    norm_a = float(np.linalg.norm(a))
    norm_b = float(np.linalg.norm(b))
    if norm_a == 0.0 or norm_b == 0.0:
        return 0.0

    return float(np.dot(a, b) / (norm_a * norm_b))


def euclidean_distance(a: VectorLike, b: VectorLike) -> float:
    """L2 distance; mismatched dimensions return +inf."""
    a = as_vector(a)
    b = as_vector(b)
    if a.shape[0] != b.shape[0]:
        return math.inf
    return float(np.linalg.norm(a - b))


def manhattan_distance(a: VectorLike, b: VectorLike) -> float:
    """L1 distance; mismatched dimensions return +inf."""
    a = as_vector(a)
    b = as_vector(b)
    if a.shape[0] != b.shape[0]:
        return math.inf
    return float(np.sum(np.abs(a - b)))


_SCORERS = {
    Metric.COSINE: cosine_similarity,
    Metric.EUCLIDEAN: euclidean_distance,
    Metric.MANHATTAN: manhattan_distance,
}


def score(a: VectorLike, b: VectorLike, metric: Union[str, Metric] = Metric.COSINE) -> float:
    """
    Compute the raw metric value between two embeddings.

    Inputs must not contain NaN; ordering of NaN scores is undefined.

    Args:
        a: First embedding
        b: Second embedding
        metric: Scoring policy

    Returns:
        Cosine similarity, or the Euclidean/Manhattan distance. On a dimension
        mismatch, the maximally dissimilar sentinel (-inf for cosine, +inf for
        distances).
    """
    return _SCORERS[Metric.parse(metric)](a, b)


def ranking_score(a: VectorLike, b: VectorLike, metric: Union[str, Metric] = Metric.COSINE) -> float:
    """Higher-is-better form of ``score``: distances are negated."""
    metric = Metric.parse(metric)
    value = score(a, b, metric)
    return -value if metric.is_distance else value


def ranking_scores(query: VectorLike, matrix: np.ndarray, metric: Union[str, Metric] = Metric.COSINE) -> np.ndarray:
    """
    Vectorized ``ranking_score`` of one query against every row of a matrix.

    Args:
        query: Query embedding (dimension,)
        matrix: Stored embeddings (n, dimension)
        metric: Scoring policy

    Returns:
        Array of n scores; all -inf if the dimensions disagree
    """
    metric = Metric.parse(metric)
    query = as_vector(query)
    matrix = np.asarray(matrix, dtype=np.float32)
    if matrix.ndim != 2 or matrix.shape[0] == 0:
        return np.zeros(0, dtype=np.float64)
    if matrix.shape[1] != query.shape[0]:
        return np.full(matrix.shape[0], -np.inf, dtype=np.float64)

    if metric is Metric.COSINE:
        norms = np.linalg.norm(matrix, axis=1).astype(np.float64)
        query_norm = float(np.linalg.norm(query))
        dots = (matrix @ query).astype(np.float64)
        denom = norms * query_norm
        return np.divide(dots, denom, out=np.zeros_like(dots), where=denom > 0)

    diffs = (matrix - query[None, :]).astype(np.float64)
    if metric is Metric.EUCLIDEAN:
        return -np.linalg.norm(diffs, axis=1)
    return -np.sum(np.abs(diffs), axis=1)
