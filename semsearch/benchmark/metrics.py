import numpy as np
from typing import Dict, List, Optional, Sequence

IdLists = Sequence[Sequence[str]]


def _check_lengths(ground_truth: IdLists, predicted: IdLists) -> int:
    if len(ground_truth) != len(predicted):
        raise ValueError(
            f"Number of ground truth lists ({len(ground_truth)}) doesn't match predictions ({len(predicted)})"
        )
    return len(ground_truth)


def recall_at_k(ground_truth: IdLists, predicted: IdLists, k: int) -> float:
    """
    Calculate recall@k for vector retrieval.

    Recall@k measures the intersection between true top-k ids and
    returned top-k ids, divided by the number of true top-k ids.

    Args:
        ground_truth: Exact top ids for each query, best first
        predicted: Returned ids for each query, best first (lists may be shorter than k)
        k: Number of results to consider

    Returns:
        Average recall@k across all queries
    """
    n_queries = _check_lengths(ground_truth, predicted)
    if n_queries == 0 or k <= 0:
        return 0.0

    recalls = np.zeros(n_queries)
    for i in range(n_queries):
        gt_set = set(ground_truth[i][:k])
        pred_set = set(predicted[i][:k])
        # Calculate recall: |intersection| / |ground_truth|
        recalls[i] = len(gt_set & pred_set) / len(gt_set) if gt_set else 0.0

    return float(np.mean(recalls))


def precision_at_k(ground_truth: IdLists, predicted: IdLists, k: int) -> float:
    """
    Calculate precision@k for vector retrieval.

    Missing predictions (a query returning fewer than k ids) count as misses.

    Args:
        ground_truth: Relevant ids for each query
        predicted: Returned ids for each query, best first
        k: Number of results to consider

    Returns:
        Average precision@k across all queries
    """
    n_queries = _check_lengths(ground_truth, predicted)
    if n_queries == 0 or k <= 0:
        return 0.0

    precisions = np.zeros(n_queries)
    for i in range(n_queries):
        gt_set = set(ground_truth[i])
        pred_set = set(predicted[i][:k])
        precisions[i] = len(gt_set & pred_set) / k

    return float(np.mean(precisions))


def mean_average_precision(ground_truth: IdLists, predicted: IdLists, k: Optional[int] = None) -> float:
    """
    Calculate Mean Average Precision (MAP) for vector retrieval.

    Args:
        ground_truth: Relevant ids for each query
        predicted: Returned ids for each query, best first
        k: Optional limit on number of predictions to consider

    Returns:
        MAP score across all queries
    """
    n_queries = _check_lengths(ground_truth, predicted)
    if n_queries == 0:
        return 0.0

    aps = np.zeros(n_queries)
    for i in range(n_queries):
        gt_set = set(ground_truth[i])
        ranked = predicted[i] if k is None else predicted[i][:k]

        # Precision at each position where a relevant id is found
        relevant_positions = []
        num_relevant = 0
        for j, entity_id in enumerate(ranked):
            if entity_id in gt_set:
                num_relevant += 1
                relevant_positions.append(num_relevant / (j + 1))

        if relevant_positions:
            aps[i] = sum(relevant_positions) / len(gt_set)

    return float(np.mean(aps))


def ndcg_at_k(ground_truth: IdLists, predicted: IdLists, k: int) -> float:
    """
    Calculate Normalized Discounted Cumulative Gain (NDCG) at k with binary relevance.

    Args:
        ground_truth: Relevant ids for each query
        predicted: Returned ids for each query, best first
        k: Number of results to consider

    Returns:
        Average NDCG@k across all queries
    """
    n_queries = _check_lengths(ground_truth, predicted)
    if n_queries == 0 or k <= 0:
        return 0.0

    ndcg_scores = np.zeros(n_queries)
    for i in range(n_queries):
        gt_set = set(ground_truth[i])
        # rel_i / log2(i+2)
        dcg = sum(1.0 / np.log2(j + 2) for j, entity_id in enumerate(predicted[i][:k]) if entity_id in gt_set)
        # Ideal DCG: all relevant ids at the top
        idcg = sum(1.0 / np.log2(j + 2) for j in range(min(len(gt_set), k)))
        if idcg > 0:
            ndcg_scores[i] = dcg / idcg

    return float(np.mean(ndcg_scores))


def hit_rate_at_k(ground_truth: IdLists, predicted: IdLists, k: int) -> float:
    """
    Proportion of queries with at least one relevant id among the top-k results.

    Args:
        ground_truth: Relevant ids for each query
        predicted: Returned ids for each query, best first
        k: Number of results to consider

    Returns:
        Hit rate@k across all queries
    """
    n_queries = _check_lengths(ground_truth, predicted)
    if n_queries == 0 or k <= 0:
        return 0.0

    hits = np.zeros(n_queries, dtype=np.bool_)
    for i in range(n_queries):
        hits[i] = bool(set(ground_truth[i]) & set(predicted[i][:k]))

    return float(np.mean(hits))


def mean_reciprocal_rank(ground_truth: IdLists, predicted: IdLists, k: Optional[int] = None) -> float:
    """
    Average of the reciprocal rank of the first relevant id for each query.

    Args:
        ground_truth: Relevant ids for each query
        predicted: Returned ids for each query, best first
        k: Optional limit on number of predictions to consider

    Returns:
        MRR score across all queries
    """
    n_queries = _check_lengths(ground_truth, predicted)
    if n_queries == 0:
        return 0.0

    reciprocal_ranks = np.zeros(n_queries)
    for i in range(n_queries):
        gt_set = set(ground_truth[i])
        ranked = predicted[i] if k is None else predicted[i][:k]
        for j, entity_id in enumerate(ranked):
            if entity_id in gt_set:
                reciprocal_ranks[i] = 1.0 / (j + 1)
                break

    return float(np.mean(reciprocal_ranks))


def compute_cost_latency(timing_data: List[float]) -> Dict[str, float]:
    """
    Calculate compute cost metrics based on query latency measurements.

    Args:
        timing_data: List of latency measurements in seconds for each query

    Returns:
        Dictionary containing latency statistics (mean, median, p95, p99, min, max)
    """
    timing_array = np.array(timing_data, dtype=np.float64)
    if timing_array.size == 0:
        return {key: 0.0 for key in ("mean", "median", "p95", "p99", "min", "max")}

    return {
        "mean": float(np.mean(timing_array)),
        "median": float(np.median(timing_array)),
        "p95": float(np.percentile(timing_array, 95)),
        "p99": float(np.percentile(timing_array, 99)),
        "min": float(np.min(timing_array)),
        "max": float(np.max(timing_array)),
    }
