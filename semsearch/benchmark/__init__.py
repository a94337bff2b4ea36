from .dataset import SyntheticDataset
from .evaluation import Evaluator
from .metrics import (
    compute_cost_latency,
    hit_rate_at_k,
    mean_average_precision,
    mean_reciprocal_rank,
    ndcg_at_k,
    precision_at_k,
    recall_at_k,
)

__all__ = [
    "SyntheticDataset",
    "Evaluator",
    "compute_cost_latency",
    "hit_rate_at_k",
    "mean_average_precision",
    "mean_reciprocal_rank",
    "ndcg_at_k",
    "precision_at_k",
    "recall_at_k",
]
