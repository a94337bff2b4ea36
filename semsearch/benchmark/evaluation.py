import logging
from typing import Any, Dict, List, Optional, Sequence

import matplotlib.pyplot as plt
import numpy as np
import pandas as pd

from .metrics import (
    compute_cost_latency,
    hit_rate_at_k,
    mean_average_precision,
    mean_reciprocal_rank,
    ndcg_at_k,
    precision_at_k,
    recall_at_k,
)

logger = logging.getLogger(__name__)

METRIC_ORDER = [
    'recall@1', 'recall@10', 'recall@100',
    'precision@1', 'precision@10', 'precision@100',
    'map@10', 'ndcg@10', 'hit_rate@10', 'mrr',
    'qps', 'mean_query_time', 'median_query_time', 'p95_query_time',
    'min_query_time', 'max_query_time',
    'search_ops_per_query', 'build_time', 'memory_mb',
]


class Evaluator:
    """
    Class for evaluating retrieval results against exact ground truth ids.
    """

    def __init__(self, ground_truth: Sequence[Sequence[str]]):
        """
        Initialize the evaluator.

        Args:
            ground_truth: Exact top ids for each test query, best first
        """
        self.ground_truth = [list(truth) for truth in ground_truth]
        self.results: Dict[str, Dict[str, Any]] = {}

    def evaluate(self, algorithm_name: str, predicted_ids: Sequence[Sequence[str]],
                 query_times: Sequence[float], operation_counts: Optional[Dict[str, Any]] = None,
                 build_time: Optional[float] = None, memory_mb: Optional[float] = None) -> Dict[str, Any]:
        """
        Evaluate the retrieval results against ground truth.

        Args:
            algorithm_name: Name of the algorithm
            predicted_ids: Returned ids for each query, best first
            query_times: Query times in seconds for each query
            operation_counts: Accumulated counters from the index (e.g. search_ops)
            build_time: Index build time in seconds
            memory_mb: Memory held by the index

        Returns:
            Dictionary of evaluation metrics
        """
        predicted = [list(ids) for ids in predicted_ids]
        depth = max((len(truth) for truth in self.ground_truth), default=0)
        metrics: Dict[str, Any] = {}

        # Calculate retrieval metrics at different k values
        for k in (1, 10, 100):
            if k <= depth:
                metrics[f'recall@{k}'] = recall_at_k(self.ground_truth, predicted, k)
                metrics[f'precision@{k}'] = precision_at_k(self.ground_truth, predicted, k)

        if depth >= 10:
            metrics['map@10'] = mean_average_precision(self.ground_truth, predicted, 10)
            metrics['ndcg@10'] = ndcg_at_k(self.ground_truth, predicted, 10)
            metrics['hit_rate@10'] = hit_rate_at_k(self.ground_truth, predicted, 10)
        metrics['mrr'] = mean_reciprocal_rank(self.ground_truth, predicted)

        # Query time statistics (ms)
        latency = compute_cost_latency(list(query_times))
        metrics['qps'] = 1.0 / latency['mean'] if latency['mean'] > 0 else 0.0
        metrics['mean_query_time'] = latency['mean'] * 1000
        metrics['median_query_time'] = latency['median'] * 1000
        metrics['p95_query_time'] = latency['p95'] * 1000
        metrics['min_query_time'] = latency['min'] * 1000
        metrics['max_query_time'] = latency['max'] * 1000

        if operation_counts:
            n_queries = max(len(predicted), 1)
            metrics['search_ops_per_query'] = float(operation_counts.get('search_ops', 0.0)) / n_queries
            if 'search_ops_source' in operation_counts:
                metrics['search_ops_source'] = operation_counts['search_ops_source']
        if build_time is not None:
            metrics['build_time'] = float(build_time)
        if memory_mb is not None:
            metrics['memory_mb'] = float(memory_mb)

        self.results[algorithm_name] = metrics
        logger.info(f"{algorithm_name}: recall@1={metrics.get('recall@1', float('nan')):.4f}, qps={metrics['qps']:.1f}")
        return metrics

    def summary_frame(self) -> pd.DataFrame:
        """
        Results as a DataFrame, one row per algorithm, columns in a fixed order.
        """
        if not self.results:
            return pd.DataFrame()
        df = pd.DataFrame(self.results).T
        available_metrics = [m for m in METRIC_ORDER if m in df.columns]
        return df[available_metrics].astype(float)

    def print_results(self):
        """
        Print a summary of evaluation results for all algorithms.
        """
        if not self.results:
            print("No evaluation results available.")
            return

        print("\nEvaluation Results:\n")
        print(self.summary_frame().round(4))

    def plot_recall_vs_qps(self, output_file: Optional[str] = None, title_suffix: Optional[str] = None):
        """
        Plot recall@k vs queries per second for all algorithms.

        Args:
            output_file: Optional file to save the plot
            title_suffix: Optional text appended to the title (e.g. dataset name)
        """
        if not self.results:
            print("No evaluation results available for plotting.")
            return

        algorithms = list(self.results.keys())
        recall_key = 'recall@10' if any('recall@10' in self.results[a] for a in algorithms) else 'recall@1'
        recalls = [self.results[alg].get(recall_key, 0) for alg in algorithms]
        qps = [self.results[alg].get('qps', 0) for alg in algorithms]

        self._scatter(
            qps, recalls, algorithms,
            xlabel='Queries Per Second (QPS)',
            ylabel=recall_key.capitalize(),
            title=self._title('Retrieval Accuracy vs Speed', title_suffix),
            output_file=output_file,
        )

    def plot_operations_vs_recall(self, output_file: Optional[str] = None, title_suffix: Optional[str] = None):
        """
        Plot recall against vector comparisons per query.

        Algorithms without operation counts fall back to QPS on the x axis.
        """
        if not self.results:
            print("No evaluation results available for plotting.")
            return

        algorithms = list(self.results.keys())
        has_ops = all('search_ops_per_query' in self.results[alg] for alg in algorithms)
        x_key = 'search_ops_per_query' if has_ops else 'qps'
        recall_key = 'recall@10' if any('recall@10' in self.results[a] for a in algorithms) else 'recall@1'
        xs = [self.results[alg].get(x_key, 0) for alg in algorithms]
        recalls = [self.results[alg].get(recall_key, 0) for alg in algorithms]

        self._scatter(
            xs, recalls, algorithms,
            xlabel='Vector comparisons per query' if has_ops else 'Queries Per Second (QPS)',
            ylabel=recall_key.capitalize(),
            title=self._title('Search Operations vs Recall', title_suffix),
            output_file=output_file,
        )

    @staticmethod
    def _title(base: str, suffix: Optional[str]) -> str:
        return f"{base} ({suffix})" if suffix else base

    @staticmethod
    def _scatter(xs: List[float], ys: List[float], labels: List[str], xlabel: str, ylabel: str,
                 title: str, output_file: Optional[str]) -> None:
        fig, ax = plt.subplots(figsize=(10, 6))
        ax.scatter(xs, ys, s=100)

        # Add labels for each point
        for x, y, label in zip(xs, ys, labels):
            ax.annotate(label, (x, y), fontsize=9, xytext=(5, 5), textcoords='offset points')

        ax.set_xlabel(xlabel)
        ax.set_ylabel(ylabel)
        ax.set_title(title)
        ax.grid(True, linestyle='--', alpha=0.7)
        positive = [x for x in xs if x > 0]
        if positive:
            ax.set_xlim(min(positive) * 0.8, max(positive) * 1.2)
        ax.set_ylim(0, 1.05)

        if output_file:
            fig.savefig(output_file, dpi=150, bbox_inches='tight')
            logger.info(f"Plot saved to {output_file}")
        else:
            fig.tight_layout()
            plt.show()
        plt.close(fig)

    def get_results(self) -> Dict[str, Dict[str, Any]]:
        return self.results
