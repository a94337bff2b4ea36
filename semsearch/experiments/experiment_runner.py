"""Core experiment execution utilities."""

from __future__ import annotations

import copy
import json
import logging
import os
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

import numpy as np
import yaml

from .config import ExperimentConfig
from ..algorithms import ALGORITHM_REGISTRY, LSH, get_algorithm_instance
from ..algorithms.base_algorithm import BaseAlgorithm
from ..benchmark.dataset import SyntheticDataset
from ..benchmark.evaluation import Evaluator
from ..utils.timing import Timer


class ExperimentRunner:
    """Execute similarity search experiments for a dataset and index set."""

    def __init__(self, config: ExperimentConfig, output_dir: str = "results") -> None:
        self.config = config
        self.output_dir = output_dir
        self.dataset: Optional[SyntheticDataset] = None
        self.algorithms: Dict[str, BaseAlgorithm] = {}
        self.results: Dict[str, Dict[str, Any]] = {}
        self.experiment_id = datetime.now().strftime("%Y%m%d_%H%M%S")

        os.makedirs(self.output_dir, exist_ok=True)
        self.logger = logging.getLogger("experiment_runner")

    # ------------------------------------------------------------------
    # Dataset & algorithm registration
    # ------------------------------------------------------------------
    def load_dataset(self) -> None:
        """Generate the dataset defined in the configuration if not already loaded."""
        if self.dataset is not None:
            return

        options = dict(self.config.dataset_options)
        options.setdefault("n_queries", self.config.n_queries)
        self.logger.info(f"Loading dataset: {self.config.dataset}")
        dataset = SyntheticDataset(self.config.dataset, options=options, seed=self.config.seed,
                                   metric=self.config.metric)
        dataset.load(k=self.config.topk)
        self.dataset = dataset

    def register_algorithm(self, algorithm: BaseAlgorithm, name: Optional[str] = None) -> None:
        """Register an index implementation for the current experiment."""
        if not isinstance(algorithm, BaseAlgorithm):
            raise TypeError("algorithm must inherit from BaseAlgorithm")

        algorithm_name = name or algorithm.get_name()
        if not algorithm_name:
            raise ValueError("Algorithm name must be provided")

        # Keep the algorithm's internal name synchronized with registration name.
        if algorithm.name != algorithm_name:
            algorithm.name = algorithm_name

        self.algorithms[algorithm_name] = algorithm
        self.logger.info(f"Registered algorithm: {algorithm_name}")

    def register_configured_algorithms(self) -> None:
        """Instantiate every algorithm listed in the configuration via the registry."""
        self.load_dataset()
        assert self.dataset is not None  # mypy guard

        for alg_name, alg_config in self.config.algorithms.items():
            params = copy.deepcopy(alg_config)
            alg_type = params.pop("type")
            if ALGORITHM_REGISTRY.get(alg_type) is LSH:
                params.setdefault("seed", self.config.seed)
            algorithm = get_algorithm_instance(alg_type, self.dataset.dimension, name=alg_name, **params)
            self.register_algorithm(algorithm, name=alg_name)

    # ------------------------------------------------------------------
    # Core execution flow
    # ------------------------------------------------------------------
    def run(self) -> Dict[str, Dict[str, Any]]:
        """Run all registered algorithms and return their evaluation metrics."""
        if not self.algorithms:
            raise RuntimeError("No algorithms registered for the experiment")

        self.load_dataset()
        assert self.dataset is not None  # mypy guard

        ground_truth = self.dataset.get_ground_truth(self.config.topk)
        evaluator = Evaluator(ground_truth)
        self.results = {}

        for name, algorithm in self.algorithms.items():
            self.logger.info(f"Running experiment for algorithm: {name}")
            metrics, predicted, query_times = self._run_single_algorithm(name, algorithm)
            metrics.update(
                evaluator.evaluate(
                    name,
                    predicted,
                    query_times,
                    operation_counts=algorithm.get_operation_counts(),
                    build_time=metrics["build_time_s"],
                    memory_mb=metrics["index_memory_mb"],
                )
            )
            self.results[name] = metrics

        for name in self.results:
            self._save_algorithm_results(name, self.results[name])

        self._save_combined_results()

        evaluator.print_results()
        self._generate_plots(evaluator)

        self.logger.info("Experiment completed successfully.")
        return self.results

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------
    def _run_single_algorithm(
        self, name: str, algorithm: BaseAlgorithm
    ) -> Tuple[Dict[str, Any], List[List[str]], List[float]]:
        """Build the index, execute queries, and collect core metrics."""
        train_vectors = self.dataset.train_vectors
        test_queries = self.dataset.test_vectors

        # Build phase
        algorithm.reset_operation_counts()
        with Timer(f"{name} build") as build_timer:
            algorithm.build_index(train_vectors, self.dataset.ids)
        algorithm.reset_operation_counts()

        # Search phase
        k = self.config.topk
        predicted: List[List[str]] = []
        query_times: List[float] = []
        for query in test_queries:
            with Timer(f"{name} query", log=False) as query_timer:
                results = algorithm.query(query, k)
            predicted.append([entity_id for entity_id, _ in results])
            query_times.append(query_timer.elapsed_time)

        total_query_time = float(np.sum(query_times))
        metrics: Dict[str, Any] = {
            "algorithm": name,
            "parameters": algorithm.get_parameters(),
            "dataset": self.config.dataset,
            "n_train": int(len(algorithm)),
            "n_test": int(len(test_queries)),
            "dimensions": int(self.dataset.dimension),
            "topk": k,
            "build_time_s": float(build_timer.elapsed_time),
            "index_memory_mb": float(algorithm.get_memory_usage()),
            "total_query_time_s": total_query_time,
            "empty_results": int(sum(1 for ids in predicted if not ids)),
            "timestamp": datetime.now().isoformat(),
        }

        op_counts = algorithm.get_operation_counts()
        search_ops = float(op_counts.get("search_ops", 0.0))
        metrics["vector_similarity_ops"] = search_ops
        metrics["vector_similarity_ops_per_query"] = search_ops / max(len(test_queries), 1)
        source = op_counts.get("search_ops_source")
        if source:
            metrics["vector_similarity_ops_source"] = source

        return metrics, predicted, query_times

    def _save_algorithm_results(self, name: str, metrics: Dict[str, Any]) -> None:
        path = os.path.join(self.output_dir, f"{name}_results.json")
        with open(path, "w") as handle:
            json.dump(metrics, handle, indent=2, default=str)

    def _save_combined_results(self) -> None:
        combined_path = os.path.join(
            self.output_dir, f"{self.config.output_prefix}_all_results.json"
        )
        with open(combined_path, "w") as handle:
            json.dump(self.results, handle, indent=2, default=str)

        config_path = os.path.join(
            self.output_dir, f"{self.config.output_prefix}_{self.experiment_id}_config.yaml"
        )
        with open(config_path, "w") as handle:
            yaml.safe_dump(self.config.to_dict(), handle)

    def _generate_plots(self, evaluator: Evaluator) -> None:
        plots_dir = os.path.join(self.output_dir, f"plots_{self.experiment_id}")
        os.makedirs(plots_dir, exist_ok=True)

        evaluator.plot_recall_vs_qps(
            output_file=os.path.join(plots_dir, "recall_vs_qps.png"),
            title_suffix=self.config.dataset,
        )
        evaluator.plot_operations_vs_recall(
            output_file=os.path.join(plots_dir, "operations_vs_recall.png"),
            title_suffix=self.config.dataset,
        )
