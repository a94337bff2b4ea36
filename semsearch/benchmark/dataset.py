import logging
from typing import Any, Dict, List, Optional

import numpy as np
from tqdm import tqdm

from ..algorithms.exact_search import ExactSearch
from ..utils.timing import time_function
from ..utils.vector_utils import Metric

logger = logging.getLogger(__name__)


class SyntheticDataset:
    """
    Clustered Gaussian embeddings for benchmarking the indices.

    Stored vectors are drawn around ``n_clusters`` random centres; queries are drawn
    near the same centres so that every query has a meaningful neighbourhood. Ground
    truth is the exact top-k under the configured metric.
    """

    DEFAULT_OPTIONS = {
        "n_vectors": 2000,
        "n_queries": 100,
        "dimension": 64,
        "n_clusters": 16,
        "cluster_std": 0.15,
    }

    def __init__(self, name: str = "synthetic", options: Optional[Dict[str, Any]] = None,
                 seed: int = 42, metric: str = "cosine"):
        """
        Initialize the dataset.

        Args:
            name: Name used in logs and results
            options: Overrides for DEFAULT_OPTIONS
            seed: Random seed for reproducibility
            metric: Metric used to compute ground truth
        """
        self.name = name
        self.options = dict(self.DEFAULT_OPTIONS)
        self.options.update(options or {})
        for key in ("n_vectors", "n_queries", "dimension"):
            if int(self.options[key]) <= 0:
                raise ValueError(f"{key} must be positive")
        if int(self.options["n_clusters"]) <= 0:
            raise ValueError("n_clusters must be positive")

        self.seed = seed
        self.metric = Metric.parse(metric)
        self.train_vectors: Optional[np.ndarray] = None
        self.test_vectors: Optional[np.ndarray] = None
        self.ids: List[str] = []
        self.ground_truth: Optional[List[List[str]]] = None
        self.ground_truth_k = 0
        self.loaded = False

    @property
    def dimension(self) -> int:
        return int(self.options["dimension"])

    def load(self, k: int = 10) -> None:
        """
        Generate vectors and compute ground truth for the top-k.

        Args:
            k: Number of ground truth neighbors per query
        """
        rng = np.random.default_rng(self.seed)
        n_vectors = int(self.options["n_vectors"])
        n_queries = int(self.options["n_queries"])
        n_clusters = int(self.options["n_clusters"])
        cluster_std = float(self.options["cluster_std"])

        centres = rng.standard_normal((n_clusters, self.dimension))
        assignments = rng.integers(0, n_clusters, size=n_vectors)
        noise = rng.standard_normal((n_vectors, self.dimension)) * cluster_std
        self.train_vectors = (centres[assignments] + noise).astype(np.float32)

        query_assignments = rng.integers(0, n_clusters, size=n_queries)
        query_noise = rng.standard_normal((n_queries, self.dimension)) * cluster_std
        self.test_vectors = (centres[query_assignments] + query_noise).astype(np.float32)

        self.ids = [f"entity-{i:05d}" for i in range(n_vectors)]
        logger.info(
            f"Generated {self.name}: {n_vectors} vectors, {n_queries} queries, "
            f"dimension {self.dimension}, {n_clusters} clusters"
        )

        self._compute_ground_truth(k)
        self.loaded = True

    @time_function
    def _compute_ground_truth(self, k: int) -> None:
        exact = ExactSearch(name="ground_truth", dimension=self.dimension, metric=self.metric)
        exact.build_index(self.train_vectors, self.ids)

        self.ground_truth = []
        for query in tqdm(self.test_vectors, desc="Computing ground truth"):
            self.ground_truth.append([entity_id for entity_id, _ in exact.query(query, k)])
        self.ground_truth_k = k

    def get_ground_truth(self, k: int = 10) -> List[List[str]]:
        """
        Get the exact top-k ids for each query, regenerating if needed.

        Returns:
            List of id lists, best first
        """
        if not self.loaded or self.ground_truth_k < k:
            self.load(k)
        return [truth[:k] for truth in self.ground_truth]
