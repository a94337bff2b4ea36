import yaml
import copy
from typing import Dict, Any


class ExperimentConfig:
    """
    Configuration for similarity search benchmark experiments.
    """

    def __init__(self, **kwargs):
        """
        Initialize configuration with default values.

        Args:
            **kwargs: Override default values
        """
        # Dataset configuration
        self.dataset = kwargs.get("dataset", "synthetic")
        self.dataset_options = copy.deepcopy(kwargs.get("dataset_options", {}))

        # Experiment parameters
        self.n_queries = kwargs.get("n_queries", 100)  # Number of test queries to run
        self.topk = kwargs.get("topk", 10)  # Number of nearest neighbors to retrieve
        if int(self.topk) <= 0:
            raise ValueError("topk must be positive")

        # Algorithm configurations
        default_algorithms = {
            "exact": {"type": "ExactSearch"},
            "lsh": {"type": "LSH", "num_tables": 4, "hash_size": 8},
            "graph": {"type": "HNSW", "M": 16},
        }
        self.algorithms = copy.deepcopy(kwargs.get("algorithms", default_algorithms))
        for name, alg_config in self.algorithms.items():
            if not isinstance(alg_config, dict) or "type" not in alg_config:
                raise ValueError(f"Algorithm '{name}' must be a mapping with a 'type' key")

        # Dataset-wide metric preference
        self.metric = kwargs.get("metric", "cosine")
        for alg_config in self.algorithms.values():
            alg_config.setdefault("metric", self.metric)

        # Additional parameters
        self.seed = kwargs.get("seed", 42)  # Random seed for reproducibility
        self.output_prefix = kwargs.get("output_prefix", "experiment")  # Prefix for output files

    @classmethod
    def from_yaml(cls, yaml_file: str) -> 'ExperimentConfig':
        """
        Load configuration from a YAML file.

        Args:
            yaml_file: Path to YAML configuration file

        Returns:
            ExperimentConfig instance
        """
        with open(yaml_file, 'r') as f:
            config_dict = yaml.safe_load(f) or {}

        return cls(**config_dict)

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert configuration to dictionary.

        Returns:
            Dictionary representation of configuration
        """
        return {
            "dataset": self.dataset,
            "dataset_options": self.dataset_options,
            "n_queries": self.n_queries,
            "topk": self.topk,
            "metric": self.metric,
            "algorithms": self.algorithms,
            "seed": self.seed,
            "output_prefix": self.output_prefix,
        }

    def save(self, output_file: str) -> None:
        """
        Save configuration to a YAML file.

        Args:
            output_file: Path to save configuration
        """
        with open(output_file, 'w') as f:
            yaml.dump(self.to_dict(), f)

    def __str__(self) -> str:
        return yaml.dump(self.to_dict())
