from .config import ExperimentConfig
from .experiment_runner import ExperimentRunner

__all__ = ["ExperimentConfig", "ExperimentRunner"]
