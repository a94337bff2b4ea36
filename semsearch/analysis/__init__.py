from .clustering import Cluster, ClusteringAlgorithm, ClusteringConfig, ClusteringEngine
from .dedup import DeduplicationEngine, DuplicateCandidate, DuplicateConfidence
from .hybrid import HybridSearch, HybridSearchConfig, HybridSearchResult
from .similarity_matrix import PairwiseSimilarity

__all__ = [
    "Cluster",
    "ClusteringAlgorithm",
    "ClusteringConfig",
    "ClusteringEngine",
    "DeduplicationEngine",
    "DuplicateCandidate",
    "DuplicateConfidence",
    "HybridSearch",
    "HybridSearchConfig",
    "HybridSearchResult",
    "PairwiseSimilarity",
]
