"""Pytest fixtures and helpers for the semsearch project."""
from __future__ import annotations

import sys
from pathlib import Path

import numpy as np
import pytest

# Ensure the repository root is importable for test modules.
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))


@pytest.fixture
def basis_entries():
    """Four 3-d embeddings: a and b nearly parallel, c and d orthogonal to a."""
    return [
        ("a", [1.0, 0.0, 0.0]),
        ("b", [0.9, 0.1, 0.0]),
        ("c", [0.0, 1.0, 0.0]),
        ("d", [0.0, 0.0, 1.0]),
    ]


def _make_clustered(seed: int = 0, n_vectors: int = 200, dim: int = 16, n_clusters: int = 8,
                   std: float = 0.1) -> tuple[list[str], np.ndarray]:
    rng = np.random.default_rng(seed)
    centres = rng.standard_normal((n_clusters, dim))
    labels = rng.integers(0, n_clusters, size=n_vectors)
    vectors = (centres[labels] + rng.standard_normal((n_vectors, dim)) * std).astype(np.float32)
    ids = [f"id-{i:04d}" for i in range(n_vectors)]
    return ids, vectors


@pytest.fixture
def clustered_data():
    return _make_clustered()


@pytest.fixture
def make_clustered():
    """Factory for clustered (ids, vectors) data with custom seed and shape."""
    return _make_clustered
