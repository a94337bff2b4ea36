import numpy as np
import pytest

from semsearch.analysis.similarity_matrix import PairwiseSimilarity
from semsearch.utils.vector_utils import cosine_similarity, manhattan_distance


def test_cosine_matrix_values(basis_entries):
    matrix = PairwiseSimilarity().matrix(basis_entries)

    assert matrix.shape == (4, 4)
    np.testing.assert_array_equal(np.diag(matrix), np.ones(4))
    np.testing.assert_allclose(matrix, matrix.T)
    assert matrix[0, 1] == pytest.approx(cosine_similarity(basis_entries[0][1], basis_entries[1][1]))
    assert matrix[2, 3] == pytest.approx(0.0)


@pytest.mark.parametrize("metric", ["euclidean", "manhattan"])
def test_distance_matrix_keeps_unit_diagonal(basis_entries, metric):
    matrix = PairwiseSimilarity(metric=metric).matrix(basis_entries)
    np.testing.assert_array_equal(np.diag(matrix), np.ones(4))
    np.testing.assert_allclose(matrix, matrix.T)


def test_diagonal_override(basis_entries):
    matrix = PairwiseSimilarity(metric="manhattan").matrix(basis_entries, diagonal=0.0)
    np.testing.assert_array_equal(np.diag(matrix), np.zeros(4))
    assert matrix[0, 2] == manhattan_distance([1, 0, 0], [0, 1, 0]) == 2.0


def test_cache_hits_on_repeat(basis_entries):
    similarity = PairwiseSimilarity()
    similarity.matrix(basis_entries)
    assert similarity.cache_stats() == {"hits": 0, "misses": 6, "size": 6}

    similarity.matrix(list(reversed(basis_entries)))
    stats = similarity.cache_stats()
    assert stats["hits"] == 6
    assert stats["misses"] == 6


def test_cache_is_bounded(clustered_data):
    ids, vectors = clustered_data
    entries = list(zip(ids[:20], vectors[:20]))
    similarity = PairwiseSimilarity(cache_size=15)
    similarity.matrix(entries)
    assert len(similarity) == 15


def test_cache_can_be_disabled(basis_entries):
    similarity = PairwiseSimilarity(cache_size=0)
    similarity.matrix(basis_entries)
    similarity.matrix(basis_entries)
    assert similarity.cache_stats() == {"hits": 0, "misses": 12, "size": 0}


def test_invalidate_and_clear(basis_entries):
    similarity = PairwiseSimilarity()
    similarity.matrix(basis_entries)
    assert similarity.invalidate("a") == 3
    assert len(similarity) == 3

    updated = [("a", [0.0, 0.0, 1.0])] + basis_entries[1:]
    matrix = similarity.matrix(updated)
    assert matrix[0, 3] == pytest.approx(1.0)

    similarity.clear_cache()
    assert similarity.cache_stats() == {"hits": 0, "misses": 0, "size": 0}


def test_empty_entries_and_bad_cache_size():
    assert PairwiseSimilarity().matrix([]).shape == (0, 0)
    with pytest.raises(ValueError):
        PairwiseSimilarity(cache_size=-1)
