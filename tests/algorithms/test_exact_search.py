import numpy as np
import pytest

from semsearch.algorithms.exact_search import ExactSearch


def _build(entries, metric="cosine"):
    index = ExactSearch(metric=metric)
    for entity_id, embedding in entries:
        assert index.add(entity_id, embedding)
    return index


def test_cosine_top_two(basis_entries):
    index = _build(basis_entries)
    results = index.query([1.0, 0.0, 0.0], k=2)

    assert [entity_id for entity_id, _ in results] == ["a", "b"]
    assert results[0][1] == pytest.approx(1.0)
    assert results[1][1] == pytest.approx(0.9 / np.sqrt(0.82), abs=1e-4)
    assert results[1][1] == pytest.approx(0.994, abs=1e-3)


def test_result_length_and_order(clustered_data):
    ids, vectors = clustered_data
    index = ExactSearch(dimension=vectors.shape[1])
    index.build_index(vectors, ids)

    for k in (0, 1, 5, len(ids), len(ids) + 10):
        results = index.query(vectors[3], k)
        assert len(results) == min(max(k, 0), len(ids))
        scores = [s for _, s in results]
        assert scores == sorted(scores, reverse=True)


def test_euclidean_scores_are_negated_distances(basis_entries):
    index = _build(basis_entries, metric="euclidean")
    results = index.query([0.0, 0.0, 1.0], k=1)
    assert results == [("d", pytest.approx(0.0))]
    worst = index.query([0.0, 0.0, 1.0], k=4)[-1]
    assert worst[1] == pytest.approx(-np.sqrt(2.0))


def test_degraded_queries_return_empty(basis_entries):
    assert ExactSearch().query([1.0, 0.0, 0.0], k=3) == []

    index = _build(basis_entries)
    assert index.query([1.0, 0.0], k=3) == []
    assert index.query([1.0, 0.0, 0.0], k=0) == []
    assert not index.add("e", [1.0, 2.0])
    assert "e" not in index


def test_add_overwrites_and_remove_returns_embedding(basis_entries):
    index = _build(basis_entries)
    index.add("a", [0.0, 0.0, 1.0])
    assert len(index) == 4
    assert index.query([0.0, 0.0, 1.0], k=2)[0][0] == "a"

    removed = index.remove("a")
    np.testing.assert_array_equal(removed, [0.0, 0.0, 1.0])
    assert index.remove("a") is None
    assert "a" not in [entity_id for entity_id, _ in index.query([0.0, 0.0, 1.0], k=4)]


def test_ties_are_ordered_by_id():
    index = ExactSearch()
    for entity_id in ("z", "m", "b"):
        index.add(entity_id, [1.0, 1.0])
    assert [entity_id for entity_id, _ in index.query([1.0, 1.0], k=3)] == ["b", "m", "z"]


def test_clear_allows_new_dimension(basis_entries):
    index = _build(basis_entries)
    index.clear()
    assert len(index) == 0
    assert index.add("x", [1.0, 2.0])
    assert index.dimension == 2


def test_operation_counts_track_comparisons(basis_entries):
    index = _build(basis_entries)
    index.query([1.0, 0.0, 0.0], k=1)
    index.query([0.0, 1.0, 0.0], k=1)
    counts = index.get_operation_counts()
    assert counts["search_ops"] == pytest.approx(8.0)
    assert counts["search_ops_source"] == "python.bruteforce"


def test_batch_query_and_memory(basis_entries):
    index = _build(basis_entries)
    batches = index.batch_query(np.eye(3, dtype=np.float32), k=1)
    assert [results[0][0] for results in batches] == ["a", "c", "d"]
    assert index.get_memory_usage() > 0.0
    assert "size=4" in str(index)


def test_empty_embedding_does_not_fix_dimension():
    index = ExactSearch()
    assert not index.add("z", [])
    assert index.dimension is None
    assert len(index) == 0
    assert index.add("a", [1.0])
    assert index.dimension == 1
    assert index.query([], k=1) == []
