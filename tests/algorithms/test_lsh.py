import numpy as np
import pytest

from semsearch.algorithms.exact_search import ExactSearch
from semsearch.algorithms.lsh import LSH


def _build(ids, vectors, **params):
    index = LSH(dimension=vectors.shape[1] if hasattr(vectors, "shape") else len(vectors[0]), **params)
    index.build_index(vectors, ids)
    return index


@pytest.mark.parametrize("seed", range(25))
def test_top_result_matches_exact_on_small_set(basis_entries, seed):
    ids = [entity_id for entity_id, _ in basis_entries]
    vectors = [embedding for _, embedding in basis_entries]
    lsh = _build(ids, vectors, num_tables=4, hash_size=8, seed=seed)
    exact = ExactSearch()
    exact.build_index(vectors, ids)

    query = [1.0, 0.0, 0.0]
    results = lsh.query(query, k=2)
    assert len(results) <= 2
    assert results[0][0] == exact.query(query, k=1)[0][0]


def test_returned_scores_are_exact(clustered_data):
    ids, vectors = clustered_data
    lsh = _build(ids, vectors, num_tables=6, hash_size=6, seed=1)
    exact = ExactSearch()
    exact.build_index(vectors, ids)
    exact_scores = dict(exact.query(vectors[0], k=len(ids)))

    results = lsh.query(vectors[0], k=10)
    assert results
    for entity_id, score in results:
        assert score == pytest.approx(exact_scores[entity_id], abs=1e-6)
    scores = [s for _, s in results]
    assert scores == sorted(scores, reverse=True)


def test_query_metric_override(basis_entries):
    ids = [entity_id for entity_id, _ in basis_entries]
    vectors = [embedding for _, embedding in basis_entries]
    lsh = _build(ids, vectors, num_tables=4, hash_size=2, seed=0)

    results = lsh.query([1.0, 0.0, 0.0], k=1, metric="manhattan")
    assert results == [("a", pytest.approx(0.0))]


def test_same_seed_assigns_identical_buckets(clustered_data):
    ids, vectors = clustered_data
    first = _build(ids, vectors, num_tables=3, hash_size=8, seed=123)
    second = _build(ids, vectors, num_tables=3, hash_size=8, rng=np.random.default_rng(123))

    np.testing.assert_array_equal(first.projections, second.projections)
    for table_a, table_b in zip(first.tables, second.tables):
        assert {k: sorted(v) for k, v in table_a.items()} == {k: sorted(v) for k, v in table_b.items()}


def test_more_tables_never_shrink_candidates(clustered_data):
    ids, vectors = clustered_data
    small = _build(ids, vectors, num_tables=2, hash_size=8, seed=5)
    large = _build(ids, vectors, num_tables=6, hash_size=8, seed=5)

    np.testing.assert_array_equal(large.projections[:2], small.projections)
    for query in vectors[:20]:
        assert set(small.candidates(query)) <= set(large.candidates(query))


def test_more_bits_never_grow_candidates(clustered_data):
    ids, vectors = clustered_data
    rng = np.random.default_rng(9)
    projections = rng.uniform(-1.0, 1.0, size=(4, 10, vectors.shape[1]))
    coarse = _build(ids, vectors, num_tables=4, hash_size=5, projections=projections[:, :5, :])
    fine = _build(ids, vectors, num_tables=4, hash_size=10, projections=projections)

    for query in vectors[:20]:
        assert set(fine.candidates(query)) <= set(coarse.candidates(query))


def test_degraded_inputs(basis_entries):
    lsh = LSH(dimension=3, seed=0)
    assert lsh.query([1.0, 0.0, 0.0], k=2) == []

    for entity_id, embedding in basis_entries:
        lsh.add(entity_id, embedding)
    assert not lsh.add("bad", [1.0, 0.0])
    assert "bad" not in lsh
    assert lsh.query([1.0, 0.0], k=2) == []
    assert lsh.query([1.0, 0.0, 0.0], k=0) == []
    assert lsh.signature([1.0]) is None
    assert lsh.candidates([1.0]) == []


def test_remove_cleans_buckets(basis_entries):
    lsh = LSH(dimension=3, num_tables=3, hash_size=4, seed=2)
    for entity_id, embedding in basis_entries:
        lsh.add(entity_id, embedding)

    removed = lsh.remove("a")
    np.testing.assert_array_equal(removed, [1.0, 0.0, 0.0])
    assert lsh.remove("a") is None
    assert "a" not in lsh.candidates([1.0, 0.0, 0.0])
    for table in lsh.tables:
        assert all(bucket for bucket in table.values())
        assert sum(len(bucket) for bucket in table.values()) == 3


def test_readd_moves_entity_to_new_buckets():
    lsh = LSH(dimension=2, num_tables=2, hash_size=4, seed=0)
    lsh.add("x", [1.0, 0.0])
    lsh.add("x", [-1.0, 0.0])
    assert len(lsh) == 1
    for table in lsh.tables:
        assert sum(len(bucket) for bucket in table.values()) == 1
    assert lsh.signature([-1.0, 0.0]) == lsh._signatures[lsh.arena.slot_of("x")]


def test_bucket_stats(clustered_data):
    ids, vectors = clustered_data
    lsh = _build(ids, vectors, num_tables=2, hash_size=4, seed=0)
    stats = lsh.bucket_stats()
    assert len(stats) == 2
    for table_stats in stats:
        assert 1 <= table_stats["buckets"] <= 16
        assert table_stats["max_bucket"] >= table_stats["mean_bucket"] > 0


@pytest.mark.parametrize(
    "params",
    [
        {"num_tables": 0},
        {"hash_size": 0},
        {"hash_size": 64},
        {"dimension": 0},
        {"projections": np.zeros((1, 1, 1))},
    ],
)
def test_invalid_construction(params):
    kwargs = {"dimension": 3, "num_tables": 2, "hash_size": 4}
    kwargs.update(params)
    with pytest.raises(ValueError):
        LSH(**kwargs)


def test_projections_are_read_only():
    lsh = LSH(dimension=3, seed=0)
    with pytest.raises(ValueError):
        lsh.projections[0, 0, 0] = 1.0
