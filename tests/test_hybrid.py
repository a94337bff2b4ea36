import pytest

from semsearch.algorithms.exact_search import ExactSearch
from semsearch.algorithms.hnsw import HNSW
from semsearch.analysis.hybrid import HybridSearch, HybridSearchConfig


def test_presets():
    assert HybridSearchConfig.balanced(5) == HybridSearchConfig(0.5, 0.5, 5)
    assert HybridSearchConfig.keyword_focused(5) == HybridSearchConfig(0.7, 0.3, 5)
    assert HybridSearchConfig.vector_focused(5) == HybridSearchConfig(0.3, 0.7, 5)
    assert HybridSearchConfig() == HybridSearchConfig.balanced(10)


def _search(config, basis_entries, index=None):
    search = HybridSearch(config, index=index)
    for entity_id, embedding in basis_entries:
        search.add(entity_id, embedding)
    return search


def test_combines_keyword_and_vector_scores(basis_entries):
    search = _search(HybridSearchConfig.balanced(top_k=2), basis_entries, index=ExactSearch())
    results = search.search([1.0, 0.0, 0.0], {"b": 1.0})

    assert [r.entity_id for r in results] == ["b", "a"]
    top = results[0]
    assert top.keyword_score == 1.0
    assert top.combined_score == pytest.approx(0.5 * 1.0 + 0.5 * top.vector_score)
    assert results[1].keyword_score == 0.0
    assert results[1].combined_score == pytest.approx(0.5)


def test_keyword_only_entities_are_included(basis_entries):
    search = _search(HybridSearchConfig.keyword_focused(top_k=3), basis_entries, index=ExactSearch())
    results = search.search([1.0, 0.0, 0.0], {"external": 1.0})

    by_id = {r.entity_id: r for r in results}
    assert "external" in by_id
    assert by_id["external"].vector_score == 0.0
    assert by_id["external"].combined_score == pytest.approx(0.7)
    assert len(results) == 3


def test_vector_focused_prefers_similarity(basis_entries):
    search = _search(HybridSearchConfig.vector_focused(top_k=1), basis_entries, index=ExactSearch())
    results = search.search([1.0, 0.0, 0.0], {"c": 0.5})
    assert results[0].entity_id == "a"


def test_default_index_matches_exact_search_on_clustered_data(make_clustered):
    ids, vectors = make_clustered(seed=3, n_vectors=600, dim=16, n_clusters=12, std=0.1)
    search = HybridSearch(HybridSearchConfig.vector_focused(top_k=5))
    exact = ExactSearch()
    for entity_id, vector in zip(ids, vectors):
        assert search.add(entity_id, vector)
        exact.add(entity_id, vector)

    for query in vectors[::50]:
        expected = [entity_id for entity_id, _ in exact.query(query, k=5)]
        assert [r.entity_id for r in search.search(query, {})] == expected


def test_rejects_distance_metric_index():
    with pytest.raises(ValueError):
        HybridSearch(index=ExactSearch(metric="euclidean"))
    with pytest.raises(ValueError):
        HybridSearch(index=HNSW(metric="manhattan"))
    assert isinstance(HybridSearch(index=HNSW()).index, HNSW)
