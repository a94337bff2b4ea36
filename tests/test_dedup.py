import pytest

from semsearch.algorithms.hnsw import HNSW
from semsearch.analysis.dedup import DeduplicationEngine, DuplicateConfidence


def test_confidence_levels():
    assert DuplicateConfidence.from_similarity(0.99) is DuplicateConfidence.HIGH
    assert DuplicateConfidence.from_similarity(0.95) is DuplicateConfidence.HIGH
    assert DuplicateConfidence.from_similarity(0.90) is DuplicateConfidence.MEDIUM
    assert DuplicateConfidence.from_similarity(0.80) is DuplicateConfidence.LOW
    assert DuplicateConfidence.from_similarity(0.50) is None


def _engine(threshold=0.75, **kwargs):
    engine = DeduplicationEngine(threshold=threshold, **kwargs)
    engine.add("s1", [1.0, 0.0, 0.0])
    engine.add("s2", [0.99, 0.01, 0.0])
    engine.add("s3", [0.8, 0.6, 0.0])
    engine.add("s4", [0.0, 0.0, 1.0])
    return engine


def test_pairs_are_canonical_unique_and_sorted():
    duplicates = _engine().find_duplicates()

    pairs = [(d.first_id, d.second_id) for d in duplicates]
    assert all(first < second for first, second in pairs)
    assert len(pairs) == len(set(pairs))
    similarities = [d.similarity for d in duplicates]
    assert similarities == sorted(similarities, reverse=True)

    assert pairs[0] == ("s1", "s2")
    assert duplicates[0].confidence is DuplicateConfidence.HIGH
    assert all("s4" not in pair for pair in pairs)


def test_threshold_filters_pairs():
    duplicates = _engine(threshold=0.95).find_duplicates()
    assert [(d.first_id, d.second_id) for d in duplicates] == [("s1", "s2")]


def test_low_threshold_still_requires_confidence():
    engine = DeduplicationEngine(threshold=0.1)
    engine.add("x", [1.0, 0.0])
    engine.add("y", [0.7, 0.7])
    assert engine.find_duplicates() == []


def test_graph_index_backend():
    engine = _engine(index=HNSW(M=4))
    assert engine.find_duplicates()[0].similarity == pytest.approx(0.99995, abs=1e-4)


def test_rejects_distance_index():
    with pytest.raises(ValueError):
        DeduplicationEngine(index=HNSW(metric="euclidean"))
