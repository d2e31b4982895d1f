"""Test rank fusion."""
import pytest

from routekit.errors import ConfigurationError
from routekit.search import SearchResult, fuse, reciprocal_rank_fusion, weighted_score_fusion


def _results(source, *pairs):
    return [SearchResult(id=i, content=f"doc {i}", score=s, source=source) for i, s in pairs]


def test_rrf_fusion():
    dense = _results("dense", ("1", 0.9), ("2", 0.8))
    sparse = _results("sparse", ("2", 5.0), ("3", 4.0))

    fused = reciprocal_rank_fusion({"dense": dense, "sparse": sparse}, k=60, top_k=3)
    assert len(fused) == 3
    # Doc 2 should rank highest (appears in both)
    assert [r.id for r in fused] == ["2", "1", "3"]
    assert fused[0].source == "fused"
    assert fused[0].score == pytest.approx(1 / 62 + 1 / 61)
    assert fused[0].metadata["sources"] == ["dense", "sparse"]
    assert fused[2].metadata["sources"] == ["sparse"]


def test_rrf_score_ordering():
    dense = _results("dense", ("a", 0.9), ("b", 0.5))
    sparse = _results("sparse", ("b", 3.0), ("c", 1.0))
    fused = reciprocal_rank_fusion({"dense": dense, "sparse": sparse}, top_k=5)
    # Scores should be descending
    for i in range(len(fused) - 1):
        assert fused[i].score >= fused[i + 1].score


def test_rrf_weights():
    dense = _results("dense", ("1", 0.9), ("2", 0.8))
    sparse = _results("sparse", ("3", 5.0))

    fused = reciprocal_rank_fusion(
        {"dense": dense, "sparse": sparse}, weights={"dense": 1.0, "sparse": 0.0},
    )
    assert [r.id for r in fused] == ["1", "2", "3"]
    assert fused[2].score == 0.0


def test_rrf_ties_break_on_best_rank_then_id():
    dense = _results("dense", ("b", 0.9))
    sparse = _results("sparse", ("a", 5.0))
    fused = reciprocal_rank_fusion({"dense": dense, "sparse": sparse})
    assert fused[0].score == fused[1].score
    assert [r.id for r in fused] == ["a", "b"]


def test_rrf_duplicate_ids_within_source_count_once():
    dense = _results("dense", ("x", 0.9), ("x", 0.8), ("y", 0.7))
    fused = reciprocal_rank_fusion({"dense": dense}, k=60)
    assert [r.id for r in fused] == ["x", "y"]
    assert fused[0].score == pytest.approx(1 / 61)
    assert fused[1].score == pytest.approx(1 / 63)


def test_rrf_rejects_non_positive_k():
    with pytest.raises(ConfigurationError):
        reciprocal_rank_fusion({"dense": []}, k=0)


def test_negative_weight_rejected():
    with pytest.raises(ConfigurationError):
        reciprocal_rank_fusion({"dense": _results("dense", ("1", 1.0))}, weights={"dense": -1.0})


def test_empty_inputs():
    assert reciprocal_rank_fusion({}) == []
    assert weighted_score_fusion({"dense": [], "sparse": []}) == []


def test_weighted_score_fusion():
    dense = _results("dense", ("a", 0.9), ("b", 0.5), ("c", 0.1))
    sparse = _results("sparse", ("c", 10.0), ("a", 0.0))

    fused = weighted_score_fusion({"dense": dense, "sparse": sparse}, weights={"dense": 0.5, "sparse": 0.5})
    assert [r.id for r in fused] == ["a", "c", "b"]
    assert fused[0].score == pytest.approx(0.5)
    assert fused[1].score == pytest.approx(0.5)
    assert fused[2].score == pytest.approx(0.25)


def test_fuse_dispatch():
    ranked = {"dense": _results("dense", ("1", 0.9), ("2", 0.1))}
    assert fuse("rrf", ranked)[0].score == pytest.approx(1 / 61)
    assert fuse("weighted", ranked)[0].score == pytest.approx(1.0)
    with pytest.raises(ValueError):
        fuse("borda", ranked)
