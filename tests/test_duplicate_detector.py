import pytest

from tc_dedup.analysis.duplicate_detector import DuplicateDetector, SimilarityLookup
from tc_dedup.analysis.graph_clustering import group_by_threshold
from tc_dedup.config.analysis_config import ClusterLinkage
from tc_dedup.data.models import SimilarityPair


def _chain_pairs():
    return [
        SimilarityPair("A", "B", 85.0),
        SimilarityPair("A", "C", 40.0),
        SimilarityPair("B", "C", 85.0),
    ]


def test_transitive_merge_builds_one_cluster():
    groups = DuplicateDetector(similarity_threshold=80).detect_duplicates(["A", "B", "C"], _chain_pairs())

    assert len(groups) == 1
    assert groups[0].keys == ["A", "B", "C"]
    assert groups[0].average_similarity == 70.0


def test_complete_linkage_requires_every_pair():
    detector = DuplicateDetector(similarity_threshold=80, linkage=ClusterLinkage.COMPLETE)
    groups = detector.detect_duplicates(["A", "B", "C"], _chain_pairs())

    assert [group.keys for group in groups] == [["A", "B"]]


def test_singletons_are_not_reported():
    pairs = [SimilarityPair("A", "B", 20.0)]
    assert DuplicateDetector().detect_duplicates(["A", "B"], pairs) == []


def test_groups_sorted_by_average_then_size():
    keys = ["A", "B", "C", "D", "E", "F", "G"]
    pairs = [
        SimilarityPair("A", "B", 82.0),
        SimilarityPair("C", "D", 100.0),
        SimilarityPair("E", "F", 100.0),
        SimilarityPair("E", "G", 100.0),
        SimilarityPair("F", "G", 100.0),
    ]
    groups = DuplicateDetector().detect_duplicates(keys, pairs)

    assert [group.keys for group in groups] == [["E", "F", "G"], ["C", "D"], ["A", "B"]]


def test_pairs_outside_the_eligible_keys_are_ignored():
    pairs = [SimilarityPair("A", "B", 95.0), SimilarityPair("B", "Z", 95.0)]
    groups = DuplicateDetector().detect_duplicates(["A", "B"], pairs)
    assert [group.keys for group in groups] == [["A", "B"]]


def test_group_above_threshold():
    groups = DuplicateDetector(similarity_threshold=80).detect_duplicates(["A", "B", "C"], _chain_pairs())
    assert len(groups[0].above(80)) == 2


def test_similarity_lookup_is_symmetric():
    lookup = SimilarityLookup(_chain_pairs())
    assert lookup.percentage("C", "A") == 40.0
    assert lookup.percentage("A", "C") == 40.0
    assert lookup.percentage("A", "A") == 100.0
    assert lookup.percentage("A", "Z") == 0.0


def test_group_by_threshold_returns_singletons_in_node_order():
    groups = group_by_threshold(["x", "y", "z"], [("z", "y", 90.0)], 80.0)
    assert groups == [["x"], ["y", "z"]]


def test_complete_linkage_needs_score_lookup():
    with pytest.raises(ValueError):
        group_by_threshold(["x", "y"], [("x", "y", 90.0)], 80.0, ClusterLinkage.COMPLETE)


def test_raising_threshold_can_split_a_chain():
    keys = ["A", "B", "C", "D"]
    pairs = [
        SimilarityPair("A", "B", 95.0),
        SimilarityPair("A", "C", 40.0),
        SimilarityPair("A", "D", 30.0),
        SimilarityPair("B", "C", 75.0),
        SimilarityPair("B", "D", 40.0),
        SimilarityPair("C", "D", 95.0),
    ]
    loose = DuplicateDetector(similarity_threshold=70).detect_duplicates(keys, pairs)
    strict = DuplicateDetector(similarity_threshold=90).detect_duplicates(keys, pairs)

    assert [group.keys for group in loose] == [["A", "B", "C", "D"]]
    assert [group.keys for group in strict] == [["A", "B"], ["C", "D"]]

    # More clusters, but each one nested in a looser cluster and fewer duplicates overall
    for group in strict:
        assert set(group.keys) <= set(loose[0].keys)
    assert sum(len(g.keys) - 1 for g in strict) < sum(len(g.keys) - 1 for g in loose)
