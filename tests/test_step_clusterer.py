from tc_dedup.analysis.similarity_analyzer import SimilarityAnalyzer, StepSimilarityScorer
from tc_dedup.analysis.step_clusterer import StepClusterer
from tc_dedup.config.analysis_config import ClusterLinkage


def _prepare(*cases):
    analyzer = SimilarityAnalyzer()
    return [analyzer.prepare(case) for case in cases]


def _cases(make_case):
    return _prepare(
        make_case("A", ["Open the login page", "Enter valid credentials", "Click Login"]),
        make_case("B", ["Open login page", "Enter valid credentials", "Press the Login button"]),
    )


def test_similar_steps_share_a_cluster(make_case):
    clusterer = StepClusterer(StepSimilarityScorer(), threshold=85.0)
    step_clusters, fingerprints = clusterer.cluster_steps(_cases(make_case))

    assert len(step_clusters) == 4
    first = step_clusters[0]
    assert first.id == "step_cluster_1"
    assert first.frequency == 2
    assert first.member_step_refs == [("A", 1), ("B", 1)]
    assert first.representative_step_text in ("Open the login page", "Open login page")

    assert fingerprints["A"]["step_cluster_1"] == 1
    assert fingerprints["B"]["step_cluster_2"] == 1
    assert sum(fingerprints["A"].values()) == 3


def test_clusters_are_ordered_by_frequency(make_case):
    clusterer = StepClusterer(StepSimilarityScorer(), threshold=85.0)
    step_clusters, _ = clusterer.cluster_steps(_cases(make_case))
    frequencies = [cluster.frequency for cluster in step_clusters]
    assert frequencies == sorted(frequencies, reverse=True)


def test_without_similarity_only_identical_text_is_grouped(make_case):
    clusterer = StepClusterer(StepSimilarityScorer(), threshold=85.0, use_similarity=False)
    step_clusters, _ = clusterer.cluster_steps(_cases(make_case))

    assert len(step_clusters) == 5
    assert step_clusters[0].representative_step_text == "Enter valid credentials"
    assert step_clusters[0].frequency == 2


def test_every_step_lands_in_exactly_one_cluster(make_case):
    cases = _cases(make_case)
    for linkage in ClusterLinkage:
        clusterer = StepClusterer(StepSimilarityScorer(), threshold=85.0, linkage=linkage)
        step_clusters, _ = clusterer.cluster_steps(cases)
        refs = [ref for cluster in step_clusters for ref in cluster.member_step_refs]
        assert sorted(refs) == sorted((case.key, step.step.index) for case in cases for step in case.steps)


def test_step_cluster_serialization(make_case):
    clusterer = StepClusterer(StepSimilarityScorer())
    step_clusters, _ = clusterer.cluster_steps(_cases(make_case))
    data = step_clusters[0].to_dict()
    assert data["memberStepRefs"][0] == {"testCaseKey": "A", "stepIndex": 1}
    assert data["frequency"] == 2
