from collections import Counter
from itertools import permutations

import pytest

from tc_dedup.analysis.similarity_analyzer import SimilarityAnalyzer, case_similarity, step_similarity
from tc_dedup.config.analysis_config import AnalysisMode, AnalysisOptions
from tc_dedup.data.models import Step

from conftest import LOGIN_STEPS, SEARCH_STEPS, UPLOAD_STEPS, UPLOAD_VARIANT_STEPS


def test_step_similarity_identity():
    step = Step(1, "Click the Login button", "Dashboard is displayed")
    assert step_similarity(step, step) == 1.0


def test_step_similarity_empty_side_is_zero():
    assert step_similarity(Step(1, "", ""), Step(1, "Click Login", "")) == 0.0
    assert step_similarity(Step(1, "   ", ""), Step(2, "   ", "")) == 0.0


def test_step_similarity_catches_light_rewording():
    score = step_similarity(Step(1, "Click on Submit"), Step(2, "Click on Submitt"))
    assert score > 0.9


def test_step_similarity_ignores_stop_words():
    score = step_similarity(Step(1, "Open the login page"), Step(2, "Open login page"))
    assert score == 1.0


def test_step_similarity_expected_result_on_one_side_only():
    score = step_similarity(Step(1, "Open settings", "Settings screen opens"), Step(2, "Open settings", ""))
    assert score == pytest.approx(0.6)


def test_step_similarity_is_symmetric():
    steps = [Step(i, action, expected) for i, (action, expected) in enumerate(LOGIN_STEPS + SEARCH_STEPS, 1)]
    for a, b in permutations(steps, 2):
        assert step_similarity(a, b) == step_similarity(b, a)


def test_case_similarity_identity(make_case):
    case = make_case("A", LOGIN_STEPS)
    pair = case_similarity(case, make_case("A-copy", LOGIN_STEPS))
    assert pair.similarity_percentage == 100.0
    assert pair.shared_steps == 4
    assert pair.total_steps_1 == pair.total_steps_2 == 4


def test_case_similarity_is_dice_over_matched_steps(make_case):
    shorter = make_case("A", LOGIN_STEPS[:3])
    longer = make_case("B", LOGIN_STEPS)
    pair = case_similarity(shorter, longer)
    assert pair.shared_steps == 3
    assert pair.similarity_percentage == round(2 * 3 / 7 * 100, 2)


def test_case_similarity_is_symmetric(make_case):
    cases = [
        make_case("L", LOGIN_STEPS),
        make_case("L3", LOGIN_STEPS[:3]),
        make_case("S", SEARCH_STEPS),
        make_case("U", UPLOAD_STEPS),
        make_case("V", UPLOAD_VARIANT_STEPS),
    ]
    for a, b in permutations(cases, 2):
        forward = case_similarity(a, b)
        backward = case_similarity(b, a)
        assert forward.similarity_percentage == backward.similarity_percentage
        assert forward.shared_steps == backward.shared_steps
        assert forward.pattern_type == backward.pattern_type


def test_case_similarity_partial_overlap(make_case):
    pair = case_similarity(make_case("U", UPLOAD_STEPS), make_case("V", UPLOAD_VARIANT_STEPS))
    assert pair.similarity_percentage == 75.0
    assert pair.shared_steps_summary[0] == "Open the documents tab"


def test_case_similarity_without_steps_is_zero(make_case):
    pair = case_similarity(make_case("A", []), make_case("B", LOGIN_STEPS))
    assert pair.similarity_percentage == 0.0
    assert pair.shared_steps == 0


def test_semantic_mode_needs_fingerprints(make_case):
    options = AnalysisOptions(analysis_mode=AnalysisMode.SEMANTIC)
    with pytest.raises(ValueError):
        case_similarity(make_case("A", LOGIN_STEPS), make_case("B", LOGIN_STEPS), options)


def test_semantic_mode_scores_fingerprint_overlap(make_case):
    options = AnalysisOptions(analysis_mode=AnalysisMode.SEMANTIC)
    fingerprints = {
        "A": Counter({"step_cluster_1": 1, "step_cluster_2": 1}),
        "B": Counter({"step_cluster_1": 1, "step_cluster_3": 1}),
    }
    pair = case_similarity(make_case("A", LOGIN_STEPS), make_case("B", LOGIN_STEPS), options, fingerprints)
    assert pair.similarity_percentage == 33.33
    assert pair.step_cluster_overlap == 33.33
    assert pair.structural_percentage == 100.0
    assert "stepClusterOverlap" in pair.to_dict()


def test_hybrid_mode_blends_structure_and_fingerprints(make_case):
    options = AnalysisOptions(analysis_mode=AnalysisMode.HYBRID)
    fingerprints = {
        "A": Counter({"step_cluster_1": 1, "step_cluster_2": 1}),
        "B": Counter({"step_cluster_1": 1, "step_cluster_3": 1}),
    }
    pair = case_similarity(make_case("A", LOGIN_STEPS), make_case("B", LOGIN_STEPS), options, fingerprints)
    assert pair.similarity_percentage == round(0.5 * 100.0 + 0.5 * 33.33, 2)


def test_fingerprint_similarity():
    jaccard, cosine = SimilarityAnalyzer.calculate_fingerprint_similarity(
        Counter({"s1": 2, "s2": 1}),
        Counter({"s1": 1, "s3": 1}),
    )
    assert jaccard == 33.33
    assert cosine == 63.25


def test_fingerprint_similarity_empty():
    assert SimilarityAnalyzer.calculate_fingerprint_similarity(Counter(), Counter()) == (0.0, 0.0)


def test_basic_pair_omits_semantic_fields(make_case):
    pair = case_similarity(make_case("A", LOGIN_STEPS), make_case("B", SEARCH_STEPS))
    data = pair.to_dict()
    assert data["testCase1Key"] == "A"
    assert data["testCase2Key"] == "B"
    assert "stepClusterOverlap" not in data
