"""
Module for assembling clusters and the final analysis result.
"""

from typing import Any, Dict, List, Optional, Sequence

from tc_dedup.data.models import AutomationState, SimilarityPair, StepCluster, TestCase, TestCaseCluster
from tc_dedup.data.normalizers import truncate

SUMMARY_TEXT_LIMIT = 80

# patternType -> parameter named in the merging recommendation
PATTERN_PARAMETERS = {
    "user_type": "user type",
    "theme": "theme",
    "entry_point": "entry point",
    "component": "UI component",
    "permission": "permission state",
}

# (minimum duplicate share, label), checked top-down
TIME_REDUCTION_BUCKETS = [
    (0.30, "High - a large share of the suite repeats the same procedures"),
    (0.15, "Moderate - consolidation would noticeably shorten test runs"),
    (0.05, "Low - a few clusters worth consolidating"),
    (0.0, "Minimal - duplication has little effect on execution time"),
]


def calculate_automation_mix(test_cases: Sequence[TestCase]) -> Dict[str, int]:
    """Tally automation states; unspecified states count as mixed."""
    mix = {"manual": 0, "automated": 0, "mixed": 0}
    for test_case in test_cases:
        if test_case.automation_state == AutomationState.MANUAL:
            mix["manual"] += 1
        elif test_case.automation_state == AutomationState.AUTOMATED:
            mix["automated"] += 1
        else:
            mix["mixed"] += 1
    return mix


def summarize_shared_logic(pairs: Sequence[SimilarityPair], top_n: int = 5) -> str:
    """Top-N distinct shared step texts across a cluster's pairs, most shared first."""
    counts: Dict[str, int] = {}
    for pair in sorted(pairs, key=lambda p: -p.similarity_percentage):
        for text in pair.shared_steps_summary:
            counts[text] = counts.get(text, 0) + 1

    ranked = sorted(counts, key=lambda text: -counts[text])
    return "; ".join(truncate(text, SUMMARY_TEXT_LIMIT) for text in ranked[:top_n])


def suggest_merging_strategy(pattern_type: str, automation_mix: Dict[str, int]) -> str:
    """
    Templated recommendation keyed by pattern type and automation mix.

    Args:
        pattern_type: Dominant pattern of the cluster
        automation_mix: Output of calculate_automation_mix()

    Returns:
        Recommendation text
    """
    manual = automation_mix.get("manual", 0)
    automated = automation_mix.get("automated", 0)
    mixed = automation_mix.get("mixed", 0)
    total = manual + automated + mixed
    others = total - 1

    parameter = PATTERN_PARAMETERS.get(pattern_type)
    if parameter:
        if automated > 0:
            return (f"Parameterize the automated case using {parameter} as test data "
                    f"and retire {others} duplicate{'s' if others != 1 else ''}")
        return (f"Create a single parameterized test with {parameter} as test data "
                f"- consolidate {total} tests into 1")

    if automated > 0 and manual > 0:
        return f"Parameterize the automated case and retire {manual} manual duplicate{'s' if manual > 1 else ''}"
    if automated > 1:
        return f"Consolidate {automated} automated tests into a single parameterized test"
    if manual > 1:
        return f"Merge {manual} manual tests into one comprehensive test and consider automating it"
    return f"Review {total} similar tests for consolidation opportunities"


def estimate_time_reduction(duplicate_test_cases: int, total_test_cases: int) -> str:
    """Bucketed, descriptive label for the effect of removing duplicates."""
    if duplicate_test_cases <= 0 or total_test_cases <= 0:
        return "None - no duplicate test cases found"
    share = duplicate_test_cases / total_test_cases
    for minimum, label in TIME_REDUCTION_BUCKETS:
        if share >= minimum:
            return label
    return TIME_REDUCTION_BUCKETS[-1][1]


class ReportBuilder:
    """Builds the JSON-serializable analysis result."""

    def build(
        self,
        project_key: str,
        suite_id: Optional[Any],
        total_test_cases: int,
        clusters: List[TestCaseCluster],
        similarity_matrix: List[SimilarityPair],
        matrix_summary: Dict[str, Any],
        analysis_mode: str,
        skipped: List[Dict[str, str]],
        options: Dict[str, Any],
        step_clusters: Optional[List[StepCluster]] = None,
        semantic_insights: Optional[Dict[str, Any]] = None,
        fallback_reason: Optional[str] = None
    ) -> Dict[str, Any]:
        """
        Assemble the analysis result.

        ``stepClusters`` and ``semanticInsights`` are included only when
        step_clusters is given (semantic and hybrid modes).
        """
        duplicate_test_cases = sum(len(cluster.test_cases) - 1 for cluster in clusters)

        result = {
            "projectKey": project_key,
            "suiteId": suite_id,
            "totalTestCases": total_test_cases,
            "clustersFound": len(clusters),
            "clusters": [cluster.to_dict() for cluster in clusters],
            "similarityMatrix": [pair.to_dict() for pair in similarity_matrix],
            "matrixSummary": matrix_summary,
            "potentialSavings": {
                "duplicateTestCases": duplicate_test_cases,
                "estimatedTimeReduction": estimate_time_reduction(duplicate_test_cases, total_test_cases),
            },
            "skippedTestCases": skipped,
            "analysisMode": analysis_mode,
            "options": options,
        }

        if step_clusters is not None:
            result["stepClusters"] = [step_cluster.to_dict() for step_cluster in step_clusters]
            result["semanticInsights"] = semantic_insights or {}
        if fallback_reason:
            result["semanticFallbackReason"] = fallback_reason

        return result
