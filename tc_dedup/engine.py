"""
Duplicate test case analysis pipeline.

Stages run in a fixed order for every call:
normalize -> [step clustering] -> pairwise similarity -> case clustering
-> representative selection and pattern labelling -> report.
Nothing survives between calls.
"""

import logging
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union

from tc_dedup.ai.semantic_augmenter import LLMHook, SemanticAugmenter
from tc_dedup.analysis.duplicate_detector import DuplicateDetector, DuplicateGroup, SimilarityLookup
from tc_dedup.analysis.pattern_classifier import dominant_pattern
from tc_dedup.analysis.representative_selector import SelectionStrategy, select_representative
from tc_dedup.analysis.similarity_analyzer import Fingerprint, PreparedCase, SimilarityAnalyzer
from tc_dedup.analysis.similarity_matrix import SimilarityMatrixGenerator
from tc_dedup.analysis.step_clusterer import StepClusterer
from tc_dedup.config.analysis_config import AnalysisOptions
from tc_dedup.data.data_loader import parse_test_case
from tc_dedup.data.models import StepCluster, TestCase, TestCaseCluster
from tc_dedup.errors import InputTooLargeError, InsufficientInputError, SemanticHookFailure
from tc_dedup.output.report_builder import (
    ReportBuilder,
    calculate_automation_mix,
    suggest_merging_strategy,
    summarize_shared_logic,
)

logger = logging.getLogger(__name__)

TestCaseInput = Union[TestCase, Dict[str, Any]]


class DuplicateAnalysisEngine:
    """Finds clusters of duplicate test cases and reports how to consolidate them."""

    def __init__(
        self,
        options: Optional[AnalysisOptions] = None,
        llm_hook: Optional[LLMHook] = None,
        hook_timeout: float = 60.0,
        max_hook_calls: int = 2
    ):
        """
        Initialize the engine.

        Args:
            options: Analysis options (validated here)
            llm_hook: Optional LLM capability ``(prompt) -> text`` used for
                semantic insights in semantic/hybrid mode
            hook_timeout: Maximum seconds to wait for one hook call
            max_hook_calls: Maximum hook calls per analysis run

        Raises:
            InvalidThresholdError: if a threshold is outside [50, 100]
        """
        self.options = (options or AnalysisOptions()).validate()
        self.llm_hook = llm_hook
        self.hook_timeout = hook_timeout
        self.max_hook_calls = max_hook_calls

    def analyze(
        self,
        test_cases: Sequence[TestCaseInput],
        project_key: str,
        suite_id: Optional[Any] = None
    ) -> Dict[str, Any]:
        """
        Analyze test cases for duplicates.

        Args:
            test_cases: TestCase objects or raw TCM records, in a stable order
            project_key: Project the test cases belong to
            suite_id: Optional suite the test cases were taken from

        Returns:
            JSON-serializable analysis result

        Raises:
            InsufficientInputError: fewer than 2 test cases supplied
            InputTooLargeError: more test cases than options.max_test_cases
        """
        options = self.options
        total = len(test_cases)
        if total < 2:
            raise InsufficientInputError(total)
        if total > options.max_test_cases:
            raise InputTooLargeError(total, options.max_test_cases)

        logger.info(
            "  [ANALYZER] Analyzing %d test cases for duplicates (%s mode, threshold %.0f%%)...",
            total, options.analysis_mode.value, options.similarity_threshold
        )

        analyzer = SimilarityAnalyzer(options)
        prepared, skipped = self._prepare(analyzer, test_cases)
        if skipped:
            logger.warning("  [ANALYZER] Excluded %d test cases from clustering", len(skipped))

        step_clusters: Optional[List[StepCluster]] = None
        fingerprints: Optional[Dict[str, Fingerprint]] = None
        if options.is_semantic:
            clusterer = StepClusterer(
                analyzer.step_scorer,
                threshold=options.step_clustering_threshold,
                linkage=options.linkage,
                use_similarity=options.use_step_clustering,
            )
            step_clusters, fingerprints = clusterer.cluster_steps(prepared)

        pairs = analyzer.calculate_all_pairs(prepared, fingerprints)
        logger.info("  [ANALYZER] Computed %d pairwise similarities", len(pairs))

        detector = DuplicateDetector(options.similarity_threshold, options.linkage)
        groups = detector.detect_duplicates([case.key for case in prepared], pairs)

        cases_by_key = {case.key: case.test_case for case in prepared}
        lookup = SimilarityLookup(pairs)
        clusters = [
            self._finalize_cluster(number, group, cases_by_key, lookup, fingerprints, step_clusters)
            for number, group in enumerate(groups, 1)
        ]

        matrix_generator = SimilarityMatrixGenerator(options.matrix_reporting_floor)
        similarity_matrix = matrix_generator.generate_matrix(pairs)
        matrix_summary = matrix_generator.generate_matrix_summary(pairs, options.similarity_threshold)

        analysis_mode = options.analysis_mode.value
        insights = None
        fallback_reason = None
        if step_clusters is not None:
            insights, fallback_reason = self._semantic_insights(step_clusters, clusters)
            if fallback_reason:
                analysis_mode = f"{analysis_mode}_fallback"

        logger.info("  [ANALYZER] Found %d clusters of similar test cases", len(clusters))
        return ReportBuilder().build(
            project_key=project_key,
            suite_id=suite_id,
            total_test_cases=total,
            clusters=clusters,
            similarity_matrix=similarity_matrix,
            matrix_summary=matrix_summary,
            analysis_mode=analysis_mode,
            skipped=skipped,
            options=options.to_dict(),
            step_clusters=step_clusters,
            semantic_insights=insights,
            fallback_reason=fallback_reason,
        )

    def _prepare(
        self,
        analyzer: SimilarityAnalyzer,
        test_cases: Sequence[TestCaseInput]
    ) -> Tuple[List[PreparedCase], List[Dict[str, str]]]:
        """Prepare usable test cases; list the rest with the reason they were excluded."""
        prepared = []
        skipped = []
        seen_keys = set()

        for position, item in enumerate(test_cases, 1):
            if isinstance(item, dict):
                try:
                    item = parse_test_case(item)
                except (ValueError, TypeError, AttributeError) as e:
                    logger.warning("  [ANALYZER] Record %d is malformed: %s", position, e)
                    skipped.append({"key": f"record-{position}", "reason": "malformed_record"})
                    continue
            elif not isinstance(item, TestCase):
                skipped.append({"key": f"record-{position}", "reason": "malformed_record"})
                continue

            if item.key in seen_keys:
                skipped.append({"key": item.key, "reason": "duplicate_key"})
                continue
            seen_keys.add(item.key)

            if item.is_malformed:
                skipped.append({"key": item.key, "reason": "missing_steps"})
                continue

            case = analyzer.prepare(item)
            if not case.steps:
                skipped.append({"key": item.key, "reason": "no_steps"})
                continue
            prepared.append(case)

        return prepared, skipped

    def _finalize_cluster(
        self,
        number: int,
        group: DuplicateGroup,
        cases_by_key: Dict[str, TestCase],
        lookup: SimilarityLookup,
        fingerprints: Optional[Dict[str, Fingerprint]],
        step_clusters: Optional[List[StepCluster]]
    ) -> TestCaseCluster:
        options = self.options
        members = [cases_by_key[key] for key in group.keys]
        linking_pairs = group.above(options.similarity_threshold) or group.pairs

        automation_mix = calculate_automation_mix(members)
        pattern_type = dominant_pattern(pair.pattern_type for pair in linking_pairs)

        strategy = SelectionStrategy.MEDOID if options.use_medoid_selection else SelectionStrategy.HEURISTIC
        representative = select_representative(strategy, members, lookup.percentage)

        shared_step_clusters = []
        if fingerprints is not None and step_clusters is not None:
            for step_cluster in step_clusters:
                touching = sum(1 for key in group.keys if fingerprints[key][step_cluster.id] > 0)
                if touching >= 2:
                    shared_step_clusters.append(step_cluster.id)

        return TestCaseCluster(
            cluster_id=f"cluster_{number}",
            test_cases=members,
            average_similarity=group.average_similarity,
            automation_mix=automation_mix,
            shared_logic_summary=summarize_shared_logic(linking_pairs, options.shared_logic_top_n),
            pattern_type=pattern_type,
            recommended_base=representative.to_dict(),
            merging_strategy=suggest_merging_strategy(pattern_type, automation_mix),
            step_cluster_ids=shared_step_clusters,
        )

    def _semantic_insights(
        self,
        step_clusters: List[StepCluster],
        clusters: List[TestCaseCluster]
    ) -> Tuple[Dict[str, Any], Optional[str]]:
        """
        Deterministic insights, enriched by the LLM hook when requested.

        Returns:
            Tuple of (insights, fallback reason or None)
        """
        augmenter = SemanticAugmenter(self.llm_hook, self.hook_timeout, self.max_hook_calls)
        insights: Dict[str, Any] = augmenter.deterministic_insights(step_clusters, clusters)
        insights["source"] = "deterministic"

        if not self.options.wants_llm:
            return insights, None

        try:
            insights = augmenter.augment(insights, step_clusters, clusters)
            insights["source"] = "llm"
        except SemanticHookFailure as e:
            logger.warning("  [ANALYZER] LLM insights unavailable, continuing without them: %s", e.reason)
            return insights, e.reason

        return insights, None


def analyze_duplicates(
    test_cases: Sequence[TestCaseInput],
    project_key: str,
    suite_id: Optional[Any] = None,
    options: Union[AnalysisOptions, Dict[str, Any], None] = None,
    llm_hook: Optional[LLMHook] = None,
    hook_timeout: float = 60.0
) -> Dict[str, Any]:
    """
    Analyze test cases for duplicates with a fresh engine.

    Args:
        test_cases: TestCase objects or raw TCM records
        project_key: Project the test cases belong to
        suite_id: Optional suite id
        options: AnalysisOptions or a dict of option values (camelCase accepted)
        llm_hook: Optional LLM capability for semantic insights
        hook_timeout: Maximum seconds to wait for one hook call

    Returns:
        JSON-serializable analysis result
    """
    if not isinstance(options, AnalysisOptions):
        options = AnalysisOptions.from_dict(options)
    engine = DuplicateAnalysisEngine(options, llm_hook=llm_hook, hook_timeout=hook_timeout)
    return engine.analyze(test_cases, project_key, suite_id)
