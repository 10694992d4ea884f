"""
Module for calculating similarity between steps and between test cases.
"""

import math
from collections import Counter
from dataclasses import dataclass
from typing import Dict, FrozenSet, List, Optional, Sequence, Tuple

import networkx as nx
from Levenshtein import distance as levenshtein_distance

from tc_dedup.analysis.pattern_classifier import classify_pattern
from tc_dedup.config.analysis_config import AnalysisMode, AnalysisOptions
from tc_dedup.data.models import SimilarityPair, Step, TestCase
from tc_dedup.data.normalizers import clean_text, normalize, truncate

SHARED_SUMMARY_LIMIT = 5

Fingerprint = Counter


@dataclass(frozen=True)
class PreparedStep:
    """A step with its cleaned text and tokens computed once."""
    step: Step
    action_text: str
    expected_text: str
    action_tokens: FrozenSet[str]
    expected_tokens: FrozenSet[str]

    @classmethod
    def from_step(cls, step: Step) -> "PreparedStep":
        return cls(
            step=step,
            action_text=clean_text(step.action),
            expected_text=clean_text(step.expected_result),
            action_tokens=frozenset(normalize(step.action)),
            expected_tokens=frozenset(normalize(step.expected_result)),
        )

    @property
    def signature(self) -> Tuple[str, str]:
        """Normalized text identity; steps with equal signatures read the same."""
        return (self.action_text, self.expected_text)

    @property
    def display_text(self) -> str:
        return (self.step.action or self.step.expected_result or "").strip()

    def is_degenerate(self) -> bool:
        return not self.action_text and not self.expected_text


@dataclass(frozen=True)
class PreparedCase:
    """A test case reduced to its comparable steps and token set."""
    test_case: TestCase
    steps: Tuple[PreparedStep, ...]
    tokens: FrozenSet[str]

    @property
    def key(self) -> str:
        return self.test_case.key

    @classmethod
    def from_test_case(cls, test_case: TestCase) -> "PreparedCase":
        steps = []
        for step in test_case.usable_steps():
            prepared = PreparedStep.from_step(step)
            if not prepared.is_degenerate():
                steps.append(prepared)

        tokens = set(normalize(test_case.title))
        for prepared in steps:
            tokens.update(prepared.action_tokens)
            tokens.update(prepared.expected_tokens)
        return cls(test_case=test_case, steps=tuple(steps), tokens=frozenset(tokens))


class StepSimilarityScorer:
    """Scores step pairs as a weighted blend of action and expected-result overlap."""

    def __init__(
        self,
        action_weight: float = 0.6,
        expected_result_weight: float = 0.4,
        near_identical_ratio: float = 0.85
    ):
        """
        Initialize the scorer.

        Args:
            action_weight: Weight of the action text
            expected_result_weight: Weight of the expected result text
            near_identical_ratio: Edit-distance ratio at which two strings count
                as a light rewording of each other
        """
        self.action_weight = action_weight
        self.expected_result_weight = expected_result_weight
        self.near_identical_ratio = near_identical_ratio
        self._cache: Dict[Tuple[Tuple[str, str], Tuple[str, str]], float] = {}

    def field_similarity(
        self,
        text1: str,
        tokens1: FrozenSet[str],
        text2: str,
        tokens2: FrozenSet[str]
    ) -> float:
        """
        Token-set overlap of two texts, with an edit-distance fallback.

        Returns:
            Similarity score from 0.0 to 1.0 (0.0 if either text is empty)
        """
        if not text1 or not text2:
            return 0.0
        if text1 == text2:
            return 1.0

        union = tokens1 | tokens2
        overlap = len(tokens1 & tokens2) / len(union) if union else 0.0
        if overlap >= self.near_identical_ratio:
            return overlap

        # Low token overlap but near-identical raw strings: a light rewording
        max_len = max(len(text1), len(text2))
        ratio = 1.0 - (levenshtein_distance(text1, text2) / max_len)
        if ratio >= self.near_identical_ratio:
            return max(overlap, ratio)
        return overlap

    def similarity(self, step1: PreparedStep, step2: PreparedStep) -> float:
        """
        Calculate similarity between two prepared steps.

        Returns:
            Similarity score from 0.0 to 1.0, symmetric in its arguments
        """
        sig1, sig2 = step1.signature, step2.signature
        cache_key = (sig1, sig2) if sig1 <= sig2 else (sig2, sig1)
        score = self._cache.get(cache_key)
        if score is None:
            score = self._score(step1, step2)
            self._cache[cache_key] = score
        return score

    def _score(self, step1: PreparedStep, step2: PreparedStep) -> float:
        if step1.is_degenerate() or step2.is_degenerate():
            return 0.0

        # A field absent on both sides drops out of the blend
        action_weight = self.action_weight if (step1.action_text or step2.action_text) else 0.0
        expected_weight = self.expected_result_weight if (step1.expected_text or step2.expected_text) else 0.0
        total_weight = action_weight + expected_weight
        if total_weight == 0:
            return 0.0

        action_sim = self.field_similarity(
            step1.action_text, step1.action_tokens,
            step2.action_text, step2.action_tokens
        )
        expected_sim = self.field_similarity(
            step1.expected_text, step1.expected_tokens,
            step2.expected_text, step2.expected_tokens
        )
        score = (action_weight * action_sim + expected_weight * expected_sim) / total_weight
        return min(1.0, round(score, 6))


class SimilarityAnalyzer:
    """Analyzes similarity between test cases in basic, semantic or hybrid mode."""

    def __init__(self, options: Optional[AnalysisOptions] = None):
        self.options = options or AnalysisOptions()
        self.step_scorer = StepSimilarityScorer(
            action_weight=self.options.action_weight,
            expected_result_weight=self.options.expected_result_weight,
            near_identical_ratio=self.options.near_identical_ratio,
        )

    def prepare(self, test_case: TestCase) -> PreparedCase:
        return PreparedCase.from_test_case(test_case)

    def calculate_structural_similarity(
        self,
        case1: PreparedCase,
        case2: PreparedCase
    ) -> Tuple[float, List[Tuple[int, int]]]:
        """
        Pair the steps of two test cases and score the overlap (Dice over steps).

        Steps are paired by a maximum-cardinality bipartite matching over the
        step pairs at or above the match floor, so the matched count does not
        depend on argument order.

        Args:
            case1: First test case
            case2: Second test case

        Returns:
            Tuple of (percentage, matched (step position 1, step position 2) pairs)
        """
        total1, total2 = len(case1.steps), len(case2.steps)
        if total1 == 0 or total2 == 0:
            return 0.0, []

        left = [("a", i) for i in range(total1)]
        graph = nx.Graph()
        graph.add_nodes_from(left)
        graph.add_nodes_from(("b", j) for j in range(total2))

        floor = self.options.step_match_floor
        for i, step1 in enumerate(case1.steps):
            for j, step2 in enumerate(case2.steps):
                if self.step_scorer.similarity(step1, step2) >= floor:
                    graph.add_edge(("a", i), ("b", j))

        if graph.number_of_edges() == 0:
            return 0.0, []

        matching = nx.bipartite.hopcroft_karp_matching(graph, top_nodes=left)
        matched = [(i, matching[("a", i)][1]) for i in range(total1) if ("a", i) in matching]

        percentage = round(2 * len(matched) / (total1 + total2) * 100, 2)
        return percentage, matched

    @staticmethod
    def calculate_fingerprint_similarity(
        fingerprint1: Fingerprint,
        fingerprint2: Fingerprint
    ) -> Tuple[float, float]:
        """
        Compare two step-cluster fingerprints.

        Returns:
            Tuple of (Jaccard over cluster ids, cosine over cluster counts), both in percent
        """
        ids1 = {cluster_id for cluster_id, count in fingerprint1.items() if count > 0}
        ids2 = {cluster_id for cluster_id, count in fingerprint2.items() if count > 0}
        union = ids1 | ids2
        if not union:
            return 0.0, 0.0

        shared = ids1 & ids2
        jaccard = len(shared) / len(union) * 100

        dot_product = sum(fingerprint1[cluster_id] * fingerprint2[cluster_id] for cluster_id in shared)
        norm1 = math.sqrt(sum(fingerprint1[cluster_id] ** 2 for cluster_id in ids1))
        norm2 = math.sqrt(sum(fingerprint2[cluster_id] ** 2 for cluster_id in ids2))
        cosine = dot_product / (norm1 * norm2) * 100 if norm1 and norm2 else 0.0

        return round(jaccard, 2), round(min(cosine, 100.0), 2)

    def calculate_case_similarity(
        self,
        case1: PreparedCase,
        case2: PreparedCase,
        fingerprints: Optional[Dict[str, Fingerprint]] = None
    ) -> SimilarityPair:
        """
        Calculate similarity between two test cases.

        Args:
            case1: First test case
            case2: Second test case
            fingerprints: Step-cluster fingerprints by case key (semantic/hybrid modes)

        Returns:
            SimilarityPair with percentage, shared step counts and pattern label
        """
        structural, matched = self.calculate_structural_similarity(case1, case2)

        mode = self.options.analysis_mode
        overlap = cosine = None
        if mode == AnalysisMode.BASIC:
            percentage = structural
        else:
            if fingerprints is None:
                raise ValueError(f"{mode.value} mode needs step-cluster fingerprints")
            overlap, cosine = self.calculate_fingerprint_similarity(
                fingerprints.get(case1.key, Counter()),
                fingerprints.get(case2.key, Counter())
            )
            if mode == AnalysisMode.SEMANTIC:
                percentage = overlap
            else:
                weight = self.options.hybrid_structural_weight
                percentage = round(weight * min(structural, 100.0) + (1 - weight) * min(overlap, 100.0), 2)

        pattern_type, variation_details = classify_pattern(case1.tokens ^ case2.tokens)

        summary = []
        for i, _ in matched:
            text = truncate(case1.steps[i].display_text)
            if text and text not in summary:
                summary.append(text)
            if len(summary) >= SHARED_SUMMARY_LIMIT:
                break

        return SimilarityPair(
            case_key_a=case1.key,
            case_key_b=case2.key,
            similarity_percentage=percentage,
            shared_steps=len(matched),
            total_steps_1=len(case1.steps),
            total_steps_2=len(case2.steps),
            pattern_type=pattern_type,
            shared_steps_summary=summary,
            variation_details=variation_details,
            structural_percentage=structural if overlap is not None else None,
            step_cluster_overlap=overlap,
            fingerprint_cosine=cosine,
        )

    def calculate_all_pairs(
        self,
        cases: Sequence[PreparedCase],
        fingerprints: Optional[Dict[str, Fingerprint]] = None
    ) -> List[SimilarityPair]:
        """
        Compare every pair of test cases.

        Returns:
            One SimilarityPair per unordered pair, in input order
        """
        pairs = []
        for i in range(len(cases)):
            for j in range(i + 1, len(cases)):
                pairs.append(self.calculate_case_similarity(cases[i], cases[j], fingerprints))
        return pairs


def step_similarity(step1: Step, step2: Step, options: Optional[AnalysisOptions] = None) -> float:
    """Similarity between two steps, from 0.0 to 1.0."""
    options = options or AnalysisOptions()
    scorer = StepSimilarityScorer(
        action_weight=options.action_weight,
        expected_result_weight=options.expected_result_weight,
        near_identical_ratio=options.near_identical_ratio,
    )
    return scorer.similarity(PreparedStep.from_step(step1), PreparedStep.from_step(step2))


def case_similarity(
    test_case1: TestCase,
    test_case2: TestCase,
    options: Optional[AnalysisOptions] = None,
    fingerprints: Optional[Dict[str, Fingerprint]] = None
) -> SimilarityPair:
    """Similarity between two test cases; see SimilarityAnalyzer.calculate_case_similarity."""
    analyzer = SimilarityAnalyzer(options)
    return analyzer.calculate_case_similarity(
        analyzer.prepare(test_case1),
        analyzer.prepare(test_case2),
        fingerprints
    )
