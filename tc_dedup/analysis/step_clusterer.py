"""
Module for grouping similar steps across all test cases (phase 1 of semantic analysis).
"""

import logging
from collections import Counter
from typing import Dict, List, Sequence, Tuple

from tc_dedup.analysis.graph_clustering import group_by_threshold
from tc_dedup.analysis.similarity_analyzer import (
    Fingerprint,
    PreparedCase,
    PreparedStep,
    StepSimilarityScorer,
)
from tc_dedup.config.analysis_config import ClusterLinkage
from tc_dedup.data.models import StepCluster

logger = logging.getLogger(__name__)

# Above this many distinct texts in one cluster, the representative is the
# most frequent literal text instead of the member nearest the centroid.
CENTROID_SEARCH_LIMIT = 50

Signature = Tuple[str, str]


class StepClusterer:
    """Clusters steps by text similarity and re-expresses test cases as fingerprints."""

    def __init__(
        self,
        step_scorer: StepSimilarityScorer,
        threshold: float = 85.0,
        linkage: ClusterLinkage = ClusterLinkage.SINGLE,
        use_similarity: bool = True
    ):
        """
        Initialize step clusterer.

        Args:
            step_scorer: Scorer used for step-to-step similarity
            threshold: Minimum step similarity in percent (50-100)
            linkage: Clustering policy, single linkage by default
            use_similarity: If False, only steps with identical normalized
                text share a cluster
        """
        self.step_scorer = step_scorer
        self.threshold = threshold
        self.linkage = linkage
        self.use_similarity = use_similarity

    def cluster_steps(
        self,
        cases: Sequence[PreparedCase]
    ) -> Tuple[List[StepCluster], Dict[str, Fingerprint]]:
        """
        Group similar steps across all test cases.

        Steps are first collapsed by normalized text, so identical wording is
        compared once.

        Args:
            cases: Prepared test cases

        Returns:
            Tuple of (step clusters, fingerprint per test case key)
        """
        signatures: List[Signature] = []
        samples: Dict[Signature, PreparedStep] = {}
        refs: Dict[Signature, List[Tuple[str, int]]] = {}
        literal_counts: Dict[Signature, Counter] = {}

        for case in cases:
            for prepared in case.steps:
                signature = prepared.signature
                if signature not in samples:
                    signatures.append(signature)
                    samples[signature] = prepared
                    refs[signature] = []
                    literal_counts[signature] = Counter()
                refs[signature].append((case.key, prepared.step.index))
                literal_counts[signature][prepared.display_text] += 1

        logger.info(
            "  [STEP CLUSTERER] %d steps collapsed to %d distinct texts",
            sum(len(r) for r in refs.values()), len(signatures)
        )

        groups = self._group(signatures, samples)

        clusters_with_members = []
        for group in groups:
            member_refs = [ref for signature in group for ref in refs[signature]]
            frequency = len({case_key for case_key, _ in member_refs})
            clusters_with_members.append((group, member_refs, frequency))

        # Most widespread first; ties keep first-seen order
        clusters_with_members.sort(key=lambda item: -item[2])

        step_clusters = []
        fingerprints: Dict[str, Fingerprint] = {case.key: Counter() for case in cases}
        for number, (group, member_refs, frequency) in enumerate(clusters_with_members, 1):
            cluster_id = f"step_cluster_{number}"
            step_clusters.append(StepCluster(
                id=cluster_id,
                representative_step_text=self._representative_text(group, samples, literal_counts),
                member_step_refs=member_refs,
                frequency=frequency,
            ))
            for case_key, _ in member_refs:
                fingerprints[case_key][cluster_id] += 1

        logger.info("  [STEP CLUSTERER] Created %d step clusters", len(step_clusters))
        return step_clusters, fingerprints

    def _group(
        self,
        signatures: List[Signature],
        samples: Dict[Signature, PreparedStep]
    ) -> List[List[Signature]]:
        if not self.use_similarity:
            return [[signature] for signature in signatures]

        def score(a: Signature, b: Signature) -> float:
            return self.step_scorer.similarity(samples[a], samples[b]) * 100

        edges = []
        for i in range(len(signatures)):
            for j in range(i + 1, len(signatures)):
                edges.append((signatures[i], signatures[j], score(signatures[i], signatures[j])))

        return group_by_threshold(signatures, edges, self.threshold, self.linkage, score)

    def _representative_text(
        self,
        group: List[Signature],
        samples: Dict[Signature, PreparedStep],
        literal_counts: Dict[Signature, Counter]
    ) -> str:
        """
        Pick the member nearest the cluster centroid (smallest average distance
        to its peers); fall back to the most frequent literal text for large clusters.
        """
        def weight(signature: Signature) -> int:
            return sum(literal_counts[signature].values())

        if len(group) == 1 or len(group) > CENTROID_SEARCH_LIMIT:
            best = max(group, key=weight) if len(group) > 1 else group[0]
        else:
            def average_distance(signature: Signature) -> float:
                peers = [other for other in group if other != signature]
                total = sum(1.0 - self.step_scorer.similarity(samples[signature], samples[other]) for other in peers)
                return total / len(peers)

            best = min(group, key=lambda signature: (average_distance(signature), -weight(signature)))

        return literal_counts[best].most_common(1)[0][0]
