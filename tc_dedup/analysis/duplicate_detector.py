"""
Module for grouping likely-duplicate test cases (phase 2 clustering).
"""

import logging
from dataclasses import dataclass
from typing import Dict, List, Sequence, Tuple

from tc_dedup.analysis.graph_clustering import group_by_threshold
from tc_dedup.config.analysis_config import ClusterLinkage
from tc_dedup.data.models import SimilarityPair

logger = logging.getLogger(__name__)


@dataclass
class DuplicateGroup:
    """Keys of two or more test cases connected by above-threshold similarity."""
    keys: List[str]
    average_similarity: float
    pairs: List[SimilarityPair]

    def above(self, threshold: float) -> List[SimilarityPair]:
        return [pair for pair in self.pairs if pair.similarity_percentage >= threshold]


class SimilarityLookup:
    """Symmetric pair lookup by test case keys."""

    def __init__(self, pairs: Sequence[SimilarityPair]):
        self._pairs: Dict[Tuple[str, str], SimilarityPair] = {}
        for pair in pairs:
            self._pairs[self._key(pair.case_key_a, pair.case_key_b)] = pair

    @staticmethod
    def _key(key1: str, key2: str) -> Tuple[str, str]:
        return (key1, key2) if key1 <= key2 else (key2, key1)

    def get(self, key1: str, key2: str):
        return self._pairs.get(self._key(key1, key2))

    def percentage(self, key1: str, key2: str) -> float:
        """Similarity in percent; 100 for a case against itself, 0 for unknown pairs."""
        if key1 == key2:
            return 100.0
        pair = self.get(key1, key2)
        return pair.similarity_percentage if pair else 0.0


class DuplicateDetector:
    """Detects groups of duplicate test cases from pairwise similarities."""

    def __init__(
        self,
        similarity_threshold: float = 80.0,
        linkage: ClusterLinkage = ClusterLinkage.SINGLE
    ):
        """
        Initialize duplicate detector.

        Args:
            similarity_threshold: Minimum pair similarity in percent (50-100)
            linkage: Single linkage (transitive merge) by default
        """
        self.similarity_threshold = similarity_threshold
        self.linkage = linkage

    def detect_duplicates(
        self,
        case_keys: Sequence[str],
        pairs: Sequence[SimilarityPair]
    ) -> List[DuplicateGroup]:
        """
        Connect test cases whose similarity meets the threshold and return the
        groups of two or more.

        With single linkage A~B and B~C put A, B and C in one group even when
        A and C are below the threshold.

        Args:
            case_keys: Keys of every test case eligible for clustering, in input order
            pairs: Pairwise similarities between those test cases

        Returns:
            Groups sorted by descending average similarity, then descending size
        """
        lookup = SimilarityLookup(pairs)
        eligible = set(case_keys)
        edges = [
            (pair.case_key_a, pair.case_key_b, pair.similarity_percentage)
            for pair in pairs
            if pair.case_key_a in eligible and pair.case_key_b in eligible
        ]

        logger.info(
            "  [DUPLICATE DETECTOR] %d of %d pairs at or above %.0f%%",
            sum(1 for _, _, score in edges if score >= self.similarity_threshold),
            len(edges),
            self.similarity_threshold
        )

        components = group_by_threshold(
            list(case_keys),
            edges,
            self.similarity_threshold,
            self.linkage,
            lookup.percentage
        )

        position = {key: index for index, key in enumerate(case_keys)}
        groups = []
        for keys in components:
            if len(keys) < 2:
                continue
            group_pairs = [
                lookup.get(keys[i], keys[j])
                for i in range(len(keys))
                for j in range(i + 1, len(keys))
            ]
            group_pairs = [pair for pair in group_pairs if pair is not None]
            scores = [lookup.percentage(keys[i], keys[j]) for i in range(len(keys)) for j in range(i + 1, len(keys))]
            average = round(sum(scores) / len(scores), 2)
            groups.append(DuplicateGroup(keys=keys, average_similarity=average, pairs=group_pairs))

        groups.sort(key=lambda g: (-g.average_similarity, -len(g.keys), position[g.keys[0]]))

        logger.info("  [DUPLICATE DETECTOR] Found %d duplicate groups", len(groups))
        return groups
