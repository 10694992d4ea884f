"""
Module for building the reported similarity matrix.
"""

from typing import Dict, List, Sequence

from tc_dedup.data.models import SimilarityPair


class SimilarityMatrixGenerator:
    """Selects and summarizes the pairwise similarities worth reporting."""

    def __init__(self, reporting_floor: float = 30.0):
        """
        Args:
            reporting_floor: Pairs below this percentage are left out of the
                report; they still take part in clustering
        """
        self.reporting_floor = reporting_floor

    def generate_matrix(self, pairs: Sequence[SimilarityPair]) -> List[SimilarityPair]:
        """
        Pairs at or above the reporting floor, most similar first.

        Args:
            pairs: All computed pairs

        Returns:
            Filtered pairs sorted by descending similarity (input order on ties)
        """
        reported = [pair for pair in pairs if pair.similarity_percentage >= self.reporting_floor]
        return sorted(reported, key=lambda pair: -pair.similarity_percentage)

    def generate_matrix_summary(
        self,
        pairs: Sequence[SimilarityPair],
        similarity_threshold: float
    ) -> Dict:
        """
        Generate summary statistics over all computed pairs.

        Args:
            pairs: All computed pairs
            similarity_threshold: Clustering threshold in percent

        Returns:
            Dictionary with summary statistics
        """
        scores = [pair.similarity_percentage for pair in pairs]
        return {
            "totalComparisons": len(scores),
            "averageSimilarity": round(sum(scores) / len(scores), 2) if scores else 0.0,
            "maxSimilarity": max(scores) if scores else 0.0,
            "pairsAboveThreshold": sum(1 for s in scores if s >= similarity_threshold),
            "pairsReported": sum(1 for s in scores if s >= self.reporting_floor),
            "reportingFloor": self.reporting_floor,
        }
