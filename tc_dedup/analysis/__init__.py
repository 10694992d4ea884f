"""
Analysis modules for similarity scoring, clustering and duplicate grouping.
"""

from tc_dedup.analysis.duplicate_detector import DuplicateDetector
from tc_dedup.analysis.representative_selector import SelectionStrategy, select_representative
from tc_dedup.analysis.similarity_analyzer import SimilarityAnalyzer, case_similarity, step_similarity
from tc_dedup.analysis.step_clusterer import StepClusterer

__all__ = [
    'DuplicateDetector',
    'SelectionStrategy',
    'SimilarityAnalyzer',
    'StepClusterer',
    'case_similarity',
    'select_representative',
    'step_similarity',
]
