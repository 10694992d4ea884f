"""
Test case data models, text normalization and record loading.
"""

from tc_dedup.data.models import (
    AutomationState,
    SimilarityPair,
    Step,
    StepCluster,
    TestCase,
    TestCaseCluster,
)

__all__ = ['AutomationState', 'SimilarityPair', 'Step', 'StepCluster', 'TestCase', 'TestCaseCluster']
