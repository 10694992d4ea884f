"""
Duplicate and near-duplicate test case detection.
"""

from tc_dedup.engine import DuplicateAnalysisEngine, analyze_duplicates
from tc_dedup.config.analysis_config import AnalysisMode, AnalysisOptions, ClusterLinkage
from tc_dedup.data.models import AutomationState, Step, TestCase
from tc_dedup.errors import (
    DuplicateAnalysisError,
    InputTooLargeError,
    InsufficientInputError,
    InvalidThresholdError,
    SemanticHookFailure,
)

__version__ = "0.3.0"

__all__ = [
    'DuplicateAnalysisEngine',
    'analyze_duplicates',
    'AnalysisMode',
    'AnalysisOptions',
    'ClusterLinkage',
    'AutomationState',
    'Step',
    'TestCase',
    'DuplicateAnalysisError',
    'InputTooLargeError',
    'InsufficientInputError',
    'InvalidThresholdError',
    'SemanticHookFailure',
]
