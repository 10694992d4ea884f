"""
Configuration for duplicate analysis runs and the optional AI layer.
"""

from tc_dedup.config.analysis_config import AnalysisMode, AnalysisOptions, ClusterLinkage

__all__ = ['AnalysisMode', 'AnalysisOptions', 'ClusterLinkage']
