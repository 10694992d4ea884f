"""
Result assembly and report formatting.
"""

from tc_dedup.output.report_builder import ReportBuilder
from tc_dedup.output.report_formatter import ReportFormatter

__all__ = ['ReportBuilder', 'ReportFormatter']
