"""
Results module - Collecting findings into a report.

This package contains:
- ResultAggregator: pagination, filtering and enrichment
- FileContentCache: one source fetch per file path
- Report: the consolidated result and its JSON file form
"""

from .severity import SeverityLevel, filter_by_severity, SEVERITY_THRESHOLDS
from .file_cache import FileContentCache
from .report import Report, write_report, load_report
from .aggregator import ResultAggregator


__all__ = [
    # Filtering
    "SeverityLevel",
    "filter_by_severity",
    "SEVERITY_THRESHOLDS",
    # Enrichment
    "FileContentCache",
    "ResultAggregator",
    # Report
    "Report",
    "write_report",
    "load_report",
]
