"""
Severity filtering for backend findings.

Codepecker ranks findings from 1 (most severe) to 5 (least severe). A
severity floor keeps every finding at or above it, except ``critical``,
which keeps level 1 only.
"""

from enum import Enum
from typing import Any, Dict, List, Optional


class SeverityLevel(Enum):
    """Severity floors accepted on the command line"""
    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"
    INFO = "info"


# Highest severityLevel value kept by each floor
SEVERITY_THRESHOLDS: Dict[str, int] = {
    SeverityLevel.INFO.value: 5,
    SeverityLevel.LOW.value: 4,
    SeverityLevel.MEDIUM.value: 3,
    SeverityLevel.HIGH.value: 2,
}

CRITICAL_LEVEL = 1


def severity_level_of(finding: Dict[str, Any]) -> int:
    """Numeric severityLevel of a finding, 0 when missing or not an integer"""
    level = finding.get("severityLevel")
    if isinstance(level, int) and not isinstance(level, bool):
        return level
    return 0


def filter_by_severity(severity: str, findings: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """
    Keep the findings that meet a severity floor, preserving order.

    Args:
        severity: One of info/low/medium/high/critical
        findings: Findings as returned by the backend

    Returns:
        Filtered findings. An unrecognized keyword yields an empty list.
    """
    if severity == SeverityLevel.CRITICAL.value:
        return [f for f in findings if severity_level_of(f) == CRITICAL_LEVEL]

    threshold: Optional[int] = SEVERITY_THRESHOLDS.get(severity)
    if threshold is None:
        return []

    return [f for f in findings if severity_level_of(f) <= threshold]
