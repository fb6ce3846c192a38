"""
Report - The consolidated scan result and its JSON file form.
"""

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Union

from ..core.errors import ReportWriteError


@dataclass
class Report:
    """Findings of one scan task after filtering and enrichment"""
    task_id: str
    severity: str
    info: Dict[str, Any] = field(default_factory=dict)
    problems: List[Dict[str, Any]] = field(default_factory=list)

    @property
    def problem_count(self) -> int:
        return len(self.problems)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization"""
        return {
            "task_id": self.task_id,
            "severity": self.severity,
            "problem_count": self.problem_count,
            "info": self.info,
            "problems": self.problems,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Report":
        return cls(
            task_id=data["task_id"],
            severity=data["severity"],
            info=data.get("info") or {},
            problems=list(data.get("problems") or []),
        )


def write_report(report: Report, path: Union[str, Path]) -> Path:
    """
    Write ``report`` as pretty-printed JSON, replacing any existing file.

    Raises:
        ReportWriteError: If the file cannot be written
    """
    output_path = Path(path)
    try:
        output_path.parent.mkdir(parents=True, exist_ok=True)
        with open(output_path, "w", encoding="utf-8") as f:
            json.dump(report.to_dict(), f, indent=2, ensure_ascii=False)
    except (OSError, TypeError, ValueError) as e:
        raise ReportWriteError(str(output_path), str(e)) from e

    return output_path


def load_report(path: Union[str, Path]) -> Report:
    """Read a report written by ``write_report``"""
    with open(path, "r", encoding="utf-8") as f:
        return Report.from_dict(json.load(f))
