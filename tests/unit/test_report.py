"""
Unit tests for Report and the report writer.

Run with: pytest tests/unit/test_report.py -v
"""

import json

import pytest

from codepecker.core import ReportWriteError
from codepecker.results import Report, load_report, write_report


@pytest.fixture
def report():
    return Report(
        task_id="t-7",
        severity="medium",
        info={"status": 0, "total": 3},
        problems=[
            {"errorCode": "SQLI", "severityLevel": 1, "solution": {"wiki_description": "使用预编译语句"}},
            {"errorCode": "XSS", "severityLevel": 3, "file_content_bytes": [104, 105]},
        ],
    )


class TestReport:
    """Test suite for report serialization"""

    def test_problem_count(self, report):
        assert report.problem_count == 2
        assert report.to_dict()["problem_count"] == 2

    def test_round_trip(self, report, tmp_path):
        """Test reading the written file back gives the same report"""
        path = write_report(report, tmp_path / "results.json")

        loaded = load_report(path)

        assert loaded.task_id == "t-7"
        assert loaded.severity == "medium"
        assert loaded.problem_count == 2
        assert loaded == report

    def test_pretty_printed_utf8(self, report, tmp_path):
        path = write_report(report, tmp_path / "results.json")

        text = path.read_text(encoding="utf-8")
        assert "\n  \"task_id\": \"t-7\"" in text
        assert "使用预编译语句" in text

    def test_overwrites_existing_file(self, report, tmp_path):
        path = tmp_path / "results.json"
        path.write_text("old content that is longer than nothing", encoding="utf-8")

        write_report(report, path)

        assert json.loads(path.read_text(encoding="utf-8"))["task_id"] == "t-7"

    def test_creates_parent_directories(self, report, tmp_path):
        path = write_report(report, tmp_path / "out" / "nested" / "results.json")

        assert path.exists()

    def test_write_failure(self, report, tmp_path):
        """Test an unwritable target raises ReportWriteError"""
        with pytest.raises(ReportWriteError) as exc_info:
            write_report(report, tmp_path)

        assert exc_info.value.path == str(tmp_path)


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
