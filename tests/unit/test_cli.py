"""
Unit tests for the command line interface.

Run with: pytest tests/unit/test_cli.py -v
"""

import pytest
import structlog
from click.testing import CliRunner

from codepecker import cli as cli_module
from codepecker.cli import cli
from codepecker.core import BackendError
from codepecker.results import Report
from codepecker.submission import ArchiveSource, ScmKind, ScmSource


@pytest.fixture
def runner():
    yield CliRunner()
    structlog.reset_defaults()


@pytest.fixture
def captured_runs(monkeypatch):
    """Replace the network run with a recorder"""
    runs = []

    async def fake_run_scan(**kwargs):
        runs.append(kwargs)
        return Report(
            task_id=kwargs["task_id"] or "t-new",
            severity=kwargs["config"].severity,
            problems=[{"severityLevel": 1}, {"severityLevel": 1}, {"severityLevel": 3}],
        )

    monkeypatch.setattr(cli_module, "run_scan", fake_run_scan)
    return runs


@pytest.fixture
def archive(tmp_path):
    path = tmp_path / "app.zip"
    path.write_bytes(b"PK\x03\x04")
    return path


class TestScanCommand:
    """Test suite for the scan command"""

    def test_archive_scan(self, runner, captured_runs, archive):
        result = runner.invoke(cli, [
            "scan", "--key", "k", "--file", str(archive), "--severity", "high",
            "--get-source", "--log-level", "off",
        ])

        assert result.exit_code == 0, result.output
        [run] = captured_runs
        assert isinstance(run["source"], ArchiveSource)
        assert run["source"].file_name == "app.zip"
        assert run["project"].name == "test"
        assert run["project"].language == "java"
        assert run["config"].severity == "high"
        assert run["config"].include_source is True
        assert run["task_id"] is None
        assert "Findings by Severity Level" in result.output

    def test_git_scan(self, runner, captured_runs):
        result = runner.invoke(cli, [
            "scan", "--key", "k", "--git", "https://git.local/app.git",
            "--user", "me", "--password", "pw", "--branch", "dev", "--log-level", "off",
        ])

        assert result.exit_code == 0, result.output
        source = captured_runs[0]["source"]
        assert isinstance(source, ScmSource)
        assert source.remote is ScmKind.GIT
        assert source.branch == "dev"

    def test_resume_task(self, runner, captured_runs):
        result = runner.invoke(cli, ["scan", "--key", "k", "--task", "t-9", "--log-level", "off"])

        assert result.exit_code == 0, result.output
        assert captured_runs[0]["task_id"] == "t-9"
        assert captured_runs[0]["source"] is None

    def test_log_level_off_runs_quietly(self, runner, captured_runs):
        result = runner.invoke(cli, ["scan", "--key", "k", "--task", "t-1", "--log-level", "off"])

        assert result.exit_code == 0, result.output
        assert result.exception is None
        assert "[info" not in result.output

    def test_key_from_environment(self, runner, captured_runs):
        result = runner.invoke(
            cli,
            ["scan", "--task", "t-9", "--log-level", "off"],
            env={"CODEPECKER_KEY": "from-env"},
        )

        assert result.exit_code == 0, result.output
        assert captured_runs[0]["key"] == "from-env"

    def test_missing_key(self, runner, captured_runs):
        result = runner.invoke(cli, ["scan", "--task", "t-9", "--log-level", "off"], env={"CODEPECKER_KEY": None})

        assert result.exit_code == 2
        assert captured_runs == []

    def test_user_defined_without_rule_fails_before_network(self, runner, captured_runs, archive):
        result = runner.invoke(cli, [
            "scan", "--key", "k", "--file", str(archive), "--template", "user_defined", "--log-level", "off",
        ])

        assert result.exit_code == 2
        assert "rule id is required" in result.output
        assert captured_runs == []

    def test_two_sources_rejected(self, runner, captured_runs, archive):
        result = runner.invoke(cli, [
            "scan", "--key", "k", "--file", str(archive), "--git", "https://git.local/app.git",
            "--log-level", "off",
        ])

        assert result.exit_code == 2
        assert captured_runs == []

    def test_no_source_rejected(self, runner, captured_runs):
        result = runner.invoke(cli, ["scan", "--key", "k", "--log-level", "off"])

        assert result.exit_code == 2
        assert captured_runs == []

    def test_scm_requires_credentials(self, runner, captured_runs):
        result = runner.invoke(cli, ["scan", "--key", "k", "--svn", "svn://svn.local/app", "--log-level", "off"])

        assert result.exit_code == 2
        assert "--user and --password" in result.output

    def test_task_with_source_rejected(self, runner, captured_runs, archive):
        result = runner.invoke(cli, [
            "scan", "--key", "k", "--task", "t-1", "--file", str(archive), "--log-level", "off",
        ])

        assert result.exit_code == 2

    def test_backend_error_exit_code(self, runner, monkeypatch):
        async def failing_run_scan(**kwargs):
            raise BackendError("license expired")

        monkeypatch.setattr(cli_module, "run_scan", failing_run_scan)

        result = runner.invoke(cli, ["scan", "--key", "k", "--task", "t-1", "--log-level", "off"])

        assert result.exit_code == 1
        assert "license expired" in result.output

    def test_config_file_defaults(self, runner, captured_runs, archive, tmp_path):
        """Test YAML values act as defaults and command-line options override them"""
        config = tmp_path / "codepecker.yaml"
        config.write_text(
            f"key: from-file\nurl: https://pecker.local\nfile: {archive}\nseverity: medium\nlog-level: 'off'\n",
            encoding="utf-8",
        )

        result = runner.invoke(cli, ["scan", "--config", str(config), "--severity", "critical"])

        assert result.exit_code == 0, result.output
        [run] = captured_runs
        assert run["key"] == "from-file"
        assert run["url"] == "https://pecker.local"
        assert run["config"].severity == "critical"

    def test_config_file_unknown_key(self, runner, captured_runs, tmp_path):
        config = tmp_path / "codepecker.yaml"
        config.write_text("colour: blue\n", encoding="utf-8")

        result = runner.invoke(cli, ["scan", "--config", str(config)])

        assert result.exit_code == 2
        assert "colour" in result.output


class TestVersionCommand:

    def test_version_lists_endpoints(self, runner):
        result = runner.invoke(cli, ["version"])

        assert result.exit_code == 0
        assert "codepecker v1.0.0" in result.output
        assert "getTaskResult.action" in result.output


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
