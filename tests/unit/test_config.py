"""
Unit tests for configuration files and logging setup.

Run with: pytest tests/unit/test_config.py -v
"""

import io

import pytest
import structlog

from codepecker.config import ConfigFileError, load_config_file
from codepecker.logging_config import configure_logging


ALLOWED = {
    "url": "url",
    "key": "key",
    "file": "archive",
    "archive": "archive",
    "get_source": "get_source",
}


class TestLoadConfigFile:
    """Test suite for YAML option defaults"""

    def test_maps_option_names(self, tmp_path):
        path = tmp_path / "codepecker.yaml"
        path.write_text("url: https://pecker.local\nfile: app.zip\nget-source: true\n", encoding="utf-8")

        assert load_config_file(path, ALLOWED) == {
            "url": "https://pecker.local",
            "archive": "app.zip",
            "get_source": True,
        }

    def test_empty_file(self, tmp_path):
        path = tmp_path / "empty.yaml"
        path.write_text("", encoding="utf-8")

        assert load_config_file(path, ALLOWED) == {}

    def test_unknown_key(self, tmp_path):
        path = tmp_path / "bad.yaml"
        path.write_text("colour: blue\n", encoding="utf-8")

        with pytest.raises(ConfigFileError, match="colour"):
            load_config_file(path, ALLOWED)

    def test_not_a_mapping(self, tmp_path):
        path = tmp_path / "list.yaml"
        path.write_text("- url\n- key\n", encoding="utf-8")

        with pytest.raises(ConfigFileError):
            load_config_file(path, ALLOWED)

    def test_invalid_yaml(self, tmp_path):
        path = tmp_path / "broken.yaml"
        path.write_text("url: [unclosed\n", encoding="utf-8")

        with pytest.raises(ConfigFileError):
            load_config_file(path, ALLOWED)

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigFileError):
            load_config_file(tmp_path / "missing.yaml", ALLOWED)


class TestConfigureLogging:
    """Test suite for structlog setup"""

    def teardown_method(self):
        structlog.reset_defaults()

    def test_level_filtering(self):
        stream = io.StringIO()
        configure_logging("warn", stream=stream)

        logger = structlog.get_logger("test")
        logger.info("hidden_event")
        logger.warning("shown_event", task_id="t-1")

        output = stream.getvalue()
        assert "hidden_event" not in output
        assert "shown_event" in output

    def test_off_silences_everything(self):
        stream = io.StringIO()
        configure_logging("off", stream=stream)

        logger = structlog.get_logger("test")
        logger.error("anything")
        logger.critical("even_critical")

        assert stream.getvalue() == ""

    @pytest.mark.parametrize("level", ["debug", "info", "warn", "error", "off"])
    def test_every_cli_level_configures(self, level):
        """Test each accepted level name builds a working logger"""
        configure_logging(level, stream=io.StringIO())

        structlog.get_logger("test").info("configured")

    def test_unknown_level(self):
        with pytest.raises(ValueError):
            configure_logging("verbose")


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
