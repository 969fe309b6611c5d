"""Tests for settings, logging setup and the Result type."""

from pathlib import Path

import pytest
from pydantic import ValidationError

from normform.core.config import Settings, get_settings
from normform.core.logging import configure_logging, get_logger, log_context
from normform.core.models import Result


class TestSettings:
    """Tests for environment-driven settings."""

    def test_defaults(self, monkeypatch):
        monkeypatch.delenv("NORMFORM_LOG_LEVEL", raising=False)

        settings = Settings()

        assert settings.datasets_path == Path("datasets")
        assert settings.missing_table_tolerance == 2
        assert settings.preview_row_limit == 20
        assert settings.log_level == "INFO"

    def test_environment_overrides(self, monkeypatch):
        monkeypatch.setenv("NORMFORM_MISSING_TABLE_TOLERANCE", "0")
        monkeypatch.setenv("NORMFORM_DATASETS_PATH", "/srv/datasets")

        settings = Settings()

        assert settings.missing_table_tolerance == 0
        assert settings.datasets_path == Path("/srv/datasets")

    def test_negative_tolerance_rejected(self, monkeypatch):
        monkeypatch.setenv("NORMFORM_MISSING_TABLE_TOLERANCE", "-1")

        with pytest.raises(ValidationError):
            Settings()

    def test_get_settings_is_cached(self):
        assert get_settings() is get_settings()


class TestLogging:
    """Tests for structured logging setup."""

    @pytest.mark.parametrize("log_format", ["console", "json"])
    def test_configure_and_log(self, log_format, capsys):
        configure_logging(log_level="INFO", log_format=log_format, color=False)
        logger = get_logger("normform.tests")

        with log_context(dataset="flights", form="2NF"):
            logger.info("table_data_generated", table="FLIGHT", rows=3)

        captured = capsys.readouterr()
        assert "table_data_generated" in captured.err
        assert "flights" in captured.err


class TestResult:
    """Tests for the Result type."""

    def test_ok_carries_warnings(self):
        result = Result.ok(6, warnings=["Skipping notes.txt"])

        assert result.success
        assert result.unwrap() == 6
        assert result.warnings == ["Skipping notes.txt"]

    def test_fail_unwrap_raises(self):
        result = Result.fail("File not found: x.json")

        assert not result.success
        with pytest.raises(ValueError, match="File not found"):
            result.unwrap()
