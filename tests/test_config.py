"""Tests for settings and logging setup."""

import logging
import sys

import pytest
import structlog
from pydantic import ValidationError

from waterlevels import Model
from waterlevels.config import Settings, settings
from waterlevels.utils.logging import configure_logging


class TestSettings:
    """Test environment-driven settings."""

    def test_defaults(self):
        assert settings.merge_tolerance == sys.float_info.epsilon
        assert settings.log_level == "INFO"
        assert settings.log_format == "json"

    def test_environment_override(self, monkeypatch):
        monkeypatch.setenv("WATERLEVELS_MERGE_TOLERANCE", "1e-6")
        monkeypatch.setenv("WATERLEVELS_LOG_FORMAT", "plain")
        overridden = Settings()
        assert overridden.merge_tolerance == 1e-6
        assert overridden.log_format == "plain"

    def test_negative_tolerance_rejected(self):
        with pytest.raises(ValidationError):
            Settings(merge_tolerance=-1.0)

    def test_unknown_log_format_rejected(self):
        with pytest.raises(ValidationError):
            Settings(log_format="xml")

    def test_model_tolerance_override(self):
        strict = Model([1.0, 1.0 + 1e-9, 3.0], 1.0)
        loose = Model([1.0, 1.0 + 1e-9, 3.0], 1.0, tolerance=1e-6)
        assert len(strict.initial_parts) == 3
        assert len(loose.initial_parts) == 2


class TestLogging:
    """Test structlog configuration."""

    @pytest.fixture(autouse=True)
    def reset_structlog(self):
        yield
        structlog.reset_defaults()

    def test_json_renderer(self):
        configure_logging("INFO", "json")
        processors = structlog.get_config()["processors"]
        assert isinstance(processors[-1], structlog.processors.JSONRenderer)
        assert logging.getLogger().level == logging.INFO

    def test_plain_renderer(self):
        configure_logging("debug", "plain")
        processors = structlog.get_config()["processors"]
        assert isinstance(processors[-1], structlog.dev.ConsoleRenderer)
        assert logging.getLogger().level == logging.DEBUG

    def test_unknown_format(self):
        with pytest.raises(ValueError):
            configure_logging("INFO", "xml")

    def test_keeps_existing_root_handlers(self):
        handler = logging.NullHandler()
        root = logging.getLogger()
        root.addHandler(handler)
        try:
            configure_logging("INFO", "json")
            assert handler in root.handlers
        finally:
            root.removeHandler(handler)

    def test_model_logs_through_configured_stdlib(self, caplog):
        configure_logging("DEBUG", "json")
        with caplog.at_level(logging.DEBUG):
            Model([3.0, 1.0, 6.0], 1.0)
        messages = [record.getMessage() for record in caplog.records]
        assert any("Generation timeline built" in message for message in messages)
