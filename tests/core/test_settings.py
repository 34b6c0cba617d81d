"""
Unit tests for environment-driven settings and logging setup.
"""
import importlib
import logging
from logging.handlers import RotatingFileHandler

import pytest

from e57codec.core import config, logging_config


@pytest.fixture
def reload_config(monkeypatch):
    yield lambda: importlib.reload(config)
    monkeypatch.undo()
    importlib.reload(config)


class TestSettings:
    """Tests for Settings defaults and overrides"""

    def test_defaults(self, monkeypatch, reload_config):
        for name in ("E57_PAGE_SIZE", "E57_READ_AHEAD_PAGES", "E57_STRICT_FIELDS", "E57_LOG_LEVEL", "E57_LOG_FILE"):
            monkeypatch.delenv(name, raising=False)
        module = reload_config()

        assert module.settings.PAGE_SIZE == 1024
        assert module.settings.READ_AHEAD_PAGES == 4
        assert module.settings.STRICT_FIELDS is False
        assert module.settings.LOG_LEVEL == "INFO"
        assert module.settings.LOG_FILE is None

    def test_environment_overrides(self, monkeypatch, reload_config):
        monkeypatch.setenv("E57_PAGE_SIZE", "2048")
        monkeypatch.setenv("E57_READ_AHEAD_PAGES", "16")
        monkeypatch.setenv("E57_STRICT_FIELDS", "TRUE")
        monkeypatch.setenv("E57_LOG_FILE", "/tmp/e57.log")
        module = reload_config()

        assert module.settings.PAGE_SIZE == 2048
        assert module.settings.READ_AHEAD_PAGES == 16
        assert module.settings.STRICT_FIELDS is True
        assert module.settings.LOG_FILE == "/tmp/e57.log"


class TestLoggingConfig:
    """Tests for configure_logging"""

    def test_handlers(self, tmp_path, monkeypatch):
        """Test the stream and rotating file handlers passed to basicConfig"""
        calls = []
        monkeypatch.setattr(logging_config.logging, "basicConfig", lambda **kwargs: calls.append(kwargs))
        log_file = tmp_path / "logs" / "e57.log"

        logging_config.configure_logging("DEBUG", log_file)

        [kwargs] = calls
        handlers = kwargs["handlers"]
        try:
            assert kwargs["level"] == "DEBUG"
            assert kwargs["format"] == logging_config.LOG_FORMAT
            assert kwargs["force"] is True
            assert isinstance(handlers[0], logging.StreamHandler)
            assert isinstance(handlers[1], RotatingFileHandler)
            assert handlers[1].maxBytes == 10 * 1024 * 1024
            assert log_file.parent.is_dir()
        finally:
            for handler in handlers:
                handler.close()

    def test_without_file(self, monkeypatch):
        calls = []
        monkeypatch.setattr(logging_config.logging, "basicConfig", lambda **kwargs: calls.append(kwargs))
        logging_config.configure_logging()
        assert len(calls[0]["handlers"]) == 1

    def test_get_logger(self):
        assert logging_config.get_logger("e57codec.io").name == "e57codec.io"

    def test_module_loggers(self):
        """Test that package modules log under their module names"""
        from e57codec.codec import compressed_vector
        from e57codec.io import paged

        assert paged.logger is logging_config.get_logger("e57codec.io.paged")
        assert compressed_vector.logger.name == "e57codec.codec.compressed_vector"
