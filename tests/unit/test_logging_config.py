"""Unit tests for structlog configuration."""

import logging

import pytest
import structlog

from npm_readme_mcp.config import LoggingConfig
from npm_readme_mcp.logging_config import configure_logging


@pytest.fixture
def restore_logging():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    root.handlers = handlers
    root.setLevel(level)
    structlog.reset_defaults()


class TestConfigureLogging:
    def test_logs_to_stderr(self, restore_logging, capsys):
        configure_logging(LoggingConfig(log_level="INFO", log_format="json"))

        structlog.get_logger("test").info("캐시 저장", key="pkg_info:lodash:latest")

        captured = capsys.readouterr()
        assert captured.out == ""
        assert '"key": "pkg_info:lodash:latest"' in captured.err
        assert '"event": "캐시 저장"' in captured.err

    def test_level_filtering(self, restore_logging, capsys):
        configure_logging(LoggingConfig(log_level="WARNING"))

        structlog.get_logger("test").info("hidden")

        assert "hidden" not in capsys.readouterr().err

    def test_httpx_quieted(self, restore_logging):
        configure_logging(LoggingConfig(log_level="DEBUG"))

        assert logging.getLogger("httpx").level == logging.WARNING
