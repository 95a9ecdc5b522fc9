"""Tests for structured logging setup."""

import logging

import pytest
import structlog
from rich.logging import RichHandler

from pagesettle import setup_logging


@pytest.fixture
def restore_logging():
    """Put structlog and the root logger back the way the suite configured them."""
    saved_config = structlog.get_config()
    root = logging.getLogger()
    saved_handlers = list(root.handlers)
    saved_level = root.level
    yield
    structlog.reset_defaults()
    structlog.configure(**saved_config)
    root.handlers[:] = saved_handlers
    root.setLevel(saved_level)


def _renderer():
    return structlog.get_config()["processors"][-1]


class TestSetupLogging:
    """Test logging configuration."""

    def test_rich_handler_installed(self, restore_logging):
        setup_logging()

        handlers = logging.getLogger().handlers
        assert len(handlers) == 1
        assert isinstance(handlers[0], RichHandler)

    def test_verbose_enables_debug(self, restore_logging):
        setup_logging(verbose=True)

        assert logging.getLogger().level == logging.DEBUG
        assert isinstance(_renderer(), structlog.dev.ConsoleRenderer)

    def test_json_output(self, restore_logging):
        setup_logging(json_output=True)

        assert isinstance(_renderer(), structlog.processors.JSONRenderer)

    def test_console_output(self, restore_logging):
        setup_logging(json_output=False)

        assert isinstance(_renderer(), structlog.dev.ConsoleRenderer)
