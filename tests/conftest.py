"""Shared fixtures and test configuration for pytest."""

from collections.abc import Callable
from typing import Any

import pytest
import structlog

from pagesettle.core.config import RendererConfig
from pagesettle.rendering.renderer import Renderer
from tests.fakes import TEST_POLL_INTERVAL, FakeEngine, ResultCollector, drain

# Configure structlog before any module caches a logger with default settings
structlog.reset_defaults()
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="ISO"),
        structlog.processors.StackInfoRenderer(),
        structlog.dev.ConsoleRenderer(exception_formatter=structlog.dev.plain_traceback),
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    logger_factory=structlog.stdlib.LoggerFactory(),
    context_class=dict,
    cache_logger_on_first_use=False,
)


@pytest.fixture
def fake_engine() -> FakeEngine:
    """Fresh fake engine."""
    return FakeEngine()


@pytest.fixture
def renderer_config() -> RendererConfig:
    """Renderer config with a short validate poll interval."""
    return RendererConfig(validate_poll_interval=TEST_POLL_INTERVAL)


@pytest.fixture
def renderer(fake_engine, renderer_config) -> Renderer:
    """Renderer bound to the fake engine."""
    return Renderer(fake_engine, renderer_config)


@pytest.fixture
def collector_factory() -> Callable[[], ResultCollector]:
    """Factory for completion callbacks."""
    return ResultCollector


@pytest.fixture
def settle() -> Callable[..., Any]:
    """Coroutine function that lets pending tasks run."""
    return drain
