"""Detect when a dynamically loading page is settled and capture its HTML."""

from pagesettle.config.loader import ConfigLoader, load_config_from_file
from pagesettle.core.config import RendererConfig
from pagesettle.core.exceptions import (
    ConfigurationError,
    NavigationFailedError,
    PostActionTimeoutError,
    RenderError,
    RenderInProgressError,
    ScriptEvaluationError,
)
from pagesettle.rendering import (
    BrowserConfig,
    PlaywrightEngine,
    Renderer,
    RenderOptions,
    RenderResult,
    ResponseMetadata,
    ScriptOptions,
    ScriptResult,
    ValidateAction,
    WaitAction,
    create_renderer,
)
from pagesettle.utils.logging import setup_logging

__version__ = "0.1.0"

__all__ = [
    "Renderer",
    "RendererConfig",
    "create_renderer",
    "BrowserConfig",
    "PlaywrightEngine",
    "RenderOptions",
    "ScriptOptions",
    "RenderResult",
    "ScriptResult",
    "ResponseMetadata",
    "WaitAction",
    "ValidateAction",
    "RenderError",
    "RenderInProgressError",
    "NavigationFailedError",
    "ScriptEvaluationError",
    "PostActionTimeoutError",
    "ConfigurationError",
    "ConfigLoader",
    "load_config_from_file",
    "setup_logging",
]
