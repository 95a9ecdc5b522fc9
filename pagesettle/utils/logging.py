"""Structured logging configuration using structlog."""

import logging

import structlog
from rich.logging import RichHandler

from ..constants import CONSTANTS


def setup_logging(verbose: bool = False, json_output: bool | None = None) -> None:
    """Configure structured logging with Rich formatting.

    Args:
        verbose: Enable debug logging and the console renderer if True
        json_output: Force JSON rendering on or off; defaults to ``LOG_JSON``
    """
    log_level = logging.DEBUG if verbose else getattr(logging, CONSTANTS.LOG_LEVEL.upper(), logging.INFO)
    render_json = CONSTANTS.LOG_JSON if json_output is None else json_output

    logging.basicConfig(
        level=log_level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(rich_tracebacks=True)],
        force=True,
    )

    renderer = (
        structlog.processors.JSONRenderer()
        if render_json
        else structlog.dev.ConsoleRenderer(colors=verbose)
    )

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_log_level,
            structlog.stdlib.add_logger_name,
            structlog.processors.TimeStamper(fmt="ISO"),
            structlog.processors.StackInfoRenderer(),
            renderer,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        context_class=dict,
        cache_logger_on_first_use=True,
    )
