"""Retry with exponential backoff and jitter for browser start-up.

Only engine bring-up goes through here. Navigation is never retried: a failed
navigation is reported to the renderer exactly once.
"""

import asyncio
import functools
import secrets
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any, TypeVar

import structlog
from playwright.async_api import Error as PlaywrightError

from ..constants import CONSTANTS

logger = structlog.get_logger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class RetryConfig:
    """Configuration for retry behavior with jitter support."""

    max_attempts: int = CONSTANTS.LAUNCH_MAX_RETRIES
    base_delay: float = 1.0
    max_delay: float = 30.0
    backoff_factor: float = CONSTANTS.BACKOFF_FACTOR
    jitter: bool = True

    def __post_init__(self):
        """Validate configuration parameters."""
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        if self.base_delay <= 0:
            raise ValueError("base_delay must be positive")
        if self.backoff_factor <= 1:
            raise ValueError("backoff_factor must be greater than 1")

    def calculate_delay(self, attempt: int) -> float:
        """Calculate delay with exponential backoff and full jitter.

        Args:
            attempt: Current attempt number (0-indexed)

        Returns:
            Delay in seconds
        """
        delay = min(self.base_delay * (self.backoff_factor**attempt), self.max_delay)
        if self.jitter:
            delay = max(0.1, secrets.SystemRandom().uniform(0, delay))
        return delay


def with_retry(
    retry_config: RetryConfig | None = None,
    retry_on: tuple = (PlaywrightError, asyncio.TimeoutError),
) -> Callable[[Callable[..., Awaitable[T]]], Callable[..., Awaitable[T]]]:
    """Decorate a coroutine function with retry and exponential backoff.

    Args:
        retry_config: Retry configuration object (uses defaults if None)
        retry_on: Exception types to retry on; anything else propagates at once

    Returns:
        Decorated coroutine function
    """
    if retry_config is None:
        retry_config = RetryConfig()

    def decorator(func: Callable[..., Awaitable[T]]) -> Callable[..., Awaitable[T]]:
        @functools.wraps(func)
        async def wrapper(*args: Any, **kwargs: Any) -> T:
            last_exception: BaseException | None = None

            for attempt in range(retry_config.max_attempts):
                try:
                    result = await func(*args, **kwargs)
                    if attempt > 0:
                        logger.info(
                            "Recovered after retries",
                            function=func.__name__,
                            attempts=attempt + 1,
                        )
                    return result
                except retry_on as e:
                    last_exception = e
                    if attempt == retry_config.max_attempts - 1:
                        break

                    delay = retry_config.calculate_delay(attempt)
                    logger.warning(
                        "Retrying after failure",
                        function=func.__name__,
                        attempt=attempt + 1,
                        max_attempts=retry_config.max_attempts,
                        delay=round(delay, 2),
                        exception=type(e).__name__,
                        error=str(e),
                    )
                    await asyncio.sleep(delay)

            logger.error(
                "All retry attempts exhausted",
                function=func.__name__,
                max_attempts=retry_config.max_attempts,
                final_exception=type(last_exception).__name__ if last_exception else "Unknown",
            )
            if last_exception:
                raise last_exception
            raise RuntimeError(f"All {retry_config.max_attempts} retry attempts failed")

        return wrapper

    return decorator
