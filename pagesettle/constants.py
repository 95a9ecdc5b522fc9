"""Centralized constants and configuration for the page settle renderer.

Every tunable used by the renderer and the Playwright engine lives here.
Business logic reads these values instead of hardcoding them.
"""

from os import environ

# Early signal channel - the injected startup script posts through it
DONE_LOADING_CHANNEL: str = "doneLoading"

# Scripts evaluated against the live document
SERIALIZE_SCRIPT: str = "document.documentElement.outerHTML"
DONE_LOADING_SCRIPT: str = f"window.{DONE_LOADING_CHANNEL}(document.documentElement.outerHTML);"
STOP_LOADING_SCRIPT: str = "window.stop()"

# Post-action timing
VALIDATE_POLL_INTERVAL: float = float(environ.get("PAGESETTLE_VALIDATE_POLL_INTERVAL", "0.5"))
# Unset means validate predicates are polled until they pass
VALIDATE_TIMEOUT: float | None = (
    float(environ["PAGESETTLE_VALIDATE_TIMEOUT"])
    if environ.get("PAGESETTLE_VALIDATE_TIMEOUT")
    else None
)
INCLUDE_MEDIA_CONTENT: bool = (
    environ.get("PAGESETTLE_INCLUDE_MEDIA_CONTENT", "true").lower() == "true"
)

# Browser configuration
DEFAULT_BROWSER_TYPE: str = environ.get("BROWSER_TYPE", "chromium")
BROWSER_HEADLESS: bool = environ.get("BROWSER_HEADLESS", "true").lower() == "true"
BROWSER_TIMEOUT: float = float(environ.get("BROWSER_TIMEOUT", "30.0"))
DEFAULT_WAIT_UNTIL: str = environ.get("BROWSER_WAIT_UNTIL", "load")
VIEWPORT_WIDTH: int = int(environ.get("VIEWPORT_WIDTH", "1920"))
VIEWPORT_HEIGHT: int = int(environ.get("VIEWPORT_HEIGHT", "1080"))
DEFAULT_USER_AGENT: str = environ.get(
    "USER_AGENT",
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) "
    "AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36",
)
BROWSER_LAUNCH_ARGS: tuple[str, ...] = (
    "--no-sandbox",
    "--disable-dev-shm-usage",
    "--disable-gpu",
    "--disable-extensions",
)
ALLOWED_BROWSER_TYPES: tuple[str, ...] = ("chromium", "firefox", "webkit")
ALLOWED_WAIT_UNTIL: tuple[str, ...] = ("load", "domcontentloaded", "networkidle")

# Browser launch retry
LAUNCH_MAX_RETRIES: int = int(environ.get("LAUNCH_MAX_RETRIES", "3"))
BACKOFF_FACTOR: float = float(environ.get("BACKOFF_FACTOR", "2.0"))

# HTTP status range treated as success
HTTP_SUCCESS_MIN: int = 200
HTTP_SUCCESS_MAX: int = 299
HTTP_STATUS_OK: int = 200

# Logging Configuration
LOG_LEVEL: str = environ.get("LOG_LEVEL", "INFO")
LOG_JSON: bool = environ.get("LOG_JSON", "false").lower() == "true"


class AppConstants:  # pylint: disable=too-few-public-methods
    """Attribute access to the module level constants."""

    def __getattr__(self, name: str):
        """Redirect to module level constants."""
        import sys  # pylint: disable=import-outside-toplevel

        return getattr(sys.modules[__name__], name)


CONSTANTS = AppConstants()
