"""Playwright implementation of the browser engine capability."""

import asyncio
from typing import Any, Literal, Optional, cast

import structlog
from playwright.async_api import Browser, BrowserContext, Page, Playwright, async_playwright
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import Request, Response
from pydantic import BaseModel, Field, field_validator

from ..constants import CONSTANTS
from ..core.exceptions import ScriptEvaluationError
from ..utils.retry import RetryConfig, with_retry
from .engine import EngineObserver
from .models import ResponseMetadata

logger = structlog.get_logger(__name__)

# Runs the wrapped source once the top-level document has been parsed,
# before images and other subresources finish loading.
_STARTUP_PREFIX = """(() => {
  if (window.top !== window) return;
  const run = () => {
"""
_STARTUP_SUFFIX = """
  };
  if (document.readyState === "loading") {
    document.addEventListener("DOMContentLoaded", run, { once: true });
  } else {
    run();
  }
})();"""


def wrap_startup_script(source: str) -> str:
    """Wrap ``source`` so it runs at the end of the main frame's initial parse."""
    return f"{_STARTUP_PREFIX}{source}{_STARTUP_SUFFIX}"


class BrowserConfig(BaseModel):
    """Configuration for the Playwright browser."""

    browser_type: str = Field(
        default=CONSTANTS.DEFAULT_BROWSER_TYPE, description="Browser type (chromium, firefox, webkit)"
    )
    headless: bool = Field(default=CONSTANTS.BROWSER_HEADLESS, description="Run browser in headless mode")
    viewport_width: int = Field(default=CONSTANTS.VIEWPORT_WIDTH, description="Viewport width")
    viewport_height: int = Field(default=CONSTANTS.VIEWPORT_HEIGHT, description="Viewport height")
    user_agent: str = Field(default=CONSTANTS.DEFAULT_USER_AGENT, description="Custom user agent string")
    timeout: float = Field(default=CONSTANTS.BROWSER_TIMEOUT, description="Navigation timeout in seconds")
    wait_until: str = Field(
        default=CONSTANTS.DEFAULT_WAIT_UNTIL,
        description="Load state that ends the busy period (load, domcontentloaded, networkidle)",
    )
    extra_http_headers: dict[str, str] = Field(
        default_factory=dict, description="Additional HTTP headers"
    )
    ignore_https_errors: bool = Field(default=True, description="Ignore HTTPS certificate errors")
    javascript_enabled: bool = Field(default=True, description="Enable JavaScript execution")

    @field_validator("browser_type")
    @classmethod
    def validate_browser_type(cls, v):
        if v not in CONSTANTS.ALLOWED_BROWSER_TYPES:
            raise ValueError(f"Browser type must be one of {list(CONSTANTS.ALLOWED_BROWSER_TYPES)}")
        return v

    @field_validator("wait_until")
    @classmethod
    def validate_wait_until(cls, v):
        if v not in CONSTANTS.ALLOWED_WAIT_UNTIL:
            raise ValueError(f"wait_until must be one of {list(CONSTANTS.ALLOWED_WAIT_UNTIL)}")
        return v


class PlaywrightEngine:
    """One Playwright page exposed as a :class:`BrowserEngine`.

    The busy state is a level: it goes up when a navigation starts and down
    when the configured load state is reached, the navigation fails, or
    :meth:`stop_loading` is called. The observer only hears real transitions.
    """

    def __init__(
        self,
        config: Optional[BrowserConfig] = None,
        retry_config: Optional[RetryConfig] = None,
    ):
        self.config = config or BrowserConfig()
        self.retry_config = retry_config or RetryConfig()

        self._playwright: Optional[Playwright] = None
        self._browser: Optional[Browser] = None
        self._context: Optional[BrowserContext] = None
        self._page: Optional[Page] = None

        self._observer: Optional[EngineObserver] = None
        self._loading = False
        self._navigation: Optional[asyncio.Task] = None
        self._background: set[asyncio.Task] = set()

    @property
    def is_loading(self) -> bool:
        return self._loading

    @property
    def url(self) -> Optional[str]:
        return self._page.url if self._page is not None else None

    def bind(self, observer: EngineObserver) -> None:
        self._observer = observer

    async def initialize(self) -> None:
        """Launch the browser and open the page."""
        if self._page is not None:
            return

        logger.info("Initializing Playwright engine", browser_type=self.config.browser_type)
        if self._playwright is None:
            self._playwright = await async_playwright().start()

        @with_retry(self.retry_config)
        async def launch() -> Browser:
            return await self._launch_browser()

        self._browser = await launch()
        self._context = await self._browser.new_context(**self._context_options())
        self._context.set_default_timeout(self.config.timeout * 1000)

        self._page = await self._context.new_page()
        self._page.on("response", self._handle_response)
        self._page.on("requestfailed", self._handle_request_failed)

        logger.info("Playwright engine initialized")

    async def _launch_browser(self) -> Browser:
        if self._playwright is None:
            raise RuntimeError("Playwright not started")

        if self.config.browser_type == "chromium":
            browser_type = self._playwright.chromium
        elif self.config.browser_type == "firefox":
            browser_type = self._playwright.firefox
        elif self.config.browser_type == "webkit":
            browser_type = self._playwright.webkit
        else:
            raise ValueError(f"Unsupported browser type: {self.config.browser_type}")

        return await browser_type.launch(
            headless=self.config.headless, args=list(CONSTANTS.BROWSER_LAUNCH_ARGS)
        )

    def _context_options(self) -> dict[str, Any]:
        options: dict[str, Any] = {
            "viewport": {
                "width": self.config.viewport_width,
                "height": self.config.viewport_height,
            },
            "user_agent": self.config.user_agent,
            "ignore_https_errors": self.config.ignore_https_errors,
            "java_script_enabled": self.config.javascript_enabled,
        }
        if self.config.extra_http_headers:
            options["extra_http_headers"] = self.config.extra_http_headers
        return options

    async def cleanup(self) -> None:
        """Close the page, context, browser and Playwright driver."""
        if self._navigation is not None and not self._navigation.done():
            self._navigation.cancel()
        self._navigation = None

        for name, closer in (
            ("page", self._page),
            ("context", self._context),
            ("browser", self._browser),
        ):
            if closer is None:
                continue
            try:
                await closer.close()
            except PlaywrightError as e:
                logger.warning(f"Error closing {name}", error=str(e))

        self._page = None
        self._context = None
        self._browser = None

        if self._playwright:
            try:
                await self._playwright.stop()
            except PlaywrightError as e:
                logger.warning("Error stopping Playwright", error=str(e))
            self._playwright = None

        self._loading = False
        logger.info("Playwright engine cleanup completed")

    def _require_page(self) -> Page:
        if self._page is None:
            raise RuntimeError("Browser engine not initialized")
        return self._page

    # ------------------------------------------------------------------
    # Startup script and message channel
    # ------------------------------------------------------------------

    async def install_startup_script(self, source: str) -> None:
        await self._require_page().add_init_script(script=wrap_startup_script(source))

    async def register_message_channel(self, name: str) -> None:
        page = self._require_page()

        def handler(source: dict[str, Any], payload: Any = None) -> None:
            if source.get("frame") != page.main_frame:
                return
            if self._observer is not None:
                self._observer.on_message(name, payload)

        await page.expose_binding(name, handler)

    # ------------------------------------------------------------------
    # Navigation
    # ------------------------------------------------------------------

    def load(self, url: str) -> None:
        logger.debug("Navigating to URL", url=url)
        self._start_navigation(self._goto(url))

    def run_navigating_script(self, script: str) -> None:
        logger.debug("Running navigating script")
        self._start_navigation(self._evaluate_and_wait(script))

    def stop_loading(self) -> None:
        navigation, self._navigation = self._navigation, None
        if navigation is not None and not navigation.done():
            navigation.cancel()
        if self._page is not None:
            self._track(asyncio.get_running_loop().create_task(self._stop_page(self._page)))
        self._set_loading(False)

    def _start_navigation(self, coro) -> None:
        previous = self._navigation
        if previous is not None and not previous.done():
            previous.cancel()
        self._set_loading(True)
        self._navigation = asyncio.get_running_loop().create_task(coro)

    async def _goto(self, url: str) -> None:
        try:
            page = self._require_page()
            await page.goto(url, wait_until=self._wait_until, timeout=self.config.timeout * 1000)
        except PlaywrightError as e:
            logger.warning("Navigation error", url=url, error=str(e))
            self._report_failure(e)
        except Exception as e:
            logger.error("Navigation crashed", url=url, error=str(e), exc_info=True)
            self._report_failure(e)
        finally:
            self._finish_navigation()

    async def _evaluate_and_wait(self, script: str) -> None:
        try:
            page = self._require_page()
            async with page.expect_navigation(
                wait_until=self._wait_until, timeout=self.config.timeout * 1000
            ):
                await page.evaluate(script)
        except PlaywrightError as e:
            logger.warning("Scripted navigation error", url=self.url, error=str(e))
            self._report_failure(e)
        except Exception as e:
            logger.error("Scripted navigation crashed", url=self.url, error=str(e), exc_info=True)
            self._report_failure(e)
        finally:
            self._finish_navigation()

    def _finish_navigation(self) -> None:
        # A superseded navigation must not end the busy period of its successor
        if asyncio.current_task() is self._navigation:
            self._navigation = None
            self._set_loading(False)

    @property
    def _wait_until(self) -> Literal["commit", "domcontentloaded", "load", "networkidle"]:
        return cast(
            "Literal['commit', 'domcontentloaded', 'load', 'networkidle']",
            self.config.wait_until,
        )

    async def _stop_page(self, page: Page) -> None:
        try:
            await page.evaluate(CONSTANTS.STOP_LOADING_SCRIPT)
        except PlaywrightError as e:
            logger.debug("window.stop() failed", error=str(e))

    def _track(self, task: asyncio.Task) -> None:
        self._background.add(task)
        task.add_done_callback(self._background.discard)

    # ------------------------------------------------------------------
    # Event plumbing
    # ------------------------------------------------------------------

    def _set_loading(self, loading: bool) -> None:
        if self._loading == loading:
            return
        self._loading = loading
        if self._observer is not None:
            self._observer.on_busy_state_changed(loading)

    def _is_main_navigation(self, request: Request) -> bool:
        return (
            self._page is not None
            and request.is_navigation_request()
            and request.frame == self._page.main_frame
        )

    def _handle_response(self, response: Response) -> None:
        if not self._is_main_navigation(response.request):
            return
        if self._observer is not None:
            self._observer.on_navigation_response(
                ResponseMetadata(
                    url=response.url,
                    status=response.status,
                    status_text=response.status_text,
                    headers=dict(response.headers),
                )
            )

    def _handle_request_failed(self, request: Request) -> None:
        if not self._is_main_navigation(request):
            return
        self._report_failure(PlaywrightError(request.failure or "Navigation request failed"))

    def _report_failure(self, error: Exception) -> None:
        if self._observer is not None:
            self._observer.on_navigation_failed(error)

    # ------------------------------------------------------------------
    # Script evaluation
    # ------------------------------------------------------------------

    async def evaluate(self, script: str) -> Any:
        page = self._require_page()
        try:
            return await page.evaluate(script)
        except PlaywrightError as e:
            raise ScriptEvaluationError("Script evaluation failed", url=page.url, cause=e) from e

    async def __aenter__(self):
        """Async context manager entry."""
        await self.initialize()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit."""
        await self.cleanup()
