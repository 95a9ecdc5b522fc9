"""Load-completion state machine.

A :class:`Renderer` owns at most one in-flight request. It watches the
engine's busy state, listens for the early ``doneLoading`` signal, runs the
optional post action and hands back the serialized document exactly once.

Request lifecycle::

    LOADING --idle--> FETCHING --> delivered
    LOADING --idle--> SETTLING (wait | validate polling) --> FETCHING --> delivered
    LOADING | SETTLING --non-2xx navigation failure--> delivered with error

Every engine callback and every scheduled continuation runs on the same
asyncio loop, so the single ``_active`` slot needs no lock. Continuations
check that their request is still the active one before touching it.
"""

import asyncio
from collections.abc import AsyncGenerator, Callable, Coroutine
from contextlib import asynccontextmanager
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional, Union

import structlog

from ..constants import CONSTANTS
from ..core.config import RendererConfig
from ..core.config import config as default_config
from ..core.exceptions import (
    NavigationFailedError,
    PostActionTimeoutError,
    RenderError,
    RenderInProgressError,
    ScriptEvaluationError,
)
from .browser import BrowserConfig, PlaywrightEngine
from .engine import BrowserEngine
from .models import (
    Completion,
    RenderOptions,
    RenderResult,
    ResponseMetadata,
    ScriptCompletion,
    ScriptOptions,
    ScriptResult,
    ValidateAction,
    WaitAction,
    parse_post_action,
)

logger = structlog.get_logger(__name__)


class RequestPhase(Enum):
    """Where the active request is in the completion race."""

    LOADING = "loading"
    SETTLING = "settling"
    FETCHING = "fetching"


@dataclass(eq=False)
class ActiveRequest:
    """The single in-flight render request and its accumulated state."""

    target: str
    completion: Completion
    include_media_content: bool
    post_action: Optional[Union[WaitAction, ValidateAction]] = None
    response: Optional[ResponseMetadata] = None
    error: Optional[RenderError] = None
    phase: RequestPhase = RequestPhase.LOADING
    early_signal_seen: bool = False
    timer: Optional[asyncio.TimerHandle] = None
    settle_started: Optional[float] = None
    polls: int = 0

    def cancel_timer(self) -> None:
        if self.timer is not None:
            self.timer.cancel()
            self.timer = None


class Renderer:
    """Arbitrates when a dynamically loading page is ready to be captured."""

    def __init__(self, engine: BrowserEngine, config: Optional[RendererConfig] = None):
        self.engine = engine
        self.config = config or default_config

        self._active: Optional[ActiveRequest] = None
        self._tasks: set[asyncio.Task] = set()
        self._initialized = False

        engine.bind(self)

    async def initialize(self) -> None:
        """Install the early-signal script and its message channel."""
        if self._initialized:
            return
        await self.engine.install_startup_script(self.config.done_loading_script)
        await self.engine.register_message_channel(self.config.done_loading_channel)
        self._initialized = True
        logger.info("Renderer initialized", channel=self.config.done_loading_channel)

    @property
    def busy(self) -> bool:
        """True while a render request is in flight."""
        return self._active is not None

    # ------------------------------------------------------------------
    # Request coordinator
    # ------------------------------------------------------------------

    def start(
        self,
        target: str,
        on_complete: Completion,
        post_action: Any = None,
        *,
        include_media_content: Optional[bool] = None,
    ) -> bool:
        """Admit a render request and start navigating to ``target``.

        Returns False, without ever calling ``on_complete``, when another
        request is still in flight.
        """
        if not self._admit(target, on_complete, post_action, include_media_content):
            return False
        self.engine.load(target)
        return True

    def run_script(
        self,
        script: str,
        will_navigate: bool = False,
        post_action: Any = None,
        on_complete: Optional[ScriptCompletion] = None,
        *,
        include_media_content: Optional[bool] = None,
    ) -> bool:
        """Evaluate ``script`` in the current page.

        Without ``will_navigate`` the script's value goes straight to
        ``on_complete`` and the in-flight slot is left alone. With it, the
        script is expected to navigate and the request completes like
        :meth:`start`, reporting the serialized document as the value.
        """
        if self._active is not None:
            logger.warning(
                "Rendering already in progress",
                rejected="script",
                active_target=self._active.target,
            )
            return False

        if not will_navigate:
            self._spawn(self._evaluate_detached(script, on_complete))
            return True

        def complete(result: RenderResult) -> None:
            if on_complete is not None:
                on_complete(
                    ScriptResult(value=result.html, response=result.response, error=result.error)
                )

        target = self.engine.url or "about:blank"
        if not self._admit(target, complete, post_action, include_media_content):
            return False
        self.engine.run_navigating_script(script)
        return True

    def _admit(
        self,
        target: str,
        on_complete: Completion,
        post_action: Any,
        include_media_content: Optional[bool],
    ) -> bool:
        if self._active is not None:
            logger.warning(
                "Rendering already in progress",
                rejected=target,
                active_target=self._active.target,
            )
            return False

        action = parse_post_action(post_action)
        self._active = ActiveRequest(
            target=target,
            completion=on_complete,
            include_media_content=(
                self.config.include_media_content
                if include_media_content is None
                else include_media_content
            ),
            post_action=action,
        )
        logger.info(
            "Render request admitted",
            target=target,
            post_action=action.kind if action else None,
            include_media_content=self._active.include_media_content,
        )
        return True

    def _deliver(self, request: ActiveRequest, html: Optional[str]) -> None:
        """Single exit point: hand the result to the request's callback once."""
        if self._active is not request:
            logger.debug("Dropping result of a finished request", target=request.target)
            return

        self._active = None
        request.cancel_timer()

        result = RenderResult(
            html=html.encode("utf-8") if html is not None else None,
            response=request.response,
            error=request.error,
        )
        logger.info(
            "Render completed",
            target=request.target,
            status_code=result.response.status if result.response else None,
            html_length=len(result.html) if result.html is not None else None,
            error=str(result.error) if result.error else None,
        )
        request.completion(result)

    def _abandon(self, request: ActiveRequest) -> None:
        if self._active is not request:
            return
        self._active = None
        request.cancel_timer()
        logger.warning("Render request abandoned by caller", target=request.target)

    async def _evaluate_detached(
        self, script: str, on_complete: Optional[ScriptCompletion]
    ) -> None:
        try:
            value = await self.engine.evaluate(script)
        except ScriptEvaluationError as e:
            logger.warning("Script evaluation failed", error=str(e))
            result = ScriptResult(error=e)
        except Exception as e:
            logger.error("Script evaluation crashed", error=str(e), exc_info=True)
            result = ScriptResult(error=RenderError("Script evaluation failed", cause=e))
        else:
            result = ScriptResult(value=value)

        if on_complete is not None:
            on_complete(result)

    # ------------------------------------------------------------------
    # Load-state observer
    # ------------------------------------------------------------------

    def on_busy_state_changed(self, loading: bool) -> None:
        request = self._active
        if loading or request is None or request.phase is not RequestPhase.LOADING:
            return

        action = request.post_action
        request.post_action = None
        if action is None:
            request.phase = RequestPhase.FETCHING
            self._spawn(self._fetch_and_deliver(request))
        else:
            request.phase = RequestPhase.SETTLING
            self._run_post_action(request, action)

    def on_navigation_response(self, response: ResponseMetadata) -> None:
        request = self._active
        if request is None:
            return
        request.response = response
        logger.debug("Navigation response", url=response.url, status_code=response.status)

    def on_navigation_failed(self, error: Exception) -> None:
        request = self._active
        if request is None:
            return

        response = request.response
        if response is None or response.ok:
            logger.debug(
                "Ignoring navigation failure after successful response",
                target=request.target,
                error=str(error),
            )
            return

        request.error = NavigationFailedError(
            "Navigation failed",
            url=response.url,
            cause=error,
            status_code=response.status,
        )
        logger.warning(
            "Navigation failed", url=response.url, status_code=response.status, error=str(error)
        )
        self._deliver(request, None)

    # ------------------------------------------------------------------
    # Early-signal listener
    # ------------------------------------------------------------------

    def on_message(self, name: str, payload: Any) -> None:
        if name != self.config.done_loading_channel:
            return

        request = self._active
        if request is None or request.phase is not RequestPhase.LOADING:
            return
        if request.early_signal_seen:
            return
        request.early_signal_seen = True

        if request.include_media_content:
            logger.debug("Initial parse finished, waiting for media", target=request.target)
            return

        url = self.engine.url
        if request.response is None and url:
            request.response = ResponseMetadata(url=url, status=CONSTANTS.HTTP_STATUS_OK)

        logger.debug(
            "Initial parse finished, stopping secondary loads",
            target=request.target,
            html_length=len(payload) if isinstance(payload, str) else None,
        )
        # Stopping produces the idle transition handled above
        self.engine.stop_loading()

    # ------------------------------------------------------------------
    # Post-action resolver
    # ------------------------------------------------------------------

    def _run_post_action(
        self, request: ActiveRequest, action: Union[WaitAction, ValidateAction]
    ) -> None:
        if isinstance(action, WaitAction):
            logger.debug("Waiting before capture", target=request.target, seconds=action.seconds)
            self._schedule(request, action.seconds, self._fetch_and_deliver)
        elif isinstance(action, ValidateAction):
            request.settle_started = asyncio.get_running_loop().time()
            logger.debug("Validating before capture", target=request.target, script=action.script)
            self._spawn(self._validate(request, action.script))
        else:
            raise TypeError(f"Unsupported post action: {action!r}")

    async def _validate(self, request: ActiveRequest, script: str) -> None:
        if self._active is not request:
            return

        request.polls += 1
        try:
            passed = await self.engine.evaluate(script) is True
        except Exception as e:
            logger.debug("Validation script failed", poll=request.polls, error=str(e))
            passed = False

        if self._active is not request:
            return

        if passed:
            logger.debug("Validation passed", target=request.target, polls=request.polls)
            await self._fetch_and_deliver(request)
            return

        timeout = self.config.validate_timeout
        elapsed = asyncio.get_running_loop().time() - (request.settle_started or 0.0)
        if timeout is not None and elapsed >= timeout:
            request.error = PostActionTimeoutError(
                f"Validation did not pass within {timeout}s", url=request.target
            )
            self._deliver(request, None)
            return

        self._schedule(request, self.config.validate_poll_interval, self._validate, script)

    async def _fetch_and_deliver(self, request: ActiveRequest) -> None:
        if self._active is not request:
            return
        request.phase = RequestPhase.FETCHING

        try:
            html = await self.engine.evaluate(self.config.serialize_script)
        except ScriptEvaluationError as e:
            logger.warning("Document serialization failed", target=request.target, error=str(e))
            if request.error is None:
                request.error = e
            html = None
        except Exception as e:
            logger.error(
                "Document serialization crashed", target=request.target, error=str(e), exc_info=True
            )
            if request.error is None:
                request.error = RenderError(
                    "Document serialization failed", url=request.target, cause=e
                )
            html = None

        if html is not None and not isinstance(html, str):
            html = str(html)
        self._deliver(request, html)

    # ------------------------------------------------------------------
    # Scheduling
    # ------------------------------------------------------------------

    def _spawn(self, coro: Coroutine[Any, Any, None]) -> asyncio.Task:
        task = asyncio.get_running_loop().create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    def _schedule(
        self,
        request: ActiveRequest,
        delay: float,
        func: Callable[..., Coroutine[Any, Any, None]],
        *args: Any,
    ) -> None:
        """Re-enter the loop with ``func(request, *args)`` after ``delay``."""

        def fire() -> None:
            request.timer = None
            if self._active is request:
                self._spawn(func(request, *args))

        request.timer = asyncio.get_running_loop().call_later(delay, fire)

    # ------------------------------------------------------------------
    # Awaitable surface
    # ------------------------------------------------------------------

    async def render(
        self, target: str, options: Union[RenderOptions, dict[str, Any], None] = None
    ) -> RenderResult:
        """Navigate to ``target`` and return the settled document.

        Raises:
            RenderInProgressError: If another request is still in flight
        """
        opts = _coerce_options(options, RenderOptions)
        future: asyncio.Future[RenderResult] = asyncio.get_running_loop().create_future()

        admitted = self.start(
            target,
            lambda result: _resolve(future, result),
            opts.post_action,
            include_media_content=opts.include_media_content,
        )
        if not admitted:
            raise RenderInProgressError("Rendering already in progress", url=target)

        request = self._active
        try:
            return await future
        except asyncio.CancelledError:
            if request is not None:
                self._abandon(request)
            raise

    async def evaluate(
        self, script: str, options: Union[ScriptOptions, dict[str, Any], None] = None
    ) -> ScriptResult:
        """Evaluate ``script``; see :meth:`run_script`.

        Raises:
            RenderInProgressError: If a render request is still in flight
        """
        opts = _coerce_options(options, ScriptOptions)
        future: asyncio.Future[ScriptResult] = asyncio.get_running_loop().create_future()

        admitted = self.run_script(
            script,
            will_navigate=opts.navigates_first,
            post_action=opts.post_action,
            on_complete=lambda result: _resolve(future, result),
            include_media_content=opts.include_media_content,
        )
        if not admitted:
            raise RenderInProgressError("Rendering already in progress")

        request = self._active if opts.navigates_first else None
        try:
            return await future
        except asyncio.CancelledError:
            if request is not None:
                self._abandon(request)
            raise

    async def close(self) -> None:
        """Cancel outstanding work.

        A pending request is delivered with a ``RenderError("Renderer closed")``.
        """
        request = self._active
        if request is not None:
            logger.warning("Closing renderer with a request in flight", target=request.target)
            request.error = RenderError("Renderer closed", url=request.target)
            self._deliver(request, None)
        tasks = list(self._tasks)
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)

    async def __aenter__(self):
        """Async context manager entry."""
        await self.initialize()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit."""
        await self.close()


def _resolve(future: asyncio.Future, result: Any) -> None:
    if not future.done():
        future.set_result(result)


def _coerce_options(options: Any, model: type) -> Any:
    if options is None:
        return model()
    if isinstance(options, model):
        return options
    if isinstance(options, dict):
        return model.model_validate(options)
    raise TypeError(f"options must be {model.__name__}, dict or None, got {type(options).__name__}")


@asynccontextmanager
async def create_renderer(
    browser_config: Optional[BrowserConfig] = None,
    renderer_config: Optional[RendererConfig] = None,
) -> AsyncGenerator[Renderer, None]:
    """Launch a Playwright-backed renderer for the duration of the block."""
    async with PlaywrightEngine(browser_config) as engine:
        async with Renderer(engine, renderer_config) as renderer:
            yield renderer
