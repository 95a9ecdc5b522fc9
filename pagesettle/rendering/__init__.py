"""Load-completion rendering for dynamically loading pages.

This package decides *when* a page is settled enough to be captured:

- Load-state observation of the engine's busy/idle transition
- An injected early signal at the end of the initial document parse
- Optional post actions: a fixed wait or a polled JavaScript predicate
- Navigation response and failure tracking

Key Components:
    - Renderer: the single-flight load-completion state machine
    - BrowserEngine / EngineObserver: the engine capability it drives
    - PlaywrightEngine: Playwright implementation of that capability
    - WaitAction / ValidateAction: the post-action variants

Example Usage:
    ```python
    from pagesettle.rendering import create_renderer

    async with create_renderer() as renderer:
        result = await renderer.render(
            "https://example.com",
            {"post_action": {"kind": "validate", "script": "window.appReady === true"}},
        )
        print(result.response.status, result.text)
    ```
"""

from pagesettle.rendering.browser import BrowserConfig, PlaywrightEngine
from pagesettle.rendering.engine import BrowserEngine, EngineObserver
from pagesettle.rendering.models import (
    PostAction,
    RenderOptions,
    RenderResult,
    ResponseMetadata,
    ScriptOptions,
    ScriptResult,
    ValidateAction,
    WaitAction,
    parse_post_action,
)
from pagesettle.rendering.renderer import (
    ActiveRequest,
    Renderer,
    RequestPhase,
    create_renderer,
)

__all__ = [
    # State machine
    "Renderer",
    "ActiveRequest",
    "RequestPhase",
    "create_renderer",
    # Engine capability
    "BrowserEngine",
    "EngineObserver",
    "BrowserConfig",
    "PlaywrightEngine",
    # Requests and results
    "PostAction",
    "WaitAction",
    "ValidateAction",
    "parse_post_action",
    "RenderOptions",
    "ScriptOptions",
    "RenderResult",
    "ScriptResult",
    "ResponseMetadata",
]
