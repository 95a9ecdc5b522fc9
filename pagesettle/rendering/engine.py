"""Browser engine capability consumed by the renderer.

The renderer never talks to a browser directly. It drives an object that
satisfies :class:`BrowserEngine` and receives the engine's events through the
single :class:`EngineObserver` bound to it.
"""

from typing import Any, Optional, Protocol, runtime_checkable

from .models import ResponseMetadata


@runtime_checkable
class EngineObserver(Protocol):
    """Receiver of engine events. An engine holds exactly one."""

    def on_busy_state_changed(self, loading: bool) -> None: ...

    def on_navigation_response(self, response: ResponseMetadata) -> None: ...

    def on_navigation_failed(self, error: Exception) -> None: ...

    def on_message(self, name: str, payload: Any) -> None: ...


@runtime_checkable
class BrowserEngine(Protocol):
    """Opaque page-loading capability.

    ``load`` and ``run_navigating_script`` return immediately; progress is
    reported through the bound observer. All callbacks must be delivered on
    the event loop the renderer runs on.
    """

    @property
    def is_loading(self) -> bool: ...

    @property
    def url(self) -> Optional[str]: ...

    def bind(self, observer: EngineObserver) -> None: ...

    async def install_startup_script(self, source: str) -> None: ...

    async def register_message_channel(self, name: str) -> None: ...

    def load(self, url: str) -> None: ...

    def run_navigating_script(self, script: str) -> None: ...

    async def evaluate(self, script: str) -> Any: ...

    def stop_loading(self) -> None: ...
