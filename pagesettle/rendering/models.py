"""Request options, post actions and results of the renderer."""

from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Annotated, Any, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter

from ..constants import CONSTANTS
from ..core.exceptions import RenderError


class WaitAction(BaseModel):
    """Wait a fixed time after the page goes idle, then capture it."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["wait"] = "wait"
    seconds: float = Field(ge=0, description="Delay before the document is captured")


class ValidateAction(BaseModel):
    """Poll a JavaScript predicate until it evaluates to ``true``."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["validate"] = "validate"
    script: str = Field(min_length=1, description="Boolean JavaScript expression")


PostAction = Annotated[Union[WaitAction, ValidateAction], Field(discriminator="kind")]

_post_action_adapter: TypeAdapter = TypeAdapter(PostAction)


def parse_post_action(value: Any) -> Optional[Union[WaitAction, ValidateAction]]:
    """Accept a post action model, a ``{"kind": ...}`` mapping or None."""
    if value is None or isinstance(value, (WaitAction, ValidateAction)):
        return value
    return _post_action_adapter.validate_python(value)


class RenderOptions(BaseModel):
    """Per-request options for :meth:`Renderer.render`."""

    model_config = ConfigDict(frozen=True)

    include_media_content: Optional[bool] = Field(
        default=None,
        description="Wait for images and media; None uses the renderer default",
    )
    post_action: Optional[PostAction] = Field(default=None, description="Deferred post-load step")


class ScriptOptions(RenderOptions):
    """Per-request options for :meth:`Renderer.evaluate`."""

    navigates_first: bool = Field(
        default=False, description="The script triggers a navigation to wait for"
    )


@dataclass(frozen=True)
class ResponseMetadata:
    """HTTP response of a main-frame navigation."""

    url: str
    status: int
    status_text: str = ""
    headers: dict[str, str] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return CONSTANTS.HTTP_SUCCESS_MIN <= self.status <= CONSTANTS.HTTP_SUCCESS_MAX


@dataclass
class RenderResult:
    """Terminal result of one render request.

    Exactly one of ``html`` and ``error`` is meaningful. ``response`` is the
    last navigation response recorded for the request and may accompany
    either.
    """

    html: Optional[bytes] = None
    response: Optional[ResponseMetadata] = None
    error: Optional[RenderError] = None

    @property
    def ok(self) -> bool:
        return self.error is None and self.html is not None

    @property
    def text(self) -> Optional[str]:
        if self.html is None:
            return None
        return self.html.decode("utf-8")

    def raise_for_error(self) -> None:
        """Raise the stored error, if any."""
        if self.error is not None:
            raise self.error


@dataclass
class ScriptResult:
    """Result of :meth:`Renderer.evaluate`.

    For plain evaluation ``value`` is whatever the script returned. For a
    navigating script it is the serialized document as bytes.
    """

    value: Any = None
    response: Optional[ResponseMetadata] = None
    error: Optional[RenderError] = None

    @property
    def ok(self) -> bool:
        return self.error is None


Completion = Callable[[RenderResult], None]
ScriptCompletion = Callable[[ScriptResult], None]
