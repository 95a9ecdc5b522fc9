"""Custom exceptions for the page settle renderer."""


class RenderError(Exception):
    """Base exception for rendering errors."""

    def __init__(self, message: str, url: str | None = None, cause: Exception | None = None):
        super().__init__(message)
        self.url = url
        self.cause = cause

    def __str__(self) -> str:
        msg = super().__str__()
        if self.url:
            msg = f"{msg} (URL: {self.url})"
        if self.cause:
            msg = f"{msg} (Caused by: {self.cause})"
        return msg


class RenderInProgressError(RenderError):
    """Raised when a request arrives while another one is still in flight."""

    pass


class NavigationFailedError(RenderError):
    """Navigation failed after a non-success HTTP response was recorded."""

    def __init__(
        self,
        message: str,
        url: str | None = None,
        cause: Exception | None = None,
        status_code: int | None = None,
    ):
        super().__init__(message, url=url, cause=cause)
        self.status_code = status_code

    def __str__(self) -> str:
        msg = super().__str__()
        if self.status_code is not None:
            msg = f"{msg} (Status: {self.status_code})"
        return msg


class ScriptEvaluationError(RenderError):
    """Exception raised when the engine fails to evaluate a script."""

    pass


class PostActionTimeoutError(RenderError):
    """A validate predicate did not pass within the configured timeout."""

    pass


class ConfigurationError(RenderError):
    """Exception raised for configuration-related errors."""

    pass
