"""Configuration settings for the renderer state machine."""

from dataclasses import dataclass

from ..constants import CONSTANTS
from .exceptions import ConfigurationError


@dataclass(frozen=True)
class RendererConfig:
    """Configuration for the load-completion state machine.

    Defaults come from the centralized constants so environment overrides
    apply everywhere.
    """

    # Default for requests that do not say whether media must finish loading
    include_media_content: bool = CONSTANTS.INCLUDE_MEDIA_CONTENT

    # Validate post-action polling
    validate_poll_interval: float = CONSTANTS.VALIDATE_POLL_INTERVAL
    validate_timeout: float | None = CONSTANTS.VALIDATE_TIMEOUT

    # Scripts
    serialize_script: str = CONSTANTS.SERIALIZE_SCRIPT
    done_loading_script: str = CONSTANTS.DONE_LOADING_SCRIPT
    done_loading_channel: str = CONSTANTS.DONE_LOADING_CHANNEL

    def __post_init__(self):
        """Validate configuration parameters."""
        if self.validate_poll_interval <= 0:
            raise ConfigurationError("validate_poll_interval must be positive")
        if self.validate_timeout is not None and self.validate_timeout <= 0:
            raise ConfigurationError("validate_timeout must be positive when set")
        if not self.serialize_script.strip():
            raise ConfigurationError("serialize_script must not be empty")
        if not self.done_loading_channel:
            raise ConfigurationError("done_loading_channel must not be empty")


# Global config instance
config = RendererConfig()
