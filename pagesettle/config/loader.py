"""Configuration file loading for YAML and JSON formats."""

import json
from dataclasses import asdict
from pathlib import Path
from typing import Any, Optional, Union

import structlog
import yaml
from pydantic import ValidationError

from ..core.config import RendererConfig
from ..core.exceptions import ConfigurationError
from ..rendering.browser import BrowserConfig

logger = structlog.get_logger(__name__)


class ConfigLoader:
    """Load renderer and browser configuration from YAML/JSON files."""

    @staticmethod
    def load_config(
        config_path: Union[str, Path], config_type: Optional[str] = None
    ) -> dict[str, Any]:
        """Load configuration from file.

        Args:
            config_path: Path to configuration file
            config_type: Optional type override ('yaml', 'json')

        Returns:
            Configuration dictionary

        Raises:
            FileNotFoundError: If config file doesn't exist
            ConfigurationError: If the format is unsupported or the file is invalid
        """
        config_path = Path(config_path)

        if not config_path.exists():
            raise FileNotFoundError(f"Configuration file not found: {config_path}")

        file_type = (config_type or config_path.suffix.lstrip(".")).lower()

        if file_type in ("yaml", "yml"):
            return ConfigLoader._load_yaml(config_path)
        if file_type == "json":
            return ConfigLoader._load_json(config_path)
        raise ConfigurationError(f"Unsupported config format: {file_type}")

    @staticmethod
    def _load_yaml(config_path: Path) -> dict[str, Any]:
        try:
            with open(config_path, encoding="utf-8") as f:
                config = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML in {config_path}", cause=e) from e
        if not isinstance(config, dict):
            raise ConfigurationError(f"Top level of {config_path} must be a mapping")
        logger.info("Loaded YAML config", path=str(config_path), keys=list(config.keys()))
        return config

    @staticmethod
    def _load_json(config_path: Path) -> dict[str, Any]:
        try:
            with open(config_path, encoding="utf-8") as f:
                config = json.load(f)
        except json.JSONDecodeError as e:
            raise ConfigurationError(f"Invalid JSON in {config_path}", cause=e) from e
        if not isinstance(config, dict):
            raise ConfigurationError(f"Top level of {config_path} must be a mapping")
        logger.info("Loaded JSON config", path=str(config_path), keys=list(config.keys()))
        return config

    @staticmethod
    def create_renderer_config(
        config_dict: dict[str, Any], base_config: Optional[RendererConfig] = None
    ) -> RendererConfig:
        """Create RendererConfig from the ``renderer`` section.

        Args:
            config_dict: Configuration dictionary
            base_config: Base config to extend (defaults to global config)

        Returns:
            RendererConfig instance
        """
        from ..core.config import config as default_config

        base = base_config or default_config
        settings = config_dict.get("renderer", {}) or {}
        unknown = set(settings) - set(asdict(base))
        if unknown:
            raise ConfigurationError(f"Unknown renderer settings: {sorted(unknown)}")

        merged = {**asdict(base), **settings}
        logger.debug("Created renderer config", settings=list(settings.keys()))
        return RendererConfig(**merged)

    @staticmethod
    def create_browser_config(
        config_dict: dict[str, Any], base_config: Optional[BrowserConfig] = None
    ) -> BrowserConfig:
        """Create BrowserConfig from the ``browser`` section.

        Args:
            config_dict: Configuration dictionary
            base_config: Base config to extend

        Returns:
            BrowserConfig instance
        """
        base = base_config or BrowserConfig()
        settings = config_dict.get("browser", {}) or {}

        try:
            browser_config = BrowserConfig(**{**base.model_dump(), **settings})
        except ValidationError as e:
            raise ConfigurationError("Invalid browser settings", cause=e) from e

        logger.debug("Created browser config", settings=list(settings.keys()))
        return browser_config

    @staticmethod
    def save_example_config(output_path: Union[str, Path], format: str = "yaml") -> None:
        """Save an example configuration file.

        Args:
            output_path: Path to save example config
            format: Format to save ('yaml' or 'json')
        """
        output_path = Path(output_path)

        example_config = {
            "browser": {
                "browser_type": "chromium",
                "headless": True,
                "timeout": 30.0,
                "wait_until": "load",
                "viewport_width": 1920,
                "viewport_height": 1080,
            },
            "renderer": {
                "include_media_content": True,
                "validate_poll_interval": 0.5,
                "validate_timeout": None,
            },
        }

        if format.lower() == "yaml":
            with open(output_path, "w", encoding="utf-8") as f:
                yaml.dump(example_config, f, default_flow_style=False, sort_keys=False, indent=2)
        elif format.lower() == "json":
            with open(output_path, "w", encoding="utf-8") as f:
                json.dump(example_config, f, indent=2, sort_keys=True)
        else:
            raise ConfigurationError(f"Unsupported format: {format}")

        logger.info("Saved example config", path=str(output_path), format=format)


def load_config_from_file(config_path: Union[str, Path]) -> tuple[BrowserConfig, RendererConfig]:
    """Load both configs from one file.

    Args:
        config_path: Path to configuration file

    Returns:
        Tuple of (browser_config, renderer_config)
    """
    config_dict = ConfigLoader.load_config(config_path)
    browser_config = ConfigLoader.create_browser_config(config_dict)
    renderer_config = ConfigLoader.create_renderer_config(config_dict)

    return browser_config, renderer_config
