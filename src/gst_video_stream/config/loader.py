"""Configuration loader for video streams."""

import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from pydantic import ValidationError

from gst_video_stream.types import StreamConfig

logger = logging.getLogger(__name__)

CONFIG_ENV_VAR = "GST_VIDEO_STREAM_CONFIG"


class ConfigLoader:
    """Loads stream configuration from YAML.

    The file holds a ``stream`` section whose keys are the fields of
    :class:`StreamConfig`:

        stream:
          sample_frequency_hz: 60
          message_frequency_hz: 30
          max_buffers: 1
    """

    DEFAULT_CONFIG_PATHS = [
        "/etc/gst-video-stream/config.yaml",
        "./config/gst_video_stream.yaml",
        "~/.config/gst-video-stream/config.yaml",
    ]

    def __init__(self, config_path: Optional[str] = None):
        """Initialize configuration loader.

        Args:
            config_path: Path to configuration file; falls back to
                ``$GST_VIDEO_STREAM_CONFIG`` and then the default paths
        """
        self.config_path = config_path or os.environ.get(CONFIG_ENV_VAR)
        self.loaded_from: Optional[Path] = None
        self.config: Dict[str, Any] = {}
        self.load_config()

    def load_config(self) -> Dict[str, Any]:
        """Load configuration from the first existing file.

        Returns:
            Configuration dictionary (empty if no file was found)

        Raises:
            ValueError: If an explicitly given file cannot be parsed
        """
        paths = [self.config_path] if self.config_path else self.DEFAULT_CONFIG_PATHS

        for path in paths:
            expanded_path = Path(path).expanduser()
            if not expanded_path.exists():
                continue

            try:
                with open(expanded_path, "r") as f:
                    data = yaml.safe_load(f) or {}
            except (OSError, yaml.YAMLError) as e:
                if self.config_path:
                    raise ValueError(f"Error loading config from {expanded_path}: {e}") from e
                logger.error(f"Error loading config from {expanded_path}: {e}")
                continue

            if not isinstance(data, dict):
                raise ValueError(f"Config file {expanded_path} must contain a mapping")

            self.config = data
            self.loaded_from = expanded_path
            logger.info(f"Loaded configuration from {expanded_path}")
            return self.config

        if self.config_path:
            logger.warning(f"Config file {self.config_path} not found, using defaults")
        else:
            logger.debug("No configuration file found, using defaults")
        self.config = {}
        return self.config

    def get(self, key: str, default: Any = None) -> Any:
        """Get configuration value by dot-notation key.

        Args:
            key: Configuration key (e.g., 'stream.max_buffers')
            default: Default value if key not found
        """
        value: Any = self.config
        for k in key.split("."):
            if isinstance(value, dict) and k in value:
                value = value[k]
            else:
                return default
        return value

    def stream_config(self) -> StreamConfig:
        """Validate the ``stream`` section.

        Raises:
            ValueError: If the section has invalid values
        """
        section = self.get("stream", {}) or {}
        try:
            return StreamConfig(**section)
        except ValidationError as e:
            raise ValueError(f"Invalid stream configuration: {e}") from e


def load_stream_config(config_path: Optional[str] = None) -> StreamConfig:
    """Load a :class:`StreamConfig` from YAML, or defaults if no file exists."""
    return ConfigLoader(config_path).stream_config()
