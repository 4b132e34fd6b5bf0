"""Configuration loading."""

from gst_video_stream.config.loader import ConfigLoader, load_stream_config

__all__ = ["ConfigLoader", "load_stream_config"]
