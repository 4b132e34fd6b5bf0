"""Tests for the YAML configuration loader."""

import pytest

from gst_video_stream.config import ConfigLoader, load_stream_config
from gst_video_stream.config.loader import CONFIG_ENV_VAR
from gst_video_stream.types import StreamConfig


@pytest.fixture
def config_file(tmp_path):
    path = tmp_path / "stream.yaml"
    path.write_text(
        "stream:\n"
        "  sample_frequency_hz: 25\n"
        "  message_frequency_hz: 10\n"
        "  max_buffers: 4\n"
        "  qos: false\n"
    )
    return path


class TestConfigLoader:
    """Test ConfigLoader."""

    def test_explicit_path(self, config_file):
        """Test values are read from the given file."""
        loader = ConfigLoader(str(config_file))

        assert loader.loaded_from == config_file
        config = loader.stream_config()
        assert config.sample_frequency_hz == 25
        assert config.message_frequency_hz == 10
        assert config.max_buffers == 4
        assert config.qos is False

    def test_env_var(self, config_file, monkeypatch):
        """Test the environment variable names the file."""
        monkeypatch.setenv(CONFIG_ENV_VAR, str(config_file))

        assert load_stream_config().max_buffers == 4

    def test_defaults_without_file(self, tmp_path, monkeypatch):
        """Test defaults are used when no file exists."""
        monkeypatch.delenv(CONFIG_ENV_VAR, raising=False)
        monkeypatch.setattr(ConfigLoader, "DEFAULT_CONFIG_PATHS", [str(tmp_path / "missing.yaml")])

        loader = ConfigLoader()

        assert loader.loaded_from is None
        assert loader.stream_config() == StreamConfig()

    def test_missing_explicit_file(self, tmp_path):
        """Test a missing explicit file falls back to defaults."""
        assert load_stream_config(str(tmp_path / "missing.yaml")) == StreamConfig()

    def test_dot_notation(self, config_file):
        """Test nested keys are reachable with dots."""
        loader = ConfigLoader(str(config_file))

        assert loader.get("stream.max_buffers") == 4
        assert loader.get("stream.nonexistent", "fallback") == "fallback"
        assert loader.get("other.key") is None

    def test_invalid_values(self, tmp_path):
        """Test out-of-range values are rejected."""
        path = tmp_path / "bad.yaml"
        path.write_text("stream:\n  sample_frequency_hz: 0\n")

        with pytest.raises(ValueError, match="Invalid stream configuration"):
            load_stream_config(str(path))

    def test_unparsable_file(self, tmp_path):
        """Test broken YAML in an explicit file is an error."""
        path = tmp_path / "broken.yaml"
        path.write_text("stream: [unclosed\n")

        with pytest.raises(ValueError, match="Error loading config"):
            ConfigLoader(str(path))

    def test_non_mapping(self, tmp_path):
        """Test a file holding a list is rejected."""
        path = tmp_path / "list.yaml"
        path.write_text("- 1\n- 2\n")

        with pytest.raises(ValueError, match="must contain a mapping"):
            ConfigLoader(str(path))

    def test_empty_file(self, tmp_path):
        """Test an empty file gives the defaults."""
        path = tmp_path / "empty.yaml"
        path.write_text("")

        assert ConfigLoader(str(path)).stream_config() == StreamConfig()
