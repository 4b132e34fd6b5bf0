"""Pytest configuration and shared fixtures."""

import threading
from unittest.mock import MagicMock

import pytest

from gst_video_stream.mock import MockRuntime, make_test_pattern_sample
from gst_video_stream.stream import VideoStream
from gst_video_stream.types import PipelineHandle, StreamConfig


@pytest.fixture
def mock_runtime():
    """Provide a mock GStreamer runtime."""
    return MockRuntime()


@pytest.fixture
def manual_config():
    """Stream configuration whose drivers never tick during a test.

    Tests using it call ``sampler.tick()`` and ``dispatcher.tick()`` directly.
    """
    return StreamConfig(sample_frequency_hz=0.001, message_frequency_hz=0.001)


@pytest.fixture
def manual_stream(mock_runtime, manual_config):
    """Provide a stream built on the mock runtime with idle drivers."""
    stream = VideoStream(
        "videotestsrc ! videoconvert ! appsink",
        config=manual_config,
        runtime=mock_runtime,
    )
    yield stream
    stream.dispose()


@pytest.fixture
def live_stream(mock_runtime):
    """Provide a stream on the mock runtime with drivers at their default rates."""
    stream = VideoStream("videotestsrc ! videoconvert ! appsink", runtime=mock_runtime)
    yield stream
    stream.dispose()


@pytest.fixture
def sample_factory():
    """Provide a factory for RGBA test pattern samples."""
    return make_test_pattern_sample


@pytest.fixture
def mock_handle(mock_runtime):
    """Provide a pipeline handle around a mock pipeline with an appsink."""
    pipeline = mock_runtime.parse_launch("videotestsrc ! appsink name=sink")
    return PipelineHandle(pipeline=pipeline, sink=pipeline.get_by_name("sink"), sink_name="sink")


@pytest.fixture
def frame_recorder():
    """Provide an on_frame observer that records frame metadata."""

    class FrameRecorder:
        def __init__(self):
            self.frames = []
            self.received = threading.Event()

        def __call__(self, context):
            self.frames.append((context.width, context.height, context.format, context.size))
            self.received.set()

    return FrameRecorder()


@pytest.fixture
def failing_runtime():
    """Provide a runtime whose pipelines contain no sink element."""
    runtime = MagicMock(spec=MockRuntime)
    runtime.parse_launch.return_value.get_by_name.return_value = None
    return runtime


# Markers for test categories
def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line("markers", "unit: Unit tests")
    config.addinivalue_line("markers", "integration: Integration tests")
    config.addinivalue_line("markers", "slow: Slow running tests")
    config.addinivalue_line(
        "markers", "requires_gstreamer: Tests requiring GStreamer and PyGObject"
    )
