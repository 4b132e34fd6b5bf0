"""Integration tests against a real GStreamer installation."""

import threading

import pytest

pytest.importorskip("gi")

from gst_video_stream.errors import PipelineBuildError  # noqa: E402
from gst_video_stream.runtime import GstRuntime  # noqa: E402
from gst_video_stream.stream import VideoStream  # noqa: E402
from gst_video_stream.types import MessageKind  # noqa: E402


@pytest.fixture(scope="module")
def runtime():
    runtime = GstRuntime()
    try:
        runtime.initialize()
    except PipelineBuildError as e:
        pytest.skip(f"GStreamer unavailable: {e}")
    return runtime


@pytest.mark.integration
@pytest.mark.requires_gstreamer
class TestGStreamerIntegration:
    """Test VideoStream on real pipelines."""

    def test_videotestsrc_frames(self, runtime):
        """Test a finite test source delivers RGBA frames and ends with EOS."""
        frames = []
        received = threading.Event()

        def on_frame(context):
            frames.append((context.width, context.height, context.format, context.stride))
            received.set()

        with VideoStream(
            "videotestsrc num-buffers=10 ! video/x-raw,width=320,height=240 ! videoconvert ! appsink",
            runtime=runtime,
        ) as stream:
            stream.on_frame.subscribe(on_frame)
            stream.play()

            assert stream.wait_for_message(MessageKind.EOS | MessageKind.ERROR, timeout=10)
            assert received.wait(timeout=5)

        assert frames[0] == (320, 240, "RGBA", 320 * 4)

    def test_unknown_element(self, runtime):
        """Test GStreamer's parse error surfaces as PipelineBuildError."""
        with pytest.raises(PipelineBuildError):
            VideoStream("nosuchelementfactory ! appsink", runtime=runtime)

    def test_uri_check(self, runtime):
        assert runtime.is_supported_uri("file:///tmp/video.mp4")
        assert not runtime.is_supported_uri("not a uri")
