"""Integration tests for the stream lifecycle on the mock runtime."""

import asyncio
import threading
import time

import pytest

from gst_video_stream.heartbeat import FpsMeter
from gst_video_stream.mock import MockRuntime, make_test_pattern_sample
from gst_video_stream.stream import VideoStream
from gst_video_stream.types import MessageKind, PipelineState


@pytest.mark.integration
class TestMockPipelineIntegration:
    """Test the drivers, observers and waits working together."""

    def test_playback_lifecycle(self):
        """Test frames, state changes and EOS flow through a running stream."""
        runtime = MockRuntime()
        stream = VideoStream("videotestsrc ! videoconvert ! appsink", runtime=runtime)
        pipeline = runtime.last_pipeline

        frames = []
        states = []
        all_frames = threading.Event()
        pixels_ok = []

        def on_frame(context):
            pixels = context.as_array()
            # First bar of the pattern is white
            pixels_ok.append(bool((pixels[0, 0] == [255, 255, 255, 255]).all()))
            frames.append((context.width, context.height))
            if len(frames) == 5:
                all_frames.set()

        stream.on_frame.subscribe(on_frame)
        stream.on_state_changed.subscribe(lambda old, new, pending: states.append(new))

        try:
            stream.play()
            for _ in range(5):
                pipeline.sink.push_sample(make_test_pattern_sample(64, 48))

            assert all_frames.wait(timeout=5)
            assert frames == [(64, 48)] * 5
            assert all(pixels_ok)

            timer = threading.Timer(0.05, pipeline.post_end_of_stream)
            timer.start()
            assert stream.wait_for_message(MessageKind.EOS, timeout=5)
            timer.join()
        finally:
            stream.dispose()

        assert PipelineState.PLAYING in states
        assert pipeline.state_requests[-1] == PipelineState.NULL
        assert stream.sampler.frames_delivered == 5

    def test_error_reaches_observers(self):
        """Test an ERROR message reaches on_error and ends a wait."""
        runtime = MockRuntime()
        errors = []

        with VideoStream("videotestsrc ! appsink", runtime=runtime) as stream:
            stream.on_error.subscribe(lambda error, debug: errors.append((str(error), debug)))
            timer = threading.Timer(
                0.05,
                runtime.last_pipeline.post_error,
                args=(RuntimeError("decoder crashed"), "avdec"),
            )
            timer.start()

            assert stream.wait_for_message(MessageKind.EOS | MessageKind.ERROR, timeout=5)
            timer.join()

        assert errors == [("decoder crashed", "avdec")]

    def test_fps_meter_on_stream(self):
        """Test the FPS meter can observe a stream directly."""
        runtime = MockRuntime()
        meter = FpsMeter(frames_per_interval=3)

        with VideoStream("videotestsrc ! appsink", runtime=runtime) as stream:
            stream.on_frame.subscribe(meter.on_frame)
            for _ in range(3):
                runtime.last_pipeline.sink.push_sample(make_test_pattern_sample(8, 8))

            for _ in range(100):
                if meter.total_frames == 3:
                    break
                time.sleep(0.05)

        assert meter.total_frames == 3
        assert meter.take_fps() is not None

    @pytest.mark.asyncio
    async def test_async_waits_and_dispose(self):
        """Test disposing a stream resolves concurrent asyncio waits."""
        runtime = MockRuntime()
        stream = VideoStream("videotestsrc ! appsink", runtime=runtime)

        waits = [
            asyncio.ensure_future(stream.wait_for_message_async(MessageKind.EOS))
            for _ in range(3)
        ]
        await asyncio.sleep(0.05)

        stream.dispose()
        results = await asyncio.wait_for(asyncio.gather(*waits), timeout=5)

        assert results == [False, False, False]

    def test_many_streams(self):
        """Test several streams run side by side on one runtime."""
        runtime = MockRuntime()
        streams = [VideoStream("videotestsrc ! appsink", runtime=runtime) for _ in range(4)]
        received = [threading.Event() for _ in streams]

        try:
            for stream, event in zip(streams, received):
                stream.on_frame.subscribe(lambda context, event=event: event.set())
            for pipeline in runtime.pipelines:
                pipeline.sink.push_sample(make_test_pattern_sample(16, 16))

            assert all(event.wait(timeout=5) for event in received)
        finally:
            for stream in streams:
                stream.dispose()

        assert len({stream.sink_name for stream in streams}) == 4
