"""GStreamer video stream with raw frame access.

:class:`VideoStream` builds an appsink-terminated pipeline, pulls decoded
frames on a fixed-rate sampler thread and dispatches bus messages on a second
thread. Applications subscribe to the observer registries and control the
pipeline with ``play``, ``pause``, ``stop`` and ``dispose``.
"""

import logging
import threading
from typing import Any, Optional

from gst_video_stream.descriptor import (
    camera_descriptor,
    generate_sink_name,
    inject_sink_name,
    uri_descriptor,
    validate_descriptor,
)
from gst_video_stream.dispatcher import MessageDispatcher
from gst_video_stream.errors import PipelineBuildError
from gst_video_stream.events import Observers
from gst_video_stream.runtime import GstRuntime, default_runtime
from gst_video_stream.sampler import FrameSampler
from gst_video_stream.timers import PeriodicDriver
from gst_video_stream.types import (
    SINK_CAPS,
    MessageKind,
    PipelineHandle,
    PipelineState,
    StreamConfig,
)
from gst_video_stream.waiter import MessageWaiter

logger = logging.getLogger(__name__)


class VideoStream:
    """Appsink-terminated GStreamer pipeline delivering raw RGBA frames.

    Example:
        >>> stream = VideoStream.from_uri("/videos/door.mp4")
        >>> stream.on_frame.subscribe(lambda frame: print(frame.width, frame.height))
        >>> stream.play()
        >>> stream.wait_for_message(MessageKind.EOS | MessageKind.ERROR)
        >>> stream.dispose()
    """

    def __init__(
        self,
        descriptor: str,
        synchronized: bool = False,
        *,
        config: Optional[StreamConfig] = None,
        runtime: Optional[GstRuntime] = None,
    ) -> None:
        """Build the pipeline and start the sampler and dispatcher drivers.

        Args:
            descriptor: ``gst-launch`` style description ending in ``appsink``
            synchronized: Synchronize the sink to the pipeline clock (drops
                late frames; wanted for live playback of files)
            config: Stream configuration
            runtime: GStreamer runtime, defaults to the process-wide one

        Raises:
            InvalidDescriptor: If the descriptor does not end with ``appsink``
            PipelineBuildError: If GStreamer rejects the pipeline
        """
        trimmed = validate_descriptor(descriptor)

        self.config = config or StreamConfig()
        self.synchronized = synchronized
        self._runtime = runtime or default_runtime()
        self._runtime.initialize()

        sink_name = generate_sink_name()
        self.descriptor = inject_sink_name(trimmed, sink_name)
        self._handle = PipelineHandle(sink_name=sink_name)

        self._disposed = False
        self._dispose_lock = threading.Lock()

        self._sampler = FrameSampler(self._handle)
        self._dispatcher = MessageDispatcher(self._handle)
        self._waiter = MessageWaiter(self._dispatcher.on_message)

        self._build()

        self._sample_driver = PeriodicDriver(
            f"frame-sampler-{sink_name[-8:]}",
            self.config.sample_frequency_hz,
            self._sampler.tick,
        )
        self._message_driver = PeriodicDriver(
            f"bus-dispatcher-{sink_name[-8:]}",
            self.config.message_frequency_hz,
            self._dispatcher.tick,
        )
        self._sample_driver.start()
        self._message_driver.start()

        logger.info(f"Video stream created: {self.descriptor}")

    @classmethod
    def from_camera(
        cls,
        device_index: int,
        width: int = 0,
        height: int = 0,
        *,
        config: Optional[StreamConfig] = None,
        runtime: Optional[GstRuntime] = None,
        platform: Optional[str] = None,
    ) -> "VideoStream":
        """Create a stream from a local camera.

        Args:
            device_index: Camera index
            width: Requested width, 0 for the camera default
            height: Requested height, 0 for the camera default
        """
        descriptor = camera_descriptor(device_index, width, height, platform=platform)
        return cls(descriptor, synchronized=False, config=config, runtime=runtime)

    @classmethod
    def from_uri(
        cls,
        uri: str,
        options: Optional[str] = None,
        synchronized: bool = False,
        *,
        config: Optional[StreamConfig] = None,
        runtime: Optional[GstRuntime] = None,
    ) -> "VideoStream":
        """Create a stream from a URI or a local file path.

        Args:
            uri: Source URI; anything GStreamer cannot open as a URI is
                treated as a file path
            options: Extra ``uridecodebin`` properties
            synchronized: Synchronize the sink to the pipeline clock
        """
        runtime = runtime or default_runtime()
        runtime.initialize()
        descriptor = uri_descriptor(uri, options, is_supported_uri=runtime.is_supported_uri)
        return cls(descriptor, synchronized=synchronized, config=config, runtime=runtime)

    def _build(self) -> None:
        pipeline = self._runtime.parse_launch(self.descriptor)

        sink = pipeline.get_by_name(self._handle.sink_name)
        if sink is None:
            self._runtime.set_state(pipeline, PipelineState.NULL)
            raise PipelineBuildError(
                f"Sink {self._handle.sink_name} not found in pipeline",
                descriptor=self.descriptor,
            )

        try:
            sink.set_property("caps", self._runtime.caps_from_string(SINK_CAPS))
            sink.set_property("drop", True)
            sink.set_property("max-buffers", self.config.max_buffers)
            sink.set_property("qos", self.config.qos)
            sink.set_property("sync", self.synchronized)
        except Exception as e:
            self._runtime.set_state(pipeline, PipelineState.NULL)
            raise PipelineBuildError(
                f"Could not configure sink: {e}", descriptor=self.descriptor
            ) from e

        self._handle.pipeline = pipeline
        self._handle.sink = sink

    @property
    def sink_name(self) -> str:
        return self._handle.sink_name

    @property
    def pipeline(self) -> Any:
        """Native pipeline, None after disposal."""
        return self._handle.pipeline

    @property
    def is_disposed(self) -> bool:
        return self._disposed

    @property
    def on_frame(self) -> Observers:
        """Called with a :class:`FrameContext` for every pulled frame."""
        return self._sampler.on_frame

    @property
    def on_error(self) -> Observers:
        """Called with ``(error, debug)`` for ERROR messages."""
        return self._dispatcher.on_error

    @property
    def on_message(self) -> Observers:
        """Called with every :class:`BusMessage`."""
        return self._dispatcher.on_message

    @property
    def on_state_changed(self) -> Observers:
        """Called with ``(old, new, pending)`` :class:`PipelineState` values."""
        return self._dispatcher.on_state_changed

    @property
    def on_end_of_stream(self) -> Observers:
        return self._dispatcher.on_end_of_stream

    @property
    def sampler(self) -> FrameSampler:
        return self._sampler

    @property
    def dispatcher(self) -> MessageDispatcher:
        return self._dispatcher

    def _request_state(self, state: PipelineState) -> None:
        pipeline = self._handle.pipeline
        if pipeline is None:
            return
        logger.info(f"Requesting pipeline state {state.name}")
        self._runtime.set_state(pipeline, state)

    def play(self) -> None:
        """Start the pipeline."""
        self._request_state(PipelineState.PLAYING)

    def pause(self) -> None:
        """Pause the pipeline."""
        self._request_state(PipelineState.PAUSED)

    def stop(self) -> None:
        """Stop the pipeline."""
        self._request_state(PipelineState.NULL)

    def wait_for_message(self, kinds: MessageKind, timeout: float = 0.0) -> bool:
        """Block until a message matching ``kinds`` arrives.

        Must not be called from an observer: observers run on the driver
        threads that deliver the message.

        Args:
            kinds: Message kind mask, e.g. ``MessageKind.EOS | MessageKind.ERROR``
            timeout: Seconds to wait; zero waits without bound

        Returns:
            True if a matching message arrived, False on timeout or disposal
        """
        return self._waiter.wait(kinds, timeout)

    async def wait_for_message_async(self, kinds: MessageKind, timeout: float = 0.0) -> bool:
        """Asyncio variant of :meth:`wait_for_message`."""
        return await self._waiter.wait_async(kinds, timeout)

    def dispose(self) -> None:
        """Stop the pipeline, the drivers and pending waits. Idempotent."""
        with self._dispose_lock:
            if self._disposed:
                return
            self._disposed = True

        logger.info(f"Disposing video stream {self.sink_name}")

        timeout = self.config.driver_join_timeout_sec
        steps = (
            ("stop pipeline", self.stop),
            ("cancel waits", self._waiter.cancel_all),
            ("stop sampler", lambda: self._sample_driver.stop(timeout)),
            ("stop dispatcher", lambda: self._message_driver.stop(timeout)),
        )
        for name, step in steps:
            try:
                step()
            except Exception as e:
                logger.warning(f"Error during dispose ({name}): {e}")

        self._handle.release()

    def close(self) -> None:
        """Alias for :meth:`dispose`."""
        self.dispose()

    def __enter__(self) -> "VideoStream":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.dispose()

    def __repr__(self) -> str:
        return f"VideoStream({self.descriptor!r}, disposed={self._disposed})"
