"""Raw video frame access for GStreamer pipelines.

Example:
    >>> from gst_video_stream import VideoStream, MessageKind
    >>> stream = VideoStream("videotestsrc ! videoconvert ! appsink")
    >>> stream.on_frame.subscribe(lambda frame: print(frame))
    >>> stream.play()
    >>> stream.wait_for_message(MessageKind.EOS | MessageKind.ERROR, timeout=5)
    >>> stream.dispose()
"""

from gst_video_stream.errors import (
    FrameReleased,
    InvalidDescriptor,
    NullSample,
    PipelineBuildError,
    RuntimeUnavailable,
    StreamError,
)
from gst_video_stream.types import (
    SINK_MARKER,
    SUPPORTED_PIXEL_FORMAT,
    BusMessage,
    MessageKind,
    PipelineHandle,
    PipelineState,
    StreamConfig,
)
from gst_video_stream.events import Observers
from gst_video_stream.frame_context import FrameContext
from gst_video_stream.dispatcher import MessageDispatcher, classify_message
from gst_video_stream.waiter import MessageWait, MessageWaiter
from gst_video_stream.sampler import ExclusiveFlag, FrameSampler
from gst_video_stream.runtime import GstRuntime, default_runtime
from gst_video_stream.stream import VideoStream

__version__ = "0.1.0"

__all__ = [
    # Errors
    "StreamError",
    "InvalidDescriptor",
    "PipelineBuildError",
    "RuntimeUnavailable",
    "NullSample",
    "FrameReleased",
    # Types
    "SINK_MARKER",
    "SUPPORTED_PIXEL_FORMAT",
    "BusMessage",
    "MessageKind",
    "PipelineHandle",
    "PipelineState",
    "StreamConfig",
    # Components
    "Observers",
    "FrameContext",
    "MessageDispatcher",
    "classify_message",
    "MessageWait",
    "MessageWaiter",
    "ExclusiveFlag",
    "FrameSampler",
    "GstRuntime",
    "default_runtime",
    "VideoStream",
]
