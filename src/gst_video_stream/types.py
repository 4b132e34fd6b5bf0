"""Common types for the video stream.

Numeric values of :class:`PipelineState` and :class:`MessageKind` mirror
``GstState`` and ``GstMessageType`` so native values convert with ``int()``.
"""

from dataclasses import dataclass
from enum import IntEnum, IntFlag
from typing import Any, Optional

from pydantic import BaseModel, Field

SINK_MARKER = "appsink"
SUPPORTED_PIXEL_FORMAT = "RGBA"
SINK_CAPS = f"video/x-raw,format={SUPPORTED_PIXEL_FORMAT}"


class PipelineState(IntEnum):
    """Pipeline states."""

    VOID_PENDING = 0
    NULL = 1
    READY = 2
    PAUSED = 3
    PLAYING = 4


class MessageKind(IntFlag):
    """Bus message types (bitmask)."""

    UNKNOWN = 0
    EOS = 1 << 0
    ERROR = 1 << 1
    WARNING = 1 << 2
    INFO = 1 << 3
    TAG = 1 << 4
    BUFFERING = 1 << 5
    STATE_CHANGED = 1 << 6
    STATE_DIRTY = 1 << 7
    STEP_DONE = 1 << 8
    CLOCK_PROVIDE = 1 << 9
    CLOCK_LOST = 1 << 10
    NEW_CLOCK = 1 << 11
    STRUCTURE_CHANGE = 1 << 12
    STREAM_STATUS = 1 << 13
    APPLICATION = 1 << 14
    ELEMENT = 1 << 15
    SEGMENT_START = 1 << 16
    SEGMENT_DONE = 1 << 17
    DURATION_CHANGED = 1 << 18
    LATENCY = 1 << 19
    ASYNC_START = 1 << 20
    ASYNC_DONE = 1 << 21
    REQUEST_STATE = 1 << 22
    STEP_START = 1 << 23
    QOS = 1 << 24
    PROGRESS = 1 << 25
    TOC = 1 << 26
    RESET_TIME = 1 << 27
    STREAM_START = 1 << 28
    NEED_CONTEXT = 1 << 29
    HAVE_CONTEXT = 1 << 30
    ANY = 0xFFFFFFFF

    def matches(self, kinds: "MessageKind") -> bool:
        """Check whether this message kind is covered by a filter mask."""
        return (self & kinds) == self


@dataclass(frozen=True)
class BusMessage:
    """A classified bus message.

    Only the fields belonging to ``kind`` are populated: ``error`` and
    ``debug`` for ERROR, the three states for STATE_CHANGED.
    """

    kind: MessageKind
    raw: Any = None
    source: Optional[str] = None
    error: Optional[Exception] = None
    debug: Optional[str] = None
    old_state: Optional[PipelineState] = None
    new_state: Optional[PipelineState] = None
    pending_state: Optional[PipelineState] = None

    @property
    def is_error(self) -> bool:
        return self.kind == MessageKind.ERROR

    @property
    def is_end_of_stream(self) -> bool:
        return self.kind == MessageKind.EOS

    @property
    def is_state_changed(self) -> bool:
        return self.kind == MessageKind.STATE_CHANGED


class PipelineHandle:
    """Native pipeline and sink shared between the drivers and the controller.

    Drivers read ``pipeline`` and ``sink`` once per tick and must tolerate
    either becoming None at any time.
    """

    def __init__(self, pipeline: Any = None, sink: Any = None, sink_name: str = "") -> None:
        self.pipeline = pipeline
        self.sink = sink
        self.sink_name = sink_name

    @property
    def is_open(self) -> bool:
        return self.pipeline is not None

    def release(self) -> None:
        """Drop references to the native objects."""
        self.sink = None
        self.pipeline = None


class StreamConfig(BaseModel):
    """Configuration for a video stream."""

    sample_frequency_hz: float = Field(
        60.0, gt=0, le=1000, description="Frame sampler tick rate"
    )
    message_frequency_hz: float = Field(
        30.0, gt=0, le=1000, description="Bus dispatcher tick rate"
    )
    max_buffers: int = Field(1, ge=1, le=64, description="Appsink queue length")
    qos: bool = Field(True, description="Enable appsink QoS accounting")
    driver_join_timeout_sec: float = Field(
        1.0, ge=0, description="Time to wait for driver threads on dispose"
    )
