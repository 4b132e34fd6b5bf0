"""In-process stand-ins for the GStreamer objects the stream uses.

Useful for development and testing without GStreamer installed: the mock
runtime parses descriptors into fake pipelines whose appsink hands out
synthetic RGBA frames and whose bus carries the messages that a real
pipeline would post on state changes.

Example:
    >>> runtime = MockRuntime()
    >>> stream = VideoStream("videotestsrc ! appsink", runtime=runtime)
    >>> runtime.last_pipeline.sink.push_sample(make_test_pattern_sample(64, 48))
"""

import logging
import shlex
import threading
from collections import deque
from typing import Any, Deque, Dict, Iterable, List, Optional, Tuple

import numpy as np

from gst_video_stream.errors import PipelineBuildError
from gst_video_stream.types import SINK_MARKER, SUPPORTED_PIXEL_FORMAT, MessageKind, PipelineState

logger = logging.getLogger(__name__)

SUPPORTED_URI_SCHEMES = ("file", "http", "https", "rtsp", "rtmp", "udp")


class MockElement:
    """Pipeline element with a name and properties."""

    def __init__(self, factory: str, name: str, properties: Optional[Dict[str, Any]] = None) -> None:
        self.factory = factory
        self.name = name
        self.properties: Dict[str, Any] = dict(properties or {})

    def get_name(self) -> str:
        return self.name

    def set_property(self, key: str, value: Any) -> None:
        self.properties[key] = value

    def get_property(self, key: str) -> Any:
        return self.properties.get(key)


class MockStructure:
    def __init__(self, fields: Dict[str, Any]) -> None:
        self._fields = fields

    def get_value(self, key: str) -> Any:
        return self._fields.get(key)


class MockCaps:
    def __init__(self, **fields: Any) -> None:
        self._structure = MockStructure(fields)

    def get_structure(self, index: int) -> MockStructure:
        if index != 0:
            raise IndexError(index)
        return self._structure


class MockMapInfo:
    def __init__(self, data: bytes) -> None:
        self.data = memoryview(data)
        self.size = len(data)


class MockBuffer:
    """Buffer that records map and unmap calls."""

    def __init__(self, data: bytes, mappable: bool = True) -> None:
        self._data = bytes(data)
        self.mappable = mappable
        self.map_count = 0
        self.unmap_count = 0

    @property
    def is_mapped(self) -> bool:
        return self.map_count > self.unmap_count

    def map(self, flags: int) -> Tuple[bool, Optional[MockMapInfo]]:
        if not self.mappable:
            return False, None
        self.map_count += 1
        return True, MockMapInfo(self._data)

    def unmap(self, map_info: MockMapInfo) -> None:
        self.unmap_count += 1


class MockSample:
    def __init__(self, buffer: Optional[MockBuffer], caps: MockCaps) -> None:
        self._buffer = buffer
        self._caps = caps

    def get_buffer(self) -> Optional[MockBuffer]:
        return self._buffer

    def get_caps(self) -> MockCaps:
        return self._caps


class MockAppSink(MockElement):
    """Appsink with a queue of samples filled by the test or demo."""

    def __init__(self, name: str, properties: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(SINK_MARKER, name, properties)
        self._samples: Deque[MockSample] = deque()
        self._lock = threading.Lock()
        self.pull_count = 0

    def push_sample(self, sample: MockSample) -> None:
        with self._lock:
            self._samples.append(sample)

    @property
    def queued(self) -> int:
        with self._lock:
            return len(self._samples)

    def emit(self, signal: str, *args: Any) -> Any:
        if signal != "try-pull-sample":
            raise ValueError(f"Unknown signal: {signal}")
        with self._lock:
            self.pull_count += 1
            return self._samples.popleft() if self._samples else None


class MockMessage:
    """Bus message with the parse methods of ``Gst.Message``."""

    def __init__(
        self,
        kind: MessageKind,
        src: Optional[MockElement] = None,
        error: Optional[Exception] = None,
        debug: Optional[str] = None,
        states: Optional[Tuple[PipelineState, PipelineState, PipelineState]] = None,
    ) -> None:
        self.type = kind
        self.src = src
        self._error = error
        self._debug = debug
        self._states = states

    def parse_error(self) -> Tuple[Optional[Exception], Optional[str]]:
        return self._error, self._debug

    def parse_state_changed(self) -> Tuple[PipelineState, PipelineState, PipelineState]:
        if self._states is None:
            raise TypeError("not a state-changed message")
        return self._states


class MockBus:
    def __init__(self) -> None:
        self._messages: Deque[MockMessage] = deque()
        self._lock = threading.Lock()

    def post(self, message: MockMessage) -> None:
        with self._lock:
            self._messages.append(message)

    def pop(self) -> Optional[MockMessage]:
        with self._lock:
            return self._messages.popleft() if self._messages else None

    def __len__(self) -> int:
        with self._lock:
            return len(self._messages)


class MockPipeline(MockElement):
    """Pipeline that posts a STATE_CHANGED message for every state request."""

    def __init__(self, elements: Iterable[MockElement], name: str = "pipeline0") -> None:
        super().__init__("pipeline", name)
        self.elements: List[MockElement] = list(elements)
        self.state = PipelineState.NULL
        self.state_requests: List[PipelineState] = []
        self.bus = MockBus()

    def get_by_name(self, name: str) -> Optional[MockElement]:
        for element in self.elements:
            if element.name == name:
                return element
        return None

    @property
    def sink(self) -> Optional[MockAppSink]:
        for element in self.elements:
            if isinstance(element, MockAppSink):
                return element
        return None

    def get_bus(self) -> MockBus:
        return self.bus

    def set_state(self, state: PipelineState) -> None:
        state = PipelineState(int(state))
        self.state_requests.append(state)
        old_state, self.state = self.state, state
        self.bus.post(
            MockMessage(
                MessageKind.STATE_CHANGED,
                src=self,
                states=(old_state, state, PipelineState.VOID_PENDING),
            )
        )

    def post_error(self, error: Exception, debug: str = "") -> None:
        self.bus.post(MockMessage(MessageKind.ERROR, src=self, error=error, debug=debug))

    def post_end_of_stream(self) -> None:
        self.bus.post(MockMessage(MessageKind.EOS, src=self))


class MockRuntime:
    """Stand-in for :class:`GstRuntime` building :class:`MockPipeline` objects.

    Args:
        missing_elements: Element factories to reject like an uninstalled plugin
    """

    def __init__(self, missing_elements: Iterable[str] = ()) -> None:
        self.missing_elements = set(missing_elements)
        self.init_count = 0
        self.launched: List[str] = []
        self.pipelines: List[MockPipeline] = []
        self._initialized = False

    @property
    def is_initialized(self) -> bool:
        return self._initialized

    @property
    def last_pipeline(self) -> Optional[MockPipeline]:
        return self.pipelines[-1] if self.pipelines else None

    def initialize(self) -> "MockRuntime":
        self.init_count += 1
        self._initialized = True
        return self

    def parse_launch(self, descriptor: str) -> MockPipeline:
        self.launched.append(descriptor)

        elements = []
        for index, stage in enumerate(descriptor.split("!")):
            tokens = shlex.split(stage)
            if not tokens:
                raise PipelineBuildError("syntax error: empty pipeline stage", descriptor=descriptor)

            factory, properties = tokens[0], {}
            for token in tokens[1:]:
                key, _, value = token.partition("=")
                properties[key] = value

            if factory in self.missing_elements:
                raise PipelineBuildError(f'no element "{factory}"', descriptor=descriptor)

            name = properties.pop("name", f"{factory.split('/')[0]}{index}")
            if factory == SINK_MARKER:
                elements.append(MockAppSink(name, properties))
            else:
                elements.append(MockElement(factory, name, properties))

        pipeline = MockPipeline(elements, name=f"pipeline{len(self.pipelines)}")
        self.pipelines.append(pipeline)
        logger.debug(f"Mock pipeline built with {len(elements)} elements")
        return pipeline

    def set_state(self, pipeline: MockPipeline, state: PipelineState) -> None:
        pipeline.set_state(state)

    def caps_from_string(self, text: str) -> str:
        return text

    def is_supported_uri(self, uri: str) -> bool:
        scheme, separator, rest = uri.partition("://")
        return bool(separator and rest) and scheme.lower() in SUPPORTED_URI_SCHEMES


def generate_test_pattern(width: int, height: int) -> np.ndarray:
    """Generate RGBA color bars as a ``(height, width, 4)`` array."""
    frame = np.zeros((height, width, 4), dtype=np.uint8)
    frame[..., 3] = 255

    colors = [
        (255, 255, 255),  # White
        (255, 255, 0),    # Yellow
        (0, 255, 255),    # Cyan
        (0, 255, 0),      # Green
        (255, 0, 255),    # Magenta
        (255, 0, 0),      # Red
        (0, 0, 255),      # Blue
        (0, 0, 0),        # Black
    ]

    bar_width = max(width // len(colors), 1)
    for i, color in enumerate(colors):
        x_start = i * bar_width
        x_end = (i + 1) * bar_width if i < len(colors) - 1 else width
        frame[:, x_start:x_end, :3] = color

    return frame


def make_test_pattern_sample(
    width: int,
    height: int,
    row_padding: int = 0,
    mappable: bool = True,
    pixel_format: str = SUPPORTED_PIXEL_FORMAT,
) -> MockSample:
    """Build a sample holding an RGBA test pattern.

    Args:
        width: Frame width in pixels
        height: Frame height in pixels
        row_padding: Extra bytes at the end of each scanline
        mappable: False to simulate a buffer that cannot be mapped
        pixel_format: Format tag reported in the caps
    """
    pattern = generate_test_pattern(width, height)
    if row_padding:
        padding = np.zeros((height, row_padding), dtype=np.uint8)
        rows = np.concatenate([pattern.reshape(height, width * 4), padding], axis=1)
    else:
        rows = pattern.reshape(height, width * 4)

    buffer = MockBuffer(rows.tobytes(), mappable=mappable)
    caps = MockCaps(format=pixel_format, width=width, height=height)
    return MockSample(buffer, caps)
