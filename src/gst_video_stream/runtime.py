"""GStreamer runtime facade.

The controller drives the native runtime only through :class:`GstRuntime`:
initialization, building a pipeline from a descriptor, state changes, caps
parsing and URI checks. Everything else (appsink, bus, samples, buffers) is
used through the objects the runtime returns.
"""

import logging
import threading
from typing import Any, Optional

from gst_video_stream.errors import PipelineBuildError, RuntimeUnavailable
from gst_video_stream.types import PipelineState

logger = logging.getLogger(__name__)


class GstRuntime:
    """PyGObject-backed GStreamer runtime.

    ``initialize`` is an explicit init-once guard: GStreamer is loaded and
    initialized by the first caller, later calls return immediately.
    """

    _init_lock = threading.Lock()
    _gst: Optional[Any] = None

    @property
    def is_initialized(self) -> bool:
        return GstRuntime._gst is not None

    def initialize(self) -> Any:
        """Load and initialize GStreamer once per process.

        Returns:
            The ``Gst`` module

        Raises:
            RuntimeUnavailable: If PyGObject or GStreamer cannot be loaded
        """
        with GstRuntime._init_lock:
            if GstRuntime._gst is None:
                try:
                    import gi

                    gi.require_version("Gst", "1.0")
                    from gi.repository import Gst
                except (ImportError, ValueError) as e:
                    raise RuntimeUnavailable(
                        f"GStreamer runtime is not available ({e}). "
                        "Install PyGObject and GStreamer 1.x."
                    ) from e

                if not Gst.is_initialized():
                    Gst.init(None)
                logger.info(f"Initialized {Gst.version_string()}")
                GstRuntime._gst = Gst

            return GstRuntime._gst

    def parse_launch(self, descriptor: str) -> Any:
        """Build a pipeline from a descriptor.

        Raises:
            PipelineBuildError: If GStreamer cannot parse or link the descriptor
        """
        Gst = self.initialize()
        from gi.repository import GLib

        try:
            element = Gst.parse_launch(descriptor)
        except GLib.Error as e:
            raise PipelineBuildError(e.message, descriptor=descriptor) from e

        if element is None:
            raise PipelineBuildError("parse_launch returned no element", descriptor=descriptor)

        # A single element (e.g. a bare "appsink") is not returned as a pipeline
        if not isinstance(element, Gst.Pipeline):
            pipeline = Gst.Pipeline.new(None)
            pipeline.add(element)
            return pipeline

        return element

    def set_state(self, pipeline: Any, state: PipelineState) -> None:
        Gst = self.initialize()
        result = pipeline.set_state(Gst.State(int(state)))
        if result == Gst.StateChangeReturn.FAILURE:
            # Details arrive as an ERROR message on the bus
            logger.warning(f"State change to {state.name} failed")

    def caps_from_string(self, text: str) -> Any:
        Gst = self.initialize()
        return Gst.Caps.from_string(text)

    def is_supported_uri(self, uri: str) -> bool:
        """Check that ``uri`` is valid and some source element handles its protocol."""
        Gst = self.initialize()
        if not Gst.uri_is_valid(uri):
            return False

        protocol = Gst.uri_get_protocol(uri)
        return bool(
            protocol
            and Gst.uri_protocol_is_valid(protocol)
            and Gst.uri_protocol_is_supported(Gst.URIType.SRC, protocol)
        )


_default_runtime: Optional[GstRuntime] = None


def default_runtime() -> GstRuntime:
    """Return the shared process-wide runtime."""
    global _default_runtime
    if _default_runtime is None:
        _default_runtime = GstRuntime()
    return _default_runtime
