"""Bus message classification and fan-out."""

import logging
from typing import Any, Optional

from gst_video_stream.events import Observers
from gst_video_stream.types import BusMessage, MessageKind, PipelineHandle, PipelineState

logger = logging.getLogger(__name__)


def classify_message(native: Any) -> BusMessage:
    """Turn a native bus message into a :class:`BusMessage`.

    Args:
        native: A ``Gst.Message`` (or compatible object)

    Returns:
        Classified message; kinds other than ERROR, EOS and STATE_CHANGED
        only carry ``raw`` and ``source``
    """
    kind = MessageKind(int(native.type))
    source = native.src.get_name() if getattr(native, "src", None) is not None else None

    if kind == MessageKind.ERROR:
        error, debug = native.parse_error()
        return BusMessage(kind=kind, raw=native, source=source, error=error, debug=debug)

    if kind == MessageKind.STATE_CHANGED:
        old_state, new_state, pending_state = native.parse_state_changed()
        return BusMessage(
            kind=kind,
            raw=native,
            source=source,
            old_state=PipelineState(int(old_state)),
            new_state=PipelineState(int(new_state)),
            pending_state=PipelineState(int(pending_state)),
        )

    return BusMessage(kind=kind, raw=native, source=source)


class MessageDispatcher:
    """Drains the pipeline bus one message per tick.

    Typed observers fire first (``on_error``, ``on_end_of_stream``,
    ``on_state_changed``), then ``on_message`` receives every message,
    including kinds with no typed observer.
    """

    def __init__(self, handle: PipelineHandle) -> None:
        self._handle = handle

        self.on_error = Observers("error")
        self.on_end_of_stream = Observers("end-of-stream")
        self.on_state_changed = Observers("state-changed")
        self.on_message = Observers("message")

        self.messages_dispatched = 0

    def tick(self) -> Optional[BusMessage]:
        """Poll the bus once without blocking and dispatch what was found.

        Returns:
            The dispatched message, or None if the bus was empty
        """
        pipeline = self._handle.pipeline
        if pipeline is None:
            return None

        bus = pipeline.get_bus()
        if bus is None:
            return None

        native = bus.pop()
        if native is None:
            return None

        message = classify_message(native)
        self.dispatch(message)
        return message

    def dispatch(self, message: BusMessage) -> None:
        """Fire typed observers for ``message``, then the catch-all."""
        if message.kind == MessageKind.ERROR:
            logger.debug(f"Error from {message.source}: {message.error} ({message.debug})")
            self.on_error.emit(message.error, message.debug)
        elif message.kind == MessageKind.EOS:
            logger.debug("End of stream")
            self.on_end_of_stream.emit()
        elif message.kind == MessageKind.STATE_CHANGED:
            self.on_state_changed.emit(
                message.old_state, message.new_state, message.pending_state
            )

        self.on_message.emit(message)
        self.messages_dispatched += 1
