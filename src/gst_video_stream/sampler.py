"""Timer-driven frame extraction from the appsink."""

import logging
import threading
from typing import Any

from gst_video_stream.events import Observers
from gst_video_stream.frame_context import FrameContext
from gst_video_stream.types import PipelineHandle

logger = logging.getLogger(__name__)


class ExclusiveFlag:
    """Single-slot flag; acquiring it never blocks."""

    def __init__(self) -> None:
        self._lock = threading.Lock()

    def try_acquire(self) -> bool:
        """Set the flag if it is clear.

        Returns:
            True if this call set the flag
        """
        return self._lock.acquire(blocking=False)

    def release(self) -> None:
        self._lock.release()

    @property
    def is_set(self) -> bool:
        return self._lock.locked()


class FrameSampler:
    """Pulls at most one pending sample per tick and hands it to ``on_frame``.

    Observers receive a :class:`FrameContext` synchronously on the ticking
    thread. The context is released as soon as the observers return, so
    frame memory must be copied if it is needed later. A tick that finds a
    previous pull still in flight is skipped, never queued.
    """

    def __init__(self, handle: PipelineHandle) -> None:
        self._handle = handle
        self._flag = ExclusiveFlag()

        self.on_frame = Observers("frame")

        self.frames_delivered = 0
        self.ticks_skipped = 0
        self._skipped_lock = threading.Lock()

    @property
    def is_busy(self) -> bool:
        return self._flag.is_set

    def tick(self) -> bool:
        """Pull and deliver one sample if one is pending.

        Returns:
            True if a frame was delivered
        """
        if not self._flag.try_acquire():
            # Several losing ticks may count at once
            with self._skipped_lock:
                self.ticks_skipped += 1
            return False

        try:
            pipeline, sink = self._handle.pipeline, self._handle.sink
            if pipeline is None or sink is None:
                return False
            return self._pull_and_deliver(sink)
        finally:
            self._flag.release()

    def _pull_and_deliver(self, sink: Any) -> bool:
        # Zero timeout: return immediately when nothing is queued
        sample = sink.emit("try-pull-sample", 0)
        if sample is None:
            return False

        context = None
        try:
            context = FrameContext(sample)
            self.on_frame.emit(context)
        finally:
            if context is not None:
                context.release()
            del sample

        self.frames_delivered += 1
        return True
