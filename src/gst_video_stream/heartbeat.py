"""Console heartbeat and FPS measurement for a running stream."""

import logging
import threading
import time
from datetime import datetime
from typing import Any, Callable, Optional

import click

from gst_video_stream.timers import PeriodicDriver

logger = logging.getLogger(__name__)

# FPS is measured and printed every this many frames
MEASURE_FPS_ON_FRAME_COUNT = 300


class FpsMeter:
    """Measures frame rate over fixed-size frame intervals.

    The interval starts at its first frame and ends at frame
    ``frames_per_interval``, at which point the FPS is computed and the
    counter resets.
    """

    def __init__(
        self,
        frames_per_interval: int = MEASURE_FPS_ON_FRAME_COUNT,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if frames_per_interval < 2:
            raise ValueError("frames_per_interval must be at least 2")

        self.frames_per_interval = frames_per_interval
        self._clock = clock
        self._lock = threading.Lock()
        self._interval_frames = 0
        self._interval_start = 0.0
        self._fps: Optional[float] = None
        self.total_frames = 0

    def on_frame(self, context: Any = None) -> Optional[float]:
        """Count one frame; usable directly as an ``on_frame`` observer.

        Returns:
            The FPS if this frame completed an interval, else None
        """
        with self._lock:
            now = self._clock()
            if self._interval_frames == 0:
                self._interval_start = now

            self._interval_frames += 1
            self.total_frames += 1

            if self._interval_frames < self.frames_per_interval:
                return None

            elapsed = now - self._interval_start
            fps = self._interval_frames / elapsed if elapsed > 0 else float("inf")
            self._fps = fps
            self._interval_frames = 0
            return fps

    def take_fps(self) -> Optional[float]:
        """Return the last measured FPS once, then forget it."""
        with self._lock:
            fps, self._fps = self._fps, None
            return fps


class Heartbeat:
    """Prints a dot every interval and the FPS whenever a new value exists."""

    def __init__(
        self,
        meter: Optional[FpsMeter] = None,
        interval: float = 1.0,
        echo: Callable[..., Any] = click.echo,
    ) -> None:
        if interval <= 0:
            raise ValueError(f"interval must be positive, got {interval}")

        self.meter = meter or FpsMeter()
        self._echo = echo
        self._driver = PeriodicDriver("heartbeat", 1.0 / interval, self.beat)
        self._started = False

    def on_frame(self, context: Any = None) -> None:
        self.meter.on_frame(context)

    def beat(self) -> None:
        if not self._started:
            return

        self._echo(".", nl=False)
        fps = self.meter.take_fps()
        if fps is not None:
            self._echo(f"\r{datetime.now()} = {fps:.2f} FPS")

    def start(self) -> None:
        self._started = True
        self._driver.start()

    def stop(self) -> None:
        self._started = False
        self._driver.stop()
