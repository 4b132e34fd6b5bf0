"""Fixed-rate background drivers."""

import logging
import threading
import time
from typing import Callable, Optional

logger = logging.getLogger(__name__)


class PeriodicDriver:
    """Calls a function at a fixed rate on a dedicated daemon thread.

    Ticks never overlap with each other. If a tick overruns its slot the
    missed ticks are dropped instead of being queued.
    """

    def __init__(self, name: str, frequency_hz: float, callback: Callable[[], object]) -> None:
        """Initialize driver.

        Args:
            name: Thread name, also used in log messages
            frequency_hz: Ticks per second
            callback: Function called on every tick
        """
        if frequency_hz <= 0:
            raise ValueError(f"frequency_hz must be positive, got {frequency_hz}")

        self.name = name
        self.interval = 1.0 / frequency_hz
        self._callback = callback
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self.ticks = 0

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        if self.is_running:
            return

        self._stop_event.clear()
        self._thread = threading.Thread(target=self._run, name=self.name, daemon=True)
        self._thread.start()
        logger.debug(f"Driver {self.name} started ({1.0 / self.interval:.0f} Hz)")

    def stop(self, timeout: float = 1.0) -> None:
        """Stop the driver and wait for the current tick to finish.

        Calling this from inside the callback only signals the loop.
        """
        self._stop_event.set()

        thread = self._thread
        if thread is not None and thread.is_alive() and threading.current_thread() is not thread:
            thread.join(timeout=timeout)
            if thread.is_alive():
                logger.warning(f"Driver {self.name} did not stop within {timeout}s")

        self._thread = None

    def _run(self) -> None:
        next_tick = time.monotonic() + self.interval

        while not self._stop_event.wait(max(next_tick - time.monotonic(), 0.0)):
            try:
                self._callback()
            except Exception as e:
                logger.error(f"Error in {self.name} tick: {e}", exc_info=True)
            self.ticks += 1

            next_tick += self.interval
            now = time.monotonic()
            if next_tick < now:
                # Overran the slot, drop the missed ticks
                next_tick = now
