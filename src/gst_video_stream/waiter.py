"""One-shot waits for bus messages."""

import asyncio
import logging
import threading
from concurrent.futures import Future, TimeoutError as FutureTimeoutError
from typing import Optional, Set

from gst_video_stream.events import Observers
from gst_video_stream.types import BusMessage, MessageKind

logger = logging.getLogger(__name__)


class MessageWait:
    """A pending wait for the first message matching a kind mask.

    The wait resolves exactly once: ``True`` on a matching message, ``False``
    on timeout or cancellation. Its observer is removed when it resolves.
    """

    def __init__(self, waiter: "MessageWaiter", kinds: MessageKind) -> None:
        self.kinds = MessageKind(kinds)
        self.future: "Future[bool]" = Future()
        self._waiter = waiter
        self._lock = threading.Lock()

    @property
    def done(self) -> bool:
        return self.future.done()

    def on_message(self, message: BusMessage) -> None:
        if message.kind.matches(self.kinds):
            self.resolve(True)

    def resolve(self, matched: bool) -> bool:
        """Complete the wait.

        Returns:
            True if this call completed it, False if it was already done
        """
        with self._lock:
            if self.future.done():
                return False
            self._waiter._discard(self)
            self.future.set_result(matched)
        return True

    def result(self, timeout: float = 0.0) -> bool:
        """Block until the wait completes.

        Args:
            timeout: Seconds to wait; zero or negative waits without bound

        Returns:
            True if a matching message arrived
        """
        try:
            return self.future.result(timeout=timeout if timeout > 0 else None)
        except FutureTimeoutError:
            self.resolve(False)
            return self.future.result()

    async def result_async(self, timeout: float = 0.0) -> bool:
        """Await the wait without blocking the event loop."""
        # Shielded so cancelling the caller resolves the wait instead of
        # cancelling the underlying future
        wrapped = asyncio.shield(asyncio.wrap_future(self.future))
        try:
            if timeout > 0:
                return await asyncio.wait_for(wrapped, timeout)
            return await wrapped
        except asyncio.TimeoutError:
            self.resolve(False)
            return self.future.result()
        except asyncio.CancelledError:
            self.resolve(False)
            raise


class MessageWaiter:
    """Creates :class:`MessageWait` subscriptions on a catch-all observer.

    Waits must be made from application threads; the dispatcher thread only
    resolves them.
    """

    def __init__(self, on_message: Observers) -> None:
        self._on_message = on_message
        self._pending: Set[MessageWait] = set()
        self._lock = threading.Lock()
        self._closed = False

    @property
    def pending_count(self) -> int:
        with self._lock:
            return len(self._pending)

    def begin(self, kinds: MessageKind) -> MessageWait:
        """Subscribe a new wait. After :meth:`cancel_all` waits resolve False at once."""
        wait = MessageWait(self, kinds)
        with self._lock:
            closed = self._closed
            if not closed:
                self._pending.add(wait)
                self._on_message.subscribe(wait.on_message)

        if closed:
            wait.future.set_result(False)
        return wait

    def wait(self, kinds: MessageKind, timeout: float = 0.0) -> bool:
        """Block until a message matching ``kinds`` arrives.

        Args:
            kinds: Mask of message kinds; a message matches if
                ``(kind & kinds) == kind``
            timeout: Seconds to wait; zero waits without bound

        Returns:
            True if a matching message arrived, False on timeout or cancellation
        """
        return self.begin(kinds).result(timeout)

    async def wait_async(self, kinds: MessageKind, timeout: float = 0.0) -> bool:
        """Asyncio variant of :meth:`wait`."""
        return await self.begin(kinds).result_async(timeout)

    def cancel_all(self) -> int:
        """Resolve every pending wait with False and refuse new ones.

        Returns:
            Number of waits that were cancelled
        """
        with self._lock:
            self._closed = True
            pending = list(self._pending)

        cancelled = sum(1 for wait in pending if wait.resolve(False))
        if cancelled:
            logger.debug(f"Cancelled {cancelled} pending message waits")
        return cancelled

    def _discard(self, wait: MessageWait) -> None:
        self._on_message.unsubscribe(wait.on_message)
        with self._lock:
            self._pending.discard(wait)
