"""Observer registries for stream notifications."""

import logging
import threading
from typing import Any, Callable, List

logger = logging.getLogger(__name__)


class Observers:
    """Ordered registry of callbacks for one notification.

    Callbacks run sequentially on the emitting thread. A callback may
    unsubscribe itself (or others) while being called; the change applies
    from the next emit.

    Example:
        >>> on_frame = Observers("frame")
        >>> @on_frame.subscribe
        ... def handle(context):
        ...     print(context.width)
    """

    def __init__(self, name: str) -> None:
        self.name = name
        self._callbacks: List[Callable[..., Any]] = []
        self._lock = threading.Lock()

    def subscribe(self, callback: Callable[..., Any]) -> Callable[..., Any]:
        """Register a callback.

        Returns:
            The callback, so the method can be used as a decorator
        """
        with self._lock:
            self._callbacks.append(callback)
        return callback

    def unsubscribe(self, callback: Callable[..., Any]) -> bool:
        """Remove a callback.

        Returns:
            True if the callback was registered
        """
        with self._lock:
            try:
                self._callbacks.remove(callback)
            except ValueError:
                return False
        return True

    def clear(self) -> None:
        with self._lock:
            self._callbacks.clear()

    def emit(self, *args: Any) -> None:
        """Call every registered callback with ``args``.

        A callback that raises is logged and does not stop the fan-out.
        """
        with self._lock:
            callbacks = list(self._callbacks)

        for callback in callbacks:
            try:
                callback(*args)
            except Exception as e:
                logger.error(
                    f"Error in {self.name} observer {getattr(callback, '__name__', callback)!s}: {e}",
                    exc_info=True,
                )

    def __len__(self) -> int:
        with self._lock:
            return len(self._callbacks)

    def __contains__(self, callback: object) -> bool:
        with self._lock:
            return callback in self._callbacks
