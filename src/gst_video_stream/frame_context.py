"""Scoped access to the memory of one decoded video frame."""

import logging
from typing import Any, Optional

import numpy as np

from gst_video_stream.errors import FrameReleased, NullSample

logger = logging.getLogger(__name__)

# GST_MAP_READ
MAP_READ = 1

# Bytes per pixel for packed formats
_PIXEL_SIZES = {
    "RGBA": 4,
    "BGRA": 4,
    "ARGB": 4,
    "ABGR": 4,
    "RGBx": 4,
    "BGRx": 4,
    "xRGB": 4,
    "xBGR": 4,
    "RGB": 3,
    "BGR": 3,
    "GRAY8": 1,
}


class FrameContext:
    """Read-only view over a sample's mapped buffer.

    The context owns the buffer mapping and is only valid until
    :meth:`release` is called; afterwards ``data`` and ``copy_to`` raise
    :class:`FrameReleased`. When the buffer cannot be mapped the context is
    still created but all metadata is zero, so callers must check
    ``size > 0`` before touching the memory.

    Example:
        >>> with FrameContext(sample) as frame:
        ...     if frame.size > 0:
        ...         pixels = frame.as_array()
    """

    def __init__(self, sample: Any) -> None:
        """Map the sample's buffer for reading.

        Args:
            sample: A ``Gst.Sample`` (or compatible object)

        Raises:
            NullSample: If ``sample`` is None
        """
        if sample is None:
            raise NullSample()

        self._sample: Optional[Any] = sample
        self._buffer: Optional[Any] = sample.get_buffer()
        self._map_info: Optional[Any] = None
        self._view: Optional[memoryview] = None
        self._released = False

        self.width = 0
        self.height = 0
        self.format = ""
        self.stride = 0
        self.size = 0

        if self._buffer is None:
            logger.debug("Sample has no buffer")
            return

        mapped, map_info = self._buffer.map(MAP_READ)
        if not mapped:
            logger.debug("Could not map sample buffer")
            return

        self._map_info = map_info

        try:
            structure = sample.get_caps().get_structure(0)
            pixel_format = structure.get_value("format") or ""
            width = int(structure.get_value("width") or 0)
            height = int(structure.get_value("height") or 0)
            size = int(map_info.size)
            view = memoryview(map_info.data).cast("B")
        except Exception as e:
            logger.warning(f"Could not read sample caps: {e}")
            self._unmap()
            return

        self._view = view
        self.format = pixel_format
        self.width = width
        self.height = height
        self.size = size
        self.stride = size // height if height > 0 else 0

    def _unmap(self) -> None:
        if self._buffer is not None and self._map_info is not None:
            try:
                self._buffer.unmap(self._map_info)
            except Exception as e:
                logger.warning(f"Error unmapping frame buffer: {e}")
        self._map_info = None

    @property
    def is_mapped(self) -> bool:
        return self._map_info is not None

    @property
    def is_released(self) -> bool:
        return self._released

    @property
    def data(self) -> memoryview:
        """Mapped frame memory.

        Raises:
            FrameReleased: If the context has been released
        """
        if self._released:
            raise FrameReleased("Frame memory is no longer mapped")
        if self._view is None:
            return memoryview(b"")
        return self._view

    def copy_to(self, destination: Any, max_bytes: Optional[int] = 0) -> int:
        """Copy frame memory into a writable buffer.

        Copies ``stride * height`` bytes, or ``min(max_bytes, stride * height)``
        when ``max_bytes`` is positive. The destination must be large enough;
        its capacity is not checked beyond what ``memoryview`` enforces.

        Args:
            destination: Writable buffer (bytearray, numpy array, ...)
            max_bytes: Upper bound on the number of bytes to copy

        Returns:
            Number of bytes copied
        """
        source = self.data
        count = self.stride * self.height
        if max_bytes and max_bytes > 0:
            count = min(max_bytes, count)

        if count == 0:
            return 0

        target = memoryview(destination).cast("B")
        target[:count] = source[:count]
        return count

    def as_array(self) -> np.ndarray:
        """Return a ``(height, width, channels)`` uint8 view of the frame.

        The array aliases mapped memory and must not be used after release.
        Copy it (``as_array().copy()``) to keep pixels beyond the callback.
        """
        source = self.data
        if self.size == 0:
            raise ValueError("Frame buffer is not mapped")

        channels = _PIXEL_SIZES.get(self.format)
        if channels is None:
            raise ValueError(f"Unsupported pixel format: {self.format}")

        rows = np.frombuffer(source, dtype=np.uint8, count=self.stride * self.height)
        rows = rows.reshape(self.height, self.stride)
        return rows[:, : self.width * channels].reshape(self.height, self.width, channels)

    def release(self) -> None:
        """Unmap the buffer and drop the sample. Safe to call repeatedly."""
        if self._released:
            return
        self._released = True

        self._view = None
        self._unmap()
        self._buffer = None
        self._sample = None

    def __enter__(self) -> "FrameContext":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.release()

    def __repr__(self) -> str:
        return (
            f"FrameContext({self.width}x{self.height} {self.format or '?'}, "
            f"stride={self.stride}, size={self.size}, released={self._released})"
        )
