"""Pipeline descriptor construction and validation.

A descriptor is a ``gst-launch`` style chain of stages separated by ``!``
that must terminate with the ``appsink`` marker. The marker is rewritten to
carry a process-unique name so the sink can be looked up after the build.
"""

import logging
import sys
import uuid
from typing import Callable, Optional

from gst_video_stream.errors import InvalidDescriptor
from gst_video_stream.types import SINK_MARKER, SUPPORTED_PIXEL_FORMAT

logger = logging.getLogger(__name__)

# Stages placed between every source and the sink
SINK_CHAIN = f"queue ! videoconvert ! {SINK_MARKER}"


def validate_descriptor(descriptor: str) -> str:
    """Check that a descriptor ends with the sink marker.

    Args:
        descriptor: Raw descriptor

    Returns:
        The trimmed descriptor

    Raises:
        InvalidDescriptor: If the trailing token is not the sink marker
    """
    if descriptor is None:
        raise InvalidDescriptor("", "Pipeline descriptor must not be None")

    trimmed = descriptor.strip()
    tokens = trimmed.replace("!", " ! ").split()
    if not tokens or tokens[-1].lower() != SINK_MARKER:
        raise InvalidDescriptor(descriptor)

    return trimmed


def generate_sink_name() -> str:
    """Generate a sink element name unique within the process."""
    return f"{SINK_MARKER}_{uuid.uuid4().hex}"


def inject_sink_name(descriptor: str, sink_name: str) -> str:
    """Name the trailing sink stage of a validated descriptor."""
    trimmed = validate_descriptor(descriptor)
    head = trimmed[: -len(SINK_MARKER)]
    return f"{head}{SINK_MARKER} name={sink_name}"


def _resolution_caps(width: int, height: int) -> str:
    if width > 0 and height > 0:
        return f",width={width},height={height}"
    return ""


def camera_descriptor(
    device_index: int,
    width: int = 0,
    height: int = 0,
    platform: Optional[str] = None,
) -> str:
    """Build a descriptor for a local camera.

    Args:
        device_index: Camera index as enumerated by the OS
        width: Requested frame width, 0 for the camera default
        height: Requested frame height, 0 for the camera default
        platform: ``sys.platform`` style identifier (defaults to the current one)

    Returns:
        Descriptor ending in the sink marker
    """
    platform = platform or sys.platform
    resolution = _resolution_caps(width, height)
    raw_caps = f"video/x-raw,format={SUPPORTED_PIXEL_FORMAT}{resolution}"

    if platform == "darwin":
        # avfvideosrc cannot produce RGBA directly
        source = f"avfvideosrc device-index={device_index} ! video/x-raw,format=BGRA{resolution}"
    elif platform.startswith("linux") or platform.startswith("freebsd"):
        source = f"v4l2src device=/dev/video{device_index} ! {raw_caps}"
    elif platform in ("win32", "cygwin"):
        source = f"ksvideosrc device-index={device_index} ! {raw_caps}"
    else:
        logger.warning(f"No camera source for platform {platform}, using autovideosrc")
        source = f"autovideosrc ! {raw_caps}"

    return f"{source} ! {SINK_CHAIN}"


def uri_descriptor(
    uri: str,
    options: Optional[str] = None,
    is_supported_uri: Optional[Callable[[str], bool]] = None,
) -> str:
    """Build a ``uridecodebin`` descriptor.

    Anything that is not a supported source URI is treated as a local file
    path and turned into a ``file://`` URI.

    Args:
        uri: Source URI or file path
        options: Extra ``uridecodebin`` properties, appended verbatim
        is_supported_uri: URI check, usually ``GstRuntime.is_supported_uri``

    Returns:
        Descriptor ending in the sink marker
    """
    if not uri or not uri.strip():
        raise InvalidDescriptor(uri or "", "Source URI must not be empty")

    uri = uri.strip()
    if is_supported_uri is None or not is_supported_uri(uri):
        uri = "file://" + uri.replace("\\", "/")

    extra = f" {options.strip()}" if options and options.strip() else ""
    return f'uridecodebin uri="{uri}"{extra} ! {SINK_CHAIN}'
