"""Exceptions raised by the video stream library."""

from typing import Optional


class StreamError(Exception):
    """Base class for all video stream errors."""


class InvalidDescriptor(StreamError, ValueError):
    """Pipeline descriptor does not end with the sink marker."""

    def __init__(self, descriptor: str, message: Optional[str] = None) -> None:
        self.descriptor = descriptor
        super().__init__(message or f"Pipeline descriptor should end with 'appsink': {descriptor!r}")


class PipelineBuildError(StreamError):
    """The native runtime rejected the pipeline.

    Attributes:
        descriptor: Descriptor that was passed to the runtime
        diagnostic: Native error text reported by GStreamer
    """

    def __init__(self, diagnostic: str, descriptor: Optional[str] = None) -> None:
        self.diagnostic = diagnostic
        self.descriptor = descriptor
        super().__init__(diagnostic)


class RuntimeUnavailable(PipelineBuildError):
    """GStreamer or its Python bindings could not be loaded."""


class NullSample(StreamError, ValueError):
    """A frame context was created without a sample."""

    def __init__(self) -> None:
        super().__init__("sample must not be None")


class FrameReleased(StreamError):
    """Frame memory was accessed after the context was released."""
