# capture/__init__.py
"""Capture package: camera transport, synthetic transports and reader discovery."""

from .reader import (
    CaptureTransport,
    FrameStream,
    NullTransport,
    ReaderConfig,
    ReaderFactory,
    ReplayTransport,
    SourceError,
    SourceOpenError,
    libcamera_pipeline,
)

__all__ = [
    "FrameStream",
    "CaptureTransport",
    "NullTransport",
    "ReplayTransport",
    "ReaderConfig",
    "ReaderFactory",
    "SourceError",
    "SourceOpenError",
    "libcamera_pipeline",
]

__version__ = "0.1.0"
