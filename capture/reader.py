from __future__ import annotations

import logging
import time
from collections import deque
from dataclasses import dataclass, field
from typing import Callable, Deque, Iterable, Iterator, Literal, Optional, Protocol, Union

import cv2
import numpy as np

from common.frame import Frame
from common.time import now_s

_LOG = logging.getLogger(__name__)

Clock = Callable[[], float]
SourcePreference = Literal["camera", "device", "null"]


class SourceError(RuntimeError):
    """Base class for frame source failures."""


class SourceOpenError(SourceError):
    """The camera / pipeline / file could not be opened."""


class FrameStream(Protocol):
    def start(self) -> None: ...
    def read(self) -> Optional[Frame]: ...  # None: empty read, source is gone
    def close(self) -> None: ...
    def stats(self) -> "ReaderStats": ...


@dataclass
class ReaderStats:
    frames_read: int = 0
    failed_reads: int = 0
    read_us_mean: float = 0.0
    read_us_p95: float = 0.0
    _read_us_hist: Deque[float] = field(default_factory=lambda: deque(maxlen=1000), repr=False)

    def update_read_us(self, dt_us: float) -> None:
        self._read_us_hist.append(dt_us)
        arr = np.fromiter(self._read_us_hist, dtype=np.float64)
        self.read_us_mean = float(arr.mean())
        self.read_us_p95 = float(np.percentile(arr, 95))


# --- Camera -------------------------------------------------------------------


def libcamera_pipeline(
    capture_size: tuple[int, int] = (800, 600),
    output_size: tuple[int, int] = (400, 300),
    rotate_180: bool = True,
) -> str:
    """GStreamer pipeline for a Raspberry Pi camera via libcamerasrc.

    Captures at ``capture_size``, downscales to ``output_size`` and hands BGR
    frames to an appsink that drops stale buffers, so a slow consumer always
    sees a recent frame.
    """
    cw, ch = capture_size
    ow, oh = output_size
    stages = [
        f"libcamerasrc ! video/x-raw, width={cw}, height={ch}",
        f"videoconvert ! videoscale ! video/x-raw, width={ow}, height={oh}",
    ]
    if rotate_180:
        stages.append("videoflip method=rotate-180")
    stages.append("appsink drop=true max_buffers=2")
    return " ! ".join(stages)


class CaptureTransport:
    """Blocking frame source over ``cv2.VideoCapture``.

    ``source`` is either a GStreamer pipeline string (``api_preference``
    ``cv2.CAP_GSTREAMER``), a device index, or a file path/URL.
    """

    def __init__(
        self,
        source: Union[str, int],
        api_preference: int = cv2.CAP_ANY,
        clock: Clock = now_s,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self._source = source
        self._api = api_preference
        self._clock = clock
        self._log = logger or _LOG
        self._cap: Optional[cv2.VideoCapture] = None
        self._frame_id = 0
        self._stats = ReaderStats()

    def start(self) -> None:
        if self._cap is not None:
            return
        cap = cv2.VideoCapture(self._source, self._api)
        if not cap.isOpened():
            cap.release()
            raise SourceOpenError(f"could not open video source {self._source!r}")
        self._cap = cap
        self._log.info("Opened video source %r", self._source)

    def read(self) -> Optional[Frame]:
        if self._cap is None:
            raise SourceError("read() before start()")
        t0 = time.perf_counter()
        ok, img = self._cap.read()
        self._stats.update_read_us((time.perf_counter() - t0) * 1e6)
        if not ok or img is None or img.size == 0:
            self._stats.failed_reads += 1
            return None
        frame = Frame(img=img, ts_s=self._clock(), frame_id=self._frame_id)
        self._frame_id += 1
        self._stats.frames_read += 1
        return frame

    def close(self) -> None:
        if self._cap is not None:
            self._cap.release()
            self._cap = None

    def stats(self) -> ReaderStats:
        return self._stats


# --- Synthetic sources ----------------------------------------------------------


class NullTransport:
    """A tiny source that synthesizes black frames. Useful for tests/dev.

    With ``max_frames`` set it reports disconnection after that many frames.
    """

    def __init__(
        self,
        width: int = 400,
        height: int = 300,
        max_frames: Optional[int] = None,
        clock: Clock = now_s,
    ) -> None:
        self.width, self.height = width, height
        self._max_frames = max_frames
        self._clock = clock
        self._running = False
        self._frame_id = 0
        self._stats = ReaderStats()

    def start(self) -> None:
        self._running = True

    def read(self) -> Optional[Frame]:
        if not self._running:
            return None
        if self._max_frames is not None and self._frame_id >= self._max_frames:
            self._stats.failed_reads += 1
            return None
        img = np.zeros((self.height, self.width, 3), dtype=np.uint8)
        frame = Frame(img=img, ts_s=self._clock(), frame_id=self._frame_id)
        self._frame_id += 1
        self._stats.frames_read += 1
        return frame

    def close(self) -> None:
        self._running = False

    def stats(self) -> ReaderStats:
        return self._stats


class ReplayTransport:
    """Replay a fixed sequence of BGR images, then report disconnection.

    Each frame is stamped with ``clock()`` at read time; pass a fake clock to
    control how much time appears to pass between frames.
    """

    def __init__(self, images: Iterable[np.ndarray], clock: Clock = now_s) -> None:
        self._images: Iterator[np.ndarray] = iter(images)
        self._clock = clock
        self._running = False
        self._frame_id = 0
        self._stats = ReaderStats()

    def start(self) -> None:
        self._running = True

    def read(self) -> Optional[Frame]:
        if not self._running:
            return None
        img = next(self._images, None)
        if img is None:
            self._stats.failed_reads += 1
            return None
        frame = Frame(img=img, ts_s=self._clock(), frame_id=self._frame_id)
        self._frame_id += 1
        self._stats.frames_read += 1
        return frame

    def close(self) -> None:
        self._running = False

    def stats(self) -> ReaderStats:
        return self._stats


# --- Discovery ---------------------------------------------------------------


@dataclass
class ReaderConfig:
    prefer: SourcePreference = "camera"
    pipeline: Optional[str] = None  # overrides the libcamera default
    device: Union[int, str] = 0  # used when prefer == "device"
    capture_size: tuple[int, int] = (800, 600)
    output_size: tuple[int, int] = (400, 300)
    rotate_180: bool = True


class ReaderFactory:
    @staticmethod
    def from_config(cfg: ReaderConfig, clock: Clock = now_s) -> FrameStream:
        if cfg.prefer == "null":
            w, h = cfg.output_size
            return NullTransport(width=w, height=h, clock=clock)
        if cfg.prefer == "device":
            return CaptureTransport(cfg.device, cv2.CAP_ANY, clock=clock)
        if cfg.prefer == "camera":
            pipeline = cfg.pipeline or libcamera_pipeline(
                cfg.capture_size, cfg.output_size, cfg.rotate_180
            )
            return CaptureTransport(pipeline, cv2.CAP_GSTREAMER, clock=clock)
        raise ValueError(f"unknown source preference: {cfg.prefer!r}")
