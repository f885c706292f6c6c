# tests/conftest.py
import os
import sys
from pathlib import Path

import numpy as np
import pytest

# Make the top-level packages importable without an install.
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

pp = os.getenv("PYTHONPATH")
if pp:
    for p in pp.split(os.pathsep):
        if p:
            sys.path.insert(0, p)

from common.frame import Frame  # noqa: E402
from record.writer import ClipWriterError  # noqa: E402

# Pure BGR colors and the HSV band they fall into with the default table.
BLUE_BGR = (255, 0, 0)  # H=120
RED_BGR = (0, 0, 255)  # H=0, first red sub-range
MAGENTA_RED_BGR = (128, 0, 255)  # H~165, second red sub-range only
GREEN_BGR = (0, 255, 0)  # H=60


def blank(width: int = 400, height: int = 300) -> np.ndarray:
    return np.zeros((height, width, 3), dtype=np.uint8)


def with_blob(img: np.ndarray, center, bgr, half: int = 10) -> np.ndarray:
    """Paint a (2*half+1)-px square centred on ``center``; returns ``img``."""
    cx, cy = center
    img[cy - half : cy + half + 1, cx - half : cx + half + 1] = bgr
    return img


def frame_with(*blobs, ts_s: float = 0.0, frame_id: int = 0) -> Frame:
    """Frame with one square per ``(center, bgr)`` pair."""
    img = blank()
    for center, bgr in blobs:
        with_blob(img, center, bgr)
    return Frame(img=img, ts_s=ts_s, frame_id=frame_id)


class FakeClock:
    def __init__(self, start: float = 1000.0, step: float = 0.0) -> None:
        self.t = start
        self.step = step

    def __call__(self) -> float:
        now = self.t
        self.t += self.step
        return now

    def advance(self, dt: float) -> None:
        self.t += dt


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


class FakeSink:
    """In-memory ``ClipSink``; records the first pixel of every written frame."""

    def __init__(self, fail_open: bool = False) -> None:
        self.fail_open = fail_open
        self.opened = []
        self.clips = []
        self.closes = 0
        self._open = False

    def open(self, path, fourcc, fps, size) -> None:
        if self.fail_open:
            raise ClipWriterError("nope")
        assert not self._open
        self.opened.append((Path(path), fourcc, fps, size))
        self.clips.append([])
        self._open = True

    def write(self, img) -> None:
        assert self._open, "write on a closed sink"
        self.clips[-1].append(int(img[0, 0, 0]))

    def close(self) -> None:
        self.closes += 1
        self._open = False

    def is_open(self) -> bool:
        return self._open
