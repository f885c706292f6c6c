from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional, Protocol, Tuple

import cv2
import numpy as np

_LOG = logging.getLogger(__name__)


class ClipWriterError(Exception):
    """The video writer could not be opened for a new clip."""


class ClipSink(Protocol):
    def open(self, path: Path, fourcc: str, fps: float, size: Tuple[int, int]) -> None: ...
    def write(self, img: np.ndarray) -> None: ...
    def close(self) -> None: ...
    def is_open(self) -> bool: ...


class VideoClipWriter:
    """``ClipSink`` backed by ``cv2.VideoWriter``.

    One instance is reused across clips: ``open`` starts a new file,
    ``close`` finalises it.
    """

    def __init__(self, logger: Optional[logging.Logger] = None) -> None:
        self._writer: Optional[cv2.VideoWriter] = None
        self._path: Optional[Path] = None
        self._log = logger or _LOG

    @property
    def path(self) -> Optional[Path]:
        return self._path

    def open(self, path: Path, fourcc: str, fps: float, size: Tuple[int, int]) -> None:
        if self.is_open():
            raise ClipWriterError(f"writer already open on {self._path}")
        if len(fourcc) != 4:
            raise ClipWriterError(f"fourcc must be 4 characters, got {fourcc!r}")

        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        writer = cv2.VideoWriter(
            str(path),
            cv2.VideoWriter_fourcc(*fourcc),
            float(fps),
            (int(size[0]), int(size[1])),
        )
        if not writer.isOpened():
            writer.release()
            raise ClipWriterError(
                f"could not open video writer path={str(path)!r} fourcc={fourcc} "
                f"fps={fps} size={size}"
            )
        self._writer = writer
        self._path = path
        self._log.debug("opened clip writer %s (%s @ %.2f fps, %dx%d)", path, fourcc, fps, *size)

    def write(self, img: np.ndarray) -> None:
        if self._writer is None:
            raise ClipWriterError("write() on a closed clip writer")
        self._writer.write(img)

    def close(self) -> None:
        if self._writer is not None:
            self._writer.release()
            self._log.debug("closed clip writer %s", self._path)
            self._writer = None

    def is_open(self) -> bool:
        return self._writer is not None and bool(self._writer.isOpened())
