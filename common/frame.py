from __future__ import annotations

from dataclasses import dataclass

import numpy as np


@dataclass
class Frame:
    img: np.ndarray  # BGR (H,W,3), uint8
    ts_s: float  # monotonic seconds at capture
    frame_id: int

    @property
    def size(self) -> tuple[int, int]:
        """(width, height), the order cv2.VideoWriter expects."""
        h, w = self.img.shape[:2]
        return int(w), int(h)
