from __future__ import annotations

import numpy as np

from analysis.motion import MotionConfig, MotionEvaluator, NoMotion
from common.frame import Frame


def test_motion_smoke_run() -> None:
    # Construct an evaluator with default configuration and run a single
    # black frame through it to confirm the full band table loads and runs.
    ev = MotionEvaluator(MotionConfig())
    f = Frame(
        img=np.zeros((64, 64, 3), dtype=np.uint8),
        ts_s=0.0,
        frame_id=0,
    )
    out = ev.evaluate(f)

    assert isinstance(out, NoMotion)
    assert len(ev.centroids) == len(ev.config.bands)
