"""Color-band motion evaluator.

Motion is judged per band by how far the band's centroid moved since the
last frame that was evaluated:

- Bands are visited in configured order.
- A band that isn't visible keeps its previous centroid.
- The first sighting of a band only records a baseline; it never claims
  motion on its own.
- The first band whose centroid moved further than the threshold wins.
  Evaluation stops right there, so lower-priority bands are not updated
  on that frame.
"""

from __future__ import annotations

import logging
from typing import List, Optional, Tuple

from common.frame import Frame

from .color import ColorBandDetector, to_hsv
from .model import (
    UNKNOWN_CENTROID,
    Centroid,
    MotionConfig,
    MotionOnBand,
    MotionResult,
    NoMotion,
)

_LOG = logging.getLogger(__name__)


class MotionEvaluator:
    """Holds the last-known centroid per band and decides motion per frame.

    The centroid list is owned here. Callers only ever see a tuple copy via
    :attr:`centroids`.
    """

    def __init__(
        self,
        config: Optional[MotionConfig] = None,
        detector: Optional[ColorBandDetector] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self._cfg = config or MotionConfig()
        self._detector = detector or ColorBandDetector(self._cfg.morphology)
        self._log = logger or _LOG
        self._centroids: List[Centroid] = [UNKNOWN_CENTROID] * len(self._cfg.bands)

    @property
    def config(self) -> MotionConfig:
        return self._cfg

    @property
    def centroids(self) -> Tuple[Centroid, ...]:
        return tuple(self._centroids)

    def reset(self) -> None:
        """Forget every baseline; the next sighting of each band starts over."""
        self._centroids = [UNKNOWN_CENTROID] * len(self._cfg.bands)

    def evaluate(self, frame: Frame) -> MotionResult:
        bands = self._cfg.bands
        if not bands:
            return NoMotion()

        threshold = max(0.0, float(self._cfg.motion_threshold_px))
        hsv = to_hsv(frame.img)

        for i, band in enumerate(bands):
            candidate = self._detector.detect_hsv(hsv, band.color_range)
            if candidate is None:
                continue

            previous = self._centroids[i]
            if not previous.is_known:
                self._log.debug("band %s: baseline at %s", band.name, tuple(candidate))
                self._centroids[i] = candidate
                continue

            distance = candidate.distance_to(previous)
            if distance > threshold:
                if self._cfg.refresh_on_motion:
                    self._centroids[i] = candidate
                self._log.debug(
                    "band %s moved %.1f px (%s -> %s), frame_id=%d",
                    band.name,
                    distance,
                    tuple(previous),
                    tuple(candidate),
                    frame.frame_id,
                )
                return MotionOnBand(
                    index=i,
                    name=band.name,
                    previous=previous,
                    current=candidate,
                    displacement=distance,
                )

            self._centroids[i] = candidate

        return NoMotion()
