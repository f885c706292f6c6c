"""Per-color segmentation and centroid extraction.

A band is found by thresholding the HSV image against its range, cleaning
the binary mask with an erode-then-dilate pass, and taking the centroid of
whatever foreground survives. Everything here is a pure function of the
image, the range and the morphology radii.
"""

from __future__ import annotations

from typing import Optional

import cv2
import numpy as np

from .model import Centroid, ColorRange, HsvBounds, MorphologyParams


def to_hsv(img: np.ndarray) -> np.ndarray:
    return cv2.cvtColor(img, cv2.COLOR_BGR2HSV)


def range_mask(hsv: np.ndarray, color_range: ColorRange) -> np.ndarray:
    """Binary mask (0/255) of pixels inside any of the range's sub-ranges."""
    first, *rest = color_range.sub_ranges
    mask = _in_bounds(hsv, first)
    for bounds in rest:
        mask = cv2.bitwise_or(mask, _in_bounds(hsv, bounds))
    return mask


def _in_bounds(hsv: np.ndarray, bounds: HsvBounds) -> np.ndarray:
    return cv2.inRange(
        hsv,
        np.array(bounds.lower, dtype=np.uint8),
        np.array(bounds.upper, dtype=np.uint8),
    )


def _ellipse(radius: int) -> np.ndarray:
    size = 2 * int(radius) + 1
    return cv2.getStructuringElement(cv2.MORPH_ELLIPSE, (size, size))


def apply_morphology(mask: np.ndarray, params: MorphologyParams) -> np.ndarray:
    # Erode first to drop speckle, then dilate to grow back what survived.
    out = mask
    if params.erode_radius > 0:
        out = cv2.erode(out, _ellipse(params.erode_radius))
    if params.dilate_radius > 0:
        out = cv2.dilate(out, _ellipse(params.dilate_radius))
    return out


def mask_centroid(mask: np.ndarray) -> Optional[Centroid]:
    m = cv2.moments(mask, binaryImage=True)
    if m["m00"] <= 0:
        return None
    return Centroid(int(m["m10"] / m["m00"]), int(m["m01"] / m["m00"]))


class ColorBandDetector:
    """Find the centroid of one color range in a frame, or ``None``."""

    def __init__(self, morphology: Optional[MorphologyParams] = None) -> None:
        self._morph = morphology or MorphologyParams()

    @property
    def morphology(self) -> MorphologyParams:
        return self._morph

    def detect(self, img: np.ndarray, color_range: ColorRange) -> Optional[Centroid]:
        return self.detect_hsv(to_hsv(img), color_range)

    def detect_hsv(self, hsv: np.ndarray, color_range: ColorRange) -> Optional[Centroid]:
        """Same as :meth:`detect` for an image already converted to HSV.

        The evaluator converts once per frame and reuses the result for
        every band.
        """
        mask = apply_morphology(range_mask(hsv, color_range), self._morph)
        return mask_centroid(mask)
