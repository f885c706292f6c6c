from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import NamedTuple, Optional, Tuple, Union

Hsv = Tuple[int, int, int]


@dataclass(frozen=True)
class HsvBounds:
    """Inclusive HSV bounds in OpenCV units (H 0-179, S/V 0-255)."""

    lower: Hsv
    upper: Hsv


@dataclass(frozen=True)
class ColorRange:
    """
    One or two HSV bounds describing a single target color.

    Two bounds model a hue that straddles the 0/180 boundary (red): the
    masks of both sub-ranges are OR-ed before any further processing.
    """

    primary: HsvBounds
    secondary: Optional[HsvBounds] = None

    @property
    def wraps_hue(self) -> bool:
        return self.secondary is not None

    @property
    def sub_ranges(self) -> Tuple[HsvBounds, ...]:
        if self.secondary is None:
            return (self.primary,)
        return (self.primary, self.secondary)


@dataclass(frozen=True)
class ColorBand:
    name: str
    color_range: ColorRange


class Centroid(NamedTuple):
    x: int
    y: int

    @property
    def is_known(self) -> bool:
        return self != UNKNOWN_CENTROID

    def distance_to(self, other: "Centroid") -> float:
        return math.hypot(self.x - other.x, self.y - other.y)


# Real centroids are never negative, so (-1, -1) can't collide with one.
UNKNOWN_CENTROID = Centroid(-1, -1)


@dataclass(frozen=True)
class MorphologyParams:
    """Elliptical erode-then-dilate radii in pixels; <= 0 skips a step."""

    erode_radius: int = 2
    dilate_radius: int = 2


@dataclass(frozen=True)
class NoMotion:
    """No band moved further than the threshold on this frame."""


@dataclass(frozen=True)
class MotionOnBand:
    """The first band (in configured order) whose centroid jumped."""

    index: int
    name: str
    previous: Centroid
    current: Centroid
    displacement: float


MotionResult = Union[NoMotion, MotionOnBand]


def _default_bands() -> Tuple[ColorBand, ...]:
    from .bands import DEFAULT_BANDS

    return DEFAULT_BANDS


@dataclass(frozen=True)
class MotionConfig:
    """
    Configuration knobs for the color-band motion evaluator.

    Built once at startup and shared by reference; never mutated.
    """

    # Ordered: the first band to report motion wins.
    bands: Tuple[ColorBand, ...] = field(default_factory=_default_bands)
    morphology: MorphologyParams = field(default_factory=MorphologyParams)

    # Centroid displacement (px) that counts as motion. Values <= 0 mean
    # any non-zero displacement counts.
    motion_threshold_px: float = 30.0

    # When True, a band that triggers motion also takes the new centroid as
    # its baseline. The default keeps the pre-motion centroid.
    refresh_on_motion: bool = False
