"""Public exports for the motion analysis package."""

from __future__ import annotations

from .color import ColorBandDetector
from .engine import MotionEvaluator
from .model import (
    UNKNOWN_CENTROID,
    Centroid,
    ColorBand,
    ColorRange,
    HsvBounds,
    MorphologyParams,
    MotionConfig,
    MotionOnBand,
    MotionResult,
    NoMotion,
)

__all__ = [
    "ColorBandDetector",
    "MotionEvaluator",
    "MotionConfig",
    "MotionResult",
    "MotionOnBand",
    "NoMotion",
    "Centroid",
    "UNKNOWN_CENTROID",
    "ColorBand",
    "ColorRange",
    "HsvBounds",
    "MorphologyParams",
]
