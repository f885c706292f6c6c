# analysis/motion/config.py
"""Locate the optional runtime config module and turn it into dataclasses."""

from __future__ import annotations

import os
from importlib import import_module
from types import ModuleType
from typing import Any, Optional

from .bands import bands_from_entries
from .model import MorphologyParams, MotionConfig

CONFIG_MODULE_ENV = "COLORCAM_CONFIG_MODULE"
DEFAULT_CONFIG_MODULE = "common.config"


def load_config_module(name: Optional[str] = None) -> Optional[ModuleType]:
    """Import the first config module that exists.

    Candidates, in order: ``name``, ``$COLORCAM_CONFIG_MODULE``, then the
    bundled ``common.config``.
    Returns ``None`` when none can be imported; callers then fall back to
    dataclass defaults.
    """
    for candidate in filter(
        None,
        [name, os.environ.get(CONFIG_MODULE_ENV), DEFAULT_CONFIG_MODULE],
    ):
        try:
            return import_module(candidate)
        except ModuleNotFoundError as exc:
            # Only swallow "this module doesn't exist", not import errors
            # raised from inside an existing config module.
            if exc.name != candidate and not candidate.startswith(f"{exc.name}."):
                raise
    return None


def motion_config_from_cfg(cfg_module: Any) -> MotionConfig:
    """Build :class:`MotionConfig` from an application config module.

    Recognised (all optional):

    - COLOR_BANDS: sequence of ``(name, {"lower":..., "upper":..., ["lower2", "upper2"]})``
    - ERODE_RADIUS / DILATE_RADIUS
    - MOTION_THRESHOLD_PX
    - REFRESH_ON_MOTION
    """
    defaults = MotionConfig()
    entries = getattr(cfg_module, "COLOR_BANDS", None)
    bands = bands_from_entries(entries) if entries is not None else defaults.bands

    return MotionConfig(
        bands=bands,
        morphology=MorphologyParams(
            erode_radius=int(
                getattr(cfg_module, "ERODE_RADIUS", defaults.morphology.erode_radius)
            ),
            dilate_radius=int(
                getattr(cfg_module, "DILATE_RADIUS", defaults.morphology.dilate_radius)
            ),
        ),
        motion_threshold_px=float(
            getattr(cfg_module, "MOTION_THRESHOLD_PX", defaults.motion_threshold_px)
        ),
        refresh_on_motion=bool(
            getattr(cfg_module, "REFRESH_ON_MOTION", defaults.refresh_on_motion)
        ),
    )
