"""Default color table tuned for a small outdoor camera."""

from __future__ import annotations

from typing import Iterable, Mapping, Sequence, Tuple

from .model import ColorBand, ColorRange, HsvBounds

BLUE = ColorBand(
    "blue",
    ColorRange(HsvBounds((100, 100, 50), (130, 255, 255))),
)
RED = ColorBand(
    "red",
    ColorRange(
        HsvBounds((0, 100, 50), (10, 255, 255)),
        HsvBounds((160, 100, 50), (179, 255, 255)),
    ),
)
GREEN = ColorBand(
    "green",
    ColorRange(HsvBounds((40, 70, 50), (80, 255, 255))),
)
YELLOW = ColorBand(
    "yellow",
    ColorRange(HsvBounds((20, 100, 100), (30, 255, 255))),
)
WHITE = ColorBand(
    "white",
    ColorRange(HsvBounds((0, 0, 200), (179, 30, 255))),
)

DEFAULT_BANDS: Tuple[ColorBand, ...] = (BLUE, RED, GREEN, YELLOW, WHITE)


def band_from_entry(name: str, entry: Mapping[str, Sequence[Sequence[int]]]) -> ColorBand:
    """Build a band from a config-module entry.

    Expected shape::

        {"lower": (h, s, v), "upper": (h, s, v)}                  # plain
        {"lower": ..., "upper": ..., "lower2": ..., "upper2": ...}  # hue wrap
    """
    primary = HsvBounds(_hsv(entry["lower"]), _hsv(entry["upper"]))
    secondary = None
    if "lower2" in entry or "upper2" in entry:
        secondary = HsvBounds(_hsv(entry["lower2"]), _hsv(entry["upper2"]))
    return ColorBand(str(name), ColorRange(primary, secondary))


def bands_from_entries(
    entries: Iterable[Tuple[str, Mapping[str, Sequence[Sequence[int]]]]],
) -> Tuple[ColorBand, ...]:
    return tuple(band_from_entry(name, entry) for name, entry in entries)


def describe_band(band: ColorBand) -> str:
    parts = [f"{b.lower}..{b.upper}" for b in band.color_range.sub_ranges]
    suffix = " (hue wrap)" if band.color_range.wraps_hue else ""
    return f"{band.name}: {' | '.join(parts)}{suffix}"


def _hsv(values: Sequence[int]) -> Tuple[int, int, int]:
    h, s, v = (int(x) for x in values)
    return h, s, v
