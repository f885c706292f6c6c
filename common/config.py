# common/config.py
"""Runtime defaults for the color-band motion camera.

Point COLORCAM_CONFIG_MODULE at another module to override; any name left
out falls back to the dataclass defaults.
"""

# Ordered by priority: the first band that moves starts the clip.
COLOR_BANDS = [
    ("blue", {"lower": (100, 100, 50), "upper": (130, 255, 255)}),
    (
        "red",
        {
            "lower": (0, 100, 50),
            "upper": (10, 255, 255),
            "lower2": (160, 100, 50),
            "upper2": (179, 255, 255),
        },
    ),
    ("green", {"lower": (40, 70, 50), "upper": (80, 255, 255)}),
    ("yellow", {"lower": (20, 100, 100), "upper": (30, 255, 255)}),
    ("white", {"lower": (0, 0, 200), "upper": (179, 30, 255)}),
]

ERODE_RADIUS = 2
DILATE_RADIUS = 2
MOTION_THRESHOLD_PX = 30.0

QUIET_PERIOD_S = 10.0
WRITE_FPS = 15.0
RECORD_DURATION_S = 30.0

CLIP_FOURCC = "MJPG"
CLIP_OUT_DIR = "clips"
CLIP_FILENAME = "motion-{stamp}.avi"
