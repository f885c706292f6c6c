from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional, Protocol

from analysis.motion.model import MotionOnBand, MotionResult
from common.frame import Frame
from common.time import clip_stamp

from .writer import ClipSink

_LOG = logging.getLogger(__name__)


@dataclass(frozen=True)
class RecorderConfig:
    """Configuration for motion-gated clip recording.

    Parameters
    ----------
    quiet_period_s:
        Minimum time after a motion-free check before detection runs again.
    write_fps:
        Frame rate stamped into the clip file.
    record_duration_s:
        Target clip length; together with ``write_fps`` fixes the frame
        count of every clip. A product that rounds to zero gives
        one-frame clips.
    fourcc:
        Four-character codec code handed to the writer.
    out_dir:
        Directory that receives clips (created on demand).
    filename:
        ``str.format`` pattern for clip names. ``{stamp}`` is the UTC start
        time, ``{clip}`` the running clip number.
    include_trigger_frame:
        Write the frame that triggered motion as the clip's first frame.
    """

    quiet_period_s: float = 10.0
    write_fps: float = 15.0
    record_duration_s: float = 30.0
    fourcc: str = "MJPG"
    out_dir: Path = Path(".")
    filename: str = "motion-{stamp}.avi"
    include_trigger_frame: bool = False

    @property
    def max_recording_frames(self) -> int:
        # Round half up: 15 fps * 30 s -> 450.
        return max(1, int(self.write_fps * self.record_duration_s + 0.5))


class RecordingState(enum.Enum):
    IDLE = "idle"
    RECORDING = "recording"


class StepResult(enum.Enum):
    SKIPPED = "skipped"  # idle, still inside the quiet period
    QUIET = "quiet"  # idle, evaluated, no motion
    STARTED = "started"  # motion found, clip opened
    WROTE = "wrote"  # recording, frame written
    CLIP_COMPLETE = "clip_complete"  # last frame written, clip closed


class Evaluator(Protocol):
    def evaluate(self, frame: Frame) -> MotionResult: ...


class RecordingController:
    """Decide, frame by frame, whether to look for motion or to record.

    Idle: once ``quiet_period_s`` has passed since the last motion-free
    check, the evaluator runs. No motion re-arms the quiet timer; motion
    opens the sink and switches to recording.

    Recording: every frame goes straight to the sink with no detection.
    After ``max_recording_frames`` writes the sink is closed and the
    controller reports the clip complete.

    The controller is the only owner of the sink, so ``RECORDING`` holds
    exactly while the sink is open.
    """

    def __init__(
        self,
        evaluator: Evaluator,
        sink: ClipSink,
        config: Optional[RecorderConfig] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self._evaluator = evaluator
        self._sink = sink
        self._cfg = config or RecorderConfig()
        self._log = logger or _LOG

        self._state = RecordingState.IDLE
        self._frames_written = 0
        self._last_quiet_s = float("-inf")
        self._clip_count = 0
        self._clip_path: Optional[Path] = None

    # ------------------------------------------------------------------ #
    # Introspection
    # ------------------------------------------------------------------ #

    @property
    def config(self) -> RecorderConfig:
        return self._cfg

    @property
    def state(self) -> RecordingState:
        return self._state

    @property
    def frames_written(self) -> int:
        return self._frames_written

    @property
    def last_quiet_s(self) -> float:
        return self._last_quiet_s

    @property
    def clip_path(self) -> Optional[Path]:
        """Path of the clip being written, or the last one finished."""
        return self._clip_path

    @property
    def clip_count(self) -> int:
        return self._clip_count

    # ------------------------------------------------------------------ #
    # Lifecycle
    # ------------------------------------------------------------------ #

    def reset(self, now_s: float) -> None:
        """Back to idle with the first check immediately eligible."""
        self.abort()
        self._last_quiet_s = now_s - float(self._cfg.quiet_period_s)

    def abort(self) -> None:
        """Close an open clip (if any) and go idle."""
        if self._sink.is_open():
            self._sink.close()
            self._log.info(
                "Recording aborted after %d frames: %s", self._frames_written, self._clip_path
            )
        self._state = RecordingState.IDLE
        self._frames_written = 0

    # ------------------------------------------------------------------ #
    # Per-frame
    # ------------------------------------------------------------------ #

    def step(self, frame: Frame) -> StepResult:
        if self._state is RecordingState.RECORDING:
            return self._write(frame)

        if frame.ts_s - self._last_quiet_s < float(self._cfg.quiet_period_s):
            return StepResult.SKIPPED

        result = self._evaluator.evaluate(frame)
        if not isinstance(result, MotionOnBand):
            self._last_quiet_s = frame.ts_s
            return StepResult.QUIET

        self._start(frame, result)
        if self._cfg.include_trigger_frame and self._write(frame) is StepResult.CLIP_COMPLETE:
            return StepResult.CLIP_COMPLETE
        return StepResult.STARTED

    # ------------------------------------------------------------------ #
    # Internal helpers
    # ------------------------------------------------------------------ #

    def _next_clip_path(self) -> Path:
        name = self._cfg.filename.format(stamp=clip_stamp(), clip=self._clip_count + 1)
        return Path(self._cfg.out_dir) / name

    def _start(self, frame: Frame, motion: MotionOnBand) -> None:
        path = self._next_clip_path()
        self._sink.open(path, self._cfg.fourcc, float(self._cfg.write_fps), frame.size)
        self._clip_count += 1
        self._clip_path = path
        self._state = RecordingState.RECORDING
        self._frames_written = 0
        self._log.info(
            "Started recording due to motion on band %s (%.1f px): %s",
            motion.name,
            motion.displacement,
            path,
        )

    def _write(self, frame: Frame) -> StepResult:
        self._sink.write(frame.img)
        self._frames_written += 1
        if self._frames_written < self._cfg.max_recording_frames:
            return StepResult.WROTE

        self._sink.close()
        self._log.info(
            "Stopped recording after %d frames: %s", self._frames_written, self._clip_path
        )
        self._state = RecordingState.IDLE
        self._frames_written = 0
        return StepResult.CLIP_COMPLETE


def recorder_config_from_cfg(cfg_module: Any) -> RecorderConfig:
    """Build :class:`RecorderConfig` from an application config module.

    Recognised (all optional):

    - QUIET_PERIOD_S
    - WRITE_FPS
    - RECORD_DURATION_S
    - CLIP_FOURCC
    - CLIP_OUT_DIR
    - CLIP_FILENAME
    - CLIP_INCLUDE_TRIGGER_FRAME
    """
    defaults = RecorderConfig()
    out_dir = getattr(cfg_module, "CLIP_OUT_DIR", None)

    return RecorderConfig(
        quiet_period_s=float(getattr(cfg_module, "QUIET_PERIOD_S", defaults.quiet_period_s)),
        write_fps=float(getattr(cfg_module, "WRITE_FPS", defaults.write_fps)),
        record_duration_s=float(
            getattr(cfg_module, "RECORD_DURATION_S", defaults.record_duration_s)
        ),
        fourcc=str(getattr(cfg_module, "CLIP_FOURCC", defaults.fourcc)),
        out_dir=Path(out_dir) if out_dir else defaults.out_dir,
        filename=str(getattr(cfg_module, "CLIP_FILENAME", defaults.filename)),
        include_trigger_frame=bool(
            getattr(cfg_module, "CLIP_INCLUDE_TRIGGER_FRAME", defaults.include_trigger_frame)
        ),
    )
