from __future__ import annotations

import argparse
import contextlib
import dataclasses
import logging
import sys
from pathlib import Path
from typing import Optional

from analysis.motion.bands import describe_band
from analysis.motion.config import load_config_module, motion_config_from_cfg
from analysis.motion.engine import MotionEvaluator
from analysis.motion.model import MotionConfig
from capture.reader import ReaderConfig, ReaderFactory, SourceError
from common.signals import AnyCancel, EventCancel, KeyCancel, StdinTrigger
from record.cycle import CycleRunner, SourceDisconnectedError
from record.recorder import RecorderConfig, RecordingController, recorder_config_from_cfg
from record.writer import ClipWriterError, VideoClipWriter

_LOG = logging.getLogger(__name__)


def build_arg_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(
        description=(
            "Watch a camera for moving colored regions and record one clip per "
            "operator-started cycle."
        ),
    )
    ap.add_argument(
        "--config",
        type=str,
        default=None,
        help="Python module with runtime constants (default: $COLORCAM_CONFIG_MODULE or common.config).",
    )
    ap.add_argument(
        "--prefer",
        type=str,
        choices=["camera", "device", "null"],
        default="camera",
        help='Frame source ("camera" libcamera pipeline, "device" index/path, "null" black frames).',
    )
    ap.add_argument(
        "--pipeline",
        type=str,
        default=None,
        help="Custom GStreamer pipeline string (overrides the libcamera default).",
    )
    ap.add_argument(
        "--device",
        type=str,
        default="0",
        help="Device index or file/URL used with --prefer device.",
    )
    ap.add_argument(
        "--no-rotate",
        action="store_true",
        help="Do not flip the libcamera image by 180 degrees.",
    )
    ap.add_argument(
        "--out-dir",
        type=str,
        default=None,
        help="Directory where clips are written.",
    )

    # Detection tuning
    ap.add_argument(
        "--threshold",
        type=float,
        default=None,
        help="Centroid displacement (px) that counts as motion.",
    )
    ap.add_argument(
        "--refresh-on-motion",
        action="store_true",
        help="Take the new centroid as baseline for the band that triggered motion.",
    )

    # Recording
    ap.add_argument(
        "--quiet-period",
        type=float,
        default=None,
        help="Seconds after a motion-free check before detection runs again.",
    )
    ap.add_argument(
        "--fps",
        type=float,
        default=None,
        help="Clip frame rate.",
    )
    ap.add_argument(
        "--duration",
        type=float,
        default=None,
        help="Clip duration in seconds.",
    )
    ap.add_argument(
        "--include-trigger-frame",
        action="store_true",
        help="Write the frame that triggered motion as the first clip frame.",
    )

    ap.add_argument(
        "--esc-cancel",
        action="store_true",
        help="Also cancel on ESC in an OpenCV window (needs a GUI build of OpenCV).",
    )
    ap.add_argument(
        "--list-bands",
        action="store_true",
        help="Print the configured color bands in priority order and exit.",
    )
    ap.add_argument(
        "--verbose",
        action="store_true",
        help="Enable debug logging.",
    )
    return ap


def _device(value: str):
    return int(value) if value.isdigit() else value


def build_configs(args: argparse.Namespace) -> tuple[MotionConfig, RecorderConfig]:
    cfg_module = load_config_module(args.config)
    if cfg_module is None:
        motion_cfg, rec_cfg = MotionConfig(), RecorderConfig()
    else:
        motion_cfg = motion_config_from_cfg(cfg_module)
        rec_cfg = recorder_config_from_cfg(cfg_module)

    motion_overrides: dict = {}
    if args.threshold is not None:
        motion_overrides["motion_threshold_px"] = args.threshold
    if args.refresh_on_motion:
        motion_overrides["refresh_on_motion"] = True

    rec_overrides: dict = {}
    if args.quiet_period is not None:
        rec_overrides["quiet_period_s"] = args.quiet_period
    if args.fps is not None:
        rec_overrides["write_fps"] = args.fps
    if args.duration is not None:
        rec_overrides["record_duration_s"] = args.duration
    if args.out_dir is not None:
        rec_overrides["out_dir"] = Path(args.out_dir)
    if args.include_trigger_frame:
        rec_overrides["include_trigger_frame"] = True

    return (
        dataclasses.replace(motion_cfg, **motion_overrides),
        dataclasses.replace(rec_cfg, **rec_overrides),
    )


def main(argv: Optional[list[str]] = None) -> int:
    ap = build_arg_parser()
    args = ap.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    motion_cfg, rec_cfg = build_configs(args)

    if args.list_bands:
        for i, band in enumerate(motion_cfg.bands):
            sys.stdout.write(f"{i}: {describe_band(band)}\n")
        return 0

    _LOG.info(
        "bands=%s threshold=%.1fpx quiet=%.1fs clip=%d frames @ %.1f fps -> %s",
        ",".join(b.name for b in motion_cfg.bands),
        motion_cfg.motion_threshold_px,
        rec_cfg.quiet_period_s,
        rec_cfg.max_recording_frames,
        rec_cfg.write_fps,
        rec_cfg.out_dir,
    )

    # ------------------------------------------------------------------ source

    reader_cfg = ReaderConfig(
        prefer=args.prefer,
        pipeline=args.pipeline,
        device=_device(args.device),
        rotate_180=not args.no_rotate,
    )
    reader = ReaderFactory.from_config(reader_cfg)
    try:
        reader.start()
    except SourceError as exc:
        _LOG.error("Could not open camera: %s", exc)
        return 1

    # ------------------------------------------------------------------ motion + recording

    evaluator = MotionEvaluator(motion_cfg)
    writer = VideoClipWriter()
    controller = RecordingController(evaluator, writer, rec_cfg)

    cancel = EventCancel()
    cancel.install_signal_handlers()
    cancel_signal = AnyCancel(cancel, KeyCancel()) if args.esc_cancel else cancel

    runner = CycleRunner(reader, evaluator, controller, cancel_signal)

    try:
        clips = runner.run(StdinTrigger(cancel=cancel))
    except SourceDisconnectedError:
        _LOG.error("Camera disconnected!")
        return 1
    except ClipWriterError as exc:
        _LOG.error("Could not write clip: %s", exc)
        return 1
    finally:
        controller.abort()
        with contextlib.suppress(Exception):
            reader.close()

    _LOG.info("Exiting after %d clip(s).", clips)
    return 0


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
