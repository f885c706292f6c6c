import signal
import subprocess
import sys
from pathlib import Path

import pytest

import tools.run_motion_pipeline as cli
from capture.reader import ReplayTransport
from common.signals import EventCancel
from conftest import BLUE_BGR, FakeSink, blank, with_blob
from tools.run_motion_pipeline import build_arg_parser, build_configs, main

ROOT = Path(__file__).resolve().parents[1]
PROMPT = "Press Enter to start one detection/recording cycle..."


def test_help_exits_zero():
    proc = subprocess.run(
        [sys.executable, "-m", "tools.run_motion_pipeline", "--help"],
        capture_output=True,
        text=True,
        cwd=ROOT,
    )
    assert proc.returncode == 0
    assert "usage" in proc.stdout.lower()


def test_list_bands(capsys):
    assert main(["--list-bands", "--config", "common.config"]) == 0
    out = capsys.readouterr().out.splitlines()
    assert [line.split(":")[1].strip() for line in out] == [
        "blue",
        "red",
        "green",
        "yellow",
        "white",
    ]
    assert out[1].endswith("(hue wrap)")


def test_flags_override_config(tmp_path):
    args = build_arg_parser().parse_args(
        [
            "--config",
            "common.config",
            "--threshold",
            "12.5",
            "--quiet-period",
            "2",
            "--fps",
            "10",
            "--duration",
            "3",
            "--out-dir",
            str(tmp_path),
            "--include-trigger-frame",
        ]
    )
    motion_cfg, rec_cfg = build_configs(args)

    assert motion_cfg.motion_threshold_px == 12.5
    assert rec_cfg.quiet_period_s == 2.0
    assert rec_cfg.max_recording_frames == 30
    assert rec_cfg.out_dir == tmp_path
    assert rec_cfg.include_trigger_frame is True


def test_unopenable_source_exits_nonzero(tmp_path):
    rc = main(["--prefer", "device", "--device", str(tmp_path / "nope.avi")])
    assert rc == 1


@pytest.mark.skipif(sys.platform == "win32", reason="POSIX signals")
@pytest.mark.parametrize("signum", [signal.SIGINT, signal.SIGTERM])
def test_signal_at_prompt_exits_zero(tmp_path, signum):
    proc = subprocess.Popen(
        [
            sys.executable,
            "-m",
            "tools.run_motion_pipeline",
            "--prefer",
            "null",
            "--out-dir",
            str(tmp_path),
        ],
        stdin=subprocess.PIPE,
        stdout=subprocess.PIPE,
        stderr=subprocess.DEVNULL,
        text=True,
        cwd=ROOT,
    )
    try:
        # Handlers are installed before the prompt is written.
        assert proc.stdout.read(len(PROMPT)) == PROMPT
        proc.send_signal(signum)
        assert proc.wait(timeout=10) == 0
    finally:
        if proc.poll() is None:
            proc.kill()
            proc.wait()
        proc.stdin.close()
        proc.stdout.close()
    assert list(tmp_path.iterdir()) == []


class _OneShotTrigger:
    def __init__(self, **_kwargs) -> None:
        self.fired = False

    def wait_for_begin(self) -> bool:
        if self.fired:
            return False
        self.fired = True
        return True


class _CancelAfterPolls(EventCancel):
    """Baseline, trigger and two written frames, then cancel."""

    def __init__(self) -> None:
        super().__init__()
        self.polls = 4

    def install_signal_handlers(self, signals=()) -> None:
        pass

    def cancel_requested(self) -> bool:
        self.polls -= 1
        return self.polls < 0


class _NoSignalCancel(EventCancel):
    def install_signal_handlers(self, signals=()) -> None:
        pass


def _blue_at(x: int):
    return with_blob(blank(), (x, 50), BLUE_BGR)


@pytest.fixture
def wired(monkeypatch):
    """Run ``main`` against in-memory frames and sink, one cycle, no real signals."""

    def _wire(images, sink=None, cancel_cls=_NoSignalCancel):
        sink = sink or FakeSink()
        source = ReplayTransport(images)
        monkeypatch.setattr(cli.ReaderFactory, "from_config", lambda _cfg: source)
        monkeypatch.setattr(cli, "VideoClipWriter", lambda: sink)
        monkeypatch.setattr(cli, "StdinTrigger", _OneShotTrigger)
        monkeypatch.setattr(cli, "EventCancel", cancel_cls)
        return sink

    return _wire


_ARGS = ["--config", "common.config", "--quiet-period", "0"]


def test_disconnect_before_motion_exits_one(wired):
    sink = wired([blank()] * 3)

    assert main(_ARGS) == 1
    assert sink.opened == []


def test_disconnect_mid_recording_exits_one_with_clip_closed(wired):
    sink = wired([_blue_at(50), _blue_at(120), blank()])

    assert main(_ARGS) == 1
    assert sink.clips == [[0]]
    assert not sink.is_open()


def test_cancel_mid_recording_exits_zero_with_clip_closed(wired):
    sink = wired([_blue_at(50), _blue_at(120)] + [blank()] * 10, cancel_cls=_CancelAfterPolls)

    assert main(_ARGS) == 0
    assert len(sink.clips) == 1
    assert len(sink.clips[0]) == 2
    assert not sink.is_open()


def test_writer_open_failure_exits_one(wired):
    sink = wired([_blue_at(50), _blue_at(120), blank()], sink=FakeSink(fail_open=True))

    assert main(_ARGS) == 1
    assert not sink.is_open()
