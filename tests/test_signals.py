from __future__ import annotations

import io
import signal

import pytest

from common.signals import AnyCancel, EventCancel, KeyCancel, StdinTrigger


def test_stdin_trigger_waits_for_enter_and_stops_at_eof():
    out = io.StringIO()
    trig = StdinTrigger(prompt="go? ", stream=io.StringIO("\n\n"), out=out)

    assert trig.wait_for_begin() is True
    assert trig.wait_for_begin() is True
    assert trig.wait_for_begin() is False
    assert out.getvalue() == "go? go? go? "


def test_event_cancel():
    c = EventCancel()
    assert not c.cancel_requested()
    c.cancel()
    assert c.cancel_requested()


def test_event_cancel_signal_handler_sets_flag():
    c = EventCancel()
    previous = signal.getsignal(signal.SIGINT)
    try:
        c.install_signal_handlers((signal.SIGINT,))
        signal.getsignal(signal.SIGINT)(signal.SIGINT, None)
    finally:
        signal.signal(signal.SIGINT, previous)
    assert c.cancel_requested()


def test_key_cancel_only_on_escape():
    keys = iter([-1, ord("q"), 27])
    kc = KeyCancel(wait_key=lambda _delay: next(keys))

    assert [kc.cancel_requested() for _ in range(3)] == [False, False, True]


def test_any_cancel():
    a, b = EventCancel(), EventCancel()
    both = AnyCancel(a, b)
    assert not both.cancel_requested()
    b.cancel()
    assert both.cancel_requested()


class _SignalledStream:
    """``readline`` stands in for a blocking read interrupted by a signal."""

    def __init__(self, cancel: EventCancel, signum: int) -> None:
        self._cancel = cancel
        self._signum = signum

    def readline(self) -> str:
        self._cancel._on_signal(self._signum, None)
        return "\n"


def test_stdin_trigger_returns_false_when_signalled_at_prompt():
    cancel = EventCancel()
    stream = _SignalledStream(cancel, signal.SIGTERM)
    trig = StdinTrigger(prompt="go? ", stream=stream, out=io.StringIO(), cancel=cancel)

    assert trig.wait_for_begin() is False
    assert cancel.cancel_requested()


def test_stdin_trigger_skips_prompt_once_cancelled():
    cancel = EventCancel()
    cancel.cancel()
    out = io.StringIO()
    trig = StdinTrigger(prompt="go? ", stream=io.StringIO("\n"), out=out, cancel=cancel)

    assert trig.wait_for_begin() is False
    assert out.getvalue() == ""


def test_signal_outside_wait_only_sets_flag():
    c = EventCancel()
    c._on_signal(signal.SIGINT, None)
    assert c.cancel_requested()


def test_keyboard_interrupt_without_cancel_propagates():
    class _Interrupted:
        def readline(self) -> str:
            raise KeyboardInterrupt

    trig = StdinTrigger(stream=_Interrupted(), out=io.StringIO(), cancel=EventCancel())
    with pytest.raises(KeyboardInterrupt):
        trig.wait_for_begin()
