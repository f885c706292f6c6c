"""Begin/cancel signals that drive detection cycles."""

from __future__ import annotations

import contextlib
import logging
import signal
import sys
import threading
from typing import Callable, Iterator, Optional, Protocol, TextIO

_LOG = logging.getLogger(__name__)

ESC_KEY = 27


class CycleTrigger(Protocol):
    def wait_for_begin(self) -> bool: ...  # False: no more cycles


class CancelSignal(Protocol):
    def cancel_requested(self) -> bool: ...


class StdinTrigger:
    """Block until the operator presses Enter. End of input ends the service.

    With an :class:`EventCancel` attached, a cancel that arrives before or
    during the wait also ends the service instead of leaving the process
    blocked on ``readline``.
    """

    def __init__(
        self,
        prompt: str = "Press Enter to start one detection/recording cycle...",
        stream: Optional[TextIO] = None,
        out: Optional[TextIO] = None,
        cancel: Optional[EventCancel] = None,
    ) -> None:
        self._prompt = prompt
        self._stream = stream
        self._out = out
        self._cancel = cancel

    def wait_for_begin(self) -> bool:
        stream = self._stream or sys.stdin
        out = self._out or sys.stdout
        if self._cancelled():
            return False
        out.write(self._prompt)
        out.flush()
        try:
            with self._interruptible():
                if self._cancelled():
                    return False
                line = stream.readline()
        except KeyboardInterrupt:
            if not self._cancelled():
                raise
            _LOG.info("Cancelled while waiting for input.")
            return False
        if not line:
            _LOG.info("Input closed; no further cycles.")
            return False
        return True

    def _cancelled(self) -> bool:
        return self._cancel is not None and self._cancel.cancel_requested()

    def _interruptible(self):
        if self._cancel is None:
            return contextlib.nullcontext()
        return self._cancel.interrupting()


class EventCancel:
    """Cancel flag backed by a ``threading.Event``.

    ``install_signal_handlers`` makes SIGINT/SIGTERM set the flag instead of
    unwinding the stack, so the current frame finishes and the clip is
    closed cleanly. Inside :meth:`interrupting` the handler also raises
    ``KeyboardInterrupt`` so a blocking wait returns.
    """

    def __init__(self, event: Optional[threading.Event] = None) -> None:
        self._event = event or threading.Event()
        self._interrupting = False

    def cancel(self) -> None:
        self._event.set()

    def cancel_requested(self) -> bool:
        return self._event.is_set()

    @contextlib.contextmanager
    def interrupting(self) -> Iterator[None]:
        self._interrupting = True
        try:
            yield
        finally:
            self._interrupting = False

    def install_signal_handlers(self, signals: tuple[int, ...] = ()) -> None:
        for sig in signals or _default_signals():
            signal.signal(sig, self._on_signal)

    def _on_signal(self, signum, _frame) -> None:
        _LOG.info("Received signal %d, cancelling.", signum)
        self.cancel()
        if self._interrupting:
            raise KeyboardInterrupt


class KeyCancel:
    """Cancel when ESC is pressed in an OpenCV HighGUI window.

    ``cv2.waitKey`` only sees keys while a window has focus; headless setups
    should rely on :class:`EventCancel` instead.
    """

    def __init__(self, wait_key: Optional[Callable[[int], int]] = None) -> None:
        if wait_key is None:
            import cv2

            wait_key = cv2.waitKey
        self._wait_key = wait_key

    def cancel_requested(self) -> bool:
        return (self._wait_key(1) & 0xFF) == ESC_KEY


class AnyCancel:
    """Cancelled as soon as any of the wrapped signals is."""

    def __init__(self, *signals: CancelSignal) -> None:
        self._signals = signals

    def cancel_requested(self) -> bool:
        return any(s.cancel_requested() for s in self._signals)


def _default_signals() -> tuple[int, ...]:
    sigs = [signal.SIGINT]
    if hasattr(signal, "SIGTERM"):
        sigs.append(signal.SIGTERM)
    return tuple(sigs)
