from __future__ import annotations

import enum
import logging
from typing import Callable, Optional, Protocol

from capture.reader import FrameStream, SourceError
from common.signals import CancelSignal, CycleTrigger
from common.time import now_s

from .recorder import RecordingController, StepResult

_LOG = logging.getLogger(__name__)


class SourceDisconnectedError(SourceError):
    """The frame source returned an empty read in the middle of a cycle."""


class CycleOutcome(enum.Enum):
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class Resettable(Protocol):
    def reset(self) -> None: ...


class CycleRunner:
    """Drive detection/recording cycles from a single thread.

    One cycle runs from a begin signal until a clip has been written, the
    cancel signal fires, or the source disconnects. Each frame is read,
    fully processed and written before the next one is requested.
    """

    def __init__(
        self,
        source: FrameStream,
        evaluator: Resettable,
        controller: RecordingController,
        cancel: CancelSignal,
        clock: Callable[[], float] = now_s,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self._source = source
        self._evaluator = evaluator
        self._controller = controller
        self._cancel = cancel
        self._clock = clock
        self._log = logger or _LOG

    def run_cycle(self) -> CycleOutcome:
        """Run one cycle to completion.

        Any open clip is closed on every exit path.

        Raises
        ------
        SourceDisconnectedError
            If the source stops delivering frames.
        """
        self._evaluator.reset()
        self._controller.reset(self._clock())
        self._log.info("Cycle started; watching for motion.")

        try:
            while True:
                if self._cancel.cancel_requested():
                    self._log.info("Cycle cancelled.")
                    return CycleOutcome.CANCELLED

                frame = self._source.read()
                if frame is None:
                    raise SourceDisconnectedError("camera disconnected")

                if self._controller.step(frame) is StepResult.CLIP_COMPLETE:
                    self._log.info("Cycle complete: %s", self._controller.clip_path)
                    return CycleOutcome.COMPLETED
        finally:
            self._controller.abort()

    def run(self, trigger: CycleTrigger) -> int:
        """Run cycles until the trigger runs dry or a cycle is cancelled.

        Returns the number of completed clips.
        """
        completed = 0
        while trigger.wait_for_begin():
            if self.run_cycle() is CycleOutcome.CANCELLED:
                break
            completed += 1
        return completed
