"""Ten-minute preparation countdown that runs before a focus session."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Optional

from .constants import (
    ACTION_CONTINUE,
    ACTION_PAUSE,
    ACTION_RESET,
    ACTION_START,
    ACTION_TOGGLE,
    DEFAULT_PREPARATION_SECONDS,
    EVENT_PREPARATION_COMPLETE,
    PHASE_COMPLETED,
    PHASE_PAUSED,
    PHASE_RUNNING,
    REASON_ALREADY_COMPLETED,
    REASON_ALREADY_RUNNING,
    REASON_RESET,
    SESSION_PREPARATION,
)
from .service import CountdownTimer, TimerActionResult, TimerSnapshot


@dataclass(frozen=True)
class PreparationTick:
    snapshot: TimerSnapshot
    completed: bool = False
    event: Optional[str] = None


class PreparationTimer:
    """Start/toggle/reset wrapper around a fixed-length countdown.

    Once the countdown has completed it stays completed until reset.
    """

    def __init__(
        self,
        *,
        duration_seconds: int = DEFAULT_PREPARATION_SECONDS,
        clock: Optional[Callable[[], float]] = None,
        logger: Optional[logging.Logger] = None,
    ):
        self._duration_seconds = int(duration_seconds)
        self._logger = logger or logging.getLogger("pomodoro.preparation")
        self._timer = self._new_timer(clock)

    def snapshot(self) -> TimerSnapshot:
        return self._timer.snapshot()

    def start(self) -> TimerActionResult:
        snapshot = self._timer.snapshot()
        if snapshot.phase == PHASE_COMPLETED:
            return TimerActionResult(
                action=ACTION_START,
                accepted=False,
                reason=REASON_ALREADY_COMPLETED,
                snapshot=snapshot,
            )
        if snapshot.phase == PHASE_RUNNING:
            return TimerActionResult(
                action=ACTION_START,
                accepted=False,
                reason=REASON_ALREADY_RUNNING,
                snapshot=snapshot,
            )
        if snapshot.phase == PHASE_PAUSED:
            return self._timer.apply(ACTION_CONTINUE)
        return self._timer.apply(ACTION_START, duration_seconds=self._duration_seconds)

    def toggle(self) -> TimerActionResult:
        if self._timer.snapshot().phase == PHASE_RUNNING:
            result = self._timer.apply(ACTION_PAUSE)
        else:
            result = self.start()
        return TimerActionResult(
            action=ACTION_TOGGLE,  # type: ignore[arg-type]
            accepted=result.accepted,
            reason=result.reason,
            snapshot=result.snapshot,
        )

    def reset(self) -> TimerActionResult:
        self._timer = self._new_timer(self._timer.clock)
        self._logger.info("Preparation timer reset")
        return TimerActionResult(
            action=ACTION_RESET,
            accepted=True,
            reason=REASON_RESET,
            snapshot=self._timer.snapshot(),
        )

    def poll(self) -> Optional[PreparationTick]:
        tick = self._timer.poll()
        if tick is None:
            return None
        if tick.completed:
            return PreparationTick(
                snapshot=tick.snapshot,
                completed=True,
                event=EVENT_PREPARATION_COMPLETE,
            )
        return PreparationTick(snapshot=tick.snapshot)

    def _new_timer(self, clock: Optional[Callable[[], float]]) -> CountdownTimer:
        return CountdownTimer(
            duration_seconds=self._duration_seconds,
            session_type=SESSION_PREPARATION,
            label="Preparation",
            clock=clock,
            logger=self._logger,
        )
