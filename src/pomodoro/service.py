"""Thread-safe countdown timer driven by absolute wall-clock finish timestamps."""

from __future__ import annotations

import logging
import math
import threading
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Callable, Literal, Mapping, Optional

from .constants import (
    ACTION_ABORT,
    ACTION_CONTINUE,
    ACTION_PAUSE,
    ACTION_RESET,
    ACTION_START,
    ACTIVE_PHASES,
    DEFAULT_FOCUS_MINUTES,
    DEFAULT_TIMER_LABEL,
    PHASE_ABORTED,
    PHASE_COMPLETED,
    PHASE_IDLE,
    PHASE_PAUSED,
    PHASE_RUNNING,
    REASON_ABORTED,
    REASON_CONTINUED,
    REASON_INVALID_DURATION,
    REASON_INVALID_STATE,
    REASON_NOT_ACTIVE,
    REASON_NOT_PAUSED,
    REASON_NOT_RUNNING,
    REASON_PAUSED,
    REASON_RESET,
    REASON_STARTED,
    REASON_UNSUPPORTED_ACTION,
    SESSION_BREAK,
    SESSION_FOCUS,
    SESSION_PREPARATION,
)

TimerPhase = Literal["idle", "running", "paused", "completed", "aborted"]
TimerAction = Literal["start", "pause", "continue", "abort", "reset"]
SessionType = Literal["focus", "break", "preparation"]

_TIMER_PHASES: frozenset[str] = frozenset(
    {PHASE_IDLE, PHASE_RUNNING, PHASE_PAUSED, PHASE_COMPLETED, PHASE_ABORTED}
)
_SESSION_TYPES: frozenset[str] = frozenset({SESSION_FOCUS, SESSION_BREAK, SESSION_PREPARATION})


@dataclass(frozen=True)
class TimerSnapshot:
    """Immutable countdown snapshot exposed to the controller and UI publishers."""
    phase: TimerPhase
    label: Optional[str]
    session_type: SessionType
    duration_seconds: int
    remaining_seconds: int
    started_at: Optional[datetime] = None
    finish_at: Optional[datetime] = None

    @property
    def is_active(self) -> bool:
        return self.phase in ACTIVE_PHASES

    @property
    def is_running(self) -> bool:
        return self.phase == PHASE_RUNNING

    @property
    def is_paused(self) -> bool:
        return self.phase == PHASE_PAUSED

    @property
    def progress(self) -> float:
        if self.duration_seconds <= 0:
            return 0.0
        elapsed = self.duration_seconds - self.remaining_seconds
        return round(100.0 * elapsed / self.duration_seconds, 2)


@dataclass(frozen=True)
class TimerActionResult:
    """Result envelope returned after applying a countdown action."""
    action: TimerAction
    accepted: bool
    reason: str
    snapshot: TimerSnapshot


@dataclass(frozen=True)
class TimerTick:
    """Tick payload emitted while the countdown is running."""
    snapshot: TimerSnapshot
    completed: bool = False


class CountdownTimer:
    """In-memory countdown state machine.

    The running countdown is anchored to an absolute ``finish_at`` epoch
    value; remaining time is always derived from ``clock()`` against it.
    Pausing freezes the exact remaining seconds and drops the anchor, and
    continuing re-anchors it relative to the resume instant.
    """

    def __init__(
        self,
        *,
        duration_seconds: int = DEFAULT_FOCUS_MINUTES * 60,
        session_type: SessionType = SESSION_FOCUS,
        label: Optional[str] = None,
        clock: Optional[Callable[[], float]] = None,
        logger: Optional[logging.Logger] = None,
    ):
        if duration_seconds <= 0:
            raise ValueError("duration_seconds must be greater than zero")

        self._duration_seconds = int(duration_seconds)
        self._session_type: SessionType = session_type
        self._clock = clock or time.time
        self._logger = logger or logging.getLogger("pomodoro")
        self._lock = threading.Lock()

        self._phase: TimerPhase = PHASE_IDLE
        self._label: Optional[str] = _sanitize_label(label) if label else None
        self._started_at: Optional[float] = None
        self._finish_at: Optional[float] = None
        self._paused_remaining: Optional[float] = None
        self._terminal_remaining_seconds: int = self._duration_seconds
        self._last_emitted_remaining: Optional[int] = None

    @property
    def clock(self) -> Callable[[], float]:
        return self._clock

    def snapshot(self) -> TimerSnapshot:
        with self._lock:
            return self._snapshot_locked(self._clock())

    def apply(
        self,
        action: TimerAction,
        *,
        label: Optional[str] = None,
        duration_seconds: Optional[int] = None,
        session_type: Optional[SessionType] = None,
    ) -> TimerActionResult:
        with self._lock:
            now = self._clock()
            if action in (ACTION_START, ACTION_RESET) and duration_seconds is not None:
                if int(duration_seconds) <= 0:
                    return self._result_locked(action, False, REASON_INVALID_DURATION, now)

            if action == ACTION_START:
                self._start_locked(
                    now,
                    label=label,
                    duration_seconds=duration_seconds,
                    session_type=session_type,
                )
                return self._result_locked(action, True, REASON_STARTED, now)

            if action == ACTION_RESET:
                self._start_locked(
                    now,
                    label=label or self._label,
                    duration_seconds=duration_seconds,
                    session_type=session_type,
                )
                return self._result_locked(action, True, REASON_RESET, now)

            if action == ACTION_PAUSE:
                if self._phase != PHASE_RUNNING:
                    return self._result_locked(action, False, REASON_NOT_RUNNING, now)

                self._paused_remaining = self._exact_remaining_locked(now)
                self._finish_at = None
                self._phase = PHASE_PAUSED
                self._terminal_remaining_seconds = self._current_remaining_locked(now)
                self._last_emitted_remaining = self._terminal_remaining_seconds
                self._logger.info(
                    "Countdown paused: type=%s label=%s remaining=%ss",
                    self._session_type,
                    self._label,
                    self._terminal_remaining_seconds,
                )
                return self._result_locked(action, True, REASON_PAUSED, now)

            if action == ACTION_CONTINUE:
                if self._phase != PHASE_PAUSED:
                    return self._result_locked(action, False, REASON_NOT_PAUSED, now)

                paused_remaining = self._paused_remaining
                if paused_remaining is None:
                    return self._result_locked(action, False, REASON_INVALID_STATE, now)

                self._finish_at = now + paused_remaining
                self._paused_remaining = None
                self._phase = PHASE_RUNNING
                self._last_emitted_remaining = None
                self._logger.info(
                    "Countdown continued: type=%s label=%s",
                    self._session_type,
                    self._label,
                )
                return self._result_locked(action, True, REASON_CONTINUED, now)

            if action == ACTION_ABORT:
                if self._phase not in ACTIVE_PHASES:
                    return self._result_locked(action, False, REASON_NOT_ACTIVE, now)

                self._terminal_remaining_seconds = self._current_remaining_locked(now)
                self._finish_at = None
                self._paused_remaining = None
                self._phase = PHASE_ABORTED
                self._last_emitted_remaining = self._terminal_remaining_seconds
                self._logger.info(
                    "Countdown aborted: type=%s label=%s remaining=%ss",
                    self._session_type,
                    self._label,
                    self._terminal_remaining_seconds,
                )
                return self._result_locked(action, True, REASON_ABORTED, now)

            return self._result_locked(action, False, REASON_UNSUPPORTED_ACTION, now)

    def poll(self) -> Optional[TimerTick]:
        """Return tick updates while running (max once per second + completion)."""
        with self._lock:
            if self._phase != PHASE_RUNNING:
                return None

            now = self._clock()
            remaining = self._current_remaining_locked(now)
            if remaining <= 0:
                self._phase = PHASE_COMPLETED
                self._finish_at = None
                self._terminal_remaining_seconds = 0
                self._last_emitted_remaining = 0
                self._logger.info(
                    "Countdown completed: type=%s label=%s",
                    self._session_type,
                    self._label,
                )
                return TimerTick(snapshot=self._snapshot_locked(now), completed=True)

            if self._last_emitted_remaining == remaining:
                return None

            self._last_emitted_remaining = remaining
            return TimerTick(snapshot=self._snapshot_locked(now), completed=False)

    def export_state(self) -> dict[str, Any]:
        with self._lock:
            return {
                "phase": self._phase,
                "label": self._label,
                "session_type": self._session_type,
                "duration_seconds": self._duration_seconds,
                "started_at": self._started_at,
                "finish_at": self._finish_at,
                "paused_remaining": self._paused_remaining,
                "terminal_remaining_seconds": self._terminal_remaining_seconds,
            }

    def restore_state(self, state: Mapping[str, Any]) -> None:
        """Load a blob produced by :meth:`export_state`.

        A running countdown keeps its absolute finish timestamp, so time
        spent while the process was down still counts against it.
        """
        phase = state.get("phase", PHASE_IDLE)
        if phase not in _TIMER_PHASES:
            raise ValueError(f"Unknown timer phase in saved state: {phase!r}")
        duration = int(state.get("duration_seconds") or self._duration_seconds)
        if duration <= 0:
            raise ValueError("Saved duration_seconds must be greater than zero")
        if phase == PHASE_RUNNING and state.get("finish_at") is None:
            raise ValueError("Saved running timer has no finish_at")
        if phase == PHASE_PAUSED and state.get("paused_remaining") is None:
            raise ValueError("Saved paused timer has no paused_remaining")
        session_type = state.get("session_type") or self._session_type
        if session_type not in _SESSION_TYPES:
            raise ValueError(f"Unknown session type in saved state: {session_type!r}")
        label = state.get("label")
        if label is not None and not isinstance(label, str):
            raise ValueError("Saved label must be a string")

        with self._lock:
            self._phase = phase
            self._label = _sanitize_label(label) if label else None
            self._session_type = session_type
            self._duration_seconds = duration
            self._started_at = _optional_float(state.get("started_at"))
            self._finish_at = _optional_float(state.get("finish_at"))
            self._paused_remaining = _optional_float(state.get("paused_remaining"))
            self._terminal_remaining_seconds = int(
                state.get("terminal_remaining_seconds", duration)
            )
            self._last_emitted_remaining = None
            self._logger.info(
                "Countdown restored: type=%s phase=%s label=%s",
                self._session_type,
                self._phase,
                self._label,
            )

    def _start_locked(
        self,
        now: float,
        *,
        label: Optional[str],
        duration_seconds: Optional[int] = None,
        session_type: Optional[SessionType] = None,
    ) -> None:
        if duration_seconds is not None:
            self._duration_seconds = int(duration_seconds)
        if session_type is not None:
            self._session_type = session_type

        self._label = _sanitize_label(label or self._label or DEFAULT_TIMER_LABEL)
        self._phase = PHASE_RUNNING
        self._started_at = now
        self._finish_at = now + self._duration_seconds
        self._paused_remaining = None
        self._terminal_remaining_seconds = self._duration_seconds
        self._last_emitted_remaining = None
        self._logger.info(
            "Countdown started: type=%s label=%s duration=%ss",
            self._session_type,
            self._label,
            self._duration_seconds,
        )

    def _result_locked(
        self,
        action: TimerAction,
        accepted: bool,
        reason: str,
        now: float,
    ) -> TimerActionResult:
        return TimerActionResult(
            action=action,
            accepted=accepted,
            reason=reason,
            snapshot=self._snapshot_locked(now),
        )

    def _snapshot_locked(self, now: float) -> TimerSnapshot:
        return TimerSnapshot(
            phase=self._phase,
            label=self._label,
            session_type=self._session_type,
            duration_seconds=self._duration_seconds,
            remaining_seconds=self._current_remaining_locked(now),
            started_at=_to_datetime(self._started_at),
            finish_at=_to_datetime(self._finish_at),
        )

    def _current_remaining_locked(self, now: float) -> int:
        if self._phase == PHASE_IDLE:
            return self._duration_seconds
        if self._phase in ACTIVE_PHASES:
            remaining = int(math.ceil(self._exact_remaining_locked(now)))
            return max(0, min(self._duration_seconds, remaining))
        if self._phase == PHASE_COMPLETED:
            return 0
        return self._terminal_remaining_seconds

    def _exact_remaining_locked(self, now: float) -> float:
        if self._phase == PHASE_PAUSED and self._paused_remaining is not None:
            return max(0.0, self._paused_remaining)
        if self._finish_at is None:
            return float(self._duration_seconds)
        return max(0.0, self._finish_at - now)


def _sanitize_label(name: str) -> str:
    compact = " ".join(name.split())
    compact = compact.strip()[:60]
    return compact or DEFAULT_TIMER_LABEL


def _to_datetime(epoch: Optional[float]) -> Optional[datetime]:
    if epoch is None:
        return None
    return datetime.fromtimestamp(epoch, tz=timezone.utc)


def _optional_float(value: Any) -> Optional[float]:
    if value is None:
        return None
    return float(value)
