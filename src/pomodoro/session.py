"""Focus/break flow controller layered over a single countdown timer."""

from __future__ import annotations

import logging
import math
import threading
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Literal, Mapping, Optional

from .constants import (
    ACTION_ABORT,
    ACTION_CONTINUE,
    ACTION_FINISH_EARLY,
    ACTION_NAVIGATE,
    ACTION_PAUSE,
    ACTION_RESOLVE_FOCUS,
    ACTION_SKIP_BREAK,
    ACTION_START,
    ACTION_START_BREAK,
    ACTION_START_FOCUS,
    ACTION_STOP,
    ACTION_TOGGLE,
    DEFAULT_BREAK_MINUTES,
    DEFAULT_FOCUS_MINUTES,
    EVENT_BREAK_COMPLETE,
    EVENT_FOCUS_COMPLETE,
    FLOW_BREAK,
    FLOW_FOCUS,
    FLOW_PLANNING,
    FLOW_SETUP,
    MAX_BREAK_MINUTES,
    MAX_FOCUS_MINUTES,
    MIN_BREAK_MINUTES,
    MIN_FOCUS_MINUTES,
    NAVIGABLE_PHASES,
    PHASE_COMPLETED,
    REASON_AWAITING_OUTCOME,
    REASON_BREAK_SKIPPED,
    REASON_BREAK_STARTED,
    REASON_FINISHED_EARLY,
    REASON_INVALID_PHASE,
    REASON_NAVIGATED,
    REASON_NO_BREAK_SESSION,
    REASON_NO_FOCUS_SESSION,
    REASON_NO_SETUP,
    REASON_NOT_ACTIVE,
    REASON_NOT_AWAITING_OUTCOME,
    REASON_RECORDED,
    REASON_SESSION_ACTIVE,
    REASON_STARTED,
    REASON_STOPPED,
    SESSION_BREAK,
    SESSION_FOCUS,
)
from .service import CountdownTimer, TimerSnapshot

FlowPhase = Literal["planning", "setup", "focus", "break", "history"]

_FLOW_PHASES: frozenset[str] = NAVIGABLE_PHASES | {FLOW_FOCUS, FLOW_BREAK}


class SessionSetupError(ValueError):
    """Raised when a focus session setup is invalid."""


@dataclass(frozen=True)
class SessionSetup:
    """Task selection and durations chosen before a focus session."""
    task_id: str
    task_name: str = ""
    focus_minutes: int = DEFAULT_FOCUS_MINUTES
    break_minutes: int = DEFAULT_BREAK_MINUTES

    def __post_init__(self) -> None:
        if not str(self.task_id).strip():
            raise SessionSetupError("Please select a task")
        if not MIN_FOCUS_MINUTES <= self.focus_minutes <= MAX_FOCUS_MINUTES:
            raise SessionSetupError(
                f"focus_minutes must be in [{MIN_FOCUS_MINUTES}, {MAX_FOCUS_MINUTES}], "
                f"got: {self.focus_minutes}"
            )
        if not MIN_BREAK_MINUTES <= self.break_minutes <= MAX_BREAK_MINUTES:
            raise SessionSetupError(
                f"break_minutes must be in [{MIN_BREAK_MINUTES}, {MAX_BREAK_MINUTES}], "
                f"got: {self.break_minutes}"
            )

    def to_dict(self) -> dict[str, Any]:
        return {
            "task_id": self.task_id,
            "task_name": self.task_name,
            "focus_minutes": self.focus_minutes,
            "break_minutes": self.break_minutes,
        }


@dataclass(frozen=True)
class SessionRecordDraft:
    """A finished focus session waiting to be persisted."""
    task_id: str
    task_name: str
    started_at: datetime
    ended_at: datetime
    planned_minutes: int
    actual_minutes: int
    finished_early: bool
    break_minutes: int
    completed: bool


@dataclass(frozen=True)
class FlowSnapshot:
    """Immutable view of the flow phase, setup, and countdown."""
    phase: FlowPhase
    setup: Optional[SessionSetup]
    timer: TimerSnapshot
    awaiting_outcome: bool = False

    @property
    def session_active(self) -> bool:
        return self.awaiting_outcome or (
            self.phase in (FLOW_FOCUS, FLOW_BREAK) and self.timer.is_active
        )


@dataclass(frozen=True)
class FlowResult:
    """Result envelope returned after applying a flow action."""
    action: str
    accepted: bool
    reason: str
    snapshot: FlowSnapshot
    record: Optional[SessionRecordDraft] = None


@dataclass(frozen=True)
class FlowTick:
    """Tick payload emitted by :meth:`SessionController.poll`."""
    snapshot: FlowSnapshot
    completed: bool = False
    event: Optional[str] = None


class SessionController:
    """Drives the planning -> setup -> focus -> break cycle.

    All timestamps come from the wrapped timer's clock, so the controller
    and countdown always agree on "now".
    """

    def __init__(
        self,
        timer: Optional[CountdownTimer] = None,
        *,
        logger: Optional[logging.Logger] = None,
    ):
        self._timer = timer or CountdownTimer()
        self._clock = self._timer.clock
        self._logger = logger or logging.getLogger("pomodoro.session")
        self._lock = threading.RLock()

        self._phase: FlowPhase = FLOW_PLANNING
        self._setup: Optional[SessionSetup] = None
        self._focus_started_at: Optional[float] = None
        self._awaiting_outcome = False

    def snapshot(self) -> FlowSnapshot:
        with self._lock:
            return self._snapshot_locked()

    def navigate(self, phase: str) -> FlowResult:
        with self._lock:
            if phase not in NAVIGABLE_PHASES:
                return self._result_locked(ACTION_NAVIGATE, False, REASON_INVALID_PHASE)
            if self._session_active_locked():
                return self._result_locked(ACTION_NAVIGATE, False, REASON_SESSION_ACTIVE)

            self._phase = phase  # type: ignore[assignment]
            self._logger.info("Flow navigated: phase=%s", phase)
            return self._result_locked(ACTION_NAVIGATE, True, REASON_NAVIGATED)

    def start_focus(self, setup: SessionSetup) -> FlowResult:
        with self._lock:
            if self._session_active_locked():
                return self._result_locked(ACTION_START_FOCUS, False, REASON_SESSION_ACTIVE)

            self._setup = setup
            result = self._timer.apply(
                ACTION_START,
                label=setup.task_name or setup.task_id,
                duration_seconds=setup.focus_minutes * 60,
                session_type=SESSION_FOCUS,
            )
            self._focus_started_at = self._epoch(result.snapshot.started_at)
            self._awaiting_outcome = False
            self._phase = FLOW_FOCUS
            self._logger.info(
                "Focus started: task=%s focus=%smin break=%smin",
                setup.task_id,
                setup.focus_minutes,
                setup.break_minutes,
            )
            return self._result_locked(ACTION_START_FOCUS, True, REASON_STARTED)

    def pause(self) -> FlowResult:
        return self._apply_timer_action(ACTION_PAUSE)

    def resume(self) -> FlowResult:
        return self._apply_timer_action(ACTION_CONTINUE)

    def toggle_pause(self) -> FlowResult:
        with self._lock:
            if self._timer.snapshot().is_paused:
                return self._apply_timer_action(ACTION_CONTINUE, action_name=ACTION_TOGGLE)
            return self._apply_timer_action(ACTION_PAUSE, action_name=ACTION_TOGGLE)

    def finish_early(self) -> FlowResult:
        with self._lock:
            if self._awaiting_outcome:
                return self._result_locked(ACTION_FINISH_EARLY, False, REASON_AWAITING_OUTCOME)
            if self._phase != FLOW_FOCUS or not self._timer.snapshot().is_active:
                return self._result_locked(ACTION_FINISH_EARLY, False, REASON_NO_FOCUS_SESSION)
            setup = self._setup
            if setup is None:
                return self._result_locked(ACTION_FINISH_EARLY, False, REASON_NO_SETUP)

            now = self._clock()
            started = self._focus_started_at if self._focus_started_at is not None else now
            actual_minutes = int(math.ceil(max(0.0, now - started) / 60.0))
            record = self._draft_locked(
                setup,
                ended_at=now,
                actual_minutes=actual_minutes,
                finished_early=True,
                completed=True,
            )
            self._timer.apply(ACTION_ABORT)
            self._start_break_locked(setup.break_minutes)
            self._logger.info(
                "Focus finished early: task=%s actual=%smin",
                setup.task_id,
                actual_minutes,
            )
            return self._result_locked(
                ACTION_FINISH_EARLY,
                True,
                REASON_FINISHED_EARLY,
                record=record,
            )

    def resolve_focus(self, completed: bool) -> FlowResult:
        """Record the outcome of a focus session whose countdown ran out."""
        with self._lock:
            if not self._awaiting_outcome:
                return self._result_locked(
                    ACTION_RESOLVE_FOCUS,
                    False,
                    REASON_NOT_AWAITING_OUTCOME,
                )
            setup = self._setup
            if setup is None:
                return self._result_locked(ACTION_RESOLVE_FOCUS, False, REASON_NO_SETUP)

            record = self._draft_locked(
                setup,
                ended_at=self._clock(),
                actual_minutes=setup.focus_minutes,
                finished_early=False,
                completed=bool(completed),
            )
            self._awaiting_outcome = False
            self._start_break_locked(setup.break_minutes)
            self._logger.info(
                "Focus resolved: task=%s completed=%s",
                setup.task_id,
                bool(completed),
            )
            return self._result_locked(
                ACTION_RESOLVE_FOCUS,
                True,
                REASON_RECORDED,
                record=record,
            )

    def start_break(self, minutes: Optional[int] = None) -> FlowResult:
        with self._lock:
            if self._session_active_locked():
                return self._result_locked(ACTION_START_BREAK, False, REASON_SESSION_ACTIVE)

            if minutes is None:
                minutes = self._setup.break_minutes if self._setup else DEFAULT_BREAK_MINUTES
            if not MIN_BREAK_MINUTES <= int(minutes) <= MAX_BREAK_MINUTES:
                raise SessionSetupError(
                    f"break_minutes must be in [{MIN_BREAK_MINUTES}, {MAX_BREAK_MINUTES}], "
                    f"got: {minutes}"
                )
            self._start_break_locked(int(minutes))
            return self._result_locked(ACTION_START_BREAK, True, REASON_BREAK_STARTED)

    def skip_break(self) -> FlowResult:
        with self._lock:
            if self._phase != FLOW_BREAK or not self._timer.snapshot().is_active:
                return self._result_locked(ACTION_SKIP_BREAK, False, REASON_NO_BREAK_SESSION)

            self._timer.apply(ACTION_ABORT)
            self._phase = FLOW_SETUP
            self._logger.info("Break skipped")
            return self._result_locked(ACTION_SKIP_BREAK, True, REASON_BREAK_SKIPPED)

    def stop(self) -> FlowResult:
        """Abandon the current focus or break without recording it."""
        with self._lock:
            if not self._session_active_locked():
                return self._result_locked(ACTION_STOP, False, REASON_NOT_ACTIVE)

            if self._timer.snapshot().is_active:
                self._timer.apply(ACTION_ABORT)
            self._awaiting_outcome = False
            self._focus_started_at = None
            self._phase = FLOW_SETUP
            self._logger.info("Session stopped without record")
            return self._result_locked(ACTION_STOP, True, REASON_STOPPED)

    def poll(self) -> Optional[FlowTick]:
        with self._lock:
            tick = self._timer.poll()
            if tick is None:
                return None
            if not tick.completed:
                return FlowTick(snapshot=self._snapshot_locked())

            if self._phase == FLOW_FOCUS:
                self._awaiting_outcome = True
                self._logger.info("Focus countdown finished, awaiting outcome")
                return FlowTick(
                    snapshot=self._snapshot_locked(),
                    completed=True,
                    event=EVENT_FOCUS_COMPLETE,
                )

            if self._phase == FLOW_BREAK:
                self._phase = FLOW_SETUP
                self._logger.info("Break finished, back to setup")
                return FlowTick(
                    snapshot=self._snapshot_locked(),
                    completed=True,
                    event=EVENT_BREAK_COMPLETE,
                )

            return FlowTick(snapshot=self._snapshot_locked(), completed=True)

    def export_state(self) -> dict[str, Any]:
        with self._lock:
            return {
                "phase": self._phase,
                "setup": self._setup.to_dict() if self._setup else None,
                "focus_started_at": self._focus_started_at,
                "awaiting_outcome": self._awaiting_outcome,
                "timer": self._timer.export_state(),
            }

    def restore_state(self, state: Mapping[str, Any]) -> None:
        phase = state.get("phase", FLOW_PLANNING)
        if phase not in _FLOW_PHASES:
            raise ValueError(f"Unknown flow phase in saved state: {phase!r}")
        raw_setup = state.get("setup")
        setup = SessionSetup(**raw_setup) if isinstance(raw_setup, Mapping) else None
        raw_timer = state.get("timer")

        with self._lock:
            if isinstance(raw_timer, Mapping):
                self._timer.restore_state(raw_timer)
            self._phase = phase
            self._setup = setup
            started = state.get("focus_started_at")
            self._focus_started_at = float(started) if started is not None else None
            self._awaiting_outcome = bool(state.get("awaiting_outcome", False))
            self._logger.info(
                "Flow restored: phase=%s awaiting_outcome=%s",
                self._phase,
                self._awaiting_outcome,
            )

    def _apply_timer_action(self, timer_action: str, *, action_name: str = "") -> FlowResult:
        name = action_name or timer_action
        with self._lock:
            if self._phase not in (FLOW_FOCUS, FLOW_BREAK) or self._awaiting_outcome:
                return self._result_locked(name, False, REASON_NOT_ACTIVE)
            result = self._timer.apply(timer_action)  # type: ignore[arg-type]
            return self._result_locked(name, result.accepted, result.reason)

    def _start_break_locked(self, minutes: int) -> None:
        self._timer.apply(
            ACTION_START,
            label="Break",
            duration_seconds=minutes * 60,
            session_type=SESSION_BREAK,
        )
        self._focus_started_at = None
        self._phase = FLOW_BREAK
        self._logger.info("Break started: %smin", minutes)

    def _session_active_locked(self) -> bool:
        if self._awaiting_outcome:
            return True
        if self._phase not in (FLOW_FOCUS, FLOW_BREAK):
            return False
        timer = self._timer.snapshot()
        if timer.is_active:
            return True
        # A focus countdown that completed but has not been polled yet.
        return self._phase == FLOW_FOCUS and timer.phase == PHASE_COMPLETED

    def _draft_locked(
        self,
        setup: SessionSetup,
        *,
        ended_at: float,
        actual_minutes: int,
        finished_early: bool,
        completed: bool,
    ) -> SessionRecordDraft:
        started = self._focus_started_at if self._focus_started_at is not None else ended_at
        return SessionRecordDraft(
            task_id=setup.task_id,
            task_name=setup.task_name or "Unknown Task",
            started_at=datetime.fromtimestamp(started, tz=timezone.utc),
            ended_at=datetime.fromtimestamp(ended_at, tz=timezone.utc),
            planned_minutes=setup.focus_minutes,
            actual_minutes=actual_minutes,
            finished_early=finished_early,
            break_minutes=setup.break_minutes,
            completed=completed,
        )

    def _result_locked(
        self,
        action: str,
        accepted: bool,
        reason: str,
        *,
        record: Optional[SessionRecordDraft] = None,
    ) -> FlowResult:
        return FlowResult(
            action=action,
            accepted=accepted,
            reason=reason,
            snapshot=self._snapshot_locked(),
            record=record,
        )

    def _snapshot_locked(self) -> FlowSnapshot:
        return FlowSnapshot(
            phase=self._phase,
            setup=self._setup,
            timer=self._timer.snapshot(),
            awaiting_outcome=self._awaiting_outcome,
        )

    @staticmethod
    def _epoch(value: Optional[datetime]) -> Optional[float]:
        return value.timestamp() if value is not None else None
