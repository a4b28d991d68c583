"""Notification and status text builders for the focus/break flow."""

from __future__ import annotations

from dataclasses import dataclass

from pomodoro import FlowSnapshot, TimerSnapshot
from pomodoro.constants import (
    FLOW_BREAK,
    FLOW_FOCUS,
    FLOW_HISTORY,
    FLOW_PLANNING,
    PHASE_COMPLETED,
    PHASE_PAUSED,
    PHASE_RUNNING,
)

KIND_BREAK_START = "break_start"
KIND_BREAK_END = "break_end"
KIND_SESSION_COMPLETE = "session_complete"
KIND_PREPARATION_COMPLETE = "preparation_complete"


@dataclass(frozen=True)
class Notification:
    kind: str
    title: str
    body: str

    def to_dict(self) -> dict[str, str]:
        return {"kind": self.kind, "title": self.title, "body": self.body}


def format_duration(seconds: int) -> str:
    """Format a duration in seconds as `MM:SS`."""
    minutes, remainder = divmod(max(0, int(seconds)), 60)
    return f"{minutes:02d}:{remainder:02d}"


def break_start_notification(break_minutes: int) -> Notification:
    return Notification(
        kind=KIND_BREAK_START,
        title="Break Time!",
        body=f"Time for a {break_minutes}-minute break. You've earned it!",
    )


def break_end_notification() -> Notification:
    return Notification(
        kind=KIND_BREAK_END,
        title="Break Complete!",
        body="Ready to get back to work? Let's start another session.",
    )


def session_complete_notification() -> Notification:
    return Notification(
        kind=KIND_SESSION_COMPLETE,
        title="Session Complete!",
        body="Great work! Have you finished your task?",
    )


def preparation_complete_notification(duration_seconds: int) -> Notification:
    minutes = max(1, int(duration_seconds) // 60)
    return Notification(
        kind=KIND_PREPARATION_COMPLETE,
        title="Preparation Time Complete!",
        body=f"Your {minutes} minutes are up! Start your focus session when ready.",
    )


def timer_status_message(snapshot: TimerSnapshot) -> str:
    label = snapshot.label or snapshot.session_type
    if snapshot.phase == PHASE_RUNNING:
        return f"{label} running ({format_duration(snapshot.remaining_seconds)} remaining)"
    if snapshot.phase == PHASE_PAUSED:
        return f"{label} paused ({format_duration(snapshot.remaining_seconds)} remaining)"
    if snapshot.phase == PHASE_COMPLETED:
        return f"{label} complete"
    return "Ready"


def flow_status_message(snapshot: FlowSnapshot) -> str:
    """Build a one-line status for the state_update event."""
    if snapshot.awaiting_outcome:
        return "Session complete, did you finish your task?"
    if snapshot.phase in (FLOW_FOCUS, FLOW_BREAK) and snapshot.timer.is_active:
        return timer_status_message(snapshot.timer)
    if snapshot.phase == FLOW_PLANNING:
        return "Plan your tasks"
    if snapshot.phase == FLOW_HISTORY:
        return "Session history"
    return "Choose a task and start focusing"
