"""Tick and action handlers that turn timer changes into UI events."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from pomodoro import (
    FlowResult,
    FlowSnapshot,
    FlowTick,
    PreparationTick,
    TimerActionResult,
    TimerSnapshot,
)
from pomodoro.constants import (
    ACTION_COMPLETED,
    ACTION_SYNC,
    ACTION_TICK,
    EVENT_BREAK_COMPLETE,
    EVENT_FOCUS_COMPLETE,
    EVENT_PREPARATION_COMPLETE,
    FLOW_BREAK,
    REASON_BREAK_STARTED,
    REASON_COMPLETED,
    REASON_STARTUP,
    REASON_TICK,
)

from .messages import (
    Notification,
    break_end_notification,
    break_start_notification,
    preparation_complete_notification,
    session_complete_notification,
)
from .ui import RuntimeUIPublisher


@dataclass(frozen=True)
class TickDependencies:
    """Dependencies required for processing flow and preparation events."""
    logger: logging.Logger
    ui: RuntimeUIPublisher


class TickProcessor:
    """Publishes timer updates, completion notifications, and phase state."""
    def __init__(self, dependencies: TickDependencies):
        self._dependencies = dependencies

    def publish_current(self, flow: FlowSnapshot, preparation: TimerSnapshot) -> None:
        """Seed the sticky UI events with the current state."""
        deps = self._dependencies
        deps.ui.publish_timer_update(flow, action=ACTION_SYNC, reason=REASON_STARTUP)
        deps.ui.publish_preparation_update(
            preparation,
            action=ACTION_SYNC,
            reason=REASON_STARTUP,
        )
        deps.ui.publish_flow_state(flow)

    def handle_flow_tick(self, tick: FlowTick) -> None:
        deps = self._dependencies
        if not tick.completed:
            deps.ui.publish_timer_update(
                tick.snapshot,
                action=ACTION_TICK,
                accepted=True,
                reason=REASON_TICK,
            )
            return

        deps.ui.publish_timer_update(
            tick.snapshot,
            action=ACTION_COMPLETED,
            accepted=True,
            reason=REASON_COMPLETED,
        )
        notification = _completion_notification(tick.event, tick.snapshot.timer.duration_seconds)
        if notification is not None:
            deps.logger.info("Notification: %s", notification.title)
            deps.ui.publish_notification(notification)
        deps.ui.publish_flow_state(tick.snapshot)

    def handle_flow_result(self, result: FlowResult) -> None:
        deps = self._dependencies
        deps.ui.publish_timer_update(
            result.snapshot,
            action=result.action,
            accepted=result.accepted,
            reason=result.reason,
        )
        if not result.accepted:
            return
        snapshot = result.snapshot
        if snapshot.phase == FLOW_BREAK and snapshot.timer.is_running and _starts_break(result):
            notification = break_start_notification(snapshot.timer.duration_seconds // 60)
            deps.logger.info("Notification: %s", notification.title)
            deps.ui.publish_notification(notification)
        deps.ui.publish_flow_state(snapshot)

    def handle_preparation_tick(self, tick: PreparationTick) -> None:
        deps = self._dependencies
        if not tick.completed:
            deps.ui.publish_preparation_update(
                tick.snapshot,
                action=ACTION_TICK,
                accepted=True,
                reason=REASON_TICK,
            )
            return

        deps.ui.publish_preparation_update(
            tick.snapshot,
            action=ACTION_COMPLETED,
            accepted=True,
            reason=REASON_COMPLETED,
        )
        notification = _completion_notification(tick.event, tick.snapshot.duration_seconds)
        if notification is not None:
            deps.logger.info("Notification: %s", notification.title)
            deps.ui.publish_notification(notification)

    def handle_preparation_result(self, result: TimerActionResult) -> None:
        self._dependencies.ui.publish_preparation_update(
            result.snapshot,
            action=result.action,
            accepted=result.accepted,
            reason=result.reason,
        )

    def report_error(self, message: str, error: Exception) -> None:
        self._dependencies.logger.error("%s: %s", message, error)
        self._dependencies.ui.publish_error(message)


def _starts_break(result: FlowResult) -> bool:
    return result.record is not None or result.reason == REASON_BREAK_STARTED


def _completion_notification(event: Optional[str], duration_seconds: int) -> Optional[Notification]:
    if event == EVENT_FOCUS_COMPLETE:
        return session_complete_notification()
    if event == EVENT_BREAK_COMPLETE:
        return break_end_notification()
    if event == EVENT_PREPARATION_COMPLETE:
        return preparation_complete_notification(duration_seconds)
    return None
