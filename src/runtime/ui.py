from __future__ import annotations

from typing import Any, Optional, Protocol

from contracts.ui_protocol import (
    EVENT_ERROR,
    EVENT_NOTIFICATION,
    EVENT_PREPARATION,
    EVENT_TIMER,
    STATE_ERROR,
)
from pomodoro import FlowSnapshot, TimerSnapshot

from .messages import Notification, flow_status_message


class UIServerLike(Protocol):
    def publish(self, event_type: str, **payload: Any) -> None:
        ...

    def publish_state(
        self,
        state: str,
        *,
        message: Optional[str] = None,
        **payload: Any,
    ) -> None:
        ...


def timer_payload(snapshot: TimerSnapshot) -> dict[str, Any]:
    return {
        "phase": snapshot.phase,
        "label": snapshot.label,
        "session_type": snapshot.session_type,
        "duration_seconds": snapshot.duration_seconds,
        "remaining_seconds": snapshot.remaining_seconds,
        "progress": snapshot.progress,
        "started_at": snapshot.started_at,
        "finish_at": snapshot.finish_at,
    }


def flow_payload(snapshot: FlowSnapshot) -> dict[str, Any]:
    return {
        "phase": snapshot.phase,
        "awaiting_outcome": snapshot.awaiting_outcome,
        "session_active": snapshot.session_active,
        "setup": snapshot.setup.to_dict() if snapshot.setup else None,
        "timer": timer_payload(snapshot.timer),
    }


class RuntimeUIPublisher:
    """Publishes flow, preparation, and notification events when a UI server is attached."""

    def __init__(self, ui_server: Optional[UIServerLike]):
        self._ui_server = ui_server

    def publish(self, event_type: str, **payload: Any) -> None:
        if self._ui_server:
            self._ui_server.publish(event_type, **payload)

    def publish_state(
        self,
        state: str,
        *,
        message: Optional[str] = None,
        **payload: Any,
    ) -> None:
        if self._ui_server:
            self._ui_server.publish_state(state, message=message, **payload)

    def publish_flow_state(self, snapshot: FlowSnapshot) -> None:
        self.publish_state(
            snapshot.phase,
            message=flow_status_message(snapshot),
            awaiting_outcome=snapshot.awaiting_outcome,
            session_active=snapshot.session_active,
        )

    def publish_timer_update(
        self,
        snapshot: FlowSnapshot,
        *,
        action: str,
        accepted: Optional[bool] = None,
        reason: str = "",
    ) -> None:
        payload: dict[str, Any] = {"action": action, **flow_payload(snapshot)}
        if accepted is not None:
            payload["accepted"] = accepted
        if reason:
            payload["reason"] = reason
        self.publish(EVENT_TIMER, **payload)

    def publish_preparation_update(
        self,
        snapshot: TimerSnapshot,
        *,
        action: str,
        accepted: Optional[bool] = None,
        reason: str = "",
    ) -> None:
        payload: dict[str, Any] = {"action": action, **timer_payload(snapshot)}
        if accepted is not None:
            payload["accepted"] = accepted
        if reason:
            payload["reason"] = reason
        self.publish(EVENT_PREPARATION, **payload)

    def publish_notification(self, notification: Notification) -> None:
        self.publish(EVENT_NOTIFICATION, **notification.to_dict())

    def publish_error(self, message: str) -> None:
        self.publish(EVENT_ERROR, state=STATE_ERROR, message=message)
