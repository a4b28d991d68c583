"""Web UI websocket event and state constants."""

from __future__ import annotations

# Websocket event types
EVENT_HELLO = "hello"
EVENT_STATE_UPDATE = "state_update"
EVENT_TIMER = "timer"
EVENT_PREPARATION = "preparation"
EVENT_NOTIFICATION = "notification"
EVENT_ERROR = "error"

# UI state reported alongside error events
STATE_ERROR = "error"

STICKY_EVENT_TYPES: frozenset[str] = frozenset(
    {
        EVENT_STATE_UPDATE,
        EVENT_TIMER,
        EVENT_PREPARATION,
        EVENT_ERROR,
    }
)

STICKY_EVENT_ORDER: tuple[str, ...] = (
    EVENT_TIMER,
    EVENT_PREPARATION,
    EVENT_ERROR,
    EVENT_STATE_UPDATE,
)
