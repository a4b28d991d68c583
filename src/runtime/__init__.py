"""Runtime glue between timers and the websocket UI."""

from .messages import Notification, format_duration
from .ticks import TickDependencies, TickProcessor
from .ui import RuntimeUIPublisher, UIServerLike, flow_payload, timer_payload

__all__ = [
    "Notification",
    "RuntimeUIPublisher",
    "TickDependencies",
    "TickProcessor",
    "UIServerLike",
    "flow_payload",
    "format_duration",
    "timer_payload",
]
