"""REST API for tasks, session history, and the focus/break timer."""

from .app import create_app, poll_timers
from .context import TIMER_STATE_KEY, ApiContext, build_context

__all__ = [
    "ApiContext",
    "TIMER_STATE_KEY",
    "build_context",
    "create_app",
    "poll_timers",
]
