"""Phase, action, and reason constants used by the session state machine."""

from __future__ import annotations

DEFAULT_FOCUS_MINUTES = 25
DEFAULT_BREAK_MINUTES = 5
DEFAULT_PREPARATION_SECONDS = 10 * 60
DEFAULT_TIMER_LABEL = "Focus"

MIN_FOCUS_MINUTES = 1
MAX_FOCUS_MINUTES = 120
MIN_BREAK_MINUTES = 1
MAX_BREAK_MINUTES = 60

# Countdown timer phases
PHASE_IDLE = "idle"
PHASE_RUNNING = "running"
PHASE_PAUSED = "paused"
PHASE_COMPLETED = "completed"
PHASE_ABORTED = "aborted"

ACTIVE_PHASES: frozenset[str] = frozenset({PHASE_RUNNING, PHASE_PAUSED})

SESSION_FOCUS = "focus"
SESSION_BREAK = "break"
SESSION_PREPARATION = "preparation"

# Flow phases of the planning -> setup -> focus -> break cycle
FLOW_PLANNING = "planning"
FLOW_SETUP = "setup"
FLOW_FOCUS = "focus"
FLOW_BREAK = "break"
FLOW_HISTORY = "history"

NAVIGABLE_PHASES: frozenset[str] = frozenset({FLOW_PLANNING, FLOW_SETUP, FLOW_HISTORY})

ACTION_START = "start"
ACTION_PAUSE = "pause"
ACTION_CONTINUE = "continue"
ACTION_ABORT = "abort"
ACTION_RESET = "reset"
ACTION_TOGGLE = "toggle"

ACTION_NAVIGATE = "navigate"
ACTION_START_FOCUS = "start_focus"
ACTION_FINISH_EARLY = "finish_early"
ACTION_RESOLVE_FOCUS = "resolve_focus"
ACTION_START_BREAK = "start_break"
ACTION_SKIP_BREAK = "skip_break"
ACTION_STOP = "stop"

ACTION_SYNC = "sync"
ACTION_TICK = "tick"
ACTION_COMPLETED = "completed"

REASON_STARTED = "started"
REASON_RESET = "reset"
REASON_PAUSED = "paused"
REASON_CONTINUED = "continued"
REASON_ABORTED = "aborted"
REASON_NOT_RUNNING = "not_running"
REASON_NOT_PAUSED = "not_paused"
REASON_NOT_ACTIVE = "not_active"
REASON_INVALID_STATE = "invalid_state"
REASON_UNSUPPORTED_ACTION = "unsupported_action"
REASON_ALREADY_COMPLETED = "already_completed"
REASON_ALREADY_RUNNING = "already_running"
REASON_INVALID_DURATION = "invalid_duration"

REASON_NAVIGATED = "navigated"
REASON_INVALID_PHASE = "invalid_phase"
REASON_SESSION_ACTIVE = "session_active"
REASON_NO_FOCUS_SESSION = "no_focus_session"
REASON_NO_BREAK_SESSION = "no_break_session"
REASON_AWAITING_OUTCOME = "awaiting_outcome"
REASON_NOT_AWAITING_OUTCOME = "not_awaiting_outcome"
REASON_FINISHED_EARLY = "finished_early"
REASON_RECORDED = "recorded"
REASON_BREAK_STARTED = "break_started"
REASON_BREAK_SKIPPED = "break_skipped"
REASON_STOPPED = "stopped"
REASON_NO_SETUP = "no_setup"
REASON_TICK = "tick"
REASON_COMPLETED = "completed"
REASON_STARTUP = "startup"

# Completion events raised by poll()
EVENT_FOCUS_COMPLETE = "focus_complete"
EVENT_BREAK_COMPLETE = "break_complete"
EVENT_PREPARATION_COMPLETE = "preparation_complete"
