from .preparation import PreparationTick, PreparationTimer
from .service import (
    CountdownTimer,
    SessionType,
    TimerAction,
    TimerActionResult,
    TimerPhase,
    TimerSnapshot,
    TimerTick,
)
from .session import (
    FlowPhase,
    FlowResult,
    FlowSnapshot,
    FlowTick,
    SessionController,
    SessionRecordDraft,
    SessionSetup,
    SessionSetupError,
)

__all__ = [
    "CountdownTimer",
    "FlowPhase",
    "FlowResult",
    "FlowSnapshot",
    "FlowTick",
    "PreparationTick",
    "PreparationTimer",
    "SessionController",
    "SessionRecordDraft",
    "SessionSetup",
    "SessionSetupError",
    "SessionType",
    "TimerAction",
    "TimerActionResult",
    "TimerPhase",
    "TimerSnapshot",
    "TimerTick",
]
