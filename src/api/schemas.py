"""Request and response models for the REST API."""

from __future__ import annotations

from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, Field

from pomodoro.constants import (
    MAX_BREAK_MINUTES,
    MAX_FOCUS_MINUTES,
    MIN_BREAK_MINUTES,
    MIN_FOCUS_MINUTES,
)


class TaskCreate(BaseModel):
    text: str = Field(min_length=1, max_length=500)
    notes: str = ""
    tags: list[str] = Field(default_factory=list)


class TaskUpdate(BaseModel):
    text: Optional[str] = Field(default=None, min_length=1, max_length=500)
    notes: Optional[str] = None
    tags: Optional[list[str]] = None
    completed: Optional[bool] = None


class TaskOut(BaseModel):
    id: int
    text: str
    notes: str
    tags: list[str]
    completed: bool
    created_at: Optional[datetime] = None


class SessionRecordCreate(BaseModel):
    task_id: str = Field(min_length=1)
    task_name: str = "Unknown Task"
    start_timestamp: datetime
    end_timestamp: datetime
    planned_minutes: int = Field(ge=MIN_FOCUS_MINUTES, le=MAX_FOCUS_MINUTES)
    actual_minutes: int = Field(ge=0)
    actual_finished_early: bool = False
    break_duration: int = Field(ge=MIN_BREAK_MINUTES, le=MAX_BREAK_MINUTES)
    completed: bool = False


class SessionRecordOut(BaseModel):
    id: int
    task_id: str
    task_name: str
    start_timestamp: datetime
    end_timestamp: datetime
    planned_minutes: int
    actual_minutes: int
    actual_finished_early: bool
    break_duration: int
    completed: bool
    status: str


class StatsOut(BaseModel):
    total_sessions: int
    total_focus_minutes: int
    completed_sessions: int
    average_session_minutes: float


class CalendarOut(BaseModel):
    year: int
    month: int
    days: list[date]


class TimerOut(BaseModel):
    phase: str
    label: Optional[str] = None
    session_type: str
    duration_seconds: int
    remaining_seconds: int
    progress: float
    started_at: Optional[datetime] = None
    finish_at: Optional[datetime] = None


class SetupOut(BaseModel):
    task_id: str
    task_name: str
    focus_minutes: int
    break_minutes: int


class FlowOut(BaseModel):
    phase: str
    awaiting_outcome: bool
    session_active: bool
    setup: Optional[SetupOut] = None
    timer: TimerOut


class FlowActionOut(BaseModel):
    action: str
    accepted: bool
    reason: str
    snapshot: FlowOut
    record: Optional[SessionRecordOut] = None


class PreparationActionOut(BaseModel):
    action: str
    accepted: bool
    reason: str
    snapshot: TimerOut


class NavigateRequest(BaseModel):
    phase: str


class FocusRequest(BaseModel):
    task_id: str = Field(min_length=1)
    task_name: str = ""
    focus_minutes: Optional[int] = Field(default=None, ge=MIN_FOCUS_MINUTES, le=MAX_FOCUS_MINUTES)
    break_minutes: Optional[int] = Field(default=None, ge=MIN_BREAK_MINUTES, le=MAX_BREAK_MINUTES)


class OutcomeRequest(BaseModel):
    completed: bool


class BreakRequest(BaseModel):
    minutes: Optional[int] = Field(default=None, ge=MIN_BREAK_MINUTES, le=MAX_BREAK_MINUTES)
