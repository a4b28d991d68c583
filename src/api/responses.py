"""Conversions from domain objects to response models."""

from __future__ import annotations

from typing import Optional

from fastapi import status
from fastapi.responses import JSONResponse

from pomodoro import FlowResult, FlowSnapshot, TimerActionResult, TimerSnapshot
from reports import record_status
from runtime import flow_payload, timer_payload
from storage import SessionRecord, Task

from .schemas import (
    FlowActionOut,
    FlowOut,
    PreparationActionOut,
    SessionRecordOut,
    TaskOut,
    TimerOut,
)


def task_out(task: Task) -> TaskOut:
    return TaskOut(**task.to_dict())


def record_out(record: SessionRecord) -> SessionRecordOut:
    return SessionRecordOut(**record.to_dict(), status=record_status(record))


def flow_out(snapshot: FlowSnapshot) -> FlowOut:
    return FlowOut.model_validate(flow_payload(snapshot))


def timer_out(snapshot: TimerSnapshot) -> TimerOut:
    return TimerOut.model_validate(timer_payload(snapshot))


def flow_action_response(
    result: FlowResult,
    *,
    record: Optional[SessionRecord] = None,
) -> FlowActionOut | JSONResponse:
    body = FlowActionOut(
        action=result.action,
        accepted=result.accepted,
        reason=result.reason,
        snapshot=flow_out(result.snapshot),
        record=record_out(record) if record is not None else None,
    )
    if result.accepted:
        return body
    return JSONResponse(
        status_code=status.HTTP_409_CONFLICT,
        content=body.model_dump(mode="json", exclude={"record"}),
    )


def preparation_action_response(
    result: TimerActionResult,
) -> PreparationActionOut | JSONResponse:
    body = PreparationActionOut(
        action=result.action,
        accepted=result.accepted,
        reason=result.reason,
        snapshot=timer_out(result.snapshot),
    )
    if result.accepted:
        return body
    return JSONResponse(
        status_code=status.HTTP_409_CONFLICT,
        content=body.model_dump(mode="json"),
    )
