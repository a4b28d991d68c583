from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query, status

from pomodoro import SessionRecordDraft
from reports import ReportRange, filter_records, sort_newest_first
from storage.models import parse_timestamp

from ..context import ApiContext
from ..dependencies import get_context, get_user_id
from ..responses import record_out
from ..schemas import SessionRecordCreate, SessionRecordOut

router = APIRouter(prefix="/api/sessions", tags=["sessions"])


@router.get("", response_model=list[SessionRecordOut])
async def list_sessions(
    range_name: ReportRange = Query(default="all", alias="range"),
    user_id: str = Depends(get_user_id),
    context: ApiContext = Depends(get_context),
):
    records = await context.store.list_session_records(user_id)
    selected = filter_records(records, range_name, context.now())
    return [record_out(record) for record in sort_newest_first(selected)]


@router.post("", response_model=SessionRecordOut, status_code=status.HTTP_201_CREATED)
async def create_session(
    body: SessionRecordCreate,
    user_id: str = Depends(get_user_id),
    context: ApiContext = Depends(get_context),
):
    started_at = parse_timestamp(body.start_timestamp)
    ended_at = parse_timestamp(body.end_timestamp)
    if ended_at < started_at:
        raise HTTPException(
            status_code=422,
            detail="end_timestamp must not be before start_timestamp",
        )
    draft = SessionRecordDraft(
        task_id=body.task_id,
        task_name=body.task_name,
        started_at=started_at,
        ended_at=ended_at,
        planned_minutes=body.planned_minutes,
        actual_minutes=body.actual_minutes,
        finished_early=body.actual_finished_early,
        break_minutes=body.break_duration,
        completed=body.completed,
    )
    record = await context.store.create_session_record(user_id, draft)
    return record_out(record)
