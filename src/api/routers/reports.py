from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query

from reports import ReportRange, filter_records, session_days, summarize, todays_stats

from ..context import ApiContext
from ..dependencies import get_context, get_user_id
from ..schemas import CalendarOut, StatsOut

router = APIRouter(prefix="/api/reports", tags=["reports"])


@router.get("/today", response_model=StatsOut)
async def today(
    user_id: str = Depends(get_user_id),
    context: ApiContext = Depends(get_context),
):
    records = await context.store.list_session_records(user_id)
    return StatsOut(**todays_stats(records, context.now()).to_dict())


@router.get("/summary", response_model=StatsOut)
async def summary(
    range_name: ReportRange = Query(default="week", alias="range"),
    user_id: str = Depends(get_user_id),
    context: ApiContext = Depends(get_context),
):
    records = await context.store.list_session_records(user_id)
    selected = filter_records(records, range_name, context.now())
    return StatsOut(**summarize(selected).to_dict())


@router.get("/calendar", response_model=CalendarOut)
async def calendar(
    year: Optional[int] = Query(default=None, ge=1970, le=9999),
    month: Optional[int] = Query(default=None, ge=1, le=12),
    user_id: str = Depends(get_user_id),
    context: ApiContext = Depends(get_context),
):
    now = context.now()
    year = year if year is not None else now.year
    month = month if month is not None else now.month
    records = await context.store.list_session_records(user_id)
    days = session_days(records, year, month, tz=now.tzinfo)
    return CalendarOut(year=year, month=month, days=days)
