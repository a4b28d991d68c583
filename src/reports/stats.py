"""Session history filtering and summary statistics."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, timedelta, tzinfo
from typing import Iterable, Literal, Optional

from storage import SessionRecord

ReportRange = Literal["today", "week", "month", "all"]
RecordStatus = Literal["early_finish", "completed", "incomplete"]

REPORT_RANGES: tuple[str, ...] = ("today", "week", "month", "all")


@dataclass(frozen=True)
class SessionStats:
    total_sessions: int
    total_focus_minutes: int
    completed_sessions: int
    average_session_minutes: float

    def to_dict(self) -> dict[str, float | int]:
        return {
            "total_sessions": self.total_sessions,
            "total_focus_minutes": self.total_focus_minutes,
            "completed_sessions": self.completed_sessions,
            "average_session_minutes": self.average_session_minutes,
        }


def record_status(record: SessionRecord) -> RecordStatus:
    if record.actual_finished_early:
        return "early_finish"
    if record.completed:
        return "completed"
    return "incomplete"


def filter_records(
    records: Iterable[SessionRecord],
    range_name: str,
    now: datetime,
) -> list[SessionRecord]:
    """Keep records whose local start date falls in ``range_name``.

    Weeks start on Monday. Local dates use ``now``'s timezone.
    """
    if range_name not in REPORT_RANGES:
        raise ValueError(
            f"range must be one of {', '.join(REPORT_RANGES)}, got: {range_name!r}"
        )
    items = list(records)
    if range_name == "all":
        return items

    tz = now.tzinfo
    today = now.date()
    if range_name == "today":
        first = today
    elif range_name == "week":
        first = today - timedelta(days=today.weekday())
    else:
        first = today.replace(day=1)

    return [
        record
        for record in items
        if first <= _local_date(record.start_timestamp, tz) <= today
    ]


def sort_newest_first(records: Iterable[SessionRecord]) -> list[SessionRecord]:
    return sorted(records, key=lambda record: record.start_timestamp, reverse=True)


def summarize(records: Iterable[SessionRecord]) -> SessionStats:
    items = list(records)
    total_sessions = len(items)
    total_focus = sum(record.actual_minutes for record in items)
    completed = sum(1 for record in items if record.completed)
    average = round(total_focus / total_sessions, 2) if total_sessions else 0.0
    return SessionStats(
        total_sessions=total_sessions,
        total_focus_minutes=total_focus,
        completed_sessions=completed,
        average_session_minutes=average,
    )


def todays_stats(records: Iterable[SessionRecord], now: datetime) -> SessionStats:
    return summarize(filter_records(records, "today", now))


def session_days(
    records: Iterable[SessionRecord],
    year: int,
    month: int,
    *,
    tz: Optional[tzinfo] = None,
) -> list[date]:
    """Distinct local dates in ``year``/``month`` that have a session."""
    if not 1 <= month <= 12:
        raise ValueError(f"month must be in [1, 12], got: {month}")
    days = {
        _local_date(record.start_timestamp, tz)
        for record in records
    }
    return sorted(day for day in days if day.year == year and day.month == month)


def _local_date(value: datetime, tz: Optional[tzinfo]) -> date:
    return value.astimezone(tz).date()
