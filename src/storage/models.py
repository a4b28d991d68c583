"""Persisted task and session record models."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Iterable, Optional

from .errors import InvalidTaskError


@dataclass(frozen=True)
class Task:
    """A user-defined unit of work with optional notes and tags."""
    id: int
    user_id: str
    text: str
    notes: str = ""
    tags: tuple[str, ...] = ()
    completed: bool = False
    created_at: Optional[datetime] = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "text": self.text,
            "notes": self.notes,
            "tags": list(self.tags),
            "completed": self.completed,
            "created_at": _iso(self.created_at),
        }


@dataclass(frozen=True)
class SessionRecord:
    """Log entry for one finished focus session."""
    id: int
    user_id: str
    task_id: str
    task_name: str
    start_timestamp: datetime
    end_timestamp: datetime
    planned_minutes: int
    actual_minutes: int
    actual_finished_early: bool
    break_duration: int
    completed: bool

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "task_id": self.task_id,
            "task_name": self.task_name,
            "start_timestamp": _iso(self.start_timestamp),
            "end_timestamp": _iso(self.end_timestamp),
            "planned_minutes": self.planned_minutes,
            "actual_minutes": self.actual_minutes,
            "actual_finished_early": self.actual_finished_early,
            "break_duration": self.break_duration,
            "completed": self.completed,
        }


def normalize_text(text: Any) -> str:
    if not isinstance(text, str) or not text.strip():
        raise InvalidTaskError("Task text is required")
    return text.strip()


def normalize_notes(notes: Any) -> str:
    if notes is None:
        return ""
    if not isinstance(notes, str):
        raise InvalidTaskError("Task notes must be a string")
    return notes.strip()


def normalize_tags(tags: Optional[Iterable[Any]]) -> tuple[str, ...]:
    if tags is None:
        return ()
    if isinstance(tags, str):
        raise InvalidTaskError("Task tags must be a list of strings")
    cleaned: list[str] = []
    for tag in tags:
        if not isinstance(tag, str):
            raise InvalidTaskError("Task tags must be a list of strings")
        stripped = tag.strip()
        if stripped and stripped not in cleaned:
            cleaned.append(stripped)
    return tuple(cleaned)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def parse_timestamp(raw: Any) -> datetime:
    if isinstance(raw, datetime):
        parsed = raw
    else:
        parsed = datetime.fromisoformat(str(raw))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value is not None else None
