"""Key-value blob storage in a single JSON file.

Mirrors the browser local-storage layout: per user, a ``pomodoro_tasks``
list, a ``pomodoro_records`` list, and named state blobs.
"""

from __future__ import annotations

import asyncio
import json
import logging
import os
from dataclasses import replace
from pathlib import Path
from typing import Any, Iterable, Mapping, Optional

from pomodoro import SessionRecordDraft

from .errors import StorageError
from .models import (
    SessionRecord,
    Task,
    normalize_notes,
    normalize_tags,
    normalize_text,
    parse_timestamp,
    utc_now,
)

TASKS_KEY = "pomodoro_tasks"
RECORDS_KEY = "pomodoro_records"
STATE_KEY = "state"


class JsonFileStore:
    """Stores every user's data in one JSON document, rewritten on each change."""

    def __init__(
        self,
        path: str | Path,
        *,
        logger: Optional[logging.Logger] = None,
    ):
        self._path = Path(path)
        self._logger = logger or logging.getLogger("storage.json")
        self._lock = asyncio.Lock()

    @property
    def path(self) -> Path:
        return self._path

    async def initialize(self) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._logger.info("JSON store ready: %s", self._path)

    async def close(self) -> None:
        return None

    async def list_tasks(self, user_id: str) -> list[Task]:
        async with self._lock:
            bucket = await self._read_bucket(user_id)
        return [_task_from_dict(user_id, item) for item in bucket[TASKS_KEY]]

    async def get_task(self, user_id: str, task_id: int) -> Optional[Task]:
        for task in await self.list_tasks(user_id):
            if task.id == task_id:
                return task
        return None

    async def create_task(
        self,
        user_id: str,
        text: str,
        *,
        notes: str = "",
        tags: Iterable[str] = (),
    ) -> Task:
        task = Task(
            id=0,
            user_id=user_id,
            text=normalize_text(text),
            notes=normalize_notes(notes),
            tags=normalize_tags(tags),
            completed=False,
            created_at=utc_now(),
        )
        async with self._lock:
            document = await self._read()
            bucket = _bucket(document, user_id)
            task = replace(task, id=_next_id(bucket[TASKS_KEY]))
            bucket[TASKS_KEY].append(_task_to_dict(task))
            await self._write(document)
        self._logger.info("Task created: user=%s id=%s", user_id, task.id)
        return task

    async def update_task(
        self,
        user_id: str,
        task_id: int,
        *,
        text: Optional[str] = None,
        notes: Optional[str] = None,
        tags: Optional[Iterable[str]] = None,
        completed: Optional[bool] = None,
    ) -> Optional[Task]:
        updates: dict[str, Any] = {}
        if text is not None:
            updates["text"] = normalize_text(text)
        if notes is not None:
            updates["notes"] = normalize_notes(notes)
        if tags is not None:
            updates["tags"] = list(normalize_tags(tags))
        if completed is not None:
            updates["completed"] = bool(completed)
        return await self._modify_task(user_id, task_id, lambda item: item.update(updates))

    async def toggle_task(self, user_id: str, task_id: int) -> Optional[Task]:
        def flip(item: dict[str, Any]) -> None:
            item["completed"] = not bool(item.get("completed", False))

        return await self._modify_task(user_id, task_id, flip)

    async def delete_task(self, user_id: str, task_id: int) -> bool:
        async with self._lock:
            document = await self._read()
            bucket = _bucket(document, user_id)
            remaining = [item for item in bucket[TASKS_KEY] if item.get("id") != task_id]
            if len(remaining) == len(bucket[TASKS_KEY]):
                return False
            bucket[TASKS_KEY] = remaining
            await self._write(document)
        self._logger.info("Task deleted: user=%s id=%s", user_id, task_id)
        return True

    async def list_session_records(self, user_id: str) -> list[SessionRecord]:
        async with self._lock:
            bucket = await self._read_bucket(user_id)
        return [_record_from_dict(user_id, item) for item in bucket[RECORDS_KEY]]

    async def create_session_record(
        self,
        user_id: str,
        draft: SessionRecordDraft,
    ) -> SessionRecord:
        async with self._lock:
            document = await self._read()
            bucket = _bucket(document, user_id)
            record = SessionRecord(
                id=_next_id(bucket[RECORDS_KEY]),
                user_id=user_id,
                task_id=draft.task_id,
                task_name=draft.task_name,
                start_timestamp=draft.started_at,
                end_timestamp=draft.ended_at,
                planned_minutes=draft.planned_minutes,
                actual_minutes=draft.actual_minutes,
                actual_finished_early=draft.finished_early,
                break_duration=draft.break_minutes,
                completed=draft.completed,
            )
            bucket[RECORDS_KEY].append(record.to_dict())
            await self._write(document)
        self._logger.info(
            "Session recorded: user=%s id=%s task=%s completed=%s",
            user_id,
            record.id,
            record.task_id,
            record.completed,
        )
        return record

    async def load_state(self, user_id: str, key: str) -> Optional[dict[str, Any]]:
        async with self._lock:
            bucket = await self._read_bucket(user_id)
        value = bucket[STATE_KEY].get(key)
        return value if isinstance(value, dict) else None

    async def save_state(self, user_id: str, key: str, state: Mapping[str, Any]) -> None:
        async with self._lock:
            document = await self._read()
            _bucket(document, user_id)[STATE_KEY][key] = dict(state)
            await self._write(document)

    async def _modify_task(self, user_id: str, task_id: int, mutate) -> Optional[Task]:
        async with self._lock:
            document = await self._read()
            bucket = _bucket(document, user_id)
            for item in bucket[TASKS_KEY]:
                if item.get("id") == task_id:
                    mutate(item)
                    await self._write(document)
                    return _task_from_dict(user_id, item)
        return None

    async def _read_bucket(self, user_id: str) -> dict[str, Any]:
        return _bucket(await self._read(), user_id)

    async def _read(self) -> dict[str, Any]:
        return await asyncio.to_thread(self._read_sync)

    async def _write(self, document: dict[str, Any]) -> None:
        await asyncio.to_thread(self._write_sync, document)

    def _read_sync(self) -> dict[str, Any]:
        if not self._path.exists():
            return {"users": {}}
        try:
            document = json.loads(self._path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as error:
            self._logger.error("Error reading %s, starting empty: %s", self._path, error)
            return {"users": {}}
        if not isinstance(document, dict) or not isinstance(document.get("users"), dict):
            self._logger.error("Unexpected layout in %s, starting empty", self._path)
            return {"users": {}}
        return document

    def _write_sync(self, document: dict[str, Any]) -> None:
        temp_path = self._path.with_suffix(self._path.suffix + ".tmp")
        try:
            temp_path.write_text(json.dumps(document, indent=2), encoding="utf-8")
            os.replace(temp_path, self._path)
        except OSError as error:
            raise StorageError(f"Failed to write {self._path}: {error}") from error


def _bucket(document: dict[str, Any], user_id: str) -> dict[str, Any]:
    users = document.setdefault("users", {})
    bucket = users.setdefault(user_id, {})
    bucket.setdefault(TASKS_KEY, [])
    bucket.setdefault(RECORDS_KEY, [])
    bucket.setdefault(STATE_KEY, {})
    return bucket


def _next_id(items: list[dict[str, Any]]) -> int:
    return max((int(item.get("id", 0)) for item in items), default=0) + 1


def _task_to_dict(task: Task) -> dict[str, Any]:
    return task.to_dict()


def _task_from_dict(user_id: str, item: Mapping[str, Any]) -> Task:
    created = item.get("created_at")
    return Task(
        id=int(item["id"]),
        user_id=user_id,
        text=str(item.get("text", "")),
        notes=str(item.get("notes") or ""),
        tags=tuple(item.get("tags") or ()),
        completed=bool(item.get("completed", False)),
        created_at=parse_timestamp(created) if created else None,
    )


def _record_from_dict(user_id: str, item: Mapping[str, Any]) -> SessionRecord:
    return SessionRecord(
        id=int(item["id"]),
        user_id=user_id,
        task_id=str(item["task_id"]),
        task_name=str(item.get("task_name") or "Unknown Task"),
        start_timestamp=parse_timestamp(item["start_timestamp"]),
        end_timestamp=parse_timestamp(item["end_timestamp"]),
        planned_minutes=int(item["planned_minutes"]),
        actual_minutes=int(item["actual_minutes"]),
        actual_finished_early=bool(item.get("actual_finished_early", False)),
        break_duration=int(item["break_duration"]),
        completed=bool(item.get("completed", False)),
    )
