"""Relational task and session storage on top of aiosqlite."""

from __future__ import annotations

import json
import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any, AsyncIterator, Iterable, Mapping, Optional

import aiosqlite

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

_SCHEMA = (
    """
    CREATE TABLE IF NOT EXISTS tasks (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        user_id TEXT NOT NULL,
        text TEXT NOT NULL,
        notes TEXT NOT NULL DEFAULT '',
        tags TEXT NOT NULL DEFAULT '[]',
        completed INTEGER NOT NULL DEFAULT 0,
        created_at TEXT NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS session_records (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        user_id TEXT NOT NULL,
        task_id TEXT NOT NULL,
        task_name TEXT NOT NULL,
        start_timestamp TEXT NOT NULL,
        end_timestamp TEXT NOT NULL,
        planned_minutes INTEGER NOT NULL,
        actual_minutes INTEGER NOT NULL,
        actual_finished_early INTEGER NOT NULL DEFAULT 0,
        break_duration INTEGER NOT NULL,
        completed INTEGER NOT NULL DEFAULT 0
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS app_state (
        user_id TEXT NOT NULL,
        key TEXT NOT NULL,
        value TEXT NOT NULL,
        updated_at TEXT NOT NULL,
        PRIMARY KEY (user_id, key)
    )
    """,
    "CREATE INDEX IF NOT EXISTS idx_tasks_user ON tasks(user_id)",
    "CREATE INDEX IF NOT EXISTS idx_records_user ON session_records(user_id)",
)


class SQLiteStore:
    """Stores tasks, session records, and state blobs in a SQLite file."""

    def __init__(
        self,
        path: str | Path,
        *,
        logger: Optional[logging.Logger] = None,
    ):
        self._path = Path(path)
        self._logger = logger or logging.getLogger("storage.sqlite")

    @property
    def path(self) -> Path:
        return self._path

    async def initialize(self) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        async with self._connect() as db:
            for statement in _SCHEMA:
                await db.execute(statement)
            await db.commit()
        self._logger.info("SQLite store ready: %s", self._path)

    async def close(self) -> None:
        # Connections are opened per operation.
        return None

    async def list_tasks(self, user_id: str) -> list[Task]:
        async with self._connect() as db:
            cursor = await db.execute(
                "SELECT * FROM tasks WHERE user_id = ? ORDER BY id",
                (user_id,),
            )
            rows = await cursor.fetchall()
        return [_task_from_row(row) for row in rows]

    async def get_task(self, user_id: str, task_id: int) -> Optional[Task]:
        async with self._connect() as db:
            return await self._fetch_task(db, user_id, task_id)

    async def create_task(
        self,
        user_id: str,
        text: str,
        *,
        notes: str = "",
        tags: Iterable[str] = (),
    ) -> Task:
        clean_text = normalize_text(text)
        clean_notes = normalize_notes(notes)
        clean_tags = normalize_tags(tags)
        created_at = utc_now()
        async with self._connect() as db:
            cursor = await db.execute(
                """
                INSERT INTO tasks (user_id, text, notes, tags, completed, created_at)
                VALUES (?, ?, ?, ?, 0, ?)
                """,
                (
                    user_id,
                    clean_text,
                    clean_notes,
                    json.dumps(list(clean_tags)),
                    created_at.isoformat(),
                ),
            )
            await db.commit()
            task_id = cursor.lastrowid

        self._logger.info("Task created: user=%s id=%s", user_id, task_id)
        return Task(
            id=int(task_id or 0),
            user_id=user_id,
            text=clean_text,
            notes=clean_notes,
            tags=clean_tags,
            completed=False,
            created_at=created_at,
        )

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
        assignments: list[str] = []
        values: list[Any] = []
        if text is not None:
            assignments.append("text = ?")
            values.append(normalize_text(text))
        if notes is not None:
            assignments.append("notes = ?")
            values.append(normalize_notes(notes))
        if tags is not None:
            assignments.append("tags = ?")
            values.append(json.dumps(list(normalize_tags(tags))))
        if completed is not None:
            assignments.append("completed = ?")
            values.append(1 if completed else 0)

        async with self._connect() as db:
            if assignments:
                await db.execute(
                    f"UPDATE tasks SET {', '.join(assignments)} WHERE id = ? AND user_id = ?",
                    (*values, task_id, user_id),
                )
                await db.commit()
            return await self._fetch_task(db, user_id, task_id)

    async def toggle_task(self, user_id: str, task_id: int) -> Optional[Task]:
        async with self._connect() as db:
            await db.execute(
                "UPDATE tasks SET completed = 1 - completed WHERE id = ? AND user_id = ?",
                (task_id, user_id),
            )
            await db.commit()
            return await self._fetch_task(db, user_id, task_id)

    async def delete_task(self, user_id: str, task_id: int) -> bool:
        async with self._connect() as db:
            cursor = await db.execute(
                "DELETE FROM tasks WHERE id = ? AND user_id = ?",
                (task_id, user_id),
            )
            await db.commit()
            deleted = cursor.rowcount > 0
        if deleted:
            self._logger.info("Task deleted: user=%s id=%s", user_id, task_id)
        return deleted

    async def list_session_records(self, user_id: str) -> list[SessionRecord]:
        async with self._connect() as db:
            cursor = await db.execute(
                "SELECT * FROM session_records WHERE user_id = ? ORDER BY id",
                (user_id,),
            )
            rows = await cursor.fetchall()
        return [_record_from_row(row) for row in rows]

    async def create_session_record(
        self,
        user_id: str,
        draft: SessionRecordDraft,
    ) -> SessionRecord:
        async with self._connect() as db:
            cursor = await db.execute(
                """
                INSERT INTO session_records (
                    user_id, task_id, task_name, start_timestamp, end_timestamp,
                    planned_minutes, actual_minutes, actual_finished_early,
                    break_duration, completed
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    user_id,
                    draft.task_id,
                    draft.task_name,
                    draft.started_at.isoformat(),
                    draft.ended_at.isoformat(),
                    draft.planned_minutes,
                    draft.actual_minutes,
                    1 if draft.finished_early else 0,
                    draft.break_minutes,
                    1 if draft.completed else 0,
                ),
            )
            await db.commit()
            record_id = cursor.lastrowid

        self._logger.info(
            "Session recorded: user=%s id=%s task=%s completed=%s",
            user_id,
            record_id,
            draft.task_id,
            draft.completed,
        )
        return SessionRecord(
            id=int(record_id or 0),
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

    async def load_state(self, user_id: str, key: str) -> Optional[dict[str, Any]]:
        async with self._connect() as db:
            cursor = await db.execute(
                "SELECT value FROM app_state WHERE user_id = ? AND key = ?",
                (user_id, key),
            )
            row = await cursor.fetchone()
        if row is None:
            return None
        try:
            value = json.loads(row["value"])
        except json.JSONDecodeError as error:
            self._logger.error("Discarding unreadable state blob %s: %s", key, error)
            return None
        return value if isinstance(value, dict) else None

    async def save_state(self, user_id: str, key: str, state: Mapping[str, Any]) -> None:
        async with self._connect() as db:
            await db.execute(
                """
                INSERT INTO app_state (user_id, key, value, updated_at)
                VALUES (?, ?, ?, ?)
                ON CONFLICT(user_id, key) DO UPDATE SET
                    value = excluded.value,
                    updated_at = excluded.updated_at
                """,
                (user_id, key, json.dumps(dict(state)), utc_now().isoformat()),
            )
            await db.commit()

    @asynccontextmanager
    async def _connect(self) -> AsyncIterator[aiosqlite.Connection]:
        try:
            async with aiosqlite.connect(self._path) as db:
                await db.execute("PRAGMA busy_timeout=5000")
                db.row_factory = aiosqlite.Row
                yield db
        except aiosqlite.Error as error:
            raise StorageError(f"SQLite operation failed: {error}") from error

    @staticmethod
    async def _fetch_task(
        db: aiosqlite.Connection,
        user_id: str,
        task_id: int,
    ) -> Optional[Task]:
        cursor = await db.execute(
            "SELECT * FROM tasks WHERE id = ? AND user_id = ?",
            (task_id, user_id),
        )
        row = await cursor.fetchone()
        return _task_from_row(row) if row is not None else None


def _task_from_row(row: aiosqlite.Row) -> Task:
    return Task(
        id=int(row["id"]),
        user_id=row["user_id"],
        text=row["text"],
        notes=row["notes"] or "",
        tags=tuple(json.loads(row["tags"] or "[]")),
        completed=bool(row["completed"]),
        created_at=parse_timestamp(row["created_at"]),
    )


def _record_from_row(row: aiosqlite.Row) -> SessionRecord:
    return SessionRecord(
        id=int(row["id"]),
        user_id=row["user_id"],
        task_id=row["task_id"],
        task_name=row["task_name"],
        start_timestamp=parse_timestamp(row["start_timestamp"]),
        end_timestamp=parse_timestamp(row["end_timestamp"]),
        planned_minutes=int(row["planned_minutes"]),
        actual_minutes=int(row["actual_minutes"]),
        actual_finished_early=bool(row["actual_finished_early"]),
        break_duration=int(row["break_duration"]),
        completed=bool(row["completed"]),
    )
