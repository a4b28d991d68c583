"""Store protocol shared by the relational and key-value backends."""

from __future__ import annotations

from typing import Any, Iterable, Mapping, Optional, Protocol

from pomodoro import SessionRecordDraft

from .models import SessionRecord, Task


class PomorangeStore(Protocol):
    """Protocol for task, session record, and state-blob persistence.

    Every method is scoped to ``user_id``; rows owned by another user are
    invisible to the caller.
    """
    async def initialize(self) -> None:
        ...

    async def close(self) -> None:
        ...

    async def list_tasks(self, user_id: str) -> list[Task]:
        ...

    async def get_task(self, user_id: str, task_id: int) -> Optional[Task]:
        ...

    async def create_task(
        self,
        user_id: str,
        text: str,
        *,
        notes: str = "",
        tags: Iterable[str] = (),
    ) -> Task:
        ...

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
        ...

    async def toggle_task(self, user_id: str, task_id: int) -> Optional[Task]:
        ...

    async def delete_task(self, user_id: str, task_id: int) -> bool:
        ...

    async def list_session_records(self, user_id: str) -> list[SessionRecord]:
        ...

    async def create_session_record(
        self,
        user_id: str,
        draft: SessionRecordDraft,
    ) -> SessionRecord:
        ...

    async def load_state(self, user_id: str, key: str) -> Optional[dict[str, Any]]:
        ...

    async def save_state(self, user_id: str, key: str, state: Mapping[str, Any]) -> None:
        ...
