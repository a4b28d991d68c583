from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Response, status

from ..context import ApiContext
from ..dependencies import get_context, get_user_id
from ..responses import task_out
from ..schemas import TaskCreate, TaskOut, TaskUpdate

router = APIRouter(prefix="/api/tasks", tags=["tasks"])


def _not_found(task_id: int) -> HTTPException:
    return HTTPException(status_code=404, detail=f"Task {task_id} not found")


@router.get("", response_model=list[TaskOut])
async def list_tasks(
    user_id: str = Depends(get_user_id),
    context: ApiContext = Depends(get_context),
):
    return [task_out(task) for task in await context.store.list_tasks(user_id)]


@router.post("", response_model=TaskOut, status_code=status.HTTP_201_CREATED)
async def create_task(
    body: TaskCreate,
    user_id: str = Depends(get_user_id),
    context: ApiContext = Depends(get_context),
):
    task = await context.store.create_task(
        user_id,
        body.text,
        notes=body.notes,
        tags=body.tags,
    )
    return task_out(task)


@router.get("/{task_id}", response_model=TaskOut)
async def get_task(
    task_id: int,
    user_id: str = Depends(get_user_id),
    context: ApiContext = Depends(get_context),
):
    task = await context.store.get_task(user_id, task_id)
    if task is None:
        raise _not_found(task_id)
    return task_out(task)


@router.patch("/{task_id}", response_model=TaskOut)
async def update_task(
    task_id: int,
    body: TaskUpdate,
    user_id: str = Depends(get_user_id),
    context: ApiContext = Depends(get_context),
):
    task = await context.store.update_task(
        user_id,
        task_id,
        text=body.text,
        notes=body.notes,
        tags=body.tags,
        completed=body.completed,
    )
    if task is None:
        raise _not_found(task_id)
    return task_out(task)


@router.post("/{task_id}/toggle", response_model=TaskOut)
async def toggle_task(
    task_id: int,
    user_id: str = Depends(get_user_id),
    context: ApiContext = Depends(get_context),
):
    task = await context.store.toggle_task(user_id, task_id)
    if task is None:
        raise _not_found(task_id)
    return task_out(task)


@router.delete("/{task_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_task(
    task_id: int,
    user_id: str = Depends(get_user_id),
    context: ApiContext = Depends(get_context),
):
    if not await context.store.delete_task(user_id, task_id):
        raise _not_found(task_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
