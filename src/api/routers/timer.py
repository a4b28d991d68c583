"""Routes driving the focus/break state machine."""

from __future__ import annotations

from typing import Callable, Optional

from fastapi import APIRouter, Depends

from pomodoro import FlowResult, SessionSetup

from ..context import ApiContext
from ..dependencies import get_context, get_user_id
from ..responses import flow_action_response, flow_out
from ..schemas import (
    BreakRequest,
    FlowActionOut,
    FlowOut,
    FocusRequest,
    NavigateRequest,
    OutcomeRequest,
)

router = APIRouter(prefix="/api/timer", tags=["timer"])

_CONFLICT = {409: {"model": FlowActionOut, "description": "Action rejected in the current state"}}


async def _respond(context: ApiContext, user_id: str, action: Callable[[], FlowResult]):
    result, record = await context.apply_flow_action(user_id, action)
    context.ticks.handle_flow_result(result)
    return flow_action_response(result, record=record)


async def _task_name(context: ApiContext, user_id: str, task_id: str) -> str:
    try:
        numeric_id = int(task_id)
    except ValueError:
        return ""
    task = await context.store.get_task(user_id, numeric_id)
    return task.text if task is not None else ""


@router.get("", response_model=FlowOut)
async def get_timer(context: ApiContext = Depends(get_context)):
    return flow_out(context.controller.snapshot())


@router.post("/navigate", response_model=FlowActionOut, responses=_CONFLICT)
async def navigate(
    body: NavigateRequest,
    user_id: str = Depends(get_user_id),
    context: ApiContext = Depends(get_context),
):
    return await _respond(context, user_id, lambda: context.controller.navigate(body.phase))


@router.post("/focus", response_model=FlowActionOut, responses=_CONFLICT)
async def start_focus(
    body: FocusRequest,
    user_id: str = Depends(get_user_id),
    context: ApiContext = Depends(get_context),
):
    defaults = context.timer_settings
    setup = SessionSetup(
        task_id=body.task_id.strip(),
        task_name=body.task_name.strip() or await _task_name(context, user_id, body.task_id),
        focus_minutes=body.focus_minutes or defaults.focus_minutes,
        break_minutes=body.break_minutes or defaults.break_minutes,
    )
    return await _respond(context, user_id, lambda: context.controller.start_focus(setup))


@router.post("/pause", response_model=FlowActionOut, responses=_CONFLICT)
async def pause(
    user_id: str = Depends(get_user_id),
    context: ApiContext = Depends(get_context),
):
    return await _respond(context, user_id, context.controller.pause)


@router.post("/resume", response_model=FlowActionOut, responses=_CONFLICT)
async def resume(
    user_id: str = Depends(get_user_id),
    context: ApiContext = Depends(get_context),
):
    return await _respond(context, user_id, context.controller.resume)


@router.post("/toggle", response_model=FlowActionOut, responses=_CONFLICT)
async def toggle(
    user_id: str = Depends(get_user_id),
    context: ApiContext = Depends(get_context),
):
    return await _respond(context, user_id, context.controller.toggle_pause)


@router.post("/finish-early", response_model=FlowActionOut, responses=_CONFLICT)
async def finish_early(
    user_id: str = Depends(get_user_id),
    context: ApiContext = Depends(get_context),
):
    return await _respond(context, user_id, context.controller.finish_early)


@router.post("/outcome", response_model=FlowActionOut, responses=_CONFLICT)
async def resolve_outcome(
    body: OutcomeRequest,
    user_id: str = Depends(get_user_id),
    context: ApiContext = Depends(get_context),
):
    return await _respond(
        context,
        user_id,
        lambda: context.controller.resolve_focus(body.completed),
    )


@router.post("/break", response_model=FlowActionOut, responses=_CONFLICT)
async def start_break(
    body: Optional[BreakRequest] = None,
    user_id: str = Depends(get_user_id),
    context: ApiContext = Depends(get_context),
):
    minutes = body.minutes if body is not None else None
    return await _respond(context, user_id, lambda: context.controller.start_break(minutes))


@router.post("/skip-break", response_model=FlowActionOut, responses=_CONFLICT)
async def skip_break(
    user_id: str = Depends(get_user_id),
    context: ApiContext = Depends(get_context),
):
    return await _respond(context, user_id, context.controller.skip_break)


@router.post("/stop", response_model=FlowActionOut, responses=_CONFLICT)
async def stop(
    user_id: str = Depends(get_user_id),
    context: ApiContext = Depends(get_context),
):
    return await _respond(context, user_id, context.controller.stop)
