from __future__ import annotations

from fastapi import APIRouter, Depends

from pomodoro import TimerActionResult

from ..context import ApiContext
from ..dependencies import get_context
from ..responses import preparation_action_response, timer_out
from ..schemas import PreparationActionOut, TimerOut

router = APIRouter(prefix="/api/preparation", tags=["preparation"])

_CONFLICT = {409: {"model": PreparationActionOut, "description": "Action rejected"}}


def _respond(context: ApiContext, result: TimerActionResult):
    context.ticks.handle_preparation_result(result)
    return preparation_action_response(result)


@router.get("", response_model=TimerOut)
async def get_preparation(context: ApiContext = Depends(get_context)):
    return timer_out(context.preparation.snapshot())


@router.post("/start", response_model=PreparationActionOut, responses=_CONFLICT)
async def start(context: ApiContext = Depends(get_context)):
    return _respond(context, context.preparation.start())


@router.post("/toggle", response_model=PreparationActionOut, responses=_CONFLICT)
async def toggle(context: ApiContext = Depends(get_context)):
    return _respond(context, context.preparation.toggle())


@router.post("/reset", response_model=PreparationActionOut, responses=_CONFLICT)
async def reset(context: ApiContext = Depends(get_context)):
    return _respond(context, context.preparation.reset())
