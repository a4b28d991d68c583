"""FastAPI application factory and background timer polling."""

from __future__ import annotations

from contextlib import asynccontextmanager

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger
from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from pomodoro import SessionSetupError
from storage import InvalidTaskError, StorageError

from .context import ApiContext
from .routers import ALL_ROUTERS

POLL_JOB_ID = "timer-poll"


async def poll_timers(context: ApiContext) -> None:
    """Advance both countdowns and publish whatever changed."""
    flow_tick = context.controller.poll()
    if flow_tick is not None:
        context.ticks.handle_flow_tick(flow_tick)
        if flow_tick.completed:
            try:
                await context.save_controller_state()
            except StorageError as error:
                context.ticks.report_error("Could not save timer state", error)

    preparation_tick = context.preparation.poll()
    if preparation_tick is not None:
        context.ticks.handle_preparation_tick(preparation_tick)


def create_app(context: ApiContext, *, poll_in_background: bool = True) -> FastAPI:
    logger = context.logger

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        await context.store.initialize()
        if context.timer_settings.restore_state and await context.restore_controller_state():
            logger.info("Timer state restored")

        context.ticks.publish_current(
            context.controller.snapshot(),
            context.preparation.snapshot(),
        )

        scheduler = None
        if poll_in_background:
            scheduler = AsyncIOScheduler()
            scheduler.add_job(
                poll_timers,
                IntervalTrigger(seconds=context.timer_settings.tick_interval_seconds),
                args=[context],
                id=POLL_JOB_ID,
                max_instances=1,
                coalesce=True,
            )
            scheduler.start()
            logger.info(
                "Timer polling started (every %.2fs)",
                context.timer_settings.tick_interval_seconds,
            )
        try:
            yield
        finally:
            if scheduler is not None:
                scheduler.shutdown(wait=False)
                logger.info("Timer polling stopped")
            try:
                await context.save_controller_state()
            except StorageError as error:
                logger.error("Failed to save timer state on shutdown: %s", error)
            await context.store.close()

    app = FastAPI(
        title="Pomorange",
        description="Pomodoro focus/break timer with task and session history",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.context = context

    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(context.api_settings.cors_origins),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(InvalidTaskError)
    async def invalid_task_handler(request: Request, error: InvalidTaskError):
        del request
        return JSONResponse(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            content={"detail": str(error)},
        )

    @app.exception_handler(SessionSetupError)
    async def session_setup_handler(request: Request, error: SessionSetupError):
        del request
        return JSONResponse(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            content={"detail": str(error)},
        )

    @app.exception_handler(StorageError)
    async def storage_error_handler(request: Request, error: StorageError):
        logger.error("Storage failure on %s: %s", request.url.path, error)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"detail": "Storage failure"},
        )

    @app.get("/healthz")
    async def healthz():
        return {"status": "ok"}

    for router in ALL_ROUTERS:
        app.include_router(router)

    return app
