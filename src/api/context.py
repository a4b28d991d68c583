"""Shared service objects behind the REST routes."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Optional

from app_config_schema import ApiSettings, TimerSettings
from pomodoro import (
    CountdownTimer,
    FlowResult,
    PreparationTimer,
    SessionController,
)
from runtime import RuntimeUIPublisher, TickDependencies, TickProcessor, UIServerLike
from storage import PomorangeStore, SessionRecord, StorageError

TIMER_STATE_KEY = "timer_state"


def _local_now() -> datetime:
    return datetime.now().astimezone()


@dataclass
class ApiContext:
    """Everything a request handler needs; one instance per app."""
    store: PomorangeStore
    controller: SessionController
    preparation: PreparationTimer
    ticks: TickProcessor
    api_settings: ApiSettings = field(default_factory=ApiSettings)
    timer_settings: TimerSettings = field(default_factory=TimerSettings)
    now: Callable[[], datetime] = _local_now
    logger: logging.Logger = field(default_factory=lambda: logging.getLogger("api"))

    @property
    def state_owner(self) -> str:
        return self.api_settings.default_user_id

    async def apply_flow_action(
        self,
        user_id: str,
        action: Callable[[], FlowResult],
    ) -> tuple[FlowResult, Optional[SessionRecord]]:
        """Run a controller action and persist its record draft and state.

        The controller is rolled back to its prior state when the record
        cannot be stored, so the session can be finished again.
        """
        previous_state = self.controller.export_state()
        result = action()
        if not result.accepted:
            return result, None

        stored = None
        if result.record is not None:
            try:
                stored = await self.store.create_session_record(user_id, result.record)
            except StorageError:
                self.controller.restore_state(previous_state)
                self.logger.error(
                    "Session record not stored, flow rolled back to %s",
                    previous_state["phase"],
                )
                raise
        await self.save_controller_state()
        return result, stored

    async def save_controller_state(self) -> None:
        await self.store.save_state(
            self.state_owner,
            TIMER_STATE_KEY,
            self.controller.export_state(),
        )

    async def restore_controller_state(self) -> bool:
        blob = await self.store.load_state(self.state_owner, TIMER_STATE_KEY)
        if blob is None:
            return False
        try:
            self.controller.restore_state(blob)
        except (TypeError, ValueError) as error:
            self.logger.warning("Ignoring saved timer state: %s", error)
            return False
        return True


def build_context(
    store: PomorangeStore,
    *,
    api_settings: Optional[ApiSettings] = None,
    timer_settings: Optional[TimerSettings] = None,
    ui_server: Optional[UIServerLike] = None,
    clock: Optional[Callable[[], float]] = None,
    now: Optional[Callable[[], datetime]] = None,
    logger: Optional[logging.Logger] = None,
) -> ApiContext:
    api_settings = api_settings or ApiSettings()
    timer_settings = timer_settings or TimerSettings()
    logger = logger or logging.getLogger("api")
    timer = CountdownTimer(
        duration_seconds=timer_settings.focus_minutes * 60,
        clock=clock,
        logger=logging.getLogger("pomodoro"),
    )
    return ApiContext(
        store=store,
        controller=SessionController(timer, logger=logging.getLogger("pomodoro.session")),
        preparation=PreparationTimer(
            duration_seconds=timer_settings.preparation_seconds,
            clock=clock,
            logger=logging.getLogger("pomodoro.preparation"),
        ),
        ticks=TickProcessor(
            TickDependencies(
                logger=logging.getLogger("runtime"),
                ui=RuntimeUIPublisher(ui_server),
            )
        ),
        api_settings=api_settings,
        timer_settings=timer_settings,
        now=now or _local_now,
        logger=logger,
    )
