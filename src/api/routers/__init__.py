from . import preparation, reports, sessions, tasks, timer

ALL_ROUTERS = (
    tasks.router,
    sessions.router,
    reports.router,
    timer.router,
    preparation.router,
)

__all__ = ["ALL_ROUTERS"]
