from .stats import (
    REPORT_RANGES,
    RecordStatus,
    ReportRange,
    SessionStats,
    filter_records,
    record_status,
    session_days,
    sort_newest_first,
    summarize,
    todays_stats,
)

__all__ = [
    "REPORT_RANGES",
    "RecordStatus",
    "ReportRange",
    "SessionStats",
    "filter_records",
    "record_status",
    "session_days",
    "sort_newest_first",
    "summarize",
    "todays_stats",
]
