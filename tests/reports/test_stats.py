import unittest
from datetime import date, datetime, timedelta, timezone

from reports import (
    filter_records,
    record_status,
    session_days,
    sort_newest_first,
    summarize,
    todays_stats,
)
from storage import SessionRecord

# Wednesday
NOW = datetime(2026, 3, 18, 15, 0, tzinfo=timezone.utc)


def _record(
    record_id: int,
    start: datetime,
    *,
    actual_minutes: int = 25,
    completed: bool = True,
    finished_early: bool = False,
) -> SessionRecord:
    return SessionRecord(
        id=record_id,
        user_id="alice",
        task_id="1",
        task_name="Task",
        start_timestamp=start,
        end_timestamp=start + timedelta(minutes=actual_minutes),
        planned_minutes=25,
        actual_minutes=actual_minutes,
        actual_finished_early=finished_early,
        break_duration=5,
        completed=completed,
    )


class RecordStatusTests(unittest.TestCase):
    def test_early_finish_wins(self) -> None:
        record = _record(1, NOW, completed=True, finished_early=True)
        self.assertEqual("early_finish", record_status(record))

    def test_completed_and_incomplete(self) -> None:
        self.assertEqual("completed", record_status(_record(1, NOW)))
        self.assertEqual("incomplete", record_status(_record(2, NOW, completed=False)))


class FilterRecordsTests(unittest.TestCase):
    def setUp(self) -> None:
        self.today = _record(1, NOW.replace(hour=9))
        self.monday = _record(2, datetime(2026, 3, 16, 8, 0, tzinfo=timezone.utc))
        self.last_sunday = _record(3, datetime(2026, 3, 15, 20, 0, tzinfo=timezone.utc))
        self.last_month = _record(4, datetime(2026, 2, 27, 10, 0, tzinfo=timezone.utc))
        self.records = [self.today, self.monday, self.last_sunday, self.last_month]

    def _ids(self, range_name: str) -> list[int]:
        return [record.id for record in filter_records(self.records, range_name, NOW)]

    def test_today(self) -> None:
        self.assertEqual([1], self._ids("today"))

    def test_week_starts_on_monday(self) -> None:
        self.assertEqual([1, 2], self._ids("week"))

    def test_month(self) -> None:
        self.assertEqual([1, 2, 3], self._ids("month"))

    def test_all(self) -> None:
        self.assertEqual([1, 2, 3, 4], self._ids("all"))

    def test_unknown_range_raises(self) -> None:
        with self.assertRaises(ValueError):
            filter_records(self.records, "year", NOW)

    def test_local_date_follows_now_timezone(self) -> None:
        tokyo = timezone(timedelta(hours=9))
        late_utc = _record(5, datetime(2026, 3, 17, 20, 0, tzinfo=timezone.utc))
        now_tokyo = datetime(2026, 3, 18, 10, 0, tzinfo=tokyo)

        selected = filter_records([late_utc], "today", now_tokyo)
        self.assertEqual([5], [record.id for record in selected])


class SummaryTests(unittest.TestCase):
    def test_sort_newest_first(self) -> None:
        older = _record(1, NOW - timedelta(hours=2))
        newer = _record(2, NOW)
        self.assertEqual([2, 1], [r.id for r in sort_newest_first([older, newer])])

    def test_summarize(self) -> None:
        stats = summarize(
            [
                _record(1, NOW, actual_minutes=25),
                _record(2, NOW, actual_minutes=10, completed=False),
                _record(3, NOW, actual_minutes=11, finished_early=True),
            ]
        )

        self.assertEqual(3, stats.total_sessions)
        self.assertEqual(46, stats.total_focus_minutes)
        self.assertEqual(2, stats.completed_sessions)
        self.assertEqual(15.33, stats.average_session_minutes)

    def test_summarize_empty(self) -> None:
        stats = summarize([])
        self.assertEqual(0, stats.total_sessions)
        self.assertEqual(0.0, stats.average_session_minutes)

    def test_todays_stats_ignores_other_days(self) -> None:
        stats = todays_stats(
            [_record(1, NOW), _record(2, NOW - timedelta(days=1))],
            NOW,
        )
        self.assertEqual(1, stats.total_sessions)
        self.assertEqual(25, stats.total_focus_minutes)


class SessionDaysTests(unittest.TestCase):
    def test_distinct_sorted_days_in_month(self) -> None:
        records = [
            _record(1, datetime(2026, 3, 18, 9, tzinfo=timezone.utc)),
            _record(2, datetime(2026, 3, 2, 9, tzinfo=timezone.utc)),
            _record(3, datetime(2026, 3, 18, 14, tzinfo=timezone.utc)),
            _record(4, datetime(2026, 4, 1, 9, tzinfo=timezone.utc)),
        ]

        days = session_days(records, 2026, 3, tz=timezone.utc)
        self.assertEqual([date(2026, 3, 2), date(2026, 3, 18)], days)

    def test_rejects_invalid_month(self) -> None:
        with self.assertRaises(ValueError):
            session_days([], 2026, 13)


if __name__ == "__main__":
    unittest.main()
