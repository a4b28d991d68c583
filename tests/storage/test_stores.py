import json
import tempfile
import unittest
from datetime import datetime, timedelta, timezone
from pathlib import Path

from pomodoro import SessionRecordDraft
from storage import (
    InvalidTaskError,
    JsonFileStore,
    SQLiteStore,
    StorageConfigurationError,
    build_store,
)


def _draft(task_id: str = "1", *, completed: bool = True) -> SessionRecordDraft:
    started = datetime(2026, 3, 2, 9, 0, tzinfo=timezone.utc)
    return SessionRecordDraft(
        task_id=task_id,
        task_name="Write report",
        started_at=started,
        ended_at=started + timedelta(minutes=25),
        planned_minutes=25,
        actual_minutes=25,
        finished_early=False,
        break_minutes=5,
        completed=completed,
    )


class StoreContractTests:
    """Behaviour shared by every store backend; mixed into concrete cases."""

    file_name = ""

    def make_store(self, path: Path):
        raise NotImplementedError

    async def asyncSetUp(self) -> None:
        self._temp_dir = tempfile.TemporaryDirectory()
        self.path = Path(self._temp_dir.name) / "nested" / self.file_name
        self.store = self.make_store(self.path)
        await self.store.initialize()

    async def asyncTearDown(self) -> None:
        await self.store.close()
        self._temp_dir.cleanup()

    async def test_create_and_list_tasks(self) -> None:
        first = await self.store.create_task("alice", "  Write report ", tags=["work", " ", "work"])
        second = await self.store.create_task("alice", "Read paper", notes=" ch. 3 ")

        tasks = await self.store.list_tasks("alice")
        self.assertEqual([first.id, second.id], [task.id for task in tasks])
        self.assertEqual("Write report", tasks[0].text)
        self.assertEqual(("work",), tasks[0].tags)
        self.assertEqual("ch. 3", tasks[1].notes)
        self.assertFalse(tasks[0].completed)
        self.assertIsNotNone(tasks[0].created_at)

    async def test_blank_task_text_is_rejected(self) -> None:
        with self.assertRaises(InvalidTaskError):
            await self.store.create_task("alice", "   ")

    async def test_tasks_are_scoped_by_user(self) -> None:
        task = await self.store.create_task("alice", "Private")

        self.assertEqual([], await self.store.list_tasks("bob"))
        self.assertIsNone(await self.store.get_task("bob", task.id))
        self.assertIsNone(await self.store.toggle_task("bob", task.id))
        self.assertFalse(await self.store.delete_task("bob", task.id))
        self.assertIsNotNone(await self.store.get_task("alice", task.id))

    async def test_update_task_changes_only_given_fields(self) -> None:
        task = await self.store.create_task("alice", "Draft", notes="n", tags=["a"])
        updated = await self.store.update_task("alice", task.id, text="Final", completed=True)

        self.assertEqual("Final", updated.text)
        self.assertEqual("n", updated.notes)
        self.assertEqual(("a",), updated.tags)
        self.assertTrue(updated.completed)

    async def test_update_missing_task_returns_none(self) -> None:
        self.assertIsNone(await self.store.update_task("alice", 404, text="x"))

    async def test_toggle_task_flips_completion(self) -> None:
        task = await self.store.create_task("alice", "Flip")

        self.assertTrue((await self.store.toggle_task("alice", task.id)).completed)
        self.assertFalse((await self.store.toggle_task("alice", task.id)).completed)

    async def test_delete_task(self) -> None:
        task = await self.store.create_task("alice", "Gone soon")

        self.assertTrue(await self.store.delete_task("alice", task.id))
        self.assertFalse(await self.store.delete_task("alice", task.id))
        self.assertEqual([], await self.store.list_tasks("alice"))

    async def test_session_records_round_trip(self) -> None:
        stored = await self.store.create_session_record("alice", _draft(completed=False))
        records = await self.store.list_session_records("alice")

        self.assertEqual(1, len(records))
        record = records[0]
        self.assertEqual(stored.id, record.id)
        self.assertEqual("1", record.task_id)
        self.assertEqual("Write report", record.task_name)
        self.assertEqual(25, record.planned_minutes)
        self.assertEqual(5, record.break_duration)
        self.assertFalse(record.completed)
        self.assertEqual(_draft().started_at, record.start_timestamp)
        self.assertEqual([], await self.store.list_session_records("bob"))

    async def test_state_blob_round_trip(self) -> None:
        self.assertIsNone(await self.store.load_state("alice", "timer_state"))

        await self.store.save_state("alice", "timer_state", {"phase": "focus"})
        await self.store.save_state("alice", "timer_state", {"phase": "break"})

        self.assertEqual({"phase": "break"}, await self.store.load_state("alice", "timer_state"))
        self.assertIsNone(await self.store.load_state("bob", "timer_state"))

    async def test_data_survives_reopen(self) -> None:
        await self.store.create_task("alice", "Persistent")
        await self.store.close()

        reopened = self.make_store(self.path)
        await reopened.initialize()
        tasks = await reopened.list_tasks("alice")
        self.assertEqual(["Persistent"], [task.text for task in tasks])


class SQLiteStoreTests(StoreContractTests, unittest.IsolatedAsyncioTestCase):
    file_name = "pomorange.db"

    def make_store(self, path: Path):
        return SQLiteStore(path)


class JsonFileStoreTests(StoreContractTests, unittest.IsolatedAsyncioTestCase):
    file_name = "pomorange.json"

    def make_store(self, path: Path):
        return JsonFileStore(path)

    async def test_file_uses_local_storage_keys(self) -> None:
        await self.store.create_task("alice", "Keyed")
        await self.store.create_session_record("alice", _draft())

        document = json.loads(self.path.read_text(encoding="utf-8"))
        bucket = document["users"]["alice"]
        self.assertEqual("Keyed", bucket["pomodoro_tasks"][0]["text"])
        self.assertEqual("1", bucket["pomodoro_records"][0]["task_id"])

    async def test_unreadable_file_is_treated_as_empty(self) -> None:
        self.path.write_text("{not json", encoding="utf-8")

        with self.assertLogs("storage.json", level="ERROR"):
            tasks = await self.store.list_tasks("alice")
        self.assertEqual([], tasks)

    async def test_ids_continue_after_delete(self) -> None:
        first = await self.store.create_task("alice", "One")
        second = await self.store.create_task("alice", "Two")
        await self.store.delete_task("alice", first.id)
        third = await self.store.create_task("alice", "Three")

        self.assertGreater(third.id, second.id)


class BuildStoreTests(unittest.TestCase):
    def test_selects_backend(self) -> None:
        self.assertIsInstance(build_store("sqlite", "x.db"), SQLiteStore)
        self.assertIsInstance(build_store(" JSON ", "x.json"), JsonFileStore)

    def test_rejects_unknown_backend(self) -> None:
        with self.assertRaises(StorageConfigurationError):
            build_store("postgres", "x")


if __name__ == "__main__":
    unittest.main()
