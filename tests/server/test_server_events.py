import datetime as dt
import json
import unittest

from server.events import StickyEventStore, make_event


class ServerEventsTests(unittest.TestCase):
    def test_make_event_serializes_timestamp_and_payload(self) -> None:
        now = dt.datetime(2026, 2, 21, 10, 0, tzinfo=dt.timezone.utc)
        raw = make_event("state_update", now_fn=lambda: now, state="setup", message="Ready")
        payload = json.loads(raw)

        self.assertEqual("state_update", payload["type"])
        self.assertEqual(now.isoformat(), payload["timestamp"])
        self.assertEqual("setup", payload["state"])
        self.assertEqual("Ready", payload["message"])

    def test_make_event_writes_nested_datetimes_as_iso(self) -> None:
        finish = dt.datetime(2026, 2, 21, 10, 25, tzinfo=dt.timezone.utc)
        payload = json.loads(make_event("timer", timer={"finish_at": finish, "tags": ("a",)}))

        self.assertEqual(finish.isoformat(), payload["timer"]["finish_at"])
        self.assertEqual(["a"], payload["timer"]["tags"])

    def test_make_event_rejects_unknown_objects(self) -> None:
        with self.assertRaises(TypeError):
            make_event("timer", value=object())

    def test_sticky_store_ignores_non_sticky_events(self) -> None:
        store = StickyEventStore()
        store.remember("hello", '{"type":"hello"}')
        store.remember("notification", '{"type":"notification"}')
        self.assertEqual([], store.snapshot())

    def test_sticky_store_snapshot_follows_stable_order(self) -> None:
        store = StickyEventStore()
        store.remember("state_update", '{"type":"state_update","n":1}')
        store.remember("error", '{"type":"error","n":2}')
        store.remember("preparation", '{"type":"preparation","n":3}')
        store.remember("timer", '{"type":"timer","n":4}')

        decoded_types = [json.loads(item)["type"] for item in store.snapshot()]
        self.assertEqual(
            ["timer", "preparation", "error", "state_update"],
            decoded_types,
        )

    def test_sticky_store_overwrites_latest_event_by_type(self) -> None:
        store = StickyEventStore()
        store.remember("timer", '{"type":"timer","remaining":10}')
        store.remember("timer", '{"type":"timer","remaining":9}')
        snapshot = store.snapshot()

        self.assertEqual(1, len(snapshot))
        self.assertEqual(9, json.loads(snapshot[0])["remaining"])

    def test_sticky_store_forget(self) -> None:
        store = StickyEventStore()
        store.remember("error", '{"type":"error"}')
        store.forget("error")
        store.forget("timer")
        self.assertEqual([], store.snapshot())


if __name__ == "__main__":
    unittest.main()
