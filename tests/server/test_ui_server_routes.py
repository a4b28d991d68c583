import asyncio
import json
import tempfile
import unittest
from pathlib import Path

from websockets.datastructures import Headers
from websockets.http11 import Request

from server import UIServer, UIServerConfig


def _request(path: str) -> Request:
    return Request(path=path, headers=Headers())


class UIServerRouteTests(unittest.TestCase):
    def setUp(self) -> None:
        self._temp_dir = tempfile.TemporaryDirectory()
        self.addCleanup(self._temp_dir.cleanup)
        root = Path(self._temp_dir.name)
        (root / "index.html").write_text("<html>timer</html>", encoding="utf-8")
        (root / "app.js").write_text("console.log('timer');", encoding="utf-8")
        self.server = UIServer(
            UIServerConfig(
                enabled=True,
                index_file=str(root / "index.html"),
                api_base_url="http://127.0.0.1:9000",
            )
        )

    def _get(self, path: str):
        return asyncio.run(self.server._process_request(None, _request(path)))

    def test_index_is_served_for_root_and_index_paths(self) -> None:
        for path in ("/", "/index.html", "/?tab=history"):
            with self.subTest(path=path):
                response = self._get(path)
                self.assertEqual(200, response.status_code)
                self.assertEqual(b"<html>timer</html>", response.body)
                self.assertEqual("no-store", response.headers["Cache-Control"])

    def test_client_config_exposes_api_base_url(self) -> None:
        response = self._get("/config.json")
        payload = json.loads(response.body)

        self.assertEqual("http://127.0.0.1:9000", payload["api_base_url"])
        self.assertEqual("/ws", payload["websocket_path"])

    def test_static_asset_and_missing_file(self) -> None:
        asset = self._get("/app.js")
        self.assertEqual(200, asset.status_code)
        self.assertIn("javascript", asset.headers["Content-Type"])

        missing = self._get("/nope.css")
        self.assertEqual(404, missing.status_code)

    def test_websocket_path_is_left_to_handshake(self) -> None:
        self.assertIsNone(self._get("/ws"))

    def test_healthz(self) -> None:
        response = self._get("/healthz")
        self.assertEqual(200, response.status_code)
        self.assertEqual(b"ok\n", response.body)

    def test_publish_without_running_loop_keeps_sticky_events(self) -> None:
        self.server.publish_state("focus", message="Focus running", awaiting_outcome=False)
        self.server.publish("notification", kind="info", title="Hi", body="")

        replay = [json.loads(item) for item in self.server._replay.snapshot()]
        self.assertEqual(["state_update"], [event["type"] for event in replay])
        self.assertEqual("focus", replay[0]["state"])
        self.assertEqual("Focus running", replay[0]["message"])
        self.assertFalse(self.server.is_running)
        self.assertEqual(0, self.server.client_count)

    def test_new_state_clears_sticky_error(self) -> None:
        self.server.publish("error", state="error", message="Could not save timer state")
        self.assertEqual(["error"], self._replayed_types())

        self.server.publish_state("setup", message="Ready")
        self.assertEqual(["state_update"], self._replayed_types())

    def _replayed_types(self) -> list[str]:
        return [json.loads(item)["type"] for item in self.server._replay.snapshot()]


if __name__ == "__main__":
    unittest.main()
