from __future__ import annotations

import asyncio
import contextlib
import json
import logging
import threading
from pathlib import Path
from typing import Any, Callable, Optional
from urllib.parse import urlsplit

from websockets.asyncio.server import ServerConnection, broadcast, serve
from websockets.datastructures import Headers
from websockets.exceptions import ConnectionClosed
from websockets.http11 import Request, Response

from contracts.ui_protocol import EVENT_ERROR, EVENT_HELLO, EVENT_STATE_UPDATE, STATE_ERROR

from .config import HEALTHZ_PATH, INDEX_PATH, ROOT_PATH, UIServerConfig
from .events import StickyEventStore, make_event
from .static_files import guess_content_type, resolve_static_file

CLIENT_CONFIG_PATH = "/config.json"

_TEXT_PLAIN = "text/plain; charset=utf-8"


class UIServer:
    """Serves the timer page and streams timer events over a websocket.

    The server owns a private event loop on a daemon thread. ``publish`` may
    be called from any thread; the latest sticky events are replayed to every
    client that connects later.
    """

    def __init__(
        self,
        config: UIServerConfig,
        logger: Optional[logging.Logger] = None,
    ):
        self._config = config
        self._logger = logger or logging.getLogger("ui_server")
        self._thread: Optional[threading.Thread] = None
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._shutdown: Optional[asyncio.Event] = None
        self._ready = threading.Event()
        self._failure: Optional[Exception] = None
        self._clients: set[ServerConnection] = set()
        self._replay = StickyEventStore()
        self._index_html = Path(config.index_file).read_bytes()
        self._routes: dict[str, Callable[[], Response]] = {
            ROOT_PATH: self._index_response,
            INDEX_PATH: self._index_response,
            HEALTHZ_PATH: lambda: _response(200, "OK", b"ok\n", _TEXT_PLAIN),
            CLIENT_CONFIG_PATH: self._client_config_response,
        }

    @property
    def host(self) -> str:
        return self._config.host

    @property
    def port(self) -> int:
        return self._config.port

    @property
    def websocket_path(self) -> str:
        return self._config.websocket_path

    @property
    def client_count(self) -> int:
        return len(self._clients)

    @property
    def is_running(self) -> bool:
        thread = self._thread
        return thread is not None and thread.is_alive() and self._failure is None

    def start(self, timeout_seconds: float = 5.0) -> None:
        if self.is_running:
            self._logger.warning("UI server is already running")
            return

        self._failure = None
        self._ready.clear()
        self._thread = threading.Thread(target=self._thread_main, daemon=True, name="ui-server")
        self._thread.start()

        if not self._ready.wait(timeout_seconds):
            raise RuntimeError(f"UI server did not start within {timeout_seconds:.1f}s")
        if self._failure is not None:
            raise RuntimeError(f"UI server startup failed: {self._failure}")

    def stop(self, timeout_seconds: float = 5.0) -> None:
        thread = self._thread
        if thread is None:
            return

        if self._loop is not None and self._shutdown is not None:
            self._loop.call_soon_threadsafe(self._shutdown.set)
        thread.join(timeout=timeout_seconds)
        if thread.is_alive():
            self._logger.error("UI server thread did not stop within %.1fs", timeout_seconds)

        self._thread = None
        self._loop = None
        self._shutdown = None

    def publish_state(self, state: str, *, message: Optional[str] = None, **payload: Any) -> None:
        if message:
            payload["message"] = message
        self.publish(EVENT_STATE_UPDATE, state=state, **payload)

    def publish(self, event_type: str, **payload: Any) -> None:
        message = make_event(event_type, **payload)
        if event_type == EVENT_STATE_UPDATE and payload.get("state") != STATE_ERROR:
            self._replay.forget(EVENT_ERROR)
        # Remembered before the loop check so a restored timer reaches the first client.
        self._replay.remember(event_type, message)

        loop = self._loop
        if not self.is_running or loop is None:
            return
        with contextlib.suppress(RuntimeError):
            loop.call_soon_threadsafe(self._broadcast, message)

    def _broadcast(self, message: str) -> None:
        if self._clients:
            broadcast(tuple(self._clients), message)

    def _thread_main(self) -> None:
        loop = asyncio.new_event_loop()
        asyncio.set_event_loop(loop)
        self._loop = loop
        self._shutdown = asyncio.Event()
        try:
            loop.run_until_complete(self._serve_until_shutdown())
        except Exception as error:  # pragma: no cover - needs a real socket
            self._failure = error
            self._logger.error("UI server failed: %s", error, exc_info=True)
            self._ready.set()
        finally:
            pending = asyncio.all_tasks(loop)
            for task in pending:
                task.cancel()
            loop.run_until_complete(asyncio.gather(*pending, return_exceptions=True))
            loop.close()

    async def _serve_until_shutdown(self) -> None:
        async with serve(
            self._handle_client,
            host=self._config.host,
            port=self._config.port,
            process_request=self._process_request,
            logger=self._logger,
        ):
            self._logger.info(
                "UI server running at http://%s:%d (websocket: %s)",
                self._config.host,
                self._config.port,
                self._config.websocket_path,
            )
            self._ready.set()
            await self._shutdown.wait()
            closing = [
                client.close(code=1001, reason="Server shutting down")
                for client in tuple(self._clients)
            ]
            await asyncio.gather(*closing, return_exceptions=True)
            self._clients.clear()

    async def _handle_client(self, websocket: ServerConnection) -> None:
        request = websocket.request
        if request is None or urlsplit(request.path).path != self._config.websocket_path:
            await websocket.close(code=1008, reason="Invalid websocket path")
            return

        self._clients.add(websocket)
        self._logger.info("Client connected: %s", websocket.remote_address)
        try:
            await websocket.send(
                make_event(
                    EVENT_HELLO,
                    message="Timer websocket connected",
                    api_base_url=self._config.api_base_url,
                )
            )
            for message in self._replay.snapshot():
                await websocket.send(message)
            async for message in websocket:
                self._logger.debug("Ignoring client message: %s", message)
        except ConnectionClosed:
            self._logger.info("Client disconnected: %s", websocket.remote_address)
        finally:
            self._clients.discard(websocket)

    async def _process_request(
        self,
        connection: Optional[ServerConnection],
        request: Request,
    ) -> Optional[Response]:
        del connection
        path = urlsplit(request.path).path
        if path == self._config.websocket_path:
            return None

        route = self._routes.get(path)
        if route is not None:
            return route()

        static_path = resolve_static_file(self._config.ui_root, path)
        if static_path is None:
            return _response(404, "Not Found", b"not found\n", _TEXT_PLAIN)
        return _response(200, "OK", static_path.read_bytes(), guess_content_type(static_path))

    def _index_response(self) -> Response:
        return _response(200, "OK", self._index_html, "text/html; charset=utf-8")

    def _client_config_response(self) -> Response:
        body = json.dumps(
            {
                "api_base_url": self._config.api_base_url,
                "websocket_path": self._config.websocket_path,
            }
        ).encode("utf-8")
        return _response(200, "OK", body, "application/json; charset=utf-8")


def _response(status_code: int, reason_phrase: str, body: bytes, content_type: str) -> Response:
    headers = Headers()
    headers["Content-Type"] = content_type
    headers["Content-Length"] = str(len(body))
    headers["Cache-Control"] = "no-store"
    return Response(status_code, reason_phrase, headers, body)
