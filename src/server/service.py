from __future__ import annotations

import asyncio
import json
import logging
import threading
from http import HTTPStatus
from typing import Any, Callable, Optional
from urllib.parse import urlsplit

from websockets.asyncio.server import ServerConnection, broadcast, serve
from websockets.datastructures import Headers
from websockets.exceptions import ConnectionClosed
from websockets.http11 import Request, Response

from contracts.ui_protocol import EVENT_ERROR, EVENT_HELLO

from .config import HEALTHZ_PATH, UIServerConfig
from .events import CommandParseError, StickyEventStore, make_event, parse_command
from .static_files import StaticSite

CommandSink = Callable[[dict[str, Any]], None]

_TEXT_PLAIN = "text/plain; charset=utf-8"
_JSON = "application/json; charset=utf-8"


class UIServer:
    """Websocket and static-file server running on its own asyncio thread.

    Outgoing events are broadcast to every connected client, and the latest
    sticky event of each type is replayed on connect. Incoming messages are
    parsed as commands and handed to `command_sink` from the server thread,
    so the sink must be thread-safe (the runtime passes `Queue.put`).
    """

    def __init__(
        self,
        config: UIServerConfig,
        logger: Optional[logging.Logger] = None,
        command_sink: Optional[CommandSink] = None,
    ):
        self._config = config
        self._logger = logger or logging.getLogger("ui_server")
        self._command_sink = command_sink
        self._sticky_events = StickyEventStore()
        self._site = StaticSite(config.index_path)
        self._clients: set[ServerConnection] = set()

        self._thread: Optional[threading.Thread] = None
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._shutdown: Optional[asyncio.Event] = None
        self._ready = threading.Event()
        self._startup_error: Optional[BaseException] = None

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
    def is_running(self) -> bool:
        return self._loop is not None and self._thread is not None and self._thread.is_alive()

    def set_command_sink(self, command_sink: Optional[CommandSink]) -> None:
        self._command_sink = command_sink

    def start(self, timeout_seconds: float = 5.0) -> None:
        """Bind the listening socket on a background thread; raises `RuntimeError` on failure."""
        if self.is_running:
            self._logger.warning("UI server is already running")
            return

        self._ready.clear()
        self._startup_error = None
        self._thread = threading.Thread(
            target=self._thread_main,
            name="flow-ui-server",
            daemon=True,
        )
        self._thread.start()

        if not self._ready.wait(timeout_seconds):
            raise RuntimeError(f"UI server did not start within {timeout_seconds:.1f}s")
        if self._startup_error is not None:
            self._thread.join(timeout=timeout_seconds)
            self._thread = None
            raise RuntimeError(f"UI server startup failed: {self._startup_error}")

    def stop(self, timeout_seconds: float = 5.0) -> None:
        thread = self._thread
        if thread is None:
            return

        loop, shutdown = self._loop, self._shutdown
        if loop is not None and shutdown is not None:
            try:
                loop.call_soon_threadsafe(shutdown.set)
            except RuntimeError:
                pass  # loop already closed

        thread.join(timeout=timeout_seconds)
        if thread.is_alive():
            self._logger.error("UI server thread did not stop within %.1fs", timeout_seconds)
        self._thread = None

    def publish(self, event_type: str, **payload: Any) -> None:
        """Serialize an event, remember it if sticky, and fan it out to clients."""
        message = make_event(event_type, **payload)
        self._sticky_events.remember(event_type, message)

        loop = self._loop
        if loop is None:
            return
        try:
            loop.call_soon_threadsafe(self._broadcast, message)
        except RuntimeError:
            # The loop closed between the check and the call.
            return

    def _thread_main(self) -> None:
        try:
            asyncio.run(self._serve())
        except Exception as error:  # pragma: no cover - depends on socket availability
            self._startup_error = error
            self._logger.error("UI server failed: %s", error, exc_info=True)
        finally:
            self._loop = None
            self._shutdown = None
            self._ready.set()

    async def _serve(self) -> None:
        self._shutdown = asyncio.Event()
        async with serve(
            self._handle_connection,
            host=self._config.host,
            port=self._config.port,
            process_request=self._process_request,
            logger=self._logger,
        ):
            self._loop = asyncio.get_running_loop()
            self._logger.info(
                "UI server listening on %s:%d (websocket: %s)",
                self._config.host,
                self._config.port,
                self._config.websocket_path,
            )
            self._ready.set()
            await self._shutdown.wait()
            self._logger.info("UI server closing %d client(s)", len(self._clients))
        self._clients.clear()

    def _broadcast(self, message: str) -> None:
        if self._clients:
            broadcast(self._clients, message)

    async def _handle_connection(self, websocket: ServerConnection) -> None:
        request = websocket.request
        if request is None or urlsplit(request.path).path != self._config.websocket_path:
            await websocket.close(code=1008, reason="Invalid websocket path")
            return

        self._clients.add(websocket)
        self._logger.info("Client connected: %s", websocket.remote_address)
        try:
            await websocket.send(make_event(EVENT_HELLO, message="Flow timer connected"))
            for message in self._sticky_events.snapshot():
                await websocket.send(message)
            async for message in websocket:
                await self._handle_client_message(websocket, message)
        except ConnectionClosed:
            pass
        finally:
            self._clients.discard(websocket)
            self._logger.info("Client disconnected: %s", websocket.remote_address)

    async def _handle_client_message(
        self,
        websocket: ServerConnection,
        message: str | bytes,
    ) -> None:
        self._logger.debug("Received from UI: %s", message)
        try:
            command = parse_command(message)
        except CommandParseError as error:
            await websocket.send(make_event(EVENT_ERROR, message=str(error)))
            return

        sink = self._command_sink
        if sink is None:
            await websocket.send(
                make_event(EVENT_ERROR, message="Commands are not accepted right now")
            )
            return
        sink(command)

    def _process_request(
        self,
        connection: ServerConnection,
        request: Request,
    ) -> Optional[Response]:
        del connection
        path = urlsplit(request.path).path
        if path == self._config.websocket_path:
            return None

        if path == HEALTHZ_PATH:
            body = json.dumps({"status": "ok", "clients": len(self._clients)}).encode("utf-8")
            return _http_response(HTTPStatus.OK, body, _JSON)

        asset = self._site.lookup(path)
        if asset is None:
            return _http_response(HTTPStatus.NOT_FOUND, b"not found\n", _TEXT_PLAIN)
        return _http_response(HTTPStatus.OK, asset.body, asset.content_type)


def _http_response(status: HTTPStatus, body: bytes, content_type: str) -> Response:
    headers = Headers()
    headers["Content-Type"] = content_type
    headers["Content-Length"] = str(len(body))
    headers["Cache-Control"] = "no-store"
    return Response(status.value, status.phrase, headers, body)
