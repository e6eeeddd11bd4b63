import asyncio
import http.server
import json
import logging
import os
import socketserver
import threading
import typing

import websockets
import websockets.asyncio.server
import websockets.exceptions

logger = logging.getLogger(__name__)


class Transport (typing.Protocol):

    """The two controls a browser can press, plus state to show."""

    def start (self) -> None: ...

    def stop (self) -> None: ...

    def state (self) -> typing.Dict[str, typing.Any]: ...


class WebUI:

    """
    Browser Start/Stop control.

    Serves a small page over HTTP and listens on a WebSocket for
    ``{"command": "start"}`` and ``{"command": "stop"}``.  The current state
    is broadcast to every connected page ten times a second.
    """

    COMMANDS = ("start", "stop")

    def __init__ (self, transport: Transport, http_port: int = 8080, ws_port: int = 8765) -> None:

        self.transport = transport
        self.http_port = http_port
        self.ws_port = ws_port
        self._http_thread: typing.Optional[threading.Thread] = None
        self._httpd: typing.Optional[socketserver.TCPServer] = None
        self._ws_server: typing.Optional[websockets.asyncio.server.Server] = None
        self._broadcast_task: typing.Optional[asyncio.Task] = None
        self._clients: typing.Set[websockets.asyncio.server.ServerConnection] = set()

    async def start (self) -> None:

        await self._start_ws_server()
        self._start_http_server()

    def _start_http_server (self) -> None:

        if self._http_thread and self._http_thread.is_alive():
            return

        web_dir = os.path.join(os.path.dirname(__file__), "assets", "web")
        ws_port = self.ws_port

        class Handler (http.server.SimpleHTTPRequestHandler):

            def __init__ (self, *args: typing.Any, **kwargs: typing.Any) -> None:
                super().__init__(*args, directory=web_dir, **kwargs)

            def end_headers (self) -> None:
                # The page reads the WebSocket port from this cookie.
                self.send_header("Set-Cookie", f"ws_port={ws_port}; Path=/")
                super().end_headers()

            def log_message (self, format: str, *args: typing.Any) -> None:
                pass # Keep the console for the engine's own logging

        socketserver.TCPServer.allow_reuse_address = True
        self._httpd = socketserver.TCPServer(("", self.http_port), Handler)
        self.http_port = self._httpd.server_address[1]

        def run_server () -> None:
            assert self._httpd is not None
            try:
                self._httpd.serve_forever()
            except Exception as e:
                logger.error(f"HTTP Server error: {e}")

        self._http_thread = threading.Thread(target=run_server, daemon=True)
        self._http_thread.start()
        logger.info(f"Web UI available at http://localhost:{self.http_port}")

    def handle_message (self, message: typing.Union[str, bytes]) -> typing.Optional[str]:

        """Apply one client message; returns the command run, or None if ignored."""

        try:
            data = json.loads(message)
        except (TypeError, ValueError):
            logger.warning(f"Ignoring malformed Web UI message: {message!r}")
            return None

        command = data.get("command") if isinstance(data, dict) else None

        if command not in self.COMMANDS:
            logger.warning(f"Ignoring unknown Web UI command: {command!r}")
            return None

        if command == "start":
            self.transport.start()
        else:
            self.transport.stop()

        return command

    async def _handle_client (self, websocket: websockets.asyncio.server.ServerConnection) -> None:

        self._clients.add(websocket)
        try:
            async for message in websocket:
                # Opening the device on the first start can block briefly.
                try:
                    await asyncio.get_running_loop().run_in_executor(None, self.handle_message, message)
                except Exception:
                    # A device failure is kept by the player and ends playback from there.
                    logger.exception("Web UI command failed")
        except websockets.exceptions.ConnectionClosed:
            pass
        finally:
            self._clients.discard(websocket)

    async def _start_ws_server (self) -> None:

        self._ws_server = await websockets.asyncio.server.serve(self._handle_client, "0.0.0.0", self.ws_port)
        self.ws_port = next(iter(self._ws_server.sockets)).getsockname()[1]
        self._broadcast_task = asyncio.create_task(self._broadcast_loop())
        logger.info(f"Web UI control socket on port {self.ws_port}")

    async def _broadcast_loop (self) -> None:

        while True:
            await asyncio.sleep(0.1)

            if not self._clients:
                continue

            try:
                message = json.dumps(self.transport.state())
                websockets.asyncio.server.broadcast(self._clients, message)
            except Exception:
                logger.exception("Error broadcasting Web UI state")

    async def stop (self) -> None:

        if self._broadcast_task:
            self._broadcast_task.cancel()
            self._broadcast_task = None

        if self._ws_server:
            self._ws_server.close()
            await self._ws_server.wait_closed()
            self._ws_server = None

        if self._httpd:
            self._httpd.shutdown()
            self._httpd.server_close()
            self._httpd = None
