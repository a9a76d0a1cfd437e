"""Transport layer — websocket sessions plus a small HTTP status surface.

Uses aiohttp for both: every websocket upgrade becomes a peer session whose
frames are posted to the hub, and plain GET requests are answered with a
health banner or a JSON registry snapshot. Both share one port.
"""

from __future__ import annotations

import asyncio
import logging

from aiohttp import WSCloseCode, WSMsgType, web

from signal_node.hub import SignalingHub

logger = logging.getLogger(__name__)

HEALTH_TEXT = "ICE WebSocket Signaling Server Running\n"
BANNER_TEXT = "ICE WebSocket Signaling Server\nConnect via WebSocket to use signaling.\n"
DEFAULT_MAX_MESSAGE_SIZE = 4 * 1024 * 1024
DEFAULT_MAX_OUTBOX = 64


class WebSocketConnection:
    """Connection handle over an aiohttp websocket.

    Outbound text goes through a bounded outbox drained by a writer task,
    so :meth:`send` never blocks the caller. When the outbox is full the
    frame is dropped and :meth:`send` returns False. Frames queued before
    :meth:`close` are flushed before the socket is closed.
    """

    def __init__(self, ws: web.WebSocketResponse, max_outbox: int = DEFAULT_MAX_OUTBOX) -> None:
        self._ws = ws
        self._outbox: asyncio.Queue[str | None] = asyncio.Queue(maxsize=max_outbox)
        self._closing = False
        self._dropped = 0
        self._writer = asyncio.create_task(self._write_loop())

    @property
    def is_open(self) -> bool:
        return not self._closing and not self._ws.closed

    @property
    def backlog(self) -> int:
        """Frames queued but not yet written."""
        return self._outbox.qsize()

    @property
    def dropped(self) -> int:
        return self._dropped

    def send(self, text: str) -> bool:
        if not self.is_open:
            return False
        try:
            self._outbox.put_nowait(text)
        except asyncio.QueueFull:
            self._dropped += 1
            logger.warning(
                "Outbox full (%d frames), dropping message (%d dropped so far)",
                self._outbox.maxsize,
                self._dropped,
            )
            return False
        return True

    def close(self) -> None:
        if self._closing:
            return
        self._closing = True
        try:
            self._outbox.put_nowait(None)
        except asyncio.QueueFull:
            pass  # writer stops once the backlog is flushed

    async def wait_closed(self) -> None:
        """Wait for the writer to flush its backlog and close the socket."""
        await self._writer

    async def _write_loop(self) -> None:
        try:
            while not (self._closing and self._outbox.empty()):
                text = await self._outbox.get()
                if text is None:
                    break
                if self._ws.closed:
                    continue
                try:
                    await self._ws.send_str(text)
                except ConnectionError:
                    logger.debug("Send failed, socket is closing", exc_info=True)
                    self._closing = True
                    break
        finally:
            if not self._ws.closed:
                await self._ws.close()


class SignalingTransport:
    """aiohttp server exposing the signaling websocket and status pages."""

    def __init__(
        self,
        hub: SignalingHub,
        host: str = "0.0.0.0",
        port: int = 10000,
        max_message_size: int = DEFAULT_MAX_MESSAGE_SIZE,
        heartbeat: float | None = None,
        max_outbox: int = DEFAULT_MAX_OUTBOX,
    ) -> None:
        self.hub = hub
        self.host = host
        self.port = port
        self.max_message_size = max_message_size
        self.heartbeat = heartbeat
        self.max_outbox = max_outbox
        self._app = web.Application()
        self._runner: web.AppRunner | None = None
        self._sockets: set[web.WebSocketResponse] = set()

        self._app.router.add_get("/health", self._handle_health)
        self._app.router.add_get("/status", self._handle_status)
        self._app.router.add_get("/{tail:.*}", self._handle_root)
        self._app.on_shutdown.append(self._close_sockets)

    async def start(self) -> None:
        """Start the HTTP server."""
        self._runner = web.AppRunner(self._app)
        await self._runner.setup()
        site = web.TCPSite(self._runner, self.host, self.port)
        await site.start()
        logger.info("WebSocket server listening on ws://%s:%d", self.host, self.port)
        logger.info("HTTP health check available at http://%s:%d/health", self.host, self.port)

    async def stop(self) -> None:
        """Close every session and shut the server down."""
        if self._runner:
            await self._runner.cleanup()
            self._runner = None
        logger.info("Transport stopped")

    async def _close_sockets(self, app: web.Application) -> None:
        for ws in set(self._sockets):
            await ws.close(code=WSCloseCode.GOING_AWAY, message=b"Server shutdown")

    @staticmethod
    def _is_websocket(request: web.Request) -> bool:
        return request.headers.get("Upgrade", "").lower() == "websocket"

    async def _handle_websocket(self, request: web.Request) -> web.WebSocketResponse:
        """Run one peer session until the socket closes."""
        remote = request.remote or "unknown"
        logger.info("WebSocket upgrade request from %s", remote)

        ws = web.WebSocketResponse(
            heartbeat=self.heartbeat,
            max_msg_size=self.max_message_size,
        )
        await ws.prepare(request)
        self._sockets.add(ws)
        logger.info("WebSocket connection established from %s to path %s", remote, request.path)

        connection = WebSocketConnection(ws, self.max_outbox)
        peer_id = self.hub.connected(connection, remote)
        try:
            async for msg in ws:
                if msg.type in (WSMsgType.TEXT, WSMsgType.BINARY):
                    self.hub.received(peer_id, msg.data)
                elif msg.type == WSMsgType.ERROR:
                    self.hub.failed(peer_id, ws.exception())
                    break
        finally:
            self.hub.disconnected(peer_id)
            connection.close()
            await connection.wait_closed()
            self._sockets.discard(ws)
        return ws

    async def _handle_root(self, request: web.Request) -> web.StreamResponse:
        logger.debug("HTTP %s %s from %s", request.method, request.path, request.remote)
        if self._is_websocket(request):
            return await self._handle_websocket(request)
        if request.path == "/":
            return web.Response(text=BANNER_TEXT)
        raise web.HTTPNotFound()

    async def _handle_health(self, request: web.Request) -> web.StreamResponse:
        """Health check endpoint."""
        if self._is_websocket(request):
            return await self._handle_websocket(request)
        return web.Response(text=HEALTH_TEXT)

    async def _handle_status(self, request: web.Request) -> web.StreamResponse:
        """Registry snapshot for operators."""
        if self._is_websocket(request):
            return await self._handle_websocket(request)
        registry = self.hub.registry
        return web.json_response({
            "status": "healthy",
            "port": self.port,
            "peers": len(registry),
            "next_id": registry.next_id,
            "states": registry.counts_by_state(),
            "pending_events": self.hub.pending_events,
        })
