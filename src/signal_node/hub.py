"""Event hub — funnels transport events into the dispatcher one at a time.

Transport handlers run as many concurrent tasks, one per websocket. They
never touch the registry; they post events here instead, and a single
consumer task applies them in arrival order.

The hub also numbers the peers: ids are handed out when the connect event
is queued, so every later event for that socket already carries its id.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from enum import Enum

from signal_node.signaling.dispatcher import Dispatcher
from signal_node.signaling.peer import Connection
from signal_node.signaling.registry import PeerRegistry

logger = logging.getLogger(__name__)


class EventKind(str, Enum):
    CONNECT = "connect"
    MESSAGE = "message"
    DISCONNECT = "disconnect"
    ERROR = "error"


@dataclass(frozen=True)
class PeerEvent:
    """One transport event, tagged with the id of the peer it concerns."""

    kind: EventKind
    peer_id: int
    data: str | bytes | None = None
    connection: Connection | None = None
    remote_addr: str = ""
    error: BaseException | None = None


class SignalingHub:
    """Single-consumer event queue in front of a :class:`Dispatcher`.

    Peer ids come from the hub's own counter, which starts at the
    registry's ``next_id``. The hub must be the only source of new peers.
    """

    def __init__(self, dispatcher: Dispatcher | None = None) -> None:
        self.dispatcher = dispatcher or Dispatcher()
        self._queue: asyncio.Queue[PeerEvent | None] = asyncio.Queue()
        self._task: asyncio.Task | None = None
        self._next_id = self.registry.next_id

    @property
    def registry(self) -> PeerRegistry:
        return self.dispatcher.registry

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    @property
    def pending_events(self) -> int:
        return self._queue.qsize()

    # ── Producers (called from transport tasks) ──────────────────────

    def connected(self, connection: Connection, remote_addr: str = "") -> int:
        """Queue a connect event and return the id assigned to the peer."""
        peer_id = self._next_id
        self._next_id += 1
        self.submit(PeerEvent(
            EventKind.CONNECT,
            peer_id,
            connection=connection,
            remote_addr=remote_addr,
        ))
        return peer_id

    def received(self, peer_id: int, data: str | bytes) -> None:
        self.submit(PeerEvent(EventKind.MESSAGE, peer_id, data=data))

    def disconnected(self, peer_id: int) -> None:
        self.submit(PeerEvent(EventKind.DISCONNECT, peer_id))

    def failed(self, peer_id: int, error: BaseException | None) -> None:
        self.submit(PeerEvent(EventKind.ERROR, peer_id, error=error))

    def submit(self, event: PeerEvent) -> None:
        self._queue.put_nowait(event)

    # ── Consumer ─────────────────────────────────────────────────────

    def apply(self, event: PeerEvent) -> None:
        """Apply a single event to the dispatcher."""
        if event.kind == EventKind.CONNECT:
            if event.connection is None:
                raise ValueError("connect event without a connection")
            self.dispatcher.connect(event.connection, event.remote_addr, peer_id=event.peer_id)
        elif event.kind == EventKind.MESSAGE:
            if event.data is not None:
                self.dispatcher.message(event.peer_id, event.data)
        elif event.kind == EventKind.DISCONNECT:
            self.dispatcher.disconnect(event.peer_id)
        elif event.kind == EventKind.ERROR:
            self.dispatcher.error(event.peer_id, event.error)

    async def run(self) -> None:
        """Consume events until :meth:`stop` is called."""
        while True:
            event = await self._queue.get()
            try:
                if event is None:
                    return
                self.apply(event)
            except Exception:
                logger.exception(
                    "Error handling %s event for peer %d",
                    event.kind.value,
                    event.peer_id,
                )
            finally:
                self._queue.task_done()

    def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.create_task(self.run())

    async def drain(self) -> None:
        """Wait until every queued event has been applied."""
        await self._queue.join()

    async def stop(self) -> None:
        """Apply the events already queued, then stop the consumer."""
        task = self._task
        if task is None or task.done():
            return
        self._queue.put_nowait(None)
        self._task = None
        await task
