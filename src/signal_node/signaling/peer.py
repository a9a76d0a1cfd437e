"""Peer model — one registered connection and its matchmaking state."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Protocol, runtime_checkable

logger = logging.getLogger(__name__)


class PeerState(str, Enum):
    """Matchmaking state of a peer."""

    NONE = "NONE"
    HOSTING = "HOSTING"
    PENDING = "PENDING"
    CONNECTING = "CONNECTING"
    COMPLETED = "COMPLETED"


@runtime_checkable
class Connection(Protocol):
    """Transport handle owned by a peer.

    ``send`` must not block: it either queues the text for delivery and
    returns True, or returns False when the connection can no longer
    deliver anything.
    """

    @property
    def is_open(self) -> bool: ...

    def send(self, text: str) -> bool: ...

    def close(self) -> None: ...


@dataclass
class Peer:
    """A live connection registered with the signaling node."""

    id: int
    connection: Connection
    state: PeerState = PeerState.NONE
    address: str = ""
    other_id: int = -1
    remote_addr: str = ""
    _closed: bool = field(default=False, repr=False)

    def __post_init__(self) -> None:
        if self.other_id < 0:
            self.other_id = self.id

    @property
    def is_matched(self) -> bool:
        """True while ``other_id`` references some other peer."""
        return self.other_id != self.id

    @property
    def is_open(self) -> bool:
        return not self._closed and self.connection.is_open

    def unmatch(self) -> None:
        self.other_id = self.id

    def send(self, text: str) -> bool:
        """Best-effort send; failures are logged and reported as False."""
        if not self.is_open:
            logger.debug("Dropping message to closed peer %d", self.id)
            return False
        try:
            return self.connection.send(text)
        except Exception:
            logger.warning("Failed to send message to peer %d", self.id, exc_info=True)
            return False

    def close(self) -> None:
        """Close the underlying connection. Only the first call has effect."""
        if self._closed:
            return
        self._closed = True
        try:
            self.connection.close()
        except Exception:
            logger.debug("Error closing connection of peer %d", self.id, exc_info=True)
