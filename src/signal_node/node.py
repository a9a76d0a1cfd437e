"""Signal node — wires the signaling core to the websocket transport.

A node:
1. Accepts websocket sessions and HTTP status requests on one port
2. Queues every session event on the hub, in arrival order
3. Applies events to the peer registry through the dispatcher
4. Pairs hosts with joiners and relays their negotiation payloads
5. Evicts stale peers once the registry grows large
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, fields
from typing import Any

from signal_node.errors import ConfigError
from signal_node.hub import SignalingHub
from signal_node.signaling.dispatcher import Dispatcher
from signal_node.signaling.evictor import MIN_REGISTRY_SIZE, STALE_ID_WINDOW
from signal_node.signaling.registry import PeerRegistry
from signal_node.transport import DEFAULT_MAX_MESSAGE_SIZE, DEFAULT_MAX_OUTBOX, SignalingTransport

logger = logging.getLogger(__name__)


@dataclass
class SignalNodeConfig:
    """Configuration for a signal node."""

    host: str = "0.0.0.0"
    port: int = 10000

    # Eviction: runs once the registry holds min_registry_size peers and
    # drops non-hosts more than stale_id_window ids behind the next id.
    min_registry_size: int = MIN_REGISTRY_SIZE
    stale_id_window: int = STALE_ID_WINDOW

    # Transport
    max_message_size: int = DEFAULT_MAX_MESSAGE_SIZE
    heartbeat: float | None = None  # Websocket ping interval, seconds
    max_outbox: int = DEFAULT_MAX_OUTBOX  # Frames queued per socket before dropping

    def validate(self) -> None:
        """Raise ConfigError if any field is out of range."""
        if not isinstance(self.port, int) or not 0 <= self.port <= 65535:
            raise ConfigError(f"port must be between 0 and 65535, got {self.port!r}")
        if not isinstance(self.host, str) or not self.host:
            raise ConfigError("host must be a non-empty string")
        for name in ("min_registry_size", "stale_id_window", "max_message_size", "max_outbox"):
            value = getattr(self, name)
            if not isinstance(value, int) or value < 1:
                raise ConfigError(f"{name} must be a positive integer, got {value!r}")
        if self.heartbeat is not None and (
            not isinstance(self.heartbeat, (int, float)) or self.heartbeat <= 0
        ):
            raise ConfigError(f"heartbeat must be positive, got {self.heartbeat!r}")

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> SignalNodeConfig:
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(raw) - known)
        if unknown:
            raise ConfigError(f"unknown config keys: {', '.join(unknown)}")
        config = cls(**raw)
        config.validate()
        return config


class SignalNode:
    """The rendezvous node.

    Ties together the registry, the dispatcher, the event hub and the
    websocket transport.
    """

    def __init__(self, config: SignalNodeConfig | None = None) -> None:
        self.config = config or SignalNodeConfig()
        self.registry = PeerRegistry()
        self.dispatcher = Dispatcher(
            self.registry,
            min_registry_size=self.config.min_registry_size,
            stale_id_window=self.config.stale_id_window,
        )
        self.hub = SignalingHub(self.dispatcher)
        self.transport = SignalingTransport(
            self.hub,
            host=self.config.host,
            port=self.config.port,
            max_message_size=self.config.max_message_size,
            heartbeat=self.config.heartbeat,
            max_outbox=self.config.max_outbox,
        )
        self._running = False

    @property
    def running(self) -> bool:
        return self._running

    async def start(self) -> None:
        """Start consuming events, then accept connections."""
        self.hub.start()
        await self.transport.start()
        self._running = True
        logger.info(
            "Signal node started: port=%d min_registry_size=%d stale_id_window=%d",
            self.config.port,
            self.config.min_registry_size,
            self.config.stale_id_window,
        )

    async def stop(self) -> None:
        """Stop accepting connections and drain the remaining events."""
        if not self._running:
            return
        self._running = False
        await self.transport.stop()
        await self.hub.stop()
        logger.info("Signal node stopped")
