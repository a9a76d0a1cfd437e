"""Command dispatcher — the peer state machine.

Each inbound message is parsed into a command and applied to the sending
peer:

  NONE       + HOSTING:<addr>  -> HOSTING    (match)
  NONE       + CONNECT:<addr>  -> PENDING    (match)
  HOSTING    + POST_SDP:<data> -> HOSTING    (relay to joiner)
  CONNECTING + POST_SDP:<data> -> CONNECTING (relay to host)
  CONNECTING + SUCCESS:        -> COMPLETED
  HOSTING    + SUCCESS:        -> HOSTING    (unmatch, match next joiner)
  any        + ECHO:<data>     -> unchanged  (message sent back)

Anything else leaves the peer untouched and gets no reply.
"""

from __future__ import annotations

import logging
from typing import Callable

from signal_node.signaling import protocol
from signal_node.signaling.evictor import MIN_REGISTRY_SIZE, STALE_ID_WINDOW
from signal_node.signaling.matcher import Matcher
from signal_node.signaling.peer import Connection, Peer, PeerState
from signal_node.signaling.registry import PeerRegistry
from signal_node.signaling.relay import relay_message

logger = logging.getLogger(__name__)


class Dispatcher:
    """Applies transport events to the registry.

    Every method runs to completion without awaiting, so callers that
    invoke them from a single task never observe a half-applied event.
    """

    def __init__(
        self,
        registry: PeerRegistry | None = None,
        min_registry_size: int = MIN_REGISTRY_SIZE,
        stale_id_window: int = STALE_ID_WINDOW,
    ) -> None:
        self.registry = registry if registry is not None else PeerRegistry()
        self.matcher = Matcher(self.registry, min_registry_size, stale_id_window)
        self._handlers: dict[type, Callable[[Peer, protocol.Command], None]] = {
            protocol.Hosting: self._on_hosting,
            protocol.Connect: self._on_connect_request,
            protocol.PostSdp: self._on_post_sdp,
            protocol.Success: self._on_success,
            protocol.Echo: self._on_echo,
        }

    # ── Transport events ─────────────────────────────────────────────

    def connect(
        self,
        connection: Connection,
        remote_addr: str = "",
        peer_id: int | None = None,
    ) -> Peer:
        """Register a new connection as a peer in state NONE."""
        if peer_id is None:
            peer_id = self.registry.allocate_id()
        peer = Peer(id=peer_id, connection=connection, remote_addr=remote_addr)
        self.registry.add(peer)
        logger.info("Peer %d connected from %s", peer.id, remote_addr or "unknown")
        return peer

    def message(self, peer_id: int, data: str | bytes) -> None:
        peer = self.registry.find(peer_id)
        if peer is None:
            logger.debug("Message for unknown peer %d dropped", peer_id)
            return

        command = protocol.parse_command(data)
        if command is None:
            return
        handler = self._handlers.get(type(command))
        if handler is None:
            logger.debug("Ignoring unrecognized message from peer %d", peer.id)
            return
        handler(peer, command)

    def disconnect(self, peer_id: int) -> None:
        peer = self.registry.remove(peer_id)
        if peer is None:
            return
        peer.close()
        logger.info("Peer %d disconnected", peer_id)

    def error(self, peer_id: int, exc: BaseException | None = None) -> None:
        logger.warning("Transport error for peer %d: %s", peer_id, exc)
        peer = self.registry.remove(peer_id)
        if peer is not None:
            peer.close()

    # ── Commands ─────────────────────────────────────────────────────

    def _on_hosting(self, peer: Peer, command: protocol.Hosting) -> None:
        if peer.state != PeerState.NONE:
            logger.debug("Peer %d already %s, ignoring HOSTING", peer.id, peer.state.value)
            return
        peer.state = PeerState.HOSTING
        peer.address = command.address
        logger.info("Peer %d wants to host: %s", peer.id, peer.address)
        self.matcher.try_match(peer)

    def _on_connect_request(self, peer: Peer, command: protocol.Connect) -> None:
        if peer.state != PeerState.NONE:
            logger.debug("Peer %d already %s, ignoring CONNECT", peer.id, peer.state.value)
            return
        peer.state = PeerState.PENDING
        peer.address = command.address
        logger.info("Peer %d wants to connect to: %s", peer.id, peer.address)
        self.matcher.try_match(peer)

    def _on_post_sdp(self, peer: Peer, command: protocol.PostSdp) -> None:
        logger.debug("Received SDP from peer %d with %d bytes", peer.id, len(command.payload))
        if peer.state in (PeerState.HOSTING, PeerState.CONNECTING):
            relay_message(self.registry, peer, command.raw)

    def _on_success(self, peer: Peer, command: protocol.Success) -> None:
        logger.info("Peer %d reports successful connection", peer.id)
        if peer.state == PeerState.CONNECTING:
            peer.state = PeerState.COMPLETED
        elif peer.state == PeerState.HOSTING:
            peer.unmatch()
            self.matcher.try_match(peer)

    def _on_echo(self, peer: Peer, command: protocol.Echo) -> None:
        logger.debug("Peer %d echo request with %d bytes", peer.id, len(command.data))
        peer.send(command.raw)
