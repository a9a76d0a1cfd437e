"""Matcher — pairs a host with a joiner waiting at the same address.

The scan walks the registry in insertion order and takes the first open
peer of the opposite role at the same address, so the earliest waiting
peer is always served first. Only one pair is made per call; every
HOSTING, CONNECT and SUCCESS re-runs the matcher, which drains queued
peers one event at a time.
"""

from __future__ import annotations

import logging

from signal_node.signaling import protocol
from signal_node.signaling.evictor import MIN_REGISTRY_SIZE, STALE_ID_WINDOW, evict_stale
from signal_node.signaling.peer import Peer, PeerState
from signal_node.signaling.registry import PeerRegistry

logger = logging.getLogger(__name__)


class Matcher:
    """Binds hosts and joiners, then trims the registry."""

    def __init__(
        self,
        registry: PeerRegistry,
        min_registry_size: int = MIN_REGISTRY_SIZE,
        stale_id_window: int = STALE_ID_WINDOW,
    ) -> None:
        self.registry = registry
        self.min_registry_size = min_registry_size
        self.stale_id_window = stale_id_window

    def target_state(self, source: Peer) -> PeerState | None:
        """State a counterpart must be in to pair with *source*, if any."""
        if source.state == PeerState.HOSTING:
            if source.is_matched:
                logger.info("Host %d not ready to match atm", source.id)
                return None
            return PeerState.PENDING
        if source.state == PeerState.PENDING:
            return PeerState.HOSTING
        return None

    def find_candidate(self, source: Peer, target: PeerState) -> Peer | None:
        for peer in self.registry:
            if not peer.is_open:
                continue
            if peer.state == target and peer.address == source.address:
                return peer
        return None

    def try_match(self, source: Peer) -> Peer | None:
        """Try to pair *source* with a waiting counterpart.

        Returns:
            The counterpart that was paired with *source*, or None.
        """
        target = self.target_state(source)
        if target is None:
            return None

        match = self.find_candidate(source, target)
        if match is not None:
            self._bind(source, match)

        evict_stale(self.registry, self.min_registry_size, self.stale_id_window)
        return match

    def _bind(self, source: Peer, match: Peer) -> None:
        if source.state == PeerState.HOSTING:
            host, joiner = source, match
        else:
            host, joiner = match, source

        logger.info(
            "Match found between host %d and peer %d at %s",
            host.id,
            joiner.id,
            host.address,
        )
        joiner.state = PeerState.CONNECTING
        host.send(protocol.get_sdp())
        host.other_id = joiner.id
        joiner.other_id = host.id
