"""Relay — forwards negotiation payloads within a matched pair."""

from __future__ import annotations

import logging

from signal_node.signaling.peer import Peer, PeerState
from signal_node.signaling.registry import PeerRegistry

logger = logging.getLogger(__name__)

# Sender state -> state the receiving side of the pair must be in
RELAY_DIRECTIONS: dict[PeerState, PeerState] = {
    PeerState.HOSTING: PeerState.CONNECTING,
    PeerState.CONNECTING: PeerState.HOSTING,
}


def is_counterpart(sender: Peer, peer: Peer) -> bool:
    """Both sides reference each other, and neither is unmatched."""
    return (
        peer.id != sender.id
        and peer.other_id == sender.id
        and sender.other_id == peer.id
    )


def relay_message(registry: PeerRegistry, sender: Peer, message: str) -> int:
    """Forward *message* unchanged to the sender's matched counterpart.

    The ``other_id`` references are re-checked against the registry, so a
    pair broken by a disconnect or a re-match is never written to.

    Returns:
        Number of peers the message was handed to.
    """
    receiver_state = RELAY_DIRECTIONS.get(sender.state)
    if receiver_state is None:
        logger.debug("Not relaying from peer %d in state %s", sender.id, sender.state.value)
        return 0

    delivered = 0
    for peer in registry:
        if peer.state != receiver_state or not is_counterpart(sender, peer):
            continue
        if peer.send(message):
            delivered += 1
        logger.debug(
            "Relaying msg from %s %d to %s %d with %d bytes",
            "host" if sender.state == PeerState.HOSTING else "peer",
            sender.id,
            "peer" if sender.state == PeerState.HOSTING else "host",
            peer.id,
            len(message),
        )
    return delivered
