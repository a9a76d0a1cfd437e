"""Eviction of stale peers once the registry grows past a low-water mark.

Staleness is measured in arrival order, not wall-clock time: a peer that is
not hosting is stale once ``stale_id_window`` newer connections have been
accepted after it. Hosts are never evicted for age.
"""

from __future__ import annotations

import logging

from signal_node.signaling.peer import Peer, PeerState
from signal_node.signaling.registry import PeerRegistry

logger = logging.getLogger(__name__)

MIN_REGISTRY_SIZE = 32   # Below this, eviction never runs
STALE_ID_WINDOW = 64     # Ids a non-host may fall behind next_id


def is_evictable(peer: Peer, next_id: int, stale_id_window: int = STALE_ID_WINDOW) -> bool:
    if not peer.is_open:
        return True
    return peer.state != PeerState.HOSTING and peer.id + stale_id_window < next_id


def evict_stale(
    registry: PeerRegistry,
    min_registry_size: int = MIN_REGISTRY_SIZE,
    stale_id_window: int = STALE_ID_WINDOW,
) -> list[Peer]:
    """Drop closed peers and stale non-hosts.

    Returns:
        The evicted peers, each already removed and closed.
    """
    original_count = len(registry)
    if original_count < min_registry_size:
        return []

    next_id = registry.next_id
    evicted: list[Peer] = []
    for peer in registry:
        if is_evictable(peer, next_id, stale_id_window):
            registry.remove(peer.id)
            peer.close()
            evicted.append(peer)

    logger.info(
        "Cleanup: %d active peers remaining from %d peers",
        len(registry),
        original_count,
    )
    return evicted
