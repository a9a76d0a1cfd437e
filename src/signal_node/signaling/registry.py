"""Peer registry — the authoritative in-memory set of connected peers."""

from __future__ import annotations

from collections import Counter, OrderedDict
from typing import Iterator

from signal_node.errors import DuplicatePeerError
from signal_node.signaling.peer import Peer, PeerState


class PeerRegistry:
    """Peers keyed by id, kept in insertion order.

    The registry also hands out peer ids. Ids grow monotonically from zero
    and are never reused while the process runs.
    """

    def __init__(self) -> None:
        self._peers: OrderedDict[int, Peer] = OrderedDict()
        self._next_id = 0

    @property
    def next_id(self) -> int:
        """The id the next connection will receive."""
        return self._next_id

    def allocate_id(self) -> int:
        peer_id = self._next_id
        self._next_id += 1
        return peer_id

    def add(self, peer: Peer) -> None:
        if peer.id in self._peers:
            raise DuplicatePeerError(peer.id)
        self._peers[peer.id] = peer
        if peer.id >= self._next_id:
            self._next_id = peer.id + 1

    def remove(self, peer_id: int) -> Peer | None:
        """Remove a peer by id. Removing an absent id is a no-op."""
        return self._peers.pop(peer_id, None)

    def find(self, peer_id: int) -> Peer | None:
        return self._peers.get(peer_id)

    def counts_by_state(self) -> dict[str, int]:
        counts = Counter(peer.state for peer in self._peers.values())
        return {state.value: counts.get(state, 0) for state in PeerState}

    def __iter__(self) -> Iterator[Peer]:
        # Snapshot, so callers may remove peers while iterating.
        return iter(list(self._peers.values()))

    def __len__(self) -> int:
        return len(self._peers)

    def __contains__(self, peer_id: object) -> bool:
        return peer_id in self._peers
