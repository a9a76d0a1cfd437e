"""Tests for signal_node.signaling.evictor."""

from __future__ import annotations

from signal_node.signaling.evictor import (
    MIN_REGISTRY_SIZE,
    STALE_ID_WINDOW,
    evict_stale,
    is_evictable,
)
from signal_node.signaling.peer import PeerState


def fill(registry, add_peer, count: int, state: PeerState = PeerState.PENDING):
    return [add_peer(state, f"room{i}") for i in range(count)]


def advance_ids(registry, count: int) -> None:
    """Simulate connections that came and went."""
    for _ in range(count):
        registry.allocate_id()


class TestThreshold:
    def test_defaults(self):
        assert MIN_REGISTRY_SIZE == 32
        assert STALE_ID_WINDOW == 64

    def test_below_threshold_never_evicts(self, registry, add_peer):
        peers = fill(registry, add_peer, MIN_REGISTRY_SIZE - 1)
        advance_ids(registry, 1000)
        peers[0].connection.open = False
        assert evict_stale(registry) == []
        assert len(registry) == MIN_REGISTRY_SIZE - 1

    def test_forty_pending_within_window_retained(self, registry, add_peer):
        fill(registry, add_peer, 40)
        assert registry.next_id == 40
        assert evict_stale(registry) == []
        assert len(registry) == 40


class TestPolicy:
    def test_stale_non_hosts_evicted_and_closed(self, registry, add_peer):
        old = fill(registry, add_peer, MIN_REGISTRY_SIZE)
        advance_ids(registry, STALE_ID_WINDOW)
        evicted = evict_stale(registry)
        assert len(evicted) == MIN_REGISTRY_SIZE
        assert len(registry) == 0
        assert all(p.connection.close_calls == 1 for p in old)

    def test_window_boundary(self, registry, add_peer):
        peers = fill(registry, add_peer, MIN_REGISTRY_SIZE)
        # next_id = 64: no peer satisfies id + 64 < next_id yet.
        advance_ids(registry, 32)
        assert evict_stale(registry) == []
        # next_id = 65: id 0 is now stale, id 1 is not.
        advance_ids(registry, 1)
        evicted = evict_stale(registry)
        assert [p.id for p in evicted] == [peers[0].id]

    def test_hosts_never_evicted_for_age(self, registry, add_peer):
        hosts = fill(registry, add_peer, MIN_REGISTRY_SIZE, PeerState.HOSTING)
        advance_ids(registry, 10_000)
        assert evict_stale(registry) == []
        assert all(h.id in registry for h in hosts)

    def test_closed_peers_dropped_regardless_of_age(self, registry, add_peer):
        hosts = fill(registry, add_peer, MIN_REGISTRY_SIZE, PeerState.HOSTING)
        hosts[3].connection.open = False
        evicted = evict_stale(registry)
        assert evicted == [hosts[3]]
        assert hosts[3].id not in registry

    def test_completed_and_connecting_are_evictable(self, registry, add_peer):
        completed = add_peer(PeerState.COMPLETED, "a")
        connecting = add_peer(PeerState.CONNECTING, "a")
        fill(registry, add_peer, MIN_REGISTRY_SIZE, PeerState.HOSTING)
        advance_ids(registry, STALE_ID_WINDOW)
        evicted = evict_stale(registry)
        assert set(p.id for p in evicted) == {completed.id, connecting.id}

    def test_custom_thresholds(self, registry, add_peer):
        peers = fill(registry, add_peer, 3)
        evicted = evict_stale(registry, min_registry_size=3, stale_id_window=2)
        assert [p.id for p in evicted] == [peers[0].id]


class TestIsEvictable:
    def test_fresh_pending(self, add_peer):
        peer = add_peer(PeerState.PENDING, "a")
        assert not is_evictable(peer, next_id=peer.id + 1)

    def test_old_pending(self, add_peer):
        peer = add_peer(PeerState.PENDING, "a")
        assert is_evictable(peer, next_id=peer.id + STALE_ID_WINDOW + 1)

    def test_old_host(self, add_peer):
        peer = add_peer(PeerState.HOSTING, "a")
        assert not is_evictable(peer, next_id=peer.id + 10_000)
