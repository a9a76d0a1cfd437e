"""Tests for signal_node.signaling.relay."""

from __future__ import annotations

import pytest

from signal_node.signaling.peer import PeerState
from signal_node.signaling.relay import is_counterpart, relay_message


def pair(add_peer, address: str = "room1"):
    host = add_peer(PeerState.HOSTING, address)
    joiner = add_peer(PeerState.CONNECTING, address)
    host.other_id = joiner.id
    joiner.other_id = host.id
    return host, joiner


class TestDirections:
    def test_host_to_joiner(self, registry, add_peer):
        host, joiner = pair(add_peer)
        assert relay_message(registry, host, "POST_SDP:offer") == 1
        assert joiner.connection.sent == ["POST_SDP:offer"]
        assert host.connection.sent == []

    def test_joiner_to_host(self, registry, add_peer):
        host, joiner = pair(add_peer)
        assert relay_message(registry, joiner, "POST_SDP:answer") == 1
        assert host.connection.sent == ["POST_SDP:answer"]

    @pytest.mark.parametrize("state", [
        PeerState.NONE, PeerState.PENDING, PeerState.COMPLETED,
    ])
    def test_other_sender_states_dropped(self, registry, add_peer, state):
        host, joiner = pair(add_peer)
        joiner.state = state
        assert relay_message(registry, joiner, "POST_SDP:x") == 0
        assert host.connection.sent == []


class TestCrossReference:
    def test_not_forwarded_to_unrelated_joiner(self, registry, add_peer):
        host, joiner = pair(add_peer)
        stranger = add_peer(PeerState.CONNECTING, "room1")
        stranger.other_id = host.id  # one-sided reference
        relay_message(registry, host, "POST_SDP:offer")
        assert stranger.connection.sent == []
        assert joiner.connection.sent == ["POST_SDP:offer"]

    def test_rematched_host_breaks_old_pair(self, registry, add_peer):
        host, old_joiner = pair(add_peer)
        new_joiner = add_peer(PeerState.CONNECTING, "room1")
        host.other_id = new_joiner.id
        new_joiner.other_id = host.id

        assert relay_message(registry, old_joiner, "POST_SDP:late") == 0
        assert host.connection.sent == []

    def test_receiver_state_checked(self, registry, add_peer):
        host, joiner = pair(add_peer)
        joiner.state = PeerState.COMPLETED
        assert relay_message(registry, host, "POST_SDP:offer") == 0

    def test_dangling_reference_tolerated(self, registry, add_peer):
        host, joiner = pair(add_peer)
        registry.remove(joiner.id)
        assert relay_message(registry, host, "POST_SDP:offer") == 0

    def test_unmatched_never_counterpart_of_itself(self, add_peer):
        host = add_peer(PeerState.HOSTING, "room1")
        assert not is_counterpart(host, host)


class TestDelivery:
    def test_closed_destination_dropped(self, registry, add_peer):
        host, joiner = pair(add_peer)
        joiner.connection.open = False
        assert relay_message(registry, host, "POST_SDP:offer") == 0

    def test_payload_untouched(self, registry, add_peer):
        host, joiner = pair(add_peer)
        payload = "POST_SDP:" + "x" * 100_000 + ":é\r\n"
        relay_message(registry, host, payload)
        assert joiner.connection.sent == [payload]
