"""Tests for signal_node.signaling.peer.Peer."""

from __future__ import annotations

from signal_node.signaling.peer import Connection, Peer, PeerState

from fakes import FakeConnection


class TestPeer:
    def test_new_peer_is_unmatched(self):
        peer = Peer(id=7, connection=FakeConnection())
        assert peer.other_id == 7
        assert not peer.is_matched
        assert peer.state == PeerState.NONE
        assert peer.address == ""

    def test_unmatch_resets_sentinel(self):
        peer = Peer(id=3, connection=FakeConnection(), other_id=9)
        assert peer.is_matched
        peer.unmatch()
        assert peer.other_id == 3

    def test_fake_satisfies_protocol(self):
        assert isinstance(FakeConnection(), Connection)


class TestSend:
    def test_send_delivers(self):
        conn = FakeConnection()
        peer = Peer(id=0, connection=conn)
        assert peer.send("GET_SDP:") is True
        assert conn.sent == ["GET_SDP:"]

    def test_send_to_closed_connection(self):
        peer = Peer(id=0, connection=FakeConnection(open_=False))
        assert peer.send("x") is False

    def test_send_failure_is_swallowed(self):
        peer = Peer(id=0, connection=FakeConnection(fail_send=True))
        assert peer.send("x") is False


class TestClose:
    def test_close_once(self):
        conn = FakeConnection()
        peer = Peer(id=0, connection=conn)
        peer.close()
        peer.close()
        assert conn.close_calls == 1
        assert not peer.is_open

    def test_send_after_close(self):
        conn = FakeConnection()
        peer = Peer(id=0, connection=conn)
        peer.close()
        assert peer.send("x") is False
        assert conn.sent == []
