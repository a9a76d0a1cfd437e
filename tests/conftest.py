"""Shared fixtures for the signaling tests."""

from __future__ import annotations

import pytest

from signal_node.signaling.dispatcher import Dispatcher
from signal_node.signaling.peer import Peer, PeerState
from signal_node.signaling.registry import PeerRegistry

from fakes import FakeConnection


@pytest.fixture
def registry() -> PeerRegistry:
    return PeerRegistry()


@pytest.fixture
def add_peer(registry):
    """Factory adding a peer with a fake connection to ``registry``."""

    def _add(
        state: PeerState = PeerState.NONE,
        address: str = "",
        open_: bool = True,
    ) -> Peer:
        peer = Peer(
            id=registry.allocate_id(),
            connection=FakeConnection(open_=open_),
            state=state,
            address=address,
        )
        registry.add(peer)
        return peer

    return _add


@pytest.fixture
def dispatcher(registry) -> Dispatcher:
    return Dispatcher(registry)


@pytest.fixture
def connect(dispatcher):
    """Factory connecting a fresh fake connection through the dispatcher."""

    def _connect() -> Peer:
        return dispatcher.connect(FakeConnection(), "127.0.0.1")

    return _connect
