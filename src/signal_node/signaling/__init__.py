"""Signaling core — peer registry, state machine, matching, relay, eviction."""

from signal_node.signaling.dispatcher import Dispatcher
from signal_node.signaling.evictor import evict_stale
from signal_node.signaling.matcher import Matcher
from signal_node.signaling.peer import Connection, Peer, PeerState
from signal_node.signaling.registry import PeerRegistry
from signal_node.signaling.relay import relay_message

__all__ = [
    "Connection",
    "Dispatcher",
    "Matcher",
    "Peer",
    "PeerRegistry",
    "PeerState",
    "evict_stale",
    "relay_message",
]
