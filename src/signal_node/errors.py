"""Exceptions raised by the signaling node."""

from __future__ import annotations


class SignalNodeError(Exception):
    """Base class for all signal-node errors."""


class ConfigError(SignalNodeError):
    """Invalid or unreadable node configuration."""


class DuplicatePeerError(SignalNodeError):
    """A peer id was added to the registry twice."""

    def __init__(self, peer_id: int) -> None:
        super().__init__(f"peer {peer_id} is already registered")
        self.peer_id = peer_id
