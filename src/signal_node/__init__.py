"""Rendezvous signaling node — pairs hosts and joiners and relays offers."""

__version__ = "0.1.0"
