"""Wire protocol — line-oriented text commands exchanged over websocket.

Every message is ``KEYWORD:<argument>``. The keyword is everything before
the first colon and must match exactly; anything that does not parse is an
``Unknown`` command and is ignored by the dispatcher.

Peer to node:
  - ``HOSTING:<addr>``     host at an address identifier
  - ``CONNECT:<addr>``     join the host at an address identifier
  - ``POST_SDP:<payload>`` negotiation payload for the matched peer
  - ``SUCCESS:``           negotiation finished out-of-band
  - ``ECHO:<data>``        loop-back diagnostic

Node to peer:
  - ``GET_SDP:``           host should produce and post its offer
  - ``POST_SDP:<payload>`` relayed verbatim from the matched peer
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Union

SEPARATOR = ":"

HOSTING = "HOSTING"
CONNECT = "CONNECT"
GET_SDP = "GET_SDP"
POST_SDP = "POST_SDP"
SUCCESS = "SUCCESS"
ECHO = "ECHO"


@dataclass(frozen=True)
class Hosting:
    address: str


@dataclass(frozen=True)
class Connect:
    address: str


@dataclass(frozen=True)
class PostSdp:
    """A negotiation payload. ``raw`` is the full message as relayed."""

    payload: str
    raw: str


@dataclass(frozen=True)
class Success:
    pass


@dataclass(frozen=True)
class Echo:
    data: str
    raw: str


@dataclass(frozen=True)
class Unknown:
    raw: str


Command = Union[Hosting, Connect, PostSdp, Success, Echo, Unknown]


def decode_text(data: str | bytes) -> str | None:
    """Decode an inbound frame, or None if it is not valid UTF-8."""
    if isinstance(data, str):
        return data
    try:
        return data.decode("utf-8")
    except UnicodeDecodeError:
        return None


def parse_command(data: str | bytes) -> Command | None:
    """Parse one inbound message.

    Returns None for messages that are empty after trimming whitespace.
    """
    text = decode_text(data)
    if text is None:
        return Unknown(raw="")
    message = text.strip()
    if not message:
        return None

    keyword, sep, argument = message.partition(SEPARATOR)
    if not sep:
        return Unknown(raw=message)

    if keyword == HOSTING:
        return Hosting(address=argument)
    if keyword == CONNECT:
        return Connect(address=argument)
    if keyword == POST_SDP:
        return PostSdp(payload=argument, raw=message)
    if keyword == SUCCESS:
        return Success()
    if keyword == ECHO:
        return Echo(data=argument, raw=message)
    return Unknown(raw=message)


def get_sdp() -> str:
    """Cue sent to a host once a joiner has been matched to it."""
    return f"{GET_SDP}{SEPARATOR}"
