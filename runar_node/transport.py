"""Core transport types: peer identifiers, network messages, options and errors."""

from __future__ import annotations

import logging
import random
import socket
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional

from .wire import Decoder, encode_bytes, encode_string, encode_u64

_log = logging.getLogger("runar_node.network.transport")

_MAX_PORT_ATTEMPTS = 50
_ANY_ADDRESS = "0.0.0.0"


@dataclass(frozen=True)
class PeerId:
    """Unique identifier of a node in the network."""

    public_key: str

    def __str__(self) -> str:
        return self.public_key


class NetworkMessageType(Enum):
    """Kinds of messages sent over the network."""

    REQUEST = "Request"
    RESPONSE = "Response"
    EVENT = "Event"
    DISCOVERY = "Discovery"
    HEARTBEAT = "Heartbeat"


@dataclass
class NetworkMessagePayloadItem:
    """One payload of a message: a path, serialized value bytes and a correlation id."""

    path: str
    value_bytes: bytes
    correlation_id: str

    def __post_init__(self) -> None:
        self.value_bytes = bytes(self.value_bytes)

    def _encode(self) -> bytes:
        return (
            encode_string(self.path)
            + encode_bytes(self.value_bytes)
            + encode_string(self.correlation_id)
        )

    @classmethod
    def _decode(cls, decoder: Decoder) -> NetworkMessagePayloadItem:
        return cls(decoder.string(), decoder.bytes(), decoder.string())

    def to_bytes(self) -> bytes:
        """Serialize this payload item."""
        return self._encode()

    @classmethod
    def from_bytes(cls, data: bytes) -> NetworkMessagePayloadItem:
        """Deserialize a payload item; raises ValueError on malformed input."""
        decoder = Decoder(data)
        item = cls._decode(decoder)
        decoder.finish()
        return item


@dataclass
class NetworkMessage:
    """A message exchanged between nodes."""

    source: PeerId
    destination: PeerId
    message_type: str
    payloads: list[NetworkMessagePayloadItem] = field(default_factory=list)

    def to_bytes(self) -> bytes:
        """Serialize this message."""
        return b"".join(
            [
                encode_string(self.source.public_key),
                encode_string(self.destination.public_key),
                encode_string(self.message_type),
                encode_u64(len(self.payloads)),
                *(item._encode() for item in self.payloads),
            ]
        )

    @classmethod
    def from_bytes(cls, data: bytes) -> NetworkMessage:
        """Deserialize a message; raises ValueError on malformed input."""
        decoder = Decoder(data)
        source = PeerId(decoder.string())
        destination = PeerId(decoder.string())
        message_type = decoder.string()
        payloads = [
            NetworkMessagePayloadItem._decode(decoder) for _ in range(decoder.u64())
        ]
        decoder.finish()
        return cls(source, destination, message_type, payloads)


MessageHandler = Callable[[NetworkMessage], None]
MessageCallback = Callable[[NetworkMessage], Awaitable[None]]
ConnectionCallback = Callable[[PeerId, bool, Optional[Any]], Awaitable[None]]


def pick_free_port(start: int, stop: int) -> int | None:
    """Pick a random port in ``[start, stop)`` free for both TCP and UDP.

    Gives up and returns None after a bounded number of attempts.
    """
    if stop <= start:
        raise ValueError(f"empty port range {start}..{stop}")
    for _ in range(_MAX_PORT_ATTEMPTS):
        port = random.randrange(start, stop)
        try:
            with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as tcp:
                tcp.bind((_ANY_ADDRESS, port))
                tcp.listen()
                bound_port = tcp.getsockname()[1]
                with socket.socket(socket.AF_INET, socket.SOCK_DGRAM) as udp:
                    udp.bind((_ANY_ADDRESS, bound_port))
                return bound_port
        except OSError:
            continue
    return None


def _default_bind_address() -> tuple[str, int]:
    port = pick_free_port(50000, 51000) or 0
    _log.info("TransportOptions using port: %d", port)
    return (_ANY_ADDRESS, port)


@dataclass
class TransportOptions:
    """Options for a network transport; timeout is in seconds."""

    timeout: float | None = 30.0
    max_message_size: int | None = 1024 * 1024
    bind_address: tuple[str, int] = field(default_factory=_default_bind_address)


class NetworkError(Exception):
    """Base class of errors raised by network operations."""

    prefix = "Network error"

    def __init__(self, detail: str) -> None:
        super().__init__(f"{self.prefix}: {detail}")
        self.detail = detail


class NetworkConnectionError(NetworkError):
    """A connection could not be made or used."""

    prefix = "Connection error"


class MessageError(NetworkError):
    """A message was malformed or could not be delivered."""

    prefix = "Message error"


class DiscoveryError(NetworkError):
    """Node discovery failed."""

    prefix = "Discovery error"


class TransportError(NetworkError):
    """The transport itself failed."""

    prefix = "Transport error"


class ConfigurationError(NetworkError):
    """The network configuration is invalid."""

    prefix = "Configuration error"