"""Node discovery over UDP multicast on the local network.

Each node periodically multicasts an announcement of itself and listens for
the announcements of others. A node that hears a peer for the first time
answers it directly with its own announcement, so both sides learn about
each other quickly.
"""

from __future__ import annotations

import asyncio
import contextlib
import ipaddress
import logging
import socket
from dataclasses import dataclass
from typing import Any, Union

from .discovery import (
    DiscoveryListener,
    DiscoveryOptions,
    NodeDiscovery,
    NodeInfo,
    PeerInfo,
)
from .transport import ConfigurationError, DiscoveryError, TransportError
from .wire import Decoder, encode_string, encode_string_list, encode_u32

_log = logging.getLogger("runar_node.network")

DEFAULT_MULTICAST_PORT = 45678
"""Port used when the multicast group is given without one."""

_ANNOUNCE_TAG = 0
_GOODBYE_TAG = 1
_MULTICAST_TTL = 2
_SEND_QUEUE_SIZE = 100
_RESPONSE_DELAY = 0.1
_ANY_ADDRESS = "0.0.0.0"


@dataclass(frozen=True)
class Announce:
    """A node announces its presence."""

    peer_info: PeerInfo

    def sender_id(self) -> str:
        """Public key of the announcing node."""
        return self.peer_info.public_key


@dataclass(frozen=True)
class Goodbye:
    """A node is leaving the network."""

    public_key: str

    def sender_id(self) -> str:
        """Public key of the leaving node."""
        return self.public_key


MulticastMessage = Union[Announce, Goodbye]


def encode_message(message: MulticastMessage) -> bytes:
    """Serialize a multicast message."""
    if isinstance(message, Announce):
        info = message.peer_info
        return (
            encode_u32(_ANNOUNCE_TAG)
            + encode_string(info.public_key)
            + encode_string_list(info.addresses)
        )
    if isinstance(message, Goodbye):
        return encode_u32(_GOODBYE_TAG) + encode_string(message.public_key)
    raise TypeError(f"not a multicast message: {message!r}")


def decode_message(data: bytes) -> MulticastMessage:
    """Deserialize a multicast message; raises ValueError on malformed input."""
    decoder = Decoder(data)
    tag = decoder.u32()
    message: MulticastMessage
    if tag == _ANNOUNCE_TAG:
        public_key = decoder.string()
        message = Announce(PeerInfo(public_key, tuple(decoder.string_list())))
    elif tag == _GOODBYE_TAG:
        message = Goodbye(decoder.string())
    else:
        raise ValueError(f"unknown multicast message variant {tag}")
    decoder.finish()
    return message


def _parse_socket_address(
    group: str,
) -> tuple[ipaddress.IPv4Address | ipaddress.IPv6Address, int]:
    if ":" in group:
        host, _, port_text = group.rpartition(":")
        try:
            if host.startswith("[") and host.endswith("]"):
                ip: ipaddress.IPv4Address | ipaddress.IPv6Address = ipaddress.IPv6Address(
                    host[1:-1]
                )
            else:
                ip = ipaddress.IPv4Address(host)
            if not port_text.isdigit() or int(port_text) > 65535:
                raise ValueError(f"invalid port {port_text!r}")
        except ValueError as exc:
            raise ConfigurationError(f"Invalid multicast address format: {exc}") from exc
        return ip, int(port_text)
    try:
        return ipaddress.IPv4Address(group), DEFAULT_MULTICAST_PORT
    except ValueError as exc:
        raise ConfigurationError(f"Invalid multicast address: {exc}") from exc


def parse_multicast_address(group: str) -> tuple[str, int]:
    """Parse ``"IP"`` or ``"IP:PORT"`` into an IPv4 multicast host and port.

    Raises ConfigurationError if the text is malformed or not IPv4 multicast.
    """
    ip, port = _parse_socket_address(group)
    if not isinstance(ip, ipaddress.IPv4Address):
        raise ConfigurationError("Multicast address must be IPv4")
    if not ip.is_multicast:
        raise ConfigurationError(f"Not a valid multicast IPv4 address: {ip}")
    return str(ip), port


def _create_multicast_socket(host: str, port: int) -> socket.socket:
    sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM, socket.IPPROTO_UDP)
    try:
        sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        if hasattr(socket, "SO_REUSEPORT"):
            with contextlib.suppress(OSError):
                sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEPORT, 1)
        sock.setsockopt(socket.IPPROTO_IP, socket.IP_MULTICAST_TTL, _MULTICAST_TTL)
        sock.setsockopt(socket.IPPROTO_IP, socket.IP_MULTICAST_LOOP, 1)
        sock.bind((_ANY_ADDRESS, port))
        membership = socket.inet_aton(host) + socket.inet_aton(_ANY_ADDRESS)
        sock.setsockopt(socket.IPPROTO_IP, socket.IP_ADD_MEMBERSHIP, membership)
        sock.setblocking(False)
    except OSError as exc:
        sock.close()
        raise TransportError(f"Failed to create multicast socket: {exc}") from exc
    return sock


class MulticastDiscovery(NodeDiscovery, asyncio.DatagramProtocol):
    """Discovery that announces and listens on a UDP multicast group.

    Use ``create`` to open the multicast socket. The instance is the datagram
    protocol of that socket; once connected it processes incoming messages
    and sends queued outgoing ones in the background.
    """

    def __init__(
        self,
        local_node: NodeInfo,
        options: DiscoveryOptions,
        logger: logging.Logger | None = None,
    ) -> None:
        self.logger = logger or _log
        self._multicast_addr = parse_multicast_address(options.multicast_group)
        self._options = options
        self._local_node = local_node
        self._discovered: dict[str, PeerInfo] = {}
        self._listeners: list[DiscoveryListener] = []
        self._transport: Any | None = None
        self._outgoing: asyncio.Queue[MulticastMessage] | None = None
        self._incoming: asyncio.Queue[tuple[MulticastMessage, Any]] | None = None
        self._sender_task: asyncio.Task | None = None
        self._receiver_task: asyncio.Task | None = None
        self._announce_task: asyncio.Task | None = None

    @classmethod
    async def create(
        cls, local_node: NodeInfo, options: DiscoveryOptions
    ) -> MulticastDiscovery:
        """Open the multicast socket and return a running discovery instance.

        Raises ConfigurationError for a bad group address and TransportError
        if the socket cannot be set up.
        """
        instance = cls(local_node, options)
        host, port = instance._multicast_addr
        sock = _create_multicast_socket(host, port)
        instance.logger.info(
            "Created multicast socket bound to %s:%d and joined multicast group %s",
            _ANY_ADDRESS,
            port,
            host,
        )
        loop = asyncio.get_running_loop()
        try:
            await loop.create_datagram_endpoint(lambda: instance, sock=sock)
        except OSError as exc:
            sock.close()
            raise TransportError(f"Failed to open multicast endpoint: {exc}") from exc
        instance.logger.info(
            "Successfully created multicast socket with address: %s:%d", host, port
        )
        return instance

    @property
    def discovered_nodes(self) -> dict[str, PeerInfo]:
        """A copy of the peers heard from, keyed by public key."""
        return dict(self._discovered)

    @property
    def multicast_address(self) -> tuple[str, int]:
        """The group host and port announcements are sent to."""
        return self._multicast_addr

    @property
    def options(self) -> DiscoveryOptions:
        """The current discovery options."""
        return self._options

    def _local_peer_info(self) -> PeerInfo:
        return PeerInfo(
            self._local_node.peer_id.public_key, tuple(self._local_node.addresses)
        )

    # Datagram protocol callbacks

    def connection_made(self, transport: Any) -> None:
        self._transport = transport
        self._outgoing = asyncio.Queue(_SEND_QUEUE_SIZE)
        self._incoming = asyncio.Queue()
        self._receiver_task = asyncio.create_task(self._receive_loop())
        self._sender_task = asyncio.create_task(self._send_loop())

    def datagram_received(self, data: bytes, addr: Any) -> None:
        self.logger.debug("Received multicast message from %s, size: %d", addr, len(data))
        try:
            message = decode_message(data)
        except ValueError as exc:
            self.logger.error("Failed to deserialize multicast message: %s", exc)
            return
        if message.sender_id() == self._local_node.peer_id.public_key:
            self.logger.debug("Skipping message from self")
            return
        if self._incoming is not None:
            self._incoming.put_nowait((message, addr))

    def error_received(self, exc: Exception) -> None:
        self.logger.error("Failed to receive multicast message: %s", exc)

    def connection_lost(self, exc: Exception | None) -> None:
        if exc is not None:
            self.logger.error("Multicast socket closed with error: %s", exc)
        self._transport = None

    # Background work

    async def _receive_loop(self) -> None:
        assert self._incoming is not None
        while True:
            message, src = await self._incoming.get()
            try:
                await self._process_message(message, src)
            except Exception:
                self.logger.exception("Failed to process multicast message from %s", src)

    async def _send_loop(self) -> None:
        assert self._outgoing is not None
        while True:
            message = await self._outgoing.get()
            if isinstance(message, Announce):
                message = Announce(self._local_peer_info())
            else:
                message = Goodbye(self._local_node.peer_id.public_key)
            data = encode_message(message)
            target = self._multicast_addr
            self.logger.debug("Sending multicast message to %s, size: %d", target, len(data))
            self._send_to(data, target)

    def _send_to(self, data: bytes, addr: Any) -> None:
        transport = self._transport
        if transport is None:
            self.logger.error("Failed to send multicast message: socket is closed")
            return
        try:
            transport.sendto(data, addr)
        except OSError as exc:
            self.logger.error("Failed to send multicast message to %s: %s", addr, exc)

    async def _notify(self, peer_info: PeerInfo) -> None:
        for listener in list(self._listeners):
            await listener(peer_info)

    async def _process_message(self, message: MulticastMessage, src: Any) -> None:
        local_key = self._local_node.peer_id.public_key
        if isinstance(message, Announce):
            info = message.peer_info
            if info.public_key == local_key:
                return
            self.logger.debug("Processing announce message from %s", info.public_key)
            is_new_peer = info.public_key not in self._discovered
            self._discovered[info.public_key] = info
            await self._notify(info)
            if is_new_peer:
                self.logger.debug(
                    "Auto-responding to new peer announcement with our own info: %s",
                    local_key,
                )
                data = encode_message(Announce(self._local_peer_info()))
                await asyncio.sleep(_RESPONSE_DELAY)
                self._send_to(data, src)
            else:
                self.logger.debug(
                    "Skipping auto-response for already known peer: %s", info.public_key
                )
        else:
            self.logger.debug("Processing goodbye message from %s", message.public_key)
            self._discovered.pop(message.public_key, None)

    async def _announce_loop(self, interval: float) -> None:
        assert self._outgoing is not None
        while True:
            self.logger.debug(
                "Sending announcement for node %s", self._local_node.peer_id
            )
            await self._outgoing.put(Announce(self._local_peer_info()))
            await asyncio.sleep(interval)

    @staticmethod
    async def _cancel(task: asyncio.Task | None) -> None:
        if task is None:
            return
        task.cancel()
        if task is not asyncio.current_task():
            with contextlib.suppress(asyncio.CancelledError):
                await task

    # NodeDiscovery

    async def init(self, options: DiscoveryOptions) -> None:
        """Replace the options and the group address announcements go to."""
        self.logger.info("Initializing MulticastDiscovery with options: %r", options)
        self._options = options
        ip, port = _parse_socket_address(options.multicast_group)
        self._multicast_addr = (str(ip), port)
        self.logger.info("Using multicast address: %s:%d", ip, port)

    async def start_announcing(self) -> None:
        """Send an announcement now and then once per announce interval.

        Raises DiscoveryError if the socket is not set up yet.
        """
        self.logger.info("Starting to announce node: %s", self._local_node.peer_id)
        if self._outgoing is None:
            raise DiscoveryError("Discovery sender task not initialized")
        self.logger.info("Sending initial announcement")
        await self._outgoing.put(Announce(self._local_peer_info()))
        await self._cancel(self._announce_task)
        self._announce_task = asyncio.create_task(
            self._announce_loop(self._options.announce_interval)
        )

    async def stop_announcing(self) -> None:
        """Stop the periodic announcements."""
        task, self._announce_task = self._announce_task, None
        await self._cancel(task)

    async def set_discovery_listener(self, listener: DiscoveryListener) -> None:
        """Add a listener called with each announcement heard from a peer."""
        self.logger.debug("Adding discovery listener")
        self._listeners.append(listener)

    async def shutdown(self) -> None:
        """Stop announcing, stop background work and close the socket."""
        self.logger.info("Shutting down MulticastDiscovery")
        try:
            await self.stop_announcing()
        except Exception as exc:
            self.logger.warning("Error stopping announcements during shutdown: %s", exc)
        for attr in ("_receiver_task", "_sender_task"):
            task = getattr(self, attr)
            setattr(self, attr, None)
            await self._cancel(task)
        transport, self._transport = self._transport, None
        if transport is not None:
            transport.close()