"""Node discovery interface and the information that discovery shares."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable, Iterable
from dataclasses import dataclass, field
from typing import Any

from .transport import PeerId

DEFAULT_MULTICAST_ADDR = "239.255.42.98"
"""Multicast group used for discovery unless configured otherwise."""


@dataclass
class DiscoveryOptions:
    """Options for node discovery; all durations are in seconds."""

    announce_interval: float = 60.0
    discovery_timeout: float = 10.0
    node_ttl: float = 300.0
    use_multicast: bool = True
    local_network_only: bool = True
    multicast_group: str = DEFAULT_MULTICAST_ADDR


@dataclass(frozen=True)
class PeerInfo:
    """What discovery learns about a peer: its public key and addresses."""

    public_key: str
    addresses: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "addresses", tuple(self.addresses))

    def __str__(self) -> str:
        return f"{self.public_key} {', '.join(self.addresses)}"


@dataclass
class NodeInfo:
    """Snapshot of a node's presence and capabilities in one or more networks.

    ``version`` grows each time the node changes, so peers can tell whether
    their copy is stale.
    """

    peer_id: PeerId
    network_ids: list[str] = field(default_factory=list)
    addresses: list[str] = field(default_factory=list)
    services: list[Any] = field(default_factory=list)
    version: int = 0

    def __post_init__(self) -> None:
        self.network_ids = list(self.network_ids)
        self.addresses = list(self.addresses)
        self.services = list(self.services)


DiscoveryListener = Callable[[PeerInfo], Awaitable[None]]
"""Async callback run whenever a peer is discovered or updated."""


def _peer_info_of(addresses: Iterable[str], public_key: str) -> PeerInfo:
    return PeerInfo(public_key, tuple(addresses))


class NodeDiscovery(ABC):
    """A mechanism that finds nodes and announces the local node.

    Discovery only finds and announces; it neither keeps a registry of peers
    nor manages connections.
    """

    @abstractmethod
    async def init(self, options: DiscoveryOptions) -> None:
        """Initialize with the given options."""

    @abstractmethod
    async def start_announcing(self) -> None:
        """Start announcing the local node on the network."""

    @abstractmethod
    async def stop_announcing(self) -> None:
        """Stop announcing the local node."""

    @abstractmethod
    async def set_discovery_listener(self, listener: DiscoveryListener) -> None:
        """Add a listener called when nodes are discovered or updated."""

    @abstractmethod
    async def shutdown(self) -> None:
        """Shut the discovery mechanism down."""