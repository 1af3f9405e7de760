"""Network configuration: transport, discovery providers and limits."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Union

from .discovery import DEFAULT_MULTICAST_ADDR, DiscoveryOptions
from .transport import TransportOptions

_MB = 1024 * 1024


class TransportType(Enum):
    """Transports a node can use."""

    QUIC = "Quic"


@dataclass
class MulticastDiscoveryOptions:
    """Settings of multicast discovery; durations are in seconds."""

    multicast_group: str = DEFAULT_MULTICAST_ADDR
    announce_interval: float = 30.0
    discovery_timeout: float = 30.0
    node_ttl: float = 60.0
    use_multicast: bool = True
    local_network_only: bool = True


@dataclass
class StaticDiscoveryOptions:
    """Settings of discovery from a fixed address list; interval in seconds."""

    node_addresses: list[str] = field(default_factory=list)
    refresh_interval: float = 60.0

    def __post_init__(self) -> None:
        self.node_addresses = list(self.node_addresses)


DiscoveryProviderConfig = Union[MulticastDiscoveryOptions, StaticDiscoveryOptions]
"""Configuration of one discovery provider."""


def default_multicast() -> MulticastDiscoveryOptions:
    """Multicast discovery with the default group and timings."""
    return MulticastDiscoveryOptions(
        multicast_group=DEFAULT_MULTICAST_ADDR,
        announce_interval=30.0,
        discovery_timeout=30.0,
        node_ttl=60.0,
        use_multicast=True,
        local_network_only=True,
    )


def default_static(addresses: list[str]) -> StaticDiscoveryOptions:
    """Static discovery of the given addresses, refreshed every minute."""
    return StaticDiscoveryOptions(node_addresses=list(addresses), refresh_interval=60.0)


@dataclass
class NetworkConfig:
    """Everything a node needs to set up networking.

    The ``with_*`` methods return an updated copy and leave the original alone.
    """

    transport_type: TransportType = TransportType.QUIC
    transport_options: TransportOptions = field(default_factory=TransportOptions)
    quic_options: Any | None = None
    discovery_providers: list[DiscoveryProviderConfig] = field(default_factory=list)
    discovery_options: DiscoveryOptions | None = field(default_factory=DiscoveryOptions)
    connection_timeout_ms: int = 60000
    request_timeout_ms: int = 10000
    max_connections: int = 100
    max_message_size: int = 10 * _MB
    max_chunk_size: int = 10 * _MB

    def __str__(self) -> str:
        host, port = self.transport_options.bind_address
        text = (
            f"NetworkConfig: transport:{self.transport_type.value} "
            f"bind_address:{host}:{port} "
            f"msg_size:{self.max_message_size // 1024}/{self.max_chunk_size // 1024}KB "
            f"timeout:{self.connection_timeout_ms}ms"
        )
        options = self.discovery_options
        if options is not None:
            if options.use_multicast:
                text += (
                    f" multicast discovery interval:{int(options.announce_interval * 1000)}ms"
                    f" timeout:{int(options.discovery_timeout * 1000)}ms"
                )
            text += f" ttl:{int(options.node_ttl)}s"
        return text

    def _copy(self, **changes: Any) -> NetworkConfig:
        changes.setdefault("discovery_providers", list(self.discovery_providers))
        return replace(self, **changes)

    @classmethod
    def with_quic(cls, quic_options: Any) -> NetworkConfig:
        """QUIC configuration with discovery disabled and 1 MB message limits."""
        return cls(
            transport_type=TransportType.QUIC,
            transport_options=TransportOptions(),
            quic_options=quic_options,
            discovery_providers=[],
            discovery_options=None,
            connection_timeout_ms=30000,
            request_timeout_ms=30000,
            max_connections=100,
            max_message_size=_MB,
            max_chunk_size=_MB,
        )

    def with_transport_type(self, transport_type: TransportType) -> NetworkConfig:
        """Return a copy using another transport."""
        return self._copy(transport_type=transport_type)

    def with_quic_options(self, options: Any) -> NetworkConfig:
        """Return a copy with the given QUIC options."""
        return self._copy(quic_options=options)

    def with_discovery_provider(self, provider: DiscoveryProviderConfig) -> NetworkConfig:
        """Return a copy with one more discovery provider."""
        return self._copy(discovery_providers=[*self.discovery_providers, provider])

    def with_discovery_options(self, options: DiscoveryOptions) -> NetworkConfig:
        """Return a copy with the given discovery options."""
        return self._copy(discovery_options=options)

    def with_multicast_discovery(self) -> NetworkConfig:
        """Return a copy whose only provider is default multicast discovery."""
        return self._copy(
            discovery_providers=[default_multicast()],
            discovery_options=DiscoveryOptions(),
        )