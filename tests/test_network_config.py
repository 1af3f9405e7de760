import pytest

from runar_node.discovery import DEFAULT_MULTICAST_ADDR, DiscoveryOptions
from runar_node.network_config import (
    MulticastDiscoveryOptions,
    NetworkConfig,
    StaticDiscoveryOptions,
    TransportType,
    default_multicast,
    default_static,
)
from runar_node.transport import TransportOptions


@pytest.fixture
def bind_options() -> TransportOptions:
    return TransportOptions(bind_address=("127.0.0.1", 9000))


def test_defaults(bind_options):
    config = NetworkConfig(transport_options=bind_options)
    assert config.transport_type is TransportType.QUIC
    assert config.quic_options is None
    assert config.discovery_providers == []
    assert config.discovery_options == DiscoveryOptions()
    assert config.connection_timeout_ms == 60000
    assert config.request_timeout_ms == 10000
    assert config.max_connections == 100
    assert config.max_message_size == 1024 * 1024 * 10
    assert config.max_chunk_size == 1024 * 1024 * 10


def test_default_transport_options_bind_any_address():
    config = NetworkConfig()
    host, port = config.transport_options.bind_address
    assert host == "0.0.0.0"
    assert port == 0 or 50000 <= port < 51000


def test_with_quic(bind_options):
    quic = object()
    config = NetworkConfig.with_quic(quic, bind_options)
    assert config.quic_options is quic
    assert config.discovery_options is None
    assert config.discovery_providers == []
    assert config.connection_timeout_ms == 30000
    assert config.request_timeout_ms == 30000
    assert config.max_message_size == 1024 * 1024
    assert config.max_chunk_size == 1024 * 1024


def test_str_without_discovery(bind_options):
    config = NetworkConfig.with_quic(object(), bind_options)
    assert str(config) == (
        "NetworkConfig: transport:Quic bind_address:127.0.0.1:9000 "
        "msg_size:1024/1024KB timeout:30000ms"
    )


def test_str_with_discovery_without_multicast(bind_options):
    options = DiscoveryOptions(node_ttl=7, use_multicast=False)
    config = NetworkConfig.with_quic(object(), bind_options).with_discovery_options(options)
    text = str(config)
    assert text.endswith(" ttl:7s")
    assert "multicast" not in text


def test_str_with_multicast_discovery(bind_options):
    options = DiscoveryOptions(announce_interval=2, discovery_timeout=3, node_ttl=4)
    config = NetworkConfig(transport_options=bind_options, discovery_options=options)
    assert str(config).endswith(
        " multicast discovery interval:2000ms timeout:3000ms ttl:4s"
    )


def test_default_multicast():
    provider = default_multicast()
    assert provider.multicast_group == DEFAULT_MULTICAST_ADDR
    assert provider.announce_interval == 30
    assert provider.discovery_timeout == 30
    assert provider.node_ttl == 60
    assert provider.use_multicast is True
    assert provider.local_network_only is True


def test_default_static_copies_addresses():
    addresses = ["10.0.0.1:9000", "10.0.0.2:9000"]
    provider = default_static(addresses)
    addresses.append("10.0.0.3:9000")
    assert provider.node_addresses == ["10.0.0.1:9000", "10.0.0.2:9000"]
    assert provider.refresh_interval == 60


def test_with_discovery_provider_leaves_original(bind_options):
    base = NetworkConfig(transport_options=bind_options)
    static = default_static(["10.0.0.1:9000"])
    updated = base.with_discovery_provider(static).with_discovery_provider(
        default_multicast()
    )
    assert base.discovery_providers == []
    assert updated.discovery_providers == [static, default_multicast()]
    assert isinstance(updated.discovery_providers[1], MulticastDiscoveryOptions)


def test_with_multicast_discovery_replaces_providers(bind_options):
    config = (
        NetworkConfig.with_quic(object(), bind_options)
        .with_discovery_provider(StaticDiscoveryOptions(["10.0.0.1:9000"]))
        .with_multicast_discovery()
    )
    assert config.discovery_providers == [default_multicast()]
    assert config.discovery_options == DiscoveryOptions()


def test_with_transport_type_and_quic_options(bind_options):
    quic = object()
    config = (
        NetworkConfig(transport_options=bind_options)
        .with_transport_type(TransportType.QUIC)
        .with_quic_options(quic)
    )
    assert config.transport_type is TransportType.QUIC
    assert config.quic_options is quic
    assert config.transport_options is bind_options