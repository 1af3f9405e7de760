import pytest

from runar_node.discovery import (
    DEFAULT_MULTICAST_ADDR,
    DiscoveryOptions,
    NodeDiscovery,
    NodeInfo,
    PeerInfo,
)
from runar_node.transport import PeerId


def test_default_options_match_documented_values():
    options = DiscoveryOptions()
    assert options.announce_interval == 60
    assert options.discovery_timeout == 10
    assert options.node_ttl == 300
    assert options.use_multicast is True
    assert options.local_network_only is True
    assert options.multicast_group == "239.255.42.98"
    assert DEFAULT_MULTICAST_ADDR == options.multicast_group


def test_peer_info_str_joins_addresses():
    info = PeerInfo("key1", ["127.0.0.1:8000", "10.0.0.1:9000"])
    assert str(info) == "key1 127.0.0.1:8000, 10.0.0.1:9000"


def test_peer_info_str_without_addresses():
    assert str(PeerInfo("key1")) == "key1 "


def test_peer_info_equality_and_hash():
    first = PeerInfo("key1", ["a", "b"])
    second = PeerInfo("key1", ("a", "b"))
    assert first == second
    assert hash(first) == hash(second)
    assert len({first, second, PeerInfo("key2", ["a"])}) == 2


def test_peer_info_is_immutable():
    info = PeerInfo("key1", ["a"])
    with pytest.raises(AttributeError):
        info.public_key = "other"  # type: ignore[misc]
    assert info.public_key == "key1"
    assert str(info) == "key1 a"


def test_node_info_fields_and_copies():
    addresses = ["127.0.0.1:8000"]
    node = NodeInfo(
        peer_id=PeerId("test_node"),
        network_ids=["net1"],
        addresses=addresses,
        services=[],
        version=0,
    )
    addresses.append("other")
    assert node.addresses == ["127.0.0.1:8000"]
    assert node.network_ids == ["net1"]
    assert str(node.peer_id) == "test_node"
    assert node.version == 0


def test_node_discovery_is_abstract():
    with pytest.raises(TypeError):
        NodeDiscovery()  # type: ignore[abstract]


class _Recording(NodeDiscovery):
    def __init__(self):
        self.calls = []
        self.listeners = []

    async def init(self, options):
        self.calls.append(("init", options.node_ttl))

    async def start_announcing(self):
        self.calls.append(("start", None))

    async def stop_announcing(self):
        self.calls.append(("stop", None))

    async def set_discovery_listener(self, listener):
        self.listeners.append(listener)

    async def shutdown(self):
        self.calls.append(("shutdown", None))


@pytest.mark.asyncio
async def test_concrete_discovery_runs_listeners():
    discovery = _Recording()
    seen = []

    async def listener(peer):
        seen.append(peer)

    await discovery.init(DiscoveryOptions(node_ttl=5))
    await discovery.set_discovery_listener(listener)
    await discovery.start_announcing()
    for registered in discovery.listeners:
        await registered(PeerInfo("node1", ["addr1"]))
    await discovery.shutdown()
    assert discovery.calls == [("init", 5), ("start", None), ("shutdown", None)]
    assert seen == [PeerInfo("node1", ["addr1"])]