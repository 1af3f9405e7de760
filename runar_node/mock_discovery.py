"""In-memory stand-in for node discovery, for use in tests."""

from __future__ import annotations

from .discovery import (
    DiscoveryListener,
    DiscoveryOptions,
    NodeDiscovery,
    NodeInfo,
    PeerInfo,
)


class MockNodeDiscovery(NodeDiscovery):
    """Discovery that keeps nodes in memory and never touches the network."""

    def __init__(self) -> None:
        self._nodes: dict[str, NodeInfo] = {}
        self._listeners: list[DiscoveryListener] = []

    @property
    def nodes(self) -> dict[str, NodeInfo]:
        """A copy of the known nodes, keyed by public key."""
        return dict(self._nodes)

    def add_test_node(self, info: NodeInfo) -> None:
        """Record a node without notifying listeners."""
        self._nodes[info.peer_id.public_key] = info

    def clear_nodes(self) -> None:
        """Forget all nodes."""
        self._nodes.clear()

    async def add_mock_node(self, node_info: NodeInfo) -> None:
        """Record a node and notify every listener of it."""
        self._nodes[str(node_info.peer_id)] = node_info
        peer_info = PeerInfo(node_info.peer_id.public_key, tuple(node_info.addresses))
        for listener in list(self._listeners):
            await listener(peer_info)

    async def init(self, options: DiscoveryOptions) -> None:
        """Accept the options; nothing to set up."""

    async def start_announcing(self) -> None:
        """Nothing is announced."""

    async def stop_announcing(self) -> None:
        """Nothing is announced."""

    async def set_discovery_listener(self, listener: DiscoveryListener) -> None:
        """Add a listener for nodes added with ``add_mock_node``."""
        self._listeners.append(listener)

    async def shutdown(self) -> None:
        """Forget all nodes."""
        self._nodes.clear()