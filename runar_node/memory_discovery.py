"""In-memory node discovery for development and testing."""

from __future__ import annotations

import asyncio
import contextlib
import logging

from .discovery import (
    DiscoveryListener,
    DiscoveryOptions,
    NodeDiscovery,
    NodeInfo,
    PeerInfo,
)
from .transport import DiscoveryError

_log = logging.getLogger("runar_node.network")


def _peer_info(node_info: NodeInfo) -> PeerInfo:
    return PeerInfo(node_info.peer_id.public_key, tuple(node_info.addresses))


class MemoryDiscovery(NodeDiscovery):
    """Discovery that keeps nodes in memory and uses no network protocol.

    Announcing adds the local node to the in-memory registry and then
    periodically hands its information to every listener, as a network
    announcement would.
    """

    def __init__(self, logger: logging.Logger | None = None) -> None:
        self.logger = logger or _log
        self._nodes: dict[str, NodeInfo] = {}
        self._local_node: NodeInfo | None = None
        self._options: DiscoveryOptions | None = None
        self._announce_task: asyncio.Task | None = None
        self._listeners: list[DiscoveryListener] = []

    @property
    def nodes(self) -> dict[str, NodeInfo]:
        """A copy of the registered nodes, keyed by public key."""
        return dict(self._nodes)

    @property
    def options(self) -> DiscoveryOptions | None:
        """The options given to ``init``, or None before it."""
        return self._options

    @property
    def is_announcing(self) -> bool:
        """True while the periodic announcement is running."""
        return self._announce_task is not None and not self._announce_task.done()

    def set_local_node(self, node_info: NodeInfo) -> None:
        """Set the information of the node this instance announces."""
        self._local_node = node_info

    async def _notify(self, peer_info: PeerInfo) -> None:
        for listener in list(self._listeners):
            await listener(peer_info)

    async def _announce_loop(self, info: NodeInfo, interval: float) -> None:
        peer_info = _peer_info(info)
        while True:
            self.logger.debug("Announcing local node: %s", info.peer_id)
            await self._notify(peer_info)
            await asyncio.sleep(interval)

    async def _add_node(self, node_info: NodeInfo) -> None:
        key = str(node_info.peer_id)
        self._nodes[key] = node_info
        self.logger.debug("Added node to registry: %s", key)
        await self._notify(_peer_info(node_info))

    @staticmethod
    async def _cancel(task: asyncio.Task | None) -> None:
        if task is None:
            return
        task.cancel()
        if task is not asyncio.current_task():
            with contextlib.suppress(asyncio.CancelledError):
                await task

    async def init(self, options: DiscoveryOptions) -> None:
        """Store the options used for announcing."""
        self.logger.info("Initializing MemoryDiscovery with options: %r", options)
        self._options = options

    async def start_announcing(self) -> None:
        """Register the local node and start announcing it periodically.

        Raises DiscoveryError if no local node is set or ``init`` was not called.
        """
        info = self._local_node
        if info is None:
            raise DiscoveryError("No local node information available")
        self.logger.info("Starting to announce node: %s", info.peer_id)
        options = self._options
        if options is None:
            raise DiscoveryError("Discovery not initialized")
        await self._add_node(info)
        await self._cancel(self._announce_task)
        self._announce_task = asyncio.create_task(
            self._announce_loop(info, options.announce_interval)
        )

    async def stop_announcing(self) -> None:
        """Stop announcing and remove the local node from the registry."""
        self.logger.info("Stopping node announcements")
        task, self._announce_task = self._announce_task, None
        await self._cancel(task)
        if self._local_node is not None:
            self._nodes.pop(str(self._local_node.peer_id), None)
            self.logger.debug(
                "Removed local node %s from registry", self._local_node.peer_id
            )

    async def set_discovery_listener(self, listener: DiscoveryListener) -> None:
        """Add a listener called with each announced or added node."""
        self.logger.debug("Adding discovery listener")
        self._listeners.append(listener)

    async def shutdown(self) -> None:
        """Stop all background work and forget every node."""
        self.logger.info("Shutting down MemoryDiscovery")
        task, self._announce_task = self._announce_task, None
        await self._cancel(task)
        self._nodes.clear()