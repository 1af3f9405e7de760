"""Interface that every network transport implements."""

from __future__ import annotations

import asyncio
from abc import ABC, abstractmethod
from typing import Any

from .transport import NetworkMessage, PeerId


class NetworkTransport(ABC):
    """A transport that connects to peers and exchanges messages with them.

    Operations that fail raise ``NetworkError`` subclasses. Everything the
    transport needs is passed to its constructor; there is no separate init step.
    """

    @abstractmethod
    async def start(self) -> None:
        """Start listening for incoming connections."""

    @abstractmethod
    async def stop(self) -> None:
        """Stop listening for incoming connections."""

    @abstractmethod
    async def disconnect(self, node_id: PeerId) -> None:
        """Disconnect from a remote node."""

    @abstractmethod
    async def is_connected(self, node_id: PeerId) -> bool:
        """Return True if connected to the given node."""

    @abstractmethod
    async def send_message(self, message: NetworkMessage) -> None:
        """Send a message to the node named by its destination."""

    @abstractmethod
    async def connect_peer(self, peer_info: Any) -> None:
        """Connect to a peer found by discovery and complete the handshake."""

    @abstractmethod
    def get_local_address(self) -> str:
        """Return the local address this transport is bound to."""

    @abstractmethod
    async def update_peers(self, node_info: Any) -> None:
        """Send the latest local node information to connected peers."""

    @abstractmethod
    async def subscribe_to_peer_node_info(self) -> asyncio.Queue:
        """Return a queue that receives peer node information from handshakes."""