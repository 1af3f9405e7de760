"""Pool of per-peer connection states."""

from __future__ import annotations

import logging

from .peer_state import PeerState
from .transport import PeerId

_log = logging.getLogger("runar_node.network.transport")


class ConnectionPool:
    """Holds one PeerState per peer and answers connection queries."""

    def __init__(self, logger: logging.Logger | None = None) -> None:
        self.logger = logger or _log
        self.peers: dict[PeerId, PeerState] = {}

    def __repr__(self) -> str:
        return "ConnectionPool()"

    def get_or_create_peer(
        self, peer_id: PeerId, address: str, max_idle_streams: int
    ) -> PeerState:
        """Return the peer's state, creating it if the peer is new."""
        state = self.peers.get(peer_id)
        if state is None:
            state = PeerState(peer_id, address, max_idle_streams, self.logger)
            self.peers[peer_id] = state
        return state

    def get_peer(self, peer_id: PeerId) -> PeerState | None:
        """Return the peer's state, or None if unknown."""
        return self.peers.get(peer_id)

    async def remove_peer(self, peer_id: PeerId) -> None:
        """Forget a peer and drop its connection; unknown peers are ignored."""
        state = self.peers.pop(peer_id, None)
        if state is not None:
            async with state._connection_lock:
                state.connection = None

    async def is_peer_connected(self, peer_id: PeerId) -> bool:
        """Return True if the peer is known and connected."""
        state = self.get_peer(peer_id)
        return state is not None and await state.is_connected()

    async def get_connected_peers(self) -> list[PeerId]:
        """Return the ids of all connected peers."""
        return [
            peer_id
            for peer_id, state in list(self.peers.items())
            if await state.is_connected()
        ]