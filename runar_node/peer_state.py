"""State of the connection to one remote peer."""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Any

from .discovery import NodeInfo
from .stream_pool import StreamPool
from .transport import NetworkConnectionError, PeerId

_log = logging.getLogger("runar_node.network.transport")

_STATUS_QUEUE_SIZE = 10
_CLOSE_REASON = b"Connection closed by peer"


class PeerState:
    """Connection, idle streams and node information for a single peer.

    ``connection`` is any object with an async ``open_uni()`` that opens an
    outgoing stream and a ``close(code, reason)`` method. Connection changes
    are reported as True/False on ``status_updates``; when nobody reads the
    queue and it is full, further updates are dropped.
    """

    def __init__(
        self,
        peer_id: PeerId,
        address: str,
        max_idle_streams: int,
        logger: logging.Logger | None = None,
    ) -> None:
        self.peer_id = peer_id
        self.address = address
        self.logger = logger or _log
        self.stream_pool = StreamPool(max_idle_streams, self.logger)
        self.connection: Any | None = None
        self.last_activity = time.monotonic()
        self.node_info: NodeInfo | None = None
        self.status_updates: asyncio.Queue[bool] = asyncio.Queue(_STATUS_QUEUE_SIZE)
        self._connection_lock = asyncio.Lock()

    def __repr__(self) -> str:
        return f"PeerState(peer_id={self.peer_id!r}, address={self.address!r})"

    def _report_status(self, connected: bool) -> None:
        try:
            self.status_updates.put_nowait(connected)
        except asyncio.QueueFull:
            pass

    async def set_node_info(self, node_info: NodeInfo) -> None:
        """Store the node information received during the handshake."""
        self.node_info = node_info
        self.logger.info("Node info set for peer %s", self.peer_id)

    async def set_connection(self, connection: Any) -> None:
        """Use the given connection for this peer and mark it active."""
        async with self._connection_lock:
            self.connection = connection
            self.last_activity = time.monotonic()
        self._report_status(True)
        self.logger.info("Connection established with peer %s", self.peer_id)

    async def is_connected(self) -> bool:
        """Return True if there is a connection to the peer."""
        async with self._connection_lock:
            return self.connection is not None

    async def get_send_stream(self) -> Any:
        """Return an idle stream, or open a new one on the connection.

        Raises NetworkConnectionError if not connected or opening fails.
        """
        stream = await self.stream_pool.get_idle_stream()
        if stream is not None:
            return stream
        async with self._connection_lock:
            if self.connection is None:
                raise NetworkConnectionError("Not connected to peer")
            try:
                stream = await self.connection.open_uni()
            except Exception as exc:
                self.logger.error("Failed to open stream to peer %s: %s", self.peer_id, exc)
                raise NetworkConnectionError(f"Failed to open stream: {exc}") from exc
        self.logger.debug("Opened new stream to peer %s", self.peer_id)
        return stream

    async def return_stream(self, stream: Any) -> None:
        """Give a stream back to the pool for reuse."""
        await self.stream_pool.return_stream(stream)

    async def update_activity(self) -> None:
        """Record that the peer was active now."""
        self.last_activity = time.monotonic()

    async def close_connection(self) -> None:
        """Close the connection, if any, and drop all idle streams."""
        async with self._connection_lock:
            connection, self.connection = self.connection, None
        if connection is not None:
            connection.close(0, _CLOSE_REASON)
            self._report_status(False)
            self.logger.info("Connection closed with peer %s", self.peer_id)
        await self.stream_pool.clear()