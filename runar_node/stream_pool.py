"""Pool of idle outgoing streams kept for reuse."""

from __future__ import annotations

import asyncio
import logging
from typing import Any

_log = logging.getLogger("runar_node.network.transport")


class StreamPool:
    """Keeps up to ``max_idle_streams`` idle streams; extra returned streams are dropped."""

    def __init__(self, max_idle_streams: int, logger: logging.Logger | None = None) -> None:
        self.max_idle_streams = max_idle_streams
        self.logger = logger or _log
        self._idle: list[Any] = []
        self._lock = asyncio.Lock()

    def __len__(self) -> int:
        return len(self._idle)

    def __repr__(self) -> str:
        return "StreamPool()"

    async def get_idle_stream(self) -> Any | None:
        """Take the most recently returned idle stream, or None if there is none."""
        async with self._lock:
            return self._idle.pop() if self._idle else None

    async def return_stream(self, stream: Any) -> None:
        """Put a stream back for reuse, dropping it if the pool is full."""
        async with self._lock:
            if len(self._idle) < self.max_idle_streams:
                self._idle.append(stream)
            else:
                self.logger.debug("Dropping stream: pool is full")

    async def clear(self) -> None:
        """Drop all idle streams."""
        async with self._lock:
            self._idle.clear()