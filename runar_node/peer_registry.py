"""Registry of known peers, their connection status and last activity."""

from __future__ import annotations

import threading
import time
from collections.abc import Callable
from dataclasses import dataclass, field, replace
from enum import Enum

from .discovery import PeerInfo
from .transport import PeerId


class PeerStatus(Enum):
    """Connection status of a peer."""

    DISCOVERED = "Discovered"
    CONNECTING = "Connecting"
    CONNECTED = "Connected"
    DISCONNECTING = "Disconnecting"
    DISCONNECTED = "Disconnected"


class PeerNotFoundError(LookupError):
    """Raised when an operation names a peer the registry does not know."""


@dataclass
class PeerEntry:
    """A known peer with its status and metadata; timestamps are epoch seconds."""

    peer_info: PeerInfo
    last_seen: float = field(default_factory=time.time)
    status: PeerStatus = PeerStatus.DISCOVERED
    status_changed: float = field(default_factory=time.time)
    connection_attempts: int = 0
    metadata: dict[str, str] = field(default_factory=dict)

    def set_status(self, status: PeerStatus) -> None:
        """Change the status and record when it changed."""
        self.status = status
        self.status_changed = time.time()

    def set_metadata(self, key: str, value: str) -> None:
        """Add or replace one metadata value."""
        self.metadata[key] = value

    def _copy(self) -> PeerEntry:
        return replace(self, metadata=dict(self.metadata))


@dataclass
class PeerRegistryOptions:
    """Limits and timings of the registry; durations are in seconds."""

    max_peers_per_network: int = 100
    peer_ttl: float = 3600.0
    cleanup_interval: float = 300.0


class PeerRegistry:
    """Thread-safe registry of peers keyed by public key.

    Lookups return copies, so changing a returned entry does not change the
    registry.
    """

    def __init__(
        self,
        options: PeerRegistryOptions | None = None,
        *,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.options = options if options is not None else PeerRegistryOptions()
        self._clock = clock
        self._peers: dict[str, PeerEntry] = {}
        self._lock = threading.Lock()

    def add_peer(self, peer_info: PeerInfo) -> None:
        """Add a peer, or refresh its information and last-seen time if known."""
        now = self._clock()
        with self._lock:
            existing = self._peers.get(peer_info.public_key)
            if existing is not None:
                existing.last_seen = now
                existing.peer_info = peer_info
            else:
                self._peers[peer_info.public_key] = PeerEntry(
                    peer_info, last_seen=now, status_changed=now
                )

    def update_peer_status(self, peer_id: PeerId, status: PeerStatus) -> None:
        """Set a known peer's status; raises PeerNotFoundError otherwise."""
        with self._lock:
            entry = self._peers.get(peer_id.public_key)
            if entry is None:
                raise PeerNotFoundError(f"Peer not found: {peer_id}")
            entry.set_status(status)

    def update_peer(self, peer_info: PeerInfo) -> None:
        """Refresh a known peer's information; raises PeerNotFoundError otherwise."""
        with self._lock:
            entry = self._peers.get(peer_info.public_key)
            if entry is None:
                raise PeerNotFoundError(
                    f"Peer not found for update: {peer_info.public_key}"
                )
            entry.last_seen = self._clock()
            entry.peer_info = peer_info

    def find_peer(self, public_key: str) -> PeerEntry | None:
        """Return a copy of the peer's entry, or None if unknown."""
        with self._lock:
            entry = self._peers.get(public_key)
            return entry._copy() if entry is not None else None

    def find_peers_by_status(self, status: PeerStatus) -> list[PeerEntry]:
        """Return copies of all entries with the given status."""
        with self._lock:
            return [e._copy() for e in self._peers.values() if e.status == status]

    def get_all_peers(self) -> list[PeerEntry]:
        """Return copies of all entries."""
        with self._lock:
            return [e._copy() for e in self._peers.values()]

    def remove_peer(self, peer_id: PeerId) -> None:
        """Remove a peer; raises PeerNotFoundError if unknown."""
        with self._lock:
            if self._peers.pop(peer_id.public_key, None) is None:
                raise PeerNotFoundError(f"Peer not found: {peer_id.public_key}")

    def cleanup_stale_peers(self) -> int:
        """Remove peers not seen within the TTL and return how many were removed.

        Entries whose last-seen time lies in the future are kept.
        """
        now = self._clock()
        ttl = self.options.peer_ttl
        with self._lock:
            stale = [
                key
                for key, entry in self._peers.items()
                if now >= entry.last_seen and now - entry.last_seen > ttl
            ]
            for key in stale:
                del self._peers[key]
        return len(stale)