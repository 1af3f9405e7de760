import pytest

from runar_node.connection_pool import ConnectionPool
from runar_node.transport import PeerId


class FakeConnection:
    def __init__(self):
        self.closed = None

    async def open_uni(self):
        return object()

    def close(self, code, reason):
        self.closed = (code, reason)


def test_get_or_create_returns_same_state():
    pool = ConnectionPool()
    first = pool.get_or_create_peer(PeerId("a"), "addr-a", 4)
    second = pool.get_or_create_peer(PeerId("a"), "other", 4)
    assert first is second
    assert first.address == "addr-a"
    assert first.stream_pool.max_idle_streams == 4


def test_get_peer_unknown_is_none():
    pool = ConnectionPool()
    assert pool.get_peer(PeerId("missing")) is None


def test_get_peer_returns_created_state():
    pool = ConnectionPool()
    state = pool.get_or_create_peer(PeerId("a"), "addr-a", 2)
    assert pool.get_peer(PeerId("a")) is state


@pytest.mark.asyncio
async def test_is_peer_connected_follows_connection():
    pool = ConnectionPool()
    assert await pool.is_peer_connected(PeerId("a")) is False
    state = pool.get_or_create_peer(PeerId("a"), "addr-a", 2)
    assert await pool.is_peer_connected(PeerId("a")) is False
    await state.set_connection(FakeConnection())
    assert await pool.is_peer_connected(PeerId("a")) is True


@pytest.mark.asyncio
async def test_get_connected_peers_lists_only_connected():
    pool = ConnectionPool()
    connected = pool.get_or_create_peer(PeerId("a"), "addr-a", 2)
    pool.get_or_create_peer(PeerId("b"), "addr-b", 2)
    await connected.set_connection(FakeConnection())
    assert await pool.get_connected_peers() == [PeerId("a")]


@pytest.mark.asyncio
async def test_remove_peer_drops_state_and_connection():
    pool = ConnectionPool()
    state = pool.get_or_create_peer(PeerId("a"), "addr-a", 2)
    await state.set_connection(FakeConnection())
    await pool.remove_peer(PeerId("a"))
    assert pool.get_peer(PeerId("a")) is None
    assert await state.is_connected() is False
    assert await pool.get_connected_peers() == []


@pytest.mark.asyncio
async def test_remove_unknown_peer_leaves_pool_unchanged():
    pool = ConnectionPool()
    pool.get_or_create_peer(PeerId("a"), "addr-a", 2)
    await pool.remove_peer(PeerId("ghost"))
    assert list(pool.peers) == [PeerId("a")]