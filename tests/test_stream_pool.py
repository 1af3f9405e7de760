import pytest

from runar_node.stream_pool import StreamPool


@pytest.mark.asyncio
async def test_empty_pool_has_no_stream():
    pool = StreamPool(2)
    assert await pool.get_idle_stream() is None


@pytest.mark.asyncio
async def test_returned_stream_is_reused():
    pool = StreamPool(2)
    stream = object()
    await pool.return_stream(stream)
    assert len(pool) == 1
    assert await pool.get_idle_stream() is stream
    assert len(pool) == 0


@pytest.mark.asyncio
async def test_most_recent_stream_comes_first():
    pool = StreamPool(3)
    first, second = object(), object()
    await pool.return_stream(first)
    await pool.return_stream(second)
    assert await pool.get_idle_stream() is second
    assert await pool.get_idle_stream() is first


@pytest.mark.asyncio
async def test_full_pool_drops_extra_streams():
    pool = StreamPool(1)
    kept, dropped = object(), object()
    await pool.return_stream(kept)
    await pool.return_stream(dropped)
    assert len(pool) == 1
    assert await pool.get_idle_stream() is kept
    assert await pool.get_idle_stream() is None


@pytest.mark.asyncio
async def test_zero_capacity_keeps_nothing():
    pool = StreamPool(0)
    await pool.return_stream(object())
    assert await pool.get_idle_stream() is None


@pytest.mark.asyncio
async def test_clear_empties_pool():
    pool = StreamPool(4)
    for _ in range(3):
        await pool.return_stream(object())
    await pool.clear()
    assert len(pool) == 0
    assert await pool.get_idle_stream() is None