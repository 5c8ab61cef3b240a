import asyncio

import pytest
import pytest_asyncio

from tiercache.backends.memory import MemoryBackend


@pytest_asyncio.fixture
def memory_backend(clock):
    return MemoryBackend(clock=clock)


@pytest.mark.asyncio
async def test_memory_backend_set_get(memory_backend: MemoryBackend, clock):
    key = "test_key"
    value = {"response": b"test_value", "media_type": "application/json"}

    await memory_backend.set(key, value, clock() + 60)
    retrieved_item = await memory_backend.get(key)

    assert retrieved_item is not None
    assert retrieved_item.value == value
    assert retrieved_item.expiry == clock() + 60


@pytest.mark.asyncio
async def test_memory_backend_get_nonexistent_key(memory_backend: MemoryBackend):
    assert await memory_backend.get("nonexistent_key") is None


@pytest.mark.asyncio
async def test_memory_backend_without_expiry(memory_backend: MemoryBackend, clock):
    await memory_backend.set("test_key", b"test_value")
    clock.advance(10**9)

    retrieved_item = await memory_backend.get("test_key")

    assert retrieved_item is not None
    assert retrieved_item.value == b"test_value"


@pytest.mark.asyncio
async def test_memory_backend_delete(memory_backend: MemoryBackend, clock):
    await memory_backend.set("test_key", b"test_value", clock() + 60)
    await memory_backend.delete("test_key")

    assert await memory_backend.get("test_key") is None


@pytest.mark.asyncio
async def test_memory_backend_delete_nonexistent_key(memory_backend: MemoryBackend):
    await memory_backend.delete("nonexistent_key")


@pytest.mark.asyncio
async def test_memory_backend_clear(memory_backend: MemoryBackend, clock):
    await memory_backend.set("test_key1", b"test_value1", clock() + 60)
    await memory_backend.set("test_key2", b"test_value2", clock() + 60)

    result = await memory_backend.clear()

    assert result.removed == 2
    assert await memory_backend.get("test_key1") is None
    assert await memory_backend.get("test_key2") is None


@pytest.mark.asyncio
async def test_memory_backend_ttl_expiry(memory_backend: MemoryBackend, clock):
    await memory_backend.set("test_key", b"test_value", clock() + 1)
    clock.advance(2)

    assert await memory_backend.get("test_key") is None
    # Expired entries are dropped when read
    assert await memory_backend.get_all_keys() == []


@pytest.mark.asyncio
async def test_memory_backend_cleanup(memory_backend: MemoryBackend, clock):
    await memory_backend.set("test_key1", b"test_value1", clock() + 1)
    await memory_backend.set("test_key2", b"test_value2", clock() + 60)
    clock.advance(2)

    removed = await memory_backend.cleanup()

    assert removed == 1
    assert await memory_backend.get_all_keys() == ["test_key2"]


@pytest.mark.asyncio
async def test_memory_backend_start_cleanup(memory_backend: MemoryBackend):
    memory_backend.start_cleanup()
    assert memory_backend._cleanup_task is not None
    assert not memory_backend._cleanup_task.done()
    await memory_backend.stop_cleanup()


@pytest.mark.asyncio
async def test_memory_backend_stop_cleanup(memory_backend: MemoryBackend):
    memory_backend.start_cleanup()
    assert memory_backend._cleanup_task is not None
    await memory_backend.stop_cleanup()
    assert memory_backend._cleanup_task is None


@pytest.mark.asyncio
async def test_memory_backend_stop_cleanup_waits_for_task(
    memory_backend: MemoryBackend,
):
    memory_backend.start_cleanup()
    task = memory_backend._cleanup_task
    await memory_backend.stop_cleanup()
    assert task is not None
    assert task.done()
    assert task.cancelled()


@pytest.mark.asyncio
async def test_memory_backend_double_start_cleanup(memory_backend: MemoryBackend):
    memory_backend.start_cleanup()
    original_task = memory_backend._cleanup_task
    memory_backend.start_cleanup()
    assert memory_backend._cleanup_task is original_task
    await memory_backend.stop_cleanup()


@pytest.mark.asyncio
async def test_memory_backend_stop_cleanup_when_not_running(
    memory_backend: MemoryBackend,
):
    await memory_backend.stop_cleanup()
    assert memory_backend._cleanup_task is None


@pytest.mark.asyncio
async def test_memory_backend_cleanup_task_impl(clock):
    """Test that the cleanup task actually runs and removes expired items."""
    memory_backend = MemoryBackend(clock=clock, cleanup_interval=0)

    await memory_backend.set("test_key1", b"test_value1", clock() + 1)
    await memory_backend.set("test_key2", b"test_value2", clock() + 60)
    clock.advance(2)

    memory_backend.start_cleanup()
    await asyncio.sleep(0.05)
    await memory_backend.stop_cleanup()

    cache_data = await memory_backend.get_cache_data()
    assert list(cache_data) == ["test_key2"]


@pytest.mark.asyncio
async def test_memory_backend_get_cache_data_expired_entries(
    memory_backend: MemoryBackend, clock
) -> None:
    """Test get_cache_data includes expired entries that were never read."""
    await memory_backend.set("test_key", b"test_value", clock() + 1)
    clock.advance(1.1)

    cache_data = await memory_backend.get_cache_data()

    assert "test_key" in cache_data
    retrieved_value, expiry = cache_data["test_key"]
    assert retrieved_value == b"test_value"
    assert expiry is not None
    assert expiry <= clock()


@pytest.mark.asyncio
async def test_memory_backend_concurrent_sets(memory_backend: MemoryBackend, clock):
    keys = [f"key-{i}" for i in range(50)]

    await asyncio.gather(
        *(memory_backend.set(key, key.encode(), clock() + 60) for key in keys)
    )

    for key in keys:
        item = await memory_backend.get(key)
        assert item is not None
        assert item.value == key.encode()
