"""Two-tier cache manager coordinating the memory and disk tiers."""

import inspect
import math
import time
from collections.abc import Callable
from logging import getLogger
from typing import Any
from typing import Optional

from tiercache.backends import DiskBackend
from tiercache.backends import MemoryBackend
from tiercache.config import CacheConfig
from tiercache.exceptions import CacheError
from tiercache.exceptions import StorageUnavailableError
from tiercache.store import PersistentStore
from tiercache.types import CacheStats
from tiercache.types import ClearResult
from tiercache.types import is_persistable

logger = getLogger(__name__)


async def get_result(func: Callable, *args: Any, **kwargs: Any) -> Any:
    """Call a sync or async function and return its result."""
    result = func(*args, **kwargs)
    if inspect.isawaitable(result):
        return await result
    return result


class CacheManager:
    """Single entry point for cache reads and writes.

    Every value lands in the memory tier. Binary values (``bytes``,
    ``bytearray``, ``memoryview``) are also written to the disk tier with the
    same expiry, so they survive a process restart; anything else is
    memory-only.

    Disk failures are absorbed by the disk tier and never reach the caller.

    Args:
        config: Cache settings (defaults are used when omitted)
        memory: Memory tier, built from ``config`` when omitted
        disk: Disk tier, or None to run memory-only
        clock: Source of the current epoch time
    """

    def __init__(
        self,
        config: Optional[CacheConfig] = None,
        *,
        memory: Optional[MemoryBackend] = None,
        disk: Optional[DiskBackend] = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.config = config or CacheConfig()
        self.clock = clock
        self.memory = memory or MemoryBackend(
            clock=clock, cleanup_interval=self.config.memory_cleanup_interval
        )
        self.disk = disk
        self.stats = CacheStats()

    @classmethod
    def from_config(
        cls,
        config: Optional[CacheConfig] = None,
        *,
        clock: Callable[[], float] = time.time,
    ) -> "CacheManager":
        """Build a manager with a disk tier in ``config.resolved_directory()``.

        Raises:
            StorageUnavailableError: If the directory is unusable and
                ``config.require_disk`` is set; otherwise the manager runs
                memory-only
        """
        config = config or CacheConfig()
        directory = config.resolved_directory()
        disk = None

        try:
            store = PersistentStore(directory, clock=clock)
        except StorageUnavailableError as e:
            if config.require_disk:
                raise
            logger.warning("Disk cache unavailable, running memory-only: %s", e)
        else:
            disk = DiskBackend(store, io_timeout=config.io_timeout)
            logger.info("Disk cache enabled at: <%s>", directory)

        return cls(config, disk=disk, clock=clock)

    @property
    def disk_enabled(self) -> bool:
        return self.disk is not None

    async def set(self, key: str, value: Any, ttl: Optional[float] = None) -> None:
        """Store a value in both tiers (disk only for binary values).

        Raises:
            CacheError: If ``ttl`` is not a positive finite number
        """
        if ttl is None:
            ttl = self.config.default_ttl
        if not math.isfinite(ttl) or ttl <= 0:
            msg = f"ttl must be a positive finite number, got {ttl}"
            raise CacheError(msg)

        expiry = self.clock() + ttl
        if isinstance(value, (bytearray, memoryview)):
            value = bytes(value)

        await self.memory.set(key, value, expiry)
        if self.disk is not None:
            if is_persistable(value):
                await self.disk.set(key, value, expiry)
            else:
                # Bytes from an earlier set must not outlive this value
                await self.disk.delete(key)
        self.stats.sets += 1

    async def get(self, key: str) -> Any:
        """Return the live value for ``key`` or None."""
        item = await self.memory.get(key)
        if item is not None:
            self.stats.memory_hits += 1
            logger.debug("Memory cache hit for key '%s'", key)
            return item.value

        if self.disk is not None:
            item = await self.disk.get(key)
            if item is not None:
                self.stats.disk_hits += 1
                logger.debug("Disk cache hit for key '%s'", key)
                if self.config.repopulate_memory:
                    await self.memory.set(key, item.value, item.expiry)
                return item.value

        self.stats.misses += 1
        logger.debug("Cache miss for key '%s'", key)
        return None

    async def get_or_set(
        self,
        key: str,
        producer: Callable[[], Any],
        ttl: Optional[float] = None,
    ) -> Any:
        """Return the cached value, or produce, store and return a fresh one.

        ``producer`` may be a sync or async callable. A None result is
        returned without being cached.
        """
        value = await self.get(key)
        if value is not None:
            return value

        value = await get_result(producer)
        if value is not None:
            await self.set(key, value, ttl)
        return value

    async def remove(self, key: str) -> None:
        await self.memory.delete(key)
        if self.disk is not None:
            await self.disk.delete(key)

    async def clear_all(self) -> ClearResult:
        """Empty both tiers.

        Returns the disk tier's outcome when there is one, else the memory
        tier's.
        """
        logger.info("Clearing all cache entries")
        result = await self.memory.clear()
        if self.disk is not None:
            result = await self.disk.clear()
        return result

    async def __aenter__(self) -> "CacheManager":
        self.memory.start_cleanup()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.memory.stop_cleanup()
