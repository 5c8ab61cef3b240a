import asyncio
import time
from collections.abc import Callable
from contextlib import suppress
from logging import getLogger
from typing import Any
from typing import Optional

from tiercache.types import CacheItem
from tiercache.types import ClearResult

from .base import BaseCacheBackend

logger = getLogger(__name__)


class MemoryBackend(BaseCacheBackend):
    """In-memory cache tier implementation."""

    def __init__(
        self,
        clock: Callable[[], float] = time.time,
        cleanup_interval: int = 60,
    ) -> None:
        self.cache: dict[str, CacheItem] = {}
        self.lock = asyncio.Lock()
        self.clock = clock
        self.cleanup_interval = cleanup_interval
        self._cleanup_task: asyncio.Task | None = None

    async def get(self, key: str) -> Optional[CacheItem]:
        async with self.lock:
            cached_item = self.cache.get(key)
            if cached_item is None:
                return None
            if cached_item.is_expired(self.clock()):
                self.cache.pop(key, None)
                return None
            return cached_item

    async def set(self, key: str, value: Any, expiry: Optional[float] = None) -> None:
        async with self.lock:
            self.cache[key] = CacheItem(value=value, expiry=expiry)

    async def delete(self, key: str) -> None:
        async with self.lock:
            self.cache.pop(key, None)

    async def clear(self) -> ClearResult:
        async with self.lock:
            removed = len(self.cache)
            self.cache.clear()
        return ClearResult(removed=removed)

    async def get_all_keys(self) -> list[str]:
        async with self.lock:
            return list(self.cache.keys())

    async def get_cache_data(self) -> dict[str, tuple[Any, Optional[float]]]:
        """Return raw ``key -> (value, expiry)`` pairs, expired entries included."""
        async with self.lock:
            return {k: (v.value, v.expiry) for k, v in self.cache.items()}

    def start_cleanup(self) -> None:
        if self._cleanup_task is None or self._cleanup_task.done():
            self._cleanup_task = asyncio.create_task(self._cleanup_loop())
            logger.debug("Started memory cache cleanup task")

    async def stop_cleanup(self) -> None:
        task = self._cleanup_task
        if task is not None:
            self._cleanup_task = None
            task.cancel()
            with suppress(asyncio.CancelledError):
                await task
            logger.debug("Stopped memory cache cleanup task")

    async def _cleanup_loop(self) -> None:
        while True:
            await asyncio.sleep(self.cleanup_interval)
            removed = await self.cleanup()
            if removed:
                logger.debug("Memory cache cleanup removed %d entries", removed)

    async def cleanup(self) -> int:
        async with self.lock:
            now = self.clock()
            expired_keys = [k for k, v in self.cache.items() if v.is_expired(now)]
            for key in expired_keys:
                self.cache.pop(key, None)
        return len(expired_keys)
