import asyncio
from collections.abc import Callable
from logging import getLogger
from typing import Any
from typing import Optional
from typing import TypeVar

from tiercache.exceptions import CacheError
from tiercache.exceptions import CacheIOError
from tiercache.exceptions import CorruptRecordError
from tiercache.store import PersistentStore
from tiercache.types import CacheItem
from tiercache.types import ClearResult
from tiercache.types import is_persistable

from .base import BaseCacheBackend

logger = getLogger(__name__)

T = TypeVar("T")


class DiskBackend(BaseCacheBackend):
    """Persistent cache tier on top of a :class:`PersistentStore`.

    Blocking store calls run in a worker thread and are bounded by
    ``io_timeout``. Disk failures never leave this class: reads degrade to a
    miss and writes to a no-op, both logged.
    """

    def __init__(self, store: PersistentStore, io_timeout: float = 5.0) -> None:
        self.store = store
        self.io_timeout = io_timeout

    async def _run(self, func: Callable[..., T], *args: Any) -> T:
        try:
            return await asyncio.wait_for(
                asyncio.to_thread(func, *args), timeout=self.io_timeout
            )
        except asyncio.TimeoutError as e:
            msg = f"{func.__name__} did not finish within {self.io_timeout}s"
            raise CacheIOError(msg) from e

    async def get(self, key: str) -> Optional[CacheItem]:
        try:
            record = await self._run(self.store.get_record, key)
        except CorruptRecordError as e:
            logger.warning("Discarded corrupt disk cache record: %s", e)
            return None
        except CacheIOError as e:
            logger.warning("Disk cache read failed for key '%s': %s", key, e)
            return None

        if record is None:
            return None
        payload, expiry = record
        return CacheItem(value=payload, expiry=expiry)

    async def set(self, key: str, value: Any, expiry: Optional[float] = None) -> None:
        if not is_persistable(value):
            logger.debug("Value for key '%s' is not binary, not persisting", key)
            return
        if expiry is None:
            msg = "Disk cache records require an expiry"
            raise CacheError(msg)

        try:
            await self._run(self.store.put, key, bytes(value), expiry)
        except CacheIOError as e:
            logger.warning("Disk cache write failed for key '%s': %s", key, e)

    async def delete(self, key: str) -> None:
        try:
            await self._run(self.store.remove, key)
        except CacheIOError as e:
            logger.warning("Disk cache delete failed for key '%s': %s", key, e)

    async def clear(self) -> ClearResult:
        try:
            return await self._run(self.store.clear)
        except CacheIOError as e:
            logger.warning("Disk cache clear failed: %s", e)
            return ClearResult(failed=[str(self.store.directory)])
