from abc import ABC
from abc import abstractmethod
from typing import Any
from typing import Optional

from tiercache.types import CacheItem
from tiercache.types import ClearResult


class BaseCacheBackend(ABC):
    """Base class for all cache tiers."""

    @abstractmethod
    async def get(self, key: str) -> Optional[CacheItem]:
        """Retrieve a live cache item."""

    @abstractmethod
    async def set(self, key: str, value: Any, expiry: Optional[float] = None) -> None:
        """Store a value until the given epoch expiry."""

    @abstractmethod
    async def delete(self, key: str) -> None:
        """Remove a value from the tier."""

    @abstractmethod
    async def clear(self) -> ClearResult:
        """Clear all values held by the tier."""
