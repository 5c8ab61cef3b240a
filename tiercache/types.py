"""Type definitions and type aliases for tiercache."""

from dataclasses import dataclass
from dataclasses import field
from datetime import datetime
from datetime import timezone
from typing import Any

from pydantic import AwareDatetime
from pydantic import BaseModel
from pydantic import ConfigDict
from pydantic import Field

# Cache key separator used by the default key builder
CACHE_KEY_SEPARATOR = "|||"

# Suffix of the metadata artifact written next to each payload artifact
METADATA_SUFFIX = ".metadata"

PERSISTABLE_TYPES = (bytes, bytearray, memoryview)


def is_persistable(value: Any) -> bool:
    """Return True if the value is raw binary data that may be written to disk."""
    return isinstance(value, PERSISTABLE_TYPES)


@dataclass
class CacheItem:
    """Cache item with optional expiry time.

    Args:
        value: The cached payload (any object for the memory tier)
        expiry: Epoch timestamp when this cache item expires (None = never expires)
    """

    value: Any
    expiry: float | None = None

    def is_expired(self, now: float) -> bool:
        return self.expiry is not None and now > self.expiry


class RecordMetadata(BaseModel):
    """Contents of the ``<hash>.metadata`` artifact of a persisted record."""

    model_config = ConfigDict(populate_by_name=True)

    expires_at: AwareDatetime = Field(
        ...,
        alias="expiresAt",
        description="Absolute time after which the record is stale",
    )

    @classmethod
    def from_timestamp(cls, expiry: float) -> "RecordMetadata":
        return cls(expires_at=datetime.fromtimestamp(expiry, tz=timezone.utc))

    @property
    def expiry(self) -> float:
        """Expiry as an epoch timestamp."""
        return self.expires_at.timestamp()

    def is_expired(self, now: float) -> bool:
        return now > self.expiry


@dataclass
class ClearResult:
    """Aggregate outcome of a best-effort clear.

    Args:
        removed: Number of artifacts deleted
        failed: Names of artifacts that could not be deleted
    """

    removed: int = 0
    failed: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failed


@dataclass
class CacheStats:
    """Hit and miss counters of a cache manager."""

    memory_hits: int = 0
    disk_hits: int = 0
    misses: int = 0
    sets: int = 0

    @property
    def hits(self) -> int:
        return self.memory_hits + self.disk_hits

    def reset(self) -> None:
        self.memory_hits = 0
        self.disk_hits = 0
        self.misses = 0
        self.sets = 0
