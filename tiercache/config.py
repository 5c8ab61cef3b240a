"""Cache configuration settings."""

import os
from pathlib import Path

from pydantic import BaseModel
from pydantic import Field


def default_cache_root() -> Path:
    """Return the platform cache location (``$XDG_CACHE_HOME`` or ``~/.cache``)."""
    xdg_cache = os.environ.get("XDG_CACHE_HOME")
    if xdg_cache:
        return Path(xdg_cache)
    return Path.home() / ".cache"


class CacheConfig(BaseModel):
    """Cache configuration settings."""

    # Disk tier location
    base_directory: Path | None = Field(
        default=None,
        description="Parent directory of the disk tier (None = platform cache location)",
    )
    directory_name: str = Field(
        default="ApiCache",
        min_length=1,
        description="Name of the disk tier directory inside base_directory",
    )
    require_disk: bool = Field(
        default=False,
        description="Whether an unusable disk tier should raise instead of running memory-only",
    )

    # Expiry
    default_ttl: float = Field(
        default=300,
        gt=0,
        description="Time-to-live in seconds used when set() is called without one",
    )

    # Tier behaviour
    repopulate_memory: bool = Field(
        default=True,
        description="Whether a disk hit is copied back into the memory tier",
    )
    io_timeout: float = Field(
        default=5.0,
        gt=0,
        description="Upper bound in seconds for a single disk operation",
    )
    memory_cleanup_interval: int = Field(
        default=60,
        gt=0,
        description="Seconds between sweeps of expired memory entries",
    )

    def resolved_directory(self) -> Path:
        """Return the directory the disk tier lives in."""
        base = self.base_directory or default_cache_root()
        return base / self.directory_name
