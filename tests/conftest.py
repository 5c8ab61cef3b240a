from collections.abc import AsyncGenerator
from pathlib import Path
from typing import Any

import pytest
import pytest_asyncio

from tiercache.backends import DiskBackend
from tiercache.config import CacheConfig
from tiercache.manager import CacheManager
from tiercache.proxy import ManagerProxy
from tiercache.store import PersistentStore


class FakeClock:
    """Manually advanced epoch clock."""

    def __init__(self, start: float = 1_741_600_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def cache_dir(tmp_path: Path) -> Path:
    return tmp_path / "ApiCache"


@pytest.fixture
def store(cache_dir: Path, clock: FakeClock) -> PersistentStore:
    return PersistentStore(cache_dir, clock=clock)


@pytest.fixture
def disk_backend(store: PersistentStore) -> DiskBackend:
    return DiskBackend(store, io_timeout=2.0)


@pytest.fixture
def config(tmp_path: Path) -> CacheConfig:
    return CacheConfig(base_directory=tmp_path)


@pytest_asyncio.fixture
async def manager(
    config: CacheConfig, clock: FakeClock
) -> AsyncGenerator[CacheManager, Any]:
    cache_manager = CacheManager.from_config(config, clock=clock)
    yield cache_manager
    await cache_manager.clear_all()


@pytest.fixture(autouse=True)
def reset_manager_proxy():
    yield
    ManagerProxy.set_manager(None)
