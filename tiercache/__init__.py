"""tiercache: a two-tier (memory + disk) response cache with expiry."""

from .cache import cached as cached
from .cache import default_key_builder as default_key_builder
from .config import CacheConfig as CacheConfig
from .manager import CacheManager as CacheManager
from .proxy import ManagerProxy as ManagerProxy
from .store import PersistentStore as PersistentStore

__all__ = [
    "CacheConfig",
    "CacheManager",
    "ManagerProxy",
    "PersistentStore",
    "cached",
    "default_key_builder",
]
