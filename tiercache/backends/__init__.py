"""Cache tier implementations for tiercache."""

from .base import BaseCacheBackend
from .disk import DiskBackend
from .memory import MemoryBackend

__all__ = [
    "BaseCacheBackend",
    "DiskBackend",
    "MemoryBackend",
]
