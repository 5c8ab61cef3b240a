class TierCacheError(Exception):
    """Base class for all exceptions in tiercache."""


class CacheError(TierCacheError):
    """Exception raised for cache-related errors."""


class StorageUnavailableError(CacheError):
    """Exception raised when the on-disk cache directory cannot be used."""


class CacheIOError(CacheError):
    """Exception raised when reading, writing or deleting a cache artifact fails."""


class CorruptRecordError(CacheError):
    """Exception raised when a record's metadata artifact cannot be parsed."""


class ManagerNotFoundError(TierCacheError):
    """Exception raised when no cache manager has been registered."""
