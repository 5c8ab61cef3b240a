from collections.abc import Callable
from functools import wraps
from typing import Any
from typing import Optional

from tiercache.manager import CacheManager
from tiercache.manager import get_result
from tiercache.proxy import ManagerProxy
from tiercache.types import CACHE_KEY_SEPARATOR

KeyBuilder = Callable[[Callable, tuple, dict], str]


def default_key_builder(func: Callable, args: tuple, kwargs: dict) -> str:
    """Build a key from the function's qualified name and its arguments."""
    parts = [
        f"{func.__module__}.{func.__qualname__}",
        repr(args),
        repr(sorted(kwargs.items())),
    ]
    return CACHE_KEY_SEPARATOR.join(parts)


def cached(
    ttl: Optional[float] = None,
    cache_key_builder: Optional[KeyBuilder] = None,
    manager: Optional[CacheManager] = None,
) -> Callable:
    """Cache the results of a sync or async function.

    The decorated function always becomes a coroutine function. Binary
    results persist to disk, other results stay in memory, and None is never
    cached.

    Args:
        ttl: Time-to-live in seconds (None = the manager's default_ttl)
        cache_key_builder: Builds the key from ``(func, args, kwargs)``
        manager: Manager to use; the registered one is looked up per call otherwise
    """
    key_builder = cache_key_builder or default_key_builder

    def decorator(func: Callable) -> Callable:
        @wraps(func)
        async def wrapper(*args: Any, **kwargs: Any) -> Any:
            cache_manager = manager or ManagerProxy.get_manager()
            cache_key = key_builder(func, args, kwargs)
            return await cache_manager.get_or_set(
                cache_key, lambda: get_result(func, *args, **kwargs), ttl=ttl
            )

        return wrapper

    return decorator
