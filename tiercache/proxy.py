"""Opt-in process-wide registry for a cache manager.

Managers are meant to be built once at startup and passed to the code that
needs them. Registering one here is only for callers such as the
:func:`tiercache.cached` decorator that cannot receive it as an argument.
Nothing is registered implicitly, so tests keep using isolated managers.
"""

from logging import getLogger

from .exceptions import ManagerNotFoundError
from .manager import CacheManager

_registered_manager: CacheManager | None = None
logger = getLogger(__name__)


class ManagerProxy:
    """Holds the manager registered for the process, if any."""

    @staticmethod
    def get_manager() -> CacheManager:
        """Return the registered manager.

        Raises:
            ManagerNotFoundError: If the application never registered one
        """
        if _registered_manager is None:
            msg = (
                "No cache manager registered. Pass one explicitly or call "
                "ManagerProxy.set_manager() at startup."
            )
            raise ManagerNotFoundError(msg)

        return _registered_manager

    @staticmethod
    def set_manager(manager: CacheManager | None) -> None:
        """Register ``manager`` for the process, or unregister with None."""
        global _registered_manager
        if manager is None:
            logger.info("Unregistered cache manager")
        else:
            logger.info(
                "Registered cache manager (disk tier %s)",
                "enabled" if manager.disk_enabled else "disabled",
            )
        _registered_manager = manager
