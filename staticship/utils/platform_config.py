"""
Process-wide cache of the platform upload limits.

The limits are fetched from the API once, on first use, and held read-only
afterwards. Concurrent first callers share a single in-flight fetch; a
failed fetch is forgotten so the next caller tries again.

Example usage:
    >>> from staticship.utils.platform_config import get_platform_config
    >>> limits = await get_platform_config().get(transport.get_platform_config)
"""

import asyncio
from typing import Awaitable, Callable, Optional

from staticship.errors import ConfigError
from staticship.types import ConfigLimits
from staticship.utils.logging import get_logger

logger = get_logger(__name__)

LimitsFetcher = Callable[[], Awaitable[ConfigLimits]]


class PlatformConfigCache:
    """Lazily fetched, shared ConfigLimits."""

    def __init__(self) -> None:
        self._limits: Optional[ConfigLimits] = None
        self._pending: Optional["asyncio.Future[ConfigLimits]"] = None

    async def get(self, fetch: LimitsFetcher) -> ConfigLimits:
        """
        Return the cached limits, fetching them on first use.

        Args:
            fetch: Coroutine function performing the API call; only used
                when nothing is cached and no fetch is in flight

        Raises:
            Whatever ``fetch`` raises; the failure is not cached
        """
        if self._limits is not None:
            return self._limits

        if self._pending is None:
            logger.debug("Fetching platform configuration")
            self._pending = asyncio.ensure_future(self._load(fetch))

        # Shielded so one waiter being cancelled does not cancel the shared fetch
        return await asyncio.shield(self._pending)

    async def _load(self, fetch: LimitsFetcher) -> ConfigLimits:
        try:
            limits = await fetch()
        except BaseException:
            self._pending = None
            logger.warning("Platform configuration fetch failed; will retry on next use")
            raise
        self._limits = limits
        self._pending = None
        logger.info(
            f"Platform limits: max_file_size={limits.max_file_size}, "
            f"max_files_count={limits.max_files_count}, "
            f"max_total_size={limits.max_total_size}"
        )
        return limits

    def set(self, limits: ConfigLimits) -> None:
        self._limits = limits

    def current(self) -> ConfigLimits:
        """
        Cached limits without fetching.

        Raises:
            ConfigError: If the limits have not been fetched yet
        """
        if self._limits is None:
            raise ConfigError(
                "Platform configuration not initialized. "
                "The client must fetch configuration from the API before performing operations."
            )
        return self._limits

    def is_initialized(self) -> bool:
        return self._limits is not None

    def reset(self) -> None:
        """Forget cached limits (used by tests and after credential changes)."""
        self._limits = None
        self._pending = None


# Global cache instance (lazy-created)
_platform_config: Optional[PlatformConfigCache] = None


def get_platform_config() -> PlatformConfigCache:
    """Get the process-wide platform configuration cache."""
    global _platform_config
    if _platform_config is None:
        _platform_config = PlatformConfigCache()
    return _platform_config
