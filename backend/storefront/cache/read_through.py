"""
Read-through accessor used by every read endpoint.
"""

import asyncio
import inspect
import logging
from typing import Any, Awaitable, Callable, Optional, Union

from .manager import CacheManager

logger = logging.getLogger(__name__)

Compute = Callable[[], Union[Any, Awaitable[Any]]]


class ReadThroughCache:
    """
    Get-or-compute-and-cache over a ``CacheManager``.

    The document store stays authoritative: a miss, or a cache that cannot
    be reached, always falls back to ``compute``.
    """

    def __init__(self, cache: CacheManager, default_ttl: int):
        self.cache = cache
        self.default_ttl = default_ttl

    async def get_or_set(
        self,
        key: str,
        compute: Compute,
        ttl: Optional[int] = None,
        jitter: bool = True,
    ) -> Any:
        """
        Return the cached value for ``key``, computing and caching it on a miss.

        Args:
            key: Cache key
            compute: Coroutine function, or a blocking callable run in a worker
                thread, producing a JSON-serializable value
            ttl: TTL in seconds, defaults to the configured TTL
            jitter: Spread the TTL; disable for short-lived entries

        Returns:
            The cached or freshly computed value

        Exceptions raised by ``compute`` propagate and nothing is cached.
        """
        cached = await self.cache.get(key)
        if cached is not None:
            logger.debug(f"Cache hit: {key}")
            return cached

        logger.debug(f"Cache miss: {key}")
        if inspect.iscoroutinefunction(compute):
            value = await compute()
        else:
            value = await asyncio.to_thread(compute)

        stored = await self.cache.set(
            key, value, ttl=ttl if ttl is not None else self.default_ttl, jitter=jitter
        )
        if not stored:
            logger.debug(f"Serving {key} uncached")
        return value
