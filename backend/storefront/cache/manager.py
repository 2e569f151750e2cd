"""
Cache manager with JSON serialization and graceful degradation.

Wraps Valkey operations so that a failing cache never fails a request: a
failed read is reported as a miss, a failed write or delete as ``False``,
and the failure is logged and counted. When no Valkey client is configured
an in-process store with TTL expiry takes its place.
"""

import fnmatch
import json
import logging
import time
from typing import Any, Awaitable, Callable, Dict, Iterable, List, Optional, Union
from datetime import datetime
from dataclasses import dataclass, field

from valkey.exceptions import ConnectionError, TimeoutError, ResponseError

from .client import ValkeyClient
from .config import ValkeyConnectionError
from .utils import TTLCalculator, TTLPreset

logger = logging.getLogger(__name__)

CACHE_ERRORS = (ConnectionError, TimeoutError, ResponseError, ValkeyConnectionError, OSError)


@dataclass
class CacheStats:
    """Cache operation counters."""

    hit_count: int = 0
    miss_count: int = 0
    set_count: int = 0
    delete_count: int = 0
    error_count: int = 0
    bypassed_operations: int = 0

    connection_errors: int = 0
    timeout_errors: int = 0
    other_errors: int = 0

    start_time: datetime = field(default_factory=datetime.now)

    @property
    def hit_ratio(self) -> float:
        total_reads = self.hit_count + self.miss_count
        return self.hit_count / total_reads if total_reads > 0 else 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "hit_count": self.hit_count,
            "miss_count": self.miss_count,
            "set_count": self.set_count,
            "delete_count": self.delete_count,
            "error_count": self.error_count,
            "bypassed_operations": self.bypassed_operations,
            "hit_ratio": self.hit_ratio,
            "connection_errors": self.connection_errors,
            "timeout_errors": self.timeout_errors,
            "other_errors": self.other_errors,
            "uptime_seconds": (datetime.now() - self.start_time).total_seconds(),
        }


class CacheManager:
    """
    Key-value cache used read-through by the services.

    Features:
    - JSON (de)serialization of cached values
    - SETEX with optional TTL jitter
    - Bypass with logging when Valkey is unavailable
    - Circuit breaker that skips Valkey after repeated failures
    - In-process store when running without Valkey
    """

    def __init__(
        self,
        client: Optional[ValkeyClient] = None,
        default_ttl: Union[int, TTLPreset] = TTLPreset.DEFAULT,
        jitter_percent: float = 0.1,
        circuit_breaker_threshold: int = 5,
        circuit_breaker_timeout: int = 60,
    ):
        """
        Args:
            client: ValkeyClient instance, None for the in-process store
            default_ttl: TTL used when ``set`` is called without one
            jitter_percent: Spread applied to TTLs when jitter is requested
            circuit_breaker_threshold: Consecutive failures before the circuit opens
            circuit_breaker_timeout: Seconds before Valkey is tried again
        """
        self.client = client
        self.default_ttl = int(default_ttl)
        self.jitter_percent = jitter_percent
        self.ttl_calculator = TTLCalculator()
        self.stats = CacheStats()

        self.circuit_breaker_threshold = circuit_breaker_threshold
        self.circuit_breaker_timeout = circuit_breaker_timeout
        self.consecutive_failures = 0
        self.circuit_open_time: Optional[float] = None
        self.is_circuit_open = False

        # key -> (serialized value, monotonic expiry or None)
        self._local_store: Dict[str, tuple] = {}

        backend = "valkey" if client else "in-process"
        logger.info(f"CacheManager initialized with {backend} backend")

    @property
    def is_local(self) -> bool:
        return self.client is None

    async def initialize(self) -> None:
        """Connect to Valkey; an unreachable server leaves the cache bypassed."""
        if not self.client:
            return
        try:
            await self.client.connect()
            logger.info("CacheManager connected to Valkey")
        except ValkeyConnectionError as e:
            logger.warning(f"Valkey unavailable, cache will be bypassed: {e}")
            self._record_error(e)

    # Circuit breaker and bookkeeping

    def _record_error(self, error: Exception) -> None:
        self.stats.error_count += 1
        self.consecutive_failures += 1

        if isinstance(error, (ConnectionError, ValkeyConnectionError)):
            self.stats.connection_errors += 1
        elif isinstance(error, TimeoutError):
            self.stats.timeout_errors += 1
        else:
            self.stats.other_errors += 1

        if self.consecutive_failures >= self.circuit_breaker_threshold:
            # A failed retry after the timeout re-arms the breaker for another period
            self.circuit_open_time = time.monotonic()
            if not self.is_circuit_open:
                self.is_circuit_open = True
                logger.warning(
                    f"Circuit breaker opened after {self.consecutive_failures} consecutive failures"
                )

    def _record_success(self) -> None:
        self.consecutive_failures = 0
        if self.is_circuit_open:
            self.is_circuit_open = False
            self.circuit_open_time = None
            logger.info("Circuit breaker closed after successful operation")

    def _is_circuit_breaker_open(self) -> bool:
        if not self.is_circuit_open or self.circuit_open_time is None:
            return False
        if time.monotonic() - self.circuit_open_time >= self.circuit_breaker_timeout:
            logger.info("Circuit breaker timeout expired, allowing retry")
            return False
        return True

    async def _execute(
        self, name: str, key: str, operation: Callable[[], Awaitable[Any]], default: Any
    ) -> Any:
        """
        Run a Valkey operation, bypassing the cache on failure.

        Returns:
            The operation result, or ``default`` when the cache was bypassed
        """
        if self._is_circuit_breaker_open():
            self.stats.bypassed_operations += 1
            logger.debug(f"Circuit breaker open, bypassing cache {name} for {key}")
            return default

        try:
            await self.client.ensure_connection()
            result = await operation()
        except CACHE_ERRORS as e:
            self._record_error(e)
            self.stats.bypassed_operations += 1
            logger.warning(f"Cache {name} failed for {key}, bypassing cache: {e}")
            return default

        self._record_success()
        return result

    # In-process store

    def _local_read(self, key: str) -> Optional[str]:
        entry = self._local_store.get(key)
        if entry is None:
            return None
        payload, expires_at = entry
        if expires_at is not None and time.monotonic() >= expires_at:
            del self._local_store[key]
            return None
        return payload

    def _local_write(self, key: str, payload: str, ttl: Optional[int]) -> bool:
        expires_at = time.monotonic() + ttl if ttl else None
        self._local_store[key] = (payload, expires_at)
        return True

    def _local_delete(self, keys: Iterable[str]) -> int:
        deleted = 0
        for key in keys:
            if self._local_read(key) is not None:
                deleted += 1
            self._local_store.pop(key, None)
        return deleted

    # Public operations

    async def get(self, key: str) -> Optional[Any]:
        """
        Read and deserialize a cached value.

        Returns:
            The cached value, or None on a miss or when the cache was bypassed
        """
        if self.is_local:
            payload = self._local_read(key)
        else:
            payload = await self._execute("get", key, lambda: self.client.client.get(key), None)

        if payload is None:
            self.stats.miss_count += 1
            return None

        try:
            value = json.loads(payload)
        except (json.JSONDecodeError, TypeError) as e:
            logger.warning(f"Discarding undecodable cache entry {key}: {e}")
            self.stats.miss_count += 1
            return None

        self.stats.hit_count += 1
        return value

    async def set(
        self,
        key: str,
        value: Any,
        ttl: Optional[Union[int, TTLPreset]] = None,
        jitter: bool = True,
    ) -> bool:
        """
        Serialize ``value`` as JSON and store it with a TTL.

        Args:
            key: Cache key
            value: JSON-serializable value
            ttl: TTL in seconds, defaults to the manager's default TTL
            jitter: Spread the TTL to avoid synchronized expirations

        Returns:
            True if the value was stored
        """
        payload = json.dumps(value)
        final_ttl = int(ttl) if ttl is not None else self.default_ttl
        if jitter:
            final_ttl = self.ttl_calculator.calculate_ttl_with_jitter(final_ttl, self.jitter_percent)

        if self.is_local:
            stored = self._local_write(key, payload, final_ttl)
        else:
            stored = await self._execute(
                "set", key, lambda: self.client.client.setex(key, final_ttl, payload), False
            )

        if stored:
            self.stats.set_count += 1
        return bool(stored)

    async def delete(self, key: str) -> bool:
        """Delete one key. Returns True if it existed."""
        return await self.delete_many([key]) > 0

    async def delete_many(self, keys: List[str]) -> int:
        """
        Delete several keys in one round trip.

        Returns:
            Number of keys that existed, 0 when the cache was bypassed
        """
        if not keys:
            return 0
        if self.is_local:
            deleted = self._local_delete(keys)
        else:
            deleted = await self._execute(
                "delete", ",".join(keys), lambda: self.client.client.delete(*keys), 0
            )
        self.stats.delete_count += int(deleted or 0)
        return int(deleted or 0)

    async def clear_pattern(self, pattern: str) -> int:
        """
        Delete every key matching a glob pattern.

        Uses SCAN on Valkey, so it is never issued on the request path for
        unbounded key spaces unless explicitly configured.
        """
        if self.is_local:
            matching = [key for key in list(self._local_store) if fnmatch.fnmatchcase(key, pattern)]
            return await self.delete_many(matching)

        async def scan_and_delete() -> int:
            keys = [key async for key in self.client.client.scan_iter(match=pattern)]
            return await self.client.client.delete(*keys) if keys else 0

        deleted = await self._execute("clear_pattern", pattern, scan_and_delete, 0)
        self.stats.delete_count += int(deleted or 0)
        return int(deleted or 0)

    async def get_stats(self) -> Dict[str, Any]:
        stats = self.stats.to_dict()
        stats.update({
            "backend": "in-process" if self.is_local else "valkey",
            "circuit_breaker_open": self.is_circuit_open,
            "consecutive_failures": self.consecutive_failures,
        })
        if self.is_local:
            stats["local_keys"] = len(self._local_store)
        else:
            stats["connection_info"] = await self.client.get_connection_info()
        return stats

    async def health_check(self) -> Dict[str, Any]:
        """
        Round-trip a probe value through the cache.

        Returns:
            Dict with ``status`` (healthy or degraded) and diagnostics
        """
        health: Dict[str, Any] = {
            "status": "healthy",
            "backend": "in-process" if self.is_local else "valkey",
            "circuit_breaker_open": self.is_circuit_open,
            "errors": [],
        }
        probe_key = "health-check"
        probe = {"timestamp": datetime.now().isoformat()}

        await self.set(probe_key, probe, ttl=60, jitter=False)
        retrieved = await self.get(probe_key)
        await self.delete(probe_key)

        if retrieved != probe:
            health["status"] = "degraded"
            health["errors"].append("Cache round trip failed, reads bypass the cache")
        return health

    async def close(self) -> None:
        if self.client:
            await self.client.disconnect()
        self._local_store.clear()
        logger.info("CacheManager closed")
