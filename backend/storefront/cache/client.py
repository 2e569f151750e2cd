"""
Pooled Valkey client with connection retries and health checks.
"""

import asyncio
import logging
import time
from typing import Optional, Any, Dict

import valkey.asyncio as valkey
from valkey.exceptions import ConnectionError, TimeoutError

from .config import ValkeyConfig, ValkeyConnectionError

logger = logging.getLogger(__name__)


class ValkeyClient:
    """
    Owns the asyncio connection pool used by the cache manager.

    Connection attempts back off exponentially; once connected, a ping is
    issued at most every ``health_check_interval`` seconds before use.
    """

    def __init__(
        self,
        config: Optional[ValkeyConfig] = None,
        max_connection_attempts: int = 5,
        max_reconnect_delay: float = 30.0,
    ):
        self.config = config or ValkeyConfig.from_env()
        self.max_connection_attempts = max_connection_attempts
        self.max_reconnect_delay = max_reconnect_delay
        self._client: Optional[valkey.Valkey] = None
        self._connection_pool: Optional[valkey.ConnectionPool] = None
        self._is_connected = False
        self._last_health_check = 0.0

        logger.info(f"Initializing Valkey client: {self.config}")

    async def connect(self, attempts: Optional[int] = None) -> None:
        """
        Establish the connection pool and verify it with a ping.

        Args:
            attempts: Override for the number of attempts

        Raises:
            ValkeyConnectionError: If no attempt succeeded
        """
        if self._is_connected and self._client:
            return

        max_attempts = attempts or self.max_connection_attempts
        delay = 1.0
        for attempt in range(1, max_attempts + 1):
            try:
                logger.info(f"Attempting Valkey connection (attempt {attempt})")
                self._connection_pool = valkey.ConnectionPool(**self.config.to_connection_pool_kwargs())
                self._client = valkey.Valkey(connection_pool=self._connection_pool)
                await self._ping()
                self._is_connected = True
                self._last_health_check = time.time()
                logger.info("Connected to Valkey server")
                return
            except (ConnectionError, TimeoutError, OSError, ValkeyConnectionError) as e:
                logger.warning(f"Valkey connection attempt {attempt} failed: {e}")
                if attempt == max_attempts:
                    message = (
                        f"Failed to connect to Valkey after {attempt} attempts. "
                        f"Last error: {e}"
                    )
                    logger.error(message)
                    raise ValkeyConnectionError(message) from e
                logger.info(f"Retrying connection in {delay:.1f} seconds...")
                await asyncio.sleep(delay)
                delay = min(delay * 2, self.max_reconnect_delay)

    async def disconnect(self) -> None:
        """Release the connection pool."""
        if self._connection_pool:
            try:
                await self._connection_pool.disconnect()
                logger.info("Disconnected from Valkey server")
            except Exception as e:
                logger.warning(f"Error during Valkey disconnect: {e}")
            finally:
                self._connection_pool = None
                self._client = None
                self._is_connected = False

    async def _ping(self) -> None:
        if not self._client:
            raise ValkeyConnectionError("Client not initialized")
        try:
            if not await self._client.ping():
                raise ValkeyConnectionError("Ping returned False")
        except (ConnectionError, TimeoutError) as e:
            raise ValkeyConnectionError(f"Connection test failed: {e}") from e

    async def health_check(self, force: bool = False) -> bool:
        """
        Ping the server unless it was checked recently.

        Returns:
            bool: True if the connection is usable
        """
        now = time.time()
        if not force and (now - self._last_health_check) < self.config.health_check_interval:
            return self._is_connected

        self._last_health_check = now
        if not self._client or not self._is_connected:
            logger.debug("Health check failed: not connected")
            return False

        try:
            await self._ping()
            return True
        except ValkeyConnectionError as e:
            logger.warning(f"Health check failed: {e}")
            self._is_connected = False
            return False

    async def ensure_connection(self) -> None:
        """
        Reconnect when the last health check failed.

        A single attempt is made so that requests never wait on the backoff.

        Raises:
            ValkeyConnectionError: If the connection cannot be re-established
        """
        if not await self.health_check():
            logger.info("Connection unhealthy, attempting reconnection...")
            self._is_connected = False
            await self.connect(attempts=1)

    @property
    def is_connected(self) -> bool:
        return self._is_connected and self._client is not None

    @property
    def client(self) -> valkey.Valkey:
        """
        The underlying ``valkey.Valkey`` instance.

        Raises:
            ValkeyConnectionError: If the client is not connected
        """
        if not self._client or not self._is_connected:
            raise ValkeyConnectionError("Client not connected. Call connect() first.")
        return self._client

    async def get_connection_info(self) -> Dict[str, Any]:
        info: Dict[str, Any] = {
            "is_connected": self._is_connected,
            "config": str(self.config),
            "last_health_check": self._last_health_check,
        }
        if self._client and self._is_connected:
            try:
                server_info = await self._client.info()
                info.update({
                    "server_version": server_info.get("redis_version", "unknown"),
                    "connected_clients": server_info.get("connected_clients", 0),
                    "used_memory": server_info.get("used_memory_human", "unknown"),
                })
            except (ConnectionError, TimeoutError) as e:
                logger.warning(f"Failed to get server info: {e}")
                info["server_info_error"] = str(e)
        return info
