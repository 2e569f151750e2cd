"""
Valkey cache configuration.

Connection parameters for the read-through cache, built either from the
environment or from an already validated ``StorefrontConfig``.
"""

import os
import logging
from typing import Optional, Dict, Any, TYPE_CHECKING
from dataclasses import dataclass

if TYPE_CHECKING:
    from ..utils.config import StorefrontConfig

logger = logging.getLogger(__name__)


@dataclass
class ValkeyConfig:
    """Connection settings for the Valkey server."""

    host: str = "localhost"
    port: int = 6379
    password: Optional[str] = None
    database: int = 0
    max_connections: int = 10
    socket_timeout: float = 5.0
    socket_connect_timeout: float = 5.0
    retry_on_timeout: bool = True
    health_check_interval: int = 30

    def __post_init__(self):
        if not 0 < self.port < 65536:
            raise ValkeyConfigurationError(f"Invalid Valkey port: {self.port}")
        if self.database < 0:
            raise ValkeyConfigurationError(f"Invalid Valkey database index: {self.database}")
        if self.max_connections < 1:
            raise ValkeyConfigurationError("max_connections must be at least 1")

    @classmethod
    def from_env(cls) -> "ValkeyConfig":
        """Create a ValkeyConfig from VALKEY_* environment variables."""
        return cls(
            host=os.getenv("VALKEY_HOST", "localhost"),
            port=int(os.getenv("VALKEY_PORT", "6379")),
            password=os.getenv("VALKEY_PASSWORD") or None,
            database=int(os.getenv("VALKEY_DATABASE", "0")),
            max_connections=int(os.getenv("VALKEY_MAX_CONNECTIONS", "10")),
            socket_timeout=float(os.getenv("VALKEY_SOCKET_TIMEOUT", "5.0")),
            socket_connect_timeout=float(os.getenv("VALKEY_SOCKET_CONNECT_TIMEOUT", "5.0")),
            retry_on_timeout=os.getenv("VALKEY_RETRY_ON_TIMEOUT", "true").lower() == "true",
            health_check_interval=int(os.getenv("VALKEY_HEALTH_CHECK_INTERVAL", "30")),
        )

    @classmethod
    def from_settings(cls, settings: "StorefrontConfig") -> "ValkeyConfig":
        """Create a ValkeyConfig from the application settings."""
        return cls(
            host=settings.valkey_host,
            port=settings.valkey_port,
            password=settings.valkey_password,
            database=settings.valkey_database,
            max_connections=settings.valkey_max_connections,
            socket_timeout=settings.valkey_socket_timeout,
            socket_connect_timeout=settings.valkey_socket_timeout,
        )

    def to_connection_pool_kwargs(self) -> Dict[str, Any]:
        """
        Keyword arguments for ``valkey.ConnectionPool``.

        Responses are always decoded: cached payloads are JSON text.
        """
        kwargs = {
            "host": self.host,
            "port": self.port,
            "db": self.database,
            "socket_timeout": self.socket_timeout,
            "socket_connect_timeout": self.socket_connect_timeout,
            "retry_on_timeout": self.retry_on_timeout,
            "decode_responses": True,
            "max_connections": self.max_connections,
        }
        if self.password:
            kwargs["password"] = self.password
        return kwargs

    def __str__(self) -> str:
        """String representation hiding sensitive information."""
        password_display = "***" if self.password else "None"
        return (
            f"ValkeyConfig(host={self.host}, port={self.port}, "
            f"db={self.database}, password={password_display}, "
            f"max_connections={self.max_connections})"
        )


class ValkeyConnectionError(Exception):
    """Valkey server could not be reached."""
    pass


class ValkeyConfigurationError(Exception):
    """Valkey settings are unusable."""
    pass
