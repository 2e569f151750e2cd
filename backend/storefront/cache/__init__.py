"""
Caching layer for the storefront backend.

Valkey client configuration, the cache manager, key naming, the read-through
accessor and tag-based invalidation.
"""

from .config import ValkeyConfig, ValkeyConnectionError, ValkeyConfigurationError
from .client import ValkeyClient
from .utils import CacheKeyPrefix, TTLPreset, CacheKeyBuilder, TTLCalculator, CacheKeys, cache_keys
from .manager import CacheManager, CacheStats
from .read_through import ReadThroughCache
from .invalidation import InvalidationTags, CacheInvalidator

__all__ = [
    # Configuration
    "ValkeyConfig",
    "ValkeyConnectionError",
    "ValkeyConfigurationError",

    # Client and manager
    "ValkeyClient",
    "CacheManager",
    "CacheStats",

    # Keys
    "CacheKeyPrefix",
    "TTLPreset",
    "CacheKeyBuilder",
    "TTLCalculator",
    "CacheKeys",
    "cache_keys",

    # Read-through and invalidation
    "ReadThroughCache",
    "InvalidationTags",
    "CacheInvalidator",
]
