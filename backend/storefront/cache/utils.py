"""
Cache key naming and TTL helpers.

Keys are a ``-`` joined prefix followed by the query parameters in a fixed
order, e.g. ``products-{search}-{sort}-{category}-{price}-{page}`` or
``product-{id}``. Parameter values are escaped so that two different
parameter tuples can never render to the same key.
"""

import random
from enum import Enum
from typing import Any, Iterable, Optional, Union

KEY_SEPARATOR = "-"


class CacheKeyPrefix(str, Enum):
    """Namespaces of the cached views."""

    # Catalogue
    PRODUCTS = "products"            # filtered / paginated listing
    PRODUCT = "product"              # single product
    ALL_PRODUCTS = "all-products"    # admin listing
    LATEST_PRODUCTS = "latest-products"
    CATEGORIES = "categories"
    REVIEWS = "reviews"

    # Orders
    ORDER = "order"
    MY_ORDERS = "my-orders"
    ALL_ORDERS = "all-orders"

    # Admin dashboard aggregates
    ADMIN_STATS = "admin-stats"
    ADMIN_CHARTS = "admin-charts"


class TTLPreset(int, Enum):
    """TTL presets in seconds."""

    NEAR_REAL_TIME = 30          # filtered product listings
    DEFAULT = 14400              # 4 hours


class CacheKeyBuilder:
    """Deterministic construction of cache keys from query parameters."""

    @staticmethod
    def escape(value: Any) -> str:
        """
        Render one key segment.

        ``None`` and ``""`` both render as the empty segment. ``%`` and the
        separator are percent-encoded so segments never bleed into each other.
        """
        if value is None:
            return ""
        if isinstance(value, Enum):
            value = value.value
        if isinstance(value, float) and value.is_integer():
            value = int(value)
        return str(value).replace("%", "%25").replace(KEY_SEPARATOR, "%2D")

    @classmethod
    def build_key(cls, prefix: Union[CacheKeyPrefix, str], *parts: Any) -> str:
        """
        Build a key from a prefix and positional parameters.

        Unlike the prefix, every part is escaped and kept even when empty,
        so the position of a parameter is significant.

        Example:
            build_key(CacheKeyPrefix.PRODUCTS, "phone", "asc", None, 500, 1)
            # Returns: "products-phone-asc--500-1"
        """
        prefix_str = prefix.value if isinstance(prefix, CacheKeyPrefix) else str(prefix)
        if not parts:
            return prefix_str
        return KEY_SEPARATOR.join([prefix_str] + [cls.escape(part) for part in parts])

    @staticmethod
    def build_pattern(prefix: Union[CacheKeyPrefix, str]) -> str:
        """SCAN pattern matching every key under ``prefix``."""
        prefix_str = prefix.value if isinstance(prefix, CacheKeyPrefix) else str(prefix)
        return f"{prefix_str}{KEY_SEPARATOR}*"


class TTLCalculator:
    """TTL arithmetic shared by the cache manager."""

    @staticmethod
    def calculate_ttl_with_jitter(
        base_ttl: Union[int, TTLPreset],
        jitter_percent: float = 0.1,
        min_ttl: int = 1,
    ) -> int:
        """
        Spread expirations around ``base_ttl`` by up to ``jitter_percent``.

        Example:
            calculate_ttl_with_jitter(3600, 0.1)  # 3240-3960 seconds
        """
        base_seconds = int(base_ttl)
        jitter_range = int(base_seconds * jitter_percent)
        jitter = random.randint(-jitter_range, jitter_range) if jitter_range else 0
        return max(base_seconds + jitter, min_ttl)


class CacheKeys:
    """Named constructors for every cached view."""

    builder = CacheKeyBuilder

    def product_list(
        self,
        search: Optional[str],
        sort: Optional[Any],
        category: Optional[str],
        price: Optional[float],
        page: int,
    ) -> str:
        return self.builder.build_key(CacheKeyPrefix.PRODUCTS, search, sort, category, price, page)

    def product(self, product_id: str) -> str:
        return self.builder.build_key(CacheKeyPrefix.PRODUCT, product_id)

    def all_products(self) -> str:
        return CacheKeyPrefix.ALL_PRODUCTS.value

    def latest_products(self) -> str:
        return CacheKeyPrefix.LATEST_PRODUCTS.value

    def categories(self) -> str:
        return CacheKeyPrefix.CATEGORIES.value

    def reviews(self, product_id: str) -> str:
        return self.builder.build_key(CacheKeyPrefix.REVIEWS, product_id)

    def order(self, order_id: str) -> str:
        return self.builder.build_key(CacheKeyPrefix.ORDER, order_id)

    def my_orders(self, user_id: str) -> str:
        return self.builder.build_key(CacheKeyPrefix.MY_ORDERS, user_id)

    def all_orders(self) -> str:
        return CacheKeyPrefix.ALL_ORDERS.value

    def admin_stats(self) -> str:
        return CacheKeyPrefix.ADMIN_STATS.value

    def admin_charts(self) -> str:
        return CacheKeyPrefix.ADMIN_CHARTS.value

    def product_list_pattern(self) -> str:
        return self.builder.build_pattern(CacheKeyPrefix.PRODUCTS)


def unique(keys: Iterable[str]) -> list:
    """Drop duplicate keys, keeping first-seen order."""
    return list(dict.fromkeys(keys))


cache_keys = CacheKeys()
