"""
Tag-based cache invalidation.

A mutation describes what it changed with an ``InvalidationTags`` set; the
invalidator maps the tags to the exact keys of the cached views that became
stale and deletes them. Filtered product listings are not tracked key by key:
they carry a short TTL instead, unless pattern purging is switched on.
"""

import logging
from typing import List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from .manager import CacheManager
from .utils import CacheKeys, cache_keys, unique

logger = logging.getLogger(__name__)


class InvalidationTags(BaseModel):
    """Which entity categories a mutation changed and which ids are affected."""

    model_config = ConfigDict(frozen=True)

    product: bool = Field(default=False, description="Products changed")
    order: bool = Field(default=False, description="Orders changed")
    admin: bool = Field(default=False, description="Dashboard aggregates changed")
    review: bool = Field(default=False, description="Reviews changed")
    user_id: Optional[str] = Field(default=None, description="Owner of the changed orders")
    order_id: Optional[str] = Field(default=None, description="Changed order")
    product_id: Union[str, List[str], None] = Field(
        default=None, description="Changed product or products"
    )

    @property
    def product_ids(self) -> List[str]:
        if self.product_id is None:
            return []
        if isinstance(self.product_id, str):
            return [self.product_id]
        return unique(self.product_id)


class CacheInvalidator:
    """Deletes the cached views made stale by a store mutation."""

    def __init__(
        self,
        cache: CacheManager,
        keys: CacheKeys = cache_keys,
        purge_product_listings: bool = False,
    ):
        self.cache = cache
        self.keys = keys
        self.purge_product_listings = purge_product_listings

    def keys_for(self, tags: InvalidationTags) -> List[str]:
        """Exact keys invalidated by ``tags``."""
        keys: List[str] = []

        if tags.product:
            keys.extend([
                self.keys.latest_products(),
                self.keys.all_products(),
                self.keys.categories(),
            ])
            keys.extend(self.keys.product(product_id) for product_id in tags.product_ids)

        if tags.order:
            keys.append(self.keys.all_orders())
            if tags.user_id:
                keys.append(self.keys.my_orders(tags.user_id))
            if tags.order_id:
                keys.append(self.keys.order(tags.order_id))

        if tags.admin:
            keys.extend([self.keys.admin_stats(), self.keys.admin_charts()])

        if tags.review:
            keys.extend(self.keys.reviews(product_id) for product_id in tags.product_ids)

        return unique(keys)

    async def invalidate(self, tags: InvalidationTags) -> List[str]:
        """
        Delete the keys for ``tags``.

        Must be called after the store mutation has committed. The cache is
        not authoritative, so a failed deletion is logged and the entry is
        left to expire; the mutation itself is never rolled back.

        Returns:
            The keys whose deletion was issued
        """
        keys = self.keys_for(tags)
        if not keys:
            return keys

        bypassed_before = self.cache.stats.bypassed_operations
        deleted = await self.cache.delete_many(keys)
        if self.cache.stats.bypassed_operations > bypassed_before:
            logger.error(f"Cache invalidation failed, entries stay until TTL expiry: {keys}")
        else:
            logger.info(f"Invalidated {deleted} of {len(keys)} cache keys: {keys}")

        if tags.product and self.purge_product_listings:
            purged = await self.cache.clear_pattern(self.keys.product_list_pattern())
            logger.info(f"Purged {purged} filtered product listings")

        return keys
