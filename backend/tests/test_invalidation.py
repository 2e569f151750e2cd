"""
Tests for tag-based cache invalidation.
"""

import pytest
from valkey.exceptions import ConnectionError

from storefront.cache import CacheInvalidator, InvalidationTags


class TestKeysFor:
    """The tag to key mapping."""

    def setup_method(self):
        self.invalidator = CacheInvalidator(cache=None)

    def test_product_tag(self):
        keys = self.invalidator.keys_for(InvalidationTags(product=True, product_id="p1"))
        assert keys == ["latest-products", "all-products", "categories", "product-p1"]

    def test_product_tag_with_several_ids(self):
        keys = self.invalidator.keys_for(
            InvalidationTags(product=True, product_id=["p1", "p2", "p1"])
        )
        assert "product-p1" in keys and "product-p2" in keys
        assert keys.count("product-p1") == 1

    def test_product_tag_without_id(self):
        keys = self.invalidator.keys_for(InvalidationTags(product=True))
        assert keys == ["latest-products", "all-products", "categories"]

    def test_order_tag(self):
        keys = self.invalidator.keys_for(
            InvalidationTags(order=True, user_id="u1", order_id="o1")
        )
        assert keys == ["all-orders", "my-orders-u1", "order-o1"]

    def test_order_tag_without_ids(self):
        assert self.invalidator.keys_for(InvalidationTags(order=True)) == ["all-orders"]

    def test_admin_tag(self):
        keys = self.invalidator.keys_for(InvalidationTags(admin=True))
        assert keys == ["admin-stats", "admin-charts"]

    def test_review_tag(self):
        keys = self.invalidator.keys_for(InvalidationTags(review=True, product_id="p1"))
        assert keys == ["reviews-p1"]

    def test_no_tags(self):
        assert self.invalidator.keys_for(InvalidationTags()) == []

    def test_filtered_listings_are_not_listed(self):
        keys = self.invalidator.keys_for(
            InvalidationTags(product=True, admin=True, review=True, product_id="p1")
        )
        assert not any(key.startswith("products-") for key in keys)


class TestInvalidate:

    @pytest.mark.asyncio
    async def test_deletes_stale_views_only(self, cache):
        for key in ("latest-products", "all-products", "categories", "product-p1", "product-p2"):
            await cache.set(key, {"cached": key})
        invalidator = CacheInvalidator(cache)

        keys = await invalidator.invalidate(InvalidationTags(product=True, product_id="p1"))

        assert "product-p1" in keys
        for key in ("latest-products", "all-products", "categories", "product-p1"):
            assert await cache.get(key) is None
        assert await cache.get("product-p2") == {"cached": "product-p2"}

    @pytest.mark.asyncio
    async def test_listings_survive_without_purge(self, cache):
        await cache.set("products-----1", {"products": []})
        await CacheInvalidator(cache).invalidate(InvalidationTags(product=True))
        assert await cache.get("products-----1") == {"products": []}

    @pytest.mark.asyncio
    async def test_listings_are_purged_when_enabled(self, cache):
        await cache.set("products-----1", {"products": []})
        await cache.set("products-tv----1", {"products": []})
        invalidator = CacheInvalidator(cache, purge_product_listings=True)

        await invalidator.invalidate(InvalidationTags(product=True))

        assert await cache.get("products-----1") is None
        assert await cache.get("products-tv----1") is None

    @pytest.mark.asyncio
    async def test_cache_failure_is_swallowed(self, valkey_cache, mock_valkey):
        mock_valkey.delete.side_effect = ConnectionError("down")
        invalidator = CacheInvalidator(valkey_cache)

        keys = await invalidator.invalidate(InvalidationTags(admin=True))

        assert keys == ["admin-stats", "admin-charts"]
        assert valkey_cache.stats.bypassed_operations == 1

    @pytest.mark.asyncio
    async def test_nothing_to_invalidate(self, cache):
        assert await CacheInvalidator(cache).invalidate(InvalidationTags()) == []
