"""
Storefront: e-commerce backend with a Valkey read-through cache.

Products, orders and reviews are persisted in the document store and served
through a read-through cache. Every store mutation is followed by tag-based
invalidation of the cached views it made stale.
"""

__version__ = "0.1.0"
