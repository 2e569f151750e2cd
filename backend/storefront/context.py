"""
Application context: the store, cache, image host and services built once at
startup and shared by every request.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from .cache.client import ValkeyClient
from .cache.config import ValkeyConfig
from .cache.invalidation import CacheInvalidator
from .cache.manager import CacheManager
from .cache.read_through import ReadThroughCache
from .database.config import DatabaseConfig, initialize_database
from .services.dashboard import DashboardService
from .services.images import ImageHost, create_image_host
from .services.orders import OrderService
from .services.products import ProductService
from .services.reviews import ReviewService
from .utils.config import StorefrontConfig

logger = logging.getLogger(__name__)


@dataclass
class AppContext:
    settings: StorefrontConfig
    db: DatabaseConfig
    cache: CacheManager
    image_host: ImageHost
    read_through: ReadThroughCache
    invalidator: CacheInvalidator
    products: ProductService
    reviews: ReviewService
    orders: OrderService
    dashboard: DashboardService

    @classmethod
    def create(
        cls,
        settings: StorefrontConfig,
        db: DatabaseConfig,
        cache: CacheManager,
        image_host: ImageHost,
    ) -> "AppContext":
        """Wire the services over already constructed collaborators."""
        read_through = ReadThroughCache(cache, default_ttl=settings.cache_ttl)
        invalidator = CacheInvalidator(
            cache, purge_product_listings=settings.purge_product_listings
        )
        return cls(
            settings=settings,
            db=db,
            cache=cache,
            image_host=image_host,
            read_through=read_through,
            invalidator=invalidator,
            products=ProductService(
                db,
                read_through,
                invalidator,
                image_host,
                products_per_page=settings.products_per_page,
                latest_limit=settings.latest_products_limit,
                list_ttl=settings.product_list_ttl,
            ),
            reviews=ReviewService(db, read_through, invalidator),
            orders=OrderService(db, read_through, invalidator),
            dashboard=DashboardService(db, read_through),
        )

    async def close(self) -> None:
        await self.cache.close()
        self.db.close()
        logger.info("Application context closed")


def create_cache(settings: StorefrontConfig) -> CacheManager:
    client: Optional[ValkeyClient] = None
    if settings.cache_backend == "valkey":
        client = ValkeyClient(ValkeyConfig.from_settings(settings))
    return CacheManager(
        client=client,
        default_ttl=settings.cache_ttl,
        jitter_percent=settings.cache_ttl_jitter,
    )


async def build_context(settings: StorefrontConfig) -> AppContext:
    """
    Build the application context from settings.

    The store must be reachable; an unreachable Valkey only leaves the cache
    bypassed.
    """
    db = initialize_database(settings.database_url, echo=settings.debug)
    cache = create_cache(settings)
    await cache.initialize()

    context = AppContext.create(settings, db, cache, create_image_host(settings))
    logger.info(
        f"Application context ready (store={db.db_type}, "
        f"cache={'in-process' if cache.is_local else 'valkey'}, "
        f"images={settings.image_host})"
    )
    return context
