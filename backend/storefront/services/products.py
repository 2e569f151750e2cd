"""
Product catalogue service.

Reads go through the read-through cache; every mutation commits to the
store first and then invalidates the cached views it made stale.
"""

import asyncio
import logging
import math
from typing import List, Optional

from sqlalchemy import func

from ..cache.invalidation import CacheInvalidator, InvalidationTags
from ..cache.read_through import ReadThroughCache
from ..cache.utils import CacheKeys, TTLPreset, cache_keys
from ..database.config import DatabaseConfig
from ..database.models import Product, new_id
from ..errors import NotFoundError, ValidationError
from ..models.enums import SortOrder
from ..models.product import (
    NewProductForm,
    ProductListPage,
    ProductListQuery,
    ProductModel,
    ProductUpdateForm,
)
from .images import ImageHost, ImageUpload

logger = logging.getLogger(__name__)

MAX_PHOTOS = 5


def escape_like(value: str) -> str:
    """Escape LIKE wildcards so search terms match literally."""
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def validate_photos(photos: List[ImageUpload], required: bool) -> None:
    if required and not photos:
        raise ValidationError("Please add at least one Photo")
    if len(photos) > MAX_PHOTOS:
        raise ValidationError(f"You can only upload {MAX_PHOTOS} Photos")


class ProductService:
    """
    Product reads and admin mutations.

    Cached views: ``latest-products``, ``categories``, ``all-products``,
    ``product-{id}`` and the short-lived filtered listings ``products-...``.
    """

    def __init__(
        self,
        db: DatabaseConfig,
        read_through: ReadThroughCache,
        invalidator: CacheInvalidator,
        image_host: ImageHost,
        products_per_page: int = 8,
        latest_limit: int = 5,
        list_ttl: int = int(TTLPreset.NEAR_REAL_TIME),
        keys: CacheKeys = cache_keys,
    ):
        self.db = db
        self.read_through = read_through
        self.invalidator = invalidator
        self.image_host = image_host
        self.products_per_page = products_per_page
        self.latest_limit = latest_limit
        self.list_ttl = list_ttl
        self.keys = keys

    # Reads

    async def latest_products(self) -> List[dict]:
        """The newest products by creation time."""
        return await self.read_through.get_or_set(self.keys.latest_products(), self._load_latest)

    def _load_latest(self) -> List[dict]:
        with self.db.get_session_context() as session:
            rows = (
                session.query(Product)
                .order_by(Product.created_at.desc(), Product.id)
                .limit(self.latest_limit)
                .all()
            )
            return [ProductModel.model_validate(row).to_json() for row in rows]

    async def categories(self) -> List[str]:
        return await self.read_through.get_or_set(self.keys.categories(), self._load_categories)

    def _load_categories(self) -> List[str]:
        with self.db.get_session_context() as session:
            rows = session.query(Product.category).distinct().order_by(Product.category).all()
            return [category for (category,) in rows]

    async def all_products(self) -> List[dict]:
        """Every product, for the admin catalogue view."""
        return await self.read_through.get_or_set(self.keys.all_products(), self._load_all)

    def _load_all(self) -> List[dict]:
        with self.db.get_session_context() as session:
            rows = session.query(Product).order_by(Product.created_at.desc(), Product.id).all()
            return [ProductModel.model_validate(row).to_json() for row in rows]

    async def get_product(self, product_id: str) -> dict:
        """
        Single product.

        Raises:
            NotFoundError: If no product has this id (nothing is cached)
        """
        return await self.read_through.get_or_set(
            self.keys.product(product_id), lambda: self._load_product(product_id)
        )

    def _load_product(self, product_id: str) -> dict:
        with self.db.get_session_context() as session:
            product = session.get(Product, product_id)
            if product is None:
                raise NotFoundError("Product Not Found")
            return ProductModel.model_validate(product).to_json()

    async def list_products(self, query: ProductListQuery) -> dict:
        """
        Filtered, sorted, paginated listing.

        Cached per parameter combination for ``list_ttl`` seconds without
        jitter; product mutations do not delete these entries.
        """
        key = self.keys.product_list(
            query.search,
            query.sort.value if query.sort else None,
            query.category,
            query.price,
            query.page,
        )
        return await self.read_through.get_or_set(
            key, lambda: self._load_page(query), ttl=self.list_ttl, jitter=False
        )

    def _load_page(self, query: ProductListQuery) -> dict:
        filters = []
        if query.search:
            filters.append(Product.name.ilike(f"%{escape_like(query.search)}%", escape="\\"))
        if query.price is not None:
            filters.append(Product.price <= query.price)
        if query.category:
            filters.append(Product.category == query.category)

        if query.sort == SortOrder.ASC:
            ordering = (Product.price.asc(), Product.id)
        elif query.sort == SortOrder.DESC:
            ordering = (Product.price.desc(), Product.id)
        else:
            ordering = (Product.created_at.asc(), Product.id)

        with self.db.get_session_context() as session:
            total = session.query(func.count(Product.id)).filter(*filters).scalar() or 0
            rows = (
                session.query(Product)
                .filter(*filters)
                .order_by(*ordering)
                .offset((query.page - 1) * self.products_per_page)
                .limit(self.products_per_page)
                .all()
            )
            page = ProductListPage(
                products=[ProductModel.model_validate(row) for row in rows],
                total_page=math.ceil(total / self.products_per_page),
            )
            return page.to_json()

    # Mutations

    async def create_product(self, form: NewProductForm, photos: List[ImageUpload]) -> str:
        """
        Upload the photos, then store the product.

        Uploaded photos are deleted again if the store write fails.

        Returns:
            str: Id of the new product
        """
        validate_photos(photos, required=True)
        product_id = await asyncio.to_thread(self._store_new_product, form, photos)

        logger.info(f"Created product {product_id}")
        await self.invalidator.invalidate(
            InvalidationTags(product=True, admin=True, product_id=product_id)
        )
        return product_id

    def _store_new_product(self, form: NewProductForm, photos: List[ImageUpload]) -> str:
        uploaded = self.image_host.upload(photos)
        product_id = new_id()

        try:
            with self.db.get_session_context() as session:
                session.add(Product(
                    id=product_id,
                    photos=[photo.model_dump() for photo in uploaded],
                    **form.model_dump(),
                ))
        except Exception:
            logger.error(f"Failed to store product {form.name!r}, removing uploaded photos")
            self.image_host.delete([photo.public_id for photo in uploaded])
            raise
        return product_id

    async def update_product(
        self,
        product_id: str,
        form: ProductUpdateForm,
        photos: Optional[List[ImageUpload]] = None,
    ) -> None:
        """
        Apply the set fields; new photos replace all existing ones.

        Raises:
            NotFoundError: If no product has this id
        """
        photos = photos or []
        validate_photos(photos, required=False)
        await asyncio.to_thread(self._apply_update, product_id, form, photos)

        logger.info(f"Updated product {product_id}")
        await self.invalidator.invalidate(
            InvalidationTags(product=True, admin=True, product_id=product_id)
        )

    def _apply_update(
        self, product_id: str, form: ProductUpdateForm, photos: List[ImageUpload]
    ) -> None:
        with self.db.get_session_context() as session:
            if session.get(Product, product_id) is None:
                raise NotFoundError("Product Not Found")

        uploaded = self.image_host.upload(photos) if photos else []
        replaced: List[str] = []

        try:
            with self.db.get_session_context() as session:
                product = session.get(Product, product_id)
                if product is None:
                    raise NotFoundError("Product Not Found")

                for field, value in form.model_dump(exclude_none=True).items():
                    setattr(product, field, value)

                if uploaded:
                    replaced = [photo["public_id"] for photo in product.photos or []]
                    product.photos = [photo.model_dump() for photo in uploaded]
        except Exception:
            if uploaded:
                self.image_host.delete([photo.public_id for photo in uploaded])
            raise

        if replaced:
            self.image_host.delete(replaced)

    async def delete_product(self, product_id: str) -> None:
        """
        Delete the product's photos from the image host, then the product and
        its reviews.

        Raises:
            NotFoundError: If no product has this id
        """
        await asyncio.to_thread(self._remove_product, product_id)

        logger.info(f"Deleted product {product_id}")
        await self.invalidator.invalidate(
            InvalidationTags(product=True, admin=True, review=True, product_id=product_id)
        )

    def _remove_product(self, product_id: str) -> None:
        with self.db.get_session_context() as session:
            product = session.get(Product, product_id)
            if product is None:
                raise NotFoundError("Product Not Found")

            self.image_host.delete([photo["public_id"] for photo in product.photos or []])
            session.delete(product)
