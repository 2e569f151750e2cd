"""
Product review service.

Each change to a product's reviews recomputes the product's rating
aggregate inside the same transaction.
"""

import asyncio
import logging
from typing import List, Optional, Tuple

from sqlalchemy.orm import Session

from ..cache.invalidation import CacheInvalidator, InvalidationTags
from ..cache.read_through import ReadThroughCache
from ..cache.utils import CacheKeys, cache_keys
from ..database.config import DatabaseConfig
from ..database.models import Product, Review
from ..errors import ForbiddenError, NotFoundError
from ..models.enums import UserRole
from ..models.review import ReviewAuthor, ReviewModel, ReviewRequest
from .auth import authenticate_user
from .ratings import RatingSummary, aggregate_ratings

logger = logging.getLogger(__name__)


def refresh_ratings(session: Session, product: Product) -> RatingSummary:
    """Recompute and store the product's rating aggregate."""
    session.flush()
    summary = aggregate_ratings(session, product.id)
    product.ratings = summary.ratings
    product.num_of_reviews = summary.num_of_reviews
    return summary


def review_to_json(review: Review) -> dict:
    return ReviewModel(
        id=review.id,
        comment=review.comment,
        rating=review.rating,
        user=ReviewAuthor.model_validate(review.user),
        product=review.product_id,
        created_at=review.created_at,
        updated_at=review.updated_at,
    ).to_json()


class ReviewService:
    def __init__(
        self,
        db: DatabaseConfig,
        read_through: ReadThroughCache,
        invalidator: CacheInvalidator,
        keys: CacheKeys = cache_keys,
    ):
        self.db = db
        self.read_through = read_through
        self.invalidator = invalidator
        self.keys = keys

    async def product_reviews(self, product_id: str) -> List[dict]:
        """Reviews of a product, most recently updated first."""
        return await self.read_through.get_or_set(
            self.keys.reviews(product_id), lambda: self._load_reviews(product_id)
        )

    def _load_reviews(self, product_id: str) -> List[dict]:
        with self.db.get_session_context() as session:
            rows = (
                session.query(Review)
                .filter(Review.product_id == product_id)
                .order_by(Review.updated_at.desc(), Review.id)
                .all()
            )
            return [review_to_json(review) for review in rows]

    async def upsert_review(
        self, product_id: str, user_id: Optional[str], request: ReviewRequest
    ) -> bool:
        """
        Add the user's review of the product, or update it if one exists.

        Returns:
            bool: True if a review was created, False if one was updated

        Raises:
            AuthError: If the user is missing or unknown
            NotFoundError: If the product does not exist
        """
        created, summary = await asyncio.to_thread(
            self._store_review, product_id, user_id, request
        )

        logger.info(
            f"{'Added' if created else 'Updated'} review of {product_id} by {user_id} "
            f"(ratings={summary.ratings:.2f}, reviews={summary.num_of_reviews})"
        )
        await self._invalidate(product_id)
        return created

    def _store_review(
        self, product_id: str, user_id: Optional[str], request: ReviewRequest
    ) -> Tuple[bool, RatingSummary]:
        with self.db.get_session_context() as session:
            user = authenticate_user(session, user_id)
            product = session.get(Product, product_id)
            if product is None:
                raise NotFoundError("Product Not Found")

            review = (
                session.query(Review)
                .filter(Review.user_id == user.id, Review.product_id == product.id)
                .first()
            )
            created = review is None
            if created:
                session.add(Review(
                    comment=request.comment,
                    rating=request.rating,
                    user_id=user.id,
                    product_id=product.id,
                ))
            else:
                review.comment = request.comment
                review.rating = request.rating

            return created, refresh_ratings(session, product)

    async def delete_review(self, product_id: str, review_id: str, user_id: Optional[str]) -> None:
        """
        Delete a review; only its author or an admin may do so.

        Raises:
            AuthError: If the user is missing or unknown
            ForbiddenError: If the user is neither the author nor an admin
            NotFoundError: If the product or review does not exist
        """
        await asyncio.to_thread(self._remove_review, product_id, review_id, user_id)

        logger.info(f"Deleted review {review_id} of {product_id}")
        await self._invalidate(product_id)

    def _remove_review(self, product_id: str, review_id: str, user_id: Optional[str]) -> None:
        with self.db.get_session_context() as session:
            user = authenticate_user(session, user_id)
            product = session.get(Product, product_id)
            if product is None:
                raise NotFoundError("Product Not Found")

            review = session.get(Review, review_id)
            if review is None or review.product_id != product.id:
                raise NotFoundError("Review Not Found")
            if review.user_id != user.id and user.role != UserRole.ADMIN.value:
                raise ForbiddenError("You can only delete your own review")

            session.delete(review)
            refresh_ratings(session, product)

    async def _invalidate(self, product_id: str) -> None:
        await self.invalidator.invalidate(
            InvalidationTags(product=True, admin=True, review=True, product_id=product_id)
        )
