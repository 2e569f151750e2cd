"""
Rating aggregation for products.

The aggregate is a pure function of the reviews in the store; callers
persist it on the product row in the same transaction as the review change.
"""

from dataclasses import dataclass
from typing import Iterable

from sqlalchemy.orm import Session

from ..database.models import Review


@dataclass(frozen=True)
class RatingSummary:
    ratings: float
    num_of_reviews: int


def summarize_ratings(ratings: Iterable[float]) -> RatingSummary:
    """Arithmetic mean and count; (0.0, 0) when there are no ratings."""
    values = [float(rating) for rating in ratings]
    if not values:
        return RatingSummary(ratings=0.0, num_of_reviews=0)
    return RatingSummary(ratings=sum(values) / len(values), num_of_reviews=len(values))


def aggregate_ratings(session: Session, product_id: str) -> RatingSummary:
    """
    Scan every review of ``product_id`` and summarize its ratings.

    Pending changes must be flushed first, since sessions do not autoflush.
    """
    rows = session.query(Review.rating).filter(Review.product_id == product_id).all()
    return summarize_ratings(rating for (rating,) in rows)
