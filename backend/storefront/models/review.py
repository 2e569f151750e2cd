"""
Review schemas.
"""

from datetime import datetime
from typing import Optional

from pydantic import Field

from .base import ApiModel


class ReviewRequest(ApiModel):
    comment: str = Field(..., min_length=1, max_length=200)
    rating: float = Field(..., ge=1, le=5)


class ReviewAuthor(ApiModel):
    id: str
    name: str
    photo: Optional[str] = None


class ReviewModel(ApiModel):
    id: str
    comment: str
    rating: float
    user: ReviewAuthor
    product: str = Field(..., description="Id of the reviewed product")
    created_at: datetime
    updated_at: datetime
