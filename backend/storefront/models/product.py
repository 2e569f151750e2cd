"""
Product schemas: stored entity, listing query and page, and the create/update
forms accepted by the admin endpoints.
"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .base import ApiModel
from .enums import SortOrder


class Photo(BaseModel):
    """Image reference returned by the image host."""
    model_config = ConfigDict(from_attributes=True)

    url: str = Field(..., description="Public URL of the image")
    public_id: str = Field(..., description="Image host identifier, used for deletion")


class ProductModel(ApiModel):
    id: str
    name: str
    price: float
    stock: int
    category: str
    description: str
    photos: List[Photo] = Field(default_factory=list)
    ratings: float = Field(default=0.0, ge=0.0, le=5.0, description="Average review rating")
    num_of_reviews: int = Field(default=0, ge=0, description="Number of reviews")
    created_at: datetime
    updated_at: datetime


class ProductListQuery(ApiModel):
    """
    Filters of the public product listing.

    Empty strings are treated as absent, categories are matched lowercase.
    """

    search: Optional[str] = Field(default=None, description="Case-insensitive name substring")
    sort: Optional[SortOrder] = Field(default=None, description="Price ordering")
    category: Optional[str] = Field(default=None)
    price: Optional[float] = Field(default=None, ge=0, description="Maximum price")
    page: int = Field(default=1, ge=1)

    @field_validator("search", "category", "sort", "price", mode="before")
    @classmethod
    def blank_to_none(cls, v):
        if isinstance(v, str):
            v = v.strip()
            return v or None
        return v

    @field_validator("category")
    @classmethod
    def lowercase_category(cls, v: Optional[str]) -> Optional[str]:
        return v.lower() if v else v


class ProductListPage(ApiModel):
    products: List[ProductModel]
    total_page: int = Field(..., ge=0)


class NewProductForm(ApiModel):
    name: str = Field(..., min_length=1, max_length=200)
    price: float = Field(..., gt=0)
    stock: int = Field(..., ge=0)
    category: str = Field(..., min_length=1, max_length=100)
    description: str = Field(..., min_length=1)

    @field_validator("category")
    @classmethod
    def lowercase_category(cls, v: str) -> str:
        return v.strip().lower()


class ProductUpdateForm(ApiModel):
    """Only the fields that are set are applied."""

    name: Optional[str] = Field(default=None, min_length=1, max_length=200)
    price: Optional[float] = Field(default=None, gt=0)
    stock: Optional[int] = Field(default=None, ge=0)
    category: Optional[str] = Field(default=None, min_length=1, max_length=100)
    description: Optional[str] = Field(default=None, min_length=1)

    @field_validator("name", "price", "stock", "category", "description", mode="before")
    @classmethod
    def blank_to_none(cls, v):
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @field_validator("category")
    @classmethod
    def lowercase_category(cls, v: Optional[str]) -> Optional[str]:
        return v.strip().lower() if v else v
