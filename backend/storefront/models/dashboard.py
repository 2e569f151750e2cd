"""
Admin dashboard aggregates.
"""

from typing import Dict

from pydantic import Field

from .base import ApiModel


class DashboardStats(ApiModel):
    product_count: int = Field(..., ge=0)
    user_count: int = Field(..., ge=0)
    order_count: int = Field(..., ge=0)
    revenue: float = Field(..., ge=0)


class StockAvailability(ApiModel):
    in_stock: int = Field(..., ge=0)
    out_of_stock: int = Field(..., ge=0)


class DashboardCharts(ApiModel):
    order_status: Dict[str, int] = Field(default_factory=dict, description="Orders per status")
    categories: Dict[str, int] = Field(default_factory=dict, description="Products per category")
    stock: StockAvailability
