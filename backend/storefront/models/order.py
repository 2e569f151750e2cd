"""
Order schemas.
"""

from datetime import datetime
from typing import List, Optional, Union

from pydantic import Field

from .base import ApiModel
from .enums import OrderStatus


class ShippingInfo(ApiModel):
    address: str = Field(..., min_length=1)
    city: str = Field(..., min_length=1)
    state: str = Field(..., min_length=1)
    country: str = Field(..., min_length=1)
    pin_code: str = Field(..., min_length=1)


class OrderItem(ApiModel):
    product_id: str = Field(..., min_length=1)
    quantity: int = Field(..., ge=1)
    name: Optional[str] = None
    price: Optional[float] = Field(default=None, ge=0)
    photo: Optional[str] = None


class NewOrderRequest(ApiModel):
    shipping_info: ShippingInfo
    order_items: List[OrderItem] = Field(..., min_length=1)
    user: str = Field(..., min_length=1, description="Id of the ordering user")
    subtotal: float = Field(..., ge=0)
    tax: float = Field(..., ge=0)
    shipping_charges: float = Field(default=0.0, ge=0)
    discount: float = Field(default=0.0, ge=0)
    total: float = Field(..., ge=0)


class UserSummary(ApiModel):
    """User reference populated into orders."""
    id: str
    name: str


class OrderModel(ApiModel):
    id: str
    shipping_info: ShippingInfo
    order_items: List[OrderItem]
    user: Union[UserSummary, str] = Field(..., description="Populated user or bare user id")
    subtotal: float
    tax: float
    shipping_charges: float
    discount: float
    total: float
    status: OrderStatus
    created_at: datetime
    updated_at: datetime
