"""
Pydantic v2 schemas validated at the API boundary and used as the cached
JSON shapes.
"""

from .enums import OrderStatus, UserRole, SortOrder
from .base import ApiModel
from .product import (
    Photo,
    ProductModel,
    ProductListQuery,
    ProductListPage,
    NewProductForm,
    ProductUpdateForm,
)
from .order import (
    ShippingInfo,
    OrderItem,
    NewOrderRequest,
    UserSummary,
    OrderModel,
)
from .review import ReviewRequest, ReviewAuthor, ReviewModel
from .user import UserModel, NewUserRequest
from .dashboard import DashboardStats, StockAvailability, DashboardCharts

__all__ = [
    # Enums
    "OrderStatus",
    "UserRole",
    "SortOrder",

    "ApiModel",

    # Products
    "Photo",
    "ProductModel",
    "ProductListQuery",
    "ProductListPage",
    "NewProductForm",
    "ProductUpdateForm",

    # Orders
    "ShippingInfo",
    "OrderItem",
    "NewOrderRequest",
    "UserSummary",
    "OrderModel",

    # Reviews
    "ReviewRequest",
    "ReviewAuthor",
    "ReviewModel",

    # Users
    "UserModel",
    "NewUserRequest",

    # Dashboard
    "DashboardStats",
    "StockAvailability",
    "DashboardCharts",
]
