"""
Enumerations shared by the storefront schemas and services.
"""

from enum import Enum


class OrderStatus(str, Enum):
    """Fulfilment states; transitions only move forward."""
    PROCESSING = "Processing"
    SHIPPED = "Shipped"
    DELIVERED = "Delivered"


class UserRole(str, Enum):
    USER = "user"
    ADMIN = "admin"


class SortOrder(str, Enum):
    """Price ordering of product listings."""
    ASC = "asc"
    DESC = "desc"
