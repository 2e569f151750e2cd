"""
Document store for the storefront: SQLAlchemy models and session management.
"""

from .models import (
    Base,
    User,
    Product,
    Review,
    Order,
    new_id,
    utcnow,
    create_all_tables,
    drop_all_tables,
)

from .config import DatabaseConfig, initialize_database

__all__ = [
    # Models
    "Base",
    "User",
    "Product",
    "Review",
    "Order",
    "new_id",
    "utcnow",
    "create_all_tables",
    "drop_all_tables",

    # Configuration
    "DatabaseConfig",
    "initialize_database",
]
