"""
SQLAlchemy models for the storefront document store.

Document-shaped fields (product photos, order shipping info and items) are
stored in JSON columns; identifiers are hex UUID strings.

- User: account with a role, used for authorization and review attribution
- Product: catalogue entry with denormalized rating aggregates
- Review: one user's rating of one product
- Order: purchased items, amounts and fulfilment status
"""

from datetime import datetime, timezone
from uuid import uuid4

from sqlalchemy import Column, DateTime, Float, ForeignKey, Index, Integer, JSON, String, Text
from sqlalchemy.orm import declarative_base, relationship

Base = declarative_base()


def new_id() -> str:
    return uuid4().hex


def utcnow() -> datetime:
    """Naive UTC timestamp, as SQLite hands it back."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


class User(Base):
    __tablename__ = "users"

    id = Column(String(32), primary_key=True, default=new_id)
    name = Column(String(100), nullable=False)
    email = Column(String(255), unique=True, nullable=False, index=True)
    photo = Column(String(500), nullable=True)
    role = Column(String(20), nullable=False, default="user")
    created_at = Column(DateTime, nullable=False, default=utcnow)

    reviews = relationship("Review", back_populates="user", lazy="select")
    orders = relationship("Order", back_populates="user", lazy="select")

    def __repr__(self):
        return f"<User(id={self.id}, name='{self.name}', role='{self.role}')>"


class Product(Base):
    __tablename__ = "products"

    id = Column(String(32), primary_key=True, default=new_id)
    name = Column(String(200), nullable=False, index=True)
    price = Column(Float, nullable=False)
    stock = Column(Integer, nullable=False, default=1)
    category = Column(String(100), nullable=False, index=True)
    description = Column(Text, nullable=False)
    photos = Column(JSON, nullable=False, default=list)  # [{"url", "public_id"}]

    # Maintained by the rating aggregator after every review change
    ratings = Column(Float, nullable=False, default=0.0)
    num_of_reviews = Column(Integer, nullable=False, default=0)

    created_at = Column(DateTime, nullable=False, default=utcnow, index=True)
    updated_at = Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    reviews = relationship(
        "Review", back_populates="product", cascade="all, delete-orphan", lazy="select"
    )

    def __repr__(self):
        return f"<Product(id={self.id}, name='{self.name}', price={self.price}, stock={self.stock})>"


class Review(Base):
    """
    At most one review per (user, product); the review service upserts on
    that pair rather than relying on a unique constraint.
    """
    __tablename__ = "reviews"

    id = Column(String(32), primary_key=True, default=new_id)
    comment = Column(String(200), nullable=False)
    rating = Column(Float, nullable=False)
    user_id = Column(String(32), ForeignKey("users.id"), nullable=False)
    product_id = Column(String(32), ForeignKey("products.id"), nullable=False, index=True)
    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    user = relationship("User", back_populates="reviews", lazy="joined")
    product = relationship("Product", back_populates="reviews", lazy="select")

    __table_args__ = (
        Index("idx_review_user_product", "user_id", "product_id"),
    )

    def __repr__(self):
        return f"<Review(id={self.id}, product={self.product_id}, user={self.user_id}, rating={self.rating})>"


class Order(Base):
    __tablename__ = "orders"

    id = Column(String(32), primary_key=True, default=new_id)
    shipping_info = Column(JSON, nullable=False)
    order_items = Column(JSON, nullable=False)  # [{"productId", "quantity", ...}]
    user_id = Column(String(32), ForeignKey("users.id"), nullable=False, index=True)

    subtotal = Column(Float, nullable=False)
    tax = Column(Float, nullable=False)
    shipping_charges = Column(Float, nullable=False, default=0.0)
    discount = Column(Float, nullable=False, default=0.0)
    total = Column(Float, nullable=False)

    status = Column(String(20), nullable=False, default="Processing", index=True)

    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    user = relationship("User", back_populates="orders", lazy="joined")

    def __repr__(self):
        return f"<Order(id={self.id}, user={self.user_id}, status='{self.status}', total={self.total})>"


def create_all_tables(engine):
    """Create all tables if they don't exist."""
    Base.metadata.create_all(engine)


def drop_all_tables(engine):
    """Drop all tables."""
    Base.metadata.drop_all(engine)
