"""
Order service: placement, per-user and admin listings, fulfilment.
"""

import asyncio
import logging
from typing import Dict, List, Optional, Tuple

from ..cache.invalidation import CacheInvalidator, InvalidationTags
from ..cache.read_through import ReadThroughCache
from ..cache.utils import CacheKeys, cache_keys
from ..database.config import DatabaseConfig
from ..database.models import Order, Product, User, new_id
from ..errors import NotFoundError, ValidationError
from ..models.enums import OrderStatus
from ..models.order import NewOrderRequest, OrderModel, UserSummary
from .order_status import next_status

logger = logging.getLogger(__name__)


def order_to_json(order: Order, populate_user: bool = False) -> dict:
    """Serialize an order; ``user`` is ``{id, name}`` when populated, else the id."""
    user = UserSummary.model_validate(order.user) if populate_user else order.user_id
    return OrderModel(
        id=order.id,
        shipping_info=order.shipping_info,
        order_items=order.order_items,
        user=user,
        subtotal=order.subtotal,
        tax=order.tax,
        shipping_charges=order.shipping_charges,
        discount=order.discount,
        total=order.total,
        status=order.status,
        created_at=order.created_at,
        updated_at=order.updated_at,
    ).to_json()


class OrderService:
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

    async def my_orders(self, user_id: Optional[str]) -> List[dict]:
        """Orders placed by ``user_id``, newest first."""
        if not user_id:
            raise ValidationError("Invalid user ID")
        return await self.read_through.get_or_set(
            self.keys.my_orders(user_id), lambda: self._load_user_orders(user_id)
        )

    def _load_user_orders(self, user_id: str) -> List[dict]:
        with self.db.get_session_context() as session:
            rows = (
                session.query(Order)
                .filter(Order.user_id == user_id)
                .order_by(Order.created_at.desc(), Order.id)
                .all()
            )
            return [order_to_json(order) for order in rows]

    async def all_orders(self) -> List[dict]:
        """Every order with its user populated."""
        return await self.read_through.get_or_set(self.keys.all_orders(), self._load_all_orders)

    def _load_all_orders(self) -> List[dict]:
        with self.db.get_session_context() as session:
            rows = session.query(Order).order_by(Order.created_at.desc(), Order.id).all()
            return [order_to_json(order, populate_user=True) for order in rows]

    async def get_order(self, order_id: str) -> dict:
        """
        Single order with its user populated.

        Raises:
            NotFoundError: If no order has this id
        """
        return await self.read_through.get_or_set(
            self.keys.order(order_id), lambda: self._load_order(order_id)
        )

    def _load_order(self, order_id: str) -> dict:
        with self.db.get_session_context() as session:
            order = session.get(Order, order_id)
            if order is None:
                raise NotFoundError("Order not found")
            return order_to_json(order, populate_user=True)

    async def create_order(self, request: NewOrderRequest) -> str:
        """
        Store the order and reduce the stock of every ordered product in one
        transaction.

        Raises:
            NotFoundError: If the user or an ordered product does not exist
            ValidationError: If a product has less stock than ordered

        Returns:
            str: Id of the new order
        """
        quantities: Dict[str, int] = {}
        for item in request.order_items:
            quantities[item.product_id] = quantities.get(item.product_id, 0) + item.quantity

        order_id = await asyncio.to_thread(self._store_order, request, quantities)

        logger.info(f"Order {order_id} placed by {request.user}")
        await self.invalidator.invalidate(InvalidationTags(
            product=True,
            order=True,
            admin=True,
            user_id=request.user,
            product_id=list(quantities),
        ))
        return order_id

    def _store_order(self, request: NewOrderRequest, quantities: Dict[str, int]) -> str:
        order_id = new_id()
        with self.db.get_session_context() as session:
            if session.get(User, request.user) is None:
                raise NotFoundError("User not found")

            for product_id, quantity in quantities.items():
                product = session.get(Product, product_id)
                if product is None:
                    raise NotFoundError("Product Not Found")
                if product.stock < quantity:
                    raise ValidationError(f"Insufficient stock for {product.name}")
                product.stock -= quantity

            payload = request.to_json()
            session.add(Order(
                id=order_id,
                shipping_info=payload["shippingInfo"],
                order_items=payload["orderItems"],
                user_id=request.user,
                subtotal=request.subtotal,
                tax=request.tax,
                shipping_charges=request.shipping_charges,
                discount=request.discount,
                total=request.total,
                status=OrderStatus.PROCESSING.value,
            ))
        return order_id

    async def process_order(self, order_id: str) -> OrderStatus:
        """
        Advance the order's fulfilment status one step.

        Raises:
            NotFoundError: If no order has this id
        """
        status, user_id = await asyncio.to_thread(self._advance_status, order_id)

        logger.info(f"Order {order_id} is now {status.value}")
        await self._invalidate(order_id, user_id)
        return status

    def _advance_status(self, order_id: str) -> Tuple[OrderStatus, str]:
        with self.db.get_session_context() as session:
            order = session.get(Order, order_id)
            if order is None:
                raise NotFoundError("Order not found")
            status = next_status(order.status)
            order.status = status.value
            return status, order.user_id

    async def delete_order(self, order_id: str) -> None:
        user_id = await asyncio.to_thread(self._remove_order, order_id)

        logger.info(f"Deleted order {order_id}")
        await self._invalidate(order_id, user_id)

    def _remove_order(self, order_id: str) -> str:
        """Delete the order and return the id of the user who placed it."""
        with self.db.get_session_context() as session:
            order = session.get(Order, order_id)
            if order is None:
                raise NotFoundError("Order not found")
            user_id = order.user_id
            session.delete(order)
        return user_id

    async def _invalidate(self, order_id: str, user_id: str) -> None:
        await self.invalidator.invalidate(
            InvalidationTags(order=True, admin=True, user_id=user_id, order_id=order_id)
        )
