"""
Order fulfilment state machine: Processing -> Shipped -> Delivered.
"""

from typing import Union

from ..models.enums import OrderStatus

_NEXT_STATUS = {
    OrderStatus.PROCESSING: OrderStatus.SHIPPED,
    OrderStatus.SHIPPED: OrderStatus.DELIVERED,
}


def next_status(status: Union[OrderStatus, str]) -> OrderStatus:
    """
    Advance an order one step.

    Delivered is terminal and any unrecognized state maps to Delivered, so
    repeated calls are idempotent once an order has been delivered.
    """
    try:
        current = OrderStatus(status)
    except ValueError:
        return OrderStatus.DELIVERED
    return _NEXT_STATUS.get(current, OrderStatus.DELIVERED)
