"""
Order routes, mounted under ``/order``.
"""

from typing import Optional

from fastapi import APIRouter, Depends

from ..context import AppContext
from ..models.order import NewOrderRequest
from .deps import acting_user_id, get_context, require_admin

router = APIRouter(prefix="/order", tags=["order"])


@router.post("/new", status_code=201)
async def new_order(order: NewOrderRequest, context: AppContext = Depends(get_context)):
    order_id = await context.orders.create_order(order)
    return {"success": True, "message": "Order placed successfully", "orderId": order_id}


@router.get("/my")
async def my_orders(
    user_id: Optional[str] = Depends(acting_user_id),
    context: AppContext = Depends(get_context),
):
    return {"success": True, "orders": await context.orders.my_orders(user_id)}


@router.get("/all", dependencies=[Depends(require_admin)])
async def all_orders(context: AppContext = Depends(get_context)):
    return {"success": True, "orders": await context.orders.all_orders()}


@router.get("/{order_id}")
async def get_order(order_id: str, context: AppContext = Depends(get_context)):
    return {"success": True, "order": await context.orders.get_order(order_id)}


@router.put("/{order_id}", dependencies=[Depends(require_admin)])
async def process_order(order_id: str, context: AppContext = Depends(get_context)):
    status = await context.orders.process_order(order_id)
    return {"success": True, "message": "Order processed successfully", "status": status.value}


@router.delete("/{order_id}", dependencies=[Depends(require_admin)])
async def delete_order(order_id: str, context: AppContext = Depends(get_context)):
    await context.orders.delete_order(order_id)
    return {"success": True, "message": "Order deleted successfully"}
