"""
HTTP routes of the storefront API, mounted under ``/api/v1``.
"""

from fastapi import APIRouter

from . import dashboard, orders, products

api_router = APIRouter()
api_router.include_router(products.router)
api_router.include_router(orders.router)
api_router.include_router(dashboard.router)

__all__ = ["api_router"]
