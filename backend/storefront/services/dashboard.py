"""
Admin dashboard aggregates, cached under ``admin-stats`` and ``admin-charts``.
"""

import logging

from sqlalchemy import func

from ..cache.read_through import ReadThroughCache
from ..cache.utils import CacheKeys, cache_keys
from ..database.config import DatabaseConfig
from ..database.models import Order, Product, User
from ..models.dashboard import DashboardCharts, DashboardStats, StockAvailability
from ..models.enums import OrderStatus

logger = logging.getLogger(__name__)


class DashboardService:
    def __init__(self, db: DatabaseConfig, read_through: ReadThroughCache, keys: CacheKeys = cache_keys):
        self.db = db
        self.read_through = read_through
        self.keys = keys

    async def stats(self) -> dict:
        return await self.read_through.get_or_set(self.keys.admin_stats(), self._load_stats)

    def _load_stats(self) -> dict:
        with self.db.get_session_context() as session:
            return DashboardStats(
                product_count=session.query(func.count(Product.id)).scalar() or 0,
                user_count=session.query(func.count(User.id)).scalar() or 0,
                order_count=session.query(func.count(Order.id)).scalar() or 0,
                revenue=session.query(func.coalesce(func.sum(Order.total), 0.0)).scalar() or 0.0,
            ).to_json()

    async def charts(self) -> dict:
        return await self.read_through.get_or_set(self.keys.admin_charts(), self._load_charts)

    def _load_charts(self) -> dict:
        with self.db.get_session_context() as session:
            order_status = {status.value: 0 for status in OrderStatus}
            for status, count in session.query(Order.status, func.count(Order.id)).group_by(Order.status):
                order_status[status] = count

            categories = {
                category: count
                for category, count in session.query(Product.category, func.count(Product.id))
                .group_by(Product.category)
                .order_by(Product.category)
            }

            in_stock = session.query(func.count(Product.id)).filter(Product.stock > 0).scalar() or 0
            total = session.query(func.count(Product.id)).scalar() or 0

            return DashboardCharts(
                order_status=order_status,
                categories=categories,
                stock=StockAvailability(in_stock=in_stock, out_of_stock=total - in_stock),
            ).to_json()
