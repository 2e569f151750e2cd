"""
Business logic services for the storefront.

Catalogue, review, order and dashboard services, plus the rating aggregator,
order status transition, authorization helpers and image hosts they use.
"""

from .ratings import RatingSummary, aggregate_ratings, summarize_ratings
from .order_status import next_status
from .auth import authenticate_user, authorize_admin
from .images import ImageUpload, ImageHost, LocalImageHost, CloudinaryImageHost, create_image_host
from .products import ProductService
from .reviews import ReviewService
from .orders import OrderService
from .dashboard import DashboardService

__all__ = [
    'RatingSummary',
    'aggregate_ratings',
    'summarize_ratings',
    'next_status',
    'authenticate_user',
    'authorize_admin',
    'ImageUpload',
    'ImageHost',
    'LocalImageHost',
    'CloudinaryImageHost',
    'create_image_host',
    'ProductService',
    'ReviewService',
    'OrderService',
    'DashboardService',
]
