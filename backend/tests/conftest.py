"""
Shared fixtures: an in-memory SQLite store, the in-process cache, a local
image host under a temporary directory and a TestClient over the API.
"""

import time
from datetime import datetime, timedelta
from unittest.mock import AsyncMock, Mock

import pytest
from fastapi.testclient import TestClient

from storefront.app import create_app
from storefront.cache import CacheManager, ValkeyClient, ValkeyConfig
from storefront.context import AppContext
from storefront.database import Product, Review, User, initialize_database
from storefront.services.images import LocalImageHost
from storefront.utils.config import StorefrontConfig


@pytest.fixture
def settings(tmp_path):
    """Settings for an isolated store and the in-process cache."""
    return StorefrontConfig(
        database_url="sqlite://",
        cache_backend="memory",
        image_upload_dir=str(tmp_path / "uploads"),
        products_per_page=2,
        latest_products_limit=2,
    )


@pytest.fixture
def db():
    database = initialize_database("sqlite://")
    yield database
    database.close()


@pytest.fixture
def cache():
    return CacheManager(client=None)


@pytest.fixture
def image_host(settings):
    return LocalImageHost(settings.image_upload_dir)


@pytest.fixture
def context(settings, db, cache, image_host):
    return AppContext.create(settings, db, cache, image_host)


@pytest.fixture
def client(context):
    app = create_app(context=context)
    with TestClient(app) as test_client:
        yield test_client


def scan_results(*keys):
    """Mock side effect yielding ``keys`` the way ``scan_iter`` does."""

    async def scan(**kwargs):
        for key in keys:
            yield key

    return scan


@pytest.fixture
def mock_valkey():
    """Stand-in for ``valkey.asyncio.Valkey`` with successful defaults."""
    mock_client = AsyncMock()
    mock_client.ping.return_value = True
    mock_client.get.return_value = None
    mock_client.setex.return_value = True
    mock_client.delete.return_value = 1
    mock_client.info.return_value = {"redis_version": "8.0.0"}
    mock_client.scan_iter = Mock(side_effect=scan_results())
    return mock_client


@pytest.fixture
def valkey_cache(mock_valkey):
    """CacheManager over a connected ValkeyClient whose server is mocked."""
    valkey_client = ValkeyClient(ValkeyConfig(database=15))
    valkey_client._client = mock_valkey
    valkey_client._is_connected = True
    valkey_client._last_health_check = time.time()
    return CacheManager(client=valkey_client)


@pytest.fixture
def make_user(db):
    """Factory storing a user and returning its id."""

    def factory(name="Customer", role="user", email=None):
        with db.get_session_context() as session:
            user = User(name=name, email=email or f"{name.lower()}@example.com", role=role)
            session.add(user)
            session.flush()
            return user.id

    return factory


@pytest.fixture
def admin_id(make_user):
    return make_user("Admin", role="admin")


@pytest.fixture
def user_id(make_user):
    return make_user("Customer")


@pytest.fixture
def make_product(db):
    """Factory storing a product and returning its id; creation times increase per call."""
    base_time = datetime(2024, 1, 1, 12, 0, 0)
    counter = {"n": 0}

    def factory(name="Phone", price=100.0, stock=10, category="electronics", photos=None):
        counter["n"] += 1
        with db.get_session_context() as session:
            product = Product(
                name=name,
                price=price,
                stock=stock,
                category=category,
                description=f"{name} description",
                photos=photos or [{"url": "file:///tmp/seed.jpg", "public_id": "seed.jpg"}],
                created_at=base_time + timedelta(minutes=counter["n"]),
            )
            session.add(product)
            session.flush()
            return product.id

    return factory


@pytest.fixture
def make_review(db):
    def factory(product_id, user_id, rating, comment="Nice"):
        with db.get_session_context() as session:
            review = Review(product_id=product_id, user_id=user_id, rating=rating, comment=comment)
            session.add(review)
            session.flush()
            return review.id

    return factory
