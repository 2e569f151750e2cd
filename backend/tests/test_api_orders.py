"""
Endpoint tests for orders and the admin dashboard.
"""

import pytest

API = "/api/v1/order"


def order_payload(user_id, *items):
    return {
        "shippingInfo": {
            "address": "1 Main St",
            "city": "Springfield",
            "state": "IL",
            "country": "US",
            "pinCode": "62701",
        },
        "orderItems": [
            {"productId": product_id, "quantity": quantity, "name": "Item", "price": 10}
            for product_id, quantity in items
        ],
        "user": user_id,
        "subtotal": 20,
        "tax": 2,
        "shippingCharges": 5,
        "discount": 0,
        "total": 27,
    }


@pytest.fixture
def place_order(client):
    def factory(user_id, *items):
        response = client.post(f"{API}/new", json=order_payload(user_id, *items))
        assert response.status_code == 201, response.json()
        return response.json()["orderId"]

    return factory


class TestNewOrder:

    def test_order_reduces_stock(self, client, user_id, make_product):
        product_id = make_product(stock=5)
        client.get(f"/api/v1/product/{product_id}")

        response = client.post(f"{API}/new", json=order_payload(user_id, (product_id, 2)))

        assert response.status_code == 201
        assert response.json()["message"] == "Order placed successfully"
        assert client.get(f"/api/v1/product/{product_id}").json()["product"]["stock"] == 3

    def test_order_invalidates_my_orders(self, client, user_id, make_product, place_order):
        product_id = make_product()
        assert client.get(f"{API}/my", params={"id": user_id}).json()["orders"] == []

        place_order(user_id, (product_id, 1))

        orders = client.get(f"{API}/my", params={"id": user_id}).json()["orders"]
        assert len(orders) == 1
        assert orders[0]["user"] == user_id
        assert orders[0]["status"] == "Processing"
        assert orders[0]["shippingInfo"]["pinCode"] == "62701"

    def test_unknown_product_leaves_stock_untouched(self, client, db, user_id, make_product):
        product_id = make_product(stock=5)

        response = client.post(
            f"{API}/new", json=order_payload(user_id, (product_id, 1), ("missing", 1))
        )

        assert response.status_code == 404
        assert client.get(f"/api/v1/product/{product_id}").json()["product"]["stock"] == 5

    def test_insufficient_stock(self, client, user_id, make_product):
        product_id = make_product(stock=1)
        response = client.post(f"{API}/new", json=order_payload(user_id, (product_id, 2)))
        assert response.status_code == 400

    def test_unknown_user(self, client, make_product):
        response = client.post(f"{API}/new", json=order_payload("nobody", (make_product(), 1)))
        assert response.status_code == 404

    def test_empty_order(self, client, user_id):
        response = client.post(f"{API}/new", json=order_payload(user_id))
        assert response.status_code == 400
        assert response.json()["success"] is False


class TestOrderReads:

    def test_my_orders_requires_id(self, client):
        response = client.get(f"{API}/my")
        assert response.status_code == 400
        assert response.json()["message"] == "Invalid user ID"

    def test_single_order_populates_user(self, client, user_id, make_product, place_order):
        order_id = place_order(user_id, (make_product(), 1))

        order = client.get(f"{API}/{order_id}").json()["order"]

        assert order["user"] == {"id": user_id, "name": "Customer"}
        assert order["total"] == 27

    def test_unknown_order(self, client):
        response = client.get(f"{API}/missing")
        assert response.status_code == 404
        assert response.json()["message"] == "Order not found"

    def test_all_orders(self, client, admin_id, user_id, make_product, place_order):
        product_id = make_product()
        place_order(user_id, (product_id, 1))
        assert len(client.get(f"{API}/all", params={"id": admin_id}).json()["orders"]) == 1

        place_order(admin_id, (product_id, 1))

        orders = client.get(f"{API}/all", params={"id": admin_id}).json()["orders"]
        assert {order["user"]["name"] for order in orders} == {"Customer", "Admin"}


class TestProcessOrder:

    def test_status_advances_to_delivered_and_stays(self, client, admin_id, user_id, make_product, place_order):
        order_id = place_order(user_id, (make_product(), 1))
        assert client.get(f"{API}/{order_id}").json()["order"]["status"] == "Processing"

        statuses = []
        for _ in range(3):
            response = client.put(f"{API}/{order_id}", params={"id": admin_id})
            assert response.json()["message"] == "Order processed successfully"
            statuses.append(client.get(f"{API}/{order_id}").json()["order"]["status"])

        assert statuses == ["Shipped", "Delivered", "Delivered"]
        my_orders = client.get(f"{API}/my", params={"id": user_id}).json()["orders"]
        assert my_orders[0]["status"] == "Delivered"

    def test_requires_admin(self, client, user_id, make_product, place_order):
        order_id = place_order(user_id, (make_product(), 1))
        assert client.put(f"{API}/{order_id}", params={"id": user_id}).status_code == 403

    def test_unknown_order(self, client, admin_id):
        assert client.put(f"{API}/missing", params={"id": admin_id}).status_code == 404


class TestDeleteOrder:

    def test_delete(self, client, admin_id, user_id, make_product, place_order):
        order_id = place_order(user_id, (make_product(), 1))
        client.get(f"{API}/{order_id}")
        client.get(f"{API}/my", params={"id": user_id})

        response = client.delete(f"{API}/{order_id}", params={"id": admin_id})

        assert response.status_code == 200
        assert response.json()["message"] == "Order deleted successfully"
        assert client.get(f"{API}/{order_id}").status_code == 404
        assert client.get(f"{API}/my", params={"id": user_id}).json()["orders"] == []


class TestDashboard:

    def test_stats_follow_orders(self, client, admin_id, user_id, make_product, place_order):
        product_id = make_product()
        stats = client.get("/api/v1/dashboard/stats", params={"id": admin_id}).json()["stats"]
        assert stats == {"productCount": 1, "userCount": 2, "orderCount": 0, "revenue": 0}

        place_order(user_id, (product_id, 1))

        stats = client.get("/api/v1/dashboard/stats", params={"id": admin_id}).json()["stats"]
        assert stats["orderCount"] == 1
        assert stats["revenue"] == 27

    def test_charts(self, client, admin_id, user_id, make_product, place_order):
        make_product("Phone", stock=0, category="electronics")
        in_stock = make_product("Novel", stock=4, category="books")
        order_id = place_order(user_id, (in_stock, 1))
        client.put(f"{API}/{order_id}", params={"id": admin_id})

        charts = client.get("/api/v1/dashboard/charts", params={"id": admin_id}).json()["charts"]

        assert charts["orderStatus"] == {"Processing": 0, "Shipped": 1, "Delivered": 0}
        assert charts["categories"] == {"books": 1, "electronics": 1}
        assert charts["stock"] == {"inStock": 1, "outOfStock": 1}


class TestHealth:

    def test_health_reports_cache(self, client):
        body = client.get("/").json()
        assert body["success"] is True
        assert body["cache"]["status"] == "healthy"
