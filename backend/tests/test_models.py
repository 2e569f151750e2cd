"""
Test suite for the API schemas.
"""

import pytest
from pydantic import ValidationError

from storefront.models import (
    NewOrderRequest,
    NewProductForm,
    NewUserRequest,
    OrderStatus,
    ProductListQuery,
    ProductUpdateForm,
    ReviewRequest,
    SortOrder,
)


class TestProductSchemas:

    def test_list_query_defaults(self):
        query = ProductListQuery()
        assert query.page == 1
        assert query.search is None

    def test_list_query_blank_values(self):
        query = ProductListQuery(search="  ", sort="", category="", price="", page=2)
        assert (query.search, query.sort, query.category, query.price) == (None, None, None, None)
        assert query.page == 2

    def test_list_query_normalizes(self):
        query = ProductListQuery(category=" Electronics ", sort="desc", price="250.5")
        assert query.category == "electronics"
        assert query.sort == SortOrder.DESC
        assert query.price == 250.5

    @pytest.mark.parametrize("field, value", [("page", 0), ("price", -1), ("sort", "random")])
    def test_list_query_rejects(self, field, value):
        with pytest.raises(ValidationError):
            ProductListQuery(**{field: value})

    def test_new_product_form(self):
        form = NewProductForm(name="Lamp", price="19.99", stock="4", category="Home", description="Warm")
        assert form.price == 19.99
        assert form.stock == 4
        assert form.category == "home"

    def test_new_product_form_rejects_zero_price(self):
        with pytest.raises(ValidationError):
            NewProductForm(name="Lamp", price=0, stock=1, category="home", description="Warm")

    def test_update_form_only_sets_given_fields(self):
        form = ProductUpdateForm(name="", price="12", category="Books")
        assert form.model_dump(exclude_none=True) == {"price": 12.0, "category": "books"}


class TestOrderSchemas:

    def payload(self, **overrides):
        payload = {
            "shippingInfo": {
                "address": "1 Main St",
                "city": "Springfield",
                "state": "IL",
                "country": "US",
                "pinCode": "62701",
            },
            "orderItems": [{"productId": "p1", "quantity": 2}],
            "user": "u1",
            "subtotal": 20,
            "tax": 2,
            "total": 22,
        }
        payload.update(overrides)
        return payload

    def test_camel_case_input_and_output(self):
        order = NewOrderRequest.model_validate(self.payload())
        assert order.shipping_info.pin_code == "62701"
        assert order.shipping_charges == 0
        assert order.to_json()["orderItems"][0]["productId"] == "p1"

    def test_requires_items(self):
        with pytest.raises(ValidationError):
            NewOrderRequest.model_validate(self.payload(orderItems=[]))

    def test_quantity_must_be_positive(self):
        with pytest.raises(ValidationError):
            NewOrderRequest.model_validate(self.payload(orderItems=[{"productId": "p1", "quantity": 0}]))

    def test_order_status_values(self):
        assert [status.value for status in OrderStatus] == ["Processing", "Shipped", "Delivered"]


class TestOtherSchemas:

    @pytest.mark.parametrize("rating", [0, 5.5])
    def test_review_rating_range(self, rating):
        with pytest.raises(ValidationError):
            ReviewRequest(comment="ok", rating=rating)

    def test_review_comment_length(self):
        with pytest.raises(ValidationError):
            ReviewRequest(comment="x" * 201, rating=3)

    def test_user_email_is_validated(self):
        with pytest.raises(ValidationError):
            NewUserRequest(name="Ada", email="not-an-email")
        assert NewUserRequest(name="Ada", email="ada@example.com").role.value == "user"
