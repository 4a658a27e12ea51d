"""Integration tests for the customer order endpoints.

Covers:
- POST /api/v1/user/orders/ with the storefront's camelCase payload.
- GET list / detail scoped to the caller (codes visible to the owner only).
- POST /api/v1/user/orders/{id}/cancel/.
- Authentication enforcement.
"""

from __future__ import annotations

from uuid import uuid4

import pytest

from modules.catalog.models import ProductVariant
from modules.orders.constants import OrderStatus

pytestmark = pytest.mark.integration

URL = "/api/v1/user/orders/"


@pytest.fixture()
def order_payload(product):
    return {
        "items": [
            {
                "productId": str(product.id),
                "quantity": 2,
                "price": "1.00",
                "selectedSize": "M",
                "selectedColor": "White",
            }
        ],
        "shippingDetails": {
            "firstName": "Asha",
            "lastName": "Rao",
            "email": "asha@example.com",
            "phone": "9876543210",
            "address": "12 MG Road",
            "city": "Bengaluru",
            "state": "Karnataka",
            "pincode": "560001",
        },
        "paymentMethod": "cod",
        "deliveryFee": "40.00",
        "total": "42.00",
    }


class TestCreateOrder:
    def test_create_returns_201_with_codes(self, customer_client, order_payload, product):
        response = customer_client.post(URL, order_payload, format="json")

        assert response.status_code == 201
        data = response.json()
        assert data["status"] == OrderStatus.PENDING
        assert data["subtotal"] == "998.00"
        assert data["total"] == "1038.00"
        assert len(data["delivery_otp"]) == 6
        assert data["qr_token"]
        assert data["shipping_details"]["country"] == "India"
        assert data["items"][0]["unit_price"] == "499.00"
        assert data["items"][0]["selected_size"] == "M"
        assert data["version"] == 1
        assert ProductVariant.objects.get(product=product, size="M").quantity == 8

    def test_paid_upi_order_is_confirmed(self, customer_client, order_payload):
        order_payload.update({"paymentMethod": "online_upi", "paid": True})

        response = customer_client.post(URL, order_payload, format="json")

        assert response.status_code == 201
        assert response.json()["status"] == OrderStatus.CONFIRMED
        assert response.json()["payment_method"] == "online"

    def test_empty_items_returns_400(self, customer_client, order_payload):
        order_payload["items"] = []
        response = customer_client.post(URL, order_payload, format="json")
        assert response.status_code == 400
        assert response.json()["type"] == "validation_error"

    def test_missing_shipping_details_returns_400(self, customer_client, order_payload):
        del order_payload["shippingDetails"]
        response = customer_client.post(URL, order_payload, format="json")
        assert response.status_code == 400
        attrs = [error["attr"] for error in response.json()["errors"]]
        assert "shippingDetails" in attrs

    def test_unknown_payment_method_returns_400(self, customer_client, order_payload):
        order_payload["paymentMethod"] = "barter"
        response = customer_client.post(URL, order_payload, format="json")
        assert response.status_code == 400

    def test_unknown_product_returns_404(self, customer_client, order_payload):
        order_payload["items"][0]["productId"] = str(uuid4())
        response = customer_client.post(URL, order_payload, format="json")
        assert response.status_code == 404
        assert response.json()["errors"][0]["code"] == "not_found"

    def test_requires_authentication(self, api_client, order_payload):
        response = api_client.post(URL, order_payload, format="json")
        assert response.status_code == 401


class TestReadOrders:
    def test_list_is_paginated_and_scoped(
        self, customer_client, make_order, other_customer_user
    ):
        mine = make_order()
        make_order(customer=other_customer_user)

        response = customer_client.get(URL)

        assert response.status_code == 200
        data = response.json()
        assert data["count"] == 1
        assert data["results"][0]["id"] == str(mine.id)
        assert "delivery_otp" not in data["results"][0]

    def test_owner_sees_delivery_codes(self, customer_client, make_order):
        order = make_order()

        response = customer_client.get(f"{URL}{order.id}/")

        assert response.status_code == 200
        assert response.json()["delivery_otp"] == order.delivery_otp
        assert response.json()["status_history"][0]["new_status"] == "pending"

    def test_other_customers_order_is_404(
        self, customer_client, make_order, other_customer_user
    ):
        order = make_order(customer=other_customer_user)
        response = customer_client.get(f"{URL}{order.id}/")
        assert response.status_code == 404


class TestCancelOrder:
    def test_cancel_pending_order(self, customer_client, make_order):
        order = make_order()

        response = customer_client.post(
            f"{URL}{order.id}/cancel/", {"notes": "Ordered twice"}, format="json"
        )

        assert response.status_code == 200
        assert response.json()["status"] == OrderStatus.CANCELLED

    def test_cancel_out_for_delivery_returns_400(
        self, customer_client, out_for_delivery_order
    ):
        response = customer_client.post(
            f"{URL}{out_for_delivery_order.id}/cancel/", {}, format="json"
        )
        assert response.status_code == 400
        assert response.json()["errors"][0]["code"] == "conflict"

    def test_cancel_someone_elses_order_returns_403(
        self, customer_client, make_order, other_customer_user
    ):
        order = make_order(customer=other_customer_user)
        response = customer_client.post(f"{URL}{order.id}/cancel/", {}, format="json")
        assert response.status_code == 403
