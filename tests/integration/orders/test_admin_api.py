"""Integration tests for platform administration of orders.

Covers:
- GET /api/v1/admin/orders/ with filtering, ordering and pagination.
- Stats and payout summary.
- Settlement routes (settle-shop, settle/pay-shop, settle/admin-receive).
- Admin cancellation.
"""

from __future__ import annotations

import pytest

from modules.orders.constants import OrderStatus

pytestmark = pytest.mark.integration

URL = "/api/v1/admin/orders/"


@pytest.fixture()
def delivered_order(out_for_delivery_order, order_service, delivery_boy):
    return order_service.confirm_delivery(
        str(out_for_delivery_order.id),
        delivery_boy.id,
        out_for_delivery_order.delivery_otp,
    )


class TestAdminAccess:
    def test_non_staff_gets_403(self, customer_client):
        assert customer_client.get(URL).status_code == 403


class TestAdminList:
    def test_filter_by_status(self, admin_client, make_order, delivered_order):
        make_order()

        response = admin_client.get(URL, {"status": "delivered"})

        assert response.status_code == 200
        assert [row["id"] for row in response.json()["results"]] == [
            str(delivered_order.id)
        ]

    def test_filter_by_delivery_boy_and_settlement(
        self, admin_client, make_order, delivered_order
    ):
        make_order()

        by_boy = admin_client.get(URL, {"delivery_boy": "DB001"}).json()
        unsettled = admin_client.get(URL, {"paid_to_shop": "false"}).json()

        assert by_boy["count"] == 1
        assert by_boy["results"][0]["assigned_to"] == "DB001"
        assert unsettled["count"] == 2

    def test_filter_by_shop(self, admin_client, make_order, shop, other_shop):
        make_order()
        assert admin_client.get(URL, {"shop": str(shop.id)}).json()["count"] == 1
        assert admin_client.get(URL, {"shop": str(other_shop.id)}).json()["count"] == 0

    def test_ordering_by_total(self, admin_client, make_order):
        small = make_order(quantity=1)
        large = make_order(quantity=3)

        response = admin_client.get(URL, {"ordering": "-total"})

        ids = [row["id"] for row in response.json()["results"]]
        assert ids == [str(large.id), str(small.id)]

    def test_pagination(self, admin_client, make_order):
        for _ in range(3):
            make_order()

        response = admin_client.get(URL, {"page_size": 2})

        data = response.json()
        assert data["count"] == 3
        assert len(data["results"]) == 2
        assert data["next"] is not None

    def test_retrieve_hides_delivery_codes(self, admin_client, make_order):
        order = make_order()
        data = admin_client.get(f"{URL}{order.id}/").json()
        assert data["id"] == str(order.id)
        assert "delivery_otp" not in data
        assert "qr_token" not in data


class TestAdminStats:
    def test_stats(self, admin_client, make_order, delivered_order):
        make_order()
        data = admin_client.get(f"{URL}stats/").json()
        assert data["total_orders"] == 2
        assert data["by_status"]["delivered"] == 1
        assert float(data["delivered_revenue"]) == 539.0

    def test_payout_summary(self, admin_client, delivered_order):
        response = admin_client.get("/api/v1/admin/payouts/summary/")
        assert response.status_code == 200
        data = response.json()
        assert data["pending_shop_payouts"]["count"] == 1
        assert data["pending_admin_receipts"]["count"] == 1
        assert data["settled_shop_payouts"]["count"] == 0


class TestSettlement:
    def test_settle_shop(self, admin_client, delivered_order):
        response = admin_client.put(
            f"{URL}{delivered_order.id}/settle-shop/",
            {"amount": "450.00", "method": "online"},
            format="json",
        )

        assert response.status_code == 200
        settlement = response.json()["settlement"]
        assert settlement["paid_to_shop"] is True
        assert settlement["paid_amount"] == "450.00"
        assert settlement["method"] == "online"

    def test_pay_shop_alias_and_second_attempt(self, admin_client, delivered_order):
        first = admin_client.post(f"{URL}{delivered_order.id}/settle/pay-shop/")
        second = admin_client.post(f"{URL}{delivered_order.id}/settle/pay-shop/")

        assert first.status_code == 200
        assert first.json()["settlement"]["paid_amount"] == "499.00"
        assert second.status_code == 400
        assert second.json()["errors"][0]["code"] == "conflict"

    def test_admin_receive(self, admin_client, delivered_order):
        response = admin_client.post(f"{URL}{delivered_order.id}/settle/admin-receive/")
        assert response.status_code == 200
        assert response.json()["settlement"]["paid_to_admin"] is True

    def test_undelivered_order_cannot_be_settled(self, admin_client, make_order):
        order = make_order()
        response = admin_client.put(f"{URL}{order.id}/settle-shop/", {}, format="json")
        assert response.status_code == 400


class TestAdminCancel:
    def test_cancel_out_for_delivery(self, admin_client, out_for_delivery_order):
        response = admin_client.post(
            f"{URL}{out_for_delivery_order.id}/cancel/",
            {"notes": "Address unreachable"},
            format="json",
        )
        assert response.status_code == 200
        assert response.json()["status"] == OrderStatus.CANCELLED

    def test_cancel_delivered_returns_400(self, admin_client, delivered_order):
        response = admin_client.post(f"{URL}{delivered_order.id}/cancel/", {}, format="json")
        assert response.status_code == 400
