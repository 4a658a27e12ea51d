"""Integration tests for the delivery-head roster endpoints."""

from __future__ import annotations

import pytest

from modules.delivery.models import DeliveryBoy, DeliveryHead

pytestmark = pytest.mark.integration

URL = "/api/v1/delivery-head/boys/"


@pytest.fixture()
def new_boy_payload():
    return {
        "boyId": "DB010",
        "name": "Karan",
        "phone": "9845012345",
        "email": "karan@example.com",
        "aadhar": "3000 0000 0010",
        "location": {"lat": 12.93, "lng": 77.62, "address": "Koramangala"},
    }


class TestRosterAccess:
    def test_unapproved_head_gets_403(self, head_client, delivery_head):
        DeliveryHead.objects.filter(id=delivery_head.id).update(is_approved=False)
        assert head_client.get(URL).status_code == 403

    def test_delivery_boy_gets_403(self, boy_client):
        assert boy_client.get(URL).status_code == 403


class TestRosterCrud:
    def test_create(self, head_client, new_boy_payload):
        response = head_client.post(URL, new_boy_payload, format="json")

        assert response.status_code == 201
        data = response.json()
        assert data["boy_id"] == "DB010"
        assert data["aadhar"] == "********0010"
        assert data["location"]["address"] == "Koramangala"
        assert data["is_available"] is True
        assert data["assigned_orders"] == []

    def test_create_duplicate_returns_400(self, head_client, new_boy_payload, delivery_boy):
        new_boy_payload["boyId"] = "DB001"
        response = head_client.post(URL, new_boy_payload, format="json")
        assert response.status_code == 400
        assert response.json()["errors"][0]["code"] == "conflict"

    def test_create_invalid_aadhar_returns_400(self, head_client, new_boy_payload):
        new_boy_payload["aadhar"] = "1234"
        response = head_client.post(URL, new_boy_payload, format="json")
        assert response.status_code == 400
        assert response.json()["errors"][0]["attr"] == "aadhar"

    def test_list_and_retrieve(self, head_client, delivery_boy, other_delivery_boy):
        listing = head_client.get(URL).json()
        assert listing["count"] == 2

        detail = head_client.get(f"{URL}DB001/").json()
        assert detail["name"] == delivery_boy.name

    def test_partial_update(self, head_client, delivery_boy):
        response = head_client.patch(
            f"{URL}DB001/",
            {"rating": "4.8", "location": {"address": "Indiranagar"}},
            format="json",
        )
        assert response.status_code == 200
        assert response.json()["rating"] == "4.8"
        assert response.json()["location"]["address"] == "Indiranagar"

    def test_delete_is_a_soft_delete(self, head_client, delivery_boy):
        response = head_client.delete(f"{URL}DB001/")

        assert response.status_code == 204
        assert DeliveryBoy.objects.filter(id=delivery_boy.id, is_active=False).exists()
        assert head_client.get(f"{URL}DB001/").status_code == 404

    def test_delete_busy_boy_returns_400(self, head_client, out_for_delivery_order):
        response = head_client.delete(f"{URL}DB001/")

        assert response.status_code == 400
        assert head_client.get(f"{URL}DB001/").status_code == 200


class TestRelease:
    def test_release_busy_boy_returns_400(self, head_client, out_for_delivery_order):
        response = head_client.post(f"{URL}DB001/release/")
        assert response.status_code == 400

    def test_release_after_delivery(
        self, head_client, out_for_delivery_order, order_service, delivery_boy
    ):
        order_service.confirm_delivery(
            str(out_for_delivery_order.id),
            delivery_boy.id,
            out_for_delivery_order.delivery_otp,
        )

        response = head_client.post(f"{URL}DB001/release/")

        assert response.status_code == 200
        assert response.json()["is_available"] is True
        assert response.json()["total_deliveries"] == 1
        assert response.json()["assigned_orders"] == [str(out_for_delivery_order.id)]


def test_dashboard_stats(head_client, out_for_delivery_order, other_delivery_boy):
    response = head_client.get("/api/v1/delivery-head/dashboard/stats/")

    assert response.status_code == 200
    assert response.json() == {
        "total_boys": 2,
        "available_boys": 1,
        "total_orders": 0,
        "assigned_orders": 1,
        "delivered_orders": 0,
        "unassigned_orders": 0,
    }
