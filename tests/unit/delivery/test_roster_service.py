"""Unit tests for DeliveryBoyService.

Covers:
- Roster additions with uniqueness of boy id, email and Aadhaar.
- Partial updates and soft deletion.
- Explicit release after a completed delivery.
- Delivery-head dashboard counters.
"""

from __future__ import annotations

from decimal import Decimal

import pytest

from modules.delivery.dtos import CreateDeliveryBoyDTO, UpdateDeliveryBoyDTO
from modules.delivery.exceptions import (
    DeliveryBoyAlreadyExists,
    DeliveryBoyBusy,
    DeliveryBoyNotFound,
)
from modules.delivery.models import DeliveryBoy
from modules.delivery.views import build_roster_service
from modules.orders.constants import OrderStatus
from modules.orders.exceptions import AgentUnavailable

pytestmark = pytest.mark.unit


@pytest.fixture()
def service():
    return build_roster_service()


def _new_boy(**overrides):
    data = {
        "boyId": "DB010",
        "name": "Karan",
        "phone": "98450 12345",
        "email": "karan@example.com",
        "aadhar": "3000 0000 0010",
        "location": {"lat": 12.93, "lng": 77.62, "address": "Koramangala"},
    }
    data.update(overrides)
    return CreateDeliveryBoyDTO.model_validate(data)


class TestAddBoy:
    def test_add(self, service):
        boy = service.add_boy(_new_boy())

        assert boy.boy_id == "DB010"
        assert boy.aadhar == "300000000010"
        assert boy.location_address == "Koramangala"
        assert boy.is_available is True
        assert boy.is_active is True
        assert boy.total_deliveries == 0

    @pytest.mark.parametrize(
        "overrides,field",
        [
            ({"boyId": "DB001"}, "boy_id"),
            ({"email": "BOY1@example.com"}, "email"),
            ({"aadhar": "200000000001"}, "aadhar"),
        ],
    )
    def test_duplicates_are_rejected(self, service, delivery_boy, overrides, field):
        with pytest.raises(DeliveryBoyAlreadyExists, match=field):
            service.add_boy(_new_boy(**overrides))

    def test_deactivated_ids_are_not_reused(self, service, delivery_boy):
        service.deactivate_boy("DB001")
        with pytest.raises(DeliveryBoyAlreadyExists):
            service.add_boy(_new_boy(boyId="DB001"))


class TestUpdateBoy:
    def test_only_supplied_fields_change(self, service, delivery_boy):
        boy = service.update_boy(
            "DB001", UpdateDeliveryBoyDTO(name="Arjun S", rating=Decimal("4.5"))
        )

        assert boy.name == "Arjun S"
        assert boy.rating == Decimal("4.5")
        assert boy.phone == delivery_boy.phone
        assert boy.email == delivery_boy.email

    def test_email_taken_by_another_boy(self, service, delivery_boy, other_delivery_boy):
        with pytest.raises(DeliveryBoyAlreadyExists):
            service.update_boy(
                "DB001", UpdateDeliveryBoyDTO(email=other_delivery_boy.email)
            )

    def test_keeping_own_email_is_allowed(self, service, delivery_boy):
        boy = service.update_boy(
            "DB001", UpdateDeliveryBoyDTO(email=delivery_boy.email.upper())
        )
        assert boy.boy_id == "DB001"

    def test_unknown_boy(self, service):
        with pytest.raises(DeliveryBoyNotFound):
            service.update_boy("DB404", UpdateDeliveryBoyDTO(name="x"))


class TestDeactivateBoy:
    def test_soft_delete_hides_the_boy(self, service, delivery_boy):
        service.deactivate_boy("DB001")

        stored = DeliveryBoy.objects.get(id=delivery_boy.id)
        assert stored.is_active is False
        assert stored.is_available is False
        assert service.list_boys() == []
        with pytest.raises(DeliveryBoyNotFound):
            service.get_boy("DB001")

    def test_boy_holding_an_order_cannot_be_deactivated(
        self, service, out_for_delivery_order, delivery_boy, order_service
    ):
        with pytest.raises(DeliveryBoyBusy):
            service.deactivate_boy("DB001")

        delivery_boy.refresh_from_db()
        assert delivery_boy.is_active is True
        order = order_service.confirm_delivery_by_qr(
            str(out_for_delivery_order.id), "DB001", out_for_delivery_order.qr_token
        )
        assert order.status == OrderStatus.DELIVERED


class TestReleaseBoy:
    def test_busy_boy_cannot_be_released(
        self, service, out_for_delivery_order, delivery_boy
    ):
        with pytest.raises(DeliveryBoyBusy):
            service.release_boy("DB001")

    def test_release_after_delivery_allows_a_new_assignment(
        self,
        service,
        out_for_delivery_order,
        order_service,
        make_order,
        delivery_boy,
        delivery_head,
    ):
        order_service.confirm_delivery(
            str(out_for_delivery_order.id),
            delivery_boy.id,
            out_for_delivery_order.delivery_otp,
        )
        second = make_order()
        with pytest.raises(AgentUnavailable):
            order_service.assign_order(str(second.id), "DB001", delivery_head.user_id)

        boy = service.release_boy("DB001")
        assert boy.is_available is True

        order, _ = order_service.assign_order(
            str(second.id), "DB001", delivery_head.user_id
        )
        assert order.assigned_to_id == delivery_boy.id

    def test_release_is_idempotent(self, service, delivery_boy):
        assert service.release_boy("DB001").is_available is True
        assert service.release_boy("DB001").is_available is True


class TestDashboardStats:
    def test_counters(
        self,
        service,
        make_order,
        order_service,
        shop,
        delivery_boy,
        other_delivery_boy,
        delivery_head,
    ):
        waiting = make_order()
        order_service.confirm_order(str(waiting.id), shop.id, shop.owner_id)
        order_service.notify_delivery(str(waiting.id), shop.id, shop.owner_id)

        delivered = make_order()
        delivered, _ = order_service.assign_order(
            str(delivered.id), "DB001", delivery_head.user_id
        )
        order_service.confirm_delivery(
            str(delivered.id), delivery_boy.id, delivered.delivery_otp
        )

        make_order()

        assert service.dashboard_stats() == {
            "total_boys": 2,
            "available_boys": 1,
            "total_orders": 1,
            "assigned_orders": 0,
            "delivered_orders": 1,
            "unassigned_orders": 1,
        }
