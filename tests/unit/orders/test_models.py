"""Unit tests for order model behaviour that does not go through the service."""

from __future__ import annotations

from datetime import datetime, timedelta
from datetime import timezone as dt_timezone
from decimal import Decimal

import pytest
from freezegun import freeze_time

from modules.orders.constants import OrderStatus
from modules.orders.models import Order, OrderItem

pytestmark = pytest.mark.unit

FROZEN_NOW = datetime(2026, 3, 1, 10, 0, tzinfo=dt_timezone.utc)


def _order(customer, **overrides):
    fields = {
        "customer": customer,
        "shipping_details": {"city": "Bengaluru"},
        "subtotal": Decimal("100.00"),
        "total": Decimal("100.00"),
        "delivery_otp": "123456",
        "qr_token": "token",
        "otp_expires_at": FROZEN_NOW + timedelta(hours=24),
    }
    fields.update(overrides)
    return Order.objects.create(**fields)


class TestEstimatedDelivery:
    @freeze_time(FROZEN_NOW)
    def test_set_from_order_date_on_first_save(self, customer_user, settings):
        settings.ESTIMATED_DELIVERY_DAYS = 3
        order = _order(customer_user)
        assert order.order_date == FROZEN_NOW
        assert order.estimated_delivery == FROZEN_NOW + timedelta(days=3)

    def test_not_recomputed_on_later_saves(self, customer_user, settings):
        with freeze_time(FROZEN_NOW):
            order = _order(customer_user)
        original = order.estimated_delivery

        settings.ESTIMATED_DELIVERY_DAYS = 10
        with freeze_time(FROZEN_NOW + timedelta(days=2)):
            order.order_notes = "Ring the bell"
            order.save()

        order.refresh_from_db()
        assert order.estimated_delivery == original


class TestDeliveryCodeExpiry:
    def test_not_expired_before_deadline(self, customer_user):
        order = _order(customer_user)
        assert not order.is_delivery_code_expired(FROZEN_NOW)

    def test_expired_after_deadline(self, customer_user):
        order = _order(customer_user)
        assert order.is_delivery_code_expired(FROZEN_NOW + timedelta(hours=25))


class TestOrderItem:
    def test_subtotal_is_quantity_times_unit_price(self, customer_user, product):
        order = _order(customer_user)
        item = OrderItem.objects.create(
            order=order, product=product, quantity=3, unit_price=Decimal("120.50")
        )
        assert item.subtotal == Decimal("361.50")

    def test_unit_price_defaults_to_product_price(self, customer_user, product):
        order = _order(customer_user)
        item = OrderItem.objects.create(order=order, product=product, quantity=2)
        assert item.unit_price == product.price
        assert item.subtotal == Decimal("998.00")


def test_new_orders_start_pending_at_version_one(customer_user):
    order = _order(customer_user)
    assert order.status == OrderStatus.PENDING
    assert order.version == 1
    assert order.assigned_to is None
