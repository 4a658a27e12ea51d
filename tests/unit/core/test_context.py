"""Unit tests for RequestActor role resolution."""

from __future__ import annotations

import pytest
from django.contrib.auth.models import AnonymousUser

from modules.catalog.models import Shop
from modules.core.context import RequestActor
from modules.delivery.models import DeliveryBoy

pytestmark = pytest.mark.unit


def test_anonymous_user_has_no_roles():
    actor = RequestActor.from_user(AnonymousUser())
    assert actor.user_id is None
    assert actor.roles == []


def test_plain_user_is_a_customer(customer_user):
    actor = RequestActor.from_user(customer_user)
    assert actor.roles == ["customer"]
    assert not actor.is_shop


def test_shop_owner(shop):
    actor = RequestActor.from_user(shop.owner)
    assert actor.shop_id == shop.id
    assert actor.roles == ["customer", "shop"]


def test_unapproved_shop_grants_nothing(shop):
    Shop.objects.filter(id=shop.id).update(approved=False)
    assert not RequestActor.from_user(shop.owner).is_shop


def test_delivery_boy(delivery_boy):
    actor = RequestActor.from_user(delivery_boy.user)
    assert actor.delivery_boy_id == delivery_boy.id
    assert "delivery" in actor.roles


def test_deactivated_delivery_boy_loses_the_role(delivery_boy):
    DeliveryBoy.objects.filter(id=delivery_boy.id).update(is_active=False)
    assert not RequestActor.from_user(delivery_boy.user).is_delivery_boy


def test_delivery_head_and_admin(delivery_head, admin_user):
    assert RequestActor.from_user(delivery_head.user).is_delivery_head
    assert RequestActor.from_user(admin_user).roles == ["customer", "admin"]
