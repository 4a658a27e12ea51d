from decimal import Decimal

import pytest

from rest_framework.test import APIClient

PASSWORD = "testpass123"

SHIPPING_DETAILS = {
    "first_name": "Asha",
    "last_name": "Rao",
    "email": "asha@example.com",
    "phone": "9876543210",
    "address": "12 MG Road",
    "city": "Bengaluru",
    "state": "Karnataka",
    "pincode": "560001",
}


@pytest.fixture(autouse=True)
def _use_db(db):
    """Automatically use the test database for all tests."""


@pytest.fixture()
def api_client():
    """DRF APIClient for testing API endpoints."""
    return APIClient()


@pytest.fixture()
def api_client_with_correlation(api_client):
    """APIClient pre-configured with a known correlation ID header."""
    cid = "test-correlation-id-fixture"
    api_client.defaults["HTTP_X_REQUEST_ID"] = cid
    return api_client, cid


# ---------------------------------------------------------------------------
# Accounts and roles
# ---------------------------------------------------------------------------


def _user(username, **extra):
    from django.contrib.auth import get_user_model

    return get_user_model().objects.create_user(
        username=username, password=PASSWORD, **extra
    )


@pytest.fixture()
def customer_user():
    return _user("customer")


@pytest.fixture()
def other_customer_user():
    return _user("other-customer")


@pytest.fixture()
def admin_user():
    return _user("ops-admin", is_staff=True)


@pytest.fixture()
def shop():
    from modules.catalog.models import Shop

    return Shop.objects.create(
        owner=_user("shop-owner"), name="Urban Threads", approved=True
    )


@pytest.fixture()
def other_shop():
    from modules.catalog.models import Shop

    return Shop.objects.create(
        owner=_user("other-shop-owner"), name="Desi Drapes", approved=True
    )


@pytest.fixture()
def product(shop):
    """A kurta stocked as 10 units of M/White."""
    from modules.catalog.models import Product, ProductVariant

    product = Product.objects.create(
        shop=shop,
        title="Cotton Kurta",
        price=Decimal("499.00"),
        color="White",
        sizes=["M", "L"],
    )
    ProductVariant.objects.create(product=product, size="M", color="White", quantity=10)
    return product


@pytest.fixture()
def delivery_head():
    from modules.delivery.models import DeliveryHead

    return DeliveryHead.objects.create(
        user=_user("head"),
        name="Ravi Kumar",
        email="head@example.com",
        phone="9876500000",
        aadhar="100000000000",
        is_approved=True,
    )


def _boy(boy_id, username, index):
    from modules.delivery.models import DeliveryBoy

    return DeliveryBoy.objects.create(
        boy_id=boy_id,
        user=_user(username),
        name=f"Rider {index}",
        phone=f"98765{index:05d}",
        email=f"{username}@example.com",
        aadhar=f"{200000000000 + index}",
    )


@pytest.fixture()
def delivery_boy():
    return _boy("DB001", "boy1", 1)


@pytest.fixture()
def other_delivery_boy():
    return _boy("DB002", "boy2", 2)


def _client_for(user):
    client = APIClient()
    client.force_authenticate(user=user)
    return client


@pytest.fixture()
def customer_client(customer_user):
    return _client_for(customer_user)


@pytest.fixture()
def shop_client(shop):
    return _client_for(shop.owner)


@pytest.fixture()
def head_client(delivery_head):
    return _client_for(delivery_head.user)


@pytest.fixture()
def boy_client(delivery_boy):
    return _client_for(delivery_boy.user)


@pytest.fixture()
def admin_client(admin_user):
    return _client_for(admin_user)


# ---------------------------------------------------------------------------
# Orders
# ---------------------------------------------------------------------------


@pytest.fixture()
def order_service():
    from modules.orders.views import build_order_service

    return build_order_service()


@pytest.fixture()
def make_order(order_service, customer_user, product):
    """Factory placing an order of the kurta through the service."""
    from modules.orders.dtos import CreateOrderDTO

    def _make(customer=None, quantity=1, **overrides):
        payload = {
            "items": [
                {
                    "product_id": product.id,
                    "quantity": quantity,
                    "selected_size": "M",
                    "selected_color": "White",
                }
            ],
            "shipping_details": SHIPPING_DETAILS,
            "delivery_fee": Decimal("40.00"),
        }
        payload.update(overrides)
        owner = customer or customer_user
        return order_service.create_order(
            owner.id, CreateOrderDTO.model_validate(payload)
        )

    return _make


@pytest.fixture()
def out_for_delivery_order(make_order, order_service, delivery_boy, delivery_head):
    """A pending order assigned to DB001 by the delivery head."""
    order = make_order()
    order, _ = order_service.assign_order(
        str(order.id), delivery_boy.boy_id, assigned_by=delivery_head.user_id
    )
    return order
