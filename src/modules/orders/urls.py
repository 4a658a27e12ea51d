"""Order URL configuration."""

from __future__ import annotations

from django.urls import path
from rest_framework.routers import DefaultRouter

from modules.orders.views import (
    AdminOrderViewSet,
    AdminPayoutSummaryView,
    CustomerOrderViewSet,
    DeliveryHeadOrderViewSet,
    DeliveryOrderViewSet,
    DeliveryQrConfirmView,
    ShopOrderViewSet,
)

router = DefaultRouter(trailing_slash=True)
router.register("user/orders", CustomerOrderViewSet, basename="customer-order")
router.register("shop/orders", ShopOrderViewSet, basename="shop-order")
router.register("delivery/orders", DeliveryOrderViewSet, basename="delivery-order")
router.register(
    "delivery-head/orders", DeliveryHeadOrderViewSet, basename="delivery-head-order"
)
router.register("admin/orders", AdminOrderViewSet, basename="admin-order")

urlpatterns = [
    path(
        "delivery/confirm/",
        DeliveryQrConfirmView.as_view(),
        name="delivery-qr-confirm",
    ),
    path(
        "admin/payouts/summary/",
        AdminPayoutSummaryView.as_view(),
        name="admin-payout-summary",
    ),
    *router.urls,
]
