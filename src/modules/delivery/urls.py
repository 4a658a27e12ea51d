"""Delivery roster URL configuration."""

from __future__ import annotations

from django.urls import path
from rest_framework.routers import DefaultRouter

from modules.delivery.views import DeliveryBoyViewSet, DeliveryDashboardStatsView

router = DefaultRouter(trailing_slash=True)
router.register("delivery-head/boys", DeliveryBoyViewSet, basename="delivery-boy")

urlpatterns = [
    path(
        "delivery-head/dashboard/stats/",
        DeliveryDashboardStatsView.as_view(),
        name="delivery-dashboard-stats",
    ),
    *router.urls,
]
