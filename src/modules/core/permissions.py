"""Role-based DRF permission classes.

Each class checks one marketplace role on the request's ``RequestActor``.
Authentication itself is enforced by ``IsAuthenticated`` (fail closed).
"""

from __future__ import annotations

from rest_framework.permissions import BasePermission

from modules.core.context import get_actor


class IsShopOwner(BasePermission):
    """Caller owns an approved shop."""

    message = "Only approved shop owners can perform this action."

    def has_permission(self, request, view) -> bool:
        return get_actor(request).is_shop


class IsDeliveryBoy(BasePermission):
    """Caller is an active delivery boy."""

    message = "Only active delivery personnel can perform this action."

    def has_permission(self, request, view) -> bool:
        return get_actor(request).is_delivery_boy


class IsDeliveryHead(BasePermission):
    """Caller is an approved delivery head."""

    message = "Only approved delivery heads can perform this action."

    def has_permission(self, request, view) -> bool:
        return get_actor(request).is_delivery_head


class IsPlatformAdmin(BasePermission):
    """Caller is a platform administrator (Django staff account)."""

    message = "Only administrators can perform this action."

    def has_permission(self, request, view) -> bool:
        return get_actor(request).is_admin
