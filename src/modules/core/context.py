"""Per-request caller context.

Roles are resolved once per request from the authenticated user and the
profile rows that hang off it.  Views pass the resulting ``RequestActor``
(or ids taken from it) into services instead of consulting any global
"logged-in role" state.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, List, Optional
from uuid import UUID

from rest_framework.request import Request


@dataclass(frozen=True)
class RequestActor:
    """Who is calling, and in which marketplace roles."""

    user_id: Optional[int]
    is_admin: bool = False
    shop_id: Optional[UUID] = None
    delivery_boy_id: Optional[UUID] = None
    delivery_head_id: Optional[UUID] = None

    @property
    def is_customer(self) -> bool:
        return self.user_id is not None

    @property
    def is_shop(self) -> bool:
        return self.shop_id is not None

    @property
    def is_delivery_boy(self) -> bool:
        return self.delivery_boy_id is not None

    @property
    def is_delivery_head(self) -> bool:
        return self.delivery_head_id is not None

    @property
    def roles(self) -> List[str]:
        roles = []
        if self.is_customer:
            roles.append("customer")
        if self.is_shop:
            roles.append("shop")
        if self.is_delivery_boy:
            roles.append("delivery")
        if self.is_delivery_head:
            roles.append("delivery_head")
        if self.is_admin:
            roles.append("admin")
        return roles

    @classmethod
    def anonymous(cls) -> RequestActor:
        return cls(user_id=None)

    @classmethod
    def from_user(cls, user: Any) -> RequestActor:
        """Resolve the roles held by *user* from their profile rows."""
        if user is None or not getattr(user, "is_authenticated", False):
            return cls.anonymous()

        from modules.catalog.models import Shop
        from modules.delivery.models import DeliveryBoy, DeliveryHead

        shop_id = (
            Shop.objects.filter(owner_id=user.pk, approved=True)
            .values_list("id", flat=True)
            .first()
        )
        delivery_boy_id = (
            DeliveryBoy.objects.filter(user_id=user.pk, is_active=True)
            .values_list("id", flat=True)
            .first()
        )
        delivery_head_id = (
            DeliveryHead.objects.filter(user_id=user.pk, is_approved=True)
            .values_list("id", flat=True)
            .first()
        )
        return cls(
            user_id=user.pk,
            is_admin=bool(user.is_staff),
            shop_id=shop_id,
            delivery_boy_id=delivery_boy_id,
            delivery_head_id=delivery_head_id,
        )


def get_actor(request: Request) -> RequestActor:
    """Return the ``RequestActor`` for *request*, resolving it at most once."""
    actor = getattr(request, "_actor", None)
    if actor is None:
        actor = RequestActor.from_user(getattr(request, "user", None))
        request._actor = actor
    return actor
