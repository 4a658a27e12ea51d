"""Django ORM implementation of the delivery roster repository."""

from __future__ import annotations

from typing import Any, Dict, List, Optional

import structlog
from django.core.exceptions import ValidationError
from django.db import transaction
from django.db.models import Count, F, Q

from modules.delivery.models import DeliveryBoy
from modules.delivery.repositories.interfaces import IDeliveryBoyRepository
from modules.orders.constants import OrderStatus

logger = structlog.get_logger(__name__)


class DeliveryBoyDjangoRepository(IDeliveryBoyRepository):
    """Concrete roster repository backed by Django ORM."""

    def get_by_id(self, id: str) -> Optional[DeliveryBoy]:
        """Returns ``None`` for non-existent, inactive or invalid IDs."""
        try:
            return DeliveryBoy.objects.filter(id=id, is_active=True).first()
        except (ValueError, ValidationError):
            return None

    def get_by_boy_id(self, boy_id: str) -> Optional[DeliveryBoy]:
        return DeliveryBoy.objects.filter(boy_id=boy_id, is_active=True).first()

    def list(self, filters: Optional[Dict[str, Any]] = None) -> List[DeliveryBoy]:
        queryset = DeliveryBoy.objects.filter(is_active=True).prefetch_related(
            "assignments"
        )
        if filters:
            queryset = queryset.filter(**filters)
        return list(queryset)

    def find_conflict(
        self,
        boy_id: Optional[str] = None,
        email: Optional[str] = None,
        aadhar: Optional[str] = None,
        exclude_id: Any = None,
    ) -> Optional[str]:
        # Uniqueness spans inactive rows too: ids are never reused.
        queryset = DeliveryBoy.objects.all()
        if exclude_id is not None:
            queryset = queryset.exclude(id=exclude_id)
        for field, value in (("boy_id", boy_id), ("email", email), ("aadhar", aadhar)):
            if value is None:
                continue
            lookup = {f"{field}__iexact" if field == "email" else field: value}
            if queryset.filter(**lookup).exists():
                return field
        return None

    @transaction.atomic
    def save(self, entity: DeliveryBoy) -> DeliveryBoy:
        entity.save()
        logger.info("delivery_boy.saved", boy_id=entity.boy_id)
        return entity

    def claim(self, id: Any) -> bool:
        updated = DeliveryBoy.objects.filter(
            id=id, is_active=True, is_available=True
        ).update(is_available=False)
        return updated == 1

    def release(self, id: Any) -> bool:
        updated = DeliveryBoy.objects.filter(
            id=id, is_active=True, is_available=False
        ).update(is_available=True)
        return updated == 1

    def increment_deliveries(self, id: Any) -> None:
        DeliveryBoy.objects.filter(id=id).update(
            total_deliveries=F("total_deliveries") + 1
        )

    def has_active_order(self, id: Any) -> bool:
        return DeliveryBoy.objects.filter(
            id=id, orders__status=OrderStatus.OUT_FOR_DELIVERY
        ).exists()

    def counts(self) -> Dict[str, int]:
        return DeliveryBoy.objects.filter(is_active=True).aggregate(
            total=Count("id"),
            available=Count("id", filter=Q(is_available=True)),
        )
