"""Delivery roster service layer (Use Cases).

Orchestrates the delivery head's roster management, delegating
persistence to the injected repositories.

Business rules enforced here:
- ``boy_id``, ``email`` and ``aadhar`` are unique across the roster.
- Removing a boy is a soft delete (``is_active = False``).
- Completing a delivery never makes a boy available again; the head
  releases the boy explicitly once no out-for-delivery order remains.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Dict, List, Optional

import structlog
from django.db import transaction

from modules.delivery.exceptions import (
    DeliveryBoyAlreadyExists,
    DeliveryBoyBusy,
    DeliveryBoyNotFound,
)
from modules.delivery.models import DeliveryBoy

if TYPE_CHECKING:
    from modules.delivery.dtos import (
        CreateDeliveryBoyDTO,
        LocationDTO,
        UpdateDeliveryBoyDTO,
    )
    from modules.delivery.repositories.interfaces import IDeliveryBoyRepository
    from modules.orders.repositories.interfaces import IOrderRepository

logger = structlog.get_logger(__name__)


class DeliveryBoyService:
    """Application service for the delivery roster.

    Receives an ``IDeliveryBoyRepository`` and an ``IOrderRepository``
    (dashboard counts) via constructor injection.
    """

    def __init__(
        self,
        repository: IDeliveryBoyRepository,
        order_repository: IOrderRepository,
    ) -> None:
        self._repo = repository
        self._orders = order_repository

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    @transaction.atomic
    def add_boy(self, dto: CreateDeliveryBoyDTO) -> DeliveryBoy:
        """Add a delivery boy to the roster.

        Raises:
            DeliveryBoyAlreadyExists: boy id, email or Aadhaar already taken.
        """
        log = logger.bind(boy_id=dto.boy_id)

        taken = self._repo.find_conflict(
            boy_id=dto.boy_id, email=dto.email, aadhar=dto.aadhar
        )
        if taken:
            log.warning("delivery_boy.duplicate", field=taken)
            raise DeliveryBoyAlreadyExists(
                f"A delivery boy with this {taken} already exists."
            )

        boy = DeliveryBoy(
            boy_id=dto.boy_id,
            user_id=dto.user_id,
            name=dto.name,
            phone=dto.phone,
            email=dto.email,
            aadhar=dto.aadhar,
            rating=dto.rating,
        )
        if dto.location is not None:
            _apply_location(boy, dto.location)

        boy = self._repo.save(boy)
        log.info("delivery_boy.created", delivery_boy_id=str(boy.id))
        return boy

    @transaction.atomic
    def update_boy(self, boy_id: str, dto: UpdateDeliveryBoyDTO) -> DeliveryBoy:
        """Update the supplied roster fields of an active boy.

        Raises:
            DeliveryBoyNotFound: unknown or deactivated boy.
            DeliveryBoyAlreadyExists: the new email belongs to another boy.
        """
        boy = self.get_boy(boy_id)
        log = logger.bind(boy_id=boy_id)

        if dto.email is not None and dto.email.lower() != boy.email.lower():
            if self._repo.find_conflict(email=dto.email, exclude_id=boy.id):
                log.warning("delivery_boy.duplicate", field="email")
                raise DeliveryBoyAlreadyExists(
                    "A delivery boy with this email already exists."
                )

        for field in ("name", "phone", "email", "rating"):
            value = getattr(dto, field)
            if value is not None:
                setattr(boy, field, value)
        if dto.location is not None:
            _apply_location(boy, dto.location)

        boy = self._repo.save(boy)
        log.info("delivery_boy.updated")
        return boy

    @transaction.atomic
    def deactivate_boy(self, boy_id: str) -> None:
        """Soft-delete a boy, removing them from the roster and from assignment.

        Raises:
            DeliveryBoyNotFound: unknown or already deactivated boy.
            DeliveryBoyBusy: the boy still holds an out-for-delivery order.
        """
        boy = self.get_boy(boy_id)
        if self._repo.has_active_order(boy.id):
            raise DeliveryBoyBusy(
                f"Delivery boy {boy_id} still has an order out for delivery."
            )
        boy.is_active = False
        boy.is_available = False
        self._repo.save(boy)
        logger.info("delivery_boy.deactivated", boy_id=boy_id)

    @transaction.atomic
    def release_boy(self, boy_id: str) -> DeliveryBoy:
        """Make a boy available for assignment again.

        Idempotent for a boy who is already available.

        Raises:
            DeliveryBoyNotFound: unknown or deactivated boy.
            DeliveryBoyBusy: the boy still holds an out-for-delivery order.
        """
        boy = self.get_boy(boy_id)
        if self._repo.has_active_order(boy.id):
            raise DeliveryBoyBusy(
                f"Delivery boy {boy_id} still has an order out for delivery."
            )
        if self._repo.release(boy.id):
            boy.is_available = True
            logger.info("delivery_boy.released", boy_id=boy_id)
        return boy

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def list_boys(self, filters: Optional[Dict[str, Any]] = None) -> List[DeliveryBoy]:
        """Return active delivery boys, optionally filtered."""
        return self._repo.list(filters)

    def get_boy(self, boy_id: str) -> DeliveryBoy:
        """Retrieve an active boy by external id.

        Raises:
            DeliveryBoyNotFound: unknown or deactivated boy.
        """
        boy = self._repo.get_by_boy_id(boy_id)
        if not boy:
            raise DeliveryBoyNotFound(f"Delivery boy {boy_id} not found.")
        return boy

    def dashboard_stats(self) -> Dict[str, int]:
        """Roster and order counters for the delivery-head dashboard."""
        boys = self._repo.counts()
        orders = self._orders.status_counts()
        return {
            "total_boys": boys["total"],
            "available_boys": boys["available"],
            "total_orders": orders.get("notify_delivery", 0),
            "assigned_orders": orders.get("out_for_delivery", 0),
            "delivered_orders": orders.get("delivered", 0),
            "unassigned_orders": self._orders.count_unassigned(),
        }


def _apply_location(boy: DeliveryBoy, location: LocationDTO) -> None:
    boy.location_lat = location.lat
    boy.location_lng = location.lng
    boy.location_address = location.address
