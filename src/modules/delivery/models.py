"""DeliveryHead and DeliveryBoy models.

Business rules implemented:
- ``boy_id`` (external id such as "DB001"), ``email`` and ``aadhar`` are unique.
- ``is_available`` is ``True`` only while the boy holds no active order;
  assignment flips it with a conditional update (see repository).
- ``is_active`` is the soft-delete flag: inactive boys are hidden from the
  roster and can never be assigned.
- Assignment history lives in ``orders.DeliveryAssignment`` and is exposed
  here as ``assigned_order_ids``.
"""

from __future__ import annotations

from decimal import Decimal
from typing import List
from uuid import UUID

from django.conf import settings
from django.core.validators import MaxValueValidator, MinValueValidator
from django.db import models

from modules.core.models import BaseModel


class DeliveryHead(BaseModel):
    """Supervisor who manages the delivery roster and assigns orders.

    Only approved heads may use the delivery-head endpoints.
    """

    user = models.OneToOneField(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="delivery_head",
    )
    name = models.CharField(max_length=255)
    email = models.EmailField(unique=True)
    phone = models.CharField(max_length=20)
    aadhar = models.CharField(max_length=12, unique=True)
    is_approved = models.BooleanField(default=False)

    class Meta:
        db_table = "delivery_heads"
        ordering = ["name"]

    def __str__(self) -> str:
        return self.name


class DeliveryBoy(BaseModel):
    """Delivery personnel that can hold at most one active order."""

    boy_id = models.CharField(max_length=20, unique=True)
    user = models.OneToOneField(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="delivery_boy",
    )
    name = models.CharField(max_length=255)
    phone = models.CharField(max_length=20)
    email = models.EmailField(unique=True)
    aadhar = models.CharField(max_length=12, unique=True)
    location_lat = models.FloatField(null=True, blank=True)
    location_lng = models.FloatField(null=True, blank=True)
    location_address = models.CharField(max_length=500, blank=True, default="")
    is_available = models.BooleanField(default=True)
    is_active = models.BooleanField(default=True)
    total_deliveries = models.PositiveIntegerField(default=0)
    rating = models.DecimalField(
        max_digits=2,
        decimal_places=1,
        default=Decimal("0.0"),
        validators=[
            MinValueValidator(Decimal("0.0")),
            MaxValueValidator(Decimal("5.0")),
        ],
    )

    class Meta:
        db_table = "delivery_boys"
        ordering = ["-created_at"]
        indexes = [
            models.Index(
                fields=["is_active", "is_available"],
                name="delivery_boys_availability_idx",
            ),
        ]

    @property
    def assigned_order_ids(self) -> List[UUID]:
        """Append-only history of orders ever assigned to this boy."""
        return list(
            self.assignments.order_by("created_at").values_list("order_id", flat=True)
        )

    def __str__(self) -> str:
        return f"{self.boy_id} - {self.name}"
