"""Order, OrderItem, OrderStatusHistory and DeliveryAssignment models.

Business rules implemented:
- Status changes follow ``VALID_TRANSITIONS`` (enforced at service layer).
- Each status change, including creation, generates a history record.
- ``estimated_delivery`` is ``order_date + ESTIMATED_DELIVERY_DAYS``, set on
  the first save and never recomputed.
- ``version`` is the compare-and-swap token checked by every repository
  write after creation.
- Orders are never deleted; cancellation is a status value.
- OrderItem snapshots the product price at creation time (``unit_price``)
  and ``subtotal`` is always ``quantity * unit_price``.
"""

from __future__ import annotations

from datetime import datetime, timedelta
from decimal import Decimal
from typing import Any, Optional

from django.conf import settings
from django.core.exceptions import ValidationError
from django.core.validators import MinValueValidator
from django.db import models
from django.utils import timezone

from modules.core.models import BaseModel
from modules.orders.constants import (
    TERMINAL_STATES,
    VALID_TRANSITIONS,
    OrderStatus,
    PaymentMethod,
)
from shared.domain.events import DomainEventMixin

_MONEY = {
    "max_digits": 12,
    "decimal_places": 2,
    "validators": [MinValueValidator(Decimal("0.00"))],
}


class Order(DomainEventMixin, BaseModel):
    """Order aggregate root.

    ``assigned_to`` is present iff the order reached ``out_for_delivery``
    through assignment or take.  ``shipping_details`` is stored as the
    snake_case JSON object validated by ``ShippingDetailsDTO``.
    """

    customer: models.ForeignKey = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="orders",
    )
    shipping_details: models.JSONField = models.JSONField()
    payment_method: models.CharField = models.CharField(
        max_length=10,
        choices=PaymentMethod.choices,
        default=PaymentMethod.COD,
    )
    paid: models.BooleanField = models.BooleanField(default=False)
    order_notes: models.TextField = models.TextField(blank=True, default="")
    subtotal: models.DecimalField = models.DecimalField(**_MONEY)
    delivery_fee: models.DecimalField = models.DecimalField(
        default=Decimal("0.00"), **_MONEY
    )
    total: models.DecimalField = models.DecimalField(**_MONEY)
    status: models.CharField = models.CharField(
        max_length=20,
        choices=OrderStatus.choices,
        default=OrderStatus.PENDING,
    )
    assigned_to: models.ForeignKey = models.ForeignKey(
        "delivery.DeliveryBoy",
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="orders",
    )

    # Delivery confirmation secrets
    delivery_otp: models.CharField = models.CharField(max_length=6)
    qr_token: models.CharField = models.CharField(max_length=64, db_index=True)
    otp_expires_at: models.DateTimeField = models.DateTimeField()
    qr_generated_at: models.DateTimeField = models.DateTimeField(
        null=True, blank=True
    )
    delivery_notification_at: models.DateTimeField = models.DateTimeField(
        null=True, blank=True
    )
    tracking_id: models.CharField = models.CharField(
        max_length=100, blank=True, default=""
    )

    order_date: models.DateTimeField = models.DateTimeField(default=timezone.now)
    estimated_delivery: models.DateTimeField = models.DateTimeField(
        null=True, blank=True
    )

    # Settlement
    settlement_method: models.CharField = models.CharField(
        max_length=10,
        choices=PaymentMethod.choices,
        default=PaymentMethod.COD,
    )
    paid_to_admin: models.BooleanField = models.BooleanField(default=False)
    paid_to_shop: models.BooleanField = models.BooleanField(default=False)
    paid_amount: models.DecimalField = models.DecimalField(
        default=Decimal("0.00"), **_MONEY
    )
    settled_at: models.DateTimeField = models.DateTimeField(null=True, blank=True)

    version: models.PositiveIntegerField = models.PositiveIntegerField(default=1)

    class Meta:
        db_table = "orders"
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["status"], name="orders_status_idx"),
            models.Index(fields=["-created_at"], name="orders_created_idx"),
            models.Index(
                fields=["status", "assigned_to"],
                name="orders_status_assignee_idx",
            ),
        ]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(subtotal__gte=0)
                & models.Q(delivery_fee__gte=0)
                & models.Q(total__gte=0),
                name="orders_amounts_non_negative",
            ),
        ]

    # ------------------------------------------------------------------
    # State Machine helpers
    # ------------------------------------------------------------------

    @property
    def is_terminal(self) -> bool:
        """Return ``True`` if the order is in a terminal state."""
        return self.status in TERMINAL_STATES

    def can_transition_to(self, new_status: str) -> bool:
        """Check whether transitioning to *new_status* is valid."""
        allowed = VALID_TRANSITIONS.get(self.status, set())
        return new_status in allowed

    def is_delivery_code_expired(self, now: Optional[datetime] = None) -> bool:
        if self.otp_expires_at is None:
            return False
        return (now or timezone.now()) > self.otp_expires_at

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def save(self, *args: Any, **kwargs: Any) -> None:
        if self.estimated_delivery is None:
            self.estimated_delivery = self.order_date + timedelta(
                days=settings.ESTIMATED_DELIVERY_DAYS
            )
        super().save(*args, **kwargs)

    def __str__(self) -> str:
        return f"{self.id} ({self.status})"


class OrderItem(BaseModel):
    """Line item linking an Order to a Product.

    ``unit_price`` is a **snapshot** of the product price at the time of
    purchase.  Items are never edited after the order is created.
    """

    order: models.ForeignKey = models.ForeignKey(
        "orders.Order",
        on_delete=models.CASCADE,
        related_name="items",
    )
    product: models.ForeignKey = models.ForeignKey(
        "catalog.Product",
        on_delete=models.PROTECT,
        related_name="order_items",
    )
    quantity: models.PositiveIntegerField = models.PositiveIntegerField(
        default=1,
        validators=[MinValueValidator(1)],
    )
    unit_price: models.DecimalField = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        validators=[MinValueValidator(Decimal("0.00"))],
    )
    subtotal: models.DecimalField = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        editable=False,
    )
    selected_size: models.CharField = models.CharField(
        max_length=20, blank=True, default=""
    )
    selected_color: models.CharField = models.CharField(
        max_length=50, blank=True, default=""
    )

    class Meta:
        db_table = "order_items"
        ordering = ["created_at"]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(quantity__gte=1),
                name="order_items_quantity_positive",
            ),
            models.CheckConstraint(
                condition=models.Q(unit_price__gte=0),
                name="order_items_unit_price_non_negative",
            ),
        ]

    def clean(self) -> None:
        super().clean()
        if self.quantity is not None and self.quantity < 1:
            raise ValidationError({"quantity": "Quantity must be at least 1."})

    def save(self, *args: Any, **kwargs: Any) -> None:
        if self.unit_price is None:
            unit_price = getattr(self.product, "price", None)
            if unit_price is None:
                raise ValidationError({"unit_price": "Product price is required."})
            self.unit_price = unit_price
        self.subtotal = self.quantity * self.unit_price
        super().save(*args, **kwargs)

    def __str__(self) -> str:
        return f"{self.product_id} x{self.quantity}"


class OrderStatusHistory(BaseModel):
    """Append-only audit trail for order status transitions.

    ``user`` is nullable: ``None`` means the change came from an
    unauthenticated channel (the public QR confirmation).
    """

    order: models.ForeignKey = models.ForeignKey(
        "orders.Order",
        on_delete=models.CASCADE,
        related_name="status_history",
    )
    old_status: models.CharField = models.CharField(  # noqa: DJ01
        max_length=20,
        choices=OrderStatus.choices,
        null=True,
        blank=True,
    )
    new_status: models.CharField = models.CharField(
        max_length=20,
        choices=OrderStatus.choices,
    )
    user: models.ForeignKey = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
    )
    notes: models.TextField = models.TextField(blank=True, default="")

    class Meta:
        db_table = "order_status_history"
        ordering = ["created_at"]
        indexes = [
            models.Index(
                fields=["order", "created_at"],
                name="osh_order_created_idx",
            ),
        ]

    def __str__(self) -> str:
        return f"{self.order_id} : {self.old_status} -> {self.new_status}"


class DeliveryAssignment(BaseModel):
    """Append-only record of an order being handed to a delivery boy.

    ``is_self_assigned`` marks a take by the boy directly; otherwise
    ``assigned_by`` is the delivery head who made the assignment.
    """

    order: models.ForeignKey = models.ForeignKey(
        "orders.Order",
        on_delete=models.CASCADE,
        related_name="assignments",
    )
    delivery_boy: models.ForeignKey = models.ForeignKey(
        "delivery.DeliveryBoy",
        on_delete=models.PROTECT,
        related_name="assignments",
    )
    assigned_by: models.ForeignKey = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="+",
    )
    is_self_assigned: models.BooleanField = models.BooleanField(default=False)

    class Meta:
        db_table = "delivery_assignments"
        ordering = ["created_at"]

    def __str__(self) -> str:
        return f"{self.order_id} -> {self.delivery_boy_id}"
