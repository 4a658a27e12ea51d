"""Django ORM implementation of the Order repository.

Satisfies ``IOrderRepository`` using Django's QuerySet API.
All write operations are wrapped in ``transaction.atomic()`` so the
Order aggregate and its outbox events are persisted together.

Concurrency control is optimistic: every update of an existing order is
a single ``UPDATE ... WHERE id = %s AND version = %s`` that also bumps
the version.  No row locks are taken.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any, Dict, List, Optional, Sequence

import structlog
from django.core.exceptions import ValidationError
from django.db import transaction
from django.db.models import Count, F, Q, QuerySet, Sum
from django.utils import timezone

from modules.core.models import OutboxEvent
from modules.orders.constants import OrderStatus
from modules.orders.exceptions import ConcurrentModification
from modules.orders.models import (
    DeliveryAssignment,
    Order,
    OrderItem,
    OrderStatusHistory,
)
from modules.orders.repositories.interfaces import IOrderRepository

logger = structlog.get_logger(__name__)

# Never written by ``save`` once the row exists.
_IMMUTABLE_FIELDS = {"id", "created_at", "updated_at", "version", "customer"}


class OrderDjangoRepository(IOrderRepository):
    """Concrete Order repository backed by Django ORM."""

    # ------------------------------------------------------------------
    # Create (aggregate root + children)
    # ------------------------------------------------------------------

    @transaction.atomic
    def create(self, data: Dict[str, Any]) -> Order:
        """Create an order with its items atomically."""
        fields = dict(data)
        items = fields.pop("items", [])

        order = Order(**fields)
        order.save()

        OrderItem.objects.bulk_create(
            [
                OrderItem(
                    order=order,
                    product_id=item["product_id"],
                    quantity=item["quantity"],
                    unit_price=item["unit_price"],
                    subtotal=item["quantity"] * item["unit_price"],
                    selected_size=item.get("selected_size") or "",
                    selected_color=item.get("selected_color") or "",
                )
                for item in items
            ]
        )

        logger.info("order.persisted", order_id=str(order.id), item_count=len(items))
        return order

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    def query(self, filters: Optional[Dict[str, Any]] = None) -> QuerySet:
        """Orders with eager-loaded relations.

        Uses ``select_related`` for the customer and delivery boy FKs and
        ``prefetch_related`` for items, items→product and history.
        Filters spanning items are de-duplicated with ``distinct()``.
        """
        queryset = Order.objects.select_related(
            "customer", "assigned_to"
        ).prefetch_related("items__product", "status_history")
        if filters:
            queryset = queryset.filter(**filters)
            if any(key.startswith("items__") for key in filters):
                queryset = queryset.distinct()
        return queryset

    def get_by_id(self, id: str) -> Optional[Order]:
        """Retrieve an order with eager-loaded relations.

        Returns ``None`` for non-existent or invalid IDs.
        """
        try:
            return self.query().filter(id=id).first()
        except (ValueError, ValidationError):
            return None

    def list(self, filters: Optional[Dict[str, Any]] = None) -> List[Order]:
        return list(self.query(filters))

    def is_sold_by(self, order_id: Any, shop_id: Any) -> bool:
        return OrderItem.objects.filter(
            order_id=order_id, product__shop_id=shop_id
        ).exists()

    # ------------------------------------------------------------------
    # Save (IRepository contract)
    # ------------------------------------------------------------------

    @transaction.atomic
    def save(
        self, entity: Order, update_fields: Optional[Sequence[str]] = None
    ) -> Order:
        """Persist an order and write its pending domain events to the outbox.

        An empty ``update_fields`` writes nothing but the events.

        Raises:
            ConcurrentModification: the stored version differs from
                ``entity.version``.
        """
        if entity._state.adding:
            entity.save()
        elif update_fields is None or update_fields:
            self._compare_and_swap(entity, update_fields)

        events = entity.domain_events
        for event in events:
            OutboxEvent.objects.record(event, topic="orders")
        entity.clear_domain_events()

        logger.info(
            "order.saved",
            order_id=str(entity.id),
            version=entity.version,
            event_count=len(events),
        )
        return entity

    def _compare_and_swap(
        self, entity: Order, update_fields: Optional[Sequence[str]]
    ) -> None:
        if update_fields is None:
            update_fields = [
                field.name
                for field in Order._meta.concrete_fields
                if field.name not in _IMMUTABLE_FIELDS
            ]
        values = {
            Order._meta.get_field(name).attname: getattr(
                entity, Order._meta.get_field(name).attname
            )
            for name in update_fields
        }
        now = timezone.now()
        updated = Order.objects.filter(id=entity.id, version=entity.version).update(
            version=F("version") + 1,
            updated_at=now,
            **values,
        )
        if updated != 1:
            logger.warning(
                "order.version_conflict",
                order_id=str(entity.id),
                expected_version=entity.version,
            )
            raise ConcurrentModification(
                f"Order {entity.id} was modified concurrently; reload and retry."
            )
        entity.version += 1
        entity.updated_at = now

    # ------------------------------------------------------------------
    # Child records
    # ------------------------------------------------------------------

    def add_history(
        self,
        order_id: Any,
        new_status: str,
        old_status: Optional[str] = None,
        user_id: Optional[int] = None,
        notes: str = "",
    ) -> OrderStatusHistory:
        """Record a status change in the order's audit trail."""
        history = OrderStatusHistory.objects.create(
            order_id=order_id,
            old_status=old_status,
            new_status=new_status,
            user_id=user_id,
            notes=notes,
        )
        logger.info(
            "order.history_added",
            order_id=str(order_id),
            old_status=old_status,
            new_status=new_status,
        )
        return history

    def add_assignment(
        self,
        order_id: Any,
        delivery_boy_id: Any,
        assigned_by_id: Optional[int] = None,
        is_self_assigned: bool = False,
    ) -> DeliveryAssignment:
        return DeliveryAssignment.objects.create(
            order_id=order_id,
            delivery_boy_id=delivery_boy_id,
            assigned_by_id=assigned_by_id,
            is_self_assigned=is_self_assigned,
        )

    # ------------------------------------------------------------------
    # Aggregates
    # ------------------------------------------------------------------

    def status_counts(self, filters: Optional[Dict[str, Any]] = None) -> Dict[str, int]:
        queryset = Order.objects.all()
        if filters:
            queryset = queryset.filter(
                id__in=Order.objects.filter(**filters).values("id")
            )
        rows = queryset.values("status").annotate(count=Count("id")).order_by()
        return {row["status"]: row["count"] for row in rows}

    def count_unassigned(self) -> int:
        return Order.objects.filter(
            status=OrderStatus.NOTIFY_DELIVERY, assigned_to__isnull=True
        ).count()

    def revenue(self, filters: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        queryset = Order.objects.filter(status=OrderStatus.DELIVERED)
        if filters:
            queryset = queryset.filter(
                id__in=Order.objects.filter(**filters).values("id")
            )
        totals = queryset.aggregate(count=Count("id"), amount=Sum("total"))
        return {
            "delivered_orders": totals["count"],
            "amount": totals["amount"] or Decimal("0.00"),
        }

    def payout_totals(self) -> Dict[str, Any]:
        delivered = Q(status=OrderStatus.DELIVERED)
        unsettled = delivered & Q(paid_to_shop=False)
        settled = delivered & Q(paid_to_shop=True)
        awaiting_admin = delivered & Q(paid_to_admin=False)
        totals = Order.objects.aggregate(
            pending_shop_count=Count("id", filter=unsettled),
            pending_shop_amount=Sum("subtotal", filter=unsettled),
            settled_shop_count=Count("id", filter=settled),
            settled_shop_amount=Sum("paid_amount", filter=settled),
            pending_admin_count=Count("id", filter=awaiting_admin),
            pending_admin_amount=Sum("total", filter=awaiting_admin),
        )
        return {
            key: (value if value is not None else Decimal("0.00"))
            for key, value in totals.items()
        }
