"""Event handlers for Orders domain events."""

from __future__ import annotations

import structlog

from modules.orders.events import (
    OrderAssigned,
    OrderCancelled,
    OrderCreated,
    OrderDelivered,
    OrderSettled,
    OrderStatusChanged,
)
from shared.domain.bus import IEventHandler

logger = structlog.get_logger(__name__)


class OrderCreatedHandler(IEventHandler[OrderCreated]):
    def handle(self, event: OrderCreated) -> None:
        logger.info(
            "order.event.created",
            order_id=str(event.aggregate_id),
            status=event.status,
            total=event.total,
        )


class OrderStatusChangedHandler(IEventHandler[OrderStatusChanged]):
    def handle(self, event: OrderStatusChanged) -> None:
        logger.info(
            "order.event.status_changed",
            order_id=str(event.aggregate_id),
            old_status=event.old_status,
            new_status=event.new_status,
        )


class OrderCancelledHandler(IEventHandler[OrderCancelled]):
    def handle(self, event: OrderCancelled) -> None:
        logger.info(
            "order.event.cancelled",
            order_id=str(event.aggregate_id),
            old_status=event.old_status,
            cancelled_by=event.cancelled_by,
        )


class OrderAssignedHandler(IEventHandler[OrderAssigned]):
    def handle(self, event: OrderAssigned) -> None:
        logger.info(
            "order.event.assigned",
            order_id=str(event.aggregate_id),
            delivery_boy_id=event.delivery_boy_id,
            self_assigned=event.self_assigned,
        )


class OrderDeliveredHandler(IEventHandler[OrderDelivered]):
    def handle(self, event: OrderDelivered) -> None:
        logger.info(
            "order.event.delivered",
            order_id=str(event.aggregate_id),
            delivery_boy_id=event.delivery_boy_id,
            confirmed_via=event.confirmed_via,
        )


class OrderSettledHandler(IEventHandler[OrderSettled]):
    def handle(self, event: OrderSettled) -> None:
        logger.info(
            "order.event.settled",
            order_id=str(event.aggregate_id),
            party=event.party,
            amount=event.amount,
        )


order_created_handler = OrderCreatedHandler()
order_status_changed_handler = OrderStatusChangedHandler()
order_cancelled_handler = OrderCancelledHandler()
order_assigned_handler = OrderAssignedHandler()
order_delivered_handler = OrderDeliveredHandler()
order_settled_handler = OrderSettledHandler()
