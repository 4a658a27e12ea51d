"""Domain events for the Orders bounded context.

Every field carries a default so the dataclasses can extend
``DomainEvent``; the service always supplies them.
"""

from __future__ import annotations

from dataclasses import dataclass

from shared.domain.events import DomainEvent


@dataclass(frozen=True)
class OrderCreated(DomainEvent):
    """Raised when an order is created."""

    customer_id: str = ""
    status: str = ""
    total: str = "0.00"


@dataclass(frozen=True)
class OrderStatusChanged(DomainEvent):
    """Raised when an order status changes through a shop action."""

    old_status: str = ""
    new_status: str = ""


@dataclass(frozen=True)
class OrderCancelled(DomainEvent):
    """Raised when an order is cancelled by its customer or an operator."""

    old_status: str = ""
    cancelled_by: str = ""


@dataclass(frozen=True)
class OrderAssigned(DomainEvent):
    """Raised when an order is handed to a delivery boy."""

    delivery_boy_id: str = ""
    self_assigned: bool = False


@dataclass(frozen=True)
class OrderDelivered(DomainEvent):
    """Raised when a drop-off is confirmed."""

    delivery_boy_id: str = ""
    confirmed_via: str = ""


@dataclass(frozen=True)
class OrderSettled(DomainEvent):
    """Raised when an admin settlement flag is set."""

    party: str = ""
    amount: str = "0.00"
