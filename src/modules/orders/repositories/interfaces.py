"""Order repository interface.

Extends ``IRepository[Order]`` with methods required by the Order
aggregate: atomic creation with items, compare-and-swap saves, status
history, assignment history and the aggregate counters behind the
dashboards.

The Service Layer depends exclusively on this contract (DIP).
"""

from __future__ import annotations

from abc import abstractmethod
from typing import TYPE_CHECKING, Any, Dict, List, Optional, Sequence

from modules.core.repositories.interfaces import IRepository

if TYPE_CHECKING:
    from django.db.models import QuerySet

    from modules.orders.models import DeliveryAssignment, Order, OrderStatusHistory


class IOrderRepository(IRepository["Order"]):
    """Repository contract for the Order aggregate root.

    The Order aggregate includes OrderItem children, OrderStatusHistory
    and DeliveryAssignment records.  Mutations must be atomic.
    """

    @abstractmethod
    def create(self, data: Dict[str, Any]) -> Order:
        """Create an order with its items atomically.

        ``data`` holds the Order field values plus ``items``: a list of
        dicts with ``product_id``, ``quantity``, ``unit_price``,
        ``selected_size`` and ``selected_color``.
        """

    @abstractmethod
    def save(self, entity: Order, update_fields: Optional[Sequence[str]] = None) -> Order:
        """Persist *entity* and flush its domain events to the outbox.

        Existing orders are written with a compare-and-swap on ``version``;
        a stale version raises ``ConcurrentModification``.
        """

    @abstractmethod
    def query(self, filters: Optional[Dict[str, Any]] = None) -> QuerySet:
        """Return a lazy queryset of orders with eager-loaded relations."""

    @abstractmethod
    def add_history(
        self,
        order_id: Any,
        new_status: str,
        old_status: Optional[str] = None,
        user_id: Optional[int] = None,
        notes: str = "",
    ) -> OrderStatusHistory:
        """Record a status change in the order's audit trail."""

    @abstractmethod
    def add_assignment(
        self,
        order_id: Any,
        delivery_boy_id: Any,
        assigned_by_id: Optional[int] = None,
        is_self_assigned: bool = False,
    ) -> DeliveryAssignment:
        """Append to the order's assignment history."""

    @abstractmethod
    def is_sold_by(self, order_id: Any, shop_id: Any) -> bool:
        """Whether the order contains at least one product of *shop_id*."""

    @abstractmethod
    def status_counts(self, filters: Optional[Dict[str, Any]] = None) -> Dict[str, int]:
        """Number of orders per status, statuses with no orders omitted."""

    @abstractmethod
    def count_unassigned(self) -> int:
        """Orders waiting in ``notify_delivery`` without a delivery boy."""

    @abstractmethod
    def revenue(self, filters: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """Sum of ``total`` over delivered orders matching *filters*."""

    @abstractmethod
    def payout_totals(self) -> Dict[str, Any]:
        """Settlement counters over delivered orders."""

    def list(self, filters: Optional[Dict[str, Any]] = None) -> List[Order]:
        return list(self.query(filters))
