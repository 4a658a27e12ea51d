"""Delivery roster repository interface."""

from __future__ import annotations

from abc import abstractmethod
from typing import TYPE_CHECKING, Any, Dict, List, Optional

from modules.core.repositories.interfaces import IRepository

if TYPE_CHECKING:
    from modules.delivery.models import DeliveryBoy


class IDeliveryBoyRepository(IRepository["DeliveryBoy"]):
    """Repository contract for delivery boys.

    ``claim`` and ``release`` are conditional single-row updates; they
    return ``False`` when the row was not in the expected state, which is
    how concurrent assignments of the same boy are detected.
    """

    @abstractmethod
    def list(self, filters: Optional[Dict[str, Any]] = None) -> List[DeliveryBoy]:
        """List active delivery boys with optional filters."""

    @abstractmethod
    def get_by_boy_id(self, boy_id: str) -> Optional[DeliveryBoy]:
        """Retrieve an active delivery boy by external id (e.g. ``DB001``)."""

    @abstractmethod
    def find_conflict(
        self,
        boy_id: Optional[str] = None,
        email: Optional[str] = None,
        aadhar: Optional[str] = None,
        exclude_id: Any = None,
    ) -> Optional[str]:
        """Return the name of the first unique field already taken, if any."""

    @abstractmethod
    def claim(self, id: Any) -> bool:
        """Flip an active, available boy to unavailable."""

    @abstractmethod
    def release(self, id: Any) -> bool:
        """Flip an active, unavailable boy back to available."""

    @abstractmethod
    def increment_deliveries(self, id: Any) -> None:
        """Add one completed delivery to the boy's counter."""

    @abstractmethod
    def has_active_order(self, id: Any) -> bool:
        """Whether the boy still holds an order that is out for delivery."""

    @abstractmethod
    def counts(self) -> Dict[str, int]:
        """Return ``total`` and ``available`` counts of active boys."""
