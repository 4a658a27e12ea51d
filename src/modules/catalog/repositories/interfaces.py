"""Catalog repository interface.

The order service depends on this contract for product look-ups,
shop-ownership resolution and the per-variant stock decrement.
"""

from __future__ import annotations

from abc import abstractmethod
from typing import TYPE_CHECKING, Any, Dict, List, Optional, Sequence

from modules.core.repositories.interfaces import IRepository

if TYPE_CHECKING:
    from modules.catalog.models import Product, Shop


class IProductRepository(IRepository["Product"]):
    """Repository contract for products and their variants."""

    @abstractmethod
    def list(self, filters: Optional[Dict[str, Any]] = None) -> List[Product]:
        """List products with optional filters."""

    @abstractmethod
    def get_many(self, ids: Sequence[str]) -> Dict[str, Product]:
        """Return the existing products among *ids*, keyed by ``str(id)``."""

    @abstractmethod
    def get_shop(self, id: str) -> Optional[Shop]:
        """Retrieve a shop by primary key."""

    @abstractmethod
    def decrement_variant_stock(
        self, product_id: str, size: str, color: str, quantity: int
    ) -> Optional[int]:
        """Decrement the (size, color) variant of a product, floored at zero.

        Returns the remaining quantity, or ``None`` when the product does
        not track that variant.
        """
