"""Django ORM implementation of the catalog repository.

Error handling follows the Null Object pattern: look-ups return ``None``
instead of raising; the Service Layer decides how to translate a
missing entity into a domain error.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Sequence

import structlog
from django.core.exceptions import ValidationError
from django.db import models, transaction
from django.db.models import Case, F, Value, When

from modules.catalog.models import Product, ProductVariant, Shop
from modules.catalog.repositories.interfaces import IProductRepository

logger = structlog.get_logger(__name__)


class ProductDjangoRepository(IProductRepository):
    """Concrete catalog repository backed by Django ORM."""

    def get_by_id(self, id: str) -> Optional[Product]:
        """Retrieve a product by primary key.

        Returns ``None`` for non-existent or invalid IDs.
        """
        try:
            return Product.objects.select_related("shop").filter(id=id).first()
        except (ValueError, ValidationError):
            return None

    def list(self, filters: Optional[Dict[str, Any]] = None) -> List[Product]:
        queryset = Product.objects.select_related("shop")
        if filters:
            queryset = queryset.filter(**filters)
        return list(queryset)

    def get_many(self, ids: Sequence[str]) -> Dict[str, Product]:
        try:
            products = Product.objects.select_related("shop").filter(id__in=ids)
            return {str(product.id): product for product in products}
        except (ValueError, ValidationError):
            return {}

    @transaction.atomic
    def save(self, entity: Product) -> Product:
        entity.save()
        logger.info("product.saved", product_id=str(entity.id))
        return entity

    def get_shop(self, id: str) -> Optional[Shop]:
        try:
            return Shop.objects.filter(id=id).first()
        except (ValueError, ValidationError):
            return None

    def decrement_variant_stock(
        self, product_id: str, size: str, color: str, quantity: int
    ) -> Optional[int]:
        """Single conditional ``UPDATE`` so concurrent orders never go below zero."""
        variants = ProductVariant.objects.filter(
            product_id=product_id, size=size, color=color
        )
        updated = variants.update(
            quantity=Case(
                When(quantity__gte=quantity, then=F("quantity") - quantity),
                default=Value(0),
                output_field=models.PositiveIntegerField(),
            )
        )
        if not updated:
            return None
        return variants.values_list("quantity", flat=True).first()
