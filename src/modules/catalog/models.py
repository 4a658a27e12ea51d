"""Shop, Product and ProductVariant models.

Only what the order workflow needs lives here: shop ownership (used to
authorise shop-side order transitions) and per-variant inventory (used
by the order-creation stock decrement).

Business rules implemented:
- A variant is unique per (product, size, color).
- Variant quantity is never negative (PositiveIntegerField + check).
"""

from __future__ import annotations

from decimal import Decimal

from django.conf import settings
from django.core.validators import MinValueValidator
from django.db import models

from modules.core.models import BaseModel


class Shop(BaseModel):
    """A seller on the marketplace, owned by a single user account."""

    owner = models.OneToOneField(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="shop",
    )
    name = models.CharField(max_length=255)
    address = models.TextField(blank=True, default="")
    approved = models.BooleanField(default=False)
    upi_vpa = models.CharField(max_length=100, blank=True, default="")
    upi_name = models.CharField(max_length=100, blank=True, default="")

    class Meta:
        db_table = "shops"
        ordering = ["name"]

    def __str__(self) -> str:
        return self.name


class Product(BaseModel):
    """A sellable item listed by a shop."""

    shop = models.ForeignKey(
        "catalog.Shop",
        on_delete=models.PROTECT,
        related_name="products",
    )
    title = models.CharField(max_length=255)
    price = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        validators=[MinValueValidator(Decimal("0.00"))],
    )
    category = models.CharField(max_length=100, blank=True, default="")
    color = models.CharField(max_length=50, blank=True, default="")
    sizes = models.JSONField(default=list, blank=True)

    class Meta:
        db_table = "products"
        ordering = ["title"]
        indexes = [
            models.Index(fields=["shop"], name="products_shop_idx"),
        ]

    @property
    def tracks_variants(self) -> bool:
        """``True`` when stock is kept per (size, color)."""
        return self.variants.exists()

    def __str__(self) -> str:
        return self.title


class ProductVariant(BaseModel):
    """Stock-keeping unit for one (size, color) combination of a product."""

    product = models.ForeignKey(
        "catalog.Product",
        on_delete=models.CASCADE,
        related_name="variants",
    )
    size = models.CharField(max_length=20)
    color = models.CharField(max_length=50)
    quantity = models.PositiveIntegerField(default=0)

    class Meta:
        db_table = "product_variants"
        ordering = ["size", "color"]
        constraints = [
            models.UniqueConstraint(
                fields=["product", "size", "color"],
                name="product_variants_unique_sku",
            ),
            models.CheckConstraint(
                condition=models.Q(quantity__gte=0),
                name="product_variants_quantity_non_negative",
            ),
        ]

    def __str__(self) -> str:
        return f"{self.product} [{self.size}/{self.color}] x{self.quantity}"
