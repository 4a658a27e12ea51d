"""Order DTOs for the Service Layer.

Framework-agnostic data transfer objects using Pydantic v2.
These are the contracts between the API layer (DRF Serializers)
and the Service layer.  DTOs are immutable (``frozen=True``).

- ``ShippingDetailsDTO``: recipient and address for the drop-off.
- ``CreateOrderItemDTO``: input for a single order line item.
- ``CreateOrderDTO``: input for order creation (nested items).
- ``SettlementDTO``: optional overrides for the shop settlement.
"""

from __future__ import annotations

from decimal import Decimal
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from modules.orders.constants import PAYMENT_METHOD_ALIASES, PaymentMethod

# ---------------------------------------------------------------------------
# Input DTOs
# ---------------------------------------------------------------------------


class ShippingDetailsDTO(BaseModel):
    """Immutable DTO for the recipient of an order."""

    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    first_name: str = Field(min_length=1)
    last_name: str = Field(min_length=1)
    email: EmailStr
    phone: str = Field(min_length=10)
    address: str = Field(min_length=1)
    city: str = Field(min_length=1)
    state: str = Field(min_length=1)
    pincode: str = Field(min_length=1)
    country: str = "India"


class CreateOrderItemDTO(BaseModel):
    """Immutable DTO for a single order item in a creation request.

    ``unit_price`` is resolved by the Service Layer from the product
    catalog; a client-side price is never trusted.
    """

    model_config = ConfigDict(frozen=True)

    product_id: UUID
    quantity: int
    selected_size: Optional[str] = None
    selected_color: Optional[str] = None

    @field_validator("quantity")
    @classmethod
    def quantity_must_be_positive(cls, v: int) -> int:
        if v < 1:
            raise ValueError("Quantity must be at least 1.")
        return v

    @property
    def tracks_variant(self) -> bool:
        return bool(self.selected_size and self.selected_color)


class CreateOrderDTO(BaseModel):
    """Immutable DTO for order creation requests.

    Validates:
    - ``items`` must contain at least one item.
    - ``shipping_details`` must be present and complete.
    - ``payment_method`` accepts the ``online_upi`` alias of ``online``.

    ``subtotal`` and ``total`` are the client's figures; the service
    recomputes both from catalog prices.
    """

    model_config = ConfigDict(frozen=True)

    items: List[CreateOrderItemDTO]
    shipping_details: ShippingDetailsDTO
    payment_method: PaymentMethod = PaymentMethod.COD
    paid: bool = False
    order_notes: str = ""
    delivery_fee: Decimal = Field(default=Decimal("0.00"), ge=0)
    subtotal: Optional[Decimal] = Field(default=None, ge=0)
    total: Optional[Decimal] = Field(default=None, ge=0)

    @field_validator("items")
    @classmethod
    def items_must_not_be_empty(
        cls, v: List[CreateOrderItemDTO]
    ) -> List[CreateOrderItemDTO]:
        if not v:
            raise ValueError("Order must have at least one item.")
        return v

    @field_validator("payment_method", mode="before")
    @classmethod
    def normalise_payment_method(cls, v: object) -> object:
        if isinstance(v, str):
            v = v.strip().lower()
            return PAYMENT_METHOD_ALIASES.get(v, v)
        return v

    @property
    def is_prepaid(self) -> bool:
        return self.payment_method == PaymentMethod.ONLINE and self.paid


class SettlementDTO(BaseModel):
    """Immutable DTO for a shop settlement request (all fields optional)."""

    model_config = ConfigDict(frozen=True)

    amount: Optional[Decimal] = Field(default=None, ge=0)
    method: Optional[PaymentMethod] = None
