"""Delivery roster DTOs for the Service Layer.

Framework-agnostic data transfer objects using Pydantic v2.  DTOs are
immutable (``frozen=True``).

- ``CreateDeliveryBoyDTO``: input for adding a boy to the roster.
- ``UpdateDeliveryBoyDTO``: partial update; only supplied fields change.
"""

from __future__ import annotations

import re
from decimal import Decimal
from typing import Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, EmailStr, Field, field_validator

AADHAR_LENGTH = 12


def _digits(value: str) -> str:
    return re.sub(r"\D", "", value)


class LocationDTO(BaseModel):
    """Last known position of a delivery boy."""

    model_config = ConfigDict(frozen=True)

    lat: Optional[float] = Field(default=None, ge=-90, le=90)
    lng: Optional[float] = Field(default=None, ge=-180, le=180)
    address: str = ""


class CreateDeliveryBoyDTO(BaseModel):
    """Immutable DTO for roster additions.

    Validates:
    - ``aadhar`` has exactly 12 digits once spaces/dashes are stripped.
    - ``phone`` has at least 10 digits.
    - ``rating`` lies within 0-5.
    """

    model_config = ConfigDict(frozen=True)

    boy_id: str = Field(
        min_length=1,
        max_length=20,
        validation_alias=AliasChoices("boy_id", "boyId"),
    )
    name: str = Field(min_length=1, max_length=255)
    phone: str
    email: EmailStr
    aadhar: str
    location: Optional[LocationDTO] = None
    rating: Decimal = Field(default=Decimal("0.0"), ge=0, le=5)
    user_id: Optional[int] = Field(
        default=None, validation_alias=AliasChoices("user_id", "userId")
    )

    @field_validator("boy_id", "name", mode="before")
    @classmethod
    def strip(cls, v: str) -> str:
        return v.strip() if isinstance(v, str) else v

    @field_validator("aadhar", mode="before")
    @classmethod
    def sanitize_aadhar(cls, v: str) -> str:
        if not isinstance(v, str):
            return v
        digits = _digits(v)
        if len(digits) != AADHAR_LENGTH:
            raise ValueError("Aadhaar number must have 12 digits.")
        return digits

    @field_validator("phone", mode="before")
    @classmethod
    def validate_phone(cls, v: str) -> str:
        if not isinstance(v, str):
            return v
        if len(_digits(v)) < 10:
            raise ValueError("Phone number must have at least 10 digits.")
        return v.strip()


class UpdateDeliveryBoyDTO(BaseModel):
    """Immutable DTO for roster updates.

    Availability is deliberately absent: it only changes through
    assignment, take and the explicit release action.
    """

    model_config = ConfigDict(frozen=True)

    name: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[EmailStr] = None
    location: Optional[LocationDTO] = None
    rating: Optional[Decimal] = Field(default=None, ge=0, le=5)
