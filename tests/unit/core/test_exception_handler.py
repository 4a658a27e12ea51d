"""Unit tests for the standardized DRF exception handler."""

from __future__ import annotations

import pytest
from django.http import Http404
from pydantic import BaseModel, ValidationError
from rest_framework import exceptions

from modules.core.exceptions import standardized_exception_handler
from modules.delivery.exceptions import DeliveryBoyNotFound
from modules.orders.exceptions import (
    AlreadyAssigned,
    DeliveryCodeExpired,
    InvalidDeliveryCode,
    NotOrderOwner,
)

pytestmark = pytest.mark.unit


def _handle(exc):
    return standardized_exception_handler(exc, {"view": None, "request": None})


@pytest.mark.parametrize(
    "exc,status_code,code",
    [
        (DeliveryBoyNotFound("Delivery boy DB9 not found."), 404, "not_found"),
        (AlreadyAssigned("Order is already assigned."), 400, "conflict"),
        (NotOrderOwner("Not yours."), 403, "unauthorized"),
        (InvalidDeliveryCode("Invalid delivery OTP."), 400, "invalid"),
        (DeliveryCodeExpired("Delivery OTP has expired."), 400, "expired"),
    ],
)
def test_domain_errors(exc, status_code, code):
    response = _handle(exc)

    assert response.status_code == status_code
    assert response.data == {
        "type": "client_error",
        "errors": [{"code": code, "detail": str(exc), "attr": None}],
    }


def test_pydantic_errors_carry_the_field_path():
    class LineItem(BaseModel):
        quantity: int

    with pytest.raises(ValidationError) as excinfo:
        LineItem.model_validate({"quantity": "many"})

    response = _handle(excinfo.value)

    assert response.status_code == 400
    assert response.data["type"] == "validation_error"
    assert response.data["errors"][0]["attr"] == "quantity"


def test_nested_serializer_errors_are_flattened():
    exc = exceptions.ValidationError(
        {"items": [{"quantity": ["Ensure this value is greater than or equal to 1."]}]}
    )

    response = _handle(exc)

    assert response.status_code == 400
    assert response.data["type"] == "validation_error"
    assert response.data["errors"] == [
        {
            "code": "invalid",
            "detail": "Ensure this value is greater than or equal to 1.",
            "attr": "items.0.quantity",
        }
    ]


def test_django_404_is_translated():
    response = _handle(Http404("gone"))
    assert response.status_code == 404
    assert response.data["type"] == "client_error"


def test_authentication_errors():
    response = _handle(exceptions.NotAuthenticated())
    assert response.status_code == 401
    assert response.data["errors"][0]["code"] == "not_authenticated"


def test_unexpected_errors_are_left_to_django():
    assert _handle(RuntimeError("boom")) is None
