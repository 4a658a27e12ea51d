"""Domain error taxonomy and the DRF exception handler that renders it.

Services raise subclasses of the five error kinds below; they never build
HTTP responses.  ``standardized_exception_handler`` (wired through
``REST_FRAMEWORK["EXCEPTION_HANDLER"]``) translates them, together with
DRF's and Pydantic's own errors, into one response shape::

    {"type": "client_error", "errors": [{"code": ..., "detail": ..., "attr": ...}]}

Kind → HTTP status:

- ``NotFound``           → 404
- ``Conflict``           → 400
- ``Unauthorized``       → 403
- ``ValidationFailed``   → 400
- ``Expired``            → 400
"""

from __future__ import annotations

from typing import Any, Dict, Iterator, List, Optional

import structlog
from django.core.exceptions import PermissionDenied as DjangoPermissionDenied
from django.http import Http404
from pydantic import ValidationError as PydanticValidationError
from rest_framework import exceptions, status
from rest_framework.response import Response
from rest_framework.views import exception_handler

logger = structlog.get_logger(__name__)


# ---------------------------------------------------------------------------
# Domain error kinds
# ---------------------------------------------------------------------------


class DomainError(Exception):
    """Base class for business-rule failures raised by the service layer."""

    code = "domain_error"
    status_code = status.HTTP_400_BAD_REQUEST


class NotFound(DomainError):
    """A referenced order, delivery boy, shop or product does not exist."""

    code = "not_found"
    status_code = status.HTTP_404_NOT_FOUND


class Conflict(DomainError):
    """The resource is in a state that forbids the requested change."""

    code = "conflict"


class Unauthorized(DomainError):
    """The caller does not own or control the resource."""

    code = "unauthorized"
    status_code = status.HTTP_403_FORBIDDEN


class ValidationFailed(DomainError):
    """Required input is missing or does not match the stored value."""

    code = "invalid"


class Expired(DomainError):
    """A time-boxed secret is past its validity window."""

    code = "expired"


# ---------------------------------------------------------------------------
# DRF exception handler
# ---------------------------------------------------------------------------


def standardized_exception_handler(
    exc: Exception, context: Dict[str, Any]
) -> Optional[Response]:
    """Render every handled error with the standard ``type``/``errors`` body.

    Returns ``None`` for unexpected exceptions so Django produces a 500.
    """
    if isinstance(exc, DomainError):
        logger.info(
            "request.domain_error",
            error_code=exc.code,
            error=type(exc).__name__,
            detail=str(exc),
        )
        return Response(
            _body("client_error", [_error(exc.code, str(exc))]),
            status=exc.status_code,
        )

    if isinstance(exc, PydanticValidationError):
        errors = [
            _error(
                err["type"],
                err["msg"],
                ".".join(str(part) for part in err["loc"]) or None,
            )
            for err in exc.errors()
        ]
        return Response(
            _body("validation_error", errors),
            status=status.HTTP_400_BAD_REQUEST,
        )

    if isinstance(exc, Http404):
        exc = exceptions.NotFound(*exc.args)
    elif isinstance(exc, DjangoPermissionDenied):
        exc = exceptions.PermissionDenied(*exc.args)

    response = exception_handler(exc, context)
    if response is None:
        return None

    if isinstance(exc, exceptions.APIException):
        errors = list(_flatten(exc.get_full_details()))
    else:
        errors = [_error("error", str(exc))]

    if isinstance(exc, exceptions.ValidationError):
        error_type = "validation_error"
    elif response.status_code >= 500:
        error_type = "server_error"
    else:
        error_type = "client_error"

    response.data = _body(error_type, errors)
    return response


def _body(error_type: str, errors: List[Dict[str, Any]]) -> Dict[str, Any]:
    return {"type": error_type, "errors": errors}


def _error(code: str, detail: str, attr: Optional[str] = None) -> Dict[str, Any]:
    return {"code": code, "detail": detail, "attr": attr}


def _is_leaf(details: Any) -> bool:
    return isinstance(details, dict) and set(details) == {"message", "code"}


def _flatten(details: Any, attr: Optional[str] = None) -> Iterator[Dict[str, Any]]:
    if _is_leaf(details):
        yield _error(str(details["code"]), str(details["message"]), attr)
    elif isinstance(details, dict):
        for key, value in details.items():
            if key == "non_field_errors":
                child = attr
            else:
                child = key if attr is None else f"{attr}.{key}"
            yield from _flatten(value, child)
    elif isinstance(details, list):
        for index, item in enumerate(details):
            if isinstance(item, dict) and not _is_leaf(item):
                yield from _flatten(item, f"{attr}.{index}" if attr else str(index))
            else:
                yield from _flatten(item, attr)
