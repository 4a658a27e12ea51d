"""Order domain exceptions.

Raised by the Service Layer when business rules are violated.  Each one
extends a core error kind; the project exception handler maps the kind
to the HTTP status.
"""

from __future__ import annotations

from modules.core.exceptions import (
    Conflict,
    Expired,
    NotFound,
    Unauthorized,
    ValidationFailed,
)


class OrderNotFound(NotFound):
    """The requested order does not exist or is not visible to the caller."""


class ProductNotFound(NotFound):
    """A product referenced by an order item does not exist."""


class InvalidOrderStatus(Conflict):
    """The order's current status does not allow the requested change."""


class AlreadyAssigned(Conflict):
    """The order is already held by a delivery boy."""


class AgentUnavailable(Conflict):
    """The delivery boy is inactive or already holds an active order."""


class AlreadySettled(Conflict):
    """The settlement flag being set is already true."""


class ConcurrentModification(Conflict):
    """The order changed between read and write (version mismatch)."""


class NotOrderOwner(Unauthorized):
    """The caller does not own, sell or carry this order."""


class MissingDeliveryCode(ValidationFailed):
    """No OTP or QR token was submitted."""


class InvalidDeliveryCode(ValidationFailed):
    """The submitted OTP or QR token does not match the stored one."""


class DeliveryCodeExpired(Expired):
    """The OTP / QR token is past ``otp_expires_at``."""
