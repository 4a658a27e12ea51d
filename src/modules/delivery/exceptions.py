"""Delivery roster domain exceptions.

Raised by the Service Layer; rendered by the core exception handler
according to the kind each one extends.
"""

from __future__ import annotations

from modules.core.exceptions import Conflict, NotFound


class DeliveryBoyNotFound(NotFound):
    """The delivery boy does not exist or has been deactivated."""


class DeliveryBoyAlreadyExists(Conflict):
    """Another delivery boy already uses this boy id, email or Aadhaar."""


class DeliveryBoyBusy(Conflict):
    """The delivery boy still holds an order that is out for delivery."""
