"""Delivery confirmation secrets.

Both the numeric OTP read out by the customer and the QR token scanned
at the door are drawn from ``secrets`` and compared in constant time.
"""

from __future__ import annotations

import hmac
import secrets
from datetime import datetime, timedelta
from typing import Optional

from django.conf import settings

from modules.orders.constants import DELIVERY_OTP_LENGTH, QR_TOKEN_BYTES


def generate_delivery_otp() -> str:
    """Return a zero-padded numeric OTP, e.g. ``"042817"``."""
    return f"{secrets.randbelow(10**DELIVERY_OTP_LENGTH):0{DELIVERY_OTP_LENGTH}d}"


def generate_qr_token() -> str:
    return secrets.token_urlsafe(QR_TOKEN_BYTES)


def otp_expiry(issued_at: datetime) -> datetime:
    return issued_at + timedelta(hours=settings.DELIVERY_OTP_TTL_HOURS)


def codes_match(submitted: Optional[str], stored: Optional[str]) -> bool:
    if not submitted or not stored:
        return False
    return hmac.compare_digest(str(submitted).strip().encode(), stored.encode())
