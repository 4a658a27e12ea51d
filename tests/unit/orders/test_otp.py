from __future__ import annotations

from datetime import datetime, timedelta
from datetime import timezone as dt_timezone

import pytest

from modules.orders.otp import (
    codes_match,
    generate_delivery_otp,
    generate_qr_token,
    otp_expiry,
)

pytestmark = pytest.mark.unit


def test_otp_is_six_digits():
    for _ in range(50):
        otp = generate_delivery_otp()
        assert len(otp) == 6
        assert otp.isdigit()


def test_qr_tokens_are_unique_and_url_safe():
    tokens = {generate_qr_token() for _ in range(20)}
    assert len(tokens) == 20
    for token in tokens:
        assert "/" not in token and "+" not in token


def test_expiry_uses_configured_ttl(settings):
    settings.DELIVERY_OTP_TTL_HOURS = 2
    issued = datetime(2026, 1, 1, 9, 0, tzinfo=dt_timezone.utc)
    assert otp_expiry(issued) == issued + timedelta(hours=2)


class TestCodesMatch:
    def test_exact_match(self):
        assert codes_match("042817", "042817")

    def test_surrounding_whitespace_is_ignored(self):
        assert codes_match(" 042817 ", "042817")

    def test_mismatch(self):
        assert not codes_match("042818", "042817")

    @pytest.mark.parametrize("submitted,stored", [("", "1"), (None, "1"), ("1", "")])
    def test_empty_values_never_match(self, submitted, stored):
        assert not codes_match(submitted, stored)

    def test_non_ascii_input_does_not_raise(self):
        assert not codes_match("०४२८१७", "042817")
