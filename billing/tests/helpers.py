# billing/tests/helpers.py
"""Small fakes shared by the billing tests (no network)."""

from __future__ import annotations

import hashlib
import hmac
import json
from decimal import Decimal
from typing import Any, Optional

from billing.exchange import ExchangeRateCache

TEST_KEY_ID = "rzp_test_unit"
TEST_KEY_SECRET = "unit-test-secret"
TEST_PUBLIC_KEY_ID = "rzp_public_unit"

GATEWAY_SETTINGS = dict(
    RAZORPAY_KEY_ID=TEST_KEY_ID,
    RAZORPAY_KEY_SECRET=TEST_KEY_SECRET,
    RAZORPAY_PUBLIC_KEY_ID=TEST_PUBLIC_KEY_ID,
    RAZORPAY_API_BASE="https://api.razorpay.test/v1",
    RAZORPAY_TIMEOUT=5,
)


class FakeResponse:
    """Minimal stand-in for requests.Response."""

    def __init__(self, status_code: int = 200, payload: Optional[Any] = None, text: Optional[str] = None):
        self.status_code = status_code
        self._payload = payload
        self.text = text if text is not None else (json.dumps(payload) if payload is not None else "")

    def json(self):
        if self._payload is None:
            raise ValueError("No JSON object could be decoded")
        return self._payload


def order_payload(order_id: str = "order_TEST1", amount: int = 100, currency: str = "INR") -> dict:
    return {
        "id": order_id,
        "entity": "order",
        "amount": amount,
        "currency": currency,
        "receipt": "receipt_1700000000000_ab12",
        "status": "created",
    }


def sign(order_id: str, payment_id: str, secret: str = TEST_KEY_SECRET) -> str:
    return hmac.new(secret.encode(), f"{order_id}|{payment_id}".encode(), hashlib.sha256).hexdigest()


def fixed_rate_cache(rate: str = "83.00") -> ExchangeRateCache:
    return ExchangeRateCache(fetcher=lambda: Decimal(rate))
