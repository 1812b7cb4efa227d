# billing/gateway.py
"""
billing.gateway

Razorpay order creation + payment signature verification (Django authoritative).

Purpose
- Creates Razorpay orders over the REST API (POST {api_base}/orders, basic auth).
- Verifies the checkout callback signature: HMAC-SHA256(secret, "<order_id>|<payment_id>").
- Maps Razorpay error codes onto a short, fixed set of user-facing messages.

LOCKED RULES
- The key secret never leaves the server and is never logged (length only).
- A signature mismatch is a plain False, never an exception.
- Amounts arrive in major units and are sent in minor units (×100, ROUND_HALF_UP).

========= CHANGE LOG =========
2026-09-05
- ADD: requests-based Razorpay client (orders only; no SDK).                  # CHANGED:
- ADD: receipt ids receipt_<epoch-ms>_<hex> so same-millisecond orders differ. # CHANGED:
- HARDEN: Decimal minor-unit conversion (10.005 → 1001).                      # CHANGED:
2026-10-19
- HARDEN: non-finite amounts and non-string currencies are a 400, not a 500.  # CHANGED:
"""

from __future__ import annotations

import hashlib
import hmac
import logging
import secrets
import time
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any, Dict, Optional

import requests
from django.conf import settings
from django.utils.crypto import constant_time_compare

from billing.exceptions import GatewayError, ValidationError

logger = logging.getLogger(__name__)

DEFAULT_CURRENCY = "INR"

GATEWAY_ERROR_MESSAGES: Dict[str, str] = {
    "BAD_REQUEST_ERROR": "Invalid payment request",
    "GATEWAY_ERROR": "Payment gateway error",
    "SERVER_ERROR": "Payment server error",
    "UNAUTHORIZED": "Invalid payment credentials",
}
GENERIC_GATEWAY_MESSAGE = "Failed to create payment"


@dataclass(frozen=True)
class GatewayConfig:
    key_id: str
    key_secret: str
    public_key_id: str
    api_base: str
    timeout: int


@dataclass(frozen=True)
class CreatedOrder:
    order_id: str
    amount: int
    currency: str
    receipt: str
    raw: Dict[str, Any] = field(default_factory=dict)

    def as_dict(self) -> Dict[str, Any]:
        return {"orderId": self.order_id, "amount": self.amount, "currency": self.currency}


def _get_gateway_config() -> GatewayConfig:
    key_id = getattr(settings, "RAZORPAY_KEY_ID", "") or ""
    key_secret = getattr(settings, "RAZORPAY_KEY_SECRET", "") or ""
    if not key_id or not key_secret:
        raise ValueError("RAZORPAY_KEY_ID and RAZORPAY_KEY_SECRET must be configured")

    return GatewayConfig(
        key_id=key_id,
        key_secret=key_secret,
        public_key_id=getattr(settings, "RAZORPAY_PUBLIC_KEY_ID", "") or key_id,
        api_base=(getattr(settings, "RAZORPAY_API_BASE", "") or "https://api.razorpay.com/v1").rstrip("/"),
        timeout=int(getattr(settings, "RAZORPAY_TIMEOUT", 20)),
    )


def to_minor_units(amount: Any) -> int:
    """
    Major → minor units, half-up at the cent boundary.

    str() first so a float like 10.005 is read as written, not as its
    binary approximation.
    """
    try:
        value = Decimal(str(amount))
    except (InvalidOperation, ValueError):
        raise ValidationError("Invalid amount")
    return int((value * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def make_receipt() -> str:
    return f"receipt_{int(time.time() * 1000)}_{secrets.token_hex(2)}"


def _validate_amount(amount: Any) -> None:
    if isinstance(amount, bool) or not isinstance(amount, (int, float, Decimal)):
        raise ValidationError("Invalid amount")
    # json.loads turns Infinity / NaN / 1e400 into non-finite floats
    if not Decimal(str(amount)).is_finite() or not amount > 0:
        raise ValidationError("Invalid amount")


def _validate_currency(currency: Any) -> str:
    if currency is None:
        return DEFAULT_CURRENCY
    if not isinstance(currency, str) or not currency.strip():
        raise ValidationError("Invalid currency")
    return currency.strip().upper()


def _map_gateway_failure(response: requests.Response) -> GatewayError:
    code = ""
    description = ""
    try:
        body = response.json()
        err = body.get("error") if isinstance(body, dict) else None
        if isinstance(err, dict):
            code = str(err.get("code") or "")
            description = str(err.get("description") or "")
    except ValueError:
        description = (response.text or "")[:500]

    if response.status_code == 401 and not code:
        code = "UNAUTHORIZED"

    message = GATEWAY_ERROR_MESSAGES.get(code, GENERIC_GATEWAY_MESSAGE)
    return GatewayError(
        message,
        details=description or f"HTTP {response.status_code}",
        status=response.status_code or 500,
        code=code,
    )


class RazorpayGateway:
    """Thin adapter over the two Razorpay operations the checkout needs."""

    def __init__(self, config: GatewayConfig):
        self.config = config

    @property
    def public_key_id(self) -> str:
        return self.config.public_key_id

    def create_order(
        self,
        amount: Any,
        currency: Optional[str] = None,
        notes: Optional[Dict[str, Any]] = None,
    ) -> CreatedOrder:
        """
        Create an order for `amount` (major units).

        `notes` must carry planType and billingCycle; they are stored on the
        Razorpay order for reconciliation.
        """
        _validate_amount(amount)
        currency = _validate_currency(currency)
        notes = dict(notes or {})
        if not notes.get("planType") or not notes.get("billingCycle"):
            raise ValidationError("Missing plan details")

        amount_minor = to_minor_units(amount)
        receipt = make_receipt()
        payload = {
            "amount": amount_minor,
            "currency": currency,
            "receipt": receipt,
            "notes": {k: str(v) for k, v in notes.items()},
        }

        url = f"{self.config.api_base}/orders"
        logger.info(
            "[gateway] create_order amount_minor=%s currency=%s plan=%s cycle=%s key_len=%s",
            amount_minor, currency, notes.get("planType"), notes.get("billingCycle"), len(self.config.key_id),
        )
        try:
            response = requests.post(
                url,
                auth=(self.config.key_id, self.config.key_secret),
                json=payload,
                timeout=self.config.timeout,
            )
        except requests.RequestException as exc:
            logger.exception("[gateway] Razorpay unreachable")
            raise GatewayError(GENERIC_GATEWAY_MESSAGE, details=str(exc), status=500)

        if response.status_code >= 400:
            err = _map_gateway_failure(response)
            logger.error(
                "[gateway] Razorpay error status=%s code=%s details=%s",
                err.status, err.code, err.details[:500],
            )
            raise err

        try:
            data = response.json()
        except ValueError:
            raise GatewayError(GENERIC_GATEWAY_MESSAGE, details="Invalid response received from Razorpay.", status=500)
        if not isinstance(data, dict) or not data.get("id"):
            raise GatewayError(GENERIC_GATEWAY_MESSAGE, details="Unexpected response format from Razorpay.", status=500)

        order = CreatedOrder(
            order_id=str(data["id"]),
            amount=int(data.get("amount", amount_minor)),
            currency=str(data.get("currency", currency)),
            receipt=str(data.get("receipt") or receipt),
            raw=data,
        )
        logger.info("[gateway] order created id=%s amount=%s %s", order.order_id, order.amount, order.currency)
        return order

    def compute_signature(self, order_id: str, payment_id: str) -> str:
        message = f"{order_id}|{payment_id}".encode("utf-8")
        return hmac.new(self.config.key_secret.encode("utf-8"), message, hashlib.sha256).hexdigest()

    def verify_payment(self, order_id: Any, payment_id: Any, signature: Any) -> bool:
        """
        True iff `signature` is the hex HMAC-SHA256 of "order_id|payment_id".

        Missing or non-string fields raise ValidationError; a wrong
        signature is just False.
        """
        for value in (order_id, payment_id, signature):
            if not isinstance(value, str) or not value.strip():
                raise ValidationError("Missing payment verification fields")

        expected = self.compute_signature(order_id, payment_id)
        verified = constant_time_compare(expected, signature)
        if not verified:
            logger.warning("[gateway] signature mismatch order=%s payment=%s", order_id, payment_id)
        return verified


def get_gateway() -> RazorpayGateway:
    return RazorpayGateway(_get_gateway_config())
