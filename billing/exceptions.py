# billing/exceptions.py
"""
Billing error taxonomy.

Policy rejections (downgrade attempts, a second free trial) are NOT
exceptions; they come back as LedgerResult(success=False, ...). Signature
mismatches are a plain False. Everything here is a request that cannot be
served at all.
"""

from __future__ import annotations

from typing import Optional


class BillingError(Exception):
    """Base class for billing failures that map to an HTTP status."""

    status: int = 400

    def __init__(self, message: str, status: Optional[int] = None):
        super().__init__(message)
        self.message = message
        if status is not None:
            self.status = status


class ValidationError(BillingError):
    """Malformed body, missing plan fields, non-positive amount."""

    status = 400


class GatewayError(BillingError):
    """
    Upstream gateway failure.

    `message` is the short user-facing string; `details` keeps the raw
    upstream description for diagnostics.
    """

    status = 500

    def __init__(self, message: str, details: str = "", status: Optional[int] = None, code: str = ""):
        super().__init__(message, status=status)
        self.details = details
        self.code = code


class CheckoutError(BillingError):
    pass


class ImmutableRecordError(BillingError):
    """Raised when code tries to rewrite or delete a payment history row."""

    status = 409


class PaymentNotFound(BillingError):
    status = 404
