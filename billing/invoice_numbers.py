"""
billing.invoice_numbers

Invoice number generation for payment history rows.

Format:
  INV-YYMM-NNNN

YYMM is the payment month, NNNN is a random 4-digit suffix drawn with
`secrets`. Uniqueness is checked through a caller-provided `exists()` callback,
the same way the model layer checks any other generated identifier.

========= CHANGE LOG =========
2026-09-04 • ADD: Invoice number generator + uniqueness loop.  # CHANGED:
"""

from __future__ import annotations

import secrets
from datetime import datetime
from typing import Callable, Optional

from django.utils import timezone

PREFIX: str = "INV"


def generate_invoice_number(*, when: Optional[datetime] = None) -> str:
    """
    Example:
      INV-2610-0427
    """
    when = when or timezone.now()
    suffix = secrets.randbelow(10000)
    return f"{PREFIX}-{when:%y%m}-{suffix:04d}"


def generate_unique_invoice_number(
    *,
    exists: Callable[[str], bool],
    when: Optional[datetime] = None,
    max_tries: int = 25,
) -> str:
    """
    Generate an invoice number that `exists(number)` reports as unused.

    Typical caller:
      lambda n: PaymentHistory.objects.filter(invoice_number=n).exists()
    """
    if max_tries < 1:
        max_tries = 1

    last: Optional[str] = None
    for _ in range(max_tries):
        candidate = generate_invoice_number(when=when)
        last = candidate
        if not exists(candidate):
            return candidate

    raise RuntimeError(f"Unable to generate unique invoice number after {max_tries} tries. Last={last}")
