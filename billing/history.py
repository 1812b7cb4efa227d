# billing/history.py
"""
Payment history ledger + invoice data.

Rows are appended only after a verified gateway payment and never edited;
invoice numbers are minted by the model on insert (INV-YYMM-NNNN).

CHANGE LOG
----------
2026-09-04 • Append-only history and invoice data
- store_payment_history() always writes status=completed.             # CHANGED:
- generate_invoice_data(): profile name, else name from email, else
  "Valued Customer"; tax from BILLING_TAX_RATE (default 10%).           # CHANGED:
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Dict, List, Optional

from django.conf import settings
from django.contrib.auth import get_user_model

from billing.exceptions import PaymentNotFound
from billing.models import CustomerProfile, PaymentHistory

logger = logging.getLogger(__name__)

CENT = Decimal("0.01")
FALLBACK_CUSTOMER_NAME = "Valued Customer"


@dataclass(frozen=True)
class InvoiceItem:
    description: str
    amount: Decimal


@dataclass(frozen=True)
class InvoiceData:
    payment: PaymentHistory
    company_name: str
    company_address: str
    customer_name: str
    customer_email: str
    customer_id: str
    items: List[InvoiceItem] = field(default_factory=list)
    subtotal: Decimal = Decimal("0")
    tax: Decimal = Decimal("0")
    total: Decimal = Decimal("0")

    def as_dict(self) -> Dict[str, Any]:
        out = self.payment.as_dict()
        out.update({
            "companyName": self.company_name,
            "companyAddress": self.company_address,
            "customerName": self.customer_name,
            "customerEmail": self.customer_email,
            "customerId": self.customer_id,
            "items": [{"description": i.description, "amount": float(i.amount)} for i in self.items],
            "subtotal": float(self.subtotal),
            "tax": float(self.tax),
            "total": float(self.total),
        })
        return out


def store_payment_history(
    user_id: int,
    plan_type: str,
    amount: Any,
    currency: str,
    billing_cycle: str,
    payment_method: str,
    transaction_id: str,
) -> PaymentHistory:
    entry = PaymentHistory.objects.create(
        user_id=user_id,
        plan_type=plan_type,
        amount=Decimal(str(amount)).quantize(CENT, rounding=ROUND_HALF_UP),
        currency=currency,
        billing_cycle=billing_cycle,
        payment_method=payment_method,
        transaction_id=transaction_id,
        status=PaymentHistory.STATUS_COMPLETED,
    )
    logger.info(
        "[history] stored %s user=%s plan=%s amount=%s %s txn=%s",
        entry.invoice_number, user_id, plan_type, entry.amount, currency, transaction_id,
    )
    return entry


def get_user_payment_history(user_id: int) -> List[PaymentHistory]:
    """Newest first."""
    return list(PaymentHistory.objects.filter(user_id=user_id).order_by("-payment_date", "-id"))


def name_from_email(email: Optional[str]) -> str:
    """'john.doe@x.com' → 'John Doe'. Empty string when there is nothing to use."""
    if not email:
        return ""
    local = email.split("@", 1)[0]
    parts = [p for p in local.split(".") if p]
    return " ".join(p[:1].upper() + p[1:] for p in parts)


def _tax_rate() -> Decimal:
    return Decimal(str(getattr(settings, "BILLING_TAX_RATE", "0.10")))


def generate_invoice_data(user_id: int, payment_pk: int) -> InvoiceData:
    payment = PaymentHistory.objects.filter(user_id=user_id, pk=payment_pk).first()
    if payment is None:
        raise PaymentNotFound("Payment record not found")

    user = get_user_model().objects.filter(pk=user_id).first()
    email = (getattr(user, "email", "") or "") if user is not None else ""
    profile = CustomerProfile.objects.filter(user_id=user_id).first()

    customer_name = (profile.name.strip() if profile and profile.name else "") or name_from_email(email)
    customer_name = customer_name or FALLBACK_CUSTOMER_NAME

    subtotal = payment.amount
    tax = (subtotal * _tax_rate()).quantize(CENT, rounding=ROUND_HALF_UP)

    return InvoiceData(
        payment=payment,
        company_name=getattr(settings, "BILLING_COMPANY_NAME", "WiggleByte Security"),
        company_address=getattr(settings, "BILLING_COMPANY_ADDRESS", "123 Security Street, Cyber City, 12345"),
        customer_name=customer_name,
        customer_email=email,
        customer_id=str(user_id),
        items=[
            InvoiceItem(
                description=f"{payment.plan_type.upper()} Plan - {payment.billing_cycle} Billing",
                amount=payment.amount,
            )
        ],
        subtotal=subtotal,
        tax=tax,
        total=subtotal + tax,
    )
