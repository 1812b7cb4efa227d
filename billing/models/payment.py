"""
billing.models.payment

Append-only payment history. One row per verified gateway payment; the
invoice number is generated once, on insert, and rows are never rewritten.

========= CHANGE LOG =========
2026-09-04 • ADD: PaymentHistory with generated invoice numbers.  # CHANGED:
2026-09-06 • HARDEN: refuse update/delete of stored rows.          # CHANGED:
"""

from __future__ import annotations

from django.conf import settings
from django.db import models
from django.utils import timezone

from billing.exceptions import ImmutableRecordError
from billing.invoice_numbers import generate_unique_invoice_number


class PaymentHistory(models.Model):
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="payment_history",
    )

    plan_type = models.CharField(max_length=20)
    billing_cycle = models.CharField(max_length=20)

    # ---- amounts ----
    amount = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        help_text="Amount in major currency units (e.g. 19.99).",
    )
    currency = models.CharField(max_length=12, default="USD")

    payment_method = models.CharField(max_length=50, default="Razorpay")
    transaction_id = models.CharField(max_length=255, db_index=True)

    STATUS_COMPLETED = "completed"
    STATUS_FAILED = "failed"
    STATUS_PENDING = "pending"
    STATUS_CHOICES = [
        (STATUS_COMPLETED, "Completed"),
        (STATUS_FAILED, "Failed"),
        (STATUS_PENDING, "Pending"),
    ]
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=STATUS_COMPLETED)

    payment_date = models.DateTimeField(default=timezone.now, db_index=True)
    invoice_number = models.CharField(max_length=32, unique=True, editable=False)

    class Meta:
        ordering = ("-payment_date", "-id")
        verbose_name_plural = "payment history"

    def __str__(self) -> str:
        return f"{self.invoice_number} — {self.plan_type}/{self.billing_cycle} {self.amount} {self.currency}"

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise ImmutableRecordError("Payment history entries cannot be modified.")
        if not self.invoice_number:
            self.invoice_number = generate_unique_invoice_number(
                exists=lambda n: type(self).objects.filter(invoice_number=n).exists(),
                when=self.payment_date,
            )
        super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise ImmutableRecordError("Payment history entries cannot be deleted.")

    def as_dict(self) -> dict:
        return {
            "id": self.pk,
            "planType": self.plan_type,
            "amount": float(self.amount),
            "currency": self.currency,
            "billingCycle": self.billing_cycle,
            "paymentMethod": self.payment_method,
            "transactionId": self.transaction_id,
            "status": self.status,
            "paymentDate": self.payment_date.isoformat(),
            "invoiceNumber": self.invoice_number,
        }
