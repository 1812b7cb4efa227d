"""
billing.models.order

Gateway order persistence (Django authoritative).

Every Razorpay order we create is stored here so that verification can be
bound to the amount and plan the order was priced for:
- a valid signature for a cheap order cannot be replayed as an expensive upgrade
- a paid order cannot be fulfilled twice

========= CHANGE LOG =========
2026-09-05 • ADD: PaymentOrder for Razorpay order/verify round trip.  # CHANGED:
"""

from __future__ import annotations

from django.conf import settings
from django.db import models


class PaymentOrder(models.Model):
    """
    A single Razorpay order (order_...).
    """

    # ---- gateway identifiers ----
    order_id = models.CharField(
        max_length=255,
        unique=True,
        help_text="Razorpay order id (order_...).",
    )

    receipt = models.CharField(
        max_length=64,
        help_text="Receipt id sent with the order (receipt_<epoch-ms>_<hex>).",
    )

    payment_id = models.CharField(
        max_length=255,
        blank=True,
        default="",
        db_index=True,
        help_text="Razorpay payment id (pay_...) once verified.",
    )

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="payment_orders",
    )

    # ---- amounts ----
    amount_minor = models.PositiveIntegerField(
        help_text="Charged amount in the smallest currency unit (paise).",
    )
    currency = models.CharField(max_length=12, default="INR")

    display_amount = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        null=True,
        blank=True,
        help_text="Catalog price shown to the customer (major units).",
    )
    display_currency = models.CharField(max_length=12, blank=True, default="")

    # ---- plan ----
    plan_type = models.CharField(max_length=20)
    billing_cycle = models.CharField(max_length=20)

    # ---- status ----
    STATUS_CREATED = "created"
    STATUS_PAID = "paid"
    STATUS_REJECTED = "rejected"
    STATUS_CHOICES = [
        (STATUS_CREATED, "Created"),
        (STATUS_PAID, "Paid"),
        (STATUS_REJECTED, "Rejected"),
    ]
    status = models.CharField(
        max_length=20,
        choices=STATUS_CHOICES,
        default=STATUS_CREATED,
        db_index=True,
    )

    # ---- raw payload snapshot (for audit/debug) ----
    raw_order = models.JSONField(
        blank=True,
        null=True,
        help_text="Snapshot of the Razorpay order payload at creation.",
    )

    notes = models.TextField(
        blank=True,
        default="",
        help_text="Internal notes (never shown to users).",
    )

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ("-created_at",)

    def __str__(self) -> str:
        return f"{self.order_id} {self.amount_minor} {self.currency} ({self.status})"

    @property
    def is_paid(self) -> bool:
        return self.status == self.STATUS_PAID
