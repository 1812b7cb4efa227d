# billing/models/subscription.py

"""
WiggleByte — Subscription model
Path: billing/models/subscription.py

Purpose:
- One row per user: the plan they are entitled to right now.
- Overwritten in place on every trial, upgrade or renewal (never appended).
- Answers "may this user download the agent?" via `is_current()`.

Invariants enforced on every save:
- download_enabled == (status == active)
- has_used_free_trial never goes back to False once stored as True

CHANGE LOG
- 2026-09-01: Add Subscription model linked 1:1 to the auth user.  # CHANGED:
- 2026-09-03: Enforce download flag + sticky trial flag in save().  # CHANGED:
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from django.conf import settings
from django.db import models
from django.utils import timezone

from billing import plans


class Subscription(models.Model):
    user = models.OneToOneField(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="subscription",
    )

    PLAN_CHOICES = [
        (plans.PLAN_FREE, "Free trial"),
        (plans.PLAN_SIMPLE, "Simple"),
        (plans.PLAN_PREMIUM, "Premium"),
        (plans.PLAN_ENTERPRISE, "Enterprise"),
    ]
    plan_type = models.CharField(max_length=20, choices=PLAN_CHOICES, default=plans.PLAN_FREE)

    CYCLE_CHOICES = [
        (plans.CYCLE_MONTHLY, "Monthly"),
        (plans.CYCLE_YEARLY, "Yearly"),
        (plans.CYCLE_TRIAL, "Trial"),
    ]
    billing_cycle = models.CharField(max_length=20, choices=CYCLE_CHOICES, default=plans.CYCLE_TRIAL)

    # Status
    STATUS_ACTIVE = "active"
    STATUS_EXPIRED = "expired"
    STATUS_NONE = "none"
    STATUS_CHOICES = [
        (STATUS_ACTIVE, "Active"),
        (STATUS_EXPIRED, "Expired"),
        (STATUS_NONE, "None"),
    ]
    status = models.CharField(
        max_length=20,
        choices=STATUS_CHOICES,
        default=STATUS_NONE,
        db_index=True,
    )

    start_date = models.DateTimeField(null=True, blank=True)
    end_date = models.DateTimeField(null=True, blank=True, db_index=True)

    # Gateway payment id that produced this period (blank for trials)
    last_payment_id = models.CharField(max_length=255, blank=True, default="")

    download_enabled = models.BooleanField(default=False)
    has_used_free_trial = models.BooleanField(default=False)

    # Kept for support notes; no transition writes it.
    cancellation_reason = models.TextField(blank=True, default="")

    created_at = models.DateTimeField(default=timezone.now, editable=False)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-updated_at"]
        indexes = [
            models.Index(fields=["status", "end_date"], name="billing_sub_status_end_idx"),
        ]

    def __str__(self) -> str:
        return f"{self.user_id} — {self.plan_type}/{self.billing_cycle} ({self.status})"

    def is_current(self, now: Optional[datetime] = None) -> bool:
        """Active AND not past end_date. Never trust `status` alone."""
        now = now or timezone.now()
        return (
            self.status == self.STATUS_ACTIVE
            and self.end_date is not None
            and self.end_date > now
        )

    def is_lapsed(self, now: Optional[datetime] = None) -> bool:
        now = now or timezone.now()
        return self.end_date is not None and self.end_date < now

    def save(self, *args, **kwargs):
        # CHANGED: download flag mirrors status, whatever the caller set.
        self.download_enabled = self.status == self.STATUS_ACTIVE

        # CHANGED: a stored True trial flag survives any overwrite.
        if self.pk and not self.has_used_free_trial:
            if type(self).objects.filter(pk=self.pk, has_used_free_trial=True).exists():
                self.has_used_free_trial = True

        update_fields = kwargs.get("update_fields")
        if update_fields is not None:
            kwargs["update_fields"] = set(update_fields) | {"download_enabled", "has_used_free_trial"}

        super().save(*args, **kwargs)

    def as_dict(self, now: Optional[datetime] = None) -> dict:
        return {
            "planType": self.plan_type,
            "billingCycle": self.billing_cycle,
            "status": self.status,
            "startDate": self.start_date.isoformat() if self.start_date else None,
            "endDate": self.end_date.isoformat() if self.end_date else None,
            "lastPaymentId": self.last_payment_id or None,
            "downloadEnabled": self.download_enabled,
            "hasUsedFreeTrial": self.has_used_free_trial,
            "isCurrent": self.is_current(now),
        }
