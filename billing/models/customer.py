# billing/models/customer.py

"""
WiggleByte — Customer profile
Path: billing/models/customer.py

Purpose:
- Profile data that sits next to the auth user: display name, company,
  email-verified flag.
- Feeds the customer block of invoices.

CHANGE LOG
- 2026-09-04: Create CustomerProfile (1:1 with the auth user).  # CHANGED:
"""

from __future__ import annotations

from django.conf import settings
from django.db import models
from django.utils import timezone


class CustomerProfile(models.Model):
    user = models.OneToOneField(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="customer_profile",
    )

    name = models.CharField(max_length=160, blank=True, default="")
    company = models.CharField(max_length=160, blank=True, default="")

    email_verified = models.BooleanField(default=False)
    verified_at = models.DateTimeField(null=True, blank=True)

    created_at = models.DateTimeField(default=timezone.now, editable=False)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at"]

    def __str__(self) -> str:
        email = getattr(self.user, "email", "") or ""
        return f"{self.name} <{email}>" if self.name else (email or str(self.user_id))

    def as_dict(self) -> dict:
        return {
            "name": self.name,
            "company": self.company,
            "email": getattr(self.user, "email", "") or "",
            "emailVerified": self.email_verified,
            "verifiedAt": self.verified_at.isoformat() if self.verified_at else None,
        }
