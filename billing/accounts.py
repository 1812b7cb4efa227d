# billing/accounts.py
"""
Customer profile helpers (display name, company, email-verified flag).

CHANGE LOG
- 2026-09-04: get_user_data / ensure_profile / mark_email_verified.       # CHANGED:
- 2026-10-19: update_profile() behind POST /api/account/; staff mark
  emails verified from the admin.                                         # CHANGED:
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, Optional

from django.contrib.auth import get_user_model
from django.utils import timezone

from billing.exceptions import ValidationError
from billing.models import CustomerProfile
from billing.retry import retry_on_db_error

logger = logging.getLogger(__name__)

PROFILE_FIELD_MAX = 160


def ensure_profile(user) -> CustomerProfile:
    profile, _ = CustomerProfile.objects.get_or_create(user=user)
    return profile


def get_user_data(user_id: int) -> Optional[Dict[str, Any]]:
    user = get_user_model().objects.filter(pk=user_id).first()
    if user is None:
        return None
    profile = CustomerProfile.objects.filter(user_id=user_id).first()
    data = profile.as_dict() if profile else {
        "name": "",
        "company": "",
        "email": user.email or "",
        "emailVerified": False,
        "verifiedAt": None,
    }
    data["id"] = str(user_id)
    return data


def _clean_field(value: Any, label: str) -> str:
    if not isinstance(value, str):
        raise ValidationError(f"Invalid {label}")
    value = value.strip()
    if len(value) > PROFILE_FIELD_MAX:
        raise ValidationError(f"{label.capitalize()} is too long")
    return value


def update_profile(user, name: Any = None, company: Any = None) -> CustomerProfile:
    """Set name and/or company. None leaves a field as it is."""
    changes: Dict[str, str] = {}
    if name is not None:
        changes["name"] = _clean_field(name, "name")
    if company is not None:
        changes["company"] = _clean_field(company, "company")

    profile = ensure_profile(user)
    if changes:
        for attr, value in changes.items():
            setattr(profile, attr, value)
        profile.save(update_fields=list(changes) + ["updated_at"])
        logger.info("[accounts] profile updated user=%s fields=%s", user.pk, ",".join(changes))
    return profile


def mark_email_verified(
    user_id: int,
    attempts: int = 3,
    delay: float = 1.0,
    sleep: Optional[Callable[[float], None]] = None,
) -> CustomerProfile:
    """
    Persist email_verified=True. DatabaseError is retried `attempts` times,
    `delay` seconds apart; the last failure propagates.
    """

    def _write() -> CustomerProfile:
        profile, _ = CustomerProfile.objects.get_or_create(user_id=user_id)
        if not profile.email_verified:
            profile.email_verified = True
            profile.verified_at = timezone.now()
            profile.save(update_fields=["email_verified", "verified_at", "updated_at"])
        return profile

    profile = retry_on_db_error(_write, attempts=attempts, delay=delay, sleep=sleep)
    logger.info("[accounts] email verified user=%s", user_id)
    return profile
