# billing/ledger.py
"""
Subscription ledger: the plan-transition policy and the one-row-per-user
subscription record.

Every read-decide-write runs inside transaction.atomic() with the user's row
locked (select_for_update), so two concurrent trial or upgrade requests for
the same user are serialized instead of both passing the eligibility check.

Policy rejections are returned as LedgerResult(success=False, message=...);
they are expected outcomes, not exceptions.

CHANGE LOG
----------
2026-09-03 • Ledger moved server-side
- Row lock on the auth user for every mutation.                     # CHANGED:
- "Active" computed from end_date via Subscription.is_current().    # CHANGED:
- Paid plans carry has_used_free_trial forward unchanged.           # CHANGED:

2026-09-10 • expire_lapsed_subscriptions() sweep for the management command.
"""

from __future__ import annotations

import calendar
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Dict, Optional

from django.contrib.auth import get_user_model
from django.db import transaction
from django.utils import timezone

from billing import plans
from billing.exceptions import ValidationError
from billing.models import Subscription

logger = logging.getLogger(__name__)

FREE_TRIAL_DAYS = 7

MSG_DOWNGRADE_PREMIUM = "Cannot downgrade from premium until it expires."
MSG_TRIAL_AFTER_PURCHASE = "Cannot use free trial after purchasing a plan."
MSG_TRIAL_USED = "Free trial already used."
MSG_TRIAL_WHILE_ACTIVE = "Cannot activate free trial while another plan is active."


@dataclass(frozen=True)
class LedgerResult:
    success: bool
    message: Optional[str] = None
    subscription: Optional[Subscription] = None

    def as_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {"success": self.success}
        if self.message:
            out["message"] = self.message
        return out


@dataclass(frozen=True)
class ButtonStates:
    free_trial_disabled: bool = False
    simple_disabled: bool = False
    premium_disabled: bool = False

    def as_dict(self) -> Dict[str, bool]:
        return {
            "freeTrialDisabled": self.free_trial_disabled,
            "simpleDisabled": self.simple_disabled,
            "premiumDisabled": self.premium_disabled,
        }


def add_months(dt: datetime, months: int) -> datetime:
    """Calendar month arithmetic, clamping the day (Jan 31 + 1 → Feb 28/29)."""
    month_index = dt.month - 1 + months
    year = dt.year + month_index // 12
    month = month_index % 12 + 1
    day = min(dt.day, calendar.monthrange(year, month)[1])
    return dt.replace(year=year, month=month, day=day)


def period_end(start: datetime, billing_cycle: str) -> datetime:
    if billing_cycle == plans.CYCLE_MONTHLY:
        return add_months(start, 1)
    # yearly and anything else
    return add_months(start, 12)


def _lock_user(user_id: int) -> None:
    # Must be called inside transaction.atomic().
    get_user_model().objects.select_for_update().only("pk").get(pk=user_id)


def get_subscription(user_id: int) -> Optional[Subscription]:
    """Plain read. No expiry side effects."""
    return Subscription.objects.filter(user_id=user_id).first()


def has_used_free_trial(user_id: int) -> bool:
    return Subscription.objects.filter(user_id=user_id, has_used_free_trial=True).exists()


def check_plan_transition(
    current: Optional[Subscription],
    plan_type: str,
    now: Optional[datetime] = None,
) -> Optional[str]:
    """
    Return the rejection message for moving `current` to `plan_type`, or None
    when the move is allowed. Only a current (active, unexpired) plan blocks.
    """
    if current is None or not current.is_current(now):
        return None

    if current.plan_type == plans.PLAN_PREMIUM and plan_type in (plans.PLAN_SIMPLE, plans.PLAN_FREE):
        return MSG_DOWNGRADE_PREMIUM

    if current.plan_type == plans.PLAN_SIMPLE and plan_type == plans.PLAN_FREE:
        return MSG_TRIAL_AFTER_PURCHASE

    return None


def create_free_trial(user_id: int, now: Optional[datetime] = None) -> LedgerResult:
    now = now or timezone.now()

    with transaction.atomic():
        _lock_user(user_id)
        current = Subscription.objects.filter(user_id=user_id).first()

        if current is not None:
            if current.has_used_free_trial:
                return LedgerResult(False, MSG_TRIAL_USED, current)
            if current.is_current(now):
                return LedgerResult(False, MSG_TRIAL_WHILE_ACTIVE, current)

        sub = current or Subscription(user_id=user_id)
        sub.plan_type = plans.PLAN_FREE
        sub.billing_cycle = plans.CYCLE_TRIAL
        sub.status = Subscription.STATUS_ACTIVE
        sub.start_date = now
        sub.end_date = now + timedelta(days=FREE_TRIAL_DAYS)
        sub.last_payment_id = ""
        sub.has_used_free_trial = True
        sub.cancellation_reason = ""
        sub.save()

    logger.info("[ledger] free trial started user=%s end=%s", user_id, sub.end_date.isoformat())
    return LedgerResult(True, None, sub)


def create_subscription(
    user_id: int,
    plan_type: str,
    billing_cycle: str,
    payment_id: str,
    now: Optional[datetime] = None,
) -> LedgerResult:
    """
    Overwrite the user's record with a freshly paid period.

    has_used_free_trial is carried over from the previous record as-is;
    buying a plan does not consume the trial.
    """
    if plan_type not in plans.PLAN_TYPES:
        raise ValidationError(f"Unknown plan type: {plan_type!r}")
    if billing_cycle not in plans.BILLING_CYCLES:
        raise ValidationError(f"Unknown billing cycle: {billing_cycle!r}")

    now = now or timezone.now()

    with transaction.atomic():
        _lock_user(user_id)
        current = Subscription.objects.filter(user_id=user_id).first()

        rejection = check_plan_transition(current, plan_type, now)
        if rejection:
            logger.info("[ledger] rejected user=%s %s→%s: %s", user_id, current.plan_type, plan_type, rejection)
            return LedgerResult(False, rejection, current)

        sub = current or Subscription(user_id=user_id)
        sub.plan_type = plan_type
        sub.billing_cycle = billing_cycle
        sub.status = Subscription.STATUS_ACTIVE
        sub.start_date = now
        sub.end_date = period_end(now, billing_cycle)
        sub.last_payment_id = payment_id or ""
        sub.has_used_free_trial = current.has_used_free_trial if current is not None else False
        sub.cancellation_reason = ""
        sub.save()

    logger.info(
        "[ledger] subscription user=%s plan=%s cycle=%s payment=%s end=%s",
        user_id, plan_type, billing_cycle, payment_id, sub.end_date.isoformat(),
    )
    return LedgerResult(True, None, sub)


def check_subscription_status(user_id: int, now: Optional[datetime] = None) -> bool:
    """
    Is the user entitled right now?

    A record whose end_date has passed is persisted as expired (download
    disabled) before returning False.
    """
    now = now or timezone.now()

    with transaction.atomic():
        sub = Subscription.objects.select_for_update().filter(user_id=user_id).first()
        if sub is None:
            return False

        if sub.is_lapsed(now):
            if sub.status != Subscription.STATUS_EXPIRED or sub.download_enabled:
                sub.status = Subscription.STATUS_EXPIRED
                sub.save(update_fields=["status", "updated_at"])
                logger.info("[ledger] expired user=%s end=%s", user_id, sub.end_date.isoformat())
            return False

    return sub.status == Subscription.STATUS_ACTIVE and sub.download_enabled


def get_subscription_button_states(
    subscription: Optional[Subscription],
    now: Optional[datetime] = None,
) -> ButtonStates:
    """Which pricing buttons to grey out. Pure: no I/O."""
    if subscription is None:
        return ButtonStates()

    free_trial_disabled = bool(subscription.has_used_free_trial)
    simple_disabled = False
    premium_disabled = False

    current = subscription.is_current(now)
    if current and subscription.plan_type == plans.PLAN_PREMIUM:
        free_trial_disabled = simple_disabled = premium_disabled = True
    if current and subscription.plan_type == plans.PLAN_SIMPLE:
        free_trial_disabled = simple_disabled = True

    return ButtonStates(free_trial_disabled, simple_disabled, premium_disabled)


def expire_lapsed_subscriptions(now: Optional[datetime] = None) -> int:
    """Mark every active-but-lapsed record expired. Returns the row count."""
    now = now or timezone.now()
    count = Subscription.objects.filter(
        status=Subscription.STATUS_ACTIVE,
        end_date__lt=now,
    ).update(
        status=Subscription.STATUS_EXPIRED,
        download_enabled=False,
        updated_at=now,
    )
    if count:
        logger.info("[ledger] sweep expired %s subscription(s)", count)
    return count
