# billing/checkout.py
"""
billing.checkout

Session-backed checkout: plan selection → INR conversion → Razorpay order →
hosted checkout → signature verification → ledger updates.

Flow
1) store_selection()   remembers {planType, billingCycle, price, currency} in the session
2) start_checkout()     prices from the catalog, prechecks the plan policy, converts to INR,
                        creates + persists the gateway order, returns hosted-checkout options
3) complete_checkout()  verifies the signature, then in ONE transaction updates the
                        subscription, appends payment history and marks the order paid

LOCKED RULES
- Nothing touches the ledgers before the signature verifies.
- Fulfilment uses the stored order's plan/cycle/price, never the callback body.
- An order is fulfilled at most once, and only for the account that created it.

========= CHANGE LOG =========
2026-09-06
- ADD: server-side checkout on top of the Django session.                     # CHANGED:
- ADD: post-verification write retried 3× (1s apart) on DatabaseError.        # CHANGED:
- HARDEN: orders from /create-payment/ (client-priced) cannot be fulfilled.   # CHANGED:
"""

from __future__ import annotations

import logging
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Dict

from django.conf import settings
from django.db import transaction

from billing import history, ledger, plans
from billing.exceptions import CheckoutError
from billing.exchange import get_rate_cache
from billing.gateway import get_gateway
from billing.models import CustomerProfile, PaymentOrder
from billing.retry import retry_on_db_error

logger = logging.getLogger(__name__)

SESSION_KEY = "billing.selected_plan"
CHECKOUT_CURRENCY = "INR"
PAYMENT_METHOD = "Razorpay"
FULFIL_ATTEMPTS = 3
FULFIL_DELAY_SECONDS = 1.0


def usd_to_inr(price: Decimal, rate: Decimal) -> Decimal:
    """Whole rupees, half-up."""
    return (Decimal(str(price)) * Decimal(str(rate))).quantize(Decimal("1"), rounding=ROUND_HALF_UP)


def store_selection(session, plan_type: Any, billing_cycle: Any) -> Dict[str, Any]:
    try:
        price = plans.get_plan_price(str(plan_type), str(billing_cycle))
    except KeyError:
        raise CheckoutError("Invalid plan selection", 400)
    if not price.price > 0:
        raise CheckoutError("The free trial does not need a checkout", 400)

    selection = {
        "planType": price.plan_type,
        "billingCycle": price.billing_cycle,
        "price": str(price.price),
        "currency": plans.CATALOG_CURRENCY,
    }
    session[SESSION_KEY] = selection
    return selection


def get_selection(session) -> Dict[str, Any]:
    return session.get(SESSION_KEY) or {}


def clear_selection(session) -> None:
    session.pop(SESSION_KEY, None)


def _prefill_name(user) -> str:
    profile = CustomerProfile.objects.filter(user_id=user.pk).first()
    if profile and profile.name:
        return profile.name
    return user.get_full_name() or (user.email or "").split("@")[0]


def start_checkout(session, user) -> Dict[str, Any]:
    selection = get_selection(session)
    if not selection:
        raise CheckoutError("No plan selected", 400)

    try:
        price = plans.get_plan_price(selection.get("planType", ""), selection.get("billingCycle", ""))
    except KeyError:
        clear_selection(session)
        raise CheckoutError("Invalid plan selection", 400)

    rejection = ledger.check_plan_transition(ledger.get_subscription(user.pk), price.plan_type)
    if rejection:
        raise CheckoutError(rejection, 409)

    rate = get_rate_cache().get()
    amount_inr = usd_to_inr(price.price, rate)

    gateway = get_gateway()
    order = gateway.create_order(
        amount_inr,
        CHECKOUT_CURRENCY,
        notes={
            "planType": price.plan_type,
            "billingCycle": price.billing_cycle,
            "userId": user.pk,
        },
    )

    PaymentOrder.objects.create(
        order_id=order.order_id,
        receipt=order.receipt,
        user=user,
        amount_minor=order.amount,
        currency=order.currency,
        display_amount=price.price,
        display_currency=plans.CATALOG_CURRENCY,
        plan_type=price.plan_type,
        billing_cycle=price.billing_cycle,
        raw_order=order.raw,
    )
    logger.info(
        "[checkout] started user=%s order=%s %s/%s usd=%s rate=%s inr=%s",
        user.pk, order.order_id, price.plan_type, price.billing_cycle, price.price, rate, amount_inr,
    )

    return {
        "orderId": order.order_id,
        "amount": order.amount,
        "currency": order.currency,
        "keyId": gateway.public_key_id,
        "name": getattr(settings, "BILLING_COMPANY_NAME", "WiggleByte Security"),
        "description": f"{price.plan_type} Plan - {price.billing_cycle} subscription",
        "prefill": {"name": _prefill_name(user), "email": user.email or ""},
    }


def _fulfil(user, order_id: str, payment_id: str) -> Dict[str, Any]:
    with transaction.atomic():
        order = PaymentOrder.objects.select_for_update().filter(order_id=order_id).first()
        if order is None:
            raise CheckoutError("Unknown order", 404)
        if order.user_id != user.pk:
            raise CheckoutError("Order does not belong to this account", 403)
        if order.is_paid:
            raise CheckoutError("Order already processed", 409)
        if order.display_amount is None:
            raise CheckoutError("Order was not created by checkout", 409)

        result = ledger.create_subscription(user.pk, order.plan_type, order.billing_cycle, payment_id)
        if not result.success:
            order.status = PaymentOrder.STATUS_REJECTED
            order.payment_id = payment_id
            order.notes = result.message or ""
            order.save(update_fields=["status", "payment_id", "notes", "updated_at"])
            return {"success": False, "message": result.message}

        entry = history.store_payment_history(
            user.pk,
            order.plan_type,
            order.display_amount,
            order.display_currency or plans.CATALOG_CURRENCY,
            order.billing_cycle,
            PAYMENT_METHOD,
            payment_id,
        )
        order.status = PaymentOrder.STATUS_PAID
        order.payment_id = payment_id
        order.save(update_fields=["status", "payment_id", "updated_at"])

    return {
        "success": True,
        "subscription": result.subscription.as_dict(),
        "payment": entry.as_dict(),
    }


def complete_checkout(session, user, order_id: Any, payment_id: Any, signature: Any) -> Dict[str, Any]:
    gateway = get_gateway()
    if not gateway.verify_payment(order_id, payment_id, signature):
        raise CheckoutError("Invalid payment signature", 400)

    outcome = retry_on_db_error(
        lambda: _fulfil(user, order_id, payment_id),
        attempts=FULFIL_ATTEMPTS,
        delay=FULFIL_DELAY_SECONDS,
    )
    if not outcome["success"]:
        logger.info("[checkout] ledger rejected order=%s user=%s: %s", order_id, user.pk, outcome["message"])
        raise CheckoutError(outcome["message"], 409)

    clear_selection(session)
    logger.info("[checkout] completed user=%s order=%s payment=%s", user.pk, order_id, payment_id)
    return outcome
