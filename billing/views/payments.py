# billing/views/payments.py
"""
billing.views.payments

Gateway-facing JSON endpoints.

POST /api/create-payment/   {amount, currency?="INR", planType, billingCycle} → {orderId, amount, currency}
POST /api/verify-payment/   {razorpay_order_id, razorpay_payment_id, razorpay_signature}
GET  /api/exchange-rate/    {rate}
GET  /api/plans/            {plans: [...]}

CSRF-exempt: called by the hosted checkout script and server-to-server.

========= CHANGE LOG =========
2026-09-05
- ADD: create/verify payment + exchange-rate endpoints.                    # CHANGED:
- ADD: every created order persisted as PaymentOrder (audit + binding).    # CHANGED:
2026-10-19
- HARDEN: planType / billingCycle checked against the catalog before the
  gateway is called, so a stored order always fits its columns.            # CHANGED:
"""

from __future__ import annotations

import logging

from django.http import HttpRequest, JsonResponse
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_GET, require_POST

from billing import plans
from billing.exceptions import GatewayError, ValidationError
from billing.exchange import get_rate_cache
from billing.gateway import GENERIC_GATEWAY_MESSAGE, get_gateway
from billing.models import PaymentOrder
from billing.views.utils import _json_error, _parse_json_body

logger = logging.getLogger(__name__)


@csrf_exempt
@require_POST
def create_payment(request: HttpRequest) -> JsonResponse:
    data, err = _parse_json_body(request)
    if err:
        return err

    plan_type = data.get("planType")
    billing_cycle = data.get("billingCycle")
    # Missing fields fall through to the gateway's "Missing plan details".
    if plan_type and billing_cycle and (
        plan_type not in plans.PLAN_TYPES or billing_cycle not in plans.BILLING_CYCLES
    ):
        return _json_error("Invalid plan details", 400)

    try:
        order = get_gateway().create_order(
            data.get("amount"),
            data.get("currency") or "INR",
            notes={"planType": plan_type, "billingCycle": billing_cycle},
        )
    except ValidationError as exc:
        return _json_error(exc.message, exc.status)
    except GatewayError as exc:
        return _json_error(exc.message, exc.status, details=exc.details)
    except Exception as exc:
        logger.exception("create_payment: unexpected failure")
        return _json_error(GENERIC_GATEWAY_MESSAGE, 500, details=str(exc))

    user = request.user if request.user.is_authenticated else None
    PaymentOrder.objects.create(
        order_id=order.order_id,
        receipt=order.receipt,
        user=user,
        amount_minor=order.amount,
        currency=order.currency,
        plan_type=str(plan_type),
        billing_cycle=str(billing_cycle),
        raw_order=order.raw,
    )
    return JsonResponse(order.as_dict(), status=200)


@csrf_exempt
@require_POST
def verify_payment(request: HttpRequest) -> JsonResponse:
    data, err = _parse_json_body(request)
    if err:
        return err

    order_id = data.get("razorpay_order_id")
    payment_id = data.get("razorpay_payment_id")
    signature = data.get("razorpay_signature")

    try:
        verified = get_gateway().verify_payment(order_id, payment_id, signature)
    except ValidationError as exc:
        return _json_error(exc.message, exc.status)

    if not verified:
        return _json_error("Invalid payment signature", 400)

    return JsonResponse({"verified": True, "paymentId": payment_id, "orderId": order_id}, status=200)


@csrf_exempt
@require_GET
def exchange_rate(request: HttpRequest) -> JsonResponse:
    rate = get_rate_cache().get()
    return JsonResponse({"rate": float(rate)}, status=200)


@require_GET
def plans_catalog(request: HttpRequest) -> JsonResponse:
    return JsonResponse({"plans": plans.catalog()}, status=200)
