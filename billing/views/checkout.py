# billing/views/checkout.py
"""
Session-backed checkout endpoints.

POST /api/checkout/select/    {planType, billingCycle}
POST /api/checkout/start/     → hosted checkout options {orderId, amount, currency, keyId, ...}
POST /api/checkout/complete/  {razorpay_order_id, razorpay_payment_id, razorpay_signature}
"""

from __future__ import annotations

import logging

from django.http import HttpRequest, JsonResponse
from django.views.decorators.http import require_POST

from billing import checkout
from billing.exceptions import BillingError
from billing.views.utils import _billing_error_response, _json_error, _parse_json_body, _require_user

logger = logging.getLogger(__name__)


@require_POST
def checkout_select(request: HttpRequest) -> JsonResponse:
    user, err = _require_user(request)
    if err:
        return err
    data, err = _parse_json_body(request)
    if err:
        return err

    try:
        selection = checkout.store_selection(request.session, data.get("planType"), data.get("billingCycle"))
    except BillingError as exc:
        return _billing_error_response(exc)

    return JsonResponse({"success": True, "selection": dict(selection, price=float(selection["price"]))}, status=200)


@require_POST
def checkout_start(request: HttpRequest) -> JsonResponse:
    user, err = _require_user(request)
    if err:
        return err

    try:
        options = checkout.start_checkout(request.session, user)
    except BillingError as exc:
        return _billing_error_response(exc)
    except Exception as exc:
        logger.exception("checkout_start: unexpected failure user=%s", user.pk)
        return _json_error("Failed to create payment", 500, details=str(exc))

    return JsonResponse(options, status=200)


@require_POST
def checkout_complete(request: HttpRequest) -> JsonResponse:
    user, err = _require_user(request)
    if err:
        return err
    data, err = _parse_json_body(request)
    if err:
        return err

    try:
        outcome = checkout.complete_checkout(
            request.session,
            user,
            data.get("razorpay_order_id"),
            data.get("razorpay_payment_id"),
            data.get("razorpay_signature"),
        )
    except BillingError as exc:
        return _billing_error_response(exc)
    except Exception as exc:
        logger.exception("checkout_complete: unexpected failure user=%s", user.pk)
        return _json_error("Payment verification failed. Please contact support.", 500, details=str(exc))

    return JsonResponse(outcome, status=200)
