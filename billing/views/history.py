# billing/views/history.py
from __future__ import annotations

from django.http import HttpRequest, JsonResponse
from django.views.decorators.http import require_GET

from billing import history
from billing.exceptions import PaymentNotFound
from billing.views.utils import _billing_error_response, _require_user


@require_GET
def payment_history(request: HttpRequest) -> JsonResponse:
    user, err = _require_user(request)
    if err:
        return err
    entries = history.get_user_payment_history(user.pk)
    return JsonResponse({"payments": [e.as_dict() for e in entries]}, status=200)


@require_GET
def invoice_detail(request: HttpRequest, pk: int) -> JsonResponse:
    user, err = _require_user(request)
    if err:
        return err
    try:
        invoice = history.generate_invoice_data(user.pk, pk)
    except PaymentNotFound as exc:
        return _billing_error_response(exc)
    return JsonResponse(invoice.as_dict(), status=200)
