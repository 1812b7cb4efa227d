# billing/views/subscription.py
"""
Current subscription + free trial (session login required).
"""

from __future__ import annotations

import logging

from django.http import HttpRequest, JsonResponse
from django.views.decorators.http import require_GET, require_POST

from billing import ledger
from billing.retry import retry_on_db_error
from billing.views.utils import _require_user

logger = logging.getLogger(__name__)


@require_GET
def subscription_detail(request: HttpRequest) -> JsonResponse:
    user, err = _require_user(request)
    if err:
        return err

    # Lazy expiry happens here, so read the row afterwards.
    is_active = ledger.check_subscription_status(user.pk)
    sub = ledger.get_subscription(user.pk)

    return JsonResponse({
        "subscription": sub.as_dict() if sub else None,
        "isActive": is_active,
        "hasUsedFreeTrial": bool(sub and sub.has_used_free_trial),
        "buttonStates": ledger.get_subscription_button_states(sub).as_dict(),
    }, status=200)


@require_POST
def start_free_trial(request: HttpRequest) -> JsonResponse:
    user, err = _require_user(request)
    if err:
        return err

    # A request that lost the write lock retries and then sees the winner's trial.
    result = retry_on_db_error(lambda: ledger.create_free_trial(user.pk))
    body = result.as_dict()
    if result.success:
        body["subscription"] = result.subscription.as_dict()
        return JsonResponse(body, status=200)
    return JsonResponse(body, status=409)
