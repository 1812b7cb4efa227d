"""
Account profile for the logged-in user.

GET  /api/account/  → {account: {id, name, company, email, emailVerified, verifiedAt}}
POST /api/account/  {name?, company?} → same shape
"""

from __future__ import annotations

from django.http import HttpRequest, JsonResponse
from django.views.decorators.http import require_http_methods

from billing import accounts
from billing.exceptions import BillingError
from billing.views.utils import _billing_error_response, _parse_json_body, _require_user


@require_http_methods(["GET", "POST"])
def account_detail(request: HttpRequest) -> JsonResponse:
    user, err = _require_user(request)
    if err:
        return err

    if request.method == "POST":
        data, err = _parse_json_body(request)
        if err:
            return err
        try:
            accounts.update_profile(user, name=data.get("name"), company=data.get("company"))
        except BillingError as exc:
            return _billing_error_response(exc)

    return JsonResponse({"account": accounts.get_user_data(user.pk)}, status=200)
