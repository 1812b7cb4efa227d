"""
Shared helpers for billing views.
Kept separate so the view modules do not import each other.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Dict, Optional, Tuple

from django.http import HttpRequest, JsonResponse

from billing.exceptions import BillingError

log = logging.getLogger("billing.views")


def _json_error(message: str, status: int, details: Optional[str] = None) -> JsonResponse:
    body: Dict[str, Any] = {"error": message}
    if details:
        body["details"] = details[:500]
    return JsonResponse(body, status=status)


def _billing_error_response(exc: BillingError) -> JsonResponse:
    return _json_error(exc.message, exc.status, details=getattr(exc, "details", None))


def _parse_json_body(request: HttpRequest) -> Tuple[Optional[Dict[str, Any]], Optional[JsonResponse]]:
    try:
        raw = request.body.decode("utf-8") if request.body else ""
        if not raw.strip():
            return None, _json_error("Invalid request body", 400)
        data = json.loads(raw)
        if not isinstance(data, dict):
            return None, _json_error("Invalid request body", 400)
        return data, None
    except (json.JSONDecodeError, UnicodeDecodeError):
        return None, _json_error("Invalid request body", 400)


def _require_user(request: HttpRequest):
    """Return (user, None) for a logged-in session, else (None, 401 response)."""
    user = getattr(request, "user", None)
    if user is None or not user.is_authenticated:
        return None, _json_error("Authentication required", 401)
    return user, None
