# billing/exchange.py
"""
USD → INR exchange-rate cache.

Razorpay in this deployment only charges INR, so catalog prices (USD) are
converted with a best-effort rate. One process-wide cache instance; a
failed fetch returns the fallback rate without caching it, so the next call
tries upstream again. No locking: two concurrent refreshes may both fetch.

CHANGE LOG
- 2026-09-02: Injectable cache object (fetcher + clock) instead of a module global.  # CHANGED:
"""

from __future__ import annotations

import logging
import time
from decimal import Decimal, InvalidOperation
from typing import Callable, Optional

import requests
from django.conf import settings

logger = logging.getLogger(__name__)

DEFAULT_URL = "https://open.er-api.com/v6/latest/USD"
DEFAULT_TTL_SECONDS = 3600
DEFAULT_FALLBACK = Decimal("85.60")


def fetch_usd_inr(url: Optional[str] = None, timeout: Optional[int] = None) -> Decimal:
    """GET the rates document and return rates.INR. Raises on any failure."""
    url = url or getattr(settings, "EXCHANGE_RATE_URL", DEFAULT_URL)
    timeout = timeout or int(getattr(settings, "EXCHANGE_RATE_TIMEOUT_SECONDS", 10))

    resp = requests.get(url, timeout=timeout, headers={"Accept": "application/json"})
    if resp.status_code >= 400:
        raise ValueError(f"HTTP {resp.status_code}")

    rate = resp.json()["rates"]["INR"]
    value = Decimal(str(rate))
    if not value > 0:
        raise ValueError(f"Non-positive rate: {rate!r}")
    return value


class ExchangeRateCache:
    """Single-entry cache around a rate fetcher."""

    def __init__(
        self,
        fetcher: Callable[[], Decimal] = fetch_usd_inr,
        ttl_seconds: int = DEFAULT_TTL_SECONDS,
        fallback: Decimal = DEFAULT_FALLBACK,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.fetcher = fetcher
        self.ttl_seconds = ttl_seconds
        self.fallback = Decimal(str(fallback))
        self.clock = clock
        self._rate: Optional[Decimal] = None
        self._fetched_at: Optional[float] = None

    def _is_fresh(self) -> bool:
        if self._rate is None or self._fetched_at is None:
            return False
        return self.clock() - self._fetched_at < self.ttl_seconds

    def get(self) -> Decimal:
        if self._is_fresh():
            return self._rate
        return self.refresh()

    def refresh(self) -> Decimal:
        """Fetch now. On failure return the fallback and leave the cache as it was."""
        try:
            rate = Decimal(str(self.fetcher()))
        except (requests.RequestException, ValueError, KeyError, TypeError, InvalidOperation) as exc:
            logger.warning("[exchange] rate fetch failed (%s); using fallback %s", exc, self.fallback)
            return self.fallback

        self._rate = rate
        self._fetched_at = self.clock()
        logger.info("[exchange] USD→INR refreshed: %s", rate)
        return rate


_rate_cache: Optional[ExchangeRateCache] = None


def get_rate_cache() -> ExchangeRateCache:
    global _rate_cache
    if _rate_cache is None:
        _rate_cache = ExchangeRateCache(
            ttl_seconds=int(getattr(settings, "EXCHANGE_RATE_TTL_SECONDS", DEFAULT_TTL_SECONDS)),
            fallback=Decimal(str(getattr(settings, "EXCHANGE_RATE_FALLBACK", DEFAULT_FALLBACK))),
        )
    return _rate_cache


def get_rate() -> Decimal:
    return get_rate_cache().get()
