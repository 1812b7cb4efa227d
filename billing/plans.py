# billing/plans.py
"""
WiggleByte — plan catalog

Fixed price table (USD, major units) per plan and billing cycle. The server
prices every checkout from here; the browser only names the plan it wants.

CHANGE LOG
- 2026-09-02: Move prices server-side so a checkout cannot post its own amount.  # CHANGED:
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Dict, List, Tuple

PLAN_FREE = "free"
PLAN_SIMPLE = "simple"
PLAN_PREMIUM = "premium"
PLAN_ENTERPRISE = "enterprise"
PLAN_TYPES: Tuple[str, ...] = (PLAN_FREE, PLAN_SIMPLE, PLAN_PREMIUM, PLAN_ENTERPRISE)

CYCLE_MONTHLY = "monthly"
CYCLE_YEARLY = "yearly"
CYCLE_TRIAL = "trial"
BILLING_CYCLES: Tuple[str, ...] = (CYCLE_MONTHLY, CYCLE_YEARLY, CYCLE_TRIAL)

CATALOG_CURRENCY = "USD"


@dataclass(frozen=True)
class PlanPrice:
    plan_type: str
    billing_cycle: str
    price: Decimal
    features: Tuple[str, ...]

    def as_dict(self) -> Dict[str, object]:
        return {
            "planType": self.plan_type,
            "billingCycle": self.billing_cycle,
            "price": float(self.price),
            "currency": CATALOG_CURRENCY,
            "features": list(self.features),
        }


_BASIC = ("Basic Protection", "Email Support", "1 Device")
_ADVANCED = ("Advanced Protection", "24/7 Support", "3 Devices", "Real-time Monitoring")
_ENTERPRISE = ("Enterprise Protection", "Dedicated Support", "Unlimited Devices", "Custom Solutions")
_YEARLY_BONUS = ("2 Months Free",)

SUBSCRIPTION_PLANS: Dict[str, Dict[str, PlanPrice]] = {
    PLAN_FREE: {
        CYCLE_TRIAL: PlanPrice(PLAN_FREE, CYCLE_TRIAL, Decimal("0"), _BASIC + ("7 Days Trial",)),
    },
    PLAN_SIMPLE: {
        CYCLE_MONTHLY: PlanPrice(PLAN_SIMPLE, CYCLE_MONTHLY, Decimal("9.99"), _BASIC),
        CYCLE_YEARLY: PlanPrice(PLAN_SIMPLE, CYCLE_YEARLY, Decimal("99.99"), _BASIC + _YEARLY_BONUS),
    },
    PLAN_PREMIUM: {
        CYCLE_MONTHLY: PlanPrice(PLAN_PREMIUM, CYCLE_MONTHLY, Decimal("19.99"), _ADVANCED),
        CYCLE_YEARLY: PlanPrice(PLAN_PREMIUM, CYCLE_YEARLY, Decimal("199.99"), _ADVANCED + _YEARLY_BONUS),
    },
    PLAN_ENTERPRISE: {
        CYCLE_MONTHLY: PlanPrice(PLAN_ENTERPRISE, CYCLE_MONTHLY, Decimal("49.99"), _ENTERPRISE),
        CYCLE_YEARLY: PlanPrice(PLAN_ENTERPRISE, CYCLE_YEARLY, Decimal("499.99"), _ENTERPRISE + _YEARLY_BONUS),
    },
}


def get_plan_price(plan_type: str, billing_cycle: str) -> PlanPrice:
    """
    Look up a catalog entry.

    Raises KeyError for an unknown plan or a cycle the plan is not sold on
    (e.g. premium/trial).
    """
    return SUBSCRIPTION_PLANS[plan_type][billing_cycle]


def catalog() -> List[Dict[str, object]]:
    return [price.as_dict() for cycles in SUBSCRIPTION_PLANS.values() for price in cycles.values()]
