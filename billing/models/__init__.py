# -*- coding: utf-8 -*-
"""
Billing models package entrypoint.

The app uses a models/ package; importing each module here is what makes
Django register the models declared inside them.
"""

from .subscription import Subscription
from .payment import PaymentHistory
from .order import PaymentOrder
from .customer import CustomerProfile

__all__ = [
    "Subscription",
    "PaymentHistory",
    "PaymentOrder",
    "CustomerProfile",
]
