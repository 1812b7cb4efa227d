# billing/tests/test_payment_views.py
"""
CHANGE LOG
- 2026-09-05 — /api/create-payment/ and /api/verify-payment/ contract tests.
"""

from __future__ import annotations

import json
from unittest import mock

from django.contrib.auth import get_user_model
from django.test import Client, TestCase, override_settings

from billing.models import PaymentOrder
from billing.tests.helpers import GATEWAY_SETTINGS, FakeResponse, order_payload, sign


def _post(client: Client, url: str, body):
    raw = body if isinstance(body, str) else json.dumps(body)
    return client.post(url, data=raw, content_type="application/json")


@override_settings(**GATEWAY_SETTINGS)
class CreatePaymentTests(TestCase):
    url = "/api/create-payment/"

    def setUp(self):
        self.client = Client(enforce_csrf_checks=True)

    def test_creates_order_and_persists_it(self):
        body = {"amount": 1659, "planType": "premium", "billingCycle": "monthly"}
        with mock.patch("billing.gateway.requests.post", return_value=FakeResponse(200, order_payload(amount=165900))) as post:
            r = _post(self.client, self.url, body)

        self.assertEqual(r.status_code, 200)
        self.assertEqual(json.loads(r.content), {"orderId": "order_TEST1", "amount": 165900, "currency": "INR"})
        self.assertEqual(post.call_args.kwargs["json"]["amount"], 165900)

        order = PaymentOrder.objects.get(order_id="order_TEST1")
        self.assertEqual(order.amount_minor, 165900)
        self.assertEqual(order.plan_type, "premium")
        self.assertIsNone(order.user)
        self.assertIsNone(order.display_amount)
        self.assertEqual(order.status, PaymentOrder.STATUS_CREATED)

    def test_logged_in_caller_owns_the_order(self):
        user = get_user_model().objects.create_user(username="bob", email="bob@example.com", password="pw")
        self.client.force_login(user)
        body = {"amount": 10, "planType": "simple", "billingCycle": "monthly"}
        with mock.patch("billing.gateway.requests.post", return_value=FakeResponse(200, order_payload(amount=1000))):
            r = _post(self.client, self.url, body)
        self.assertEqual(r.status_code, 200)
        self.assertEqual(PaymentOrder.objects.get(order_id="order_TEST1").user, user)

    def test_invalid_amount(self):
        for amount in (0, -1, "12", None):
            r = _post(self.client, self.url, {"amount": amount, "planType": "simple", "billingCycle": "monthly"})
            self.assertEqual(r.status_code, 400)
            self.assertEqual(json.loads(r.content), {"error": "Invalid amount"})

    def test_non_finite_amount_is_a_validation_error(self):
        for literal in ("Infinity", "-Infinity", "NaN", "1e400"):
            raw = '{"amount": %s, "planType": "simple", "billingCycle": "monthly"}' % literal
            with mock.patch("billing.gateway.requests.post") as post:
                r = _post(self.client, self.url, raw)
            self.assertEqual(r.status_code, 400, literal)
            self.assertEqual(json.loads(r.content), {"error": "Invalid amount"})
            post.assert_not_called()

    def test_non_string_currency_is_a_validation_error(self):
        for currency in (5, ["INR"], {"code": "INR"}):
            with mock.patch("billing.gateway.requests.post") as post:
                r = _post(self.client, self.url, {
                    "amount": 10, "currency": currency, "planType": "simple", "billingCycle": "monthly",
                })
            self.assertEqual(r.status_code, 400)
            self.assertEqual(json.loads(r.content), {"error": "Invalid currency"})
            post.assert_not_called()

    def test_unknown_plan_or_cycle_rejected_before_gateway(self):
        bodies = (
            {"amount": 10, "planType": "x" * 40, "billingCycle": "monthly"},
            {"amount": 10, "planType": "gold", "billingCycle": "monthly"},
            {"amount": 10, "planType": "simple", "billingCycle": "weekly"},
            {"amount": 10, "planType": ["simple"], "billingCycle": "monthly"},
        )
        for body in bodies:
            with mock.patch("billing.gateway.requests.post") as post:
                r = _post(self.client, self.url, body)
            self.assertEqual(r.status_code, 400)
            self.assertEqual(json.loads(r.content), {"error": "Invalid plan details"})
            post.assert_not_called()
        self.assertFalse(PaymentOrder.objects.exists())

    def test_missing_plan_details(self):
        r = _post(self.client, self.url, {"amount": 10, "planType": "simple"})
        self.assertEqual(r.status_code, 400)
        self.assertEqual(json.loads(r.content), {"error": "Missing plan details"})

    def test_invalid_body(self):
        for raw in ("", "not json", "[1, 2]"):
            r = _post(self.client, self.url, raw)
            self.assertEqual(r.status_code, 400)
            self.assertEqual(json.loads(r.content), {"error": "Invalid request body"})

    def test_gateway_error_carries_details_and_status(self):
        body = {"error": {"code": "BAD_REQUEST_ERROR", "description": "The amount must be atleast INR 1.00"}}
        with mock.patch("billing.gateway.requests.post", return_value=FakeResponse(400, body)):
            r = _post(self.client, self.url, {"amount": 0.001, "planType": "simple", "billingCycle": "monthly"})
        self.assertEqual(r.status_code, 400)
        self.assertEqual(
            json.loads(r.content),
            {"error": "Invalid payment request", "details": "The amount must be atleast INR 1.00"},
        )
        self.assertFalse(PaymentOrder.objects.exists())

    def test_get_not_allowed(self):
        self.assertEqual(self.client.get(self.url).status_code, 405)


@override_settings(**GATEWAY_SETTINGS)
class VerifyPaymentViewTests(TestCase):
    url = "/api/verify-payment/"

    def setUp(self):
        self.client = Client(enforce_csrf_checks=True)

    def test_valid_signature(self):
        body = {
            "razorpay_order_id": "order_1",
            "razorpay_payment_id": "pay_1",
            "razorpay_signature": sign("order_1", "pay_1"),
        }
        r = _post(self.client, self.url, body)
        self.assertEqual(r.status_code, 200)
        self.assertEqual(json.loads(r.content), {"verified": True, "paymentId": "pay_1", "orderId": "order_1"})

    def test_invalid_signature(self):
        body = {
            "razorpay_order_id": "order_1",
            "razorpay_payment_id": "pay_1",
            "razorpay_signature": sign("order_1", "pay_2"),
        }
        r = _post(self.client, self.url, body)
        self.assertEqual(r.status_code, 400)
        self.assertEqual(json.loads(r.content), {"error": "Invalid payment signature"})

    def test_missing_fields(self):
        r = _post(self.client, self.url, {"razorpay_order_id": "order_1"})
        self.assertEqual(r.status_code, 400)
        self.assertIn("error", json.loads(r.content))


class PlansEndpointTests(TestCase):
    def test_catalog_lists_prices(self):
        r = self.client.get("/api/plans/")
        self.assertEqual(r.status_code, 200)
        plans = {(p["planType"], p["billingCycle"]): p for p in json.loads(r.content)["plans"]}
        self.assertEqual(plans[("premium", "monthly")]["price"], 19.99)
        self.assertEqual(plans[("enterprise", "yearly")]["price"], 499.99)
        self.assertEqual(plans[("free", "trial")]["price"], 0.0)
        self.assertEqual(plans[("simple", "monthly")]["currency"], "USD")
