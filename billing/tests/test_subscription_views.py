# billing/tests/test_subscription_views.py
from __future__ import annotations

import json
from datetime import timedelta
from unittest import mock

from django.contrib.auth import get_user_model
from django.db import OperationalError
from django.test import Client, TestCase
from django.utils import timezone

from billing import ledger
from billing.models import Subscription


class SubscriptionViewTests(TestCase):
    def setUp(self):
        self.user = get_user_model().objects.create_user(username="kim", email="kim@example.com", password="pw")
        self.client = Client()

    def test_anonymous_gets_401(self):
        self.assertEqual(self.client.get("/api/subscription/").status_code, 401)
        self.assertEqual(self.client.post("/api/subscription/free-trial/").status_code, 401)

    def test_no_subscription(self):
        self.client.force_login(self.user)
        data = json.loads(self.client.get("/api/subscription/").content)
        self.assertIsNone(data["subscription"])
        self.assertFalse(data["isActive"])
        self.assertFalse(data["hasUsedFreeTrial"])
        self.assertEqual(
            data["buttonStates"],
            {"freeTrialDisabled": False, "simpleDisabled": False, "premiumDisabled": False},
        )

    def test_free_trial_once(self):
        self.client.force_login(self.user)

        r = self.client.post("/api/subscription/free-trial/")
        self.assertEqual(r.status_code, 200)
        self.assertEqual(json.loads(r.content)["subscription"]["planType"], "free")

        r = self.client.post("/api/subscription/free-trial/")
        self.assertEqual(r.status_code, 409)
        self.assertEqual(json.loads(r.content), {"success": False, "message": ledger.MSG_TRIAL_USED})

        data = json.loads(self.client.get("/api/subscription/").content)
        self.assertTrue(data["isActive"])
        self.assertTrue(data["hasUsedFreeTrial"])
        self.assertTrue(data["buttonStates"]["freeTrialDisabled"])
        self.assertFalse(data["buttonStates"]["premiumDisabled"])

    def test_premium_disables_every_button(self):
        ledger.create_subscription(self.user.pk, "premium", "monthly", "pay_1")
        self.client.force_login(self.user)
        data = json.loads(self.client.get("/api/subscription/").content)
        self.assertEqual(
            data["buttonStates"],
            {"freeTrialDisabled": True, "simpleDisabled": True, "premiumDisabled": True},
        )

    def test_get_expires_lapsed_subscription(self):
        past = timezone.now() - timedelta(days=60)
        ledger.create_subscription(self.user.pk, "simple", "monthly", "pay_1", now=past)
        self.client.force_login(self.user)

        data = json.loads(self.client.get("/api/subscription/").content)
        self.assertFalse(data["isActive"])
        self.assertEqual(data["subscription"]["status"], Subscription.STATUS_EXPIRED)
        self.assertFalse(data["buttonStates"]["simpleDisabled"])

        sub = Subscription.objects.get(user=self.user)
        self.assertEqual(sub.status, Subscription.STATUS_EXPIRED)
        self.assertFalse(sub.download_enabled)

    def test_free_trial_requires_post(self):
        self.client.force_login(self.user)
        self.assertEqual(self.client.get("/api/subscription/free-trial/").status_code, 405)


class FreeTrialLockRetryTests(TestCase):
    """A locked database (OperationalError) is retried, then the ledger decides."""

    def setUp(self):
        self.user = get_user_model().objects.create_user(username="lee", email="lee@example.com", password="pw")
        self.client = Client()
        self.client.force_login(self.user)
        self.real_create = ledger.create_free_trial
        self.calls = []

    def _locked_once(self, user_id):
        self.calls.append(user_id)
        if len(self.calls) == 1:
            raise OperationalError("database is locked")
        return self.real_create(user_id)

    def test_retried_request_succeeds(self):
        with mock.patch("billing.views.subscription.ledger.create_free_trial", side_effect=self._locked_once), \
                mock.patch("billing.retry.time.sleep") as sleep:
            r = self.client.post("/api/subscription/free-trial/")
        self.assertEqual(r.status_code, 200)
        self.assertEqual(len(self.calls), 2)
        sleep.assert_called_once_with(1.0)

    def test_lock_loser_gets_policy_rejection(self):
        # The concurrent winner's trial is already committed.
        ledger.create_free_trial(self.user.pk)
        with mock.patch("billing.views.subscription.ledger.create_free_trial", side_effect=self._locked_once), \
                mock.patch("billing.retry.time.sleep"):
            r = self.client.post("/api/subscription/free-trial/")
        self.assertEqual(r.status_code, 409)
        self.assertEqual(json.loads(r.content), {"success": False, "message": ledger.MSG_TRIAL_USED})
        self.assertEqual(Subscription.objects.filter(user=self.user).count(), 1)
