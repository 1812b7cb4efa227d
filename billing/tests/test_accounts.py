# billing/tests/test_accounts.py
from __future__ import annotations

import json
from unittest import mock

from django.contrib.auth import get_user_model
from django.db import DatabaseError
from django.test import Client, SimpleTestCase, TestCase
from django.urls import reverse

from billing import accounts
from billing.exceptions import ValidationError
from billing.models import CustomerProfile
from billing.retry import retry_on_db_error


class RetryTests(SimpleTestCase):
    def test_succeeds_after_transient_errors(self):
        fn = mock.Mock(side_effect=[DatabaseError("locked"), DatabaseError("locked"), "ok"])
        sleeps = []
        self.assertEqual(retry_on_db_error(fn, attempts=3, delay=1.0, sleep=sleeps.append), "ok")
        self.assertEqual(fn.call_count, 3)
        self.assertEqual(sleeps, [1.0, 1.0])

    def test_last_error_propagates(self):
        fn = mock.Mock(side_effect=DatabaseError("down"))
        with self.assertRaises(DatabaseError):
            retry_on_db_error(fn, attempts=3, sleep=lambda _: None)
        self.assertEqual(fn.call_count, 3)

    def test_default_sleep_is_time_sleep(self):
        fn = mock.Mock(side_effect=[DatabaseError("locked"), "ok"])
        with mock.patch("billing.retry.time.sleep") as sleep:
            self.assertEqual(retry_on_db_error(fn, delay=1.0), "ok")
        sleep.assert_called_once_with(1.0)

    def test_other_errors_are_not_retried(self):
        fn = mock.Mock(side_effect=KeyError("x"))
        with self.assertRaises(KeyError):
            retry_on_db_error(fn, attempts=3, sleep=lambda _: None)
        self.assertEqual(fn.call_count, 1)


class AccountTests(TestCase):
    def setUp(self):
        self.user = get_user_model().objects.create_user(username="hana", email="hana@example.com", password="pw")

    def test_mark_email_verified_creates_profile(self):
        profile = accounts.mark_email_verified(self.user.pk, sleep=lambda _: None)
        self.assertTrue(profile.email_verified)
        self.assertIsNotNone(profile.verified_at)
        self.assertTrue(CustomerProfile.objects.get(user=self.user).email_verified)

    def test_mark_email_verified_keeps_first_timestamp(self):
        first = accounts.mark_email_verified(self.user.pk, sleep=lambda _: None).verified_at
        second = accounts.mark_email_verified(self.user.pk, sleep=lambda _: None).verified_at
        self.assertEqual(first, second)

    def test_get_user_data(self):
        self.assertIsNone(accounts.get_user_data(self.user.pk + 999))

        data = accounts.get_user_data(self.user.pk)
        self.assertEqual(data["email"], "hana@example.com")
        self.assertFalse(data["emailVerified"])
        self.assertEqual(data["id"], str(self.user.pk))

        profile = accounts.ensure_profile(self.user)
        profile.name = "Hana K"
        profile.save()
        self.assertEqual(accounts.get_user_data(self.user.pk)["name"], "Hana K")


class UpdateProfileTests(TestCase):
    def setUp(self):
        self.user = get_user_model().objects.create_user(username="ines", email="ines@example.com", password="pw")

    def test_sets_only_given_fields(self):
        accounts.update_profile(self.user, name="  Ines R ", company="Acme")
        profile = accounts.update_profile(self.user, company="Acme Ltd")
        self.assertEqual(profile.name, "Ines R")
        self.assertEqual(profile.company, "Acme Ltd")

    def test_rejects_bad_values(self):
        for kwargs in ({"name": 5}, {"company": ["x"]}, {"name": "x" * 200}):
            with self.assertRaises(ValidationError):
                accounts.update_profile(self.user, **kwargs)
        self.assertFalse(CustomerProfile.objects.filter(user=self.user).exists())


class AccountViewTests(TestCase):
    url = "/api/account/"

    def setUp(self):
        self.user = get_user_model().objects.create_user(username="jo", email="jo@example.com", password="pw")
        self.client = Client()

    def test_anonymous_gets_401(self):
        self.assertEqual(self.client.get(self.url).status_code, 401)
        self.assertEqual(self.client.post(self.url, data="{}", content_type="application/json").status_code, 401)

    def test_get_without_profile(self):
        self.client.force_login(self.user)
        r = self.client.get(self.url)
        self.assertEqual(r.status_code, 200)
        self.assertEqual(json.loads(r.content)["account"], {
            "id": str(self.user.pk),
            "name": "",
            "company": "",
            "email": "jo@example.com",
            "emailVerified": False,
            "verifiedAt": None,
        })

    def test_post_updates_profile(self):
        self.client.force_login(self.user)
        r = self.client.post(self.url, data=json.dumps({"name": "Jo Park", "company": "Acme"}),
                             content_type="application/json")
        self.assertEqual(r.status_code, 200)
        account = json.loads(r.content)["account"]
        self.assertEqual(account["name"], "Jo Park")
        self.assertEqual(account["company"], "Acme")
        self.assertEqual(CustomerProfile.objects.get(user=self.user).name, "Jo Park")

    def test_post_rejects_non_string_name(self):
        self.client.force_login(self.user)
        r = self.client.post(self.url, data=json.dumps({"name": 42}), content_type="application/json")
        self.assertEqual(r.status_code, 400)
        self.assertEqual(json.loads(r.content), {"error": "Invalid name"})

    def test_verified_flag_shows_up(self):
        accounts.mark_email_verified(self.user.pk, sleep=lambda _: None)
        self.client.force_login(self.user)
        account = json.loads(self.client.get(self.url).content)["account"]
        self.assertTrue(account["emailVerified"])
        self.assertIsNotNone(account["verifiedAt"])


class EmailVerifiedAdminActionTests(TestCase):
    def setUp(self):
        User = get_user_model()
        self.staff = User.objects.create_superuser(username="admin", email="admin@example.com", password="pw")
        self.customer = User.objects.create_user(username="kai", email="kai@example.com", password="pw")
        self.profile = accounts.ensure_profile(self.customer)
        self.client = Client()
        self.client.force_login(self.staff)

    def test_action_marks_selected_profiles(self):
        r = self.client.post(
            reverse("admin:billing_customerprofile_changelist"),
            {"action": "mark_selected_email_verified", "_selected_action": [self.profile.pk]},
        )
        self.assertEqual(r.status_code, 302)
        self.profile.refresh_from_db()
        self.assertTrue(self.profile.email_verified)
        self.assertIsNotNone(self.profile.verified_at)
