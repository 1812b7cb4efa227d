# -*- coding: utf-8 -*-
"""
CHANGE LOG
- 2026-09-10: Initial creation of management command `expire_subscriptions`.
  Marks every active subscription whose end_date has passed as expired
  (download disabled). Reads already do this lazily; the sweep keeps stored
  status honest for reporting when nobody reads the row.
"""

from __future__ import annotations

from django.core.management.base import BaseCommand, CommandParser
from django.utils import timezone

from billing.ledger import expire_lapsed_subscriptions
from billing.models import Subscription


class Command(BaseCommand):
    help = "Marks lapsed active subscriptions as expired."

    def add_arguments(self, parser: CommandParser) -> None:
        parser.add_argument(
            "--dry-run",
            action="store_true",
            help="Only report how many subscriptions would be expired.",
        )

    def handle(self, *args, **opts) -> None:
        dry_run: bool = bool(opts.get("dry_run") or False)
        now = timezone.now()

        if dry_run:
            count = Subscription.objects.filter(status=Subscription.STATUS_ACTIVE, end_date__lt=now).count()
            self.stdout.write(self.style.NOTICE(f"[expire] dry-run: {count} subscription(s) would expire"))
            return

        count = expire_lapsed_subscriptions(now=now)
        self.stdout.write(self.style.SUCCESS(f"[expire] expired {count} subscription(s)"))
