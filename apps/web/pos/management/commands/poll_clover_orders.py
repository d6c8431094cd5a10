"""
Reconcile recently modified Clover orders (webhook fallback).

Usage:
    uv run python apps/web/manage.py poll_clover_orders
    uv run python apps/web/manage.py poll_clover_orders --once
    uv run python apps/web/manage.py poll_clover_orders --once \\
        --since 2025-06-29T17:00:00Z
"""

import logging
import time
from datetime import UTC
from typing import Any

from django.core.management.base import BaseCommand, CommandError
from django.utils import timezone
from django.utils.dateparse import parse_datetime

from apps.web.pos.exceptions import POSError
from apps.web.pos.services.order_polling import poll_since

logger = logging.getLogger(__name__)


class Command(BaseCommand):
    help = "Poll Clover for recently modified orders and reconcile their status"

    def add_arguments(self, parser: Any) -> None:
        parser.add_argument(
            "--once",
            action="store_true",
            help="Poll once and exit (default: poll every --interval seconds)",
        )
        parser.add_argument(
            "--interval",
            type=int,
            default=900,
            help="Polling interval in seconds (default: 900)",
        )
        parser.add_argument(
            "--since",
            help="ISO-8601 start of the first window (default: trailing window)",
        )

    def handle(self, *_args: Any, **options: Any) -> None:
        once = options["once"]
        interval = options["interval"]
        since = self._parse_since(options.get("since"))

        self.stdout.write("Starting Clover order poller...")

        while True:
            try:
                result = poll_since(since=since)
                self.stdout.write(
                    f"Checked {result.checked} Clover orders, updated {result.updated}"
                )
            except POSError as e:
                logger.error("Clover poll failed: %s", e.message)
                self.stderr.write(f"Clover poll failed: {e.message}")
            except Exception as e:
                # Keep the poller alive; the next pass covers the same window
                logger.exception("Clover poll pass crashed: %s", e)
                self.stderr.write(f"Clover poll pass crashed: {e}")

            if once:
                break

            # Only the first pass uses an explicit --since
            since = None
            time.sleep(interval)

    def _parse_since(self, value: str | None) -> Any:
        if not value:
            return None
        parsed = parse_datetime(value)
        if parsed is None:
            raise CommandError(f"Invalid --since value: {value}")
        if timezone.is_naive(parsed):
            parsed = timezone.make_aware(parsed, UTC)
        return parsed
