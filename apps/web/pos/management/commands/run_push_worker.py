"""
Worker for the Clover order push queue.

Usage:
    uv run python apps/web/manage.py run_push_worker
    uv run python apps/web/manage.py run_push_worker --once
    uv run python apps/web/manage.py run_push_worker --interval 2 --batch 50
"""

import logging
import time
from typing import Any

from django.core.management.base import BaseCommand

from apps.web.pos.tasks import run_due_jobs

logger = logging.getLogger(__name__)


class Command(BaseCommand):
    help = "Push queued orders to Clover"

    def add_arguments(self, parser: Any) -> None:
        parser.add_argument(
            "--once",
            action="store_true",
            help="Run due jobs once and exit (default: poll every --interval)",
        )
        parser.add_argument(
            "--interval",
            type=int,
            default=5,
            help="Seconds between queue checks (default: 5)",
        )
        parser.add_argument(
            "--batch",
            type=int,
            default=20,
            help="Maximum jobs per tick (default: 20)",
        )

    def handle(self, *_args: Any, **options: Any) -> None:
        once = options["once"]
        interval = options["interval"]
        batch = options["batch"]

        self.stdout.write("Starting Clover push worker...")

        while True:
            try:
                results = run_due_jobs(limit=batch)
            except Exception as e:
                # Keep the worker alive; the next tick retries
                logger.exception("Push worker tick failed: %s", e)
                results = []

            if results:
                pushed = sum(1 for r in results if r["success"])
                self.stdout.write(
                    f"Ran {len(results)} push jobs, {pushed} succeeded, "
                    f"{len(results) - pushed} failed"
                )

            if once:
                break

            time.sleep(interval)
