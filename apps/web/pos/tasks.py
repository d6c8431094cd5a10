"""
POS background tasks - Clover order push worker.

`run_due_jobs` is what the `run_push_worker` management command calls on
every tick; it can also be called directly (tests, admin actions).
"""

import logging
from datetime import datetime
from typing import Any

from django.conf import settings

from apps.web.pos.models import PushJob
from apps.web.pos.services.order_push import OrderPushError, push_order_to_clover
from apps.web.pos.services.push_queue import (
    claim_due_jobs,
    complete_job,
    fail_job,
    prune_finished_jobs,
    requeue_stalled_jobs,
)

logger = logging.getLogger(__name__)

SKIPPED_SYNC_DISABLED = "skipped: sync disabled"


def process_push_job(job: PushJob) -> dict[str, Any]:
    """
    Run one claimed push job.

    The CLOVER_SYNC_ENABLED gate is checked here, at execution time, so a
    job queued while sync was on is skipped if sync has since been turned
    off (unless it was forced).

    Args:
        job: A job returned by claim_due_jobs().

    Returns:
        Dict with the push result or error info.
    """
    ref = job.order_code or str(job.order_pk)

    if not settings.CLOVER_SYNC_ENABLED and not job.force:
        logger.info("Skipping Clover push job %s (%s): sync disabled", job.id, ref)
        complete_job(job, SKIPPED_SYNC_DISABLED)
        return {
            "success": True,
            "job_id": job.id,
            "order_id": str(job.order_pk),
            "skipped": True,
        }

    try:
        clover_order_id = push_order_to_clover(job.order_pk)

    except OrderPushError as e:
        will_retry = fail_job(job, e.message, retryable=e.is_retryable)
        if will_retry:
            logger.warning(
                "Clover push for %s failed (attempt %d/%d), retry at %s: %s",
                ref,
                job.attempts,
                job.max_attempts,
                job.next_attempt_at.isoformat(),
                e.message,
            )
        else:
            logger.error(
                "Clover push for %s permanently failed after %d attempts: %s",
                ref,
                job.attempts,
                e.message,
            )
        return {
            "success": False,
            "job_id": job.id,
            "order_id": str(job.order_pk),
            "error": e.message,
            "is_retryable": will_retry,
            "attempts": job.attempts,
        }

    except Exception as e:
        # Unexpected error
        logger.exception("Unexpected error pushing order %s: %s", ref, e)
        fail_job(job, str(e), retryable=False)
        return {
            "success": False,
            "job_id": job.id,
            "order_id": str(job.order_pk),
            "error": str(e),
            "is_retryable": False,
            "attempts": job.attempts,
        }

    complete_job(job, clover_order_id)
    logger.info("Clover push job %s (%s) -> %s", job.id, ref, clover_order_id)
    return {
        "success": True,
        "job_id": job.id,
        "order_id": str(job.order_pk),
        "clover_order_id": clover_order_id,
    }


def run_due_jobs(limit: int = 20, now: datetime | None = None) -> list[dict[str, Any]]:
    """
    One worker tick: recover stalled jobs, run due ones, prune old ones.

    Args:
        limit: Maximum number of jobs to run.
        now: Reference time (default: now).

    Returns:
        One result dict per job run.
    """
    requeue_stalled_jobs(now)
    results = [process_push_job(job) for job in claim_due_jobs(limit, now)]
    prune_finished_jobs()
    return results
