"""
Outbound order push queue - database-backed, durable, retrying.

Producers call enqueue_push(); a separate worker process
(`manage.py run_push_worker`) claims due jobs and runs them through
apps.web.pos.tasks.process_push_job.

Job lifecycle:
    queued -> active -> completed
                     -> queued (retry, exponential backoff)
                     -> failed (attempts exhausted or not retryable)

Finished jobs are pruned down to the newest CLOVER_PUSH_KEEP_COMPLETED /
CLOVER_PUSH_KEEP_FAILED rows.
"""

import logging
from datetime import datetime, timedelta
from uuid import UUID

from django.conf import settings
from django.db import transaction
from django.db.models import F
from django.utils import timezone

from tabletop_schemas import PushJobData

from apps.web.pos.models import PushJob, PushJobStatus

logger = logging.getLogger(__name__)


def enqueue_push(
    order_pk: UUID | str,
    order_code: str | None = None,
    force: bool = False,
) -> PushJob:
    """
    Queue an order for pushing to Clover.

    The job is always accepted; whether sync is enabled is checked by the
    worker when the job runs, so `force` can override it there.

    Args:
        order_pk: Primary key of the local order.
        order_code: Human-readable code, for logs.
        force: Push even if CLOVER_SYNC_ENABLED is off.

    Returns:
        The queued PushJob.
    """
    data = PushJobData(order_pk=order_pk, order_code=order_code, force=force)
    job = PushJob.objects.create(
        order_pk=data.order_pk,
        order_code=data.order_code or "",
        force=data.force,
        max_attempts=settings.CLOVER_PUSH_MAX_ATTEMPTS,
        next_attempt_at=timezone.now(),
    )
    logger.info(
        "Queued Clover push job %s for order %s (force=%s)",
        job.id,
        order_code or order_pk,
        force,
    )
    return job


def backoff_delay(attempts: int) -> timedelta:
    """Delay after the n-th failed attempt: base * 2^(n-1)."""
    base = settings.CLOVER_PUSH_BACKOFF_SECONDS
    return timedelta(seconds=base * 2 ** max(attempts - 1, 0))


def claim_due_jobs(limit: int = 20, now: datetime | None = None) -> list[PushJob]:
    """
    Claim up to `limit` due jobs for this worker.

    Rows locked by another worker are skipped, so several workers can run
    side by side without picking the same job. Claimed jobs are marked
    active and their attempt counter is incremented.
    """
    now = now or timezone.now()

    with transaction.atomic():
        jobs = list(
            PushJob.objects.select_for_update(skip_locked=True)
            .filter(status=PushJobStatus.QUEUED, next_attempt_at__lte=now)
            .order_by("next_attempt_at", "id")[:limit]
        )
        if not jobs:
            return []

        PushJob.objects.filter(id__in=[job.id for job in jobs]).update(
            status=PushJobStatus.ACTIVE,
            started_at=now,
            attempts=F("attempts") + 1,
        )

    for job in jobs:
        job.status = PushJobStatus.ACTIVE
        job.started_at = now
        job.attempts += 1

    return jobs


def complete_job(job: PushJob, result: str = "") -> None:
    """Mark a job completed."""
    job.status = PushJobStatus.COMPLETED
    job.finished_at = timezone.now()
    job.result = result[:255]
    job.last_error = ""
    job.save(update_fields=["status", "finished_at", "result", "last_error"])


def fail_job(job: PushJob, error: str, retryable: bool = True) -> bool:
    """
    Record a failed attempt.

    Returns:
        True if the job was requeued, False if it is now terminally failed.
    """
    now = timezone.now()
    job.last_error = error

    if retryable and job.attempts < job.max_attempts:
        job.status = PushJobStatus.QUEUED
        job.next_attempt_at = now + backoff_delay(job.attempts)
        job.save(update_fields=["status", "next_attempt_at", "last_error"])
        return True

    job.status = PushJobStatus.FAILED
    job.finished_at = now
    job.save(update_fields=["status", "finished_at", "last_error"])
    return False


def requeue_stalled_jobs(now: datetime | None = None) -> int:
    """
    Recover jobs left active by a worker that died mid-run.

    Jobs with attempts left go back to the queue; the rest are failed.

    Returns:
        Number of jobs recovered or failed.
    """
    now = now or timezone.now()
    cutoff = now - timedelta(seconds=settings.CLOVER_PUSH_STALL_SECONDS)
    stalled = PushJob.objects.filter(
        status=PushJobStatus.ACTIVE, started_at__lt=cutoff
    )

    failed = stalled.filter(attempts__gte=F("max_attempts")).update(
        status=PushJobStatus.FAILED,
        finished_at=now,
        last_error="Worker stalled; attempts exhausted",
    )
    requeued = stalled.filter(attempts__lt=F("max_attempts")).update(
        status=PushJobStatus.QUEUED,
        next_attempt_at=now,
        last_error="Worker stalled; requeued",
    )

    if failed or requeued:
        logger.warning(
            "Recovered stalled Clover push jobs: %d requeued, %d failed",
            requeued,
            failed,
        )
    return failed + requeued


def prune_finished_jobs() -> int:
    """
    Delete finished jobs beyond the retention limits.

    Returns:
        Number of rows deleted.
    """
    deleted_total = 0
    for status, keep in (
        (PushJobStatus.COMPLETED, settings.CLOVER_PUSH_KEEP_COMPLETED),
        (PushJobStatus.FAILED, settings.CLOVER_PUSH_KEEP_FAILED),
    ):
        keep_ids = list(
            PushJob.objects.filter(status=status)
            .order_by("-finished_at", "-id")
            .values_list("id", flat=True)[:keep]
        )
        deleted, _ = (
            PushJob.objects.filter(status=status).exclude(id__in=keep_ids).delete()
        )
        deleted_total += deleted

    if deleted_total:
        logger.info("Pruned %d finished Clover push jobs", deleted_total)
    return deleted_total
