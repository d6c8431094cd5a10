"""POS models - webhook audit trail and the outbound order push queue."""

import uuid

from django.db import models


class WebhookStatus(models.TextChoices):
    """Webhook processing status."""

    PENDING = "pending", "Pending"
    PROCESSED = "processed", "Processed"
    FAILED = "failed", "Failed"


class POSWebhookEvent(models.Model):
    """
    Audit trail for Clover order webhooks.

    One row per verified delivery that changed a local order or failed.
    Benign no-ops (unknown order, replay, stale or unmapped state, other
    merchant) leave no row; they are only logged.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    event_type = models.CharField(
        max_length=100,
        blank=True,
        help_text="Event type from Clover, if present",
    )
    merchant_id = models.CharField(max_length=64, blank=True)
    external_reference_id = models.CharField(
        max_length=64,
        blank=True,
        help_text="Our order code as echoed by Clover",
    )
    clover_state = models.CharField(max_length=50, blank=True)

    # Payload
    payload = models.JSONField(
        help_text="Parsed webhook payload",
    )
    signature = models.CharField(
        max_length=500,
        blank=True,
        help_text="Signature header as received",
    )

    # Processing status
    status = models.CharField(
        max_length=20,
        choices=WebhookStatus.choices,
        default=WebhookStatus.PENDING,
    )
    outcome = models.CharField(
        max_length=20,
        blank=True,
        help_text="Reconcile outcome (applied, unchanged, stale, ...)",
    )
    received_at = models.DateTimeField(auto_now_add=True)
    processed_at = models.DateTimeField(null=True, blank=True)
    error = models.TextField(
        blank=True,
        help_text="Error message if processing failed",
    )

    # Processing metrics
    processing_duration_ms = models.PositiveIntegerField(
        null=True,
        blank=True,
        help_text="Time to process webhook in milliseconds",
    )

    class Meta:
        ordering = ["-received_at"]
        indexes = [
            models.Index(
                fields=["status", "received_at"], name="pos_webhook_status_recv_idx"
            ),
            models.Index(
                fields=["external_reference_id"], name="pos_webhook_ext_ref_idx"
            ),
        ]

    def __str__(self) -> str:
        return f"clover:{self.external_reference_id or '-'} ({self.status})"


class PushJobStatus(models.TextChoices):
    """Push job lifecycle."""

    QUEUED = "queued", "Queued"
    ACTIVE = "active", "Active"
    COMPLETED = "completed", "Completed"
    FAILED = "failed", "Failed"


class PushJob(models.Model):
    """
    Durable work item: push one local order to Clover.

    `order_pk` is a plain UUID rather than a foreign key so failed jobs
    survive for inspection even if the order is removed.
    """

    id = models.BigAutoField(primary_key=True)
    order_pk = models.UUIDField(db_index=True)
    order_code = models.CharField(
        max_length=32,
        blank=True,
        help_text="Human-readable order code (for logs)",
    )
    force = models.BooleanField(
        default=False,
        help_text="Push even when CLOVER_SYNC_ENABLED is off",
    )

    status = models.CharField(
        max_length=20,
        choices=PushJobStatus.choices,
        default=PushJobStatus.QUEUED,
    )
    attempts = models.PositiveIntegerField(default=0)
    max_attempts = models.PositiveIntegerField(default=5)
    next_attempt_at = models.DateTimeField()

    created_at = models.DateTimeField(auto_now_add=True)
    started_at = models.DateTimeField(null=True, blank=True)
    finished_at = models.DateTimeField(null=True, blank=True)

    last_error = models.TextField(blank=True)
    result = models.CharField(
        max_length=255,
        blank=True,
        help_text="Clover order ID or skip reason",
    )

    class Meta:
        ordering = ["next_attempt_at", "id"]
        indexes = [
            models.Index(
                fields=["status", "next_attempt_at"], name="pos_pushjob_status_next_idx"
            ),
            models.Index(
                fields=["status", "finished_at"], name="pos_pushjob_status_done_idx"
            ),
        ]

    def __str__(self) -> str:
        return f"push {self.order_code or self.order_pk} ({self.status})"
