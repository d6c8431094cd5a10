import uuid

from django.db import migrations, models


class Migration(migrations.Migration):
    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="POSWebhookEvent",
            fields=[
                (
                    "id",
                    models.UUIDField(
                        default=uuid.uuid4,
                        editable=False,
                        primary_key=True,
                        serialize=False,
                    ),
                ),
                (
                    "event_type",
                    models.CharField(
                        blank=True,
                        help_text="Event type from Clover, if present",
                        max_length=100,
                    ),
                ),
                ("merchant_id", models.CharField(blank=True, max_length=64)),
                (
                    "external_reference_id",
                    models.CharField(
                        blank=True,
                        help_text="Our order code as echoed by Clover",
                        max_length=64,
                    ),
                ),
                ("clover_state", models.CharField(blank=True, max_length=50)),
                ("payload", models.JSONField(help_text="Parsed webhook payload")),
                (
                    "signature",
                    models.CharField(
                        blank=True,
                        help_text="Signature header as received",
                        max_length=500,
                    ),
                ),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("pending", "Pending"),
                            ("processed", "Processed"),
                            ("failed", "Failed"),
                        ],
                        default="pending",
                        max_length=20,
                    ),
                ),
                (
                    "outcome",
                    models.CharField(
                        blank=True,
                        help_text="Reconcile outcome (applied, unchanged, stale, ...)",
                        max_length=20,
                    ),
                ),
                ("received_at", models.DateTimeField(auto_now_add=True)),
                ("processed_at", models.DateTimeField(blank=True, null=True)),
                (
                    "error",
                    models.TextField(
                        blank=True, help_text="Error message if processing failed"
                    ),
                ),
                (
                    "processing_duration_ms",
                    models.PositiveIntegerField(
                        blank=True,
                        help_text="Time to process webhook in milliseconds",
                        null=True,
                    ),
                ),
            ],
            options={
                "ordering": ["-received_at"],
                "indexes": [
                    models.Index(
                        fields=["status", "received_at"],
                        name="pos_webhook_status_recv_idx",
                    ),
                    models.Index(
                        fields=["external_reference_id"],
                        name="pos_webhook_ext_ref_idx",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="PushJob",
            fields=[
                ("id", models.BigAutoField(primary_key=True, serialize=False)),
                ("order_pk", models.UUIDField(db_index=True)),
                (
                    "order_code",
                    models.CharField(
                        blank=True,
                        help_text="Human-readable order code (for logs)",
                        max_length=32,
                    ),
                ),
                (
                    "force",
                    models.BooleanField(
                        default=False,
                        help_text="Push even when CLOVER_SYNC_ENABLED is off",
                    ),
                ),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("queued", "Queued"),
                            ("active", "Active"),
                            ("completed", "Completed"),
                            ("failed", "Failed"),
                        ],
                        default="queued",
                        max_length=20,
                    ),
                ),
                ("attempts", models.PositiveIntegerField(default=0)),
                ("max_attempts", models.PositiveIntegerField(default=5)),
                ("next_attempt_at", models.DateTimeField()),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("started_at", models.DateTimeField(blank=True, null=True)),
                ("finished_at", models.DateTimeField(blank=True, null=True)),
                ("last_error", models.TextField(blank=True)),
                (
                    "result",
                    models.CharField(
                        blank=True,
                        help_text="Clover order ID or skip reason",
                        max_length=255,
                    ),
                ),
            ],
            options={
                "ordering": ["next_attempt_at", "id"],
                "indexes": [
                    models.Index(
                        fields=["status", "next_attempt_at"],
                        name="pos_pushjob_status_next_idx",
                    ),
                    models.Index(
                        fields=["status", "finished_at"],
                        name="pos_pushjob_status_done_idx",
                    ),
                ],
            },
        ),
    ]
