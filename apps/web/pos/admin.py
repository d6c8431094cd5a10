"""Admin registration for Clover integration models."""

from django.contrib import admin
from django.utils import timezone

from apps.web.pos.models import POSWebhookEvent, PushJob, PushJobStatus


@admin.register(POSWebhookEvent)
class POSWebhookEventAdmin(admin.ModelAdmin):  # type: ignore[type-arg]
    """Admin for Clover webhook deliveries."""

    list_display = [
        "id",
        "external_reference_id",
        "clover_state",
        "status",
        "outcome",
        "received_at",
        "processed_at",
    ]
    list_filter = ["status", "outcome"]
    search_fields = ["external_reference_id", "merchant_id"]
    readonly_fields = [
        "id",
        "received_at",
        "processed_at",
        "processing_duration_ms",
    ]
    ordering = ["-received_at"]
    date_hierarchy = "received_at"


@admin.register(PushJob)
class PushJobAdmin(admin.ModelAdmin):  # type: ignore[type-arg]
    """Admin for the Clover order push queue."""

    list_display = [
        "id",
        "order_code",
        "status",
        "attempts",
        "max_attempts",
        "next_attempt_at",
        "finished_at",
        "result",
    ]
    list_filter = ["status", "force"]
    search_fields = ["order_code", "order_pk"]
    readonly_fields = ["created_at", "started_at", "finished_at"]
    ordering = ["-created_at"]
    actions = ["retry_now"]

    @admin.action(description="Requeue selected jobs now")
    def retry_now(self, request, queryset):  # type: ignore[no-untyped-def]
        updated = queryset.exclude(status=PushJobStatus.ACTIVE).update(
            status=PushJobStatus.QUEUED,
            attempts=0,
            next_attempt_at=timezone.now(),
            finished_at=None,
        )
        self.message_user(request, f"Requeued {updated} job(s).")
