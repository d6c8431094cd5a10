"""
Order reconciler - applies Clover-driven status changes to local orders.

Webhooks and the polling job both end up here. A change is applied only
when it is a real transition and not older than the last applied one;
every applied change writes exactly one OrderStatusHistory row in the
same transaction as the status update.
"""

import logging
from dataclasses import dataclass
from datetime import UTC, datetime
from enum import Enum
from typing import TYPE_CHECKING

from django.contrib.auth import get_user_model
from django.contrib.auth.hashers import make_password
from django.db import transaction
from django.utils import timezone

from tabletop_schemas import CloverActor

from apps.web.orders.models import (
    HistorySource,
    Order,
    OrderStatus,
    OrderStatusHistory,
)

if TYPE_CHECKING:
    from apps.web.core.models import User

logger = logging.getLogger(__name__)

DEFAULT_CHANGED_BY = {
    HistorySource.WEBHOOK: "Clover Webhook",
    HistorySource.POLL: "Clover Poll",
}


class ReconcileOutcome(str, Enum):
    """What reconcile() did with an incoming status."""

    APPLIED = "applied"
    UNCHANGED = "unchanged"
    STALE = "stale"
    NOT_FOUND = "not_found"


@dataclass
class ReconcileResult:
    outcome: ReconcileOutcome
    order: Order | None = None
    previous_status: str | None = None

    @property
    def applied(self) -> bool:
        return self.outcome is ReconcileOutcome.APPLIED


def normalize_event_time(value: datetime | None) -> datetime:
    """Return the event time as an aware UTC datetime (now if missing)."""
    if value is None:
        return timezone.now()
    if timezone.is_naive(value):
        return timezone.make_aware(value, UTC)
    return value.astimezone(UTC)


def is_stale(event_time: datetime, last_applied: datetime | None) -> bool:
    """
    True if the event happened before the last applied transition.

    Clover event times have second precision, so the comparison is made
    against the last applied time truncated to the second.
    """
    if last_applied is None:
        return False
    return event_time < last_applied.replace(microsecond=0)


def upsert_clover_actor(
    actor: CloverActor | None, merchant_id: str | None
) -> "User | None":
    """
    Mirror a Clover employee as a local user, keyed by (merchant, employee).

    Mirrored users get an unusable password; they exist only so history
    rows can point at someone.
    """
    if actor is None or not actor.id:
        return None

    User = get_user_model()
    merchant = (merchant_id or "")[:64]
    employee_id = actor.id[:64]
    display_name = (actor.display_name or "").strip()[:150]

    defaults = {"first_name": display_name} if display_name else {}
    user, created = User.objects.update_or_create(
        clover_merchant_id=merchant,
        clover_employee_id=employee_id,
        defaults=defaults,
        create_defaults={
            "username": f"clover-{merchant or 'na'}-{employee_id}"[:150],
            "email": f"{employee_id}@clover.local",
            "first_name": display_name,
            "password": make_password(None),
        },
    )
    if created:
        logger.info("Mirrored Clover employee %s as user %s", employee_id, user.pk)
    return user


def reconcile(
    external_reference_id: str,
    mapped_status: OrderStatus,
    actor: CloverActor | None = None,
    event_timestamp: datetime | None = None,
    merchant_id: str | None = None,
    source: HistorySource = HistorySource.WEBHOOK,
) -> ReconcileResult:
    """
    Apply a mapped Clover status to the local order.

    Args:
        external_reference_id: Our order code, as echoed by Clover.
        mapped_status: Result of map_external_state().
        actor: Clover employee who made the change, if known.
        event_timestamp: When the change happened in Clover (default: now).
        merchant_id: Clover merchant the actor belongs to.
        source: Which ingestion path is calling (recorded in history).

    Returns:
        ReconcileResult. Only APPLIED results have written anything.
    """
    event_time = normalize_event_time(event_timestamp)

    with transaction.atomic():
        order = (
            Order.objects.select_for_update()
            .filter(order_code=external_reference_id)
            .first()
        )

        if order is None:
            logger.warning(
                "No local order for Clover reference %s (%s)",
                external_reference_id,
                source,
            )
            return ReconcileResult(ReconcileOutcome.NOT_FOUND)

        previous_status = order.status

        if previous_status == mapped_status:
            return ReconcileResult(ReconcileOutcome.UNCHANGED, order, previous_status)

        if is_stale(event_time, order.status_event_at):
            logger.info(
                "Ignoring stale Clover event for %s: %s at %s (last change %s)",
                external_reference_id,
                mapped_status,
                event_time.isoformat(),
                order.status_event_at.isoformat() if order.status_event_at else "-",
            )
            return ReconcileResult(ReconcileOutcome.STALE, order, previous_status)

        user = upsert_clover_actor(actor, merchant_id)

        order.status = mapped_status
        order.status_event_at = event_time
        order.clover_last_sync_at = timezone.now()
        order.save(
            update_fields=[
                "status",
                "status_event_at",
                "clover_last_sync_at",
                "updated_at",
            ]
        )

        display_name = (actor.display_name if actor else None) or ""
        changed_by = display_name[:200] or DEFAULT_CHANGED_BY.get(source)
        OrderStatusHistory.objects.create(
            order=order,
            status=mapped_status,
            changed_by=changed_by,
            user=user,
            source=source,
            timestamp=event_time,
        )

    logger.info(
        "Order %s status %s -> %s (%s)",
        external_reference_id,
        previous_status,
        mapped_status,
        source,
    )
    return ReconcileResult(ReconcileOutcome.APPLIED, order, previous_status)
