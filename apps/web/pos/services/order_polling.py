"""
Polling fallback - replays recent Clover order changes through the reconciler.

Webhooks can be lost (deploys, outages, Clover hiccups). Every run asks
Clover for orders modified in a trailing window and feeds each one
through the same mapping and reconcile path the webhook uses, so a
replayed change that was already applied is a no-op.
"""

import logging
from datetime import datetime, timedelta
from typing import Any

from django.conf import settings
from django.utils import timezone

from asgiref.sync import async_to_sync
from pydantic import ValidationError
from tabletop_schemas import CloverOrderRecord, PollResult

from apps.web.orders.models import HistorySource
from apps.web.orders.services import send_status_changed
from apps.web.pos.adapters.clover import CloverAdapter
from apps.web.pos.services.reconciler import reconcile
from apps.web.pos.services.status_mapping import map_external_state

logger = logging.getLogger(__name__)


def default_since(now: datetime | None = None) -> datetime:
    """Start of the default polling window."""
    window = timedelta(minutes=settings.CLOVER_POLL_WINDOW_MINUTES)
    return (now or timezone.now()) - window


async def _fetch_changed_orders(
    since: datetime,
    until: datetime | None,
    client: CloverAdapter | None,
) -> list[dict[str, Any]]:
    if client is not None:
        return await client.list_orders_modified_between(since, until)

    async with CloverAdapter() as adapter:
        return await adapter.list_orders_modified_between(since, until)


def _reconcile_record(raw: dict[str, Any]) -> bool:
    """
    Reconcile one raw Clover order; True when a local status changed.

    Raises:
        ValidationError: If the record is malformed.
    """
    record = CloverOrderRecord.model_validate(raw)

    reference = (record.external_reference_id or "").strip()
    if not reference:
        return False

    mapped_status = map_external_state(record.state)
    if mapped_status is None:
        return False

    result = reconcile(
        reference,
        mapped_status,
        event_timestamp=record.modified_time,
        source=HistorySource.POLL,
    )
    if not result.applied or result.order is None:
        return False

    send_status_changed(result.order, result.previous_status or "", HistorySource.POLL)
    return True


def poll_since(
    since: datetime | None = None,
    until: datetime | None = None,
    client: CloverAdapter | None = None,
) -> PollResult:
    """
    Reconcile Clover orders modified after `since`.

    Args:
        since: Window start (default: now - CLOVER_POLL_WINDOW_MINUTES).
        until: Optional window end.
        client: Clover adapter to use (default: one built from settings).

    Returns:
        PollResult with the number of orders Clover returned and the number
        of local orders whose status changed.

    Raises:
        POSError: If the Clover query fails. Per-order failures (including
            malformed records) are logged and skipped instead.
    """
    since = since or default_since()
    records = async_to_sync(_fetch_changed_orders)(since, until, client)

    updated = 0
    for raw in records:
        try:
            if _reconcile_record(raw):
                updated += 1
        except ValidationError as e:
            logger.warning(
                "Skipping malformed Clover order %s (%s): %s",
                raw.get("id") if isinstance(raw, dict) else None,
                raw.get("externalReferenceId") if isinstance(raw, dict) else None,
                e,
            )
        except Exception as e:
            logger.exception(
                "Polling failed to reconcile order %s (Clover %s): %s",
                raw.get("externalReferenceId"),
                raw.get("id"),
                e,
            )

    logger.info(
        "Clover poll since %s: checked %d, updated %d",
        since.isoformat(),
        len(records),
        updated,
    )
    return PollResult(checked=len(records), updated=updated, since=since)
