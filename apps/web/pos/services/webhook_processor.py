"""
Clover order webhook processor.

Runs after the endpoint has verified the signature:
1. Drop events for other merchants
2. Refresh the cached location id if the payload carries one
3. Map the Clover state and reconcile
4. Record the delivery (POSWebhookEvent) if it changed an order or failed

Benign no-ops (unknown order, replay, stale or unmapped state) write
nothing to the database.
"""

import logging
import time
from typing import Any

from django.conf import settings
from django.utils import timezone

from asgiref.sync import async_to_sync
from tabletop_schemas import CloverOrderWebhook

from apps.web.orders.models import HistorySource
from apps.web.orders.services import send_status_changed
from apps.web.pos.models import POSWebhookEvent, WebhookStatus
from apps.web.pos.services.location import update_location_id
from apps.web.pos.services.reconciler import ReconcileOutcome, reconcile
from apps.web.pos.services.status_mapping import map_external_state

logger = logging.getLogger(__name__)

# Outcomes that happen before reconcile() is reached
OUTCOME_IGNORED_MERCHANT = "ignored_merchant"
OUTCOME_NOT_ORDER_EVENT = "not_order_event"
OUTCOME_UNMAPPED_STATE = "unmapped_state"


def _merchant_matches(envelope: CloverOrderWebhook) -> bool:
    expected = settings.CLOVER_MERCHANT_ID
    if not expected:
        return True
    return envelope.merchant_id == expected


def handle_order_event(
    envelope: CloverOrderWebhook,
    payload: dict[str, Any],
    signature: str = "",
) -> str:
    """
    Process one verified Clover order webhook.

    Args:
        envelope: Validated webhook envelope.
        payload: Parsed JSON body (stored for the audit trail).
        signature: Signature header as received.

    Returns:
        Outcome label: a ReconcileOutcome value or one of the OUTCOME_*
        constants for events that never reached the reconciler.

    Raises:
        Exception: Anything raised while processing; the delivery is
            recorded as failed first so the audit trail shows it.
    """
    start_time = time.monotonic()

    try:
        outcome = _process(envelope)
    except Exception as e:
        webhook = _record(
            envelope,
            payload,
            signature,
            WebhookStatus.FAILED,
            start_time,
            error=str(e),
        )
        logger.exception("Failed to process Clover webhook %s: %s", webhook.id, e)
        raise

    if outcome == ReconcileOutcome.APPLIED.value:
        _record(
            envelope,
            payload,
            signature,
            WebhookStatus.PROCESSED,
            start_time,
            outcome=outcome,
        )

    logger.info(
        "Processed Clover webhook (%s) -> %s",
        (envelope.order.external_reference_id if envelope.order else None) or "-",
        outcome,
    )
    return outcome


def _process(envelope: CloverOrderWebhook) -> str:
    if not _merchant_matches(envelope):
        logger.warning(
            "Ignoring Clover webhook for merchant %s (expected %s)",
            envelope.merchant_id,
            settings.CLOVER_MERCHANT_ID,
        )
        return OUTCOME_IGNORED_MERCHANT

    if envelope.location_id:
        async_to_sync(update_location_id)(envelope.location_id)

    if not envelope.is_order_event or envelope.order is None:
        return OUTCOME_NOT_ORDER_EVENT

    order = envelope.order
    mapped_status = map_external_state(order.state)
    if mapped_status is None:
        logger.info(
            "Clover webhook for %s has unhandled state %r, skipping",
            order.external_reference_id,
            order.state,
        )
        return OUTCOME_UNMAPPED_STATE

    result = reconcile(
        order.external_reference_id or "",
        mapped_status,
        actor=order.employee,
        event_timestamp=envelope.created,
        merchant_id=envelope.merchant_id,
        source=HistorySource.WEBHOOK,
    )

    if result.applied and result.order is not None:
        send_status_changed(
            result.order, result.previous_status or "", HistorySource.WEBHOOK
        )

    return result.outcome.value


def _record(
    envelope: CloverOrderWebhook,
    payload: dict[str, Any],
    signature: str,
    status: str,
    start_time: float,
    outcome: str = "",
    error: str = "",
) -> POSWebhookEvent:
    # Envelope strings are unbounded; clip them to the column sizes
    order = envelope.order
    reference = (order.external_reference_id or "") if order else ""
    state = (order.state or "") if order else ""
    return POSWebhookEvent.objects.create(
        event_type=(envelope.type or "")[:100],
        merchant_id=(envelope.merchant_id or "")[:64],
        external_reference_id=reference[:64],
        clover_state=state[:50],
        payload=payload,
        signature=signature[:500],
        status=status,
        outcome=outcome[:20],
        error=error,
        processed_at=timezone.now(),
        processing_duration_ms=int((time.monotonic() - start_time) * 1000),
    )
