"""POS services - Clover status reconciliation, polling, and order push."""

from apps.web.pos.services.location import get_location_id, update_location_id
from apps.web.pos.services.order_polling import poll_since
from apps.web.pos.services.order_push import OrderPushError, push_order_to_clover
from apps.web.pos.services.push_queue import enqueue_push
from apps.web.pos.services.reconciler import (
    ReconcileOutcome,
    ReconcileResult,
    reconcile,
)
from apps.web.pos.services.status_mapping import map_external_state
from apps.web.pos.services.webhook_processor import handle_order_event

__all__ = [
    "OrderPushError",
    "ReconcileOutcome",
    "ReconcileResult",
    "enqueue_push",
    "get_location_id",
    "handle_order_event",
    "map_external_state",
    "poll_since",
    "push_order_to_clover",
    "reconcile",
    "update_location_id",
]
