"""
Clover sync API views - staff-triggered polling and order pushes.

- GET  /api/clover/poll-orders[?since=ISO-8601]
- POST /api/clover/push-order/<order_id>[?force=true]
"""

import logging
from datetime import UTC
from typing import Any
from uuid import UUID

from django.conf import settings
from django.http import HttpRequest, JsonResponse
from django.utils import timezone
from django.utils.dateparse import parse_datetime
from django.views.decorators.http import require_GET, require_POST

from tabletop_schemas import PushTriggerResponse

from apps.web.core.decorators import staff_required_json
from apps.web.orders.models import Order
from apps.web.pos.exceptions import POSError
from apps.web.pos.services.order_polling import poll_since
from apps.web.pos.services.push_queue import enqueue_push

logger = logging.getLogger(__name__)

TRUTHY = {"1", "true", "yes", "on"}


def _json_response(data: dict[str, Any], status: int = 200) -> JsonResponse:
    return JsonResponse(data, status=status)


@require_GET
@staff_required_json
def poll_orders(request: HttpRequest) -> JsonResponse:
    """
    Run one polling pass now.

    GET /api/clover/poll-orders?since=2025-06-29T17:00:00Z
    """
    since = None
    since_param = request.GET.get("since", "").strip()
    if since_param:
        try:
            since = parse_datetime(since_param)
        except ValueError:
            since = None
        if since is None:
            return _json_response(
                {"error": "Invalid 'since' (expected ISO-8601 datetime)"}, status=400
            )
        if timezone.is_naive(since):
            since = timezone.make_aware(since, UTC)

    try:
        result = poll_since(since=since)
    except POSError as e:
        logger.error("Clover poll failed: %s", e.message)
        return _json_response({"error": "Clover request failed"}, status=502)

    return _json_response(result.model_dump(mode="json"))


@require_POST
@staff_required_json
def push_order(request: HttpRequest, order_id: UUID) -> JsonResponse:
    """
    Queue a push of one order to Clover.

    POST /api/clover/push-order/<order_id>?force=true

    Returns 202 either way; `enqueued` is False when sync is disabled and
    the request was not forced.
    """
    force = request.GET.get("force", "").lower() in TRUTHY

    order = Order.objects.filter(pk=order_id).only("id", "order_code").first()
    if order is None:
        return _json_response({"error": "Order not found"}, status=404)

    if not settings.CLOVER_SYNC_ENABLED and not force:
        response = PushTriggerResponse(
            enqueued=False,
            order_id=str(order.pk),
            force=force,
            message="Clover sync is disabled; pass force=true to push anyway",
        )
        return _json_response(
            response.model_dump(mode="json", by_alias=True), status=202
        )

    enqueue_push(order.pk, order_code=order.order_code, force=force)

    response = PushTriggerResponse(enqueued=True, order_id=str(order.pk), force=force)
    return _json_response(
        response.model_dump(mode="json", by_alias=True, exclude_none=True),
        status=202,
    )
