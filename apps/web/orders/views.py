"""
Order status API views - staff endpoints for status changes and history.
"""

import json
from typing import Any
from uuid import UUID

from django.http import HttpRequest, JsonResponse
from django.views.decorators.http import require_GET, require_POST

from pydantic import ValidationError as PydanticValidationError

from apps.web.core.decorators import staff_required_json
from apps.web.orders.models import Order
from apps.web.orders.serializers import (
    OrderHistoryResponse,
    OrderStatusResponse,
    OrderStatusUpdateRequest,
    StatusHistoryEntrySchema,
)
from apps.web.orders.services import set_order_status


def _json_response(data: dict[str, Any], status: int = 200) -> JsonResponse:
    return JsonResponse(data, status=status)


@require_GET
@staff_required_json
def order_history(_request: HttpRequest, order_id: UUID) -> JsonResponse:
    """
    GET /api/orders/{order_id}/history

    Response: OrderHistoryResponse schema (200) or 404
    """
    order = Order.objects.prefetch_related("status_history").filter(pk=order_id).first()
    if order is None:
        return _json_response({"error": "Order not found"}, status=404)

    response = OrderHistoryResponse(
        order_id=order.pk,
        order_code=order.order_code,
        status=order.status,
        history=[
            StatusHistoryEntrySchema.model_validate(entry)
            for entry in order.status_history.all()
        ],
    )
    return _json_response(response.model_dump(mode="json"))


@require_POST
@staff_required_json
def update_order_status(request: HttpRequest, order_id: UUID) -> JsonResponse:
    """
    POST /api/orders/{order_id}/status

    Request body: {"status": "ready"}
    Response: OrderStatusResponse schema (200), 400 or 404
    """
    try:
        body = json.loads(request.body)
        data = OrderStatusUpdateRequest.model_validate(body)
    except json.JSONDecodeError:
        return _json_response({"error": "Invalid JSON"}, status=400)
    except PydanticValidationError as e:
        return _json_response(
            {"error": "Validation failed", "details": e.errors(include_url=False)},
            status=400,
        )

    try:
        order, changed = set_order_status(order_id, data.status, user=request.user)
    except Order.DoesNotExist:
        return _json_response({"error": "Order not found"}, status=404)

    response = OrderStatusResponse(
        order_id=order.pk,
        order_code=order.order_code,
        status=order.status,
        changed=changed,
        clover_order_id=order.clover_order_id or None,
        clover_last_sync_at=order.clover_last_sync_at,
    )
    return _json_response(response.model_dump(mode="json"))
