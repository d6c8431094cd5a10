"""
Pydantic schemas for the order status API.
"""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from apps.web.orders.models import OrderStatus


class OrderStatusUpdateRequest(BaseModel):
    """Request body for POST /api/orders/{order_id}/status."""

    model_config = ConfigDict(extra="forbid")

    status: OrderStatus


class StatusHistoryEntrySchema(BaseModel):
    """One row of an order's status history."""

    model_config = ConfigDict(from_attributes=True)

    status: str
    changed_by: str | None = None
    source: str
    timestamp: datetime


class OrderStatusResponse(BaseModel):
    """Response for order status reads and updates."""

    order_id: UUID
    order_code: str
    status: str
    changed: bool | None = None
    clover_order_id: str | None = None
    clover_last_sync_at: datetime | None = None


class OrderHistoryResponse(BaseModel):
    """Response for GET /api/orders/{order_id}/history."""

    order_id: UUID
    order_code: str
    status: str
    history: list[StatusHistoryEntrySchema] = Field(default_factory=list)
