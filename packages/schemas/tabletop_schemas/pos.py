"""Clover POS schemas - data contracts for the Clover REST API and push queue."""

from datetime import UTC, datetime
from typing import Any, Literal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

# Clover sends some timestamps as epoch seconds and others as epoch millis.
_EPOCH_MILLIS_THRESHOLD = 10**12


def epoch_to_datetime(value: Any) -> Any:
    """
    Convert an epoch timestamp (seconds or milliseconds) to an aware UTC datetime.

    Non-numeric values are returned unchanged so pydantic can parse ISO strings.
    """
    if isinstance(value, bool) or value is None:
        return value
    if isinstance(value, str) and value.strip().lstrip("-").isdigit():
        value = int(value.strip())
    if isinstance(value, int | float):
        seconds = value / 1000 if abs(value) >= _EPOCH_MILLIS_THRESHOLD else value
        return datetime.fromtimestamp(seconds, tz=UTC)
    return value


# =============================================================================
# Clover REST resources (read)
# =============================================================================


class CloverReference(BaseModel):
    """`{"id": "..."}` reference object used all over the Clover API."""

    model_config = ConfigDict(extra="ignore")

    id: str = ""


class CloverDevice(BaseModel):
    """A device registered to the merchant (from /devices)."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    id: str = ""
    serial: str = ""
    location: CloverReference | None = None


class CloverOrderRecord(BaseModel):
    """An order as returned by GET /v3/merchants/{mId}/orders."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    id: str
    external_reference_id: str | None = Field(
        default=None, alias="externalReferenceId"
    )
    state: str | None = None
    modified_time: datetime | None = Field(default=None, alias="modifiedTime")

    @field_validator("modified_time", mode="before")
    @classmethod
    def _parse_modified_time(cls, value: Any) -> Any:
        return epoch_to_datetime(value)


class CloverLineItemRecord(BaseModel):
    """A line item as returned by GET .../orders/{orderId}/line_items."""

    model_config = ConfigDict(extra="ignore")

    id: str
    name: str | None = None
    modifier_ids: list[str] = Field(default_factory=list, alias="modifications")

    @field_validator("modifier_ids", mode="before")
    @classmethod
    def _flatten_modifications(cls, value: Any) -> Any:
        # {"elements": [{"id": ..., "modifier": {"id": ...}}]} -> modifier ids
        if isinstance(value, dict):
            value = value.get("elements", [])
        return [
            str((row.get("modifier") or {}).get("id", ""))
            for row in value or []
            if isinstance(row, dict)
        ]


# =============================================================================
# Clover REST payloads (write)
# =============================================================================


class CloverOrderSource(BaseModel):
    """Where the order came from; shows in Clover's Online Orders queue."""

    type: Literal["ONLINE"] = "ONLINE"
    source_text: str = Field(alias="sourceText")

    model_config = ConfigDict(populate_by_name=True)


class CloverOrderBlock(BaseModel):
    """Body of POST /v3/merchants/{mId}/orders."""

    model_config = ConfigDict(populate_by_name=True)

    external_reference_id: str = Field(alias="externalReferenceId")
    total: int = Field(description="Order total in cents")
    state: Literal["open"] = "open"
    note: str | None = None
    source: CloverOrderSource | None = None


class CloverModification(BaseModel):
    """A modifier attached to a line item."""

    modifier_id: str


class CloverLineItem(BaseModel):
    """One row of POST .../bulk_line_items."""

    model_config = ConfigDict(populate_by_name=True)

    name: str
    price: int = Field(description="Unit price in cents")
    unit_qty: int = Field(alias="unitQty", description="Quantity in thousandths")
    taxable: bool = True
    item: CloverReference | None = None
    modifications: list[CloverModification] = Field(default_factory=list, exclude=True)


class CloverTender(BaseModel):
    """Tender attached to an order paid online (card orders only)."""

    type: Literal["CASH", "CARD"] = "CARD"
    amount: int = Field(description="Amount in cents")
    currency: str = "USD"


class CloverOrderDraft(BaseModel):
    """Everything needed to materialize one local order in Clover."""

    order: CloverOrderBlock
    line_items: list[CloverLineItem] = Field(default_factory=list)
    tender: CloverTender | None = None


# =============================================================================
# Push queue / polling contracts
# =============================================================================


class PushJobData(BaseModel):
    """Work item carried by the order push queue."""

    order_pk: UUID
    order_code: str | None = None
    force: bool = False


class PushTriggerResponse(BaseModel):
    """Response for POST /api/clover/push-order/{order_id}."""

    model_config = ConfigDict(populate_by_name=True)

    enqueued: bool
    order_id: str = Field(serialization_alias="orderId")
    force: bool
    message: str | None = None


class PollResult(BaseModel):
    """Outcome of one polling pass."""

    checked: int = 0
    updated: int = 0
    since: datetime


__all__ = [
    "CloverDevice",
    "CloverLineItem",
    "CloverLineItemRecord",
    "CloverModification",
    "CloverOrderBlock",
    "CloverOrderDraft",
    "CloverOrderRecord",
    "CloverOrderSource",
    "CloverReference",
    "CloverTender",
    "PollResult",
    "PushJobData",
    "PushTriggerResponse",
    "epoch_to_datetime",
]
