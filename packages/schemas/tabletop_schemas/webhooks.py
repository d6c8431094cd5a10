"""Webhook payload schemas for Clover order events."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from tabletop_schemas.pos import CloverReference, epoch_to_datetime


class CloverVerificationHandshake(BaseModel):
    """
    One-time handshake Clover sends when a webhook URL is registered.

    The endpoint must echo the code back so the URL can be activated.
    """

    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    verification_code: str = Field(alias="verificationCode")


class CloverActor(BaseModel):
    """Employee who changed the order on the Clover device."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    id: str | None = None
    display_name: str | None = Field(default=None, alias="displayName")


class CloverWebhookOrder(BaseModel):
    """The `order` block of a Clover order-state webhook."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    id: str | None = None
    external_reference_id: str | None = Field(
        default=None, alias="externalReferenceId"
    )
    state: str | None = None
    employee: CloverActor | None = None
    location: CloverReference | None = None

    @field_validator("external_reference_id", "state", mode="before")
    @classmethod
    def _blank_to_none(cls, value: Any) -> Any:
        if isinstance(value, str) and not value.strip():
            return None
        return value


class CloverOrderWebhook(BaseModel):
    """
    Clover order-state webhook envelope.

    `created` is the event time. Clover documents it in epoch seconds but
    millisecond values are accepted too.
    """

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    type: str | None = None
    merchant_id: str | None = Field(default=None, alias="merchantId")
    created: datetime | None = None
    order: CloverWebhookOrder | None = None

    @field_validator("created", mode="before")
    @classmethod
    def _parse_created(cls, value: Any) -> Any:
        return epoch_to_datetime(value)

    @property
    def is_order_event(self) -> bool:
        """True when the envelope carries an order reference and a state."""
        return bool(
            self.order
            and self.order.external_reference_id
            and self.order.state
        )

    @property
    def location_id(self) -> str | None:
        if self.order and self.order.location and self.order.location.id:
            return self.order.location.id
        return None
