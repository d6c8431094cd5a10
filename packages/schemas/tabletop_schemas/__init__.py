"""Tabletop Schemas - Pydantic models for Clover data contracts."""

from tabletop_schemas.pos import (
    CloverDevice,
    CloverLineItem,
    CloverLineItemRecord,
    CloverModification,
    CloverOrderBlock,
    CloverOrderDraft,
    CloverOrderRecord,
    CloverOrderSource,
    CloverReference,
    CloverTender,
    PollResult,
    PushJobData,
    PushTriggerResponse,
    epoch_to_datetime,
)
from tabletop_schemas.webhooks import (
    CloverActor,
    CloverOrderWebhook,
    CloverVerificationHandshake,
    CloverWebhookOrder,
)

__all__ = [
    # Clover REST
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
    # Queue / polling
    "PollResult",
    "PushJobData",
    "PushTriggerResponse",
    # Webhooks
    "CloverActor",
    "CloverOrderWebhook",
    "CloverVerificationHandshake",
    "CloverWebhookOrder",
    # Helpers
    "epoch_to_datetime",
]
