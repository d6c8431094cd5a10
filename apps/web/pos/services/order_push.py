"""
Clover order push - materializes one local order in Clover.

Handles:
1. Converting an Order to Clover's order + bulk line item format
2. Creating the order, or resuming one an earlier attempt created
3. Adding whatever line items, modifiers and tender Clover is missing
4. Saving the Clover order ID and completion time on the local order
"""

import contextlib
import logging
from decimal import ROUND_HALF_UP, Decimal
from typing import TYPE_CHECKING
from uuid import UUID
from zoneinfo import ZoneInfo

from django.conf import settings
from django.utils import timezone

from asgiref.sync import async_to_sync
from tabletop_schemas import (
    CloverLineItem,
    CloverModification,
    CloverOrderBlock,
    CloverOrderDraft,
    CloverOrderSource,
    CloverReference,
    CloverTender,
)

from apps.web.orders.models import Order, OrderType, PaymentMethod
from apps.web.pos.adapters.clover import CloverAdapter
from apps.web.pos.exceptions import (
    LocationDiscoveryError,
    POSAPIError,
    POSAuthError,
    POSError,
    POSOrderError,
)
from apps.web.pos.services.location import get_location_id

if TYPE_CHECKING:
    from apps.web.orders.models import OrderLineItem

logger = logging.getLogger(__name__)

NOTE_SEPARATOR = " · "


class OrderPushError(POSOrderError):
    """Error pushing an order to Clover; `is_retryable` steers the push queue."""

    def __init__(
        self,
        message: str,
        order_id: str | None = None,
        is_retryable: bool = True,
    ) -> None:
        super().__init__(message, order_id=order_id)
        self.is_retryable = is_retryable


def to_cents(amount: Decimal) -> int:
    return int((amount * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def to_unit_qty(quantity: Decimal) -> int:
    """Clover quantities are integers in thousandths (1000 = 1.000)."""
    return int((quantity * 1000).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def format_schedule(order: Order) -> str:
    if order.scheduled_for is None:
        return "ASAP"

    local = timezone.localtime(
        order.scheduled_for, ZoneInfo(settings.CLOVER_DISPLAY_TIME_ZONE)
    )
    hour = local.hour % 12 or 12
    meridiem = "AM" if local.hour < 12 else "PM"
    return f"Scheduled @ {local.month}/{local.day} {hour}:{local.minute:02d} {meridiem}"


def build_order_note(order: Order) -> str:
    """
    Note shown to staff on the Clover ticket.

    e.g. "ORD-20250629-F3D8UI · Contains alcohol · Scheduled @ 6/29 5:30 PM"
    """
    parts = [order.order_code]
    if order.contains_alcohol:
        parts.append("Contains alcohol")
    if order.order_type == OrderType.GOLF:
        parts.append("Golf order")
    parts.append(format_schedule(order))
    return NOTE_SEPARATOR.join(parts)


def build_clover_order(
    order: Order,
    line_items: list["OrderLineItem"],
    location_id: str,
) -> CloverOrderDraft:
    """
    Convert a local Order to the payloads Clover needs.

    Catalogue items (with `clover_item_id`) are taxable and carry their
    modifiers; loose items, the delivery fee and the tip are non-taxable.

    Raises:
        OrderPushError: If the location id is blank.
    """
    if not location_id.strip():
        raise OrderPushError(
            "Clover location id is blank", str(order.pk), is_retryable=False
        )

    items: list[CloverLineItem] = []
    for line in line_items:
        if line.clover_item_id:
            items.append(
                CloverLineItem(
                    name=line.name,
                    price=to_cents(line.unit_price),
                    unit_qty=to_unit_qty(line.quantity),
                    taxable=True,
                    item=CloverReference(id=line.clover_item_id),
                    modifications=[
                        CloverModification(modifier_id=modifier_id)
                        for modifier_id in line.modifier_ids or []
                    ],
                )
            )
        else:
            items.append(
                CloverLineItem(
                    name=line.name,
                    price=to_cents(line.unit_price),
                    unit_qty=to_unit_qty(line.quantity),
                    taxable=False,
                )
            )

    if order.delivery_fee:
        items.append(
            CloverLineItem(
                name="Delivery Fee",
                price=to_cents(order.delivery_fee),
                unit_qty=1000,
                taxable=False,
            )
        )
    if order.tip:
        items.append(
            CloverLineItem(
                name="Tip", price=to_cents(order.tip), unit_qty=1000, taxable=False
            )
        )

    tender = None
    if order.payment_method != PaymentMethod.CASH:
        tender = CloverTender(type="CARD", amount=to_cents(order.total))

    return CloverOrderDraft(
        order=CloverOrderBlock(
            external_reference_id=order.order_code,
            total=to_cents(order.total),
            note=build_order_note(order),
            source=CloverOrderSource(source_text=settings.CLOVER_ORDER_SOURCE_TEXT),
        ),
        line_items=items,
        tender=tender,
    )


async def _complete_clover_order(
    adapter: CloverAdapter,
    clover_order_id: str,
    draft: CloverOrderDraft,
    order_id: str,
) -> None:
    """
    Bring a Clover order up to the draft: line items, modifiers, tender.

    Each step first reads what Clover already has, so running this again
    after a partial failure only adds what is missing.

    Raises:
        OrderPushError: If Clover holds a different set of line items than
            the draft (needs a human; never retried).
    """
    existing = await adapter.list_line_items(clover_order_id)

    if not existing:
        line_ids = await adapter.add_bulk_line_items(clover_order_id, draft.line_items)
        present: list[set[str]] = [set() for _ in line_ids]
    elif len(existing) == len(draft.line_items):
        line_ids = [line.id for line in existing]
        present = [set(line.modifier_ids) for line in existing]
        logger.info(
            "Clover order %s already has %d line items, resuming",
            clover_order_id,
            len(existing),
        )
    else:
        raise OrderPushError(
            f"Clover order {clover_order_id} has {len(existing)} line items, "
            f"expected {len(draft.line_items)}",
            order_id,
            is_retryable=False,
        )

    for item, line_id, have in zip(draft.line_items, line_ids, present, strict=False):
        for modification in item.modifications:
            if modification.modifier_id in have:
                continue
            await adapter.add_modification(
                clover_order_id, line_id, modification.modifier_id
            )

    if draft.tender is not None and not await adapter.list_tenders(clover_order_id):
        await adapter.add_tender(clover_order_id, draft.tender)


async def _push_order_async(
    order: Order,
    line_items: list["OrderLineItem"],
    client: CloverAdapter | None = None,
) -> str:
    """
    Async implementation of the push.

    The Clover order id is saved locally as soon as the order exists in
    Clover, so a retry resumes that order instead of creating another.

    Returns:
        Clover order ID (new or adopted).
    """
    context = (
        contextlib.nullcontext(client) if client is not None else CloverAdapter()
    )
    async with context as adapter:
        location_id = await get_location_id()
        draft = build_clover_order(order, line_items, location_id)

        clover_order_id = order.clover_order_id
        if not clover_order_id:
            # The local save may have been lost after Clover created the order
            existing = await adapter.find_order_by_external_reference(order.order_code)
            if existing is not None:
                logger.info(
                    "Order %s already exists in Clover as %s, resuming",
                    order.order_code,
                    existing.id,
                )
                clover_order_id = existing.id
            else:
                clover_order_id = await adapter.create_order(draft.order)

            await Order.objects.filter(pk=order.pk).aupdate(
                clover_order_id=clover_order_id
            )

        await _complete_clover_order(adapter, clover_order_id, draft, str(order.pk))

    return clover_order_id


def push_order_to_clover(
    order_pk: UUID | str,
    client: CloverAdapter | None = None,
) -> str:
    """
    Push a local order to Clover (idempotent).

    Safe to repeat after any failure: an order created by an earlier
    attempt is resumed, and only missing line items, modifiers and the
    tender are added.

    Args:
        order_pk: Primary key of the Order.
        client: Clover adapter to use (default: one built from settings).

    Returns:
        The Clover order ID.

    Raises:
        OrderPushError: If the order is missing or Clover calls fail.
            `is_retryable` tells the queue whether to try again.
    """
    try:
        order = Order.objects.prefetch_related("line_items").get(pk=order_pk)
    except Order.DoesNotExist as e:
        raise OrderPushError(
            f"Order {order_pk} not found", str(order_pk), is_retryable=False
        ) from e

    if order.clover_order_id and order.clover_pushed_at is not None:
        return order.clover_order_id

    line_items = list(order.line_items.all())

    try:
        clover_order_id = async_to_sync(_push_order_async)(order, line_items, client)
    except OrderPushError:
        raise
    except POSAuthError as e:
        raise OrderPushError(
            f"Clover auth error: {e.message}", str(order.pk), is_retryable=False
        ) from e
    except POSAPIError as e:
        raise OrderPushError(
            f"Clover API error: {e.message}", str(order.pk), is_retryable=e.is_retryable
        ) from e
    except LocationDiscoveryError as e:
        raise OrderPushError(e.message, str(order.pk), is_retryable=True) from e
    except POSError as e:
        raise OrderPushError(e.message, str(order.pk), is_retryable=False) from e

    now = timezone.now()
    Order.objects.filter(pk=order.pk).update(
        clover_order_id=clover_order_id,
        clover_pushed_at=now,
        clover_last_sync_at=now,
    )
    logger.info("Pushed order %s to Clover as %s", order.order_code, clover_order_id)
    return clover_order_id
