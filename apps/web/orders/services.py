"""
Order lifecycle services - local order creation and staff status changes.

Inbound Clover status changes go through apps.web.pos.services.reconciler;
this module covers the transitions that originate locally.
"""

import logging
import secrets
import string
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import TYPE_CHECKING, Any
from uuid import UUID

from django.db import IntegrityError, transaction
from django.utils import timezone

from apps.web.orders.models import (
    HistorySource,
    Order,
    OrderLineItem,
    OrderStatus,
    OrderStatusHistory,
    OrderType,
    PaymentMethod,
)
from apps.web.orders.signals import order_status_changed

if TYPE_CHECKING:
    from apps.web.core.models import User

logger = logging.getLogger(__name__)

ORDER_CODE_PREFIX = "ORD"
ORDER_CODE_SUFFIX_LENGTH = 6
ORDER_CODE_ALPHABET = string.ascii_uppercase + string.digits
MAX_CODE_ATTEMPTS = 5


class OrderServiceError(Exception):
    """Local order operation could not be completed."""

    def __init__(self, message: str, order_id: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.order_id = order_id


@dataclass
class LineItemInput:
    """One requested line of a new order."""

    name: str
    unit_price: Decimal
    quantity: Decimal = Decimal("1")
    clover_item_id: str = ""
    modifier_ids: list[str] | None = None


def generate_order_code(now: datetime | None = None) -> str:
    """
    Generate a human-readable order code.

    Format: ORD-YYYYMMDD-XXXXXX (uppercase letters and digits).
    """
    day = (now or timezone.now()).strftime("%Y%m%d")
    suffix = "".join(
        secrets.choice(ORDER_CODE_ALPHABET) for _ in range(ORDER_CODE_SUFFIX_LENGTH)
    )
    return f"{ORDER_CODE_PREFIX}-{day}-{suffix}"


def initial_status_for(payment_method: str) -> str:
    """Cash orders are accepted immediately; card orders wait for payment."""
    if payment_method == PaymentMethod.CASH:
        return OrderStatus.RECEIVED
    return OrderStatus.PENDING_PAYMENT


def create_order(
    *,
    customer_name: str,
    line_items: list[LineItemInput],
    payment_method: str = PaymentMethod.CARD,
    order_type: str = OrderType.PICKUP,
    customer_email: str = "",
    customer_phone: str = "",
    scheduled_for: datetime | None = None,
    contains_alcohol: bool = False,
    tax: Decimal = Decimal("0"),
    tip: Decimal = Decimal("0"),
    delivery_fee: Decimal = Decimal("0"),
    checkout_session_id: str = "",
    push_to_clover: bool = True,
) -> Order:
    """
    Create an order with its line items and initial history row.

    The Clover push is enqueued only after the surrounding transaction
    commits, so the worker never sees an order that was rolled back.

    Args:
        customer_name: Name shown on the ticket.
        line_items: Requested lines; at least one is required.
        payment_method: `card` or `cash`; decides the initial status.
        push_to_clover: Set False to skip enqueueing (imports, tests).

    Returns:
        The created Order.

    Raises:
        OrderServiceError: If no line items are given or no unique order
            code could be generated.
    """
    if not line_items:
        raise OrderServiceError("Order must contain at least one line item")

    subtotal = sum(
        (item.unit_price * item.quantity for item in line_items), Decimal("0")
    ).quantize(Decimal("0.01"))
    total = subtotal + tax + tip + delivery_fee
    status = initial_status_for(payment_method)
    now = timezone.now()

    for attempt in range(1, MAX_CODE_ATTEMPTS + 1):
        try:
            with transaction.atomic():
                order = Order.objects.create(
                    order_code=generate_order_code(now),
                    customer_name=customer_name,
                    customer_email=customer_email,
                    customer_phone=customer_phone,
                    status=status,
                    order_type=order_type,
                    payment_method=payment_method,
                    scheduled_for=scheduled_for,
                    contains_alcohol=contains_alcohol,
                    subtotal=subtotal,
                    tax=tax,
                    tip=tip,
                    delivery_fee=delivery_fee,
                    total=total,
                    checkout_session_id=checkout_session_id,
                    status_event_at=now,
                )
                OrderLineItem.objects.bulk_create(
                    [
                        OrderLineItem(
                            order=order,
                            name=item.name,
                            quantity=item.quantity,
                            unit_price=item.unit_price,
                            clover_item_id=item.clover_item_id,
                            modifier_ids=item.modifier_ids or [],
                        )
                        for item in line_items
                    ]
                )
                OrderStatusHistory.objects.create(
                    order=order,
                    status=status,
                    changed_by="System",
                    source=HistorySource.SYSTEM,
                    timestamp=now,
                )
            break
        except IntegrityError:
            logger.warning(
                "Order code collision (attempt %d/%d), regenerating",
                attempt,
                MAX_CODE_ATTEMPTS,
            )
    else:
        raise OrderServiceError("Could not generate a unique order code")

    logger.info("Created order %s (%s, %s)", order.order_code, order.pk, status)

    if push_to_clover:
        transaction.on_commit(lambda: _enqueue_push(order))

    return order


def _enqueue_push(order: Order) -> None:
    from apps.web.pos.services.push_queue import enqueue_push  # noqa: PLC0415

    enqueue_push(order.pk, order_code=order.order_code)


def set_order_status(
    order_id: UUID | str,
    status: str,
    user: "User | None" = None,
) -> tuple[Order, bool]:
    """
    Apply a staff-driven status change.

    Args:
        order_id: Primary key of the order.
        status: Target OrderStatus value.
        user: Staff member making the change (recorded in history).

    Returns:
        Tuple of (order, changed). `changed` is False when the order was
        already in the requested status; nothing is written in that case.

    Raises:
        Order.DoesNotExist: If the order does not exist.
        OrderServiceError: If the status is not a valid OrderStatus.
    """
    if status not in OrderStatus.values:
        raise OrderServiceError(f"Unknown order status: {status}", str(order_id))

    with transaction.atomic():
        order = Order.objects.select_for_update().get(pk=order_id)
        previous_status = order.status

        if previous_status == status:
            return order, False

        now = timezone.now()
        order.status = status
        order.status_event_at = now
        order.save(update_fields=["status", "status_event_at", "updated_at"])

        changed_by: str | None = None
        if user is not None:
            changed_by = user.get_full_name() or user.get_username()

        OrderStatusHistory.objects.create(
            order=order,
            status=status,
            changed_by=changed_by,
            user=user,
            source=HistorySource.STAFF,
            timestamp=now,
        )

    logger.info(
        "Order %s status set by staff: %s -> %s",
        order.order_code,
        previous_status,
        status,
    )
    send_status_changed(order, previous_status, HistorySource.STAFF)

    return order, True


def send_status_changed(order: Order, previous_status: str, source: str) -> None:
    """Notify receivers of a committed status change."""
    kwargs: dict[str, Any] = {
        "order": order,
        "previous_status": previous_status,
        "status": order.status,
        "source": source,
    }
    order_status_changed.send(sender=Order, **kwargs)
