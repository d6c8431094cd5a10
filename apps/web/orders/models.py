"""
Order models - local system of record for customer orders.

Status changes flow in from Clover (webhooks, polling) and from staff
actions; every accepted change leaves one OrderStatusHistory row.
"""

import uuid

from django.conf import settings
from django.db import models

from apps.web.core.models import TimeStampedModel


class OrderStatus(models.TextChoices):
    """Order lifecycle status."""

    PENDING_PAYMENT = "pending_payment", "Pending Payment"
    RECEIVED = "received", "Order Received"
    IN_PROGRESS = "in_progress", "In Progress"
    READY = "ready", "Order Ready"
    PICKED_UP_BY_DRIVER = "picked_up_by_driver", "Picked Up By Driver"
    ON_THE_WAY = "on_the_way", "On The Way"
    DELIVERED = "delivered", "Delivered"
    CANCELLED = "cancelled", "Cancelled"


class OrderType(models.TextChoices):
    """Order fulfillment type."""

    PICKUP = "pickup", "Pickup"
    DELIVERY = "delivery", "Delivery"
    GOLF = "golf", "Golf Course"


class PaymentMethod(models.TextChoices):
    """How the customer pays."""

    CARD = "card", "Card"
    CASH = "cash", "Cash"


class HistorySource(models.TextChoices):
    """Which path produced a status history row."""

    WEBHOOK = "webhook", "Clover Webhook"
    POLL = "poll", "Clover Poll"
    STAFF = "staff", "Staff"
    SYSTEM = "system", "System"


class Order(TimeStampedModel):
    """
    Customer order.

    `order_code` is the human-readable reference shared with Clover as the
    order's `externalReferenceId`; it is assigned once and never changes.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    order_code = models.CharField(
        max_length=32,
        unique=True,
        editable=False,
        help_text="ORD-YYYYMMDD-XXXXXX, shared with Clover",
    )

    # Customer information
    customer_name = models.CharField(max_length=200)
    customer_email = models.EmailField(blank=True)
    customer_phone = models.CharField(max_length=20, blank=True)

    # Order details
    status = models.CharField(
        max_length=32,
        choices=OrderStatus.choices,
        default=OrderStatus.RECEIVED,
    )
    order_type = models.CharField(
        max_length=20,
        choices=OrderType.choices,
        default=OrderType.PICKUP,
    )
    payment_method = models.CharField(
        max_length=10,
        choices=PaymentMethod.choices,
        default=PaymentMethod.CARD,
    )
    scheduled_for = models.DateTimeField(
        null=True,
        blank=True,
        help_text="Requested pickup/delivery time (null = ASAP)",
    )
    contains_alcohol = models.BooleanField(default=False)

    # Pricing
    subtotal = models.DecimalField(max_digits=10, decimal_places=2, default=0)
    tax = models.DecimalField(max_digits=10, decimal_places=2, default=0)
    delivery_fee = models.DecimalField(max_digits=10, decimal_places=2, default=0)
    tip = models.DecimalField(max_digits=10, decimal_places=2, default=0)
    total = models.DecimalField(max_digits=10, decimal_places=2, default=0)

    # Clover correlation
    clover_order_id = models.CharField(
        max_length=64,
        blank=True,
        help_text="Order ID in Clover (set once pushed)",
    )
    checkout_session_id = models.CharField(
        max_length=255,
        blank=True,
        help_text="Clover hosted-checkout session ID",
    )
    clover_last_sync_at = models.DateTimeField(
        null=True,
        blank=True,
        help_text="Last successful reconciliation or push",
    )
    clover_pushed_at = models.DateTimeField(
        null=True,
        blank=True,
        help_text="When the Clover order was fully built",
    )
    status_event_at = models.DateTimeField(
        null=True,
        blank=True,
        help_text="Event time of the last applied status change",
    )

    class Meta:
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["status"], name="orders_status_idx"),
            models.Index(
                fields=["clover_order_id"], name="orders_clover_order_id_idx"
            ),
            models.Index(
                fields=["checkout_session_id"], name="orders_checkout_session_idx"
            ),
        ]

    def __str__(self) -> str:
        return f"Order {self.order_code} - {self.customer_name}"


class OrderLineItem(models.Model):
    """
    Line item in an order.

    Snapshot of the item at order time. Items synced to the Clover catalogue
    carry `clover_item_id`; the rest are pushed as loose rows.
    """

    order = models.ForeignKey(
        Order,
        on_delete=models.CASCADE,
        related_name="line_items",
    )
    name = models.CharField(max_length=200)
    quantity = models.DecimalField(max_digits=8, decimal_places=3, default=1)
    unit_price = models.DecimalField(max_digits=10, decimal_places=2)
    clover_item_id = models.CharField(max_length=64, blank=True)
    modifier_ids = models.JSONField(
        default=list,
        blank=True,
        help_text="Clover modifier IDs selected for this line",
    )

    class Meta:
        ordering = ["pk"]

    def __str__(self) -> str:
        return f"{self.quantity}x {self.name}"


class OrderStatusHistory(models.Model):
    """
    Append-only audit trail of order status changes.

    Rows are written once at the moment of transition and never edited.
    """

    order = models.ForeignKey(
        Order,
        on_delete=models.CASCADE,
        related_name="status_history",
    )
    status = models.CharField(max_length=32, choices=OrderStatus.choices)
    changed_by = models.CharField(
        max_length=200,
        null=True,
        blank=True,
        help_text="Actor name or system label",
    )
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="order_status_changes",
    )
    source = models.CharField(
        max_length=20,
        choices=HistorySource.choices,
        default=HistorySource.SYSTEM,
    )
    timestamp = models.DateTimeField(help_text="Event time, UTC")

    class Meta:
        ordering = ["timestamp", "pk"]
        verbose_name_plural = "order status history"
        indexes = [
            models.Index(
                fields=["order", "timestamp"], name="orders_history_order_ts_idx"
            ),
        ]

    def __str__(self) -> str:
        return f"{self.order_id}: {self.status} by {self.changed_by or '-'}"
