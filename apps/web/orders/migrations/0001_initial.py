import uuid

import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):
    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Order",
            fields=[
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "id",
                    models.UUIDField(
                        default=uuid.uuid4,
                        editable=False,
                        primary_key=True,
                        serialize=False,
                    ),
                ),
                (
                    "order_code",
                    models.CharField(
                        editable=False,
                        help_text="ORD-YYYYMMDD-XXXXXX, shared with Clover",
                        max_length=32,
                        unique=True,
                    ),
                ),
                ("customer_name", models.CharField(max_length=200)),
                ("customer_email", models.EmailField(blank=True, max_length=254)),
                ("customer_phone", models.CharField(blank=True, max_length=20)),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("pending_payment", "Pending Payment"),
                            ("received", "Order Received"),
                            ("in_progress", "In Progress"),
                            ("ready", "Order Ready"),
                            ("picked_up_by_driver", "Picked Up By Driver"),
                            ("on_the_way", "On The Way"),
                            ("delivered", "Delivered"),
                            ("cancelled", "Cancelled"),
                        ],
                        default="received",
                        max_length=32,
                    ),
                ),
                (
                    "order_type",
                    models.CharField(
                        choices=[
                            ("pickup", "Pickup"),
                            ("delivery", "Delivery"),
                            ("golf", "Golf Course"),
                        ],
                        default="pickup",
                        max_length=20,
                    ),
                ),
                (
                    "payment_method",
                    models.CharField(
                        choices=[("card", "Card"), ("cash", "Cash")],
                        default="card",
                        max_length=10,
                    ),
                ),
                (
                    "scheduled_for",
                    models.DateTimeField(
                        blank=True,
                        help_text="Requested pickup/delivery time (null = ASAP)",
                        null=True,
                    ),
                ),
                ("contains_alcohol", models.BooleanField(default=False)),
                (
                    "subtotal",
                    models.DecimalField(decimal_places=2, default=0, max_digits=10),
                ),
                (
                    "tax",
                    models.DecimalField(decimal_places=2, default=0, max_digits=10),
                ),
                (
                    "delivery_fee",
                    models.DecimalField(decimal_places=2, default=0, max_digits=10),
                ),
                (
                    "tip",
                    models.DecimalField(decimal_places=2, default=0, max_digits=10),
                ),
                (
                    "total",
                    models.DecimalField(decimal_places=2, default=0, max_digits=10),
                ),
                (
                    "clover_order_id",
                    models.CharField(
                        blank=True,
                        help_text="Order ID in Clover (set once pushed)",
                        max_length=64,
                    ),
                ),
                (
                    "checkout_session_id",
                    models.CharField(
                        blank=True,
                        help_text="Clover hosted-checkout session ID",
                        max_length=255,
                    ),
                ),
                (
                    "clover_last_sync_at",
                    models.DateTimeField(
                        blank=True,
                        help_text="Last successful reconciliation or push",
                        null=True,
                    ),
                ),
                (
                    "status_event_at",
                    models.DateTimeField(
                        blank=True,
                        help_text="Event time of the last applied status change",
                        null=True,
                    ),
                ),
            ],
            options={
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(fields=["status"], name="orders_status_idx"),
                    models.Index(
                        fields=["clover_order_id"], name="orders_clover_order_id_idx"
                    ),
                    models.Index(
                        fields=["checkout_session_id"],
                        name="orders_checkout_session_idx",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="OrderLineItem",
            fields=[
                (
                    "id",
                    models.BigAutoField(
                        auto_created=True,
                        primary_key=True,
                        serialize=False,
                        verbose_name="ID",
                    ),
                ),
                ("name", models.CharField(max_length=200)),
                (
                    "quantity",
                    models.DecimalField(decimal_places=3, default=1, max_digits=8),
                ),
                ("unit_price", models.DecimalField(decimal_places=2, max_digits=10)),
                ("clover_item_id", models.CharField(blank=True, max_length=64)),
                (
                    "modifier_ids",
                    models.JSONField(
                        blank=True,
                        default=list,
                        help_text="Clover modifier IDs selected for this line",
                    ),
                ),
                (
                    "order",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="line_items",
                        to="orders.order",
                    ),
                ),
            ],
            options={
                "ordering": ["pk"],
            },
        ),
        migrations.CreateModel(
            name="OrderStatusHistory",
            fields=[
                (
                    "id",
                    models.BigAutoField(
                        auto_created=True,
                        primary_key=True,
                        serialize=False,
                        verbose_name="ID",
                    ),
                ),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("pending_payment", "Pending Payment"),
                            ("received", "Order Received"),
                            ("in_progress", "In Progress"),
                            ("ready", "Order Ready"),
                            ("picked_up_by_driver", "Picked Up By Driver"),
                            ("on_the_way", "On The Way"),
                            ("delivered", "Delivered"),
                            ("cancelled", "Cancelled"),
                        ],
                        max_length=32,
                    ),
                ),
                (
                    "changed_by",
                    models.CharField(
                        blank=True,
                        help_text="Actor name or system label",
                        max_length=200,
                        null=True,
                    ),
                ),
                (
                    "source",
                    models.CharField(
                        choices=[
                            ("webhook", "Clover Webhook"),
                            ("poll", "Clover Poll"),
                            ("staff", "Staff"),
                            ("system", "System"),
                        ],
                        default="system",
                        max_length=20,
                    ),
                ),
                ("timestamp", models.DateTimeField(help_text="Event time, UTC")),
                (
                    "order",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="status_history",
                        to="orders.order",
                    ),
                ),
                (
                    "user",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="order_status_changes",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "verbose_name_plural": "order status history",
                "ordering": ["timestamp", "pk"],
                "indexes": [
                    models.Index(
                        fields=["order", "timestamp"],
                        name="orders_history_order_ts_idx",
                    ),
                ],
            },
        ),
    ]
