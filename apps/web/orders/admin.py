"""Admin registration for order models."""

from django.contrib import admin

from apps.web.orders.models import Order, OrderLineItem, OrderStatusHistory


class OrderLineItemInline(admin.TabularInline):  # type: ignore[type-arg]
    model = OrderLineItem
    extra = 0


class OrderStatusHistoryInline(admin.TabularInline):  # type: ignore[type-arg]
    """History is append-only; shown but never editable."""

    model = OrderStatusHistory
    extra = 0
    can_delete = False
    readonly_fields = ["status", "changed_by", "user", "source", "timestamp"]

    def has_add_permission(self, request, obj=None):  # type: ignore[no-untyped-def]
        return False


@admin.register(Order)
class OrderAdmin(admin.ModelAdmin):  # type: ignore[type-arg]
    list_display = [
        "order_code",
        "customer_name",
        "status",
        "payment_method",
        "total",
        "clover_order_id",
        "created_at",
    ]
    list_filter = ["status", "payment_method", "order_type"]
    search_fields = ["order_code", "customer_name", "clover_order_id"]
    readonly_fields = [
        "order_code",
        "status",
        "clover_order_id",
        "clover_last_sync_at",
        "clover_pushed_at",
        "status_event_at",
        "created_at",
        "updated_at",
    ]
    inlines = [OrderLineItemInline, OrderStatusHistoryInline]


@admin.register(OrderStatusHistory)
class OrderStatusHistoryAdmin(admin.ModelAdmin):  # type: ignore[type-arg]
    list_display = ["order", "status", "changed_by", "source", "timestamp"]
    list_filter = ["status", "source"]
    search_fields = ["order__order_code", "changed_by"]

    def has_add_permission(self, request):  # type: ignore[no-untyped-def]
        return False

    def has_change_permission(self, request, obj=None):  # type: ignore[no-untyped-def]
        return False

    def has_delete_permission(self, request, obj=None):  # type: ignore[no-untyped-def]
        return False
