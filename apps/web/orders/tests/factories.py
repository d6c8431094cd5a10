"""
Factory classes for order models.
"""

from decimal import Decimal

from django.utils import timezone

import factory

from apps.web.orders.models import (
    HistorySource,
    Order,
    OrderLineItem,
    OrderStatus,
    OrderStatusHistory,
    OrderType,
    PaymentMethod,
)


class OrderFactory(factory.django.DjangoModelFactory):
    class Meta:
        model = Order

    order_code = factory.Sequence(lambda n: f"ORD-20250629-{n:06d}")
    customer_name = factory.Faker("name")
    customer_email = factory.Faker("email")
    status = OrderStatus.RECEIVED
    order_type = OrderType.PICKUP
    payment_method = PaymentMethod.CARD
    subtotal = Decimal("20.00")
    total = Decimal("20.00")
    status_event_at = factory.LazyFunction(timezone.now)


class OrderLineItemFactory(factory.django.DjangoModelFactory):
    class Meta:
        model = OrderLineItem

    order = factory.SubFactory(OrderFactory)
    name = factory.Sequence(lambda n: f"Item {n}")
    quantity = Decimal("1")
    unit_price = Decimal("10.00")
    clover_item_id = ""
    modifier_ids = factory.LazyFunction(list)


class OrderStatusHistoryFactory(factory.django.DjangoModelFactory):
    class Meta:
        model = OrderStatusHistory

    order = factory.SubFactory(OrderFactory)
    status = factory.SelfAttribute("order.status")
    changed_by = "System"
    source = HistorySource.SYSTEM
    timestamp = factory.LazyFunction(timezone.now)
