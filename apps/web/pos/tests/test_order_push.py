"""Tests for pushing local orders to Clover."""

import json
import uuid
from datetime import UTC, datetime
from decimal import Decimal

import httpx
import pytest
import respx

from apps.web.orders.models import Order, OrderType, PaymentMethod
from apps.web.orders.tests.factories import OrderFactory, OrderLineItemFactory
from apps.web.pos.services.order_push import (
    OrderPushError,
    build_clover_order,
    build_order_note,
    push_order_to_clover,
    to_cents,
    to_unit_qty,
)

BASE = "https://sandbox.dev.clover.com/v3/merchants/MERCHANT123"


@pytest.fixture(autouse=True)
def location(settings):
    settings.CLOVER_LOCATION_ID = "LOC1"


@pytest.fixture
def order():
    order = OrderFactory(
        order_code="ORD-20250629-AAAAAA",
        payment_method=PaymentMethod.CARD,
        subtotal=Decimal("29.00"),
        delivery_fee=Decimal("3.50"),
        tip=Decimal("4.00"),
        total=Decimal("36.50"),
    )
    OrderLineItemFactory(
        order=order,
        name="Burger",
        unit_price=Decimal("12.50"),
        quantity=Decimal("2"),
        clover_item_id="ITEM1",
        modifier_ids=["MOD1", "MOD2"],
    )
    OrderLineItemFactory(order=order, name="Special", unit_price=Decimal("4.00"))
    return order


def _mock_clover(
    existing: list | None = None,
    clover_id: str = "CLOVER1",
    lines: list | None = None,
    tenders: list | None = None,
) -> dict:
    order_url = f"{BASE}/orders/{clover_id}"
    return {
        "find": respx.get(f"{BASE}/orders").mock(
            return_value=httpx.Response(200, json={"elements": existing or []})
        ),
        "create": respx.post(f"{BASE}/orders").mock(
            return_value=httpx.Response(200, json={"id": clover_id})
        ),
        "existing_lines": respx.get(f"{order_url}/line_items").mock(
            return_value=httpx.Response(200, json={"elements": lines or []})
        ),
        "lines": respx.post(f"{order_url}/bulk_line_items").mock(
            return_value=httpx.Response(
                200,
                json={"elements": [{"id": f"L{i}"} for i in range(1, 5)]},
            )
        ),
        "modifications": respx.post(
            url__regex=rf"{order_url}/line_items/\w+/modifications"
        ).mock(return_value=httpx.Response(200, json={"id": "M"})),
        "existing_tenders": respx.get(f"{order_url}/tenders").mock(
            return_value=httpx.Response(200, json={"elements": tenders or []})
        ),
        "tender": respx.post(f"{order_url}/tenders").mock(
            return_value=httpx.Response(200, json={"id": "T1"})
        ),
    }


def _clover_line(line_id: str, *modifier_ids: str) -> dict:
    return {
        "id": line_id,
        "modifications": {
            "elements": [{"id": f"X{m}", "modifier": {"id": m}} for m in modifier_ids]
        },
    }


# =============================================================================
# Payload building
# =============================================================================


class TestConversions:
    def test_to_cents(self):
        assert to_cents(Decimal("12.50")) == 1250
        assert to_cents(Decimal("0.005")) == 1

    def test_to_unit_qty(self):
        assert to_unit_qty(Decimal("1")) == 1000
        assert to_unit_qty(Decimal("1.5")) == 1500


@pytest.mark.django_db
class TestBuildCloverOrder:
    def test_note_asap(self, order):
        assert build_order_note(order) == "ORD-20250629-AAAAAA · ASAP"

    def test_note_flags_and_schedule(self, order, settings):
        settings.CLOVER_DISPLAY_TIME_ZONE = "America/New_York"
        order.contains_alcohol = True
        order.order_type = OrderType.GOLF
        order.scheduled_for = datetime(2025, 6, 29, 21, 30, tzinfo=UTC)

        assert build_order_note(order) == (
            "ORD-20250629-AAAAAA · Contains alcohol · Golf order"
            " · Scheduled @ 6/29 5:30 PM"
        )

    def test_line_items_fees_and_tip(self, order):
        draft = build_clover_order(order, list(order.line_items.all()), "LOC1")

        assert draft.order.external_reference_id == "ORD-20250629-AAAAAA"
        assert draft.order.total == 3650
        assert draft.order.source.source_text == "Online Order"
        assert [item.name for item in draft.line_items] == [
            "Burger",
            "Special",
            "Delivery Fee",
            "Tip",
        ]
        burger, special, fee, tip = draft.line_items
        assert burger.taxable is True
        assert burger.unit_qty == 2000
        assert burger.item.id == "ITEM1"
        assert [m.modifier_id for m in burger.modifications] == ["MOD1", "MOD2"]
        assert special.taxable is False
        assert special.item is None
        assert fee.price == 350 and fee.taxable is False
        assert tip.price == 400 and tip.taxable is False
        assert draft.tender.type == "CARD"
        assert draft.tender.amount == 3650

    def test_cash_order_has_no_tender(self, order):
        order.payment_method = PaymentMethod.CASH

        draft = build_clover_order(order, list(order.line_items.all()), "LOC1")

        assert draft.tender is None

    def test_blank_location_rejected(self, order):
        with pytest.raises(OrderPushError) as exc_info:
            build_clover_order(order, [], "  ")

        assert exc_info.value.is_retryable is False


# =============================================================================
# push_order_to_clover
# =============================================================================


@pytest.mark.django_db
class TestPushOrderToClover:
    @respx.mock
    def test_creates_order_in_clover(self, order):
        routes = _mock_clover()

        assert push_order_to_clover(order.pk) == "CLOVER1"

        order.refresh_from_db()
        assert order.clover_order_id == "CLOVER1"
        assert order.clover_pushed_at is not None
        assert order.clover_last_sync_at is not None

        assert routes["find"].calls.last.request.url.params["filter"] == (
            "externalReferenceId=ORD-20250629-AAAAAA"
        )
        created = json.loads(routes["create"].calls.last.request.content)
        assert created["externalReferenceId"] == "ORD-20250629-AAAAAA"
        lines = json.loads(routes["lines"].calls.last.request.content)["items"]
        assert len(lines) == 4
        mod_paths = [c.request.url.path for c in routes["modifications"].calls]
        assert mod_paths == [
            "/v3/merchants/MERCHANT123/orders/CLOVER1/line_items/L1/modifications",
            "/v3/merchants/MERCHANT123/orders/CLOVER1/line_items/L1/modifications",
        ]
        tender = json.loads(routes["tender"].calls.last.request.content)
        assert tender == {"tender": {"type": "CARD", "amount": 3650, "currency": "USD"}}

    @respx.mock
    def test_cash_order_posts_no_tender(self, order):
        order.payment_method = PaymentMethod.CASH
        order.save()
        routes = _mock_clover()

        push_order_to_clover(order.pk)

        assert routes["tender"].call_count == 0

    @respx.mock
    def test_retry_after_line_item_failure_finishes_same_order(self, order):
        routes = _mock_clover()
        routes["lines"].mock(return_value=httpx.Response(503))

        with pytest.raises(OrderPushError) as exc_info:
            push_order_to_clover(order.pk)

        assert exc_info.value.is_retryable is True
        order.refresh_from_db()
        assert order.clover_order_id == "CLOVER1"
        assert order.clover_pushed_at is None

        routes["lines"].mock(
            return_value=httpx.Response(
                200, json={"elements": [{"id": f"L{i}"} for i in range(1, 5)]}
            )
        )

        assert push_order_to_clover(order.pk) == "CLOVER1"

        assert routes["create"].call_count == 1
        assert routes["lines"].call_count == 2
        assert routes["modifications"].call_count == 2
        assert routes["tender"].call_count == 1
        order.refresh_from_db()
        assert order.clover_pushed_at is not None

    @respx.mock
    def test_half_built_order_found_by_reference_is_completed(self, order):
        routes = _mock_clover(
            existing=[{"id": "CLOVER1", "externalReferenceId": order.order_code}]
        )

        assert push_order_to_clover(order.pk) == "CLOVER1"

        assert routes["create"].call_count == 0
        assert routes["lines"].call_count == 1
        assert routes["modifications"].call_count == 2
        assert routes["tender"].call_count == 1

    @respx.mock
    def test_resume_adds_only_missing_modifiers_and_tender(self, order):
        order.clover_order_id = "CLOVER1"
        order.save()
        routes = _mock_clover(
            lines=[
                _clover_line("L1", "MOD1"),
                _clover_line("L2"),
                _clover_line("L3"),
                _clover_line("L4"),
            ]
        )

        assert push_order_to_clover(order.pk) == "CLOVER1"

        assert routes["find"].call_count == 0
        assert routes["create"].call_count == 0
        assert routes["lines"].call_count == 0
        added = json.loads(routes["modifications"].calls.last.request.content)
        assert routes["modifications"].call_count == 1
        assert added == {"modifier": {"id": "MOD2"}}
        assert routes["tender"].call_count == 1

    @respx.mock
    def test_adopts_complete_clover_order(self, order):
        routes = _mock_clover(
            existing=[{"id": "EXISTING", "externalReferenceId": order.order_code}],
            clover_id="EXISTING",
            lines=[
                _clover_line("L1", "MOD1", "MOD2"),
                _clover_line("L2"),
                _clover_line("L3"),
                _clover_line("L4"),
            ],
            tenders=[{"id": "T1"}],
        )

        assert push_order_to_clover(order.pk) == "EXISTING"

        assert routes["create"].call_count == 0
        assert routes["lines"].call_count == 0
        assert routes["modifications"].call_count == 0
        assert routes["tender"].call_count == 0
        order.refresh_from_db()
        assert order.clover_order_id == "EXISTING"
        assert order.clover_pushed_at is not None

    @respx.mock
    def test_mismatched_line_items_are_not_retried(self, order):
        order.clover_order_id = "CLOVER1"
        order.save()
        routes = _mock_clover(lines=[_clover_line("L1")])

        with pytest.raises(OrderPushError) as exc_info:
            push_order_to_clover(order.pk)

        assert exc_info.value.is_retryable is False
        assert routes["lines"].call_count == 0
        order.refresh_from_db()
        assert order.clover_pushed_at is None

    @respx.mock
    def test_already_pushed_is_a_no_op(self, order):
        order.clover_order_id = "CLOVER-OLD"
        order.clover_pushed_at = datetime(2025, 6, 29, 17, 0, tzinfo=UTC)
        order.save()
        routes = _mock_clover()

        assert push_order_to_clover(order.pk) == "CLOVER-OLD"
        assert routes["find"].call_count == 0

    def test_missing_order(self):
        with pytest.raises(OrderPushError) as exc_info:
            push_order_to_clover(uuid.uuid4())

        assert exc_info.value.is_retryable is False

    @respx.mock
    def test_server_error_is_retryable(self, order):
        respx.get(f"{BASE}/orders").mock(
            return_value=httpx.Response(200, json={"elements": []})
        )
        respx.post(f"{BASE}/orders").mock(return_value=httpx.Response(503))

        with pytest.raises(OrderPushError) as exc_info:
            push_order_to_clover(order.pk)

        assert exc_info.value.is_retryable is True
        assert Order.objects.get(pk=order.pk).clover_order_id == ""

    @respx.mock
    def test_auth_error_is_not_retryable(self, order):
        respx.get(f"{BASE}/orders").mock(return_value=httpx.Response(401))

        with pytest.raises(OrderPushError) as exc_info:
            push_order_to_clover(order.pk)

        assert exc_info.value.is_retryable is False

    @respx.mock
    def test_location_discovery_failure_is_retryable(self, order, settings):
        settings.CLOVER_LOCATION_ID = ""
        respx.get(f"{BASE}/devices").mock(
            return_value=httpx.Response(200, json={"elements": [{"id": "D1"}]})
        )

        with pytest.raises(OrderPushError) as exc_info:
            push_order_to_clover(order.pk)

        assert exc_info.value.is_retryable is True
