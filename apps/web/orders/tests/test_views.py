"""
Integration tests for the order status API views.
"""

import json
import uuid

from django.test import Client as DjangoClient

import pytest

from apps.web.orders.models import HistorySource, OrderStatus
from apps.web.orders.tests.factories import OrderFactory, OrderStatusHistoryFactory


def _post_status(client: DjangoClient, order_id, body) -> object:
    return client.post(
        f"/api/orders/{order_id}/status",
        data=body if isinstance(body, str) else json.dumps(body),
        content_type="application/json",
    )


@pytest.mark.django_db
class TestOrderStatusUpdateView:
    """Tests for POST /api/orders/{order_id}/status."""

    def test_staff_can_change_status(self, staff_client: DjangoClient):
        order = OrderFactory(status=OrderStatus.RECEIVED)

        response = _post_status(staff_client, order.pk, {"status": "ready"})

        assert response.status_code == 200
        data = response.json()
        assert data["order_id"] == str(order.pk)
        assert data["order_code"] == order.order_code
        assert data["status"] == "ready"
        assert data["changed"] is True

        order.refresh_from_db()
        assert order.status == OrderStatus.READY

    def test_unchanged_status_reports_not_changed(self, staff_client: DjangoClient):
        order = OrderFactory(status=OrderStatus.READY)

        response = _post_status(staff_client, order.pk, {"status": "ready"})

        assert response.status_code == 200
        assert response.json()["changed"] is False

    def test_invalid_status(self, staff_client: DjangoClient):
        order = OrderFactory()

        response = _post_status(staff_client, order.pk, {"status": "teleported"})

        assert response.status_code == 400
        assert response.json()["error"] == "Validation failed"

    def test_unknown_fields_rejected(self, staff_client: DjangoClient):
        order = OrderFactory()

        response = _post_status(
            staff_client, order.pk, {"status": "ready", "note": "hi"}
        )

        assert response.status_code == 400

    def test_invalid_json(self, staff_client: DjangoClient):
        order = OrderFactory()

        response = _post_status(staff_client, order.pk, "{not json")

        assert response.status_code == 400
        assert response.json()["error"] == "Invalid JSON"

    def test_missing_order(self, staff_client: DjangoClient):
        response = _post_status(staff_client, uuid.uuid4(), {"status": "ready"})

        assert response.status_code == 404

    def test_anonymous_rejected(self, api_client: DjangoClient):
        order = OrderFactory()

        response = _post_status(api_client, order.pk, {"status": "ready"})

        assert response.status_code == 401

    def test_non_staff_rejected(self, api_client: DjangoClient, user):
        order = OrderFactory()
        api_client.force_login(user)

        response = _post_status(api_client, order.pk, {"status": "ready"})

        assert response.status_code == 403

    def test_get_not_allowed(self, staff_client: DjangoClient):
        order = OrderFactory()

        response = staff_client.get(f"/api/orders/{order.pk}/status")

        assert response.status_code == 405


@pytest.mark.django_db
class TestOrderHistoryView:
    """Tests for GET /api/orders/{order_id}/history."""

    def test_returns_history_in_order(self, staff_client: DjangoClient):
        order = OrderFactory(status=OrderStatus.READY)
        first = OrderStatusHistoryFactory(order=order, status=OrderStatus.RECEIVED)
        OrderStatusHistoryFactory(
            order=order,
            status=OrderStatus.READY,
            changed_by="Alex",
            source=HistorySource.WEBHOOK,
            timestamp=first.timestamp.replace(year=first.timestamp.year + 1),
        )

        response = staff_client.get(f"/api/orders/{order.pk}/history")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "ready"
        assert [entry["status"] for entry in data["history"]] == ["received", "ready"]
        assert data["history"][1]["changed_by"] == "Alex"
        assert data["history"][1]["source"] == "webhook"

    def test_missing_order(self, staff_client: DjangoClient):
        response = staff_client.get(f"/api/orders/{uuid.uuid4()}/history")

        assert response.status_code == 404

    def test_anonymous_rejected(self, api_client: DjangoClient):
        order = OrderFactory()

        response = api_client.get(f"/api/orders/{order.pk}/history")

        assert response.status_code == 401
