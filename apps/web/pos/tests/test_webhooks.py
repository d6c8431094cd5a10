"""Integration tests for the Clover order webhook endpoint."""

import hashlib
import hmac
import json
from datetime import UTC, datetime
from unittest.mock import patch

from django.test import Client as DjangoClient

import pytest

from apps.web.core.models import SystemSetting, User
from apps.web.orders.models import HistorySource, OrderStatus, OrderStatusHistory
from apps.web.orders.signals import order_status_changed
from apps.web.orders.tests.factories import OrderFactory
from apps.web.pos.models import POSWebhookEvent, WebhookStatus
from apps.web.pos.services.location import LOCATION_SETTING_KEY, location_resolver

URL = "/api/clover/webhooks/orders"
SECRET = "test-webhook-secret"
ORDER_CODE = "ORD-20250629-F3D8UI"
CREATED = 1751216400  # 2025-06-29T17:00:00Z


def _sign(body: bytes, secret: str = SECRET) -> str:
    return hmac.new(secret.encode(), body, hashlib.sha256).hexdigest()


def _event(state: str = "READY", **overrides) -> dict:
    payload = {
        "type": "UPDATE",
        "merchantId": "MERCHANT123",
        "created": CREATED,
        "order": {
            "id": "CLOVER-ORDER-1",
            "externalReferenceId": ORDER_CODE,
            "state": state,
            "employee": {"id": "EMP1", "displayName": "Alex Cashier"},
        },
    }
    payload.update(overrides)
    return payload


def _post(
    client: DjangoClient,
    payload,
    signature: str | None = None,
    header: str = "X-Clover-Signature",
):
    body = payload if isinstance(payload, bytes) else json.dumps(payload).encode()
    headers = {}
    if signature is None:
        signature = _sign(body)
    if signature:
        headers[header] = signature
    return client.post(URL, data=body, content_type="application/json", headers=headers)


@pytest.fixture
def order():
    return OrderFactory(
        order_code=ORDER_CODE,
        status=OrderStatus.RECEIVED,
        status_event_at=datetime(2025, 6, 29, 16, 0, tzinfo=UTC),
    )


@pytest.mark.django_db
class TestWebhookRequestValidation:
    def test_verification_handshake_echoed(self, api_client):
        response = _post(api_client, {"verificationCode": "abc-123"}, signature="")

        assert response.status_code == 200
        assert response.json() == {"verificationCode": "abc-123"}
        assert POSWebhookEvent.objects.count() == 0

    def test_invalid_json(self, api_client):
        response = _post(api_client, b"{nope", signature="")

        assert response.status_code == 400

    def test_non_object_body(self, api_client):
        response = _post(api_client, [1, 2, 3])

        assert response.status_code == 400

    def test_missing_signature(self, api_client, order):
        response = _post(api_client, _event(), signature="")

        assert response.status_code == 400
        order.refresh_from_db()
        assert order.status == OrderStatus.RECEIVED

    def test_signature_mismatch(self, api_client, order):
        response = _post(api_client, _event(), signature=_sign(b"other body"))

        assert response.status_code == 401
        assert POSWebhookEvent.objects.count() == 0
        order.refresh_from_db()
        assert order.status == OrderStatus.RECEIVED

    def test_malformed_signature(self, api_client, order):
        response = _post(api_client, _event(), signature="%%%")

        assert response.status_code == 400

    def test_secret_not_configured(self, api_client, settings):
        settings.CLOVER_WEBHOOK_SECRET = ""

        response = _post(api_client, _event())

        assert response.status_code == 500

    def test_invalid_envelope(self, api_client):
        response = _post(api_client, _event(created="not a time"))

        assert response.status_code == 400

    def test_get_not_allowed(self, api_client):
        response = api_client.get(URL)

        assert response.status_code == 405


@pytest.mark.django_db
class TestWebhookProcessing:
    def test_applies_status_change(self, api_client, order):
        response = _post(api_client, _event("READY"))

        assert response.status_code == 200
        assert response.json() == {"received": True, "outcome": "applied"}

        order.refresh_from_db()
        assert order.status == OrderStatus.READY
        entry = OrderStatusHistory.objects.get(order=order)
        assert entry.changed_by == "Alex Cashier"
        assert entry.source == HistorySource.WEBHOOK
        assert entry.timestamp == datetime(2025, 6, 29, 17, 0, tzinfo=UTC)

        event = POSWebhookEvent.objects.get()
        assert event.status == WebhookStatus.PROCESSED
        assert event.outcome == "applied"
        assert event.external_reference_id == ORDER_CODE
        assert event.clover_state == "READY"
        assert event.processing_duration_ms is not None

    def test_alternate_signature_header(self, api_client, order):
        response = _post(api_client, _event("READY"), header="Clover-Signature")

        assert response.status_code == 200
        assert response.json()["outcome"] == "applied"

    def test_millisecond_timestamps(self, api_client, order):
        response = _post(api_client, _event("IN_PROGRESS", created=CREATED * 1000))

        assert response.status_code == 200
        entry = OrderStatusHistory.objects.get(order=order)
        assert entry.timestamp == datetime(2025, 6, 29, 17, 0, tzinfo=UTC)

    def test_sends_status_changed_signal(self, api_client, order):
        events = []

        def receiver(sender, **kwargs):
            events.append(kwargs)

        order_status_changed.connect(receiver)
        try:
            _post(api_client, _event("READY"))
        finally:
            order_status_changed.disconnect(receiver)

        assert len(events) == 1
        assert events[0]["previous_status"] == OrderStatus.RECEIVED
        assert events[0]["status"] == OrderStatus.READY
        assert events[0]["source"] == HistorySource.WEBHOOK

    def test_replay_is_a_no_op(self, api_client, order):
        _post(api_client, _event("READY"))
        response = _post(api_client, _event("READY"))

        assert response.json()["outcome"] == "unchanged"
        assert OrderStatusHistory.objects.filter(order=order).count() == 1
        assert POSWebhookEvent.objects.get().status == WebhookStatus.PROCESSED

    def test_stale_event_ignored(self, api_client, order):
        order.status_event_at = datetime(2025, 6, 29, 18, 0, tzinfo=UTC)
        order.save()

        response = _post(api_client, _event("VOIDED"))

        assert response.status_code == 200
        assert response.json()["outcome"] == "stale"
        order.refresh_from_db()
        assert order.status == OrderStatus.RECEIVED
        assert POSWebhookEvent.objects.count() == 0

    def test_unknown_order_writes_nothing(self, api_client):
        users_before = User.objects.count()

        response = _post(api_client, _event("COMPLETED"))

        assert response.status_code == 200
        assert response.json()["outcome"] == "not_found"
        assert POSWebhookEvent.objects.count() == 0
        assert OrderStatusHistory.objects.count() == 0
        assert SystemSetting.objects.count() == 0
        assert User.objects.count() == users_before

    def test_unmapped_state(self, api_client, order):
        response = _post(api_client, _event("LOCKED"))

        assert response.json()["outcome"] == "unmapped_state"
        order.refresh_from_db()
        assert order.status == OrderStatus.RECEIVED
        assert POSWebhookEvent.objects.count() == 0

    def test_event_without_order_reference(self, api_client, order):
        payload = _event()
        payload["order"]["externalReferenceId"] = ""

        response = _post(api_client, payload)

        assert response.json()["outcome"] == "not_order_event"

    def test_other_merchant_ignored(self, api_client, order):
        payload = _event("READY", merchantId="SOMEONE-ELSE")
        payload["order"]["location"] = {"id": "FOREIGN-LOC"}

        response = _post(api_client, payload)

        assert response.status_code == 200
        assert response.json()["outcome"] == "ignored_merchant"
        order.refresh_from_db()
        assert order.status == OrderStatus.RECEIVED
        assert not SystemSetting.objects.filter(key=LOCATION_SETTING_KEY).exists()
        assert POSWebhookEvent.objects.count() == 0

    def test_location_refreshed_from_payload(self, api_client, order):
        payload = _event("READY")
        payload["order"]["location"] = {"id": "LOC-NEW"}

        _post(api_client, payload)

        setting = SystemSetting.objects.get(key=LOCATION_SETTING_KEY)
        assert setting.value == "LOC-NEW"
        assert location_resolver.cached == "LOC-NEW"

    def test_processing_failure_returns_500(self, api_client, order):
        with patch(
            "apps.web.pos.services.webhook_processor.reconcile",
            side_effect=RuntimeError("database went away"),
        ):
            response = _post(api_client, _event("READY"))

        assert response.status_code == 500
        event = POSWebhookEvent.objects.get()
        assert event.status == WebhookStatus.FAILED
        assert "database went away" in event.error

    def test_oversized_ids_are_clipped(self, api_client, order, settings):
        settings.CLOVER_MERCHANT_ID = ""
        payload = _event("READY", merchantId="M" * 100, type="T" * 150)
        payload["order"]["employee"] = {"id": "E" * 100, "displayName": "D" * 300}

        response = _post(api_client, payload)

        assert response.status_code == 200
        assert response.json()["outcome"] == "applied"
        event = POSWebhookEvent.objects.get()
        assert event.merchant_id == "M" * 64
        assert event.event_type == "T" * 100
        actor = User.objects.get(clover_employee_id="E" * 64)
        assert actor.clover_merchant_id == "M" * 64
        entry = OrderStatusHistory.objects.get(order=order)
        assert entry.changed_by == "D" * 200
