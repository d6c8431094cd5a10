"""
Clover webhook endpoint.

POST /api/clover/webhooks/orders

Clover expects a fast 2xx. Client errors (bad JSON, bad signature) are
answered with 4xx and never retried into success; processing failures
return 500 so Clover redelivers with its own backoff.
"""

import json
import logging

from django.conf import settings
from django.http import HttpRequest, JsonResponse
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_POST

from pydantic import ValidationError as PydanticValidationError
from tabletop_schemas import CloverOrderWebhook, CloverVerificationHandshake

from apps.web.pos.exceptions import WebhookSignatureError
from apps.web.pos.services.webhook_processor import handle_order_event
from apps.web.pos.signatures import SIGNATURE_HEADERS, verify_webhook_signature

logger = logging.getLogger(__name__)


def _client_ip(request: HttpRequest) -> str:
    return request.META.get("REMOTE_ADDR", "")


def _signature_header(request: HttpRequest) -> str:
    for name in SIGNATURE_HEADERS:
        value = request.headers.get(name, "").strip()
        if value:
            return value
    return ""


@csrf_exempt
@require_POST
def clover_order_webhook(request: HttpRequest) -> JsonResponse:
    """
    Receive Clover order-state webhooks.

    1. Parse the raw body (the signature is checked against these bytes)
    2. Answer the one-time verification handshake
    3. Verify the HMAC signature
    4. Hand the event to the processor
    """
    raw = request.body

    try:
        payload = json.loads(raw)
    except (json.JSONDecodeError, UnicodeDecodeError):
        return JsonResponse({"error": "Invalid JSON"}, status=400)

    if not isinstance(payload, dict):
        return JsonResponse({"error": "Expected a JSON object"}, status=400)

    # Registration handshake: {"verificationCode": "..."} and nothing else
    if set(payload) == {"verificationCode"}:
        try:
            handshake = CloverVerificationHandshake.model_validate(payload)
        except PydanticValidationError:
            return JsonResponse({"error": "Invalid verification code"}, status=400)
        logger.info("Clover webhook verification handshake received")
        return JsonResponse({"verificationCode": handshake.verification_code})

    signature = _signature_header(request)
    if not signature:
        logger.warning(
            "Clover webhook without signature header from %s", _client_ip(request)
        )
        return JsonResponse({"error": "Missing signature header"}, status=400)

    secret = settings.CLOVER_WEBHOOK_SECRET
    if not secret:
        logger.error("CLOVER_WEBHOOK_SECRET is not configured")
        return JsonResponse({"error": "Webhook secret not configured"}, status=500)

    try:
        is_valid = verify_webhook_signature(raw, signature, secret)
    except WebhookSignatureError as e:
        logger.warning(
            "Malformed Clover webhook signature from %s: %s", _client_ip(request), e
        )
        return JsonResponse({"error": "Invalid signature header"}, status=400)

    if not is_valid:
        logger.warning(
            "Clover webhook signature mismatch from %s", _client_ip(request)
        )
        return JsonResponse({"error": "Invalid signature"}, status=401)

    try:
        envelope = CloverOrderWebhook.model_validate(payload)
    except PydanticValidationError as e:
        logger.warning("Invalid Clover webhook payload: %s", e)
        return JsonResponse({"error": "Invalid payload"}, status=400)

    try:
        outcome = handle_order_event(envelope, payload, signature=signature)
    except Exception:
        # Already logged with traceback by the processor
        return JsonResponse({"error": "Webhook processing failed"}, status=500)

    return JsonResponse({"received": True, "outcome": outcome})
