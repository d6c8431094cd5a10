"""Tests for Clover webhook signature verification."""

import base64
import hashlib
import hmac

import pytest

from apps.web.pos.exceptions import WebhookSignatureError
from apps.web.pos.signatures import (
    compute_signature,
    decode_signature,
    verify_webhook_signature,
)

SECRET = "whsec-test"
BODY = b'{"type":"UPDATE","merchantId":"MERCHANT123"}'


def _digest(body: bytes = BODY, secret: str = SECRET) -> bytes:
    return hmac.new(secret.encode(), body, hashlib.sha256).digest()


class TestVerifyWebhookSignature:
    def test_hex_signature(self):
        assert verify_webhook_signature(BODY, _digest().hex(), SECRET) is True

    def test_uppercase_hex_signature(self):
        assert verify_webhook_signature(BODY, _digest().hex().upper(), SECRET) is True

    def test_prefixed_hex_signature(self):
        signature = f"sha256={_digest().hex()}"

        assert verify_webhook_signature(BODY, signature, SECRET) is True

    def test_base64_signature(self):
        signature = base64.b64encode(_digest()).decode()

        assert verify_webhook_signature(BODY, signature, SECRET) is True

    def test_urlsafe_base64_without_padding(self):
        signature = base64.urlsafe_b64encode(_digest()).decode().rstrip("=")

        assert verify_webhook_signature(BODY, signature, SECRET) is True

    def test_wrong_secret_does_not_match(self):
        signature = _digest(secret="other-secret").hex()

        assert verify_webhook_signature(BODY, signature, SECRET) is False

    def test_modified_body_does_not_match(self):
        signature = _digest().hex()

        assert verify_webhook_signature(BODY + b" ", signature, SECRET) is False

    def test_malformed_header_raises(self):
        with pytest.raises(WebhookSignatureError):
            verify_webhook_signature(BODY, "not-a-signature!", SECRET)


class TestDecodeSignature:
    def test_wrong_length_rejected(self):
        short = base64.b64encode(b"too short").decode()

        with pytest.raises(WebhookSignatureError):
            decode_signature(short)

    def test_compute_matches_hmac(self):
        assert compute_signature(BODY, SECRET) == _digest()
