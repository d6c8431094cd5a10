"""
Clover webhook signature verification.

Clover signs the raw request body with HMAC-SHA256 under the webhook
secret. Depending on the app and environment the digest arrives hex- or
base64-encoded, sometimes with a `sha256=` prefix; all forms are accepted.
"""

import base64
import binascii
import hashlib
import hmac
import re

from apps.web.pos.exceptions import WebhookSignatureError

SIGNATURE_HEADERS = ("X-Clover-Signature", "Clover-Signature")

_DIGEST_SIZE = hashlib.sha256().digest_size
_HEX_RE = re.compile(r"^[0-9a-fA-F]{64}$")


def decode_signature(header_value: str) -> bytes:
    """
    Decode a signature header into the raw 32-byte digest.

    Raises:
        WebhookSignatureError: If the value is neither hex nor base64 of a
            SHA-256 digest.
    """
    value = header_value.strip()
    if value.lower().startswith("sha256="):
        value = value[len("sha256=") :]

    if _HEX_RE.match(value):
        return bytes.fromhex(value)

    padded = value + "=" * (-len(value) % 4)
    for decoder in (base64.b64decode, base64.urlsafe_b64decode):
        try:
            digest = decoder(padded.encode("ascii"))
        except (binascii.Error, ValueError, UnicodeEncodeError):
            continue
        if len(digest) == _DIGEST_SIZE:
            return digest

    raise WebhookSignatureError("Malformed Clover signature header")


def compute_signature(payload: bytes, secret: str) -> bytes:
    """HMAC-SHA256 digest of the raw payload."""
    return hmac.new(secret.encode(), payload, hashlib.sha256).digest()


def verify_webhook_signature(payload: bytes, signature: str, secret: str) -> bool:
    """
    Verify a Clover webhook signature against the raw body.

    Args:
        payload: Raw request body bytes, exactly as received.
        signature: Value of the signature header.
        secret: Webhook secret configured in Clover.

    Returns:
        True if the signature matches.

    Raises:
        WebhookSignatureError: If the header cannot be decoded.
    """
    provided = decode_signature(signature)
    expected = compute_signature(payload, secret)
    return hmac.compare_digest(provided, expected)
