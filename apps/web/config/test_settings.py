"""
Settings for the test suite.

Fixed Clover values so tests never depend on a developer's .env.
"""

import os

os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("DATABASE_URL", "sqlite://:memory:")

from apps.web.config.settings import *  # noqa: E402,F403

PASSWORD_HASHERS = ["django.contrib.auth.hashers.MD5PasswordHasher"]

CLOVER_SANDBOX = True
CLOVER_MERCHANT_ID = "MERCHANT123"
CLOVER_API_TOKEN = "test-clover-token"
CLOVER_WEBHOOK_SECRET = "test-webhook-secret"
CLOVER_LOCATION_ID = ""
CLOVER_SYNC_ENABLED = True
CLOVER_REQUEST_TIMEOUT = 5.0
CLOVER_POLL_WINDOW_MINUTES = 15
CLOVER_PUSH_MAX_ATTEMPTS = 5
CLOVER_PUSH_BACKOFF_SECONDS = 1.0
CLOVER_PUSH_KEEP_COMPLETED = 100
CLOVER_PUSH_KEEP_FAILED = 100
CLOVER_PUSH_STALL_SECONDS = 300
CLOVER_ORDER_SOURCE_TEXT = "Online Order"
CLOVER_DISPLAY_TIME_ZONE = "America/New_York"
