"""POS integration exceptions - raised by the Clover client and services."""

PROVIDER = "clover"


class POSError(Exception):
    """Base exception for Clover integration errors."""

    def __init__(self, message: str, provider: str | None = PROVIDER) -> None:
        self.message = message
        self.provider = provider
        super().__init__(message)


class POSAuthError(POSError):
    """Clover rejected the API token (401/403)."""


class POSAPIError(POSError):
    """Request to the Clover API failed or timed out."""

    def __init__(
        self,
        message: str,
        provider: str | None = PROVIDER,
        status_code: int | None = None,
        response_body: str | None = None,
    ) -> None:
        super().__init__(message, provider)
        self.status_code = status_code
        self.response_body = response_body

    @property
    def is_retryable(self) -> bool:
        """Transport errors, timeouts and 5xx responses are worth retrying."""
        return self.status_code is None or self.status_code >= 500


class POSRateLimitError(POSAPIError):
    """Clover returned 429."""

    def __init__(
        self,
        message: str,
        provider: str | None = PROVIDER,
        retry_after: int | None = None,
    ) -> None:
        super().__init__(message, provider, status_code=429)
        self.retry_after = retry_after

    @property
    def is_retryable(self) -> bool:
        return True


class POSWebhookError(POSError):
    """Webhook request could not be parsed or validated."""


class WebhookSignatureError(POSWebhookError):
    """Webhook signature header is malformed or does not match."""


class POSOrderError(POSError):
    """Order could not be mapped or pushed to Clover."""

    def __init__(
        self,
        message: str,
        provider: str | None = PROVIDER,
        order_id: str | None = None,
    ) -> None:
        super().__init__(message, provider)
        self.order_id = order_id


class LocationDiscoveryError(POSError):
    """No Clover location id could be resolved from any source."""
