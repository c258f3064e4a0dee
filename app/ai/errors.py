from __future__ import annotations


class GatewayError(RuntimeError):
    code = "gateway_error"
    status_code = 500

    def __init__(self, message: str, *, code: str | None = None, status_code: int | None = None):
        super().__init__(message)
        if code is not None:
            self.code = code
        if status_code is not None:
            self.status_code = status_code


class GatewayNotConfiguredError(GatewayError):
    code = "not_configured"
    status_code = 500

    def __init__(self, message: str = "AI gateway API key is not configured"):
        super().__init__(message)


class GatewayRateLimitError(GatewayError):
    code = "rate_limited"
    status_code = 429

    def __init__(
        self,
        message: str = "AI rate limit exceeded. Please wait a moment before trying again.",
        *,
        retry_after: int = 60,
    ):
        super().__init__(message)
        self.retry_after = retry_after


class GatewayCreditsError(GatewayError):
    code = "credits_depleted"
    status_code = 402

    def __init__(self, message: str = "AI credits depleted. Please add credits to continue."):
        super().__init__(message)


class GatewayResponseError(GatewayError):
    code = "invalid_response"
    status_code = 502
