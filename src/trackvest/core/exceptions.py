"""Application-level exceptions."""

from typing import Optional


class AppError(Exception):
    """Base exception for application errors."""

    def __init__(self, message: str, code: str = "APP_ERROR"):
        self.message = message
        self.code = code
        super().__init__(message)


class ValidationError(AppError):
    """Raised when input validation fails."""

    def __init__(self, message: str):
        super().__init__(message, code="VALIDATION_ERROR")


class MarketClosedError(AppError):
    """Raised when the requested date was not an open trading day upstream."""

    def __init__(self, date: str, detail: str = ""):
        message = f"Market closed on {date}"
        if detail:
            message = f"{message}: {detail}"
        self.date = date
        super().__init__(message, code="MARKET_CLOSED")


class UpstreamError(AppError):
    """Base for failures talking to the upstream market data source."""


class RateLimitedError(UpstreamError):
    """Raised when the upstream source throttles the request."""

    def __init__(self, detail: str = "rate limit exceeded"):
        super().__init__(f"Upstream rate limited: {detail}", code="RATE_LIMITED")


class NetworkFailureError(UpstreamError):
    """Raised on transport failures, timeouts and non-2xx responses."""

    def __init__(self, detail: str, status_code: Optional[int] = None):
        self.status_code = status_code
        super().__init__(f"Upstream request failed: {detail}", code="NETWORK_FAILURE")


class ParseFailureError(UpstreamError):
    """Raised when an upstream payload is malformed."""

    def __init__(self, detail: str):
        super().__init__(f"Malformed upstream payload: {detail}", code="PARSE_FAILURE")


class MissingApiKeyError(UpstreamError):
    """Raised before any request is made when no API key is available."""

    def __init__(self):
        super().__init__("API key not set.", code="API_KEY_MISSING")


class PriceUnavailableError(AppError):
    """Raised when a single symbol's price cannot be obtained."""

    def __init__(self, symbol: str, reason: str = "UNKNOWN"):
        self.symbol = symbol
        self.reason = reason
        super().__init__(
            f"Price unavailable for {symbol} ({reason})",
            code="PRICE_UNAVAILABLE",
        )
