"""Core utilities and shared functionality."""

from trackvest.core.timezone import (
    now_eastern,
    to_eastern,
    parse_datetime_eastern,
    eastern_date,
    EASTERN_TZ,
)
from trackvest.core.exceptions import (
    AppError,
    ValidationError,
    MarketClosedError,
    UpstreamError,
    RateLimitedError,
    NetworkFailureError,
    ParseFailureError,
    MissingApiKeyError,
    PriceUnavailableError,
)
from trackvest.core.trading_calendar import (
    resolve_trading_date,
    is_trading_day,
    is_market_holiday,
    holiday_name,
    observed_holidays,
    format_api_date,
    format_market_date,
    parse_trading_date,
)

__all__ = [
    "now_eastern",
    "to_eastern",
    "parse_datetime_eastern",
    "eastern_date",
    "EASTERN_TZ",
    "AppError",
    "ValidationError",
    "MarketClosedError",
    "UpstreamError",
    "RateLimitedError",
    "NetworkFailureError",
    "ParseFailureError",
    "MissingApiKeyError",
    "PriceUnavailableError",
    "resolve_trading_date",
    "is_trading_day",
    "is_market_holiday",
    "holiday_name",
    "observed_holidays",
    "format_api_date",
    "format_market_date",
    "parse_trading_date",
]
