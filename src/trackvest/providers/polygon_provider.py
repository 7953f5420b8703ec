"""
Polygon.io data through the dashboard's HTTP proxy.

Endpoints (all GET, parameters in the query string):
    /api/polygon/daily           date, apiKey            grouped stock bars
    /api/polygon/daily/crypto    date, apiKey            grouped crypto bars
    /api/polygon/open-close      symbol, date, apiKey    single-symbol bar

This module is the boundary where upstream prose ("no data", "holiday",
"exceeded the maximum requests", ...) is turned into typed exceptions.
"""

import logging
from typing import Any, Optional

import httpx
from pydantic import BaseModel, ConfigDict, Field, ValidationError as PydanticValidationError

from trackvest.core.exceptions import (
    MarketClosedError,
    MissingApiKeyError,
    NetworkFailureError,
    ParseFailureError,
    RateLimitedError,
)
from trackvest.domain.models import AssetClass, Quote
from trackvest.domain.models.symbol import (
    CRYPTO_PAIR_PREFIX,
    CRYPTO_QUOTE_CURRENCY,
    normalize_symbol,
    upstream_ticker,
)

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "http://localhost:3001"
DEFAULT_TIMEOUT_SECONDS = 10.0

GROUPED_PATHS = {
    AssetClass.STOCKS: "/api/polygon/daily",
    AssetClass.CRYPTO: "/api/polygon/daily/crypto",
}
OPEN_CLOSE_PATH = "/api/polygon/open-close"

# DELAYED is what free-tier keys receive instead of OK
_OK_STATUSES = {"OK", "DELAYED"}

_CLOSED_MARKERS = ("no data", "holiday", "weekend", "not open", "market closed")
_RATE_LIMIT_MARKERS = (
    "exceeded the maximum requests",
    "rate limit",
    "too many requests",
    "call frequency",
)


class GroupedBar(BaseModel):
    """One row of a grouped-daily response."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    ticker: str = Field(alias="T")
    close: float = Field(alias="c")
    open: float = Field(alias="o")
    high: float = Field(alias="h")
    low: float = Field(alias="l")
    volume: Optional[float] = Field(default=None, alias="v")
    vwap: Optional[float] = Field(default=None, alias="vw")
    transactions: Optional[int] = Field(default=None, alias="n")


class DailyBar(BaseModel):
    """Single-symbol open/close response."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    status: str
    symbol: Optional[str] = None
    day: Optional[str] = Field(default=None, alias="from")
    open: float
    high: float
    low: float
    close: float
    volume: Optional[float] = None


def _contains_any(text: str, markers: tuple[str, ...]) -> bool:
    lowered = text.lower()
    return any(marker in lowered for marker in markers)


def _message_text(payload: Optional[dict[str, Any]], raw: str) -> str:
    """Collect the human-readable error fields of a response."""
    if payload is None:
        return raw.strip()
    parts = [
        str(payload[key])
        for key in ("error", "message", "details")
        if payload.get(key)
    ]
    return " ".join(parts)


class PolygonProxyProvider:
    """
    Async market data provider speaking the proxy's request contract.

    Owns an httpx.AsyncClient unless one is injected. Every request carries a
    timeout; a timeout is reported as NetworkFailureError.
    """

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            base_url=base_url,
            timeout=timeout_seconds,
        )

    @property
    def provider_name(self) -> str:
        return "polygon"

    async def aclose(self) -> None:
        """Close the underlying HTTP client if this provider created it."""
        if self._owns_client:
            await self._client.aclose()

    async def fetch_grouped(
        self,
        date: str,
        asset_class: AssetClass,
        api_key: str,
    ) -> list[Quote]:
        """Fetch grouped daily bars for `date`; raises MarketClosedError on no data."""
        asset_class = AssetClass(asset_class)
        path = GROUPED_PATHS[asset_class]
        logger.info("Fetching grouped %s data for %s", asset_class.value, date)

        status_code, payload, message = await self._get(path, {"date": date}, api_key)
        self._raise_for_failure(date, asset_class, status_code, payload, message)

        if payload.get("resultsCount") == 0 or not payload.get("results"):
            if asset_class == AssetClass.CRYPTO:
                raise NetworkFailureError(message or f"no crypto data returned for {date}")
            raise MarketClosedError(date, message or "no data returned for this date")

        results = payload["results"]
        if not isinstance(results, list):
            raise ParseFailureError("'results' is not a list")

        try:
            bars = [GroupedBar.model_validate(row) for row in results]
        except PydanticValidationError as exc:
            raise ParseFailureError(f"invalid grouped bar: {exc.errors()[0]['msg']}") from exc

        quotes = []
        for bar in bars:
            if asset_class == AssetClass.CRYPTO and not self._is_usd_pair(bar.ticker):
                continue
            quotes.append(
                Quote(
                    symbol=normalize_symbol(bar.ticker, asset_class),
                    close=bar.close,
                    open=bar.open,
                    high=bar.high,
                    low=bar.low,
                    volume=bar.volume,
                    vwap=bar.vwap,
                    transactions=bar.transactions,
                )
            )

        logger.info("Retrieved %d %s bars for %s", len(quotes), asset_class.value, date)
        return quotes

    async def fetch_daily_bar(
        self,
        symbol: str,
        asset_class: AssetClass,
        date: str,
        api_key: str,
    ) -> Quote:
        """Fetch the open/close bar for one symbol on `date`."""
        asset_class = AssetClass(asset_class)
        ticker = upstream_ticker(symbol, asset_class)
        logger.debug("Fetching open-close for %s on %s", ticker, date)

        status_code, payload, message = await self._get(
            OPEN_CLOSE_PATH, {"symbol": ticker, "date": date}, api_key
        )
        self._raise_for_failure(date, asset_class, status_code, payload, message)

        try:
            bar = DailyBar.model_validate(payload)
        except PydanticValidationError as exc:
            raise ParseFailureError(f"invalid open-close bar for {ticker}") from exc

        return Quote(
            symbol=normalize_symbol(symbol, asset_class),
            close=bar.close,
            open=bar.open,
            high=bar.high,
            low=bar.low,
            volume=bar.volume,
        )

    async def _get(
        self,
        path: str,
        params: dict[str, str],
        api_key: str,
    ) -> tuple[int, Optional[dict[str, Any]], str]:
        """
        Issue a GET and return (status_code, json_object_or_None, message_text).

        Transport failures become NetworkFailureError; nothing else is raised here.
        """
        if not api_key:
            raise MissingApiKeyError()

        try:
            response = await self._client.get(path, params={**params, "apiKey": api_key})
        except httpx.TimeoutException as exc:
            raise NetworkFailureError(f"timeout requesting {path}") from exc
        except httpx.HTTPError as exc:
            raise NetworkFailureError(f"{exc.__class__.__name__} requesting {path}") from exc

        try:
            body = response.json()
        except ValueError:
            body = None
        payload = body if isinstance(body, dict) else None

        return response.status_code, payload, _message_text(payload, response.text)

    @staticmethod
    def _raise_for_failure(
        date: str,
        asset_class: AssetClass,
        status_code: int,
        payload: Optional[dict[str, Any]],
        message: str,
    ) -> None:
        """
        Classify a response into a typed exception, or return if it is usable.

        Only equities have closed days; a crypto "no data" answer is a failure.
        """
        if status_code == 429 or _contains_any(message, _RATE_LIMIT_MARKERS):
            raise RateLimitedError(message or f"HTTP {status_code}")
        if _contains_any(message, _CLOSED_MARKERS):
            if asset_class == AssetClass.CRYPTO:
                raise NetworkFailureError(message, status_code=status_code)
            raise MarketClosedError(date, message)
        if not 200 <= status_code < 300:
            raise NetworkFailureError(message or f"HTTP {status_code}", status_code=status_code)
        if payload is None:
            raise ParseFailureError("response body is not a JSON object")

        status = payload.get("status")
        if status is None:
            raise ParseFailureError("response has no 'status' field")
        if str(status).upper() not in _OK_STATUSES:
            raise NetworkFailureError(
                message or f"upstream status {status}",
                status_code=status_code,
            )

    @staticmethod
    def _is_usd_pair(ticker: str) -> bool:
        return ticker.upper().startswith(CRYPTO_PAIR_PREFIX) and ticker.upper().endswith(
            CRYPTO_QUOTE_CURRENCY
        )
