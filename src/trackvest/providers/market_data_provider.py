"""Market data provider protocol."""

from typing import Protocol

from trackvest.domain.models import AssetClass, Quote


class MarketDataProvider(Protocol):
    """
    Protocol for upstream end-of-day data sources.

    Implementations are the only place that interprets upstream responses.
    Every failure is raised as a typed exception from trackvest.core.exceptions:
    MarketClosedError (equities only), RateLimitedError, NetworkFailureError,
    ParseFailureError or MissingApiKeyError. Callers never inspect message text.
    """

    async def fetch_grouped(
        self,
        date: str,
        asset_class: AssetClass,
        api_key: str,
    ) -> list[Quote]:
        """
        Fetch one bar per symbol for a trading day (YYYY-MM-DD).

        Quote symbols are normalized cache keys (crypto by base symbol).
        """
        ...

    async def fetch_daily_bar(
        self,
        symbol: str,
        asset_class: AssetClass,
        date: str,
        api_key: str,
    ) -> Quote:
        """Fetch the daily bar for a single normalized symbol."""
        ...

    async def aclose(self) -> None:
        """Release network resources."""
        ...
