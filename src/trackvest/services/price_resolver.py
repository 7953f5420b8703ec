"""Single-symbol price resolution: cache first, individual fetch on miss."""

import asyncio
import logging
from typing import Optional

from trackvest.core.exceptions import (
    MarketClosedError,
    PriceUnavailableError,
    UpstreamError,
    ValidationError,
)
from trackvest.domain.models import AssetClass, MarketDataSnapshot, Quote, normalize_symbol
from trackvest.providers.market_data_provider import MarketDataProvider
from trackvest.services.market_data_cache import MarketDataCache

logger = logging.getLogger(__name__)


class PriceResolver:
    """
    Resolves a symbol's latest close.

    Lookups are served from the MarketDataCache when possible. On a miss one
    open/close request is made for the resolved trading day (even when the
    cache is serving a fallback snapshot) and the result is stored back into
    the cache. Concurrent lookups for the same symbol and day share a single
    in-flight request when coalescing is enabled.

    Raises MarketClosedError or PriceUnavailableError; never retries.
    """

    def __init__(
        self,
        cache: MarketDataCache,
        provider: MarketDataProvider,
        coalesce_requests: bool = True,
    ):
        self._cache = cache
        self._provider = provider
        self._coalesce = coalesce_requests
        self._inflight: dict[tuple[AssetClass, str, str], asyncio.Future] = {}

    async def resolve_price(
        self,
        symbol: str,
        asset_class: AssetClass = AssetClass.STOCKS,
        api_key: str = "",
        snapshot: Optional[MarketDataSnapshot] = None,
    ) -> float:
        """Return the latest close for `symbol`."""
        quote = await self.resolve_quote(symbol, asset_class, api_key, snapshot)
        return quote.close

    async def resolve_quote(
        self,
        symbol: str,
        asset_class: AssetClass = AssetClass.STOCKS,
        api_key: str = "",
        snapshot: Optional[MarketDataSnapshot] = None,
    ) -> Quote:
        """
        Return the latest quote for `symbol`.

        Callers that already hold the current snapshot (e.g. a batch) pass it
        in so the cache is not asked to refresh again.
        """
        asset_class = AssetClass(asset_class)
        key = normalize_symbol(symbol, asset_class)
        if not key:
            raise ValidationError("Symbol is required")

        if snapshot is None:
            snapshot = await self._cache.get_snapshot(api_key)
        cached = snapshot.get(key, asset_class) or self._cache.lookup(key, asset_class)
        if cached is not None:
            logger.debug("Using cached price for %s: %s", key, cached.close)
            return cached

        date = self._cache.trading_date()
        if not self._coalesce:
            return await self._fetch(key, asset_class, date, api_key)

        request_key = (asset_class, key, date)
        pending = self._inflight.get(request_key)
        if pending is None:
            pending = asyncio.ensure_future(self._fetch(key, asset_class, date, api_key))
            self._inflight[request_key] = pending
            pending.add_done_callback(lambda _: self._inflight.pop(request_key, None))
        else:
            logger.debug("Joining in-flight request for %s on %s", key, date)

        # Shield so one cancelled caller does not cancel the shared request
        return await asyncio.shield(pending)

    async def _fetch(self, symbol: str, asset_class: AssetClass, date: str, api_key: str) -> Quote:
        try:
            quote = await self._provider.fetch_daily_bar(symbol, asset_class, date, api_key)
        except MarketClosedError:
            raise
        except UpstreamError as exc:
            logger.info("Price for %s on %s unavailable: %s", symbol, date, exc.message)
            raise PriceUnavailableError(symbol, exc.code) from exc

        self._cache.store(quote, asset_class, date)
        return quote
