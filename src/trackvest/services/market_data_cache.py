"""
Grouped end-of-day market data cache.

Holds exactly one MarketDataSnapshot: the grouped daily bars for the most
recent resolved trading day. A new trading day replaces the snapshot
wholesale; individual lookups add quotes to it in place.
"""

import asyncio
import logging
from datetime import datetime
from typing import Callable, Iterable, Mapping, Optional

from trackvest.core.exceptions import MarketClosedError, UpstreamError
from trackvest.core.timezone import now_eastern
from trackvest.core.trading_calendar import (
    DEFAULT_FALLBACK_DATE,
    DEFAULT_MAX_ATTEMPTS,
    format_api_date,
    resolve_trading_date,
)
from trackvest.domain.models import (
    AssetClass,
    MarketDataSnapshot,
    Quote,
    SnapshotStatus,
    normalize_symbol,
)
from trackvest.providers.market_data_provider import MarketDataProvider

logger = logging.getLogger(__name__)

POPULAR_STOCK_SYMBOLS = (
    "AAPL", "MSFT", "GOOGL", "AMZN", "META", "TSLA", "NVDA", "JPM",
    "V", "WMT", "DIS", "NFLX", "PYPL", "INTC", "AMD", "BA",
)


class MarketDataCache:
    """
    Process/session-scoped cache of grouped daily quotes.

    get_snapshot never raises for upstream failures: it always returns a
    snapshot, possibly empty. An empty stock map means "no data", not an error.

    Fallback chain on failure: [resolved trading day, fallback date], then an
    empty UNAVAILABLE snapshot.
    """

    def __init__(
        self,
        provider: MarketDataProvider,
        *,
        overrides: Optional[Mapping[str, str]] = None,
        closures: Iterable[str] = (),
        fallback_date: str = DEFAULT_FALLBACK_DATE,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        prefetch_crypto: bool = False,
        clock: Callable[[], datetime] = now_eastern,
    ):
        self._provider = provider
        self._overrides = dict(overrides or {})
        self._closures = tuple(closures)
        self._fallback_date = format_api_date(fallback_date)
        self._max_attempts = max_attempts
        self._prefetch_crypto = prefetch_crypto
        self._clock = clock

        self._snapshot: Optional[MarketDataSnapshot] = None
        # Resolved trading day the current snapshot was fetched for
        self._resolved_for: Optional[str] = None
        # Individually fetched quotes for the resolved day while the snapshot
        # holds another date (FALLBACK / UNAVAILABLE)
        self._day_quotes: Optional[MarketDataSnapshot] = None
        self._refresh_lock = asyncio.Lock()

    @property
    def current(self) -> Optional[MarketDataSnapshot]:
        """The current snapshot, or None before the first fetch."""
        return self._snapshot

    @property
    def resolved_date(self) -> Optional[str]:
        """Resolved trading day of the last refresh, or None before the first fetch."""
        return self._resolved_for

    @property
    def fallback_date(self) -> str:
        return self._fallback_date

    def trading_date(self) -> str:
        """Resolve the trading day for the cache clock's current time."""
        return resolve_trading_date(
            self._clock(),
            self._overrides,
            fallback_date=self._fallback_date,
            max_attempts=self._max_attempts,
            closures=self._closures,
        )

    async def get_snapshot(self, api_key: str) -> MarketDataSnapshot:
        """
        Return the snapshot for the current trading day, fetching on miss.

        Cache hit (no network): the current snapshot was fetched for the same
        resolved trading day and either holds stock data or recorded a closed
        market.
        """
        date = self.trading_date()
        if self._is_fresh(date):
            logger.debug("Market data cache hit for %s", date)
            return self._snapshot

        async with self._refresh_lock:
            # Another task may have refreshed while we waited
            if self._is_fresh(date):
                return self._snapshot

            snapshot = await self._refresh(date, api_key)
            self._replace(snapshot, date)
            return snapshot

    async def get_quotes(
        self,
        api_key: str,
        symbols: Optional[Iterable[str]] = None,
        asset_class: AssetClass = AssetClass.STOCKS,
    ) -> list[Quote]:
        """
        Return cached quotes for `symbols` in request order (all when None).

        Unknown symbols are skipped.
        """
        snapshot = await self.get_snapshot(api_key)
        quotes = snapshot.quotes_for(asset_class)
        if symbols is None:
            return list(quotes.values())

        result = []
        for symbol in symbols:
            quote = quotes.get(normalize_symbol(symbol, asset_class))
            if quote is not None:
                result.append(quote)
        return result

    def lookup(self, symbol: str, asset_class: AssetClass = AssetClass.STOCKS) -> Optional[Quote]:
        """
        Look up a symbol without any I/O.

        Checks the current snapshot, then quotes fetched individually for the
        resolved day.
        """
        if self._snapshot is None:
            return None
        key = normalize_symbol(symbol, asset_class)
        quote = self._snapshot.get(key, asset_class)
        if quote is None and self._day_quotes is not None:
            quote = self._day_quotes.get(key, asset_class)
        return quote

    def store(self, quote: Quote, asset_class: AssetClass, date: str) -> bool:
        """
        Insert an individually fetched quote.

        A quote for the snapshot's date goes into the snapshot. A quote for the
        resolved day while a fallback snapshot is live is kept beside it and
        merged once that day's grouped data arrives. Any other date is stale and
        ignored (returns False).
        """
        if self._snapshot is not None and self._snapshot.date == date:
            self._snapshot.put(quote, asset_class)
            return True
        if self._snapshot is None or date != self._resolved_for:
            logger.debug("Dropping %s quote for stale date %s", quote.symbol, date)
            return False

        if self._day_quotes is None or self._day_quotes.date != date:
            self._day_quotes = MarketDataSnapshot(date=date)
        self._day_quotes.put(quote, asset_class)
        return True

    def clear(self) -> None:
        """Forget the current snapshot."""
        self._snapshot = None
        self._resolved_for = None
        self._day_quotes = None

    def _is_fresh(self, date: str) -> bool:
        snapshot = self._snapshot
        if snapshot is None or self._resolved_for != date:
            return False
        return not snapshot.is_empty or snapshot.status == SnapshotStatus.MARKET_CLOSED

    def _replace(self, snapshot: MarketDataSnapshot, resolved_for: str) -> None:
        previous = self._snapshot
        if previous is not None and previous.date == snapshot.date:
            # Same day: keep individually resolved crypto quotes
            for symbol, quote in previous.crypto.items():
                snapshot.crypto.setdefault(symbol, quote)
        elif previous is not None:
            logger.info("Replacing market data snapshot %s -> %s", previous.date, snapshot.date)

        day_quotes = self._day_quotes
        if day_quotes is not None and day_quotes.date != resolved_for:
            day_quotes = None
        if day_quotes is not None and day_quotes.date == snapshot.date:
            for asset_class in AssetClass:
                target = snapshot.quotes_for(asset_class)
                for symbol, quote in day_quotes.quotes_for(asset_class).items():
                    target.setdefault(symbol, quote)
            day_quotes = None

        self._day_quotes = day_quotes
        self._snapshot = snapshot
        self._resolved_for = resolved_for

    async def _refresh(self, date: str, api_key: str) -> MarketDataSnapshot:
        for attempt_date in self._fallback_chain(date):
            try:
                quotes = await self._provider.fetch_grouped(attempt_date, AssetClass.STOCKS, api_key)
            except MarketClosedError as exc:
                if attempt_date == date:
                    logger.info("No market data for %s, caching closed market", date)
                    return MarketDataSnapshot(date=date, status=SnapshotStatus.MARKET_CLOSED)
                logger.warning("Fallback date %s reported closed: %s", attempt_date, exc.message)
                continue
            except UpstreamError as exc:
                logger.warning("Grouped fetch for %s failed: %s", attempt_date, exc.message)
                continue
            except Exception:
                logger.exception("Unexpected error fetching grouped data for %s", attempt_date)
                continue

            status = SnapshotStatus.LIVE if attempt_date == date else SnapshotStatus.FALLBACK
            snapshot = MarketDataSnapshot(
                date=attempt_date,
                stocks={quote.symbol: quote for quote in quotes},
                status=status,
            )
            if self._prefetch_crypto:
                await self._load_crypto(snapshot, api_key)
            logger.info(
                "Cached %d stock quotes for %s (%s)",
                len(snapshot.stocks), attempt_date, status.value,
            )
            return snapshot

        logger.warning("Market data unavailable; serving empty snapshot for %s", self._fallback_date)
        return MarketDataSnapshot(date=self._fallback_date, status=SnapshotStatus.UNAVAILABLE)

    async def _load_crypto(self, snapshot: MarketDataSnapshot, api_key: str) -> None:
        try:
            quotes = await self._provider.fetch_grouped(snapshot.date, AssetClass.CRYPTO, api_key)
        except (MarketClosedError, UpstreamError) as exc:
            logger.warning("Grouped crypto fetch for %s failed: %s", snapshot.date, exc.message)
            return
        snapshot.crypto.update({quote.symbol: quote for quote in quotes})

    def _fallback_chain(self, date: str) -> list[str]:
        if date == self._fallback_date:
            return [date]
        return [date, self._fallback_date]
