"""
Unit tests for PriceResolver.

Tests cover:
- Cache hits without network calls
- Individual fetch on miss and storage into the snapshot
- Error mapping (closed market vs unavailable price)
- Request coalescing
"""

import asyncio

import pytest

from trackvest.core.exceptions import (
    MarketClosedError,
    NetworkFailureError,
    ParseFailureError,
    PriceUnavailableError,
    RateLimitedError,
    ValidationError,
)
from trackvest.domain.models import AssetClass
from trackvest.services import PriceResolver

from tests.conftest import FALLBACK_DATE, RESOLVED_DATE, make_quote


# =============================================================================
# CACHE HIT TESTS
# =============================================================================


class TestCachedPrices:
    """Symbols already in the snapshot cost no extra calls."""

    def test_cached_symbol_makes_no_daily_request(self, price_resolver, fake_provider):
        """
        GIVEN AAPL is in the grouped snapshot at 185.50
        WHEN I resolve AAPL
        THEN the cached close is returned after only the grouped fetch
        """
        price = asyncio.run(price_resolver.resolve_price("AAPL", AssetClass.STOCKS, "key"))

        assert price == 185.50
        assert fake_provider.grouped_calls == [(RESOLVED_DATE, AssetClass.STOCKS)]
        assert fake_provider.daily_calls == []

    def test_lookup_is_case_insensitive(self, price_resolver, fake_provider):
        price = asyncio.run(price_resolver.resolve_price(" msft ", "stocks", "key"))

        assert price == 378.25
        assert fake_provider.daily_calls == []

    def test_cached_close_round_trips_exactly(self, price_resolver, fake_provider, market_cache):
        async def scenario():
            snapshot = await market_cache.get_snapshot("key")
            resolved = await price_resolver.resolve_price("GOOGL", AssetClass.STOCKS, "key")
            return snapshot.stocks["GOOGL"].close, resolved

        cached, resolved = asyncio.run(scenario())

        assert resolved == cached

    def test_empty_symbol_is_rejected(self, price_resolver, fake_provider):
        with pytest.raises(ValidationError):
            asyncio.run(price_resolver.resolve_price("   ", AssetClass.STOCKS, "key"))
        assert fake_provider.total_calls == 0


# =============================================================================
# CACHE MISS TESTS
# =============================================================================


class TestIndividualFetch:
    """Misses trigger one open/close request for the resolved trading day."""

    def test_miss_fetches_and_stores(self, price_resolver, fake_provider, market_cache):
        """
        GIVEN TSLA is not in the grouped snapshot
        WHEN I resolve TSLA twice
        THEN one daily request is made and the quote is added to the snapshot
        """
        fake_provider.daily["TSLA"] = make_quote("TSLA", 248.42)

        async def scenario():
            first = await price_resolver.resolve_price("TSLA", AssetClass.STOCKS, "key")
            second = await price_resolver.resolve_price("TSLA", AssetClass.STOCKS, "key")
            return first, second

        first, second = asyncio.run(scenario())

        assert first == second == 248.42
        assert fake_provider.daily_calls == [("TSLA", AssetClass.STOCKS, RESOLVED_DATE)]
        assert market_cache.lookup("TSLA").close == 248.42

    def test_crypto_miss_uses_base_symbol(self, price_resolver, fake_provider, market_cache):
        fake_provider.daily["BTC"] = make_quote("BTC", 42150.0)

        quote = asyncio.run(price_resolver.resolve_quote("X:BTCUSD", AssetClass.CRYPTO, "key"))

        assert quote.symbol == "BTC"
        assert fake_provider.daily_calls == [("BTC", AssetClass.CRYPTO, RESOLVED_DATE)]
        assert market_cache.lookup("btc", AssetClass.CRYPTO).close == 42150.0
        assert market_cache.lookup("BTC", AssetClass.STOCKS) is None

    def test_miss_during_fallback_fetches_resolved_day(self, price_resolver, fake_provider, market_cache):
        """
        GIVEN the grouped fetch for the resolved day failed (FALLBACK snapshot)
        WHEN I resolve TSLA twice
        THEN one daily request is made for the resolved day, not the fallback date
        """
        fake_provider.grouped_errors[RESOLVED_DATE] = NetworkFailureError("boom", status_code=500)
        fake_provider.daily["TSLA"] = make_quote("TSLA", 248.42)

        async def scenario():
            first = await price_resolver.resolve_price("TSLA", AssetClass.STOCKS, "key")
            second = await price_resolver.resolve_price("TSLA", AssetClass.STOCKS, "key")
            return first, second

        first, second = asyncio.run(scenario())

        assert market_cache.current.date == FALLBACK_DATE
        assert fake_provider.daily_calls == [("TSLA", AssetClass.STOCKS, RESOLVED_DATE)]
        assert first == second == 248.42
        assert market_cache.current.get("TSLA") is None
        assert market_cache.lookup("TSLA").close == 248.42

    def test_given_snapshot_skips_cache_refresh(self, price_resolver, fake_provider, market_cache):
        fake_provider.grouped_errors["*"] = NetworkFailureError("down")
        fake_provider.daily["TSLA"] = make_quote("TSLA", 248.42)

        async def scenario():
            snapshot = await market_cache.get_snapshot("key")
            calls_before = len(fake_provider.grouped_calls)
            price = await price_resolver.resolve_price("TSLA", AssetClass.STOCKS, "key", snapshot=snapshot)
            return calls_before, price

        calls_before, price = asyncio.run(scenario())

        assert price == 248.42
        assert len(fake_provider.grouped_calls) == calls_before
        assert fake_provider.daily_calls == [("TSLA", AssetClass.STOCKS, RESOLVED_DATE)]

    def test_market_closed_propagates(self, price_resolver, fake_provider):
        fake_provider.daily_errors["TSLA"] = MarketClosedError(RESOLVED_DATE, "holiday")

        with pytest.raises(MarketClosedError) as exc_info:
            asyncio.run(price_resolver.resolve_price("TSLA", AssetClass.STOCKS, "key"))

        assert exc_info.value.date == RESOLVED_DATE

    @pytest.mark.parametrize(
        "error, reason",
        [
            (RateLimitedError(), "RATE_LIMITED"),
            (NetworkFailureError("timeout"), "NETWORK_FAILURE"),
            (ParseFailureError("bad json"), "PARSE_FAILURE"),
        ],
    )
    def test_upstream_failures_become_price_unavailable(self, price_resolver, fake_provider, error, reason):
        fake_provider.daily_errors["TSLA"] = error

        with pytest.raises(PriceUnavailableError) as exc_info:
            asyncio.run(price_resolver.resolve_price("TSLA", AssetClass.STOCKS, "key"))

        assert exc_info.value.symbol == "TSLA"
        assert exc_info.value.reason == reason
        assert exc_info.value.__cause__ is error

    def test_failed_fetch_is_not_cached(self, price_resolver, fake_provider, market_cache):
        fake_provider.daily_errors["TSLA"] = RateLimitedError()

        with pytest.raises(PriceUnavailableError):
            asyncio.run(price_resolver.resolve_price("TSLA", AssetClass.STOCKS, "key"))

        assert market_cache.lookup("TSLA") is None


# =============================================================================
# COALESCING TESTS
# =============================================================================


class TestCoalescing:
    """Concurrent lookups for the same symbol share one request."""

    def test_concurrent_lookups_share_request(self, price_resolver, fake_provider):
        fake_provider.daily["NFLX"] = make_quote("NFLX", 640.10)

        async def scenario():
            return await asyncio.gather(
                *(price_resolver.resolve_price("NFLX", AssetClass.STOCKS, "key") for _ in range(3))
            )

        prices = asyncio.run(scenario())

        assert prices == [640.10, 640.10, 640.10]
        assert len(fake_provider.daily_calls) == 1

    def test_coalescing_disabled_makes_one_request_per_caller(self, market_cache, fake_provider):
        resolver = PriceResolver(cache=market_cache, provider=fake_provider, coalesce_requests=False)
        fake_provider.daily["NFLX"] = make_quote("NFLX", 640.10)

        async def scenario():
            return await asyncio.gather(
                *(resolver.resolve_price("NFLX", AssetClass.STOCKS, "key") for _ in range(3))
            )

        asyncio.run(scenario())

        assert len(fake_provider.daily_calls) == 3

    def test_shared_failure_reaches_every_caller(self, price_resolver, fake_provider):
        fake_provider.daily_errors["NFLX"] = RateLimitedError()

        async def scenario():
            return await asyncio.gather(
                *(price_resolver.resolve_price("NFLX", AssetClass.STOCKS, "key") for _ in range(2)),
                return_exceptions=True,
            )

        results = asyncio.run(scenario())

        assert all(isinstance(r, PriceUnavailableError) for r in results)
        assert len(fake_provider.daily_calls) == 1
