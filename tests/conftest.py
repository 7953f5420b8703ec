"""
Pytest configuration and fixtures for market data layer tests.

This module provides:
- Time helpers and a settable clock for US/Eastern "now"
- A scriptable in-memory market data provider that records every call
- Service fixtures wired the way AppContext wires them
- A recording sleep so stagger delays can be asserted without waiting
"""

import asyncio
from datetime import datetime
from typing import Optional

import pytest
from fastapi.testclient import TestClient

from trackvest.api.deps import get_context
from trackvest.app_context import AppContext
from trackvest.config.settings import Settings, reset_settings
from trackvest.core.exceptions import NetworkFailureError
from trackvest.core.timezone import EASTERN_TZ
from trackvest.domain.models import AssetClass, Quote
from trackvest.main import app
from trackvest.services import (
    BatchPriceEnricher,
    MarketDataCache,
    PriceResolver,
    SimulatedPriceGenerator,
)


# =============================================================================
# TIMEZONE HELPERS
# =============================================================================


def eastern_datetime(
    year: int,
    month: int,
    day: int,
    hour: int = 10,
    minute: int = 0,
    second: int = 0,
) -> datetime:
    """Create a localized datetime in US/Eastern timezone."""
    return EASTERN_TZ.localize(datetime(year, month, day, hour, minute, second))


# Monday 2024-06-17 resolves to Friday 2024-06-14
MONDAY_MORNING = eastern_datetime(2024, 6, 17, 10, 0, 0)
RESOLVED_DATE = "2024-06-14"
FALLBACK_DATE = "2024-06-07"


class MutableClock:
    """Clock callable whose 'now' tests can move."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now


@pytest.fixture
def clock() -> MutableClock:
    """Clock fixed at Monday 2024-06-17 10:00 Eastern."""
    return MutableClock(MONDAY_MORNING)


# =============================================================================
# MARKET DATA FIXTURES
# =============================================================================


def make_quote(symbol: str, close: float, open_: Optional[float] = None) -> Quote:
    """Build a real (non-simulated) quote."""
    open_ = close if open_ is None else open_
    return Quote(
        symbol=symbol,
        close=close,
        open=open_,
        high=max(close, open_),
        low=min(close, open_),
        volume=1_000_000,
    )


DEFAULT_STOCKS = {
    "AAPL": make_quote("AAPL", 185.50, 184.25),
    "MSFT": make_quote("MSFT", 378.25, 376.80),
    "GOOGL": make_quote("GOOGL", 142.75, 141.50),
}


class FakeMarketProvider:
    """
    Scriptable market data provider for testing.

    Errors are keyed by date (grouped) or symbol (daily); "*" matches anything.
    Every call is recorded, and each call yields to the event loop once so
    concurrent callers interleave.
    """

    def __init__(
        self,
        stocks: Optional[dict[str, Quote]] = None,
        crypto: Optional[dict[str, Quote]] = None,
        daily: Optional[dict[str, Quote]] = None,
    ):
        self.stocks = dict(DEFAULT_STOCKS if stocks is None else stocks)
        self.crypto = dict(crypto or {})
        self.daily = dict(daily or {})
        self.grouped_errors: dict[str, Exception] = {}
        self.daily_errors: dict[str, Exception] = {}
        self.grouped_calls: list[tuple[str, AssetClass]] = []
        self.daily_calls: list[tuple[str, AssetClass, str]] = []
        self.closed = False

    @property
    def total_calls(self) -> int:
        return len(self.grouped_calls) + len(self.daily_calls)

    async def fetch_grouped(self, date: str, asset_class: AssetClass, api_key: str) -> list[Quote]:
        asset_class = AssetClass(asset_class)
        self.grouped_calls.append((date, asset_class))
        await asyncio.sleep(0)
        error = self.grouped_errors.get(date) or self.grouped_errors.get("*")
        if error is not None:
            raise error
        source = self.crypto if asset_class == AssetClass.CRYPTO else self.stocks
        return list(source.values())

    async def fetch_daily_bar(
        self,
        symbol: str,
        asset_class: AssetClass,
        date: str,
        api_key: str,
    ) -> Quote:
        self.daily_calls.append((symbol, AssetClass(asset_class), date))
        await asyncio.sleep(0)
        error = self.daily_errors.get(symbol) or self.daily_errors.get("*")
        if error is not None:
            raise error
        quote = self.daily.get(symbol)
        if quote is None:
            raise NetworkFailureError(f"no bar for {symbol}", status_code=404)
        return quote

    async def aclose(self) -> None:
        self.closed = True


class RecordingSleep:
    """Async sleep replacement that records requested delays."""

    def __init__(self):
        self.calls: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)
        await asyncio.sleep(0)


@pytest.fixture
def fake_provider() -> FakeMarketProvider:
    """Provide a scriptable provider with three cached stocks."""
    return FakeMarketProvider()


@pytest.fixture
def recording_sleep() -> RecordingSleep:
    return RecordingSleep()


# =============================================================================
# SERVICE FIXTURES
# =============================================================================


@pytest.fixture
def market_cache(fake_provider, clock) -> MarketDataCache:
    """Provide a MarketDataCache on the fake provider and fixed clock."""
    return MarketDataCache(
        provider=fake_provider,
        fallback_date=FALLBACK_DATE,
        clock=clock,
    )


@pytest.fixture
def price_resolver(market_cache, fake_provider) -> PriceResolver:
    """Provide a PriceResolver sharing the test cache."""
    return PriceResolver(cache=market_cache, provider=fake_provider)


@pytest.fixture
def simulator() -> SimulatedPriceGenerator:
    """Provide a seeded SimulatedPriceGenerator."""
    return SimulatedPriceGenerator(seed=7)


@pytest.fixture
def batch_enricher(market_cache, price_resolver, simulator, recording_sleep) -> BatchPriceEnricher:
    """Provide a BatchPriceEnricher that records stagger delays instead of sleeping."""
    return BatchPriceEnricher(
        cache=market_cache,
        resolver=price_resolver,
        simulator=simulator,
        limit=5,
        stagger_seconds=0.1,
        sleep=recording_sleep,
    )


# =============================================================================
# API FIXTURES
# =============================================================================


@pytest.fixture
def test_settings() -> Settings:
    """Settings for API tests (offline, no stagger)."""
    reset_settings()
    return Settings(
        offline_mode=True,
        polygon_api_key="test-key",
        batch_stagger_seconds=0.0,
        simulation_seed=1,
    )


def build_client(context: AppContext):
    """Yield a TestClient whose routes use `context`."""
    app.dependency_overrides[get_context] = lambda: context
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def client(test_settings):
    """Provide FastAPI test client backed by the offline stub provider."""
    context = AppContext(settings=test_settings)
    yield from build_client(context)
