"""Application context for in-process service management.

Constructs the market data services once per process/session and hands the
same cache to every consumer. Used by the HTTP API and by UI code that calls
the layer directly.
"""

from typing import Optional

from trackvest.config.settings import Settings, get_settings
from trackvest.providers import (
    MarketDataProvider,
    PolygonProxyProvider,
    StubMarketDataProvider,
)
from trackvest.services import (
    BatchPriceEnricher,
    MarketDataCache,
    PriceResolver,
    SimulatedPriceGenerator,
)


class AppContext:
    """
    Application context providing access to the market data services.

    Services are created lazily and share one MarketDataCache.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        provider: Optional[MarketDataProvider] = None,
    ):
        """
        Initialize application context.

        Args:
            settings: Settings to use. Falls back to the global settings.
            provider: Optional provider override (tests, offline tooling).
        """
        self._settings = settings or get_settings()
        self._provider = provider

        # Service instances (lazy initialized)
        self._cache: Optional[MarketDataCache] = None
        self._resolver: Optional[PriceResolver] = None
        self._enricher: Optional[BatchPriceEnricher] = None
        self._simulator: Optional[SimulatedPriceGenerator] = None

    @property
    def settings(self) -> Settings:
        return self._settings

    @property
    def provider(self) -> MarketDataProvider:
        """Get the upstream provider (stub in offline mode)."""
        if self._provider is None:
            if self._settings.offline_mode:
                self._provider = StubMarketDataProvider()
            else:
                self._provider = PolygonProxyProvider(
                    base_url=self._settings.upstream_base_url,
                    timeout_seconds=self._settings.request_timeout_seconds,
                )
        return self._provider

    @property
    def cache(self) -> MarketDataCache:
        """Get the MarketDataCache instance."""
        if self._cache is None:
            self._cache = MarketDataCache(
                provider=self.provider,
                overrides=self._settings.trading_date_overrides,
                closures=self._settings.market_closures,
                fallback_date=self._settings.fallback_trading_date,
                max_attempts=self._settings.calendar_max_attempts,
                prefetch_crypto=self._settings.prefetch_crypto,
            )
        return self._cache

    @property
    def resolver(self) -> PriceResolver:
        """Get the PriceResolver instance."""
        if self._resolver is None:
            self._resolver = PriceResolver(
                cache=self.cache,
                provider=self.provider,
                coalesce_requests=self._settings.coalesce_requests,
            )
        return self._resolver

    @property
    def simulator(self) -> SimulatedPriceGenerator:
        """Get the SimulatedPriceGenerator instance."""
        if self._simulator is None:
            self._simulator = SimulatedPriceGenerator(seed=self._settings.simulation_seed)
        return self._simulator

    @property
    def enricher(self) -> BatchPriceEnricher:
        """Get the BatchPriceEnricher instance."""
        if self._enricher is None:
            self._enricher = BatchPriceEnricher(
                cache=self.cache,
                resolver=self.resolver,
                simulator=self.simulator,
                limit=self._settings.batch_price_limit,
                stagger_seconds=self._settings.batch_stagger_seconds,
            )
        return self._enricher

    def resolve_api_key(self, api_key: Optional[str] = None) -> str:
        """Per-request key, else the configured key, else empty."""
        return api_key or self._settings.polygon_api_key or ""

    async def close(self) -> None:
        """Clean up resources."""
        if self._provider is not None:
            await self._provider.aclose()
        self._provider = None
        self._cache = None
        self._resolver = None
        self._enricher = None


# Global application context (one per process)
_app_context: Optional[AppContext] = None


def get_app_context() -> AppContext:
    """Get or create the global application context."""
    global _app_context
    if _app_context is None:
        _app_context = AppContext()
    return _app_context


def set_app_context(context: Optional[AppContext]) -> None:
    """Set (or clear) the global application context."""
    global _app_context
    _app_context = context
