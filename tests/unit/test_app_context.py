"""
Unit tests for AppContext wiring and settings.
"""

import asyncio

from trackvest.app_context import AppContext, get_app_context, set_app_context
from trackvest.config.settings import Settings, get_settings, reset_settings, set_settings
from trackvest.providers import PolygonProxyProvider, StubMarketDataProvider

from tests.conftest import FakeMarketProvider


class TestAppContext:
    """Services are built once and share one cache."""

    def test_services_share_one_cache(self, test_settings):
        context = AppContext(settings=test_settings)

        assert context.resolver._cache is context.cache
        assert context.enricher._cache is context.cache
        assert context.enricher._resolver is context.resolver
        assert context.cache is context.cache

    def test_offline_mode_uses_stub_provider(self, test_settings):
        context = AppContext(settings=test_settings)

        assert isinstance(context.provider, StubMarketDataProvider)

    def test_online_mode_uses_proxy_provider(self):
        context = AppContext(settings=Settings(offline_mode=False, upstream_base_url="http://proxy.test"))

        provider = context.provider

        assert isinstance(provider, PolygonProxyProvider)
        asyncio.run(context.close())

    def test_settings_flow_into_services(self):
        settings = Settings(
            offline_mode=True,
            fallback_trading_date="2024-05-31",
            batch_price_limit=3,
            batch_stagger_seconds=0.25,
        )
        context = AppContext(settings=settings)

        assert context.cache.fallback_date == "2024-05-31"
        assert context.enricher._limit == 3
        assert context.enricher._stagger == 0.25

    def test_api_key_resolution(self):
        context = AppContext(settings=Settings(polygon_api_key="configured"))

        assert context.resolve_api_key("per-request") == "per-request"
        assert context.resolve_api_key(None) == "configured"
        assert AppContext(settings=Settings(polygon_api_key=None)).resolve_api_key() == ""

    def test_close_releases_provider(self, test_settings):
        provider = FakeMarketProvider()
        context = AppContext(settings=test_settings, provider=provider)
        _ = context.cache

        asyncio.run(context.close())

        assert provider.closed is True
        assert context._cache is None


class TestGlobals:
    """Process-wide accessors."""

    def test_app_context_singleton(self):
        set_app_context(None)
        try:
            assert get_app_context() is get_app_context()
        finally:
            set_app_context(None)

    def test_settings_singleton_and_override(self):
        reset_settings()
        try:
            custom = Settings(batch_price_limit=8)
            set_settings(custom)
            assert get_settings() is custom
        finally:
            reset_settings()
