"""Market data providers module."""

from trackvest.providers.market_data_provider import MarketDataProvider
from trackvest.providers.polygon_provider import PolygonProxyProvider
from trackvest.providers.stub_provider import StubMarketDataProvider

__all__ = [
    "MarketDataProvider",
    "PolygonProxyProvider",
    "StubMarketDataProvider",
]
