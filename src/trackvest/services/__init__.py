"""Service layer - market data caching, resolution and enrichment."""

from trackvest.services.market_data_cache import MarketDataCache, POPULAR_STOCK_SYMBOLS
from trackvest.services.price_resolver import PriceResolver
from trackvest.services.batch_price_enricher import BatchPriceEnricher
from trackvest.services.price_simulator import SimulatedPriceGenerator, price_band

__all__ = [
    "MarketDataCache",
    "POPULAR_STOCK_SYMBOLS",
    "PriceResolver",
    "BatchPriceEnricher",
    "SimulatedPriceGenerator",
    "price_band",
]
