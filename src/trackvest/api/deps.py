"""Dependency injection for FastAPI."""

from typing import Optional

from fastapi import Depends, Query

from trackvest.app_context import AppContext, get_app_context
from trackvest.services import BatchPriceEnricher, MarketDataCache, PriceResolver


def get_context() -> AppContext:
    """Provide the process-wide AppContext."""
    return get_app_context()


def get_market_cache(context: AppContext = Depends(get_context)) -> MarketDataCache:
    """Provide the shared MarketDataCache instance."""
    return context.cache


def get_price_resolver(context: AppContext = Depends(get_context)) -> PriceResolver:
    """Provide the PriceResolver instance."""
    return context.resolver


def get_batch_enricher(context: AppContext = Depends(get_context)) -> BatchPriceEnricher:
    """Provide the BatchPriceEnricher instance."""
    return context.enricher


def get_api_key(
    api_key: Optional[str] = Query(None, alias="apiKey", description="Upstream API key"),
    context: AppContext = Depends(get_context),
) -> str:
    """Provide the API key from the query string, falling back to settings."""
    return context.resolve_api_key(api_key)
