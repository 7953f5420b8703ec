"""Enumerations for domain models."""

from enum import Enum


class AssetClass(str, Enum):
    """Asset classes served by the market data layer."""

    STOCKS = "stocks"
    CRYPTO = "crypto"


class SnapshotStatus(str, Enum):
    """How the current market data snapshot was obtained."""

    LIVE = "LIVE"  # Grouped data for the resolved trading day
    MARKET_CLOSED = "MARKET_CLOSED"  # Upstream reported no data for the day
    FALLBACK = "FALLBACK"  # Grouped data for the last-known-good date
    UNAVAILABLE = "UNAVAILABLE"  # Every date in the fallback chain failed


class PriceSource(str, Enum):
    """Where an enriched symbol's price came from."""

    CACHE = "CACHE"
    FETCHED = "FETCHED"
    SIMULATED = "SIMULATED"
