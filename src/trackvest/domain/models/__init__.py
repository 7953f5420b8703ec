"""Domain models package."""

from trackvest.domain.models.enums import AssetClass, PriceSource, SnapshotStatus
from trackvest.domain.models.quote import Quote
from trackvest.domain.models.snapshot import MarketDataSnapshot
from trackvest.domain.models.symbol import (
    SymbolRecord,
    normalize_symbol,
    upstream_ticker,
)

__all__ = [
    "AssetClass",
    "PriceSource",
    "SnapshotStatus",
    "Quote",
    "MarketDataSnapshot",
    "SymbolRecord",
    "normalize_symbol",
    "upstream_ticker",
]
