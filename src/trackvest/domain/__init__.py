"""Domain layer - pure market data models with no external dependencies."""

from trackvest.domain.models import (
    AssetClass,
    PriceSource,
    SnapshotStatus,
    Quote,
    MarketDataSnapshot,
    SymbolRecord,
)

__all__ = [
    "AssetClass",
    "PriceSource",
    "SnapshotStatus",
    "Quote",
    "MarketDataSnapshot",
    "SymbolRecord",
]
