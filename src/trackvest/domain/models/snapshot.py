"""Market data snapshot (the cache entry)."""

from dataclasses import dataclass, field
from typing import Optional

from trackvest.domain.models.enums import AssetClass, SnapshotStatus
from trackvest.domain.models.quote import Quote


@dataclass
class MarketDataSnapshot:
    """
    All known quotes for one resolved trading day.

    Stock and crypto maps are keyed by upper-cased symbol (crypto by base
    symbol, e.g. BTC) and each Quote's symbol equals its key. The snapshot is
    mutated in place as individual symbols are resolved and replaced wholesale
    when the trading day changes.
    """

    date: str
    stocks: dict[str, Quote] = field(default_factory=dict)
    crypto: dict[str, Quote] = field(default_factory=dict)
    status: SnapshotStatus = SnapshotStatus.LIVE

    @property
    def is_empty(self) -> bool:
        """True when no stock data is available ("no data", not an error)."""
        return not self.stocks

    def quotes_for(self, asset_class: AssetClass) -> dict[str, Quote]:
        """Return the live quote map for an asset class."""
        if AssetClass(asset_class) == AssetClass.CRYPTO:
            return self.crypto
        return self.stocks

    def get(self, symbol: str, asset_class: AssetClass = AssetClass.STOCKS) -> Optional[Quote]:
        """Look up a quote by (already normalized) symbol."""
        return self.quotes_for(asset_class).get(symbol)

    def put(self, quote: Quote, asset_class: AssetClass = AssetClass.STOCKS) -> None:
        """Insert a quote under its upper-cased symbol."""
        key = quote.symbol.upper()
        if key != quote.symbol:
            raise ValueError(f"Quote symbol must be upper-case: {quote.symbol!r}")
        self.quotes_for(asset_class)[key] = quote
