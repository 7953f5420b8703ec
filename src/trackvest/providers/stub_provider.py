"""Stub market data provider for offline/testing use."""

import random
from typing import Optional

from trackvest.core.exceptions import MarketClosedError
from trackvest.core.trading_calendar import is_trading_day, parse_trading_date
from trackvest.domain.models import AssetClass, Quote, normalize_symbol


# Fixed (close, open) pairs for common symbols
_STUB_PRICES: dict[AssetClass, dict[str, tuple[float, float]]] = {
    AssetClass.STOCKS: {
        "AAPL": (185.50, 184.25),
        "GOOGL": (142.75, 141.50),
        "MSFT": (378.25, 376.80),
        "AMZN": (178.50, 177.25),
        "TSLA": (248.75, 250.10),
        "NVDA": (485.25, 482.50),
        "META": (505.50, 502.75),
        "SPY": (485.25, 484.10),
        "QQQ": (418.75, 417.50),
        "VTI": (252.30, 251.80),
    },
    AssetClass.CRYPTO: {
        "BTC": (42150.00, 41800.00),
        "ETH": (2280.50, 2255.00),
        "SOL": (98.40, 95.10),
        "USDT": (1.00, 1.00),
        "USDC": (1.00, 1.00),
    },
}


class StubMarketDataProvider:
    """
    Stub provider with deterministic fake data for offline operation.

    Uses predefined prices for common symbols; generates seeded random prices
    for unknown symbols. Stock requests for weekends and holidays raise
    MarketClosedError, mirroring the real upstream.
    """

    def __init__(self, seed: int = 42):
        """Initialize with optional random seed for reproducibility."""
        self._rng = random.Random(seed)
        self._generated: dict[tuple[AssetClass, str], tuple[float, float]] = {}

    @property
    def provider_name(self) -> str:
        return "stub"

    async def aclose(self) -> None:
        """Nothing to release."""

    async def fetch_grouped(
        self,
        date: str,
        asset_class: AssetClass,
        api_key: str,
    ) -> list[Quote]:
        """Return stub quotes for every predefined symbol."""
        asset_class = AssetClass(asset_class)
        self._check_open(date, asset_class)
        return [
            self._quote(symbol, close, open_)
            for symbol, (close, open_) in _STUB_PRICES[asset_class].items()
        ]

    async def fetch_daily_bar(
        self,
        symbol: str,
        asset_class: AssetClass,
        date: str,
        api_key: str,
    ) -> Quote:
        """Return a stub quote for one symbol (random but stable per symbol)."""
        asset_class = AssetClass(asset_class)
        self._check_open(date, asset_class)
        key = normalize_symbol(symbol, asset_class)
        close, open_ = self._prices_for(key, asset_class)
        return self._quote(key, close, open_)

    def _prices_for(self, symbol: str, asset_class: AssetClass) -> tuple[float, float]:
        known: Optional[tuple[float, float]] = _STUB_PRICES[asset_class].get(symbol)
        if known:
            return known

        cache_key = (asset_class, symbol)
        if cache_key not in self._generated:
            # Generate deterministic random price based on symbol
            close = round(50 + self._rng.random() * 200, 2)
            change_pct = (self._rng.random() - 0.5) * 0.04
            open_ = round(close / (1 + change_pct), 2)
            self._generated[cache_key] = (close, open_)
        return self._generated[cache_key]

    @staticmethod
    def _quote(symbol: str, close: float, open_: float) -> Quote:
        return Quote(
            symbol=symbol,
            close=close,
            open=open_,
            high=max(close, open_),
            low=min(close, open_),
        )

    @staticmethod
    def _check_open(date: str, asset_class: AssetClass) -> None:
        # Crypto trades every day
        if asset_class == AssetClass.STOCKS and not is_trading_day(parse_trading_date(date)):
            raise MarketClosedError(date, "weekend or holiday")
