"""Simulated prices for when real market data cannot be obtained."""

import random
from typing import Optional

from trackvest.domain.models import AssetClass, Quote, normalize_symbol

# (low, high) price bands in USD
EQUITY_BAND = (10.0, 500.0)
CRYPTO_BANDS: dict[str, tuple[float, float]] = {
    "BTC": (25_000.0, 45_000.0),
    "ETH": (1_500.0, 3_000.0),
}
STABLECOINS = frozenset({"USDT", "USDC", "DAI", "BUSD"})
STABLECOIN_BAND = (0.95, 1.05)
OTHER_CRYPTO_BAND = (0.10, 100.0)


def price_band(symbol: str, asset_class: AssetClass) -> tuple[float, float]:
    """Return the (low, high) band a simulated price for this symbol falls in."""
    if asset_class != AssetClass.CRYPTO:
        return EQUITY_BAND
    key = normalize_symbol(symbol, AssetClass.CRYPTO)
    if key in STABLECOINS:
        return STABLECOIN_BAND
    return CRYPTO_BANDS.get(key, OTHER_CRYPTO_BAND)


class SimulatedPriceGenerator:
    """
    Random price synthesis by asset class.

    Never performs I/O and never raises. Every result is tagged simulated=True.
    """

    def __init__(self, rng: Optional[random.Random] = None, seed: Optional[int] = None):
        self._rng = rng or random.Random(seed)

    def simulate(self, symbol: str, asset_class: AssetClass = AssetClass.STOCKS) -> Quote:
        """Return a simulated quote whose close lies in the symbol's band."""
        if asset_class != AssetClass.CRYPTO:
            asset_class = AssetClass.STOCKS
        low, high = price_band(symbol, asset_class)
        price = self._rng.uniform(low, high)
        # Sub-dollar prices keep extra precision
        price = round(price, 4 if price < 1 else 2)
        price = min(max(price, low), high)

        return Quote(
            symbol=normalize_symbol(symbol, asset_class),
            close=price,
            open=price,
            high=price,
            low=price,
            simulated=True,
        )
