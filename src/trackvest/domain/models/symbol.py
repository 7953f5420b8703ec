"""Symbol search candidates and ticker normalization."""

from dataclasses import dataclass
from typing import Optional

from trackvest.domain.models.enums import AssetClass, PriceSource

CRYPTO_PAIR_PREFIX = "X:"
CRYPTO_QUOTE_CURRENCY = "USD"


def normalize_symbol(symbol: str, asset_class: AssetClass = AssetClass.STOCKS) -> str:
    """
    Normalize a symbol to its cache key.

    Stocks are stripped and upper-cased. Crypto pair tickers are reduced to
    their base symbol, so "btc" and "X:BTCUSD" both become "BTC". Bare symbols
    are never trimmed (BUSD stays BUSD).
    """
    key = (symbol or "").strip().upper()
    if AssetClass(asset_class) == AssetClass.CRYPTO and key.startswith(CRYPTO_PAIR_PREFIX):
        key = key[len(CRYPTO_PAIR_PREFIX):]
        if key.endswith(CRYPTO_QUOTE_CURRENCY) and len(key) > len(CRYPTO_QUOTE_CURRENCY):
            key = key[: -len(CRYPTO_QUOTE_CURRENCY)]
    return key


def upstream_ticker(symbol: str, asset_class: AssetClass = AssetClass.STOCKS) -> str:
    """Map a symbol to the upstream ticker convention (X:{BASE}USD for crypto)."""
    key = normalize_symbol(symbol, asset_class)
    if AssetClass(asset_class) == AssetClass.CRYPTO:
        return f"{CRYPTO_PAIR_PREFIX}{key}{CRYPTO_QUOTE_CURRENCY}"
    return key


@dataclass
class SymbolRecord:
    """
    A candidate symbol, e.g. one search result row.

    price is None until resolved; callers must treat None as "price unknown".
    """

    symbol: str
    name: str = ""
    asset_class: AssetClass = AssetClass.STOCKS
    price: Optional[float] = None
    simulated: bool = False
    price_source: Optional[PriceSource] = None

    def __post_init__(self) -> None:
        if isinstance(self.asset_class, str):
            self.asset_class = AssetClass(self.asset_class)

    @property
    def has_price(self) -> bool:
        """Return True once a price (real or simulated) has been assigned."""
        return self.price is not None
