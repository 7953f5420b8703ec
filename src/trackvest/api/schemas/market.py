"""Pydantic schemas for market data endpoints."""

from typing import Optional

from pydantic import BaseModel, Field

from trackvest.domain.models import AssetClass, PriceSource, Quote, SnapshotStatus


class TradingDateResponse(BaseModel):
    """Response schema for trading day resolution."""

    reference: str
    trading_date: str
    display_date: str


class SnapshotResponse(BaseModel):
    """Summary of the current market data snapshot."""

    date: str
    display_date: str
    status: SnapshotStatus
    stock_count: int
    crypto_count: int
    is_empty: bool


class QuoteResponse(BaseModel):
    """Response schema for a market quote."""

    symbol: str
    close: float
    open: float
    high: float
    low: float
    volume: Optional[float] = None
    vwap: Optional[float] = None
    transactions: Optional[int] = None
    change: float
    change_percent: Optional[float] = None
    simulated: bool = False

    @classmethod
    def from_quote(cls, quote: Quote) -> "QuoteResponse":
        return cls(
            symbol=quote.symbol,
            close=quote.close,
            open=quote.open,
            high=quote.high,
            low=quote.low,
            volume=quote.volume,
            vwap=quote.vwap,
            transactions=quote.transactions,
            change=quote.change,
            change_percent=quote.change_percent,
            simulated=quote.simulated,
        )


class QuotesResponse(BaseModel):
    """Response schema for a filtered quote listing."""

    date: str
    asset_class: AssetClass
    count: int
    quotes: list[QuoteResponse]


class PriceResponse(BaseModel):
    """Response schema for a single resolved price."""

    symbol: str
    asset_class: AssetClass
    date: str
    price: float


class CandidateRequest(BaseModel):
    """A candidate symbol to price."""

    symbol: str = Field(..., min_length=1)
    name: str = ""


class EnrichRequest(BaseModel):
    """Request schema for batch price enrichment."""

    asset_class: AssetClass = AssetClass.STOCKS
    candidates: list[CandidateRequest]


class EnrichedSymbolResponse(BaseModel):
    """A candidate with its (possibly unknown) price."""

    symbol: str
    name: str
    price: Optional[float] = None
    simulated: bool = False
    price_source: Optional[PriceSource] = None


class EnrichResponse(BaseModel):
    """Response schema for batch price enrichment."""

    results: list[EnrichedSymbolResponse]
    simulated_count: int
