"""Pydantic schemas for API request/response."""

from trackvest.api.schemas.market import (
    TradingDateResponse,
    SnapshotResponse,
    QuoteResponse,
    QuotesResponse,
    PriceResponse,
    CandidateRequest,
    EnrichRequest,
    EnrichedSymbolResponse,
    EnrichResponse,
)

__all__ = [
    "TradingDateResponse",
    "SnapshotResponse",
    "QuoteResponse",
    "QuotesResponse",
    "PriceResponse",
    "CandidateRequest",
    "EnrichRequest",
    "EnrichedSymbolResponse",
    "EnrichResponse",
]
