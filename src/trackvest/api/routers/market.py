"""Market data endpoints."""

from typing import Optional

from fastapi import APIRouter, Depends, Query

from trackvest.api.deps import (
    get_api_key,
    get_batch_enricher,
    get_context,
    get_market_cache,
    get_price_resolver,
)
from trackvest.api.schemas import (
    EnrichedSymbolResponse,
    EnrichRequest,
    EnrichResponse,
    PriceResponse,
    QuoteResponse,
    QuotesResponse,
    SnapshotResponse,
    TradingDateResponse,
)
from trackvest.app_context import AppContext
from trackvest.core.exceptions import ValidationError
from trackvest.core.timezone import eastern_date
from trackvest.core.trading_calendar import (
    format_api_date,
    format_market_date,
    resolve_trading_date,
)
from trackvest.domain.models import AssetClass, SymbolRecord
from trackvest.services import (
    POPULAR_STOCK_SYMBOLS,
    BatchPriceEnricher,
    MarketDataCache,
    PriceResolver,
)

router = APIRouter(prefix="/market", tags=["market"])


@router.get("/trading-date", response_model=TradingDateResponse)
def get_trading_date(
    reference: Optional[str] = Query(None, description="Reference date YYYY-MM-DD (today if empty)"),
    context: AppContext = Depends(get_context),
) -> TradingDateResponse:
    """Resolve the most recent completed trading day."""
    try:
        reference_day = eastern_date(reference)
    except (ValueError, OverflowError) as exc:
        raise ValidationError(f"Invalid reference date: {reference}") from exc

    settings = context.settings
    trading_date = resolve_trading_date(
        reference_day,
        settings.trading_date_overrides,
        fallback_date=settings.fallback_trading_date,
        max_attempts=settings.calendar_max_attempts,
        closures=settings.market_closures,
    )
    return TradingDateResponse(
        reference=format_api_date(reference_day),
        trading_date=trading_date,
        display_date=format_market_date(trading_date),
    )


@router.get("/snapshot", response_model=SnapshotResponse)
async def get_snapshot(
    api_key: str = Depends(get_api_key),
    cache: MarketDataCache = Depends(get_market_cache),
) -> SnapshotResponse:
    """Get (fetching if needed) the current market data snapshot summary."""
    snapshot = await cache.get_snapshot(api_key)
    return SnapshotResponse(
        date=snapshot.date,
        display_date=format_market_date(snapshot.date),
        status=snapshot.status,
        stock_count=len(snapshot.stocks),
        crypto_count=len(snapshot.crypto),
        is_empty=snapshot.is_empty,
    )


@router.get("/quotes", response_model=QuotesResponse)
async def get_quotes(
    symbols: Optional[str] = Query(None, description="Comma-separated symbols (popular stocks if empty)"),
    asset_class: AssetClass = Query(AssetClass.STOCKS),
    api_key: str = Depends(get_api_key),
    cache: MarketDataCache = Depends(get_market_cache),
) -> QuotesResponse:
    """Get cached quotes for symbols from the current snapshot."""
    if symbols:
        symbol_list = [s.strip() for s in symbols.split(",") if s.strip()]
    else:
        symbol_list = list(POPULAR_STOCK_SYMBOLS)

    quotes = await cache.get_quotes(api_key, symbol_list, asset_class)
    return QuotesResponse(
        date=cache.current.date,
        asset_class=asset_class,
        count=len(quotes),
        quotes=[QuoteResponse.from_quote(q) for q in quotes],
    )


@router.get("/price/{asset_class}/{symbol}", response_model=PriceResponse)
async def get_price(
    asset_class: AssetClass,
    symbol: str,
    api_key: str = Depends(get_api_key),
    resolver: PriceResolver = Depends(get_price_resolver),
    cache: MarketDataCache = Depends(get_market_cache),
) -> PriceResponse:
    """Resolve one symbol's latest close (cache first, then individual fetch)."""
    quote = await resolver.resolve_quote(symbol, asset_class, api_key)
    snapshot = cache.current
    # Quotes outside the snapshot were fetched for the resolved trading day
    if snapshot.get(quote.symbol, asset_class) is quote:
        date = snapshot.date
    else:
        date = cache.resolved_date
    return PriceResponse(
        symbol=quote.symbol,
        asset_class=asset_class,
        date=date,
        price=quote.close,
    )


@router.post("/enrich", response_model=EnrichResponse)
async def enrich_candidates(
    request: EnrichRequest,
    api_key: str = Depends(get_api_key),
    enricher: BatchPriceEnricher = Depends(get_batch_enricher),
) -> EnrichResponse:
    """Price a batch of candidate symbols, simulating any that fail."""
    candidates = [
        SymbolRecord(symbol=c.symbol, name=c.name, asset_class=request.asset_class)
        for c in request.candidates
    ]
    records = await enricher.enrich_with_prices(candidates, request.asset_class, api_key)

    return EnrichResponse(
        results=[
            EnrichedSymbolResponse(
                symbol=r.symbol,
                name=r.name,
                price=r.price,
                simulated=r.simulated,
                price_source=r.price_source,
            )
            for r in records
        ],
        simulated_count=sum(1 for r in records if r.simulated),
    )
