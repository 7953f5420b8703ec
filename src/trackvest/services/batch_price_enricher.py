"""Price enrichment for lists of candidate symbols (e.g. search results)."""

import asyncio
import logging
from dataclasses import replace
from typing import Awaitable, Callable, Sequence

from trackvest.domain.models import (
    AssetClass,
    MarketDataSnapshot,
    PriceSource,
    SymbolRecord,
    normalize_symbol,
)
from trackvest.services.market_data_cache import MarketDataCache
from trackvest.services.price_resolver import PriceResolver
from trackvest.services.price_simulator import SimulatedPriceGenerator

logger = logging.getLogger(__name__)

DEFAULT_BATCH_LIMIT = 5
DEFAULT_STAGGER_SECONDS = 0.1


class BatchPriceEnricher:
    """
    Assigns prices to the first `limit` candidates of a batch.

    Cached symbols are priced without network calls. Cache misses are resolved
    concurrently, the i-th miss waiting i * stagger_seconds before dispatch.
    Any failure is replaced by a simulated price, so this never raises.
    Candidates past the limit keep price=None ("price unknown").
    """

    def __init__(
        self,
        cache: MarketDataCache,
        resolver: PriceResolver,
        simulator: SimulatedPriceGenerator,
        limit: int = DEFAULT_BATCH_LIMIT,
        stagger_seconds: float = DEFAULT_STAGGER_SECONDS,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self._cache = cache
        self._resolver = resolver
        self._simulator = simulator
        self._limit = limit
        self._stagger = stagger_seconds
        self._sleep = sleep

    async def enrich_with_prices(
        self,
        candidates: Sequence[SymbolRecord],
        asset_class: AssetClass = AssetClass.STOCKS,
        api_key: str = "",
    ) -> list[SymbolRecord]:
        """
        Return copies of `candidates` (input order) with prices assigned.

        Input records are not modified.
        """
        asset_class = AssetClass(asset_class)
        records = [replace(candidate) for candidate in candidates]
        batch = records[: self._limit]
        if not batch:
            return records

        try:
            snapshot = await self._cache.get_snapshot(api_key)
        except Exception:
            logger.warning(
                "Market data cache unavailable; simulating %d %s prices",
                len(batch), asset_class.value, exc_info=True,
            )
            for record in batch:
                self._simulate(record, asset_class)
            return records

        missing = []
        for record in batch:
            key = normalize_symbol(record.symbol, asset_class)
            quote = snapshot.get(key, asset_class) or self._cache.lookup(key, asset_class)
            if quote is None:
                missing.append(record)
            else:
                self._assign(record, quote.close, PriceSource.CACHE)

        if missing:
            logger.info("Fetching prices for %d missing %s", len(missing), asset_class.value)
            await asyncio.gather(
                *(
                    self._resolve_one(record, index, asset_class, api_key, snapshot)
                    for index, record in enumerate(missing)
                )
            )

        return records

    async def _resolve_one(
        self,
        record: SymbolRecord,
        index: int,
        asset_class: AssetClass,
        api_key: str,
        snapshot: MarketDataSnapshot,
    ) -> None:
        if index:
            await self._sleep(index * self._stagger)

        try:
            price = await self._resolver.resolve_price(
                record.symbol, asset_class, api_key, snapshot=snapshot
            )
        except Exception as exc:
            logger.warning(
                "Using simulated price for %s: %s",
                record.symbol, getattr(exc, "message", repr(exc)),
            )
            self._simulate(record, asset_class)
        else:
            self._assign(record, price, PriceSource.FETCHED)

    def _simulate(self, record: SymbolRecord, asset_class: AssetClass) -> None:
        quote = self._simulator.simulate(record.symbol, asset_class)
        self._assign(record, quote.close, PriceSource.SIMULATED)

    @staticmethod
    def _assign(record: SymbolRecord, price: float, source: PriceSource) -> None:
        record.price = price
        record.price_source = source
        record.simulated = source == PriceSource.SIMULATED
