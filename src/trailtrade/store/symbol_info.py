"""Symbol metadata retrieval with cache memoisation.

On a cache miss the raw exchange symbol record is reduced to the fields the
pipeline needs, its lot size, price and minimum notional filters are picked
out, and the result is cached as JSON under ``<symbol>-symbol-info``.
"""

import json
from decimal import Decimal, InvalidOperation
from typing import Any

from trailtrade.exceptions import MalformedSymbolInfoError
from trailtrade.exchange.client import ExchangeClient
from trailtrade.logging import get_logger
from trailtrade.models import (
    LotSizeFilter,
    MinNotionalFilter,
    PriceFilter,
    SymbolInfo,
    to_decimal,
)
from trailtrade.store.cache import CacheStore

logger = get_logger(__name__)

#: Binance renamed MIN_NOTIONAL to NOTIONAL on most spot symbols.
_MIN_NOTIONAL_FILTER_TYPES = ("MIN_NOTIONAL", "NOTIONAL")


def symbol_info_cache_key(symbol: str) -> str:
    return f"{symbol}-symbol-info"


def _find_filter(filters: list[dict], *filter_types: str) -> dict:
    for filter_type in filter_types:
        for f in filters:
            if f.get("filterType") == filter_type:
                return f
    raise MalformedSymbolInfoError(f"Symbol filters lack {' or '.join(filter_types)}")


def _positive(value: Any, name: str) -> Decimal:
    try:
        parsed = to_decimal(value)
    except InvalidOperation as e:
        raise MalformedSymbolInfoError(f"{name} is not numeric: {value!r}") from e
    if not parsed.is_finite() or parsed <= 0:
        raise MalformedSymbolInfoError(f"{name} must be positive, got {value!r}")
    return parsed


def parse_symbol_info(raw: dict[str, Any]) -> SymbolInfo:
    """Build SymbolInfo from a raw Binance exchange-info symbol record.

    Raises:
        MalformedSymbolInfoError: A required filter is missing, or the tick
            size or step size is not a positive number.
    """
    filters = raw.get("filters", [])
    lot_size = _find_filter(filters, "LOT_SIZE")
    price = _find_filter(filters, "PRICE_FILTER")
    min_notional = _find_filter(filters, *_MIN_NOTIONAL_FILTER_TYPES)

    try:
        return SymbolInfo(
            symbol=raw["symbol"],
            status=raw.get("status", ""),
            base_asset=raw["baseAsset"],
            base_asset_precision=int(raw.get("baseAssetPrecision", 8)),
            quote_asset=raw["quoteAsset"],
            quote_precision=int(raw.get("quotePrecision", 8)),
            filter_lot_size=LotSizeFilter(
                min_qty=to_decimal(lot_size.get("minQty", "0")),
                max_qty=to_decimal(lot_size.get("maxQty", "0")),
                step_size=_positive(lot_size.get("stepSize"), "stepSize"),
            ),
            filter_price=PriceFilter(
                min_price=to_decimal(price.get("minPrice", "0")),
                max_price=to_decimal(price.get("maxPrice", "0")),
                tick_size=_positive(price.get("tickSize"), "tickSize"),
            ),
            filter_min_notional=MinNotionalFilter(
                min_notional=to_decimal(min_notional.get("minNotional", "0")),
            ),
        )
    except KeyError as e:
        raise MalformedSymbolInfoError(f"Symbol record lacks field {e}") from e


class SymbolInfoProvider:
    """Resolves SymbolInfo from the cache, falling back to the exchange.

    Args:
        exchange: Exchange client used on a cache miss.
        cache: Cache holding serialized SymbolInfo JSON.
    """

    def __init__(self, exchange: ExchangeClient, cache: CacheStore) -> None:
        self._exchange = exchange
        self._cache = cache

    async def get_symbol_info(self, symbol: str) -> SymbolInfo:
        """Return cached metadata, refetching when the cache entry is missing or unreadable."""
        key = symbol_info_cache_key(symbol)
        cached = await self._cache.get(key)
        if cached:
            try:
                symbol_info = SymbolInfo.from_cache_dict(json.loads(cached))
            except (KeyError, TypeError, ValueError, InvalidOperation) as e:
                logger.warning("evicting_corrupt_symbol_info", symbol=symbol, error=repr(e))
                await self._cache.delete(key)
            else:
                logger.debug("symbol_info_cache_hit", symbol=symbol)
                return symbol_info

        logger.info("requesting_symbol_info", symbol=symbol)
        raw = await self._exchange.get_symbol_filters(symbol)
        symbol_info = parse_symbol_info(raw)

        await self._cache.set(key, json.dumps(symbol_info.to_cache_dict()))
        logger.info(
            "retrieved_symbol_info",
            symbol=symbol,
            base_asset=symbol_info.base_asset,
            quote_asset=symbol_info.quote_asset,
            tick_size=str(symbol_info.filter_price.tick_size),
        )
        return symbol_info
