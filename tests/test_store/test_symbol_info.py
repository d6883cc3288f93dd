"""Tests for symbol metadata parsing and cache memoisation."""

import json
from decimal import Decimal
from unittest.mock import AsyncMock

import pytest

from trailtrade.exceptions import MalformedSymbolInfoError, UpstreamUnavailableError
from trailtrade.exchange.client import ExchangeClient
from trailtrade.store.cache import InMemoryCacheStore
from trailtrade.store.symbol_info import (
    SymbolInfoProvider,
    parse_symbol_info,
    symbol_info_cache_key,
)


def _without_filter(record: dict, filter_type: str) -> dict:
    return {
        **record,
        "filters": [f for f in record["filters"] if f["filterType"] != filter_type],
    }


def _with_filter_value(record: dict, filter_type: str, key: str, value: str) -> dict:
    filters = [
        {**f, key: value} if f["filterType"] == filter_type else f
        for f in record["filters"]
    ]
    return {**record, "filters": filters}


class TestParseSymbolInfo:
    def test_parses_record(self, raw_symbol_record: dict) -> None:
        info = parse_symbol_info(raw_symbol_record)

        assert info.symbol == "BTCUSDT"
        assert info.base_asset == "BTC"
        assert info.quote_asset == "USDT"
        assert info.filter_price.tick_size == Decimal("0.01")
        assert info.filter_lot_size.step_size == Decimal("0.00001")
        assert info.filter_lot_size.min_qty == Decimal("0.00001")
        assert info.filter_min_notional.min_notional == Decimal("5")

    def test_price_precision_from_tick_size(self, raw_symbol_record: dict) -> None:
        assert parse_symbol_info(raw_symbol_record).price_precision == 2

        whole = _with_filter_value(raw_symbol_record, "PRICE_FILTER", "tickSize", "1.00000000")
        assert parse_symbol_info(whole).price_precision == 0

        fine = _with_filter_value(raw_symbol_record, "PRICE_FILTER", "tickSize", "0.00000100")
        assert parse_symbol_info(fine).price_precision == 6

    def test_accepts_legacy_min_notional(self, raw_symbol_record: dict) -> None:
        record = _without_filter(raw_symbol_record, "NOTIONAL")
        record["filters"].append({"filterType": "MIN_NOTIONAL", "minNotional": "10.00000000"})

        assert parse_symbol_info(record).filter_min_notional.min_notional == Decimal("10")

    @pytest.mark.parametrize("filter_type", ["LOT_SIZE", "PRICE_FILTER", "NOTIONAL"])
    def test_missing_filter_raises(self, raw_symbol_record: dict, filter_type: str) -> None:
        with pytest.raises(MalformedSymbolInfoError):
            parse_symbol_info(_without_filter(raw_symbol_record, filter_type))

    @pytest.mark.parametrize("tick_size", ["0", "-0.01", "abc"])
    def test_invalid_tick_size_raises(self, raw_symbol_record: dict, tick_size: str) -> None:
        record = _with_filter_value(raw_symbol_record, "PRICE_FILTER", "tickSize", tick_size)
        with pytest.raises(MalformedSymbolInfoError, match="tickSize"):
            parse_symbol_info(record)

    def test_zero_step_size_raises(self, raw_symbol_record: dict) -> None:
        record = _with_filter_value(raw_symbol_record, "LOT_SIZE", "stepSize", "0.00000000")
        with pytest.raises(MalformedSymbolInfoError, match="stepSize"):
            parse_symbol_info(record)

    def test_missing_base_asset_raises(self, raw_symbol_record: dict) -> None:
        record = {k: v for k, v in raw_symbol_record.items() if k != "baseAsset"}
        with pytest.raises(MalformedSymbolInfoError, match="baseAsset"):
            parse_symbol_info(record)


class TestSymbolInfoProvider:
    @pytest.fixture
    def exchange(self, raw_symbol_record: dict) -> AsyncMock:
        exchange = AsyncMock(spec=ExchangeClient)
        exchange.get_symbol_filters.return_value = raw_symbol_record
        return exchange

    @pytest.mark.asyncio
    async def test_miss_fetches_and_caches(self, exchange: AsyncMock) -> None:
        cache = InMemoryCacheStore()
        provider = SymbolInfoProvider(exchange, cache)

        info = await provider.get_symbol_info("BTCUSDT")

        exchange.get_symbol_filters.assert_awaited_once_with("BTCUSDT")
        cached = json.loads(await cache.get("BTCUSDT-symbol-info"))
        assert cached["base_asset"] == "BTC"
        assert cached["filter_price"]["tick_size"] == "0.01000000"
        assert info.filter_price.tick_size == Decimal("0.01")

    @pytest.mark.asyncio
    async def test_hit_skips_exchange(self, exchange: AsyncMock, raw_symbol_record: dict) -> None:
        cache = InMemoryCacheStore()
        expected = parse_symbol_info(raw_symbol_record)
        await cache.set(symbol_info_cache_key("BTCUSDT"), json.dumps(expected.to_cache_dict()))
        provider = SymbolInfoProvider(exchange, cache)

        info = await provider.get_symbol_info("BTCUSDT")

        exchange.get_symbol_filters.assert_not_awaited()
        assert info == expected

    @pytest.mark.asyncio
    async def test_second_lookup_uses_cache(self, exchange: AsyncMock) -> None:
        provider = SymbolInfoProvider(exchange, InMemoryCacheStore())

        first = await provider.get_symbol_info("BTCUSDT")
        second = await provider.get_symbol_info("BTCUSDT")

        assert first == second
        assert exchange.get_symbol_filters.await_count == 1

    @pytest.mark.asyncio
    async def test_malformed_record_is_not_cached(self, exchange: AsyncMock, raw_symbol_record: dict) -> None:
        exchange.get_symbol_filters.return_value = _without_filter(raw_symbol_record, "LOT_SIZE")
        cache = InMemoryCacheStore()
        provider = SymbolInfoProvider(exchange, cache)

        with pytest.raises(MalformedSymbolInfoError):
            await provider.get_symbol_info("BTCUSDT")
        assert await cache.get("BTCUSDT-symbol-info") is None

    @pytest.mark.asyncio
    async def test_exchange_failure_propagates(self, exchange: AsyncMock) -> None:
        exchange.get_symbol_filters.side_effect = UpstreamUnavailableError("down")
        provider = SymbolInfoProvider(exchange, InMemoryCacheStore())

        with pytest.raises(UpstreamUnavailableError):
            await provider.get_symbol_info("BTCUSDT")


class TestCorruptCacheEntry:
    """An unreadable cache entry is evicted and replaced from the exchange."""

    @pytest.fixture
    def exchange(self, raw_symbol_record: dict) -> AsyncMock:
        exchange = AsyncMock(spec=ExchangeClient)
        exchange.get_symbol_filters.return_value = raw_symbol_record
        return exchange

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "cached",
        [
            '{"symbol": "BTCUSDT"}',
            "not json",
            "[1, 2, 3]",
        ],
    )
    async def test_refetches_and_repairs(self, exchange: AsyncMock, cached: str) -> None:
        cache = InMemoryCacheStore()
        await cache.set("BTCUSDT-symbol-info", cached)
        provider = SymbolInfoProvider(exchange, cache)

        info = await provider.get_symbol_info("BTCUSDT")

        assert info.base_asset == "BTC"
        exchange.get_symbol_filters.assert_awaited_once_with("BTCUSDT")
        repaired = json.loads(await cache.get("BTCUSDT-symbol-info"))
        assert repaired["filter_price"]["tick_size"] == "0.01000000"

    @pytest.mark.asyncio
    async def test_non_numeric_cached_value(self, exchange: AsyncMock, raw_symbol_record: dict) -> None:
        cache = InMemoryCacheStore()
        entry = parse_symbol_info(raw_symbol_record).to_cache_dict()
        entry["filter_price"]["tick_size"] = "garbage"
        await cache.set("BTCUSDT-symbol-info", json.dumps(entry))
        provider = SymbolInfoProvider(exchange, cache)

        info = await provider.get_symbol_info("BTCUSDT")

        assert info.filter_price.tick_size == Decimal("0.01")
        exchange.get_symbol_filters.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_entry_evicted_when_refetch_fails(self, exchange: AsyncMock) -> None:
        cache = InMemoryCacheStore()
        await cache.set("BTCUSDT-symbol-info", '{"symbol": "BTCUSDT"}')
        exchange.get_symbol_filters.side_effect = UpstreamUnavailableError("down")
        provider = SymbolInfoProvider(exchange, cache)

        with pytest.raises(UpstreamUnavailableError):
            await provider.get_symbol_info("BTCUSDT")
        assert await cache.get("BTCUSDT-symbol-info") is None
