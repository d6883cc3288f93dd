"""Shared test fixtures for the trailing trade indicator pipeline."""

from decimal import Decimal

import pytest

from trailtrade.config import (
    BuySettings,
    CandleSettings,
    SellSettings,
    SymbolConfiguration,
)
from trailtrade.indicators.pattern import UNREACHABLE_LOWEST_PRICE
from trailtrade.models import (
    AccountInfo,
    Balance,
    BuySignal,
    OpenOrder,
    SellSignal,
    TradeState,
)
from trailtrade.store.symbol_info import parse_symbol_info

#: 2024-01-01T00:00:00Z in milliseconds.
BASE_OPEN_TIME = 1704067200000
HOUR_MS = 3_600_000


def _raw_candle(index: int, open_: Decimal, close: Decimal) -> dict:
    return {
        "openTime": BASE_OPEN_TIME + index * HOUR_MS,
        "open": str(open_),
        "high": str(max(open_, close) + Decimal("0.5")),
        "low": str(min(open_, close) - Decimal("0.5")),
        "close": str(close),
        "volume": "10.00000000",
    }


@pytest.fixture
def symbol_config() -> SymbolConfiguration:
    """Symbol configuration with explicit, non-default test values."""
    return SymbolConfiguration(
        candles=CandleSettings(interval="1h", limit=20),
        buy=BuySettings(
            enabled=True,
            trigger_percentage=Decimal("1.01"),
            limit_percentage=Decimal("1.021"),
            rsi=Decimal("30"),
        ),
        sell=SellSettings(
            trigger_percentage=Decimal("1.06"),
            limit_percentage=Decimal("0.979"),
        ),
    )


@pytest.fixture
def pattern_candles() -> list[dict]:
    """20 raw candles whose last closed candles form the buy pattern.

    Closes fall by 1 from 100 to 83 (indices 0-17, all red, RSI 0), then
    index 18 closes green at 84 and index 19 is still forming at 84.5.
    Highs/lows are 0.5 beyond the candle body: highest 101.5, lowest 82.5.
    """
    closes = [Decimal(100 - i) for i in range(18)] + [Decimal("84"), Decimal("84.5")]
    opens = [Decimal("101")] + closes[:-1]
    return [_raw_candle(i, o, c) for i, (o, c) in enumerate(zip(opens, closes))]


@pytest.fixture
def no_pattern_candles(pattern_candles: list[dict]) -> list[dict]:
    """Same window, but the last closed candle closes red."""
    candles = [dict(c) for c in pattern_candles]
    candles[-2] = _raw_candle(18, Decimal("83"), Decimal("82.8"))
    candles[-1] = _raw_candle(19, Decimal("82.8"), Decimal("82.9"))
    return candles


@pytest.fixture
def raw_symbol_record() -> dict:
    """Binance exchange-info entry for BTCUSDT."""
    return {
        "symbol": "BTCUSDT",
        "status": "TRADING",
        "baseAsset": "BTC",
        "baseAssetPrecision": 8,
        "quoteAsset": "USDT",
        "quotePrecision": 8,
        "filters": [
            {
                "filterType": "PRICE_FILTER",
                "minPrice": "0.01000000",
                "maxPrice": "1000000.00000000",
                "tickSize": "0.01000000",
            },
            {
                "filterType": "LOT_SIZE",
                "minQty": "0.00001000",
                "maxQty": "9000.00000000",
                "stepSize": "0.00001000",
            },
            {
                "filterType": "NOTIONAL",
                "minNotional": "5.00000000",
                "applyMinToMarket": True,
            },
        ],
    }


@pytest.fixture
def account_info() -> AccountInfo:
    return AccountInfo(
        balances=(
            Balance(asset="BTC", free=Decimal("0.5"), locked=Decimal("0.1")),
            Balance(asset="USDT", free=Decimal("1000"), locked=Decimal("0")),
        ),
        update_time=BASE_OPEN_TIME,
    )


@pytest.fixture
def open_orders() -> tuple[OpenOrder, ...]:
    """One buy and one sell stop-loss-limit order plus a plain limit order."""
    return (
        OpenOrder.from_exchange({
            "symbol": "BTCUSDT",
            "orderId": 1,
            "side": "BUY",
            "type": "STOP_LOSS_LIMIT",
            "status": "NEW",
            "price": "86.30000000",
            "origQty": "0.10000000",
            "stopPrice": "86.00000000",
            "time": BASE_OPEN_TIME,
        }),
        OpenOrder.from_exchange({
            "symbol": "BTCUSDT",
            "orderId": 2,
            "side": "SELL",
            "type": "STOP_LOSS_LIMIT",
            "status": "NEW",
            "price": "90.00000000",
            "origQty": "0.50000000",
            "stopPrice": "89.00000000",
            "time": BASE_OPEN_TIME + HOUR_MS,
        }),
        OpenOrder.from_exchange({
            "symbol": "BTCUSDT",
            "orderId": 3,
            "side": "sell",
            "type": "LIMIT",
            "status": "NEW",
            "price": "120.00000000",
            "origQty": "0.10000000",
            "stopPrice": "0.00000000",
            "time": BASE_OPEN_TIME,
        }),
    )


@pytest.fixture
def make_trade_state(raw_symbol_record: dict, account_info: AccountInfo):
    """Factory for complete (publishable) TradeStates."""

    def _make(symbol: str = "BTCUSDT", current_price: str = "84.5") -> TradeState:
        price = Decimal(current_price)
        return TradeState(
            symbol=symbol,
            account_info=account_info,
            symbol_info=parse_symbol_info({**raw_symbol_record, "symbol": symbol}),
            buy=BuySignal(
                current_price=price,
                trigger_price=UNREACHABLE_LOWEST_PRICE * Decimal("1.01"),
                limit_price=price * Decimal("1.021"),
                lowest_price=UNREACHABLE_LOWEST_PRICE,
                highest_price=price,
                difference=Decimal("-100"),
                rsi=Decimal("45.5"),
            ),
            sell=SellSignal(
                current_price=price,
                trigger_price=None,
                limit_price=price * Decimal("0.979"),
                last_buy_price=None,
                difference=None,
                current_profit=None,
                current_profit_percentage=None,
            ),
        )

    return _make
