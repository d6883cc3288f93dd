"""Indicator pipeline: the per-symbol evaluation run on every scheduler tick.

The pipeline is a fixed linear sequence of steps over one TradeState:
1. Resolve symbol metadata (cache, then exchange)
2. Retrieve candles and compute indicators (rolling extremes, RSI, buy pattern)
3. Derive base/quote asset balances
4. Derive buy/sell trigger prices and reconcile open orders

Each step reads the sections written before it and returns a new record
with its own section added. Collaborator calls are the only suspension
points; any collaborator failure surfaces as UpstreamUnavailableError and
no partial state is returned.

CRITICAL: All computations use Decimal. Never use float for prices.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from dataclasses import replace
from datetime import datetime, timezone
from decimal import Decimal
from typing import TypeVar

from trailtrade.config import SymbolConfiguration
from trailtrade.exceptions import TrailTradeError, UpstreamUnavailableError
from trailtrade.exchange.client import ExchangeClient
from trailtrade.indicators.candles import normalize_candles, parse_candles
from trailtrade.indicators.extremes import compute_rolling_extremes
from trailtrade.indicators.orders import reconcile_orders
from trailtrade.indicators.pattern import detect_buy_pattern, effective_lowest_price
from trailtrade.indicators.rsi import RSI_PERIOD, latest_rsi_pair
from trailtrade.indicators.triggers import calculate_current_profit, calculate_triggers
from trailtrade.logging import get_logger
from trailtrade.models import (
    AssetBalance,
    BuySignal,
    Indicators,
    SellSignal,
    TradeState,
    ms_to_utc,
)
from trailtrade.store.last_buy_price import LastBuyPriceRepository
from trailtrade.store.symbol_info import SymbolInfoProvider

logger = get_logger(__name__)

T = TypeVar("T")


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _opt_str(value: Decimal | None) -> str | None:
    return str(value) if value is not None else None


class IndicatorPipeline:
    """Evaluates one symbol into a fully populated TradeState.

    Holds no per-symbol state, so one instance can serve concurrent
    evaluations of different symbols.

    Args:
        exchange: Candle source.
        symbol_info_provider: Cached symbol metadata lookup.
        last_buy_prices: Read access to the persisted last buy price.
        clock: Returns the current UTC time; injectable for deterministic tests.
    """

    def __init__(
        self,
        exchange: ExchangeClient,
        symbol_info_provider: SymbolInfoProvider,
        last_buy_prices: LastBuyPriceRepository,
        clock: Callable[[], datetime] = _utc_now,
    ) -> None:
        self._exchange = exchange
        self._symbol_info_provider = symbol_info_provider
        self._last_buy_prices = last_buy_prices
        self._clock = clock

    async def evaluate(self, config: SymbolConfiguration, raw_state: TradeState) -> TradeState:
        """Run every step in order and return the enriched state.

        Raises:
            MalformedCandleError: Candle data could not be parsed.
            InsufficientDataError: Too few candles for RSI/pattern detection.
            MalformedSymbolInfoError: Exchange metadata is unusable.
            UpstreamUnavailableError: An exchange, cache or store call failed.
        """
        state = replace(raw_state, symbol_configuration=config)
        state = await self._with_symbol_info(state)
        state = await self._with_indicators(state, config)
        state = self._with_asset_balances(state)
        state = await self._with_signals(state, config)
        return state

    async def _call_upstream(self, what: str, call: Awaitable[T]) -> T:
        """Await a collaborator call, translating unexpected failures."""
        try:
            return await call
        except TrailTradeError:
            raise
        except Exception as e:
            raise UpstreamUnavailableError(f"{what} failed: {e}") from e

    async def _with_symbol_info(self, state: TradeState) -> TradeState:
        symbol_info = await self._call_upstream(
            "symbol info lookup",
            self._symbol_info_provider.get_symbol_info(state.symbol),
        )
        return replace(state, symbol_info=symbol_info)

    async def _with_indicators(self, state: TradeState, config: SymbolConfiguration) -> TradeState:
        interval = config.candles.interval
        limit = config.candles.limit
        logger.debug("retrieving_candles", symbol=state.symbol, interval=interval, limit=limit)
        raw_candles = await self._call_upstream(
            "candle retrieval",
            self._exchange.get_candles(state.symbol, interval, limit),
        )

        candles = parse_candles(raw_candles)
        series = normalize_candles(candles)
        rsi, previous_rsi = latest_rsi_pair(series.close, RSI_PERIOD)
        highest_price, window_lowest_price = compute_rolling_extremes(series)

        pattern = detect_buy_pattern(candles, previous_rsi, config.buy.rsi)
        lowest_price = effective_lowest_price(pattern, series)

        logger.info(
            "retrieved_indicators",
            symbol=state.symbol,
            highest_price=str(highest_price),
            lowest_price=str(lowest_price),
            window_lowest_price=str(window_lowest_price),
            rsi=str(rsi),
            previous_rsi=str(previous_rsi),
            rsi_threshold=str(config.buy.rsi),
            is_last_candle_green=pattern.is_last_candle_green,
            is_previous_candle_red=pattern.is_previous_candle_red,
            meets_buy_trigger=pattern.meets_buy_trigger,
        )

        indicators = Indicators(
            highest_price=highest_price,
            lowest_price=lowest_price,
            rsi=rsi,
            window_lowest_price=window_lowest_price,
            previous_rsi=previous_rsi,
            meets_buy_trigger=pattern.meets_buy_trigger,
            last_candle=candles[-1],
        )
        return replace(state, indicators=indicators)

    def _with_asset_balances(self, state: TradeState) -> TradeState:
        assert state.symbol_info is not None and state.indicators is not None
        current_price = state.indicators.last_candle.close
        updated_at = ms_to_utc(state.account_info.update_time)

        base = state.account_info.balance_of(state.symbol_info.base_asset)
        base_total = base.free + base.locked
        quote = state.account_info.balance_of(state.symbol_info.quote_asset)

        return replace(
            state,
            base_asset_balance=AssetBalance(
                asset=base.asset,
                free=base.free,
                locked=base.locked,
                total=base_total,
                estimated_value=base_total * current_price,
                updated_at=updated_at,
            ),
            quote_asset_balance=AssetBalance(
                asset=quote.asset,
                free=quote.free,
                locked=quote.locked,
                total=quote.free + quote.locked,
            ),
        )

    async def _with_signals(self, state: TradeState, config: SymbolConfiguration) -> TradeState:
        assert state.indicators is not None and state.base_asset_balance is not None
        indicators = state.indicators
        current_price = indicators.last_candle.close

        last_buy_price = await self._call_upstream(
            "last buy price lookup",
            self._last_buy_prices.get(state.symbol),
        )

        triggers = calculate_triggers(
            current_price=current_price,
            effective_lowest_price=indicators.lowest_price,
            last_buy_price=last_buy_price,
            buy_trigger_percentage=config.buy.trigger_percentage,
            buy_limit_percentage=config.buy.limit_percentage,
            sell_trigger_percentage=config.sell.trigger_percentage,
            sell_limit_percentage=config.sell.limit_percentage,
        )
        current_profit, current_profit_percentage = calculate_current_profit(
            current_price, last_buy_price, state.base_asset_balance.total
        )
        orders = reconcile_orders(
            state.open_orders,
            current_price=current_price,
            triggers=triggers,
            buy_limit_percentage=config.buy.limit_percentage,
            sell_limit_percentage=config.sell.limit_percentage,
            last_buy_price=last_buy_price,
        )

        logger.info(
            "calculated_triggers",
            symbol=state.symbol,
            current_price=str(current_price),
            buy_trigger_price=str(triggers.buy_trigger_price),
            buy_difference=_opt_str(triggers.buy_difference),
            last_buy_price=_opt_str(last_buy_price),
            sell_trigger_price=_opt_str(triggers.sell_trigger_price),
            sell_difference=_opt_str(triggers.sell_difference),
            buy_orders=len(orders.buy),
            sell_orders=len(orders.sell),
        )

        now = self._clock()
        buy = BuySignal(
            current_price=current_price,
            trigger_price=triggers.buy_trigger_price,
            limit_price=triggers.buy_limit_price,
            lowest_price=indicators.lowest_price,
            highest_price=indicators.highest_price,
            difference=triggers.buy_difference,
            rsi=indicators.rsi,
            open_orders=orders.buy,
            updated_at=now,
        )
        sell = SellSignal(
            current_price=current_price,
            trigger_price=triggers.sell_trigger_price,
            limit_price=triggers.sell_limit_price,
            last_buy_price=last_buy_price,
            difference=triggers.sell_difference,
            current_profit=current_profit,
            current_profit_percentage=current_profit_percentage,
            open_orders=orders.sell,
            updated_at=now,
        )
        return replace(state, buy=buy, sell=sell)
