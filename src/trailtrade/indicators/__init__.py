"""Indicator and signal pipeline.

Provides the candle normalizer, the indicator computations (Wilder RSI,
rolling extremes), the buy pattern detector, the trigger calculator, the
open order reconciler, and the IndicatorPipeline that runs them in order
over one TradeState.
"""

from trailtrade.indicators.candles import normalize_candles, parse_candle, parse_candles
from trailtrade.indicators.extremes import compute_rolling_extremes
from trailtrade.indicators.orders import ReconciledOrders, reconcile_order, reconcile_orders
from trailtrade.indicators.pattern import (
    UNREACHABLE_LOWEST_PRICE,
    BuyPattern,
    detect_buy_pattern,
    effective_lowest_price,
)
from trailtrade.indicators.pipeline import IndicatorPipeline
from trailtrade.indicators.rsi import RSI_PERIOD, compute_rsi, latest_rsi_pair
from trailtrade.indicators.triggers import (
    TriggerPrices,
    calculate_current_profit,
    calculate_triggers,
)

__all__ = [
    "BuyPattern",
    "IndicatorPipeline",
    "RSI_PERIOD",
    "ReconciledOrders",
    "TriggerPrices",
    "UNREACHABLE_LOWEST_PRICE",
    "calculate_current_profit",
    "calculate_triggers",
    "compute_rolling_extremes",
    "compute_rsi",
    "detect_buy_pattern",
    "effective_lowest_price",
    "latest_rsi_pair",
    "normalize_candles",
    "parse_candle",
    "parse_candles",
    "reconcile_order",
    "reconcile_orders",
]
