"""Buy pattern detection over the last closed candles.

The last candle in the window is still forming and is ignored. A buy
condition needs the second-to-last candle to close green, the
third-to-last to close red, and the RSI of that red candle to sit below the
configured threshold.

When the pattern is absent the effective lowest price becomes an
unreachable sentinel, so the buy trigger price computed from it can never
be met and buying is suppressed for the tick.
"""

from collections.abc import Sequence
from dataclasses import dataclass
from decimal import Decimal

from trailtrade.exceptions import InsufficientDataError
from trailtrade.models import Candle, CandleSeries

#: Most negative integer a double can represent exactly.
UNREACHABLE_LOWEST_PRICE = Decimal(-(2**53 - 1))


@dataclass(frozen=True)
class BuyPattern:
    """Classification of the two most recent closed candles."""

    is_last_candle_green: bool
    is_previous_candle_red: bool
    previous_rsi: Decimal
    rsi_threshold: Decimal

    @property
    def meets_buy_trigger(self) -> bool:
        return (
            self.is_last_candle_green
            and self.is_previous_candle_red
            and self.previous_rsi < self.rsi_threshold
        )


def detect_buy_pattern(
    candles: Sequence[Candle],
    previous_rsi: Decimal,
    rsi_threshold: Decimal,
) -> BuyPattern:
    """Classify the second- and third-to-last candles of the window.

    Raises:
        InsufficientDataError: Fewer than three candles.
    """
    if len(candles) < 3:
        raise InsufficientDataError(
            f"Pattern detection needs 3 candles, got {len(candles)}"
        )
    last_closed = candles[-2]
    previous = candles[-3]
    return BuyPattern(
        is_last_candle_green=last_closed.is_green,
        is_previous_candle_red=previous.is_red,
        previous_rsi=previous_rsi,
        rsi_threshold=rsi_threshold,
    )


def effective_lowest_price(pattern: BuyPattern, series: CandleSeries) -> Decimal:
    """Lowest price used for the buy trigger.

    The close of the last closed candle when the pattern fired, the
    unreachable sentinel otherwise.
    """
    if pattern.meets_buy_trigger:
        return series.close[-2]
    return UNREACHABLE_LOWEST_PRICE
