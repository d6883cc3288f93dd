"""Relative Strength Index using Wilder smoothing.

The first average gain/loss is the simple mean of the first ``period``
close-to-close changes. Every later average is smoothed as::

    avg_t = (avg_{t-1} * (period - 1) + change_t) / period

    RSI = 100 - 100 / (1 + avg_gain / avg_loss)

One RSI value is produced per candle index >= period, so a series of N
closes yields N - period values. Averages keep full context precision and
are never rounded to a fixed number of decimal places.

CRITICAL: All computations use Decimal. Never use float.
"""

from collections.abc import Sequence
from decimal import Decimal

from trailtrade.exceptions import InsufficientDataError

#: Standard Wilder RSI period.
RSI_PERIOD = 14

_HUNDRED = Decimal("100")
_ZERO = Decimal("0")


def _rsi_from_averages(avg_gain: Decimal, avg_loss: Decimal) -> Decimal:
    if avg_loss == _ZERO:
        return _HUNDRED
    if avg_gain == _ZERO:
        return _ZERO
    return _HUNDRED - _HUNDRED / (Decimal("1") + avg_gain / avg_loss)


def compute_rsi(closes: Sequence[Decimal], period: int = RSI_PERIOD) -> list[Decimal]:
    """Compute Wilder RSI over a close series (oldest first).

    Args:
        closes: Closing prices ordered oldest-first.
        period: Smoothing period.

    Returns:
        ``len(closes) - period`` RSI values, the last one belonging to the
        most recent candle. Empty list if there are not more than ``period``
        closes.
    """
    if period < 1:
        raise ValueError(f"RSI period must be positive, got {period}")
    if len(closes) <= period:
        return []

    changes = [closes[i] - closes[i - 1] for i in range(1, len(closes))]
    gains = [max(change, _ZERO) for change in changes]
    losses = [max(-change, _ZERO) for change in changes]

    divisor = Decimal(period)
    avg_gain = sum(gains[:period], _ZERO) / divisor
    avg_loss = sum(losses[:period], _ZERO) / divisor
    values = [_rsi_from_averages(avg_gain, avg_loss)]

    for gain, loss in zip(gains[period:], losses[period:]):
        avg_gain = (avg_gain * (divisor - 1) + gain) / divisor
        avg_loss = (avg_loss * (divisor - 1) + loss) / divisor
        values.append(_rsi_from_averages(avg_gain, avg_loss))

    return values


def latest_rsi_pair(
    closes: Sequence[Decimal], period: int = RSI_PERIOD
) -> tuple[Decimal, Decimal]:
    """Return the most recent RSI and the RSI two positions before it.

    The second value belongs to the third-to-last candle, which is the
    candle the pattern detector checks for a red close.

    Raises:
        InsufficientDataError: Fewer than ``period + 3`` closes are available.
    """
    required = period + 3
    if len(closes) < required:
        raise InsufficientDataError(
            f"RSI pattern detection needs {required} closes, got {len(closes)}"
        )
    values = compute_rsi(closes, period)
    return values[-1], values[-3]
