"""Candle normalization.

Converts raw exchange candle records into Candle models and parallel
numeric series. Values are parsed from their string form, so no precision
is lost on the way to Decimal.

CRITICAL: All computations use Decimal. Never use float.
"""

from collections.abc import Mapping, Sequence
from decimal import Decimal, InvalidOperation
from typing import Any

from trailtrade.exceptions import MalformedCandleError
from trailtrade.models import Candle, CandleSeries

_PRICE_FIELDS = ("open", "high", "low", "close", "volume")


def _parse_number(raw: Mapping[str, Any], field: str) -> Decimal:
    if field not in raw or raw[field] is None:
        raise MalformedCandleError(f"Candle is missing field {field!r}: {dict(raw)}")
    value = raw[field]
    if isinstance(value, bool):
        raise MalformedCandleError(f"Candle field {field!r} is not numeric: {value!r}")
    try:
        parsed = Decimal(str(value).strip())
    except InvalidOperation as e:
        raise MalformedCandleError(f"Candle field {field!r} is not numeric: {value!r}") from e
    if not parsed.is_finite():
        raise MalformedCandleError(f"Candle field {field!r} is not finite: {value!r}")
    return parsed


def parse_candle(raw: Mapping[str, Any]) -> Candle:
    """Parse one raw candle record.

    Accepts Binance-style mappings with keys ``openTime, open, high, low,
    close, volume``. Values may be strings or numbers.

    Raises:
        MalformedCandleError: A field is missing, non-numeric or not finite.
    """
    open_time = _parse_number(raw, "openTime")
    if open_time != open_time.to_integral_value():
        raise MalformedCandleError(f"Candle openTime is not an integer: {raw['openTime']!r}")
    values = {field: _parse_number(raw, field) for field in _PRICE_FIELDS}
    return Candle(open_time=int(open_time), **values)


def parse_candles(raw_candles: Sequence[Mapping[str, Any]]) -> list[Candle]:
    """Parse an ordered window of raw candle records (oldest first)."""
    return [parse_candle(raw) for raw in raw_candles]


def normalize_candles(candles: Sequence[Candle]) -> CandleSeries:
    """Split a candle window into parallel open-time/OHLC series of equal length."""
    return CandleSeries(
        open_time=tuple(c.open_time for c in candles),
        open=tuple(c.open for c in candles),
        high=tuple(c.high for c in candles),
        low=tuple(c.low for c in candles),
        close=tuple(c.close for c in candles),
    )
