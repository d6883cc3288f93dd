"""Tests for rolling highest/lowest price."""

from decimal import Decimal

import pytest

from trailtrade.exceptions import InsufficientDataError
from trailtrade.indicators.candles import normalize_candles, parse_candles
from trailtrade.indicators.extremes import compute_rolling_extremes


class TestRollingExtremes:
    def test_uses_high_and_low_not_close(self, pattern_candles: list[dict]) -> None:
        series = normalize_candles(parse_candles(pattern_candles))
        highest, lowest = compute_rolling_extremes(series)
        assert highest == Decimal("101.5")
        assert lowest == Decimal("82.5")

    def test_bounds_every_candle(self, no_pattern_candles: list[dict]) -> None:
        series = normalize_candles(parse_candles(no_pattern_candles))
        highest, lowest = compute_rolling_extremes(series)
        assert all(lowest <= low for low in series.low)
        assert all(high <= highest for high in series.high)
        assert lowest == Decimal("82.3")

    def test_single_candle(self, pattern_candles: list[dict]) -> None:
        series = normalize_candles(parse_candles(pattern_candles[:1]))
        assert compute_rolling_extremes(series) == (Decimal("101.5"), Decimal("99.5"))

    def test_empty_window_raises(self) -> None:
        with pytest.raises(InsufficientDataError):
            compute_rolling_extremes(normalize_candles([]))
