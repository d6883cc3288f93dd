"""Rolling highest/lowest price over the candle window."""

from decimal import Decimal

from trailtrade.exceptions import InsufficientDataError
from trailtrade.models import CandleSeries


def compute_rolling_extremes(series: CandleSeries) -> tuple[Decimal, Decimal]:
    """Return ``(max(high), min(low))`` over the full window.

    Raises:
        InsufficientDataError: The window is empty.
    """
    if len(series) == 0:
        raise InsufficientDataError("Cannot compute highest/lowest price of an empty window")
    return max(series.high), min(series.low)
