"""Latest published TradeState per symbol.

The scheduler publishes a state only after a tick completed successfully,
so a failed tick leaves the previous state in place for consumers.
Async-safe via asyncio.Lock.
"""

import asyncio

from trailtrade.logging import get_logger
from trailtrade.models import TradeState

logger = get_logger(__name__)


class TradeStateBoard:
    """In-memory board of the most recent complete TradeState for each symbol."""

    def __init__(self) -> None:
        self._states: dict[str, TradeState] = {}
        self._lock = asyncio.Lock()

    async def publish(self, state: TradeState) -> None:
        """Replace the symbol's state. Incomplete states are rejected."""
        if not state.is_complete:
            raise ValueError(f"Refusing to publish incomplete trade state for {state.symbol}")
        async with self._lock:
            self._states[state.symbol] = state
        logger.debug("trade_state_published", symbol=state.symbol)

    async def get(self, symbol: str) -> TradeState | None:
        async with self._lock:
            return self._states.get(symbol)

    async def get_all(self) -> dict[str, TradeState]:
        async with self._lock:
            return dict(self._states)
