"""Last recorded purchase price per symbol.

The price is written by whatever places buy orders and is only read by the
pipeline. Documents live in the ``trailing-trade-symbols`` collection under
the key ``<symbol>-last-buy-price``.
"""

from decimal import Decimal

from trailtrade.logging import get_logger
from trailtrade.models import to_decimal
from trailtrade.store.documents import PersistentStore

logger = get_logger(__name__)

COLLECTION = "trailing-trade-symbols"


def last_buy_price_key(symbol: str) -> str:
    return f"{symbol}-last-buy-price"


class LastBuyPriceRepository:
    """Read access to the last buy price recorded by order placement."""

    def __init__(self, store: PersistentStore) -> None:
        self._store = store

    async def get(self, symbol: str) -> Decimal | None:
        """Return the last buy price, or None when nothing is recorded."""
        document = await self._store.find_one(
            COLLECTION, {"key": last_buy_price_key(symbol)}
        )
        raw = document.get("lastBuyPrice") if document else None
        last_buy_price = to_decimal(raw) if raw is not None else None
        logger.debug(
            "last_buy_price",
            symbol=symbol,
            last_buy_price=str(last_buy_price) if last_buy_price is not None else None,
        )
        return last_buy_price
