"""Shared data models for the trailing trade indicator pipeline.

CRITICAL: All monetary values use Decimal. Never use float for prices, quantities, or percentages.

Every record is a frozen dataclass. Pipeline steps never assign fields in
place; they build a new record with ``dataclasses.replace``.
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Any

from pydantic import BaseModel

from trailtrade.config import SymbolConfiguration

_ZERO = Decimal("0")


def to_decimal(value: Any) -> Decimal:
    """Convert an exchange value (string or number) to Decimal via its string form."""
    return Decimal(str(value))


def ms_to_utc(timestamp_ms: int) -> datetime:
    """Convert a millisecond Unix timestamp to an aware UTC datetime."""
    return datetime.fromtimestamp(timestamp_ms / 1000, tz=timezone.utc)


class OrderSide(str, Enum):
    """Order direction."""

    BUY = "buy"
    SELL = "sell"


#: Binance order type that receives limit/trigger annotations.
STOP_LOSS_LIMIT = "STOP_LOSS_LIMIT"


@dataclass(frozen=True)
class Candle:
    """A single OHLCV candle. Immutable once retrieved."""

    open_time: int  # Unix milliseconds
    open: Decimal
    high: Decimal
    low: Decimal
    close: Decimal
    volume: Decimal

    @property
    def is_green(self) -> bool:
        return self.open < self.close

    @property
    def is_red(self) -> bool:
        return self.open > self.close


@dataclass(frozen=True)
class CandleSeries:
    """Parallel numeric series extracted from a candle window (oldest first)."""

    open_time: tuple[int, ...]
    open: tuple[Decimal, ...]
    high: tuple[Decimal, ...]
    low: tuple[Decimal, ...]
    close: tuple[Decimal, ...]

    def __len__(self) -> int:
        return len(self.close)


@dataclass(frozen=True)
class LotSizeFilter:
    min_qty: Decimal
    max_qty: Decimal
    step_size: Decimal


@dataclass(frozen=True)
class PriceFilter:
    min_price: Decimal
    max_price: Decimal
    tick_size: Decimal


@dataclass(frozen=True)
class MinNotionalFilter:
    min_notional: Decimal


@dataclass(frozen=True)
class SymbolInfo:
    """Exchange metadata for a symbol, cached between ticks."""

    symbol: str
    status: str
    base_asset: str
    base_asset_precision: int
    quote_asset: str
    quote_precision: int
    filter_lot_size: LotSizeFilter
    filter_price: PriceFilter
    filter_min_notional: MinNotionalFilter

    @property
    def price_precision(self) -> int:
        """Display precision derived from the tick size.

        "0.01000000" -> 2, "1.00000000" -> 0. Tick sizes of 1 or more
        display without decimals.
        """
        exponent = self.filter_price.tick_size.normalize().as_tuple().exponent
        return -exponent if isinstance(exponent, int) and exponent < 0 else 0

    def to_cache_dict(self) -> dict[str, Any]:
        """Serialize to a JSON-safe dict (Decimals as strings)."""
        return to_jsonable(self)

    @classmethod
    def from_cache_dict(cls, data: dict[str, Any]) -> SymbolInfo:
        """Rebuild from the dict produced by ``to_cache_dict``."""
        lot = data["filter_lot_size"]
        price = data["filter_price"]
        notional = data["filter_min_notional"]
        return cls(
            symbol=data["symbol"],
            status=data["status"],
            base_asset=data["base_asset"],
            base_asset_precision=int(data["base_asset_precision"]),
            quote_asset=data["quote_asset"],
            quote_precision=int(data["quote_precision"]),
            filter_lot_size=LotSizeFilter(
                min_qty=to_decimal(lot["min_qty"]),
                max_qty=to_decimal(lot["max_qty"]),
                step_size=to_decimal(lot["step_size"]),
            ),
            filter_price=PriceFilter(
                min_price=to_decimal(price["min_price"]),
                max_price=to_decimal(price["max_price"]),
                tick_size=to_decimal(price["tick_size"]),
            ),
            filter_min_notional=MinNotionalFilter(
                min_notional=to_decimal(notional["min_notional"]),
            ),
        )


@dataclass(frozen=True)
class OpenOrder:
    """An open exchange order, optionally enriched by the order reconciler.

    Exclusively owned by the TradeState it is attached to for one tick.
    """

    symbol: str
    order_id: int
    side: str
    type: str
    status: str
    price: Decimal
    orig_qty: Decimal
    stop_price: Decimal
    time: int  # Unix milliseconds
    current_price: Decimal | None = None
    updated_at: datetime | None = None
    limit_price: Decimal | None = None
    limit_percentage: Decimal | None = None
    difference: Decimal | None = None
    minimum_profit: Decimal | None = None
    minimum_profit_percentage: Decimal | None = None

    @classmethod
    def from_exchange(cls, raw: dict[str, Any]) -> OpenOrder:
        """Build from a raw Binance order payload (string-valued numbers)."""
        return cls(
            symbol=raw["symbol"],
            order_id=int(raw["orderId"]),
            side=raw["side"],
            type=raw["type"],
            status=raw.get("status", "NEW"),
            price=to_decimal(raw.get("price", "0")),
            orig_qty=to_decimal(raw.get("origQty", "0")),
            stop_price=to_decimal(raw.get("stopPrice", "0")),
            time=int(raw["time"]),
        )

    @property
    def is_buy(self) -> bool:
        return self.side.lower() == OrderSide.BUY.value

    @property
    def is_sell(self) -> bool:
        return self.side.lower() == OrderSide.SELL.value


@dataclass(frozen=True)
class Balance:
    """Free and locked amount of one asset in the account."""

    asset: str
    free: Decimal = _ZERO
    locked: Decimal = _ZERO

    @classmethod
    def from_exchange(cls, raw: dict[str, Any]) -> Balance:
        return cls(
            asset=raw["asset"],
            free=to_decimal(raw.get("free", "0")),
            locked=to_decimal(raw.get("locked", "0")),
        )


@dataclass(frozen=True)
class AccountInfo:
    """Account balances as reported by the exchange at ``update_time``."""

    balances: tuple[Balance, ...]
    update_time: int  # Unix milliseconds

    def balance_of(self, asset: str) -> Balance:
        """Return the balance for ``asset``, or a zero balance if the account holds none."""
        for balance in self.balances:
            if balance.asset == asset:
                return balance
        return Balance(asset=asset)


@dataclass(frozen=True)
class AssetBalance:
    """Balance of the base or quote asset enriched for display."""

    asset: str
    free: Decimal
    locked: Decimal
    total: Decimal
    estimated_value: Decimal | None = None  # base asset only
    updated_at: datetime | None = None


@dataclass(frozen=True)
class Indicators:
    """Technical indicators computed for the current candle window.

    ``lowest_price`` is the effective value used for the buy trigger: the
    breakout close when the buy pattern fired, an unreachable sentinel
    otherwise. The plain rolling minimum stays in ``window_lowest_price``.
    """

    highest_price: Decimal
    lowest_price: Decimal
    rsi: Decimal
    window_lowest_price: Decimal
    previous_rsi: Decimal
    meets_buy_trigger: bool
    last_candle: Candle


@dataclass(frozen=True)
class BuySignal:
    current_price: Decimal
    trigger_price: Decimal
    limit_price: Decimal
    lowest_price: Decimal
    highest_price: Decimal
    difference: Decimal | None
    rsi: Decimal
    open_orders: tuple[OpenOrder, ...] = ()
    process_message: str = ""
    updated_at: datetime | None = None


@dataclass(frozen=True)
class SellSignal:
    current_price: Decimal
    trigger_price: Decimal | None
    limit_price: Decimal
    last_buy_price: Decimal | None
    difference: Decimal | None
    current_profit: Decimal | None
    current_profit_percentage: Decimal | None
    open_orders: tuple[OpenOrder, ...] = ()
    process_message: str = ""
    updated_at: datetime | None = None


@dataclass(frozen=True)
class TradeState:
    """The per-symbol record threaded through the pipeline.

    The scheduler fills symbol, account info and open orders; each pipeline
    step returns a copy with its own section added. A state is only
    published once ``buy`` and ``sell`` are both present.
    """

    symbol: str
    account_info: AccountInfo
    open_orders: tuple[OpenOrder, ...] = ()
    symbol_configuration: SymbolConfiguration | None = None
    symbol_info: SymbolInfo | None = None
    indicators: Indicators | None = None
    base_asset_balance: AssetBalance | None = None
    quote_asset_balance: AssetBalance | None = None
    buy: BuySignal | None = None
    sell: SellSignal | None = None

    @property
    def is_complete(self) -> bool:
        return self.buy is not None and self.sell is not None


def to_jsonable(obj: Any) -> Any:
    """Recursively convert models to JSON-safe values.

    Decimals become strings, datetimes ISO-8601 strings, dataclasses and
    pydantic models dicts, tuples lists.
    """
    if isinstance(obj, Decimal):
        return str(obj)
    if isinstance(obj, datetime):
        return obj.isoformat()
    if isinstance(obj, Enum):
        return obj.value
    if isinstance(obj, BaseModel):
        return obj.model_dump(mode="json")
    if dataclasses.is_dataclass(obj) and not isinstance(obj, type):
        return {f.name: to_jsonable(getattr(obj, f.name)) for f in dataclasses.fields(obj)}
    if isinstance(obj, dict):
        return {k: to_jsonable(v) for k, v in obj.items()}
    if isinstance(obj, (list, tuple)):
        return [to_jsonable(item) for item in obj]
    return obj
