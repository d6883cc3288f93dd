"""Open order reconciliation.

Annotates every open order with the live price and its timestamp in UTC.
Stop-loss-limit orders additionally get the limit price the bot would use
now and the percentage distance between their stop price and that limit.
Sell orders also carry the profit they lock in relative to the last buy.
"""

from collections.abc import Sequence
from dataclasses import dataclass, replace
from decimal import Decimal

from trailtrade.indicators.triggers import TriggerPrices, has_position
from trailtrade.models import STOP_LOSS_LIMIT, OpenOrder, ms_to_utc

_ZERO = Decimal("0")
_ONE = Decimal("1")
_HUNDRED = Decimal("100")


@dataclass(frozen=True)
class ReconciledOrders:
    """Annotated orders partitioned by side."""

    buy: tuple[OpenOrder, ...]
    sell: tuple[OpenOrder, ...]


def _stop_difference(stop_price: Decimal, limit_price: Decimal, sign: Decimal) -> Decimal | None:
    if limit_price == _ZERO:
        return None
    return (_ONE - stop_price / limit_price) * sign


def reconcile_order(
    order: OpenOrder,
    current_price: Decimal,
    triggers: TriggerPrices,
    buy_limit_percentage: Decimal,
    sell_limit_percentage: Decimal,
    last_buy_price: Decimal | None,
) -> OpenOrder:
    """Return an annotated copy of ``order``."""
    annotated = replace(
        order,
        current_price=current_price,
        updated_at=ms_to_utc(order.time),
    )
    if order.type != STOP_LOSS_LIMIT:
        return annotated

    if order.is_buy:
        return replace(
            annotated,
            limit_price=triggers.buy_limit_price,
            limit_percentage=buy_limit_percentage,
            difference=_stop_difference(order.stop_price, triggers.buy_limit_price, -_HUNDRED),
        )

    if order.is_sell:
        minimum_profit = None
        minimum_profit_percentage = None
        if has_position(last_buy_price):
            minimum_profit = (order.price - last_buy_price) * order.orig_qty
            if order.price != _ZERO:
                minimum_profit_percentage = (_ONE - last_buy_price / order.price) * _HUNDRED
        return replace(
            annotated,
            limit_price=triggers.sell_limit_price,
            limit_percentage=sell_limit_percentage,
            difference=_stop_difference(order.stop_price, triggers.sell_limit_price, _HUNDRED),
            minimum_profit=minimum_profit,
            minimum_profit_percentage=minimum_profit_percentage,
        )

    return annotated


def reconcile_orders(
    orders: Sequence[OpenOrder],
    current_price: Decimal,
    triggers: TriggerPrices,
    buy_limit_percentage: Decimal,
    sell_limit_percentage: Decimal,
    last_buy_price: Decimal | None,
) -> ReconciledOrders:
    """Annotate all open orders and split them by side (case-insensitive)."""
    annotated = [
        reconcile_order(
            order,
            current_price,
            triggers,
            buy_limit_percentage,
            sell_limit_percentage,
            last_buy_price,
        )
        for order in orders
    ]
    return ReconciledOrders(
        buy=tuple(o for o in annotated if o.is_buy),
        sell=tuple(o for o in annotated if o.is_sell),
    )
