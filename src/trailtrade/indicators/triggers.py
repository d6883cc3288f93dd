"""Buy/sell trigger and limit price derivation.

Pure functions of the current price, the effective lowest price, the last
recorded buy price and the configured percentages. No rounding is applied
here; display precision is left to the presentation layer.

CRITICAL: All computations use Decimal. Never use float.
"""

from dataclasses import dataclass
from decimal import Decimal

_ZERO = Decimal("0")
_ONE = Decimal("1")
_HUNDRED = Decimal("100")


@dataclass(frozen=True)
class TriggerPrices:
    """Trigger, limit and difference prices for both sides."""

    buy_trigger_price: Decimal
    buy_difference: Decimal | None
    buy_limit_price: Decimal
    sell_trigger_price: Decimal | None
    sell_difference: Decimal | None
    sell_limit_price: Decimal


def has_position(last_buy_price: Decimal | None) -> bool:
    """True when a purchase price is recorded, i.e. a position is held."""
    return last_buy_price is not None and last_buy_price > _ZERO


def calculate_triggers(
    current_price: Decimal,
    effective_lowest_price: Decimal,
    last_buy_price: Decimal | None,
    buy_trigger_percentage: Decimal,
    buy_limit_percentage: Decimal,
    sell_trigger_percentage: Decimal,
    sell_limit_percentage: Decimal,
) -> TriggerPrices:
    """Derive trigger and limit prices.

    Formulas:
        buy_trigger_price = effective_lowest_price * buy_trigger_percentage
        buy_difference = (1 - current_price / buy_trigger_price) * -100
        buy_limit_price = current_price * buy_limit_percentage
        sell_trigger_price = last_buy_price * sell_trigger_percentage
        sell_difference = (1 - sell_trigger_price / current_price) * 100
        sell_limit_price = current_price * sell_limit_percentage

    ``buy_difference`` is positive while the current price sits above the
    buy trigger and negative once it has dropped below it. The sell trigger
    and difference are None when no position is held. A difference whose
    divisor is zero is None.
    """
    buy_trigger_price = effective_lowest_price * buy_trigger_percentage
    buy_difference = None
    if buy_trigger_price != _ZERO:
        buy_difference = (_ONE - current_price / buy_trigger_price) * -_HUNDRED
    buy_limit_price = current_price * buy_limit_percentage

    sell_trigger_price = None
    sell_difference = None
    if has_position(last_buy_price):
        sell_trigger_price = last_buy_price * sell_trigger_percentage
        if current_price != _ZERO:
            sell_difference = (_ONE - sell_trigger_price / current_price) * _HUNDRED
    sell_limit_price = current_price * sell_limit_percentage

    return TriggerPrices(
        buy_trigger_price=buy_trigger_price,
        buy_difference=buy_difference,
        buy_limit_price=buy_limit_price,
        sell_trigger_price=sell_trigger_price,
        sell_difference=sell_difference,
        sell_limit_price=sell_limit_price,
    )


def calculate_current_profit(
    current_price: Decimal,
    last_buy_price: Decimal | None,
    base_asset_total: Decimal,
) -> tuple[Decimal | None, Decimal | None]:
    """Unrealised profit of the held base asset and its percentage.

    Both None when no position is held.
    """
    if not has_position(last_buy_price) or current_price == _ZERO:
        return None, None
    profit = (current_price - last_buy_price) * base_asset_total
    percentage = (_ONE - last_buy_price / current_price) * _HUNDRED
    return profit, percentage
