"""Group pricing for tour bookings.

Computes per-rider and total prices under a route's tiered discount policy:
riders before ``discount_from_pax`` pay the base price, riders from that
(1-based) index onward get either a fixed amount or a percentage off.

All arithmetic is Decimal. Totals are never rounded here; rounding happens
only in ``format_price`` for display. The deposit is always recomputed from
the live effective total and never stored.
"""

from dataclasses import dataclass
from decimal import ROUND_CEILING, ROUND_HALF_UP, Decimal, InvalidOperation

from .conf import get_setting
from .exceptions import ValidationError
from .models import DiscountType


ZERO = Decimal("0")
HUNDRED = Decimal("100")
DEPOSIT_RATE = Decimal("0.5")
CENT = Decimal("0.01")


@dataclass(frozen=True)
class PriceBreakdown:
    """Immutable result of a group price computation.

    Attributes:
        total: Sum of per_rider
        per_rider: Price of each rider, rider 1 first
    """

    total: Decimal
    per_rider: tuple[Decimal, ...]

    def as_dict(self) -> dict:
        return {
            "total": str(self.total),
            "per_rider": [
                {"rider": index, "price": str(price)}
                for index, price in enumerate(self.per_rider, start=1)
            ],
        }


def _to_decimal(value) -> Decimal:
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def compute_total(
    base_price,
    rider_count: int,
    discount_type: str = DiscountType.NONE,
    discount_value=ZERO,
    discount_from_pax: int | None = None,
) -> PriceBreakdown:
    """Compute per-rider and total price for a group.

    Args:
        base_price: Price per rider before discount
        rider_count: Number of riders; <= 0 yields an empty breakdown
        discount_type: none, fixed or percentage
        discount_value: Amount (fixed) or percent (percentage) off
        discount_from_pax: 1-based rider index where the discount starts

    Returns:
        PriceBreakdown with unrounded Decimal prices
    """
    if discount_from_pax is None:
        discount_from_pax = get_setting("DEFAULT_DISCOUNT_FROM_PAX")

    base = _to_decimal(base_price)
    value = _to_decimal(discount_value or 0)

    prices = []
    for rider in range(1, max(rider_count, 0) + 1):
        price = base
        if discount_type != DiscountType.NONE and value > 0 and rider >= discount_from_pax:
            if discount_type == DiscountType.FIXED:
                price = max(ZERO, base - value)
            elif discount_type == DiscountType.PERCENTAGE:
                price = max(ZERO, base * (1 - value / HUNDRED))
        prices.append(price)

    return PriceBreakdown(total=sum(prices, ZERO), per_rider=tuple(prices))


def compute_route_price(route, rider_count: int) -> PriceBreakdown:
    """Price ``rider_count`` riders on ``route`` with its discount policy."""
    return compute_total(
        route.price,
        rider_count,
        discount_type=route.discount_type or DiscountType.NONE,
        discount_value=route.discount_value or ZERO,
        discount_from_pax=route.discount_from_pax,
    )


def effective_total(booking) -> Decimal:
    """custom_total when set, otherwise the route's computed total."""
    if booking.custom_total is not None:
        return _to_decimal(booking.custom_total)
    return compute_route_price(booking.route, booking.pax_count).total


def deposit_amount(total) -> Decimal:
    """50% of the total, rounded up to a whole currency unit."""
    return (_to_decimal(total) * DEPOSIT_RATE).to_integral_value(rounding=ROUND_CEILING)


def to_cents(amount) -> Decimal:
    """Round to the currency's stored precision."""
    return _to_decimal(amount).quantize(CENT, rounding=ROUND_HALF_UP)


def format_price(amount) -> str:
    """Render an amount for display, e.g. ``฿2,600`` or ``฿1,033.33``."""
    rounded = to_cents(amount)
    symbol = get_setting("CURRENCY_SYMBOL")
    if rounded == rounded.to_integral_value():
        return f"{symbol}{rounded:,.0f}"
    return f"{symbol}{rounded:,.2f}"


def parse_amount(value, field: str = "amount") -> Decimal:
    """Coerce user input to a non-negative Decimal.

    Raises:
        ValidationError: If the value is missing, not numeric or negative
    """
    if value is None or value == "":
        raise ValidationError(f"{field} is required", field=field)
    try:
        amount = _to_decimal(value)
    except (InvalidOperation, ValueError) as exc:
        raise ValidationError(f"{field} is not a number: {value!r}", field=field) from exc
    if not amount.is_finite():
        raise ValidationError(f"{field} is not a number: {value!r}", field=field)
    if amount < 0:
        raise ValidationError(f"{field} cannot be negative", field=field)
    return amount
