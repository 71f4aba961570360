"""Payment tracking for tour bookings.

Two independent paths write payment state:

- Guided path: select_payment_option() records the customer's choice and
  mark_paid() moves payment forward to deposit_paid or fully_paid with
  the amount the effective total implies.
- Correction path: correct_payment_status() sets payment_status and
  amount_paid to exactly the given values, for fixing data-entry errors.
  It sends no email and is audited under its own action code.

Both paths enforce 0 <= amount_paid <= effective total. The deposit is
never stored; payment_summary() recomputes it from the live total.
"""

import logging
from dataclasses import dataclass
from decimal import Decimal

from .activity import Actions, actor_email_for, record_outcome
from .conf import get_clock, get_setting
from .exceptions import InvalidTransition, InvariantViolation, ValidationError
from .models import ActivityLevel, ActorType, BookingStatus, PaymentOption, PaymentStatus
from .pricing import (
    ZERO,
    compute_route_price,
    deposit_amount,
    effective_total,
    format_price,
    parse_amount,
    to_cents,
)
from .results import ActionResult
from .store import get_booking, save_booking

logger = logging.getLogger(__name__)

PAID_TIERS = (PaymentStatus.DEPOSIT_PAID, PaymentStatus.FULLY_PAID)
TIER_RANK = {
    PaymentStatus.UNPAID: 0,
    PaymentStatus.DEPOSIT_PAID: 1,
    PaymentStatus.FULLY_PAID: 2,
}


@dataclass(frozen=True)
class PaymentSummary:
    """Live view of a booking's money.

    Attributes:
        total: Effective total (custom_total or computed price)
        per_rider: Computed per-rider prices (ignores custom_total)
        deposit: ceil(total * 0.5), recomputed now
        amount_paid: Recorded amount paid
        remaining: total - amount_paid, never below zero
        payment_status: unpaid, deposit_paid or fully_paid
        payment_option: Customer's chosen option, or None
        deposit_out_of_sync: deposit_paid but amount_paid != live deposit
    """

    total: Decimal
    per_rider: tuple
    deposit: Decimal
    amount_paid: Decimal
    remaining: Decimal
    payment_status: str
    payment_option: str | None
    deposit_out_of_sync: bool

    def formatted(self) -> dict:
        """Display strings plus the ISO currency code."""
        return {
            "total": format_price(self.total),
            "deposit": format_price(self.deposit),
            "amount_paid": format_price(self.amount_paid),
            "remaining": format_price(self.remaining),
            "currency": get_setting("CURRENCY"),
        }


def payment_summary(booking) -> PaymentSummary:
    """Compute the live payment view of ``booking`` (instance, id or token)."""
    if not hasattr(booking, "payment_status"):
        booking = get_booking(booking)

    total = effective_total(booking)
    deposit = deposit_amount(total)
    amount_paid = to_cents(booking.amount_paid or ZERO)
    return PaymentSummary(
        total=total,
        per_rider=compute_route_price(booking.route, booking.pax_count).per_rider,
        deposit=deposit,
        amount_paid=amount_paid,
        remaining=max(ZERO, to_cents(total) - amount_paid),
        payment_status=booking.payment_status,
        payment_option=booking.payment_option,
        deposit_out_of_sync=(
            booking.payment_status == PaymentStatus.DEPOSIT_PAID
            and amount_paid != to_cents(deposit)
        ),
    )


def _check_bounds(amount: Decimal, total: Decimal) -> None:
    if amount < ZERO:
        raise ValidationError("Amount cannot be negative", field="amount")
    if to_cents(amount) > to_cents(total):
        raise InvariantViolation(
            f"Amount {format_price(amount)} exceeds the booking total {format_price(total)}"
        )


def select_payment_option(booking_ref, option: str, *, clock=None) -> ActionResult:
    """
    Record the customer's payment option. Amounts are not touched.

    Raises:
        ValidationError: If the option is unknown
        InvalidTransition: If the booking is cancelled
    """
    if option not in PaymentOption.values:
        raise ValidationError(f"Unknown payment option: {option!r}", field="payment_option")

    booking = get_booking(booking_ref)
    if booking.status == BookingStatus.CANCELLED:
        raise InvalidTransition("choose a payment option for", booking.status)

    previous = booking.payment_option
    booking.payment_option = option
    save_booking(booking, ["payment_option"], now=(clock or get_clock())())

    return record_outcome(
        ActionResult(booking=booking),
        booking,
        action=Actions.PAYMENT_OPTION_SELECTED,
        description=f"Payment option selected: {PaymentOption(option).label}",
        actor_type=ActorType.CUSTOMER,
        actor_email=booking.customer_email,
        metadata={"from": previous, "to": option},
        clock=clock,
    )


def mark_paid(booking_ref, tier: str, amount=None, *, admin=None, clock=None) -> ActionResult:
    """
    Record a deposit or full payment.

    The expected amount follows from the live effective total: the deposit
    is ceil(total * 0.5), full payment is the total. If ``amount`` is
    given it must match.

    Args:
        booking_ref: Booking instance, id or tracking token
        tier: deposit_paid or fully_paid
        amount: Optional amount received, checked against the expected one
        admin: Acting user
        clock: Optional zero-arg callable returning "now"

    Raises:
        ValidationError: If the tier is unknown or the amount does not match
        InvariantViolation: If the payment would move backwards or exceed
            the total; use correct_payment_status() for corrections
    """
    if tier not in PAID_TIERS:
        raise ValidationError(f"Unknown payment tier: {tier!r}", field="tier")

    booking = get_booking(booking_ref)
    total = effective_total(booking)
    expected = deposit_amount(total) if tier == PaymentStatus.DEPOSIT_PAID else to_cents(total)

    if amount is not None:
        amount = parse_amount(amount)
        if to_cents(amount) != to_cents(expected):
            raise ValidationError(
                f"Expected {format_price(expected)} for {PaymentStatus(tier).label.lower()}, "
                f"got {format_price(amount)}",
                field="amount",
            )

    if TIER_RANK[tier] < TIER_RANK[booking.payment_status]:
        raise InvariantViolation(
            f"Payment is already {booking.payment_status}; "
            "use correct_payment_status() to move it back"
        )
    _check_bounds(expected, total)

    previous = (booking.payment_status, booking.amount_paid)
    booking.payment_status = tier
    booking.amount_paid = to_cents(expected)
    save_booking(booking, ["payment_status", "amount_paid"], now=(clock or get_clock())())
    logger.info("Booking %s marked %s (%s)", booking.pk, tier, booking.amount_paid)

    return record_outcome(
        ActionResult(booking=booking),
        booking,
        action=Actions.PAYMENT_MARKED,
        description=f"Marked {PaymentStatus(tier).label.lower()}: {format_price(booking.amount_paid)}",
        actor_type=ActorType.ADMIN,
        actor_email=actor_email_for(admin),
        metadata={
            "from_status": previous[0],
            "from_amount": str(previous[1]),
            "to_status": tier,
            "to_amount": str(booking.amount_paid),
            "total": str(total),
        },
        level=ActivityLevel.SUCCESS,
        clock=clock,
    )


def correct_payment_status(
    booking_ref,
    status: str,
    amount,
    *,
    admin=None,
    reason: str = "",
    clock=None,
) -> ActionResult:
    """
    Set payment_status and amount_paid to exactly the given values.

    No customer email is sent.

    Raises:
        ValidationError: If the status is unknown or the amount is not a
            non-negative number
        InvariantViolation: If the amount exceeds the effective total
    """
    if status not in PaymentStatus.values:
        raise ValidationError(f"Unknown payment status: {status!r}", field="payment_status")
    amount = parse_amount(amount)

    booking = get_booking(booking_ref)
    total = effective_total(booking)
    _check_bounds(amount, total)

    previous = (booking.payment_status, booking.amount_paid)
    booking.payment_status = status
    booking.amount_paid = to_cents(amount)
    save_booking(booking, ["payment_status", "amount_paid"], now=(clock or get_clock())())
    logger.info(
        "Booking %s payment corrected from %s/%s to %s/%s",
        booking.pk,
        previous[0],
        previous[1],
        status,
        booking.amount_paid,
    )

    description = (
        f"Payment corrected to {PaymentStatus(status).label.lower()}: "
        f"{format_price(booking.amount_paid)}"
    )
    if reason:
        description = f"{description} ({reason})"

    return record_outcome(
        ActionResult(booking=booking),
        booking,
        action=Actions.PAYMENT_CORRECTED,
        description=description,
        actor_type=ActorType.ADMIN,
        actor_email=actor_email_for(admin),
        metadata={
            "from_status": previous[0],
            "from_amount": str(previous[1]),
            "to_status": status,
            "to_amount": str(booking.amount_paid),
            "total": str(total),
            "reason": reason,
        },
        level=ActivityLevel.WARNING,
        clock=clock,
    )
