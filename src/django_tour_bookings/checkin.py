"""Tour-day check-in.

Staff scan the QR code from the confirmation email, which encodes
``<APP_URL>/admin/check-in?code=<tracking_token>``. lookup_for_check_in()
resolves the scan and check_in() marks the booking present.

Only CONFIRMED bookings can be checked in; the gate is enforced here.
Both check_in() and undo_check_in() are idempotent.
"""

import logging
from urllib.parse import parse_qs, urlsplit

from .activity import Actions, actor_email_for, record_outcome
from .conf import get_clock
from .exceptions import InvalidTransition, ValidationError
from .models import ActivityLevel, ActorType, BookingStatus
from .results import ActionResult
from .store import get_booking, save_booking

logger = logging.getLogger(__name__)


def _code_from_scan(scanned: str) -> str:
    scanned = (scanned or "").strip()
    if "?" in scanned or "://" in scanned:
        codes = parse_qs(urlsplit(scanned).query).get("code")
        if codes:
            return codes[0].strip()
    return scanned


def lookup_for_check_in(scanned: str):
    """
    Resolve a scanned QR payload, tracking token or booking id to a booking.

    Raises:
        ValidationError: If nothing was scanned
        NotFoundError: If no booking matches
    """
    code = _code_from_scan(scanned)
    if not code:
        raise ValidationError("No check-in code given", field="code")
    return get_booking(code)


def check_in(booking_ref, *, admin=None, clock=None) -> ActionResult:
    """
    Mark a confirmed booking as checked in at the clock's current time.

    Checking in again refreshes checked_in_at.

    Raises:
        InvalidTransition: If the booking is not CONFIRMED
    """
    booking = get_booking(booking_ref)
    if booking.status != BookingStatus.CONFIRMED:
        raise InvalidTransition("check in", booking.status)

    now = (clock or get_clock())()
    was_checked_in = booking.checked_in
    booking.checked_in = True
    booking.checked_in_at = now
    save_booking(booking, ["checked_in", "checked_in_at"], now=now)
    logger.info("Booking %s checked in at %s", booking.pk, now)

    return record_outcome(
        ActionResult(booking=booking),
        booking,
        action=Actions.CHECKED_IN,
        description=(
            "Check-in time refreshed" if was_checked_in
            else f"Checked in ({booking.pax_count} rider(s))"
        ),
        actor_type=ActorType.ADMIN,
        actor_email=actor_email_for(admin),
        metadata={"checked_in_at": now, "refreshed": was_checked_in},
        level=ActivityLevel.SUCCESS,
        clock=clock,
    )


def undo_check_in(booking_ref, *, admin=None, clock=None) -> ActionResult:
    """Clear the check-in. A booking that is not checked in is left as is."""
    booking = get_booking(booking_ref)
    if not booking.checked_in and booking.checked_in_at is None:
        return ActionResult(booking=booking)

    previous = booking.checked_in_at
    booking.checked_in = False
    booking.checked_in_at = None
    save_booking(booking, ["checked_in", "checked_in_at"], now=(clock or get_clock())())
    logger.info("Check-in undone for booking %s", booking.pk)

    return record_outcome(
        ActionResult(booking=booking),
        booking,
        action=Actions.CHECK_IN_UNDONE,
        description="Check-in undone",
        actor_type=ActorType.ADMIN,
        actor_email=actor_email_for(admin),
        metadata={"previous_checked_in_at": previous},
        level=ActivityLevel.WARNING,
        clock=clock,
    )
