"""Booking lifecycle service layer.

All status changes go through these functions. Direct model manipulation
bypasses the transition table and is unsupported.

Functions:
- create_booking(): Submit a booking request (PENDING_REVIEW)
- approve_booking(): Request payment (-> AWAITING_PAYMENT)
- resend_payment_request(): Re-send the payment request email
- upload_payment_slip(): Store a customer's slip (-> PAYMENT_UPLOADED)
- confirm_booking(): Issue the check-in QR code (-> CONFIRMED)
- resend_confirmation(): Re-send the confirmation email
- cancel_booking(): Cancel (-> CANCELLED)
- force_status(): Audited administrator override of status
- update_booking_details(): Edit date, time, contact and riders
- set_custom_total(): Override or clear the computed price
- update_admin_notes(): Replace internal notes
- delete_booking(): Hard delete, activity trail retained

Each function reads the booking fresh, writes it once, and only then runs
its best-effort side effects (notification, credential, activity entry).
A failed write raises and runs no side effects.
"""

import logging
import os

from django.core.exceptions import ValidationError as DjangoValidationError
from django.core.validators import validate_email
from django.db import DatabaseError, transaction
from django.utils.dateparse import parse_date, parse_time

from .activity import Actions, actor_email_for, record_outcome
from .conf import get_clock, get_credential_generator, get_file_store, get_notifier
from .exceptions import (
    InvalidTransition,
    InvariantViolation,
    NotFoundError,
    PersistenceError,
    TourBookingError,
    ValidationError,
)
from .files import decode_image_data
from .models import (
    ActivityLevel,
    ActorType,
    BookingStatus,
    PaymentOption,
    PaymentStatus,
    WaiverRecord,
)
from .notifications import (
    acknowledgement_email,
    check_in_url,
    confirmation_email,
    dispatch,
    payment_request_email,
)
from .pricing import (
    deposit_amount,
    effective_total,
    format_price,
    parse_amount,
    to_cents,
)
from .results import ActionResult, SideEffect
from .selectors import recount_customer_bookings
from .store import (
    create_booking_row,
    delete_booking_row,
    get_booking,
    get_route,
    normalize_email,
    save_booking,
    upsert_customer,
)

logger = logging.getLogger(__name__)


# =============================================================================
# Transition table
# =============================================================================


class Events:
    """Guarded lifecycle triggers."""

    APPROVE = "approve"
    UPLOAD_SLIP = "upload_slip"
    CONFIRM = "confirm"
    CANCEL = "cancel"


TRANSITIONS = {
    (BookingStatus.PENDING_REVIEW, Events.APPROVE): BookingStatus.AWAITING_PAYMENT,
    (BookingStatus.AWAITING_PAYMENT, Events.APPROVE): BookingStatus.AWAITING_PAYMENT,
    (BookingStatus.AWAITING_PAYMENT, Events.UPLOAD_SLIP): BookingStatus.PAYMENT_UPLOADED,
    (BookingStatus.PAYMENT_UPLOADED, Events.UPLOAD_SLIP): BookingStatus.PAYMENT_UPLOADED,
    (BookingStatus.PAYMENT_UPLOADED, Events.CONFIRM): BookingStatus.CONFIRMED,
    (BookingStatus.CONFIRMED, Events.CONFIRM): BookingStatus.CONFIRMED,
    (BookingStatus.PENDING_REVIEW, Events.CANCEL): BookingStatus.CANCELLED,
    (BookingStatus.AWAITING_PAYMENT, Events.CANCEL): BookingStatus.CANCELLED,
    (BookingStatus.PAYMENT_UPLOADED, Events.CANCEL): BookingStatus.CANCELLED,
}

_OPERATION_NAMES = {
    Events.APPROVE: "approve",
    Events.UPLOAD_SLIP: "upload a payment slip for",
    Events.CONFIRM: "confirm",
    Events.CANCEL: "cancel",
}


def next_status(current: str, event: str, payment_option: str | None = None) -> str:
    """Status reached by applying ``event`` to a booking in ``current``.

    Pay-at-venue bookings may be confirmed straight from AWAITING_PAYMENT.

    Raises:
        InvalidTransition: If the event is not allowed from ``current``
    """
    if (
        event == Events.CONFIRM
        and current == BookingStatus.AWAITING_PAYMENT
        and payment_option == PaymentOption.PAY_AT_VENUE
    ):
        return BookingStatus.CONFIRMED

    try:
        return TRANSITIONS[(current, event)]
    except KeyError:
        raise InvalidTransition(_OPERATION_NAMES.get(event, event), current) from None


def can_transition(booking, event: str) -> bool:
    """Whether ``event`` is allowed for ``booking`` right now."""
    try:
        next_status(booking.status, event, booking.payment_option)
    except InvalidTransition:
        return False
    return True


# =============================================================================
# Input cleaning
# =============================================================================

PARTICIPANT_FIELDS = ("name", "height", "helmet_size", "dietary")

EDITABLE_FIELDS = (
    "tour_date",
    "start_time",
    "customer_name",
    "customer_email",
    "customer_whatsapp",
    "participants",
)
PAYMENT_FIELDS = ("payment_option", "payment_status", "amount_paid", "custom_total")


def _clean_email(value, field: str = "customer_email") -> str:
    email = normalize_email(value)
    try:
        validate_email(email)
    except DjangoValidationError:
        raise ValidationError(f"Invalid email address: {value!r}", field=field) from None
    return email


def _clean_required(value, field: str) -> str:
    value = (value or "").strip()
    if not value:
        raise ValidationError(f"{field} is required", field=field)
    return value


def _clean_date(value, field: str = "tour_date"):
    if isinstance(value, str):
        try:
            value = parse_date(value.strip())
        except ValueError:
            value = None
    if value is None:
        raise ValidationError(f"{field} must be a date", field=field)
    return value


def _clean_time(value, field: str = "start_time"):
    if value in (None, ""):
        return None
    if isinstance(value, str):
        try:
            parsed = parse_time(value.strip())
        except ValueError:
            parsed = None
        if parsed is None:
            raise ValidationError(f"{field} must be a time", field=field)
        return parsed
    return value


def clean_participants(participants) -> list[dict]:
    """Normalise rider records; every rider needs a name.

    Raises:
        ValidationError: If the list is empty or a rider is unnamed
    """
    if not participants:
        raise ValidationError("At least one rider is required", field="participants")

    cleaned = []
    for index, rider in enumerate(participants):
        if isinstance(rider, str):
            rider = {"name": rider}
        if not isinstance(rider, dict):
            raise ValidationError(f"Rider {index + 1} is not a record", field="participants")
        name = (rider.get("name") or "").strip()
        if not name:
            raise ValidationError(f"Rider {index + 1} needs a name", field="participants")
        record = {field: str(rider.get(field) or "").strip() for field in PARTICIPANT_FIELDS}
        record["name"] = name
        cleaned.append(record)
    return cleaned


def _now(clock):
    return (clock or get_clock())()


def _link_customer(booking, now) -> SideEffect:
    """Attach ``booking`` to the customer for its email, best-effort."""
    try:
        customer = upsert_customer(
            booking.customer_email,
            {"full_name": booking.customer_name, "whatsapp": booking.customer_whatsapp},
            now=now,
        )
        booking.customer = customer
        save_booking(booking, ["customer"], now=now)
    except PersistenceError as exc:
        logger.warning("Could not link booking %s to a customer: %s", booking.pk, exc)
        return SideEffect.failed("customer_link", str(exc))
    return SideEffect.succeeded("customer_link", str(customer.pk))


# =============================================================================
# Submission
# =============================================================================


def create_booking(
    *,
    route,
    tour_date,
    customer_name: str,
    customer_email: str,
    participants,
    start_time=None,
    customer_whatsapp: str = "",
    notifier=None,
    clock=None,
) -> ActionResult:
    """
    Submit a booking request.

    The booking row is the primary write. Linking it to a customer record
    and sending the acknowledgement are best-effort and reported as side
    effects.

    Args:
        route: Route instance, slug or id
        tour_date: date or ISO date string
        customer_name: Contact name
        customer_email: Contact email; also keys the customer record
        participants: Rider records (dicts with at least "name") or names
        start_time: Optional time or "HH:MM" string
        customer_whatsapp: Optional phone number
        notifier: Optional notifier override
        clock: Optional zero-arg callable returning "now"

    Returns:
        ActionResult with the new booking

    Raises:
        ValidationError: If input is missing or malformed
        NotFoundError: If the route does not exist
        PersistenceError: If the booking could not be stored
    """
    notifier = notifier or get_notifier()
    if not hasattr(route, "price"):
        route = get_route(route)
    if not route.is_active:
        raise ValidationError(f"Route {route.slug} is not open for booking", field="route")

    customer_name = _clean_required(customer_name, "customer_name")
    customer_email = _clean_email(customer_email)
    riders = clean_participants(participants)
    now = _now(clock)

    booking = create_booking_row(
        route=route,
        tour_date=_clean_date(tour_date),
        start_time=_clean_time(start_time),
        customer_name=customer_name,
        customer_email=customer_email,
        customer_whatsapp=(customer_whatsapp or "").strip(),
        participants=riders,
        pax_count=len(riders),
        status=BookingStatus.PENDING_REVIEW,
    )
    logger.info("Created booking %s for %s on %s", booking.pk, route.slug, booking.tour_date)

    result = ActionResult(booking=booking)
    result.add(_link_customer(booking, now))

    result.add(
        dispatch(lambda: acknowledgement_email(booking), booking_id=booking.pk, notifier=notifier)
    )

    total = effective_total(booking)
    return record_outcome(
        result,
        booking,
        action=Actions.BOOKING_CREATED,
        description=f"Booking request submitted for {booking.pax_count} rider(s)",
        actor_type=ActorType.CUSTOMER,
        actor_email=customer_email,
        metadata={"route": route.slug, "pax_count": booking.pax_count, "total": str(total)},
        clock=clock,
    )


# =============================================================================
# Guarded transitions
# =============================================================================


def _send_payment_request(booking, *, action, description, admin, notifier, clock, metadata):
    total = effective_total(booking)
    deposit = deposit_amount(total)

    def message():
        return payment_request_email(booking, format_price(total), format_price(deposit))

    result = ActionResult(booking=booking)
    result.add(dispatch(message, booking_id=booking.pk, notifier=notifier))
    return record_outcome(
        result,
        booking,
        action=action,
        description=description,
        actor_type=ActorType.ADMIN,
        actor_email=actor_email_for(admin),
        metadata={**metadata, "total": str(total), "deposit": str(deposit)},
        clock=clock,
    )


def approve_booking(booking_ref, *, admin=None, notifier=None, clock=None) -> ActionResult:
    """
    Approve a booking and send the payment request.

    Approving a booking that is already AWAITING_PAYMENT recomputes the
    total and re-sends the request.

    Raises:
        NotFoundError: If the booking does not exist
        InvalidTransition: If the booking is past payment
        PersistenceError: If the status change could not be stored
    """
    notifier = notifier or get_notifier()
    booking = get_booking(booking_ref)
    previous = booking.status
    booking.status = next_status(previous, Events.APPROVE)

    if booking.status == previous:
        return _send_payment_request(
            booking,
            action=Actions.PAYMENT_REQUEST_RESENT,
            description="Payment request re-sent",
            admin=admin,
            notifier=notifier,
            clock=clock,
            metadata={"from_status": previous, "to_status": booking.status},
        )

    save_booking(booking, ["status"], now=_now(clock))
    logger.info("Booking %s approved", booking.pk)
    return _send_payment_request(
        booking,
        action=Actions.BOOKING_APPROVED,
        description="Booking approved, payment request sent",
        admin=admin,
        notifier=notifier,
        clock=clock,
        metadata={"from_status": previous, "to_status": booking.status},
    )


def resend_payment_request(booking_ref, *, admin=None, notifier=None, clock=None) -> ActionResult:
    """
    Re-send the payment request for a booking awaiting payment.

    Raises:
        InvalidTransition: If the booking is not AWAITING_PAYMENT
    """
    notifier = notifier or get_notifier()
    booking = get_booking(booking_ref)
    if booking.status != BookingStatus.AWAITING_PAYMENT:
        raise InvalidTransition("resend the payment request for", booking.status)

    return _send_payment_request(
        booking,
        action=Actions.PAYMENT_REQUEST_RESENT,
        description="Payment request re-sent",
        admin=admin,
        notifier=notifier,
        clock=clock,
        metadata={"status": booking.status},
    )


def upload_payment_slip(
    booking_ref,
    slip,
    *,
    filename: str = "",
    file_store=None,
    clock=None,
) -> ActionResult:
    """
    Store a customer's payment slip and mark payment as uploaded.

    A second upload replaces the slip reference.

    Args:
        booking_ref: Booking instance, id or tracking token
        slip: File object, bytes or image data URL
        filename: Original filename, used only for its extension
        file_store: Optional file store override
        clock: Optional zero-arg callable returning "now"

    Raises:
        InvalidTransition: If the booking is not awaiting payment
        ValidationError: If the slip is empty
        PersistenceError: If the file or the booking could not be stored
    """
    file_store = file_store or get_file_store()
    booking = get_booking(booking_ref)
    previous = booking.status
    target = next_status(previous, Events.UPLOAD_SLIP)

    if not hasattr(slip, "read"):
        slip = decode_image_data(slip, field="slip", label="Payment slip")

    now = _now(clock)
    extension = os.path.splitext(filename)[1].lower() or ".png"
    name = f"payment-slips/{booking.pk}-{now:%Y%m%d%H%M%S}{extension}"
    slip_url = file_store.store(name, slip)

    booking.payment_slip_url = slip_url
    booking.status = target
    try:
        save_booking(booking, ["payment_slip_url", "status"], now=now)
    except TourBookingError:
        logger.warning("Booking %s not saved; payment slip %s is orphaned", booking.pk, slip_url)
        raise
    logger.info("Payment slip uploaded for booking %s", booking.pk)

    return record_outcome(
        ActionResult(booking=booking, value=slip_url),
        booking,
        action=Actions.PAYMENT_SLIP_UPLOADED,
        description="Payment slip uploaded" if previous != target else "Payment slip replaced",
        actor_type=ActorType.CUSTOMER,
        actor_email=booking.customer_email,
        metadata={"slip_url": slip_url, "from_status": previous},
        clock=clock,
    )


def _send_confirmation(booking, *, action, description, admin, notifier, generator, clock, metadata):
    result = ActionResult(booking=booking)

    qr_code = None
    try:
        qr_code = generator.encode(check_in_url(booking))
        result.add(SideEffect.succeeded("credential"))
    except Exception as exc:
        logger.warning("Could not render check-in QR code for booking %s: %s", booking.pk, exc)
        result.add(SideEffect.failed("credential", str(exc)))
    result.value = qr_code

    result.add(
        dispatch(
            lambda: confirmation_email(booking, qr_code),
            booking_id=booking.pk,
            notifier=notifier,
        )
    )
    return record_outcome(
        result,
        booking,
        action=action,
        description=description,
        actor_type=ActorType.ADMIN,
        actor_email=actor_email_for(admin),
        metadata=metadata,
        level=ActivityLevel.SUCCESS,
        clock=clock,
    )


def confirm_booking(
    booking_ref,
    *,
    admin=None,
    notifier=None,
    generator=None,
    clock=None,
) -> ActionResult:
    """
    Confirm a booking and send the confirmation with its check-in QR code.

    Confirming an already CONFIRMED booking re-issues the confirmation.
    ``result.value`` holds the QR code data URL, or None if it could not
    be rendered (the email then goes out without it).

    Raises:
        NotFoundError: If the booking does not exist
        InvalidTransition: If no payment slip is pending and the booking
            is not pay-at-venue
        PersistenceError: If the status change could not be stored
    """
    notifier = notifier or get_notifier()
    generator = generator or get_credential_generator()
    booking = get_booking(booking_ref)
    previous = booking.status
    booking.status = next_status(previous, Events.CONFIRM, booking.payment_option)

    if booking.status == previous:
        action, description = Actions.CONFIRMATION_RESENT, "Confirmation re-sent"
    else:
        save_booking(booking, ["status"], now=_now(clock))
        logger.info("Booking %s confirmed", booking.pk)
        action, description = Actions.BOOKING_CONFIRMED, "Booking confirmed, confirmation sent"

    return _send_confirmation(
        booking,
        action=action,
        description=description,
        admin=admin,
        notifier=notifier,
        generator=generator,
        clock=clock,
        metadata={"from_status": previous, "to_status": booking.status},
    )


def resend_confirmation(
    booking_ref,
    *,
    admin=None,
    notifier=None,
    generator=None,
    clock=None,
) -> ActionResult:
    """
    Re-send the confirmation email for a confirmed booking.

    Raises:
        InvalidTransition: If the booking is not CONFIRMED
    """
    notifier = notifier or get_notifier()
    generator = generator or get_credential_generator()
    booking = get_booking(booking_ref)
    if booking.status != BookingStatus.CONFIRMED:
        raise InvalidTransition("resend the confirmation for", booking.status)

    return _send_confirmation(
        booking,
        action=Actions.CONFIRMATION_RESENT,
        description="Confirmation re-sent",
        admin=admin,
        notifier=notifier,
        generator=generator,
        clock=clock,
        metadata={"status": booking.status},
    )


def cancel_booking(booking_ref, *, admin=None, reason: str = "", clock=None) -> ActionResult:
    """
    Cancel a booking that is not yet confirmed.

    No email is sent and no refund is issued.

    Raises:
        InvalidTransition: If the booking is CONFIRMED or already CANCELLED
        PersistenceError: If the status change could not be stored
    """
    booking = get_booking(booking_ref)
    previous = booking.status
    booking.status = next_status(previous, Events.CANCEL)
    save_booking(booking, ["status"], now=_now(clock))
    logger.info("Booking %s cancelled", booking.pk)

    return record_outcome(
        ActionResult(booking=booking),
        booking,
        action=Actions.BOOKING_CANCELLED,
        description=f"Booking cancelled: {reason}" if reason else "Booking cancelled",
        actor_type=ActorType.ADMIN,
        actor_email=actor_email_for(admin),
        metadata={"from_status": previous, "reason": reason},
        clock=clock,
    )


def force_status(booking_ref, status: str, *, reason: str, admin=None, clock=None) -> ActionResult:
    """
    Set any status, bypassing the transition table.

    Audited separately from the guarded transitions at warning level.

    Raises:
        ValidationError: If the status is unknown or no reason is given
    """
    if status not in BookingStatus.values:
        raise ValidationError(f"Unknown booking status: {status!r}", field="status")
    reason = _clean_required(reason, "reason")

    booking = get_booking(booking_ref)
    previous = booking.status
    booking.status = status
    save_booking(booking, ["status"], now=_now(clock))
    logger.warning("Booking %s status forced from %s to %s", booking.pk, previous, status)

    return record_outcome(
        ActionResult(booking=booking),
        booking,
        action=Actions.STATUS_FORCED,
        description=f"Status forced from {previous} to {status}: {reason}",
        actor_type=ActorType.ADMIN,
        actor_email=actor_email_for(admin),
        metadata={"from_status": previous, "to_status": status, "reason": reason},
        level=ActivityLevel.WARNING,
        clock=clock,
    )


# =============================================================================
# Administrator edits
# =============================================================================


def _clean_detail(field: str, value):
    if field == "tour_date":
        return _clean_date(value)
    if field == "start_time":
        return _clean_time(value)
    if field == "customer_name":
        return _clean_required(value, field)
    if field == "customer_email":
        return _clean_email(value)
    if field == "customer_whatsapp":
        return (value or "").strip()
    return clean_participants(value)


def _drop_orphan_waivers(booking) -> int:
    try:
        deleted, _ = WaiverRecord.objects.filter(
            booking=booking, participant_index__gte=booking.pax_count
        ).delete()
    except DatabaseError as exc:
        raise PersistenceError(f"Failed to remove waivers of booking {booking.pk}: {exc}") from exc
    return deleted


def update_booking_details(booking_ref, changes: dict, *, admin=None, clock=None) -> ActionResult:
    """
    Edit tour date, start time, contact details or riders.

    Status and payment fields are not editable here; use the transition
    functions, force_status() or the payments module. Replacing the
    riders updates pax_count and removes waivers for riders that no
    longer exist.

    Args:
        booking_ref: Booking instance, id or tracking token
        changes: Mapping of field name to new value
        admin: Acting user
        clock: Optional zero-arg callable returning "now"

    Returns:
        ActionResult; no write and no activity entry if nothing changed

    Raises:
        ValidationError: If a field is not editable or a value is invalid
        InvariantViolation: If fewer riders would price below amount_paid
    """
    for field in changes:
        if field == "status":
            raise ValidationError(
                "Status cannot be edited directly; use a transition or force_status()",
                field=field,
            )
        if field in PAYMENT_FIELDS:
            raise ValidationError(
                f"{field} is managed by the payment operations", field=field
            )
        if field not in EDITABLE_FIELDS:
            raise ValidationError(f"Unknown booking field: {field}", field=field)

    cleaned = {field: _clean_detail(field, value) for field, value in changes.items()}

    booking = get_booking(booking_ref)
    changed = {}
    for field, value in cleaned.items():
        current = getattr(booking, field)
        if current != value:
            changed[field] = {"from": current, "to": value}
            setattr(booking, field, value)

    if not changed:
        return ActionResult(booking=booking)

    fields = list(changed)
    if "participants" in changed:
        booking.pax_count = len(booking.participants)
        fields.append("pax_count")
        if to_cents(booking.amount_paid) > to_cents(effective_total(booking)):
            raise InvariantViolation(
                f"Amount paid {booking.amount_paid} would exceed the new total "
                f"{effective_total(booking)}"
            )

    now = _now(clock)
    removed_waivers = 0
    with transaction.atomic():
        save_booking(booking, fields, now=now)
        if "participants" in changed:
            removed_waivers = _drop_orphan_waivers(booking)

    metadata = {"changed": changed}
    if removed_waivers:
        metadata["removed_waivers"] = removed_waivers

    result = ActionResult(booking=booking)
    if "customer_email" in changed:
        result.add(_link_customer(booking, now))
        previous_email = changed["customer_email"]["from"]
        try:
            recount_customer_bookings(previous_email)
        except (NotFoundError, PersistenceError) as exc:
            logger.info("Booking count for %s not refreshed: %s", previous_email, exc)

    return record_outcome(
        result,
        booking,
        action=Actions.DETAILS_UPDATED,
        description=f"Booking details updated: {', '.join(changed)}",
        actor_type=ActorType.ADMIN,
        actor_email=actor_email_for(admin),
        metadata=metadata,
        clock=clock,
    )


def set_custom_total(booking_ref, custom_total, *, admin=None, clock=None) -> ActionResult:
    """
    Override the computed price, or clear the override with None.

    The deposit is never stored; if a deposit was already marked, the
    activity entry and payment_summary() flag that it no longer matches.

    Raises:
        ValidationError: If the amount is not a non-negative number
        InvariantViolation: If the new total is below amount_paid
    """
    new_value = None if custom_total is None else to_cents(parse_amount(custom_total, "custom_total"))

    booking = get_booking(booking_ref)
    previous = booking.custom_total
    booking.custom_total = new_value
    new_total = effective_total(booking)

    if to_cents(booking.amount_paid) > to_cents(new_total):
        raise InvariantViolation(
            f"Total {new_total} would be below the amount already paid {booking.amount_paid}"
        )

    save_booking(booking, ["custom_total"], now=_now(clock))

    deposit = deposit_amount(new_total)
    out_of_sync = (
        booking.payment_status == PaymentStatus.DEPOSIT_PAID and to_cents(booking.amount_paid) != to_cents(deposit)
    )
    return record_outcome(
        ActionResult(booking=booking),
        booking,
        action=Actions.CUSTOM_TOTAL_UPDATED,
        description=(
            f"Custom total set to {format_price(new_value)}"
            if new_value is not None
            else "Custom total cleared"
        ),
        actor_type=ActorType.ADMIN,
        actor_email=actor_email_for(admin),
        metadata={
            "from": None if previous is None else str(previous),
            "to": None if new_value is None else str(new_value),
            "effective_total": str(new_total),
            "deposit": str(deposit),
            "deposit_out_of_sync": out_of_sync,
        },
        level=ActivityLevel.WARNING if out_of_sync else ActivityLevel.INFO,
        clock=clock,
    )


def update_admin_notes(booking_ref, notes: str, *, admin=None, clock=None) -> ActionResult:
    """Replace the internal notes of a booking."""
    booking = get_booking(booking_ref)
    booking.admin_notes = notes or ""
    save_booking(booking, ["admin_notes"], now=_now(clock))

    return record_outcome(
        ActionResult(booking=booking),
        booking,
        action=Actions.NOTES_UPDATED,
        description="Admin notes updated",
        actor_type=ActorType.ADMIN,
        actor_email=actor_email_for(admin),
        metadata={"length": len(booking.admin_notes)},
        clock=clock,
    )


def delete_booking(booking_ref, *, admin=None, clock=None) -> ActionResult:
    """
    Permanently delete a booking and its waivers.

    The activity trail is kept; the deletion itself is the last entry.
    ``result.booking`` is None and ``result.value`` is the deleted id.
    """
    booking = get_booking(booking_ref)
    booking_id = booking.pk
    snapshot = {
        "tracking_token": booking.tracking_token,
        "customer_email": booking.customer_email,
        "tour_date": booking.tour_date,
        "status": booking.status,
        "amount_paid": str(booking.amount_paid),
    }
    delete_booking_row(booking)
    logger.warning("Booking %s deleted", booking_id)

    return record_outcome(
        ActionResult(booking=None, value=booking_id),
        booking_id,
        action=Actions.BOOKING_DELETED,
        description=f"Booking deleted ({snapshot['customer_email']}, {snapshot['tour_date']})",
        actor_type=ActorType.ADMIN,
        actor_email=actor_email_for(admin),
        metadata=snapshot,
        level=ActivityLevel.WARNING,
        clock=clock,
    )
