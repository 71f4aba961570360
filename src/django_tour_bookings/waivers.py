"""Per-rider liability waiver ledger.

One WaiverRecord per (booking, participant_index), enforced by a unique
constraint; upsert_waiver() replaces the record at an index rather than
adding a second one. A booking's waivers are complete when every rider
index in [0, pax_count) has a signed record.

"Sign later" (send_waiver_link) only emails the rider a signing link; it
never creates a placeholder record.
"""

import logging
from dataclasses import dataclass, field
from datetime import date

from django.core.exceptions import ValidationError as DjangoValidationError
from django.core.validators import validate_email
from django.db import DatabaseError, IntegrityError, transaction

from .activity import Actions, actor_email_for, record_outcome
from .conf import get_clock, get_file_store, get_notifier
from .exceptions import (
    InvariantViolation,
    NotFoundError,
    PersistenceError,
    TourBookingError,
    ValidationError,
)
from .files import decode_image_data
from .models import ActivityLevel, ActorType, WaiverRecord
from .notifications import dispatch, waiver_link_email
from .results import ActionResult
from .store import get_booking, normalize_email

logger = logging.getLogger(__name__)

SIGNED_REQUIRED_FIELDS = ("signer_name", "passport_no", "email", "signature_url")


@dataclass(frozen=True)
class WaiverDetails:
    """Input for upsert_waiver()."""

    signer_name: str = ""
    passport_no: str = ""
    email: str = ""
    signed: bool = False
    signature_url: str = ""
    signed_on: date | None = None


@dataclass(frozen=True)
class WaiverProgress:
    """Signed versus required waivers for a booking."""

    signed: int
    total: int
    missing: tuple = field(default_factory=tuple)

    @property
    def is_complete(self) -> bool:
        return self.signed >= self.total

    def __str__(self):
        return f"{self.signed}/{self.total} signed"


def _check_index(booking, participant_index) -> int:
    if (
        isinstance(participant_index, bool)
        or not isinstance(participant_index, int)
        or not 0 <= participant_index < booking.pax_count
    ):
        raise NotFoundError("Participant", participant_index)
    return participant_index


def _clean_waiver_email(value: str) -> str:
    email = normalize_email(value)
    if email:
        try:
            validate_email(email)
        except DjangoValidationError:
            raise ValidationError(f"Invalid email address: {value!r}", field="email") from None
    return email


def _clean_details(details: WaiverDetails, today: date, require_signature: bool = True) -> dict:
    values = {
        "signer_name": (details.signer_name or "").strip(),
        "passport_no": (details.passport_no or "").strip(),
        "email": _clean_waiver_email(details.email),
        "signed": bool(details.signed),
        "signature_url": (details.signature_url or "").strip(),
        "signed_on": details.signed_on,
    }
    if values["signed"]:
        for name in SIGNED_REQUIRED_FIELDS:
            if name == "signature_url" and not require_signature:
                continue
            if not values[name]:
                raise ValidationError(f"{name} is required to sign a waiver", field=name)
        if values["signed_on"] is None:
            values["signed_on"] = today
    return values


def waivers_by_index(booking) -> dict[int, WaiverRecord]:
    """The booking's waiver records keyed by participant index."""
    return {
        waiver.participant_index: waiver
        for waiver in WaiverRecord.objects.filter(booking=booking)
    }


def upsert_waiver(
    booking_ref,
    participant_index: int,
    details: WaiverDetails,
    *,
    actor=None,
    clock=None,
) -> ActionResult:
    """
    Create or replace the waiver for one rider.

    Args:
        booking_ref: Booking instance, id or tracking token
        participant_index: 0-based rider index
        details: Waiver fields; signed waivers need signer name,
            passport/ID, email and signature reference
        actor: Acting admin user, or None for the customer
        clock: Optional zero-arg callable returning "now"

    Returns:
        ActionResult whose value is the stored WaiverRecord

    Raises:
        NotFoundError: If the booking or rider index does not exist
        ValidationError: If a signed waiver is missing required fields
        InvariantViolation: If a concurrent writer created the same index
        PersistenceError: If the write fails
    """
    booking = get_booking(booking_ref)
    index = _check_index(booking, participant_index)
    now = (clock or get_clock())()
    values = _clean_details(details, now.date())

    try:
        with transaction.atomic():
            waiver, created = WaiverRecord.objects.update_or_create(
                booking=booking,
                participant_index=index,
                defaults=values,
            )
    except IntegrityError as exc:
        raise InvariantViolation(
            f"Duplicate waiver for rider {index} of booking {booking.pk}"
        ) from exc
    except DatabaseError as exc:
        raise PersistenceError(f"Failed to save waiver {index} of booking {booking.pk}: {exc}") from exc

    complete = is_complete(booking)
    if complete:
        logger.info("All waivers signed for booking %s", booking.pk)

    if actor is not None:
        actor_type, actor_email = ActorType.ADMIN, actor_email_for(actor)
    else:
        actor_type, actor_email = ActorType.CUSTOMER, values["email"] or booking.customer_email

    signed = values["signed"]
    return record_outcome(
        ActionResult(booking=booking, value=waiver),
        booking,
        action=Actions.WAIVER_SIGNED if signed else Actions.WAIVER_SAVED,
        description=(
            f"Waiver {'signed' if signed else 'saved'} for rider {index + 1}"
            f"{': ' + values['signer_name'] if values['signer_name'] else ''}"
        ),
        actor_type=actor_type,
        actor_email=actor_email,
        metadata={
            "participant_index": index,
            "replaced": not created,
            "signed": signed,
            "complete": complete,
        },
        level=ActivityLevel.SUCCESS if complete else ActivityLevel.INFO,
        clock=clock,
    )


def sign_waiver(
    booking_ref,
    participant_index: int,
    *,
    signer_name: str,
    passport_no: str,
    email: str,
    signature,
    signed_on: date | None = None,
    file_store=None,
    clock=None,
) -> ActionResult:
    """
    Store a signature image and record the rider's waiver as signed.

    ``signature`` is an image data URL or raw bytes. Required text fields
    are validated before anything is stored.
    """
    file_store = file_store or get_file_store()
    booking = get_booking(booking_ref)
    index = _check_index(booking, participant_index)
    now = (clock or get_clock())()

    details = WaiverDetails(
        signer_name=signer_name,
        passport_no=passport_no,
        email=email,
        signed=True,
        signed_on=signed_on,
    )
    _clean_details(details, now.date(), require_signature=False)
    image = decode_image_data(signature)

    name = f"waiver-signatures/{booking.pk}-signature-p{index}-{now:%Y%m%d%H%M%S}.png"
    signature_url = file_store.store(name, image)

    try:
        return upsert_waiver(
            booking,
            index,
            WaiverDetails(
                signer_name=signer_name,
                passport_no=passport_no,
                email=email,
                signed=True,
                signature_url=signature_url,
                signed_on=signed_on,
            ),
            clock=clock,
        )
    except TourBookingError:
        logger.warning(
            "Waiver %s of booking %s not saved; signature %s is orphaned",
            index,
            booking.pk,
            signature_url,
        )
        raise


def is_complete(booking) -> bool:
    """True when every rider index has a signed waiver."""
    return waiver_progress(booking).is_complete


def waiver_progress(booking) -> WaiverProgress:
    """Count signed waivers against the booking's riders."""
    if not hasattr(booking, "pax_count"):
        booking = get_booking(booking)

    signed_indexes = set(
        WaiverRecord.objects.filter(
            booking=booking, signed=True, participant_index__lt=booking.pax_count
        ).values_list("participant_index", flat=True)
    )
    missing = tuple(index for index in range(booking.pax_count) if index not in signed_indexes)
    return WaiverProgress(
        signed=len(signed_indexes),
        total=booking.pax_count,
        missing=missing,
    )


def send_waiver_link(
    booking_ref,
    participant_index: int,
    participant_name: str,
    participant_email: str,
    *,
    actor=None,
    notifier=None,
    clock=None,
) -> ActionResult:
    """
    Email a rider the link to sign their waiver later.

    No waiver record is created. A failed send is reported on the result.

    Raises:
        NotFoundError: If the booking or rider index does not exist
        ValidationError: If the email address is missing or invalid
    """
    notifier = notifier or get_notifier()
    booking = get_booking(booking_ref)
    index = _check_index(booking, participant_index)
    email = _clean_waiver_email(participant_email)
    if not email:
        raise ValidationError("An email address is required to send a waiver link", field="email")
    name = (participant_name or "").strip() or booking.participants[index].get("name", "")

    result = ActionResult(booking=booking)
    result.add(
        dispatch(
            lambda: waiver_link_email(booking, index, name, email),
            booking_id=booking.pk,
            notifier=notifier,
        )
    )

    if actor is not None:
        actor_type, actor_email = ActorType.ADMIN, actor_email_for(actor)
    else:
        actor_type, actor_email = ActorType.CUSTOMER, booking.customer_email

    return record_outcome(
        result,
        booking,
        action=Actions.WAIVER_LINK_SENT,
        description=f"Waiver link sent to {name} ({email})",
        actor_type=actor_type,
        actor_email=actor_email,
        metadata={"participant_index": index, "email": email},
        clock=clock,
    )
