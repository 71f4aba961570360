"""Booking activity recorder.

Every booking mutation emits exactly one activity entry through
``record``. Writing the entry is best-effort: a failure is logged and
returned as a failed SideEffect, never raised into the caller's primary
operation.

Usage:
    from django_tour_bookings.activity import Actions, record

    effect = record(
        booking,
        action=Actions.BOOKING_APPROVED,
        description="Booking approved, payment request sent",
        actor_type=ActorType.ADMIN,
        actor_email="admin@example.com",
        metadata={"total": "2600"},
    )
"""
import logging

from django.db import DatabaseError

from .conf import get_clock
from .models import ActivityLevel, ActivityLogEntry, ActorType
from .results import SideEffect
from .store import append_activity

logger = logging.getLogger(__name__)


# =============================================================================
# Stable Action Constants
# =============================================================================
# Stored in ActivityLogEntry.action; add new codes, never rename existing ones.


class Actions:
    """Stable activity action codes for booking operations."""

    # Lifecycle
    BOOKING_CREATED = "booking_created"
    BOOKING_APPROVED = "booking_approved"
    PAYMENT_REQUEST_RESENT = "payment_request_resent"
    PAYMENT_SLIP_UPLOADED = "payment_slip_uploaded"
    BOOKING_CONFIRMED = "booking_confirmed"
    CONFIRMATION_RESENT = "confirmation_resent"
    BOOKING_CANCELLED = "booking_cancelled"
    STATUS_FORCED = "status_forced"

    # Administrator edits
    DETAILS_UPDATED = "details_updated"
    CUSTOM_TOTAL_UPDATED = "custom_total_updated"
    NOTES_UPDATED = "notes_updated"
    BOOKING_DELETED = "booking_deleted"

    # Payments
    PAYMENT_OPTION_SELECTED = "payment_option_selected"
    PAYMENT_MARKED = "payment_marked"
    PAYMENT_CORRECTED = "payment_corrected"

    # Waivers
    WAIVER_SAVED = "waiver_saved"
    WAIVER_SIGNED = "waiver_signed"
    WAIVER_LINK_SENT = "waiver_link_sent"

    # Check-in
    CHECKED_IN = "checked_in"
    CHECK_IN_UNDONE = "check_in_undone"


def actor_email_for(user) -> str:
    """Email snapshot for an acting user, or empty for anonymous/system."""
    if user is None:
        return ""
    return getattr(user, "email", "") or ""


def record(
    booking,
    *,
    action: str,
    description: str,
    actor_type: str = ActorType.SYSTEM,
    actor_email: str = "",
    metadata: dict | None = None,
    level: str = ActivityLevel.INFO,
    clock=None,
) -> SideEffect:
    """Append one activity entry for ``booking``.

    Args:
        booking: Booking instance or booking id
        action: One of the Actions.* constants
        description: Human-readable sentence for the admin timeline
        actor_type: admin, customer or system
        actor_email: Email of the acting person, if known
        metadata: Free-form JSON-serialisable context
        level: info, success, warning or error
        clock: Optional zero-arg callable for the timestamp

    Returns:
        SideEffect of kind "activity"; never raises for write failures
    """
    booking_id = getattr(booking, "pk", booking)
    now = (clock or get_clock())()

    try:
        entry = append_activity(
            booking_id=booking_id,
            action=action,
            description=description,
            actor_type=actor_type,
            actor_email=actor_email or "",
            metadata=metadata or {},
            level=level,
            created_at=now,
        )
    except (DatabaseError, TypeError, ValueError) as exc:
        logger.warning(
            "Failed to record activity %s for booking %s: %s",
            action,
            booking_id,
            exc,
        )
        return SideEffect.failed("activity", str(exc))

    return SideEffect.succeeded("activity", str(entry.pk))


def history(booking, *, limit: int | None = None):
    """Activity entries for a booking, newest first.

    Returns a lazy QuerySet; iterating it again re-reads the store.
    """
    booking_id = getattr(booking, "pk", booking)
    queryset = ActivityLogEntry.objects.filter(booking_id=booking_id).order_by(
        "-created_at", "-id"
    )
    if limit is not None:
        queryset = queryset[:limit]
    return queryset


def record_outcome(
    result,
    booking,
    *,
    action: str,
    description: str,
    actor_type: str = ActorType.SYSTEM,
    actor_email: str = "",
    metadata: dict | None = None,
    level: str = ActivityLevel.INFO,
    clock=None,
):
    """Record the single activity entry for a completed operation.

    Failed side effects already collected on ``result`` are folded into the
    entry's metadata and raise its level to warning, so the admin timeline
    shows "saved, but the email failed". The activity outcome itself is
    appended to ``result``.
    """
    metadata = dict(metadata or {})
    failures = result.failures
    if failures:
        metadata["failed_side_effects"] = [
            {"kind": effect.kind, "detail": effect.detail} for effect in failures
        ]
        if level in (ActivityLevel.INFO, ActivityLevel.SUCCESS):
            level = ActivityLevel.WARNING

    result.add(
        record(
            booking,
            action=action,
            description=description,
            actor_type=actor_type,
            actor_email=actor_email,
            metadata=metadata,
            level=level,
            clock=clock,
        )
    )
    return result
