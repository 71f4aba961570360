"""Persistence binding for the booking core.

Thin functions over the Django ORM. Every service reads bookings through
``get_booking`` (always a fresh read) and writes them through
``save_booking``, which applies an optimistic version check so a second
concurrent writer fails with ConflictError instead of silently
overwriting. ORM failures surface as PersistenceError.
"""
import logging
import uuid

from django.db import DatabaseError, transaction
from django.db.models import F
from django.utils import timezone

from .exceptions import ConflictError, NotFoundError, PersistenceError
from .models import ActivityLogEntry, Booking, Customer, Route

logger = logging.getLogger(__name__)


def _as_uuid(value):
    try:
        return uuid.UUID(str(value))
    except (TypeError, ValueError, AttributeError):
        return None


def get_booking(ref) -> Booking:
    """Load a booking by instance, primary key or tracking token.

    Raises:
        NotFoundError: If no booking matches
    """
    if isinstance(ref, Booking):
        ref = ref.pk

    queryset = Booking.objects.select_related("route", "customer")
    booking = None

    pk = _as_uuid(ref)
    if pk is not None:
        booking = queryset.filter(pk=pk).first()
    if booking is None and ref:
        booking = queryset.filter(tracking_token=str(ref)).first()

    if booking is None:
        raise NotFoundError("Booking", ref)
    return booking


def get_route(ref) -> Route:
    """Load a route by slug or primary key.

    Raises:
        NotFoundError: If no route matches
    """
    route = None
    pk = _as_uuid(ref)
    if pk is not None:
        route = Route.objects.filter(pk=pk).first()
    if route is None and ref:
        route = Route.objects.filter(slug=str(ref)).first()
    if route is None:
        raise NotFoundError("Route", ref)
    return route


def normalize_email(email: str) -> str:
    return (email or "").strip().lower()


def upsert_customer(email: str, fields: dict, *, now=None) -> Customer:
    """Create or update the customer for ``email`` and count one more booking.

    Runs in its own savepoint so a failure never poisons the caller's
    transaction.

    Raises:
        PersistenceError: If the write fails
    """
    email = normalize_email(email)
    try:
        with transaction.atomic():
            customer, created = Customer.objects.get_or_create(
                email=email,
                defaults={**fields, "total_bookings": 1, "last_booking_at": now},
            )
            if not created:
                for name, value in fields.items():
                    setattr(customer, name, value)
                customer.total_bookings = F("total_bookings") + 1
                customer.last_booking_at = now
                customer.save()
                customer.refresh_from_db()
    except DatabaseError as exc:
        raise PersistenceError(f"Failed to upsert customer {email}: {exc}") from exc
    return customer


def create_booking_row(**fields) -> Booking:
    """Insert a new booking.

    Raises:
        PersistenceError: If the insert fails
    """
    try:
        with transaction.atomic():
            return Booking.objects.create(**fields)
    except DatabaseError as exc:
        raise PersistenceError(f"Failed to create booking: {exc}") from exc


def save_booking(booking: Booking, fields, *, now=None) -> Booking:
    """Persist ``fields`` of ``booking`` if nobody else wrote it since it was read.

    On success ``booking.version`` is incremented in memory to match the row.

    Raises:
        ConflictError: If the stored version no longer matches
        PersistenceError: If the write fails
    """
    expected = booking.version
    values = {name: getattr(booking, name) for name in fields}
    values["version"] = expected + 1
    values["updated_at"] = now or timezone.now()

    try:
        with transaction.atomic():
            updated = Booking.objects.filter(pk=booking.pk, version=expected).update(**values)
    except DatabaseError as exc:
        logger.error("Failed to save booking %s: %s", booking.pk, exc)
        raise PersistenceError(f"Failed to save booking {booking.pk}: {exc}") from exc

    if not updated:
        if not Booking.objects.filter(pk=booking.pk).exists():
            raise NotFoundError("Booking", booking.pk)
        raise ConflictError(booking.pk, expected)

    booking.version = expected + 1
    booking.updated_at = values["updated_at"]
    return booking


def delete_booking_row(booking: Booking) -> None:
    """Hard-delete a booking and its waivers.

    Raises:
        PersistenceError: If the delete fails
    """
    try:
        with transaction.atomic():
            booking.delete()
    except DatabaseError as exc:
        raise PersistenceError(f"Failed to delete booking {booking.pk}: {exc}") from exc


def append_activity(**entry) -> ActivityLogEntry:
    """Insert one immutable activity entry in its own savepoint."""
    with transaction.atomic():
        return ActivityLogEntry.objects.create(**entry)
