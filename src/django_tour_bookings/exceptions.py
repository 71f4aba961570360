"""Exceptions for django-tour-bookings.

ValidationError, NotFoundError, InvariantViolation, ConflictError and
PersistenceError abort the operation and reach the caller.
NotificationError is raised only inside the notification boundary and is
always captured into an ActionResult side effect.
"""


class TourBookingError(Exception):
    """Base exception for tour booking errors."""
    pass


class ValidationError(TourBookingError):
    """Input is malformed or a required value is missing."""

    def __init__(self, message: str, field: str | None = None):
        self.field = field
        super().__init__(message)


class NotFoundError(TourBookingError):
    """Booking, route, customer or participant index does not exist."""

    def __init__(self, kind: str, ref):
        self.kind = kind
        self.ref = ref
        super().__init__(f"{kind} not found: {ref}")


class InvariantViolation(TourBookingError):
    """The operation would break a booking invariant."""
    pass


class InvalidTransition(InvariantViolation):
    """A guarded status transition is not allowed from the current status."""

    def __init__(self, operation: str, current_status: str):
        self.operation = operation
        self.current_status = current_status
        super().__init__(
            f"Cannot {operation} a booking in status {current_status}"
        )


class PersistenceError(TourBookingError):
    """The store failed to write; the change did not take effect."""
    pass


class ConflictError(PersistenceError):
    """Another writer changed the booking since it was read."""

    def __init__(self, booking_id, expected_version: int):
        self.booking_id = booking_id
        self.expected_version = expected_version
        super().__init__(
            f"Booking {booking_id} was modified concurrently "
            f"(expected version {expected_version})"
        )


class NotificationError(TourBookingError):
    """An outbound notification could not be delivered."""

    def __init__(self, message: str, recipient: str = ""):
        self.recipient = recipient
        super().__init__(message)


class ConfigurationError(TourBookingError):
    """A TOUR_BOOKINGS_* setting is missing or points at nothing importable."""
    pass
