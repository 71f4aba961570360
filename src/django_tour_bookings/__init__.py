"""Django Tour Bookings - Reservation lifecycle for guided tours.

Models:
    Route: Bookable tour with a base price and group discount policy
    Customer: Contact aggregate keyed by email
    Booking: One reservation with N riders
    WaiverRecord: One liability waiver per rider
    ActivityLogEntry: Immutable booking audit trail

Services (the only supported write path):
    lifecycle: create, approve, upload slip, confirm, cancel, edits
    payments: payment option, mark paid, correct payment, summary
    waivers: upsert, sign, progress, sign-later link
    checkin: lookup, check in, undo check-in
"""

__version__ = "0.1.0"

__all__ = [
    # Models
    "Route",
    "Customer",
    "Booking",
    "WaiverRecord",
    "ActivityLogEntry",
    "BookingStatus",
    "PaymentStatus",
    "PaymentOption",
    # Lifecycle
    "create_booking",
    "approve_booking",
    "resend_payment_request",
    "upload_payment_slip",
    "confirm_booking",
    "resend_confirmation",
    "cancel_booking",
    "force_status",
    "update_booking_details",
    "set_custom_total",
    "update_admin_notes",
    "delete_booking",
    # Payments
    "select_payment_option",
    "mark_paid",
    "correct_payment_status",
    "payment_summary",
    # Waivers
    "upsert_waiver",
    "sign_waiver",
    "is_complete",
    "waiver_progress",
    "send_waiver_link",
    # Check-in
    "lookup_for_check_in",
    "check_in",
    "undo_check_in",
    # Pricing
    "compute_total",
    "format_price",
    # Results and exceptions
    "ActionResult",
    "SideEffect",
    "TourBookingError",
    "ValidationError",
    "NotFoundError",
    "InvariantViolation",
    "InvalidTransition",
    "PersistenceError",
    "ConflictError",
]

_SUBMODULES = {
    "models": (
        "Route",
        "Customer",
        "Booking",
        "WaiverRecord",
        "ActivityLogEntry",
        "BookingStatus",
        "PaymentStatus",
        "PaymentOption",
    ),
    "lifecycle": (
        "create_booking",
        "approve_booking",
        "resend_payment_request",
        "upload_payment_slip",
        "confirm_booking",
        "resend_confirmation",
        "cancel_booking",
        "force_status",
        "update_booking_details",
        "set_custom_total",
        "update_admin_notes",
        "delete_booking",
    ),
    "payments": ("select_payment_option", "mark_paid", "correct_payment_status", "payment_summary"),
    "waivers": ("upsert_waiver", "sign_waiver", "is_complete", "waiver_progress", "send_waiver_link"),
    "checkin": ("lookup_for_check_in", "check_in", "undo_check_in"),
    "pricing": ("compute_total", "format_price"),
    "results": ("ActionResult", "SideEffect"),
    "exceptions": (
        "TourBookingError",
        "ValidationError",
        "NotFoundError",
        "InvariantViolation",
        "InvalidTransition",
        "PersistenceError",
        "ConflictError",
    ),
}


def __getattr__(name):
    """Lazy import to avoid AppRegistryNotReady errors."""
    for module_name, names in _SUBMODULES.items():
        if name in names:
            from importlib import import_module

            module = import_module(f"{__name__}.{module_name}")
            return getattr(module, name)

    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
