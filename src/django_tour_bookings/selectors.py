"""Read-side queries for customers and their bookings."""

import logging

from django.db import DatabaseError, transaction
from django.db.models import Max

from .exceptions import NotFoundError, PersistenceError
from .models import Booking, Customer
from .store import normalize_email

logger = logging.getLogger(__name__)


def lookup_customer(email: str) -> Customer:
    """
    Find a customer by email (case-insensitive).

    Raises:
        NotFoundError: If no customer has that email
    """
    email = normalize_email(email)
    customer = Customer.objects.filter(email=email).first()
    if customer is None:
        raise NotFoundError("Customer", email)
    return customer


def customer_booking_history(email: str, limit: int = 10):
    """A customer's bookings, newest first, matched on booking email."""
    return (
        Booking.objects.select_related("route")
        .filter(customer_email=normalize_email(email))
        .order_by("-created_at")[:limit]
    )


def recount_customer_bookings(email: str) -> Customer:
    """
    Recompute a customer's booking counter from the bookings themselves.

    The counter is maintained incrementally on booking creation, where a
    failed customer write is tolerated; this repairs any drift.

    Raises:
        NotFoundError: If no customer has that email
        PersistenceError: If the update fails
    """
    customer = lookup_customer(email)
    bookings = Booking.objects.filter(customer_email=customer.email)
    stats = bookings.aggregate(last=Max("created_at"))
    total = bookings.count()

    if total != customer.total_bookings:
        logger.info(
            "Customer %s booking count corrected from %s to %s",
            customer.email,
            customer.total_bookings,
            total,
        )

    customer.total_bookings = total
    customer.last_booking_at = stats["last"]
    try:
        with transaction.atomic():
            customer.save(update_fields=["total_bookings", "last_booking_at", "updated_at"])
    except DatabaseError as exc:
        raise PersistenceError(f"Failed to update customer {customer.email}: {exc}") from exc
    return customer
