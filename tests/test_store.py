"""Tests for the persistence binding."""
from decimal import Decimal
from unittest import mock

import pytest
from django.db import DatabaseError
from django.db.models import QuerySet

from django_tour_bookings.exceptions import ConflictError, NotFoundError, PersistenceError
from django_tour_bookings.models import Booking, BookingStatus, Customer
from django_tour_bookings.store import (
    get_booking,
    get_route,
    save_booking,
    upsert_customer,
)


@pytest.mark.django_db
class TestGetBooking:
    """Test suite for get_booking() and get_route()."""

    def test_by_id_token_or_instance(self, booking):
        assert get_booking(booking.pk) == booking
        assert get_booking(str(booking.pk)) == booking
        assert get_booking(booking.tracking_token) == booking
        assert get_booking(booking) == booking

    def test_always_fresh(self, booking):
        """Passing an instance re-reads the row."""
        Booking.objects.filter(pk=booking.pk).update(admin_notes="changed elsewhere")

        assert get_booking(booking).admin_notes == "changed elsewhere"

    @pytest.mark.parametrize("ref", ["", None, "00000000-0000-0000-0000-000000000000"])
    def test_missing(self, ref):
        with pytest.raises(NotFoundError):
            get_booking(ref)

    def test_route_by_slug_or_id(self, route):
        assert get_route("doi-suthep") == route
        assert get_route(route.pk) == route

        with pytest.raises(NotFoundError):
            get_route("atlantis")


@pytest.mark.django_db
class TestSaveBooking:
    """Test suite for save_booking()."""

    def test_bumps_version(self, booking):
        booking.admin_notes = "hello"

        save_booking(booking, ["admin_notes"])

        stored = Booking.objects.get(pk=booking.pk)
        assert stored.admin_notes == "hello"
        assert stored.version == 2
        assert booking.version == 2

    def test_only_named_fields_written(self, booking):
        booking.admin_notes = "hello"
        booking.status = BookingStatus.CONFIRMED

        save_booking(booking, ["admin_notes"])

        assert Booking.objects.get(pk=booking.pk).status == BookingStatus.PENDING_REVIEW

    def test_second_writer_conflicts(self, booking):
        """Two writers that read the same version: the second one fails."""
        first = get_booking(booking.pk)
        second = get_booking(booking.pk)
        first.admin_notes = "first"
        second.admin_notes = "second"

        save_booking(first, ["admin_notes"])
        with pytest.raises(ConflictError):
            save_booking(second, ["admin_notes"])

        assert Booking.objects.get(pk=booking.pk).admin_notes == "first"

    def test_deleted_booking(self, booking):
        Booking.objects.filter(pk=booking.pk).delete()

        with pytest.raises(NotFoundError):
            save_booking(booking, ["admin_notes"])

    def test_database_error(self, booking):
        with mock.patch.object(QuerySet, "update", side_effect=DatabaseError("locked")):
            with pytest.raises(PersistenceError):
                save_booking(booking, ["admin_notes"])

        assert booking.version == 1


@pytest.mark.django_db
class TestUpsertCustomer:
    """Test suite for upsert_customer()."""

    def test_creates_then_counts(self, clock):
        first = upsert_customer(" Ann@Example.com ", {"full_name": "Ann"}, now=clock())
        second = upsert_customer("ann@example.com", {"full_name": "Ann R."}, now=clock())

        assert first.pk == second.pk
        assert second.email == "ann@example.com"
        assert second.full_name == "Ann R."
        assert second.total_bookings == 2
        assert Customer.objects.count() == 1

    def test_database_error(self):
        with mock.patch.object(
            Customer.objects, "get_or_create", side_effect=DatabaseError("locked")
        ):
            with pytest.raises(PersistenceError):
                upsert_customer("ann@example.com", {"full_name": "Ann"})
