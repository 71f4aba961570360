"""Tests for tour-day check-in."""
from datetime import datetime, timezone as dt_timezone

import pytest
from freezegun import freeze_time

from django_tour_bookings.activity import Actions, history
from django_tour_bookings.checkin import check_in, lookup_for_check_in, undo_check_in
from django_tour_bookings.exceptions import InvalidTransition, NotFoundError, ValidationError
from django_tour_bookings.models import BookingStatus


@pytest.fixture
def confirmed(make_booking):
    return make_booking(status=BookingStatus.CONFIRMED)


@pytest.mark.django_db
class TestCheckIn:
    """Test suite for check_in() and undo_check_in()."""

    @freeze_time("2025-04-01 07:45:00")
    def test_check_in_sets_timestamp(self, confirmed, admin_user):
        """checked_in_at comes from the clock."""
        result = check_in(confirmed.pk, admin=admin_user)

        confirmed.refresh_from_db()
        assert confirmed.checked_in
        assert confirmed.checked_in_at == datetime(2025, 4, 1, 7, 45, tzinfo=dt_timezone.utc)
        entry = history(confirmed).get()
        assert entry.action == Actions.CHECKED_IN
        assert entry.actor_email == "admin@tours.example.com"
        assert result.fully_succeeded

    def test_check_in_then_undo_restores_state(self, confirmed, clock):
        """checkIn then undoCheckIn leaves checked_in False and no timestamp."""
        check_in(confirmed.pk, clock=clock)
        undo_check_in(confirmed.pk, clock=clock)

        confirmed.refresh_from_db()
        assert confirmed.checked_in is False
        assert confirmed.checked_in_at is None
        assert [entry.action for entry in history(confirmed)] == [
            Actions.CHECK_IN_UNDONE,
            Actions.CHECKED_IN,
        ]

    def test_repeat_check_in_refreshes_timestamp(self, confirmed):
        """Checking in twice is allowed and moves the timestamp."""
        with freeze_time("2025-04-01 07:45:00"):
            check_in(confirmed.pk)
        with freeze_time("2025-04-01 08:10:00"):
            result = check_in(confirmed.pk)

        assert result.booking.checked_in_at == datetime(2025, 4, 1, 8, 10, tzinfo=dt_timezone.utc)
        assert history(confirmed)[0].metadata["refreshed"] is True

    def test_undo_when_not_checked_in_is_noop(self, confirmed):
        """Undoing a booking that is not checked in changes nothing."""
        result = undo_check_in(confirmed.pk)

        confirmed.refresh_from_db()
        assert confirmed.version == 1
        assert result.side_effects == []
        assert not history(confirmed).exists()

    @pytest.mark.parametrize(
        "status",
        [
            BookingStatus.PENDING_REVIEW,
            BookingStatus.AWAITING_PAYMENT,
            BookingStatus.PAYMENT_UPLOADED,
            BookingStatus.CANCELLED,
        ],
    )
    def test_only_confirmed_bookings(self, make_booking, status):
        """Check-in is gated on CONFIRMED."""
        booking = make_booking(status=status)

        with pytest.raises(InvalidTransition):
            check_in(booking.pk)

        booking.refresh_from_db()
        assert not booking.checked_in


@pytest.mark.django_db
class TestLookupForCheckIn:
    """Test suite for lookup_for_check_in()."""

    def test_scanned_url(self, confirmed):
        """The full URL from the QR code resolves to the booking."""
        scanned = f"https://tours.example.com/admin/check-in?code={confirmed.tracking_token}"

        assert lookup_for_check_in(scanned) == confirmed

    def test_bare_token(self, confirmed):
        assert lookup_for_check_in(f"  {confirmed.tracking_token}\n") == confirmed

    def test_booking_id(self, confirmed):
        assert lookup_for_check_in(str(confirmed.pk)) == confirmed

    def test_unknown_code(self, db):
        with pytest.raises(NotFoundError):
            lookup_for_check_in("not-a-real-token")

    def test_empty_scan(self, db):
        with pytest.raises(ValidationError):
            lookup_for_check_in("   ")
