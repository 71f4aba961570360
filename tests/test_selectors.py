"""Tests for customer selectors."""
import pytest

from django_tour_bookings.exceptions import NotFoundError
from django_tour_bookings.models import Customer
from django_tour_bookings.selectors import (
    customer_booking_history,
    lookup_customer,
    recount_customer_bookings,
)


@pytest.mark.django_db
class TestCustomerSelectors:
    """Test suite for customer lookups."""

    @pytest.fixture
    def customer(self, db):
        return Customer.objects.create(email="ann@example.com", full_name="Ann Rider")

    def test_lookup_is_case_insensitive(self, customer):
        assert lookup_customer(" ANN@example.com") == customer

    def test_lookup_missing(self, db):
        with pytest.raises(NotFoundError):
            lookup_customer("nobody@example.com")

    def test_history_newest_first_with_limit(self, customer, make_booking):
        bookings = [make_booking() for _ in range(3)]
        make_booking(customer_email="other@example.com")

        history = list(customer_booking_history("ann@example.com", limit=2))

        assert history == [bookings[2], bookings[1]]

    def test_recount_repairs_drift(self, customer, make_booking):
        """The counter is recomputed from actual bookings."""
        make_booking()
        latest = make_booking()
        customer.total_bookings = 7
        customer.save()

        repaired = recount_customer_bookings("ann@example.com")

        assert repaired.total_bookings == 2
        assert repaired.last_booking_at == latest.created_at
        customer.refresh_from_db()
        assert customer.total_bookings == 2
