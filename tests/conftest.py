"""Pytest configuration for django-tour-bookings tests."""

from datetime import date
from decimal import Decimal

import pytest

from tests.doubles import (
    FIXED_NOW,
    FailingNotifier,
    RecordingFileStore,
    RecordingNotifier,
    StubGenerator,
)


@pytest.fixture
def clock():
    """Fixed clock for deterministic timestamps."""
    return lambda: FIXED_NOW


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def failing_notifier():
    return FailingNotifier()


@pytest.fixture
def generator():
    return StubGenerator()


@pytest.fixture
def file_store():
    return RecordingFileStore()


@pytest.fixture
def admin_user(db):
    """Create an administrator."""
    from django.contrib.auth import get_user_model

    User = get_user_model()
    return User.objects.create_user(
        username="admin", email="admin@tours.example.com", password="testpass", is_staff=True
    )


@pytest.fixture
def route(db):
    """Route with a fixed 200 discount from the 2nd rider."""
    from django_tour_bookings.models import Route

    return Route.objects.create(
        title="Doi Suthep Temple Ride",
        slug="doi-suthep",
        price=Decimal("1000.00"),
        discount_type="fixed",
        discount_value=Decimal("200.00"),
        discount_from_pax=2,
    )


@pytest.fixture
def percentage_route(db):
    """Route with 10% off from the 3rd rider."""
    from django_tour_bookings.models import Route

    return Route.objects.create(
        title="Countryside Loop",
        slug="countryside-loop",
        price=Decimal("500.00"),
        discount_type="percentage",
        discount_value=Decimal("10"),
        discount_from_pax=3,
    )


@pytest.fixture
def make_booking(route):
    """Factory for bookings created straight through the ORM."""
    from django_tour_bookings.models import Booking

    def _make(**overrides):
        participants = overrides.pop(
            "participants",
            [
                {"name": "Ann Rider", "height": "165", "helmet_size": "M", "dietary": ""},
                {"name": "Ben Rider", "height": "180", "helmet_size": "L", "dietary": "vegan"},
                {"name": "Cat Rider", "height": "150", "helmet_size": "S", "dietary": ""},
            ],
        )
        fields = {
            "route": route,
            "tour_date": date(2025, 4, 1),
            "customer_name": "Ann Rider",
            "customer_email": "ann@example.com",
            "participants": participants,
            "pax_count": len(participants),
        }
        fields.update(overrides)
        return Booking.objects.create(**fields)

    return _make


@pytest.fixture
def booking(make_booking):
    """Three-rider booking in PENDING_REVIEW, total 2600."""
    return make_booking()
