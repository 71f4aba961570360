"""Tests for TOUR_BOOKINGS_* settings."""
import pytest
from django.test import override_settings

from django_tour_bookings.conf import (
    get_app_url,
    get_clock,
    get_email_settings,
    get_notifier,
    get_setting,
)
from django_tour_bookings.exceptions import ConfigurationError
from django_tour_bookings.notifications import DjangoMailNotifier
from tests.doubles import RecordingNotifier


class TestSettings:
    """Test suite for settings resolution."""

    def test_defaults(self):
        assert get_setting("CURRENCY") == "THB"
        assert get_setting("DEFAULT_DISCOUNT_FROM_PAX") == 2

    def test_unknown_setting(self):
        with pytest.raises(ConfigurationError):
            get_setting("FAVOURITE_COLOUR")

    def test_app_url_trailing_slash_stripped(self):
        assert get_app_url() == "https://tours.example.com"

    def test_email_overrides_merge(self):
        email = get_email_settings()

        assert email["company_name"] == "Test Tours"
        assert email["bank_swift_code"] == "SICOQHBK"

    def test_default_notifier(self):
        assert isinstance(get_notifier(), DjangoMailNotifier)

    @override_settings(TOUR_BOOKINGS_NOTIFIER="tests.doubles.RecordingNotifier")
    def test_notifier_from_dotted_path(self):
        assert isinstance(get_notifier(), RecordingNotifier)

    @override_settings(TOUR_BOOKINGS_NOTIFIER="tests.doubles.NoSuchNotifier")
    def test_bad_dotted_path(self):
        with pytest.raises(ConfigurationError):
            get_notifier()

    def test_clock_is_callable(self):
        assert get_clock()().tzinfo is not None
