"""Tests for notification composition and dispatch."""
from datetime import time
from smtplib import SMTPException
from unittest import mock

import pytest
from django.core import mail
from django.test import override_settings

from django_tour_bookings.notifications import (
    DjangoMailNotifier,
    acknowledgement_email,
    check_in_url,
    confirmation_email,
    dispatch,
    payment_request_email,
    tracking_url,
    waiver_link_email,
    waiver_url,
)
from tests.doubles import ExplodingNotifier, FailingNotifier, RecordingNotifier


@pytest.mark.django_db
class TestMessageBuilders:
    """Test suite for email composition."""

    def test_urls_use_app_url(self, booking):
        token = booking.tracking_token

        assert tracking_url(booking) == f"https://tours.example.com/track/{token}"
        assert waiver_url(booking, 1) == f"https://tours.example.com/waiver/{token}/1"
        assert check_in_url(booking) == f"https://tours.example.com/admin/check-in?code={token}"

    def test_acknowledgement(self, make_booking):
        booking = make_booking(start_time=time(8, 30))

        message = acknowledgement_email(booking)

        assert message.to == "ann@example.com"
        assert "Thank you, Ann Rider!" in message.html_body
        assert "8:30 AM" in message.html_body
        assert "Doi Suthep Temple Ride" in message.html_body
        assert "Test Tours" in message.html_body

    def test_payment_request_shows_amounts(self, booking):
        message = payment_request_email(booking, "฿2,600", "฿1,300")

        assert "฿2,600" in message.html_body
        assert "฿1,300" in message.html_body
        assert "SICOQHBK" in message.html_body

    def test_confirmation_without_qr(self, booking):
        message = confirmation_email(booking, None)

        assert "<img" not in message.html_body
        assert booking.tracking_token in message.html_body

    def test_customer_name_is_escaped(self, make_booking):
        booking = make_booking(customer_name="<script>alert(1)</script>")

        message = acknowledgement_email(booking)

        assert "<script>" not in message.html_body
        assert "&lt;script&gt;" in message.html_body

    def test_waiver_link(self, booking):
        message = waiver_link_email(booking, 2, "Cat Rider", "cat@example.com")

        assert message.to == "cat@example.com"
        assert message.subject == "Liability Waiver - Test Tours"
        assert "Cat Rider" in message.html_body

    @override_settings(
        TOUR_BOOKINGS_EMAIL={"acknowledgement_heading": "Hey {{ customer_name }}", "unknown": "x"}
    )
    def test_copy_is_configurable(self, booking):
        message = acknowledgement_email(booking)

        assert "Hey Ann Rider" in message.html_body


@pytest.mark.django_db
class TestDispatch:
    """Test suite for dispatch()."""

    def test_success(self, booking):
        notifier = RecordingNotifier()

        effect = dispatch(acknowledgement_email(booking), booking_id=booking.pk, notifier=notifier)

        assert effect.ok
        assert effect.detail == "msg-1"

    def test_provider_failure(self, booking):
        effect = dispatch(acknowledgement_email(booking), notifier=FailingNotifier())

        assert not effect.ok
        assert effect.kind == "notification"
        assert effect.detail == "SMTP connection refused"

    def test_exception_is_captured(self, booking):
        effect = dispatch(acknowledgement_email(booking), notifier=ExplodingNotifier())

        assert not effect.ok
        assert "network unreachable" in effect.detail

    def test_builder_is_called(self, booking):
        notifier = RecordingNotifier()

        effect = dispatch(lambda: acknowledgement_email(booking), notifier=notifier)

        assert effect.ok
        assert notifier.sent[0]["to"] == "ann@example.com"

    def test_builder_failure_is_captured(self, booking):
        """A message that cannot be composed is a failed send, never an error."""
        notifier = RecordingNotifier()

        def broken():
            raise ValueError("template exploded")

        effect = dispatch(broken, booking_id=booking.pk, notifier=notifier)

        assert not effect.ok
        assert effect.kind == "notification"
        assert effect.detail == "template exploded"
        assert notifier.sent == []

    @override_settings(TOUR_BOOKINGS_EMAIL={"acknowledgement_heading": "{% if %}"})
    def test_broken_copy_is_captured(self, booking):
        effect = dispatch(lambda: acknowledgement_email(booking), notifier=RecordingNotifier())

        assert not effect.ok


@pytest.mark.django_db
class TestDjangoMailNotifier:
    """Test suite for DjangoMailNotifier."""

    def test_sends_html_with_text_fallback(self):
        result = DjangoMailNotifier().send("a@example.com", "Hi", "<p>Hello <b>there</b></p>")

        assert result.success
        message = mail.outbox[0]
        assert message.body == "Hello there"
        assert message.alternatives[0][0] == "<p>Hello <b>there</b></p>"

    def test_smtp_error_reported(self):
        with mock.patch(
            "django.core.mail.EmailMessage.send", side_effect=SMTPException("relay denied")
        ):
            result = DjangoMailNotifier().send("a@example.com", "Hi", "<p>x</p>")

        assert not result.success
        assert result.error == "relay denied"
