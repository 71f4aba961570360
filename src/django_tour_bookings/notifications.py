"""Customer notifications for tour bookings.

Provides:
- BaseNotifier: the send(to_email, subject, html_body) interface
- DjangoMailNotifier: default notifier over Django's mail backend
- Message builders for acknowledgement, payment request, confirmation
  and waiver-link emails, rendered with the Django template engine
- dispatch(): best-effort send that never raises into the caller

A notification failure never rolls back the booking change that
triggered it; dispatch() turns it into a failed SideEffect instead.
"""

import logging
import smtplib
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional

from django.core.mail import EmailMultiAlternatives
from django.template import Context, Engine
from django.utils.html import strip_tags
from django.utils.safestring import mark_safe

from .conf import get_app_url, get_email_settings, get_notifier
from .exceptions import NotificationError
from .results import SideEffect

logger = logging.getLogger(__name__)

_engine = Engine(autoescape=True)


@dataclass
class SendResult:
    """Result of a send operation."""

    success: bool
    provider: str
    message_id: Optional[str] = None
    error: Optional[str] = None

    @classmethod
    def ok(cls, provider: str, message_id: str = "") -> "SendResult":
        return cls(success=True, provider=provider, message_id=message_id)

    @classmethod
    def fail(cls, provider: str, error: str) -> "SendResult":
        return cls(success=False, provider=provider, error=error)


@dataclass(frozen=True)
class EmailMessageSpec:
    """A composed email, ready for a notifier."""

    to: str
    subject: str
    html_body: str


class BaseNotifier(ABC):
    """Abstract outbound notifier."""

    provider_name: str = "base"

    @abstractmethod
    def send(self, to_email: str, subject: str, html_body: str) -> SendResult:
        """Send an HTML email and report the outcome."""
        raise NotImplementedError


class DjangoMailNotifier(BaseNotifier):
    """Notifier that sends through the configured Django EMAIL_BACKEND."""

    provider_name = "django_mail"

    def send(self, to_email: str, subject: str, html_body: str) -> SendResult:
        settings = get_email_settings()
        email = EmailMultiAlternatives(
            subject=subject,
            body=strip_tags(html_body),
            from_email=settings["company_email"] or None,
            to=[to_email],
        )
        email.attach_alternative(html_body, "text/html")
        try:
            sent = email.send(fail_silently=False)
        except (smtplib.SMTPException, OSError) as exc:
            return SendResult.fail(self.provider_name, str(exc))
        if not sent:
            return SendResult.fail(self.provider_name, "backend accepted no messages")
        return SendResult.ok(self.provider_name)


def dispatch(message, *, booking_id=None, notifier=None) -> SideEffect:
    """Compose and send a message best-effort.

    Args:
        message: EmailMessageSpec, or a zero-arg callable that builds one.
            A builder is called inside the same guard as the send, so a
            broken copy template is reported like a failed send.
        booking_id: Booking the message belongs to, for logging
        notifier: Notifier to send through; defaults to the configured one

    Returns:
        SideEffect of kind "notification"; failures are logged, not raised
    """
    notifier = notifier or get_notifier()
    try:
        if callable(message):
            message = message()
        result = notifier.send(message.to, message.subject, message.html_body)
        if not result.success:
            raise NotificationError(result.error or "send failed", recipient=message.to)
    except Exception as exc:
        if isinstance(message, EmailMessageSpec):
            logger.warning(
                "Notification %r to %s for booking %s failed: %s",
                message.subject,
                message.to,
                booking_id,
                exc,
            )
        else:
            logger.warning("Could not compose notification for booking %s: %s", booking_id, exc)
        return SideEffect.failed("notification", str(exc))

    logger.info("Sent %r to %s for booking %s", message.subject, message.to, booking_id)
    return SideEffect.succeeded("notification", result.message_id or "")


# =============================================================================
# Message builders
# =============================================================================


def tracking_url(booking) -> str:
    return f"{get_app_url()}/track/{booking.tracking_token}"


def waiver_url(booking, participant_index: int) -> str:
    return f"{get_app_url()}/waiver/{booking.tracking_token}/{participant_index}"


def check_in_url(booking) -> str:
    return f"{get_app_url()}/admin/check-in?code={booking.tracking_token}"


def _render(source: str, context: dict) -> str:
    return _engine.from_string(source).render(Context(context))


LAYOUT = """<div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">
  <div style="background-color: #F58020; padding: 20px; text-align: center;">
    <h1 style="color: white; margin: 0; font-size: 20px;">{{ settings.company_name }}</h1>
  </div>
  <div style="padding: 30px; background: #ffffff;">
    <h2 style="color: #333;">{{ heading }}</h2>
    {{ content }}
  </div>
  <div style="background-color: #333; color: #999; padding: 15px; text-align: center; font-size: 12px;">
    {{ settings.company_name }} - {{ settings.company_address }}
  </div>
</div>"""

ACKNOWLEDGEMENT = """<p>{{ body }}</p>
<p><strong>Tour:</strong> {{ route_title }}<br/>
<strong>Date:</strong> {{ tour_date|date:"l, F j, Y" }}<br/>
<strong>Start time:</strong> {% if start_time %}{{ start_time|time:"g:i A" }}{% else %}To be confirmed{% endif %}<br/>
<strong>Riders:</strong> {{ pax_count }}</p>
<p><a href="{{ tracking_url }}">Track your booking</a></p>"""

PAYMENT_REQUEST = """<p>{{ body }}</p>
<p><strong>Tour:</strong> {{ route_title }}<br/>
<strong>Date:</strong> {{ tour_date|date:"l, F j, Y" }}<br/>
<strong>Total:</strong> {{ total }}<br/>
<strong>Deposit (50%):</strong> {{ deposit }}</p>
<p>Bank: {{ settings.bank_name }}<br/>
Account name: {{ settings.bank_account_name }}<br/>
Account number: {{ settings.bank_account_number }}<br/>
SWIFT: {{ settings.bank_swift_code }}</p>
<p>Please pay within {{ settings.payment_deadline }}.</p>
<p><a href="{{ payment_url }}">Upload payment slip and sign waivers</a></p>"""

CONFIRMATION = """<p>{{ body }}</p>
<p><strong>Tour:</strong> {{ route_title }}<br/>
<strong>Date:</strong> {{ tour_date|date:"l, F j, Y" }}<br/>
<strong>Start time:</strong> {% if start_time %}{{ start_time|time:"g:i A" }}{% else %}To be confirmed{% endif %}<br/>
<strong>Booking reference:</strong> {{ booking_ref }}</p>
{% if qr_code %}<p style="text-align: center;"><img src="{{ qr_code }}" alt="Check-in QR code" width="200" height="200"/></p>
<p>Show this QR code at check-in.</p>{% endif %}
<p><strong>Meeting point:</strong> {{ settings.meeting_point }}</p>
<p><strong>What to bring:</strong><br/>{{ settings.what_to_bring|linebreaksbr }}</p>"""

WAIVER_LINK = """<p>Hi <strong>{{ participant_name }}</strong>,</p>
<p>You have been registered for an upcoming tour with {{ settings.company_name }}.
Before the tour, you need to complete and sign the Liability Waiver.</p>
<p><strong>Tour:</strong> {{ route_title }}<br/>
<strong>Date:</strong> {{ tour_date|date:"l, F j, Y" }}</p>
<p><a href="{{ waiver_url }}">Sign Waiver Now</a></p>
<p>If you cannot sign online, a printed copy will be provided at check-in.
Please bring a valid passport or ID for verification.</p>"""


def _compose(to: str, subject: str, heading: str, content_source: str, context: dict) -> EmailMessageSpec:
    settings = context["settings"]
    content = _render(content_source, context)
    html = _render(
        LAYOUT,
        {"settings": settings, "heading": heading, "content": mark_safe(content)},
    )
    return EmailMessageSpec(to=to, subject=subject, html_body=html)


def _copy(settings: dict, key: str, booking) -> str:
    """Render an admin-editable copy string with the customer's name."""
    return _render(settings[key], {"customer_name": booking.customer_name})


def acknowledgement_email(booking) -> EmailMessageSpec:
    settings = get_email_settings()
    return _compose(
        booking.customer_email,
        settings["acknowledgement_subject"],
        _copy(settings, "acknowledgement_heading", booking),
        ACKNOWLEDGEMENT,
        {
            "settings": settings,
            "body": _copy(settings, "acknowledgement_body", booking),
            "route_title": booking.route.title,
            "tour_date": booking.tour_date,
            "start_time": booking.start_time,
            "pax_count": booking.pax_count,
            "tracking_url": tracking_url(booking),
        },
    )


def payment_request_email(booking, total: str, deposit: str) -> EmailMessageSpec:
    settings = get_email_settings()
    return _compose(
        booking.customer_email,
        settings["payment_subject"],
        _copy(settings, "payment_heading", booking),
        PAYMENT_REQUEST,
        {
            "settings": settings,
            "body": _copy(settings, "payment_body", booking),
            "route_title": booking.route.title,
            "tour_date": booking.tour_date,
            "total": total,
            "deposit": deposit,
            "payment_url": tracking_url(booking),
        },
    )


def confirmation_email(booking, qr_code: str | None) -> EmailMessageSpec:
    settings = get_email_settings()
    return _compose(
        booking.customer_email,
        settings["confirmation_subject"],
        _copy(settings, "confirmation_heading", booking),
        CONFIRMATION,
        {
            "settings": settings,
            "body": _copy(settings, "confirmation_body", booking),
            "route_title": booking.route.title,
            "tour_date": booking.tour_date,
            "start_time": booking.start_time,
            "booking_ref": booking.tracking_token,
            "qr_code": qr_code,
        },
    )


def waiver_link_email(booking, participant_index: int, participant_name: str, to: str) -> EmailMessageSpec:
    settings = get_email_settings()
    return _compose(
        to,
        f"Liability Waiver - {settings['company_name']}",
        "Liability Waiver Required",
        WAIVER_LINK,
        {
            "settings": settings,
            "participant_name": participant_name,
            "route_title": booking.route.title,
            "tour_date": booking.tour_date,
            "waiver_url": waiver_url(booking, participant_index),
        },
    )
