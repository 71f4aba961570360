"""Configuration for django-tour-bookings.

All settings are optional and read from Django settings with the
``TOUR_BOOKINGS_`` prefix, e.g. ``TOUR_BOOKINGS_APP_URL``.

Collaborators (notifier, file store, credential generator, clock) are
configured as dotted paths and resolved lazily so that tests can swap
them with ``override_settings`` or pass instances to services directly.
"""

from django.conf import settings
from django.utils.module_loading import import_string

from django_tour_bookings.exceptions import ConfigurationError


DEFAULT_EMAIL_SETTINGS = {
    "company_name": "Mad Monkey eBike Tours",
    "company_address": "Chiang Mai, Thailand",
    "company_phone": "",
    "company_whatsapp": "",
    "company_email": "booking@madmonkeycnx.com",
    "bank_name": "Siam Commercial Bank (SCB)",
    "bank_account_name": "",
    "bank_account_number": "",
    "bank_swift_code": "SICOQHBK",
    "meeting_point": "Mad Monkey eBike HQ, Chiang Mai",
    "meeting_point_map_url": "",
    "what_to_bring": (
        "Comfortable clothes suitable for cycling\n"
        "Sunscreen and sunglasses\n"
        "Valid ID/Passport"
    ),
    "acknowledgement_subject": "Booking Request Received - Mad Monkey eBike Tours",
    "acknowledgement_heading": "Thank you, {{ customer_name }}!",
    "acknowledgement_body": (
        "We've received your booking request and our team is reviewing it. "
        "You'll hear from us within 24 hours."
    ),
    "payment_subject": "Payment Required - Mad Monkey eBike Tours",
    "payment_heading": "Great news, {{ customer_name }}!",
    "payment_body": (
        "Your booking has been approved! To confirm your spot, please complete "
        "the payment and sign the liability waiver."
    ),
    "payment_deadline": "48 hours",
    "confirmation_subject": "Booking Confirmed! - Mad Monkey eBike Tours",
    "confirmation_heading": "See you soon, {{ customer_name }}!",
    "confirmation_body": "Your booking is now fully confirmed.",
}

DEFAULTS = {
    "APP_URL": "http://localhost:8000",
    "CURRENCY": "THB",
    "CURRENCY_SYMBOL": "฿",
    "DEFAULT_DISCOUNT_FROM_PAX": 2,
    "NOTIFIER": "django_tour_bookings.notifications.DjangoMailNotifier",
    "FILE_STORE": "django_tour_bookings.files.DefaultStorageFileStore",
    "CREDENTIAL_GENERATOR": "django_tour_bookings.credentials.QRCodeGenerator",
    "CLOCK": "django.utils.timezone.now",
    "EMAIL": {},
}


def get_setting(name):
    """Get a TOUR_BOOKINGS_* setting, falling back to the package default.

    Raises:
        ConfigurationError: If ``name`` is not a known setting
    """
    if name not in DEFAULTS:
        raise ConfigurationError(f"Unknown tour bookings setting: {name}")
    return getattr(settings, f"TOUR_BOOKINGS_{name}", DEFAULTS[name])


def get_app_url() -> str:
    return str(get_setting("APP_URL")).rstrip("/")


def get_email_settings() -> dict:
    """Email copy and company details, with overrides merged over defaults."""
    merged = dict(DEFAULT_EMAIL_SETTINGS)
    overrides = get_setting("EMAIL") or {}
    merged.update({k: v for k, v in overrides.items() if k in merged})
    return merged


def _load(name):
    path = get_setting(name)
    if not isinstance(path, str):
        return path
    try:
        return import_string(path)
    except ImportError as exc:
        raise ConfigurationError(
            f"TOUR_BOOKINGS_{name} points at {path!r}, which cannot be imported"
        ) from exc


def get_notifier():
    return _load("NOTIFIER")()


def get_file_store():
    return _load("FILE_STORE")()


def get_credential_generator():
    return _load("CREDENTIAL_GENERATOR")()


def get_clock():
    """Zero-argument callable returning an aware datetime."""
    return _load("CLOCK")
