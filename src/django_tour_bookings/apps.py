"""Django app configuration for django_tour_bookings."""

from django.apps import AppConfig


class DjangoTourBookingsConfig(AppConfig):
    """App configuration for django-tour-bookings."""

    name = 'django_tour_bookings'
    label = 'django_tour_bookings'
    verbose_name = 'Tour Bookings'
    default_auto_field = 'django.db.models.BigAutoField'
