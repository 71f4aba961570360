"""Tour booking models.

Contains:
- Route: bookable tour product with a base price and group discount policy
- Customer: aggregate of a customer's contact details across bookings
- Booking: one customer's reservation for a route on a date, with N riders
- WaiverRecord: per-participant liability waiver, unique per participant index
- ActivityLogEntry: append-only audit trail of booking mutations

All writes go through the service modules (lifecycle, payments, waivers,
checkin). Direct model manipulation bypasses invariants and is unsupported.
"""
import secrets
import uuid
from decimal import Decimal

from django.core.serializers.json import DjangoJSONEncoder
from django.db import models
from django.db.models import Q


def generate_tracking_token():
    """Unguessable customer-facing token, independent of the primary key."""
    return secrets.token_urlsafe(18)


class BookingStatus(models.TextChoices):
    PENDING_REVIEW = "PENDING_REVIEW", "Pending Review"
    AWAITING_PAYMENT = "AWAITING_PAYMENT", "Awaiting Payment"
    PAYMENT_UPLOADED = "PAYMENT_UPLOADED", "Payment Uploaded"
    CONFIRMED = "CONFIRMED", "Confirmed"
    CANCELLED = "CANCELLED", "Cancelled"


class PaymentOption(models.TextChoices):
    DEPOSIT_50 = "deposit_50", "50% deposit"
    FULL_100 = "full_100", "Full payment"
    PAY_AT_VENUE = "pay_at_venue", "Pay at venue"


class PaymentStatus(models.TextChoices):
    UNPAID = "unpaid", "Unpaid"
    DEPOSIT_PAID = "deposit_paid", "Deposit paid"
    FULLY_PAID = "fully_paid", "Fully paid"


class DiscountType(models.TextChoices):
    NONE = "none", "No discount"
    FIXED = "fixed", "Fixed amount per rider"
    PERCENTAGE = "percentage", "Percentage per rider"


class ActorType(models.TextChoices):
    ADMIN = "admin", "Administrator"
    CUSTOMER = "customer", "Customer"
    SYSTEM = "system", "System"


class ActivityLevel(models.TextChoices):
    INFO = "info", "Info"
    SUCCESS = "success", "Success"
    WARNING = "warning", "Warning"
    ERROR = "error", "Error"


class TimeStampedModel(models.Model):
    """Abstract base with created/updated timestamps and a UUID key."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        abstract = True


class Route(TimeStampedModel):
    """A bookable tour product.

    Read-mostly from the booking core's point of view: the lifecycle only
    reads price and discount policy when computing totals.
    """

    title = models.CharField(max_length=200)
    slug = models.SlugField(max_length=200, unique=True)
    price = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        help_text='Base price per rider',
    )
    discount_type = models.CharField(
        max_length=20,
        choices=DiscountType.choices,
        default=DiscountType.NONE,
    )
    discount_value = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        default=Decimal("0"),
        help_text='Fixed amount off, or percent off, per discounted rider',
    )
    discount_from_pax = models.PositiveIntegerField(
        default=2,
        help_text='1-based rider index from which the discount applies',
    )
    is_active = models.BooleanField(default=True)

    class Meta:
        ordering = ['title']

    def __str__(self):
        return self.title


class Customer(TimeStampedModel):
    """Customer aggregate keyed by normalised email.

    ``total_bookings`` is a best-effort counter maintained on booking
    submission; ``recount_customer_bookings`` recomputes it from bookings.
    """

    email = models.EmailField(unique=True)
    full_name = models.CharField(max_length=200)
    whatsapp = models.CharField(max_length=50, blank=True, default="")
    notes = models.TextField(blank=True, default="")
    total_bookings = models.PositiveIntegerField(default=0)
    last_booking_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        ordering = ['-last_booking_at']

    def __str__(self):
        return f"{self.full_name} <{self.email}>"


class Booking(TimeStampedModel):
    """One customer's reservation for a route on a date.

    ``participants`` is the ordered rider list; ``pax_count`` always equals
    its length. ``version`` is bumped on every store write and used for
    optimistic concurrency control.
    """

    tracking_token = models.CharField(
        max_length=64,
        unique=True,
        default=generate_tracking_token,
        editable=False,
    )
    route = models.ForeignKey(
        Route,
        on_delete=models.PROTECT,
        related_name='bookings',
    )
    customer = models.ForeignKey(
        Customer,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='bookings',
    )

    tour_date = models.DateField()
    start_time = models.TimeField(null=True, blank=True)

    customer_name = models.CharField(max_length=200)
    customer_email = models.EmailField()
    customer_whatsapp = models.CharField(max_length=50, blank=True, default="")

    pax_count = models.PositiveIntegerField()
    participants = models.JSONField(
        default=list,
        help_text='Ordered rider records: name, height, helmet_size, dietary',
    )

    status = models.CharField(
        max_length=20,
        choices=BookingStatus.choices,
        default=BookingStatus.PENDING_REVIEW,
        db_index=True,
    )
    admin_notes = models.TextField(blank=True, default="")
    payment_slip_url = models.CharField(max_length=500, blank=True, default="")

    custom_total = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        null=True,
        blank=True,
        help_text='Administrator override of the computed price',
    )
    payment_option = models.CharField(
        max_length=20,
        choices=PaymentOption.choices,
        null=True,
        blank=True,
    )
    payment_status = models.CharField(
        max_length=20,
        choices=PaymentStatus.choices,
        default=PaymentStatus.UNPAID,
    )
    amount_paid = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        default=Decimal("0"),
    )

    checked_in = models.BooleanField(default=False)
    checked_in_at = models.DateTimeField(null=True, blank=True)

    version = models.PositiveIntegerField(default=1)

    class Meta:
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['tour_date', 'status'], name='tourbooking_date_status_idx'),
            models.Index(fields=['customer_email'], name='tourbooking_cust_email_idx'),
        ]
        constraints = [
            models.CheckConstraint(
                condition=Q(amount_paid__gte=0),
                name="tourbooking_amount_paid_non_negative",
            ),
            models.CheckConstraint(
                condition=(
                    Q(checked_in=True, checked_in_at__isnull=False)
                    | Q(checked_in=False, checked_in_at__isnull=True)
                ),
                name="tourbooking_checked_in_has_timestamp",
            ),
        ]

    def __str__(self):
        return f"{self.customer_name} - {self.route_id} on {self.tour_date}"

    @property
    def effective_total(self) -> Decimal:
        """custom_total when set, otherwise the route's discounted total."""
        from .pricing import effective_total
        return effective_total(self)


class WaiverRecord(TimeStampedModel):
    """Liability waiver for one participant of a booking.

    At most one record exists per (booking, participant_index); writes go
    through ``waivers.upsert_waiver`` which replaces in place.
    """

    booking = models.ForeignKey(
        Booking,
        on_delete=models.CASCADE,
        related_name='waivers',
    )
    participant_index = models.PositiveIntegerField(
        help_text='0-based index into Booking.participants',
    )
    signer_name = models.CharField(max_length=200, blank=True, default="")
    passport_no = models.CharField(max_length=50, blank=True, default="")
    signed_on = models.DateField(null=True, blank=True)
    email = models.EmailField(blank=True, default="")
    signed = models.BooleanField(default=False)
    signature_url = models.CharField(max_length=500, blank=True, default="")

    class Meta:
        ordering = ['booking', 'participant_index']
        constraints = [
            models.UniqueConstraint(
                fields=['booking', 'participant_index'],
                name='tourbooking_one_waiver_per_participant',
            ),
        ]

    def __str__(self):
        state = "signed" if self.signed else "unsigned"
        return f"Waiver #{self.participant_index} ({state}) for {self.booking_id}"


class ActivityLogEntry(models.Model):
    """Immutable activity entry for a booking.

    References the booking by id rather than foreign key so the trail
    survives an administrator delete. Entries are append-only.
    """

    booking_id = models.UUIDField(db_index=True)
    action = models.CharField(max_length=50, db_index=True)
    description = models.TextField()
    actor_type = models.CharField(
        max_length=20,
        choices=ActorType.choices,
        default=ActorType.SYSTEM,
    )
    actor_email = models.EmailField(blank=True, default="")
    metadata = models.JSONField(default=dict, blank=True, encoder=DjangoJSONEncoder)
    level = models.CharField(
        max_length=20,
        choices=ActivityLevel.choices,
        default=ActivityLevel.INFO,
    )
    created_at = models.DateTimeField(db_index=True)

    class Meta:
        ordering = ['-created_at', '-id']
        verbose_name = 'Activity Log Entry'
        verbose_name_plural = 'Activity Log Entries'
        indexes = [
            models.Index(fields=['booking_id', 'created_at'], name='tourbooking_activity_idx'),
        ]

    def __str__(self):
        actor = self.actor_email or self.actor_type
        return f"{actor} {self.action} {self.booking_id}"

    def save(self, *args, **kwargs):
        if self.pk and ActivityLogEntry.objects.filter(pk=self.pk).exists():
            raise ValueError("Activity log entries are immutable and cannot be updated")
        super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise ValueError("Activity log entries are immutable and cannot be deleted")
