# Generated manually for standalone django-tour-bookings package

import uuid
from decimal import Decimal

import django.core.serializers.json
import django.db.models.deletion
from django.db import migrations, models

import django_tour_bookings.models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="Route",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("title", models.CharField(max_length=200)),
                ("slug", models.SlugField(max_length=200, unique=True)),
                ("price", models.DecimalField(decimal_places=2, help_text="Base price per rider", max_digits=12)),
                (
                    "discount_type",
                    models.CharField(
                        choices=[
                            ("none", "No discount"),
                            ("fixed", "Fixed amount per rider"),
                            ("percentage", "Percentage per rider"),
                        ],
                        default="none",
                        max_length=20,
                    ),
                ),
                (
                    "discount_value",
                    models.DecimalField(
                        decimal_places=2,
                        default=Decimal("0"),
                        help_text="Fixed amount off, or percent off, per discounted rider",
                        max_digits=12,
                    ),
                ),
                (
                    "discount_from_pax",
                    models.PositiveIntegerField(
                        default=2,
                        help_text="1-based rider index from which the discount applies",
                    ),
                ),
                ("is_active", models.BooleanField(default=True)),
            ],
            options={
                "ordering": ["title"],
            },
        ),
        migrations.CreateModel(
            name="Customer",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("email", models.EmailField(max_length=254, unique=True)),
                ("full_name", models.CharField(max_length=200)),
                ("whatsapp", models.CharField(blank=True, default="", max_length=50)),
                ("notes", models.TextField(blank=True, default="")),
                ("total_bookings", models.PositiveIntegerField(default=0)),
                ("last_booking_at", models.DateTimeField(blank=True, null=True)),
            ],
            options={
                "ordering": ["-last_booking_at"],
            },
        ),
        migrations.CreateModel(
            name="Booking",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "tracking_token",
                    models.CharField(
                        default=django_tour_bookings.models.generate_tracking_token,
                        editable=False,
                        max_length=64,
                        unique=True,
                    ),
                ),
                ("tour_date", models.DateField()),
                ("start_time", models.TimeField(blank=True, null=True)),
                ("customer_name", models.CharField(max_length=200)),
                ("customer_email", models.EmailField(max_length=254)),
                ("customer_whatsapp", models.CharField(blank=True, default="", max_length=50)),
                ("pax_count", models.PositiveIntegerField()),
                (
                    "participants",
                    models.JSONField(
                        default=list,
                        help_text="Ordered rider records: name, height, helmet_size, dietary",
                    ),
                ),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("PENDING_REVIEW", "Pending Review"),
                            ("AWAITING_PAYMENT", "Awaiting Payment"),
                            ("PAYMENT_UPLOADED", "Payment Uploaded"),
                            ("CONFIRMED", "Confirmed"),
                            ("CANCELLED", "Cancelled"),
                        ],
                        db_index=True,
                        default="PENDING_REVIEW",
                        max_length=20,
                    ),
                ),
                ("admin_notes", models.TextField(blank=True, default="")),
                ("payment_slip_url", models.CharField(blank=True, default="", max_length=500)),
                (
                    "custom_total",
                    models.DecimalField(
                        blank=True,
                        decimal_places=2,
                        help_text="Administrator override of the computed price",
                        max_digits=12,
                        null=True,
                    ),
                ),
                (
                    "payment_option",
                    models.CharField(
                        blank=True,
                        choices=[
                            ("deposit_50", "50% deposit"),
                            ("full_100", "Full payment"),
                            ("pay_at_venue", "Pay at venue"),
                        ],
                        max_length=20,
                        null=True,
                    ),
                ),
                (
                    "payment_status",
                    models.CharField(
                        choices=[
                            ("unpaid", "Unpaid"),
                            ("deposit_paid", "Deposit paid"),
                            ("fully_paid", "Fully paid"),
                        ],
                        default="unpaid",
                        max_length=20,
                    ),
                ),
                ("amount_paid", models.DecimalField(decimal_places=2, default=Decimal("0"), max_digits=12)),
                ("checked_in", models.BooleanField(default=False)),
                ("checked_in_at", models.DateTimeField(blank=True, null=True)),
                ("version", models.PositiveIntegerField(default=1)),
                (
                    "customer",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="bookings",
                        to="django_tour_bookings.customer",
                    ),
                ),
                (
                    "route",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="bookings",
                        to="django_tour_bookings.route",
                    ),
                ),
            ],
            options={
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(fields=["tour_date", "status"], name="tourbooking_date_status_idx"),
                    models.Index(fields=["customer_email"], name="tourbooking_cust_email_idx"),
                ],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(("amount_paid__gte", 0)),
                        name="tourbooking_amount_paid_non_negative",
                    ),
                    models.CheckConstraint(
                        condition=models.Q(
                            models.Q(("checked_in", True), ("checked_in_at__isnull", False)),
                            models.Q(("checked_in", False), ("checked_in_at__isnull", True)),
                            _connector="OR",
                        ),
                        name="tourbooking_checked_in_has_timestamp",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="WaiverRecord",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "participant_index",
                    models.PositiveIntegerField(help_text="0-based index into Booking.participants"),
                ),
                ("signer_name", models.CharField(blank=True, default="", max_length=200)),
                ("passport_no", models.CharField(blank=True, default="", max_length=50)),
                ("signed_on", models.DateField(blank=True, null=True)),
                ("email", models.EmailField(blank=True, default="", max_length=254)),
                ("signed", models.BooleanField(default=False)),
                ("signature_url", models.CharField(blank=True, default="", max_length=500)),
                (
                    "booking",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="waivers",
                        to="django_tour_bookings.booking",
                    ),
                ),
            ],
            options={
                "ordering": ["booking", "participant_index"],
                "constraints": [
                    models.UniqueConstraint(
                        fields=("booking", "participant_index"),
                        name="tourbooking_one_waiver_per_participant",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="ActivityLogEntry",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("booking_id", models.UUIDField(db_index=True)),
                ("action", models.CharField(db_index=True, max_length=50)),
                ("description", models.TextField()),
                (
                    "actor_type",
                    models.CharField(
                        choices=[("admin", "Administrator"), ("customer", "Customer"), ("system", "System")],
                        default="system",
                        max_length=20,
                    ),
                ),
                ("actor_email", models.EmailField(blank=True, default="", max_length=254)),
                (
                    "metadata",
                    models.JSONField(
                        blank=True,
                        default=dict,
                        encoder=django.core.serializers.json.DjangoJSONEncoder,
                    ),
                ),
                (
                    "level",
                    models.CharField(
                        choices=[("info", "Info"), ("success", "Success"), ("warning", "Warning"), ("error", "Error")],
                        default="info",
                        max_length=20,
                    ),
                ),
                ("created_at", models.DateTimeField(db_index=True)),
            ],
            options={
                "verbose_name": "Activity Log Entry",
                "verbose_name_plural": "Activity Log Entries",
                "ordering": ["-created_at", "-id"],
                "indexes": [
                    models.Index(fields=["booking_id", "created_at"], name="tourbooking_activity_idx"),
                ],
            },
        ),
    ]
