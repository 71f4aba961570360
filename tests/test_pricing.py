"""Tests for group pricing and price display."""
from decimal import Decimal

import pytest
from django.test import override_settings

from django_tour_bookings.exceptions import ValidationError
from django_tour_bookings.pricing import (
    compute_route_price,
    compute_total,
    deposit_amount,
    effective_total,
    format_price,
    parse_amount,
)


class TestComputeTotal:
    """Test suite for compute_total()."""

    def test_fixed_discount_from_second_rider(self):
        """1000 base, 200 off from rider 2, 3 riders -> 1000, 800, 800."""
        breakdown = compute_total(Decimal("1000"), 3, "fixed", Decimal("200"), 2)

        assert breakdown.per_rider == (Decimal("1000"), Decimal("800"), Decimal("800"))
        assert breakdown.total == Decimal("2600")

    def test_percentage_discount_from_third_rider(self):
        """500 base, 10% off from rider 3, 4 riders -> 500, 500, 450, 450."""
        breakdown = compute_total(Decimal("500"), 4, "percentage", Decimal("10"), 3)

        assert breakdown.per_rider == (
            Decimal("500"),
            Decimal("500"),
            Decimal("450"),
            Decimal("450"),
        )
        assert breakdown.total == Decimal("1900")

    def test_no_discount_charges_base_for_everyone(self):
        """discount_type none ignores the discount value."""
        breakdown = compute_total(Decimal("750"), 3, "none", Decimal("100"), 1)

        assert breakdown.per_rider == (Decimal("750"),) * 3

    def test_zero_discount_value_charges_base(self):
        """A discount of 0 behaves like no discount."""
        breakdown = compute_total(Decimal("750"), 2, "fixed", Decimal("0"), 1)

        assert breakdown.total == Decimal("1500")

    def test_riders_before_threshold_pay_base(self):
        """Every rider before discount_from_pax pays the base price."""
        breakdown = compute_total(Decimal("1000"), 6, "percentage", Decimal("50"), 5)

        assert breakdown.per_rider[:4] == (Decimal("1000"),) * 4
        assert breakdown.per_rider[4:] == (Decimal("500"),) * 2

    def test_fixed_discount_larger_than_price_clamps_to_zero(self):
        """A fixed discount above the base never goes negative."""
        breakdown = compute_total(Decimal("100"), 3, "fixed", Decimal("250"), 2)

        assert breakdown.per_rider == (Decimal("100"), Decimal("0"), Decimal("0"))
        assert breakdown.total == Decimal("100")

    def test_percentage_above_hundred_clamps_to_zero(self):
        """A percentage over 100 never goes negative."""
        breakdown = compute_total(Decimal("100"), 2, "percentage", Decimal("150"), 1)

        assert breakdown.per_rider == (Decimal("0"), Decimal("0"))

    @pytest.mark.parametrize("riders", [0, -2])
    def test_no_riders_gives_empty_breakdown(self, riders):
        """rider_count <= 0 yields an empty breakdown with total 0."""
        breakdown = compute_total(Decimal("1000"), riders, "fixed", Decimal("200"), 2)

        assert breakdown.per_rider == ()
        assert breakdown.total == Decimal("0")

    @pytest.mark.parametrize("riders", [1, 2, 5, 13])
    def test_total_is_sum_of_per_rider(self, riders):
        """total is always exactly the sum of the per-rider prices."""
        breakdown = compute_total(Decimal("333.33"), riders, "percentage", Decimal("7.5"), 2)

        assert breakdown.total == sum(breakdown.per_rider)

    def test_fractional_prices_are_not_rounded(self):
        """Sub-cent results propagate to the total unrounded."""
        breakdown = compute_total(Decimal("10"), 2, "percentage", Decimal("33.333"), 1)

        assert breakdown.total == Decimal("10") * (1 - Decimal("33.333") / 100) * 2

    def test_accepts_plain_numbers(self):
        """int and str inputs are converted to Decimal."""
        breakdown = compute_total(1000, 2, "fixed", "200", 2)

        assert breakdown.total == Decimal("1800")

    @override_settings(TOUR_BOOKINGS_DEFAULT_DISCOUNT_FROM_PAX=3)
    def test_missing_threshold_uses_setting(self):
        """discount_from_pax=None falls back to the configured default."""
        breakdown = compute_total(Decimal("100"), 3, "fixed", Decimal("10"))

        assert breakdown.per_rider == (Decimal("100"), Decimal("100"), Decimal("90"))

    def test_as_dict_lists_riders_from_one(self):
        """as_dict numbers riders from 1 and stringifies amounts."""
        data = compute_total(Decimal("1000"), 2, "fixed", Decimal("200"), 2).as_dict()

        assert data == {
            "total": "1800",
            "per_rider": [
                {"rider": 1, "price": "1000"},
                {"rider": 2, "price": "800"},
            ],
        }


@pytest.mark.django_db
class TestEffectiveTotal:
    """Test suite for route pricing and custom totals."""

    def test_route_price_uses_route_policy(self, percentage_route):
        """compute_route_price reads the route's discount policy."""
        assert compute_route_price(percentage_route, 4).total == Decimal("1900")

    def test_effective_total_without_override(self, booking):
        """Without custom_total the computed price applies."""
        assert effective_total(booking) == Decimal("2600")
        assert booking.effective_total == Decimal("2600")

    def test_custom_total_supersedes_computed_price(self, make_booking):
        """custom_total wins everywhere it is set."""
        booking = make_booking(custom_total=Decimal("2000.00"))

        assert effective_total(booking) == Decimal("2000.00")

    def test_custom_total_of_zero_is_honoured(self, make_booking):
        """A zero override is still an override."""
        booking = make_booking(custom_total=Decimal("0"))

        assert effective_total(booking) == Decimal("0")


class TestDeposit:
    """Test suite for deposit_amount()."""

    def test_even_total(self):
        """2600 -> 1300."""
        assert deposit_amount(Decimal("2600")) == Decimal("1300")

    def test_rounds_up_to_whole_unit(self):
        """Half of an odd or fractional total is rounded up."""
        assert deposit_amount(Decimal("2599")) == Decimal("1300")
        assert deposit_amount(Decimal("1033.33")) == Decimal("517")

    def test_zero_total(self):
        assert deposit_amount(Decimal("0")) == Decimal("0")


class TestFormatPrice:
    """Test suite for format_price()."""

    def test_whole_amount_has_no_cents(self):
        assert format_price(Decimal("2600")) == "฿2,600"

    def test_fractional_amount_shows_cents(self):
        assert format_price(Decimal("1033.333")) == "฿1,033.33"

    def test_large_amount_grouped(self):
        assert format_price(Decimal("1234567.5")) == "฿1,234,567.50"

    @override_settings(TOUR_BOOKINGS_CURRENCY_SYMBOL="$")
    def test_symbol_is_configurable(self):
        assert format_price(Decimal("10")) == "$10"


class TestParseAmount:
    """Test suite for parse_amount()."""

    def test_parses_strings(self):
        assert parse_amount("1300.50") == Decimal("1300.50")

    @pytest.mark.parametrize("value", [None, "", "abc", "NaN"])
    def test_rejects_non_numbers(self, value):
        with pytest.raises(ValidationError):
            parse_amount(value)

    def test_rejects_negative(self):
        with pytest.raises(ValidationError) as exc_info:
            parse_amount("-1", field="custom_total")

        assert exc_info.value.field == "custom_total"
