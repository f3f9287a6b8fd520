"""
Tests for integer-cent money helpers.

Covers:
- Half-up rounding of rate applications
- Floor rounding of payout caps
- Float rejection
- Display formatting
"""

from decimal import Decimal

import pytest

from network_settlement.utils.money import (
    apply_rate,
    cap_cents,
    format_cents,
    to_decimal,
)


class TestApplyRate:
    """Rate application rounds half up to whole cents."""

    def test_exact_amount(self):
        assert apply_rate(10000, Decimal("0.10")) == 1000

    def test_half_cent_rounds_up(self):
        # 25 * 0.1 = 2.5 -> 3 (banker's rounding would give 2)
        assert apply_rate(25, Decimal("0.1")) == 3

    def test_below_half_rounds_down(self):
        assert apply_rate(1229, Decimal("0.05")) == 61  # 61.45

    def test_zero_rate(self):
        assert apply_rate(10000, Decimal("0")) == 0

    def test_string_rate_accepted(self):
        assert apply_rate(10000, "0.05") == 500


class TestCapCents:
    """Caps never round up."""

    def test_floor(self):
        assert cap_cents(999, Decimal("0.5")) == 499

    def test_full_ratio(self):
        assert cap_cents(10000, Decimal("1")) == 10000


class TestToDecimal:
    """Floats never enter money arithmetic."""

    def test_rejects_float(self):
        with pytest.raises(TypeError):
            to_decimal(0.1)

    def test_int_and_str(self):
        assert to_decimal(5) == Decimal("5")
        assert to_decimal("0.05") == Decimal("0.05")


class TestFormatCents:
    """Rendering for user-facing messages."""

    @pytest.mark.parametrize(
        "cents,expected",
        [
            (15050, "$150.50"),
            (5, "$0.05"),
            (100000000, "$1,000,000.00"),
            (-250, "-$2.50"),
        ],
    )
    def test_format(self, cents, expected):
        assert format_cents(cents) == expected
