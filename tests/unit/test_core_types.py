"""
test_core_types.py - Unit tests for core types and amount helpers

Tests:
- Amount conversion and validation (to_amount)
- Integer helpers: mul_div_down, apply_bps, apply_percent, scale_down
- Basis point / percent conversion and rounding
- Compounding frequencies
- LoanTerm validation and immutability
- ConfigPreset overrides
"""

from dataclasses import FrozenInstanceError
from decimal import Decimal, getcontext

import pytest

from microloan import (
    LoanTerm, Compounding, ValidationError, LoanMathError,
    to_amount, mul_div_down, apply_bps, apply_percent, scale_down,
    bps_to_percent, percent_to_bps, SECONDS_PER_DAY, SECONDS_PER_YEAR,
    DEFAULT_PENALTY_CONFIG,
)
from microloan.core import round_down, round_half_up, require_rate


# ============================================================================
# AMOUNTS
# ============================================================================

class TestToAmount:
    """Tests for to_amount conversion."""

    def test_int_passes_through(self):
        assert to_amount(10**30) == 10**30

    def test_integral_decimal(self):
        assert to_amount(Decimal("1000")) == 1000

    def test_digit_string(self):
        assert to_amount("1000000000000000000") == 10**18

    def test_float_rejected(self):
        with pytest.raises(ValidationError, match="integer amount"):
            to_amount(1.0)

    def test_bool_rejected(self):
        with pytest.raises(ValidationError):
            to_amount(True)

    def test_negative_rejected(self):
        with pytest.raises(ValidationError, match="cannot be negative"):
            to_amount(-1)

    def test_fractional_decimal_rejected(self):
        with pytest.raises(ValidationError, match="whole number"):
            to_amount(Decimal("1.5"))

    def test_non_digit_string_rejected(self):
        with pytest.raises(ValidationError):
            to_amount("1e18")

    def test_error_carries_field(self):
        with pytest.raises(ValidationError) as exc:
            to_amount(-5, "principal")
        assert exc.value.field == "principal"

    def test_validation_error_is_value_error(self):
        assert issubclass(ValidationError, ValueError)
        assert issubclass(ValidationError, LoanMathError)


class TestIntegerHelpers:
    """Tests for truncating integer arithmetic."""

    def test_mul_div_down_truncates(self):
        assert mul_div_down(10, 10, 3) == 33

    def test_mul_div_down_exact_for_huge_values(self):
        assert mul_div_down(10**40, 3, 10**20) == 3 * 10**20

    def test_mul_div_down_zero_divisor(self):
        with pytest.raises(ValidationError):
            mul_div_down(1, 1, 0)

    def test_apply_bps(self):
        assert apply_bps(1_000_000, 250) == 25_000
        assert apply_bps(99, 100) == 0

    def test_apply_percent_fractional(self):
        assert apply_percent(10**18, Decimal("0.1")) == 10**15

    def test_scale_down(self):
        assert scale_down(1000, Decimal("0.3339")) == 333

    def test_scale_down_negative_factor(self):
        with pytest.raises(ValidationError):
            scale_down(1000, Decimal("-0.1"))

    def test_round_down(self):
        assert round_down(Decimal("9.999")) == 9

    def test_round_half_up(self):
        assert round_half_up(Decimal("2.345"), 2) == Decimal("2.35")
        assert round_half_up(Decimal("2.5")) == Decimal("3")

    def test_global_decimal_context_untouched(self):
        before = getcontext().prec
        scale_down(10**30, Decimal("0.123456789"))
        assert getcontext().prec == before


# ============================================================================
# RATES
# ============================================================================

class TestRates:
    """Tests for basis point helpers."""

    def test_bps_to_percent_exact(self):
        assert bps_to_percent(1050) == Decimal("10.5")

    def test_percent_to_bps(self):
        assert percent_to_bps("12.34") == 1234

    def test_percent_to_bps_rounds_half_up(self):
        assert percent_to_bps("10.555") == 1056
        assert percent_to_bps("10.554") == 1055

    def test_require_rate_allows_above_100_percent(self):
        assert require_rate(25_000) == 25_000

    def test_require_rate_rejects_negative(self):
        with pytest.raises(ValidationError):
            require_rate(-1)

    def test_compounding_periods(self):
        assert Compounding.DAILY.periods_per_year == 365
        assert Compounding.WEEKLY.periods_per_year == 52
        assert Compounding.MONTHLY.periods_per_year == 12
        assert Compounding.QUARTERLY.periods_per_year == 4
        assert Compounding.ANNUALLY.periods_per_year == 1
        assert Compounding.CONTINUOUS.periods_per_year is None

    def test_compounding_from_string(self):
        assert Compounding("monthly") is Compounding.MONTHLY


# ============================================================================
# LOAN TERM
# ============================================================================

class TestLoanTerm:
    """Tests for LoanTerm."""

    def test_derived_fields(self):
        term = LoanTerm(principal=1000, rate_bps=500, duration_seconds=2 * SECONDS_PER_DAY, start_timestamp=100)
        assert term.due_timestamp == 100 + 2 * SECONDS_PER_DAY
        assert term.duration_days == Decimal(2)

    def test_zero_principal_rejected(self):
        with pytest.raises(ValidationError, match="principal"):
            LoanTerm(principal=0, rate_bps=500, duration_seconds=SECONDS_PER_YEAR)

    def test_zero_duration_rejected(self):
        with pytest.raises(ValidationError, match="duration_seconds"):
            LoanTerm(principal=1000, rate_bps=500, duration_seconds=0)

    def test_negative_rate_rejected(self):
        with pytest.raises(ValidationError):
            LoanTerm(principal=1000, rate_bps=-5, duration_seconds=100)

    def test_principal_coerced_from_string(self):
        term = LoanTerm(principal="5000", rate_bps=0, duration_seconds=1)
        assert term.principal == 5000

    def test_frozen(self, standard_term):
        with pytest.raises(FrozenInstanceError):
            standard_term.principal = 1

    def test_with_changes_returns_new_term(self, standard_term):
        changed = standard_term.with_changes(rate_bps=2000)
        assert changed.rate_bps == 2000
        assert standard_term.rate_bps == 1000
        assert changed.principal == standard_term.principal

    def test_with_changes_validates(self, standard_term):
        with pytest.raises(ValidationError):
            standard_term.with_changes(duration_seconds=0)


# ============================================================================
# CONFIG PRESETS
# ============================================================================

class TestConfigPreset:
    """Tests for with_overrides on config dataclasses."""

    def test_keyword_override(self):
        strict = DEFAULT_PENALTY_CONFIG.with_overrides(grace_period_days=0)
        assert strict.grace_period_days == 0
        assert DEFAULT_PENALTY_CONFIG.grace_period_days == 3

    def test_mapping_override(self):
        custom = DEFAULT_PENALTY_CONFIG.with_overrides({"base_fee_percent": 2})
        assert custom.base_fee_percent == Decimal(2)

    def test_unknown_field_rejected(self):
        with pytest.raises(ValidationError, match="unknown"):
            DEFAULT_PENALTY_CONFIG.with_overrides(grace_days=1)
