"""
Core types and pure helpers for the loan calculation engine.

This module provides the foundational data structures every other module uses:
1. Constants: time units, basis-point denominator
2. Exceptions: LoanMathError and ValidationError
3. Amount helpers: integer smallest-unit arithmetic with explicit rounding
4. Rate helpers: basis point <-> percent conversion, compounding frequencies
5. LoanTerm: immutable loan parameters
6. ConfigPreset: immutable configuration with override-by-merge

ROUNDING POLICY
===============
Amounts are Python ints (arbitrary precision) counting the smallest currency
unit. They are never floats. Every operation that can lose precision rounds
toward zero (ROUND_DOWN). Amounts are non-negative, so this is the same as
floor division. The one exception is a minimum the caller must reach
(required collateral), which rounds up via round_up().

All Decimal arithmetic runs inside decimal.localcontext() so that nothing in
this package changes the process-wide Decimal context.
"""

from __future__ import annotations
from dataclasses import dataclass, fields, replace
from decimal import Decimal, ROUND_CEILING, ROUND_DOWN, ROUND_HALF_UP, InvalidOperation, localcontext
from enum import Enum
import logging
from typing import Any, Mapping, Optional, Union

logger = logging.getLogger(__name__)


# ============================================================================
# CONSTANTS
# ============================================================================

SECONDS_PER_DAY = 86400
SECONDS_PER_HOUR = 3600

# Fixed 365-day year. Leap years are deliberately ignored so that the same
# duration always accrues the same interest.
DAYS_PER_YEAR = 365
HOURS_PER_YEAR = DAYS_PER_YEAR * 24
SECONDS_PER_YEAR = DAYS_PER_YEAR * SECONDS_PER_DAY

# 1 bp = 0.01%, 10_000 bps = 100%
BPS_DENOMINATOR = 10_000
BPS_PER_PERCENT = 100

# Working precision for intermediate Decimal arithmetic. Wide enough for
# 18-decimal token amounts multiplied by rates and durations.
DECIMAL_PRECISION = 80


# Type aliases
Amount = int   # smallest currency unit, >= 0
Rate = int     # basis points, >= 0
Numeric = Union[int, Decimal, str]


# ============================================================================
# EXCEPTIONS
# ============================================================================

class LoanMathError(Exception):
    """Base exception for the calculation engine."""
    pass


class ValidationError(LoanMathError, ValueError):
    """Malformed or out-of-domain input. Raised before any computation."""

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.field = field


def reject(field: str, message: str) -> ValidationError:
    """Log and build a ValidationError for `field`. Callers raise the result."""
    logger.debug("rejected input", extra={"field": field, "reason": message})
    return ValidationError(message, field=field)


# ============================================================================
# AMOUNT HELPERS
# ============================================================================

def to_amount(value: Any, field: str = "amount") -> Amount:
    """
    Convert a value to a validated Amount.

    Accepts int, integral Decimal, or a string of digits. Floats are rejected
    outright: binary floating point cannot represent token amounts exactly.

    Raises:
        ValidationError: if value is a float, bool, negative, or fractional.
    """
    if isinstance(value, bool) or isinstance(value, float):
        raise reject(field, f"{field} must be an integer amount, got {type(value).__name__}")
    if isinstance(value, int):
        result = value
    elif isinstance(value, Decimal):
        if not value.is_finite() or value != value.to_integral_value():
            raise reject(field, f"{field} must be a whole number of units, got {value}")
        result = int(value)
    elif isinstance(value, str):
        text = value.strip()
        if not text.isdigit():
            raise reject(field, f"{field} must be a string of digits, got {value!r}")
        result = int(text)
    else:
        raise reject(field, f"{field} must be an integer amount, got {type(value).__name__}")

    if result < 0:
        raise reject(field, f"{field} cannot be negative, got {result}")
    return result


def to_decimal(value: Any, field: str = "value") -> Decimal:
    """Convert int/str/float/Decimal to a finite Decimal (floats via str())."""
    if isinstance(value, bool):
        raise reject(field, f"{field} must be numeric, got bool")
    if isinstance(value, Decimal):
        result = value
    else:
        try:
            result = Decimal(str(value))
        except InvalidOperation:
            raise reject(field, f"{field} must be numeric, got {value!r}") from None
    if not result.is_finite():
        raise reject(field, f"{field} must be finite, got {value!r}")
    return result


def require_non_negative_int(value: Any, field: str) -> int:
    """Validate a count, timestamp or duration: int, not bool, >= 0."""
    if isinstance(value, bool) or not isinstance(value, int):
        raise reject(field, f"{field} must be an integer, got {type(value).__name__}")
    if value < 0:
        raise reject(field, f"{field} cannot be negative, got {value}")
    return value


def require_positive_int(value: Any, field: str) -> int:
    """Validate a period or installment count: int, not bool, > 0."""
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        raise reject(field, f"{field} must be a positive integer, got {value!r}")
    return value


def require_rate(rate_bps: Any, field: str = "rate_bps") -> Rate:
    """Validate a basis-point rate. Rates above 10_000 (100%) are allowed."""
    if isinstance(rate_bps, bool) or not isinstance(rate_bps, int):
        raise reject(field, f"{field} must be an integer number of basis points")
    if rate_bps < 0:
        raise reject(field, f"{field} cannot be negative, got {rate_bps}")
    return rate_bps


def mul_div_down(a: int, b: int, c: int) -> Amount:
    """
    Compute a * b / c rounded toward zero, exactly.

    All operands are integers, so no precision is lost before the single
    final truncation.
    """
    if c <= 0:
        raise reject("divisor", f"divisor must be positive, got {c}")
    if a < 0 or b < 0:
        raise reject("operand", "mul_div_down operands must be non-negative")
    return (a * b) // c


def round_down(value: Decimal) -> Amount:
    """Truncate a non-negative Decimal to an Amount."""
    if value < 0:
        raise reject("value", f"cannot convert negative value {value} to an amount")
    with localcontext() as ctx:
        ctx.prec = DECIMAL_PRECISION
        return int(value.to_integral_value(rounding=ROUND_DOWN))


def round_up(value: Decimal) -> Amount:
    """
    Ceiling of a non-negative Decimal as an Amount.

    Only for minimums the caller must meet (required collateral); amounts
    paid out or owed always go through round_down().
    """
    if value < 0:
        raise reject("value", f"cannot convert negative value {value} to an amount")
    with localcontext() as ctx:
        ctx.prec = DECIMAL_PRECISION
        return int(value.to_integral_value(rounding=ROUND_CEILING))


def scale_down(amount: Amount, factor: Decimal) -> Amount:
    """
    Multiply an Amount by a non-negative Decimal factor, truncating.

    This is the single entry point through which fractional factors
    (growth factors, percentages, multipliers) are applied to amounts.
    """
    if factor < 0:
        raise reject("factor", f"scale factor cannot be negative, got {factor}")
    with localcontext() as ctx:
        ctx.prec = DECIMAL_PRECISION
        return round_down(Decimal(amount) * factor)


def apply_bps(amount: Amount, bps: Rate) -> Amount:
    """amount * bps / 10_000, truncated."""
    return mul_div_down(amount, bps, BPS_DENOMINATOR)


def apply_percent(amount: Amount, percent: Numeric) -> Amount:
    """amount * percent / 100, truncated. Percent may be fractional (0.1)."""
    percent = to_decimal(percent, "percent")
    with localcontext() as ctx:
        ctx.prec = DECIMAL_PRECISION
        return scale_down(amount, percent / Decimal(100))


# ============================================================================
# RATE HELPERS
# ============================================================================

def bps_to_percent(bps: Rate) -> Decimal:
    """Basis points to percent. Exact: 1050 -> Decimal('10.5')."""
    with localcontext() as ctx:
        ctx.prec = DECIMAL_PRECISION
        return Decimal(bps) / Decimal(BPS_PER_PERCENT)


def percent_to_bps(percent: Numeric) -> Rate:
    """Percent to basis points, rounded to the nearest bp (half up)."""
    percent = to_decimal(percent, "percent")
    with localcontext() as ctx:
        ctx.prec = DECIMAL_PRECISION
        return int((percent * BPS_PER_PERCENT).to_integral_value(rounding=ROUND_HALF_UP))


def round_half_up(value: Decimal, places: int = 0) -> Decimal:
    """Round to `places` decimals, half away from zero."""
    exponent = Decimal(1).scaleb(-places)
    with localcontext() as ctx:
        ctx.prec = DECIMAL_PRECISION
        return value.quantize(exponent, rounding=ROUND_HALF_UP)


class Compounding(str, Enum):
    """Compounding frequency used by compound interest and APR/APY conversion."""
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    QUARTERLY = "quarterly"
    ANNUALLY = "annually"
    CONTINUOUS = "continuous"

    @property
    def periods_per_year(self) -> Optional[int]:
        """Compounding periods per year; None for continuous compounding."""
        return _PERIODS_PER_YEAR[self]


_PERIODS_PER_YEAR = {
    Compounding.DAILY: DAYS_PER_YEAR,
    Compounding.WEEKLY: 52,
    Compounding.MONTHLY: 12,
    Compounding.QUARTERLY: 4,
    Compounding.ANNUALLY: 1,
    Compounding.CONTINUOUS: None,
}


# ============================================================================
# LOAN TERM
# ============================================================================

@dataclass(frozen=True, slots=True)
class LoanTerm:
    """
    Immutable loan parameters, fixed at loan-request time.

    Values arrive from the settlement layer as already-parsed integers.
    Changing terms means building a new LoanTerm via with_changes().
    """
    principal: Amount
    rate_bps: Rate
    duration_seconds: int
    start_timestamp: int = 0

    def __post_init__(self):
        object.__setattr__(self, 'principal', to_amount(self.principal, "principal"))
        require_rate(self.rate_bps)
        require_non_negative_int(self.duration_seconds, "duration_seconds")
        require_non_negative_int(self.start_timestamp, "start_timestamp")
        if self.principal == 0:
            raise reject("principal", "principal must be positive")
        if self.duration_seconds == 0:
            raise reject("duration_seconds", "duration_seconds must be positive")

    @property
    def due_timestamp(self) -> int:
        return self.start_timestamp + self.duration_seconds

    @property
    def duration_days(self) -> Decimal:
        with localcontext() as ctx:
            ctx.prec = DECIMAL_PRECISION
            return Decimal(self.duration_seconds) / Decimal(SECONDS_PER_DAY)

    def with_changes(self, **changes: Any) -> LoanTerm:
        """Return a new LoanTerm with the given fields replaced."""
        return replace(self, **changes)


# ============================================================================
# CONFIGURATION PRESETS
# ============================================================================

class ConfigPreset:
    """
    Mixin for frozen configuration dataclasses.

    Each config module exposes an immutable DEFAULT_* instance. Callers derive
    variants with with_overrides() instead of mutating shared state:

        strict = DEFAULT_PENALTY_CONFIG.with_overrides(grace_period_days=0)
        custom = DEFAULT_LIMITS.with_overrides({"max_loan_amount": 50})
    """
    __slots__ = ()

    def with_overrides(self, partial: Optional[Mapping[str, Any]] = None, **changes: Any):
        merged = dict(partial or {})
        merged.update(changes)
        known = {f.name for f in fields(self)}
        unknown = sorted(set(merged) - known)
        if unknown:
            raise reject(
                "overrides",
                f"unknown {type(self).__name__} field(s): {', '.join(unknown)}",
            )
        return replace(self, **merged)


def coerce_decimal_fields(instance: Any, *names: str) -> None:
    """Convert the named fields of a frozen dataclass to Decimal in place."""
    for name in names:
        value = getattr(instance, name)
        if not isinstance(value, Decimal):
            object.__setattr__(instance, name, to_decimal(value, name))
