"""
interest.py - Interest accrual and rate conversion

Key Formulas:
    simple      = principal * rate_bps * seconds / (10_000 * SECONDS_PER_YEAR)
    compound    = principal * ((1 + r/n)^(n*t) - 1)
    continuous  = principal * (e^(r*t) - 1)
    APY         = (1 + APR/n)^n - 1          (e^APR - 1 when continuous)
    APR         = n * ((1 + APY)^(1/n) - 1)  (ln(1 + APY) when continuous)

Simple interest is exact integer arithmetic with a single truncation.
Compound and continuous interest go through the realmath bridge and are
truncated to an Amount. Rate conversions return whole basis points rounded
half up.

A year is always 365 days (SECONDS_PER_YEAR). Leap years are ignored.
"""

from __future__ import annotations
from decimal import Decimal, localcontext
from enum import Enum

from .core import (
    Amount, Rate, Numeric, LoanTerm, Compounding,
    BPS_DENOMINATOR, DAYS_PER_YEAR, HOURS_PER_YEAR, SECONDS_PER_DAY, SECONDS_PER_YEAR,
    DECIMAL_PRECISION,
    bps_to_percent, percent_to_bps,
    mul_div_down, scale_down, round_half_up, reject,
    to_amount, to_decimal, require_rate, require_non_negative_int, require_positive_int,
)
from . import realmath


class InterestModel(str, Enum):
    SIMPLE = "simple"
    COMPOUND = "compound"
    CONTINUOUS = "continuous"


# ============================================================================
# INTERNAL HELPERS
# ============================================================================

def _rate_fraction(rate_bps: Rate) -> Decimal:
    with localcontext() as ctx:
        ctx.prec = DECIMAL_PRECISION
        return Decimal(rate_bps) / Decimal(BPS_DENOMINATOR)


def _years(duration_seconds: int) -> Decimal:
    with localcontext() as ctx:
        ctx.prec = DECIMAL_PRECISION
        return Decimal(duration_seconds) / Decimal(SECONDS_PER_YEAR)


def _fraction_to_bps(fraction: Decimal) -> Rate:
    return int(round_half_up(fraction * BPS_DENOMINATOR))


def _validate(principal, rate_bps, duration_seconds):
    return (
        to_amount(principal, "principal"),
        require_rate(rate_bps),
        require_non_negative_int(duration_seconds, "duration_seconds"),
    )


# ============================================================================
# INTEREST ACCRUAL
# ============================================================================

def simple_interest(principal: Amount, rate_bps: Rate, duration_seconds: int) -> Amount:
    """
    Simple interest, truncated toward zero.

    Example:
        simple_interest(10**18, 1000, SECONDS_PER_YEAR)  # 10**17 (10% of one token)
    """
    principal, rate_bps, duration_seconds = _validate(principal, rate_bps, duration_seconds)
    if duration_seconds == 0:
        return 0
    return mul_div_down(principal * rate_bps, duration_seconds, BPS_DENOMINATOR * SECONDS_PER_YEAR)


def compound_interest(
    principal: Amount,
    rate_bps: Rate,
    duration_seconds: int,
    periods_per_year: int = DAYS_PER_YEAR,
) -> Amount:
    """
    Compound interest with `periods_per_year` compounding periods.

    Raises:
        ValidationError: if periods_per_year is not positive.
    """
    principal, rate_bps, duration_seconds = _validate(principal, rate_bps, duration_seconds)
    require_positive_int(periods_per_year, "periods_per_year")
    if duration_seconds == 0 or rate_bps == 0:
        return 0
    factor = realmath.growth(_rate_fraction(rate_bps), periods_per_year, _years(duration_seconds))
    return scale_down(principal, factor)


def continuous_interest(principal: Amount, rate_bps: Rate, duration_seconds: int) -> Amount:
    """Continuously compounded interest: principal * (e^(r*t) - 1), truncated."""
    principal, rate_bps, duration_seconds = _validate(principal, rate_bps, duration_seconds)
    if duration_seconds == 0 or rate_bps == 0:
        return 0
    factor = realmath.growth(_rate_fraction(rate_bps), None, _years(duration_seconds))
    return scale_down(principal, factor)


def total_interest(
    principal: Amount,
    rate_bps: Rate,
    duration_seconds: int,
    model: InterestModel = InterestModel.SIMPLE,
) -> Amount:
    """Interest for the whole duration under the chosen model (daily compounding for COMPOUND)."""
    model = InterestModel(model)
    if model is InterestModel.COMPOUND:
        return compound_interest(principal, rate_bps, duration_seconds)
    if model is InterestModel.CONTINUOUS:
        return continuous_interest(principal, rate_bps, duration_seconds)
    return simple_interest(principal, rate_bps, duration_seconds)


def total_repayment(principal: Amount, rate_bps: Rate, duration_seconds: int) -> Amount:
    """Principal plus simple interest."""
    return to_amount(principal, "principal") + simple_interest(principal, rate_bps, duration_seconds)


def daily_interest(principal: Amount, rate_bps: Rate) -> Amount:
    """Simple interest accrued over one day."""
    return simple_interest(principal, rate_bps, SECONDS_PER_DAY)


def accrued_interest(term: LoanTerm, now: int) -> Amount:
    """
    Simple interest accrued from the term's start up to `now`.

    Accrual keeps running past the due date; before the start it is zero.
    """
    require_non_negative_int(now, "now")
    elapsed = max(0, now - term.start_timestamp)
    return simple_interest(term.principal, term.rate_bps, elapsed)


# ============================================================================
# RATE SCALING (linear, unit-agnostic)
# ============================================================================

def annual_to_daily_rate(annual_rate: Numeric) -> Decimal:
    """Annual rate / 365, in whatever unit the input uses (percent or bps)."""
    with localcontext() as ctx:
        ctx.prec = DECIMAL_PRECISION
        return to_decimal(annual_rate, "annual_rate") / DAYS_PER_YEAR


def daily_to_annual_rate(daily_rate: Numeric) -> Decimal:
    with localcontext() as ctx:
        ctx.prec = DECIMAL_PRECISION
        return to_decimal(daily_rate, "daily_rate") * DAYS_PER_YEAR


def annual_to_hourly_rate(annual_rate: Numeric) -> Decimal:
    with localcontext() as ctx:
        ctx.prec = DECIMAL_PRECISION
        return to_decimal(annual_rate, "annual_rate") / HOURS_PER_YEAR


# ============================================================================
# APR / APY
# ============================================================================

def apr_to_apy(apr_bps: Rate, compounding: Compounding = Compounding.DAILY) -> Rate:
    """
    Nominal annual rate to effective annual yield, in basis points.

    Example:
        apr_to_apy(1000, Compounding.MONTHLY)  # 1047 (10% APR -> 10.47% APY)
    """
    require_rate(apr_bps, "apr_bps")
    compounding = Compounding(compounding)
    if apr_bps == 0:
        return 0
    apy = realmath.growth(_rate_fraction(apr_bps), compounding.periods_per_year, Decimal(1))
    return _fraction_to_bps(apy)


def apy_to_apr(apy_bps: Rate, compounding: Compounding = Compounding.DAILY) -> Rate:
    """Effective annual yield to nominal annual rate, in basis points."""
    require_rate(apy_bps, "apy_bps")
    compounding = Compounding(compounding)
    if apy_bps == 0:
        return 0
    apr = realmath.root_rate(_rate_fraction(apy_bps), compounding.periods_per_year)
    return _fraction_to_bps(apr)


def periodic_to_effective_rate_bps(periodic_bps: Rate, periods_per_year: int) -> Rate:
    """Rate per period compounded over a year: (1 + p)^n - 1."""
    require_rate(periodic_bps, "periodic_bps")
    require_positive_int(periods_per_year, "periods_per_year")
    effective = realmath.power_growth(_rate_fraction(periodic_bps), Decimal(periods_per_year))
    return _fraction_to_bps(effective)


def effective_to_periodic_rate_bps(effective_bps: Rate, periods_per_year: int) -> Rate:
    """Per-period rate that compounds to `effective_bps` over a year: (1 + e)^(1/n) - 1."""
    require_rate(effective_bps, "effective_bps")
    require_positive_int(periods_per_year, "periods_per_year")
    nominal = realmath.root_rate(_rate_fraction(effective_bps), periods_per_year)
    with localcontext() as ctx:
        ctx.prec = DECIMAL_PRECISION
        return _fraction_to_bps(nominal / periods_per_year)


def real_rate_bps(nominal_bps: Rate, inflation_bps: Rate) -> int:
    """
    Inflation-adjusted rate: (1 + nominal) / (1 + inflation) - 1.

    Returns signed basis points; negative when inflation exceeds the nominal rate.
    """
    require_rate(nominal_bps, "nominal_bps")
    require_rate(inflation_bps, "inflation_bps")
    with localcontext() as ctx:
        ctx.prec = DECIMAL_PRECISION
        real = (1 + _rate_fraction(nominal_bps)) / (1 + _rate_fraction(inflation_bps)) - 1
        return _fraction_to_bps(real)


def _annualized_bps(cost: int, principal: Amount, duration_seconds: int) -> Rate:
    with localcontext() as ctx:
        ctx.prec = DECIMAL_PRECISION
        return _fraction_to_bps(Decimal(cost) / Decimal(principal) / _years(duration_seconds))


def effective_rate_bps(principal: Amount, rate_bps: Rate, fees: Amount, duration_seconds: int) -> Rate:
    """Annualized cost of borrowing including up-front fees."""
    principal, rate_bps, duration_seconds = _validate(principal, rate_bps, duration_seconds)
    fees = to_amount(fees, "fees")
    if principal == 0:
        raise reject("principal", "principal must be positive")
    if duration_seconds == 0:
        raise reject("duration_seconds", "duration_seconds must be positive")
    interest = simple_interest(principal, rate_bps, duration_seconds)
    return _annualized_bps(interest + fees, principal, duration_seconds)


def required_rate_bps(principal: Amount, target_return: Amount, duration_seconds: int) -> Rate:
    """Simple annual rate that earns `target_return` on `principal` over the duration."""
    principal = to_amount(principal, "principal")
    target_return = to_amount(target_return, "target_return")
    require_non_negative_int(duration_seconds, "duration_seconds")
    if principal == 0:
        raise reject("principal", "principal must be positive")
    if duration_seconds == 0:
        raise reject("duration_seconds", "duration_seconds must be positive")
    return _annualized_bps(target_return, principal, duration_seconds)


def compound_yield(principal: Amount, apy_bps: Rate, duration_seconds: int) -> Amount:
    """Earnings on `principal` at an effective annual yield over a fractional year count."""
    principal, apy_bps, duration_seconds = _validate(principal, apy_bps, duration_seconds)
    if duration_seconds == 0 or apy_bps == 0:
        return 0
    return scale_down(principal, realmath.power_growth(_rate_fraction(apy_bps), _years(duration_seconds)))


__all__ = [
    'InterestModel',
    'simple_interest', 'compound_interest', 'continuous_interest',
    'total_interest', 'total_repayment', 'daily_interest', 'accrued_interest',
    'annual_to_daily_rate', 'daily_to_annual_rate', 'annual_to_hourly_rate',
    'bps_to_percent', 'percent_to_bps',
    'apr_to_apy', 'apy_to_apr',
    'periodic_to_effective_rate_bps', 'effective_to_periodic_rate_bps',
    'real_rate_bps', 'effective_rate_bps', 'required_rate_bps', 'compound_yield',
]
