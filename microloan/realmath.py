"""
realmath.py - Real-number bridge for transcendental rate math

Compound interest, continuous interest and APR/APY conversion need
fractional powers, exponentials and logarithms. This module is the only
place in the package where that math runs. Everything else is integer or
Decimal arithmetic.

Pattern (same as the option pricing code): a private float implementation
built on numpy, wrapped by a Decimal-in / Decimal-out interface.

    rate (Decimal) -> float64 -> numpy log1p/expm1 -> float64 -> Decimal

log1p/expm1 are used instead of pow(1 + r, n) - 1 so that small rates and
short durations do not lose their significant digits to cancellation.

Overflow inside the float kernels is silenced; _to_decimal() turns a
non-finite result into a ValidationError instead.

Results are exact to roughly 15-16 significant digits. Callers convert them
to Amounts only through core.scale_down(), which truncates.
"""

from __future__ import annotations
from decimal import Decimal
from typing import Optional, Union

import numpy as np

from .core import reject


Numeric = Union[float, np.ndarray]


# ============================================================================
# FLOAT IMPLEMENTATIONS
# ============================================================================

def _periodic_growth_float(rate: Numeric, periods_per_year: int, years: Numeric) -> Numeric:
    """(1 + r/n)^(n*t) - 1"""
    n = float(periods_per_year)
    with np.errstate(over="ignore", invalid="ignore"):
        return np.expm1(n * np.asarray(years, dtype=float) * np.log1p(np.asarray(rate, dtype=float) / n))


def _continuous_growth_float(rate: Numeric, years: Numeric) -> Numeric:
    """e^(r*t) - 1"""
    with np.errstate(over="ignore", invalid="ignore"):
        return np.expm1(np.asarray(rate, dtype=float) * np.asarray(years, dtype=float))


def _periodic_root_float(growth: Numeric, periods: int) -> Numeric:
    """n * ((1 + g)^(1/n) - 1)"""
    n = float(periods)
    with np.errstate(over="ignore", invalid="ignore"):
        return n * np.expm1(np.log1p(np.asarray(growth, dtype=float)) / n)


def _continuous_root_float(growth: Numeric) -> Numeric:
    """ln(1 + g)"""
    return np.log1p(np.asarray(growth, dtype=float))


def _to_decimal(result: Numeric) -> Decimal:
    value = float(result)
    if not np.isfinite(value):
        raise reject("rate", "rate calculation overflowed; inputs are out of range")
    return Decimal(str(value))


# ============================================================================
# DECIMAL INTERFACE
# ============================================================================

def growth(rate: Decimal, periods_per_year: Optional[int], years: Decimal) -> Decimal:
    """
    Growth over `years` at annual `rate` (a fraction, 0.10 for 10%).

    periods_per_year=None means continuous compounding.

    Returns:
        (1 + r/n)^(n*t) - 1, or e^(r*t) - 1 when continuous.

    Example:
        growth(Decimal("0.10"), 12, Decimal(1))  # ~0.1047130674
    """
    if rate < 0:
        raise reject("rate", f"rate cannot be negative, got {rate}")
    if years < 0:
        raise reject("years", f"years cannot be negative, got {years}")
    if periods_per_year is None:
        return _to_decimal(_continuous_growth_float(float(rate), float(years)))
    if periods_per_year <= 0:
        raise reject("periods_per_year", f"periods_per_year must be positive, got {periods_per_year}")
    return _to_decimal(_periodic_growth_float(float(rate), periods_per_year, float(years)))


def root_rate(annual_growth: Decimal, periods_per_year: Optional[int]) -> Decimal:
    """
    Inverse of growth() over one year: the nominal annual rate that
    compounds to `annual_growth`.

    Returns:
        n * ((1 + g)^(1/n) - 1), or ln(1 + g) when continuous.
    """
    if annual_growth <= -1:
        raise reject("growth", f"growth must be greater than -100%, got {annual_growth}")
    if periods_per_year is None:
        return _to_decimal(_continuous_root_float(float(annual_growth)))
    if periods_per_year <= 0:
        raise reject("periods_per_year", f"periods_per_year must be positive, got {periods_per_year}")
    return _to_decimal(_periodic_root_float(float(annual_growth), periods_per_year))


def power_growth(rate: Decimal, years: Decimal) -> Decimal:
    """(1 + r)^t - 1 for an effective annual rate r over a fractional year count."""
    return growth(rate, 1, years)
