"""
thresholds.py - Loan limit checks

Limit checks report every violation instead of raising, so a caller can
show all problems with a request at once. ThresholdViolation is data, not
an exception.

Per-loan checks (amount, duration, rate) and portfolio checks (active loans,
total exposure) are independent: check_all_thresholds() covers only the
per-loan fields; combine with ThresholdCheck.merge() when both are needed.

Values here are in display units (whole tokens, days, percent), the same
units a loan request form uses.
"""

from __future__ import annotations
from dataclasses import dataclass
from decimal import Decimal, localcontext
from enum import Enum
import logging
from typing import Tuple

from .core import (
    Numeric, ConfigPreset, LoanTerm, DECIMAL_PRECISION,
    bps_to_percent, coerce_decimal_fields, round_half_up, reject,
    to_decimal, require_non_negative_int,
)

logger = logging.getLogger(__name__)


class ViolationType(str, Enum):
    MIN = "min"
    MAX = "max"


# ============================================================================
# CONFIGURATION
# ============================================================================

@dataclass(frozen=True, slots=True)
class LimitConfig(ConfigPreset):
    min_loan_amount: Decimal = Decimal("0.001")
    max_loan_amount: Decimal = Decimal(1000)
    min_duration_days: Decimal = Decimal(1)
    max_duration_days: Decimal = Decimal(365)
    min_interest_rate: Decimal = Decimal("0.01")
    max_interest_rate: Decimal = Decimal(100)
    max_active_loans: int = 10
    max_total_exposure: Decimal = Decimal(10_000)

    def __post_init__(self):
        coerce_decimal_fields(
            self, 'min_loan_amount', 'max_loan_amount', 'min_duration_days', 'max_duration_days',
            'min_interest_rate', 'max_interest_rate', 'max_total_exposure',
        )
        require_non_negative_int(self.max_active_loans, "max_active_loans")
        for lo, hi in (('min_loan_amount', 'max_loan_amount'),
                       ('min_duration_days', 'max_duration_days'),
                       ('min_interest_rate', 'max_interest_rate')):
            if getattr(self, lo) > getattr(self, hi):
                raise reject(lo, f"{lo} cannot exceed {hi}")
        if self.max_total_exposure <= 0:
            raise reject("max_total_exposure", "max_total_exposure must be positive")


DEFAULT_LIMITS = LimitConfig()


# ============================================================================
# RESULTS
# ============================================================================

@dataclass(frozen=True, slots=True)
class ThresholdViolation:
    field: str
    value: Decimal
    limit: Decimal
    type: ViolationType
    message: str


@dataclass(frozen=True, slots=True)
class ThresholdCheck:
    violations: Tuple[ThresholdViolation, ...] = ()

    @property
    def passed(self) -> bool:
        return not self.violations

    @property
    def messages(self) -> Tuple[str, ...]:
        return tuple(v.message for v in self.violations)

    def merge(self, *others: ThresholdCheck) -> ThresholdCheck:
        violations = list(self.violations)
        for other in others:
            violations.extend(other.violations)
        return ThresholdCheck(tuple(violations))


@dataclass(frozen=True, slots=True)
class LoanParameters:
    amount: Decimal
    duration_days: Decimal
    interest_rate: Decimal   # percent

    def __post_init__(self):
        coerce_decimal_fields(self, 'amount', 'duration_days', 'interest_rate')


# ============================================================================
# RANGE HELPERS
# ============================================================================

def is_within_range(value: Numeric, minimum: Numeric, maximum: Numeric) -> bool:
    value = to_decimal(value, "value")
    return to_decimal(minimum, "minimum") <= value <= to_decimal(maximum, "maximum")


def clamp_to_range(value: Numeric, minimum: Numeric, maximum: Numeric) -> Decimal:
    minimum = to_decimal(minimum, "minimum")
    maximum = to_decimal(maximum, "maximum")
    if minimum > maximum:
        raise reject("minimum", f"minimum {minimum} exceeds maximum {maximum}")
    return min(maximum, max(minimum, to_decimal(value, "value")))


def _range_check(field: str, value: Decimal, minimum: Decimal, maximum: Decimal,
                 min_message: str, max_message: str) -> ThresholdCheck:
    violations = []
    if value < minimum:
        violations.append(ThresholdViolation(field, value, minimum, ViolationType.MIN, min_message))
    if value > maximum:
        violations.append(ThresholdViolation(field, value, maximum, ViolationType.MAX, max_message))
    return ThresholdCheck(tuple(violations))


# ============================================================================
# PER-LOAN CHECKS
# ============================================================================

def check_amount_threshold(amount: Numeric, config: LimitConfig = DEFAULT_LIMITS) -> ThresholdCheck:
    return _range_check(
        "amount", to_decimal(amount, "amount"), config.min_loan_amount, config.max_loan_amount,
        f"Amount must be at least {config.min_loan_amount}",
        f"Amount cannot exceed {config.max_loan_amount}",
    )


def check_duration_threshold(duration_days: Numeric, config: LimitConfig = DEFAULT_LIMITS) -> ThresholdCheck:
    return _range_check(
        "duration", to_decimal(duration_days, "duration_days"),
        config.min_duration_days, config.max_duration_days,
        f"Duration must be at least {config.min_duration_days} day(s)",
        f"Duration cannot exceed {config.max_duration_days} days",
    )


def check_interest_rate_threshold(rate: Numeric, config: LimitConfig = DEFAULT_LIMITS) -> ThresholdCheck:
    return _range_check(
        "interest_rate", to_decimal(rate, "interest_rate"),
        config.min_interest_rate, config.max_interest_rate,
        f"Interest rate must be at least {config.min_interest_rate}%",
        f"Interest rate cannot exceed {config.max_interest_rate}%",
    )


def check_all_thresholds(params: LoanParameters, config: LimitConfig = DEFAULT_LIMITS) -> ThresholdCheck:
    """
    Run the amount, duration and rate checks and concatenate their violations.

    Every check runs even after an earlier one fails.
    """
    check = check_amount_threshold(params.amount, config).merge(
        check_duration_threshold(params.duration_days, config),
        check_interest_rate_threshold(params.interest_rate, config),
    )
    if not check.passed:
        logger.info(
            "loan parameters outside limits",
            extra={"fields": [v.field for v in check.violations], "violation_count": len(check.violations)},
        )
    return check


# ============================================================================
# PORTFOLIO CHECKS
# ============================================================================

def check_active_loans_limit(active_loans: int, config: LimitConfig = DEFAULT_LIMITS) -> ThresholdCheck:
    """Fails once the borrower already holds max_active_loans (no room for another)."""
    require_non_negative_int(active_loans, "active_loans")
    if active_loans < config.max_active_loans:
        return ThresholdCheck()
    return ThresholdCheck((ThresholdViolation(
        "active_loans", Decimal(active_loans), Decimal(config.max_active_loans), ViolationType.MAX,
        f"Maximum {config.max_active_loans} active loans allowed",
    ),))


def check_exposure_limit(current_exposure: Numeric, new_loan_amount: Numeric,
                         config: LimitConfig = DEFAULT_LIMITS) -> ThresholdCheck:
    total = to_decimal(current_exposure, "current_exposure") + to_decimal(new_loan_amount, "new_loan_amount")
    if total <= config.max_total_exposure:
        return ThresholdCheck()
    return ThresholdCheck((ThresholdViolation(
        "exposure", total, config.max_total_exposure, ViolationType.MAX,
        f"Total exposure cannot exceed {config.max_total_exposure}",
    ),))


def remaining_capacity(current_exposure: Numeric, config: LimitConfig = DEFAULT_LIMITS) -> Decimal:
    return max(Decimal(0), config.max_total_exposure - to_decimal(current_exposure, "current_exposure"))


def utilization(current_exposure: Numeric, config: LimitConfig = DEFAULT_LIMITS) -> Decimal:
    """Exposure as a percent of the limit, rounded half up to 2 decimals. May exceed 100."""
    with localcontext() as ctx:
        ctx.prec = DECIMAL_PRECISION
        ratio = to_decimal(current_exposure, "current_exposure") * 100 / config.max_total_exposure
    return round_half_up(ratio, 2)


def loan_parameters_from_term(term: LoanTerm, decimals: int = 18) -> LoanParameters:
    """Convert integer loan terms into the display units the limits are expressed in."""
    require_non_negative_int(decimals, "decimals")
    with localcontext() as ctx:
        ctx.prec = DECIMAL_PRECISION
        amount = Decimal(term.principal) / Decimal(10 ** decimals)
    return LoanParameters(
        amount=amount,
        duration_days=term.duration_days,
        interest_rate=bps_to_percent(term.rate_bps),
    )


__all__ = [
    'ViolationType', 'LimitConfig', 'DEFAULT_LIMITS',
    'ThresholdViolation', 'ThresholdCheck', 'LoanParameters',
    'is_within_range', 'clamp_to_range',
    'check_amount_threshold', 'check_duration_threshold', 'check_interest_rate_threshold',
    'check_all_thresholds', 'check_active_loans_limit', 'check_exposure_limit',
    'remaining_capacity', 'utilization', 'loan_parameters_from_term',
]
