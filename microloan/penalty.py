"""
penalty.py - Late fees for overdue repayments

Days late move a loan through four zones:

    none      on time (days_late == 0)
    grace     late but within the grace period, no fee
    warning   fees accrue daily, escalating with time
    critical  beyond critical_after_days; maximum fees apply or are imminent

Fee calculation (defaults shown):

    effective_days = days_late - grace_period_days           (grace = 3)
    level          = number of escalation thresholds crossed  (7, 14, 30, 60)
    multiplier     = escalation_multipliers[level]             (1, 1.5, 2, 2.5, 3)
    base           = principal * 5%
    escalated      = principal * 0.1% * effective_days * multiplier
    total          = min(base + escalated, principal * 25%)

Each component is truncated to a whole Amount. The result is always
recomputed from (principal, due_timestamp, now, config) and never stored.
`now` is always passed in; nothing here reads the clock.
"""

from __future__ import annotations
from dataclasses import dataclass
from decimal import Decimal, localcontext
from enum import Enum
from typing import Tuple

from .core import (
    Amount, ConfigPreset, SECONDS_PER_DAY, DECIMAL_PRECISION,
    apply_percent, coerce_decimal_fields, mul_div_down, scale_down, reject,
    to_amount, to_decimal, require_non_negative_int,
)


class PenaltyZone(str, Enum):
    NONE = "none"
    GRACE = "grace"
    WARNING = "warning"
    CRITICAL = "critical"


# ============================================================================
# CONFIGURATION
# ============================================================================

@dataclass(frozen=True, slots=True)
class PenaltyConfig(ConfigPreset):
    """
    Late-fee schedule. Percent fields are percents (5 means 5%).

    escalation_multipliers has one more entry than escalation_thresholds:
    index 0 applies before the first threshold is crossed. A level past the
    end of the multipliers uses the last one.
    """
    base_fee_percent: Decimal = Decimal(5)
    daily_fee_percent: Decimal = Decimal("0.1")
    max_penalty_percent: Decimal = Decimal(25)
    grace_period_days: int = 3
    escalation_thresholds: Tuple[int, ...] = (7, 14, 30, 60)
    escalation_multipliers: Tuple[Decimal, ...] = (
        Decimal(1), Decimal("1.5"), Decimal(2), Decimal("2.5"), Decimal(3),
    )
    critical_after_days: int = 14
    max_waivers: int = 1
    waiver_window_days: int = 7

    def __post_init__(self):
        coerce_decimal_fields(self, 'base_fee_percent', 'daily_fee_percent', 'max_penalty_percent')
        for name in ('base_fee_percent', 'daily_fee_percent', 'max_penalty_percent'):
            if getattr(self, name) < 0:
                raise reject(name, f"{name} cannot be negative")
        for name in ('grace_period_days', 'critical_after_days', 'max_waivers', 'waiver_window_days'):
            require_non_negative_int(getattr(self, name), name)

        thresholds = tuple(self.escalation_thresholds)
        for t in thresholds:
            require_non_negative_int(t, "escalation_thresholds")
        if list(thresholds) != sorted(thresholds):
            raise reject("escalation_thresholds", "escalation_thresholds must be ascending")
        object.__setattr__(self, 'escalation_thresholds', thresholds)

        multipliers = tuple(to_decimal(m, "escalation_multipliers") for m in self.escalation_multipliers)
        if not multipliers:
            raise reject("escalation_multipliers", "at least one escalation multiplier is required")
        if any(m < 0 for m in multipliers):
            raise reject("escalation_multipliers", "escalation multipliers cannot be negative")
        object.__setattr__(self, 'escalation_multipliers', multipliers)

    def multiplier(self, level: int) -> Decimal:
        return self.escalation_multipliers[min(level, len(self.escalation_multipliers) - 1)]


DEFAULT_PENALTY_CONFIG = PenaltyConfig()

PARTIAL_PAYMENT_REDUCTION_SHARE = 2   # half of the proportional penalty is forgiven


# ============================================================================
# RESULTS
# ============================================================================

@dataclass(frozen=True, slots=True)
class PenaltyResult:
    base_penalty: Amount
    escalated_penalty: Amount
    total_penalty: Amount
    days_late: int
    escalation_level: int
    effective_days_late: int = 0

    @property
    def is_capped(self) -> bool:
        return self.total_penalty < self.base_penalty + self.escalated_penalty


@dataclass(frozen=True, slots=True)
class AmountDue:
    principal: Amount
    interest: Amount
    penalty: Amount
    total: Amount


# ============================================================================
# CALCULATIONS
# ============================================================================

def days_late(due_timestamp: int, now: int) -> int:
    """Whole days past due, floored; 0 when not yet due."""
    require_non_negative_int(due_timestamp, "due_timestamp")
    require_non_negative_int(now, "now")
    return max(0, now - due_timestamp) // SECONDS_PER_DAY


def escalation_level(effective_days_late: int, thresholds: Tuple[int, ...] = DEFAULT_PENALTY_CONFIG.escalation_thresholds) -> int:
    """Number of leading thresholds crossed (>=). Stops at the first one not reached."""
    level = 0
    for threshold in thresholds:
        if effective_days_late < threshold:
            break
        level += 1
    return level


def late_fee(
    principal: Amount,
    due_timestamp: int,
    now: int,
    config: PenaltyConfig = DEFAULT_PENALTY_CONFIG,
) -> PenaltyResult:
    """
    Late fee owed at `now` for a repayment due at `due_timestamp`.

    Example:
        late_fee(10**18, T, T + 10 * 86400)
        # days_late=10, effective_days_late=7, escalation_level=1
        # base_penalty=5 * 10**16, escalated_penalty=105 * 10**14
    """
    principal = to_amount(principal, "principal")
    late = days_late(due_timestamp, now)

    if late <= config.grace_period_days:
        return PenaltyResult(0, 0, 0, days_late=late, escalation_level=0)

    effective = late - config.grace_period_days
    level = escalation_level(effective, config.escalation_thresholds)

    base = apply_percent(principal, config.base_fee_percent)
    with localcontext() as ctx:
        ctx.prec = DECIMAL_PRECISION
        factor = config.daily_fee_percent * effective * config.multiplier(level) / Decimal(100)
    escalated = scale_down(principal, factor)
    cap = apply_percent(principal, config.max_penalty_percent)

    return PenaltyResult(
        base_penalty=base,
        escalated_penalty=escalated,
        total_penalty=min(base + escalated, cap),
        days_late=late,
        escalation_level=level,
        effective_days_late=effective,
    )


def penalty_zone(days_late: int, config: PenaltyConfig = DEFAULT_PENALTY_CONFIG) -> PenaltyZone:
    require_non_negative_int(days_late, "days_late")
    if days_late == 0:
        return PenaltyZone.NONE
    if days_late <= config.grace_period_days:
        return PenaltyZone.GRACE
    if days_late <= config.critical_after_days:
        return PenaltyZone.WARNING
    return PenaltyZone.CRITICAL


def total_due_with_penalty(
    principal: Amount,
    interest: Amount,
    due_timestamp: int,
    now: int,
    config: PenaltyConfig = DEFAULT_PENALTY_CONFIG,
) -> AmountDue:
    principal = to_amount(principal, "principal")
    interest = to_amount(interest, "interest")
    penalty = late_fee(principal, due_timestamp, now, config).total_penalty
    return AmountDue(principal, interest, penalty, principal + interest + penalty)


def project_penalty(
    principal: Amount,
    due_timestamp: int,
    now: int,
    future_days: int,
    config: PenaltyConfig = DEFAULT_PENALTY_CONFIG,
) -> PenaltyResult:
    """Late fee as it will stand `future_days` after `now`."""
    require_non_negative_int(future_days, "future_days")
    require_non_negative_int(now, "now")
    return late_fee(principal, due_timestamp, now + future_days * SECONDS_PER_DAY, config)


def can_waive_penalty(days_late: int, previous_waivers: int,
                      config: PenaltyConfig = DEFAULT_PENALTY_CONFIG) -> bool:
    require_non_negative_int(days_late, "days_late")
    require_non_negative_int(previous_waivers, "previous_waivers")
    return days_late <= config.waiver_window_days and previous_waivers < config.max_waivers


def partial_payment_reduction(total_due: Amount, amount_paid: Amount, penalty: Amount) -> Amount:
    """
    Penalty forgiven for a partial payment: half of the penalty, scaled by
    the share of the total due that was paid (capped at 100%).
    """
    total_due = to_amount(total_due, "total_due")
    amount_paid = to_amount(amount_paid, "amount_paid")
    penalty = to_amount(penalty, "penalty")
    if total_due == 0:
        raise reject("total_due", "total_due must be positive")
    return mul_div_down(penalty, min(amount_paid, total_due), PARTIAL_PAYMENT_REDUCTION_SHARE * total_due)


__all__ = [
    'PenaltyZone', 'PenaltyConfig', 'DEFAULT_PENALTY_CONFIG',
    'PenaltyResult', 'AmountDue',
    'days_late', 'escalation_level', 'late_fee', 'penalty_zone',
    'total_due_with_penalty', 'project_penalty', 'can_waive_penalty',
    'partial_payment_reduction',
]
