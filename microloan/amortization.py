"""
amortization.py - Repayment schedule generation

Two schedule shapes:

    FIXED PAYMENT (annuity):
        r       = rate_bps / (10_000 * periods_per_year)
        payment = P * r * (1 + r)^n / ((1 + r)^n - 1)     (P // n when r == 0)
        each period:
            interest  = balance * rate_bps // (10_000 * periods_per_year)
            principal = payment - interest   (clamped to [0, balance])
            balance  -= principal

    LUMP SUM:
        a single entry paying principal + simple interest at the due date.

RECONCILIATION
==============
Payments and interest are truncated to whole units, so the plain walk leaves
a residue of a few units on the balance. The final period always takes the
entire remaining balance as its principal portion (and its payment grows to
match). This guarantees:

    sum(entry.principal) == principal
    entries[-1].remaining_balance == 0
    remaining_balance is non-increasing

Schedule state (which periods are paid) is passed in as a set of period
numbers; entries themselves never change.
"""

from __future__ import annotations
from dataclasses import dataclass
from decimal import Decimal, localcontext
from enum import Enum
from typing import AbstractSet, List, Optional, Sequence, Tuple

from scipy.optimize import brentq

from .core import (
    Amount, Rate, LoanTerm,
    BPS_DENOMINATOR, SECONDS_PER_DAY, SECONDS_PER_YEAR, DECIMAL_PRECISION,
    round_down, round_half_up, reject,
    to_amount, require_rate, require_non_negative_int, require_positive_int,
)
from .interest import simple_interest


# ============================================================================
# DATA TYPES
# ============================================================================

@dataclass(frozen=True, slots=True)
class AmortizationEntry:
    """One period of a repayment schedule. Periods are 1-indexed."""
    period: int
    payment: Amount
    principal: Amount
    interest: Amount
    remaining_balance: Amount
    due_timestamp: Optional[int] = None


@dataclass(frozen=True, slots=True)
class ScheduleSummary:
    total_principal: Amount
    total_interest: Amount
    total_payment: Amount
    number_of_payments: int
    first_due_timestamp: Optional[int]
    final_due_timestamp: Optional[int]


class PaymentFrequency(str, Enum):
    """Installment cadence. Months are 30 days, as in the loan terms UI."""
    WEEKLY = "weekly"
    BIWEEKLY = "biweekly"
    MONTHLY = "monthly"
    LUMP_SUM = "lump_sum"

    @property
    def periods_per_year(self) -> Optional[int]:
        return {"weekly": 52, "biweekly": 26, "monthly": 12, "lump_sum": None}[self.value]

    @property
    def interval_seconds(self) -> int:
        days = {"weekly": 7, "biweekly": 14, "monthly": 30, "lump_sum": 0}[self.value]
        return days * SECONDS_PER_DAY


# ============================================================================
# SCHEDULE GENERATION
# ============================================================================

def _level_payment(principal: Amount, rate_bps: Rate, n: int, periods_per_year: int) -> Amount:
    if rate_bps == 0:
        return principal // n
    with localcontext() as ctx:
        ctx.prec = DECIMAL_PRECISION
        r = Decimal(rate_bps) / Decimal(BPS_DENOMINATOR * periods_per_year)
        compounded = (1 + r) ** n
        return round_down(principal * r * compounded / (compounded - 1))


def _due(start_timestamp: Optional[int], interval_seconds: int, period: int) -> Optional[int]:
    if start_timestamp is None:
        return None
    return start_timestamp + interval_seconds * period


def generate_fixed_payment_schedule(
    principal: Amount,
    rate_bps: Rate,
    number_of_payments: int,
    periods_per_year: int = 12,
    start_timestamp: Optional[int] = None,
    interval_seconds: Optional[int] = None,
) -> List[AmortizationEntry]:
    """
    Level-payment amortization schedule.

    Args:
        principal: Amount borrowed (smallest units, > 0)
        rate_bps: Nominal annual rate in basis points
        number_of_payments: Number of installments (> 0)
        periods_per_year: Installments per year, sets the per-period rate
        start_timestamp: If given, entries carry due timestamps
        interval_seconds: Spacing between due dates (default: one year / periods_per_year)

    Returns:
        Entries for periods 1..n in ascending order. The last entry's
        remaining_balance is exactly 0.

    Raises:
        ValidationError: zero payments, non-positive periods_per_year or principal.

    Example:
        schedule = generate_fixed_payment_schedule(1_000_000, 1200, 12)
        sum(e.principal for e in schedule)  # 1_000_000
    """
    principal = to_amount(principal, "principal")
    require_rate(rate_bps)
    require_non_negative_int(number_of_payments, "number_of_payments")
    if principal == 0:
        raise reject("principal", "principal must be positive")
    if number_of_payments == 0:
        raise reject("number_of_payments", "number_of_payments must be at least 1")
    require_positive_int(periods_per_year, "periods_per_year")
    if start_timestamp is not None:
        require_non_negative_int(start_timestamp, "start_timestamp")
    if interval_seconds is None:
        interval_seconds = SECONDS_PER_YEAR // periods_per_year
    require_non_negative_int(interval_seconds, "interval_seconds")

    payment = _level_payment(principal, rate_bps, number_of_payments, periods_per_year)
    period_divisor = BPS_DENOMINATOR * periods_per_year

    entries = []
    balance = principal
    for period in range(1, number_of_payments + 1):
        interest = balance * rate_bps // period_divisor
        if period == number_of_payments:
            principal_part = balance
        else:
            principal_part = min(max(payment - interest, 0), balance)
        balance -= principal_part
        entries.append(AmortizationEntry(
            period=period,
            payment=principal_part + interest,
            principal=principal_part,
            interest=interest,
            remaining_balance=balance,
            due_timestamp=_due(start_timestamp, interval_seconds, period),
        ))
    return entries


def generate_lump_sum_schedule(
    principal: Amount,
    rate_bps: Rate,
    duration_days: int,
    start_timestamp: Optional[int] = None,
) -> List[AmortizationEntry]:
    """Single-entry schedule: principal plus simple interest, due at start + duration."""
    principal = to_amount(principal, "principal")
    require_non_negative_int(duration_days, "duration_days")
    if principal == 0:
        raise reject("principal", "principal must be positive")
    if duration_days == 0:
        raise reject("duration_days", "duration_days must be positive")
    return _lump_sum(principal, rate_bps, duration_days * SECONDS_PER_DAY, start_timestamp)


def _lump_sum(principal, rate_bps, duration_seconds, start_timestamp):
    if start_timestamp is not None:
        require_non_negative_int(start_timestamp, "start_timestamp")
    interest = simple_interest(principal, rate_bps, duration_seconds)
    return [AmortizationEntry(
        period=1,
        payment=principal + interest,
        principal=principal,
        interest=interest,
        remaining_balance=0,
        due_timestamp=_due(start_timestamp, duration_seconds, 1),
    )]


def generate_schedule(
    principal: Amount,
    rate_bps: Rate,
    number_of_payments: int,
    frequency: PaymentFrequency = PaymentFrequency.MONTHLY,
    start_timestamp: Optional[int] = None,
) -> List[AmortizationEntry]:
    """
    Schedule for an installment cadence.

    For LUMP_SUM, `number_of_payments` is the loan duration in days.
    """
    frequency = PaymentFrequency(frequency)
    if frequency is PaymentFrequency.LUMP_SUM:
        return generate_lump_sum_schedule(principal, rate_bps, number_of_payments, start_timestamp)
    return generate_fixed_payment_schedule(
        principal, rate_bps, number_of_payments,
        periods_per_year=frequency.periods_per_year,
        start_timestamp=start_timestamp,
        interval_seconds=frequency.interval_seconds,
    )


def schedule_for_term(
    term: LoanTerm,
    number_of_payments: int = 1,
    frequency: PaymentFrequency = PaymentFrequency.LUMP_SUM,
) -> List[AmortizationEntry]:
    """Schedule anchored at the term's start. LUMP_SUM uses the exact duration in seconds."""
    frequency = PaymentFrequency(frequency)
    if frequency is PaymentFrequency.LUMP_SUM:
        return _lump_sum(term.principal, term.rate_bps, term.duration_seconds, term.start_timestamp)
    return generate_schedule(
        term.principal, term.rate_bps, number_of_payments, frequency, term.start_timestamp,
    )


# ============================================================================
# SCHEDULE QUERIES
# ============================================================================

def summarize_schedule(entries: Sequence[AmortizationEntry]) -> ScheduleSummary:
    if not entries:
        raise reject("entries", "schedule is empty")
    return ScheduleSummary(
        total_principal=sum(e.principal for e in entries),
        total_interest=sum(e.interest for e in entries),
        total_payment=sum(e.payment for e in entries),
        number_of_payments=len(entries),
        first_due_timestamp=entries[0].due_timestamp,
        final_due_timestamp=entries[-1].due_timestamp,
    )


def _unpaid(entries: Sequence[AmortizationEntry], paid_periods: AbstractSet[int]) -> List[AmortizationEntry]:
    return [e for e in entries if e.period not in paid_periods]


def next_payment_due(
    entries: Sequence[AmortizationEntry],
    paid_periods: AbstractSet[int] = frozenset(),
) -> Optional[AmortizationEntry]:
    unpaid = _unpaid(entries, paid_periods)
    return unpaid[0] if unpaid else None


def remaining_balance(
    entries: Sequence[AmortizationEntry],
    paid_periods: AbstractSet[int] = frozenset(),
) -> Amount:
    """Principal still owed: the principal portions of every unpaid entry."""
    return sum(e.principal for e in _unpaid(entries, paid_periods))


def payment_progress(
    entries: Sequence[AmortizationEntry],
    paid_periods: AbstractSet[int] = frozenset(),
) -> Decimal:
    """Percent of installments paid, rounded to 2 decimals."""
    if not entries:
        raise reject("entries", "schedule is empty")
    paid = sum(1 for e in entries if e.period in paid_periods)
    with localcontext() as ctx:
        ctx.prec = DECIMAL_PRECISION
        return round_half_up(Decimal(paid * 100) / Decimal(len(entries)), 2)


def overdue_entries(
    entries: Sequence[AmortizationEntry],
    now: int,
    paid_periods: AbstractSet[int] = frozenset(),
) -> List[AmortizationEntry]:
    """Unpaid entries whose due timestamp is strictly before `now`."""
    return [
        e for e in _unpaid(entries, paid_periods)
        if e.due_timestamp is not None and e.due_timestamp < now
    ]


def early_payoff_amount(
    entries: Sequence[AmortizationEntry],
    now: int,
    paid_periods: AbstractSet[int] = frozenset(),
) -> Amount:
    """
    Amount to settle the loan at `now`.

    Past-due installments are owed in full; installments not yet due are
    owed as principal only (their interest has not accrued).
    """
    total = 0
    for e in _unpaid(entries, paid_periods):
        if e.due_timestamp is not None and e.due_timestamp <= now:
            total += e.payment
        else:
            total += e.principal
    return total


def implied_annual_rate_bps(
    principal: Amount,
    payment: Amount,
    number_of_payments: int,
    periods_per_year: int = 12,
) -> Rate:
    """
    Nominal annual rate at which `number_of_payments` level payments of
    `payment` amortize `principal`, rounded to the nearest basis point.

    Solves the annuity equation for the per-period rate with Brent's method.
    """
    principal = to_amount(principal, "principal")
    payment = to_amount(payment, "payment")
    require_positive_int(number_of_payments, "number_of_payments")
    require_positive_int(periods_per_year, "periods_per_year")
    if principal == 0:
        raise reject("principal", "principal must be positive")
    if payment * number_of_payments < principal:
        raise reject("payment", "payments do not cover the principal")
    if payment * number_of_payments == principal:
        return 0

    p, a, n = float(principal), float(payment), number_of_payments

    def _residual(r: float) -> float:
        return a * (1.0 - (1.0 + r) ** -n) / r - p

    # Upper bracket: one period's rate can never exceed payment / principal.
    upper = a / p + 1.0
    r = brentq(_residual, 1e-12, upper, xtol=1e-15, maxiter=200)
    with localcontext() as ctx:
        ctx.prec = DECIMAL_PRECISION
        return int(round_half_up(Decimal(str(r)) * BPS_DENOMINATOR * periods_per_year))


__all__ = [
    'AmortizationEntry', 'ScheduleSummary', 'PaymentFrequency',
    'generate_fixed_payment_schedule', 'generate_lump_sum_schedule',
    'generate_schedule', 'schedule_for_term',
    'summarize_schedule', 'next_payment_due', 'remaining_balance', 'payment_progress',
    'overdue_entries', 'early_payoff_amount', 'implied_annual_rate_bps',
]
