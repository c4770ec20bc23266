"""
term.py - Loan term and due-date helpers

Calendar units use fixed lengths: a month is 30 days and a year 365.
Every function takes `now` as a Unix timestamp; nothing reads the clock.
"""

from __future__ import annotations
from decimal import Decimal, localcontext
from enum import Enum

from .core import (
    Rate, LoanTerm, SECONDS_PER_DAY, DAYS_PER_YEAR, DECIMAL_PRECISION,
    round_half_up, reject, require_non_negative_int, require_rate,
)


class TermUnit(str, Enum):
    DAYS = "days"
    WEEKS = "weeks"
    MONTHS = "months"
    YEARS = "years"

    @property
    def days(self) -> int:
        return {"days": 1, "weeks": 7, "months": 30, "years": DAYS_PER_YEAR}[self.value]


def term_to_days(value: int, unit: TermUnit = TermUnit.DAYS) -> int:
    require_non_negative_int(value, "value")
    return value * TermUnit(unit).days


def term_to_seconds(value: int, unit: TermUnit = TermUnit.DAYS) -> int:
    return term_to_days(value, unit) * SECONDS_PER_DAY


def is_overdue(term: LoanTerm, now: int) -> bool:
    """True from the due timestamp onward."""
    require_non_negative_int(now, "now")
    return now >= term.due_timestamp


def time_remaining(term: LoanTerm, now: int) -> int:
    """Seconds until due; 0 once due."""
    require_non_negative_int(now, "now")
    return max(0, term.due_timestamp - now)


def elapsed_seconds(term: LoanTerm, now: int) -> int:
    require_non_negative_int(now, "now")
    return max(0, now - term.start_timestamp)


def days_until_due(term: LoanTerm, now: int) -> int:
    return time_remaining(term, now) // SECONDS_PER_DAY


def days_overdue(term: LoanTerm, now: int) -> int:
    require_non_negative_int(now, "now")
    return max(0, now - term.due_timestamp) // SECONDS_PER_DAY


def term_progress(term: LoanTerm, now: int) -> Decimal:
    """Elapsed share of the term in percent, clamped to 0..100, 2 decimals."""
    elapsed = min(elapsed_seconds(term, now), term.duration_seconds)
    with localcontext() as ctx:
        ctx.prec = DECIMAL_PRECISION
        return round_half_up(Decimal(elapsed * 100) / Decimal(term.duration_seconds), 2)


def flat_rate_apr(rate_bps: Rate, duration_days: int) -> Rate:
    """
    Annualize a flat fee charged over `duration_days`: rate * 365 / days,
    rounded half up to a whole basis point.

    Example:
        flat_rate_apr(500, 30)  # 6083 (a 5% fee over 30 days is ~60.83% APR)
    """
    require_rate(rate_bps)
    require_non_negative_int(duration_days, "duration_days")
    if duration_days == 0:
        raise reject("duration_days", "duration_days must be positive")
    with localcontext() as ctx:
        ctx.prec = DECIMAL_PRECISION
        return int(round_half_up(Decimal(rate_bps * DAYS_PER_YEAR) / Decimal(duration_days)))


__all__ = [
    'TermUnit', 'term_to_days', 'term_to_seconds',
    'is_overdue', 'time_remaining', 'elapsed_seconds',
    'days_until_due', 'days_overdue', 'term_progress', 'flat_rate_apr',
]
