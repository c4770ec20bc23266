"""
reputation.py - Borrower reputation scoring

Five independent sub-scores, each an integer 0..100, combined by weight:

    payment history    35%   (on_time + 0.5 * late) / total * 100
    loan completion    25%   completion rate * 100 + min(10, completed) - active penalty
    time on platform   15%   min(100, 40 * log10(days + 1))
    volume             15%   clamp(50 + 25 * log10(volume / median), 0, 100)
    community          10%   up / (up + down) * 100 + min(20, 5 * referrals), capped at 100

New accounts score 50 (neutral), not 0, on payment history, completion and
community. Every sub-score and the total are rounded half up to an integer.

Grades: S >= 95, A >= 85, B >= 70, C >= 55, D >= 40, else F.
"""

from __future__ import annotations
from dataclasses import dataclass
from decimal import Decimal, localcontext
from enum import Enum
from typing import Optional

import numpy as np

from .core import (
    Numeric, ConfigPreset, SECONDS_PER_DAY, DECIMAL_PRECISION,
    round_half_up, reject, to_decimal, require_non_negative_int,
)


NEW_USER_SCORE = 50
DEFAULT_MEDIAN_VOLUME = Decimal(10_000)
TREND_BAND = 5


class Grade(str, Enum):
    S = "S"
    A = "A"
    B = "B"
    C = "C"
    D = "D"
    F = "F"


class Trend(str, Enum):
    IMPROVING = "improving"
    STABLE = "stable"
    DECLINING = "declining"


_GRADE_FLOORS = (
    (95, Grade.S),
    (85, Grade.A),
    (70, Grade.B),
    (55, Grade.C),
    (40, Grade.D),
)


# ============================================================================
# DATA TYPES
# ============================================================================

@dataclass(frozen=True, slots=True)
class ReputationWeights(ConfigPreset):
    payment_history: float = 0.35
    loan_completion: float = 0.25
    time_on_platform: float = 0.15
    volume: float = 0.15
    community: float = 0.10

    def __post_init__(self):
        for name in ('payment_history', 'loan_completion', 'time_on_platform', 'volume', 'community'):
            value = float(getattr(self, name))
            if not np.isfinite(value) or value < 0:
                raise reject(name, f"weight {name} must be a non-negative finite number")
            object.__setattr__(self, name, value)
        if self.as_array().sum() <= 0:
            raise reject("weights", "at least one reputation weight must be positive")

    def as_array(self) -> np.ndarray:
        return np.array([self.payment_history, self.loan_completion, self.time_on_platform,
                         self.volume, self.community], dtype=float)


DEFAULT_REPUTATION_WEIGHTS = ReputationWeights()


@dataclass(frozen=True, slots=True)
class ReputationComponents:
    payment_history: int
    loan_completion: int
    time_on_platform: int
    volume: int
    community: int

    def __post_init__(self):
        for name in ('payment_history', 'loan_completion', 'time_on_platform', 'volume', 'community'):
            value = require_non_negative_int(getattr(self, name), name)
            if value > 100:
                raise reject(name, f"{name} must be within 0..100, got {value}")

    def as_array(self) -> np.ndarray:
        return np.array([self.payment_history, self.loan_completion, self.time_on_platform,
                         self.volume, self.community], dtype=float)


@dataclass(frozen=True, slots=True)
class BorrowerHistory:
    """Raw activity counts supplied by the borrower-history service."""
    on_time_payments: int = 0
    late_payments: int = 0
    missed_payments: int = 0
    completed_loans: int = 0
    defaulted_loans: int = 0
    active_loans: int = 0
    first_activity_timestamp: int = 0
    total_volume: Decimal = Decimal(0)
    upvotes: int = 0
    downvotes: int = 0
    referrals: int = 0

    def __post_init__(self):
        for name in ('on_time_payments', 'late_payments', 'missed_payments', 'completed_loans',
                     'defaulted_loans', 'active_loans', 'first_activity_timestamp',
                     'upvotes', 'downvotes', 'referrals'):
            require_non_negative_int(getattr(self, name), name)
        if not isinstance(self.total_volume, Decimal):
            object.__setattr__(self, 'total_volume', to_decimal(self.total_volume, "total_volume"))
        if self.total_volume < 0:
            raise reject("total_volume", "total_volume cannot be negative")


@dataclass(frozen=True, slots=True)
class ReputationScore:
    total_score: int
    grade: Grade
    components: ReputationComponents
    trend: Trend
    percentile: int


# ============================================================================
# SUB-SCORES
# ============================================================================

def _to_int(value) -> int:
    """Round half up to an int. Floats go through str() so 0.5 boundaries are kept."""
    if not isinstance(value, Decimal):
        value = Decimal(str(float(value)))
    return int(round_half_up(value))


def _ratio_percent(numerator: Decimal, denominator: int) -> Decimal:
    with localcontext() as ctx:
        ctx.prec = DECIMAL_PRECISION
        return Decimal(numerator) * 100 / Decimal(denominator)


def payment_history_score(on_time: int, late: int, missed: int) -> int:
    """Late payments count half; missed payments count nothing. No payments yet scores 50."""
    for name, value in (("on_time", on_time), ("late", late), ("missed", missed)):
        require_non_negative_int(value, name)
    total = on_time + late + missed
    if total == 0:
        return NEW_USER_SCORE
    return _to_int(_ratio_percent(Decimal(on_time) + Decimal(late) / 2, total))


def loan_completion_score(completed: int, defaulted: int, active: int) -> int:
    for name, value in (("completed", completed), ("defaulted", defaulted), ("active", active)):
        require_non_negative_int(value, name)
    total = completed + defaulted
    if total == 0:
        return NEW_USER_SCORE
    volume_bonus = min(10, completed)
    active_penalty = min(10, (active - 5) * 2) if active > 5 else 0
    score = _to_int(_ratio_percent(Decimal(completed), total) + volume_bonus - active_penalty)
    return min(100, max(0, score))


def time_on_platform_score(first_activity_timestamp: int, now: int) -> int:
    """Logarithmic in days on the platform: one year scores ~100, one month ~60."""
    require_non_negative_int(first_activity_timestamp, "first_activity_timestamp")
    require_non_negative_int(now, "now")
    days = max(0, now - first_activity_timestamp) / SECONDS_PER_DAY
    return _to_int(min(100.0, float(np.log10(days + 1.0)) * 40.0))


def volume_score(total_volume: Numeric, median_volume: Numeric = DEFAULT_MEDIAN_VOLUME) -> int:
    """50 at the median volume, +25 per order of magnitude above it, clamped to 0..100."""
    total_volume = to_decimal(total_volume, "total_volume")
    median_volume = to_decimal(median_volume, "median_volume")
    if median_volume <= 0:
        raise reject("median_volume", "median_volume must be positive")
    if total_volume <= 0:
        return 0
    score = min(100.0, 50.0 + float(np.log10(float(total_volume) / float(median_volume))) * 25.0)
    return max(0, _to_int(score))


def community_score(upvotes: int, downvotes: int, referrals: int) -> int:
    for name, value in (("upvotes", upvotes), ("downvotes", downvotes), ("referrals", referrals)):
        require_non_negative_int(value, name)
    votes = upvotes + downvotes
    vote_score = NEW_USER_SCORE if votes == 0 else _to_int(_ratio_percent(Decimal(upvotes), votes))
    return min(100, vote_score + min(20, referrals * 5))


# ============================================================================
# AGGREGATION
# ============================================================================

def total_score(components: ReputationComponents,
                weights: ReputationWeights = DEFAULT_REPUTATION_WEIGHTS) -> int:
    w = weights.as_array()
    return _to_int(float(np.dot(components.as_array(), w) / w.sum()))


def score_to_grade(score: Numeric) -> Grade:
    score = to_decimal(score, "score")
    for floor, grade in _GRADE_FLOORS:
        if score >= floor:
            return grade
    return Grade.F


def determine_trend(score: Numeric, previous_score: Optional[Numeric] = None) -> Trend:
    """IMPROVING / DECLINING when the score moved more than 5 points; STABLE otherwise or with no history."""
    if previous_score is None:
        return Trend.STABLE
    score = to_decimal(score, "score")
    previous_score = to_decimal(previous_score, "previous_score")
    if score > previous_score + TREND_BAND:
        return Trend.IMPROVING
    if score < previous_score - TREND_BAND:
        return Trend.DECLINING
    return Trend.STABLE


def estimate_percentile(score: int) -> int:
    # Placeholder until platform-wide score distribution data is available.
    return min(99, _to_int(Decimal(score) * Decimal("0.95")))


def calculate_reputation(
    history: BorrowerHistory,
    now: int,
    previous_score: Optional[Numeric] = None,
    weights: ReputationWeights = DEFAULT_REPUTATION_WEIGHTS,
    median_volume: Numeric = DEFAULT_MEDIAN_VOLUME,
) -> ReputationScore:
    """
    Complete reputation for a borrower at `now`.

    Example:
        calculate_reputation(BorrowerHistory(), now=0).total_score
        # new account: 50/50/0/0/50 components -> 35, grade F
    """
    components = ReputationComponents(
        payment_history=payment_history_score(history.on_time_payments, history.late_payments,
                                              history.missed_payments),
        loan_completion=loan_completion_score(history.completed_loans, history.defaulted_loans,
                                              history.active_loans),
        time_on_platform=time_on_platform_score(history.first_activity_timestamp, now),
        volume=volume_score(history.total_volume, median_volume),
        community=community_score(history.upvotes, history.downvotes, history.referrals),
    )
    score = total_score(components, weights)
    return ReputationScore(
        total_score=score,
        grade=score_to_grade(score),
        components=components,
        trend=determine_trend(score, previous_score),
        percentile=estimate_percentile(score),
    )


__all__ = [
    'Grade', 'Trend', 'ReputationWeights', 'DEFAULT_REPUTATION_WEIGHTS',
    'ReputationComponents', 'BorrowerHistory', 'ReputationScore',
    'payment_history_score', 'loan_completion_score', 'time_on_platform_score',
    'volume_score', 'community_score', 'total_score', 'score_to_grade',
    'determine_trend', 'estimate_percentile', 'calculate_reputation',
]
