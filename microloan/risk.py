"""
risk.py - Loan risk assessment

Maps a loan's parameters onto a fixed set of risk factors, each scored
0..100 (higher is riskier), and combines them into one weighted score.

Factor transforms:
    collateral ratio    max(0, 150 - ratio) / 1.5
    reputation          100 - reputation
    loan duration       min(100, days / 3.65)
    interest rate       rate if rate <= 20 else min(100, 2 * rate)
    loan amount         min(100, amount / reference * 100)
    time remaining      max(0, 100 - percent_remaining)     (if days_remaining given)
    market volatility   volatility                           (if given)

    score = sum(score_i * weight_i) / sum(weight_i)

The denominator is the sum of the weights actually used, so optional
factors can be present or absent without the total drifting away from a
0..100 scale. Scores are 0..100 quantities, not money, so factor scores are
floats and the weighted mean runs in numpy. The published score is a
Decimal rounded half up to 2 places, and the level is banded from that
rounded value:

    low <= 25 < medium <= 50 < high <= 75 < critical
"""

from __future__ import annotations
from dataclasses import dataclass, field
from decimal import Decimal, localcontext
from enum import Enum
from typing import List, Optional, Sequence, Tuple, Union

import numpy as np

from .core import (
    Numeric, ConfigPreset, DECIMAL_PRECISION,
    coerce_decimal_fields, round_half_up, reject, to_decimal,
)


class RiskLevel(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class FactorImpact(str, Enum):
    POSITIVE = "positive"
    NEUTRAL = "neutral"
    NEGATIVE = "negative"


class RiskComparison(str, Enum):
    BETTER = "better"
    WORSE = "worse"
    SIMILAR = "similar"


# Upper bounds of each band (inclusive)
LOW_MAX = Decimal(25)
MEDIUM_MAX = Decimal(50)
HIGH_MAX = Decimal(75)

NEUTRAL_SCORE = 50.0
DEFAULT_MAX_ACCEPTABLE_SCORE = Decimal(75)
SIMILARITY_BAND = Decimal(5)


# Factor names, in assessment order
COLLATERAL_RATIO = "Collateral Ratio"
BORROWER_REPUTATION = "Borrower Reputation"
LOAN_DURATION = "Loan Duration"
INTEREST_RATE = "Interest Rate"
LOAN_AMOUNT = "Loan Amount"
TIME_REMAINING = "Time Remaining"
MARKET_VOLATILITY = "Market Volatility"

_RECOMMENDATIONS = {
    COLLATERAL_RATIO: "Consider increasing collateral to reduce risk",
    BORROWER_REPUTATION: "Verify borrower identity and credentials",
    LOAN_DURATION: "Shorter loan terms may be safer",
    INTEREST_RATE: "High interest rates may indicate desperation",
    LOAN_AMOUNT: "Consider funding a smaller portion",
    TIME_REMAINING: "Monitor closely as deadline approaches",
    MARKET_VOLATILITY: "Market volatility is elevated; monitor collateral value",
}
_LEVEL_RECOMMENDATIONS = {
    RiskLevel.CRITICAL: "Consider declining this loan request",
    RiskLevel.HIGH: "Request additional collateral or guarantees",
}


# ============================================================================
# CONFIGURATION AND DATA TYPES
# ============================================================================

@dataclass(frozen=True, slots=True)
class RiskWeights(ConfigPreset):
    """Factor weights and the loan amount that scores 100 on the amount factor."""
    collateral_ratio: float = 0.25
    borrower_reputation: float = 0.20
    loan_duration: float = 0.15
    interest_rate: float = 0.10
    loan_amount: float = 0.15
    time_remaining: float = 0.15
    market_volatility: float = 0.15
    amount_reference: Decimal = Decimal(100_000)

    def __post_init__(self):
        for f in ('collateral_ratio', 'borrower_reputation', 'loan_duration', 'interest_rate',
                  'loan_amount', 'time_remaining', 'market_volatility'):
            value = float(getattr(self, f))
            if not np.isfinite(value) or value < 0:
                raise reject(f, f"weight {f} must be a non-negative finite number")
            object.__setattr__(self, f, value)
        coerce_decimal_fields(self, 'amount_reference')
        if self.amount_reference <= 0:
            raise reject("amount_reference", "amount_reference must be positive")


DEFAULT_RISK_WEIGHTS = RiskWeights()


@dataclass(frozen=True, slots=True)
class RiskFactor:
    name: str
    score: float
    weight: float
    impact: FactorImpact


@dataclass(frozen=True, slots=True)
class RiskInputs:
    """
    Loan parameters as seen by the risk model.

    collateral_ratio and interest_rate are percents; loan_amount is in whole
    currency units (not smallest units). collateral_ratio may be Infinity
    for a loan with no outstanding debt.
    """
    collateral_ratio: Decimal
    borrower_reputation: Decimal
    loan_duration_days: Decimal
    interest_rate: Decimal
    loan_amount: Decimal
    days_remaining: Optional[Decimal] = None
    market_volatility: Optional[Decimal] = None

    def __post_init__(self):
        if not isinstance(self.collateral_ratio, Decimal):
            object.__setattr__(self, 'collateral_ratio', Decimal(str(self.collateral_ratio)))
        coerce_decimal_fields(self, 'borrower_reputation', 'loan_duration_days', 'interest_rate', 'loan_amount')
        for name in ('days_remaining', 'market_volatility'):
            if getattr(self, name) is not None:
                coerce_decimal_fields(self, name)

        if self.collateral_ratio.is_nan() or self.collateral_ratio < 0:
            raise reject("collateral_ratio", "collateral_ratio cannot be negative")
        if not (0 <= self.borrower_reputation <= 100):
            raise reject("borrower_reputation", "borrower_reputation must be within 0..100")
        for name in ('loan_duration_days', 'interest_rate', 'loan_amount'):
            if getattr(self, name) < 0:
                raise reject(name, f"{name} cannot be negative")
        if self.days_remaining is not None:
            if self.days_remaining < 0:
                raise reject("days_remaining", "days_remaining cannot be negative")
            if self.loan_duration_days == 0:
                raise reject("loan_duration_days", "loan_duration_days must be positive when days_remaining is given")
        if self.market_volatility is not None and not (0 <= self.market_volatility <= 100):
            raise reject("market_volatility", "market_volatility must be within 0..100")


@dataclass(frozen=True, slots=True)
class RiskAssessment:
    score: Decimal
    level: RiskLevel
    factors: Tuple[RiskFactor, ...]
    recommendations: Tuple[str, ...]
    probability_of_default: Decimal
    expected_loss: Decimal


# ============================================================================
# FACTOR SCORING
# ============================================================================

def _impact(value: Decimal, positive_at: Decimal, neutral_at: Decimal, higher_is_better: bool) -> FactorImpact:
    if higher_is_better:
        if value >= positive_at:
            return FactorImpact.POSITIVE
        return FactorImpact.NEUTRAL if value >= neutral_at else FactorImpact.NEGATIVE
    if value <= positive_at:
        return FactorImpact.POSITIVE
    return FactorImpact.NEUTRAL if value <= neutral_at else FactorImpact.NEGATIVE


def build_risk_factors(inputs: RiskInputs, weights: RiskWeights = DEFAULT_RISK_WEIGHTS) -> List[RiskFactor]:
    """Score each factor present in `inputs`, in fixed order."""
    ratio = float(inputs.collateral_ratio)
    reputation = float(inputs.borrower_reputation)
    duration = float(inputs.loan_duration_days)
    rate = float(inputs.interest_rate)
    amount = float(inputs.loan_amount)

    factors = [
        RiskFactor(COLLATERAL_RATIO, max(0.0, 150.0 - ratio) / 1.5, weights.collateral_ratio,
                   _impact(inputs.collateral_ratio, Decimal(150), Decimal(120), True)),
        RiskFactor(BORROWER_REPUTATION, 100.0 - reputation, weights.borrower_reputation,
                   _impact(inputs.borrower_reputation, Decimal(70), Decimal(40), True)),
        RiskFactor(LOAN_DURATION, min(100.0, duration / 3.65), weights.loan_duration,
                   _impact(inputs.loan_duration_days, Decimal(30), Decimal(90), False)),
        RiskFactor(INTEREST_RATE, rate if rate <= 20 else min(100.0, rate * 2), weights.interest_rate,
                   _impact(inputs.interest_rate, Decimal(10), Decimal(20), False)),
        RiskFactor(LOAN_AMOUNT, min(100.0, amount / float(weights.amount_reference) * 100.0), weights.loan_amount,
                   _impact(inputs.loan_amount, Decimal(10_000), Decimal(50_000), False)),
    ]

    if inputs.days_remaining is not None:
        remaining = float(inputs.days_remaining)
        percent_remaining = remaining / duration * 100.0
        if inputs.days_remaining > 30:
            impact = FactorImpact.POSITIVE
        elif inputs.days_remaining > 7:
            impact = FactorImpact.NEUTRAL
        else:
            impact = FactorImpact.NEGATIVE
        factors.append(RiskFactor(TIME_REMAINING, max(0.0, 100.0 - percent_remaining),
                                  weights.time_remaining, impact))

    if inputs.market_volatility is not None:
        factors.append(RiskFactor(MARKET_VOLATILITY, float(inputs.market_volatility), weights.market_volatility,
                                  _impact(inputs.market_volatility, Decimal(30), Decimal(60), False)))
    return factors


def weighted_risk_score(factors: Sequence[RiskFactor]) -> float:
    """Weighted mean of factor scores; 50 (neutral) when there is no weight at all."""
    if not factors:
        return NEUTRAL_SCORE
    scores = np.array([f.score for f in factors], dtype=float)
    weights = np.array([f.weight for f in factors], dtype=float)
    if np.any(weights < 0):
        raise reject("weight", "factor weights cannot be negative")
    total = weights.sum()
    if total <= 0:
        return NEUTRAL_SCORE
    return float(np.dot(scores, weights) / total)


# ============================================================================
# CLASSIFICATION AND LOSS
# ============================================================================

def _score_decimal(score: Union[Numeric, float]) -> Decimal:
    return to_decimal(score, "score")


def score_to_risk_level(score: Union[Numeric, float]) -> RiskLevel:
    score = _score_decimal(score)
    if score <= LOW_MAX:
        return RiskLevel.LOW
    if score <= MEDIUM_MAX:
        return RiskLevel.MEDIUM
    if score <= HIGH_MAX:
        return RiskLevel.HIGH
    return RiskLevel.CRITICAL


def default_probability(score: Union[Numeric, float]) -> Decimal:
    """Risk score read as a probability of default: clamp(score, 0, 100) / 100."""
    score = min(Decimal(100), max(Decimal(0), _score_decimal(score)))
    with localcontext() as ctx:
        ctx.prec = DECIMAL_PRECISION
        return score / Decimal(100)


def expected_loss(loan_amount: Numeric, score: Union[Numeric, float], recovery_rate: Numeric = 0) -> Decimal:
    """
    Expected loss = loan_amount * P(default) * (1 - recovery_rate).

    recovery_rate is a fraction in 0..1; the default of 0 assumes nothing is
    recovered.
    """
    loan_amount = to_decimal(loan_amount, "loan_amount")
    recovery_rate = to_decimal(recovery_rate, "recovery_rate")
    if loan_amount < 0:
        raise reject("loan_amount", "loan_amount cannot be negative")
    if not (0 <= recovery_rate <= 1):
        raise reject("recovery_rate", "recovery_rate must be within 0..1")
    with localcontext() as ctx:
        ctx.prec = DECIMAL_PRECISION
        return loan_amount * default_probability(score) * (1 - recovery_rate)


def risk_recommendations(factors: Sequence[RiskFactor], level: RiskLevel) -> List[str]:
    """One recommendation per negative factor (in factor order), then one for a high or critical level."""
    recommendations = [
        _RECOMMENDATIONS[f.name] for f in factors
        if f.impact is FactorImpact.NEGATIVE and f.name in _RECOMMENDATIONS
    ]
    if level in _LEVEL_RECOMMENDATIONS:
        recommendations.append(_LEVEL_RECOMMENDATIONS[level])
    return recommendations


# ============================================================================
# ASSESSMENT
# ============================================================================

def assess_risk(inputs: RiskInputs, weights: RiskWeights = DEFAULT_RISK_WEIGHTS) -> RiskAssessment:
    """
    Full risk assessment for one loan.

    Example:
        assess_risk(RiskInputs(collateral_ratio=200, borrower_reputation=80,
                               loan_duration_days=30, interest_rate=8,
                               loan_amount=1_000))
        # level LOW, no recommendations
    """
    factors = build_risk_factors(inputs, weights)
    score = round_half_up(_score_decimal(weighted_risk_score(factors)), 2)
    level = score_to_risk_level(score)
    probability = default_probability(score)
    return RiskAssessment(
        score=score,
        level=level,
        factors=tuple(factors),
        recommendations=tuple(risk_recommendations(factors, level)),
        probability_of_default=probability,
        expected_loss=expected_loss(inputs.loan_amount, score),
    )


def is_acceptable_risk(score: Union[Numeric, float, RiskAssessment],
                       max_score: Numeric = DEFAULT_MAX_ACCEPTABLE_SCORE) -> bool:
    if isinstance(score, RiskAssessment):
        score = score.score
    return _score_decimal(score) <= to_decimal(max_score, "max_score")


def compare_risk(first: Union[RiskAssessment, Numeric, float],
                 second: Union[RiskAssessment, Numeric, float]) -> RiskComparison:
    """BETTER when `first` is at least 5 points less risky, WORSE when 5 more, else SIMILAR."""
    a = first.score if isinstance(first, RiskAssessment) else _score_decimal(first)
    b = second.score if isinstance(second, RiskAssessment) else _score_decimal(second)
    diff = a - b
    if abs(diff) < SIMILARITY_BAND:
        return RiskComparison.SIMILAR
    return RiskComparison.BETTER if diff < 0 else RiskComparison.WORSE


__all__ = [
    'RiskLevel', 'FactorImpact', 'RiskComparison',
    'RiskWeights', 'DEFAULT_RISK_WEIGHTS', 'RiskFactor', 'RiskInputs', 'RiskAssessment',
    'build_risk_factors', 'weighted_risk_score', 'score_to_risk_level',
    'default_probability', 'expected_loss', 'risk_recommendations',
    'assess_risk', 'is_acceptable_risk', 'compare_risk',
]
