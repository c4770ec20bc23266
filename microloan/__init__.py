"""
microloan - Loan financial and risk calculation engine

Pure, synchronous functions over integer amounts for microloan terms:
interest, repayment schedules, collateral health, late fees, risk and
reputation scoring, and loan limit checks.

Usage:
    from microloan import LoanTerm, simple_interest, late_fee, SECONDS_PER_DAY

    term = LoanTerm(principal=10**18, rate_bps=1000, duration_seconds=30 * SECONDS_PER_DAY)
    interest = simple_interest(term.principal, term.rate_bps, term.duration_seconds)

    # Ten days after the due date
    fee = late_fee(term.principal, term.due_timestamp, term.due_timestamp + 10 * SECONDS_PER_DAY)
    fee.total_penalty   # 6.05 * 10**16

Amounts are Python ints counting the smallest currency unit. Rates are
integer basis points. Anything that could lose precision rounds toward zero.
"""

# Core types
from .core import (
    SECONDS_PER_DAY,
    SECONDS_PER_HOUR,
    SECONDS_PER_YEAR,
    DAYS_PER_YEAR,
    BPS_DENOMINATOR,
    Amount,
    Rate,
    LoanMathError,
    ValidationError,
    Compounding,
    LoanTerm,
    ConfigPreset,
    to_amount,
    mul_div_down,
    apply_bps,
    apply_percent,
    scale_down,
    bps_to_percent,
    percent_to_bps,
)

# Interest
from .interest import (
    InterestModel,
    simple_interest, compound_interest, continuous_interest,
    total_interest, total_repayment, daily_interest, accrued_interest,
    annual_to_daily_rate, daily_to_annual_rate, annual_to_hourly_rate,
    apr_to_apy, apy_to_apr,
    periodic_to_effective_rate_bps, effective_to_periodic_rate_bps,
    real_rate_bps, effective_rate_bps, required_rate_bps, compound_yield,
)

# Amortization
from .amortization import (
    AmortizationEntry, ScheduleSummary, PaymentFrequency,
    generate_fixed_payment_schedule, generate_lump_sum_schedule,
    generate_schedule, schedule_for_term, summarize_schedule,
    next_payment_due, remaining_balance, payment_progress,
    overdue_entries, early_payoff_amount, implied_annual_rate_bps,
)

# Collateral
from .collateral import (
    CollateralLevel, CollateralThresholds, DEFAULT_COLLATERAL_THRESHOLDS,
    CollateralAsset, CollateralPosition, CollateralRatio, CollateralCheck,
    value_usd, value_in_token, collateral_ratio, is_liquidatable,
    health_factor, liquidation_price, required_collateral,
    additional_collateral_needed, liquidation_penalty, max_borrowable,
    collateral_buffer, loan_to_value, validate_collateral,
)

# Penalties
from .penalty import (
    PenaltyZone, PenaltyConfig, DEFAULT_PENALTY_CONFIG, PenaltyResult, AmountDue,
    days_late, escalation_level, late_fee, penalty_zone,
    total_due_with_penalty, project_penalty, can_waive_penalty,
    partial_payment_reduction,
)

# Risk
from .risk import (
    RiskLevel, FactorImpact, RiskComparison,
    RiskWeights, DEFAULT_RISK_WEIGHTS, RiskFactor, RiskInputs, RiskAssessment,
    build_risk_factors, weighted_risk_score, score_to_risk_level,
    default_probability, expected_loss, risk_recommendations,
    assess_risk, is_acceptable_risk, compare_risk,
)

# Reputation
from .reputation import (
    Grade, Trend, ReputationWeights, DEFAULT_REPUTATION_WEIGHTS,
    ReputationComponents, BorrowerHistory, ReputationScore,
    payment_history_score, loan_completion_score, time_on_platform_score,
    volume_score, community_score, total_score, score_to_grade,
    determine_trend, estimate_percentile, calculate_reputation,
)

# Limits
from .thresholds import (
    ViolationType, LimitConfig, DEFAULT_LIMITS,
    ThresholdViolation, ThresholdCheck, LoanParameters,
    is_within_range, clamp_to_range,
    check_amount_threshold, check_duration_threshold, check_interest_rate_threshold,
    check_all_thresholds, check_active_loans_limit, check_exposure_limit,
    remaining_capacity, utilization, loan_parameters_from_term,
)

# Term helpers
from .term import (
    TermUnit, term_to_days, term_to_seconds,
    is_overdue, time_remaining, elapsed_seconds,
    days_until_due, days_overdue, term_progress, flat_rate_apr,
)

from .logging_setup import setup_logging


__all__ = [
    # Core
    'SECONDS_PER_DAY', 'SECONDS_PER_HOUR', 'SECONDS_PER_YEAR', 'DAYS_PER_YEAR', 'BPS_DENOMINATOR',
    'Amount', 'Rate', 'LoanMathError', 'ValidationError', 'Compounding', 'LoanTerm', 'ConfigPreset',
    'to_amount', 'mul_div_down', 'apply_bps', 'apply_percent', 'scale_down',
    'bps_to_percent', 'percent_to_bps',
    # Interest
    'InterestModel',
    'simple_interest', 'compound_interest', 'continuous_interest',
    'total_interest', 'total_repayment', 'daily_interest', 'accrued_interest',
    'annual_to_daily_rate', 'daily_to_annual_rate', 'annual_to_hourly_rate',
    'apr_to_apy', 'apy_to_apr',
    'periodic_to_effective_rate_bps', 'effective_to_periodic_rate_bps',
    'real_rate_bps', 'effective_rate_bps', 'required_rate_bps', 'compound_yield',
    # Amortization
    'AmortizationEntry', 'ScheduleSummary', 'PaymentFrequency',
    'generate_fixed_payment_schedule', 'generate_lump_sum_schedule',
    'generate_schedule', 'schedule_for_term', 'summarize_schedule',
    'next_payment_due', 'remaining_balance', 'payment_progress',
    'overdue_entries', 'early_payoff_amount', 'implied_annual_rate_bps',
    # Collateral
    'CollateralLevel', 'CollateralThresholds', 'DEFAULT_COLLATERAL_THRESHOLDS',
    'CollateralAsset', 'CollateralPosition', 'CollateralRatio', 'CollateralCheck',
    'value_usd', 'value_in_token', 'collateral_ratio', 'is_liquidatable',
    'health_factor', 'liquidation_price', 'required_collateral',
    'additional_collateral_needed', 'liquidation_penalty', 'max_borrowable',
    'collateral_buffer', 'loan_to_value', 'validate_collateral',
    # Penalties
    'PenaltyZone', 'PenaltyConfig', 'DEFAULT_PENALTY_CONFIG', 'PenaltyResult', 'AmountDue',
    'days_late', 'escalation_level', 'late_fee', 'penalty_zone',
    'total_due_with_penalty', 'project_penalty', 'can_waive_penalty',
    'partial_payment_reduction',
    # Risk
    'RiskLevel', 'FactorImpact', 'RiskComparison',
    'RiskWeights', 'DEFAULT_RISK_WEIGHTS', 'RiskFactor', 'RiskInputs', 'RiskAssessment',
    'build_risk_factors', 'weighted_risk_score', 'score_to_risk_level',
    'default_probability', 'expected_loss', 'risk_recommendations',
    'assess_risk', 'is_acceptable_risk', 'compare_risk',
    # Reputation
    'Grade', 'Trend', 'ReputationWeights', 'DEFAULT_REPUTATION_WEIGHTS',
    'ReputationComponents', 'BorrowerHistory', 'ReputationScore',
    'payment_history_score', 'loan_completion_score', 'time_on_platform_score',
    'volume_score', 'community_score', 'total_score', 'score_to_grade',
    'determine_trend', 'estimate_percentile', 'calculate_reputation',
    # Limits
    'ViolationType', 'LimitConfig', 'DEFAULT_LIMITS',
    'ThresholdViolation', 'ThresholdCheck', 'LoanParameters',
    'is_within_range', 'clamp_to_range',
    'check_amount_threshold', 'check_duration_threshold', 'check_interest_rate_threshold',
    'check_all_thresholds', 'check_active_loans_limit', 'check_exposure_limit',
    'remaining_capacity', 'utilization', 'loan_parameters_from_term',
    # Term helpers
    'TermUnit', 'term_to_days', 'term_to_seconds',
    'is_overdue', 'time_remaining', 'elapsed_seconds',
    'days_until_due', 'days_overdue', 'term_progress', 'flat_rate_apr',
    # Logging
    'setup_logging',
]

__version__ = '1.0.0'
