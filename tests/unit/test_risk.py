"""
test_risk.py - Unit tests for risk assessment

Tests:
- Factor transforms and impacts
- Weighted score and the neutral default
- Level banding at the boundaries
- Recommendations
- Probability of default and expected loss
- Acceptability and comparison
"""

from decimal import Decimal

import pytest

from microloan import (
    RiskInputs, RiskLevel, FactorImpact, RiskComparison, RiskFactor,
    DEFAULT_RISK_WEIGHTS, ValidationError,
    build_risk_factors, weighted_risk_score, score_to_risk_level,
    default_probability, expected_loss, assess_risk,
    is_acceptable_risk, compare_risk,
)


@pytest.fixture
def safe_inputs():
    return RiskInputs(
        collateral_ratio=200, borrower_reputation=80, loan_duration_days=30,
        interest_rate=8, loan_amount=1_000,
    )


@pytest.fixture
def dangerous_inputs():
    return RiskInputs(
        collateral_ratio=100, borrower_reputation=10, loan_duration_days=365,
        interest_rate=50, loan_amount=100_000,
    )


def reputation_only(reputation):
    """Inputs whose score is exactly 100 - reputation."""
    weights = DEFAULT_RISK_WEIGHTS.with_overrides(
        collateral_ratio=0, loan_duration=0, interest_rate=0, loan_amount=0, borrower_reputation=1,
    )
    inputs = RiskInputs(
        collateral_ratio=200, borrower_reputation=reputation, loan_duration_days=30,
        interest_rate=5, loan_amount=100,
    )
    return inputs, weights


# ============================================================================
# FACTORS
# ============================================================================

class TestFactors:
    """Tests for build_risk_factors."""

    def test_base_factor_order(self, safe_inputs):
        names = [f.name for f in build_risk_factors(safe_inputs)]
        assert names == ["Collateral Ratio", "Borrower Reputation", "Loan Duration", "Interest Rate", "Loan Amount"]

    def test_optional_factors(self):
        inputs = RiskInputs(150, 50, 100, 10, 1000, days_remaining=50, market_volatility=40)
        factors = build_risk_factors(inputs)
        assert [f.name for f in factors][-2:] == ["Time Remaining", "Market Volatility"]
        assert factors[-2].score == pytest.approx(50.0)
        assert factors[-1].score == pytest.approx(40.0)
        assert factors[-1].impact is FactorImpact.NEUTRAL

    def test_collateral_transform(self, dangerous_inputs):
        collateral = build_risk_factors(dangerous_inputs)[0]
        assert collateral.score == pytest.approx(100 / 3)
        assert collateral.impact is FactorImpact.NEGATIVE

    def test_infinite_collateral_ratio(self):
        inputs = RiskInputs(Decimal("Infinity"), 50, 30, 5, 100)
        collateral = build_risk_factors(inputs)[0]
        assert collateral.score == 0
        assert collateral.impact is FactorImpact.POSITIVE

    def test_high_rate_doubles(self):
        inputs = RiskInputs(150, 50, 30, 30, 100)
        assert build_risk_factors(inputs)[3].score == pytest.approx(60.0)

    def test_moderate_rate_passes_through(self):
        inputs = RiskInputs(150, 50, 30, 15, 100)
        rate = build_risk_factors(inputs)[3]
        assert rate.score == pytest.approx(15.0)
        assert rate.impact is FactorImpact.NEUTRAL

    def test_duration_capped(self):
        inputs = RiskInputs(150, 50, 1000, 5, 100)
        assert build_risk_factors(inputs)[2].score == 100.0

    def test_time_remaining_requires_duration(self):
        with pytest.raises(ValidationError, match="loan_duration_days"):
            RiskInputs(150, 50, 0, 5, 100, days_remaining=3)

    def test_reputation_range(self):
        with pytest.raises(ValidationError):
            RiskInputs(150, 101, 30, 5, 100)


# ============================================================================
# SCORING AND BANDS
# ============================================================================

class TestScoring:
    """Tests for weighted_risk_score and level banding."""

    def test_empty_is_neutral(self):
        assert weighted_risk_score([]) == 50.0

    def test_zero_weights_are_neutral(self):
        factors = [RiskFactor("a", 90.0, 0.0, FactorImpact.NEGATIVE)]
        assert weighted_risk_score(factors) == 50.0

    def test_divides_by_weights_used(self):
        factors = [
            RiskFactor("a", 80.0, 0.2, FactorImpact.NEGATIVE),
            RiskFactor("b", 20.0, 0.2, FactorImpact.POSITIVE),
        ]
        assert weighted_risk_score(factors) == pytest.approx(50.0)

    @pytest.mark.parametrize("score,level", [
        (0, RiskLevel.LOW),
        (25, RiskLevel.LOW),
        ("25.01", RiskLevel.MEDIUM),
        (50, RiskLevel.MEDIUM),
        ("50.01", RiskLevel.HIGH),
        (75, RiskLevel.HIGH),
        ("75.01", RiskLevel.CRITICAL),
        (100, RiskLevel.CRITICAL),
    ])
    def test_bands(self, score, level):
        assert score_to_risk_level(score) is level

    def test_level_from_rounded_score(self):
        inputs, weights = reputation_only("74.996")
        result = assess_risk(inputs, weights)
        assert result.score == Decimal("25.00")
        assert result.level is RiskLevel.LOW

    def test_just_above_low_band(self):
        inputs, weights = reputation_only("74.99")
        result = assess_risk(inputs, weights)
        assert result.score == Decimal("25.01")
        assert result.level is RiskLevel.MEDIUM


# ============================================================================
# ASSESSMENT
# ============================================================================

class TestAssessRisk:
    """Tests for assess_risk end to end."""

    def test_safe_loan(self, safe_inputs):
        result = assess_risk(safe_inputs)
        assert result.level is RiskLevel.LOW
        assert result.recommendations == ()
        assert result.probability_of_default == result.score / 100

    def test_dangerous_loan(self, dangerous_inputs):
        result = assess_risk(dangerous_inputs)
        assert result.level is RiskLevel.CRITICAL
        assert result.recommendations == (
            "Consider increasing collateral to reduce risk",
            "Verify borrower identity and credentials",
            "Shorter loan terms may be safer",
            "High interest rates may indicate desperation",
            "Consider funding a smaller portion",
            "Consider declining this loan request",
        )

    def test_expected_loss(self, dangerous_inputs):
        result = assess_risk(dangerous_inputs)
        assert result.expected_loss == result.probability_of_default * 100_000

    def test_deadline_recommendation(self):
        inputs = RiskInputs(200, 80, 100, 5, 100, days_remaining=5)
        result = assess_risk(inputs)
        assert "Monitor closely as deadline approaches" in result.recommendations

    def test_score_has_two_places(self, safe_inputs):
        assert assess_risk(safe_inputs).score.as_tuple().exponent == -2


class TestLossAndComparison:
    """Tests for loss helpers, acceptability and comparison."""

    def test_default_probability_clamped(self):
        assert default_probability(150) == 1
        assert default_probability(-5) == 0

    def test_expected_loss_no_recovery(self):
        assert expected_loss(1000, 50) == 500

    def test_expected_loss_with_recovery(self):
        assert expected_loss(1000, 50, "0.4") == 300

    def test_recovery_out_of_range(self):
        with pytest.raises(ValidationError):
            expected_loss(1000, 50, 2)

    def test_acceptable(self):
        assert is_acceptable_risk(75)
        assert not is_acceptable_risk("75.01")
        assert is_acceptable_risk(60, max_score=60)

    def test_acceptable_assessment(self, safe_inputs):
        assert is_acceptable_risk(assess_risk(safe_inputs))

    def test_compare(self):
        assert compare_risk(20, 30) is RiskComparison.BETTER
        assert compare_risk(30, 20) is RiskComparison.WORSE
        assert compare_risk(20, 24) is RiskComparison.SIMILAR

    def test_compare_assessments(self, safe_inputs, dangerous_inputs):
        assert compare_risk(assess_risk(safe_inputs), assess_risk(dangerous_inputs)) is RiskComparison.BETTER
