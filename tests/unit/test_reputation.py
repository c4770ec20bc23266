"""
test_reputation.py - Unit tests for reputation scoring

Tests:
- Each sub-score, including the new-user neutral value
- Weighted total and grade bands
- Trend detection
- Full calculate_reputation
"""

import pytest

from microloan import (
    BorrowerHistory, Grade, Trend, ReputationComponents, ValidationError,
    DEFAULT_REPUTATION_WEIGHTS, SECONDS_PER_DAY,
    payment_history_score, loan_completion_score, time_on_platform_score,
    volume_score, community_score, total_score, score_to_grade,
    determine_trend, calculate_reputation,
)


# ============================================================================
# SUB-SCORES
# ============================================================================

class TestPaymentHistory:
    """Tests for payment_history_score."""

    def test_new_user_is_neutral(self):
        assert payment_history_score(0, 0, 0) == 50

    def test_all_on_time(self):
        assert payment_history_score(10, 0, 0) == 100

    def test_late_counts_half(self):
        assert payment_history_score(5, 5, 0) == 75

    def test_missed_counts_nothing(self):
        assert payment_history_score(0, 0, 5) == 0

    def test_rounds_half_up(self):
        # 1.5 / 4 = 37.5%
        assert payment_history_score(1, 1, 2) == 38

    def test_negative_rejected(self):
        with pytest.raises(ValidationError):
            payment_history_score(-1, 0, 0)


class TestLoanCompletion:
    """Tests for loan_completion_score."""

    def test_new_user_is_neutral(self):
        assert loan_completion_score(0, 0, 0) == 50

    def test_capped_at_100(self):
        assert loan_completion_score(10, 0, 0) == 100

    def test_volume_bonus(self):
        assert loan_completion_score(3, 1, 0) == 78

    def test_active_penalty(self):
        # 75 + 3 - min(10, (8 - 5) * 2)
        assert loan_completion_score(3, 1, 8) == 72

    def test_active_penalty_capped(self):
        assert loan_completion_score(3, 1, 50) == 68

    def test_all_defaulted(self):
        assert loan_completion_score(0, 5, 0) == 0


class TestTimeOnPlatform:
    """Tests for time_on_platform_score."""

    def test_brand_new(self):
        assert time_on_platform_score(1000, 1000) == 0

    def test_nine_days(self):
        assert time_on_platform_score(0, 9 * SECONDS_PER_DAY) == 40

    def test_ninety_nine_days(self):
        assert time_on_platform_score(0, 99 * SECONDS_PER_DAY) == 80

    def test_capped_at_100(self):
        assert time_on_platform_score(0, 365 * SECONDS_PER_DAY) == 100

    def test_future_first_activity(self):
        assert time_on_platform_score(5000, 1000) == 0


class TestVolume:
    """Tests for volume_score."""

    def test_no_volume(self):
        assert volume_score(0) == 0

    def test_median(self):
        assert volume_score(10_000) == 50

    def test_ten_times_median(self):
        assert volume_score(100_000) == 75

    def test_capped_at_100(self):
        assert volume_score(10**9) == 100

    def test_floored_at_zero(self):
        assert volume_score(1) == 0

    def test_custom_median(self):
        assert volume_score(1_000, median_volume=1_000) == 50

    def test_zero_median_rejected(self):
        with pytest.raises(ValidationError):
            volume_score(100, median_volume=0)


class TestCommunity:
    """Tests for community_score."""

    def test_new_user_is_neutral(self):
        assert community_score(0, 0, 0) == 50

    def test_vote_ratio(self):
        assert community_score(3, 1, 0) == 75

    def test_referral_bonus(self):
        assert community_score(0, 0, 2) == 60

    def test_referral_bonus_capped(self):
        assert community_score(1, 1, 100) == 70

    def test_capped_at_100(self):
        assert community_score(10, 0, 10) == 100


# ============================================================================
# AGGREGATION
# ============================================================================

class TestAggregation:
    """Tests for total_score, grades and trend."""

    def test_perfect(self):
        assert total_score(ReputationComponents(100, 100, 100, 100, 100)) == 100

    def test_new_account_components(self):
        assert total_score(ReputationComponents(50, 50, 0, 0, 50)) == 35

    def test_custom_weights(self):
        weights = DEFAULT_REPUTATION_WEIGHTS.with_overrides(
            payment_history=1, loan_completion=0, time_on_platform=0, volume=0, community=0,
        )
        assert total_score(ReputationComponents(80, 0, 0, 0, 0), weights) == 80

    def test_component_range_enforced(self):
        with pytest.raises(ValidationError):
            ReputationComponents(101, 0, 0, 0, 0)

    @pytest.mark.parametrize("score,grade", [
        (100, Grade.S), (95, Grade.S), (94, Grade.A), (85, Grade.A), (84, Grade.B),
        (70, Grade.B), (69, Grade.C), (55, Grade.C), (54, Grade.D), (40, Grade.D),
        (39, Grade.F), (0, Grade.F),
    ])
    def test_grades(self, score, grade):
        assert score_to_grade(score) is grade

    def test_trend(self):
        assert determine_trend(80, 70) is Trend.IMPROVING
        assert determine_trend(80, 75) is Trend.STABLE
        assert determine_trend(80, 85) is Trend.STABLE
        assert determine_trend(80, 86) is Trend.DECLINING

    def test_trend_without_history(self):
        assert determine_trend(80) is Trend.STABLE


class TestCalculateReputation:
    """Tests for calculate_reputation."""

    def test_new_account(self):
        result = calculate_reputation(BorrowerHistory(), now=0)
        assert result.components == ReputationComponents(50, 50, 0, 0, 50)
        assert result.total_score == 35
        assert result.grade is Grade.F
        assert result.trend is Trend.STABLE

    def test_established_borrower(self):
        history = BorrowerHistory(
            on_time_payments=10, completed_loans=5, first_activity_timestamp=0,
            total_volume=100_000,
        )
        result = calculate_reputation(history, now=364 * SECONDS_PER_DAY, previous_score=80)
        assert result.components == ReputationComponents(100, 100, 100, 75, 50)
        assert result.total_score == 91
        assert result.grade is Grade.A
        assert result.trend is Trend.IMPROVING
        assert result.percentile == 86

    def test_top_score_percentile(self):
        history = BorrowerHistory(
            on_time_payments=10, completed_loans=10, total_volume=10**9, upvotes=10, referrals=4,
        )
        result = calculate_reputation(history, now=1000 * SECONDS_PER_DAY)
        assert result.total_score == 100
        assert result.percentile == 95

    def test_negative_volume_rejected(self):
        with pytest.raises(ValidationError):
            BorrowerHistory(total_volume=-1)
