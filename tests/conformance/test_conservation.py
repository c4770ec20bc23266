"""
Amortization Conservation Conformance Tests

INVARIANT: For every generated schedule:
    Σ entry.principal = principal
    last.remaining_balance = 0

Each installment splits into principal and interest with nothing left
over, and the outstanding balance never grows.
"""

from hypothesis import given, settings
from hypothesis import strategies as st

from microloan import (
    PaymentFrequency, generate_fixed_payment_schedule, generate_schedule,
    summarize_schedule,
)


# =============================================================================
# STRATEGIES
# =============================================================================

principals = st.integers(min_value=1, max_value=10**24)
rates = st.integers(min_value=0, max_value=50_000)
payment_counts = st.integers(min_value=1, max_value=120)
frequencies = st.sampled_from([
    PaymentFrequency.WEEKLY, PaymentFrequency.BIWEEKLY, PaymentFrequency.MONTHLY,
])


# =============================================================================
# CONSERVATION
# =============================================================================

class TestScheduleConservation:
    """Principal is repaid exactly once across the schedule."""

    @given(principal=principals, rate=rates, n=payment_counts)
    @settings(max_examples=200)
    def test_principal_sums_to_loan(self, principal, rate, n):
        schedule = generate_fixed_payment_schedule(principal, rate, n)
        assert sum(e.principal for e in schedule) == principal

    @given(principal=principals, rate=rates, n=payment_counts)
    def test_final_balance_is_zero(self, principal, rate, n):
        schedule = generate_fixed_payment_schedule(principal, rate, n)
        assert schedule[-1].remaining_balance == 0
        assert len(schedule) == n

    @given(principal=principals, rate=rates, n=payment_counts, frequency=frequencies)
    def test_payment_splits_exactly(self, principal, rate, n, frequency):
        for entry in generate_schedule(principal, rate, n, frequency):
            assert entry.payment == entry.principal + entry.interest
            assert entry.principal >= 0
            assert entry.interest >= 0

    @given(principal=principals, rate=rates, n=payment_counts)
    def test_balance_never_grows(self, principal, rate, n):
        balance = principal
        for entry in generate_fixed_payment_schedule(principal, rate, n):
            assert entry.remaining_balance <= balance
            assert entry.remaining_balance == balance - entry.principal
            balance = entry.remaining_balance

    @given(principal=principals, rate=rates, n=payment_counts)
    def test_summary_totals(self, principal, rate, n):
        schedule = generate_fixed_payment_schedule(principal, rate, n)
        summary = summarize_schedule(schedule)
        assert summary.total_payment == summary.total_principal + summary.total_interest
        assert summary.total_principal == principal

    @given(principal=principals, rate=rates, days=st.integers(min_value=1, max_value=3650))
    def test_lump_sum_repays_principal(self, principal, rate, days):
        (entry,) = generate_schedule(principal, rate, days, PaymentFrequency.LUMP_SUM)
        assert entry.principal == principal
        assert entry.remaining_balance == 0
