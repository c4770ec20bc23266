"""
Conformance Test Suite

This suite defines the NORMATIVE behavior of the microloan engine.
Any compliant implementation MUST pass these tests.

The tests are organized by invariant:
1. conservation.py - Amortization schedules repay exactly the principal
2. bounds.py - Fees, penalties and scores stay inside their ranges
3. consistency.py - Related views of one position agree with each other
4. roundtrip.py - Rate conversions invert each other within one basis point
5. determinism.py - Same inputs, same outputs, no global state touched

These tests use hypothesis for property-based testing.
"""
