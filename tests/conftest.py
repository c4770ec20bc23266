"""
conftest.py - Shared pytest fixtures for the loan engine tests

Provides common fixtures used across unit and conformance tests:
- Standard amounts (one 18-decimal token)
- A reference loan term and due timestamp
- Collateral positions
- Logger cleanup for tests that install the JSON handler
"""

import logging

import pytest

from microloan import (
    LoanTerm, CollateralAsset, CollateralPosition,
    SECONDS_PER_DAY,
)


ONE_TOKEN = 10**18
T0 = 1_700_000_000   # fixed reference timestamp; tests never read the clock


# =============================================================================
# AMOUNTS AND TERMS
# =============================================================================

@pytest.fixture
def one_token():
    return ONE_TOKEN


@pytest.fixture
def due_timestamp():
    return T0


@pytest.fixture
def standard_term():
    """One token at 10% for 30 days, starting at T0."""
    return LoanTerm(
        principal=ONE_TOKEN,
        rate_bps=1000,
        duration_seconds=30 * SECONDS_PER_DAY,
        start_timestamp=T0,
    )


# =============================================================================
# COLLATERAL
# =============================================================================

@pytest.fixture
def eth_asset():
    """Two ETH at $1,500."""
    return CollateralAsset(amount=2 * ONE_TOKEN, decimals=18, price_usd_micros=1_500_000_000, symbol="ETH")


@pytest.fixture
def usdc_asset():
    """One USDC at $1."""
    return CollateralAsset(amount=1_000_000, decimals=6, price_usd_micros=1_000_000, symbol="USDC")


@pytest.fixture
def mixed_position(eth_asset, usdc_asset):
    return CollateralPosition((eth_asset, usdc_asset))


# =============================================================================
# LOGGING
# =============================================================================

@pytest.fixture
def restore_package_logger():
    """Undo setup_logging() so later tests see default propagation."""
    yield
    logger = logging.getLogger("microloan")
    logger.handlers.clear()
    logger.setLevel(logging.NOTSET)
    logger.propagate = True
