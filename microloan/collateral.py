"""
collateral.py - Collateral valuation and position health

Pure functions over integer micro-USD values. Nothing here reads prices
itself: callers pass `price_usd_micros` per asset, fresh at call time.

ARCHITECTURE:
=============

1. FROZEN DATACLASSES:
   - CollateralAsset: one token holding with its oracle price
   - CollateralPosition: ordered tuple of assets
   - CollateralThresholds: the four health levels, as percents
   - CollateralRatio / CollateralCheck: results

2. PURE CALCULATION FUNCTIONS:
   - value_usd, collateral_ratio, health_factor, liquidation_price, ...
   - Every threshold comparison goes through collateral_ratio(), so the
     level, is_healthy and is_liquidatable answers always agree.

Key Formulas:
    value         = sum(amount * price_usd_micros // 10**decimals)
    ratio         = collateral_value * 100 / loan_value        (percent, 2dp, rounded down)
    health_factor = ratio / liquidation_ratio
    liq_price     = loan_value * liquidation_ratio / (100 * collateral_units)

Degenerate inputs are financial states, not errors:
    loan_value == 0         -> ratio and health factor are Infinity, level safe
    collateral_amount == 0  -> liquidation price 0
"""

from __future__ import annotations
from dataclasses import dataclass
from decimal import Decimal, ROUND_CEILING, ROUND_DOWN, localcontext
from enum import Enum
from typing import Iterable, Optional, Tuple, Union

from .core import (
    Amount, Numeric, ConfigPreset, DECIMAL_PRECISION,
    apply_percent, coerce_decimal_fields, round_half_up, round_up, reject,
    to_amount, to_decimal, require_non_negative_int,
)


INFINITY = Decimal('Infinity')


class CollateralLevel(str, Enum):
    SAFE = "safe"
    MODERATE = "moderate"
    WARNING = "warning"
    DANGER = "danger"


# ============================================================================
# CONFIGURATION
# ============================================================================

@dataclass(frozen=True, slots=True)
class CollateralThresholds(ConfigPreset):
    """
    Collateral ratio thresholds in percent.

    `warning` doubles as the liquidation ratio: a position below it is
    unhealthy and liquidatable. `moderate` is the default requirement for
    new loans.
    """
    safe: Decimal = Decimal(200)
    moderate: Decimal = Decimal(150)
    warning: Decimal = Decimal(130)
    danger: Decimal = Decimal(100)

    def __post_init__(self):
        coerce_decimal_fields(self, 'safe', 'moderate', 'warning', 'danger')
        if not (self.safe >= self.moderate >= self.warning >= self.danger >= 0):
            raise reject("thresholds", "thresholds must satisfy safe >= moderate >= warning >= danger >= 0")


DEFAULT_COLLATERAL_THRESHOLDS = CollateralThresholds()

DEFAULT_LIQUIDATION_PENALTY_PERCENT = Decimal(10)
DEFAULT_MAX_LTV_PERCENT = Decimal(75)


# ============================================================================
# DATA TYPES
# ============================================================================

@dataclass(frozen=True, slots=True)
class CollateralAsset:
    """
    A token holding. `amount` is in the token's smallest unit and
    `price_usd_micros` is the price of one whole token in millionths of a USD.
    """
    amount: Amount
    decimals: int
    price_usd_micros: int
    symbol: str = ""

    def __post_init__(self):
        object.__setattr__(self, 'amount', to_amount(self.amount, "amount"))
        require_non_negative_int(self.decimals, "decimals")
        if self.decimals > 255:
            raise reject("decimals", f"decimals must be at most 255, got {self.decimals}")
        require_non_negative_int(self.price_usd_micros, "price_usd_micros")

    @property
    def value_usd_micros(self) -> Amount:
        return self.amount * self.price_usd_micros // 10 ** self.decimals


@dataclass(frozen=True, slots=True)
class CollateralPosition:
    assets: Tuple[CollateralAsset, ...] = ()

    def __post_init__(self):
        if not isinstance(self.assets, tuple):
            object.__setattr__(self, 'assets', tuple(self.assets))

    def with_asset(self, asset: CollateralAsset) -> CollateralPosition:
        return CollateralPosition(self.assets + (asset,))


@dataclass(frozen=True, slots=True)
class CollateralRatio:
    ratio: Decimal          # percent, 2 decimals; Infinity when there is no debt
    level: CollateralLevel
    is_healthy: bool


@dataclass(frozen=True, slots=True)
class CollateralCheck:
    valid: bool
    shortfall: Amount       # additional collateral needed to reach the minimum
    ratio: Decimal


PositionLike = Union[CollateralPosition, Iterable[CollateralAsset]]


# ============================================================================
# VALUATION
# ============================================================================

def value_usd(position: PositionLike) -> Amount:
    """
    Total micro-USD value of a position.

    Each asset's contribution is truncated separately, so the result never
    depends on asset order.
    """
    assets = position.assets if isinstance(position, CollateralPosition) else tuple(position)
    return sum(asset.value_usd_micros for asset in assets)


def value_in_token(position: PositionLike, token_price_usd_micros: int, token_decimals: int = 0) -> Amount:
    """Position value expressed in smallest units of another token. Zero price gives 0."""
    require_non_negative_int(token_price_usd_micros, "token_price_usd_micros")
    require_non_negative_int(token_decimals, "token_decimals")
    if token_price_usd_micros == 0:
        return 0
    return value_usd(position) * 10 ** token_decimals // token_price_usd_micros


# ============================================================================
# RATIO AND HEALTH
# ============================================================================

def _percent(value: Optional[Numeric], default: Decimal, field: str) -> Decimal:
    if value is None:
        return default
    result = to_decimal(value, field)
    if result < 0:
        raise reject(field, f"{field} cannot be negative, got {result}")
    return result


def _level(ratio: Decimal, thresholds: CollateralThresholds) -> CollateralLevel:
    if ratio >= thresholds.safe:
        return CollateralLevel.SAFE
    if ratio >= thresholds.moderate:
        return CollateralLevel.MODERATE
    if ratio >= thresholds.warning:
        return CollateralLevel.WARNING
    return CollateralLevel.DANGER


def collateral_ratio(
    collateral_value: Amount,
    loan_value: Amount,
    thresholds: CollateralThresholds = DEFAULT_COLLATERAL_THRESHOLDS,
) -> CollateralRatio:
    """
    Collateralization ratio in percent, rounded down to 2 decimals.

    Level and health are classified from the truncated ratio, the same number
    the caller sees. Rounding down never lifts a position over a threshold it
    has not actually reached.

    Example:
        collateral_ratio(1_500_000, 1_000_000)
        # CollateralRatio(ratio=Decimal('150.00'), level=MODERATE, is_healthy=True)
    """
    collateral_value = to_amount(collateral_value, "collateral_value")
    loan_value = to_amount(loan_value, "loan_value")
    if loan_value == 0:
        return CollateralRatio(ratio=INFINITY, level=CollateralLevel.SAFE, is_healthy=True)

    with localcontext() as ctx:
        ctx.prec = DECIMAL_PRECISION
        ratio = (Decimal(collateral_value * 100) / Decimal(loan_value)).quantize(
            Decimal("0.01"), rounding=ROUND_DOWN,
        )
    return CollateralRatio(
        ratio=ratio,
        level=_level(ratio, thresholds),
        is_healthy=ratio >= thresholds.warning,
    )


def is_liquidatable(
    collateral_value: Amount,
    loan_value: Amount,
    thresholds: CollateralThresholds = DEFAULT_COLLATERAL_THRESHOLDS,
) -> bool:
    return not collateral_ratio(collateral_value, loan_value, thresholds).is_healthy


def health_factor(
    collateral_value: Amount,
    loan_value: Amount,
    liquidation_ratio: Optional[Numeric] = None,
    thresholds: CollateralThresholds = DEFAULT_COLLATERAL_THRESHOLDS,
) -> Decimal:
    """
    Distance from liquidation: ratio / liquidation_ratio.

    1.0 is the liquidation boundary; above 1 is healthy. Rounded down to
    4 decimals. Infinity when there is no debt.
    """
    liquidation_ratio = _percent(liquidation_ratio, thresholds.warning, "liquidation_ratio")
    if liquidation_ratio == 0:
        raise reject("liquidation_ratio", "liquidation_ratio must be positive")
    ratio = collateral_ratio(collateral_value, loan_value, thresholds).ratio
    if ratio.is_infinite():
        return INFINITY
    with localcontext() as ctx:
        ctx.prec = DECIMAL_PRECISION
        return (ratio / liquidation_ratio).quantize(Decimal("0.0001"), rounding=ROUND_DOWN)


def liquidation_price(
    collateral_amount: Amount,
    loan_value: Amount,
    liquidation_ratio: Optional[Numeric] = None,
    decimals: int = 0,
    thresholds: CollateralThresholds = DEFAULT_COLLATERAL_THRESHOLDS,
) -> Decimal:
    """
    Price of one whole collateral token (micro-USD) at which the position
    reaches the liquidation ratio.

    Args:
        collateral_amount: Collateral held, in the token's smallest unit
        loan_value: Outstanding debt in micro-USD
        liquidation_ratio: Percent (default: thresholds.warning)
        decimals: Token decimals, to convert collateral_amount to whole tokens

    Returns:
        Price rounded down to 6 decimals; 0 when there is no collateral.
    """
    collateral_amount = to_amount(collateral_amount, "collateral_amount")
    loan_value = to_amount(loan_value, "loan_value")
    require_non_negative_int(decimals, "decimals")
    liquidation_ratio = _percent(liquidation_ratio, thresholds.warning, "liquidation_ratio")
    if collateral_amount == 0:
        return Decimal(0)
    with localcontext() as ctx:
        ctx.prec = DECIMAL_PRECISION
        price = (
            Decimal(loan_value) * liquidation_ratio * Decimal(10 ** decimals)
            / (Decimal(100) * Decimal(collateral_amount))
        )
        return price.quantize(Decimal("0.000001"), rounding=ROUND_DOWN)


# ============================================================================
# REQUIREMENTS
# ============================================================================

def required_collateral(loan_value: Amount, required_ratio: Optional[Numeric] = None,
                        thresholds: CollateralThresholds = DEFAULT_COLLATERAL_THRESHOLDS) -> Amount:
    """
    Smallest collateral value that backs `loan_value` at `required_ratio`
    percent (default moderate). Rounded up: this is a minimum to meet.
    """
    loan_value = to_amount(loan_value, "loan_value")
    required_ratio = _percent(required_ratio, thresholds.moderate, "required_ratio")
    with localcontext() as ctx:
        ctx.prec = DECIMAL_PRECISION
        return round_up(Decimal(loan_value) * required_ratio / Decimal(100))


def additional_collateral_needed(collateral_value: Amount, loan_value: Amount,
                                 target_ratio: Optional[Numeric] = None,
                                 thresholds: CollateralThresholds = DEFAULT_COLLATERAL_THRESHOLDS) -> Amount:
    collateral_value = to_amount(collateral_value, "collateral_value")
    required = required_collateral(loan_value, target_ratio, thresholds)
    return max(0, required - collateral_value)


def liquidation_penalty(collateral_value: Amount,
                        penalty_percent: Numeric = DEFAULT_LIQUIDATION_PENALTY_PERCENT) -> Amount:
    """Share of collateral forfeited on liquidation (default 10%)."""
    collateral_value = to_amount(collateral_value, "collateral_value")
    return apply_percent(collateral_value, _percent(penalty_percent, DEFAULT_LIQUIDATION_PENALTY_PERCENT, "penalty_percent"))


def max_borrowable(collateral_value: Amount, max_ltv_percent: Numeric = DEFAULT_MAX_LTV_PERCENT) -> Amount:
    collateral_value = to_amount(collateral_value, "collateral_value")
    return apply_percent(collateral_value, _percent(max_ltv_percent, DEFAULT_MAX_LTV_PERCENT, "max_ltv_percent"))


def collateral_buffer(collateral_value: Amount, loan_value: Amount,
                      liquidation_ratio: Optional[Numeric] = None,
                      thresholds: CollateralThresholds = DEFAULT_COLLATERAL_THRESHOLDS) -> Amount:
    """Collateral value that can be lost before the position hits the liquidation ratio."""
    collateral_value = to_amount(collateral_value, "collateral_value")
    liquidation_value = required_collateral(
        loan_value, _percent(liquidation_ratio, thresholds.warning, "liquidation_ratio"), thresholds,
    )
    return max(0, collateral_value - liquidation_value)


def loan_to_value(collateral_value: Amount, loan_value: Amount) -> Decimal:
    """
    LTV in percent, rounded half up to 2 decimals.

    No debt gives 0. Debt with no collateral gives Infinity.
    """
    collateral_value = to_amount(collateral_value, "collateral_value")
    loan_value = to_amount(loan_value, "loan_value")
    if loan_value == 0:
        return Decimal("0.00")
    if collateral_value == 0:
        return INFINITY
    with localcontext() as ctx:
        ctx.prec = DECIMAL_PRECISION
        return round_half_up(Decimal(loan_value * 100) / Decimal(collateral_value), 2)


def validate_collateral(collateral_value: Amount, loan_value: Amount,
                        min_ratio: Optional[Numeric] = None,
                        thresholds: CollateralThresholds = DEFAULT_COLLATERAL_THRESHOLDS) -> CollateralCheck:
    """
    Check a position against a minimum ratio (default moderate) and report the
    shortfall: the least extra collateral after which the check passes.
    """
    min_ratio = _percent(min_ratio, thresholds.moderate, "min_ratio")
    ratio = collateral_ratio(collateral_value, loan_value, thresholds).ratio
    if ratio >= min_ratio:
        return CollateralCheck(valid=True, shortfall=0, ratio=ratio)
    # the published ratio moves in 0.01 steps, so aim for the first step >= min_ratio
    target = min_ratio.quantize(Decimal("0.01"), rounding=ROUND_CEILING)
    shortfall = additional_collateral_needed(collateral_value, loan_value, target, thresholds)
    return CollateralCheck(valid=False, shortfall=shortfall, ratio=ratio)


__all__ = [
    'CollateralLevel', 'CollateralThresholds', 'DEFAULT_COLLATERAL_THRESHOLDS',
    'CollateralAsset', 'CollateralPosition', 'CollateralRatio', 'CollateralCheck',
    'value_usd', 'value_in_token', 'collateral_ratio', 'is_liquidatable',
    'health_factor', 'liquidation_price', 'required_collateral',
    'additional_collateral_needed', 'liquidation_penalty', 'max_borrowable',
    'collateral_buffer', 'loan_to_value', 'validate_collateral',
]
