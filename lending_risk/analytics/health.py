"""Health factor and liquidation-distance math. Pure functions, no I/O."""
from __future__ import annotations

from decimal import Decimal

from ..errors import ErrorCode, fail
from ..models import INFINITY, ZERO, HealthFactorStatus

ONE = Decimal(1)
HUNDRED = Decimal(100)
DAYS_PER_YEAR = Decimal(365)

# Above this the position is considered out of reach of liquidation.
BUFFER_CEILING_HF = Decimal(10)

# (exclusive upper bound, status), checked in order.
_STATUS_BANDS: tuple[tuple[Decimal, HealthFactorStatus], ...] = (
    (Decimal("1"), HealthFactorStatus.LIQUIDATABLE),
    (Decimal("1.1"), HealthFactorStatus.CRITICAL),
    (Decimal("1.5"), HealthFactorStatus.RISKY),
    (Decimal("2"), HealthFactorStatus.MODERATE),
    (Decimal("3"), HealthFactorStatus.SAFE),
)


def calc_health_factor(weighted_collateral: Decimal, total_debt: Decimal) -> Decimal:
    """Risk-adjusted collateral over debt.

    health_factor = Σ(collateral_i × liquidation_threshold_i) / total_debt

    ``weighted_collateral`` is the numerator already summed, i.e. total
    collateral value times the average liquidation threshold. Returns
    ``INFINITY`` iff there is no debt.
    """
    if total_debt <= 0:
        return INFINITY
    return weighted_collateral / total_debt


def calc_current_ltv(total_debt: Decimal, total_collateral: Decimal) -> Decimal:
    """Debt over collateral as a fraction; 0 without collateral."""
    if total_collateral <= 0:
        return ZERO
    return total_debt / total_collateral


def health_factor_status(health_factor: Decimal) -> HealthFactorStatus:
    if health_factor.is_infinite():
        return HealthFactorStatus.NO_DEBT
    for bound, status in _STATUS_BANDS:
        if health_factor < bound:
            return status
    return HealthFactorStatus.VERY_SAFE


def liquidation_buffer_days(health_factor: Decimal, net_apy: Decimal) -> Decimal:
    """Days until liquidation if the position keeps drifting at ``net_apy``.

    This is a trend approximation, not a price-path simulation: the health
    factor is assumed to decline linearly at ``|net_apy| / 365 / 100`` per
    day. ``INFINITY`` when the health factor is at least 10 or there is no
    drift; 0 when the position is already liquidatable.
    """
    if health_factor >= BUFFER_CEILING_HF:
        return INFINITY
    if health_factor <= ONE:
        return ZERO
    daily_decline = abs(net_apy) / DAYS_PER_YEAR / HUNDRED
    if daily_decline == 0:
        return INFINITY
    return (health_factor - ONE) / daily_decline


def collateral_drop_to_liquidation_pct(health_factor: Decimal) -> Decimal:
    """Percentage fall in collateral value that brings the health factor to 1.

    This ``(hf - 1) / hf × 100`` figure is the quantity Aave dashboards
    commonly label "liquidation risk"; ``liquidation_risk_pct`` reports
    its complement.
    """
    if health_factor.is_infinite():
        return HUNDRED
    if health_factor <= ONE:
        return ZERO
    return (health_factor - ONE) / health_factor * HUNDRED


def liquidation_risk_pct(health_factor: Decimal) -> Decimal:
    """0 with no debt, 100 once liquidatable.

    Grows as the position nears liquidation. Callers that want the
    distance to liquidation, ``(hf - 1) / hf × 100``, should use
    ``collateral_drop_to_liquidation_pct``.
    """
    return HUNDRED - collateral_drop_to_liquidation_pct(health_factor)


def calc_liquidation_price(
    collateral_amount: Decimal,
    debt_value: Decimal,
    liquidation_threshold: Decimal,
) -> Decimal:
    """Collateral price at which the position becomes liquidatable.

    liquidation_price = debt_value / (collateral_amount × liquidation_threshold)

    ``liquidation_threshold`` is a fraction. Returns 0 when there is no debt.
    """
    if collateral_amount < 0 or debt_value < 0 or liquidation_threshold < 0:
        raise fail(ErrorCode.INVALID_PARAMETERS, technical_message="negative input")
    if debt_value == 0:
        return ZERO
    if collateral_amount == 0 or liquidation_threshold == 0:
        raise fail(
            ErrorCode.INVALID_PARAMETERS,
            technical_message="debt without liquidation-eligible collateral",
        )
    return debt_value / (collateral_amount * liquidation_threshold)


def calc_max_borrow_amount(
    collateral_value: Decimal,
    current_debt: Decimal,
    ltv: Decimal,
    asset_price: Decimal,
) -> Decimal:
    """Additional units of an asset that can be borrowed at ``ltv``."""
    if asset_price <= 0:
        raise fail(
            ErrorCode.INVALID_PARAMETERS,
            technical_message=f"asset price must be positive, got {asset_price}",
        )
    headroom = collateral_value * ltv - current_debt
    return max(headroom / asset_price, ZERO)
