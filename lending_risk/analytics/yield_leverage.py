"""Net APY and leverage from supply/borrow values and rates."""
from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from decimal import Decimal

from ..errors import ErrorCode, fail
from ..models import ZERO, ReserveSnapshot

ONE = Decimal(1)


@dataclass(frozen=True)
class LeveragedYield:
    net_apy: Decimal
    total_supply_yield: Decimal
    total_borrow_cost: Decimal
    leveraged_yield: Decimal


def _weighted_supply_apy(positions: list[ReserveSnapshot]) -> Decimal:
    total = ZERO
    weighted = ZERO
    for p in positions:
        value = p.supplied_value
        if value <= 0:
            continue
        total += value
        weighted += (p.supply_apy + p.supply_incentive_apr) * value
    return weighted / total if total > 0 else ZERO


def _weighted_borrow_apy(positions: list[ReserveSnapshot]) -> Decimal:
    total = ZERO
    weighted = ZERO
    for p in positions:
        variable_value = p.variable_debt * p.price
        stable_value = p.stable_debt * p.price
        if variable_value > 0:
            total += variable_value
            weighted += (p.variable_borrow_apy - p.borrow_incentive_apr) * variable_value
        if stable_value > 0:
            total += stable_value
            weighted += (p.stable_borrow_apy - p.borrow_incentive_apr) * stable_value
    return weighted / total if total > 0 else ZERO


def calc_net_apy(positions: Iterable[ReserveSnapshot]) -> Decimal:
    """Value-weighted supply yield minus value-weighted borrow cost, in %.

    Supply side includes incentive APR; borrow side is reduced by it.
    Variable and stable debt are weighted with their own rates.
    """
    positions = list(positions)
    return _weighted_supply_apy(positions) - _weighted_borrow_apy(positions)


def calc_leverage_ratio(total_supply_value: Decimal, total_borrow_value: Decimal) -> Decimal:
    """Supply over equity; 1 when equity is not positive."""
    equity = total_supply_value - total_borrow_value
    if equity <= 0:
        return ONE
    return total_supply_value / equity


def calc_leveraged_yield(
    positions: Iterable[ReserveSnapshot], leverage: Decimal = ONE
) -> LeveragedYield:
    """Yield of the current book and of the same book looped to ``leverage``.

    leveraged_yield = supply_yield × L − borrow_cost × (L − 1)
    """
    if leverage < ONE:
        raise fail(
            ErrorCode.INVALID_PARAMETERS,
            technical_message=f"leverage must be at least 1, got {leverage}",
        )
    positions = list(positions)
    supply_yield = _weighted_supply_apy(positions)
    borrow_cost = _weighted_borrow_apy(positions)
    return LeveragedYield(
        net_apy=supply_yield - borrow_cost,
        total_supply_yield=supply_yield,
        total_borrow_cost=borrow_cost,
        leveraged_yield=supply_yield * leverage - borrow_cost * (leverage - ONE),
    )
