"""Pure parsing of raw reserve/user records into typed snapshots. No I/O.

Raw records follow the "humanized" pool data layout: rates and LTVs are
fractions (``"0.035"`` is 3.5 %), balances are token units, prices are in
USD. Snapshot rates are stored as percentages.
"""
from __future__ import annotations

import decimal
import logging
from collections.abc import Iterable
from dataclasses import replace
from decimal import Decimal
from typing import Any

from ..errors import ErrorCode, fail
from ..models import ZERO, ReserveSnapshot, UserPositionSummary
from .health import calc_current_ltv, calc_health_factor

logger = logging.getLogger(__name__)

HUNDRED = Decimal(100)

_AMOUNT_KEYS = ("priceInUSD", "totalLiquidity", "totalDebt", "availableLiquidity")
_USER_AMOUNT_KEYS = ("underlyingBalance", "variableBorrows", "stableBorrows")


def to_decimal(value: Any, field_name: str = "value") -> Decimal:
    """Convert a raw number or numeric string to ``Decimal`` via ``str``."""
    if value is None or value == "":
        return ZERO
    try:
        result = Decimal(str(value))
    except decimal.InvalidOperation:
        result = None
    if result is None or not result.is_finite():
        raise fail(
            ErrorCode.INVALID_PARAMETERS,
            technical_message=f"{field_name} is not a number: {value!r}",
        )
    return result


def _amount(raw: dict[str, Any], key: str) -> Decimal:
    value = to_decimal(raw.get(key), key)
    if value < 0:
        raise fail(
            ErrorCode.INVALID_PARAMETERS,
            technical_message=f"{key} must be non-negative, got {value}",
        )
    return value


def _override(raw: dict[str, Any], key: str, base: Decimal) -> Decimal:
    value = raw.get(key)
    if value is None or value == "":
        return base
    return to_decimal(value, key)


def _int_field(raw: dict[str, Any], key: str, default: int) -> int:
    value = raw.get(key)
    if value is None or value == "":
        return default
    try:
        return int(value)
    except (TypeError, ValueError):
        raise fail(
            ErrorCode.INVALID_PARAMETERS,
            technical_message=f"{key} is not an integer: {value!r}",
        ) from None


def _incentive_apr(entries: list[dict[str, Any]] | None) -> Decimal:
    """Sum of reward APRs, as a percentage."""
    total = sum(
        (to_decimal(e.get("incentiveAPR"), "incentiveAPR") for e in entries or []), ZERO
    )
    return total * HUNDRED


def parse_reserve(raw: dict[str, Any], emode_category_id: int = 0) -> ReserveSnapshot:
    """Parse one market reserve record.

    When the user is in an eMode category that matches the reserve's, the
    category's LTV and liquidation threshold replace the base values.
    """
    amounts = {key: _amount(raw, key) for key in _AMOUNT_KEYS}

    reserve_emode = _int_field(raw, "eModeCategoryId", 0)
    ltv = to_decimal(raw.get("formattedBaseLTVasCollateral"), "formattedBaseLTVasCollateral")
    threshold = to_decimal(
        raw.get("formattedReserveLiquidationThreshold"),
        "formattedReserveLiquidationThreshold",
    )
    if emode_category_id and reserve_emode == emode_category_id:
        # Missing or null category values keep the base parameters.
        ltv = _override(raw, "formattedEModeLtv", ltv)
        threshold = _override(raw, "formattedEModeLiquidationThreshold", threshold)

    return ReserveSnapshot(
        asset=raw.get("underlyingAsset", ""),
        symbol=raw.get("symbol", ""),
        decimals=_int_field(raw, "decimals", 18),
        price=amounts["priceInUSD"],
        supply_apy=to_decimal(raw.get("supplyAPY"), "supplyAPY") * HUNDRED,
        variable_borrow_apy=to_decimal(raw.get("variableBorrowAPY"), "variableBorrowAPY") * HUNDRED,
        stable_borrow_apy=to_decimal(raw.get("stableBorrowAPY"), "stableBorrowAPY") * HUNDRED,
        supply_incentive_apr=_incentive_apr(raw.get("aIncentivesData")),
        borrow_incentive_apr=_incentive_apr(raw.get("vIncentivesData")),
        ltv=ltv,
        liquidation_threshold=threshold,
        is_active=bool(raw.get("isActive", True)),
        is_frozen=bool(raw.get("isFrozen", False)),
        is_paused=bool(raw.get("isPaused", False)),
        borrowing_enabled=bool(raw.get("borrowingEnabled", True)),
        stable_borrowing_enabled=bool(raw.get("stableBorrowRateEnabled", False)),
        total_liquidity=amounts["totalLiquidity"],
        total_debt_market=amounts["totalDebt"],
        available_liquidity=amounts["availableLiquidity"],
        emode_category_id=reserve_emode,
    )


def merge_user_reserve(reserve: ReserveSnapshot, raw_user: dict[str, Any]) -> ReserveSnapshot:
    """Return a copy of *reserve* carrying the user's balances."""
    amounts = {key: _amount(raw_user, key) for key in _USER_AMOUNT_KEYS}
    return replace(
        reserve,
        supplied=amounts["underlyingBalance"],
        variable_debt=amounts["variableBorrows"],
        stable_debt=amounts["stableBorrows"],
        is_collateral=bool(raw_user.get("usageAsCollateralEnabledOnUser", False)),
    )


def parse_claimable_rewards(raw_rewards: list[dict[str, Any]] | None) -> Decimal:
    """Total claimable incentive value in USD."""
    return sum(
        (_amount(r, "claimableUSD") for r in raw_rewards or []),
        ZERO,
    )


def summarize(
    user: str,
    reserves: Iterable[ReserveSnapshot],
    emode_category_id: int = 0,
    now: int = 0,
) -> UserPositionSummary:
    """Aggregate per-reserve balances into a position summary.

    Only reserves the user enabled as collateral, with a non-zero
    liquidation threshold, count towards collateral.
    """
    positions = tuple(r for r in reserves if r.has_balance)

    total_supply = ZERO
    total_collateral = ZERO
    total_debt = ZERO
    weighted_threshold = ZERO
    weighted_ltv = ZERO
    for p in positions:
        total_supply += p.supplied_value
        total_debt += p.borrowed_value
        if p.is_collateral and p.liquidation_threshold > 0:
            value = p.supplied_value
            total_collateral += value
            weighted_threshold += value * p.liquidation_threshold
            weighted_ltv += value * p.ltv

    avg_threshold = weighted_threshold / total_collateral if total_collateral > 0 else ZERO
    avg_ltv = weighted_ltv / total_collateral if total_collateral > 0 else ZERO

    return UserPositionSummary(
        user=user,
        total_collateral_value=total_collateral,
        total_supply_value=total_supply,
        total_debt_value=total_debt,
        available_borrows=max(weighted_ltv - total_debt, ZERO),
        health_factor=calc_health_factor(weighted_threshold, total_debt),
        current_ltv=calc_current_ltv(total_debt, total_collateral),
        liquidation_threshold=avg_threshold,
        ltv=avg_ltv,
        emode_category_id=emode_category_id,
        positions=positions,
        last_updated=now,
    )


def normalize(
    raw_reserves: list[dict[str, Any]] | None,
    raw_user_reserves: list[dict[str, Any]] | None,
    emode_category_id: int,
    user: str,
    now: int = 0,
) -> tuple[UserPositionSummary, tuple[ReserveSnapshot, ...]]:
    """Build the user's summary and the full market snapshot list.

    Raises:
        LendingError: ``DataFetchFailed`` when either raw list is missing,
            ``InvalidParameters`` for negative or non-numeric amounts.
    """
    if raw_reserves is None or raw_user_reserves is None:
        missing = "market reserves" if raw_reserves is None else "user reserves"
        raise fail(ErrorCode.DATA_FETCH_FAILED, technical_message=f"missing {missing}")

    user_by_asset = {
        str(u.get("underlyingAsset", "")).lower(): u for u in raw_user_reserves
    }

    snapshots: list[ReserveSnapshot] = []
    for raw in raw_reserves:
        reserve = parse_reserve(raw, emode_category_id)
        raw_user = user_by_asset.pop(reserve.asset.lower(), None)
        if raw_user is not None:
            reserve = merge_user_reserve(reserve, raw_user)
        snapshots.append(reserve)

    for asset in user_by_asset:
        logger.warning("User reserve %s has no market reserve, ignoring", asset)

    summary = summarize(user, snapshots, emode_category_id, now)
    logger.debug(
        "Normalized %d reserves for %s (%d positions)",
        len(snapshots),
        user,
        len(summary.positions),
    )
    return summary, tuple(snapshots)


# ---------------------------------------------------------------------------
# Inverse mapping
# ---------------------------------------------------------------------------


def _incentive_entries(apr_pct: Decimal) -> list[dict[str, str]]:
    if apr_pct == 0:
        return []
    return [{"incentiveAPR": str(apr_pct / HUNDRED)}]


def to_raw_reserves(snapshots: Iterable[ReserveSnapshot]) -> list[dict[str, Any]]:
    """Render snapshots back into raw market records.

    Effective LTV and threshold are written as both base and eMode values,
    so re-parsing under any eMode category yields the same snapshot.
    """
    return [
        {
            "underlyingAsset": s.asset,
            "symbol": s.symbol,
            "decimals": s.decimals,
            "priceInUSD": str(s.price),
            "supplyAPY": str(s.supply_apy / HUNDRED),
            "variableBorrowAPY": str(s.variable_borrow_apy / HUNDRED),
            "stableBorrowAPY": str(s.stable_borrow_apy / HUNDRED),
            "aIncentivesData": _incentive_entries(s.supply_incentive_apr),
            "vIncentivesData": _incentive_entries(s.borrow_incentive_apr),
            "formattedBaseLTVasCollateral": str(s.ltv),
            "formattedReserveLiquidationThreshold": str(s.liquidation_threshold),
            "formattedEModeLtv": str(s.ltv),
            "formattedEModeLiquidationThreshold": str(s.liquidation_threshold),
            "eModeCategoryId": s.emode_category_id,
            "isActive": s.is_active,
            "isFrozen": s.is_frozen,
            "isPaused": s.is_paused,
            "borrowingEnabled": s.borrowing_enabled,
            "stableBorrowRateEnabled": s.stable_borrowing_enabled,
            "totalLiquidity": str(s.total_liquidity),
            "totalDebt": str(s.total_debt_market),
            "availableLiquidity": str(s.available_liquidity),
        }
        for s in snapshots
    ]


def to_raw_user_reserves(positions: Iterable[ReserveSnapshot]) -> list[dict[str, Any]]:
    """Render user balances back into raw user-reserve records."""
    return [
        {
            "underlyingAsset": p.asset,
            "underlyingBalance": str(p.supplied),
            "variableBorrows": str(p.variable_debt),
            "stableBorrows": str(p.stable_debt),
            "usageAsCollateralEnabledOnUser": p.is_collateral,
        }
        for p in positions
    ]
