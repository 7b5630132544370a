"""Market-wide reserve statistics."""
from __future__ import annotations

from collections.abc import Iterable
from decimal import Decimal

from ..errors import ErrorCode, analytics_context, fail
from ..models import (
    ZERO,
    MarketInsights,
    ReserveAnalytics,
    ReserveRanking,
    ReserveSnapshot,
)

HUNDRED = Decimal(100)
DEFAULT_TOP_N = 10


def reserve_analytics(reserve: ReserveSnapshot) -> ReserveAnalytics:
    """Utilization and incentive figures for one reserve.

    utilization = total_debt / total_liquidity × 100
    """
    utilization = ZERO
    if reserve.total_liquidity > 0:
        utilization = reserve.total_debt_market / reserve.total_liquidity * HUNDRED
    return ReserveAnalytics(
        reserve=reserve,
        utilization_pct=utilization,
        total_liquidity=reserve.total_liquidity,
        total_borrowed=reserve.total_debt_market,
        available_liquidity=reserve.available_liquidity,
        incentive_apr=reserve.supply_incentive_apr + reserve.borrow_incentive_apr,
    )


def find_reserve(reserves: Iterable[ReserveSnapshot], asset: str) -> ReserveSnapshot:
    """Look a reserve up by underlying address or symbol, case-insensitively."""
    needle = asset.lower()
    for r in reserves:
        if r.asset.lower() == needle or r.symbol.lower() == needle:
            return r
    raise fail(
        ErrorCode.ASSET_NOT_SUPPORTED,
        analytics_context(asset=asset),
        technical_message=f"Reserve not found for {asset}",
    )


def market_insights(
    reserves: Iterable[ReserveSnapshot], top_n: int = DEFAULT_TOP_N
) -> MarketInsights:
    """Totals, value-weighted average rates and top reserves."""
    reserves = list(reserves)

    tvl = ZERO
    borrowed = ZERO
    weighted_supply = ZERO
    weighted_borrow = ZERO
    for r in reserves:
        liquidity_value = r.total_liquidity * r.price
        debt_value = r.total_debt_market * r.price
        tvl += liquidity_value
        borrowed += debt_value
        weighted_supply += r.supply_apy * liquidity_value
        weighted_borrow += r.variable_borrow_apy * debt_value

    def ranking(r: ReserveSnapshot) -> ReserveRanking:
        return ReserveRanking(
            symbol=r.symbol, liquidity=r.total_liquidity * r.price, apy=r.supply_apy
        )

    by_liquidity = sorted(reserves, key=lambda r: r.total_liquidity * r.price, reverse=True)
    by_apy = sorted(reserves, key=lambda r: r.supply_apy, reverse=True)

    return MarketInsights(
        total_value_locked=tvl,
        total_borrowed=borrowed,
        average_supply_apy=weighted_supply / tvl if tvl > 0 else ZERO,
        average_borrow_apy=weighted_borrow / borrowed if borrowed > 0 else ZERO,
        top_reserves_by_liquidity=tuple(ranking(r) for r in by_liquidity[:top_n]),
        top_reserves_by_apy=tuple(ranking(r) for r in by_apy[:top_n]),
    )
