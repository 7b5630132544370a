"""Strategy suggestions derived from market snapshots and a risk assessment."""
from __future__ import annotations

from collections.abc import Iterable
from decimal import Decimal

from ..models import (
    HealthFactorStatus,
    LeverageOpportunity,
    RateMode,
    RateOptimization,
    ReserveSnapshot,
    RiskAssessment,
    RiskReduction,
    StrategyRecommendations,
    UserPositionSummary,
    YieldOptimization,
)
from .health import health_factor_status

HUNDRED = Decimal(100)

MIN_LEVERAGE_SPREAD = Decimal(2)
MIN_YIELD_GAIN = Decimal(1)
MIN_RATE_SAVING = Decimal(1)
MAX_YIELD_SWITCHES = 3
HIGH_RISK_SCORE = 70
LOW_DIVERSIFICATION = Decimal("0.5")
HIGH_LEVERAGE = Decimal(2)

_LEVERAGE_STATUSES = frozenset({HealthFactorStatus.SAFE, HealthFactorStatus.VERY_SAFE})
_ADD_COLLATERAL_STATUSES = frozenset(
    {
        HealthFactorStatus.RISKY,
        HealthFactorStatus.CRITICAL,
        HealthFactorStatus.LIQUIDATABLE,
    }
)


def leverage_opportunities(
    reserves: Iterable[ReserveSnapshot],
    status: HealthFactorStatus,
    leverage_ratio: Decimal,
) -> tuple[LeverageOpportunity, ...]:
    """Reserves whose supply rate beats their own variable borrow rate by > 2 pp."""
    if status not in _LEVERAGE_STATUSES:
        return ()
    risk_level = "high" if leverage_ratio > HIGH_LEVERAGE else "medium"
    out: list[LeverageOpportunity] = []
    for r in reserves:
        if not r.is_usable or not r.borrowing_enabled:
            continue
        spread = r.supply_apy - r.variable_borrow_apy
        if spread <= MIN_LEVERAGE_SPREAD:
            continue
        out.append(
            LeverageOpportunity(
                asset=r.symbol,
                action=f"Borrow {r.symbol} and supply to earn spread",
                expected_apy=spread,
                risk_level=risk_level,
                description=(
                    f"Supply at {r.supply_apy:.2f}% while borrowing at "
                    f"{r.variable_borrow_apy:.2f}%"
                ),
            )
        )
    return tuple(out)


def yield_optimizations(
    reserves: Iterable[ReserveSnapshot],
    positions: Iterable[ReserveSnapshot],
) -> tuple[YieldOptimization, ...]:
    """Up to three better-paying reserves per supplied asset, best first."""
    targets = [r for r in reserves if r.is_usable]
    out: list[YieldOptimization] = []
    for held in positions:
        if held.supplied <= 0:
            continue
        better = [
            r
            for r in targets
            if r.asset.lower() != held.asset.lower()
            and r.supply_apy - held.supply_apy >= MIN_YIELD_GAIN
        ]
        better.sort(key=lambda r: r.supply_apy, reverse=True)
        for r in better[:MAX_YIELD_SWITCHES]:
            out.append(
                YieldOptimization(
                    from_symbol=held.symbol,
                    to_symbol=r.symbol,
                    expected_gain=r.supply_apy - held.supply_apy,
                    description=(
                        f"Switch from {held.supply_apy:.2f}% to {r.supply_apy:.2f}% APY"
                    ),
                )
            )
    return tuple(out)


def risk_reductions(
    assessment: RiskAssessment, status: HealthFactorStatus
) -> tuple[RiskReduction, ...]:
    out: list[RiskReduction] = []
    if assessment.score > HIGH_RISK_SCORE:
        out.append(
            RiskReduction(
                action="Reduce position size",
                impact="Significantly lower liquidation risk",
                priority="high",
                description="Consider reducing leverage by repaying some debt",
            )
        )
    if status in _ADD_COLLATERAL_STATUSES:
        out.append(
            RiskReduction(
                action="Add collateral",
                impact="Improve health factor",
                priority="high",
                description="Supply additional assets to increase collateral ratio",
            )
        )
    if assessment.diversification_score < LOW_DIVERSIFICATION:
        out.append(
            RiskReduction(
                action="Diversify holdings",
                impact="Reduce concentration risk",
                priority="medium",
                description="Spread positions across more assets",
            )
        )
    return tuple(out)


def _rate_switch(
    position: ReserveSnapshot,
    current: RateMode,
    debt_amount: Decimal,
) -> RateOptimization | None:
    if current is RateMode.VARIABLE:
        if not position.stable_borrowing_enabled:
            return None
        current_rate, suggested, suggested_rate = (
            position.variable_borrow_apy,
            RateMode.STABLE,
            position.stable_borrow_apy,
        )
    else:
        current_rate, suggested, suggested_rate = (
            position.stable_borrow_apy,
            RateMode.VARIABLE,
            position.variable_borrow_apy,
        )

    saving = current_rate - suggested_rate
    if saving < MIN_RATE_SAVING:
        return None
    debt_value = debt_amount * position.price
    return RateOptimization(
        asset=position.symbol,
        current_mode=current,
        current_rate=current_rate,
        suggested_mode=suggested,
        suggested_rate=suggested_rate,
        debt_value=debt_value,
        annual_savings=debt_value * saving / HUNDRED,
        recommendation=(
            f"Switch {position.symbol} debt from {current.value} "
            f"({current_rate:.2f}%) to {suggested.value} ({suggested_rate:.2f}%)"
        ),
    )


def rate_optimizations(positions: Iterable[ReserveSnapshot]) -> tuple[RateOptimization, ...]:
    """Debt that would be at least 1 pp cheaper in the other rate mode."""
    out: list[RateOptimization] = []
    for p in positions:
        if not p.is_usable:
            continue
        for mode, amount in ((RateMode.VARIABLE, p.variable_debt), (RateMode.STABLE, p.stable_debt)):
            if amount <= 0:
                continue
            switch = _rate_switch(p, mode, amount)
            if switch is not None:
                out.append(switch)
    return tuple(out)


def recommend(
    market_reserves: Iterable[ReserveSnapshot],
    summary: UserPositionSummary,
    leverage_ratio: Decimal,
    assessment: RiskAssessment,
) -> StrategyRecommendations:
    """All strategy suggestions for one user.

    Inactive, frozen or paused reserves are never suggested as targets.
    """
    reserves = tuple(market_reserves)
    status = health_factor_status(summary.health_factor)
    return StrategyRecommendations(
        leverage_opportunities=leverage_opportunities(reserves, status, leverage_ratio),
        yield_optimizations=yield_optimizations(reserves, summary.positions),
        risk_reductions=risk_reductions(assessment, status),
        rate_optimizations=rate_optimizations(summary.positions),
    )
