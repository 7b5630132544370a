"""Unit tests for strategy recommendations."""
from __future__ import annotations

from decimal import Decimal
from typing import Callable

import pytest

from lending_risk.analytics.strategy import (
    leverage_opportunities,
    rate_optimizations,
    recommend,
    risk_reductions,
    yield_optimizations,
)
from lending_risk.models import (
    INFINITY,
    HealthFactorStatus,
    RateMode,
    ReserveSnapshot,
    RiskAssessment,
    UserPositionSummary,
)

D = Decimal
MakeReserve = Callable[..., ReserveSnapshot]


def _assessment(score: int = 0, diversification: str = "0.9") -> RiskAssessment:
    return RiskAssessment(
        score=score,
        risk_factors=(),
        recommendations=(),
        liquidation_buffer=INFINITY,
        diversification_score=D(diversification),
    )


def _summary(health_factor: Decimal, positions: tuple[ReserveSnapshot, ...]) -> UserPositionSummary:
    return UserPositionSummary(
        user="0xUSER",
        total_collateral_value=D(0),
        total_supply_value=D(0),
        total_debt_value=D(0),
        available_borrows=D(0),
        health_factor=health_factor,
        current_ltv=D(0),
        liquidation_threshold=D(0),
        ltv=D(0),
        positions=positions,
    )


class TestLeverageOpportunities:
    def test_spread_above_two_points(self, make_reserve: MakeReserve) -> None:
        reserves = [
            make_reserve("DAI", supply_apy=D(8), variable_borrow_apy=D("4.5")),
            make_reserve("USDC", supply_apy=D(4), variable_borrow_apy=D(5)),
            make_reserve("EDGE", supply_apy=D(6), variable_borrow_apy=D(4)),
        ]
        result = leverage_opportunities(reserves, HealthFactorStatus.SAFE, D("1.5"))
        assert [o.asset for o in result] == ["DAI"]
        assert result[0].expected_apy == D("3.5")
        assert result[0].risk_level == "medium"
        assert result[0].action == "Borrow DAI and supply to earn spread"

    def test_high_risk_tag_when_leveraged(self, make_reserve: MakeReserve) -> None:
        reserves = [make_reserve("DAI", supply_apy=D(8), variable_borrow_apy=D(1))]
        result = leverage_opportunities(reserves, HealthFactorStatus.VERY_SAFE, D("2.5"))
        assert result[0].risk_level == "high"

    @pytest.mark.parametrize(
        "status",
        [
            HealthFactorStatus.MODERATE,
            HealthFactorStatus.RISKY,
            HealthFactorStatus.CRITICAL,
            HealthFactorStatus.LIQUIDATABLE,
            HealthFactorStatus.NO_DEBT,
        ],
    )
    def test_only_for_safe_positions(
        self, make_reserve: MakeReserve, status: HealthFactorStatus
    ) -> None:
        reserves = [make_reserve("DAI", supply_apy=D(8), variable_borrow_apy=D(1))]
        assert leverage_opportunities(reserves, status, D(1)) == ()

    def test_skips_unusable_reserves(self, make_reserve: MakeReserve) -> None:
        reserves = [
            make_reserve("A", supply_apy=D(9), variable_borrow_apy=D(1), is_frozen=True),
            make_reserve("B", supply_apy=D(9), variable_borrow_apy=D(1), borrowing_enabled=False),
        ]
        assert leverage_opportunities(reserves, HealthFactorStatus.SAFE, D(1)) == ()


class TestYieldOptimizations:
    def test_ranked_top_three(self, make_reserve: MakeReserve) -> None:
        held = make_reserve("WETH", supplied=D(1), supply_apy=D(2))
        reserves = [
            held,
            make_reserve("A", supply_apy=D(3)),
            make_reserve("B", supply_apy=D(7)),
            make_reserve("C", supply_apy=D(5)),
            make_reserve("D", supply_apy=D(4)),
            make_reserve("E", supply_apy=D("2.5")),
        ]
        result = yield_optimizations(reserves, [held])
        assert [o.to_symbol for o in result] == ["B", "C", "D"]
        assert result[0].from_symbol == "WETH"
        assert result[0].expected_gain == D(5)
        assert result[0].description == "Switch from 2.00% to 7.00% APY"

    def test_exactly_one_point_qualifies(self, make_reserve: MakeReserve) -> None:
        held = make_reserve("WETH", supplied=D(1), supply_apy=D(2))
        result = yield_optimizations([held, make_reserve("A", supply_apy=D(3))], [held])
        assert [o.to_symbol for o in result] == ["A"]

    def test_borrow_only_positions_ignored(self, make_reserve: MakeReserve) -> None:
        held = make_reserve("USDC", variable_debt=D(10), supply_apy=D(1))
        assert yield_optimizations([held, make_reserve("A", supply_apy=D(9))], [held]) == ()

    def test_unusable_targets_skipped(self, make_reserve: MakeReserve) -> None:
        held = make_reserve("WETH", supplied=D(1), supply_apy=D(2))
        reserves = [
            make_reserve("P", supply_apy=D(9), is_paused=True),
            make_reserve("I", supply_apy=D(9), is_active=False),
        ]
        assert yield_optimizations(reserves, [held]) == ()


class TestRiskReductions:
    def test_high_score(self) -> None:
        result = risk_reductions(_assessment(score=71), HealthFactorStatus.SAFE)
        assert [(r.action, r.priority) for r in result] == [("Reduce position size", "high")]

    def test_score_of_seventy_is_not_high(self) -> None:
        assert risk_reductions(_assessment(score=70), HealthFactorStatus.SAFE) == ()

    @pytest.mark.parametrize(
        "status",
        [HealthFactorStatus.RISKY, HealthFactorStatus.CRITICAL, HealthFactorStatus.LIQUIDATABLE],
    )
    def test_add_collateral(self, status: HealthFactorStatus) -> None:
        result = risk_reductions(_assessment(), status)
        assert [r.action for r in result] == ["Add collateral"]
        assert result[0].priority == "high"

    def test_diversify(self) -> None:
        result = risk_reductions(_assessment(diversification="0.49"), HealthFactorStatus.SAFE)
        assert [(r.action, r.priority) for r in result] == [("Diversify holdings", "medium")]

    def test_all_three_in_order(self) -> None:
        result = risk_reductions(
            _assessment(score=85, diversification="0"), HealthFactorStatus.CRITICAL
        )
        assert [r.action for r in result] == [
            "Reduce position size",
            "Add collateral",
            "Diversify holdings",
        ]


class TestRateOptimizations:
    def test_variable_to_stable(self, make_reserve: MakeReserve) -> None:
        position = make_reserve(
            "USDC",
            variable_debt=D(1000),
            variable_borrow_apy=D(9),
            stable_borrow_apy=D(6),
            stable_borrowing_enabled=True,
        )
        (opt,) = rate_optimizations([position])
        assert opt.current_mode is RateMode.VARIABLE
        assert opt.suggested_mode is RateMode.STABLE
        assert opt.debt_value == D(1000)
        assert opt.annual_savings == D(30)

    def test_stable_disabled(self, make_reserve: MakeReserve) -> None:
        position = make_reserve(
            "USDC", variable_debt=D(1000), variable_borrow_apy=D(9), stable_borrow_apy=D(6)
        )
        assert rate_optimizations([position]) == ()

    def test_stable_to_variable(self, make_reserve: MakeReserve) -> None:
        position = make_reserve(
            "DAI", stable_debt=D(500), variable_borrow_apy=D(3), stable_borrow_apy=D(7)
        )
        (opt,) = rate_optimizations([position])
        assert opt.suggested_mode is RateMode.VARIABLE
        assert opt.annual_savings == D(20)

    def test_saving_below_one_point(self, make_reserve: MakeReserve) -> None:
        position = make_reserve(
            "DAI", stable_debt=D(500), variable_borrow_apy=D("6.5"), stable_borrow_apy=D(7)
        )
        assert rate_optimizations([position]) == ()


class TestRecommend:
    def test_combines_all_sections(self, make_reserve: MakeReserve) -> None:
        held = make_reserve("WETH", supplied=D(1), supply_apy=D(2))
        reserves = (held, make_reserve("DAI", supply_apy=D(8), variable_borrow_apy=D("4.5")))
        result = recommend(
            reserves,
            _summary(D("2.5"), (held,)),
            D(1),
            _assessment(diversification="0"),
        )
        assert [o.asset for o in result.leverage_opportunities] == ["DAI"]
        assert [o.to_symbol for o in result.yield_optimizations] == ["DAI"]
        assert [r.action for r in result.risk_reductions] == ["Diversify holdings"]
        assert result.rate_optimizations == ()

    def test_no_leverage_for_moderate_health(self, make_reserve: MakeReserve) -> None:
        reserves = (make_reserve("DAI", supply_apy=D(8), variable_borrow_apy=D(1)),)
        result = recommend(reserves, _summary(D("1.7"), ()), D(1), _assessment())
        assert result.leverage_opportunities == ()
