"""Unit tests for the composite risk score."""
from __future__ import annotations

from decimal import Decimal

import pytest

from lending_risk.analytics.health import health_factor_status
from lending_risk.analytics.risk import assess_risk
from lending_risk.models import INFINITY, HealthFactorStatus

D = Decimal


def _score(hf: str, leverage: str = "1", div: str = "1", apy: str = "0") -> int:
    return assess_risk(D(hf), D(leverage), D(div), D(apy)).score


class TestAssessRisk:
    def test_critical_health_scenario(self) -> None:
        hf = D("1.05")
        result = assess_risk(hf, D(1), D(1), D(0))
        assert result.score == 40
        assert health_factor_status(hf) is HealthFactorStatus.CRITICAL
        assert result.risk_factors == ("Critical health factor - liquidation imminent",)
        assert result.recommendations == ("Add collateral or repay debt immediately",)

    def test_healthy_position_scores_zero(self) -> None:
        result = assess_risk(INFINITY, D(1), D("0.8"), D(3))
        assert result.score == 0
        assert result.risk_factors == ()
        assert result.liquidation_buffer == INFINITY

    def test_bands_accumulate_in_order(self) -> None:
        result = assess_risk(D("1.3"), D(4), D("0.4"), D(-7))
        assert result.score == 30 + 15 + 10 + 8
        assert result.risk_factors == (
            "Low health factor - high liquidation risk",
            "High leverage",
            "Limited diversification",
            "Low or negative yield",
        )
        assert result.recommendations == ("Improve health factor by adding collateral",)

    def test_worst_case_capped(self) -> None:
        result = assess_risk(D("0.5"), D(50), D(0), D(-1000))
        assert result.score == 100
        assert len(result.recommendations) == 4

    @pytest.mark.parametrize(
        ("hf", "lev", "div", "apy"),
        [
            ("0", "1e9", "0", "-1e9"),
            ("1e9", "0", "1", "1e9"),
            ("0.0001", "5.0001", "0.2999", "-10.0001"),
        ],
    )
    def test_score_in_range(self, hf: str, lev: str, div: str, apy: str) -> None:
        assert 0 <= _score(hf, lev, div, apy) <= 100

    def test_buffer_and_diversification_carried(self) -> None:
        result = assess_risk(D(2), D(1), D("0.42"), D("-36.5"))
        assert result.liquidation_buffer == D(1000)
        assert result.diversification_score == D("0.42")


class TestMonotonicity:
    def test_health_factor(self) -> None:
        scores = [_score(hf) for hf in ("5", "2", "1.9", "1.5", "1.4", "1.1", "1.0", "0.5")]
        assert scores == sorted(scores)

    def test_leverage(self) -> None:
        scores = [_score("5", leverage=lev) for lev in ("1", "2", "2.1", "3", "3.1", "5", "6")]
        assert scores == sorted(scores)

    def test_diversification(self) -> None:
        scores = [_score("5", div=d) for d in ("1", "0.6", "0.59", "0.3", "0.29", "0")]
        assert scores == sorted(scores)

    def test_net_apy(self) -> None:
        scores = [_score("5", apy=a) for a in ("10", "0", "-5", "-5.1", "-10", "-11")]
        assert scores == sorted(scores)
