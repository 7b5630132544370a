"""Composite 0-100 risk score over health, leverage, diversification and yield."""
from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

from ..models import RiskAssessment
from .health import liquidation_buffer_days

MAX_SCORE = 100


@dataclass(frozen=True)
class RiskBand:
    """One row of a signal's scoring table.

    ``below=True`` triggers when the signal is under ``threshold``,
    otherwise when it is over it.
    """

    threshold: Decimal
    points: int
    factor: str
    recommendation: str | None = None
    below: bool = True

    def triggers(self, value: Decimal) -> bool:
        return value < self.threshold if self.below else value > self.threshold


# Bands per signal, most severe first. Only the first triggered band of a
# signal counts.
HEALTH_BANDS: tuple[RiskBand, ...] = (
    RiskBand(
        Decimal("1.1"),
        40,
        "Critical health factor - liquidation imminent",
        "Add collateral or repay debt immediately",
    ),
    RiskBand(
        Decimal("1.5"),
        30,
        "Low health factor - high liquidation risk",
        "Improve health factor by adding collateral",
    ),
    RiskBand(Decimal("2.0"), 15, "Moderate health factor risk"),
)

LEVERAGE_BANDS: tuple[RiskBand, ...] = (
    RiskBand(Decimal(5), 25, "Very high leverage", "Consider reducing leverage", below=False),
    RiskBand(Decimal(3), 15, "High leverage", below=False),
    RiskBand(Decimal(2), 8, "Moderate leverage", below=False),
)

DIVERSIFICATION_BANDS: tuple[RiskBand, ...] = (
    RiskBand(Decimal("0.3"), 20, "Poor diversification", "Diversify across more assets"),
    RiskBand(Decimal("0.6"), 10, "Limited diversification"),
)

NET_APY_BANDS: tuple[RiskBand, ...] = (
    RiskBand(
        Decimal(-10),
        15,
        "Negative yield - high borrowing costs",
        "Consider switching to stable rates or reducing borrows",
    ),
    RiskBand(Decimal(-5), 8, "Low or negative yield"),
)


def _first_band(bands: tuple[RiskBand, ...], value: Decimal) -> RiskBand | None:
    for band in bands:
        if band.triggers(value):
            return band
    return None


def assess_risk(
    health_factor: Decimal,
    leverage_ratio: Decimal,
    diversification_score: Decimal,
    net_apy: Decimal,
) -> RiskAssessment:
    """Score a position. Higher is riskier; capped at 100.

    The score is monotonically non-decreasing as health factor and
    diversification fall, as leverage rises and as net APY falls.
    """
    score = 0
    factors: list[str] = []
    recommendations: list[str] = []

    signals = (
        (HEALTH_BANDS, health_factor),
        (LEVERAGE_BANDS, leverage_ratio),
        (DIVERSIFICATION_BANDS, diversification_score),
        (NET_APY_BANDS, net_apy),
    )
    for bands, value in signals:
        band = _first_band(bands, value)
        if band is None:
            continue
        score += band.points
        factors.append(band.factor)
        if band.recommendation:
            recommendations.append(band.recommendation)

    return RiskAssessment(
        score=min(score, MAX_SCORE),
        risk_factors=tuple(factors),
        recommendations=tuple(recommendations),
        liquidation_buffer=liquidation_buffer_days(health_factor, net_apy),
        diversification_score=diversification_score,
    )
