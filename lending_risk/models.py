"""Data models, all frozen (immutable)."""
from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum

ZERO = Decimal(0)
INFINITY = Decimal("Infinity")


class RateMode(str, Enum):
    """Interest rate mode of a borrow position."""

    STABLE = "stable"
    VARIABLE = "variable"


class HealthFactorStatus(str, Enum):
    LIQUIDATABLE = "LIQUIDATABLE"
    CRITICAL = "CRITICAL"
    RISKY = "RISKY"
    MODERATE = "MODERATE"
    SAFE = "SAFE"
    VERY_SAFE = "VERY_SAFE"
    NO_DEBT = "No Debt Position"


@dataclass(frozen=True)
class ReserveSnapshot:
    """Point-in-time view of one reserve, with the user's balances merged in.

    Rates are percentages (``Decimal("3.5")`` is 3.5 %). ``ltv`` and
    ``liquidation_threshold`` are fractions (``Decimal("0.8")`` is 80 %).
    Balances are in token units; ``price`` is in the market reference
    currency (USD).
    """

    asset: str
    symbol: str
    decimals: int
    price: Decimal
    supply_apy: Decimal = ZERO
    variable_borrow_apy: Decimal = ZERO
    stable_borrow_apy: Decimal = ZERO
    supply_incentive_apr: Decimal = ZERO
    borrow_incentive_apr: Decimal = ZERO
    ltv: Decimal = ZERO
    liquidation_threshold: Decimal = ZERO
    is_active: bool = True
    is_frozen: bool = False
    is_paused: bool = False
    borrowing_enabled: bool = True
    stable_borrowing_enabled: bool = False
    total_liquidity: Decimal = ZERO
    total_debt_market: Decimal = ZERO
    available_liquidity: Decimal = ZERO
    emode_category_id: int = 0
    # User balances
    supplied: Decimal = ZERO
    variable_debt: Decimal = ZERO
    stable_debt: Decimal = ZERO
    is_collateral: bool = False

    @property
    def total_debt(self) -> Decimal:
        return self.variable_debt + self.stable_debt

    @property
    def supplied_value(self) -> Decimal:
        return self.supplied * self.price

    @property
    def borrowed_value(self) -> Decimal:
        return self.total_debt * self.price

    @property
    def total_value(self) -> Decimal:
        """Supplied plus borrowed value, the position's weight in HHI."""
        return self.supplied_value + self.borrowed_value

    @property
    def has_balance(self) -> bool:
        return self.supplied > 0 or self.total_debt > 0

    @property
    def is_usable(self) -> bool:
        """True when the reserve accepts new supply/borrow."""
        return self.is_active and not self.is_frozen and not self.is_paused


@dataclass(frozen=True)
class UserPositionSummary:
    """Aggregated lending position of a single user."""

    user: str
    total_collateral_value: Decimal
    total_supply_value: Decimal
    total_debt_value: Decimal
    available_borrows: Decimal
    health_factor: Decimal
    current_ltv: Decimal
    liquidation_threshold: Decimal
    ltv: Decimal
    emode_category_id: int = 0
    positions: tuple[ReserveSnapshot, ...] = ()
    last_updated: int = 0

    @property
    def has_debt(self) -> bool:
        return self.total_debt_value > 0


@dataclass(frozen=True)
class RiskAssessment:
    """Composite position risk.

    ``liquidation_buffer`` is an estimate in days and may be ``INFINITY``.
    """

    score: int
    risk_factors: tuple[str, ...]
    recommendations: tuple[str, ...]
    liquidation_buffer: Decimal
    diversification_score: Decimal


@dataclass(frozen=True)
class UserAnalytics:
    summary: UserPositionSummary
    health_factor_status: HealthFactorStatus
    liquidation_risk_pct: Decimal
    collateral_drop_pct: Decimal
    net_apy: Decimal
    total_incentives: Decimal
    borrow_capacity: Decimal
    leverage_ratio: Decimal


@dataclass(frozen=True)
class ReserveAnalytics:
    reserve: ReserveSnapshot
    utilization_pct: Decimal
    total_liquidity: Decimal
    total_borrowed: Decimal
    available_liquidity: Decimal
    incentive_apr: Decimal


@dataclass(frozen=True)
class ReserveRanking:
    symbol: str
    liquidity: Decimal
    apy: Decimal


@dataclass(frozen=True)
class MarketInsights:
    total_value_locked: Decimal
    total_borrowed: Decimal
    average_supply_apy: Decimal
    average_borrow_apy: Decimal
    top_reserves_by_liquidity: tuple[ReserveRanking, ...] = ()
    top_reserves_by_apy: tuple[ReserveRanking, ...] = ()


@dataclass(frozen=True)
class MarketSnapshot:
    """Everything fetched for one (chain, user) query.

    ``summary`` is ``None`` for market-only snapshots.
    """

    chain: str
    user: str | None
    reserves: tuple[ReserveSnapshot, ...]
    summary: UserPositionSummary | None = None
    total_claimable_rewards: Decimal = ZERO
    fetched_at: int = 0


@dataclass(frozen=True)
class LeverageOpportunity:
    asset: str
    action: str
    expected_apy: Decimal
    risk_level: str
    description: str


@dataclass(frozen=True)
class YieldOptimization:
    from_symbol: str
    to_symbol: str
    expected_gain: Decimal
    description: str


@dataclass(frozen=True)
class RiskReduction:
    action: str
    impact: str
    priority: str
    description: str


@dataclass(frozen=True)
class RateOptimization:
    asset: str
    current_mode: RateMode
    current_rate: Decimal
    suggested_mode: RateMode
    suggested_rate: Decimal
    debt_value: Decimal
    annual_savings: Decimal
    recommendation: str


@dataclass(frozen=True)
class StrategyRecommendations:
    leverage_opportunities: tuple[LeverageOpportunity, ...] = ()
    yield_optimizations: tuple[YieldOptimization, ...] = ()
    risk_reductions: tuple[RiskReduction, ...] = ()
    rate_optimizations: tuple[RateOptimization, ...] = ()
