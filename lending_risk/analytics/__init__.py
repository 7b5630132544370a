"""Pure position analytics: normalization, health, yield, risk and strategy."""
from .diversification import calc_hhi, diversification_score
from .health import (
    calc_current_ltv,
    calc_health_factor,
    calc_liquidation_price,
    calc_max_borrow_amount,
    collateral_drop_to_liquidation_pct,
    health_factor_status,
    liquidation_buffer_days,
    liquidation_risk_pct,
)
from .market import find_reserve, market_insights, reserve_analytics
from .normalizer import (
    merge_user_reserve,
    normalize,
    parse_claimable_rewards,
    parse_reserve,
    summarize,
    to_raw_reserves,
    to_raw_user_reserves,
)
from .risk import assess_risk
from .strategy import recommend
from .yield_leverage import (
    LeveragedYield,
    calc_leverage_ratio,
    calc_leveraged_yield,
    calc_net_apy,
)

__all__ = [
    "LeveragedYield",
    "assess_risk",
    "calc_current_ltv",
    "calc_health_factor",
    "calc_hhi",
    "calc_leverage_ratio",
    "calc_leveraged_yield",
    "calc_liquidation_price",
    "calc_max_borrow_amount",
    "calc_net_apy",
    "collateral_drop_to_liquidation_pct",
    "diversification_score",
    "find_reserve",
    "health_factor_status",
    "liquidation_buffer_days",
    "liquidation_risk_pct",
    "market_insights",
    "merge_user_reserve",
    "normalize",
    "parse_claimable_rewards",
    "parse_reserve",
    "recommend",
    "reserve_analytics",
    "summarize",
    "to_raw_reserves",
    "to_raw_user_reserves",
]
