"""Position analytics engine: fetch, normalize, analyze."""
from __future__ import annotations

import asyncio
import logging

from ..analytics import (
    assess_risk,
    calc_leverage_ratio,
    calc_net_apy,
    collateral_drop_to_liquidation_pct,
    diversification_score,
    find_reserve,
    health_factor_status,
    liquidation_risk_pct,
    market_insights,
    normalize,
    parse_claimable_rewards,
    parse_reserve,
    recommend,
    reserve_analytics,
)
from ..config import AppConfig
from ..errors import (
    ErrorCode,
    ErrorContext,
    ErrorRecord,
    analytics_context,
    classify,
    error_boundary,
    fail,
    market_data_context,
)
from ..interfaces.clock import Clock, SystemClock
from ..interfaces.market_data import MarketDataProvider
from ..models import (
    MarketInsights,
    MarketSnapshot,
    ReserveAnalytics,
    ReserveSnapshot,
    RiskAssessment,
    StrategyRecommendations,
    UserAnalytics,
    UserPositionSummary,
)
from ..providers.http_provider import HttpMarketDataProvider
from .cache import SnapshotCache

logger = logging.getLogger(__name__)


class PositionAnalyticsEngine:
    """Entry point for callers: every public method returns analytics or
    raises ``LendingError`` carrying a classified ``ErrorRecord``."""

    def __init__(
        self,
        provider: MarketDataProvider,
        chain: str,
        cache: SnapshotCache[MarketSnapshot] | None = None,
        clock: Clock | None = None,
    ) -> None:
        self._provider = provider
        self._chain = chain
        self._cache: SnapshotCache[MarketSnapshot] = cache or SnapshotCache()
        self._clock: Clock = clock or SystemClock()

    @classmethod
    def from_config(cls, config: AppConfig) -> PositionAnalyticsEngine:
        return cls(
            provider=HttpMarketDataProvider(config.chains),
            chain=config.engine.chain,
            cache=SnapshotCache(ttl_seconds=config.engine.cache.ttl_seconds),
        )

    @property
    def chain(self) -> str:
        return self._chain

    # ------------------------------------------------------------------
    # Data loading
    # ------------------------------------------------------------------

    async def _fetch_user_snapshot(self, user: str) -> MarketSnapshot:
        logger.debug("Fetching market and user data for %s on %s", user, self._chain)
        raw_reserves, (raw_user_reserves, emode_id), raw_rewards = await asyncio.gather(
            self._provider.fetch_market_reserves(self._chain),
            self._provider.fetch_user_reserves(self._chain, user),
            self._provider.fetch_user_incentives(self._chain, user),
        )
        now = self._clock.now()
        summary, reserves = normalize(raw_reserves, raw_user_reserves, emode_id, user, now)
        snapshot = MarketSnapshot(
            chain=self._chain,
            user=user,
            reserves=reserves,
            summary=summary,
            total_claimable_rewards=parse_claimable_rewards(raw_rewards),
            fetched_at=now,
        )
        self._cache.put((self._chain, user), snapshot)
        return snapshot

    async def _user_snapshot(self, user: str, force_refresh: bool = False) -> MarketSnapshot:
        if not force_refresh:
            cached = self._cache.get((self._chain, user))
            if cached is not None:
                logger.debug("Using cached snapshot for %s", user)
                return cached
        return await self._fetch_user_snapshot(user)

    async def _market_reserves(self) -> tuple[ReserveSnapshot, ...]:
        """Market reserves from any fresh cached snapshot of this chain."""
        current = self._cache.peek()
        if current is not None:
            (chain, _), snapshot = current
            if chain == self._chain:
                return snapshot.reserves

        raw_reserves = await self._provider.fetch_market_reserves(self._chain)
        reserves = tuple(parse_reserve(raw) for raw in raw_reserves)
        self._cache.put(
            (self._chain, None),
            MarketSnapshot(
                chain=self._chain,
                user=None,
                reserves=reserves,
                fetched_at=self._clock.now(),
            ),
        )
        return reserves

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def get_market_data(self, user: str) -> MarketSnapshot:
        with error_boundary(market_data_context(user=user, chain=self._chain), logger):
            return await self._user_snapshot(user)

    async def refresh_market_data(self, user: str) -> MarketSnapshot:
        """Bypass the cache and replace its entry with fresh data."""
        with error_boundary(market_data_context(user=user, chain=self._chain), logger):
            return await self._user_snapshot(user, force_refresh=True)

    def clear_cache(self) -> None:
        self._cache.clear()

    async def get_user_analytics(self, user: str) -> UserAnalytics:
        with error_boundary(analytics_context(user=user), logger):
            snapshot = await self._user_snapshot(user)
            summary = _require_summary(snapshot)
            hf = summary.health_factor
            return UserAnalytics(
                summary=summary,
                health_factor_status=health_factor_status(hf),
                liquidation_risk_pct=liquidation_risk_pct(hf),
                collateral_drop_pct=collateral_drop_to_liquidation_pct(hf),
                net_apy=calc_net_apy(summary.positions),
                total_incentives=snapshot.total_claimable_rewards,
                borrow_capacity=summary.available_borrows,
                leverage_ratio=calc_leverage_ratio(
                    summary.total_supply_value, summary.total_debt_value
                ),
            )

    async def get_reserve_analytics(self, asset: str) -> ReserveAnalytics:
        with error_boundary(analytics_context(asset=asset), logger):
            reserves = await self._market_reserves()
            return reserve_analytics(find_reserve(reserves, asset))

    async def analyze_position_risk(self, user: str) -> RiskAssessment:
        with error_boundary(analytics_context(user=user), logger):
            snapshot = await self._user_snapshot(user)
            return _assess(_require_summary(snapshot))

    async def get_strategy_recommendations(self, user: str) -> StrategyRecommendations:
        with error_boundary(analytics_context(user=user), logger):
            snapshot = await self._user_snapshot(user)
            summary = _require_summary(snapshot)
            assessment = _assess(summary)
            leverage = calc_leverage_ratio(summary.total_supply_value, summary.total_debt_value)
            return recommend(snapshot.reserves, summary, leverage, assessment)

    async def get_market_insights(self) -> MarketInsights:
        with error_boundary(analytics_context(), logger):
            return market_insights(await self._market_reserves())

    def classify_error(
        self, raw_error: BaseException | str, context: ErrorContext | None = None
    ) -> ErrorRecord:
        return classify(raw_error, context)


def _require_summary(snapshot: MarketSnapshot) -> UserPositionSummary:
    if snapshot.summary is None:
        raise fail(
            ErrorCode.DATA_FETCH_FAILED,
            market_data_context(user=snapshot.user, chain=snapshot.chain),
            technical_message="Snapshot has no user position summary",
        )
    return snapshot.summary


def _assess(summary: UserPositionSummary) -> RiskAssessment:
    positions = summary.positions
    return assess_risk(
        health_factor=summary.health_factor,
        leverage_ratio=calc_leverage_ratio(summary.total_supply_value, summary.total_debt_value),
        diversification_score=diversification_score(positions),
        net_apy=calc_net_apy(positions),
    )
