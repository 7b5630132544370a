"""Market data provider: raw reserve, user and incentive records."""
from __future__ import annotations

from typing import Any, Protocol


class MarketDataProvider(Protocol):
    """Abstract source of raw pool data for one chain."""

    async def fetch_market_reserves(self, chain: str) -> list[dict[str, Any]]: ...

    async def fetch_user_reserves(
        self, chain: str, user: str
    ) -> tuple[list[dict[str, Any]], int]:
        """Return the user's per-reserve balances and eMode category id."""
        ...

    async def fetch_user_incentives(self, chain: str, user: str) -> list[dict[str, Any]]: ...
