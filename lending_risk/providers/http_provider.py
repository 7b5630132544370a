"""JSON-RPC market data provider with endpoint fallback."""
from __future__ import annotations

import logging
import ssl
from typing import Any

import aiohttp
import certifi

from ..config import ChainConfig
from ..errors import ErrorCode, fail, market_data_context

logger = logging.getLogger(__name__)

METHOD_RESERVES = "getReservesHumanized"
METHOD_USER_RESERVES = "getUserReservesHumanized"
METHOD_USER_INCENTIVES = "getUserReservesIncentivesDataHumanized"


class HttpMarketDataProvider:
    """Fetches humanized pool data over JSON-RPC.

    Endpoints for a chain are tried in order starting from the last one that
    worked; the first success becomes the new preferred endpoint.
    """

    def __init__(self, chains: dict[str, ChainConfig]) -> None:
        self._chains = dict(chains)
        self._current_index: dict[str, int] = {name: 0 for name in chains}

    def _chain_config(self, chain: str) -> ChainConfig:
        cfg = self._chains.get(chain)
        if cfg is None:
            raise fail(
                ErrorCode.INVALID_PARAMETERS,
                market_data_context(chain=chain),
                technical_message=f"Unknown chain '{chain}'",
            )
        return cfg

    async def rpc_call(self, chain: str, method: str, params: list[Any]) -> Any:
        """Make an RPC call, falling back to alternative endpoints."""
        cfg = self._chain_config(chain)
        endpoints = list(cfg.data_endpoints)
        payload = {"jsonrpc": "2.0", "id": 1, "method": method, "params": params}

        ssl_context = ssl.create_default_context(cafile=certifi.where())
        current = self._current_index.get(chain, 0)

        last_error: Exception | None = None
        for attempt in range(len(endpoints)):
            index = (current + attempt) % len(endpoints)
            url = endpoints[index]

            try:
                connector = aiohttp.TCPConnector(ssl=ssl_context)
                async with aiohttp.ClientSession(connector=connector) as session:
                    async with session.post(
                        url,
                        json=payload,
                        timeout=aiohttp.ClientTimeout(total=cfg.request_timeout),
                    ) as response:
                        response.raise_for_status()
                        result = await response.json()
                        if "error" in result:
                            raise RuntimeError(f"RPC Error: {result['error']}")

                        if index != current:
                            logger.info("Switched to data endpoint: %s", url)
                            self._current_index[chain] = index

                        return result.get("result")
            except Exception as e:
                last_error = e
                logger.warning("Data endpoint %s failed: %s", url, e)
                if attempt < len(endpoints) - 1:
                    logger.info("Trying next endpoint...")
                continue

        detail = f"{type(last_error).__name__}: {last_error}" if last_error else "no endpoints"
        raise RuntimeError(f"All data endpoints failed. Last error: {detail}")

    def _params(self, chain: str, user: str | None = None) -> list[dict[str, str]]:
        params = {"lendingPoolAddressProvider": self._chain_config(chain).pool_addresses_provider}
        if user is not None:
            params["user"] = user
        return [params]

    async def fetch_market_reserves(self, chain: str) -> list[dict[str, Any]]:
        result = await self.rpc_call(chain, METHOD_RESERVES, self._params(chain))
        reserves = (result or {}).get("reservesData")
        if reserves is None:
            raise fail(
                ErrorCode.DATA_FETCH_FAILED,
                market_data_context(chain=chain),
                technical_message="Malformed response: missing reservesData",
            )
        logger.debug("Fetched %d reserves on %s", len(reserves), chain)
        return reserves

    async def fetch_user_reserves(
        self, chain: str, user: str
    ) -> tuple[list[dict[str, Any]], int]:
        result = await self.rpc_call(chain, METHOD_USER_RESERVES, self._params(chain, user))
        result = result or {}
        user_reserves = result.get("userReserves")
        if user_reserves is None:
            raise fail(
                ErrorCode.DATA_FETCH_FAILED,
                market_data_context(chain=chain),
                technical_message="Malformed response: missing userReserves",
            )
        return user_reserves, int(result.get("userEmodeCategoryId", 0) or 0)

    async def fetch_user_incentives(self, chain: str, user: str) -> list[dict[str, Any]]:
        result = await self.rpc_call(chain, METHOD_USER_INCENTIVES, self._params(chain, user))
        return list(result or [])
